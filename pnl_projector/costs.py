from __future__ import annotations

import math
from dataclasses import dataclass

INFRA_BASE_COST = 100.0
INFRA_STEP_COST = 50.0  # per block of INFRA_STEP_USERS seats
INFRA_STEP_USERS = 1000

HYBRID_VARIABLE_RATE = 0.15  # share of revenue
HYBRID_SCALING_RATE = 0.05  # extra share per HYBRID_SCALING_USERS seats
HYBRID_SCALING_USERS = 10000


@dataclass(frozen=True)
class CostBreakdown:
    fixed: float
    variable: float
    marketing: float
    capital: float

    @property
    def total(self) -> float:
        # marketing is held apart from fixed so it is counted exactly once
        return self.fixed + self.variable + self.capital + self.marketing


def per_user_variable_cost(avg_users: float, cost_per_user: float) -> float:
    return avg_users * cost_per_user


def infrastructure_cost(total_users: float) -> float:
    """Stepped hosting cost: a base charge plus one step per thousand seats."""
    return INFRA_BASE_COST + math.floor(total_users / INFRA_STEP_USERS) * INFRA_STEP_COST


def revenue_share_cost(revenue: float, total_users: float) -> float:
    rate = HYBRID_VARIABLE_RATE + (total_users / HYBRID_SCALING_USERS) * HYBRID_SCALING_RATE
    return revenue * rate
