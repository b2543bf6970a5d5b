"""Per-period entity accounting (users, clients or tenants).

Churn is applied to the start-of-period count and new entities are added
afterwards; the ending count is floored at zero.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

ORGANIC_SHARE = 0.3
PAID_SHARE = 0.7
HYBRID_ORGANIC_SHARE = 0.4
HYBRID_PAID_SHARE = 0.6


def round_count(value: float) -> int:
    """Round half up, so 2.5 -> 3 rather than banker's 2."""
    return int(math.floor(value + 0.5))


def cyclic_value(pattern: Sequence[float], index: int) -> float:
    if not pattern:
        raise ValueError("Growth pattern must contain at least one value")
    return float(pattern[index % len(pattern)])


def padded_value(values: Sequence[float], index: int) -> float:
    if index < len(values):
        return float(values[index] or 0.0)
    return 0.0


@dataclass(frozen=True)
class EntityStep:
    start: float
    churned: int
    new: int
    ending: float
    new_organic: int = 0
    new_paid: int = 0

    @property
    def average(self) -> float:
        return (self.start + self.ending) / 2.0


def step_entities(start: float, churn_rate: float, new_organic: int, new_paid: int = 0) -> EntityStep:
    churned = round_count(start * churn_rate)
    new = int(new_organic) + int(new_paid)
    ending = max(0.0, start - churned + new)
    return EntityStep(start=start, churned=churned, new=new, ending=ending, new_organic=new_organic, new_paid=new_paid)


def paid_acquisitions(marketing_spend: float, cac: float, share: float) -> int:
    if cac <= 0 or marketing_spend <= 0:
        return 0
    return round_count(marketing_spend / cac * share)


def pattern_step(start: float, churn_rate: float, pattern: Sequence[float], month: int) -> EntityStep:
    """Basic mode: new entities come straight from the seasonal pattern."""
    return step_entities(start, churn_rate, max(0, round_count(cyclic_value(pattern, month))))


def blended_step(
    start: float,
    churn_rate: float,
    pattern: Sequence[float],
    month: int,
    marketing_spend: float,
    cac: float,
) -> EntityStep:
    """Enhanced mode: split acquisition into organic (pattern) and paid (spend / CAC)."""
    organic = max(0, round_count(cyclic_value(pattern, month) * ORGANIC_SHARE))
    paid = paid_acquisitions(marketing_spend, cac, PAID_SHARE)
    return step_entities(start, churn_rate, organic, paid)


def tenant_step(
    start: float,
    churn_rate: float,
    growth_rate: float,
    marketing_spend: float = 0.0,
    cac: float | None = None,
) -> EntityStep:
    """Hybrid mode: tenants grow proportionally, plus paid acquisition when a CAC is known."""
    if cac is None:
        return step_entities(start, churn_rate, max(0, round_count(start * growth_rate)))
    organic = max(0, round_count(start * growth_rate * HYBRID_ORGANIC_SHARE))
    paid = paid_acquisitions(marketing_spend, cac, HYBRID_PAID_SHARE)
    return step_entities(start, churn_rate, organic, paid)


def grow_per_entity(value: float, growth_rate: float) -> int:
    """Compound a per-entity scalar (users or usage per tenant) by one month."""
    return round_count(value * (1.0 + growth_rate))


@dataclass(frozen=True)
class TotalUserStep:
    churned: int
    new: float
    ending: float


def step_total_users(total_users: float, new_entities: int, users_per_entity: float, churn_rate: float) -> TotalUserStep:
    """Advance the seat count behind the entity count.

    ``churn_rate`` is the already-dampened user churn rate.
    """
    new = new_entities * users_per_entity
    churned = round_count(total_users * churn_rate)
    return TotalUserStep(churned=churned, new=new, ending=max(0.0, total_users - churned + new))
