"""Progress toward the annual revenue target.

The series is annualized as a year-equivalent (sum * 12 / N). At a 12-month
horizon this is the plain sum; for shorter horizons the figure is an
extrapolation and should be read as approximate.
"""

from __future__ import annotations

import math
from typing import Optional, Sequence

import numpy as np

from pnl_projector.growth import round_count
from pnl_projector.types import RevenueGoalSummary

TARGET_ANNUAL_REVENUE = 1_000_000.0
TREND_WINDOW = 3


def annualized_revenue(revenues: Sequence[float]) -> float:
    if len(revenues) == 0:
        return 0.0
    return float(np.sum(revenues)) * 12.0 / len(revenues)


def months_to_reach_goal(current_annual: float, projected_annual: float, target: float = TARGET_ANNUAL_REVENUE) -> Optional[int]:
    """Invert compound growth: months for ``current`` to reach ``target`` at the trend rate.

    None when there is no base to grow from or the trend is flat or declining,
    even if the target is already met.
    """
    if current_annual <= 0 or projected_annual <= current_annual:
        return None
    if current_annual >= target:
        return 0
    monthly_growth = (projected_annual - current_annual) / current_annual / 12.0
    remaining = target - current_annual
    return int(math.ceil(math.log(1.0 + remaining / current_annual) / math.log(1.0 + monthly_growth)))


def revenue_goal_summary(
    revenues: Sequence[float],
    users: Sequence[float],
    price_per_entity: float,
    monthly_overhead: float,
    blended_cac: Optional[float] = None,
) -> RevenueGoalSummary:
    revenues = np.asarray(revenues, dtype=float)
    users = np.asarray(users, dtype=float)

    current_annual = annualized_revenue(revenues)
    monthly_goal = TARGET_ANNUAL_REVENUE / 12.0

    required: Optional[int] = None
    if price_per_entity > 0:
        required = int(math.ceil((monthly_goal + monthly_overhead) / price_per_entity))
    avg_users = float(users.mean()) if users.size else 0.0
    additional = 0 if required is None else max(0, round_count(required - avg_users))

    progress = min(max(current_annual / TARGET_ANNUAL_REVENUE * 100.0, 0.0), 100.0)

    recent = revenues[-TREND_WINDOW:]
    projected_annual = float(recent.mean()) * 12.0 if recent.size else 0.0

    spend_needed = None if blended_cac is None else round(additional * blended_cac, 2)
    return RevenueGoalSummary(
        current_annual_revenue=round(current_annual, 2),
        required_annual_revenue=TARGET_ANNUAL_REVENUE,
        monthly_goal_revenue=round(monthly_goal, 2),
        required_users_for_goal=required,
        additional_users_needed=additional,
        progress_percentage=round(progress, 2),
        projected_annual_revenue=round(projected_annual, 2),
        months_to_reach_goal=months_to_reach_goal(current_annual, projected_annual),
        marketing_spend_needed=spend_needed,
        estimated_cac_for_goal=None if blended_cac is None else round(blended_cac, 2),
    )
