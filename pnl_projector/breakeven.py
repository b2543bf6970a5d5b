from __future__ import annotations

import math
from typing import Optional

import pandas as pd

BREAK_EVEN_COLUMNS = [
    "month",
    "actual_users",
    "required_users",
    "break_even_revenue",
    "actual_revenue",
    "is_break_even",
    "covers_required_revenue",
    "reachable",
    "percent_to_break_even",
]


def required_users(required_revenue: float, unit_price: float, unit_variable_cost: float) -> Optional[int]:
    """Entities needed to cover ``required_revenue`` at the current contribution margin.

    Returns None when the margin is not positive (break-even unreachable).
    """
    margin = unit_price - unit_variable_cost
    if unit_price <= 0 or margin <= 0 or not math.isfinite(margin):
        return None
    return max(0, math.ceil(required_revenue / margin))


def break_even_row(
    month: int,
    actual_users: float,
    actual_revenue: float,
    profit: float,
    required_revenue: float,
    unit_price: float,
    unit_variable_cost: float,
) -> dict:
    needed = required_users(required_revenue, unit_price, unit_variable_cost)
    if needed is None:
        be_revenue = 0.0
        percent = 0.0
        covers = False
    else:
        be_revenue = needed * unit_price
        percent = 100.0 if be_revenue <= 0 else min(max(actual_revenue / be_revenue * 100.0, 0.0), 100.0)
        covers = actual_revenue >= be_revenue

    return {
        "month": month,
        "actual_users": int(round(actual_users)),
        "required_users": needed,
        "break_even_revenue": round(be_revenue, 2),
        "actual_revenue": round(actual_revenue, 2),
        # Derived from the profit sign; covers_required_revenue is the revenue-side view
        "is_break_even": bool(profit >= 0),
        "covers_required_revenue": bool(covers),
        "reachable": needed is not None,
        "percent_to_break_even": round(percent, 2),
    }


def break_even_frame(rows: list[dict]) -> pd.DataFrame:
    df = pd.DataFrame(rows, columns=BREAK_EVEN_COLUMNS)
    df["required_users"] = df["required_users"].astype("Int64")
    return df
