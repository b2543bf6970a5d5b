"""CSV export of a projection and the frames the charts consume.

The exported file is the monthly table joined with the break-even columns,
then a blank line, a SUMMARY block and a REVENUE GOAL block.
``read_monthly_csv`` reads the table back and ``read_revenue_goal_csv`` the
goal block; the SUMMARY block is for people.
"""

from __future__ import annotations

import io
import math
from dataclasses import asdict
from typing import Union

import pandas as pd

from pnl_projector.breakeven import BREAK_EVEN_COLUMNS
from pnl_projector.engine import HYBRID_COLUMNS, MONTHLY_COLUMNS
from pnl_projector.types import HybridInputs, ProjectionInputs, ProjectionResult, RevenueGoalSummary

LINE_END = "\n"

GOAL_LABELS = {
    "current_annual_revenue": "Current Annual Revenue",
    "required_annual_revenue": "Required Annual Revenue",
    "monthly_goal_revenue": "Monthly Goal Revenue",
    "required_users_for_goal": "Required Users for Goal",
    "additional_users_needed": "Additional Users Needed",
    "progress_percentage": "Progress to Goal (%)",
    "projected_annual_revenue": "Projected Annual Revenue",
    "months_to_reach_goal": "Months to Reach Goal",
    "marketing_spend_needed": "Marketing Spend Needed",
    "estimated_cac_for_goal": "Estimated CAC for Goal",
}

SUMMARY_LABELS = {
    "total_revenue": "Total Revenue",
    "total_expenses": "Total Expenses",
    "total_profit": "Total Profit",
    "final_cash": "Final Cash",
    "break_even_month": "Break-even Month",
    "max_users": "Max Users",
    "avg_monthly_profit": "Avg Monthly Profit",
    "peak_mrr": "Peak MRR",
    "base_share": "Base Fee Share (%)",
    "users_share": "User Fee Share (%)",
    "ai_share": "AI Usage Share (%)",
    "addons_share": "Add-on Share (%)",
    "tenant_growth_rate": "Tenant Growth Rate (%/mo)",
    "user_growth_rate": "Users per Tenant Growth Rate (%/mo)",
    "churn_rate": "Churn Rate (%)",
    "ltv": "LTV",
    "cac": "CAC",
    "avg_arpu": "Avg ARPU",
    "avg_nrr": "Avg NRR (%)",
    "avg_time_to_payback": "Avg Payback (months)",
}

GOAL_SECTION = "$1M REVENUE GOAL ANALYSIS"
GOAL_INT_FIELDS = {"required_users_for_goal", "additional_users_needed", "months_to_reach_goal"}
MISSING = "N/A"


def monthly_with_break_even(result: ProjectionResult) -> pd.DataFrame:
    return pd.concat(
        [result.monthly.reset_index(drop=True), result.break_even.drop(columns=["month"]).reset_index(drop=True)],
        axis=1,
    )


def revenue_goal_to_frame(goal: RevenueGoalSummary) -> pd.DataFrame:
    rows = [(GOAL_LABELS.get(key, key), value) for key, value in asdict(goal).items()]
    return pd.DataFrame(rows, columns=["metric", "value"])


def _is_missing(value) -> bool:
    return value is None or (isinstance(value, float) and math.isnan(value))


def _section(title: str, pairs) -> str:
    body = pd.DataFrame([(label, MISSING if _is_missing(value) else value) for label, value in pairs])
    return title + LINE_END + body.to_csv(index=False, header=False, lineterminator=LINE_END)


def export_to_csv(inputs: Union[ProjectionInputs, HybridInputs], result: ProjectionResult) -> str:
    table = monthly_with_break_even(result).to_csv(index=False, lineterminator=LINE_END)
    summary = [(SUMMARY_LABELS.get(key, key), value) for key, value in result.summary.items()]
    goal = [(GOAL_LABELS[key], value) for key, value in asdict(result.revenue_goal).items()]
    header = [("Mode", result.mode), ("Start Date", inputs.start_date), ("Starting Cash", inputs.starting_cash)]
    return LINE_END.join(
        [
            table,
            _section("SUMMARY", header + summary),
            _section(GOAL_SECTION, goal),
        ]
    )


def read_monthly_csv(text: str) -> tuple[pd.DataFrame, pd.DataFrame]:
    """Parse the table block of ``export_to_csv`` back into (monthly, break_even)."""
    table = text.replace("\r\n", "\n").split("\n\n", 1)[0]
    df = pd.read_csv(io.StringIO(table))
    columns = HYBRID_COLUMNS if "mrr" in df.columns else MONTHLY_COLUMNS
    missing = [c for c in columns + BREAK_EVEN_COLUMNS[1:] if c not in df.columns]
    if missing:
        raise ValueError(f"CSV is missing columns: {', '.join(missing)}")

    monthly = df[columns].copy()
    monthly["date"] = monthly["date"].astype(str)
    break_even = df[["month"] + BREAK_EVEN_COLUMNS[1:]].copy()
    break_even["required_users"] = break_even["required_users"].astype("Int64")
    for col in ("is_break_even", "covers_required_revenue", "reachable"):
        break_even[col] = break_even[col].astype(bool)
    return monthly, break_even


def read_revenue_goal_csv(text: str) -> RevenueGoalSummary:
    """Rebuild the revenue-goal summary from the goal block of ``export_to_csv``."""
    lines = text.replace("\r\n", "\n").split("\n")
    if GOAL_SECTION not in lines:
        raise ValueError(f"CSV has no {GOAL_SECTION!r} section")
    block = []
    for line in lines[lines.index(GOAL_SECTION) + 1 :]:
        if not line.strip():
            break
        block.append(line)

    df = pd.read_csv(
        io.StringIO("\n".join(block)), header=None, names=["metric", "value"], dtype=str, keep_default_na=False
    )
    by_label = dict(zip(df["metric"], df["value"]))
    values = {}
    for key, label in GOAL_LABELS.items():
        if label not in by_label:
            raise ValueError(f"Revenue goal section is missing {label!r}")
        raw = by_label[label]
        if raw == MISSING:
            values[key] = None
        elif key in GOAL_INT_FIELDS:
            values[key] = int(float(raw))
        else:
            values[key] = float(raw)
    return RevenueGoalSummary(**values)


def chart_data(result: ProjectionResult) -> pd.DataFrame:
    """Long-format-ready frame for the cash, revenue and break-even charts."""
    df = result.monthly
    out = pd.DataFrame(
        {
            "month": df["month"],
            "date": pd.to_datetime(df["date"], format="%b %Y"),
            "label": df["date"],
            "revenue": df["revenue"],
            "total_expenses": df["total_expenses"],
            "profit": df["profit"],
            "cash_on_hand": df["cash_on_hand"],
            "users": df["users"],
            "required_users": result.break_even["required_users"],
            "percent_to_break_even": result.break_even["percent_to_break_even"],
        }
    )
    if "mrr" in df.columns:
        out["mrr"] = df["mrr"]
    return out
