"""Monthly P&L projection.

``project`` is the single entry point for every mode. It validates nothing;
callers that take user input should run ``validation.validate_inputs`` (or
``validate_hybrid_inputs``) first and surface the errors.
"""

from __future__ import annotations

import math
from dataclasses import replace
from typing import Union

import pandas as pd
from streamlit.logger import get_logger

from pnl_projector.breakeven import break_even_frame, break_even_row
from pnl_projector.goals import revenue_goal_summary
from pnl_projector.growth import round_count
from pnl_projector.marketing import marketing_analytics
from pnl_projector.presets import DEFAULT_MARKETING_METRICS
from pnl_projector.strategies import HybridStrategy, PeriodOutcome, strategy_for
from pnl_projector.types import GrowthScenario, HybridInputs, ProjectionInputs, ProjectionResult

logger = get_logger(__name__)

MONTHLY_COLUMNS = [
    "month",
    "date",
    "users",
    "new_users",
    "new_organic",
    "new_paid",
    "churned_users",
    "base_revenue",
    "addon_revenue",
    "user_revenue",
    "ai_revenue",
    "revenue",
    "fixed_costs",
    "variable_costs",
    "marketing_spend",
    "capital_purchase",
    "total_expenses",
    "profit",
    "cash_on_hand",
    "total_users",
    "arpu",
    "cac",
    "ltv",
    "retention_rate",
    "nrr",
    "time_to_payback",
]

HYBRID_COLUMNS = MONTHLY_COLUMNS + [
    "mrr",
    "avg_users_per_tenant",
    "avg_ai_usage_per_tenant",
    "new_total_users",
    "churned_total_users",
]

COUNT_METRICS = {"total_users", "avg_users_per_tenant", "avg_ai_usage_per_tenant", "new_total_users", "churned_total_users"}
PERCENT_METRICS = {"retention_rate", "nrr"}

DATE_FORMAT = "%b %Y"


def _money(value: float) -> float:
    return round(float(value), 2)


def _metric(key: str, value: float) -> float:
    if value is None or math.isnan(value):
        return math.nan
    if key in COUNT_METRICS:
        return round_count(value)
    if key in PERCENT_METRICS:
        return round(value * 100.0, 2)
    return round(value, 2)


def month_labels(start_date: str, months: int) -> list[str]:
    """``"Jun 2025"``-style labels, one per projected month."""
    start = pd.Timestamp(start_date)
    if pd.isna(start):
        raise ValueError(f"Invalid start date: {start_date!r}")
    return [(start + pd.DateOffset(months=i)).strftime(DATE_FORMAT) for i in range(months)]


def _row(month: int, label: str, outcome: PeriodOutcome, profit: float, cash: float) -> dict:
    entities, revenue, cost = outcome.entities, outcome.revenue, outcome.costs
    row = {
        "month": month,
        "date": label,
        "users": round_count(entities.ending),
        "new_users": entities.new,
        "new_organic": entities.new_organic,
        "new_paid": entities.new_paid,
        "churned_users": entities.churned,
        "base_revenue": _money(revenue.base),
        "addon_revenue": _money(revenue.addon),
        "user_revenue": _money(revenue.user),
        "ai_revenue": _money(revenue.ai),
        "revenue": _money(revenue.total),
        "fixed_costs": _money(cost.fixed),
        "variable_costs": _money(cost.variable),
        "marketing_spend": _money(cost.marketing),
        "capital_purchase": _money(cost.capital),
        "total_expenses": _money(cost.total),
        "profit": _money(profit),
        "cash_on_hand": _money(cash),
    }
    for key, value in outcome.metrics.items():
        row[key] = _metric(key, value)
    return row


def project(inputs: Union[ProjectionInputs, HybridInputs]) -> ProjectionResult:
    """Run a month-by-month projection for any mode.

    Cash is carried unrounded between months; every emitted monetary figure
    is rounded to cents. Break-even, revenue-goal and (for the enhanced and
    hybrid modes) marketing analytics are derived from the finished series.
    """
    months = inputs.projection_months
    if not isinstance(months, int) or isinstance(months, bool) or months < 1:
        raise ValueError("Projection months must be a positive whole number")

    strategy = strategy_for(inputs)
    labels = month_labels(inputs.start_date, months)
    logger.debug("Projecting %d months in %s mode", months, strategy.mode)

    rows: list[dict] = []
    be_rows: list[dict] = []
    cash = float(inputs.starting_cash)
    entities = strategy.initial_entities()

    for i in range(months):
        outcome = strategy.step(i, entities)
        profit = outcome.revenue.total - outcome.costs.total
        cash += profit

        rows.append(_row(i + 1, labels[i], outcome, profit, cash))
        required_revenue = outcome.costs.fixed + outcome.costs.capital + outcome.costs.marketing
        be_rows.append(
            break_even_row(
                i + 1,
                outcome.entities.ending,
                outcome.revenue.total,
                profit,
                required_revenue,
                outcome.unit_price,
                outcome.unit_variable_cost,
            )
        )
        entities = outcome.entities.ending

    columns = HYBRID_COLUMNS if strategy.mode == "hybrid" else MONTHLY_COLUMNS
    monthly = pd.DataFrame(rows, columns=columns)
    break_even = break_even_frame(be_rows)

    unreachable = int((~break_even["reachable"]).sum())
    if unreachable:
        logger.warning("Break-even unreachable in %d of %d months (non-positive unit margin)", unreachable, months)

    marketing = marketing_analytics(monthly) if strategy.mode != "basic" else None

    if isinstance(strategy, HybridStrategy):
        price_per_entity = strategy.last_tenant_price
    else:
        price_per_entity = float(inputs.price_per_user)
    goal = revenue_goal_summary(
        monthly["revenue"].to_numpy(),
        monthly["users"].to_numpy(),
        price_per_entity,
        strategy.monthly_overhead,
        blended_cac=None if marketing is None else marketing.avg_cac,
    )

    return ProjectionResult(
        mode=strategy.mode,
        monthly=monthly,
        break_even=break_even,
        revenue_goal=goal,
        marketing=marketing,
        growth_metrics=strategy.growth_metrics(monthly) if isinstance(strategy, HybridStrategy) else {},
    )


def project_custom_scenario(inputs: ProjectionInputs, scenario: GrowthScenario) -> ProjectionResult:
    """Re-run the enhanced engine with a scenario's churn, seat growth and unit economics."""
    metrics = inputs.marketing_metrics or replace(
        DEFAULT_MARKETING_METRICS, monthly_marketing_spend=float(inputs.fixed_costs.marketing)
    )
    metrics = replace(
        metrics,
        cac=metrics.cac if scenario.cac is None else scenario.cac,
        ltv=metrics.ltv if scenario.ltv is None else scenario.ltv,
    )
    modified = replace(
        inputs,
        mode="enhanced",
        churn_rate=scenario.churn_rate,
        user_growth_rate=scenario.user_growth_rate,
        avg_users_per_client=scenario.users_per_tenant or inputs.avg_users_per_client,
        marketing_metrics=metrics,
    )
    logger.info("Running custom scenario %r", scenario.name)
    return project(modified)
