import pandas as pd

from pnl_projector.engine import project
from pnl_projector.presets import DEFAULT_HYBRID_INPUTS, REFERENCE_INPUTS
from pnl_projector.types import (
    FixedCosts,
    HybridInputs,
    MarketingMetrics,
    ProjectionInputs,
    ProjectionResult,
    RevenueGoalSummary,
)


def test_fixed_cost_totals():
    costs = FixedCosts(infra=100.0, salary=200.0, support=0.0, wages=0.0, hosting=50.0, marketing=1000.0)
    assert costs.operating_total == 350.0
    assert costs.total == 1350.0


def test_marketing_spend_source():
    costs = FixedCosts(marketing=700.0)
    assert ProjectionInputs(fixed_costs=costs).marketing_spend == 700.0
    assert ProjectionInputs(fixed_costs=costs, marketing_metrics=MarketingMetrics(monthly_marketing_spend=300.0)).marketing_spend == 300.0
    assert HybridInputs(fixed_costs=costs).marketing_spend == 700.0
    assert HybridInputs(marketing_metrics=MarketingMetrics()).marketing_spend == 5000.0


def _result(profits):
    n = len(profits)
    monthly = pd.DataFrame(
        {
            "month": range(1, n + 1),
            "users": [10] * n,
            "revenue": [100.0] * n,
            "total_expenses": [100.0 - p for p in profits],
            "profit": profits,
            "cash_on_hand": pd.Series(profits).cumsum(),
        }
    )
    goal = RevenueGoalSummary(
        current_annual_revenue=1200.0,
        required_annual_revenue=1_000_000.0,
        monthly_goal_revenue=1_000_000.0 / 12,
        required_users_for_goal=None,
        additional_users_needed=0,
        progress_percentage=0.12,
        projected_annual_revenue=1200.0,
        months_to_reach_goal=None,
    )
    return ProjectionResult(mode="basic", monthly=monthly, break_even=pd.DataFrame(), revenue_goal=goal)


def test_break_even_month_uses_cumulative_profit():
    assert _result([-50.0, 20.0, 40.0, 10.0]).break_even_month == 3
    assert _result([-50.0, 20.0, 30.0, 10.0]).break_even_month == 4
    assert _result([-50.0, 50.0]).break_even_month is None
    assert _result([5.0, -10.0]).break_even_month == 1


def test_summary_keys():
    basic = project(REFERENCE_INPUTS).summary
    assert set(basic) == {
        "total_revenue",
        "total_expenses",
        "total_profit",
        "final_cash",
        "break_even_month",
        "max_users",
        "avg_monthly_profit",
    }
    assert basic["total_profit"] == round(basic["total_revenue"] - basic["total_expenses"], 2)

    hybrid = project(DEFAULT_HYBRID_INPUTS).summary
    assert {"peak_mrr", "base_share", "users_share", "ai_share", "addons_share"} <= set(hybrid)
    shares = hybrid["base_share"] + hybrid["users_share"] + hybrid["ai_share"] + hybrid["addons_share"]
    assert abs(shares - 100.0) < 0.05
