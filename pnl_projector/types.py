from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Optional, Sequence

import pandas as pd

ProjectionMode = Literal["basic", "enhanced", "hybrid"]


@dataclass(frozen=True)
class FixedCosts:
    """Monthly fixed cost breakdown.

    ``marketing`` is only used as the marketing spend when no
    ``MarketingMetrics`` are supplied; it is never added to the fixed total.
    """

    infra: float = 1588.60
    salary: float = 3000.0
    support: float = 500.0
    wages: float = 1000.0
    hosting: float = 1600.0
    marketing: float = 0.0

    @property
    def operating_total(self) -> float:
        return float(self.infra + self.salary + self.support + self.wages + self.hosting)

    @property
    def total(self) -> float:
        return self.operating_total + float(self.marketing)


@dataclass(frozen=True)
class MarketingMetrics:
    monthly_marketing_spend: float = 5000.0
    cac: float = 250.0
    ltv: float = 1200.0
    ltv_cac_ratio: float = 4.8
    payback_period_months: float = 8.0
    organic_growth_rate: float = 0.15
    paid_growth_rate: float = 0.35

    # Channel allocation of the monthly spend
    brand_awareness_spend: float = 1500.0
    performance_marketing_spend: float = 2500.0
    content_marketing_spend: float = 800.0
    affiliate_marketing_spend: float = 200.0

    conversion_rate: float = 0.08  # 8%
    lead_quality_score: float = 75.0
    marketing_roi: float = 3.2

    @property
    def channel_spend(self) -> dict[str, float]:
        return {
            "brand": float(self.brand_awareness_spend),
            "performance": float(self.performance_marketing_spend),
            "content": float(self.content_marketing_spend),
            "affiliate": float(self.affiliate_marketing_spend),
        }


@dataclass(frozen=True)
class PricingTier:
    id: str
    name: str
    base_fee: float
    included_users: int
    ai_credits: float
    per_user_rate: float
    ai_overage_rate: float
    description: str = ""


@dataclass(frozen=True)
class FeatureAddon:
    id: str
    name: str
    price: float
    description: str = ""
    pricing_model: Literal["per_user", "flat_rate", "usage_based"] = "flat_rate"


@dataclass(frozen=True)
class GrowthScenario:
    name: str
    description: str = ""
    tenants: int = 0
    users_per_tenant: float = 0.0
    ai_usage_per_tenant: float = 0.0
    tenant_growth_rate: float = 0.0
    user_growth_rate: float = 0.0
    ai_growth_rate: float = 0.0
    churn_rate: float = 0.0
    cac: Optional[float] = None
    ltv: Optional[float] = None


@dataclass(frozen=True)
class ProjectionInputs:
    """Single-tier configuration used by the basic and enhanced engines."""

    # Timing
    start_date: str = "2025-06-01"
    projection_months: int = 12

    # Economics
    starting_cash: float = 0.0
    price_per_user: float = 49.0
    churn_rate: float = 0.03  # 3% of start-of-month users
    fixed_costs: FixedCosts = FixedCosts()
    variable_cost_per_user: float = 5.0  # basic mode only

    # Growth
    initial_users: int = 5
    seasonal_growth: Sequence[float] = (8, 10, 12, 5, 6, 7, 10, 12, 8, 5, 4, 3)
    capital_purchases: Sequence[float] = (2000, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0)

    # "basic" ignores everything below except enabled_addons and the marketing spend
    mode: Literal["basic", "enhanced"] = "basic"
    enabled_addons: Sequence[str] = ()
    marketing_metrics: Optional[MarketingMetrics] = None
    avg_users_per_client: Optional[float] = None
    user_growth_rate: Optional[float] = None
    user_churn_rate: Optional[float] = None

    @property
    def marketing_spend(self) -> float:
        if self.marketing_metrics is not None:
            return float(self.marketing_metrics.monthly_marketing_spend)
        return float(self.fixed_costs.marketing)


@dataclass(frozen=True)
class HybridInputs:
    """Multi-tenant configuration with tiered, usage-based pricing."""

    start_date: str = "2025-06-01"
    projection_months: int = 12
    starting_cash: float = 50000.0
    fixed_costs: FixedCosts = FixedCosts(infra=2500.0, salary=25000.0, support=3000.0, wages=5000.0, hosting=1200.0)
    capital_purchases: Sequence[float] = (10000, 0, 0, 5000, 0, 0, 0, 0, 0, 0, 0, 0)

    initial_tenants: int = 10
    selected_tier: str = "growth"
    avg_users_per_tenant: float = 15.0
    avg_ai_usage_per_tenant: float = 50.0
    selected_addons: Sequence[str] = ("advanced_analytics",)

    growth_scenario: str = "base"
    custom_scenario: Optional[GrowthScenario] = None
    marketing_metrics: Optional[MarketingMetrics] = None

    # Total-user churn runs at this fraction of tenant churn
    user_churn_damping: float = 0.8

    mode: Literal["hybrid"] = "hybrid"

    @property
    def marketing_spend(self) -> float:
        if self.marketing_metrics is not None:
            return float(self.marketing_metrics.monthly_marketing_spend)
        return float(self.fixed_costs.marketing)


@dataclass(frozen=True)
class RevenueGoalSummary:
    current_annual_revenue: float
    required_annual_revenue: float
    monthly_goal_revenue: float
    required_users_for_goal: Optional[int]
    additional_users_needed: int
    progress_percentage: float
    projected_annual_revenue: float
    months_to_reach_goal: Optional[int]
    marketing_spend_needed: Optional[float] = None
    estimated_cac_for_goal: Optional[float] = None


@dataclass(frozen=True)
class ChannelPerformance:
    channel: str
    spend: float
    acquisitions: float
    cac: float
    roi: float


@dataclass(frozen=True)
class MarketingAnalyticsSummary:
    total_marketing_spend: float
    avg_cac: float
    avg_ltv: Optional[float]
    avg_ltv_cac_ratio: float
    avg_payback_period: Optional[float]
    marketing_roi: float
    channel_performance: list[ChannelPerformance] = field(default_factory=list)
    acquisition_trends: pd.DataFrame = field(default_factory=pd.DataFrame)


@dataclass(frozen=True)
class ProjectionResult:
    mode: ProjectionMode
    monthly: pd.DataFrame
    break_even: pd.DataFrame
    revenue_goal: RevenueGoalSummary
    marketing: Optional[MarketingAnalyticsSummary] = None
    # hybrid only: run-level growth and unit economics
    growth_metrics: dict[str, float] = field(default_factory=dict)

    @property
    def break_even_month(self) -> Optional[int]:
        """First month whose cumulative profit turns positive."""
        cumulative = self.monthly["profit"].cumsum()
        hits = self.monthly.loc[cumulative > 0, "month"]
        return None if hits.empty else int(hits.iloc[0])

    @property
    def summary(self) -> dict[str, Optional[float]]:
        df = self.monthly
        total_revenue = float(df["revenue"].sum())
        total_expenses = float(df["total_expenses"].sum())
        total_profit = total_revenue - total_expenses
        out: dict[str, Optional[float]] = {
            "total_revenue": round(total_revenue, 2),
            "total_expenses": round(total_expenses, 2),
            "total_profit": round(total_profit, 2),
            "final_cash": float(df["cash_on_hand"].iloc[-1]),
            "break_even_month": self.break_even_month,
            "max_users": int(df["users"].max()),
            "avg_monthly_profit": round(total_profit / len(df), 2),
        }
        if self.mode == "hybrid":
            out["peak_mrr"] = round(float(df["mrr"].max()), 2)
            for key, col in (
                ("base_share", "base_revenue"),
                ("users_share", "user_revenue"),
                ("ai_share", "ai_revenue"),
                ("addons_share", "addon_revenue"),
            ):
                out[key] = 0.0 if total_revenue == 0 else round(float(df[col].sum()) / total_revenue * 100.0, 2)
            out.update(self.growth_metrics)
        return out
