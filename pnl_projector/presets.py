from __future__ import annotations

from dataclasses import replace
from typing import Optional, Sequence

from pnl_projector.types import (
    FeatureAddon,
    FixedCosts,
    GrowthScenario,
    HybridInputs,
    MarketingMetrics,
    PricingTier,
    ProjectionInputs,
)

DEFAULT_INPUTS = ProjectionInputs()
DEFAULT_HYBRID_INPUTS = HybridInputs()
DEFAULT_MARKETING_METRICS = MarketingMetrics()

PRICING_TIERS: dict[str, PricingTier] = {
    t.id: t
    for t in (
        PricingTier("starter", "Starter", 99.0, 5, 1000, 15.0, 0.02, "Perfect for small teams getting started"),
        PricingTier("growth", "Growth", 299.0, 15, 5000, 12.0, 0.015, "Ideal for growing businesses"),
        PricingTier("scale", "Scale", 799.0, 50, 20000, 10.0, 0.01, "Built for scaling organizations"),
        PricingTier("enterprise", "Enterprise", 1999.0, 150, 100000, 8.0, 0.008, "Enterprise-grade features and support"),
    )
}

FEATURE_ADDONS: dict[str, FeatureAddon] = {
    a.id: a
    for a in (
        FeatureAddon("advanced_analytics", "Advanced Analytics", 49.0, "Enhanced reporting and dashboards"),
        FeatureAddon("api_access", "API Access", 99.0, "Full REST API with webhooks"),
        FeatureAddon("white_label", "White Label", 199.0, "Custom branding and domain"),
        FeatureAddon("priority_support", "Priority Support", 79.0, "24/7 priority customer support"),
        FeatureAddon("sso_integration", "SSO Integration", 149.0, "Single sign-on with SAML/OAuth"),
        FeatureAddon("data_export", "Data Export", 29.0, "Bulk data export capabilities"),
    )
}

GROWTH_SCENARIOS: dict[str, GrowthScenario] = {
    "conservative": GrowthScenario(
        name="Conservative",
        description="Slow but steady growth with higher churn",
        tenants=60,
        users_per_tenant=10,
        ai_usage_per_tenant=30,
        tenant_growth_rate=0.08,
        user_growth_rate=0.03,
        ai_growth_rate=0.05,
        churn_rate=0.06,
    ),
    "base": GrowthScenario(
        name="Base Case",
        description="Realistic growth assumptions",
        tenants=100,
        users_per_tenant=15,
        ai_usage_per_tenant=50,
        tenant_growth_rate=0.15,
        user_growth_rate=0.05,
        ai_growth_rate=0.08,
        churn_rate=0.04,
    ),
    "aggressive": GrowthScenario(
        name="Aggressive",
        description="Optimistic growth with viral adoption",
        tenants=160,
        users_per_tenant=20,
        ai_usage_per_tenant=75,
        tenant_growth_rate=0.25,
        user_growth_rate=0.08,
        ai_growth_rate=0.12,
        churn_rate=0.02,
    ),
}

# Single-tier what-if presets: field overrides applied on top of a configuration
SCENARIO_PRESETS: dict[str, dict] = {
    "conservative": {
        "name": "Conservative Growth",
        "description": "Lower growth, higher churn",
        "modifications": {
            "seasonal_growth": (4, 5, 6, 3, 3, 4, 5, 6, 4, 3, 2, 2),
            "churn_rate": 0.05,
        },
    },
    "aggressive": {
        "name": "Aggressive Growth",
        "description": "Higher growth, lower churn",
        "modifications": {
            "seasonal_growth": (15, 18, 20, 12, 14, 16, 18, 20, 15, 12, 10, 8),
            "churn_rate": 0.02,
        },
    },
    "price_increase": {
        "name": "Price Increase",
        "description": "50% price increase",
        "modifications": {"price_per_user": 74.0},
    },
}

PROJECTION_TIMEFRAMES: list[dict] = [
    {"months": 12, "years": 1.0, "label": "1 Year"},
    {"months": 18, "years": 1.5, "label": "18 Months"},
    {"months": 24, "years": 2.0, "label": "2 Years"},
    {"months": 36, "years": 3.0, "label": "3 Years"},
    {"months": 48, "years": 4.0, "label": "4 Years"},
    {"months": 60, "years": 5.0, "label": "5 Years"},
]


def _startup_rates(i: int) -> float:
    if i < 6:
        return (20, 25, 30, 25, 20, 15)[i]
    if i < 12:
        return (12, 10, 8, 6, 5, 5)[i - 6]
    return (6, 7, 8, 7, 6, 5, 6, 7, 8, 7, 6, 5)[(i - 12) % 12]


# Monthly new-user patterns covering up to 60 months
EXTENDED_GROWTH_SCENARIOS: dict[str, dict] = {
    "conservative": {
        "name": "Conservative Growth",
        "description": "Steady 5-8% monthly growth with seasonal variations",
        "growth_rates": tuple(float((5, 6, 7, 5, 6, 7, 8, 7, 6, 5, 4, 5)[i % 12]) for i in range(60)),
    },
    "aggressive": {
        "name": "Aggressive Growth",
        "description": "High growth targeting 10-15% monthly increases",
        "growth_rates": tuple(float((10, 12, 15, 12, 13, 14, 15, 13, 12, 10, 8, 10)[i % 12]) for i in range(60)),
    },
    "startup": {
        "name": "Startup Launch",
        "description": "Initial rapid growth followed by stabilization",
        "growth_rates": tuple(float(_startup_rates(i)) for i in range(60)),
    },
}


def get_pricing_tier(tier_id: str) -> Optional[PricingTier]:
    return PRICING_TIERS.get(tier_id)


def get_feature_addon(addon_id: str) -> Optional[FeatureAddon]:
    return FEATURE_ADDONS.get(addon_id)


def get_growth_scenario(scenario_id: str) -> Optional[GrowthScenario]:
    return GROWTH_SCENARIOS.get(scenario_id)


def extend_to_months(values: Sequence[float], months: int) -> tuple[float, ...]:
    """Repeat ``values`` cyclically (or truncate) to exactly ``months`` entries."""
    if not values:
        raise ValueError("Cannot extend an empty sequence")
    return tuple(float(values[i % len(values)]) for i in range(months))


def growth_rates_for_months(scenario_id: str, months: int) -> tuple[float, ...]:
    scenario = EXTENDED_GROWTH_SCENARIOS.get(scenario_id)
    if scenario is None:
        return extend_to_months(DEFAULT_INPUTS.seasonal_growth, months)
    return extend_to_months(scenario["growth_rates"], months)


def apply_scenario_preset(inputs: ProjectionInputs, preset_id: str) -> ProjectionInputs:
    preset = SCENARIO_PRESETS.get(preset_id)
    if preset is None:
        raise ValueError(f"Unknown scenario preset: {preset_id!r}")
    return replace(inputs, **preset["modifications"])


def with_fixed_costs(inputs: ProjectionInputs, **costs: float) -> ProjectionInputs:
    return replace(inputs, fixed_costs=replace(inputs.fixed_costs, **costs))


# Configuration used by the self-check harness and the tests
REFERENCE_INPUTS = ProjectionInputs(
    start_date="2025-01-01",
    projection_months=12,
    starting_cash=50000.0,
    price_per_user=299.0,
    churn_rate=0.05,
    fixed_costs=FixedCosts(infra=2500.0, salary=25000.0, support=3000.0, wages=5000.0, hosting=1200.0, marketing=4000.0),
    capital_purchases=(10000, 0, 0, 5000, 0, 0, 0, 0, 0, 0, 0, 0),
    seasonal_growth=(8, 10, 12, 5, 6, 7, 10, 12, 8, 5, 4, 3),
    initial_users=25,
    avg_users_per_client=5,
    user_growth_rate=0.08,
    user_churn_rate=0.03,
    marketing_metrics=MarketingMetrics(
        monthly_marketing_spend=4000.0,
        cac=200.0,
        ltv=1500.0,
        ltv_cac_ratio=7.5,
        payback_period_months=6.0,
        organic_growth_rate=0.2,
        paid_growth_rate=0.8,
        brand_awareness_spend=1200.0,
        performance_marketing_spend=2000.0,
        content_marketing_spend=600.0,
        affiliate_marketing_spend=200.0,
        conversion_rate=0.12,
        lead_quality_score=82.0,
        marketing_roi=4.2,
    ),
)
