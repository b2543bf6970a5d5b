"""Mode-specific growth, revenue and cost rules.

Each strategy is created fresh for one projection run and advances its own
per-run state (seat counts, cumulative spend) one period at a time. The
shared loop in ``engine`` owns cash, rounding and the post-loop analyses.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import Union

import pandas as pd
from streamlit.logger import get_logger

from pnl_projector import costs, growth
from pnl_projector.costs import CostBreakdown
from pnl_projector.growth import EntityStep
from pnl_projector.presets import DEFAULT_MARKETING_METRICS, get_feature_addon, get_growth_scenario, get_pricing_tier
from pnl_projector.revenue import RevenueBreakdown, seat_revenue, tenant_revenue
from pnl_projector.types import HybridInputs, ProjectionInputs

logger = get_logger(__name__)

ENHANCED_GROSS_MARGIN = 0.8
HYBRID_GROSS_MARGIN = 0.85
ENHANCED_EXPANSION_RATE = 0.15  # of base revenue, for NRR
HYBRID_EXPANSION_RATE = 0.12
DEFAULT_USERS_PER_CLIENT = 3.0
DEFAULT_USER_GROWTH_RATE = 0.05
USER_CHURN_DAMPING = 0.8

NAN = float("nan")


@dataclass(frozen=True)
class PeriodOutcome:
    """Unrounded figures for one period, before cash accumulation."""

    entities: EntityStep
    revenue: RevenueBreakdown
    costs: CostBreakdown
    unit_price: float
    unit_variable_cost: float
    metrics: dict[str, float] = field(default_factory=dict)


def _lifetime_value(arpu: float, churn_rate: float, margin: float) -> float:
    if churn_rate <= 0:
        return NAN
    return arpu * (1.0 / churn_rate) * margin


def _payback_months(cac: float, arpu: float, margin: float) -> float:
    if math.isnan(cac):
        return NAN
    if cac <= 0:
        return 0.0
    if arpu <= 0:
        return NAN
    return cac / (arpu * margin)


class BasicStrategy:
    mode = "basic"

    def __init__(self, inputs: ProjectionInputs):
        self.inputs = inputs
        self.marketing_spend = inputs.marketing_spend
        self.addon_count = len(inputs.enabled_addons)

    def initial_entities(self) -> float:
        return float(inputs_initial(self.inputs.initial_users))

    @property
    def monthly_overhead(self) -> float:
        return self.inputs.fixed_costs.operating_total + self.marketing_spend

    def step(self, month: int, start: float) -> PeriodOutcome:
        inp = self.inputs
        step = growth.pattern_step(start, inp.churn_rate, inp.seasonal_growth, month)
        avg = step.average
        revenue = seat_revenue(avg, inp.price_per_user, self.addon_count)
        cost = CostBreakdown(
            fixed=inp.fixed_costs.operating_total,
            variable=costs.per_user_variable_cost(avg, inp.variable_cost_per_user),
            marketing=self.marketing_spend,
            capital=growth.padded_value(inp.capital_purchases, month),
        )
        metrics = {key: NAN for key in ("total_users", "arpu", "cac", "ltv", "retention_rate", "nrr", "time_to_payback")}
        return PeriodOutcome(
            entities=step,
            revenue=revenue,
            costs=cost,
            unit_price=inp.price_per_user,
            unit_variable_cost=inp.variable_cost_per_user,
            metrics=metrics,
        )


class EnhancedStrategy(BasicStrategy):
    """Marketing-aware single-tier model with seat tracking and SaaS metrics."""

    mode = "enhanced"

    def __init__(self, inputs: ProjectionInputs):
        super().__init__(inputs)
        self.metrics = inputs.marketing_metrics or replace(
            DEFAULT_MARKETING_METRICS, monthly_marketing_spend=float(inputs.fixed_costs.marketing)
        )
        self.marketing_spend = float(self.metrics.monthly_marketing_spend)
        self.user_growth_rate = (
            DEFAULT_USER_GROWTH_RATE if inputs.user_growth_rate is None else inputs.user_growth_rate
        )
        self.user_churn_rate = (
            inputs.churn_rate * USER_CHURN_DAMPING if inputs.user_churn_rate is None else inputs.user_churn_rate
        )
        self.users_per_client = float(inputs.avg_users_per_client or DEFAULT_USERS_PER_CLIENT)
        self.total_users = inputs_initial(inputs.initial_users) * self.users_per_client
        self.cumulative_spend = 0.0
        self.cumulative_new = 0

    def step(self, month: int, start: float) -> PeriodOutcome:
        inp = self.inputs
        step = growth.blended_step(
            start, inp.churn_rate, inp.seasonal_growth, month, self.marketing_spend, self.metrics.cac
        )

        self.users_per_client = growth.grow_per_entity(self.users_per_client, self.user_growth_rate)
        seats = growth.step_total_users(self.total_users, step.new, self.users_per_client, self.user_churn_rate)
        self.total_users = seats.ending

        avg = step.average
        revenue = seat_revenue(avg, inp.price_per_user, self.addon_count)
        arpu = revenue.total / avg if avg > 0 else 0.0

        variable = costs.infrastructure_cost(self.total_users)
        cost = CostBreakdown(
            fixed=inp.fixed_costs.operating_total,
            variable=variable,
            marketing=self.marketing_spend,
            capital=growth.padded_value(inp.capital_purchases, month),
        )

        self.cumulative_spend += self.marketing_spend
        self.cumulative_new += step.new
        cac = self.cumulative_spend / self.cumulative_new if self.cumulative_new > 0 else float(self.metrics.cac)

        retention = 1.0 - inp.churn_rate
        expansion = revenue.base * ENHANCED_EXPANSION_RATE
        nrr = retention + expansion / revenue.total if revenue.total > 0 else retention

        return PeriodOutcome(
            entities=step,
            revenue=revenue,
            costs=cost,
            unit_price=inp.price_per_user,
            unit_variable_cost=variable / step.ending if step.ending > 0 else 0.0,
            metrics={
                "total_users": self.total_users,
                "arpu": arpu,
                "cac": cac,
                "ltv": _lifetime_value(arpu, inp.churn_rate, ENHANCED_GROSS_MARGIN),
                "retention_rate": retention,
                "nrr": nrr,
                "time_to_payback": _payback_months(cac, arpu, ENHANCED_GROSS_MARGIN),
            },
        )


class HybridStrategy:
    """Multi-tenant model: tiered base fee, seat and usage overage, add-on list prices."""

    mode = "hybrid"

    def __init__(self, inputs: HybridInputs):
        self.inputs = inputs
        self.tier = get_pricing_tier(inputs.selected_tier)
        if self.tier is None:
            raise ValueError(f"Invalid pricing tier: {inputs.selected_tier!r}")
        self.scenario = get_growth_scenario(inputs.growth_scenario) or inputs.custom_scenario
        if self.scenario is None:
            raise ValueError(f"Invalid growth scenario: {inputs.growth_scenario!r}")

        self.addons = []
        for addon_id in inputs.selected_addons:
            addon = get_feature_addon(addon_id)
            if addon is None:
                logger.warning("Ignoring unknown add-on %r", addon_id)
                continue
            self.addons.append(addon)

        self.marketing_spend = inputs.marketing_spend
        self.cac_basis = None if inputs.marketing_metrics is None else float(inputs.marketing_metrics.cac)
        self.users_per_tenant = float(inputs.avg_users_per_tenant)
        self.usage_per_tenant = float(inputs.avg_ai_usage_per_tenant)
        self.total_users = inputs_initial(inputs.initial_tenants) * self.users_per_tenant
        self.cumulative_spend = 0.0
        self.cumulative_new = 0
        self.last_tenant_price = 0.0

    def initial_entities(self) -> float:
        return float(inputs_initial(self.inputs.initial_tenants))

    @property
    def monthly_overhead(self) -> float:
        return self.inputs.fixed_costs.operating_total + self.marketing_spend

    def _fallback_cac(self) -> float:
        if self.cac_basis is not None:
            return self.cac_basis
        return NAN if self.scenario.cac is None else float(self.scenario.cac)

    def step(self, month: int, start: float) -> PeriodOutcome:
        inp = self.inputs
        sc = self.scenario
        step = growth.tenant_step(start, sc.churn_rate, sc.tenant_growth_rate, self.marketing_spend, self.cac_basis)

        self.users_per_tenant = growth.grow_per_entity(self.users_per_tenant, sc.user_growth_rate)
        self.usage_per_tenant = growth.grow_per_entity(self.usage_per_tenant, sc.ai_growth_rate)
        seats = growth.step_total_users(
            self.total_users, step.new, self.users_per_tenant, sc.churn_rate * inp.user_churn_damping
        )
        self.total_users = seats.ending

        avg = step.average
        per_tenant = tenant_revenue(self.tier, self.users_per_tenant, self.usage_per_tenant, self.addons)
        self.last_tenant_price = per_tenant.total
        revenue = per_tenant.scaled(avg)
        arpu = revenue.total / avg if avg > 0 else 0.0

        variable = costs.revenue_share_cost(revenue.total, self.total_users)
        cost = CostBreakdown(
            fixed=inp.fixed_costs.operating_total,
            variable=variable,
            marketing=self.marketing_spend,
            capital=growth.padded_value(inp.capital_purchases, month),
        )

        self.cumulative_spend += self.marketing_spend
        self.cumulative_new += step.new
        cac = self.cumulative_spend / self.cumulative_new if self.cumulative_new > 0 else self._fallback_cac()
        retention = 1.0 - sc.churn_rate

        return PeriodOutcome(
            entities=step,
            revenue=revenue,
            costs=cost,
            unit_price=per_tenant.total,
            unit_variable_cost=variable / avg if avg > 0 else 0.0,
            metrics={
                "total_users": self.total_users,
                "arpu": arpu,
                "cac": cac,
                "ltv": _lifetime_value(arpu, sc.churn_rate, HYBRID_GROSS_MARGIN),
                "retention_rate": retention,
                "nrr": retention + HYBRID_EXPANSION_RATE,
                "time_to_payback": _payback_months(cac, arpu, HYBRID_GROSS_MARGIN),
                "mrr": step.ending * per_tenant.total,
                "avg_users_per_tenant": self.users_per_tenant,
                "avg_ai_usage_per_tenant": self.usage_per_tenant,
                "new_total_users": seats.new,
                "churned_total_users": seats.churned,
            },
        )


    def growth_metrics(self, monthly: pd.DataFrame) -> dict[str, float]:
        """Run-level growth and unit economics over the finished series.

        Growth rates are compound monthly rates in percent. LTV uses the
        average monthly revenue per tenant over the run without a margin
        haircut; CAC falls back the same way the per-month figure does.
        """
        months = len(monthly)
        initial_tenants = float(inputs_initial(self.inputs.initial_tenants))
        final_tenants = float(monthly["users"].iloc[-1])
        initial_seats = float(self.inputs.avg_users_per_tenant)
        final_seats = float(monthly["avg_users_per_tenant"].iloc[-1])

        avg_tenants = (initial_tenants + final_tenants) / 2.0
        churn = self.scenario.churn_rate
        ltv = NAN
        if avg_tenants > 0 and churn > 0:
            ltv = float(monthly["revenue"].sum()) / months / avg_tenants / churn
        cac = self.cumulative_spend / self.cumulative_new if self.cumulative_new > 0 else self._fallback_cac()

        out = {
            "tenant_growth_rate": _compound_rate(initial_tenants, final_tenants, months),
            "user_growth_rate": _compound_rate(initial_seats, final_seats, months),
            "churn_rate": churn * 100.0,
            "ltv": ltv,
            "cac": cac,
            "avg_arpu": float(monthly["arpu"].mean()),
            "avg_nrr": float(monthly["nrr"].mean()),
            "avg_time_to_payback": float(monthly["time_to_payback"].mean()),
        }
        return {key: value if math.isnan(value) else round(value, 2) for key, value in out.items()}


def _compound_rate(initial: float, final: float, months: int) -> float:
    if initial <= 0 or months <= 0:
        return NAN
    return ((final / initial) ** (1.0 / months) - 1.0) * 100.0


def inputs_initial(value: float) -> int:
    return max(0, int(value))


Strategy = Union[BasicStrategy, EnhancedStrategy, HybridStrategy]


def strategy_for(inputs: Union[ProjectionInputs, HybridInputs]) -> Strategy:
    if isinstance(inputs, HybridInputs):
        return HybridStrategy(inputs)
    if isinstance(inputs, ProjectionInputs):
        if inputs.mode == "basic":
            return BasicStrategy(inputs)
        if inputs.mode == "enhanced":
            return EnhancedStrategy(inputs)
        raise ValueError(f"Unknown projection mode: {inputs.mode!r}")
    raise ValueError(f"Unsupported configuration type: {type(inputs).__name__}")
