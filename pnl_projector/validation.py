"""Input checks run before a projection.

Validators collect human-readable messages and never raise: an empty list
means the configuration is usable. Callers decide whether to reject the
request or continue with defaults.
"""

from __future__ import annotations

import math
from dataclasses import asdict, is_dataclass
from numbers import Real
from typing import Any, Mapping

from pnl_projector.presets import FEATURE_ADDONS, GROWTH_SCENARIOS, PRICING_TIERS

MIN_USER_GROWTH_RATE = -1.0  # exclusive
MAX_USER_GROWTH_RATE = 5.0


def _as_mapping(data: Any) -> Mapping[str, Any]:
    if is_dataclass(data) and not isinstance(data, type):
        return asdict(data)
    return data if isinstance(data, Mapping) else {}


def _is_number(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool) and math.isfinite(value)


def _in_unit_interval(value: Any) -> bool:
    return _is_number(value) and 0.0 <= value <= 1.0


def _is_series(values: Any) -> bool:
    return hasattr(values, "__len__") and not isinstance(values, (str, bytes, Mapping))


def _check_series_length(data: Mapping[str, Any], key: str, label: str, errors: list[str]) -> None:
    values = data.get(key)
    horizon = data.get("projection_months") or 12
    allowed = sorted({12, int(horizon)}) if _is_number(horizon) else [12]
    if not _is_series(values) or len(values) not in allowed:
        expected = " or ".join(str(n) for n in allowed)
        errors.append(f"{label} must have {expected} values")


def _check_horizon(data: Mapping[str, Any], errors: list[str]) -> None:
    horizon = data.get("projection_months", 12)
    if not _is_number(horizon) or int(horizon) != horizon or horizon < 1:
        errors.append("Projection months must be a positive whole number")


def _check_marketing_metrics(metrics: Any, errors: list[str]) -> None:
    metrics = _as_mapping(metrics)
    if not metrics:
        return
    spend = metrics.get("monthly_marketing_spend")
    if spend is not None and (not _is_number(spend) or spend < 0):
        errors.append("Monthly marketing spend cannot be negative")
    cac = metrics.get("cac")
    if cac is not None and (not _is_number(cac) or cac <= 0):
        errors.append("CAC must be greater than 0")
    ltv = metrics.get("ltv")
    if ltv is not None and (not _is_number(ltv) or ltv <= 0):
        errors.append("LTV must be greater than 0")
    conversion = metrics.get("conversion_rate")
    if conversion is not None and not _in_unit_interval(conversion):
        errors.append("Conversion rate must be between 0 and 1")


def validate_inputs(data: Any) -> list[str]:
    """Validate a (possibly partial) single-tier configuration.

    ``data`` may be a ``ProjectionInputs`` or a plain mapping using the same
    field names (e.g. a decoded request body). Enhanced-mode fields are only
    checked when present.
    """
    data = _as_mapping(data)
    errors: list[str] = []

    cash = data.get("starting_cash")
    if cash is None or not _is_number(cash):
        errors.append("Starting cash is required")

    price = data.get("price_per_user")
    if not _is_number(price) or price <= 0:
        errors.append("Price per user must be greater than 0")

    churn = data.get("churn_rate")
    if churn is None:
        errors.append("Churn rate is required")
    elif not _in_unit_interval(churn):
        errors.append("Churn rate must be between 0 and 1")

    _check_horizon(data, errors)

    initial = data.get("initial_users", 0)
    if not _is_number(initial) or initial < 0:
        errors.append("Initial users cannot be negative")

    mode = data.get("mode", "basic")
    if mode not in ("basic", "enhanced"):
        errors.append(f"Unknown projection mode: {mode}")

    avg_users = data.get("avg_users_per_client")
    if avg_users is not None and (not _is_number(avg_users) or avg_users <= 0):
        errors.append("Average users per client must be greater than 0")

    growth = data.get("user_growth_rate")
    if growth is not None and (
        not _is_number(growth) or growth <= MIN_USER_GROWTH_RATE or growth > MAX_USER_GROWTH_RATE
    ):
        errors.append("User growth rate must be between -100% and 500%")

    user_churn = data.get("user_churn_rate")
    if user_churn is not None and not _in_unit_interval(user_churn):
        errors.append("User churn rate must be between 0 and 1")

    _check_marketing_metrics(data.get("marketing_metrics"), errors)
    _check_series_length(data, "seasonal_growth", "Seasonal growth", errors)
    _check_series_length(data, "capital_purchases", "Capital purchases", errors)
    return errors


def validate_hybrid_inputs(data: Any) -> list[str]:
    """Validate a (possibly partial) multi-tenant configuration."""
    data = _as_mapping(data)
    errors: list[str] = []

    cash = data.get("starting_cash")
    if cash is None or not _is_number(cash):
        errors.append("Starting cash is required")

    _check_horizon(data, errors)

    tenants = data.get("initial_tenants")
    if not _is_number(tenants) or tenants < 0:
        errors.append("Initial tenants cannot be negative")

    tier = data.get("selected_tier")
    if not isinstance(tier, str) or tier not in PRICING_TIERS:
        errors.append(f"Unknown pricing tier: {tier}")

    scenario = data.get("growth_scenario")
    custom = _as_mapping(data.get("custom_scenario"))
    if not (isinstance(scenario, str) and scenario in GROWTH_SCENARIOS) and not custom:
        errors.append(f"Unknown growth scenario: {scenario}")
    if custom and not _in_unit_interval(custom.get("churn_rate")):
        errors.append("Scenario churn rate must be between 0 and 1")

    for key, label in (("avg_users_per_tenant", "Users per tenant"), ("avg_ai_usage_per_tenant", "AI usage per tenant")):
        value = data.get(key)
        if not _is_number(value) or value < 0:
            errors.append(f"{label} cannot be negative")

    addons = data.get("selected_addons")
    if addons is None:
        addons = ()
    if not _is_series(addons):
        errors.append("Selected add-ons must be a list of add-on ids")
        addons = ()
    unknown = [str(a) for a in addons if not isinstance(a, str) or a not in FEATURE_ADDONS]
    if unknown:
        errors.append(f"Unknown add-ons: {', '.join(unknown)}")

    damping = data.get("user_churn_damping", 0.8)
    if not _in_unit_interval(damping):
        errors.append("User churn damping must be between 0 and 1")

    _check_marketing_metrics(data.get("marketing_metrics"), errors)
    _check_series_length(data, "capital_purchases", "Capital purchases", errors)
    return errors
