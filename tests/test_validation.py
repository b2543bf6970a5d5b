import math
from dataclasses import replace

import numpy as np
import pytest

from pnl_projector.presets import DEFAULT_HYBRID_INPUTS, DEFAULT_INPUTS, REFERENCE_INPUTS
from pnl_projector.types import GrowthScenario, MarketingMetrics
from pnl_projector.validation import validate_hybrid_inputs, validate_inputs


def test_defaults_are_valid():
    assert validate_inputs(DEFAULT_INPUTS) == []
    assert validate_inputs(REFERENCE_INPUTS) == []
    assert validate_inputs(replace(REFERENCE_INPUTS, mode="enhanced")) == []
    assert validate_hybrid_inputs(DEFAULT_HYBRID_INPUTS) == []


@pytest.mark.parametrize(
    "changes,message",
    [
        ({"price_per_user": 0}, "Price per user must be greater than 0"),
        ({"churn_rate": 1.5}, "Churn rate must be between 0 and 1"),
        ({"churn_rate": None}, "Churn rate is required"),
        ({"starting_cash": None}, "Starting cash is required"),
        ({"seasonal_growth": (1, 2, 3)}, "Seasonal growth must have 12 values"),
        ({"capital_purchases": ()}, "Capital purchases must have 12 values"),
        ({"projection_months": 0}, "Projection months must be a positive whole number"),
        ({"user_growth_rate": 6.0}, "User growth rate must be between -100% and 500%"),
        ({"user_churn_rate": -0.1}, "User churn rate must be between 0 and 1"),
        ({"marketing_metrics": MarketingMetrics(cac=0)}, "CAC must be greater than 0"),
        ({"marketing_metrics": MarketingMetrics(monthly_marketing_spend=-1)}, "Monthly marketing spend cannot be negative"),
    ],
    ids=[
        "zero-price",
        "churn-above-one",
        "churn-missing",
        "cash-missing",
        "short-pattern",
        "no-capital",
        "zero-horizon",
        "user-growth",
        "user-churn",
        "cac",
        "negative-spend",
    ],
)
def test_single_tier_errors(changes, message):
    assert message in validate_inputs(replace(DEFAULT_INPUTS, **changes))


def test_pattern_may_match_horizon():
    inputs = replace(DEFAULT_INPUTS, projection_months=24, seasonal_growth=tuple(range(24)))
    assert validate_inputs(inputs) == []
    errors = validate_inputs(replace(inputs, seasonal_growth=(1,) * 7))
    assert "Seasonal growth must have 12 or 24 values" in errors


def test_accepts_partial_mapping():
    errors = validate_inputs({"price_per_user": 49, "churn_rate": 0.03})
    assert "Starting cash is required" in errors
    assert "Price per user must be greater than 0" not in errors


def test_validation_never_raises_on_garbage():
    errors = validate_inputs({"price_per_user": "abc", "churn_rate": "x", "starting_cash": 0})
    assert "Price per user must be greater than 0" in errors
    assert "Churn rate must be between 0 and 1" in errors


@pytest.mark.parametrize(
    "changes,message",
    [
        ({"selected_tier": "platinum"}, "Unknown pricing tier: platinum"),
        ({"growth_scenario": "moonshot"}, "Unknown growth scenario: moonshot"),
        ({"selected_addons": ("api_access", "teleport")}, "Unknown add-ons: teleport"),
        ({"avg_users_per_tenant": -1.0}, "Users per tenant cannot be negative"),
        ({"user_churn_damping": 1.5}, "User churn damping must be between 0 and 1"),
    ],
    ids=["tier", "scenario", "addon", "users", "damping"],
)
def test_hybrid_errors(changes, message):
    assert message in validate_hybrid_inputs(replace(DEFAULT_HYBRID_INPUTS, **changes))


def test_custom_scenario_satisfies_scenario_check():
    inputs = replace(
        DEFAULT_HYBRID_INPUTS,
        growth_scenario="custom",
        custom_scenario=GrowthScenario(name="Custom", churn_rate=0.02, tenant_growth_rate=0.1),
    )
    assert validate_hybrid_inputs(inputs) == []


@pytest.mark.parametrize(
    "data,message",
    [
        ({"seasonal_growth": 5}, "Seasonal growth must have 12 values"),
        ({"seasonal_growth": "twelve chars"}, "Seasonal growth must have 12 values"),
        ({"projection_months": math.inf}, "Projection months must be a positive whole number"),
        ({"projection_months": math.nan}, "Projection months must be a positive whole number"),
        ({"marketing_metrics": MarketingMetrics(cac=-5.0)}, "CAC must be greater than 0"),
        ({"marketing_metrics": "lots"}, None),
        ({"price_per_user": math.inf}, "Price per user must be greater than 0"),
    ],
    ids=["scalar-pattern", "string-pattern", "infinite-horizon", "nan-horizon", "nested-metrics", "metrics-garbage", "infinite-price"],
)
def test_malformed_single_tier_values_are_reported(data, message):
    errors = validate_inputs(data)
    assert isinstance(errors, list)
    if message is not None:
        assert message in errors


@pytest.mark.parametrize(
    "data,message",
    [
        ({"custom_scenario": GrowthScenario(name="x", churn_rate=2.0)}, "Scenario churn rate must be between 0 and 1"),
        ({"growth_scenario": ["base"]}, "Unknown growth scenario: ['base']"),
        ({"selected_tier": {"id": "growth"}}, "Unknown pricing tier: {'id': 'growth'}"),
        ({"selected_addons": 3}, "Selected add-ons must be a list of add-on ids"),
        ({"selected_addons": [["api_access"]]}, "Unknown add-ons: ['api_access']"),
    ],
    ids=["nested-scenario", "list-scenario", "dict-tier", "scalar-addons", "nested-addons"],
)
def test_malformed_hybrid_values_are_reported(data, message):
    assert message in validate_hybrid_inputs(data)


def test_nested_scenario_dataclass_counts_as_custom():
    errors = validate_hybrid_inputs({"growth_scenario": "custom", "custom_scenario": GrowthScenario(name="x", churn_rate=0.02)})
    assert not any(e.startswith("Unknown growth scenario") for e in errors)


def test_numpy_numbers_are_numbers():
    inputs = replace(DEFAULT_INPUTS, price_per_user=np.float64(49.0), initial_users=np.int64(5), projection_months=np.int64(12))
    assert validate_inputs(inputs) == []
