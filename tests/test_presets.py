import pytest

from pnl_projector.presets import (
    DEFAULT_INPUTS,
    EXTENDED_GROWTH_SCENARIOS,
    FEATURE_ADDONS,
    GROWTH_SCENARIOS,
    PRICING_TIERS,
    PROJECTION_TIMEFRAMES,
    REFERENCE_INPUTS,
    apply_scenario_preset,
    extend_to_months,
    get_growth_scenario,
    get_pricing_tier,
    growth_rates_for_months,
    with_fixed_costs,
)


def test_catalogues():
    assert list(PRICING_TIERS) == ["starter", "growth", "scale", "enterprise"]
    assert len(FEATURE_ADDONS) == 6
    assert set(GROWTH_SCENARIOS) == {"conservative", "base", "aggressive"}
    assert get_pricing_tier("growth").base_fee == 299.0
    assert get_pricing_tier("missing") is None
    assert get_growth_scenario("base").churn_rate == 0.04


def test_timeframes_cover_one_to_five_years():
    months = [t["months"] for t in PROJECTION_TIMEFRAMES]
    assert months[0] == 12 and months[-1] == 60


@pytest.mark.parametrize("scenario_id", list(EXTENDED_GROWTH_SCENARIOS))
def test_extended_scenarios_span_sixty_months(scenario_id):
    rates = EXTENDED_GROWTH_SCENARIOS[scenario_id]["growth_rates"]
    assert len(rates) == 60
    assert growth_rates_for_months(scenario_id, 24) == rates[:24]


def test_unknown_extended_scenario_falls_back_to_default_pattern():
    assert growth_rates_for_months("missing", 14)[:12] == tuple(float(v) for v in DEFAULT_INPUTS.seasonal_growth)


def test_extend_to_months():
    assert extend_to_months([1, 2, 3], 5) == (1.0, 2.0, 3.0, 1.0, 2.0)
    assert extend_to_months([1, 2, 3], 2) == (1.0, 2.0)
    with pytest.raises(ValueError):
        extend_to_months([], 3)


def test_apply_scenario_preset():
    updated = apply_scenario_preset(DEFAULT_INPUTS, "price_increase")
    assert updated.price_per_user == 74.0
    assert updated.churn_rate == DEFAULT_INPUTS.churn_rate
    assert apply_scenario_preset(DEFAULT_INPUTS, "conservative").churn_rate == 0.05
    with pytest.raises(ValueError):
        apply_scenario_preset(DEFAULT_INPUTS, "moonshot")


def test_with_fixed_costs_keeps_other_lines():
    updated = with_fixed_costs(REFERENCE_INPUTS, salary=1.0)
    assert updated.fixed_costs.salary == 1.0
    assert updated.fixed_costs.infra == REFERENCE_INPUTS.fixed_costs.infra
