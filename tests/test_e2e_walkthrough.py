"""
Headless E2E that exercises the real code paths without Streamlit rendering.

Run with:
    pytest -q
"""

import io
from dataclasses import replace

import numpy as np
import pandas as pd

from pnl_projector.charts import break_even_chart, cash_and_revenue_chart, revenue_mix_chart
from pnl_projector.diagnostics import run_projection_checks
from pnl_projector.engine import project, project_custom_scenario
from pnl_projector.export import chart_data, export_to_csv, read_monthly_csv
from pnl_projector.persistence import ConfigurationStore, apply_config_bundle, collect_config_bundle
from pnl_projector.presets import DEFAULT_HYBRID_INPUTS, REFERENCE_INPUTS, extend_to_months
from pnl_projector.types import GrowthScenario, MarketingMetrics
from pnl_projector.validation import validate_hybrid_inputs, validate_inputs


def test_e2e_walkthrough_headless(tmp_path):
    # Basic projection on the reference configuration
    assert validate_inputs(REFERENCE_INPUTS) == []
    basic = project(REFERENCE_INPUTS)
    assert basic.monthly["users"].iloc[0] == 32
    assert basic.marketing is None

    # Enhanced projection over two years
    enhanced_inputs = replace(
        REFERENCE_INPUTS,
        mode="enhanced",
        projection_months=24,
        seasonal_growth=extend_to_months(REFERENCE_INPUTS.seasonal_growth, 24),
        capital_purchases=extend_to_months((0,), 24),
    )
    enhanced = project(enhanced_inputs)
    assert len(enhanced.monthly) == 24
    assert enhanced.monthly["date"].iloc[-1] == "Dec 2026"
    assert enhanced.marketing is not None
    assert len(enhanced.marketing.acquisition_trends) == 24

    # Hybrid projection with explicit marketing metrics
    hybrid_inputs = replace(DEFAULT_HYBRID_INPUTS, marketing_metrics=MarketingMetrics(monthly_marketing_spend=5000.0, cac=350.0))
    assert validate_hybrid_inputs(hybrid_inputs) == []
    hybrid = project(hybrid_inputs)
    assert (hybrid.monthly["mrr"] > 0).all()

    # Custom scenario overlay on the enhanced engine
    scenario = GrowthScenario(name="Lean", churn_rate=0.02, user_growth_rate=0.03, cac=180.0)
    custom = project_custom_scenario(REFERENCE_INPUTS, scenario)
    assert custom.mode == "enhanced"

    for result in (basic, enhanced, hybrid, custom):
        m = result.monthly
        assert (m["users"] >= 0).all()
        assert np.allclose(m["profit"], m["revenue"] - m["total_expenses"], atol=0.02)
        assert 0.0 <= result.revenue_goal.progress_percentage <= 100.0
        frame = chart_data(result)
        assert cash_and_revenue_chart(frame).to_dict()
        assert break_even_chart(frame).to_dict()
    assert revenue_mix_chart(hybrid.monthly).to_dict()

    # Self-checks
    report = run_projection_checks(REFERENCE_INPUTS)
    assert report.passed

    # CSV roundtrip
    monthly, break_even = read_monthly_csv(export_to_csv(REFERENCE_INPUTS, basic))
    pd.testing.assert_frame_equal(monthly, basic.monthly, check_dtype=False)
    assert len(break_even) == len(basic.break_even)

    # Bundle and store roundtrip
    bundle = collect_config_bundle(hybrid_inputs, hybrid)
    assert apply_config_bundle(io.BytesIO(bundle)) == hybrid_inputs
    store = ConfigurationStore(tmp_path)
    store.save("demo", "Hybrid plan", hybrid_inputs, is_default=True)
    assert store.default("demo") == ("Hybrid plan", hybrid_inputs)
