from dataclasses import replace

import pandas as pd
import pytest

from pnl_projector.engine import project
from pnl_projector.export import (
    chart_data,
    export_to_csv,
    read_monthly_csv,
    read_revenue_goal_csv,
    revenue_goal_to_frame,
)
from pnl_projector.presets import DEFAULT_HYBRID_INPUTS, DEFAULT_INPUTS, REFERENCE_INPUTS


@pytest.mark.parametrize(
    "inputs",
    [REFERENCE_INPUTS, replace(REFERENCE_INPUTS, mode="enhanced"), DEFAULT_HYBRID_INPUTS],
    ids=["basic", "enhanced", "hybrid"],
)
def test_csv_table_reads_back(inputs):
    result = project(inputs)
    monthly, break_even = read_monthly_csv(export_to_csv(inputs, result))
    pd.testing.assert_frame_equal(monthly, result.monthly, check_dtype=False)
    pd.testing.assert_frame_equal(break_even, result.break_even, check_dtype=False)


def test_csv_has_summary_sections():
    result = project(REFERENCE_INPUTS)
    text = export_to_csv(REFERENCE_INPUTS, result)
    assert text.splitlines()[0].startswith("month,date,users,new_users")
    assert "\nSUMMARY\n" in text
    assert "$1M REVENUE GOAL ANALYSIS" in text
    assert "Final Cash," in text
    assert "Months to Reach Goal," in text


def test_unreachable_break_even_survives_export():
    inputs = replace(DEFAULT_INPUTS, price_per_user=5.0, variable_cost_per_user=5.0)
    result = project(inputs)
    _, break_even = read_monthly_csv(export_to_csv(inputs, result))
    assert break_even["required_users"].isna().all()
    assert not break_even["reachable"].any()


def test_read_rejects_foreign_csv():
    with pytest.raises(ValueError, match="missing columns"):
        read_monthly_csv("month,revenue\n1,100\n")


def test_revenue_goal_frame():
    frame = revenue_goal_to_frame(project(REFERENCE_INPUTS).revenue_goal)
    assert list(frame.columns) == ["metric", "value"]
    assert "Current Annual Revenue" in frame["metric"].tolist()
    assert len(frame) == 10


def test_chart_data_shape():
    result = project(DEFAULT_HYBRID_INPUTS)
    frame = chart_data(result)
    assert len(frame) == len(result.monthly)
    assert pd.api.types.is_datetime64_any_dtype(frame["date"])
    assert frame["date"].iloc[0] == pd.Timestamp("2025-06-01")
    assert "mrr" in frame.columns
    assert "mrr" not in chart_data(project(REFERENCE_INPUTS)).columns


@pytest.mark.parametrize(
    "inputs",
    [
        REFERENCE_INPUTS,
        replace(REFERENCE_INPUTS, mode="enhanced"),
        DEFAULT_HYBRID_INPUTS,
        replace(DEFAULT_INPUTS, price_per_user=0.0),
    ],
    ids=["basic", "enhanced", "hybrid", "no-price-target"],
)
def test_revenue_goal_reads_back(inputs):
    result = project(inputs)
    assert read_revenue_goal_csv(export_to_csv(inputs, result)) == result.revenue_goal


def test_revenue_goal_missing_values_read_as_none():
    result = project(REFERENCE_INPUTS)
    goal = read_revenue_goal_csv(export_to_csv(REFERENCE_INPUTS, result))
    assert result.revenue_goal.marketing_spend_needed is None
    assert goal.marketing_spend_needed is None
    assert goal.estimated_cac_for_goal is None


def test_revenue_goal_reader_rejects_table_only_csv():
    with pytest.raises(ValueError, match="REVENUE GOAL"):
        read_revenue_goal_csv("month,revenue\n1,100\n")


def test_hybrid_summary_metrics_are_exported():
    result = project(DEFAULT_HYBRID_INPUTS)
    text = export_to_csv(DEFAULT_HYBRID_INPUTS, result)
    assert "Tenant Growth Rate (%/mo)," in text
    assert "Avg NRR (%)," in text
