import math
from dataclasses import replace

import pandas as pd
import pytest

from pnl_projector.engine import project
from pnl_projector.marketing import CHANNEL_WEIGHTS, channel_breakdown, marketing_analytics
from pnl_projector.presets import REFERENCE_INPUTS


def _frame(**overrides) -> pd.DataFrame:
    data = {
        "date": ["Jan 2025", "Feb 2025"],
        "new_users": [10, 10],
        "new_organic": [4, 2],
        "new_paid": [6, 8],
        "marketing_spend": [1000.0, 1000.0],
        "revenue": [5000.0, 7000.0],
        "cac": [100.0, 100.0],
        "ltv": [1200.0, 1400.0],
        "time_to_payback": [2.0, 4.0],
    }
    data.update(overrides)
    return pd.DataFrame(data)


def test_blended_figures():
    summary = marketing_analytics(_frame())
    assert summary.total_marketing_spend == 2000.0
    assert summary.avg_cac == 100.0
    assert summary.avg_ltv == 1300.0
    assert summary.avg_ltv_cac_ratio == 13.0
    assert summary.avg_payback_period == 3.0
    assert summary.marketing_roi == 5.0  # (12000 - 2000) / 2000


def test_undefined_ltv_is_skipped():
    summary = marketing_analytics(_frame(ltv=[math.nan, 1000.0]))
    assert summary.avg_ltv == 1000.0
    all_nan = marketing_analytics(_frame(ltv=[math.nan, math.nan]))
    assert all_nan.avg_ltv is None
    assert all_nan.avg_ltv_cac_ratio == 0.0


def test_no_spend_no_roi():
    summary = marketing_analytics(_frame(marketing_spend=[0.0, 0.0]))
    assert summary.marketing_roi == 0.0
    assert summary.avg_cac == 0.0


def test_channel_split_sums_to_totals():
    channels = channel_breakdown(10_000.0, 100.0, 250.0, 2.0)
    assert [c.channel for c in channels] == [w[0] for w in CHANNEL_WEIGHTS]
    assert sum(c.spend for c in channels) == pytest.approx(10_000.0)
    assert sum(c.acquisitions for c in channels) == pytest.approx(100.0)
    performance = channels[0]
    assert performance.cac == pytest.approx(225.0)
    assert performance.roi == pytest.approx(2.4)


def test_acquisition_trends_follow_recorded_split():
    trends = marketing_analytics(_frame()).acquisition_trends
    assert list(trends.columns) == ["month", "organic_acquisitions", "paid_acquisitions", "total_cost", "blended_cac"]
    assert trends["organic_acquisitions"].tolist() == [4, 2]
    assert trends["paid_acquisitions"].tolist() == [6, 8]


def test_projection_carries_marketing_summary():
    result = project(replace(REFERENCE_INPUTS, mode="enhanced"))
    m = result.marketing
    assert m.total_marketing_spend == pytest.approx(4000.0 * 12)
    expected_cac = 4000.0 * 12 / result.monthly["new_users"].sum()
    assert m.avg_cac == pytest.approx(expected_cac, abs=0.01)
    assert len(m.acquisition_trends) == 12
    assert result.revenue_goal.estimated_cac_for_goal == m.avg_cac
