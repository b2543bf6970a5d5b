"""Marketing efficiency roll-up over a finished monthly series.

The channel breakdown is a heuristic: total spend and acquisitions are split
by static weights with static relative efficiency multipliers. It is an
approximation for planning, not measured attribution.
"""

from __future__ import annotations

import math
from typing import Optional

import pandas as pd

from pnl_projector.types import ChannelPerformance, MarketingAnalyticsSummary

# channel, spend share, acquisition share, CAC multiplier, ROI multiplier
CHANNEL_WEIGHTS: list[tuple[str, float, float, float, float]] = [
    ("Performance Marketing", 0.50, 0.60, 0.9, 1.2),
    ("Content Marketing", 0.20, 0.25, 0.7, 1.8),
    ("Brand Awareness", 0.25, 0.10, 1.5, 0.8),
    ("Affiliate Marketing", 0.05, 0.05, 0.8, 2.0),
]


def _mean_or_none(series: pd.Series) -> Optional[float]:
    value = series.mean(skipna=True) if not series.empty else math.nan
    return None if pd.isna(value) else float(value)


def channel_breakdown(total_spend: float, total_new: float, avg_cac: float, roi: float) -> list[ChannelPerformance]:
    return [
        ChannelPerformance(
            channel=name,
            spend=round(total_spend * spend_share, 2),
            acquisitions=round(total_new * acq_share, 2),
            cac=round(avg_cac * cac_mult, 2),
            roi=round(roi * roi_mult, 2),
        )
        for name, spend_share, acq_share, cac_mult, roi_mult in CHANNEL_WEIGHTS
    ]


def acquisition_trends(monthly: pd.DataFrame) -> pd.DataFrame:
    return pd.DataFrame(
        {
            "month": monthly["date"],
            "organic_acquisitions": monthly["new_organic"],
            "paid_acquisitions": monthly["new_paid"],
            "total_cost": monthly["marketing_spend"],
            "blended_cac": monthly["cac"],
        }
    ).reset_index(drop=True)


def marketing_analytics(monthly: pd.DataFrame) -> MarketingAnalyticsSummary:
    """Blended CAC/LTV/ROI and channel split for a monthly projection frame."""
    total_spend = float(monthly["marketing_spend"].sum())
    total_new = float(monthly["new_users"].sum())
    total_revenue = float(monthly["revenue"].sum())

    avg_cac = total_spend / total_new if total_new > 0 else 0.0
    avg_ltv = _mean_or_none(monthly["ltv"])
    ratio = avg_ltv / avg_cac if (avg_ltv is not None and avg_cac > 0) else 0.0
    avg_payback = _mean_or_none(monthly["time_to_payback"])
    roi = (total_revenue - total_spend) / total_spend if total_spend > 0 else 0.0

    return MarketingAnalyticsSummary(
        total_marketing_spend=round(total_spend, 2),
        avg_cac=round(avg_cac, 2),
        avg_ltv=None if avg_ltv is None else round(avg_ltv, 2),
        avg_ltv_cac_ratio=round(ratio, 2),
        avg_payback_period=None if avg_payback is None else round(avg_payback, 2),
        marketing_roi=round(roi, 2),
        channel_performance=channel_breakdown(total_spend, total_new, avg_cac, roi),
        acquisition_trends=acquisition_trends(monthly),
    )
