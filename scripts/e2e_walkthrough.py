"""
End-to-end walkthrough (visual).

Run with:
    streamlit run scripts/e2e_walkthrough.py

Tip: set breakpoints anywhere in pnl_projector/*
"""

import io
import os
from dataclasses import replace

import streamlit as st

from pnl_projector.charts import break_even_chart, cash_and_revenue_chart, revenue_mix_chart
from pnl_projector.diagnostics import run_projection_checks
from pnl_projector.engine import project
from pnl_projector.export import chart_data, export_to_csv, read_monthly_csv
from pnl_projector.persistence import apply_config_bundle, collect_config_bundle
from pnl_projector.presets import DEFAULT_HYBRID_INPUTS, REFERENCE_INPUTS
from pnl_projector.types import MarketingMetrics

VISUALIZE = os.getenv("E2E_VISUALIZE", "1") != "0"


def _assert(cond: bool, msg: str) -> None:
    if not cond:
        raise AssertionError(msg)


def main() -> None:
    st.set_page_config(page_title="E2E Walkthrough", layout="wide")
    st.title("P&L Projector: End-to-End Walkthrough")

    # 1) Basic projection on the reference configuration
    st.subheader("1) Basic projection")
    basic = project(REFERENCE_INPUTS)
    st.write(basic.summary)
    if VISUALIZE:
        st.altair_chart(cash_and_revenue_chart(chart_data(basic)), use_container_width=True)
    _assert(basic.monthly["users"].iloc[0] == 32, "Month 1 should follow churn-then-add")

    # 2) Enhanced projection with marketing metrics
    st.subheader("2) Enhanced projection")
    enhanced = project(replace(REFERENCE_INPUTS, mode="enhanced"))
    st.write(enhanced.marketing.avg_cac if enhanced.marketing else None)
    if VISUALIZE:
        st.altair_chart(break_even_chart(chart_data(enhanced)), use_container_width=True)

    # 3) Hybrid projection
    st.subheader("3) Hybrid projection")
    hybrid_inputs = replace(DEFAULT_HYBRID_INPUTS, marketing_metrics=MarketingMetrics(monthly_marketing_spend=5000.0, cac=350.0))
    hybrid = project(hybrid_inputs)
    st.write(hybrid.summary)
    if VISUALIZE:
        st.altair_chart(revenue_mix_chart(hybrid.monthly), use_container_width=True)

    # 4) Self-checks
    st.subheader("4) Self-checks")
    report = run_projection_checks(REFERENCE_INPUTS)
    st.write({"passed": report.passed, "errors": report.errors, "warnings": report.warnings})

    # 5) CSV and bundle roundtrip
    st.subheader("5) Export roundtrip")
    csv_text = export_to_csv(REFERENCE_INPUTS, basic)
    monthly, _ = read_monthly_csv(csv_text)
    _assert(len(monthly) == len(basic.monthly), "CSV table length mismatch")
    bundle = collect_config_bundle(hybrid_inputs, hybrid)
    restored = apply_config_bundle(io.BytesIO(bundle))
    _assert(restored == hybrid_inputs, "Bundle roundtrip changed the configuration")
    st.write({"bundle_bytes": len(bundle)})

    # Extra invariants
    for result in (basic, enhanced, hybrid):
        m = result.monthly
        _assert((m["users"] >= 0).all(), "Negative counts")
        _assert(result.revenue_goal.progress_percentage <= 100.0, "Goal progress out of range")


if __name__ == "__main__":
    main()
