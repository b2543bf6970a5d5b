import os
from dataclasses import replace
from pathlib import Path
from typing import Union

import pandas as pd
import streamlit as st
from streamlit.logger import get_logger

from pnl_projector.charts import break_even_chart, cash_and_revenue_chart, goal_progress_chart, revenue_mix_chart
from pnl_projector.diagnostics import run_projection_checks
from pnl_projector.engine import project
from pnl_projector.export import chart_data, export_to_csv, revenue_goal_to_frame
from pnl_projector.persistence import ConfigurationStore, apply_config_bundle, collect_config_bundle, inputs_to_dict
from pnl_projector.presets import (
    DEFAULT_HYBRID_INPUTS,
    DEFAULT_INPUTS,
    DEFAULT_MARKETING_METRICS,
    FEATURE_ADDONS,
    GROWTH_SCENARIOS,
    PRICING_TIERS,
    PROJECTION_TIMEFRAMES,
    SCENARIO_PRESETS,
    apply_scenario_preset,
    extend_to_months,
)
from pnl_projector.types import FixedCosts, HybridInputs, ProjectionInputs, ProjectionResult
from pnl_projector.ui import format_currency, format_months, format_percent, inject_brand_styles, render_header
from pnl_projector.validation import validate_hybrid_inputs, validate_inputs

# MUST be the first Streamlit call:
st.set_page_config(page_title="SaaS P&L Projector", layout="wide")

logger = get_logger(__name__)

STORE_ROOT = Path(os.getenv("PNL_PROJECTOR_STORE", "~/.pnl_projector")).expanduser()
MODE_LABELS = {"basic": "Basic", "enhanced": "Enhanced (marketing-aware)", "hybrid": "Hybrid (multi-tenant)"}

Inputs = Union[ProjectionInputs, HybridInputs]


def _apply_pending_state_updates() -> None:
    """Apply any deferred session state updates before widgets render."""

    pending = st.session_state.pop("_pending_state_update", None)
    if isinstance(pending, dict):
        for k, v in pending.items():
            st.session_state[k] = v


def _with_default(kwargs: dict, key: str, name: str, value) -> dict:
    kwargs["key"] = key
    if key not in st.session_state:
        kwargs[name] = value
    return kwargs


def number_input_state(label: str, *, key: str, default_value, **kwargs):
    return st.number_input(label, **_with_default(kwargs, key, "value", default_value))


def text_input_state(label: str, *, key: str, default_value, **kwargs):
    return st.text_input(label, **_with_default(kwargs, key, "value", default_value))


def selectbox_state(label: str, options, *, key: str, default_value, **kwargs):
    options = list(options)
    index = options.index(default_value) if default_value in options else 0
    return st.selectbox(label, options, **_with_default(kwargs, key, "index", index))


def _state_from_inputs(inputs: Inputs) -> dict:
    """Widget keys for a configuration, used to restore a saved or uploaded one."""
    data = inputs_to_dict(inputs)
    state = {
        "mode": inputs.mode,
        "start_date": pd.Timestamp(inputs.start_date).date(),
        "starting_cash": float(inputs.starting_cash),
        "capital_text": ", ".join(f"{v:g}" for v in inputs.capital_purchases),
        "use_marketing_metrics": inputs.marketing_metrics is not None,
    }
    if any(t["months"] == inputs.projection_months for t in PROJECTION_TIMEFRAMES):
        state["projection_months"] = inputs.projection_months
    for name, value in data["fixed_costs"].items():
        state[f"fc_{name}"] = float(value)
    metrics = inputs.marketing_metrics or DEFAULT_MARKETING_METRICS
    state["mm_spend"] = float(metrics.monthly_marketing_spend)
    state["mm_cac"] = float(metrics.cac)
    if isinstance(inputs, HybridInputs):
        state.update(
            {
                "initial_tenants": inputs.initial_tenants,
                "selected_tier": inputs.selected_tier,
                "avg_users_per_tenant": float(inputs.avg_users_per_tenant),
                "avg_ai_usage_per_tenant": float(inputs.avg_ai_usage_per_tenant),
                "selected_addons": list(inputs.selected_addons),
                "growth_scenario": inputs.growth_scenario,
            }
        )
    else:
        state.update(
            {
                "price_per_user": float(inputs.price_per_user),
                "churn_rate": float(inputs.churn_rate),
                "initial_users": int(inputs.initial_users),
                "variable_cost_per_user": float(inputs.variable_cost_per_user),
                "growth_text": ", ".join(f"{v:g}" for v in inputs.seasonal_growth),
                "enabled_addons_count": len(inputs.enabled_addons),
            }
        )
    return state


def _queue_inputs(inputs: Inputs) -> None:
    st.session_state["_pending_state_update"] = _state_from_inputs(inputs)


def _parse_series(text: str, label: str) -> tuple:
    try:
        return tuple(float(x) for x in text.replace(";", ",").split(",") if x.strip())
    except ValueError:
        st.sidebar.error(f"{label}: enter numbers separated by commas")
        return ()


inject_brand_styles()
_apply_pending_state_updates()


def sidebar_inputs() -> Inputs:
    st.sidebar.header("Assumptions")

    with st.sidebar:
        mode = selectbox_state("Projection mode", MODE_LABELS, key="mode", default_value="basic", format_func=MODE_LABELS.get)
    defaults = DEFAULT_HYBRID_INPUTS if mode == "hybrid" else DEFAULT_INPUTS

    with st.sidebar.expander("Timing & cash", expanded=True):
        start_date = st.date_input(
            "Start date", **_with_default({}, "start_date", "value", pd.Timestamp(defaults.start_date).date())
        )
        labels = {t["months"]: t["label"] for t in PROJECTION_TIMEFRAMES}
        months = selectbox_state(
            "Projection timeframe", labels, key="projection_months", default_value=12, format_func=labels.get
        )
        starting_cash = number_input_state(
            "Starting cash", default_value=float(defaults.starting_cash), step=1000.0, key="starting_cash"
        )

    with st.sidebar.expander("Fixed costs (monthly)", expanded=False):
        fc = defaults.fixed_costs
        fixed = FixedCosts(
            **{
                name: number_input_state(
                    name.replace("_", " ").title(),
                    min_value=0.0,
                    default_value=float(getattr(fc, name)),
                    step=100.0,
                    key=f"fc_{name}",
                )
                for name in ("infra", "salary", "support", "wages", "hosting", "marketing")
            }
        )
        st.caption("Marketing here is used only when no marketing metrics are set below.")
        capital = _parse_series(
            text_input_state(
                "Capital purchases by month",
                default_value=", ".join(f"{v:g}" for v in defaults.capital_purchases),
                key="capital_text",
            ),
            "Capital purchases",
        )

    with st.sidebar.expander("Marketing", expanded=mode != "basic"):
        use_metrics = st.checkbox("Use marketing metrics", **_with_default({}, "use_marketing_metrics", "value", False))
        metrics = None
        if use_metrics:
            spend = number_input_state(
                "Monthly marketing spend",
                min_value=0.0,
                default_value=float(DEFAULT_MARKETING_METRICS.monthly_marketing_spend),
                step=250.0,
                key="mm_spend",
            )
            cac = number_input_state(
                "Target CAC", min_value=0.01, default_value=float(DEFAULT_MARKETING_METRICS.cac), step=10.0, key="mm_cac"
            )
            metrics = replace(DEFAULT_MARKETING_METRICS, monthly_marketing_spend=spend, cac=cac)

    if mode == "hybrid":
        return _hybrid_inputs(start_date, months, starting_cash, fixed, capital, metrics)

    with st.sidebar.expander("Pricing & growth", expanded=True):
        preset = selectbox_state(
            "Scenario preset",
            ["none", *SCENARIO_PRESETS],
            key="scenario_preset",
            default_value="none",
            format_func=lambda p: "None" if p == "none" else SCENARIO_PRESETS[p]["name"],
        )
        price = number_input_state(
            "Price per user", min_value=0.0, default_value=float(DEFAULT_INPUTS.price_per_user), step=1.0, key="price_per_user"
        )
        churn = number_input_state(
            "Monthly churn",
            min_value=0.0,
            max_value=1.0,
            default_value=float(DEFAULT_INPUTS.churn_rate),
            step=0.005,
            format="%0.3f",
            key="churn_rate",
        )
        initial = number_input_state(
            "Initial users", min_value=0, default_value=int(DEFAULT_INPUTS.initial_users), step=1, key="initial_users"
        )
        variable = number_input_state(
            "Variable cost per user",
            min_value=0.0,
            default_value=float(DEFAULT_INPUTS.variable_cost_per_user),
            step=0.5,
            key="variable_cost_per_user",
        )
        addon_count = number_input_state(
            "Enabled add-ons", min_value=0, max_value=len(FEATURE_ADDONS), default_value=0, step=1, key="enabled_addons_count"
        )
        growth = _parse_series(
            text_input_state(
                "New users per month (repeats)",
                default_value=", ".join(f"{v:g}" for v in DEFAULT_INPUTS.seasonal_growth),
                key="growth_text",
            ),
            "New users per month",
        )

    inputs = ProjectionInputs(
        start_date=str(start_date),
        projection_months=int(months),
        starting_cash=float(starting_cash),
        price_per_user=float(price),
        churn_rate=float(churn),
        fixed_costs=fixed,
        variable_cost_per_user=float(variable),
        initial_users=int(initial),
        seasonal_growth=growth,
        capital_purchases=capital,
        mode=mode,
        enabled_addons=tuple(list(FEATURE_ADDONS)[: int(addon_count)]),
        marketing_metrics=metrics,
    )
    if preset != "none":
        inputs = apply_scenario_preset(inputs, preset)
    if inputs.seasonal_growth and len(inputs.seasonal_growth) not in (12, months):
        inputs = replace(inputs, seasonal_growth=extend_to_months(inputs.seasonal_growth, months))
    return inputs


def _hybrid_inputs(start_date, months, starting_cash, fixed, capital, metrics) -> HybridInputs:
    d = DEFAULT_HYBRID_INPUTS
    with st.sidebar.expander("Tenants & pricing", expanded=True):
        tier = selectbox_state(
            "Pricing tier",
            PRICING_TIERS,
            key="selected_tier",
            default_value=d.selected_tier,
            format_func=lambda t: f"{PRICING_TIERS[t].name} (${PRICING_TIERS[t].base_fee:,.0f}/mo)",
        )
        scenario = selectbox_state(
            "Growth scenario",
            GROWTH_SCENARIOS,
            key="growth_scenario",
            default_value=d.growth_scenario,
            format_func=lambda s: GROWTH_SCENARIOS[s].name,
        )
        tenants = number_input_state(
            "Initial tenants", min_value=0, default_value=int(d.initial_tenants), step=1, key="initial_tenants"
        )
        users = number_input_state(
            "Users per tenant", min_value=0.0, default_value=float(d.avg_users_per_tenant), step=1.0, key="avg_users_per_tenant"
        )
        usage = number_input_state(
            "AI usage per tenant",
            min_value=0.0,
            default_value=float(d.avg_ai_usage_per_tenant),
            step=10.0,
            key="avg_ai_usage_per_tenant",
        )
        addons = st.multiselect(
            "Add-ons",
            list(FEATURE_ADDONS),
            format_func=lambda a: f"{FEATURE_ADDONS[a].name} (${FEATURE_ADDONS[a].price:,.0f})",
            **_with_default({}, "selected_addons", "default", list(d.selected_addons)),
        )
    return HybridInputs(
        start_date=str(start_date),
        projection_months=int(months),
        starting_cash=float(starting_cash),
        fixed_costs=fixed,
        capital_purchases=capital,
        initial_tenants=int(tenants),
        selected_tier=tier,
        avg_users_per_tenant=float(users),
        avg_ai_usage_per_tenant=float(usage),
        selected_addons=tuple(addons),
        growth_scenario=scenario,
        marketing_metrics=metrics,
    )


def render_kpis(result: ProjectionResult) -> None:
    summary = result.summary
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Total revenue", format_currency(summary["total_revenue"]))
    col2.metric("Total profit", format_currency(summary["total_profit"]))
    col3.metric("Final cash", format_currency(summary["final_cash"]))
    be = summary["break_even_month"]
    col4.metric("Break-even month", "Not reached" if be is None else str(be))

    col5, col6, col7, col8 = st.columns(4)
    col5.metric("Max users" if result.mode != "hybrid" else "Max tenants", f"{summary['max_users']:,}")
    col6.metric("Avg monthly profit", format_currency(summary["avg_monthly_profit"]))
    if result.marketing is not None:
        col7.metric("Blended CAC", format_currency(result.marketing.avg_cac))
        col8.metric("LTV / CAC", f"{result.marketing.avg_ltv_cac_ratio:0.2f}x")
    if result.mode == "hybrid":
        g1, g2, g3, g4 = st.columns(4)
        g1.metric("Peak MRR", format_currency(summary["peak_mrr"]))
        g2.metric("Tenant growth / mo", format_percent(summary["tenant_growth_rate"], digits=2))
        g3.metric("Avg NRR", format_percent(summary["avg_nrr"]))
        g4.metric("Run LTV", format_currency(summary["ltv"]))


def render_goal(result: ProjectionResult) -> None:
    goal = result.revenue_goal
    st.subheader("$1M annual revenue goal")
    c1, c2, c3 = st.columns(3)
    c1.metric("Current annual revenue", format_currency(goal.current_annual_revenue))
    c2.metric("Progress", format_percent(goal.progress_percentage))
    c3.metric("Months to goal", format_months(goal.months_to_reach_goal))
    st.altair_chart(goal_progress_chart(goal), use_container_width=True)
    st.dataframe(revenue_goal_to_frame(goal), hide_index=True)
    if result.monthly["date"].size < 12:
        st.caption("Horizons under 12 months are annualized as sum x 12 / months, so treat them as approximate.")


def render_save_load(inputs: Inputs, result: ProjectionResult) -> None:
    st.subheader("Save / Load configuration")
    st.caption("Download a portable bundle to save your work, or upload to restore it later.")

    c1, c2 = st.columns(2)
    with c1:
        st.download_button(
            "Download configuration bundle (.zip)",
            data=collect_config_bundle(inputs, result),
            file_name="pnl_projection.zip",
            mime="application/zip",
        )
    with c2:
        uploaded = st.file_uploader("Upload configuration bundle (.zip)", type=["zip"], key="config_bundle")
        if uploaded is not None and st.button("Apply uploaded bundle"):
            try:
                _queue_inputs(apply_config_bundle(uploaded))
                st.rerun()
            except ValueError as e:
                logger.warning("Bundle rejected: %s", e)
                st.error(f"Failed to load bundle: {e}")

    st.divider()
    store = ConfigurationStore(STORE_ROOT)
    owner = text_input_state("Owner", default_value="local", key="owner")
    name = st.text_input("Configuration name", key="config_name")
    description = st.text_input("Description", key="config_description")
    if st.button("Save configuration", disabled=not name):
        store.save(owner, name, inputs, description)
        st.success(f"Saved {name!r}")

    records = store.list(owner)
    if records:
        st.dataframe(pd.DataFrame(records), hide_index=True)
        chosen = st.selectbox("Saved configurations", [r["name"] for r in records], key="saved_choice")
        c3, c4 = st.columns(2)
        if c3.button("Load"):
            _queue_inputs(store.load(owner, chosen))
            st.rerun()
        if c4.button("Delete"):
            store.delete(owner, chosen)
            st.rerun()


render_header("SaaS P&L Projector", "Monthly P&L, break-even and revenue-goal projections")
inputs = sidebar_inputs()

errors = validate_hybrid_inputs(inputs) if isinstance(inputs, HybridInputs) else validate_inputs(inputs)
if errors:
    for err in errors:
        st.error(err)
    st.stop()

try:
    result = project(inputs)
except ValueError as e:
    logger.warning("Projection failed: %s", e)
    st.error(f"Calculation error: {e}")
    st.stop()

tab_proj, tab_be, tab_goal, tab_mkt, tab_save, tab_checks = st.tabs(
    ["Projection", "Break-even", "Revenue goal", "Marketing", "Save / Load", "Self-checks"]
)
frame = chart_data(result)

with tab_proj:
    render_kpis(result)
    st.altair_chart(cash_and_revenue_chart(frame), use_container_width=True)
    if result.mode == "hybrid":
        st.subheader("Revenue mix")
        st.altair_chart(revenue_mix_chart(result.monthly), use_container_width=True)
    with st.expander("Monthly details", expanded=False):
        st.dataframe(result.monthly, width="stretch")
    st.download_button(
        "Download CSV",
        data=export_to_csv(inputs, result),
        file_name="pnl_projection.csv",
        mime="text/csv",
    )

with tab_be:
    st.altair_chart(break_even_chart(frame), use_container_width=True)
    st.dataframe(result.break_even, width="stretch")

with tab_goal:
    render_goal(result)

with tab_mkt:
    if result.marketing is None:
        st.info("Marketing analytics are available in the enhanced and hybrid modes.")
    else:
        m = result.marketing
        c1, c2, c3 = st.columns(3)
        c1.metric("Total marketing spend", format_currency(m.total_marketing_spend))
        c2.metric("Marketing ROI", f"{m.marketing_roi:0.2f}x")
        c3.metric("Avg payback (months)", "N/A" if m.avg_payback_period is None else f"{m.avg_payback_period:0.1f}")
        st.dataframe(pd.DataFrame([vars(c) for c in m.channel_performance]), hide_index=True)
        st.line_chart(m.acquisition_trends.set_index("month")[["organic_acquisitions", "paid_acquisitions"]])

with tab_save:
    render_save_load(inputs, result)

with tab_checks:
    report = run_projection_checks(inputs)
    st.write({"passed": report.passed})
    for err in report.errors:
        st.error(err)
    for warn in report.warnings:
        st.warning(warn)
