from __future__ import annotations

import altair as alt
import pandas as pd

from pnl_projector.types import RevenueGoalSummary

PALETTE = {"revenue": "#1f77b4", "total_expenses": "#DB4437", "profit": "#2ca02c", "cash_on_hand": "#5F6E60"}


def _x_axis() -> alt.X:
    return alt.X(
        "date:T",
        title="Month",
        axis=alt.Axis(
            labelExpr="timeFormat(datum.value, '%b %Y')",
            labelAngle=0,
            labelPadding=6,
            titlePadding=10,
        ),
    )


def cash_and_revenue_chart(frame: pd.DataFrame, show_cash: bool = True) -> alt.Chart:
    """Revenue, expenses and profit on the left axis; cash on hand on the right."""
    base = alt.Chart(frame).encode(x=_x_axis())
    left_series = [c for c in ("revenue", "total_expenses", "profit") if c in frame.columns]
    left = (
        base.transform_fold(left_series, as_=["Series", "Value"])
        .mark_line(point=True)
        .encode(
            y=alt.Y("Value:Q", axis=alt.Axis(title="Monthly ($)", format="$,.0f")),
            color=alt.Color(
                "Series:N",
                scale=alt.Scale(domain=left_series, range=[PALETTE[c] for c in left_series]),
                title="Series",
            ),
            tooltip=[
                alt.Tooltip("date:T", title="Month", format="%b %Y"),
                alt.Tooltip("Series:N"),
                alt.Tooltip("Value:Q", format="$,.2f"),
            ],
        )
    )
    layers = [left]
    if show_cash:
        right = base.mark_area(opacity=0.15, color=PALETTE["cash_on_hand"]).encode(
            y=alt.Y("cash_on_hand:Q", axis=alt.Axis(title="Cash on hand ($)", orient="right", format="$,.0f")),
            tooltip=[
                alt.Tooltip("date:T", title="Month", format="%b %Y"),
                alt.Tooltip("cash_on_hand:Q", title="Cash", format="$,.2f"),
            ],
        )
        layers.append(right)

    chart = alt.layer(*layers).properties(height=280, padding={"bottom": 20, "left": 5, "right": 5, "top": 5})
    if show_cash:
        chart = chart.resolve_scale(y="independent")
    return chart


def break_even_chart(frame: pd.DataFrame) -> alt.Chart:
    """Actual entity count against the count needed to break even each month."""
    data = frame[["date", "users", "required_users"]].copy()
    data["required_users"] = data["required_users"].astype("float")
    base = alt.Chart(data).encode(x=_x_axis())
    folded = base.transform_fold(["users", "required_users"], as_=["Series", "Value"])
    lines = folded.mark_line(point=True).encode(
        y=alt.Y("Value:Q", title="Entities"),
        color=alt.Color("Series:N", scale=alt.Scale(range=["#1f77b4", "#B92D24"]), title=""),
        strokeDash=alt.StrokeDash("Series:N", legend=None),
        tooltip=[alt.Tooltip("date:T", title="Month", format="%b %Y"), "Series:N", "Value:Q"],
    )
    return lines.properties(height=260)


def revenue_mix_chart(monthly: pd.DataFrame) -> alt.Chart:
    """Stacked revenue components per month (hybrid mode)."""
    parts = {
        "base_revenue": "Base fees",
        "user_revenue": "User overage",
        "ai_revenue": "AI usage",
        "addon_revenue": "Add-ons",
    }
    data = monthly[["date", *parts]].rename(columns=parts).copy()
    data["date"] = pd.to_datetime(data["date"], format="%b %Y")
    return (
        alt.Chart(data)
        .transform_fold(list(parts.values()), as_=["Component", "Revenue"])
        .mark_bar()
        .encode(
            x=_x_axis(),
            y=alt.Y("Revenue:Q", stack="zero", axis=alt.Axis(format="$,.0f")),
            color=alt.Color("Component:N", scale=alt.Scale(scheme="tableau10")),
            tooltip=["Component:N", alt.Tooltip("Revenue:Q", format="$,.2f")],
        )
        .properties(height=260)
    )


def goal_progress_chart(goal: RevenueGoalSummary) -> alt.Chart:
    data = pd.DataFrame(
        {
            "label": ["Current", "Projected", "Target"],
            "value": [goal.current_annual_revenue, goal.projected_annual_revenue, goal.required_annual_revenue],
        }
    )
    bars = (
        alt.Chart(data)
        .mark_bar()
        .encode(
            y=alt.Y("label:N", sort=None, title=""),
            x=alt.X("value:Q", title="Annual revenue ($)", axis=alt.Axis(format="$,.0f")),
            color=alt.Color(
                "label:N",
                scale=alt.Scale(domain=["Current", "Projected", "Target"], range=["#A6C4A7", "#5F6E60", "#B92D24"]),
                legend=None,
            ),
            tooltip=["label:N", alt.Tooltip("value:Q", format="$,.0f")],
        )
    )
    return bars.properties(height=140)
