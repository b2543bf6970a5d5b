from __future__ import annotations

import math
from typing import Optional

import streamlit as st


def inject_brand_styles() -> None:
    st.markdown(
        """
        <style>
        :root { --pnl-primary: #1F4E79; --pnl-positive: #2E7D32; --pnl-negative: #C62828; --pnl-surface: #F7F9FC; --pnl-ink: #1B1F24; }
        .stApp { background-color: var(--pnl-surface); color: var(--pnl-ink); }
        h1, h2, h3 { color: var(--pnl-primary); letter-spacing: -0.01em; }
        [data-testid="stMetricValue"] { font-variant-numeric: tabular-nums; }
        [data-testid="stMetricDelta"] svg { display: none; }
        .stDownloadButton>button, .stButton>button { background-color: var(--pnl-primary); color: #fff; border-radius: 4px; }
        </style>
        """,
        unsafe_allow_html=True,
    )


def render_header(title: str, subtitle: str = "") -> None:
    st.markdown(
        f"<div style='padding-top:8px;'><h1 style='margin-bottom:0;'>{title}</h1></div>",
        unsafe_allow_html=True,
    )
    if subtitle:
        st.caption(subtitle)
    st.divider()


def format_currency(value: Optional[float]) -> str:
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return "N/A"
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.0f}"


def format_percent(value: Optional[float], digits: int = 1) -> str:
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return "N/A"
    return f"{value:.{digits}f}%"


def format_months(value: Optional[int]) -> str:
    if value is None:
        return "Not reached"
    return "Now" if value == 0 else f"{value} mo"
