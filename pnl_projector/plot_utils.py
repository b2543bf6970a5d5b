"""
A simple plotting tool for looking at a projection outside the app.
"""

from typing import Optional

import matplotlib.dates as mdates
import matplotlib.pyplot as plt
import pandas as pd

from pnl_projector.types import ProjectionResult


def plot_projection(
    result: ProjectionResult,
    title: Optional[str] = None,
    show_break_even: bool = True,
    show: bool = True,
):
    """Plot revenue, total expenses and cash on hand using matplotlib.

    Parameters
    ----------
    result : ProjectionResult
        Output of `project`.
    title : Optional[str]
        Optional chart title. Defaults to the mode and final cash.
    show_break_even : bool
        If True, draw a vertical rule at the break-even month.
    show : bool
        If True, open the standard matplotlib window. Pass False in scripts
        that save the figure instead.

    Returns
    -------
    matplotlib.axes.Axes
        The Axes object for further customization.
    """

    df = result.monthly
    dates = pd.to_datetime(df["date"], format="%b %Y")

    if title is None:
        title = f"{result.mode.title()} projection (final cash: ${df['cash_on_hand'].iloc[-1]:,.0f})"

    fig, ax = plt.subplots(figsize=(10, 5))
    ax.plot(dates, df["revenue"], marker="o", linewidth=1.8, label="Revenue", color="#1f77b4")
    ax.plot(dates, df["total_expenses"], marker="o", linewidth=1.8, label="Total expenses", color="#DB4437")
    ax.plot(dates, df["cash_on_hand"], linewidth=1.8, linestyle="--", label="Cash on hand", color="#2ca02c")

    month = result.break_even_month
    if show_break_even and month is not None:
        ax.axvline(dates.iloc[month - 1], color="#8e44ad", linestyle=":", linewidth=1.2, label="Break-even")

    ax.set_title(title)
    ax.set_ylabel("USD")
    ax.set_xlabel("Month")

    ax.xaxis.set_major_locator(mdates.AutoDateLocator(minticks=6, maxticks=12))
    ax.xaxis.set_major_formatter(mdates.DateFormatter("%b %Y"))
    fig.autofmt_xdate(rotation=30)

    ax.grid(True, linestyle=":", alpha=0.5)
    ax.legend()
    plt.tight_layout()
    if show:
        plt.show()
    return ax
