"""Sanity checks over a projection run, for the debug page and CI smoke tests."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Union

import numpy as np
from streamlit.logger import get_logger

from pnl_projector.engine import project
from pnl_projector.presets import get_growth_scenario
from pnl_projector.types import HybridInputs, ProjectionInputs, ProjectionResult
from pnl_projector.validation import validate_hybrid_inputs, validate_inputs

logger = get_logger(__name__)

MIN_LTV_CAC_RATIO = 3.0
MAX_HEALTHY_CHURN = 0.10
MAX_PLAUSIBLE_GROWTH_PCT = 50.0


@dataclass
class CheckReport:
    passed: bool
    result: Optional[ProjectionResult] = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def average_growth_pct(users) -> float:
    """Mean month-over-month change in entity count, in percent.

    Months that follow a zero count are skipped.
    """
    counts = np.asarray(users, dtype=float)
    if counts.size < 2:
        return 0.0
    prev, curr = counts[:-1], counts[1:]
    mask = prev > 0
    if not mask.any():
        return 0.0
    # the first month contributes a zero change
    changes = np.concatenate([[0.0], (curr[mask] - prev[mask]) / prev[mask] * 100.0])
    return float(changes.mean())


def run_projection_checks(inputs: Union[ProjectionInputs, HybridInputs]) -> CheckReport:
    errors: list[str] = []
    warnings: list[str] = []

    if isinstance(inputs, HybridInputs):
        errors.extend(validate_hybrid_inputs(inputs))
        scenario = get_growth_scenario(inputs.growth_scenario) or inputs.custom_scenario
        churn = None if scenario is None else scenario.churn_rate
    else:
        errors.extend(validate_inputs(inputs))
        churn = inputs.churn_rate

    try:
        result = project(inputs)
    except ValueError as exc:
        logger.warning("Projection check failed: %s", exc)
        errors.append(f"Calculation error: {exc}")
        return CheckReport(passed=False, errors=errors, warnings=warnings)

    summary = result.summary
    if summary["total_revenue"] < 0:
        errors.append("Total revenue cannot be negative")

    be_month = summary["break_even_month"]
    if be_month is not None and be_month > inputs.projection_months:
        warnings.append("Break-even month exceeds projection period")

    last = result.monthly.iloc[-1]
    ltv, cac = last["ltv"], last["cac"]
    if np.isfinite(ltv) and np.isfinite(cac) and ltv > 0 and cac > 0:
        ratio = ltv / cac
        if ratio < MIN_LTV_CAC_RATIO:
            warnings.append(f"LTV/CAC ratio ({ratio:.2f}) is below recommended 3:1 threshold")

    if churn is not None and churn > MAX_HEALTHY_CHURN:
        warnings.append("Monthly churn rate above 10% may indicate sustainability issues")

    if average_growth_pct(result.monthly["users"]) > MAX_PLAUSIBLE_GROWTH_PCT:
        warnings.append("Average monthly growth rate above 50% may be unrealistic")

    return CheckReport(passed=not errors, result=result, errors=errors, warnings=warnings)
