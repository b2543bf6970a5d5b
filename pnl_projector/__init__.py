from pnl_projector.engine import project, project_custom_scenario
from pnl_projector.types import (
    FixedCosts,
    GrowthScenario,
    HybridInputs,
    MarketingMetrics,
    ProjectionInputs,
    ProjectionResult,
)
from pnl_projector.validation import validate_hybrid_inputs, validate_inputs

__all__ = [
    "FixedCosts",
    "GrowthScenario",
    "HybridInputs",
    "MarketingMetrics",
    "ProjectionInputs",
    "ProjectionResult",
    "project",
    "project_custom_scenario",
    "validate_hybrid_inputs",
    "validate_inputs",
]
