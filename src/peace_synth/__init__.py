"""
Post-Conflict Peace Synthetic Control
=====================================
Estimates the counterfactual peace trajectory of a country after an
intervention by building a synthetic control from untreated countries.

Methods:
- Synthetic Control Method (SCM) with nested predictor/donor weight optimisation
"""

__version__ = "0.1.0"

from .analysis_spec import (
    AnalysisSpec,
    PredictorAggregation,
    make_spec,
    period_range,
    register_aggregation,
)
from .dataprep import PreparedData, prepare
from .exceptions import (
    ConvergenceError,
    InvalidSpecError,
    MissingDataError,
    PanelDataError,
    SingularOptimizationError,
    SingularOptimizationWarning,
    SynthError,
)
from .panel import PanelDataset, make_panel
from .solver import SolverResult, solve, solve_weights
from .synthetic_control import (
    SyntheticResult,
    effect_summary,
    estimate,
    fit_synthetic_control,
)

__all__ = [
    "AnalysisSpec",
    "ConvergenceError",
    "InvalidSpecError",
    "MissingDataError",
    "PanelDataError",
    "PanelDataset",
    "PredictorAggregation",
    "PreparedData",
    "SingularOptimizationError",
    "SingularOptimizationWarning",
    "SolverResult",
    "SynthError",
    "SyntheticResult",
    "effect_summary",
    "estimate",
    "fit_synthetic_control",
    "make_panel",
    "make_spec",
    "period_range",
    "prepare",
    "register_aggregation",
    "solve",
    "solve_weights",
]
