"""
Synthetic Control Method estimator for post-conflict peace trajectories.
Based on Abadie, Diamond & Hainmueller (2010, 2015) and Abadie (2021).
"""

from typing import NamedTuple

import numpy as np
import pandas as pd

from .analysis_spec import AnalysisSpec
from .config import WEIGHT_THRESHOLD
from .dataprep import PreparedData, prepare
from .logger import logger
from .panel import PanelDataset
from .solver import SolverResult, solve


class SyntheticResult(NamedTuple):
    """Container for SCM results."""

    weights: pd.Series  # Donors with non-negligible weight, descending
    all_weights: pd.Series  # Weights for every donor, in donor order (J x 1)
    v_weights: pd.Series  # Predictor importance weights (K x 1)
    synthetic: pd.Series  # Synthetic control outcome series
    actual: pd.Series  # Actual treated unit outcome series
    gap: pd.Series  # Treatment effect (actual - synthetic)
    pre_fit_loss: float  # MSPE over the optimization window
    rmspe_pre: float  # Pre-treatment RMSPE
    rmspe_post: float  # Post-treatment RMSPE
    rmspe_ratio: float  # Ratio of post/pre RMSPE
    predictor_balance: pd.DataFrame  # Predictor balance table
    treatment_time: object | None
    converged: bool


def _rmspe(gap: pd.Series) -> float:
    if len(gap) == 0:
        return np.nan
    return float(np.sqrt(np.mean(gap.to_numpy() ** 2)))


def estimate(
    prepared: PreparedData,
    weights: SolverResult,
    threshold: float = WEIGHT_THRESHOLD,
) -> SyntheticResult:
    """
    Build the synthetic control path from fitted weights.

    Args:
        prepared: Output of dataprep.prepare
        weights: Fitted weights (anything with v, w and loss attributes)
        threshold: Smallest weight reported in the composition table

    Returns:
        SyntheticResult with actual and synthetic series aligned by period
    """
    W = pd.Series(weights.w, name="weight")
    if len(W) != prepared.n_donors:
        raise ValueError(
            f"Got {len(W)} donor weights for {prepared.n_donors} donors"
        )
    if isinstance(weights.w, pd.Series):
        missing = [d for d in prepared.donors if d not in W.index]
        if missing:
            raise ValueError(f"No weight given for donors: {missing}")
        W = W.reindex(list(prepared.donors))
    else:
        W.index = list(prepared.donors)

    W_values = W.to_numpy(dtype=float)

    synthetic = pd.Series(
        prepared.Y0.to_numpy(dtype=float) @ W_values,
        index=prepared.Y0.index,
        name="synthetic",
    )
    actual = prepared.Y1.rename("actual")
    gap = actual - synthetic
    gap.name = "gap"

    periods = synthetic.index
    t0 = prepared.treatment_time
    if t0 is None:
        pre_mask = np.ones(len(periods), dtype=bool)
    else:
        pre_mask = np.asarray(periods < t0)

    rmspe_pre = _rmspe(gap[pre_mask])
    rmspe_post = _rmspe(gap[~pre_mask])
    if np.isnan(rmspe_post):
        rmspe_ratio = np.nan
    else:
        rmspe_ratio = rmspe_post / rmspe_pre if rmspe_pre > 0 else np.inf

    # Donor composition table
    composition = W[W > threshold].sort_values(ascending=False)

    # Predictor balance table
    X0 = prepared.X0.to_numpy(dtype=float)
    predictor_balance = pd.DataFrame(
        {
            "Actual": prepared.X1.to_numpy(dtype=float),
            "Synthetic": X0 @ W_values,
            "Sample Mean": X0.mean(axis=1),
        },
        index=prepared.X0.index,
    )

    return SyntheticResult(
        weights=composition,
        all_weights=W,
        v_weights=pd.Series(weights.v, name="v_weight"),
        synthetic=synthetic,
        actual=actual,
        gap=gap,
        pre_fit_loss=float(weights.loss),
        rmspe_pre=rmspe_pre,
        rmspe_post=rmspe_post,
        rmspe_ratio=rmspe_ratio,
        predictor_balance=predictor_balance,
        treatment_time=t0,
        converged=bool(getattr(weights, "converged", True)),
    )


def fit_synthetic_control(
    panel: PanelDataset,
    spec: AnalysisSpec,
    threshold: float = WEIGHT_THRESHOLD,
    **solver_kwargs,
) -> SyntheticResult:
    """
    Fit Synthetic Control Method.

    Args:
        panel: Panel data with units and periods
        spec: Treated unit, donor pool, predictors and windows
        threshold: Smallest weight reported in the composition table
        **solver_kwargs: Passed to solver.solve (custom_v, method, seed, ...)

    Returns:
        SyntheticResult with weights, synthetic series, and diagnostics
    """
    prepared = prepare(panel, spec)
    logger.info(
        f"Fitting synthetic {prepared.treated_unit} from {prepared.n_donors} donors "
        f"and {prepared.n_predictors} predictors"
    )

    weights = solve(prepared, **solver_kwargs)
    result = estimate(prepared, weights, threshold=threshold)

    logger.info(
        f"Pre-treatment MSPE: {result.pre_fit_loss:.4g} "
        f"({len(result.weights)} donors with positive weight)"
    )

    return result


def effect_summary(result: SyntheticResult) -> pd.Series:
    """
    Summarise the post-treatment gap.

    Args:
        result: SyntheticResult from fit_synthetic_control

    Returns:
        Series with average, final and cumulative post-treatment gap
    """
    if result.treatment_time is None:
        post_gap = result.gap.iloc[0:0]
    else:
        post_gap = result.gap[result.gap.index >= result.treatment_time]

    if len(post_gap) == 0:
        return pd.Series(
            {"average_gap": np.nan, "final_gap": np.nan, "cumulative_gap": np.nan},
            name="effect",
        )

    return pd.Series(
        {
            "average_gap": float(post_gap.mean()),
            "final_gap": float(post_gap.iloc[-1]),
            "cumulative_gap": float(post_gap.sum()),
        },
        name="effect",
    )
