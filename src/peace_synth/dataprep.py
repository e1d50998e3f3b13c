"""
Data preparation for synthetic control estimation.

Turns a PanelDataset and an AnalysisSpec into the predictor matrices and
outcome paths consumed by the weight solver and the estimator.
"""

from typing import NamedTuple

import pandas as pd

from .analysis_spec import AGGREGATIONS, AnalysisSpec, validate_spec
from .exceptions import InvalidSpecError, MissingDataError
from .logger import logger
from .panel import PanelDataset


class PreparedData(NamedTuple):
    """Matrices for one treated unit against its donor pool."""

    X1: pd.Series  # Treated characteristics (K,)
    X0: pd.DataFrame  # Donor characteristics (K x J)
    Z1: pd.Series  # Treated outcome over the optimization window (T0,)
    Z0: pd.DataFrame  # Donor outcomes over the optimization window (T0 x J)
    Y1: pd.Series  # Treated outcome over the full window (T,)
    Y0: pd.DataFrame  # Donor outcomes over the full window (T x J)
    donors: tuple
    treated_unit: object
    treatment_time: object | None

    @property
    def n_predictors(self) -> int:
        return self.X0.shape[0]

    @property
    def n_donors(self) -> int:
        return self.X0.shape[1]

    @property
    def optimize_periods(self) -> list:
        return self.Z1.index.tolist()

    def predictor_table(self) -> pd.DataFrame:
        """Treated and donor characteristics side by side, one row per predictor."""
        table = self.X0.copy()
        table.insert(0, self.treated_unit, self.X1)
        return table


def _required_periods(spec: AnalysisSpec, outcome_var: str) -> dict[str, list]:
    """Periods each variable must be observed in, keyed by variable."""
    required: dict[str, set] = {}

    for predictor in spec.predictors:
        required.setdefault(predictor.variable, set()).update(spec.window_for(predictor))

    required.setdefault(outcome_var, set()).update(spec.optimize_window)
    required[outcome_var].update(spec.full_window)

    return {var: sorted(periods) for var, periods in required.items()}


def _wide_frames(
    panel: PanelDataset,
    units: list,
    required: dict[str, list],
) -> dict[str, pd.DataFrame]:
    """
    Pivot each required variable to a periods x units frame.

    Raises:
        MissingDataError: If a unit lacks a required observation
    """
    df = panel.data
    present = set(df[panel.unit_var].unique())

    for unit in units:
        if unit not in present:
            all_periods = sorted(set().union(*required.values()))
            raise MissingDataError(unit, all_periods)

    subset = df[df[panel.unit_var].isin(units)]
    frames = {}

    for var, periods in required.items():
        wide = (
            subset
            .pivot(index=panel.time_var, columns=panel.unit_var, values=var)
            .reindex(index=periods, columns=units)
        )

        for unit in units:
            missing = wide.index[wide[unit].isna()].tolist()
            if missing:
                raise MissingDataError(unit, missing, variable=var)

        frames[var] = wide.astype(float)

    return frames


def _resolve_treatment_time(spec: AnalysisSpec):
    if spec.treatment_time is not None:
        return spec.treatment_time
    last_fit = max(spec.optimize_window)
    later = [t for t in spec.full_window if t > last_fit]
    return later[0] if later else None


def prepare(panel: PanelDataset, spec: AnalysisSpec) -> PreparedData:
    """
    Build predictor matrices and outcome paths for a synthetic control fit.

    Args:
        panel: Validated panel dataset
        spec: Analysis specification

    Returns:
        PreparedData with X0/X1 predictor aggregates, Z0/Z1 outcomes over the
        optimization window and Y0/Y1 outcomes over the full window

    Raises:
        InvalidSpecError: If the spec is invalid or names unknown variables
        MissingDataError: If a unit lacks a required observation
    """
    validate_spec(spec)

    unknown = sorted(
        {p.variable for p in spec.predictors if p.variable not in panel.data.columns}
    )
    if unknown:
        raise InvalidSpecError(f"Predictor variables not in panel: {unknown}")

    treated = spec.treated_unit
    donors = list(spec.donor_units)
    units = [treated, *donors]

    required = _required_periods(spec, panel.outcome_var)
    frames = _wide_frames(panel, units, required)

    # Characteristic rows, in spec order
    rows = {}
    for predictor in spec.predictors:
        aggregate = AGGREGATIONS[predictor.op]
        window = list(spec.window_for(predictor))
        values = frames[predictor.variable].loc[window]
        rows[predictor.name] = {unit: aggregate(values[unit]) for unit in units}

    X = pd.DataFrame.from_dict(rows, orient="index").reindex(columns=units)
    X1 = X[treated].rename(treated)
    X0 = X[donors]

    outcome = frames[panel.outcome_var]
    optimize = list(spec.optimize_window)
    full = list(spec.full_window)

    prepared = PreparedData(
        X1=X1,
        X0=X0,
        Z1=outcome.loc[optimize, treated].rename(treated),
        Z0=outcome.loc[optimize, donors],
        Y1=outcome.loc[full, treated].rename(treated),
        Y0=outcome.loc[full, donors],
        donors=tuple(donors),
        treated_unit=treated,
        treatment_time=_resolve_treatment_time(spec),
    )

    logger.debug(
        f"Prepared {prepared.n_predictors} predictors x {prepared.n_donors} donors, "
        f"{len(optimize)} optimization periods, {len(full)} projection periods"
    )

    return prepared
