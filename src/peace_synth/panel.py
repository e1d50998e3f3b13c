"""
Panel dataset container for synthetic control estimation.
"""

from typing import NamedTuple

import pandas as pd
from pandas.api.types import is_numeric_dtype

from .config import OUTCOME_VAR, TIME_VAR, UNIT_VAR
from .exceptions import PanelDataError


class PanelDataset(NamedTuple):
    """Long-format panel: one row per (unit, period)."""

    data: pd.DataFrame
    unit_var: str
    time_var: str
    outcome_var: str
    predictors: tuple[str, ...]

    @property
    def units(self) -> list:
        return self.data[self.unit_var].unique().tolist()

    @property
    def periods(self) -> list:
        return sorted(self.data[self.time_var].unique().tolist())

    def unit_frame(self, unit) -> pd.DataFrame:
        """Observations of a single unit, indexed by period."""
        return self.data[self.data[self.unit_var] == unit].set_index(self.time_var)


def make_panel(
    df: pd.DataFrame,
    unit_var: str = UNIT_VAR,
    time_var: str = TIME_VAR,
    outcome_var: str = OUTCOME_VAR,
    predictors: list[str] | None = None,
) -> PanelDataset:
    """
    Validate a long-format DataFrame and wrap it as a PanelDataset.

    Args:
        df: Panel data with one row per unit and period
        unit_var: Name of unit identifier column
        time_var: Name of time period column
        outcome_var: Name of outcome column
        predictors: Predictor columns (if None, every other numeric column)

    Returns:
        PanelDataset holding a sorted copy of the data

    Raises:
        PanelDataError: If columns are missing, non-numeric, or
            (unit, period) pairs are duplicated
    """
    if not isinstance(df, pd.DataFrame):
        raise PanelDataError("df must be a pandas DataFrame")

    if df.empty:
        raise PanelDataError("Panel DataFrame is empty")

    if predictors is None:
        predictors = [
            c for c in df.columns
            if c not in (unit_var, time_var, outcome_var) and is_numeric_dtype(df[c])
        ]

    required_cols = [unit_var, time_var, outcome_var, *predictors]
    missing_cols = [c for c in required_cols if c not in df.columns]
    if missing_cols:
        raise PanelDataError(f"Missing required columns: {missing_cols}")

    non_numeric = [c for c in [outcome_var, *predictors] if not is_numeric_dtype(df[c])]
    if non_numeric:
        raise PanelDataError(f"Columns must be numeric: {non_numeric}")

    duplicated = df.duplicated(subset=[unit_var, time_var], keep=False)
    if duplicated.any():
        pairs = (
            df.loc[duplicated, [unit_var, time_var]]
            .drop_duplicates()
            .itertuples(index=False, name=None)
        )
        shown = ", ".join(str(p) for p in list(pairs)[:5])
        raise PanelDataError(f"Duplicate (unit, period) observations: {shown}")

    data = df.sort_values([unit_var, time_var]).reset_index(drop=True)

    return PanelDataset(
        data=data,
        unit_var=unit_var,
        time_var=time_var,
        outcome_var=outcome_var,
        predictors=tuple(predictors),
    )
