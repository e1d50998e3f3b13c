"""Pytest fixtures for synthetic control tests."""

import matplotlib

matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest

from peace_synth.analysis_spec import make_spec
from peace_synth.panel import make_panel
from peace_synth.simulate import simulate_panel

YEARS = list(range(2000, 2010))
OPTIMIZE_WINDOW = (2000, 2005)
FULL_WINDOW = (2000, 2009)

# Donors sit on the corners of a square in predictor space
DONOR_FEATURES = {
    "A": (0.0, 0.0),
    "B": (2.0, 0.0),
    "C": (0.0, 2.0),
    "D": (2.0, 2.0),
}

# Outcome paths as (intercept, slope, curvature) over the year index.
# No convex mix other than the intended one reproduces a target path.
DONOR_OUTCOMES = {
    "A": (10.0, 1.0, 0.0),
    "B": (20.0, 2.0, 0.1),
    "C": (5.0, 3.0, -0.2),
    "D": (30.0, -1.0, 0.05),
}


def build_panel(features: dict, outcomes: dict) -> pd.DataFrame:
    """Panel with time-constant predictors and quadratic outcome paths."""
    data = []
    for unit, (x1, x2) in features.items():
        intercept, slope, curvature = outcomes[unit]
        for i, year in enumerate(YEARS):
            data.append({
                "unit": unit,
                "year": year,
                "x1": x1,
                "x2": x2,
                "y": intercept + slope * i + curvature * i**2,
            })
    return pd.DataFrame(data)


def square_spec(treated, donors=("A", "B", "C", "D"), predictors=("x1", "x2"), **kwargs):
    return make_spec(
        treated_unit=treated,
        donor_units=list(donors),
        predictors=list(predictors),
        optimize_window=OPTIMIZE_WINDOW,
        full_window=FULL_WINDOW,
        **kwargs,
    )


@pytest.fixture
def make_square_spec():
    """Factory for specs over the square donor panels."""
    return square_spec


@pytest.fixture
def midpoint_panel():
    """Treated unit T is the exact average of donors A and B."""
    features = dict(DONOR_FEATURES)
    outcomes = dict(DONOR_OUTCOMES)
    features["T"] = tuple(np.mean([features["A"], features["B"]], axis=0))
    outcomes["T"] = tuple(np.mean([outcomes["A"], outcomes["B"]], axis=0))
    return make_panel(build_panel(features, outcomes), "unit", "year", "y", ["x1", "x2"])


@pytest.fixture
def twin_panel():
    """Treated unit T is identical to donor C."""
    features = dict(DONOR_FEATURES)
    outcomes = dict(DONOR_OUTCOMES)
    features["T"] = features["C"]
    outcomes["T"] = outcomes["C"]
    return make_panel(build_panel(features, outcomes), "unit", "year", "y", ["x1", "x2"])


@pytest.fixture
def sample_panel():
    """Small simulated conflict/peace panel."""
    return simulate_panel(
        n_units=8,
        start=1980,
        end=2000,
        treatment_time=1991,
        effect=10.0,
        seed=42,
    )


@pytest.fixture
def sample_spec():
    return make_spec(
        treated_unit="C00",
        donor_units=[f"C{i:02d}" for i in range(1, 8)],
        predictors=["duration", "intensity", "gdp_growth"],
        optimize_window=(1980, 1990),
        full_window=(1980, 2000),
        special_predictors=[("peace", (1980, 1984)), ("peace", (1985, 1990), "mean")],
        treatment_time=1991,
    )


@pytest.fixture
def simple_matrices():
    """Create simple matrices for testing optimization."""
    rng = np.random.default_rng(42)

    # K predictors, J donors
    K, J = 5, 4

    X0 = rng.standard_normal((K, J))  # Control units
    X1 = rng.standard_normal(K)       # Treated unit
    V = np.eye(K)                     # Identity weights

    return X0, X1, V


@pytest.fixture
def outcome_matrices():
    """Create outcome matrices for MSPE testing."""
    rng = np.random.default_rng(42)

    T, J = 10, 4

    Y0 = rng.standard_normal((T, J)) * 10 + 50  # Control outcomes
    Y1 = rng.standard_normal(T) * 10 + 50       # Treated outcome
    W = np.array([0.3, 0.3, 0.2, 0.2])          # Weights

    return Y0, Y1, W
