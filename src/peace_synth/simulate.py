"""
Simulated conflict/peace panel used by the demo pipeline and the tests.

Each country follows a noisy peace-index trajectory driven by conflict
duration, conflict intensity and GDP growth. The treated country's
characteristics are a convex mixture of a few donors, so a good synthetic
control exists by construction, and its peace index shifts by a fixed effect
from the intervention year on.
"""

import numpy as np
import pandas as pd

from .config import (
    N_UNITS,
    OUTCOME_VAR,
    POST_TREATMENT_END,
    PRE_TREATMENT_START,
    PREDICTOR_VARIABLES,
    RANDOM_SEED,
    TIME_VAR,
    TREATED_UNIT,
    TREATMENT_EFFECT,
    TREATMENT_YEAR,
    UNIT_VAR,
)
from .panel import PanelDataset, make_panel

# Columns of the per-country parameter table
PARAMETERS = ["base_peace", "trend", "duration", "intensity", "growth"]


def unit_names(n_units: int) -> list[str]:
    return [f"C{i:02d}" for i in range(n_units)]


def _draw_parameters(
    rng: np.random.Generator,
    units: list[str],
    treated_unit: str,
    n_sources: int = 3,
) -> pd.DataFrame:
    """Country-level parameters; the treated unit mixes a few donors."""
    params = pd.DataFrame(
        {
            "base_peace": rng.uniform(30, 70, len(units)),
            "trend": rng.uniform(-0.5, 1.0, len(units)),
            "duration": rng.uniform(1, 15, len(units)),
            "intensity": rng.uniform(0.1, 1.0, len(units)),
            "growth": rng.uniform(-1, 4, len(units)),
        },
        index=units,
    )

    donors = [u for u in units if u != treated_unit]
    sources = rng.choice(donors, size=min(n_sources, len(donors)), replace=False)
    mix = rng.dirichlet(np.ones(len(sources)))
    params.loc[treated_unit] = mix @ params.loc[list(sources), PARAMETERS].to_numpy()

    return params


def simulate_conflict_panel(
    n_units: int = N_UNITS,
    start: int = PRE_TREATMENT_START,
    end: int = POST_TREATMENT_END,
    treated_unit: str = TREATED_UNIT,
    treatment_time: int = TREATMENT_YEAR,
    effect: float = TREATMENT_EFFECT,
    noise: float = 1.0,
    seed: int = RANDOM_SEED,
) -> pd.DataFrame:
    """
    Simulate a long-format conflict/peace panel.

    Args:
        n_units: Number of countries (treated unit included)
        start: First simulated year
        end: Last simulated year
        treated_unit: Country receiving the intervention
        treatment_time: First year affected by the intervention
        effect: Shift in the treated unit's peace index after treatment
        noise: Standard deviation of the yearly outcome shock
        seed: Seed for the random generator

    Returns:
        DataFrame with columns country, year, duration, intensity,
        gdp_growth and peace
    """
    units = unit_names(n_units)
    if treated_unit not in units:
        raise ValueError(f"Treated unit '{treated_unit}' not among simulated units {units[:3]}...")

    rng = np.random.default_rng(seed)
    params = _draw_parameters(rng, units, treated_unit)

    data = []
    for unit in units:
        p = params.loc[unit]

        for i, year in enumerate(range(start, end + 1)):
            duration = max(0.0, p["duration"] + rng.normal(0, 0.5))
            intensity = float(np.clip(p["intensity"] + rng.normal(0, 0.05), 0, 1))
            growth = p["growth"] + rng.normal(0, 0.5)

            peace = (
                p["base_peace"]
                + p["trend"] * i
                - 0.5 * duration
                - 10 * intensity
                + 0.5 * growth
                + rng.normal(0, noise)
            )

            if unit == treated_unit and year >= treatment_time:
                peace += effect

            data.append({
                UNIT_VAR: unit,
                TIME_VAR: year,
                "duration": duration,
                "intensity": intensity,
                "gdp_growth": growth,
                OUTCOME_VAR: peace,
            })

    return pd.DataFrame(data)


def simulate_panel(**kwargs) -> PanelDataset:
    """Simulate a conflict/peace panel and wrap it as a validated PanelDataset."""
    df = simulate_conflict_panel(**kwargs)
    return make_panel(
        df,
        unit_var=UNIT_VAR,
        time_var=TIME_VAR,
        outcome_var=OUTCOME_VAR,
        predictors=PREDICTOR_VARIABLES,
    )
