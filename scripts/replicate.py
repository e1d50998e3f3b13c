#!/usr/bin/env python3
"""
Main script for the post-conflict peace synthetic control analysis.

Usage:
    uv run scripts/replicate.py               # Simulate, fit, plot and save
    uv run scripts/replicate.py --no-figures  # Skip figures
    uv run scripts/replicate.py --seed 7      # Different simulated panel
"""

import argparse
from pathlib import Path

import pandas as pd

from peace_synth.logger import logger, set_log_level
from peace_synth.config import (
    DONOR_POOL,
    N_STARTS,
    POST_TREATMENT_END,
    PRE_TREATMENT_END,
    PRE_TREATMENT_START,
    PREDICTOR_VARIABLES,
    RANDOM_SEED,
    SPECIAL_PREDICTORS,
    TREATED_UNIT,
    TREATMENT_YEAR,
)
from peace_synth.analysis_spec import make_spec
from peace_synth.simulate import simulate_panel
from peace_synth.synthetic_control import effect_summary, fit_synthetic_control
from peace_synth.visualization import (
    format_weights_table,
    plot_gap,
    plot_synthetic,
    plot_weights,
)


def create_directories():
    """Create output directories."""
    Path("reports/figures").mkdir(parents=True, exist_ok=True)
    Path("results").mkdir(exist_ok=True)


def run_main_analysis(seed: int, n_starts: int):
    """
    Simulate a panel and fit the synthetic control.

    Args:
        seed: Seed for the simulated panel and the extra V starts
        n_starts: Number of starting points for the V search

    Returns:
        SyntheticResult for the treated country
    """
    logger.info("=" * 60)
    logger.info("SYNTHETIC CONTROL METHOD ANALYSIS")
    logger.info("=" * 60)

    panel = simulate_panel(seed=seed)
    logger.info(
        f"Simulated {len(panel.units)} countries over "
        f"{panel.periods[0]}-{panel.periods[-1]}"
    )

    spec = make_spec(
        treated_unit=TREATED_UNIT,
        donor_units=DONOR_POOL,
        predictors=PREDICTOR_VARIABLES,
        optimize_window=(PRE_TREATMENT_START, PRE_TREATMENT_END),
        full_window=(PRE_TREATMENT_START, POST_TREATMENT_END),
        special_predictors=SPECIAL_PREDICTORS,
        treatment_time=TREATMENT_YEAR,
    )

    result = fit_synthetic_control(
        panel, spec, n_starts=n_starts, seed=seed, progress=n_starts > 1
    )

    logger.info("-" * 40)
    logger.info("OPTIMAL WEIGHTS")
    logger.info("-" * 40)
    logger.info("\n" + format_weights_table(result).to_string(index=False))

    logger.info("-" * 40)
    logger.info("MODEL FIT")
    logger.info("-" * 40)
    logger.info(f"  Pre-treatment MSPE:   {result.pre_fit_loss:.3f}")
    logger.info(f"  Pre-treatment RMSPE:  {result.rmspe_pre:.3f}")
    logger.info(f"  Post-treatment RMSPE: {result.rmspe_post:.3f}")
    logger.info(f"  RMSPE Ratio:          {result.rmspe_ratio:.2f}")
    if not result.converged:
        logger.warning("  Predictor weight search did not converge")

    logger.info("-" * 40)
    logger.info("TREATMENT EFFECT")
    logger.info("-" * 40)
    for name, value in effect_summary(result).items():
        logger.info(f"  {name}: {value:.2f}")

    logger.info("-" * 40)
    logger.info("PREDICTOR BALANCE")
    logger.info("-" * 40)
    logger.info("\n" + result.predictor_balance.to_string())

    return result


def generate_figures(result):
    """Generate all figures."""
    logger.info("GENERATING FIGURES")
    plot_synthetic(result, save_path="reports/figures/synthetic_vs_actual.png")
    plot_gap(result, save_path="reports/figures/gap.png")
    plot_weights(result, save_path="reports/figures/weights.png")
    logger.info("Figures saved to reports/figures/")


def save_results(result):
    """Save numerical results to CSV."""
    series_df = pd.DataFrame({
        "year": result.actual.index,
        "actual": result.actual.values,
        "synthetic": result.synthetic.values,
        "gap": result.gap.values,
    })
    series_df.to_csv("results/scm_series.csv", index=False)

    result.weights.to_csv("results/scm_weights.csv")
    result.v_weights.to_csv("results/predictor_weights.csv")
    result.predictor_balance.to_csv("results/predictor_balance.csv")

    logger.info("Results saved to results/")


def main():
    parser = argparse.ArgumentParser(
        description="Synthetic control analysis of a simulated post-conflict panel"
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=RANDOM_SEED,
        help="Seed for the simulated panel",
    )
    parser.add_argument(
        "--n-starts",
        type=int,
        default=N_STARTS,
        help="Starting points for the predictor weight search",
    )
    parser.add_argument(
        "--no-figures",
        action="store_true",
        help="Skip figure generation",
    )
    parser.add_argument(
        "--no-save",
        action="store_true",
        help="Do not write result CSVs",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log solver details",
    )

    args = parser.parse_args()

    if args.verbose:
        set_log_level("DEBUG")

    create_directories()

    result = run_main_analysis(seed=args.seed, n_starts=args.n_starts)

    if not args.no_figures:
        generate_figures(result)

    if not args.no_save:
        save_results(result)

    logger.info("=" * 60)
    logger.info("ANALYSIS COMPLETE")
    logger.info("=" * 60)


if __name__ == "__main__":
    main()
