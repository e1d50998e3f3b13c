"""
Visualization and reporting for synthetic control results.
"""

import matplotlib.pyplot as plt
import pandas as pd
from matplotlib.ticker import FuncFormatter

from .synthetic_control import SyntheticResult


def setup_style():
    """Set up matplotlib style for publication-quality figures."""
    plt.style.use("seaborn-v0_8-whitegrid")
    plt.rcParams.update({
        "figure.figsize": (10, 6),
        "figure.dpi": 100,
        "font.size": 11,
        "axes.labelsize": 12,
        "axes.titlesize": 14,
        "legend.fontsize": 10,
        "xtick.labelsize": 10,
        "ytick.labelsize": 10,
        "lines.linewidth": 2,
    })


def index_formatter(x, pos):
    """Format axis ticks as index points."""
    return f"{x:,.1f}"


def _mark_treatment(ax, result: SyntheticResult):
    if result.treatment_time is not None:
        ax.axvline(x=result.treatment_time, color="black", linestyle=":", alpha=0.7)


def plot_synthetic(
    result: SyntheticResult,
    treated_label: str = "Treated",
    ylabel: str = "Peace index",
    title: str = "Actual vs. synthetic control",
    save_path: str | None = None,
):
    """
    Plot the treated unit's actual path against its synthetic control.

    Args:
        result: SyntheticResult from fit_synthetic_control
        treated_label: Legend label for the treated unit
        ylabel: Outcome axis label
        title: Plot title
        save_path: Path to save figure
    """
    setup_style()
    fig, ax = plt.subplots(figsize=(10, 7))

    periods = result.actual.index

    ax.plot(periods, result.actual, "b-", label=f"Real {treated_label}", linewidth=2.5)
    ax.plot(
        periods, result.synthetic, "r--", label=f"Synthetic {treated_label}", linewidth=2
    )

    _mark_treatment(ax, result)

    # Annotations for end values
    final = periods[-1]
    ax.annotate(
        f"{result.synthetic.iloc[-1]:,.1f}",
        xy=(final, result.synthetic.iloc[-1]),
        xytext=(5, 5),
        textcoords="offset points",
        fontsize=10,
    )
    ax.annotate(
        f"{result.actual.iloc[-1]:,.1f}",
        xy=(final, result.actual.iloc[-1]),
        xytext=(5, -12),
        textcoords="offset points",
        fontsize=10,
    )

    ax.set_xlabel("Year")
    ax.set_ylabel(ylabel)
    ax.set_title(title)
    ax.legend(loc="upper left")
    ax.yaxis.set_major_formatter(FuncFormatter(index_formatter))

    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=300, bbox_inches="tight")

    return fig, ax


def plot_gap(
    result: SyntheticResult,
    title: str = "Gap between actual and synthetic",
    save_path: str | None = None,
):
    """
    Plot actual minus synthetic over the full window.

    Args:
        result: SyntheticResult from fit_synthetic_control
        title: Plot title
        save_path: Path to save figure
    """
    setup_style()
    fig, ax = plt.subplots(figsize=(10, 6))

    ax.plot(result.gap.index, result.gap, "b-", linewidth=2)
    ax.axhline(y=0, color="black", alpha=0.3)
    _mark_treatment(ax, result)

    ax.set_xlabel("Year")
    ax.set_ylabel("Deviations = Effective - Synthetic")
    ax.set_title(title)

    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=300, bbox_inches="tight")

    return fig, ax


def plot_weights(
    result: SyntheticResult,
    names: dict | None = None,
    title: str = "Synthetic Control Weights",
    save_path: str | None = None,
):
    """
    Horizontal bar chart of donors with positive weight.

    Args:
        result: SyntheticResult from fit_synthetic_control
        names: Optional mapping from donor id to display name
        title: Plot title
        save_path: Path to save figure
    """
    setup_style()
    fig, ax = plt.subplots(figsize=(8, max(3, 0.4 * len(result.weights) + 1)))

    weights = result.weights.sort_values()
    labels = [str((names or {}).get(d, d)) for d in weights.index]

    ax.barh(labels, weights.to_numpy(), color="steelblue")
    for i, w in enumerate(weights):
        ax.annotate(f"{w:.3f}", xy=(w, i), xytext=(3, -3), textcoords="offset points")

    ax.set_xlabel("Weight")
    ax.set_xlim(0, 1.1)
    ax.set_title(title)

    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=300, bbox_inches="tight")

    return fig, ax


def format_weights_table(
    result: SyntheticResult,
    names: dict | None = None,
) -> pd.DataFrame:
    """
    Table of donors with positive weight, largest first.

    Args:
        result: SyntheticResult from fit_synthetic_control
        names: Optional mapping from donor id to display name

    Returns:
        DataFrame with Unit and Weight columns
    """
    return pd.DataFrame(
        {
            "Unit": [(names or {}).get(d, d) for d in result.weights.index],
            "Weight": result.weights.round(4).to_numpy(),
        }
    )
