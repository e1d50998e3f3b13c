#!/usr/bin/env python3
"""
Main entry point for the post-conflict peace synthetic control analysis.

This module delegates to scripts/replicate.py, which contains the full
pipeline: simulate a panel, fit the synthetic control, plot and save.

Usage:
    uv run main.py                 # Run full analysis
    uv run main.py --no-figures    # Skip figures
    uv run main.py --seed 7        # Different simulated panel
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent / "scripts"))

from replicate import main as run_analysis  # noqa: E402


def main():
    """Run the synthetic control analysis."""
    run_analysis()


if __name__ == "__main__":
    main()
