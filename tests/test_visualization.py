"""Tests for plotting and reporting helpers."""

import matplotlib.pyplot as plt
import numpy as np
import pytest

from peace_synth.synthetic_control import fit_synthetic_control
from peace_synth.visualization import (
    format_weights_table,
    plot_gap,
    plot_synthetic,
    plot_weights,
)


@pytest.fixture
def midpoint_result(midpoint_panel, make_square_spec):
    return fit_synthetic_control(midpoint_panel, make_square_spec("T"), max_iter=100)


@pytest.fixture(autouse=True)
def close_figures():
    yield
    plt.close("all")


class TestPlots:
    def test_plot_synthetic(self, midpoint_result):
        fig, ax = plot_synthetic(midpoint_result)
        assert len(ax.get_lines()) >= 2
        np.testing.assert_allclose(ax.get_lines()[0].get_ydata(), midpoint_result.actual)

    def test_plot_gap(self, midpoint_result):
        fig, ax = plot_gap(midpoint_result)
        assert ax.get_ylabel() == "Deviations = Effective - Synthetic"

    def test_plot_weights(self, midpoint_result):
        fig, ax = plot_weights(midpoint_result, names={"A": "Alpha"})
        fig.canvas.draw()
        labels = [t.get_text() for t in ax.get_yticklabels()]
        assert "Alpha" in labels

    def test_save(self, midpoint_result, tmp_path):
        path = tmp_path / "synthetic.png"
        plot_synthetic(midpoint_result, save_path=str(path))
        assert path.exists()


class TestFormatWeightsTable:
    def test_columns(self, midpoint_result):
        table = format_weights_table(midpoint_result)
        assert list(table.columns) == ["Unit", "Weight"]
        assert set(table["Unit"]) == {"A", "B"}
        assert np.isclose(table["Weight"].sum(), 1.0, atol=1e-3)

    def test_names(self, midpoint_result):
        table = format_weights_table(midpoint_result, names={"A": "Alpha", "B": "Beta"})
        assert set(table["Unit"]) == {"Alpha", "Beta"}
