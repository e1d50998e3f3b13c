"""Tests for panel dataset validation."""

import pandas as pd
import pytest

from peace_synth.exceptions import PanelDataError
from peace_synth.panel import PanelDataset, make_panel


@pytest.fixture
def small_frame():
    return pd.DataFrame({
        "unit": ["B", "A", "A", "B"],
        "year": [2001, 2001, 2000, 2000],
        "x": [1.0, 2.0, 3.0, 4.0],
        "y": [10.0, 20.0, 30.0, 40.0],
        "label": ["b", "a", "a", "b"],
    })


class TestMakePanel:
    def test_returns_panel(self, small_frame):
        panel = make_panel(small_frame, "unit", "year", "y", ["x"])
        assert isinstance(panel, PanelDataset)
        assert panel.predictors == ("x",)

    def test_sorted_copy(self, small_frame):
        panel = make_panel(small_frame, "unit", "year", "y", ["x"])
        assert panel.data["unit"].tolist() == ["A", "A", "B", "B"]
        assert panel.data["year"].tolist() == [2000, 2001, 2000, 2001]
        assert small_frame["unit"].tolist() == ["B", "A", "A", "B"]

    def test_default_predictors_are_numeric(self, small_frame):
        panel = make_panel(small_frame, "unit", "year", "y")
        assert panel.predictors == ("x",)

    def test_units_and_periods(self, small_frame):
        panel = make_panel(small_frame, "unit", "year", "y", ["x"])
        assert panel.units == ["A", "B"]
        assert panel.periods == [2000, 2001]
        assert panel.unit_frame("B").loc[2001, "y"] == 10.0

    def test_duplicate_rows(self, small_frame):
        df = pd.concat([small_frame, small_frame.iloc[[0]]])
        with pytest.raises(PanelDataError, match="Duplicate"):
            make_panel(df, "unit", "year", "y", ["x"])

    def test_missing_column(self, small_frame):
        with pytest.raises(PanelDataError, match="Missing required columns"):
            make_panel(small_frame, "unit", "year", "outcome", ["x"])

    def test_non_numeric_predictor(self, small_frame):
        with pytest.raises(PanelDataError, match="numeric"):
            make_panel(small_frame, "unit", "year", "y", ["label"])

    def test_empty(self):
        with pytest.raises(PanelDataError):
            make_panel(pd.DataFrame(columns=["unit", "year", "y"]), "unit", "year", "y")

    def test_not_a_frame(self):
        with pytest.raises(PanelDataError):
            make_panel([1, 2, 3])
