"""Tests for analysis specification helpers."""

import pytest

from peace_synth.analysis_spec import (
    AGGREGATIONS,
    AnalysisSpec,
    PredictorAggregation,
    as_window,
    make_spec,
    period_range,
    register_aggregation,
    validate_spec,
)
from peace_synth.exceptions import InvalidSpecError


def base_kwargs(**overrides):
    kwargs = dict(
        treated_unit="T",
        donor_units=["A", "B", "C"],
        predictors=["x1", "x2"],
        optimize_window=(2000, 2005),
        full_window=(2000, 2009),
    )
    kwargs.update(overrides)
    return kwargs


class TestWindows:
    def test_period_range_inclusive(self):
        assert period_range(1990, 1993) == (1990, 1991, 1992, 1993)

    def test_period_range_reversed(self):
        with pytest.raises(InvalidSpecError):
            period_range(1993, 1990)

    def test_pair_is_range(self):
        assert as_window((2000, 2003)) == (2000, 2001, 2002, 2003)

    def test_list_is_explicit(self):
        assert as_window([2003, 2000, 2003]) == (2000, 2003)

    def test_scalar_is_single_period(self):
        assert as_window(1995) == (1995,)


class TestMakeSpec:
    def test_predictor_rows(self):
        spec = make_spec(
            **base_kwargs(special_predictors=[("y", (1985, 1993)), ("y", 1990, "last")])
        )
        names = [p.name for p in spec.predictors]
        assert names == ["x1", "x2", "y_1985_1993", "y_1990_last"]
        assert spec.predictors[2].window == tuple(range(1985, 1994))

    def test_windows_normalised(self):
        spec = make_spec(**base_kwargs())
        assert spec.optimize_window == tuple(range(2000, 2006))
        assert spec.full_window == tuple(range(2000, 2010))

    def test_predictor_window_default(self):
        spec = make_spec(**base_kwargs())
        assert spec.aggregation_window == spec.optimize_window

    def test_predictor_window_override(self):
        spec = make_spec(**base_kwargs(predictor_window=(2002, 2005)))
        assert spec.window_for(spec.predictors[0]) == (2002, 2003, 2004, 2005)

    def test_predictors_op(self):
        spec = make_spec(**base_kwargs(predictors_op="median"))
        assert all(p.op == "median" for p in spec.predictors)

    def test_spec_is_immutable(self):
        spec = make_spec(**base_kwargs())
        with pytest.raises(AttributeError):
            spec.treated_unit = "A"


class TestValidateSpec:
    def test_treated_in_donors(self):
        with pytest.raises(InvalidSpecError, match="donor"):
            make_spec(**base_kwargs(donor_units=["A", "T"]))

    def test_empty_donors(self):
        with pytest.raises(InvalidSpecError, match="empty"):
            make_spec(**base_kwargs(donor_units=[]))

    def test_duplicate_donors(self):
        with pytest.raises(InvalidSpecError):
            make_spec(**base_kwargs(donor_units=["A", "A"]))

    def test_empty_predictors(self):
        with pytest.raises(InvalidSpecError, match="Predictor"):
            make_spec(**base_kwargs(predictors=[]))

    def test_single_period_optimize_window(self):
        with pytest.raises(InvalidSpecError):
            make_spec(**base_kwargs(optimize_window=[2000]))

    def test_single_period_full_window(self):
        with pytest.raises(InvalidSpecError):
            make_spec(**base_kwargs(full_window=2000))

    def test_unknown_operator(self):
        with pytest.raises(InvalidSpecError, match="Unknown aggregation"):
            make_spec(**base_kwargs(predictors_op="mode"))

    def test_duplicate_labels(self):
        with pytest.raises(InvalidSpecError, match="unique"):
            make_spec(**base_kwargs(predictors=["x1", "x1"]))

    def test_window_past_treatment(self):
        with pytest.raises(InvalidSpecError):
            make_spec(**base_kwargs(treatment_time=2004))

    def test_direct_spec(self):
        spec = AnalysisSpec(
            treated_unit="T",
            donor_units=("A",),
            predictors=(PredictorAggregation("x1"),),
            optimize_window=(2000, 2001),
            full_window=(2000, 2001, 2002),
        )
        validate_spec(spec)


class TestAggregations:
    def test_register(self):
        register_aggregation("range", lambda s: float(s.max() - s.min()))
        assert "range" in AGGREGATIONS
        spec = make_spec(**base_kwargs(predictors_op="range"))
        assert spec.predictors[0].op == "range"

    def test_register_requires_callable(self):
        with pytest.raises(TypeError):
            register_aggregation("bad", 3)
