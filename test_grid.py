"""
test_grid.py

Unit tests for grid sweeps over (n, p) configurations.

Run: python -m pytest test_grid.py -v
"""

import math
import warnings

import pandas as pd
import pytest

from approx_analysis import grid
from approx_analysis.approximation import total_absolute_error
from approx_analysis.errors import InvalidParameter


class TestEvaluateGrid:
    """Grid shape, ordering and per-cell metrics."""

    def test_shape_and_order(self):
        df = grid.evaluate_grid([50, 10], [0.5, 0.05])
        assert list(df.columns) == grid.COLUMNS
        assert len(df) == 4
        assert list(zip(df["n"], df["p"])) == [(10, 0.05), (10, 0.5), (50, 0.05), (50, 0.5)]

    def test_cell_matches_direct_call(self):
        df = grid.evaluate_grid([20], [0.3])
        assert df.loc[0, "total_abs_error"] == pytest.approx(total_absolute_error(20, 0.3))
        assert df.loc[0, "error"] is None or pd.isna(df.loc[0, "error"])

    def test_invalid_cell_does_not_abort(self):
        """p=0 has no normal approximation; the row records the error instead"""
        df = grid.evaluate_grid([10], [0.0, 0.5])
        bad = df[df["p"] == 0.0].iloc[0]
        good = df[df["p"] == 0.5].iloc[0]
        assert "standard deviation is zero" in bad["error"]
        assert math.isnan(bad["total_abs_error"])
        assert not bad["viable"]
        assert pd.isna(good["error"])

    def test_non_viable_cells_flagged_without_warning(self):
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            df = grid.evaluate_grid([5000, 100000], [0.001], confidence_level=0.99)
        assert df["viable"].tolist() == [False, True]
        assert df.loc[0, "lower_bound"] < 0

    def test_parallel_matches_sequential(self):
        ns, ps = [10, 40, 80], [0.1, 0.5]
        sequential = grid.evaluate_grid(ns, ps, workers=1)
        parallel = grid.evaluate_grid(ns, ps, workers=2)
        pd.testing.assert_frame_equal(sequential, parallel)


class TestExpectedCountGrid:
    """Sweeps that hold n*p fixed."""

    def test_n_derived_from_expected(self):
        df = grid.expected_count_grid(5, [0.05, 0.1, 0.5])
        assert sorted(df["n"].tolist()) == [10, 50, 100]
        assert (df["expected"] == 5).all()
        assert (df["mean"] - 5).abs().max() < 1e-9

    def test_error_smallest_near_half(self):
        df = grid.expected_count_grid(5, [0.01, 0.05, 0.1, 0.25, 0.5])
        assert grid.best_p(df) == 0.5

    @pytest.mark.parametrize("expected,ps", [(0, [0.5]), (-3, [0.5]), (5, [0.0]), (5, [1.5])])
    def test_invalid_inputs(self, expected, ps):
        with pytest.raises(InvalidParameter):
            grid.expected_count_grid(expected, ps)

    def test_best_p_all_invalid(self):
        df = grid.evaluate_grid([10], [0.0, 1.0])
        assert grid.best_p(df) is None
