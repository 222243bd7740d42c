"""Unit tests for chunk reconstruction and fire series."""

import numpy as np
import pytest
from numpy.testing import assert_array_equal

from forma.errors import InconsistentChunkWidthError
from forma.ops.timeseries import (
    add_fires,
    fire_series,
    merge_fire_tuples,
    running_fire_sum,
    timeseries,
)
from forma.schema import ZERO_FIRE, DoubleSeries, FireSeries, FireTuple, IntSeries


class TestTimeseries:
    """Tests for timeseries chunk reconstruction."""

    def test_transposes_contiguous_chunks(self):
        out = timeseries([(10, [1, 2]), (11, [3, 4])], -9999)
        assert [i for i, _ in out] == [0, 1]
        assert out[0][1] == IntSeries(10, 11, [1, 3])
        assert out[1][1] == IntSeries(10, 11, [2, 4])

    def test_gap_filled_with_missing_value(self):
        """A period with no chunk becomes a column of missing values."""
        out = timeseries([(3, [1, 2, 3]), (5, [4, 5, 6])], -9999)
        assert out[0][1].get_vals() == [1, -9999, 4]
        assert out[2][1].get_vals() == [3, -9999, 6]
        assert all(s.start == 3 and s.end == 5 for _, s in out)

    def test_single_chunk(self):
        out = timeseries([(7, [1, 2, 3])], -1)
        assert [(i, s.get_vals()) for i, s in out] == [(0, [1]), (1, [2]), (2, [3])]
        assert all(s.start == s.end == 7 for _, s in out)

    def test_double_chunks_give_double_series(self):
        out = timeseries([(0, [0.5, 1.5]), (1, [2.5, 3.5])], -9999)
        assert isinstance(out[0][1], DoubleSeries)
        assert_array_equal(out[1][1].values, [1.5, 3.5])

    def test_int_chunks_with_float_missing_value(self):
        """A non-integer fill promotes the whole pass to doubles."""
        out = timeseries([(0, [1, 2]), (2, [3, 4])], np.nan)
        series = out[0][1]
        assert isinstance(series, DoubleSeries)
        assert series.values[0] == 1.0
        assert np.isnan(series.values[1])

    def test_float_chunk_after_int_chunk_gives_double_series(self):
        """A later fractional chunk is not truncated to the first chunk's type."""
        out = timeseries([(0, [1, 2]), (1, [3.7, 4.2])], -9999)
        assert all(isinstance(s, DoubleSeries) for _, s in out)
        assert_array_equal(out[0][1].values, [1.0, 3.7])
        assert_array_equal(out[1][1].values, [2.0, 4.2])

    def test_duplicate_period_matches_deduplicated_stream(self):
        """The last chunk for a repeated period wins."""
        repeated = timeseries([(0, [1, 2]), (1, [3, 4]), (1, [5, 6])], -9999)
        deduped = timeseries([(0, [1, 2]), (1, [5, 6])], -9999)
        assert repeated == deduped
        assert repeated[0][1].get_vals() == [1, 5]

    def test_empty_group(self):
        assert timeseries([], -9999) == []

    def test_width_mismatch_raises(self):
        with pytest.raises(InconsistentChunkWidthError) as exc_info:
            timeseries([(0, [1, 2]), (1, [1, 2, 3])], -9999)
        assert exc_info.value.kind == "InconsistentChunkWidth"

    def test_series_are_read_only(self):
        out = timeseries([(0, [1, 2])], -9999)
        with pytest.raises(ValueError):
            out[0][1].values[0] = 5


class TestFireSeries:
    """Tests for fire tuple merging and cumulative series."""

    def test_add_fires(self):
        assert add_fires(FireTuple(1, 0, 1, 2), FireTuple(0, 3, 1, 1)) == FireTuple(1, 3, 2, 3)

    def test_merge_identity(self):
        assert merge_fire_tuples([]) == ZERO_FIRE
        assert merge_fire_tuples([FireTuple(1, 2, 3, 4)]) == FireTuple(1, 2, 3, 4)

    def test_running_sum(self):
        series = running_fire_sum(5, [FireTuple(1, 0, 0, 1), ZERO_FIRE, FireTuple(0, 1, 0, 1)])
        assert isinstance(series, FireSeries)
        assert series.start == 5 and series.end == 7
        assert series.get_vals() == [FireTuple(1, 0, 0, 1), FireTuple(1, 0, 0, 1), FireTuple(1, 1, 0, 2)]

    def test_fire_series_expands_and_accumulates(self):
        series = fire_series([(12, FireTuple(0, 0, 0, 2))], 10, 13)
        assert series.get_vals() == [ZERO_FIRE, ZERO_FIRE, FireTuple(0, 0, 0, 2), FireTuple(0, 0, 0, 2)]

    def test_fire_series_ignores_outside_window(self):
        series = fire_series([(2, FireTuple(1, 1, 1, 1)), (20, FireTuple(1, 1, 1, 1))], 10, 11)
        assert series.get_vals() == [ZERO_FIRE, ZERO_FIRE]
