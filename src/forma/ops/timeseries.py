"""Time-series reconstruction from period chunks, and fire series.

A chunk holds one period's values for a fixed group of pixels. Sorted by
period, a group's chunks form a period-major matrix with gaps wherever a
period was never observed. Reconstruction fills those gaps with a missing
chunk and transposes the matrix so each pixel gets its own dense series.
"""

from __future__ import annotations

from functools import reduce
from itertools import accumulate
from typing import Any, Iterable, List, Sequence, Tuple

import numpy as np

from forma.errors import InconsistentChunkWidthError
from forma.matrix.utils import sparse_expander
from forma.schema import ZERO_FIRE, DoubleSeries, FireSeries, FireTuple, IntSeries, TimeSeries

__all__ = [
    "timeseries",
    "add_fires",
    "merge_fire_tuples",
    "running_fire_sum",
    "fire_series",
]


def _series_type(dtype: np.dtype, missing_value: Any):
    """Pick the series variant once for a whole reconstruction pass."""
    if dtype.kind in ("i", "u") and float(missing_value).is_integer():
        return IntSeries, np.int64
    return DoubleSeries, np.float64


def timeseries(
    tuples: Sequence[Tuple[int, Sequence[Any]]],
    missing_value: Any,
) -> List[Tuple[int, TimeSeries]]:
    """
    Transpose period-sorted chunks into per-pixel series.

    Parameters
    ----------
    tuples : sequence of (period, chunk)
        Chunks for one pixel group, sorted by period in ascending order.
        Every chunk must have the same width.
    missing_value : Any
        Fill for each pixel in periods with no chunk.

    Returns
    -------
    list of (pixel_index, TimeSeries)
        One series per chunk position, each spanning the first through the
        last observed period.

    Raises
    ------
    InconsistentChunkWidthError
        If two chunks in the group differ in width.

    Examples
    --------
    >>> [(i, s.get_vals()) for i, s in timeseries([(10, [1, 2]), (11, [3, 4])], -9999)]
    [(0, [1, 3]), (1, [2, 4])]
    """
    if not tuples:
        return []

    first_period = tuples[0][0]
    last_period = tuples[-1][0]
    arrays = [(period, np.asarray(chunk)) for period, chunk in tuples]
    first = arrays[0][1]
    width = first.shape[0] if first.ndim else 0
    if width == 0:
        raise InconsistentChunkWidthError("empty chunk", {"period": first_period})

    for period, arr in arrays:
        if arr.shape != (width,):
            raise InconsistentChunkWidthError(
                f"chunk width {arr.shape[0] if arr.ndim else 0} does not match {width}",
                {"first_period": first_period, "period": period},
            )

    # any float chunk makes the whole group a double series
    group_dtype = reduce(np.promote_types, (arr.dtype for _, arr in arrays))
    series_cls, dtype = _series_type(group_dtype, missing_value)
    chunks = [(period, arr.astype(dtype, copy=False)) for period, arr in arrays]

    missing_chunk = np.full(width, missing_value, dtype=dtype)
    dense = sparse_expander(
        missing_chunk, chunks, start=first_period, length=last_period - first_period + 1
    )
    matrix = np.vstack(dense)

    return [
        (pix_idx, series_cls(first_period, last_period, row))
        for pix_idx, row in enumerate(matrix.T)
    ]


def add_fires(a: FireTuple, b: FireTuple) -> FireTuple:
    return a + b


def merge_fire_tuples(tuples: Iterable[FireTuple]) -> FireTuple:
    """Field-wise sum of fire tuples; the zero tuple for no input."""
    return reduce(add_fires, tuples, ZERO_FIRE)


def running_fire_sum(start: int, values: Iterable[FireTuple]) -> FireSeries:
    """Cumulative fire counts beginning at period ``start``."""
    return FireSeries.from_values(start, list(accumulate(values, add_fires)))


def fire_series(
    tuples: Iterable[Tuple[int, FireTuple]],
    start: int,
    end: int,
) -> FireSeries:
    """
    Dense cumulative fire series over periods ``start`` through ``end``.

    Periods without detections contribute the zero tuple; detections
    outside the window are ignored. Each period should appear at most
    once (merge first with ``merge_fire_tuples``).
    """
    length = end - start + 1
    dense = sparse_expander(ZERO_FIRE, tuples, start=start, length=length)
    return running_fire_sum(start, dense)
