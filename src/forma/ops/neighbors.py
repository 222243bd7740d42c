"""Neighbor aggregation over spatial windows.

For each pixel holding a value, the values of the pixels within ``radius``
rows and columns are combined into a ``NeighborStats``: fire tuples are
summed, and the short drop, long drop and t-statistic are averaged and
minimized. Neighbors outside the window are clipped, missing neighbors are
skipped, and a pixel with no neighbors gets the all-zero stats.
"""

from __future__ import annotations

from typing import Iterable, Iterator, Optional, Tuple

import numpy as np

from forma.kernels.neighbors import neighbor_stats
from forma.schema import ZERO_FIRE, ZERO_NEIGHBORS, FireTuple, FormaValue, NeighborStats, Window

__all__ = ["combine_neighbors", "process_neighbors", "window_arrays"]


def combine_neighbors(values: Iterable[Optional[FormaValue]]) -> NeighborStats:
    """
    Combine neighbor values into a single ``NeighborStats``.

    ``None`` entries are ignored. An absent fire tuple counts as zero.

    >>> combine_neighbors([]) == NeighborStats()
    True
    """
    fire = ZERO_FIRE
    sums = [0.0, 0.0, 0.0]
    mins = None
    n = 0
    for val in values:
        if val is None:
            continue
        fire = fire + val.fire_or_zero
        fields = (val.short_drop, val.long_drop, val.t_stat)
        sums = [s + f for s, f in zip(sums, fields)]
        mins = list(fields) if mins is None else [min(m, f) for m, f in zip(mins, fields)]
        n += 1

    if n == 0:
        return ZERO_NEIGHBORS

    avg_short, avg_long, avg_stat = (s / n for s in sums)
    min_short, min_long, min_stat = mins
    return NeighborStats(
        fire_sum=fire,
        neighbor_count=n,
        avg_short_drop=avg_short,
        min_short_drop=min_short,
        avg_long_drop=avg_long,
        min_long_drop=min_long,
        avg_t_stat=avg_stat,
        min_t_stat=min_stat,
    )


def window_arrays(window: Window) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Dense ``(valid, fires, drops)`` arrays for the neighbor kernel."""
    rows, cols = window.dims
    valid = np.zeros((rows, cols), dtype=np.bool_)
    fires = np.zeros((4, rows, cols), dtype=np.int64)
    drops = np.zeros((3, rows, cols), dtype=np.float64)
    for idx, val in enumerate(window.cells):
        if val is None:
            continue
        r, c = divmod(idx, cols)
        valid[r, c] = True
        fires[:, r, c] = val.fire_or_zero.fields()
        drops[:, r, c] = (val.short_drop, val.long_drop, val.t_stat)
    return valid, fires, drops


def process_neighbors(
    window: Window, radius: int
) -> Iterator[Tuple[int, FormaValue, NeighborStats]]:
    """
    Scan a window, yielding ``(index, value, stats)`` for each valued cell.

    ``index`` is the cell's row-major position in the window, suitable for
    ``forma.modis.pixel_position``.
    """
    valid, fires, drops = window_arrays(window)
    count, fire_sum, avg, mins = neighbor_stats(valid, fires, drops, int(radius))
    cols = window.cols
    for idx, val in enumerate(window.cells):
        if val is None:
            continue
        r, c = divmod(idx, cols)
        n = int(count[r, c])
        if n == 0:
            yield idx, val, ZERO_NEIGHBORS
            continue
        yield idx, val, NeighborStats(
            fire_sum=FireTuple(*(int(x) for x in fire_sum[:, r, c])),
            neighbor_count=n,
            avg_short_drop=float(avg[0, r, c]),
            min_short_drop=float(mins[0, r, c]),
            avg_long_drop=float(avg[1, r, c]),
            min_long_drop=float(mins[1, r, c]),
            avg_t_stat=float(avg[2, r, c]),
            min_t_stat=float(mins[2, r, c]),
        )
