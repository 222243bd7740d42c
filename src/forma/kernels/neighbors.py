"""Neighbor statistics over a dense window.

Vectorized counterpart of ``forma.ops.neighbors.combine_neighbors``: every
valid cell aggregates the valid cells within ``radius`` of it, clipped to
the window, itself excluded. Neighbors are visited in row-major order so
sums accumulate in the same order as the scalar version.
"""

from __future__ import annotations

import numpy as np
from numba import njit
from numpy.typing import NDArray

__all__ = ["neighbor_stats"]


@njit(cache=True)
def neighbor_stats(
    valid: NDArray[np.bool_],
    fires: NDArray[np.int64],
    drops: NDArray[np.float64],
    radius: int,
):
    """
    Aggregate neighbor values for every valid cell.

    Parameters
    ----------
    valid : (rows, cols)
        True where the cell holds a value
    fires : (4, rows, cols)
        Fire tuple fields (temp330, conf50, both_preds, count)
    drops : (3, rows, cols)
        Short drop, long drop and t-statistic
    radius : int
        Neighborhood half-width in cells

    Returns
    -------
    count : (rows, cols) int64
        Number of valid neighbors
    fire_sum : (4, rows, cols) int64
        Field-wise sum of neighbor fire tuples
    avg : (3, rows, cols) float64
        Mean of each drop field over valid neighbors, 0 when none
    mins : (3, rows, cols) float64
        Minimum of each drop field over valid neighbors, 0 when none
    """
    rows, cols = valid.shape
    count = np.zeros((rows, cols), dtype=np.int64)
    fire_sum = np.zeros((4, rows, cols), dtype=np.int64)
    avg = np.zeros((3, rows, cols), dtype=np.float64)
    mins = np.zeros((3, rows, cols), dtype=np.float64)

    for r in range(rows):
        for c in range(cols):
            if not valid[r, c]:
                continue
            n = 0
            sums = np.zeros(3, dtype=np.float64)
            lows = np.zeros(3, dtype=np.float64)
            r0 = max(0, r - radius)
            r1 = min(rows, r + radius + 1)
            c0 = max(0, c - radius)
            c1 = min(cols, c + radius + 1)
            for rr in range(r0, r1):
                for cc in range(c0, c1):
                    if rr == r and cc == c:
                        continue
                    if not valid[rr, cc]:
                        continue
                    for k in range(4):
                        fire_sum[k, r, c] += fires[k, rr, cc]
                    for k in range(3):
                        v = drops[k, rr, cc]
                        sums[k] += v
                        if n == 0 or v < lows[k]:
                            lows[k] = v
                    n += 1
            count[r, c] = n
            if n > 0:
                for k in range(3):
                    avg[k, r, c] = sums[k] / n
                    mins[k, r, c] = lows[k]

    return count, fire_sum, avg, mins
