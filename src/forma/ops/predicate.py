"""Sparse vectors, spatial windowing and tuple indexing.

The windowing operators turn a stream of per-pixel values into dense,
fixed-size windows. Each spatial dimension is folded in turn: its
coordinate splits into ``(window_index, offset)`` and the offsets of one
group are expanded into a dense vector whose missing entries are empty
structures of the dimensions already folded. Tiles that are not an exact
multiple of the window size therefore still produce full-size windows,
padded with the empty value.
"""

from __future__ import annotations

import itertools
from typing import Any, Hashable, Iterable, Iterator, List, Optional, Sequence, Tuple, Union

from forma.engine import DistributedEngine, LocalEngine
from forma.matrix.utils import matrix_of, sparse_expander
from forma.schema import Window

__all__ = [
    "vals_to_sparsevec",
    "sparse_windower",
    "partition_windows",
    "flatten_window",
    "struct_index",
]

WindowRow = Tuple[Hashable, Tuple[int, ...], Any]


def vals_to_sparsevec(
    pairs: Iterable[Tuple[int, Any]],
    length: int,
    empty: Any,
    start: int = 0,
) -> Iterator[Tuple[int, List[Any]]]:
    """
    Split ``(idx, val)`` pairs into dense vectors of ``length``.

    Each index is offset by ``start`` and then split into
    ``(split_idx, sub_idx) = divmod(idx - start, length)``. One vector is
    produced per split that holds at least one value, in ascending split
    order; positions without a value hold ``empty``.

    >>> list(vals_to_sparsevec([(0, "a"), (5, "b")], 3, None))
    [(0, ['a', None, None]), (1, [None, None, 'b'])]
    """
    splits: dict = {}
    for idx, val in pairs:
        split_idx, sub_idx = divmod(idx - start, length)
        splits.setdefault(split_idx, []).append((sub_idx, val))
    for split_idx in sorted(splits):
        yield split_idx, sparse_expander(empty, splits[split_idx], start=0, length=length)


def _broadcast_dims(dims: Union[int, Sequence[int]], ndim: int) -> List[int]:
    if isinstance(dims, int):
        return [dims] * ndim
    dims = list(dims)
    if not dims:
        raise ValueError("window dims must not be empty")
    # short dim lists repeat their last extent
    return [dims[i] if i < len(dims) else dims[-1] for i in range(ndim)]


def sparse_windower(
    rows: Iterable[WindowRow],
    dims: Union[int, Sequence[int]],
    empty_fill: Any = None,
    engine: Optional[DistributedEngine] = None,
) -> Iterator[Tuple[Hashable, Tuple[int, ...], Any]]:
    """
    Aggregate per-pixel values into dense multidimensional windows.

    Parameters
    ----------
    rows : iterable of (keys, coords, value)
        ``keys`` is any hashable grouping key (tile, period, ...);
        ``coords`` holds one coordinate per spatial dimension.
    dims : int or sequence of int
        Window extent per dimension, in the order of ``coords``. A scalar
        applies to every dimension.
    empty_fill : Any
        Value for window positions with no pixel.
    engine : DistributedEngine, optional
        Supplies the grouped, coordinate-sorted buffers for each fold.

    Yields
    ------
    (keys, window_indices, window)
        ``window_indices`` follows the order of ``coords``. ``window`` is
        nested lists, outermost axis being the last coordinate, so for
        ``coords = (col, row)`` it is indexed ``window[row][col]``.
    """
    engine = engine or LocalEngine()
    rows = iter(rows)
    first = next(rows, None)
    if first is None:
        return
    ndim = len(first[1])
    extents = _broadcast_dims(dims, ndim)

    # (keys, window indices so far, unfolded coords, value)
    stage: Iterable = (
        (keys, (), tuple(coords), value)
        for keys, coords, value in itertools.chain([first], rows)
    )
    for d, length in enumerate(extents):
        fill = matrix_of(empty_fill, list(reversed(extents[:d])))
        stage = _fold_dimension(engine, stage, length, fill)

    for keys, win_idx, _, window in stage:
        yield keys, win_idx, window


def _fold_dimension(
    engine: DistributedEngine, stage: Iterable, length: int, fill: Any
) -> Iterator[Tuple[Hashable, Tuple[int, ...], Tuple[int, ...], Any]]:
    groups = engine.group_sorted(
        stage,
        key=lambda r: (r[0], r[1], r[2][1:]),
        sort_key=lambda r: r[2][0],
    )
    for (keys, win_idx, rest), items in groups:
        pairs = ((coords[0], value) for _, _, coords, value in items)
        for split_idx, vec in vals_to_sparsevec(pairs, length, fill):
            yield keys, win_idx + (split_idx,), rest, vec


def flatten_window(nested: Any, ndim: int) -> List[Any]:
    """Row-major flattening of an ``ndim``-deep nested window."""
    flat = nested
    for _ in range(ndim - 1):
        flat = [cell for sub in flat for cell in sub]
    return list(flat)


def partition_windows(
    records: Iterable[Tuple[int, int, int, int, Any, Any]],
    window_dims: Sequence[int],
    empty_fill: Any = None,
    engine: Optional[DistributedEngine] = None,
) -> Iterator[Window]:
    """
    Window a tile's ``(tile_h, tile_v, sample, line, period, value)`` records.

    ``window_dims`` is ``(rows, cols)``. Yields one ``Window`` per tile,
    period and window coordinate that holds at least one record.
    """
    rows, cols = window_dims
    window_rows = (
        ((h, v, period), (sample, line), value)
        for h, v, sample, line, period, value in records
    )
    for (h, v, period), (win_col, win_row), nested in sparse_windower(
        window_rows, [cols, rows], empty_fill, engine=engine
    ):
        yield Window(
            tile_h=h,
            tile_v=v,
            win_col=win_col,
            win_row=win_row,
            dims=(rows, cols),
            cells=flatten_window(nested, 2),
            period=period,
        )


def struct_index(idx_0: int, values: Iterable[Any]) -> Iterator[Tuple[int, Any]]:
    """Pair each value with its index, counting from ``idx_0``."""
    for idx, val in enumerate(values):
        yield idx + idx_0, val

