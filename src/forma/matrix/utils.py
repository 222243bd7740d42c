"""Sparse expansion and index arithmetic."""

from __future__ import annotations

import copy
from typing import Any, Iterable, List, Optional, Sequence, Tuple, Union

__all__ = ["sparse_expander", "matrix_of", "idx_to_rowcol", "rowcol_to_idx"]


def sparse_expander(
    missing_value: Any,
    entries: Iterable[Tuple[int, Any]],
    start: int = 0,
    length: Optional[int] = None,
) -> List[Any]:
    """
    Fill sparse ``(index, value)`` pairs into a dense list.

    Position ``i - start`` of the output holds the value at index ``i``;
    every uncovered position holds ``missing_value``. Entries need not be
    sorted. Repeated indices keep the last value seen, and entries falling
    outside ``[start, start + length)`` are ignored.

    Parameters
    ----------
    missing_value : Any
        Fill for uncovered positions. Mutable fills are copied per position.
    entries : iterable of (int, Any)
        Sparse index/value pairs.
    start : int
        Index mapped to output position zero.
    length : int, optional
        Output length. Defaults to ``max(index) - start + 1``; supply it
        to pad past the last observed index.

    Returns
    -------
    list
        Dense values in ascending index order.

    Examples
    --------
    >>> sparse_expander(0, [(2, 5), (4, 7)], start=1, length=5)
    [0, 5, 0, 7, 0]
    """
    filled = {}
    for idx, value in entries:
        filled[int(idx) - start] = value

    if length is None:
        length = max(filled) + 1 if filled else 0

    if isinstance(missing_value, (list, dict)):
        out = [copy.deepcopy(missing_value) for _ in range(length)]
    else:
        out = [missing_value] * length

    for pos, value in filled.items():
        if 0 <= pos < length:
            out[pos] = value
    return out


def matrix_of(value: Any, dims: Union[int, Sequence[int]]) -> Any:
    """
    Nested lists filled with ``value``.

    ``dims`` lists extents from the outermost axis inwards; an empty
    ``dims`` returns ``value`` itself.

    >>> matrix_of(None, [2, 3])
    [[None, None, None], [None, None, None]]
    """
    if isinstance(dims, int):
        dims = [dims]
    out = value
    for extent in reversed(list(dims)):
        out = [copy.deepcopy(out) for _ in range(extent)]
    return out


def idx_to_rowcol(num_cols: int, idx: int) -> Tuple[int, int]:
    """Row-major decomposition of a flat index into ``(row, col)``."""
    return divmod(idx, num_cols)


def rowcol_to_idx(num_cols: int, row: int, col: int) -> int:
    return row * num_cols + col
