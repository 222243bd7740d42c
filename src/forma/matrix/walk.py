"""Neighborhood walks over row-major windows.

Neighbors of a cell are the cells within ``radius`` rows and columns,
excluding the cell itself. Cells that would fall outside the window are
clipped, so edge and corner cells see fewer neighbors.
"""

from __future__ import annotations

from typing import Any, Iterator, List, Sequence, Tuple

__all__ = ["neighbor_indices", "neighbor_scan"]


def neighbor_indices(radius: int, rows: int, cols: int, row: int, col: int) -> List[int]:
    """Row-major indices of the in-window neighbors of ``(row, col)``."""
    out = []
    for r in range(max(0, row - radius), min(rows, row + radius + 1)):
        for c in range(max(0, col - radius), min(cols, col + radius + 1)):
            if r == row and c == col:
                continue
            out.append(r * cols + c)
    return out


def neighbor_scan(
    radius: int, rows: int, cols: int, cells: Sequence[Any]
) -> Iterator[Tuple[int, Any, List[Any]]]:
    """
    Walk every cell of a row-major window.

    Yields ``(index, value, neighbor_values)`` for each cell in row-major
    order. Neighbor values are returned as stored, missing ones included;
    filtering is left to the caller.
    """
    if len(cells) != rows * cols:
        raise ValueError(f"expected {rows * cols} cells, got {len(cells)}")
    for idx, value in enumerate(cells):
        row, col = divmod(idx, cols)
        yield idx, value, [cells[i] for i in neighbor_indices(radius, rows, cols, row, col)]
