"""MODIS sinusoidal grid helpers.

Covers the position arithmetic between chunks, tiles and windows:
- pixels_at_res: pixels along one tile edge at a spatial resolution
- tile strings ("HHHVVV") <-> (h, v)
- tile_position: chunk-relative pixel index -> (sample, line)
- pixel_position: window-relative index -> global (sample, line)
"""

from __future__ import annotations

from typing import Iterable, Iterator, Tuple

from forma.matrix.utils import idx_to_rowcol
from forma.schema import ChunkLocation, PixelLocation

__all__ = [
    "PIXELS_AT_RES",
    "pixels_at_res",
    "tilestring_to_hv",
    "hv_to_tilestring",
    "tile_position",
    "chunkloc_to_pixloc",
    "pixel_position",
    "pixel_generator",
]

# pixels along one edge of a 10-degree MODIS tile
PIXELS_AT_RES = {
    250: 4800,
    500: 2400,
    1000: 1200,
}


def pixels_at_res(s_res) -> int:
    try:
        return PIXELS_AT_RES[int(s_res)]
    except KeyError:
        raise ValueError(
            f"Unknown spatial resolution {s_res!r}; expected one of {sorted(PIXELS_AT_RES)}"
        ) from None


def tilestring_to_hv(tilestring: str) -> Tuple[int, int]:
    """Split a tile string into its horizontal and vertical indices.

    >>> tilestring_to_hv("008006")
    (8, 6)
    """
    if len(tilestring) != 6 or not tilestring.isdigit():
        raise ValueError(f"malformed tile string {tilestring!r}")
    return int(tilestring[:3]), int(tilestring[3:])


def hv_to_tilestring(h: int, v: int) -> str:
    return f"{h:03d}{v:03d}"


def tile_position(s_res, chunk_size: int, chunk_id: int, pix_idx: int) -> Tuple[int, int]:
    """(sample, line) of the ``pix_idx``-th pixel of chunk ``chunk_id``.

    Chunks tile the flattened, row-major pixel grid of a tile.
    """
    edge = pixels_at_res(s_res)
    line, sample = idx_to_rowcol(edge, chunk_id * chunk_size + pix_idx)
    if line >= edge:
        raise ValueError(
            f"chunk {chunk_id} pixel {pix_idx} lies outside a {edge}x{edge} tile"
        )
    return sample, line


def chunkloc_to_pixloc(location: ChunkLocation, pix_idx: int) -> PixelLocation:
    sample, line = tile_position(
        location.s_res, location.chunk_size, location.chunk_id, pix_idx
    )
    return PixelLocation(location.s_res, location.tile_h, location.tile_v, sample, line)


def pixel_position(
    num_cols: int, num_rows: int, win_col: int, win_row: int, idx: int
) -> Tuple[int, int]:
    """Global (sample, line) of a cell inside window (win_col, win_row).

    ``idx`` is row-major within a window of ``num_rows`` x ``num_cols``.

    >>> pixel_position(3, 2, 1, 2, 4)
    (4, 5)
    """
    row, col = idx_to_rowcol(num_cols, idx)
    return col + num_cols * win_col, row + num_rows * win_row


def pixel_generator(s_res, tiles: Iterable[Tuple[int, int]]) -> Iterator[Tuple[int, int, int, int]]:
    """Every (h, v, sample, line) combination for the supplied tiles."""
    edge = pixels_at_res(s_res)
    for h, v in tiles:
        for sample in range(edge):
            for line in range(edge):
                yield h, v, sample, line
