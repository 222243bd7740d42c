"""Value types for FORMA data.

Defines plain immutable containers for:
- FireTuple: additive fire-detection counts
- FormaValue / NeighborStats: per-pixel outputs of the trend and neighbor stages
- IntSeries / DoubleSeries / FireSeries: the closed set of time-series variants
- Window: a dense spatial window of per-pixel values
- Input records: DataChunk, StaticChunk, SeriesRecord, FireObservation

Numeric series hold read-only numpy arrays. The int/double distinction is
resolved once, when raw values enter the system, by ``make_series``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Optional, Sequence, Tuple, Union

import numpy as np

if TYPE_CHECKING:
    from numpy.typing import NDArray

__all__ = [
    "FireTuple",
    "ZERO_FIRE",
    "FormaValue",
    "NeighborStats",
    "ZERO_NEIGHBORS",
    "TimeSeries",
    "IntSeries",
    "DoubleSeries",
    "FireSeries",
    "make_series",
    "Window",
    "PixelLocation",
    "ChunkLocation",
    "DataChunk",
    "StaticChunk",
    "SeriesRecord",
    "FireObservation",
]


@dataclass(frozen=True)
class FireTuple:
    """Fire detection counts for one pixel and period.

    Forms a commutative monoid under field-wise addition with the all-zero
    tuple as identity.
    """

    temp330: int = 0
    conf50: int = 0
    both_preds: int = 0
    count: int = 0

    def __add__(self, other: "FireTuple") -> "FireTuple":
        if not isinstance(other, FireTuple):
            return NotImplemented
        return FireTuple(
            self.temp330 + other.temp330,
            self.conf50 + other.conf50,
            self.both_preds + other.both_preds,
            self.count + other.count,
        )

    def fields(self) -> Tuple[int, int, int, int]:
        return (self.temp330, self.conf50, self.both_preds, self.count)


ZERO_FIRE = FireTuple()


@dataclass(frozen=True)
class FormaValue:
    """Trend outputs for one pixel and period. ``fire`` may be absent."""

    fire: Optional[FireTuple]
    short_drop: float
    long_drop: float
    t_stat: float

    @property
    def fire_or_zero(self) -> FireTuple:
        return self.fire if self.fire is not None else ZERO_FIRE

    def unpack(self) -> Tuple[Optional[FireTuple], float, float, float]:
        return (self.fire, self.short_drop, self.long_drop, self.t_stat)


@dataclass(frozen=True)
class NeighborStats:
    """Aggregate of a pixel's spatial neighbors."""

    fire_sum: FireTuple = ZERO_FIRE
    neighbor_count: int = 0
    avg_short_drop: float = 0.0
    min_short_drop: float = 0.0
    avg_long_drop: float = 0.0
    min_long_drop: float = 0.0
    avg_t_stat: float = 0.0
    min_t_stat: float = 0.0


ZERO_NEIGHBORS = NeighborStats()


def _frozen_array(values, dtype) -> NDArray:
    arr = np.array(values, dtype=dtype)
    arr.setflags(write=False)
    return arr


@dataclass(frozen=True)
class TimeSeries:
    """Dense series covering periods ``start`` through ``end`` inclusive."""

    start: int
    end: int
    values: Any

    def __post_init__(self):
        if self.end - self.start + 1 != len(self.values):
            raise ValueError(
                f"series [{self.start}, {self.end}] does not match {len(self.values)} values"
            )

    def __len__(self) -> int:
        return len(self.values)

    def __eq__(self, other) -> bool:
        if type(self) is not type(other):
            return NotImplemented
        return (
            self.start == other.start
            and self.end == other.end
            and len(self.values) == len(other.values)
            and all(a == b for a, b in zip(self.values, other.values))
        )

    def get_vals(self) -> list:
        return list(self.values)

    def truncate(self, drop_front: int, drop_back: int) -> "TimeSeries":
        """New series with elements dropped from either end."""
        stop = len(self.values) - drop_back
        return self.__class__.from_values(self.start + drop_front, self.values[drop_front:stop])

    @classmethod
    def from_values(cls, start: int, values) -> "TimeSeries":
        return cls(start, start + len(values) - 1, values)


@dataclass(frozen=True, eq=False)
class IntSeries(TimeSeries):
    def __post_init__(self):
        object.__setattr__(self, "values", _frozen_array(self.values, np.int64))
        super().__post_init__()


@dataclass(frozen=True, eq=False)
class DoubleSeries(TimeSeries):
    def __post_init__(self):
        object.__setattr__(self, "values", _frozen_array(self.values, np.float64))
        super().__post_init__()


@dataclass(frozen=True, eq=False)
class FireSeries(TimeSeries):
    def __post_init__(self):
        object.__setattr__(self, "values", tuple(self.values))
        super().__post_init__()


def make_series(start: int, values: Union[Sequence, NDArray]) -> TimeSeries:
    """Resolve raw values into the matching series variant.

    FireTuple sequences become FireSeries, integer data IntSeries, and any
    other numeric data DoubleSeries.
    """
    if isinstance(values, np.ndarray):
        kind = values.dtype.kind
    else:
        values = list(values)
        if values and all(isinstance(v, FireTuple) for v in values):
            return FireSeries.from_values(start, values)
        kind = np.asarray(values).dtype.kind if values else "f"
    if kind in ("i", "u", "b"):
        return IntSeries.from_values(start, values)
    if kind == "f":
        return DoubleSeries.from_values(start, values)
    raise TypeError(f"cannot build a numeric series from dtype kind {kind!r}")


@dataclass(frozen=True)
class Window:
    """Dense rectangular window of per-pixel values within one tile.

    ``cells`` is row-major with ``len(cells) == rows * cols``.
    """

    tile_h: int
    tile_v: int
    win_col: int
    win_row: int
    dims: Tuple[int, int]
    cells: Tuple[Any, ...]
    period: Optional[int] = None

    def __post_init__(self):
        object.__setattr__(self, "dims", tuple(self.dims))
        object.__setattr__(self, "cells", tuple(self.cells))
        rows, cols = self.dims
        if len(self.cells) != rows * cols:
            raise ValueError(f"window of dims {self.dims} holds {len(self.cells)} cells")

    @property
    def rows(self) -> int:
        return self.dims[0]

    @property
    def cols(self) -> int:
        return self.dims[1]


@dataclass(frozen=True)
class PixelLocation:
    """Global pixel position on the MODIS grid."""

    s_res: int
    tile_h: int
    tile_v: int
    sample: int
    line: int


@dataclass(frozen=True)
class ChunkLocation:
    """Position of a chunk of pixels within a MODIS tile."""

    s_res: int
    tile_h: int
    tile_v: int
    chunk_id: int
    chunk_size: int


@dataclass(frozen=True)
class DataChunk:
    """One period of raw values for a chunk of pixels."""

    dataset: str
    t_res: str
    date: str
    location: ChunkLocation
    values: Tuple[Any, ...] = field(default=())

    def __post_init__(self):
        object.__setattr__(self, "values", tuple(self.values))


@dataclass(frozen=True)
class StaticChunk:
    """Time-invariant values (VCF, country code) for a chunk of pixels."""

    dataset: str
    s_res: int
    tilestring: str
    chunk_id: int
    values: Tuple[Any, ...] = field(default=())

    def __post_init__(self):
        object.__setattr__(self, "values", tuple(self.values))


@dataclass(frozen=True)
class SeriesRecord:
    """A reconstructed per-pixel series for one dataset."""

    dataset: str
    t_res: str
    location: PixelLocation
    series: TimeSeries

    @property
    def start(self) -> int:
        return self.series.start

    @property
    def end(self) -> int:
        return self.series.end


@dataclass(frozen=True)
class FireObservation:
    """Fire detections observed at one pixel on one date."""

    location: PixelLocation
    date: str
    fire: FireTuple
