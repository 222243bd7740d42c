"""
Shared pytest fixtures and builders for FORMA tests.

This module provides:
- A small job configuration with a 2x2 window over a three-period
  estimation window
- A deterministic trend detector stub
- Builders for chunk, static and fire records over one MODIS tile
"""

from typing import List, Sequence

import numpy as np
import pytest

from forma.config import FormaConfig
from forma.date_time import period_to_datetime
from forma.engine import LocalEngine
from forma.schema import ChunkLocation, DataChunk, FireObservation, FireTuple, PixelLocation, StaticChunk


# =============================================================================
# Grid Settings
# =============================================================================

S_RES = 500
TILE_H, TILE_V = 28, 8
TILESTRING = "028008"
CHUNK_SIZE = 4


# =============================================================================
# Configuration Fixtures
# =============================================================================

@pytest.fixture
def config() -> FormaConfig:
    """Monthly job estimating over 2006-01 through 2006-03 (periods 432-434)."""
    return FormaConfig(
        est_start="2006-01-01",
        est_end="2006-03-01",
        t_res="32",
        neighbors=1,
        window_dims=(2, 2),
        vcf_limit=25,
        long_block=1,
        window=1,
    )


@pytest.fixture
def engine() -> LocalEngine:
    return LocalEngine()


# =============================================================================
# Trend Detector Stub
# =============================================================================

class WindowSliceDetector:
    """
    Deterministic detector: the short drop is the series over the
    estimation window, the long drop is the covariate over it and the
    t-statistic is constant.
    """

    def compute(self, series, covariate, est_window, long_block, window):
        lo, hi = est_window
        n = hi - lo + 1
        return list(series[lo:hi + 1]), list(covariate[lo:hi + 1]), [1.0] * n


@pytest.fixture
def detector() -> WindowSliceDetector:
    return WindowSliceDetector()


# =============================================================================
# Record Builders
# =============================================================================

def chunk_location(chunk_id: int = 0) -> ChunkLocation:
    return ChunkLocation(S_RES, TILE_H, TILE_V, chunk_id, CHUNK_SIZE)


def pixel(sample: int, line: int = 0) -> PixelLocation:
    return PixelLocation(S_RES, TILE_H, TILE_V, sample, line)


def make_chunks(
    dataset: str, periods: Sequence[int], values_for, t_res: str = "32", chunk_id: int = 0
) -> List[DataChunk]:
    """One DataChunk per period; ``values_for(period)`` supplies the chunk values."""
    return [
        DataChunk(dataset, t_res, period_to_datetime(t_res, p), chunk_location(chunk_id), values_for(p))
        for p in periods
    ]


def static_chunk(dataset: str, values: Sequence, chunk_id: int = 0) -> StaticChunk:
    return StaticChunk(dataset, S_RES, TILESTRING, chunk_id, values)


def fire_obs(sample: int, date: str, fire: FireTuple, line: int = 0) -> FireObservation:
    return FireObservation(pixel(sample, line), date, fire)


@pytest.fixture
def ndvi_chunks() -> List[DataChunk]:
    """NDVI for periods 430-435; pixel p holds 100 * p + (period - 430)."""
    return make_chunks(
        "ndvi", range(430, 436), lambda p: [100 * pix + (p - 430) for pix in range(CHUNK_SIZE)]
    )


@pytest.fixture
def rain_chunks() -> List[DataChunk]:
    """Rain for periods 431-434; pixel p holds 50 + p."""
    return make_chunks("precl", range(431, 435), lambda p: [50 + pix for pix in range(CHUNK_SIZE)])


@pytest.fixture
def vcf_chunks() -> List[StaticChunk]:
    """Pixel 3 falls below the VCF limit."""
    return [static_chunk("vcf", [30, 30, 30, 10])]


@pytest.fixture
def country_chunks() -> List[StaticChunk]:
    return [static_chunk("gadm", [1, 1, 2, 2])]


@pytest.fixture
def fire_observations() -> List[FireObservation]:
    """Two detections at pixel 0 in 2006-02 and one outside the window."""
    return [
        fire_obs(0, "2006-02-10", FireTuple(1, 0, 0, 1)),
        fire_obs(0, "2006-02-20", FireTuple(0, 1, 1, 0)),
        fire_obs(0, "2004-06-01", FireTuple(5, 5, 5, 5)),
    ]


# =============================================================================
# Comparison Helpers
# =============================================================================

def assert_series(series, start: int, values, rtol: float = 1e-12) -> None:
    """Assert a TimeSeries spans ``start`` onwards with ``values``."""
    assert series.start == start
    assert series.end == start + len(values) - 1
    np.testing.assert_allclose(np.asarray(series.get_vals(), dtype=float), values, rtol=rtol)
