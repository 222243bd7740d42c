"""
The FORMA query.

Joins per-pixel NDVI, rain, fire and static (VCF, country) data, runs the
trend detector over each pixel, windows the per-period results, adds
neighbor statistics and renders one text line per pixel and period.

Pipeline:
    static_tap      static chunks -> (pixel, value)
    dynamic_filter  NDVI x rain x VCF -> aligned series for forested pixels
    dynamic_tap     aligned series -> trend series over the estimation window
    fire_tap        fire series -> fire series over the estimation window
    forma_tap       trends + fires -> (pixel, period, FormaValue)
    forma_query     windows + neighbors + country -> FormaRow
"""

from __future__ import annotations

from typing import Any, Iterable, Iterator, NamedTuple, Optional, Sequence

from forma.config import FORMA_DEFAULTS, FormaConfig
from forma.date_time import period_to_datetime
from forma.engine import DistributedEngine, LocalEngine
from forma.logging import get_logger
from forma.modis import pixel_position, tile_position, tilestring_to_hv
from forma.ops.align import adjust, adjust_fires
from forma.ops.neighbors import process_neighbors
from forma.ops.predicate import partition_windows, struct_index
from forma.ops.trends import TrendDetector, as_detector, dynamic_trends, forma_schema
from forma.schema import FormaValue, NeighborStats, PixelLocation, SeriesRecord, StaticChunk, TimeSeries

__all__ = [
    "FORMA_DEFAULTS",
    "DynamicPixel",
    "TrendPixel",
    "FirePixel",
    "FormaPixel",
    "FormaRow",
    "static_tap",
    "dynamic_filter",
    "dynamic_tap",
    "fire_tap",
    "forma_tap",
    "forma_query",
    "textify",
]

logger = get_logger("forma")


class DynamicPixel(NamedTuple):
    t_res: str
    location: PixelLocation
    start: int
    ndvi: TimeSeries
    precl: TimeSeries


class TrendPixel(NamedTuple):
    t_res: str
    location: PixelLocation
    start: int
    short_drop: TimeSeries
    long_drop: TimeSeries
    t_stat: TimeSeries


class FirePixel(NamedTuple):
    t_res: str
    location: PixelLocation
    start: int
    fire: TimeSeries


class FormaPixel(NamedTuple):
    t_res: str
    location: PixelLocation
    period: int
    value: FormaValue


class FormaRow(NamedTuple):
    """One line of FORMA output, partitioned by resolution, country and date."""

    s_res: int
    t_res: str
    country: Any
    datestring: str
    text: str


def static_tap(chunks: Iterable[StaticChunk]) -> Iterator[tuple]:
    """``(PixelLocation, value)`` for every pixel of the static chunks."""
    for chunk in chunks:
        h, v = tilestring_to_hv(chunk.tilestring)
        chunk_size = len(chunk.values)
        for pix_idx, val in struct_index(0, chunk.values):
            sample, line = tile_position(chunk.s_res, chunk_size, chunk.chunk_id, pix_idx)
            yield PixelLocation(chunk.s_res, h, v, sample, line), val


def dynamic_filter(
    vcf_limit,
    ndvi_src: Iterable[SeriesRecord],
    rain_src: Iterable[SeriesRecord],
    vcf_src: Iterable[StaticChunk],
    engine: Optional[DistributedEngine] = None,
) -> Iterator[DynamicPixel]:
    """
    Aligned NDVI and rain series for pixels with tree cover of at least
    ``vcf_limit``.

    Pixels whose NDVI and rain series share no period are dropped and
    recorded as failures on the engine.
    """
    engine = engine or LocalEngine()
    forested = (
        ndvi
        for ndvi, (_, vcf) in engine.join(
            ndvi_src, static_tap(vcf_src),
            left_key=lambda r: r.location,
            right_key=lambda p: p[0],
        )
        if vcf >= vcf_limit
    )
    pairs = engine.join(
        forested, rain_src,
        left_key=lambda r: (r.t_res, r.location),
        right_key=lambda r: (r.t_res, r.location),
    )
    groups = engine.group_sorted(pairs, key=lambda p: (p[0].t_res, p[0].location))

    def align(key, items):
        t_res, location = key
        for ndvi, rain in items:
            start, (precl, ndvi_series) = adjust(
                (rain.start, rain.series), (ndvi.start, ndvi.series)
            )
            yield DynamicPixel(t_res, location, start, ndvi_series, precl)

    yield from engine.run_per_key("dynamic_filter", groups, align)


def dynamic_tap(
    config: FormaConfig,
    dynamic_src: Iterable[DynamicPixel],
    detector: TrendDetector,
    engine: Optional[DistributedEngine] = None,
) -> Iterator[TrendPixel]:
    """Trend series over the estimation window for each aligned pixel."""
    engine = engine or LocalEngine()
    detector = as_detector(detector)
    groups = engine.group_sorted(dynamic_src, key=lambda p: (p.t_res, p.location))

    def trends(key, items):
        t_res, location = key
        for pix in items:
            est_start, short, long_, t_stat = dynamic_trends(
                config, pix.start, pix.ndvi, pix.precl, detector
            )
            yield TrendPixel(t_res, location, est_start, short, long_, t_stat)

    yield from engine.run_per_key("dynamic_trends", groups, trends)


def fire_tap(
    config: FormaConfig,
    fire_src: Iterable[SeriesRecord],
    engine: Optional[DistributedEngine] = None,
) -> Iterator[FirePixel]:
    """Fire series truncated to the estimation window."""
    engine = engine or LocalEngine()
    groups = engine.group_sorted(fire_src, key=lambda r: (r.t_res, r.location))

    def truncate(key, items):
        t_res, location = key
        for rec in items:
            start, series = adjust_fires(config, rec.start, rec.series)
            yield FirePixel(t_res, location, start, series)

    yield from engine.run_per_key("adjust_fires", groups, truncate)


def forma_tap(
    config: FormaConfig,
    ndvi_src: Iterable[SeriesRecord],
    rain_src: Iterable[SeriesRecord],
    vcf_src: Iterable[StaticChunk],
    fire_src: Iterable[SeriesRecord],
    detector: TrendDetector,
    engine: Optional[DistributedEngine] = None,
) -> Iterator[FormaPixel]:
    """
    Per-period ``FormaValue``s for every forested pixel.

    Pixels without a fire series still appear, with no fire tuple.
    """
    engine = engine or LocalEngine()
    dynamic = dynamic_filter(config.vcf_limit, ndvi_src, rain_src, vcf_src, engine)
    trends = dynamic_tap(config, dynamic, detector, engine)
    fires = fire_tap(config, fire_src, engine)

    for trend, fire in engine.left_join(
        trends, fires,
        left_key=lambda p: (p.t_res, p.location, p.start),
        right_key=lambda p: (p.t_res, p.location, p.start),
    ):
        values = forma_schema(
            fire.fire if fire is not None else None,
            trend.short_drop, trend.long_drop, trend.t_stat,
        )
        for period, val in struct_index(trend.start, values):
            yield FormaPixel(trend.t_res, trend.location, period, val)


def textify(
    mod_h: int, mod_v: int, sample: int, line: int, val: FormaValue, neighbor_vals: NeighborStats
) -> str:
    """
    Space-separated output line for one pixel.

    Fields: tile h, tile v, sample, line, the pixel's fire tuple, short
    drop, long drop, t-statistic, the neighbors' summed fire tuple,
    neighbor count, then average and minimum of each neighbor drop and
    t-statistic.

    >>> from forma.schema import FireTuple, ZERO_NEIGHBORS
    >>> textify(28, 8, 10, 20, FormaValue(FireTuple(1, 1, 1, 1), 2.0, 3.0, 4.0), ZERO_NEIGHBORS)
    '28 8 10 20 1 1 1 1 2.0 3.0 4.0 0 0 0 0 0 0.0 0.0 0.0 0.0 0.0 0.0'
    """
    fire, short, long_, t_stat = val.unpack()
    fire = val.fire_or_zero if fire is None else fire
    fields: Sequence[Any] = (
        mod_h, mod_v, sample, line,
        *fire.fields(), short, long_, t_stat,
        *neighbor_vals.fire_sum.fields(),
        neighbor_vals.neighbor_count,
        neighbor_vals.avg_short_drop, neighbor_vals.min_short_drop,
        neighbor_vals.avg_long_drop, neighbor_vals.min_long_drop,
        neighbor_vals.avg_t_stat, neighbor_vals.min_t_stat,
    )
    return " ".join(str(f) for f in fields)


def forma_query(
    config: FormaConfig,
    ndvi_src: Iterable[SeriesRecord],
    rain_src: Iterable[SeriesRecord],
    vcf_src: Iterable[StaticChunk],
    country_src: Iterable[StaticChunk],
    fire_src: Iterable[SeriesRecord],
    detector: TrendDetector,
    engine: Optional[DistributedEngine] = None,
) -> Iterator[FormaRow]:
    """
    Run the full FORMA query.

    Per-period values are windowed by ``config.window_dims``; each valued
    cell gets neighbor statistics within ``config.neighbors`` pixels and is
    emitted with its country code. Pixels with no country are dropped.
    """
    engine = engine or LocalEngine()
    log = logger.bind(t_res=config.t_res, window_dims=config.window_dims)
    country = dict(static_tap(country_src))
    log.info("forma_query_started", country_pixels=len(country))

    pixels = forma_tap(config, ndvi_src, rain_src, vcf_src, fire_src, detector, engine)
    by_res = engine.group_sorted(pixels, key=lambda p: (p.location.s_res, p.t_res))

    n_rows = 0
    for (s_res, t_res), items in by_res:
        records = (
            (p.location.tile_h, p.location.tile_v, p.location.sample, p.location.line,
             p.period, p.value)
            for p in items
        )
        for window in partition_windows(records, config.window_dims, None, engine):
            datestring = period_to_datetime(t_res, window.period)
            for idx, val, stats in process_neighbors(window, config.neighbors):
                sample, line = pixel_position(
                    config.cols, config.rows, window.win_col, window.win_row, idx
                )
                loc = PixelLocation(s_res, window.tile_h, window.tile_v, sample, line)
                code = country.get(loc)
                if code is None:
                    continue
                n_rows += 1
                yield FormaRow(
                    s_res, t_res, code, datestring,
                    textify(window.tile_h, window.tile_v, sample, line, val, stats),
                )

    log.info(
        "forma_query_finished",
        rows=n_rows,
        keys_failed=engine.progress.keys_failed,
    )
