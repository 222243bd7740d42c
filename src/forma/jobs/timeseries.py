"""Jobs that build per-pixel time series from raw chunks and fire detections."""

from __future__ import annotations

from typing import Iterable, Iterator, Optional

from forma.date_time import TemporalResolver, datetime_to_period
from forma.engine import DistributedEngine, LocalEngine
from forma.logging import get_logger
from forma.modis import chunkloc_to_pixloc
from forma.ops.timeseries import add_fires, fire_series, timeseries
from forma.schema import ZERO_FIRE, DataChunk, FireObservation, SeriesRecord

__all__ = ["extract_tseries", "fire_query"]

logger = get_logger("timeseries")


def extract_tseries(
    chunks: Iterable[DataChunk],
    missing_value,
    engine: Optional[DistributedEngine] = None,
) -> Iterator[SeriesRecord]:
    """
    Reconstruct per-pixel series from dated chunks.

    Chunks are grouped by dataset, temporal resolution and chunk location,
    sorted by period, and transposed into one ``SeriesRecord`` per pixel.
    A group whose chunks disagree in width is dropped and recorded as a
    failure on the engine.
    """
    engine = engine or LocalEngine()
    keyed = (
        ((c.dataset, c.t_res, c.location), datetime_to_period(c.t_res, c.date), c)
        for c in chunks
    )
    groups = engine.group_sorted(keyed, key=lambda r: r[0], sort_key=lambda r: r[1])

    def reconstruct(key, items):
        dataset, t_res, location = key
        pairs = [(period, chunk.values) for _, period, chunk in items]
        logger.debug(
            "reconstruct_group",
            dataset=dataset,
            chunk_id=location.chunk_id,
            periods=len(pairs),
        )
        for pix_idx, series in timeseries(pairs, missing_value):
            yield SeriesRecord(dataset, t_res, chunkloc_to_pixloc(location, pix_idx), series)

    yield from engine.run_per_key("timeseries", groups, reconstruct)


def fire_query(
    observations: Iterable[FireObservation],
    t_res: str,
    start: str,
    end: str,
    engine: Optional[DistributedEngine] = None,
) -> Iterator[SeriesRecord]:
    """
    Cumulative fire series per pixel over ``[start, end]``.

    Detections are summed per pixel and period, expanded into a dense
    zero-filled series over the date range and accumulated.
    """
    engine = engine or LocalEngine()
    resolver = TemporalResolver(t_res)
    start_p, end_p = resolver.date_to_period(start), resolver.date_to_period(end)

    in_range = (
        (obs, period)
        for obs in observations
        for period in (resolver.date_to_period(obs.date),)
        if start_p <= period <= end_p
    )
    merged = engine.aggregate(
        in_range,
        key=lambda r: (r[0].location, r[1]),
        value=lambda r: r[0].fire,
        combine=add_fires,
        initial=ZERO_FIRE,
    )
    groups = engine.group_sorted(merged, key=lambda kv: kv[0][0], sort_key=lambda kv: kv[0][1])

    def to_series(location, items):
        pairs = [(period, fire) for (_, period), fire in items]
        yield SeriesRecord("fire", t_res, location, fire_series(pairs, start_p, end_p))

    yield from engine.run_per_key("fire_series", groups, to_series)
