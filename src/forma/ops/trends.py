"""Shells around the external trend detector.

The statistical model is a collaborator: it takes a pixel's aligned
vegetation series, a covariate (precipitation) series and the estimation
window as indices into them, and returns the short drop, long drop and
t-statistic series over that window. The shells here only convert the
calendar window into indices, call the detector, and package the results.
"""

from __future__ import annotations

from typing import Any, Callable, Optional, Protocol, Sequence, Tuple, runtime_checkable

from forma.date_time import datetime_to_period, relative_period
from forma.errors import NoOverlapError
from forma.schema import FormaValue, TimeSeries, make_series

__all__ = ["TrendDetector", "FunctionDetector", "as_detector", "dynamic_trends", "forma_schema"]


@runtime_checkable
class TrendDetector(Protocol):
    """Pure function over aligned series returning trend outputs."""

    def compute(
        self,
        series: Sequence[float],
        covariate: Sequence[float],
        est_window: Tuple[int, int],
        long_block: int,
        window: int,
    ) -> Tuple[Sequence[float], Sequence[float], Sequence[float]]:
        ...


class FunctionDetector:
    """Adapts a plain function with the ``compute`` signature."""

    def __init__(self, fn: Callable[..., Tuple[Sequence[float], Sequence[float], Sequence[float]]]):
        self.fn = fn

    def compute(self, series, covariate, est_window, long_block, window):
        return self.fn(series, covariate, est_window, long_block, window)


def as_detector(obj: Any) -> TrendDetector:
    if isinstance(obj, TrendDetector):
        return obj
    if callable(obj):
        return FunctionDetector(obj)
    raise TypeError(f"{obj!r} is neither a TrendDetector nor callable")


def dynamic_trends(
    config,
    start: int,
    ndvi: Sequence[float],
    precl: Sequence[float],
    detector: TrendDetector,
) -> Tuple[int, TimeSeries, TimeSeries, TimeSeries]:
    """
    Run the detector over the estimation window of aligned series.

    Returns the estimation start period and the short drop, long drop and
    t-statistic series, each starting at that period.

    Raises
    ------
    NoOverlapError
        If the series do not reach the estimation window.
    """
    est_start = datetime_to_period(config.t_res, config.est_start)
    lo, hi = relative_period(config.t_res, start, [config.est_start, config.est_end])
    if lo < 0 or hi >= len(ndvi):
        raise NoOverlapError(
            "series do not cover the estimation window",
            {"series_start": start, "length": len(ndvi), "est_window": (lo, hi)},
        )
    ndvi_vals = _vals(ndvi)
    precl_vals = _vals(precl)
    short, long_, t_stat = detector.compute(
        ndvi_vals, precl_vals, (lo, hi), config.long_block, config.window
    )
    return (
        est_start,
        make_series(est_start, [float(x) for x in short]),
        make_series(est_start, [float(x) for x in long_]),
        make_series(est_start, [float(x) for x in t_stat]),
    )


def forma_schema(
    fire: Optional[Sequence[Any]],
    short: Sequence[float],
    long_: Sequence[float],
    t_stat: Sequence[float],
) -> list:
    """
    Zip per-period series into ``FormaValue``s.

    A missing fire series yields values with no fire tuple. The result is
    as long as the shortest series supplied.
    """
    short, long_, t_stat = (_vals(s) for s in (short, long_, t_stat))
    n = min(len(short), len(long_), len(t_stat))
    fires = _vals(fire)[:n] if fire is not None else [None] * n
    n = min(n, len(fires))
    return [
        FormaValue(fires[i], float(short[i]), float(long_[i]), float(t_stat[i]))
        for i in range(n)
    ]


def _vals(series) -> list:
    return series.get_vals() if isinstance(series, TimeSeries) else list(series)
