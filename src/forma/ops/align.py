"""Alignment of co-located series onto a common window.

Series for the same pixel arrive with independent start periods and
lengths. ``adjust`` truncates them all to their intersection;
``adjust_fires`` truncates a fire series to the configured estimation
window instead.
"""

from __future__ import annotations

from typing import Any, List, Sequence, Tuple

from forma.date_time import datetime_to_period
from forma.errors import NoOverlapError
from forma.schema import TimeSeries

__all__ = ["alignment_drops", "adjust", "adjust_fires"]


def alignment_drops(
    starts: Sequence[int], lengths: Sequence[int]
) -> Tuple[int, List[Tuple[int, int]]]:
    """
    New start and per-series (drop_bottom, drop_top) counts.

    ``drop_bottom`` elements come off the front of a series and
    ``drop_top`` off the back, leaving every series covering the same
    ``[new_start, min_end]`` periods.

    Raises
    ------
    NoOverlapError
        If no period is shared by every series.

    Examples
    --------
    >>> alignment_drops([5, 7], [4, 3])
    (7, [(2, 0), (0, 1)])
    """
    if not starts:
        raise ValueError("alignment requires at least one series")
    new_start = max(starts)
    distances = [s + n for s, n in zip(starts, lengths)]
    min_dist = min(distances)
    if min_dist - new_start <= 0:
        raise NoOverlapError(
            "series share no common period",
            {"starts": list(starts), "lengths": list(lengths)},
        )
    drops = [(new_start - s, d - min_dist) for s, d in zip(starts, distances)]
    return new_start, drops


def adjust(*pairs: Tuple[int, Sequence[Any]]) -> Tuple[int, List[Any]]:
    """
    Truncate ``(start, series)`` pairs to their common window.

    Series may be ``TimeSeries`` instances or plain sequences; each comes
    back as the same kind it went in.

    Examples
    --------
    >>> adjust((5, [1, 2, 3, 4]), (7, [10, 20, 30]))
    (7, [[3, 4], [10, 20]])
    """
    starts = [start for start, _ in pairs]
    seqs = [seq for _, seq in pairs]
    new_start, drops = alignment_drops(starts, [len(seq) for seq in seqs])

    out = []
    for (bottom, top), seq in zip(drops, seqs):
        if isinstance(seq, TimeSeries):
            out.append(seq.truncate(bottom, top))
        else:
            out.append(list(seq)[bottom:len(seq) - top])
    return new_start, out


def adjust_fires(config, f_start: int, f_series: Sequence[Any]) -> Tuple[int, Any]:
    """
    Truncate a fire series to the estimation window of ``config``.

    The window's calendar bounds are converted to periods at the job's
    temporal resolution.

    Raises
    ------
    NoOverlapError
        If the fire series does not cover the whole estimation window.
    """
    start, end = (
        datetime_to_period(config.t_res, d) for d in (config.est_start, config.est_end)
    )
    drop_bottom = start - f_start
    drop_top = (f_start + len(f_series) - 1) - end
    if drop_bottom < 0 or drop_top < 0 or end < start:
        raise NoOverlapError(
            "fire series does not cover the estimation window",
            {
                "est_window": (start, end),
                "fire_window": (f_start, f_start + len(f_series) - 1),
            },
        )
    if isinstance(f_series, TimeSeries):
        return start, f_series.truncate(drop_bottom, drop_top)
    return start, list(f_series)[drop_bottom:len(f_series) - drop_top]
