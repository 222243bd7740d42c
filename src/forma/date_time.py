"""Conversion between calendar dates and MODIS temporal periods.

A period is an integer index of a fixed-length interval counted from the
1970-01-01 epoch. Monthly data ("32") uses calendar months; 16- and 8-day
data split each year into blocks of day-of-year, so the last block of a
year is short and the next year restarts at day one.

    >>> datetime_to_period("32", "2005-12-01")
    431
    >>> period_to_datetime("16", 827)
    '2005-12-19'
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Iterable, List, Union

import pandas as pd

__all__ = [
    "EPOCH_YEAR",
    "PERIODS_PER_YEAR",
    "per_year",
    "datetime_to_period",
    "period_to_datetime",
    "beginning",
    "relative_period",
    "TemporalResolver",
]

EPOCH_YEAR = 1970

PERIODS_PER_YEAR = {
    "32": 12,
    "16": 23,
    "8": 46,
}

DateLike = Union[str, date, pd.Timestamp]


def _check_res(t_res: str) -> str:
    t_res = str(t_res)
    if t_res not in PERIODS_PER_YEAR:
        raise ValueError(
            f"Unknown temporal resolution {t_res!r}; expected one of {sorted(PERIODS_PER_YEAR)}"
        )
    return t_res


def per_year(t_res: str) -> int:
    """Number of periods in one calendar year at the supplied resolution."""
    return PERIODS_PER_YEAR[_check_res(t_res)]


def datetime_to_period(t_res: str, dt: DateLike) -> int:
    """Period index containing the supplied date."""
    t_res = _check_res(t_res)
    ts = pd.Timestamp(dt)
    if t_res == "32":
        within = ts.month - 1
    else:
        within = (ts.dayofyear - 1) // int(t_res)
    return (ts.year - EPOCH_YEAR) * PERIODS_PER_YEAR[t_res] + within


def period_to_datetime(t_res: str, period: int) -> str:
    """First day of the supplied period, formatted as YYYY-MM-DD."""
    t_res = _check_res(t_res)
    year_offset, within = divmod(int(period), PERIODS_PER_YEAR[t_res])
    year = EPOCH_YEAR + year_offset
    if t_res == "32":
        first = date(year, within + 1, 1)
    else:
        first = date(year, 1, 1) + timedelta(days=within * int(t_res))
    return first.isoformat()


def beginning(t_res: str, dt: DateLike) -> str:
    """Date string for the start of the period containing ``dt``."""
    return period_to_datetime(t_res, datetime_to_period(t_res, dt))


def relative_period(t_res: str, start_period: int, dates: Iterable[DateLike]) -> List[int]:
    """Periods of ``dates`` measured from ``start_period``."""
    return [datetime_to_period(t_res, d) - start_period for d in dates]


class TemporalResolver:
    """Temporal-resolution collaborator bound to one ``t_res``.

    Operators that only ever work at the job's resolution take a resolver
    instead of threading the resolution string through every call.
    """

    def __init__(self, t_res: str):
        self.t_res = _check_res(t_res)

    def date_to_period(self, dt: DateLike) -> int:
        return datetime_to_period(self.t_res, dt)

    def period_to_date(self, period: int) -> str:
        return period_to_datetime(self.t_res, period)

    def beginning(self, dt: DateLike) -> str:
        return beginning(self.t_res, dt)

    def relative(self, start_period: int, dates: Iterable[DateLike]) -> List[int]:
        return relative_period(self.t_res, start_period, dates)

    def __repr__(self) -> str:
        return f"TemporalResolver(t_res={self.t_res!r})"
