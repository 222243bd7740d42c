"""Tests for forma.date_time period conversion."""

import pandas as pd
import pytest

from forma.date_time import (
    TemporalResolver,
    beginning,
    datetime_to_period,
    per_year,
    period_to_datetime,
    relative_period,
)


class TestPeriods:
    """Tests for date <-> period conversion."""

    def test_monthly_period(self):
        assert datetime_to_period("32", "2005-12-01") == 431
        assert datetime_to_period("32", "2005-12-31") == 431
        assert datetime_to_period("32", "1970-01-15") == 0

    def test_sixteen_day_period(self):
        assert period_to_datetime("16", 827) == "2005-12-19"
        assert datetime_to_period("16", "2005-12-19") == 827
        assert datetime_to_period("16", "2005-12-31") == 827

    def test_eight_day_year_boundary(self):
        """The last 8-day block of a year is short; the next year restarts at day one."""
        assert datetime_to_period("8", "2001-12-31") == 31 * 46 + 45
        assert datetime_to_period("8", "2002-01-01") == 32 * 46

    def test_accepts_timestamps(self):
        assert datetime_to_period("32", pd.Timestamp("2006-02-14")) == 433

    @pytest.mark.parametrize("t_res", ["8", "16", "32"])
    def test_round_trip_at_period_start(self, t_res):
        for period in (0, 100, per_year(t_res) * 36 + 3):
            assert datetime_to_period(t_res, period_to_datetime(t_res, period)) == period

    def test_beginning(self):
        assert beginning("32", "2006-02-14") == "2006-02-01"
        assert beginning("16", "2005-12-25") == "2005-12-19"

    def test_relative_period(self):
        assert relative_period("32", 431, ["2006-01-01", "2006-03-01"]) == [1, 3]

    def test_unknown_resolution(self):
        with pytest.raises(ValueError):
            datetime_to_period("7", "2005-01-01")


class TestTemporalResolver:
    """Tests for TemporalResolver."""

    def test_bound_conversions(self):
        resolver = TemporalResolver("32")
        assert resolver.date_to_period("2005-12-01") == 431
        assert resolver.period_to_date(431) == "2005-12-01"
        assert resolver.beginning("2005-12-09") == "2005-12-01"
        assert resolver.relative(430, ["2005-12-01"]) == [1]

    def test_resolution_normalized(self):
        assert TemporalResolver(16).t_res == "16"

    def test_unknown_resolution(self):
        with pytest.raises(ValueError):
            TemporalResolver("30")
