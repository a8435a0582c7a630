"""Period cutoff and timestamp comparison tests.

Tests for:
- period_cutoff: today / week (Sunday start) / month / unknown fallback
- parse_timestamp: datetime passthrough, ISO strings, "Z" suffix, garbage
- occurred_since: boundary, naive vs aware handling, missing values
"""
from datetime import datetime, timedelta, timezone

import pytest

from sales.models import Period
from sales.periods import occurred_since, parse_timestamp, period_cutoff


class TestPeriodCutoff:
    """Test period_cutoff()."""

    def test_today_is_midnight(self, now):
        assert period_cutoff("today", now) == datetime(2024, 5, 15)

    def test_week_from_wednesday_is_previous_sunday(self, now):
        # 2024-05-15 is a Wednesday
        assert now.weekday() == 2
        cutoff = period_cutoff(Period.WEEK, now)
        assert cutoff == datetime(2024, 5, 12)
        assert cutoff.weekday() == 6

    def test_week_on_sunday_is_same_day(self):
        sunday = datetime(2024, 5, 12, 9, 30)
        assert period_cutoff("week", sunday) == datetime(2024, 5, 12)

    def test_week_on_saturday_goes_back_six_days(self):
        saturday = datetime(2024, 5, 18, 23, 59)
        assert period_cutoff("week", saturday) == datetime(2024, 5, 12)

    def test_week_crosses_month_boundary(self):
        # Wednesday 2024-05-01, previous Sunday is 2024-04-28
        assert period_cutoff("week", datetime(2024, 5, 1, 8)) == datetime(2024, 4, 28)

    def test_month_is_first_day(self, now):
        assert period_cutoff("month", now) == datetime(2024, 5, 1)

    @pytest.mark.parametrize("period", ["year", "", None, "TODAY"])
    def test_unknown_period_falls_back_to_today(self, now, period):
        assert period_cutoff(period, now) == datetime(2024, 5, 15)

    def test_cutoff_keeps_timezone(self):
        tz = timezone(timedelta(hours=-5))
        now = datetime(2024, 5, 15, 14, 0, tzinfo=tz)
        cutoff = period_cutoff("today", now)
        assert cutoff.tzinfo is tz
        assert cutoff == datetime(2024, 5, 15, tzinfo=tz)


class TestParseTimestamp:
    """Test parse_timestamp()."""

    def test_datetime_passthrough(self, now):
        assert parse_timestamp(now) is now

    def test_iso_string(self):
        assert parse_timestamp("2024-05-15T10:30:00") == datetime(2024, 5, 15, 10, 30)

    def test_z_suffix(self):
        parsed = parse_timestamp("2024-05-15T10:30:00Z")
        assert parsed == datetime(2024, 5, 15, 10, 30, tzinfo=timezone.utc)

    def test_garbage_returns_none(self):
        assert parse_timestamp("not a date") is None

    def test_none_returns_none(self):
        assert parse_timestamp(None) is None

    def test_other_types_return_none(self):
        assert parse_timestamp(12345) is None


class TestOccurredSince:
    """Test occurred_since()."""

    def test_exactly_at_cutoff_is_included(self):
        cutoff = datetime(2024, 5, 15)
        assert occurred_since(cutoff, cutoff) is True

    def test_one_second_before_cutoff_is_excluded(self):
        cutoff = datetime(2024, 5, 15)
        assert occurred_since(cutoff - timedelta(seconds=1), cutoff) is False

    def test_compares_by_value_not_by_day(self):
        cutoff = datetime(2024, 5, 15, 12, 0)
        assert occurred_since(datetime(2024, 5, 15, 11, 59), cutoff) is False
        assert occurred_since(datetime(2024, 5, 15, 12, 1), cutoff) is True

    def test_missing_timestamp_is_excluded(self):
        assert occurred_since(None, datetime(2024, 5, 15)) is False

    def test_unparseable_string_is_excluded(self):
        assert occurred_since("yesterday", datetime(2024, 5, 15)) is False

    def test_iso_string_value(self):
        assert occurred_since("2024-05-15T08:00:00", datetime(2024, 5, 15)) is True

    def test_naive_value_against_aware_cutoff(self):
        tz = timezone(timedelta(hours=2))
        cutoff = datetime(2024, 5, 15, tzinfo=tz)
        assert occurred_since(datetime(2024, 5, 15, 0, 30), cutoff) is True
        assert occurred_since(datetime(2024, 5, 14, 23, 30), cutoff) is False

    def test_aware_values_compare_across_zones(self):
        cutoff = datetime(2024, 5, 15, tzinfo=timezone.utc)
        # 2024-05-14 22:00 at UTC-3 is 2024-05-15 01:00 UTC
        value = datetime(2024, 5, 14, 22, 0, tzinfo=timezone(timedelta(hours=-3)))
        assert occurred_since(value, cutoff) is True
