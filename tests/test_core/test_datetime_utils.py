"""Tests for datetime_utils."""

from datetime import UTC, date, datetime, timedelta, timezone

import pytest

from app.core.datetime_utils import days_from, parse_date, to_naive_utc, utc_now


class TestUtcNow:
    """Tests for utc_now."""

    def test_is_naive(self):
        assert utc_now().tzinfo is None

    def test_close_to_real_utc(self):
        """Should match the aware UTC clock within a few seconds."""
        aware = datetime.now(UTC).replace(tzinfo=None)
        assert abs(utc_now() - aware) < timedelta(seconds=5)


class TestToNaiveUtc:
    """Tests for to_naive_utc."""

    def test_naive_passthrough(self):
        """Naive datetimes are assumed to be UTC already."""
        dt = datetime(2024, 3, 6, 9, 0)
        assert to_naive_utc(dt) == dt

    def test_aware_converted(self):
        """Aware datetimes are shifted to UTC and stripped."""
        paris = timezone(timedelta(hours=1))
        result = to_naive_utc(datetime(2024, 3, 6, 10, 0, tzinfo=paris))
        assert result == datetime(2024, 3, 6, 9, 0)
        assert result.tzinfo is None


class TestDaysFrom:
    """Tests for days_from."""

    def test_forward_and_back(self):
        now = datetime(2024, 2, 28, 23, 30)
        assert days_from(now, 1) == date(2024, 2, 29)
        assert days_from(now, 2) == date(2024, 3, 1)
        assert days_from(now, -28) == date(2024, 1, 31)
        assert days_from(now, 0) == date(2024, 2, 28)


class TestParseDate:
    """Tests for parse_date."""

    def test_iso_date(self):
        assert parse_date("2024-03-01") == date(2024, 3, 1)
        assert parse_date("  2024-03-01 ") == date(2024, 3, 1)

    def test_iso_timestamp(self):
        """Timestamps keep only their calendar date."""
        assert parse_date("2024-03-01T14:00:00") == date(2024, 3, 1)
        assert parse_date("2024-03-01T14:00:00Z") == date(2024, 3, 1)

    def test_date_objects(self):
        assert parse_date(date(2024, 3, 1)) == date(2024, 3, 1)
        assert parse_date(datetime(2024, 3, 1, 8, 0)) == date(2024, 3, 1)

    def test_invalid(self):
        """Garbage and non-strings raise ValueError."""
        with pytest.raises(ValueError):
            parse_date("next tuesday")
        with pytest.raises(ValueError):
            parse_date("2024-02-30")
        with pytest.raises(ValueError):
            parse_date(20240301)
        with pytest.raises(ValueError):
            parse_date(None)
