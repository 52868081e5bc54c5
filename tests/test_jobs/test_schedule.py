"""Tests for next-run computation."""

from datetime import datetime

import pytest

from app.jobs.schedule import compute_next_run


class TestComputeNextRun:
    """Tests for compute_next_run."""

    def test_daily_is_next_morning(self):
        """Daily jobs fire at 06:00 the following day."""
        assert compute_next_run("daily", datetime(2024, 3, 1, 14, 0)) == datetime(2024, 3, 2, 6, 0)

    def test_daily_before_six_still_tomorrow(self):
        """Even before 06:00, daily moves to the next day."""
        assert compute_next_run("daily", datetime(2024, 3, 1, 2, 0)) == datetime(2024, 3, 2, 6, 0)

    def test_daily_across_month_end(self):
        """Month and year boundaries roll over."""
        assert compute_next_run("daily", datetime(2024, 12, 31, 23, 59)) == datetime(2025, 1, 1, 6, 0)

    def test_weekly_midweek_goes_to_next_monday(self):
        """A Wednesday run schedules the following Monday."""
        wednesday = datetime(2024, 3, 6, 9, 30)
        assert compute_next_run("weekly", wednesday) == datetime(2024, 3, 11, 6, 0)

    def test_weekly_sunday_is_next_day(self):
        """Sunday's next Monday is one day away."""
        assert compute_next_run("weekly", datetime(2024, 3, 10, 20, 0)) == datetime(2024, 3, 11, 6, 0)

    def test_weekly_monday_is_a_week_later(self):
        """A run on Monday waits a full week, never zero days."""
        monday = datetime(2024, 3, 4, 5, 0)
        assert compute_next_run("weekly", monday) == datetime(2024, 3, 11, 6, 0)

    def test_hourly_is_next_top_of_hour(self):
        """Hourly jobs fire on the next whole hour."""
        assert compute_next_run("hourly", datetime(2024, 3, 1, 14, 37, 12)) == datetime(2024, 3, 1, 15, 0)
        assert compute_next_run("hourly", datetime(2024, 3, 1, 23, 5)) == datetime(2024, 3, 2, 0, 0)

    def test_hourly_on_the_hour_still_advances(self):
        """Exactly on the hour, the next run is an hour later."""
        assert compute_next_run("hourly", datetime(2024, 3, 1, 14, 0)) == datetime(2024, 3, 1, 15, 0)

    @pytest.mark.parametrize("schedule", ["0 6 * * *", "monthly", ""])
    def test_unrecognized_falls_back_to_one_day(self, schedule):
        """Cron strings and unknown keywords run again in 24 hours."""
        now = datetime(2024, 3, 1, 14, 37)
        assert compute_next_run(schedule, now) == datetime(2024, 3, 2, 14, 37)

    def test_keywords_case_insensitive(self):
        """Keywords match regardless of case and whitespace."""
        assert compute_next_run(" Daily ", datetime(2024, 3, 1, 14, 0)) == datetime(2024, 3, 2, 6, 0)

    @pytest.mark.parametrize("schedule", ["hourly", "daily", "weekly", "cron"])
    def test_always_after_now(self, schedule):
        """The next run is strictly in the future."""
        now = datetime(2024, 3, 4, 6, 0)
        assert compute_next_run(schedule, now) > now
