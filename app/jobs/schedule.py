"""
Next-run computation for recurring jobs.

Keywords:
    hourly  -> next top of the hour
    daily   -> tomorrow at 06:00
    weekly  -> next Monday at 06:00 (a full week ahead when today is Monday)

Anything else (including cron strings) falls back to now + 1 day.
"""

from datetime import datetime, timedelta

RUN_HOUR = 6

SCHEDULE_KEYWORDS = ("hourly", "daily", "weekly")


def compute_next_run(schedule: str, now: datetime) -> datetime:
    """Return the next run time strictly after `now`."""
    keyword = (schedule or "").strip().lower()

    if keyword == "hourly":
        return now.replace(minute=0, second=0, microsecond=0) + timedelta(hours=1)

    if keyword == "daily":
        tomorrow = now + timedelta(days=1)
        return tomorrow.replace(hour=RUN_HOUR, minute=0, second=0, microsecond=0)

    if keyword == "weekly":
        days_until_monday = (7 - now.weekday()) % 7 or 7
        monday = now + timedelta(days=days_until_monday)
        return monday.replace(hour=RUN_HOUR, minute=0, second=0, microsecond=0)

    return now + timedelta(days=1)
