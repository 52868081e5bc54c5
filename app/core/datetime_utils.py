"""Centralized datetime utilities for consistent timezone handling.

All functions return naive datetimes for database compatibility (SQLAlchemy
models use naive UTC). Scheduler and job code never reads the clock directly:
callers take a `now` argument and fall back to `utc_now()` only at the edge
(HTTP handler, CLI, in-process tick).

Usage:
    from app.core.datetime_utils import utc_now, parse_date

    now = utc_now()
    due = parse_date("2024-03-01")
"""

from datetime import UTC, date, datetime, timedelta


def utc_now() -> datetime:
    """Get current UTC time as naive datetime.

    Returns naive datetime for database compatibility.
    Replaces deprecated datetime.utcnow().
    """
    return datetime.now(UTC).replace(tzinfo=None)


def to_naive_utc(dt: datetime) -> datetime:
    """Convert a datetime to naive UTC.

    Args:
        dt: Datetime to convert (can be aware or naive)

    Returns:
        Naive UTC datetime for database compatibility
    """
    if dt.tzinfo is None:
        # Already naive, assume it's UTC
        return dt
    # Convert to UTC and strip timezone
    return dt.astimezone(UTC).replace(tzinfo=None)


def days_from(now: datetime, days: int) -> date:
    """Calendar date `days` days after `now` (negative values go back)."""
    return (now + timedelta(days=days)).date()


def parse_date(value: object) -> date:
    """Parse an ISO date (or datetime) string into a date.

    Accepts `date`/`datetime` instances unchanged and strings such as
    "2024-03-01" or "2024-03-01T14:00:00Z".

    Raises:
        ValueError: If the value cannot be interpreted as a date
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Expected an ISO date string, got {type(value).__name__}")

    text = value.strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    # Full timestamps: fromisoformat handles "Z" from Python 3.11
    return datetime.fromisoformat(text).date()
