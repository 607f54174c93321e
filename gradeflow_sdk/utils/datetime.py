"""Datetime helpers."""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def duration_ms(started_at: datetime, finished_at: datetime) -> int:
    """Whole milliseconds between two datetimes."""
    return int((finished_at - started_at).total_seconds() * 1000)
