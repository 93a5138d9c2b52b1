"""
UTC datetime utilities for consistent timezone handling.

All datetime values in the system should be timezone-aware UTC.
Use these helpers instead of datetime.now() or datetime.utcnow().
"""

from datetime import UTC, datetime, timedelta


def utc_now() -> datetime:
    """Return the current UTC datetime with timezone info."""
    return datetime.now(UTC)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """
    Ensure a datetime is UTC-aware.

    - If None, returns None
    - If naive, assumes UTC and attaches timezone
    - If aware, converts to UTC

    Use at repository/persistence boundaries to normalize datetimes.
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        # Naive datetime - assume it's UTC and attach timezone
        return dt.replace(tzinfo=UTC)

    return dt.astimezone(UTC)


def deadline_after(seconds: float | None, start: datetime | None = None) -> datetime | None:
    """Return start + seconds (UTC), or None when no timeout is set."""
    if seconds is None:
        return None
    return (start or utc_now()) + timedelta(seconds=seconds)


def seconds_until(deadline: datetime, now: datetime | None = None) -> float:
    """Seconds from now until deadline; never negative."""
    remaining = (ensure_utc(deadline) - (now or utc_now())).total_seconds()
    return max(remaining, 0.0)
