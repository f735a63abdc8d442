"""UTC helpers shared by the streak, ranking and issue services."""

from __future__ import annotations

from datetime import datetime, timezone


def utcnow() -> datetime:
    """Timezone-aware current time in UTC."""
    return datetime.now(timezone.utc)


def as_utc(dt: datetime) -> datetime:
    """Attach UTC to naive datetimes (SQLite drops tzinfo on read)."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def start_of_month(now: datetime) -> datetime:
    """First instant of the calendar month containing now, in UTC."""
    now = as_utc(now)
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
