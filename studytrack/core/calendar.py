"""
UTC calendar-day helpers.

Two timestamps belong to the same study day iff their normalized values are
equal. Naive datetimes (SQLite hands them back that way) are read as UTC.
"""
from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone

ONE_DAY = timedelta(days=1)


def utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


def as_utc(ts: datetime) -> datetime:
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def normalize_day(ts: datetime) -> datetime:
    """Return the UTC midnight that starts the calendar day containing `ts`."""
    return datetime.combine(as_utc(ts).date(), time.min, tzinfo=timezone.utc)


def utc_date(ts: datetime) -> date:
    return as_utc(ts).date()


def same_study_day(a: datetime, b: datetime) -> bool:
    return normalize_day(a) == normalize_day(b)


def day_distance(later: datetime, earlier: datetime) -> int:
    """
    Whole days between two normalized dates (floor of elapsed time / 24h).
    Negative when `later` is actually earlier.
    """
    return (normalize_day(later) - normalize_day(earlier)) // ONE_DAY
