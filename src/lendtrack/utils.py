"""Timestamp helpers.

Loan timestamps are stored as ISO-8601 strings in UTC, so comparing two
stored values as strings gives the same answer as comparing the datetimes.
"""

from datetime import date, datetime, time, timezone
from typing import Union


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def to_utc(value: Union[datetime, date]) -> datetime:
    """
    Normalize a date or datetime to an aware UTC datetime.

    Naive datetimes are taken to be UTC already. A bare date means
    midnight UTC at the start of that day.

    Example:
        >>> to_utc(date(2026, 1, 2)).isoformat()
        '2026-01-02T00:00:00+00:00'
    """
    if not isinstance(value, datetime):
        value = datetime.combine(value, time.min)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_utc_iso(value: Union[datetime, date]) -> str:
    """Format a date or datetime as a UTC ISO-8601 string for storage."""
    return to_utc(value).isoformat(timespec="seconds")


def parse_iso(value: str) -> datetime:
    """Parse a stored ISO-8601 timestamp back into an aware datetime."""
    return to_utc(datetime.fromisoformat(value))
