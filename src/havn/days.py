"""Calendar-day helpers for havn.

Every entry is grouped by its logical day key: the local calendar date the
entry belongs to. These helpers turn the different shapes a day can arrive in
(date, naive or aware datetime, ISO string) into a single ``date`` value.
"""

from __future__ import annotations

from collections.abc import Iterator
from datetime import date, datetime, time, timedelta, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

DayLike = date | datetime | str


def resolve_timezone(name: str | None) -> tzinfo | None:
    """Return a ZoneInfo for an IANA name, or None for the local zone.

    Raises ValueError for unknown zone names.
    """
    if not name:
        return None
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown timezone: {name}") from exc


def parse_day(d: str) -> date:
    """Parse a YYYY-MM-DD string to a date object."""
    return date.fromisoformat(d.strip())


def format_day(d: date) -> str:
    """Format a date as YYYY-MM-DD."""
    return d.isoformat()


def day_key(value: DayLike, tz: tzinfo | None = None) -> date:
    """Truncate a day-like value to its local calendar date.

    - date: returned unchanged
    - aware datetime: converted to ``tz`` (local zone if None), then truncated
    - naive datetime: already local, truncated
    - str: parsed as ISO date or timestamp
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(tz)
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        value = value.strip()
        if len(value) == 10:
            return date.fromisoformat(value)
        return day_key(datetime.fromisoformat(value), tz)
    raise ValueError(f"Not a day value: {value!r}")


def start_of_day(value: DayLike, tz: tzinfo | None = None) -> datetime:
    """Return the aware datetime of local midnight for the value's day."""
    d = day_key(value, tz)
    if tz is None:
        return datetime.combine(d, time.min).astimezone()
    return datetime.combine(d, time.min, tzinfo=tz)


def next_day(value: DayLike, tz: tzinfo | None = None) -> date:
    """The calendar day after the value's day."""
    return day_key(value, tz) + timedelta(days=1)


def previous_day(value: DayLike, tz: tzinfo | None = None) -> date:
    """The calendar day before the value's day."""
    return day_key(value, tz) - timedelta(days=1)


def day_range(start: date, end: date) -> Iterator[date]:
    """Yield every day from start to end inclusive."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def window(days: int, now: datetime, tz: tzinfo | None = None) -> tuple[date, date]:
    """Return the inclusive (start, end) day range covering the last ``days`` days."""
    end = day_key(now, tz)
    return end - timedelta(days=max(days, 1) - 1), end
