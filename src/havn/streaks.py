"""Streak statistics for havn."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, timedelta, tzinfo

from havn.days import DayLike, day_key


@dataclass
class StreakStats:
    current: int
    best: int
    last_entry_day: date | None

    def to_dict(self) -> dict:
        return {
            "current": self.current,
            "best": self.best,
            "last_entry_day": self.last_entry_day.isoformat() if self.last_entry_day else None,
        }


def get_streak_from_day(days: Iterable[DayLike], reference: DayLike) -> int:
    """Count consecutive days backwards from reference.

    Returns 0 when reference itself has no entry.
    """
    day_set = {day_key(d) for d in days}
    current = day_key(reference)

    streak = 0
    while current in day_set:
        streak += 1
        current -= timedelta(days=1)

    return streak


def compute_streak(
    days: Iterable[DayLike], now: datetime | date, tz: tzinfo | None = None
) -> StreakStats:
    """Calculate current and best streak from the days that have an entry.

    Rules:
    - Best = longest run of days one calendar day apart
    - Current = run ending today, or ending yesterday if today has no entry yet
    - A streak only breaks once a full calendar day is skipped
    """
    sorted_days = sorted({day_key(d, tz) for d in days})
    if not sorted_days:
        return StreakStats(current=0, best=0, last_entry_day=None)

    best = 1
    run = 1
    for prev, cur in zip(sorted_days, sorted_days[1:]):
        if (cur - prev).days == 1:
            run += 1
            best = max(best, run)
        else:
            run = 1

    today = day_key(now, tz)
    day_set = set(sorted_days)
    if today in day_set:
        current = get_streak_from_day(day_set, today)
    else:
        # Yesterday's streak survives until today is over
        yesterday = today - timedelta(days=1)
        current = get_streak_from_day(day_set, yesterday)

    return StreakStats(current=current, best=best, last_entry_day=sorted_days[-1])
