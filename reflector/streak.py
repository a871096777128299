"""
Streak Calculator

Derives daily-practice streaks from activity timestamps rather than
from a stored running counter, so the result is a pure function of the
history.

  current  = length of the run of consecutive activity days ending on
             the latest activity day, provided that day is `as_of` or
             the day before (a streak is still alive until a full day
             is missed); otherwise 0
  longest  = length of the longest run anywhere in the history
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable, Optional

STREAK_MILESTONES: tuple[int, ...] = (7, 21, 60, 100)


@dataclass(frozen=True)
class StreakData:
    current: int = 0
    longest: int = 0
    last_activity: Optional[date] = None

    def reached(self, days: int) -> bool:
        """True once the longest streak has ever reached `days`."""
        return self.longest >= days

    @property
    def milestones(self) -> dict[int, bool]:
        return {days: self.reached(days) for days in STREAK_MILESTONES}


def _as_date(value) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return None


def compute_streak(activity: Iterable, as_of: Optional[date] = None) -> StreakData:
    """
    Compute current and longest streaks.

    Args:
        activity: dates or datetimes of activity; None and other values
                  are ignored, several on the same day count once.
        as_of: the day to evaluate the current streak against. Defaults
               to the latest activity day.
    """
    days = sorted({d for d in (_as_date(a) for a in activity) if d is not None})
    if not days:
        return StreakData()

    longest = run = 1
    for prev, day in zip(days, days[1:]):
        run = run + 1 if day - prev == timedelta(days=1) else 1
        longest = max(longest, run)

    last = days[-1]
    as_of = _as_date(as_of) or last
    current = 0
    if timedelta(0) <= as_of - last <= timedelta(days=1):
        current = 1
        for prev, day in zip(reversed(days[:-1]), reversed(days)):
            if day - prev != timedelta(days=1):
                break
            current += 1

    return StreakData(current=current, longest=longest, last_activity=last)
