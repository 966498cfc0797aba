"""Calendar-day keys and habit recurrence for HabitBoard.

Day keys are ``YYYY-MM-DD`` strings in local time. Weekday indices follow
the Sunday = 0 convention used by habit ``custom_days``.
"""

from __future__ import annotations

import re
from datetime import date, datetime, timedelta, tzinfo
from typing import TYPE_CHECKING, Iterator

if TYPE_CHECKING:
    from habitboard.models import Habit


DAY_KEY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def now_local(tz: tzinfo | None = None) -> datetime:
    """Current aware datetime in *tz*, or in the system local zone."""
    if tz is None:
        return datetime.now().astimezone()
    return datetime.now(tz)


def day_key(d: date | datetime) -> str:
    if isinstance(d, datetime):
        d = d.date()
    return d.isoformat()


def parse_day(key: str) -> date:
    return date.fromisoformat(key)


def is_day_key(key: object) -> bool:
    if not isinstance(key, str) or not DAY_KEY_RE.match(key):
        return False
    try:
        date.fromisoformat(key)
    except ValueError:
        return False
    return True


def today(now: datetime | None = None) -> str:
    return day_key(now or now_local())


def yesterday(now: datetime | None = None) -> str:
    return day_key((now or now_local()).date() - timedelta(days=1))


def tomorrow(now: datetime | None = None) -> str:
    return day_key((now or now_local()).date() + timedelta(days=1))


def shift_day(key: str, days: int) -> str:
    return day_key(parse_day(key) + timedelta(days=days))


def weekday_index(d: date) -> int:
    """Weekday with Sunday = 0 ... Saturday = 6."""
    return (d.weekday() + 1) % 7


def day_range(start: str, end: str) -> Iterator[str]:
    """Yield day keys from *start* through *end* inclusive."""
    cur = parse_day(start)
    last = parse_day(end)
    while cur <= last:
        yield cur.isoformat()
        cur += timedelta(days=1)


def appears_on_date(habit: Habit, day: str | date) -> bool:
    """Whether *habit* recurs on *day*.

    Daily habits appear every day. Custom habits appear on the weekdays in
    ``custom_days``; an empty set never appears.
    """
    if habit.frequency == "daily":
        return True
    if habit.frequency == "custom":
        d = parse_day(day) if isinstance(day, str) else day
        return weekday_index(d) in set(habit.custom_days or [])
    return False
