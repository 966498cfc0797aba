"""Tests for habitboard/dates.py — day keys and recurrence."""

from datetime import date, datetime
from zoneinfo import ZoneInfo

from habitboard.dates import (
    appears_on_date,
    day_range,
    is_day_key,
    shift_day,
    today,
    tomorrow,
    weekday_index,
    yesterday,
)
from habitboard.models import Habit


def test_relative_days():
    now = datetime(2026, 2, 11, 9, 0, tzinfo=ZoneInfo("UTC"))
    assert today(now) == "2026-02-11"
    assert yesterday(now) == "2026-02-10"
    assert tomorrow(now) == "2026-02-12"


def test_relative_days_across_month_and_year():
    assert yesterday(datetime(2026, 3, 1, 12, 0)) == "2026-02-28"
    assert tomorrow(datetime(2026, 12, 31, 12, 0)) == "2027-01-01"


def test_today_uses_local_calendar_not_utc():
    # 23:30 in Los Angeles is already the next day in UTC.
    now = datetime(2026, 2, 11, 23, 30, tzinfo=ZoneInfo("America/Los_Angeles"))
    assert now.astimezone(ZoneInfo("UTC")).date().isoformat() == "2026-02-12"
    assert today(now) == "2026-02-11"


def test_weekday_index_sunday_is_zero():
    assert weekday_index(date(2026, 2, 8)) == 0  # Sunday
    assert weekday_index(date(2026, 2, 11)) == 3  # Wednesday
    assert weekday_index(date(2026, 2, 14)) == 6  # Saturday


def test_appears_on_date_daily():
    habit = Habit(frequency="daily")
    assert all(appears_on_date(habit, d) for d in day_range("2026-02-08", "2026-02-14"))


def test_appears_on_date_custom():
    habit = Habit(frequency="custom", custom_days=[1, 3, 5])  # Mon, Wed, Fri
    hits = [d for d in day_range("2026-02-08", "2026-02-14") if appears_on_date(habit, d)]
    assert hits == ["2026-02-09", "2026-02-11", "2026-02-13"]


def test_appears_on_date_custom_empty_set_never():
    habit = Habit(frequency="custom", custom_days=[])
    assert not any(appears_on_date(habit, d) for d in day_range("2026-02-08", "2026-02-14"))


def test_appears_on_date_accepts_date_objects():
    habit = Habit(frequency="custom", custom_days=[0])
    assert appears_on_date(habit, date(2026, 2, 8)) is True
    assert appears_on_date(habit, date(2026, 2, 9)) is False


def test_day_range_inclusive_and_empty():
    assert list(day_range("2026-02-27", "2026-03-02")) == [
        "2026-02-27", "2026-02-28", "2026-03-01", "2026-03-02",
    ]
    assert list(day_range("2026-02-12", "2026-02-11")) == []


def test_shift_day():
    assert shift_day("2026-02-28", 1) == "2026-03-01"
    assert shift_day("2026-01-01", -1) == "2025-12-31"


def test_is_day_key():
    assert is_day_key("2026-02-11")
    assert not is_day_key("2026-2-11")
    assert not is_day_key("2026-02-30")
    assert not is_day_key("tomorrow")
    assert not is_day_key(None)
