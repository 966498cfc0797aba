"""Tests for habitboard/reminder.py — trigger state machine and poller."""

import asyncio
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from habitboard.reminder import HIDDEN, SHOWN, ReminderPoller, ReminderTrigger, parse_timestamp

UTC = ZoneInfo("UTC")


def at(hour: int, minute: int = 0) -> datetime:
    return datetime(2026, 2, 11, hour, minute, tzinfo=UTC)


def test_hidden_before_nine_pm():
    trigger = ReminderTrigger()
    assert trigger.check(at(20, 59)) is False
    assert trigger.state == HIDDEN


def test_shown_at_nine_pm_when_never_dismissed():
    trigger = ReminderTrigger()
    assert trigger.check(at(21, 0)) is True
    assert trigger.state == SHOWN


def test_dismiss_starts_cooldown():
    trigger = ReminderTrigger()
    trigger.check(at(21, 0))
    trigger.dismiss(at(21, 5))
    assert trigger.visible is False
    assert trigger.check(at(21, 34)) is False
    assert trigger.check(at(21, 35)) is True


def test_acknowledge_hides_and_records_timestamp():
    trigger = ReminderTrigger()
    trigger.check(at(22, 0))
    trigger.acknowledge(at(22, 1))
    assert trigger.visible is False
    assert trigger.dismissed_at == at(22, 1)
    assert trigger.check(at(22, 10)) is False


def test_custom_hour_and_cooldown():
    trigger = ReminderTrigger(hour=20, cooldown=timedelta(minutes=5))
    assert trigger.check(at(20, 0)) is True
    trigger.dismiss(at(20, 0))
    assert trigger.check(at(20, 5)) is True


def test_stays_shown_until_dismissed():
    trigger = ReminderTrigger()
    trigger.check(at(23, 0))
    # After midnight the predicate is false but nothing hides the prompt.
    assert trigger.check(datetime(2026, 2, 12, 0, 30, tzinfo=UTC)) is True


def test_parse_timestamp():
    assert parse_timestamp(None) is None
    assert parse_timestamp("not a time") is None
    assert parse_timestamp("2026-02-11T21:05:00+00:00") == at(21, 5)


def test_poller_runs_immediately_and_stops():
    calls = []

    async def scenario():
        poller = ReminderPoller(lambda: calls.append(1), interval=0.01)
        poller.start()
        assert poller.running
        await asyncio.sleep(0.05)
        await poller.stop()
        assert not poller.running
        count = len(calls)
        await asyncio.sleep(0.03)
        return count

    count = asyncio.run(scenario())
    assert count >= 2
    assert len(calls) == count


def test_poller_survives_failing_tick():
    calls = []

    def tick():
        calls.append(1)
        if len(calls) == 1:
            raise RuntimeError("boom")

    async def scenario():
        poller = ReminderPoller(tick, interval=0.01)
        poller.start()
        await asyncio.sleep(0.05)
        await poller.stop()
        await poller.stop()  # second stop is harmless

    asyncio.run(scenario())
    assert len(calls) >= 2
