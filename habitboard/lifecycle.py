"""Day-transition and habit-instance generation for HabitBoard.

The day transition runs on load and whenever the calendar day advances past
``Settings.last_processed_date``:

1. Reset streaks of habits last completed before yesterday
2. Backfill habit instances for every day since the last run
3. Count the backlog (incomplete tasks dated before today)
4. Record today as processed

It is idempotent: a second run on the same day changes nothing.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from habitboard import dates
from habitboard.models import DayTransitionResult, Habit, HabitInstanceTask, Settings, Task
from habitboard.store import RecordStore

logger = logging.getLogger(__name__)


def needs_day_transition(settings: Settings, now: datetime) -> bool:
    return settings.last_processed_date != dates.today(now)


def reset_broken_streaks(store: RecordStore, today: str, yesterday: str) -> list[str]:
    """Zero the streak of every habit not completed today or yesterday."""
    reset = []
    for habit in store.habits:
        if habit.last_completed_date in (today, yesterday):
            continue
        if habit.streak != 0:
            logger.info("Streak broken for habit %r (was %d)", habit.title, habit.streak)
            reset.append(habit.id)
        habit.streak = 0
    return reset


def backfill_start(settings: Settings, today: str) -> str:
    """First day the instance backfill should cover."""
    last = settings.last_processed_date
    if not last or not dates.is_day_key(last) or last >= today:
        return today
    return dates.shift_day(last, 1)


def generate_habit_instances(store: RecordStore, start: str, end: str) -> list[HabitInstanceTask]:
    """Create missing habit instances for each day in [start, end]."""
    created = []
    for day in dates.day_range(start, end):
        for habit in store.habits:
            if not dates.appears_on_date(habit, day):
                continue
            task, new = store.add_habit_instance(habit, day)
            if new:
                created.append(task)
    return created


def backlog_tasks(store: RecordStore, today: str) -> list[Task]:
    """Incomplete, non-discarded tasks dated strictly before today."""
    result = []
    for day in store.days():
        if day >= today:
            break
        result.extend(t for t in store.tasks_on(day) if not t.completed and not t.discarded)
    return result


def run_day_transition(store: RecordStore, settings: Settings, now: datetime) -> DayTransitionResult:
    """Apply the day transition for the calendar day of *now*."""
    today = dates.today(now)
    yesterday = dates.yesterday(now)

    if settings.last_processed_date == today:
        return DayTransitionResult(
            day=today,
            already_processed=True,
            backlog_count=len(backlog_tasks(store, today)),
        )

    reset = reset_broken_streaks(store, today, yesterday)
    start = backfill_start(settings, today)
    generated = generate_habit_instances(store, start, today)
    backlog = backlog_tasks(store, today)
    settings.last_processed_date = today

    logger.info(
        "Day transition for %s: %d streak(s) reset, %d instance(s) generated from %s, backlog=%d",
        today, len(reset), len(generated), start, len(backlog),
    )
    return DayTransitionResult(
        day=today,
        reset_habit_ids=reset,
        generated=generated,
        backlog_count=len(backlog),
    )


# ── Habit lifecycle ───────────────────────────────────────────


def create_habit_with_instance(
    store: RecordStore, data: dict[str, Any], today: str
) -> tuple[Habit, HabitInstanceTask | None]:
    """Create a habit and, if it recurs today, today's instance."""
    habit = store.create_habit(
        title=data["title"],
        description=data.get("description") or "",
        frequency=data.get("frequency", "daily"),
        custom_days=data.get("custom_days"),
    )
    instance = None
    if dates.appears_on_date(habit, today):
        instance, _ = store.add_habit_instance(habit, today)
    return habit, instance


def propagate_habit_edit(store: RecordStore, habit: Habit, today: str) -> list[HabitInstanceTask]:
    """Copy title/description onto pending instances dated today or later."""
    touched = []
    for task in store.instances_of(habit.id):
        if task.due_date >= today and not task.completed:
            task.title = habit.title
            task.description = habit.description
            touched.append(task)
    return touched


def delete_habit_cascade(
    store: RecordStore, habit_id: str, today: str
) -> tuple[Habit | None, list[HabitInstanceTask]]:
    """Delete a habit and the instances that no longer make sense.

    Instances dated today or later go regardless of completion; earlier
    ones go only if still pending. Completed history is kept.
    """
    habit = store.delete_habit(habit_id)
    if habit is None:
        logger.debug("delete_habit: %s not found", habit_id)
        return None, []
    removed = []
    for task in store.instances_of(habit_id):
        if task.due_date >= today or not task.completed:
            store.delete_task(task.id, task.due_date)
            removed.append(task)
    logger.info("Deleted habit %r and %d instance(s)", habit.title, len(removed))
    return habit, removed
