"""Task completion and habit streak rules for HabitBoard."""

from __future__ import annotations

import logging
from datetime import datetime

from habitboard import dates
from habitboard.models import Habit, HabitInstanceTask, Task
from habitboard.store import RecordStore

logger = logging.getLogger(__name__)


def next_streak(habit: Habit, today: str, yesterday: str) -> tuple[int, str]:
    """Return (streak, last_completed_date) after completing *habit* today.

    A completion the day after the previous one extends the streak;
    anything else starts a new streak of 1.
    """
    if habit.last_completed_date == yesterday:
        return habit.streak + 1, today
    return 1, today


def complete_task(
    store: RecordStore, task_id: str, due_date: str, now: datetime
) -> tuple[Task | None, Habit | None]:
    """Complete a task, crediting its habit's streak if it has one.

    Returns (task, credited_habit). Missing or already-completed tasks are
    a no-op and return (None, None).
    """
    task = store.find_task(task_id, due_date)
    if task is None or task.completed:
        return None, None

    habit = None
    if isinstance(task, HabitInstanceTask):
        habit = store.get_habit(task.habit_id)
        if habit is not None:
            habit.streak, habit.last_completed_date = next_streak(
                habit, dates.today(now), dates.yesterday(now)
            )
            logger.info("Habit %r streak is now %d", habit.title, habit.streak)

    task.completed = True
    return task, habit


def clear_without_credit(store: RecordStore, task_id: str, due_date: str) -> Task | None:
    """Mark a (backlog) task done without touching any habit streak."""
    task = store.find_task(task_id, due_date)
    if task is None or task.completed:
        return None
    task.completed = True
    return task


def discard_task(store: RecordStore, task_id: str, due_date: str) -> Task | None:
    """Move an open task to the Discarded bucket.

    Completed tasks stay in Completed; discarding them is a no-op.
    """
    task = store.find_task(task_id, due_date)
    if task is None or task.discarded or task.completed:
        logger.debug("discard_task: %s on %s is missing, done or already discarded", task_id, due_date)
        return None
    task.discarded = True
    return task


def restore_task(store: RecordStore, task_id: str, due_date: str, now: datetime) -> Task | None:
    """Bring a completed or discarded task back to the active board.

    Standalone tasks dated in the past are rescheduled to today. Habit
    instances keep their day so there is still one instance per habit and
    day. Streak credit already granted is kept.
    """
    task = store.find_task(task_id, due_date)
    if task is None or not (task.completed or task.discarded):
        return None

    was_completed = task.completed
    task.completed = False
    task.discarded = False

    if isinstance(task, HabitInstanceTask):
        habit = store.get_habit(task.habit_id)
        if was_completed and habit is not None:
            logger.warning(
                "Restored instance of habit %r on %s; streak credit (%d) is retained",
                habit.title, task.due_date, habit.streak,
            )
        return task

    today = dates.today(now)
    if task.due_date < today:
        store.move_task(task.id, task.due_date, today)
    return task
