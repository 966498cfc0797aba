"""Record store, validation and CRUD primitives for HabitBoard."""

from __future__ import annotations

import logging
import uuid
from typing import Any, Iterator

from habitboard.dates import is_day_key
from habitboard.models import (
    VALID_FREQUENCIES,
    Habit,
    HabitInstanceTask,
    StandaloneTask,
    Task,
)

logger = logging.getLogger(__name__)


# ── Validation ────────────────────────────────────────────────


def validate_task(data: dict[str, Any], partial: bool = False) -> list[str]:
    """Validate task input and return list of errors (empty if valid).

    With partial=True (edits), absent fields are not required.
    """
    errors = []
    title = data.get("title")
    if (not partial or "title" in data) and (not isinstance(title, str) or not title.strip()):
        errors.append("title must be non-empty text")
    if "description" in data and data["description"] is not None and not isinstance(data["description"], str):
        errors.append("description must be text")
    due = data.get("due_date")
    if due is not None and not is_day_key(due):
        errors.append(f"Invalid due date: {due!r} (expected YYYY-MM-DD)")
    return errors


def validate_habit(data: dict[str, Any], partial: bool = False) -> list[str]:
    """Validate habit input and return list of errors (empty if valid)."""
    errors = []
    title = data.get("title")
    if (not partial or "title" in data) and (not isinstance(title, str) or not title.strip()):
        errors.append("title must be non-empty text")
    if "description" in data and data["description"] is not None and not isinstance(data["description"], str):
        errors.append("description must be text")
    frequency = data.get("frequency", "daily")
    if frequency not in VALID_FREQUENCIES:
        errors.append(f"Invalid frequency: {frequency}")
    days = data.get("custom_days") or []
    if not isinstance(days, (list, tuple, set)):
        errors.append("custom_days must be a list of weekday indices")
    elif any(not isinstance(x, int) or isinstance(x, bool) or x < 0 or x > 6 for x in days):
        errors.append("custom_days must contain integers 0-6 (Sunday=0)")
    return errors


def new_id() -> str:
    return uuid.uuid4().hex


# ── Store ─────────────────────────────────────────────────────


class RecordStore:
    """In-memory Tasks and Habits.

    Tasks are bucketed by ``due_date`` so day-scoped lookups (backlog scan,
    instance existence checks) only touch one bucket.
    """

    def __init__(self, tasks: list[Task] | None = None, habits: list[Habit] | None = None) -> None:
        self._tasks: dict[str, list[Task]] = {}
        self._habits: dict[str, Habit] = {}
        for task in tasks or []:
            self._insert(task)
        for habit in habits or []:
            self._habits[habit.id] = habit

    def _insert(self, task: Task) -> None:
        self._tasks.setdefault(task.due_date, []).append(task)

    # Queries

    def days(self) -> list[str]:
        return sorted(k for k, v in self._tasks.items() if v)

    def tasks_on(self, day: str) -> list[Task]:
        return list(self._tasks.get(day, []))

    def iter_tasks(self) -> Iterator[Task]:
        for day in sorted(self._tasks):
            yield from self._tasks[day]

    def find_task(self, task_id: str, due_date: str) -> Task | None:
        for t in self._tasks.get(due_date, []):
            if t.id == task_id:
                return t
        return None

    def find_instance(self, habit_id: str, day: str) -> HabitInstanceTask | None:
        for t in self._tasks.get(day, []):
            if isinstance(t, HabitInstanceTask) and t.habit_id == habit_id:
                return t
        return None

    def instances_of(self, habit_id: str) -> list[HabitInstanceTask]:
        return [t for t in self.iter_tasks() if isinstance(t, HabitInstanceTask) and t.habit_id == habit_id]

    # Task CRUD

    def create_task(self, title: str, due_date: str, description: str = "") -> StandaloneTask:
        task = StandaloneTask(id=new_id(), title=title, due_date=due_date, description=description or "")
        self._insert(task)
        return task

    def add_habit_instance(self, habit: Habit, day: str) -> tuple[HabitInstanceTask, bool]:
        """Generate *habit*'s task for *day*. Returns (task, created).

        At most one instance exists per (habit, day); an existing one is
        returned unchanged.
        """
        existing = self.find_instance(habit.id, day)
        if existing is not None:
            return existing, False
        task = HabitInstanceTask(
            id=new_id(),
            title=habit.title,
            description=habit.description,
            due_date=day,
            habit_id=habit.id,
        )
        self._insert(task)
        return task, True

    def update_task(self, task_id: str, due_date: str, patch: dict[str, Any]) -> Task | None:
        """Apply a title/description patch. Missing tasks are a no-op."""
        task = self.find_task(task_id, due_date)
        if task is None:
            logger.debug("update_task: %s not found on %s", task_id, due_date)
            return None
        if "title" in patch:
            task.title = patch["title"]
        if "description" in patch:
            task.description = patch["description"] or ""
        return task

    def delete_task(self, task_id: str, due_date: str) -> Task | None:
        bucket = self._tasks.get(due_date, [])
        for i, t in enumerate(bucket):
            if t.id == task_id:
                removed = bucket.pop(i)
                if not bucket:
                    del self._tasks[due_date]
                return removed
        logger.debug("delete_task: %s not found on %s", task_id, due_date)
        return None

    def set_completed(self, task_id: str, due_date: str, value: bool) -> Task | None:
        task = self.find_task(task_id, due_date)
        if task is not None:
            task.completed = value
        return task

    def set_discarded(self, task_id: str, due_date: str, value: bool) -> Task | None:
        task = self.find_task(task_id, due_date)
        if task is not None:
            task.discarded = value
        return task

    def move_task(self, task_id: str, from_date: str, to_date: str) -> Task | None:
        """Re-bucket a task under a new due date."""
        if from_date == to_date:
            return self.find_task(task_id, from_date)
        task = self.delete_task(task_id, from_date)
        if task is None:
            return None
        task.due_date = to_date
        self._insert(task)
        return task

    # Habit CRUD

    @property
    def habits(self) -> list[Habit]:
        return list(self._habits.values())

    def get_habit(self, habit_id: str) -> Habit | None:
        return self._habits.get(habit_id)

    def create_habit(
        self,
        title: str,
        description: str = "",
        frequency: str = "daily",
        custom_days: list[int] | None = None,
    ) -> Habit:
        habit = Habit(
            id=new_id(),
            title=title,
            description=description or "",
            frequency=frequency,
            custom_days=sorted(set(custom_days or [])) if frequency == "custom" else [],
        )
        self._habits[habit.id] = habit
        return habit

    def update_habit(self, habit_id: str, patch: dict[str, Any]) -> Habit | None:
        habit = self._habits.get(habit_id)
        if habit is None:
            logger.debug("update_habit: %s not found", habit_id)
            return None
        if "title" in patch:
            habit.title = patch["title"]
        if "description" in patch:
            habit.description = patch["description"] or ""
        if "frequency" in patch:
            habit.frequency = patch["frequency"]
        if "custom_days" in patch or "frequency" in patch:
            days = patch.get("custom_days", habit.custom_days)
            habit.custom_days = sorted(set(days or [])) if habit.frequency == "custom" else []
        return habit

    def delete_habit(self, habit_id: str) -> Habit | None:
        return self._habits.pop(habit_id, None)
