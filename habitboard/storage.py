"""Persistence for HabitBoard records.

The planner depends on the ``Storage`` protocol. ``FileStorage`` keeps two
keyed collections (tasks.yaml, habits.yaml) plus settings.json in the
workspace; ``MemoryStorage`` keeps everything in dicts.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Protocol

from habitboard.dates import is_day_key
from habitboard.fileio import read_json, read_yaml, write_json_atomic, write_yaml_atomic
from habitboard.models import Habit, Settings, Task, task_from_dict
from habitboard.workspace import habits_path, settings_path, tasks_path, workspace_root

logger = logging.getLogger(__name__)


def _load_tasks(records: Iterable[dict]) -> list[Task]:
    """Build tasks from stored dicts, skipping any without a valid dueDate."""
    tasks = []
    for d in records:
        due = d.get("dueDate")
        if not is_day_key(str(due)):
            logger.warning("Skipping stored task %r: invalid dueDate %r", d.get("id"), due)
            continue
        tasks.append(task_from_dict(d))
    return tasks


class Storage(Protocol):
    def load_all(self) -> tuple[list[Task], list[Habit], Settings]: ...

    def save_task(self, task: Task) -> None: ...

    def save_habit(self, habit: Habit) -> None: ...

    def save_settings(self, settings: Settings) -> None: ...

    def delete_task(self, task_id: str) -> None: ...

    def delete_habit(self, habit_id: str) -> None: ...


class MemoryStorage:
    """Dict-backed storage; records are stored as their serialized form."""

    def __init__(self) -> None:
        self.tasks: dict[str, dict] = {}
        self.habits: dict[str, dict] = {}
        self.settings: dict = {}

    def load_all(self) -> tuple[list[Task], list[Habit], Settings]:
        return (
            _load_tasks(self.tasks.values()),
            [Habit.from_dict(d) for d in self.habits.values()],
            Settings.from_dict(self.settings),
        )

    def save_task(self, task: Task) -> None:
        self.tasks[task.id] = task.to_dict()

    def save_habit(self, habit: Habit) -> None:
        self.habits[habit.id] = habit.to_dict()

    def save_settings(self, settings: Settings) -> None:
        self.settings = settings.to_dict()

    def delete_task(self, task_id: str) -> None:
        self.tasks.pop(task_id, None)

    def delete_habit(self, habit_id: str) -> None:
        self.habits.pop(habit_id, None)


class FileStorage:
    """Workspace-file storage with atomic writes.

    Layout::

        tasks.yaml     tasks: {<id>: {...}}
        habits.yaml    habits: {<id>: {...}}
        settings.json  {"lastProcessedDate": ..., "reminderDismissedAt": ...}
    """

    def __init__(self, root: Path | None = None) -> None:
        self.root = root if root is not None else workspace_root()
        self._tasks: dict[str, dict] = {}
        self._habits: dict[str, dict] = {}

    def load_all(self) -> tuple[list[Task], list[Habit], Settings]:
        raw_tasks = read_yaml(tasks_path(self.root)).get("tasks") or {}
        raw_habits = read_yaml(habits_path(self.root)).get("habits") or {}
        self._tasks = {str(k): v for k, v in raw_tasks.items() if isinstance(v, dict)}
        self._habits = {str(k): v for k, v in raw_habits.items() if isinstance(v, dict)}
        for key, d in self._tasks.items():
            d.setdefault("id", key)
        for key, d in self._habits.items():
            d.setdefault("id", key)

        tasks = _load_tasks(self._tasks.values())
        habits = [Habit.from_dict(d) for d in self._habits.values()]
        settings = Settings.from_dict(read_json(settings_path(self.root)))
        logger.debug("Loaded %d task(s), %d habit(s) from %s", len(tasks), len(habits), self.root)
        return tasks, habits, settings

    def _flush_tasks(self) -> None:
        write_yaml_atomic(tasks_path(self.root), {"tasks": self._tasks})

    def _flush_habits(self) -> None:
        write_yaml_atomic(habits_path(self.root), {"habits": self._habits})

    def save_task(self, task: Task) -> None:
        self._tasks[task.id] = task.to_dict()
        self._flush_tasks()

    def save_habit(self, habit: Habit) -> None:
        self._habits[habit.id] = habit.to_dict()
        self._flush_habits()

    def save_settings(self, settings: Settings) -> None:
        write_json_atomic(settings_path(self.root), settings.to_dict())

    def delete_task(self, task_id: str) -> None:
        if self._tasks.pop(task_id, None) is not None:
            self._flush_tasks()

    def delete_habit(self, habit_id: str) -> None:
        if self._habits.pop(habit_id, None) is not None:
            self._flush_habits()
