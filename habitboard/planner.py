"""Planner: the single owner of HabitBoard state.

A ``Planner`` holds the record store, the settings record and the reminder
trigger, applies user actions and the day transition to them, and writes
the touched records to its storage afterwards. In-memory state is the
source of truth for the session: a failed write is logged, never rolled
back.

Actions that take user input return ``(result, errors)``. A non-empty
``errors`` list is a refusal and nothing was changed. Actions on ids that
no longer exist are silent no-ops returning ``None``.
"""

from __future__ import annotations

import copy
import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Callable

from habitboard import completion, dates, lifecycle
from habitboard.models import Board, Config, DayTransitionResult, Habit, Settings, StandaloneTask, Task
from habitboard.reminder import ReminderTrigger, parse_timestamp
from habitboard.storage import FileStorage, Storage
from habitboard.store import RecordStore, validate_habit, validate_task
from habitboard.views import project_board, search
from habitboard.workspace import load_config, user_timezone

logger = logging.getLogger(__name__)


Clock = Callable[[], datetime]

TASK_FIELDS = ("title", "description", "due_date")
HABIT_FIELDS = ("title", "description", "frequency", "custom_days")


def _pick(data: dict[str, Any], fields: tuple[str, ...]) -> dict[str, Any]:
    return {k: data[k] for k in fields if k in data}


class Planner:
    def __init__(
        self,
        storage: Storage,
        clock: Clock | None = None,
        config: Config | None = None,
    ) -> None:
        self.storage = storage
        self.config = config or Config()
        tz = user_timezone(self.config)
        self.clock: Clock = clock or (lambda: dates.now_local(tz))
        self.store = RecordStore()
        self.settings = Settings()
        self._writer: ThreadPoolExecutor | None = None
        self.reminder = ReminderTrigger(
            hour=self.config.reminder_hour,
            cooldown=timedelta(minutes=self.config.reminder_cooldown_minutes),
        )

    @classmethod
    def from_workspace(cls, root: Path | None = None, clock: Clock | None = None) -> Planner:
        """Planner over the file-backed workspace at *root*."""
        storage = FileStorage(root)
        return cls(storage, clock=clock, config=load_config(storage.root))

    # ── Time ──────────────────────────────────────────────────

    def now(self) -> datetime:
        return self.clock()

    def today(self) -> str:
        return dates.today(self.now())

    # ── Persistence ───────────────────────────────────────────

    def start_background_writes(self) -> None:
        """Hand storage writes to one worker thread, in submission order.

        Used while the planner is driven from an event loop, so file writes
        (flock, fsync) never block it.
        """
        if self._writer is None:
            self._writer = ThreadPoolExecutor(max_workers=1, thread_name_prefix="habitboard-writer")

    def stop_background_writes(self) -> None:
        """Drain queued writes and go back to writing inline."""
        writer, self._writer = self._writer, None
        if writer is not None:
            writer.shutdown(wait=True)

    def _persist(self, what: str, fn: Callable[..., None], *args: Any) -> None:
        if self._writer is None:
            self._write(what, fn, *args)
            return
        # the worker gets a snapshot; live records keep changing on the caller's thread
        self._writer.submit(self._write, what, fn, *copy.deepcopy(args))

    def _write(self, what: str, fn: Callable[..., None], *args: Any) -> None:
        try:
            fn(*args)
        except Exception:
            logger.exception("Failed to persist %s; keeping in-memory state", what)

    def _save_tasks(self, *tasks: Task | None) -> None:
        for task in tasks:
            if task is not None:
                self._persist(f"task {task.id}", self.storage.save_task, task)

    def _save_habit(self, habit: Habit | None) -> None:
        if habit is not None:
            self._persist(f"habit {habit.id}", self.storage.save_habit, habit)

    def _save_settings(self) -> None:
        self._persist("settings", self.storage.save_settings, self.settings)

    # ── Lifecycle ─────────────────────────────────────────────

    def load(self) -> DayTransitionResult:
        """Replace in-memory state with the stored records, then catch up the day."""
        tasks, habits, settings = self.storage.load_all()
        self.store = RecordStore(tasks, habits)
        self.settings = settings
        self.reminder.dismissed_at = parse_timestamp(settings.reminder_dismissed_at)
        logger.info("Loaded %d task(s) and %d habit(s)", len(tasks), len(habits))
        return self.run_day_transition()

    def run_day_transition(self) -> DayTransitionResult:
        result = lifecycle.run_day_transition(self.store, self.settings, self.now())
        if result.already_processed:
            return result
        for habit_id in result.reset_habit_ids:
            self._save_habit(self.store.get_habit(habit_id))
        self._save_tasks(*result.generated)
        self._save_settings()
        return result

    def ensure_current_day(self) -> DayTransitionResult | None:
        """Run the day transition only if the calendar day has changed."""
        if lifecycle.needs_day_transition(self.settings, self.now()):
            return self.run_day_transition()
        return None

    def tick(self) -> bool:
        """Periodic check: catch up the day, then evaluate the reminder."""
        self.ensure_current_day()
        return self.reminder.check(self.now())

    # ── Views ─────────────────────────────────────────────────

    def board(self, query: str = "") -> Board:
        board = project_board(self.store, self.today())
        return search(board, query) if query else board

    def backlog(self) -> list[Task]:
        return self.board().backlog

    @property
    def reminder_visible(self) -> bool:
        return self.reminder.visible

    # ── Task actions ──────────────────────────────────────────

    def create_task(self, data: dict[str, Any]) -> tuple[StandaloneTask | None, list[str]]:
        data = _pick(data, TASK_FIELDS)
        errors = validate_task(data)
        if errors:
            return None, errors
        task = self.store.create_task(
            title=data["title"].strip(),
            due_date=data.get("due_date") or self.today(),
            description=data.get("description") or "",
        )
        self._save_tasks(task)
        return task, []

    def update_task(self, task_id: str, due_date: str, data: dict[str, Any]) -> tuple[Task | None, list[str]]:
        patch = _pick(data, ("title", "description"))
        errors = validate_task(patch, partial=True)
        if errors:
            return None, errors
        if "title" in patch:
            patch["title"] = patch["title"].strip()
        task = self.store.update_task(task_id, due_date, patch)
        self._save_tasks(task)
        return task, []

    def delete_task(self, task_id: str, due_date: str) -> Task | None:
        task = self.store.delete_task(task_id, due_date)
        if task is not None:
            self._persist(f"deletion of task {task.id}", self.storage.delete_task, task.id)
        return task

    def complete_task(self, task_id: str, due_date: str) -> Task | None:
        task, habit = completion.complete_task(self.store, task_id, due_date, self.now())
        self._save_habit(habit)
        self._save_tasks(task)
        return task

    def clear_without_credit(self, task_id: str, due_date: str) -> Task | None:
        task = completion.clear_without_credit(self.store, task_id, due_date)
        self._save_tasks(task)
        return task

    def discard_task(self, task_id: str, due_date: str) -> Task | None:
        task = completion.discard_task(self.store, task_id, due_date)
        self._save_tasks(task)
        return task

    def restore_task(self, task_id: str, due_date: str) -> Task | None:
        task = completion.restore_task(self.store, task_id, due_date, self.now())
        self._save_tasks(task)
        return task

    def move_to_today(self, task_id: str, due_date: str) -> tuple[Task | None, list[str]]:
        """Reschedule a backlog task to today."""
        task = self.store.find_task(task_id, due_date)
        if task is None:
            return None, []
        if task.is_habit:
            return None, ["Habit tasks belong to the day they were generated for"]
        today = self.today()
        if task.completed or task.discarded or task.due_date >= today:
            return None, ["Only backlog tasks can be moved to today"]
        moved = self.store.move_task(task_id, due_date, today)
        self._save_tasks(moved)
        return moved, []

    def plan_tomorrow(self, data: dict[str, Any]) -> tuple[StandaloneTask | None, list[str]]:
        """Create a task for tomorrow from the reminder and hide the reminder."""
        data = dict(data)
        data.setdefault("due_date", dates.tomorrow(self.now()))
        task, errors = self.create_task(data)
        if errors:
            return None, errors
        self._record_dismissal(acknowledged=True)
        return task, []

    # ── Habit actions ─────────────────────────────────────────

    def create_habit(self, data: dict[str, Any]) -> tuple[Habit | None, list[str]]:
        data = _pick(data, HABIT_FIELDS)
        errors = validate_habit(data)
        if errors:
            return None, errors
        data["title"] = data["title"].strip()
        habit, instance = lifecycle.create_habit_with_instance(self.store, data, self.today())
        logger.info("Created habit %r (%s)", habit.title, habit.frequency)
        self._save_habit(habit)
        self._save_tasks(instance)
        return habit, []

    def update_habit(self, habit_id: str, data: dict[str, Any]) -> tuple[Habit | None, list[str]]:
        patch = _pick(data, HABIT_FIELDS)
        errors = validate_habit(patch, partial=True)
        if errors:
            return None, errors
        if "title" in patch:
            patch["title"] = patch["title"].strip()
        habit = self.store.update_habit(habit_id, patch)
        if habit is None:
            return None, []
        today = self.today()
        touched = lifecycle.propagate_habit_edit(self.store, habit, today)
        instance = None
        if dates.appears_on_date(habit, today):
            instance, created = self.store.add_habit_instance(habit, today)
            if not created:
                instance = None
        self._save_habit(habit)
        self._save_tasks(*touched, instance)
        return habit, []

    def delete_habit(self, habit_id: str) -> Habit | None:
        habit, removed = lifecycle.delete_habit_cascade(self.store, habit_id, self.today())
        if habit is None:
            return None
        for task in removed:
            self._persist(f"deletion of task {task.id}", self.storage.delete_task, task.id)
        self._persist(f"deletion of habit {habit.id}", self.storage.delete_habit, habit.id)
        return habit

    def streak_of(self, habit_id: str | None) -> int:
        habit = self.store.get_habit(habit_id) if habit_id else None
        return habit.streak if habit else 0

    # ── Reminder ──────────────────────────────────────────────

    def check_reminder(self) -> bool:
        return self.reminder.check(self.now())

    def dismiss_reminder(self) -> None:
        self._record_dismissal(acknowledged=False)

    def _record_dismissal(self, acknowledged: bool) -> None:
        now = self.now()
        if acknowledged:
            self.reminder.acknowledge(now)
        else:
            self.reminder.dismiss(now)
        self.settings.reminder_dismissed_at = now.isoformat(timespec="seconds")
        self._save_settings()
