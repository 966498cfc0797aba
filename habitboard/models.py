"""Typed dataclasses for the HabitBoard data model.

All models use from_dict/to_dict for JSON/YAML serialization.
camelCase in stored files is mapped to snake_case in Python.
Unknown keys are ignored; missing keys use defaults.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Union


VALID_FREQUENCIES = {"daily", "custom"}


# ── Config ────────────────────────────────────────────────────


@dataclass
class Config:
    timezone: str = ""  # IANA name; empty means system local
    reminder_hour: int = 21
    reminder_cooldown_minutes: int = 30
    reminder_poll_seconds: int = 60
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Config:
        if not d or not isinstance(d, dict):
            return cls()
        return cls(
            timezone=str(d.get("timezone", "") or ""),
            reminder_hour=int(d.get("reminder_hour", 21)),
            reminder_cooldown_minutes=int(d.get("reminder_cooldown_minutes", 30)),
            reminder_poll_seconds=int(d.get("reminder_poll_seconds", 60)),
            log_level=str(d.get("log_level", "INFO")).upper(),
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "reminder_hour": self.reminder_hour,
            "reminder_cooldown_minutes": self.reminder_cooldown_minutes,
            "reminder_poll_seconds": self.reminder_poll_seconds,
            "log_level": self.log_level,
        }
        if self.timezone:
            d["timezone"] = self.timezone
        return d


# ── Habits ────────────────────────────────────────────────────


@dataclass
class Habit:
    id: str = ""
    title: str = ""
    description: str = ""
    frequency: str = "daily"  # daily, custom
    custom_days: list[int] = field(default_factory=list)  # 0-6, Sunday=0
    streak: int = 0
    last_completed_date: str | None = None

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Habit:
        return cls(
            id=str(d.get("id", "")),
            title=str(d.get("title", "")),
            description=str(d.get("description", "") or ""),
            frequency=str(d.get("frequency", "daily")),
            custom_days=sorted({int(x) for x in (d.get("customDays") or [])}),
            streak=max(0, int(d.get("streak", 0) or 0)),
            last_completed_date=d.get("lastCompletedDate"),
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "frequency": self.frequency,
            "streak": self.streak,
            "lastCompletedDate": self.last_completed_date,
        }
        if self.description:
            d["description"] = self.description
        if self.frequency == "custom":
            d["customDays"] = list(self.custom_days)
        return d


# ── Tasks ─────────────────────────────────────────────────────


@dataclass
class _TaskBase:
    id: str = ""
    title: str = ""
    due_date: str = ""
    description: str = ""
    completed: bool = False
    discarded: bool = False

    def _base_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "kind": self.kind,  # type: ignore[attr-defined]
            "title": self.title,
            "dueDate": self.due_date,
            "completed": self.completed,
        }
        if self.description:
            d["description"] = self.description
        if self.discarded:
            d["discarded"] = True
        return d


@dataclass
class StandaloneTask(_TaskBase):
    """A task the user created directly."""

    kind: ClassVar[str] = "standalone"

    @property
    def is_habit(self) -> bool:
        return False

    def to_dict(self) -> dict[str, Any]:
        return self._base_dict()


@dataclass
class HabitInstanceTask(_TaskBase):
    """A concrete task generated for one day from a recurring Habit."""

    habit_id: str = ""

    kind: ClassVar[str] = "habit"

    @property
    def is_habit(self) -> bool:
        return True

    def to_dict(self) -> dict[str, Any]:
        d = self._base_dict()
        d["habitId"] = self.habit_id
        return d


Task = Union[StandaloneTask, HabitInstanceTask]


def task_from_dict(d: dict[str, Any]) -> Task:
    """Build the right Task variant from its stored form.

    ``kind`` discriminates; records without it fall back to ``habitId``.
    """
    kind = d.get("kind")
    if kind is None:
        kind = "habit" if d.get("habitId") else "standalone"
    common = dict(
        id=str(d.get("id", "")),
        title=str(d.get("title", "")),
        due_date=str(d.get("dueDate", "")),
        description=str(d.get("description", "") or ""),
        completed=bool(d.get("completed", False)),
        discarded=bool(d.get("discarded", False)),
    )
    if kind == "habit":
        return HabitInstanceTask(habit_id=str(d.get("habitId", "")), **common)
    return StandaloneTask(**common)


# ── Settings ──────────────────────────────────────────────────


@dataclass
class Settings:
    last_processed_date: str | None = None
    reminder_dismissed_at: str | None = None  # ISO timestamp

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Settings:
        if not d or not isinstance(d, dict):
            return cls()
        return cls(
            last_processed_date=d.get("lastProcessedDate"),
            reminder_dismissed_at=d.get("reminderDismissedAt"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "lastProcessedDate": self.last_processed_date,
            "reminderDismissedAt": self.reminder_dismissed_at,
        }


# ── Lifecycle results ─────────────────────────────────────────


@dataclass
class DayTransitionResult:
    day: str = ""
    already_processed: bool = False
    reset_habit_ids: list[str] = field(default_factory=list)
    generated: list[HabitInstanceTask] = field(default_factory=list)
    backlog_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "day": self.day,
            "alreadyProcessed": self.already_processed,
            "resetHabitIds": self.reset_habit_ids,
            "generated": [t.to_dict() for t in self.generated],
            "backlogCount": self.backlog_count,
        }


# ── Board ─────────────────────────────────────────────────────


@dataclass
class Board:
    """Read-only snapshot of the five display buckets."""

    day: str = ""
    backlog: list[Task] = field(default_factory=list)
    today: list[Task] = field(default_factory=list)
    habits: list[HabitInstanceTask] = field(default_factory=list)
    completed: list[Task] = field(default_factory=list)
    discarded: list[Task] = field(default_factory=list)
    streaks: dict[str, int] = field(default_factory=dict)  # habit id -> streak

    def _entry(self, task: Task) -> dict[str, Any]:
        d = task.to_dict()
        if isinstance(task, HabitInstanceTask):
            d["streak"] = self.streaks.get(task.habit_id, 0)
        return d

    def to_dict(self) -> dict[str, Any]:
        return {
            "day": self.day,
            "backlog": [self._entry(t) for t in self.backlog],
            "today": [self._entry(t) for t in self.today],
            "habits": [self._entry(t) for t in self.habits],
            "completed": [self._entry(t) for t in self.completed],
            "discarded": [self._entry(t) for t in self.discarded],
        }
