"""Shared test fixtures for HabitBoard tests."""

from __future__ import annotations

import json
import os
from datetime import datetime, timedelta
from pathlib import Path
from zoneinfo import ZoneInfo

import pytest
import yaml

from habitboard.planner import Planner
from habitboard.storage import MemoryStorage
from habitboard.store import RecordStore


UTC = ZoneInfo("UTC")

# Wednesday; weekday index 3 with Sunday = 0.
TODAY = "2026-02-11"
YESTERDAY = "2026-02-10"
TWO_DAYS_AGO = "2026-02-09"
TOMORROW = "2026-02-12"


class FakeClock:
    """Settable clock for Planner(clock=...)."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now

    def set(self, *args: int) -> datetime:
        self.now = datetime(*args, tzinfo=self.now.tzinfo)
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 2, 11, 9, 0, tzinfo=UTC))


@pytest.fixture
def store() -> RecordStore:
    return RecordStore()


@pytest.fixture
def memory_storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def planner(memory_storage: MemoryStorage, clock: FakeClock) -> Planner:
    p = Planner(memory_storage, clock=clock)
    p.load()
    return p


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Create a temporary file-backed workspace with one habit and a stale task."""
    root = tmp_path / "workspace"
    root.mkdir(parents=True)

    config = {
        "timezone": "UTC",
        "reminder_hour": 21,
        "reminder_cooldown_minutes": 30,
        "reminder_poll_seconds": 60,
        "log_level": "DEBUG",
    }
    (root / "config.yaml").write_text(yaml.dump(config, default_flow_style=False), encoding="utf-8")

    habits = {
        "habits": {
            "meditate": {
                "id": "meditate",
                "title": "Meditate",
                "frequency": "daily",
                "streak": 5,
                "lastCompletedDate": YESTERDAY,
            },
        }
    }
    (root / "habits.yaml").write_text(yaml.dump(habits, default_flow_style=False), encoding="utf-8")

    tasks = {
        "tasks": {
            "stale": {
                "id": "stale",
                "kind": "standalone",
                "title": "File expense report",
                "dueDate": "2026-02-08",
                "completed": False,
            },
            "meditate-0210": {
                "id": "meditate-0210",
                "kind": "habit",
                "title": "Meditate",
                "dueDate": YESTERDAY,
                "completed": True,
                "habitId": "meditate",
            },
        }
    }
    (root / "tasks.yaml").write_text(yaml.dump(tasks, default_flow_style=False), encoding="utf-8")

    settings = {"lastProcessedDate": YESTERDAY, "reminderDismissedAt": None}
    (root / "settings.json").write_text(json.dumps(settings, indent=2), encoding="utf-8")

    os.environ["HABITBOARD_ROOT"] = str(root)
    yield root
    if "HABITBOARD_ROOT" in os.environ:
        del os.environ["HABITBOARD_ROOT"]
