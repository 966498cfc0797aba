"""Board projection: derive the display buckets from the record store."""

from __future__ import annotations

from habitboard.models import Board, HabitInstanceTask, Task
from habitboard.store import RecordStore


def project_board(store: RecordStore, today: str) -> Board:
    """Compute the five buckets for *today* from canonical state.

    - backlog: incomplete tasks dated before today, most recent day first
    - today: standalone tasks dated today or later, soonest first
    - habits: habit instances dated today or later, pending before done
    - completed: every completed task
    - discarded: every discarded task
    """
    board = Board(day=today)
    past: list[Task] = []
    habits: list[HabitInstanceTask] = []

    for task in store.iter_tasks():  # ascending by day
        if task.discarded:
            board.discarded.append(task)
            continue
        if task.completed:
            board.completed.append(task)
        if task.due_date < today:
            if not task.completed:
                past.append(task)
        elif isinstance(task, HabitInstanceTask):
            habits.append(task)
        else:
            board.today.append(task)

    # Stable sorts keep insertion order within a day.
    board.backlog = sorted(past, key=lambda t: t.due_date, reverse=True)
    board.habits = sorted(habits, key=lambda t: t.completed)
    board.streaks = {h.id: h.streak for h in store.habits}
    return board


def _matches(task: Task, needle: str) -> bool:
    return needle in task.title.lower() or needle in (task.description or "").lower()


def search(board: Board, query: str) -> Board:
    """Filter every bucket by a case-insensitive title/description match."""
    needle = (query or "").strip().lower()
    if not needle:
        return board
    return Board(
        day=board.day,
        backlog=[t for t in board.backlog if _matches(t, needle)],
        today=[t for t in board.today if _matches(t, needle)],
        habits=[t for t in board.habits if _matches(t, needle)],
        completed=[t for t in board.completed if _matches(t, needle)],
        discarded=[t for t in board.discarded if _matches(t, needle)],
        streaks=board.streaks,
    )
