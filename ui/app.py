from __future__ import annotations

import asyncio
import logging
import os
import secrets
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Body, Depends, FastAPI, HTTPException, Request, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from habitboard import Planner, ReminderPoller, setup_logging

logger = logging.getLogger(__name__)


# ── Auth ──────────────────────────────────────────────────────

security = HTTPBasic(auto_error=False)


def _expected_credentials() -> tuple[str, str] | None:
    """(username, password) from the environment, or None when auth is off."""
    username = os.environ.get("HABITBOARD_USERNAME", "")
    password = os.environ.get("HABITBOARD_PASSWORD", "")
    if username and password:
        return username, password
    return None


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Basic"},
    )


def get_current_user(credentials: HTTPBasicCredentials | None = Depends(security)) -> str:
    """Open access unless both HABITBOARD_USERNAME and HABITBOARD_PASSWORD are set."""
    expected = _expected_credentials()
    if expected is None:
        return "guest"
    if credentials is None:
        raise _unauthorized("Not authenticated")

    given = (credentials.username, credentials.password)
    matches = [secrets.compare_digest(g.encode("utf-8"), e.encode("utf-8")) for g, e in zip(given, expected)]
    if not all(matches):
        raise _unauthorized("Invalid credentials")
    return credentials.username


def get_planner(request: Request) -> Planner:
    return request.app.state.planner


def _refuse(errors: list[str]) -> None:
    if errors:
        raise HTTPException(status_code=400, detail="; ".join(errors))


def _task_out(planner: Planner, task: Any) -> dict[str, Any] | None:
    if task is None:
        return None
    d = task.to_dict()
    if task.is_habit:
        d["streak"] = planner.streak_of(task.habit_id)
    return d


# ── App ───────────────────────────────────────────────────────


def create_app(instance: Planner | None = None) -> FastAPI:
    """Build the API around *instance* (default: the HABITBOARD_ROOT workspace).

    Handlers are coroutines, so every planner action runs on the event-loop
    thread one at a time, as does the reminder tick. Storage writes go to the
    planner's writer thread.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        p = instance or Planner.from_workspace()
        if instance is None:
            setup_logging(p.config.log_level)
        p.load()
        p.start_background_writes()
        poller = ReminderPoller(p.tick, interval=p.config.reminder_poll_seconds)
        app.state.planner = p
        app.state.poller = poller
        poller.start()
        logger.info("HabitBoard ready for %s (reminder poll every %ss)", p.today(), p.config.reminder_poll_seconds)
        try:
            yield
        finally:
            await poller.stop()
            await asyncio.get_running_loop().run_in_executor(None, p.stop_background_writes)
            logger.info("Reminder poller stopped, pending writes flushed")

    app = FastAPI(title="HabitBoard", version="0.1.0", lifespan=lifespan)

    @app.get("/healthz")
    async def healthz() -> dict[str, str]:
        return {"ok": "true"}

    # Board

    @app.get("/api/board")
    async def api_board(q: str = "", planner: Planner = Depends(get_planner), username: str = Depends(get_current_user)) -> dict[str, Any]:
        """The five buckets: backlog, today, habits, completed, discarded."""
        planner.ensure_current_day()
        return planner.board(q).to_dict()

    @app.post("/api/day/transition")
    async def api_day_transition(planner: Planner = Depends(get_planner), username: str = Depends(get_current_user)) -> dict[str, Any]:
        return planner.run_day_transition().to_dict()

    # Tasks

    @app.post("/api/tasks")
    async def api_create_task(payload: dict[str, Any] = Body(...), planner: Planner = Depends(get_planner), username: str = Depends(get_current_user)) -> dict[str, Any]:
        task, errors = planner.create_task(payload)
        _refuse(errors)
        return {"ok": True, "task": _task_out(planner, task)}

    @app.put("/api/tasks/{due_date}/{task_id}")
    async def api_update_task(due_date: str, task_id: str, payload: dict[str, Any] = Body(...), planner: Planner = Depends(get_planner), username: str = Depends(get_current_user)) -> dict[str, Any]:
        task, errors = planner.update_task(task_id, due_date, payload)
        _refuse(errors)
        return {"ok": True, "task": _task_out(planner, task)}

    @app.delete("/api/tasks/{due_date}/{task_id}")
    async def api_delete_task(due_date: str, task_id: str, planner: Planner = Depends(get_planner), username: str = Depends(get_current_user)) -> dict[str, Any]:
        task = planner.delete_task(task_id, due_date)
        return {"ok": True, "task": _task_out(planner, task)}

    @app.post("/api/tasks/{due_date}/{task_id}/complete")
    async def api_complete_task(due_date: str, task_id: str, planner: Planner = Depends(get_planner), username: str = Depends(get_current_user)) -> dict[str, Any]:
        return {"ok": True, "task": _task_out(planner, planner.complete_task(task_id, due_date))}

    @app.post("/api/tasks/{due_date}/{task_id}/clear")
    async def api_clear_task(due_date: str, task_id: str, planner: Planner = Depends(get_planner), username: str = Depends(get_current_user)) -> dict[str, Any]:
        """Complete a backlog item without streak credit."""
        return {"ok": True, "task": _task_out(planner, planner.clear_without_credit(task_id, due_date))}

    @app.post("/api/tasks/{due_date}/{task_id}/restore")
    async def api_restore_task(due_date: str, task_id: str, planner: Planner = Depends(get_planner), username: str = Depends(get_current_user)) -> dict[str, Any]:
        return {"ok": True, "task": _task_out(planner, planner.restore_task(task_id, due_date))}

    @app.post("/api/tasks/{due_date}/{task_id}/discard")
    async def api_discard_task(due_date: str, task_id: str, planner: Planner = Depends(get_planner), username: str = Depends(get_current_user)) -> dict[str, Any]:
        return {"ok": True, "task": _task_out(planner, planner.discard_task(task_id, due_date))}

    @app.post("/api/tasks/{due_date}/{task_id}/move-to-today")
    async def api_move_to_today(due_date: str, task_id: str, planner: Planner = Depends(get_planner), username: str = Depends(get_current_user)) -> dict[str, Any]:
        task, errors = planner.move_to_today(task_id, due_date)
        _refuse(errors)
        return {"ok": True, "task": _task_out(planner, task)}

    # Habits

    @app.get("/api/habits")
    async def api_list_habits(planner: Planner = Depends(get_planner), username: str = Depends(get_current_user)) -> dict[str, Any]:
        return {"habits": [h.to_dict() for h in planner.store.habits]}

    @app.post("/api/habits")
    async def api_create_habit(payload: dict[str, Any] = Body(...), planner: Planner = Depends(get_planner), username: str = Depends(get_current_user)) -> dict[str, Any]:
        habit, errors = planner.create_habit(payload)
        _refuse(errors)
        return {"ok": True, "habit": habit.to_dict()}

    @app.put("/api/habits/{habit_id}")
    async def api_update_habit(habit_id: str, payload: dict[str, Any] = Body(...), planner: Planner = Depends(get_planner), username: str = Depends(get_current_user)) -> dict[str, Any]:
        habit, errors = planner.update_habit(habit_id, payload)
        _refuse(errors)
        return {"ok": True, "habit": habit.to_dict() if habit else None}

    @app.delete("/api/habits/{habit_id}")
    async def api_delete_habit(habit_id: str, planner: Planner = Depends(get_planner), username: str = Depends(get_current_user)) -> dict[str, Any]:
        habit = planner.delete_habit(habit_id)
        return {"ok": True, "habit": habit.to_dict() if habit else None}

    # Reminder

    @app.get("/api/reminder")
    async def api_reminder(planner: Planner = Depends(get_planner), username: str = Depends(get_current_user)) -> dict[str, Any]:
        return {"show": planner.check_reminder(), "dismissedAt": planner.settings.reminder_dismissed_at}

    @app.post("/api/reminder/dismiss")
    async def api_reminder_dismiss(planner: Planner = Depends(get_planner), username: str = Depends(get_current_user)) -> dict[str, Any]:
        planner.dismiss_reminder()
        return {"ok": True, "show": planner.reminder_visible}

    @app.post("/api/reminder/plan")
    async def api_reminder_plan(payload: dict[str, Any] = Body(...), planner: Planner = Depends(get_planner), username: str = Depends(get_current_user)) -> dict[str, Any]:
        """Create a task for tomorrow from the reminder prompt."""
        task, errors = planner.plan_tomorrow(payload)
        _refuse(errors)
        return {"ok": True, "task": _task_out(planner, task), "show": planner.reminder_visible}

    return app


app = create_app()
