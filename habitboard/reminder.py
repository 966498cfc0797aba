"""End-of-day "plan tomorrow" reminder for HabitBoard.

``ReminderTrigger`` is a two-state machine (hidden/shown) driven by a time
predicate and a cooldown after dismissal. ``ReminderPoller`` re-evaluates
it on an interval until stopped.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from datetime import datetime, timedelta
from typing import Callable

logger = logging.getLogger(__name__)


HIDDEN = "hidden"
SHOWN = "shown"

DEFAULT_HOUR = 21
DEFAULT_COOLDOWN = timedelta(minutes=30)
DEFAULT_POLL_SECONDS = 60.0


class ReminderTrigger:
    """Decide when to prompt for tomorrow's plan.

    Fires when the local hour is at or past ``hour`` and either nothing was
    dismissed yet or the last dismissal is at least ``cooldown`` old.
    """

    def __init__(
        self,
        hour: int = DEFAULT_HOUR,
        cooldown: timedelta = DEFAULT_COOLDOWN,
        dismissed_at: datetime | None = None,
    ) -> None:
        self.hour = hour
        self.cooldown = cooldown
        self.dismissed_at = dismissed_at
        self.state = HIDDEN

    @property
    def visible(self) -> bool:
        return self.state == SHOWN

    def due(self, now: datetime) -> bool:
        if now.hour < self.hour:
            return False
        if self.dismissed_at is None:
            return True
        return now - self.dismissed_at >= self.cooldown

    def check(self, now: datetime) -> bool:
        if self.state == HIDDEN and self.due(now):
            self.state = SHOWN
            logger.info("Plan-tomorrow reminder shown at %s", now.isoformat(timespec="minutes"))
        return self.visible

    def dismiss(self, now: datetime) -> None:
        self.dismissed_at = now
        if self.state == SHOWN:
            logger.info("Plan-tomorrow reminder dismissed")
        self.state = HIDDEN

    def acknowledge(self, now: datetime) -> None:
        """Hide after a successful planning submission; starts the cooldown."""
        self.dismiss(now)


def parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        logger.warning("Ignoring unreadable reminder timestamp: %r", value)
        return None
    # naive stamps are system-local
    return parsed if parsed.tzinfo is not None else parsed.astimezone()


class ReminderPoller:
    """Run *callback* once at start, then every *interval* seconds.

    Must be started from a running event loop. ``stop()`` cancels the loop
    and is safe to call more than once.
    """

    def __init__(self, callback: Callable[[], object], interval: float = DEFAULT_POLL_SECONDS) -> None:
        self.callback = callback
        self.interval = max(0.01, float(interval))
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def _run(self) -> None:
        while True:
            try:
                self.callback()
            except Exception:
                logger.exception("Reminder poll tick failed")
            await asyncio.sleep(self.interval)
