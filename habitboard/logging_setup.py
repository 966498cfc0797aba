"""Logging configuration for HabitBoard processes."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

OWN_LOGGERS = ("habitboard", "ui")


class _ThirdPartyFilter(logging.Filter):
    """Keep our own records; let other libraries through at WARNING+."""

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name
        if any(name == p or name.startswith(p + ".") for p in OWN_LOGGERS):
            return True
        return record.levelno >= logging.WARNING


def setup_logging(level: str | int = logging.INFO, log_file: str | Path | None = None) -> None:
    """Configure the root logger once, early, before the first record.

    Console output goes to stderr; *log_file*, when given, receives
    everything at DEBUG.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    root = logging.getLogger()
    root.setLevel(logging.DEBUG if log_file else level)

    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(level)
    ch.setFormatter(fmt)
    ch.addFilter(_ThirdPartyFilter())
    root.addHandler(ch)

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(str(path), encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(fmt)
        root.addHandler(fh)

    logging.captureWarnings(True)
