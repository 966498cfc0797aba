"""Workspace root, config, timezone and path helpers for HabitBoard."""

from __future__ import annotations

import logging
import os
from datetime import tzinfo
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from habitboard.fileio import read_yaml
from habitboard.models import Config

logger = logging.getLogger(__name__)


def workspace_root() -> Path:
    """Directory holding config.yaml, tasks.yaml, habits.yaml and settings.json."""
    return Path(
        os.environ.get("HABITBOARD_ROOT", str(Path.home() / "habitboard"))
    ).expanduser().resolve()


def config_path(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "config.yaml"


def tasks_path(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "tasks.yaml"


def habits_path(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "habits.yaml"


def settings_path(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "settings.json"


def load_config(root: Path | None = None) -> Config:
    """Load config.yaml; HABITBOARD_LOG_LEVEL overrides log_level."""
    config = Config.from_dict(read_yaml(config_path(root)))
    env_level = os.environ.get("HABITBOARD_LOG_LEVEL", "").strip()
    if env_level:
        config.log_level = env_level.upper()
    return config


def user_timezone(config: Config) -> tzinfo | None:
    """Configured zone, or None to use the system local zone."""
    if not config.timezone:
        return None
    try:
        return ZoneInfo(config.timezone)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone %r in config; using system local time", config.timezone)
        return None
