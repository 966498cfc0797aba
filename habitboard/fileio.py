"""Atomic JSON/YAML file I/O for the HabitBoard workspace."""

from __future__ import annotations

import fcntl
import json
import os
import tempfile
from pathlib import Path
from typing import Any

import yaml


def read_json(path: Path) -> dict[str, Any]:
    """Read a JSON object, returning empty dict if missing or blank."""
    if not path.exists():
        return {}
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    data = json.loads(text)
    return data if isinstance(data, dict) else {}


def read_yaml(path: Path) -> dict[str, Any]:
    """Read a YAML mapping, returning empty dict if missing or blank."""
    if not path.exists():
        return {}
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    data = yaml.safe_load(text)
    return data if isinstance(data, dict) else {}


def _atomic_write(path: Path, content: str, suffix: str) -> None:
    """Replace *path* with *content* in one step.

    The text goes to a locked sibling temp file that is synced and then
    renamed over *path*, so readers see either the old file or the new one.
    A failed write leaves *path* untouched and no temp file behind.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = tempfile.NamedTemporaryFile(
        "w", encoding="utf-8", dir=path.parent, prefix=".tmp_", suffix=suffix, delete=False
    )
    tmp_path = Path(tmp.name)
    try:
        with tmp:
            fcntl.flock(tmp.fileno(), fcntl.LOCK_EX)
            tmp.write(content)
            tmp.flush()
            os.fsync(tmp.fileno())
        tmp_path.replace(path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise


def write_json_atomic(path: Path, data: dict[str, Any]) -> None:
    _atomic_write(path, json.dumps(data, indent=2, ensure_ascii=False) + "\n", suffix=".json")


def write_yaml_atomic(path: Path, data: dict[str, Any]) -> None:
    content = yaml.safe_dump(data, default_flow_style=False, allow_unicode=True, sort_keys=False)
    _atomic_write(path, content, suffix=".yaml")
