from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

DEFAULT_TASKS_FILE = "tasks.json"


@dataclass(slots=True)
class TrackerConfig:
    tasks_file: Path


def load_config(env: dict[str, str] | None = None) -> TrackerConfig:
    e: dict[str, Any] = dict(os.environ)
    if env:
        e.update(env)
    # Relative paths resolve against the invocation directory
    raw = (e.get("TASK_TRACKER_FILE") or "").strip() or DEFAULT_TASKS_FILE
    return TrackerConfig(tasks_file=Path(raw).expanduser())


__all__ = ["TrackerConfig", "load_config", "DEFAULT_TASKS_FILE"]
