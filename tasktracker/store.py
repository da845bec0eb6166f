from __future__ import annotations

import json
import os
from collections.abc import Iterable
from pathlib import Path

import pydantic

from .errors import CorruptStorageError, DirCreateFailedError, WriteFailedError
from .models import Task
from .observability import get_json_logger

logger = get_json_logger("tasktracker.store")


class TaskStore:
    """Pluggable task store interface.

    Implementations persist the whole collection at once: `load` returns every
    task in insertion order and `save` replaces the stored collection.
    """

    def load(self) -> list[Task]:  # pragma: no cover - interface only
        raise NotImplementedError

    def save(self, tasks: Iterable[Task]) -> None:  # pragma: no cover - interface only
        raise NotImplementedError


def dumps_tasks(tasks: Iterable[Task]) -> str:
    """Render a collection the way it is written to disk (trailing newline included)."""
    records = [t.to_record() for t in tasks]
    return json.dumps(records, indent=4, ensure_ascii=False) + "\n"


class JsonTaskStore(TaskStore):
    """Task collection persisted as a pretty-printed JSON array.

    Writes go to `<path>.tmp` in the same directory and are then moved over the
    real file with `os.replace`, so readers see either the old or the new
    collection and never a partial write. Unreadable content is reported as
    `CorruptStorageError` and left on disk untouched.
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self.path = Path(path)

    @property
    def _tmp_path(self) -> Path:
        return self.path.with_name(self.path.name + ".tmp")

    def load(self) -> list[Task]:
        if not self.path.exists():
            self.save([])
            return []
        try:
            raw = self.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise CorruptStorageError(
                f"Storage file is not readable: {self.path}", str(self.path)
            ) from e
        if not raw.strip():
            return []
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise CorruptStorageError(
                f"Storage file is not valid JSON: {self.path}", str(self.path)
            ) from e
        if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
            raise CorruptStorageError(
                f"Storage file is not a JSON array of tasks: {self.path}", str(self.path)
            )
        try:
            tasks = [Task.model_validate(item) for item in data]
        except pydantic.ValidationError as e:
            raise CorruptStorageError(
                f"Storage file holds an invalid task record: {self.path}", str(self.path)
            ) from e
        logger.debug(
            "tasks loaded",
            extra={"event": "store_load", "path": str(self.path), "count": len(tasks)},
        )
        return tasks

    def save(self, tasks: Iterable[Task]) -> None:
        tasks = list(tasks)
        directory = self.path.parent
        if not directory.is_dir():
            try:
                directory.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise DirCreateFailedError(
                    f"Failed to create storage directory: {directory}", str(directory)
                ) from e

        tmp = self._tmp_path
        payload = dumps_tasks(tasks)
        try:
            tmp.write_text(payload, encoding="utf-8")
        except OSError as e:
            tmp.unlink(missing_ok=True)
            raise WriteFailedError(
                f"Failed to write temp storage file: {tmp}", str(tmp)
            ) from e

        try:
            os.replace(tmp, self.path)
        except OSError as e:
            tmp.unlink(missing_ok=True)
            raise WriteFailedError(
                f"Failed to replace storage file: {self.path}", str(self.path)
            ) from e
        logger.debug(
            "tasks saved",
            extra={"event": "store_save", "path": str(self.path), "count": len(tasks)},
        )


__all__ = ["TaskStore", "JsonTaskStore", "dumps_tasks"]
