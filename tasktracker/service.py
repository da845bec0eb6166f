from __future__ import annotations

import datetime as _dt
from collections.abc import Callable

from .errors import NotFoundError, TaskTrackerError, ValidationError
from .models import STATUSES, Task, utc_now
from .observability import get_json_logger, get_metrics
from .store import TaskStore

DESCRIPTION_MIN = 3
DESCRIPTION_MAX = 200

logger = get_json_logger("tasktracker.service")


def _require_description(value: str) -> str:
    if not isinstance(value, str):
        raise ValidationError("Description must be a string.")
    v = value.strip()
    if not DESCRIPTION_MIN <= len(v) <= DESCRIPTION_MAX:
        raise ValidationError(
            f"Description must be between {DESCRIPTION_MIN} and {DESCRIPTION_MAX} characters."
        )
    return v


def _require_status(value: str) -> str:
    if value not in STATUSES:
        raise ValidationError("Invalid status. Allowed: todo, in_progress, done.")
    return value


def normalize_filter(value: str) -> str:
    """Map a user-supplied list filter onto a status value.

    Case and surrounding whitespace are ignored and `in-progress` is accepted
    as the spelling of `in_progress`.
    """
    token = value.strip().lower()
    if token == "in-progress":
        token = "in_progress"
    if token not in STATUSES:
        raise ValidationError("Invalid filter. Allowed: done, todo, in-progress.")
    return token


def next_id(tasks: list[Task]) -> int:
    return max((t.id for t in tasks), default=0) + 1


def _find_index(tasks: list[Task], task_id: int) -> int:
    for i, t in enumerate(tasks):
        if t.id == task_id:
            return i
    raise NotFoundError(task_id)


class TaskService:
    """Task lifecycle operations over a whole-collection store.

    Each operation loads the collection, works on that copy and saves it back
    in full. Validation and id lookup run before the save, so a rejected
    operation never writes.
    """

    def __init__(
        self, store: TaskStore, *, clock: Callable[[], _dt.datetime] = utc_now
    ) -> None:
        self._store = store
        self._clock = clock

    def _record(self, op: str, event: str, task_id: int | None = None) -> None:
        logger.info(
            f"task {op}",
            extra={"event": event, "task_id": task_id},
        )
        get_metrics().increment("task_ops", {"op": op})

    def _record_error(self, op: str, err: TaskTrackerError) -> None:
        logger.info(
            f"task {op} failed",
            extra={
                "event": "task_error",
                "metadata": {"op": op, "error": str(err)[:200], "kind": type(err).__name__},
            },
        )
        get_metrics().increment("task_errors", {"op": op, "kind": type(err).__name__})

    def add(self, description: str) -> Task:
        try:
            desc = _require_description(description)
            tasks = self._store.load()
            now = self._clock()
            task = Task(
                id=next_id(tasks),
                description=desc,
                status="todo",
                created_at=now,
                updated_at=now,
            )
            tasks.append(task)
            self._store.save(tasks)
        except TaskTrackerError as e:
            self._record_error("add", e)
            raise
        self._record("add", "task_added", task.id)
        return task

    def update(self, task_id: int, description: str) -> Task:
        try:
            desc = _require_description(description)
            tasks = self._store.load()
            idx = _find_index(tasks, task_id)
            task = tasks[idx].model_copy(
                update={"description": desc, "updated_at": self._clock()}
            )
            tasks[idx] = task
            self._store.save(tasks)
        except TaskTrackerError as e:
            self._record_error("update", e)
            raise
        self._record("update", "task_updated", task_id)
        return task

    def delete(self, task_id: int) -> None:
        try:
            tasks = self._store.load()
            idx = _find_index(tasks, task_id)
            del tasks[idx]
            self._store.save(tasks)
        except TaskTrackerError as e:
            self._record_error("delete", e)
            raise
        self._record("delete", "task_deleted", task_id)

    def mark_status(self, task_id: int, status: str) -> Task:
        try:
            new_status = _require_status(status)
            tasks = self._store.load()
            idx = _find_index(tasks, task_id)
            task = tasks[idx].model_copy(
                update={"status": new_status, "updated_at": self._clock()}
            )
            tasks[idx] = task
            self._store.save(tasks)
        except TaskTrackerError as e:
            self._record_error("mark_status", e)
            raise
        self._record("mark_status", "task_status_changed", task_id)
        return task

    def get(self, task_id: int) -> Task:
        try:
            tasks = self._store.load()
            task = tasks[_find_index(tasks, task_id)]
        except TaskTrackerError as e:
            self._record_error("get", e)
            raise
        self._record("get", "task_fetched", task_id)
        return task

    def list_tasks(self, status_filter: str | None = None) -> list[Task]:
        try:
            wanted = normalize_filter(status_filter) if status_filter is not None else None
            tasks = self._store.load()
        except TaskTrackerError as e:
            self._record_error("list", e)
            raise
        if wanted is not None:
            tasks = [t for t in tasks if t.status == wanted]
        self._record("list", "tasks_listed")
        return tasks


__all__ = ["TaskService", "normalize_filter", "next_id", "DESCRIPTION_MIN", "DESCRIPTION_MAX"]
