from __future__ import annotations

from .errors import (
    CorruptStorageError,
    DirCreateFailedError,
    NotFoundError,
    StorageError,
    TaskTrackerError,
    ValidationError,
    WriteFailedError,
)
from .models import STATUSES, Task, TaskStatus
from .service import TaskService
from .store import JsonTaskStore, TaskStore

__all__ = [
    "Task",
    "TaskStatus",
    "STATUSES",
    "TaskStore",
    "JsonTaskStore",
    "TaskService",
    "TaskTrackerError",
    "ValidationError",
    "NotFoundError",
    "StorageError",
    "CorruptStorageError",
    "WriteFailedError",
    "DirCreateFailedError",
]
