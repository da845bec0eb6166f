from __future__ import annotations


class TaskTrackerError(Exception):
    """Base class for every error reported by the task tracker."""


class ValidationError(TaskTrackerError, ValueError):
    """Rejected input: description length, status or filter token."""


class UsageError(TaskTrackerError):
    """Malformed command line (missing argument, bad id, unknown command)."""


class NotFoundError(TaskTrackerError, LookupError):
    def __init__(self, task_id: int) -> None:
        super().__init__(f"Task not found: {task_id}")
        self.task_id = task_id


class StorageError(TaskTrackerError):
    def __init__(self, message: str, path: str) -> None:
        super().__init__(message)
        self.path = path


class CorruptStorageError(StorageError):
    """The storage file exists but does not hold a JSON array of tasks."""


class WriteFailedError(StorageError):
    pass


class DirCreateFailedError(StorageError):
    pass


__all__ = [
    "TaskTrackerError",
    "ValidationError",
    "UsageError",
    "NotFoundError",
    "StorageError",
    "CorruptStorageError",
    "WriteFailedError",
    "DirCreateFailedError",
]
