from __future__ import annotations

import datetime as _dt
import math
from typing import Any, Literal, get_args

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

TaskStatus = Literal["todo", "in_progress", "done"]
STATUSES: tuple[str, ...] = get_args(TaskStatus)

# Fixed keys of a stored record, in write order; unknown keys follow them
RECORD_KEYS: tuple[str, ...] = ("id", "description", "status", "createdAt", "updatedAt")


def utc_now() -> _dt.datetime:
    # Second precision keeps stored timestamps in the plain `+00:00` ISO form
    return _dt.datetime.now(_dt.UTC).replace(microsecond=0)


class Task(BaseModel):
    """A single tracked unit of work.

    - `id` is a value, not a position; numeric ids left behind by hand-edited
      files ("3", 2.0, "2.5") are truncated to an int on load
    - Records missing `status` or the timestamps still load; absent timestamps
      stay absent when written back
    - Unknown keys are kept and written back after the fixed ones
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: int = Field(gt=0)
    description: str = ""
    status: TaskStatus = "todo"
    created_at: _dt.datetime | None = Field(default=None, alias="createdAt")
    updated_at: _dt.datetime | None = Field(default=None, alias="updatedAt")

    @field_validator("id", mode="before")
    @classmethod
    def coerce_numeric_id(cls, value: Any) -> Any:
        if isinstance(value, bool):
            raise ValueError("id must be numeric")
        if isinstance(value, int):
            return value
        if isinstance(value, float | str):
            try:
                number = float(value)
            except ValueError:
                raise ValueError(f"id is not numeric: {value!r}") from None
            if not math.isfinite(number):
                raise ValueError(f"id is not finite: {value!r}")
            return int(number)
        return value

    @field_serializer("created_at", "updated_at")
    def serialize_timestamp(self, value: _dt.datetime | None) -> str | None:
        return value.isoformat() if value is not None else None

    def to_record(self) -> dict[str, Any]:
        data = self.model_dump(mode="json", by_alias=True)
        record: dict[str, Any] = {}
        for key in RECORD_KEYS:
            value = data.pop(key)
            if value is None and key in ("createdAt", "updatedAt"):
                continue
            record[key] = value
        record.update(data)
        return record


__all__ = ["Task", "TaskStatus", "STATUSES", "RECORD_KEYS", "utc_now"]
