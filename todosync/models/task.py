from __future__ import annotations

import datetime as _dt
from typing import Any

from pydantic import BaseModel, field_validator


class TaskRecord(BaseModel):
    """A task row as stored in the remote `todos` table.

    - `id` and `created_at` are assigned by the store
    - `id` is opaque; integer ids from the store are kept as strings
    - Columns not listed here are ignored
    """

    id: str
    task: str
    is_completed: bool = False
    created_at: _dt.datetime | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


__all__ = ["TaskRecord"]
