from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, Protocol, TypeVar

from todosync.models.task import TaskRecord

T = TypeVar("T")


@dataclass(slots=True)
class StoreResult(Generic[T]):
    """Outcome of one store call: a payload on success, a message on failure."""

    ok: bool
    data: T | None = None
    error: str | None = None

    @classmethod
    def success(cls, data: Any = None) -> StoreResult[Any]:
        return cls(ok=True, data=data)

    @classmethod
    def failure(cls, message: str | None) -> StoreResult[Any]:
        return cls(ok=False, error=message)


class StoreClient(Protocol):
    """Remote task collection.

    Every call returns exactly one StoreResult and never raises for
    transport or backend errors.
    """

    async def list_tasks(self) -> StoreResult[list[TaskRecord]]:
        """All records, newest `created_at` first."""

    async def insert_task(self, task: str) -> StoreResult[TaskRecord | None]:
        """Insert one record. Success may carry no record if the store returned none."""

    async def update_task(self, task_id: str, *, is_completed: bool) -> StoreResult[None]:
        """Patch the completion flag of one record."""

    async def delete_task(self, task_id: str) -> StoreResult[None]:
        """Delete one record."""

    async def aclose(self) -> None:
        """Release the underlying transport."""


__all__ = ["StoreClient", "StoreResult"]
