from __future__ import annotations

import time
from collections.abc import Awaitable
from dataclasses import dataclass, field
from typing import Any, TypeVar

from todosync.models.task import TaskRecord
from todosync.observability import get_json_logger, get_metrics
from todosync.store.interface import StoreClient, StoreResult

T = TypeVar("T")

FETCH_FAILED = "Failed to fetch todos."
ADD_FAILED = "Failed to add task."
UPDATE_FAILED = "Failed to update task."
DELETE_FAILED = "Failed to delete task."


@dataclass
class ViewState:
    """What the UI renders: the ordered task list, one error slot and a loading flag."""

    tasks: list[TaskRecord] = field(default_factory=list)
    error: str | None = None
    loading: bool = False

    def find(self, task_id: str) -> TaskRecord | None:
        return next((t for t in self.tasks if t.id == task_id), None)

    def to_dict(self) -> dict[str, Any]:
        return {
            "tasks": [t.model_dump(mode="json") for t in self.tasks],
            "error": self.error,
            "loading": self.loading,
        }


class TaskSynchronizer:
    """Keeps a ViewState consistent with the outcomes of store calls.

    - load_all replaces the list wholesale (and is the only thing that clears the error)
    - add_task prepends the record the store returns; nothing is added before confirmation
    - toggle_complete applies the new flag only after the store confirms it
    - delete_task removes optimistically and restores the snapshot on failure

    Overlapping calls are not serialized; whichever response lands last wins.
    """

    def __init__(self, store: StoreClient, state: ViewState | None = None) -> None:
        self.store = store
        self.state = state or ViewState()
        self._logger = get_json_logger("todosync.sync")
        self._metrics = get_metrics()

    def _report(
        self, op: str, message: str | None, fallback: str, task_id: str | None = None
    ) -> None:
        self.state.error = message or fallback
        self._logger.error(
            "sync operation failed",
            extra={"event": "sync_error", "op": op, "task_id": task_id, "error": self.state.error},
        )

    async def _call(self, op: str, pending: Awaitable[StoreResult[T]]) -> StoreResult[T]:
        # A store that raises instead of returning a failure is treated as a failure
        try:
            return await pending
        except Exception as exc:  # noqa: BLE001
            self._logger.error(
                "store call raised",
                exc_info=True,
                extra={"event": "store_error", "op": op, "error": str(exc)[:200]},
            )
            return StoreResult.failure(str(exc))

    async def load_all(self) -> bool:
        self.state.loading = True
        started = time.perf_counter()
        try:
            result = await self._call("load", self.store.list_tasks())
            if not result.ok:
                self.state.tasks = []
                self._report("load", result.error, FETCH_FAILED)
                return False
            self.state.tasks = list(result.data or [])
            self.state.error = None
            self._logger.info(
                "tasks loaded",
                extra={
                    "event": "sync_load",
                    "op": "load",
                    "duration_ms": (time.perf_counter() - started) * 1000.0,
                    "attributes": {"count": len(self.state.tasks)},
                },
            )
            return True
        finally:
            self.state.loading = False

    async def add_task(self, text: str) -> TaskRecord | None:
        task = (text or "").strip()
        if not task:
            return None
        result = await self._call("add", self.store.insert_task(task))
        if not result.ok:
            self._report("add", result.error, ADD_FAILED)
            return None
        if result.data is None:
            # Insert succeeded but the store echoed nothing back
            await self.load_all()
            return None
        self.state.tasks = [result.data, *self.state.tasks]
        self._logger.info(
            "task added", extra={"event": "sync_add", "op": "add", "task_id": result.data.id}
        )
        return result.data

    async def toggle_complete(self, task_id: str, current: bool) -> bool:
        target = not current
        result = await self._call("toggle", self.store.update_task(task_id, is_completed=target))
        if not result.ok:
            self._report("toggle", result.error, UPDATE_FAILED, task_id)
            return False
        self.state.tasks = [
            t.model_copy(update={"is_completed": target}) if t.id == task_id else t
            for t in self.state.tasks
        ]
        self._logger.info(
            "task toggled",
            extra={
                "event": "sync_toggle",
                "op": "toggle",
                "task_id": task_id,
                "attributes": {"is_completed": target},
            },
        )
        return True

    async def delete_task(self, task_id: str) -> bool:
        snapshot = list(self.state.tasks)
        self.state.tasks = [t for t in snapshot if t.id != task_id]
        result = await self._call("delete", self.store.delete_task(task_id))
        if not result.ok:
            self.state.tasks = snapshot
            self._metrics.increment("sync_rollbacks", {"op": "delete"})
            self._report("delete", result.error, DELETE_FAILED, task_id)
            return False
        self._logger.info(
            "task deleted", extra={"event": "sync_delete", "op": "delete", "task_id": task_id}
        )
        return True


__all__ = [
    "ADD_FAILED",
    "DELETE_FAILED",
    "FETCH_FAILED",
    "TaskSynchronizer",
    "UPDATE_FAILED",
    "ViewState",
]
