from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

import httpx
from postgrest.exceptions import APIError
from pydantic import ValidationError
from supabase import AsyncClient, acreate_client

from todosync.models.task import TaskRecord
from todosync.observability import get_json_logger, get_metrics

from .interface import StoreResult


class SupabaseTodoStore:
    """Store client backed by the Supabase SDK.

    Queries against `table`:
    - list:   select("*").order("created_at", desc=True)
    - insert: insert({"task": ...}), the SDK returns the created row
    - update: update({"is_completed": ...}).eq("id", id)
    - delete: delete().eq("id", id)

    The SDK client is created on first use. Backend errors (`APIError`) and
    transport errors become failed StoreResults.
    """

    def __init__(
        self,
        *,
        url: str,
        api_key: str,
        table: str = "todos",
        client: AsyncClient | None = None,
    ) -> None:
        self._url = url
        self._api_key = api_key
        self._table = table
        self._client = client
        self._connect_lock = asyncio.Lock()
        self._logger = get_json_logger("todosync.store")
        self._metrics = get_metrics()

    @property
    def table(self) -> str:
        return self._table

    async def _get_client(self) -> AsyncClient:
        async with self._connect_lock:
            if self._client is None:
                self._client = await acreate_client(self._url, self._api_key)
            return self._client

    async def _execute(self, op: str, build: Callable[[Any], Any]) -> tuple[Any, str | None]:
        self._metrics.increment("store_calls", {"op": op})
        client = await self._get_client()
        try:
            resp = await build(client.table(self._table)).execute()
        except APIError as exc:
            return None, self._fail(op, exc.message or str(exc), code=exc.code)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            return None, self._fail(op, str(exc))
        self._logger.debug("store call ok", extra={"event": "store_call", "op": op})
        return resp, None

    def _fail(self, op: str, message: str, *, code: str | None = None) -> str:
        self._logger.error(
            "store call failed",
            extra={
                "event": "store_error",
                "op": op,
                "error": message[:200],
                "attributes": {"code": code},
            },
        )
        self._metrics.increment("store_errors", {"op": op})
        return message

    async def list_tasks(self) -> StoreResult[list[TaskRecord]]:
        resp, err = await self._execute(
            "list", lambda q: q.select("*").order("created_at", desc=True)
        )
        if resp is None:
            return StoreResult.failure(err)
        try:
            return StoreResult.success([TaskRecord.model_validate(row) for row in resp.data or []])
        except ValidationError as exc:
            return StoreResult.failure(self._fail("list", str(exc)))

    async def insert_task(self, task: str) -> StoreResult[TaskRecord | None]:
        resp, err = await self._execute("insert", lambda q: q.insert({"task": task}))
        if resp is None:
            return StoreResult.failure(err)
        rows = resp.data or []
        if isinstance(rows, dict):
            rows = [rows]
        try:
            return StoreResult.success(TaskRecord.model_validate(rows[0]) if rows else None)
        except ValidationError as exc:
            return StoreResult.failure(self._fail("insert", str(exc)))

    async def update_task(self, task_id: str, *, is_completed: bool) -> StoreResult[None]:
        resp, err = await self._execute(
            "update", lambda q: q.update({"is_completed": is_completed}).eq("id", task_id)
        )
        return StoreResult.success() if resp is not None else StoreResult.failure(err)

    async def delete_task(self, task_id: str) -> StoreResult[None]:
        resp, err = await self._execute("delete", lambda q: q.delete().eq("id", task_id))
        return StoreResult.success() if resp is not None else StoreResult.failure(err)

    async def aclose(self) -> None:
        if self._client is None:
            return
        postgrest = getattr(self._client, "postgrest", None)
        if postgrest is not None:
            await postgrest.aclose()


__all__ = ["SupabaseTodoStore"]
