from __future__ import annotations

import httpx
import pytest
from httpx import ASGITransport

from tests.helpers.store import InMemoryStore, make_task
from todosync.gateway.app import create_app, render_page
from todosync.sync.synchronizer import TaskSynchronizer, ViewState


def _sync() -> TaskSynchronizer:
    store = InMemoryStore(
        [
            make_task("1", "buy milk", minutes=2),
            make_task("2", "pay <bills>", minutes=1),
        ]
    )
    return TaskSynchronizer(store)


def _client(sync: TaskSynchronizer) -> httpx.AsyncClient:
    app = create_app(sync, load_on_startup=False)
    return httpx.AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


@pytest.mark.asyncio
async def test_health_ok() -> None:
    async with _client(_sync()) as client:
        resp = await client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_reload_then_list_returns_view_state() -> None:
    sync = _sync()
    async with _client(sync) as client:
        resp = await client.post("/api/reload")
        assert resp.status_code == 200
        body = resp.json()
        assert [t["id"] for t in body["tasks"]] == ["1", "2"]
        assert body["error"] is None
        assert body["loading"] is False
        assert isinstance(body["tasks"][0]["created_at"], str)

        listed = (await client.get("/api/tasks")).json()
        assert listed == body


@pytest.mark.asyncio
async def test_add_toggle_delete_through_api() -> None:
    sync = _sync()
    await sync.load_all()
    async with _client(sync) as client:
        added = (await client.post("/api/tasks", json={"task": " clean house "})).json()
        assert added["tasks"][0]["task"] == "clean house"
        new_id = added["tasks"][0]["id"]

        toggled = (
            await client.post("/api/tasks/1/toggle", json={"is_completed": False})
        ).json()
        done = {t["id"]: t["is_completed"] for t in toggled["tasks"]}
        assert done["1"] is True

        deleted = (await client.delete(f"/api/tasks/{new_id}")).json()
        assert [t["id"] for t in deleted["tasks"]] == ["1", "2"]


@pytest.mark.asyncio
async def test_store_failures_are_reported_in_state_not_http_errors() -> None:
    sync = _sync()
    await sync.load_all()
    sync.store.fail["delete"] = "network down"  # type: ignore[attr-defined]
    async with _client(sync) as client:
        resp = await client.delete("/api/tasks/2")
        assert resp.status_code == 200
        body = resp.json()
        assert [t["id"] for t in body["tasks"]] == ["1", "2"]
        assert body["error"] == "network down"


@pytest.mark.asyncio
async def test_blank_add_is_noop_and_malformed_body_is_422() -> None:
    sync = _sync()
    await sync.load_all()
    async with _client(sync) as client:
        resp = await client.post("/api/tasks", json={"task": "   "})
        assert resp.status_code == 200
        assert len(resp.json()["tasks"]) == 2

        bad = await client.post("/api/tasks", json={"text": "wrong field"})
        assert bad.status_code == 422

        bad_toggle = await client.post("/api/tasks/1/toggle", json={})
        assert bad_toggle.status_code == 422
    assert sync.store.ops() == ["list"]  # type: ignore[attr-defined]


@pytest.mark.asyncio
async def test_index_renders_escaped_tasks_and_error_banner() -> None:
    sync = _sync()
    await sync.load_all()
    await sync.toggle_complete("1", False)
    sync.state.error = "boom <b>"
    async with _client(sync) as client:
        resp = await client.get("/")
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/html")
        page = resp.text
    assert "pay &lt;bills&gt;" in page
    assert "Error: boom &lt;b&gt;" in page
    assert "todo-item completed" in page


def test_render_page_loading_and_empty_states() -> None:
    assert "Loading tasks..." in render_page(ViewState(loading=True))
    assert "No tasks yet. Add one!" in render_page(ViewState())
    errored = render_page(ViewState(error="Failed to fetch todos."))
    assert "No tasks yet" not in errored
    assert "Error: Failed to fetch todos." in errored


@pytest.mark.asyncio
async def test_lifespan_loads_on_startup_and_closes_store() -> None:
    sync = _sync()
    app = create_app(sync)
    async with app.router.lifespan_context(app):
        assert [t.id for t in sync.state.tasks] == ["1", "2"]
    assert sync.store.closed is True  # type: ignore[attr-defined]
