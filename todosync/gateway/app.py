from __future__ import annotations

import html
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from fastapi.responses import HTMLResponse
from pydantic import BaseModel

from todosync.observability import configure_uvicorn_logging, get_json_logger, get_metrics
from todosync.sync.synchronizer import TaskSynchronizer, ViewState


class AddTaskRequest(BaseModel):
    task: str


class ToggleRequest(BaseModel):
    # Completion flag the client last displayed; the stored value becomes its negation
    is_completed: bool


_PAGE_SCRIPT = """
async function call(method, path, body) {
  await fetch(path, {
    method: method,
    headers: {"Content-Type": "application/json"},
    body: body === undefined ? undefined : JSON.stringify(body),
  });
  window.location.reload();
}
document.getElementById("add-task-form").addEventListener("submit", function (ev) {
  ev.preventDefault();
  call("POST", "/api/tasks", {task: document.getElementById("task-input").value});
});
document.querySelectorAll(".task-text").forEach(function (el) {
  el.addEventListener("click", function () {
    call("POST", "/api/tasks/" + encodeURIComponent(el.dataset.id) + "/toggle",
         {is_completed: el.dataset.completed === "true"});
  });
});
document.querySelectorAll(".delete-button").forEach(function (el) {
  el.addEventListener("click", function () {
    call("DELETE", "/api/tasks/" + encodeURIComponent(el.dataset.id));
  });
});
"""

_PAGE_STYLE = """
body { font-family: sans-serif; max-width: 40rem; margin: 2rem auto; }
.todo-list { list-style: none; padding: 0; }
.todo-item { display: flex; justify-content: space-between; padding: .4rem 0; }
.todo-item.completed .task-text { text-decoration: line-through; color: #888; }
.task-text { cursor: pointer; }
.error-message { color: #b00020; margin: 1rem 0; }
"""


def render_page(state: ViewState) -> str:
    """Server-side render of the single task list page."""
    parts: list[str] = [
        "<!doctype html>",
        "<html><head><meta charset='utf-8'><title>To-Do List</title>",
        f"<style>{_PAGE_STYLE}</style></head><body>",
        "<div class='app-container'>",
        "<h1>To-Do List</h1>",
        "<form id='add-task-form' class='add-task-form'>",
        "<input id='task-input' type='text' placeholder='Add a new task' class='task-input'>",
        "<button type='submit' class='submit-button'>Add Task</button>",
        "</form>",
    ]
    if state.error:
        parts.append(f"<div class='error-message'>Error: {html.escape(state.error)}</div>")
    if state.loading:
        parts.append("<div class='loading-message'>Loading tasks...</div>")
    elif not state.tasks and not state.error:
        parts.append("<div class='loading-message'>No tasks yet. Add one!</div>")
    else:
        parts.append("<ul class='todo-list'>")
        for t in state.tasks:
            tid = html.escape(t.id, quote=True)
            done = "true" if t.is_completed else "false"
            css = "todo-item completed" if t.is_completed else "todo-item"
            parts.append(
                f"<li class='{css}'>"
                f"<span class='task-text' data-id='{tid}' data-completed='{done}'>"
                f"{html.escape(t.task)}</span>"
                f"<button class='delete-button' data-id='{tid}'>Delete</button></li>"
            )
        parts.append("</ul>")
    parts.append(f"</div><script>{_PAGE_SCRIPT}</script></body></html>")
    return "\n".join(parts)


def create_app(sync: TaskSynchronizer, *, load_on_startup: bool = True) -> FastAPI:
    logger = get_json_logger("todosync.gateway")
    metrics = get_metrics()

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        # Configure uvicorn logging at startup to avoid import-time side effects
        configure_uvicorn_logging()
        if load_on_startup:
            await sync.load_all()
        logger.info("gateway started", extra={"event": "gateway_start", "service": "gateway"})
        try:
            yield
        finally:
            await sync.store.aclose()
            logger.info(
                "gateway shutdown", extra={"event": "gateway_shutdown", "service": "gateway"}
            )

    app = FastAPI(lifespan=lifespan)

    def _respond(op: str) -> dict[str, Any]:
        metrics.increment("gateway_requests", {"op": op})
        return sync.state.to_dict()

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/", response_class=HTMLResponse)
    async def index() -> HTMLResponse:
        return HTMLResponse(render_page(sync.state))

    @app.get("/api/tasks")
    async def list_tasks() -> dict[str, Any]:
        return _respond("list")

    @app.post("/api/reload")
    async def reload() -> dict[str, Any]:
        await sync.load_all()
        return _respond("reload")

    @app.post("/api/tasks")
    async def add_task(body: AddTaskRequest) -> dict[str, Any]:
        await sync.add_task(body.task)
        return _respond("add")

    @app.post("/api/tasks/{task_id}/toggle")
    async def toggle_task(task_id: str, body: ToggleRequest) -> dict[str, Any]:
        await sync.toggle_complete(task_id, body.is_completed)
        return _respond("toggle")

    @app.delete("/api/tasks/{task_id}")
    async def delete_task(task_id: str) -> dict[str, Any]:
        await sync.delete_task(task_id)
        return _respond("delete")

    return app


__all__ = ["AddTaskRequest", "ToggleRequest", "create_app", "render_page"]
