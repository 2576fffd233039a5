from __future__ import annotations

import argparse
import asyncio
import json
import os
import sys
from collections.abc import Awaitable, Callable

from todosync.config import AppConfig, ConfigError, load_config
from todosync.store.interface import StoreClient
from todosync.store.supabase_store import SupabaseTodoStore
from todosync.sync.synchronizer import TaskSynchronizer, ViewState


class UnknownTaskError(LookupError):
    """The task id given on the command line is not in the loaded list."""


def build_store(cfg: AppConfig) -> StoreClient:
    return SupabaseTodoStore(url=cfg.store_url, api_key=cfg.store_key, table=cfg.table)


def format_state(state: ViewState) -> str:
    lines: list[str] = []
    if state.error:
        lines.append(f"Error: {state.error}")
    if not state.tasks and not state.error:
        lines.append("No tasks yet. Add one!")
    for t in state.tasks:
        mark = "x" if t.is_completed else " "
        lines.append(f"[{mark}] {t.id}  {t.task}")
    return "\n".join(lines)


async def _run_one_shot(
    store: StoreClient,
    action: Callable[[TaskSynchronizer], Awaitable[object]] | None,
) -> ViewState:
    sync = TaskSynchronizer(store)
    try:
        await sync.load_all()
        if action is not None and sync.state.error is None:
            await action(sync)
        return sync.state
    finally:
        await store.aclose()


def _toggle_action(task_id: str) -> Callable[[TaskSynchronizer], Awaitable[object]]:
    async def _toggle(sync: TaskSynchronizer) -> bool:
        current = sync.state.find(task_id)
        if current is None:
            raise UnknownTaskError(task_id)
        return await sync.toggle_complete(task_id, current.is_completed)

    return _toggle


def _serve(cfg: AppConfig, host: str | None, port: int | None) -> None:
    # Defer import to keep one-shot commands light
    import uvicorn

    uvicorn.run(
        "todosync.gateway.asgi:app",
        host=host or cfg.host,
        port=port or cfg.port,
        log_config=None,
    )


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser("todosync")
    parser.add_argument(
        "--log-level", choices=["debug", "info", "warning", "error"], default=None
    )
    sub = parser.add_subparsers(dest="cmd")

    p_serve = sub.add_parser("serve", help="Serve the task list page and JSON API")
    p_serve.add_argument("--host")
    p_serve.add_argument("--port", type=int)

    p_list = sub.add_parser("list", help="Print all tasks, newest first")
    p_list.add_argument("--json", action="store_true")

    p_add = sub.add_parser("add", help="Add a task")
    p_add.add_argument("text")

    p_toggle = sub.add_parser("toggle", help="Flip a task's completion flag")
    p_toggle.add_argument("task_id")

    p_delete = sub.add_parser("delete", help="Delete a task")
    p_delete.add_argument("task_id")

    args = parser.parse_args(argv)
    cmd = getattr(args, "cmd", None)
    if cmd is None:
        parser.print_help()
        return

    try:
        cfg = load_config()
    except ConfigError as exc:
        sys.stderr.write(f"error: {exc}\n")
        raise SystemExit(2) from exc

    if cmd == "serve":
        _serve(cfg, args.host, args.port)
        return

    if args.log_level:
        # Loggers read LOG_LEVEL when first created, which happens below
        os.environ["LOG_LEVEL"] = args.log_level.upper()

    action: Callable[[TaskSynchronizer], Awaitable[object]] | None = None
    if cmd == "add":
        text: str = args.text
        action = lambda sync: sync.add_task(text)  # noqa: E731
    elif cmd == "toggle":
        action = _toggle_action(args.task_id)
    elif cmd == "delete":
        task_id: str = args.task_id
        action = lambda sync: sync.delete_task(task_id)  # noqa: E731

    try:
        state = asyncio.run(_run_one_shot(build_store(cfg), action))
    except UnknownTaskError as exc:
        sys.stderr.write(f"error: unknown task id: {exc.args[0]}\n")
        raise SystemExit(1) from exc
    if getattr(args, "json", False):
        sys.stdout.write(json.dumps(state.to_dict(), ensure_ascii=False) + "\n")
    else:
        sys.stdout.write(format_state(state) + "\n")
    if state.error:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
