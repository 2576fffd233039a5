from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any

import httpx

REQUIRED_VARS = ("SUPABASE_URL", "SUPABASE_ANON_KEY")


class ConfigError(RuntimeError):
    """Required configuration is missing or invalid; the process should not start."""


@dataclass(slots=True)
class AppConfig:
    store_url: str
    store_key: str
    table: str
    host: str
    port: int


def _read_port(raw: str | None, default: int = 8000) -> int:
    try:
        value = int((raw or "").strip())
    except ValueError:
        return default
    return value if 0 < value < 65536 else default


def _read_store_url(raw: str) -> str:
    url = raw.strip()
    try:
        parsed = httpx.URL(url)
    except httpx.InvalidURL as exc:
        raise ConfigError(f"SUPABASE_URL is not a valid URL: {exc}") from exc
    if parsed.scheme not in ("http", "https") or not parsed.host:
        raise ConfigError("SUPABASE_URL must be an http(s) URL with a host")
    return url


def load_config(env: dict[str, str] | None = None) -> AppConfig:
    e: dict[str, Any] = dict(os.environ)
    if env:
        e.update(env)
    missing = [name for name in REQUIRED_VARS if not (e.get(name) or "").strip()]
    if missing:
        raise ConfigError(
            f"{' and '.join(missing)} missing. Set them in the environment before starting."
        )
    return AppConfig(
        store_url=_read_store_url(e["SUPABASE_URL"]),
        store_key=e["SUPABASE_ANON_KEY"].strip(),
        table=(e.get("TODO_TABLE") or "").strip() or "todos",
        host=(e.get("GATEWAY_HOST") or "").strip() or "127.0.0.1",
        port=_read_port(e.get("GATEWAY_PORT")),
    )


__all__ = ["AppConfig", "ConfigError", "load_config"]
