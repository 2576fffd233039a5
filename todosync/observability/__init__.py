from __future__ import annotations

import datetime as dt
import json
import logging
import os
import sys
from collections.abc import Mapping
from typing import Any

SENSITIVE_KEYS = {
    "apikey",
    "api_key",
    "anon_key",
    "supabase_anon_key",
    "authorization",
    "token",
    "password",
    "secret",
}

# Extras copied verbatim into JSON payloads when present on the record
_STANDARD_EXTRAS = (
    "event",
    "op",
    "task_id",
    "duration_ms",
    "error",
    "status_code",
    "attributes",
)


def _iso_now() -> str:
    return dt.datetime.now(dt.UTC).isoformat()


def _redact(obj: Any) -> Any:
    if isinstance(obj, Mapping):
        redacted: dict[str, Any] = {}
        for k, v in obj.items():
            if isinstance(k, str) and k.lower() in SENSITIVE_KEYS:
                redacted[k] = "[REDACTED]"
            else:
                redacted[k] = _redact(v)
        return redacted
    if isinstance(obj, list | tuple):
        return [_redact(v) for v in obj]
    return obj


class JsonLogFormatter(logging.Formatter):
    """One JSON object per line, with standard extras and redacted attributes."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        payload: dict[str, Any] = {
            "ts": _iso_now(),
            "level": record.levelname.lower(),
            "service": getattr(record, "service", None) or os.getenv("SERVICE_NAME"),
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for attr in _STANDARD_EXTRAS:
            if hasattr(record, attr):
                payload[attr] = getattr(record, attr)
        if isinstance(payload.get("attributes"), dict):
            payload["attributes"] = _redact(payload["attributes"])
        if record.exc_info:
            exc_type, exc_value, _ = record.exc_info
            payload["err_type"] = getattr(exc_type, "__name__", str(exc_type))
            if exc_value is not None:
                payload["err"] = str(exc_value)
            payload["stack"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


class ConsoleLogFormatter(logging.Formatter):
    def __init__(self) -> None:
        super().__init__("%(message)s")

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        parts: list[str] = [_iso_now()[11:19], record.levelname.upper()]
        parts.append(str(getattr(record, "service", None) or record.name))
        event = getattr(record, "event", None)
        if event:
            parts.append(str(event))
        op = getattr(record, "op", None)
        if op:
            parts.append(f"op={op}")
        task_id = getattr(record, "task_id", None)
        if task_id is not None:
            parts.append(f"task={task_id}")
        parts.append("-")
        parts.append(record.getMessage())
        error = getattr(record, "error", None)
        if error:
            parts.append(f"({error})")
        return " ".join(parts)


def _choose_formatter() -> logging.Formatter:
    format_pref = (os.getenv("LOG_FORMAT") or "").strip().lower() or "auto"
    if format_pref == "console":
        return ConsoleLogFormatter()
    if format_pref == "auto" and sys.stdout.isatty():
        return ConsoleLogFormatter()
    return JsonLogFormatter()


def _parse_level(value: str | None, default: int = logging.INFO) -> int:
    name = (value or "").strip().upper()
    if not name:
        return default
    level = getattr(logging, name, None)
    return level if isinstance(level, int) else default


def _level_for_logger(logger_name: str) -> int:
    """Resolve LOG_LEVEL, honouring per-prefix overrides in LOG_MODULE_LEVELS.

    Example: ``LOG_MODULE_LEVELS="todosync.store=DEBUG,uvicorn.access=WARNING"``.
    """
    base_level = _parse_level(os.getenv("LOG_LEVEL"), logging.INFO)
    overrides = (os.getenv("LOG_MODULE_LEVELS") or "").strip()
    for entry in overrides.split(","):
        prefix, sep, lvl = entry.strip().partition("=")
        prefix = prefix.strip()
        if not sep or not prefix:
            continue
        if logger_name == prefix or logger_name.startswith(prefix + "."):
            return _parse_level(lvl, base_level)
    return base_level


def _bind_stdout_handler(logger: logging.Logger) -> None:
    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setFormatter(_choose_formatter())
    logger.addHandler(handler)
    logger.setLevel(_level_for_logger(logger.name))
    logger.propagate = False


def get_json_logger(name: str = "todosync") -> logging.Logger:
    logger = logging.getLogger(name)
    if not logger.handlers:
        _bind_stdout_handler(logger)
    return logger


def configure_uvicorn_logging() -> None:
    """Route uvicorn's loggers through the same formatter and level rules."""
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        lg = logging.getLogger(name)
        for h in list(lg.handlers):
            lg.removeHandler(h)
            h.close()
        _bind_stdout_handler(lg)


class Metrics:
    """In-process labelled counters."""

    def __init__(self) -> None:
        self._counters: dict[tuple[str, tuple[tuple[str, str], ...]], int] = {}

    def increment(
        self,
        name: str,
        labels: Mapping[str, str] | None = None,
        amount: int = 1,
    ) -> None:
        key = (name, tuple(sorted((labels or {}).items())))
        self._counters[key] = self._counters.get(key, 0) + amount

    def value(self, name: str, labels: Mapping[str, str] | None = None) -> int:
        return self._counters.get((name, tuple(sorted((labels or {}).items()))), 0)

    def snapshot(self) -> list[dict[str, Any]]:
        return [
            {"name": name, "labels": dict(label_items), "value": value}
            for (name, label_items), value in sorted(self._counters.items())
        ]


_metrics_singleton: Metrics | None = None


def get_metrics() -> Metrics:
    global _metrics_singleton
    if _metrics_singleton is None:
        _metrics_singleton = Metrics()
    return _metrics_singleton


def reset_metrics() -> None:
    global _metrics_singleton
    _metrics_singleton = Metrics()


__all__ = [
    "ConsoleLogFormatter",
    "JsonLogFormatter",
    "Metrics",
    "configure_uvicorn_logging",
    "get_json_logger",
    "get_metrics",
    "reset_metrics",
]
