from __future__ import annotations

import os
from collections.abc import Generator

import pytest

from todosync.observability import reset_metrics


@pytest.fixture(scope="session", autouse=True)
def _json_logs_by_default() -> None:
    """Keep log lines machine-parseable when tests capture stdout."""
    os.environ.setdefault("LOG_FORMAT", "json")


@pytest.fixture(autouse=True)
def _fresh_metrics() -> Generator[None, None, None]:
    reset_metrics()
    yield
    reset_metrics()
