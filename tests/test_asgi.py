from __future__ import annotations

import importlib
import sys
from collections.abc import Generator

import pytest
from fastapi import FastAPI

from todosync.config import ConfigError

MODULE = "todosync.gateway.asgi"


@pytest.fixture(autouse=True)
def _fresh_import() -> Generator[None, None, None]:
    sys.modules.pop(MODULE, None)
    yield
    sys.modules.pop(MODULE, None)


def test_import_without_store_config_aborts(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("SUPABASE_URL", raising=False)
    monkeypatch.setenv("SUPABASE_ANON_KEY", "k")

    with pytest.raises(ConfigError) as ei:
        importlib.import_module(MODULE)
    assert "SUPABASE_URL" in str(ei.value)


def test_import_with_malformed_url_aborts(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SUPABASE_URL", "https://[::1")
    monkeypatch.setenv("SUPABASE_ANON_KEY", "k")

    with pytest.raises(ConfigError):
        importlib.import_module(MODULE)


def test_import_with_config_builds_app(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SUPABASE_URL", "https://demo.supabase.co")
    monkeypatch.setenv("SUPABASE_ANON_KEY", "k")

    module = importlib.import_module(MODULE)

    assert isinstance(module.app, FastAPI)
