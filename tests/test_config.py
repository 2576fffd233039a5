from __future__ import annotations

import pytest

from todosync.config import ConfigError, load_config


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    names = ("SUPABASE_URL", "SUPABASE_ANON_KEY", "TODO_TABLE", "GATEWAY_HOST", "GATEWAY_PORT")
    for name in names:
        monkeypatch.delenv(name, raising=False)


def test_load_config_defaults() -> None:
    cfg = load_config({"SUPABASE_URL": "https://demo.supabase.co", "SUPABASE_ANON_KEY": "k"})
    assert cfg.store_url == "https://demo.supabase.co"
    assert cfg.store_key == "k"
    assert cfg.table == "todos"
    assert cfg.host == "127.0.0.1"
    assert cfg.port == 8000


def test_load_config_reads_process_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SUPABASE_URL", "https://env.supabase.co")
    monkeypatch.setenv("SUPABASE_ANON_KEY", "env-key")
    monkeypatch.setenv("TODO_TABLE", "chores")
    monkeypatch.setenv("GATEWAY_PORT", "9001")
    cfg = load_config()
    assert cfg.store_url == "https://env.supabase.co"
    assert cfg.table == "chores"
    assert cfg.port == 9001


@pytest.mark.parametrize(
    "env,missing",
    [
        ({}, "SUPABASE_URL and SUPABASE_ANON_KEY"),
        ({"SUPABASE_URL": "https://x"}, "SUPABASE_ANON_KEY"),
        ({"SUPABASE_URL": "  ", "SUPABASE_ANON_KEY": "k"}, "SUPABASE_URL"),
    ],
)
def test_missing_required_values_are_fatal(env: dict[str, str], missing: str) -> None:
    with pytest.raises(ConfigError) as ei:
        load_config(env)
    assert missing in str(ei.value)


@pytest.mark.parametrize("raw", ["abc", "0", "70000", ""])
def test_invalid_port_falls_back(raw: str) -> None:
    cfg = load_config(
        {"SUPABASE_URL": "https://x", "SUPABASE_ANON_KEY": "k", "GATEWAY_PORT": raw}
    )
    assert cfg.port == 8000


@pytest.mark.parametrize("url", ["https://[::1", "not a url", "ftp://demo.supabase.co"])
def test_malformed_store_url_is_fatal(url: str) -> None:
    with pytest.raises(ConfigError) as ei:
        load_config({"SUPABASE_URL": url, "SUPABASE_ANON_KEY": "k"})
    assert "SUPABASE_URL" in str(ei.value)
