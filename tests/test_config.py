"""
Tests for environment-driven settings.
"""

from __future__ import annotations

import pytest

from identity_profiler.config import Settings, get_settings, load_settings

ENV_KEYS = (
    "PORT", "API_PORT", "API_HOST", "LOG_LEVEL", "HEARTBEAT_INTERVAL_SEC", "BASE_PATH", "CORS_ORIGINS",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_defaults():
    settings = load_settings()
    assert settings.api_port == 3001
    assert settings.heartbeat_interval_sec == 30.0
    assert settings.base_path == "/watcher"
    assert settings.cors_origins == ("*",)


def test_port_fallback_and_overrides(monkeypatch):
    """PORT wins over API_PORT; API_PORT is used when PORT is unset."""
    monkeypatch.setenv("API_PORT", "8080")
    assert load_settings().api_port == 8080
    monkeypatch.setenv("PORT", "9000")
    monkeypatch.setenv("CORS_ORIGINS", "https://a.example, https://b.example")
    monkeypatch.setenv("BASE_PATH", "/app/")
    settings = load_settings()
    assert settings.api_port == 9000
    assert settings.cors_origins == ("https://a.example", "https://b.example")
    assert settings.base_path == "/app"


def test_invalid_values_raise(monkeypatch):
    monkeypatch.setenv("PORT", "not-a-port")
    with pytest.raises(ValueError, match="PORT"):
        load_settings()
    with pytest.raises(ValueError):
        Settings(heartbeat_interval_sec=0)


def test_get_settings_is_cached():
    assert get_settings() is get_settings()
