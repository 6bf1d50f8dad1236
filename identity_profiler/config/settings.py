"""
Application settings and environment configuration.

Responsibilities:
- Load configuration from environment variables and .env files.
- Validate values and provide defaults for optional ones.
- Expose typed settings (listen address, heartbeat interval, GeoIP paths,
  static frontend location) for the presence service and API server.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from identity_profiler.config.env import (
    PROJECT_ROOT,
    env_float,
    env_int,
    env_list,
    env_str,
    load_profiler_env,
)

DEFAULT_PORT = 3001
DEFAULT_HEARTBEAT_INTERVAL_SEC = 30.0
DEFAULT_GEO_HTTP_TIMEOUT_SEC = 5.0
DEFAULT_BASE_PATH = "/watcher"


@dataclass(frozen=True)
class Settings:
    """Typed service configuration; built once from the environment."""

    api_host: str = "0.0.0.0"
    api_port: int = DEFAULT_PORT
    log_level: str = "info"
    heartbeat_interval_sec: float = DEFAULT_HEARTBEAT_INTERVAL_SEC
    geoip_db_path: Path = PROJECT_ROOT / "data" / "GeoLite2-City.mmdb"
    geo_http_timeout_sec: float = DEFAULT_GEO_HTTP_TIMEOUT_SEC
    local_timezone: str = "UTC"
    static_dir: Path = PROJECT_ROOT / "dist"
    base_path: str = DEFAULT_BASE_PATH
    cors_origins: tuple[str, ...] = ("*",)

    def __post_init__(self) -> None:
        if self.heartbeat_interval_sec <= 0:
            raise ValueError("heartbeat_interval_sec must be positive")
        if not 0 < self.api_port < 65536:
            raise ValueError(f"api_port out of range: {self.api_port}")
        if not self.base_path.startswith("/"):
            raise ValueError("base_path must start with '/'")


def _resolve_path(raw: str) -> Path:
    path = Path(raw)
    return path if path.is_absolute() else PROJECT_ROOT / path


def load_settings() -> Settings:
    """Build Settings from the current environment (no caching)."""
    load_profiler_env()
    return Settings(
        api_host=env_str("API_HOST", "0.0.0.0"),
        api_port=env_int("PORT", DEFAULT_PORT, "API_PORT"),
        log_level=env_str("LOG_LEVEL", "info").lower(),
        heartbeat_interval_sec=env_float("HEARTBEAT_INTERVAL_SEC", DEFAULT_HEARTBEAT_INTERVAL_SEC),
        geoip_db_path=_resolve_path(env_str("GEOIP_DB_PATH", "data/GeoLite2-City.mmdb")),
        geo_http_timeout_sec=env_float("GEO_HTTP_TIMEOUT_SEC", DEFAULT_GEO_HTTP_TIMEOUT_SEC),
        local_timezone=env_str("LOCAL_TIMEZONE", "UTC"),
        static_dir=_resolve_path(env_str("STATIC_DIR", "dist")),
        base_path=env_str("BASE_PATH", DEFAULT_BASE_PATH).rstrip("/") or DEFAULT_BASE_PATH,
        cors_origins=env_list("CORS_ORIGINS", "*"),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Return the current application settings.

    Cached for the process lifetime; tests call get_settings.cache_clear()
    after changing the environment.
    """
    return load_settings()
