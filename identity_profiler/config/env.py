"""
Environment variable loading for Identity Profiler.

- Loads .env from project root when available.
- Small typed readers used by settings (strings, ints, floats, csv lists).
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

# Project root: config is identity_profiler/config/, root is 2 levels up
_CONFIG_DIR = Path(__file__).resolve().parent
_PACKAGE_DIR = _CONFIG_DIR.parent
PROJECT_ROOT = _PACKAGE_DIR.parent
_ENV_PATH = PROJECT_ROOT / ".env"


def load_profiler_env() -> None:
    """Load .env from project root. Safe to call multiple times; existing env wins."""
    if _ENV_PATH.is_file():
        load_dotenv(_ENV_PATH, override=False)


def env_str(name: str, default: str, *fallbacks: str) -> str:
    """Return the first non-empty value among name and fallbacks, else default."""
    for key in (name, *fallbacks):
        raw = (os.getenv(key) or "").strip()
        if raw:
            return raw
    return default


def env_int(name: str, default: int, *fallbacks: str) -> int:
    raw = env_str(name, "", *fallbacks)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def env_float(name: str, default: float) -> float:
    raw = env_str(name, "")
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


def env_list(name: str, default: str) -> tuple[str, ...]:
    """Comma-separated env value as a tuple of stripped, non-empty items."""
    raw = env_str(name, default)
    return tuple(item.strip() for item in raw.split(",") if item.strip())
