"""
Pytest fixtures for Identity Profiler tests.

In-memory connection and resolver fakes for the presence layer, a baseline
signal bundle for the analysis engine, and a TestClient over an app built
with an injected resolver (no network, no GeoLite2 file).
"""

from __future__ import annotations

import copy
import json
from typing import Any

import pytest

from identity_profiler.config import Settings
from identity_profiler.geolocation import LocationRecord


class FakeConnection:
    """Connection double: records frames and pings, never touches a socket."""

    def __init__(self, name: str = "conn") -> None:
        self.name = name
        self.open = True
        self.sent: list[dict[str, Any]] = []
        self.pings = 0
        self.terminated = False

    @property
    def is_open(self) -> bool:
        return self.open

    async def send_text(self, data: str) -> None:
        if self.open:
            self.sent.append(json.loads(data))

    async def ping(self) -> None:
        self.pings += 1

    async def terminate(self) -> None:
        self.open = False
        self.terminated = True

    def of_type(self, message_type: str) -> list[dict[str, Any]]:
        return [m for m in self.sent if m["type"] == message_type]


class FakeResolver:
    """Resolver double returning a fixed record per IP and counting lookups."""

    def __init__(self, record: LocationRecord | None = None) -> None:
        self.record = record
        self.calls: list[str] = []

    async def resolve(self, ip: str) -> LocationRecord | None:
        self.calls.append(ip)
        return self.record


BERLIN = LocationRecord(
    ip="203.0.113.7",
    city="Berlin",
    region="Berlin",
    country="Germany",
    country_code="DE",
    latitude=52.52,
    longitude=13.405,
    timezone="Europe/Berlin",
    isp="Example Telecom",
)

BASE_BUNDLE: dict[str, Any] = {
    "hardware": {
        "gpu": "ANGLE (Intel, Intel(R) UHD Graphics 620)",
        "cpuCores": 4,
        "ram": 8,
        "screenWidth": 1920,
        "screenHeight": 1080,
        "pixelRatio": 1,
    },
    "network": {"city": "Berlin", "country": "Germany", "isp": "Example Telecom", "timezone": "Europe/Berlin"},
    "browser": {
        "userAgent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64)",
        "languages": ["en-US"],
        "historyLength": 5,
        "referrer": "",
    },
    "fingerprints": {"extensionsDetected": []},
    "behavioral": {
        "typing": {"totalKeystrokes": 12, "averageWPM": 40},
        "mouse": {"totalClicks": 4, "movements": 150, "rageClicks": 0, "erraticMovements": 0},
        "attention": {"tabSwitches": 1, "focusTime": 12000},
    },
    "currentTime": {"hour": 20, "dayOfWeek": 3, "isWeekend": False, "localTimezone": "Europe/Berlin"},
}


@pytest.fixture
def connection_factory():
    return FakeConnection


@pytest.fixture
def resolver() -> FakeResolver:
    return FakeResolver(BERLIN)


@pytest.fixture
def bundle() -> dict[str, Any]:
    """Fresh deep copy of the baseline bundle; tests mutate it freely."""
    return copy.deepcopy(BASE_BUNDLE)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(static_dir=tmp_path / "dist", heartbeat_interval_sec=30)


@pytest.fixture
def client(settings, resolver):
    """FastAPI TestClient with lifespan running; resolver injected so no lookups leave the process."""
    from fastapi.testclient import TestClient

    from identity_profiler.api_server.server import create_app

    app = create_app(settings, resolver=resolver)
    with TestClient(app) as test_client:
        yield test_client
