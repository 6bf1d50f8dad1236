"""
Pytest tests for the FastAPI surface: health, roster, analysis endpoint,
presence WebSocket and the optional static frontend mount.

Uses the TestClient fixture from conftest (lifespan running, resolver injected).
"""

from __future__ import annotations

import inspect
from unittest.mock import patch

from fastapi.testclient import TestClient

from identity_profiler.api_server.server import create_app
from identity_profiler.config import Settings

WS_HEADERS = {"user-agent": "Mozilla/5.0 TestBrowser", "x-forwarded-for": "203.0.113.7"}


def test_health(client):
    """GET /health reports status, visitor count, uptime and analysis availability."""
    r = client.get("/health")
    assert r.status_code == 200
    data = r.json()
    assert data["status"] == "ok"
    assert data["visitors"] == 0
    assert data["uptime"] >= 0
    assert data["analysisEnabled"] is True


def test_health_and_roster_handlers_run_on_event_loop(settings, resolver):
    """Handlers reading live presence state are coroutines, not threadpool functions."""
    app = create_app(settings, resolver=resolver)
    endpoints = {route.path: route.endpoint for route in app.routes if route.path in ("/health", "/visitors")}
    assert set(endpoints) == {"/health", "/visitors"}
    for endpoint in endpoints.values():
        assert inspect.iscoroutinefunction(endpoint)


def test_visitors_empty(client):
    r = client.get("/visitors")
    assert r.status_code == 200
    assert r.json() == {"visitors": []}


def test_cors_allows_any_origin(client):
    r = client.get("/health", headers={"origin": "https://example.org"})
    assert r.headers.get("access-control-allow-origin") == "*"


def test_analyze_success(client, bundle):
    """POST /api/analyze returns success with a camelCase profile."""
    r = client.post("/api/analyze", json=bundle)
    assert r.status_code == 200
    data = r.json()
    assert data["success"] is True
    assert data["fallback"] is False
    assert "error" not in data
    analysis = data["analysis"]
    assert 0 <= analysis["humanScore"] <= 100
    assert 0 <= analysis["confidence"] <= 92
    assert analysis["personalLife"]["petOwner"].startswith("Cannot determine")


def test_analyze_missing_hardware(client, bundle):
    del bundle["hardware"]
    r = client.post("/api/analyze", json=bundle)
    assert r.status_code == 400
    assert r.json() == {"success": False, "error": "Invalid request data"}


def test_analyze_malformed_json(client):
    r = client.post(
        "/api/analyze",
        content=b"{not json",
        headers={"content-type": "application/json"},
    )
    assert r.status_code == 400
    assert r.json()["success"] is False


def test_analyze_internal_failure(client, bundle):
    """Unexpected engine faults map to 500 'Analysis failed'."""
    with patch("identity_profiler.api_server.server.analyze_signals", side_effect=RuntimeError("boom")):
        r = client.post("/api/analyze", json=bundle)
    assert r.status_code == 500
    assert r.json() == {"success": False, "error": "Analysis failed"}


def test_websocket_welcome_join_leave(client, resolver):
    """Second viewer's join and leave are announced to the first, welcome lists both."""
    with client.websocket_connect("/ws", headers=WS_HEADERS) as first:
        welcome_1 = first.receive_json()
        assert welcome_1["type"] == "welcome"
        first_id = welcome_1["payload"]["visitor"]["id"]
        assert welcome_1["payload"]["visitor"]["userAgent"] == "Mozilla/5.0 TestBrowser"
        assert welcome_1["payload"]["visitor"]["location"]["city"] == "Berlin"

        with client.websocket_connect("/", headers=WS_HEADERS) as second:
            welcome_2 = second.receive_json()
            second_id = welcome_2["payload"]["visitor"]["id"]
            assert [v["id"] for v in welcome_2["payload"]["visitors"]] == [first_id, second_id]

            joined = first.receive_json()
            assert joined == {"type": "visitor_joined", "payload": {"visitor": welcome_2["payload"]["visitor"]}}

            roster = client.get("/visitors").json()["visitors"]
            assert {v["id"] for v in roster} == {first_id, second_id}

        left = first.receive_json()
        assert left["type"] == "visitor_left"
        assert left["payload"]["visitor"]["id"] == second_id

        # Inbound frames are heartbeats; the connection stays registered
        first.send_text("pong")
        assert client.get("/health").json()["visitors"] == 1

    assert resolver.calls == ["203.0.113.7", "203.0.113.7"]


def test_static_frontend_mounted(tmp_path, resolver):
    """Built frontend is served under the base path with index.html fallback."""
    dist = tmp_path / "dist"
    dist.mkdir()
    (dist / "index.html").write_text("<html>profiler</html>")
    app = create_app(Settings(static_dir=dist, base_path="/watcher"), resolver=resolver)
    with TestClient(app) as c:
        assert "profiler" in c.get("/watcher/").text
        r = c.get("/watcher/some/client/route")
        assert r.status_code == 200
        assert "profiler" in r.text


def test_static_frontend_absent(client):
    assert client.get("/watcher/").status_code == 404
