"""
Tests for the presence layer: broadcast protocol, liveness sweep and the
connect/disconnect lifecycle of PresenceService.

Coroutines are driven with asyncio.run; connections are in-memory fakes.
"""

from __future__ import annotations

import asyncio
import json
from unittest.mock import call, patch

from starlette.websockets import WebSocketState

from identity_profiler.presence import protocol
from identity_profiler.presence.liveness import LivenessMonitor
from identity_profiler.presence.registry import ConnectionRegistry
from identity_profiler.presence.service import REASON_HEARTBEAT_TIMEOUT, PresenceService
from identity_profiler.presence.transport import HEARTBEAT_FRAME, WebSocketConnection

# -----------------------------------------------------------------------------
# Protocol
# -----------------------------------------------------------------------------


def test_broadcast_except_skips_excluded_and_closed(connection_factory):
    """Every open handle except the excluded one gets the frame exactly once."""
    registry = ConnectionRegistry()
    a, b, c, closed = (connection_factory(n) for n in "abcd")
    viewer = registry.register(a, "UA", None)
    closed.open = False

    delivered = asyncio.run(
        protocol.broadcast_except([a, b, c, closed], protocol.visitor_joined(viewer), excluded=a)
    )

    assert delivered == 2
    assert a.sent == []
    assert closed.sent == []
    for handle in (b, c):
        assert handle.sent == [{"type": "visitor_joined", "payload": {"visitor": viewer.to_dict()}}]


def test_send_is_noop_when_closed(connection_factory):
    registry = ConnectionRegistry()
    a = connection_factory()
    viewer = registry.register(a, "UA", None)
    a.open = False
    assert asyncio.run(protocol.send(a, protocol.visitor_left(viewer))) is False
    assert a.sent == []


def test_welcome_carries_roster(connection_factory):
    registry = ConnectionRegistry()
    first = registry.register(connection_factory("a"), "UA", None)
    second = registry.register(connection_factory("b"), "UA", None)
    envelope = protocol.welcome(second, registry.list())
    data = envelope.to_dict()
    assert data["type"] == "welcome"
    assert data["payload"]["visitor"]["id"] == second.id
    assert [v["id"] for v in data["payload"]["visitors"]] == [first.id, second.id]
    assert envelope.to_json().startswith('{"type":"welcome","payload":{')


# -----------------------------------------------------------------------------
# Transport
# -----------------------------------------------------------------------------


class _StubWebSocket:
    """Connected socket that records outbound text frames."""

    def __init__(self):
        self.client_state = WebSocketState.CONNECTED
        self.application_state = WebSocketState.CONNECTED
        self.frames: list[str] = []

    async def send_text(self, data):
        self.frames.append(data)


def test_heartbeat_is_a_ping_text_frame():
    """Clients see {"type":"ping"} and must answer with any frame to stay registered."""
    ws = _StubWebSocket()
    asyncio.run(WebSocketConnection(ws).ping())
    assert ws.frames == [HEARTBEAT_FRAME]
    assert json.loads(HEARTBEAT_FRAME) == {"type": "ping"}


# -----------------------------------------------------------------------------
# Liveness
# -----------------------------------------------------------------------------


def test_sweep_pings_then_evicts_silent_handle(connection_factory):
    """A handle that never acknowledges is evicted on the second sweep."""
    registry = ConnectionRegistry()
    dead: list = []

    async def on_dead(handle):
        dead.append(handle)
        registry.remove(handle)

    monitor = LivenessMonitor(registry, on_dead, interval_sec=30)
    silent = connection_factory("silent")
    registry.track(silent)

    async def scenario():
        first = await monitor.sweep()
        second = await monitor.sweep()
        return first, second

    first, second = asyncio.run(scenario())
    assert (first, second) == (0, 1)
    assert silent.pings == 1
    assert dead == [silent]


def test_acknowledged_handle_survives(connection_factory):
    """Any inbound frame between sweeps keeps the handle alive."""
    registry = ConnectionRegistry()
    monitor = LivenessMonitor(registry, on_dead=lambda h: asyncio.sleep(0), interval_sec=30)
    chatty = connection_factory("chatty")
    registry.track(chatty)

    async def scenario():
        evicted = 0
        for _ in range(3):
            evicted += await monitor.sweep()
            registry.mark_alive(chatty)
        return evicted

    assert asyncio.run(scenario()) == 0
    assert chatty.pings == 3
    assert registry.is_tracked(chatty)


def test_monitor_start_stop(connection_factory):
    registry = ConnectionRegistry()
    monitor = LivenessMonitor(registry, on_dead=lambda h: asyncio.sleep(0), interval_sec=30)

    async def scenario():
        monitor.start()
        running = monitor.running
        await monitor.stop()
        return running, monitor.running

    assert asyncio.run(scenario()) == (True, False)


# -----------------------------------------------------------------------------
# PresenceService
# -----------------------------------------------------------------------------


def test_connect_sends_welcome_and_broadcasts_join(connection_factory, resolver):
    service = PresenceService(resolver)
    a, b = connection_factory("a"), connection_factory("b")

    async def scenario():
        va = await service.connect(a, "203.0.113.7", "UA-a")
        vb = await service.connect(b, "203.0.113.8", "UA-b")
        return va, vb

    va, vb = asyncio.run(scenario())

    welcome_b = b.of_type("welcome")
    assert len(welcome_b) == 1
    assert welcome_b[0]["payload"]["visitor"]["id"] == vb.id
    assert [v["id"] for v in welcome_b[0]["payload"]["visitors"]] == [va.id, vb.id]
    assert welcome_b[0]["payload"]["visitor"]["location"]["city"] == "Berlin"
    # a hears about b; b never hears about itself joining
    assert [m["payload"]["visitor"]["id"] for m in a.of_type("visitor_joined")] == [vb.id]
    assert b.of_type("visitor_joined") == []
    assert resolver.calls == ["203.0.113.7", "203.0.113.8"]


def test_disconnect_broadcasts_leave_once(connection_factory, resolver):
    service = PresenceService(resolver)
    a, b = connection_factory("a"), connection_factory("b")

    async def scenario():
        await service.connect(a, "203.0.113.7", "UA")
        vb = await service.connect(b, "203.0.113.8", "UA")
        first = await service.disconnect(b)
        second = await service.disconnect(b)
        return vb, first, second

    vb, first, second = asyncio.run(scenario())
    assert first == vb
    assert second is None
    assert [m["payload"]["visitor"]["id"] for m in a.of_type("visitor_left")] == [vb.id]
    assert service.registry.count() == 1


def test_lifecycle_logs_through_viewer_bound_logger(connection_factory, resolver):
    """Connect and disconnect log visitor events on a logger bound to the viewer id."""
    service = PresenceService(resolver)
    a = connection_factory("a")

    async def scenario():
        viewer = await service.connect(a, "203.0.113.7", "UA")
        await service.disconnect(a)
        return viewer

    with patch("identity_profiler.presence.service.bind_viewer") as bind:
        viewer = asyncio.run(scenario())

    assert bind.call_args_list == [
        call(viewer.id, "identity_profiler.presence.service"),
        call(viewer.id, "identity_profiler.presence.service"),
    ]
    events = [c.args[0] for c in bind.return_value.info.call_args_list]
    assert events == ["visitor_connected", "visitor_disconnected"]


def test_connect_discarded_when_closed_during_resolve(connection_factory):
    """A handle that goes away while its location is resolving never joins."""
    a = connection_factory("a")
    observer = connection_factory("observer")

    class ClosingResolver:
        """Simulates the client hanging up mid-lookup for one address."""

        async def resolve(self, ip):
            if ip == "203.0.113.2":
                a.open = False
            return None

    watcher = PresenceService(ClosingResolver())

    async def scenario():
        await watcher.connect(observer, "203.0.113.1", "UA")
        return await watcher.connect(a, "203.0.113.2", "UA")

    result = asyncio.run(scenario())
    assert result is None
    assert watcher.registry.count() == 1
    assert not watcher.registry.is_tracked(a)
    assert observer.of_type("visitor_joined") == []
    assert observer.of_type("visitor_left") == []


def test_evict_broadcasts_leave_and_terminates(connection_factory, resolver):
    """Two sweeps without an acknowledgement: exactly one visitor_left, transport terminated."""
    service = PresenceService(resolver)
    silent, peer = connection_factory("silent"), connection_factory("peer")

    async def scenario():
        vs = await service.connect(silent, "203.0.113.7", "UA")
        await service.connect(peer, "203.0.113.8", "UA")
        await service.monitor.sweep()
        service.heartbeat(peer)
        await service.monitor.sweep()
        return vs

    vs = asyncio.run(scenario())
    assert silent.terminated
    assert [m["payload"]["visitor"]["id"] for m in peer.of_type("visitor_left")] == [vs.id]
    assert service.registry.count() == 1


def test_eviction_reason_constant():
    assert REASON_HEARTBEAT_TIMEOUT == "heartbeat_timeout"


def test_close_terminates_everyone(connection_factory, resolver):
    service = PresenceService(resolver)
    a, b = connection_factory("a"), connection_factory("b")

    async def scenario():
        service.start()
        await service.connect(a, "203.0.113.7", "UA")
        await service.connect(b, "203.0.113.8", "UA")
        await service.close()

    asyncio.run(scenario())
    assert a.terminated and b.terminated
    assert service.registry.count() == 0
    assert not service.monitor.running


def test_health_and_roster(connection_factory, resolver):
    service = PresenceService(resolver)
    asyncio.run(service.connect(connection_factory(), "203.0.113.7", "UA"))
    health = service.health()
    assert health["status"] == "ok"
    assert health["visitors"] == 1
    assert health["uptime"] >= 0
    assert health["analysisEnabled"] is True
    assert len(service.roster()) == 1
