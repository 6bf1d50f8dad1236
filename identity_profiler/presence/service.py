"""
Presence service: composition root for connection lifecycle events.

connect:    track -> resolve location -> [lock] register -> welcome -> broadcast join
disconnect: [lock] remove -> broadcast leave (exactly once per viewer)
eviction:   liveness sweep -> disconnect -> terminate transport

Location resolution is the only suspension point outside the mutation lock,
so other connections never observe a half-applied join or leave. A stalled
resolver delays only that connection's welcome.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any, Protocol

from identity_profiler.geolocation.models import LocationRecord
from identity_profiler.presence import protocol
from identity_profiler.presence.liveness import DEFAULT_HEARTBEAT_INTERVAL_SEC, LivenessMonitor
from identity_profiler.presence.registry import ConnectionRegistry, Viewer
from identity_profiler.presence.transport import Connection
from identity_profiler.profiler_logging import bind_viewer, get_logger

logger = get_logger(__name__)

REASON_DISCONNECTED = "disconnected"
REASON_ERROR = "error"
REASON_HEARTBEAT_TIMEOUT = "heartbeat_timeout"


class Resolver(Protocol):
    async def resolve(self, ip: str) -> LocationRecord | None: ...


class PresenceService:
    """Wires transports to the registry, the resolver and the broadcast protocol."""

    def __init__(
        self,
        resolver: Resolver,
        *,
        registry: ConnectionRegistry | None = None,
        heartbeat_interval_sec: float = DEFAULT_HEARTBEAT_INTERVAL_SEC,
    ) -> None:
        self._resolver = resolver
        self._registry = registry or ConnectionRegistry()
        self._lock = asyncio.Lock()
        self._monitor = LivenessMonitor(self._registry, self.evict, heartbeat_interval_sec)
        self._started_at = time.monotonic()

    @property
    def registry(self) -> ConnectionRegistry:
        return self._registry

    @property
    def monitor(self) -> LivenessMonitor:
        return self._monitor

    async def connect(self, handle: Connection, ip: str, user_agent: str) -> Viewer | None:
        """
        Admit a new connection. Returns the Viewer, or None when the handle
        closed while its location was being resolved (result discarded).
        """
        self._registry.track(handle)
        location = await self._resolver.resolve(ip)

        async with self._lock:
            if not self._registry.is_tracked(handle) or not handle.is_open:
                self._registry.remove(handle)
                logger.info("visitor_connect_discarded", ip=ip, reason="closed_during_resolve")
                return None
            viewer = self._registry.register(handle, user_agent, location)
            await protocol.send(handle, protocol.welcome(viewer, self._registry.list()))
            await protocol.broadcast_except(
                self._registry.handles(),
                protocol.visitor_joined(viewer),
                excluded=handle,
            )
            bind_viewer(viewer.id, __name__).info(
                "visitor_connected",
                ip=ip,
                location=location.display_name if location else None,
                visitors=self._registry.count(),
            )
        return viewer

    async def disconnect(self, handle: Connection, reason: str = REASON_DISCONNECTED) -> Viewer | None:
        """Remove handle and announce the leave. Idempotent: later calls return None."""
        async with self._lock:
            viewer = self._registry.remove(handle)
            if viewer is None:
                return None
            await protocol.broadcast_except(
                self._registry.handles(),
                protocol.visitor_left(viewer),
                excluded=handle,
            )
            bind_viewer(viewer.id, __name__).info(
                "visitor_disconnected",
                reason=reason,
                visitors=self._registry.count(),
            )
        return viewer

    def heartbeat(self, handle: Connection) -> None:
        """Any inbound frame acknowledges the last ping."""
        self._registry.mark_alive(handle)

    async def evict(self, handle: Connection) -> None:
        """Liveness callback: the handle missed a full sweep."""
        await self.disconnect(handle, REASON_HEARTBEAT_TIMEOUT)
        await handle.terminate()

    def start(self) -> None:
        self._started_at = time.monotonic()
        self._monitor.start()

    async def close(self) -> None:
        """Stop the sweep, terminate every tracked handle and drop all state."""
        await self._monitor.stop()
        async with self._lock:
            handles = self._registry.handles()
            self._registry.clear()
        for handle in handles:
            await handle.terminate()
        logger.info("presence_closed", terminated=len(handles))

    def uptime(self) -> float:
        return time.monotonic() - self._started_at

    def health(self) -> dict[str, Any]:
        return {
            "status": "ok",
            "visitors": self._registry.count(),
            "uptime": round(self.uptime(), 3),
            "analysisEnabled": True,
        }

    def roster(self) -> list[dict[str, Any]]:
        return [viewer.to_dict() for viewer in self._registry.list()]
