"""
Liveness monitor: periodic heartbeat sweep over every tracked handle.

Per handle: ALIVE -(ping)-> AWAITING_PONG -(ack)-> ALIVE, or
AWAITING_PONG -(next sweep)-> DEAD -> evicted. A connection therefore
survives at most one missed round-trip; stale handles live at most two
intervals. A failed ping is indistinguishable from silence.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable

from identity_profiler.presence.registry import ConnectionRegistry
from identity_profiler.presence.transport import Connection
from identity_profiler.profiler_logging import get_logger

logger = get_logger(__name__)

DEFAULT_HEARTBEAT_INTERVAL_SEC = 30.0


class LivenessMonitor:
    """Runs sweep() every interval_sec on the event loop until stop()."""

    def __init__(
        self,
        registry: ConnectionRegistry,
        on_dead: Callable[[Connection], Awaitable[None]],
        interval_sec: float = DEFAULT_HEARTBEAT_INTERVAL_SEC,
    ) -> None:
        if interval_sec <= 0:
            raise ValueError("interval_sec must be positive")
        self._registry = registry
        self._on_dead = on_dead
        self._interval_sec = interval_sec
        self._task: asyncio.Task[None] | None = None

    @property
    def interval_sec(self) -> float:
        return self._interval_sec

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def sweep(self) -> int:
        """
        One pass: evict handles that missed the previous ping, ping the rest.

        Returns the number of handles evicted.
        """
        evicted = 0
        for handle in self._registry.handles():
            # Closed and cleaned up since the snapshot was taken
            if not self._registry.is_tracked(handle):
                continue
            if not self._registry.is_alive(handle):
                await self._on_dead(handle)
                evicted += 1
                continue
            self._registry.mark_pending(handle)
            await handle.ping()
        if evicted:
            logger.info("heartbeat_sweep_evicted", evicted=evicted, visitors=self._registry.count())
        return evicted

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval_sec)
            try:
                await self.sweep()
            except Exception as e:
                logger.exception("heartbeat_sweep_failed", error=str(e))

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run(), name="presence-heartbeat")
        logger.info("heartbeat_started", interval_sec=self._interval_sec)

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("heartbeat_stopped")
