"""
Connection registry: active handles, their viewers, and liveness flags.

One registry instance owns three indexes: viewer id -> Viewer, handle ->
viewer id, and handle -> alive flag (the liveness table). A handle is
tracked (liveness entry) from the moment the transport connects; it gains a
Viewer once its location has been resolved. remove() drops every index entry
for the handle at once and is idempotent.

All methods are synchronous: the presence service serializes mutations with
its lock and no method yields to the event loop.
"""

from __future__ import annotations

import secrets
import string
import time
from dataclasses import dataclass
from typing import Any, Callable

from identity_profiler.geolocation.models import LocationRecord
from identity_profiler.presence.transport import Connection

_BASE36 = string.digits + string.ascii_lowercase
VIEWER_ID_RANDOM_LENGTH = 7
# Attempts before giving up on a unique id (collisions are practically impossible)
MAX_ID_ATTEMPTS = 16


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits: list[str] = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def now_ms() -> int:
    return int(time.time() * 1000)


def generate_viewer_id(clock: Callable[[], int] = now_ms) -> str:
    """v_<base36 epoch ms>_<7 random base36 chars>."""
    suffix = "".join(secrets.choice(_BASE36) for _ in range(VIEWER_ID_RANDOM_LENGTH))
    return f"v_{_to_base36(clock())}_{suffix}"


@dataclass(frozen=True)
class Viewer:
    """One connected browsing session."""

    id: str
    location: LocationRecord | None
    connected_at: int
    """Epoch milliseconds when the viewer was registered."""
    user_agent: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "location": self.location.to_dict() if self.location else None,
            "connectedAt": self.connected_at,
            "userAgent": self.user_agent,
        }


class ConnectionRegistry:
    """Registry of connected viewers keyed by id and by handle."""

    def __init__(
        self,
        *,
        id_factory: Callable[[], str] = generate_viewer_id,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._id_factory = id_factory
        self._clock = clock
        self._viewers: dict[str, Viewer] = {}
        self._ids_by_handle: dict[Connection, str] = {}
        self._alive: dict[Connection, bool] = {}
        self._issued_ids: set[str] = set()

    # ------------------------------------------------------------------
    # Liveness table
    # ------------------------------------------------------------------

    def track(self, handle: Connection) -> None:
        """Start tracking a freshly connected handle (alive until the next sweep)."""
        self._alive[handle] = True

    def is_tracked(self, handle: Connection) -> bool:
        return handle in self._alive

    def mark_alive(self, handle: Connection) -> bool:
        """Heartbeat acknowledgement. Returns False if the handle is not tracked."""
        if handle not in self._alive:
            return False
        self._alive[handle] = True
        return True

    def mark_pending(self, handle: Connection) -> None:
        """Ping about to be sent; the handle must acknowledge before the next sweep."""
        if handle in self._alive:
            self._alive[handle] = False

    def is_alive(self, handle: Connection) -> bool:
        return self._alive.get(handle, False)

    def handles(self) -> list[Connection]:
        """Snapshot of every tracked handle, registered or not."""
        return list(self._alive)

    # ------------------------------------------------------------------
    # Viewers
    # ------------------------------------------------------------------

    def _new_id(self) -> str:
        for _ in range(MAX_ID_ATTEMPTS):
            viewer_id = self._id_factory()
            if viewer_id not in self._issued_ids:
                self._issued_ids.add(viewer_id)
                return viewer_id
        raise RuntimeError("could not generate a unique viewer id")

    def register(
        self,
        handle: Connection,
        user_agent: str,
        location: LocationRecord | None,
    ) -> Viewer:
        """Create a Viewer for handle and index it by id and handle."""
        if handle in self._ids_by_handle:
            raise ValueError("handle already registered")
        viewer = Viewer(
            id=self._new_id(),
            location=location,
            connected_at=self._clock(),
            user_agent=user_agent,
        )
        self._viewers[viewer.id] = viewer
        self._ids_by_handle[handle] = viewer.id
        self._alive.setdefault(handle, True)
        return viewer

    def remove(self, handle: Connection) -> Viewer | None:
        """Drop every entry for handle; the removed Viewer, or None if unknown."""
        self._alive.pop(handle, None)
        viewer_id = self._ids_by_handle.pop(handle, None)
        if viewer_id is None:
            return None
        return self._viewers.pop(viewer_id, None)

    def viewer_for(self, handle: Connection) -> Viewer | None:
        viewer_id = self._ids_by_handle.get(handle)
        return self._viewers.get(viewer_id) if viewer_id else None

    def get(self, viewer_id: str) -> Viewer | None:
        return self._viewers.get(viewer_id)

    def list(self) -> list[Viewer]:
        """Snapshot of registered viewers in registration order."""
        return list(self._viewers.values())

    def count(self) -> int:
        return len(self._viewers)

    def clear(self) -> None:
        self._viewers.clear()
        self._ids_by_handle.clear()
        self._alive.clear()
