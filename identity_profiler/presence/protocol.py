"""
Presence wire protocol: typed envelopes and send/broadcast primitives.

Envelope JSON: {"type": "<message type>", "payload": {...}}
- welcome:         {"visitor": Viewer, "visitors": [Viewer, ...]}  (to the new viewer)
- visitor_joined:  {"visitor": Viewer}                             (to everyone else)
- visitor_left:    {"visitor": Viewer}                             (to everyone else)

Broadcasts are awaited: every open peer has been handed the frame before the
caller continues, so one connection's join is always fully delivered before
its own leave.
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Sequence

from identity_profiler.presence.registry import Viewer
from identity_profiler.presence.transport import Connection


class MessageType(str, Enum):
    WELCOME = "welcome"
    VISITOR_JOINED = "visitor_joined"
    VISITOR_LEFT = "visitor_left"


@dataclass(frozen=True)
class Envelope:
    """One presence notification."""

    type: MessageType
    payload: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value, "payload": self.payload}

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"))


def welcome(viewer: Viewer, roster: Sequence[Viewer]) -> Envelope:
    return Envelope(
        MessageType.WELCOME,
        {"visitor": viewer.to_dict(), "visitors": [v.to_dict() for v in roster]},
    )


def visitor_joined(viewer: Viewer) -> Envelope:
    return Envelope(MessageType.VISITOR_JOINED, {"visitor": viewer.to_dict()})


def visitor_left(viewer: Viewer) -> Envelope:
    return Envelope(MessageType.VISITOR_LEFT, {"visitor": viewer.to_dict()})


async def send(handle: Connection, envelope: Envelope) -> bool:
    """Deliver to one handle; no-op (False) when its transport is not open."""
    if not handle.is_open:
        return False
    await handle.send_text(envelope.to_json())
    return True


async def broadcast_except(
    handles: Iterable[Connection],
    envelope: Envelope,
    excluded: Connection | None = None,
) -> int:
    """
    Serialize once and deliver to every open handle except `excluded`.

    Returns the number of handles the frame was handed to.
    """
    data = envelope.to_json()
    targets = [h for h in handles if h is not excluded and h.is_open]
    if targets:
        await asyncio.gather(*(h.send_text(data) for h in targets))
    return len(targets)
