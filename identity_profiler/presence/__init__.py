"""
Presence package: live viewer registry, heartbeat and join/leave broadcasts.
"""

from identity_profiler.presence.liveness import LivenessMonitor
from identity_profiler.presence.protocol import Envelope, MessageType, broadcast_except, send
from identity_profiler.presence.registry import ConnectionRegistry, Viewer, generate_viewer_id
from identity_profiler.presence.service import PresenceService
from identity_profiler.presence.transport import Connection, WebSocketConnection

__all__ = [
    "LivenessMonitor",
    "Envelope",
    "MessageType",
    "broadcast_except",
    "send",
    "ConnectionRegistry",
    "Viewer",
    "generate_viewer_id",
    "PresenceService",
    "Connection",
    "WebSocketConnection",
]
