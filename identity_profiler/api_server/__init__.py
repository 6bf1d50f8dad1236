"""
API server package: HTTP and WebSocket interface.

Serves the presence WebSocket, health/roster endpoints and the analysis
endpoint; delegates to the presence service and the analysis engine.
"""

from identity_profiler.api_server.server import create_app

__all__ = ["create_app"]
