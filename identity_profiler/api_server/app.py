"""
FastAPI/ASGI application entrypoint.

Builds the app from environment settings.
Run with: uvicorn identity_profiler.api_server.app:app --host 0.0.0.0 --port 3001
"""

from identity_profiler.api_server.server import create_app

app = create_app()

__all__ = ["app"]
