"""
FastAPI server: live presence over WebSocket plus the analysis endpoint.

Exposes GET /health, GET /visitors, POST /api/analyze and the presence
WebSocket at "/" and "/ws". Optionally serves the built frontend under the
configured base path. Config via Settings (see identity_profiler.config).
"""

from __future__ import annotations

import asyncio
import time
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request, WebSocket
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel, Field
from starlette.exceptions import HTTPException as StarletteHTTPException

from identity_profiler import __version__
from identity_profiler.analysis_engine import analyze_signals
from identity_profiler.api_server.middleware import install_middleware
from identity_profiler.config import Settings, get_settings
from identity_profiler.core.exceptions import InvalidSignalBundleError
from identity_profiler.geolocation import LocationResolver, client_ip
from identity_profiler.presence import PresenceService, WebSocketConnection
from identity_profiler.presence.service import REASON_DISCONNECTED, REASON_ERROR, Resolver
from identity_profiler.profiler_logging import get_logger

logger = get_logger(__name__)

INVALID_REQUEST_ERROR = "Invalid request data"
ANALYSIS_FAILED_ERROR = "Analysis failed"
UNKNOWN_USER_AGENT = "Unknown"


# -----------------------------------------------------------------------------
# Response models
# -----------------------------------------------------------------------------


class HealthResponse(BaseModel):
    """GET /health response."""

    status: str = Field(..., description="Always 'ok' while the process serves requests")
    visitors: int = Field(..., ge=0, description="Currently registered viewers")
    uptime: float = Field(..., ge=0, description="Seconds since the presence service started")
    analysisEnabled: bool = Field(True, description="POST /api/analyze is available")


class VisitorsResponse(BaseModel):
    """GET /visitors response: roster snapshot."""

    visitors: list[dict[str, Any]] = Field(default_factory=list)


class AnalyzeResponse(BaseModel):
    """POST /api/analyze response."""

    success: bool
    analysis: dict[str, Any] | None = None
    error: str | None = None
    fallback: bool | None = None


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=AnalyzeResponse(success=False, error=message).model_dump(exclude_none=True),
    )


# -----------------------------------------------------------------------------
# Static frontend
# -----------------------------------------------------------------------------


class SpaStaticFiles(StaticFiles):
    """Static files with index.html fallback for client-side routes."""

    async def get_response(self, path: str, scope: Any):
        try:
            return await super().get_response(path, scope)
        except StarletteHTTPException as e:
            if e.status_code != 404:
                raise
            return await super().get_response("index.html", scope)


def _mount_frontend(app: FastAPI, settings: Settings) -> None:
    if not settings.static_dir.is_dir():
        logger.info("static_frontend_skipped", static_dir=str(settings.static_dir))
        return
    app.mount(
        settings.base_path,
        SpaStaticFiles(directory=settings.static_dir, html=True),
        name="frontend",
    )
    logger.info("static_frontend_mounted", base_path=settings.base_path, static_dir=str(settings.static_dir))


# -----------------------------------------------------------------------------
# WebSocket presence
# -----------------------------------------------------------------------------


async def serve_viewer(websocket: WebSocket, service: PresenceService) -> None:
    """
    One viewer's connection lifetime.

    Admission (location lookup, welcome, join broadcast) runs as a task so the
    receive loop starts immediately; every inbound frame counts as a heartbeat.
    """
    await websocket.accept()
    handle = WebSocketConnection(websocket)
    peer = websocket.client.host if websocket.client else None
    ip = client_ip(websocket.headers, peer)
    user_agent = websocket.headers.get("user-agent") or UNKNOWN_USER_AGENT
    join = asyncio.create_task(service.connect(handle, ip, user_agent))

    reason = REASON_DISCONNECTED
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            service.heartbeat(handle)
    except Exception as e:
        reason = REASON_ERROR
        logger.warning("ws_receive_failed", ip=ip, error=str(e))
    finally:
        handle.mark_closed()
        try:
            await join
        except Exception as e:
            logger.exception("visitor_connect_failed", ip=ip, error=str(e))
        await service.disconnect(handle, reason)


# -----------------------------------------------------------------------------
# App factory
# -----------------------------------------------------------------------------


def create_app(settings: Settings | None = None, resolver: Resolver | None = None) -> FastAPI:
    """
    Build the ASGI app.

    settings defaults to get_settings(). When resolver is omitted the standard
    location chain is built from settings and closed on shutdown; an injected
    resolver is owned by the caller.
    """
    settings = settings or get_settings()
    owned_resolver = resolver is None
    location_resolver: Resolver = (
        LocationResolver.from_settings(settings) if resolver is None else resolver
    )
    service = PresenceService(
        location_resolver,
        heartbeat_interval_sec=settings.heartbeat_interval_sec,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Start the heartbeat sweep; on shutdown close every connection and the resolver."""
        service.start()
        logger.info(
            "api_presence_started",
            heartbeat_interval_sec=settings.heartbeat_interval_sec,
            base_path=settings.base_path,
        )
        yield
        await service.close()
        if owned_resolver and isinstance(location_resolver, LocationResolver):
            await location_resolver.aclose()
        logger.info("api_presence_stopped")

    app = FastAPI(
        title="Identity Profiler API",
        description="Live visitor presence and browser-signal profiling.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.presence = service
    install_middleware(app, settings)

    @app.get("/health", response_model=HealthResponse)
    async def health() -> dict[str, Any]:
        """Liveness probe: visitor count and uptime."""
        return service.health()

    @app.get("/visitors", response_model=VisitorsResponse)
    async def visitors() -> dict[str, Any]:
        """Current roster of connected viewers."""
        return {"visitors": service.roster()}

    @app.post("/api/analyze", response_model=AnalyzeResponse, response_model_exclude_none=True)
    async def analyze(request: Request) -> Any:
        """
        Profile one signal bundle.

        400 for malformed JSON or an invalid bundle, 500 for anything else.
        """
        try:
            raw = await request.json()
        except ValueError as e:
            logger.info("analysis_rejected", error=f"malformed JSON: {e}")
            return _error(400, INVALID_REQUEST_ERROR)

        start = time.perf_counter()
        try:
            result = analyze_signals(raw)
        except InvalidSignalBundleError as e:
            logger.info("analysis_rejected", error=e.summary())
            return _error(400, INVALID_REQUEST_ERROR)
        except Exception as e:
            logger.exception("analysis_failed", error=str(e))
            return _error(500, ANALYSIS_FAILED_ERROR)

        network = raw.get("network") or {}
        logger.info(
            "analysis_completed",
            city=network.get("city") or "unknown",
            country=network.get("country") or "unknown",
            elapsed_ms=round((time.perf_counter() - start) * 1000, 2),
            confidence=result.confidence,
        )
        return AnalyzeResponse(success=True, analysis=result.to_wire(), fallback=False)

    @app.websocket("/")
    async def presence_root(websocket: WebSocket) -> None:
        await serve_viewer(websocket, service)

    @app.websocket("/ws")
    async def presence_ws(websocket: WebSocket) -> None:
        await serve_viewer(websocket, service)

    _mount_frontend(app, settings)
    return app
