"""
HTTP middleware: CORS and request logging.

Responsibilities:
- Allow cross-origin requests from the configured origins (all by default).
- Log each HTTP request with method, path, status and timing.
"""

from __future__ import annotations

import time
from typing import Awaitable, Callable

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from identity_profiler.config import Settings
from identity_profiler.profiler_logging import get_logger

logger = get_logger(__name__)


def install_middleware(app: FastAPI, settings: Settings) -> None:
    origins = list(settings.cors_origins)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        # Credentials cannot be combined with a wildcard origin
        allow_credentials="*" not in origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        start = time.perf_counter()
        response = await call_next(request)
        logger.debug(
            "http_request",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            elapsed_ms=round((time.perf_counter() - start) * 1000, 2),
        )
        return response
