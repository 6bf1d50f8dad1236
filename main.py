"""
Main entrypoint: FastAPI presence + analysis server.

Runs uvicorn on the configured host/port; on SIGINT/SIGTERM uvicorn drives
the app lifespan, which terminates every viewer connection and stops the
heartbeat sweep.

Env: PORT / API_PORT, API_HOST, LOG_LEVEL, HEARTBEAT_INTERVAL_SEC, GEOIP_DB_PATH, etc.

Equivalent: uvicorn identity_profiler.api_server.app:app --host 0.0.0.0 --port 3001
"""

import uvicorn

# Configure structured JSON logging before other imports that may log
from identity_profiler.profiler_logging import get_logger

logger = get_logger("main")


def main() -> None:
    """Build the app from settings and serve it in the main thread."""
    from identity_profiler.api_server.server import create_app
    from identity_profiler.config import get_settings

    settings = get_settings()
    app = create_app(settings)
    logger.info(
        "main_server_starting",
        host=settings.api_host,
        port=settings.api_port,
        base_path=settings.base_path,
    )
    uvicorn.run(app, host=settings.api_host, port=settings.api_port, log_level=settings.log_level)


if __name__ == "__main__":
    main()
