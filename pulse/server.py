"""Process entry point: run the application under uvicorn until SIGINT/SIGTERM."""

import logging

import uvicorn

from pulse.core.config import get_settings
from pulse.core.logging import configure_logging
from pulse.main import create_app

logger = logging.getLogger("app")


def build_server() -> uvicorn.Server:
    settings = get_settings()
    configure_logging(settings.log_level)
    config = uvicorn.Config(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        timeout_keep_alive=settings.idle_timeout.total_seconds(),
        timeout_graceful_shutdown=settings.shutdown_timeout.total_seconds(),
        log_config=None,
        proxy_headers=False,
    )
    logger.info(
        "Starting server on %s (environment: %s)",
        settings.address,
        settings.environment,
    )
    return uvicorn.Server(config)


def main() -> None:
    # uvicorn.Server installs SIGINT/SIGTERM handlers and drains in-flight
    # requests for up to timeout_graceful_shutdown before exiting.
    build_server().run()
    logger.info("Server exited")


if __name__ == "__main__":
    main()
