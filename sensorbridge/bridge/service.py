"""Sensor bridge service - MQTT ingestion plus the HTTP query API."""

import logging
from typing import Optional

from aiohttp import web

from sensorbridge.api.server import create_app
from sensorbridge.shared.logging import setup_logging

from .config import Config, load_config
from .context import AppContext, build_context

logger = logging.getLogger(__name__)


def create_service_app(context: AppContext) -> web.Application:
    """Query API app whose lifecycle also drives the broker connection."""
    app = create_app(context)

    async def start_broker(app: web.Application):
        context.broker.start()

    async def shutdown(app: web.Application):
        logger.info("Shutting down sensor bridge...")
        context.close()
        logger.info("Sensor bridge stopped")

    app.on_startup.append(start_broker)
    app.on_cleanup.append(shutdown)
    return app


def run_service(config: Config):
    """Run the bridge until SIGINT/SIGTERM (blocking)."""
    context = build_context(config)
    app = create_service_app(context)

    logger.info(f"Server listening on http://localhost:{config.http.port}")
    web.run_app(
        app,
        host=config.http.host,
        port=config.http.port,
        print=None,
    )


def run_bridge(config_path: Optional[str] = None):
    """Load configuration, configure logging and run the service.

    Args:
        config_path: Optional path to config file.
    """
    config = load_config(config_path)
    setup_logging(config.log_level)

    logger.info("Starting sensor bridge...")
    run_service(config)
