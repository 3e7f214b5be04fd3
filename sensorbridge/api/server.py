"""HTTP query API over the stored sensor readings."""

import asyncio
import html
import logging
from typing import Any, Dict

from aiohttp import web

from sensorbridge.bridge.context import AppContext
from sensorbridge.shared.database import PersistenceError, SensorStore

logger = logging.getLogger(__name__)

RECENT_LIMIT = 10

CONTEXT_KEY = web.AppKey("context", AppContext)

INDEX_TEMPLATE = """<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>Sensor bridge</title></head>
<body>
  <h2>Sensor bridge is running</h2>
  <p>Broker: <b>{broker}</b></p>
  <ul>
    <li>Temperature topic: <code>{temperature_topic}</code></li>
    <li>Brightness topic: <code>{brightness_topic}</code></li>
    <li><a href="/api/sensor">/api/sensor</a> - latest readings as JSON</li>
  </ul>
</body>
</html>
"""


def collect_sensor_summary(store: SensorStore, limit: int = RECENT_LIMIT) -> Dict[str, Any]:
    """Aggregate stats plus the most recent readings.

    Raises:
        PersistenceError: If either query fails; nothing partial is returned.
    """
    stats = store.aggregate_stats()
    readings = store.recent_readings(limit)
    summary = stats.to_api()
    summary["data"] = [reading.to_api() for reading in readings]
    return summary


async def index(request: web.Request) -> web.Response:
    config = request.app[CONTEXT_KEY].config
    body = INDEX_TEMPLATE.format(
        broker=html.escape(config.mqtt.url),
        temperature_topic=html.escape(config.topics.temperature),
        brightness_topic=html.escape(config.topics.brightness),
    )
    return web.Response(text=body, content_type="text/html")


async def sensor_summary(request: web.Request) -> web.Response:
    store = request.app[CONTEXT_KEY].store
    loop = asyncio.get_running_loop()
    try:
        # pymysql blocks, keep it off the event loop
        summary = await loop.run_in_executor(None, collect_sensor_summary, store)
    except PersistenceError as e:
        logger.error(f"API error: {e}")
        return web.json_response({"error": str(e)}, status=500)
    except Exception as e:
        logger.exception(f"Unexpected API error: {e}")
        return web.json_response({"error": str(e)}, status=500)
    return web.json_response(summary)


def create_app(context: AppContext) -> web.Application:
    """Build the aiohttp application for the query API.

    Serves only the store; broker lifecycle hooks are added by
    sensorbridge.bridge.service.create_service_app.
    """
    app = web.Application()
    app[CONTEXT_KEY] = context
    app.router.add_get("/", index)
    app.router.add_get("/api/sensor", sensor_summary)
    return app
