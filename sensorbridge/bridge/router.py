"""Routes inbound MQTT messages to the matching store write."""

import logging

from sensorbridge.shared.database import PersistenceError, SensorStore
from sensorbridge.shared.mqtt import PayloadDecodeError, decode_payload, require_number

from .config import TopicsConfig

logger = logging.getLogger(__name__)


class IngestionRouter:
    """Decodes each message and persists it according to its topic.

    A failing message is logged and dropped; the router stays ready for the
    next one. There is no retry or dead-letter storage.
    """

    def __init__(self, store: SensorStore, topics: TopicsConfig):
        self.store = store
        self.topics = topics
        self._handlers = {
            topics.temperature: self._handle_temperature,
            topics.brightness: self._handle_brightness,
        }

    def handle(self, topic: str, payload: bytes) -> bool:
        """Process one message.

        Args:
            topic: Exact topic the message arrived on.
            payload: Raw JSON payload.

        Returns:
            True if the message was persisted, False if it was ignored or
            dropped.
        """
        handler = self._handlers.get(topic)
        if handler is None:
            logger.debug(f"Ignoring message on unrecognized topic: {topic}")
            return False

        try:
            data = decode_payload(payload)
            handler(data)
        except PayloadDecodeError as e:
            logger.warning(f"Dropping malformed payload from {topic}: {e}")
            return False
        except PersistenceError as e:
            logger.error(f"MQTT -> SQL error on {topic}: {e}")
            return False
        return True

    def _handle_temperature(self, data: dict):
        temperature = require_number(data, "temperature")
        humidity = require_number(data, "humidity")

        row_id = self.store.insert_reading(temperature, humidity)
        logger.info(f"Stored reading {row_id}: temperature={temperature}C humidity={humidity}%")

    def _handle_brightness(self, data: dict):
        brightness = require_number(data, "brightness")

        changed = self.store.update_latest_brightness(brightness)
        if changed:
            logger.info(f"Updated latest reading brightness={brightness}")
        else:
            logger.info(f"No reading to attach brightness={brightness} to yet")
