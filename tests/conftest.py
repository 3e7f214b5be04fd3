"""Shared fixtures: an in-memory data_sensor store and a fake paho client."""

from datetime import datetime, timedelta
from types import SimpleNamespace
from typing import Callable, Dict, List, Optional, Tuple
from unittest.mock import MagicMock

import pytest

from sensorbridge.bridge.config import Config, TopicsConfig
from sensorbridge.bridge.context import AppContext
from sensorbridge.bridge.router import IngestionRouter
from sensorbridge.shared.database import PersistenceError
from sensorbridge.shared.models import SensorReading, TemperatureStats


class FakeSensorStore:
    """Mimics SensorStore against a list of data_sensor rows."""

    def __init__(self):
        self.rows: List[Dict] = []
        self.fail_with: Optional[str] = None
        self.calls: List[str] = []
        self._next_id = 1
        self._clock = datetime(2024, 5, 1, 8, 0, 0)

    def _check(self, name: str):
        self.calls.append(name)
        if self.fail_with:
            raise PersistenceError(self.fail_with)

    def insert_reading(self, temperature: float, humidity: float) -> int:
        self._check("insert_reading")
        row = {
            "id": self._next_id,
            "suhu": temperature,
            "humidity": humidity,
            "lux": None,
            "timestamp": self._clock,
        }
        self.rows.append(row)
        self._next_id += 1
        self._clock += timedelta(seconds=5)
        return row["id"]

    def update_latest_brightness(self, brightness: float) -> int:
        self._check("update_latest_brightness")
        if not self.rows:
            return 0
        latest = max(self.rows, key=lambda r: r["id"])
        latest["lux"] = brightness
        return 1

    def aggregate_stats(self) -> TemperatureStats:
        self._check("aggregate_stats")
        temps = [r["suhu"] for r in self.rows if r["suhu"] is not None]
        if not temps:
            return TemperatureStats(None, None, None)
        return TemperatureStats(
            maximum=max(temps),
            minimum=min(temps),
            average=round(sum(temps) / len(temps), 2),
        )

    def recent_readings(self, limit: int = 10) -> List[SensorReading]:
        self._check("recent_readings")
        newest = sorted(self.rows, key=lambda r: r["id"], reverse=True)[:limit]
        return [
            SensorReading(
                id=r["id"],
                temperature=r["suhu"],
                humidity=r["humidity"],
                brightness=r["lux"],
                timestamp=r["timestamp"].strftime("%Y-%m-%d %H:%M:%S"),
            )
            for r in newest
        ]

    def close(self):
        self.calls.append("close")


class FakeMQTTClient:
    """Stands in for paho.mqtt.client.Client; callbacks are fired by tests."""

    def __init__(self, client_id: str):
        self.client_id = client_id
        self.subscriptions: List[List[Tuple[str, int]]] = []
        self.subscribe_result = 0
        self.reconnect_delay = None
        self.connect_args = None
        self.loop_running = False
        self.disconnected = False
        self._mid = 0

    def reconnect_delay_set(self, min_delay=1, max_delay=120):
        self.reconnect_delay = (min_delay, max_delay)

    def connect_async(self, host, port=1883, keepalive=60):
        self.connect_args = (host, port, keepalive)

    def loop_start(self):
        self.loop_running = True

    def loop_stop(self):
        self.loop_running = False

    def disconnect(self):
        self.disconnected = True
        self.on_disconnect(self, None, None, 0, None)

    def subscribe(self, topics):
        self._mid += 1
        self.subscriptions.append(list(topics))
        return self.subscribe_result, self._mid

    # Helpers simulating broker events

    def fire_connect(self, reason_code=0):
        self.on_pre_connect(self, None)
        self.on_connect(self, None, None, reason_code, None)

    def fire_suback(self, *failures: bool):
        codes = [SimpleNamespace(is_failure=f) for f in failures]
        self.on_subscribe(self, None, self._mid, codes, None)

    def fire_drop(self, reason_code=7):
        self.on_disconnect(self, None, None, reason_code, None)

    def fire_message(self, topic: str, payload: bytes):
        self.on_message(self, None, SimpleNamespace(topic=topic, payload=payload))


@pytest.fixture
def store() -> FakeSensorStore:
    return FakeSensorStore()


@pytest.fixture
def topics() -> TopicsConfig:
    return TopicsConfig()


@pytest.fixture
def router(store, topics) -> IngestionRouter:
    return IngestionRouter(store, topics)


@pytest.fixture
def fake_clients() -> List[FakeMQTTClient]:
    return []


@pytest.fixture
def client_factory(fake_clients) -> Callable[[str], FakeMQTTClient]:
    def factory(client_id: str) -> FakeMQTTClient:
        client = FakeMQTTClient(client_id)
        fake_clients.append(client)
        return client

    return factory


@pytest.fixture
def app_context(store, router) -> AppContext:
    return AppContext(
        config=Config(),
        pool=MagicMock(),
        store=store,
        router=router,
        broker=MagicMock(),
    )
