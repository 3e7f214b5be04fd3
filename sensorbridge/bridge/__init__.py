"""Sensor bridge - subscribes to MQTT readings and stores them in MySQL."""

__version__ = "0.1.0"

from .connection_manager import BrokerConnectionManager, ConnectionState
from .router import IngestionRouter


def main():
    """Entry point for the sensor bridge service.

    The config file defaults to config/sensor-bridge.yaml and can be
    overridden with SENSORBRIDGE_CONFIG.
    """
    from .service import run_bridge

    run_bridge()


__all__ = [
    "BrokerConnectionManager",
    "ConnectionState",
    "IngestionRouter",
    "main",
]
