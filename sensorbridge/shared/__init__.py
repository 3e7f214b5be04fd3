"""Shared utilities for the sensor bridge services."""

from .models import SensorReading, TemperatureStats
from .database import ConnectionPool, DBConfig, PersistenceError, SensorStore
from .config import load_yaml_config, get_config_path
from .mqtt import MQTTConfig, PayloadDecodeError
from .logging import setup_logging

__all__ = [
    "SensorReading",
    "TemperatureStats",
    "ConnectionPool",
    "DBConfig",
    "PersistenceError",
    "SensorStore",
    "load_yaml_config",
    "get_config_path",
    "MQTTConfig",
    "PayloadDecodeError",
    "setup_logging",
]
