"""MQTT to MySQL sensor telemetry bridge."""

__version__ = "0.1.0"
