"""Query API for stored sensor readings."""

from .server import create_app, collect_sensor_summary

__all__ = ["create_app", "collect_sensor_summary"]
