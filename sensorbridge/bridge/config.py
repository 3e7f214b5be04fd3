"""Configuration loading for the sensor bridge service."""

import logging
import os
from dataclasses import dataclass, field
from typing import Optional

from sensorbridge.shared.config import get_log_level, load_yaml_config
from sensorbridge.shared.database import DBConfig
from sensorbridge.shared.mqtt import MQTTConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TopicsConfig:
    """Fixed topic set the bridge subscribes to."""
    temperature: str = "tes/suhu"
    brightness: str = "tes/kecerahan"

    def as_list(self):
        return [self.temperature, self.brightness]


@dataclass(frozen=True)
class HTTPConfig:
    """Query API listener configuration."""
    host: str = "0.0.0.0"
    port: int = 3000


@dataclass(frozen=True)
class DisplayConfig:
    """Terminal view settings; 0 prints once and exits."""
    refresh_interval: float = 0.0


@dataclass(frozen=True)
class Config:
    """Main configuration container, built once at startup."""
    mqtt: MQTTConfig = field(default_factory=MQTTConfig)
    db: DBConfig = field(default_factory=DBConfig)
    topics: TopicsConfig = field(default_factory=TopicsConfig)
    http: HTTPConfig = field(default_factory=HTTPConfig)
    display: DisplayConfig = field(default_factory=DisplayConfig)
    log_level: str = "INFO"


def load_config(config_path: Optional[str] = None) -> Config:
    """Load configuration from YAML file and environment variables.

    Args:
        config_path: Path to a YAML config. When given it must exist; when
            omitted the default config/sensor-bridge.yaml is used if present
            and built-in defaults otherwise.

    Returns:
        Config object with all settings loaded.
    """
    config_data = load_yaml_config(config_path, required=config_path is not None)
    if not config_data:
        logger.debug("No configuration file found, using defaults")

    mqtt_config = MQTTConfig.from_dict(config_data.get("mqtt") or {})

    # Credentials come from the environment (.env), sizing from YAML
    db_data = config_data.get("database") or {}
    db_config = DBConfig.from_env(
        pool_size=int(db_data.get("pool_size", 5)),
        acquire_timeout=float(db_data.get("acquire_timeout", 10.0)),
    )

    topics_data = config_data.get("topics") or {}
    topics = TopicsConfig(
        temperature=topics_data.get("temperature", "tes/suhu"),
        brightness=topics_data.get("brightness", "tes/kecerahan"),
    )
    if topics.temperature == topics.brightness:
        raise ValueError("Temperature and brightness topics must differ")

    http_data = config_data.get("http") or {}
    http = HTTPConfig(
        host=http_data.get("host", "0.0.0.0"),
        port=int(os.getenv("PORT") or http_data.get("port", 3000)),
    )

    display_data = config_data.get("display") or {}
    display = DisplayConfig(
        refresh_interval=float(display_data.get("refresh_interval", 0.0)),
    )

    return Config(
        mqtt=mqtt_config,
        db=db_config,
        topics=topics,
        http=http,
        display=display,
        log_level=get_log_level(config_data),
    )
