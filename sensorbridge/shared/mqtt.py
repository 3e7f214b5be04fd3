"""MQTT configuration and payload utilities."""

import json
import math
import secrets
import time
from dataclasses import dataclass
from typing import Any, Dict, Tuple
from urllib.parse import urlparse

DEFAULT_BROKER_URL = "mqtt://broker.hivemq.com:1883"

_DEFAULT_PORTS = {"mqtt": 1883, "tcp": 1883, "mqtts": 8883, "ssl": 8883}


class PayloadDecodeError(ValueError):
    """Raised when an MQTT payload cannot be turned into a reading."""

    pass


@dataclass(frozen=True)
class MQTTConfig:
    """MQTT broker configuration.

    Fixed at startup; the connection manager never changes it.
    """
    url: str = DEFAULT_BROKER_URL
    client_id_prefix: str = "sensor-bridge"
    reconnect_interval: float = 2.0
    connect_timeout: float = 10.0
    keepalive: int = 60
    clean_session: bool = True
    qos: int = 0

    def __post_init__(self):
        # Reject a bad URL at startup rather than on first connect
        self.endpoint

    @classmethod
    def from_dict(cls, data: dict) -> "MQTTConfig":
        """Create config from dictionary."""
        return cls(
            url=data.get("url", DEFAULT_BROKER_URL),
            client_id_prefix=data.get("client_id_prefix", "sensor-bridge"),
            reconnect_interval=float(data.get("reconnect_interval", 2.0)),
            connect_timeout=float(data.get("connect_timeout", 10.0)),
            keepalive=int(data.get("keepalive", 60)),
            clean_session=bool(data.get("clean_session", True)),
            qos=int(data.get("qos", 0)),
        )

    @property
    def endpoint(self) -> Tuple[str, int]:
        """Broker (host, port) parsed from the URL."""
        parsed = urlparse(self.url)
        if parsed.scheme not in _DEFAULT_PORTS or not parsed.hostname:
            raise ValueError(f"Unsupported MQTT broker URL: {self.url}")
        return parsed.hostname, parsed.port or _DEFAULT_PORTS[parsed.scheme]

    @property
    def broker(self) -> str:
        return self.endpoint[0]

    @property
    def port(self) -> int:
        return self.endpoint[1]

    @property
    def use_tls(self) -> bool:
        return urlparse(self.url).scheme in ("mqtts", "ssl")


def generate_client_id(prefix: str) -> str:
    """Build a client id unique to this process and start time.

    Two bridge instances sharing a prefix must never take over each
    other's broker session.
    """
    return f"{prefix}-{secrets.token_hex(6)}-{int(time.time() * 1000)}"


def decode_payload(payload: bytes) -> Dict[str, Any]:
    """Decode a JSON object payload.

    Args:
        payload: Raw message payload.

    Returns:
        The decoded key/value fields.

    Raises:
        PayloadDecodeError: If the payload is not a UTF-8 JSON object.
    """
    try:
        data = json.loads(payload.decode("utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise PayloadDecodeError(f"Invalid JSON payload: {e}") from e

    if not isinstance(data, dict):
        raise PayloadDecodeError(
            f"Expected a JSON object, got {type(data).__name__}"
        )
    return data


def require_number(data: Dict[str, Any], field: str) -> float:
    """Extract a finite numeric field from a decoded payload.

    Numeric strings such as "22.5" are accepted; booleans are not.

    Raises:
        PayloadDecodeError: If the field is missing or not a finite number.
    """
    if field not in data or data[field] is None:
        raise PayloadDecodeError(f"Missing field '{field}'")

    raw = data[field]
    if isinstance(raw, bool):
        raise PayloadDecodeError(f"Field '{field}' is not a number: {raw!r}")
    try:
        value = float(raw)
    except (TypeError, ValueError):
        raise PayloadDecodeError(f"Field '{field}' is not a number: {raw!r}")

    if not math.isfinite(value):
        raise PayloadDecodeError(f"Field '{field}' is not finite: {raw!r}")
    return value
