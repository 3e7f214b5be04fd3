"""Tests for configuration loading."""

import pytest

from sensorbridge.bridge.config import load_config

CONFIG_YAML = """
mqtt:
  url: mqtt://mosquitto.local:1883
  reconnect_interval: 5
topics:
  temperature: lab/suhu
  brightness: lab/kecerahan
database:
  pool_size: 3
http:
  port: 8080
log_level: debug
"""


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("PORT", "LOG_LEVEL", "SENSORBRIDGE_CONFIG", "DB_HOST", "DB_USER",
                 "DB_PASSWORD", "DB_DATABASE", "DB_PORT"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr("sensorbridge.shared.config.load_dotenv", lambda: False)


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "bridge.yaml"
    path.write_text(CONFIG_YAML)
    return path


def test_load_config_from_file(config_file, monkeypatch):
    monkeypatch.setenv("DB_HOST", "mysql.local")
    monkeypatch.setenv("DB_PASSWORD", "laragon")

    config = load_config(str(config_file))

    assert config.mqtt.endpoint == ("mosquitto.local", 1883)
    assert config.mqtt.reconnect_interval == 5.0
    assert config.mqtt.connect_timeout == 10.0
    assert config.topics.as_list() == ["lab/suhu", "lab/kecerahan"]
    assert config.db.host == "mysql.local"
    assert config.db.password == "laragon"
    assert config.db.pool_size == 3
    assert config.http.port == 8080
    assert config.log_level == "DEBUG"


def test_port_env_overrides_file(config_file, monkeypatch):
    monkeypatch.setenv("PORT", "9000")
    assert load_config(str(config_file)).http.port == 9000


def test_env_config_path(config_file, monkeypatch):
    monkeypatch.setenv("SENSORBRIDGE_CONFIG", str(config_file))
    assert load_config().topics.temperature == "lab/suhu"


def test_missing_explicit_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / "missing.yaml"))


def test_missing_env_file_raises(tmp_path, monkeypatch):
    monkeypatch.setenv("SENSORBRIDGE_CONFIG", str(tmp_path / "missing.yaml"))
    with pytest.raises(FileNotFoundError):
        load_config()


def test_defaults(monkeypatch, tmp_path):
    monkeypatch.setattr(
        "sensorbridge.shared.config.get_config_path", lambda: tmp_path / "absent.yaml"
    )

    config = load_config()

    assert config.mqtt.url == "mqtt://broker.hivemq.com:1883"
    assert config.mqtt.clean_session
    assert config.topics.as_list() == ["tes/suhu", "tes/kecerahan"]
    assert config.http.port == 3000
    assert config.db.database == "iot_uts"
    assert config.display.refresh_interval == 0.0


def test_same_topic_twice_rejected(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("topics:\n  temperature: x\n  brightness: x\n")
    with pytest.raises(ValueError):
        load_config(str(path))
