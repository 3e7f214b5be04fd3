"""Configuration loading utilities."""

import os
from pathlib import Path
from typing import Optional, Union

import yaml
from dotenv import load_dotenv

DEFAULT_CONFIG_NAME = "sensor-bridge.yaml"


def get_config_path(
    config_name: Optional[str] = None,
    config_dir: Optional[Union[str, Path]] = None,
) -> Path:
    """Get path to a configuration file.

    Args:
        config_name: Name of config file (without path). Defaults to
            sensor-bridge.yaml.
        config_dir: Directory containing config files. If None, uses
            the 'config' directory at the repo root.

    Returns:
        Path to the configuration file.
    """
    if config_dir is None:
        package_dir = Path(__file__).parent.parent.parent
        config_dir = package_dir / "config"

    return Path(config_dir) / (config_name or DEFAULT_CONFIG_NAME)


def load_yaml_config(
    config_path: Optional[Union[str, Path]] = None,
    load_env: bool = True,
    required: bool = True,
) -> dict:
    """Load YAML configuration file.

    Args:
        config_path: Path to config file. If None, uses SENSORBRIDGE_CONFIG
            or get_config_path().
        load_env: Whether to load .env file first.
        required: Raise if the file is missing. When False a missing file
            yields an empty dict. A path named by SENSORBRIDGE_CONFIG is
            always required.

    Returns:
        Configuration dictionary.

    Raises:
        FileNotFoundError: If config file doesn't exist and is required.
        yaml.YAMLError: If config file is invalid YAML.
    """
    if load_env:
        load_dotenv()

    if config_path is None:
        env_path = os.getenv("SENSORBRIDGE_CONFIG")
        if env_path:
            config_path = Path(env_path)
            required = True
        else:
            config_path = get_config_path()
    else:
        config_path = Path(config_path)

    if not config_path.exists():
        if required:
            raise FileNotFoundError(f"Config file not found: {config_path}")
        return {}

    with open(config_path, "r") as f:
        return yaml.safe_load(f) or {}


def get_log_level(config: dict) -> str:
    """Extract log level from config, with LOG_LEVEL taking precedence.

    Args:
        config: Configuration dictionary.

    Returns:
        Log level string (e.g., 'INFO', 'DEBUG').
    """
    return (os.getenv("LOG_LEVEL") or config.get("log_level", "INFO")).upper()
