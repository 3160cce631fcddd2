"""Configuration loading and validation."""

import os
from pathlib import Path
from typing import Optional, Union

import yaml
from pydantic import ValidationError

from shellgate.config.schema import GatewayConfig

DEFAULT_CONFIG_PATH = Path.home() / ".shellgate" / "shellgate.yaml"


class ConfigError(Exception):
    """Configuration loading or validation error."""


def _apply_env(config: GatewayConfig) -> GatewayConfig:
    """Overlay SSH settings from environment variables."""
    host = os.environ.get("SHELLGATE_HOST") or os.environ.get("SSH_HOST")
    if host:
        config.ssh.host = host
    if user := os.environ.get("SHELLGATE_USER"):
        config.ssh.user = user
    if key_path := os.environ.get("SHELLGATE_KEY_PATH"):
        config.ssh.key_path = key_path
    return config


def load_config(path: Optional[Path] = None) -> GatewayConfig:
    """Load and validate shellgate configuration from a YAML file.

    Args:
        path: Path to config file. If None, tries default location.
              If the file doesn't exist, returns defaults. In every case
              SHELLGATE_HOST/SSH_HOST, SHELLGATE_USER and SHELLGATE_KEY_PATH
              override the SSH settings.

    Returns:
        Validated configuration object

    Raises:
        ConfigError: If config file exists but is invalid
    """
    if path is None:
        path = DEFAULT_CONFIG_PATH

    if not path.exists():
        return _apply_env(GatewayConfig())

    try:
        with open(path) as f:
            config_data = yaml.safe_load(f)

        if config_data is None:
            return _apply_env(GatewayConfig())

        config = GatewayConfig(**config_data)

    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"Configuration validation failed: {e}") from e
    except Exception as e:
        raise ConfigError(f"Failed to load config from {path}: {e}") from e

    return _apply_env(config)


def save_config(config: GatewayConfig, path: Optional[Union[str, Path]] = None) -> None:
    """Save configuration to YAML file.

    Args:
        config: Configuration object to save
        path: Destination path (string or Path object). If None, uses default location.
    """
    if path is None:
        path = DEFAULT_CONFIG_PATH
    elif isinstance(path, str):
        path = Path(path)

    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w") as f:
        yaml.safe_dump(config.model_dump(), f, default_flow_style=False, sort_keys=False)
