"""Configuration: pydantic schema and YAML loader."""

from shellgate.config.loader import DEFAULT_CONFIG_PATH, ConfigError, load_config, save_config
from shellgate.config.schema import (
    AuditConfig,
    ExecutionConfig,
    GatewayConfig,
    PluginsConfig,
    SSHConfig,
)

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "AuditConfig",
    "ConfigError",
    "ExecutionConfig",
    "GatewayConfig",
    "PluginsConfig",
    "SSHConfig",
    "load_config",
    "save_config",
]
