"""Shared fixtures for CLI tests."""

from pathlib import Path

import pytest

from shellgate.config.loader import save_config
from shellgate.config.schema import GatewayConfig


@pytest.fixture
def tmp_config_path(tmp_path: Path) -> Path:
    """Config file with audit logs under tmp_path and no SSH host."""
    path = tmp_path / "shellgate.yaml"
    config = GatewayConfig()
    config.audit.logs_dir = str(tmp_path / "logs")
    save_config(config, path)
    return path
