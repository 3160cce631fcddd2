"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import io
import logging
from pathlib import Path
from unittest.mock import AsyncMock

import pytest
from rich.console import Console

from shellgate.config.schema import GatewayConfig
from shellgate.execution.audit import AuditLog
from shellgate.execution.proxy import ExecutionProxy
from shellgate.guard.guard import CommandGuard
from shellgate.plugins.base import BufferedOutput, PluginContext


def captured_console() -> Console:
    """Console writing to an in-memory buffer (read it with ``.file.getvalue()``)."""
    return Console(file=io.StringIO(), width=200)


@pytest.fixture
def config(tmp_path: Path) -> GatewayConfig:
    """Configuration whose audit logs live under tmp_path."""
    config = GatewayConfig()
    config.audit.logs_dir = str(tmp_path / "logs")
    config.ssh.host = "test-host"
    return config


@pytest.fixture
def remote() -> AsyncMock:
    """Remote executor double; records every command it is asked to run."""
    executor = AsyncMock()
    executor.execute_command.return_value = "remote output"
    return executor


@pytest.fixture
def audit(tmp_path: Path) -> AuditLog:
    return AuditLog(tmp_path / "logs")


@pytest.fixture
def stdout() -> Console:
    return captured_console()


@pytest.fixture
def stderr() -> Console:
    return captured_console()


@pytest.fixture
def guard() -> CommandGuard:
    return CommandGuard()


@pytest.fixture
def proxy(guard, remote, audit, stdout, stderr) -> ExecutionProxy:
    """Proxy in remote mode backed by the remote double."""
    return ExecutionProxy(guard=guard, remote=remote, audit=audit, stdout=stdout, stderr=stderr)


@pytest.fixture
def output() -> BufferedOutput:
    return BufferedOutput()


@pytest.fixture
def context(proxy, guard, config, output) -> PluginContext:
    """Plugin context wired to the test proxy and an in-memory output sink."""
    return PluginContext(
        proxy=proxy,
        guard=guard,
        config=config,
        logger=logging.getLogger("shellgate.plugins"),
        output=output,
    )
