"""Gateway builder: wires guard, proxy and registry from configuration."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from rich.console import Console

from shellgate.config.loader import save_config
from shellgate.config.schema import GatewayConfig
from shellgate.execution.audit import AuditLog
from shellgate.execution.dependencies import DependencyChecker
from shellgate.execution.executors import LocalExecutor, RemoteExecutor, SSHExecutor
from shellgate.execution.proxy import ExecutionProxy, OutputMode
from shellgate.guard.guard import CommandGuard
from shellgate.plugins.base import ConsoleOutput, OutputSink, Plugin, PluginContext
from shellgate.plugins.builtin import BUILTIN_PLUGINS
from shellgate.plugins.registry import PluginRegistry

logger = logging.getLogger(__name__)


@dataclass
class Gateway:
    """A fully wired gateway instance."""

    config: GatewayConfig
    guard: CommandGuard
    proxy: ExecutionProxy
    registry: PluginRegistry
    config_path: Path | None = None
    persist: bool = field(default=False)

    def on_enabled_change(self, names: list[str]) -> None:
        """Record the enabled set in the config; write it once started."""
        self.config.plugins.enabled = [n for n in names if n != self.registry.protected]
        if self.persist:
            save_config(self.config, self.config_path)

    async def start(self, plugins: Iterable[Plugin] = BUILTIN_PLUGINS) -> None:
        """Load the plugin table. Config is not rewritten while loading."""
        self.persist = False
        for plugin in plugins:
            await self.registry.load_plugin(plugin)
        self.persist = True


def build_gateway(
    config: GatewayConfig,
    config_path: Path | None = None,
    remote: RemoteExecutor | None = None,
    output: OutputSink | None = None,
    output_mode: OutputMode = OutputMode.RAW,
    stdout: Console | None = None,
    stderr: Console | None = None,
) -> Gateway:
    """Create a gateway from configuration.

    Args:
        config: Loaded configuration
        config_path: Where enabled-plugin changes are saved (None = default)
        remote: Remote executor override (default: SSHExecutor from config)
        output: Sink for handler output (default: stdout console)
        output_mode: Default output mode for handlers
        stdout: Console for command output
        stderr: Console for diagnostics

    Returns:
        Gateway with no plugins loaded yet; call ``start()``
    """
    stdout = stdout or Console()
    stderr = stderr or Console(stderr=True)

    guard = CommandGuard()
    if remote is None:
        remote = SSHExecutor(
            host=config.ssh.host,
            user=config.ssh.user,
            key_path=config.ssh.key_path,
            port=config.ssh.port,
            connect_timeout=config.ssh.connect_timeout,
        )

    proxy = ExecutionProxy(
        guard=guard,
        remote=remote,
        local=LocalExecutor(max_output_bytes=config.execution.max_output_bytes),
        audit=AuditLog(config.audit.logs_dir, redact_sensitive=config.audit.redact_sensitive),
        local_mode=config.local_mode,
        json_fields=config.execution.json_fields,
        stdout=stdout,
        stderr=stderr,
    )

    context = PluginContext(
        proxy=proxy,
        guard=guard,
        config=config,
        logger=logging.getLogger("shellgate.plugins"),
        output=output or ConsoleOutput(stdout),
        output_mode=output_mode,
        save_config=lambda cfg: save_config(cfg, config_path),
    )

    disabled = set(config.plugins.disabled)
    registry = PluginRegistry(
        context,
        enabled=[name for name in config.plugins.enabled if name not in disabled],
        dependency_checker=DependencyChecker(proxy),
    )

    gateway = Gateway(
        config=config,
        guard=guard,
        proxy=proxy,
        registry=registry,
        config_path=config_path,
    )
    registry.on_enabled_change = gateway.on_enabled_change
    return gateway
