"""Plugin contract: plugins, commands, runtime dependencies and handler context."""

from __future__ import annotations

import io
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol

from rich.console import Console

from shellgate.execution.proxy import OutputMode

if TYPE_CHECKING:
    from shellgate.config.schema import GatewayConfig
    from shellgate.execution.proxy import ExecutionProxy
    from shellgate.guard.guard import CommandGuard
    from shellgate.guard.rules import GuardRule


class OutputSink(Protocol):
    """Destination for the text a command handler produces."""

    def write(self, text: str) -> None:
        """Write one chunk of output (a trailing newline is added)."""
        ...


class BufferedOutput:
    """Collects handler output in memory."""

    def __init__(self) -> None:
        self._buffer = io.StringIO()

    def write(self, text: str) -> None:
        self._buffer.write(text)
        self._buffer.write("\n")

    def getvalue(self) -> str:
        return self._buffer.getvalue()


class ConsoleOutput:
    """Writes handler output to a rich console without markup processing."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def write(self, text: str) -> None:
        self.console.out(text, highlight=False)


# Handler signature: async function taking the context and positional args
CommandHandler = Callable[["PluginContext", list[str]], Awaitable[None]]


@dataclass
class PluginCommand:
    """A named command contributed by a plugin."""

    name: str
    description: str
    handler: CommandHandler
    aliases: list[str] = field(default_factory=list)
    usage: str = ""
    examples: list[str] = field(default_factory=list)
    mcp_name: str | None = None  # Exposed as an external tool when set


@dataclass
class RuntimeDependency:
    """An external binary a plugin needs on the execution target."""

    command: str
    display_name: str
    check_command: str | None = None
    install_hint: str | None = None
    optional: bool = False

    @property
    def probe_command(self) -> str:
        return self.check_command or f"which {self.command}"


@dataclass
class Plugin:
    """A self-contained bundle of commands, guard rules and lifecycle hooks.

    Registered in a static table and owned by the registry once loaded.
    """

    name: str
    version: str
    description: str
    commands: list[PluginCommand] = field(default_factory=list)
    author: str = ""
    dependencies: list[str] = field(default_factory=list)
    guard_rules: list[GuardRule] = field(default_factory=list)
    runtime_dependencies: list[RuntimeDependency] = field(default_factory=list)
    mcp_tools: list[dict[str, Any]] = field(default_factory=list)
    on_load: Callable[[PluginContext], Awaitable[None]] | None = None
    on_unload: Callable[[], Awaitable[None]] | None = None


@dataclass
class PluginContext:
    """Everything a command handler may touch.

    The registry builds one per invocation; ``output`` is where the handler
    writes its text.
    """

    proxy: ExecutionProxy
    guard: CommandGuard
    config: GatewayConfig
    logger: logging.Logger
    output: OutputSink = field(default_factory=ConsoleOutput)
    output_mode: OutputMode = OutputMode.RAW
    get_plugin: Callable[[str], Plugin | None] = lambda name: None
    save_config: Callable[[GatewayConfig], None] | None = None

    @property
    def is_local_execution(self) -> bool:
        return self.proxy.is_local_mode()
