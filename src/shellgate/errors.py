"""Exception hierarchy shared by the guard, registry and execution proxy."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from shellgate.guard.guard import GuardResult


class GatewayError(Exception):
    """Base class for all shellgate errors."""


class BlockedCommandError(GatewayError):
    """A command was refused by the safety guard.

    Never retried. The proxy writes every instance to the blocked-command log
    before raising it.
    """

    def __init__(self, command: str, result: GuardResult):
        self.command = command
        self.result = result
        super().__init__(f"Command blocked: {', '.join(result.reasons)}")


class PluginLifecycleError(GatewayError):
    """A load/enable/disable/unload request was rejected.

    Raised before any registry state is mutated.
    """

    def __init__(self, message: str, plugin: str | None = None):
        self.plugin = plugin
        super().__init__(message)


class ExecutionError(GatewayError):
    """The local or remote executor failed to run a command."""

    def __init__(
        self,
        message: str,
        command: str = "",
        exit_code: int = 1,
        stderr: str = "",
        duration: int | None = None,
    ):
        self.command = command
        self.exit_code = exit_code
        self.stderr = stderr
        self.duration = duration
        super().__init__(message)


class MissingDependencyError(GatewayError):
    """Required external binaries for a plugin are not installed on the target."""

    def __init__(self, plugin: str, missing: list[str]):
        self.plugin = plugin
        self.missing = missing
        details = "\n".join(f"- {line}" for line in missing)
        super().__init__(f"Missing required dependencies:\n{details}")


class CommandNotFoundError(GatewayError):
    """No enabled plugin provides a command with this name or alias."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown command: {name}")
