"""Execution proxy: guard check, dispatch, audit and result shaping.

Every command passes through :meth:`ExecutionProxy.execute_command`:

1. The safety guard classifies it (warnings are printed, blocks raise).
2. A start record is appended to the audit log.
3. The command runs on the local shell or the remote executor.
4. A result or error record is appended and the result is returned.

Execution is at-most-once. Nothing here retries, times out or cancels; a
caller that needs a deadline wraps the call in ``asyncio.wait_for``.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, replace
from enum import StrEnum
from typing import Any

from rich.console import Console

from shellgate.errors import BlockedCommandError, ExecutionError
from shellgate.execution.audit import AuditLog, utc_timestamp
from shellgate.execution.executors import LocalExecutor, RemoteExecutor
from shellgate.guard.guard import CommandGuard, format_blocked_message

logger = logging.getLogger(__name__)


class OutputMode(StrEnum):
    """Where progress text goes. Never affects guard or dispatch."""

    RAW = "raw"  # Progress on stdout
    QUIET = "quiet"  # Progress on stderr, stdout carries only command output
    JSON = "json"  # Progress on stderr, stdout carries a JSON response


@dataclass
class ProxyOptions:
    """Per-call execution options."""

    skip_guard: bool = False
    skip_logging: bool = False
    working_directory: str | None = None
    output_mode: OutputMode = OutputMode.RAW
    json_fields: list[str] | None = None


@dataclass(frozen=True)
class ExecutionResult:
    """Outcome of one successful command execution."""

    output: str
    duration: int  # milliseconds
    timestamp: str
    command: str
    is_local: bool = False
    exit_code: int = 0


class ExecutionProxy:
    """Mode-aware command dispatcher.

    Usage:
        proxy = ExecutionProxy(guard=CommandGuard(), remote=SSHExecutor("host"))
        result = await proxy.execute_command("docker ps")
    """

    def __init__(
        self,
        guard: CommandGuard,
        remote: RemoteExecutor,
        local: LocalExecutor | None = None,
        audit: AuditLog | None = None,
        local_mode: bool = False,
        json_fields: list[str] | None = None,
        stdout: Console | None = None,
        stderr: Console | None = None,
    ):
        """Initialize the proxy.

        Args:
            guard: Safety guard consulted before every execution
            remote: Executor used when local mode is off
            local: Executor used when local mode is on
            audit: Audit log; None disables durable logging
            local_mode: Start in local execution mode
            json_fields: Default top-level key allow-list for JSON responses
            stdout: Console for command output and raw-mode progress
            stderr: Console for diagnostics
        """
        self.guard = guard
        self.remote = remote
        self.local = local or LocalExecutor()
        self.audit = audit
        self._local_mode = local_mode
        self._json_fields = json_fields
        self.stdout = stdout or Console()
        self.stderr = stderr or Console(stderr=True)

    def set_local_mode(self, local: bool) -> None:
        self._local_mode = local

    def is_local_mode(self) -> bool:
        return self._local_mode

    def set_json_fields(self, fields: list[str] | None) -> None:
        """Restrict JSON responses to the given top-level keys (None = all)."""
        self._json_fields = list(fields) if fields else None

    def _progress_console(self, mode: OutputMode) -> Console:
        return self.stdout if mode == OutputMode.RAW else self.stderr

    def check_command(self, command: str) -> None:
        """Run the guard, print warnings and raise if the command is blocked.

        Raises:
            BlockedCommandError: If a blocking rule matched
        """
        result = self.guard.check_command(command)

        for warning in result.warnings:
            self.stderr.out(warning, highlight=False)

        if result.is_blocked:
            self.stderr.out(format_blocked_message(command, result), highlight=False)
            if self.audit is not None:
                self.audit.log_blocked(command, result)
            logger.warning("Blocked command (%s): %s", result.rule, command)
            raise BlockedCommandError(command, result)

    async def execute_command(
        self, command: str, options: ProxyOptions | None = None
    ) -> ExecutionResult:
        """Check, dispatch and log a single command.

        Args:
            command: Command line to execute
            options: Per-call options (defaults: guarded, logged, raw output)

        Returns:
            ExecutionResult for the completed command

        Raises:
            BlockedCommandError: If the guard refused the command
            ExecutionError: If the executor failed
        """
        options = options or ProxyOptions()
        timestamp = utc_timestamp()

        if not options.skip_guard:
            self.check_command(command)

        is_local = self._local_mode
        progress = self._progress_console(options.output_mode)
        log = not options.skip_logging

        if log:
            progress.out(f"Executing{' locally' if is_local else ''}: {command}", highlight=False)
            if self.audit is not None:
                self.audit.log_start(timestamp, is_local, command)

        start = time.perf_counter()
        try:
            if is_local:
                output = await self.local.execute_command(command, options.working_directory)
            else:
                output = await self.remote.execute_command(command)
        except Exception as e:
            duration = _elapsed_ms(start)
            logger.error("Command failed after %dms: %s", duration, e)
            if log and self.audit is not None:
                self.audit.log_error(timestamp, duration, str(e))
            if isinstance(e, ExecutionError):
                e.duration = duration
                e.command = e.command or command
                raise
            raise ExecutionError(str(e), command=command, duration=duration) from e

        duration = _elapsed_ms(start)

        if log:
            if self.audit is not None:
                self.audit.log_result(timestamp, duration, output)
            progress.out(f"Completed in {duration}ms", highlight=False)

        return ExecutionResult(
            output=output,
            duration=duration,
            timestamp=timestamp,
            command=command,
            is_local=is_local,
            exit_code=0,
        )

    async def execute_json(self, command: str, options: ProxyOptions | None = None) -> str:
        """Execute a command and always return a JSON response.

        Executor failures become a ``success: false`` payload. Blocked
        commands still raise :class:`BlockedCommandError`.
        """
        options = replace(options or ProxyOptions(), output_mode=OutputMode.JSON)
        timestamp = utc_timestamp()
        try:
            result = await self.execute_command(command, options)
        except ExecutionError as e:
            failed = self.failed_result(command, e, timestamp)
            return self.format_json_response(failed, e, options.json_fields)
        return self.format_json_response(result, fields=options.json_fields)

    def failed_result(
        self, command: str, error: ExecutionError, timestamp: str | None = None
    ) -> ExecutionResult:
        """Result placeholder for a failed execution (empty output)."""
        return ExecutionResult(
            output="",
            duration=error.duration or 0,
            timestamp=timestamp or utc_timestamp(),
            command=command,
            is_local=self._local_mode,
            exit_code=error.exit_code,
        )

    def build_json_response(
        self,
        result: ExecutionResult,
        error: BaseException | None = None,
        fields: list[str] | None = None,
    ) -> dict[str, Any]:
        """Shape a result (or failure) into the structured response dict.

        The ``error`` key is only present on failure. When a field allow-list
        applies, only those top-level keys are kept; ``metadata`` is kept or
        dropped as a whole.
        """
        if error is None:
            exit_code = result.exit_code
        else:
            exit_code = error.exit_code if isinstance(error, ExecutionError) else 1

        response: dict[str, Any] = {
            "success": error is None,
            "command": result.command,
            "duration": result.duration,
            "timestamp": result.timestamp,
            "output": result.output,
        }
        if error is not None:
            response["error"] = str(error)
        response["metadata"] = {"isLocal": result.is_local, "exitCode": exit_code}

        allowed = fields if fields is not None else self._json_fields
        if allowed:
            response = {key: response[key] for key in allowed if key in response}
        return response

    def format_json_response(
        self,
        result: ExecutionResult,
        error: BaseException | None = None,
        fields: list[str] | None = None,
    ) -> str:
        """Serialize :meth:`build_json_response` as pretty-printed JSON."""
        return json.dumps(
            self.build_json_response(result, error, fields), indent=2, ensure_ascii=False
        )


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)
