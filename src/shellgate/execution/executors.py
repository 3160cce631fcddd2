"""Local and remote command executors."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Protocol

from shellgate.errors import ExecutionError

logger = logging.getLogger(__name__)

DEFAULT_MAX_OUTPUT_BYTES = 10 * 1024 * 1024
_READ_CHUNK = 64 * 1024


class RemoteExecutor(Protocol):
    """Protocol for executors that run commands on another host."""

    async def execute_command(self, command: str) -> str:
        """Run a command on the remote host.

        Args:
            command: Command line, passed to the remote login shell

        Returns:
            Combined stdout and stderr of the command

        Raises:
            ExecutionError: If the transport fails
        """
        ...

    async def upload_file(self, local_path: str, remote_path: str) -> None:
        """Copy a local file to the remote host."""
        ...

    async def download_file(self, remote_path: str, local_path: str) -> None:
        """Copy a remote file to the local machine."""
        ...


class _OutputLimitExceeded(Exception):
    pass


class LocalExecutor:
    """Runs commands through the local shell.

    Output is bounded: a command writing more than ``max_output_bytes`` to
    stdout or stderr is killed.
    """

    def __init__(self, max_output_bytes: int = DEFAULT_MAX_OUTPUT_BYTES):
        self.max_output_bytes = max_output_bytes

    async def execute_command(self, command: str, working_directory: str | None = None) -> str:
        """Run a command and return its stdout.

        Args:
            command: The shell command to execute
            working_directory: Directory to run in (default: current directory)

        Returns:
            Decoded stdout

        Raises:
            ExecutionError: On spawn failure, non-zero exit or oversized output
        """
        try:
            process = await asyncio.create_subprocess_shell(
                command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=working_directory,
            )
        except OSError as e:
            raise ExecutionError(f"Failed to start command: {e}", command=command) from e

        try:
            stdout, stderr = await asyncio.gather(
                self._read_bounded(process.stdout),
                self._read_bounded(process.stderr),
            )
        except _OutputLimitExceeded:
            process.kill()
            await process.wait()
            raise ExecutionError(
                f"Output exceeded {self.max_output_bytes} bytes: {command}",
                command=command,
            ) from None

        returncode = await process.wait()
        err_text = stderr.decode("utf-8", errors="replace")
        if returncode != 0:
            message = f"Command failed: {command}"
            if err_text.strip():
                message += f"\n{err_text.strip()}"
            raise ExecutionError(message, command=command, exit_code=returncode, stderr=err_text)

        return stdout.decode("utf-8", errors="replace")

    async def _read_bounded(self, stream: asyncio.StreamReader | None) -> bytes:
        if stream is None:
            return b""
        chunks: list[bytes] = []
        total = 0
        while True:
            chunk = await stream.read(_READ_CHUNK)
            if not chunk:
                break
            total += len(chunk)
            if total > self.max_output_bytes:
                raise _OutputLimitExceeded
            chunks.append(chunk)
        return b"".join(chunks)


class SSHExecutor:
    """Remote executor driving the system ``ssh`` and ``scp`` clients.

    Runs in batch mode, so a host that needs a password or an unknown host
    key fails instead of prompting.
    """

    # ssh exits with 255 when the connection itself failed
    TRANSPORT_FAILURE = 255

    def __init__(
        self,
        host: str | None,
        user: str = "root",
        key_path: str = "~/.ssh/id_rsa",
        port: int = 22,
        connect_timeout: int = 10,
        ssh_binary: str = "ssh",
        scp_binary: str = "scp",
    ):
        self.host = host
        self.user = user
        self.key_path = str(Path(key_path).expanduser())
        self.port = port
        self.connect_timeout = connect_timeout
        self.ssh_binary = ssh_binary
        self.scp_binary = scp_binary

    @property
    def destination(self) -> str:
        return f"{self.user}@{self.host}"

    def _options(self) -> list[str]:
        return [
            "-i",
            self.key_path,
            "-o",
            "BatchMode=yes",
            "-o",
            f"ConnectTimeout={self.connect_timeout}",
        ]

    async def execute_command(self, command: str) -> str:
        argv = [
            self.ssh_binary,
            *self._options(),
            "-p",
            str(self.port),
            self.destination,
            command,
        ]
        returncode, stdout, stderr = await self._run(argv, command)
        if returncode == self.TRANSPORT_FAILURE:
            raise ExecutionError(
                stderr.strip() or f"SSH connection to {self.host} failed",
                command=command,
                exit_code=returncode,
                stderr=stderr,
            )
        return (stdout + stderr).rstrip()

    async def upload_file(self, local_path: str, remote_path: str) -> None:
        await self._copy(local_path, f"{self.destination}:{remote_path}")

    async def download_file(self, remote_path: str, local_path: str) -> None:
        await self._copy(f"{self.destination}:{remote_path}", local_path)

    async def _copy(self, source: str, target: str) -> None:
        argv = [self.scp_binary, *self._options(), "-P", str(self.port), source, target]
        description = f"scp {source} {target}"
        returncode, _, stderr = await self._run(argv, description)
        if returncode != 0:
            raise ExecutionError(
                stderr.strip() or f"File transfer failed: {description}",
                command=description,
                exit_code=returncode,
                stderr=stderr,
            )

    async def _run(self, argv: list[str], command: str) -> tuple[int, str, str]:
        if not self.host:
            raise ExecutionError("No SSH host configured", command=command)
        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise ExecutionError(f"Failed to start {argv[0]}: {e}", command=command) from e

        stdout, stderr = await process.communicate()
        logger.debug("%s exited with %s", argv[0], process.returncode)
        return (
            process.returncode if process.returncode is not None else 0,
            stdout.decode("utf-8", errors="replace"),
            stderr.decode("utf-8", errors="replace"),
        )
