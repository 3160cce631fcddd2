"""Tests for the built-in plugins."""

import json
from dataclasses import replace
from unittest.mock import MagicMock

import pytest

from shellgate.errors import ExecutionError
from shellgate.execution.proxy import OutputMode
from shellgate.guard.guard import CommandGuard
from shellgate.plugins.builtin import BUILTIN_PLUGINS, docker, file_transfer, proxy, system


def test_builtin_table_lists_dependencies_first():
    names = [p.name for p in BUILTIN_PLUGINS]
    assert names == ["proxy", "system", "docker", "file-transfer"]
    assert system.plugin.dependencies == ["proxy"]
    assert docker.plugin.dependencies == ["proxy"]
    assert file_transfer.plugin.dependencies == ["proxy"]


class TestProxyPlugin:
    @pytest.mark.asyncio
    async def test_run_joins_args_and_writes_output(self, context, remote, output):
        remote.execute_command.return_value = "file1\nfile2\n"
        await proxy.run_command(context, ["ls", "-la"])
        remote.execute_command.assert_awaited_once_with("ls -la")
        assert output.getvalue() == "file1\nfile2\n"

    @pytest.mark.asyncio
    async def test_run_skips_blank_output(self, context, remote, output):
        remote.execute_command.return_value = "  \n"
        await proxy.run_command(context, ["true"])
        assert output.getvalue() == ""

    @pytest.mark.asyncio
    async def test_run_json_mode_writes_response(self, context, remote, output):
        ctx = replace(context, output_mode=OutputMode.JSON)
        await proxy.run_command(ctx, ["uptime"])
        payload = json.loads(output.getvalue())
        assert payload["success"] is True
        assert payload["command"] == "uptime"
        assert payload["output"] == "remote output"

    @pytest.mark.asyncio
    async def test_run_json_mode_reports_failure(self, context, remote, output):
        remote.execute_command.side_effect = ExecutionError("connection refused", exit_code=255)
        ctx = replace(context, output_mode=OutputMode.JSON)
        await proxy.run_command(ctx, ["uptime"])
        payload = json.loads(output.getvalue())
        assert payload["success"] is False
        assert payload["error"] == "connection refused"
        assert payload["metadata"]["exitCode"] == 255

    @pytest.mark.asyncio
    async def test_run_without_args_fails(self, context):
        with pytest.raises(ValueError, match="No command provided"):
            await proxy.run_command(context, [])

    @pytest.mark.asyncio
    async def test_local_mode_on_persists(self, context, output):
        context.save_config = MagicMock()
        await proxy.local_mode(context, ["on"])
        assert context.config.local_mode is True
        assert context.proxy.is_local_mode() is True
        context.save_config.assert_called_once_with(context.config)
        assert "Local mode ENABLED" in output.getvalue()

    @pytest.mark.asyncio
    async def test_local_mode_off(self, context, output):
        context.proxy.set_local_mode(True)
        await proxy.local_mode(context, ["disable"])
        assert context.proxy.is_local_mode() is False
        assert "on the remote server" in output.getvalue()

    @pytest.mark.asyncio
    async def test_local_mode_status_is_default(self, context, output):
        await proxy.local_mode(context, [])
        assert "Local mode is currently: DISABLED" in output.getvalue()

    @pytest.mark.asyncio
    async def test_local_mode_rejects_unknown_action(self, context):
        with pytest.raises(ValueError, match="Invalid action"):
            await proxy.local_mode(context, ["maybe"])


class TestSystemPlugin:
    @pytest.mark.asyncio
    async def test_probes_fail_independently(self, context, remote):
        async def fake(command):
            if command == "free -m":
                raise ExecutionError("free: command not found")
            return f"{command} ok\n"

        remote.execute_command.side_effect = fake
        report = await system.gather_status(context)

        assert report["uptime"] == {"ok": True, "output": "uptime ok"}
        assert report["disk"] == {"ok": True, "output": "df -h / ok"}
        assert report["memory"] == {"ok": False, "error": "free: command not found"}

    @pytest.mark.asyncio
    async def test_status_json(self, context, output):
        ctx = replace(context, output_mode=OutputMode.JSON)
        await system.system_status(ctx, [])
        report = json.loads(output.getvalue())
        assert set(report) == {"uptime", "disk", "memory"}

    @pytest.mark.asyncio
    async def test_status_sections(self, context, output):
        await system.system_status(context, [])
        text = output.getvalue()
        assert "== uptime ==" in text
        assert "== memory ==" in text


class TestDockerPlugin:
    def test_parse_log_args_defaults(self):
        assert docker.parse_log_args(["web"]) == ("web", docker.DEFAULT_TAIL)

    def test_parse_log_args_tail(self):
        assert docker.parse_log_args(["--tail", "20", "web-1"]) == ("web-1", 20)

    @pytest.mark.parametrize(
        "args",
        [[], ["a", "b"], ["web", "--tail"], ["web", "--tail", "many"], ["web;rm -rf /"]],
    )
    def test_parse_log_args_rejects(self, args):
        with pytest.raises(ValueError):
            docker.parse_log_args(args)

    @pytest.mark.asyncio
    async def test_show_logs_command(self, context, remote):
        await docker.show_logs(context, ["web", "-n", "5"])
        remote.execute_command.assert_awaited_once_with("docker logs --tail 5 web")

    @pytest.mark.asyncio
    async def test_list_containers_all(self, context, remote, output):
        remote.execute_command.return_value = ""
        await docker.list_containers(context, ["-a"])
        command = remote.execute_command.await_args.args[0]
        assert command.startswith("docker ps")
        assert command.endswith(" -a")
        assert output.getvalue() == "No containers found.\n"

    def test_guard_rules(self):
        guard = CommandGuard()
        guard.add_extensions(docker.GUARD_RULES)

        blocked = guard.check_command("docker rm -f $(docker ps -aq)")
        assert blocked.is_blocked is True
        assert blocked.rule == "docker.remove-all-containers"
        assert blocked.suggestion

        warned = guard.check_command("docker run --privileged alpine")
        assert warned.is_blocked is False
        assert warned.rule == "docker.privileged"

        assert guard.check_command("docker ps -a").is_blocked is False


class TestFileTransferPlugin:
    @pytest.mark.asyncio
    async def test_upload_sends_resolved_file(self, context, remote, output, tmp_path):
        source = tmp_path / "app.conf"
        source.write_text("key = value\n")

        await file_transfer.upload(context, [str(source), "/etc/app/app.conf"])

        remote.upload_file.assert_awaited_once_with(str(source.resolve()), "/etc/app/app.conf")
        assert "Uploaded" in output.getvalue()

    @pytest.mark.asyncio
    async def test_upload_missing_file(self, context, remote, tmp_path):
        with pytest.raises(ValueError, match="Local file not found"):
            await file_transfer.upload(context, [str(tmp_path / "nope"), "/tmp/x"])
        remote.upload_file.assert_not_called()

    @pytest.mark.asyncio
    async def test_upload_rejects_directory(self, context, remote, tmp_path):
        with pytest.raises(ValueError, match="Only regular files"):
            await file_transfer.upload(context, [str(tmp_path), "/tmp/x"])
        remote.upload_file.assert_not_called()

    @pytest.mark.asyncio
    async def test_download_creates_parent_directory(self, context, remote, output, tmp_path):
        target = tmp_path / "logs" / "app.log"

        await file_transfer.download(context, ["/var/log/app.log", str(target)])

        assert target.parent.is_dir()
        remote.download_file.assert_awaited_once_with("/var/log/app.log", str(target.resolve()))
        assert "Downloaded /var/log/app.log" in output.getvalue()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("handler", [file_transfer.upload, file_transfer.download])
    @pytest.mark.parametrize("args", [[], ["only-one"], ["a", "b", "c"], ["a", " "]])
    async def test_usage_errors(self, context, handler, args):
        with pytest.raises(ValueError, match="Usage"):
            await handler(context, args)

    @pytest.mark.asyncio
    async def test_local_mode_refuses_transfers(self, context, remote, tmp_path):
        source = tmp_path / "f.txt"
        source.write_text("x")
        context.proxy.set_local_mode(True)

        with pytest.raises(ValueError, match="local mode"):
            await file_transfer.upload(context, [str(source), "/tmp/f.txt"])
        with pytest.raises(ValueError, match="local mode"):
            await file_transfer.download(context, ["/tmp/f.txt", str(tmp_path / "out")])
        remote.upload_file.assert_not_called()
        remote.download_file.assert_not_called()

    @pytest.mark.asyncio
    async def test_transfer_failure_propagates(self, context, remote, tmp_path):
        remote.download_file.side_effect = ExecutionError("scp: No such file", exit_code=1)
        with pytest.raises(ExecutionError, match="No such file"):
            await file_transfer.download(context, ["/missing", str(tmp_path / "out")])
