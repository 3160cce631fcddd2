"""Tests for plugin management CLI commands."""

import yaml
from typer.testing import CliRunner

from shellgate.cli.app import app

runner = CliRunner()


def _saved_enabled(path) -> list[str]:
    return yaml.safe_load(path.read_text())["plugins"]["enabled"]


def test_plugin_list(tmp_config_path):
    result = runner.invoke(app, ["plugin", "list", "--config", str(tmp_config_path)])
    assert result.exit_code == 0
    for name in ("proxy", "system", "docker"):
        assert name in result.output
    assert "enabled" in result.output


def test_plugin_info(tmp_config_path):
    result = runner.invoke(app, ["plugin", "info", "docker", "--config", str(tmp_config_path)])
    assert result.exit_code == 0
    assert "docker" in result.output
    assert "list-containers" in result.output
    assert "docker.remove-all-containers" in result.output
    assert "Requires: Docker" in result.output


def test_plugin_info_unknown(tmp_config_path):
    result = runner.invoke(app, ["plugin", "info", "ghost", "--config", str(tmp_config_path)])
    assert result.exit_code == 1
    assert "not found" in result.output


def test_plugin_disable_persists(tmp_config_path):
    result = runner.invoke(app, ["plugin", "disable", "docker", "--config", str(tmp_config_path)])
    assert result.exit_code == 0
    assert "disabled" in result.output
    assert _saved_enabled(tmp_config_path) == ["system"]


def test_plugin_enable_persists(tmp_config_path):
    runner.invoke(app, ["plugin", "disable", "docker", "--config", str(tmp_config_path)])
    result = runner.invoke(app, ["plugin", "enable", "docker", "--config", str(tmp_config_path)])
    assert result.exit_code == 0
    assert "enabled" in result.output
    assert _saved_enabled(tmp_config_path) == ["system", "docker"]


def test_plugin_enable_removes_from_disabled_list(tmp_config_path):
    data = yaml.safe_load(tmp_config_path.read_text())
    data["plugins"]["disabled"] = ["docker"]
    tmp_config_path.write_text(yaml.safe_dump(data))

    result = runner.invoke(app, ["plugin", "enable", "docker", "--config", str(tmp_config_path)])

    assert result.exit_code == 0
    saved = yaml.safe_load(tmp_config_path.read_text())["plugins"]
    assert saved["disabled"] == []
    assert "docker" in saved["enabled"]


def test_plugin_disable_proxy_fails(tmp_config_path):
    result = runner.invoke(app, ["plugin", "disable", "proxy", "--config", str(tmp_config_path)])
    assert result.exit_code == 1
    assert "cannot be disabled" in result.output


def test_plugin_enable_unknown_fails(tmp_config_path):
    result = runner.invoke(app, ["plugin", "enable", "ghost", "--config", str(tmp_config_path)])
    assert result.exit_code == 1
    assert "not loaded" in result.output


def test_file_transfer_is_opt_in(tmp_config_path):
    result = runner.invoke(
        app, ["plugin", "info", "file-transfer", "--config", str(tmp_config_path)]
    )
    assert result.exit_code == 0
    assert "upload" in result.output
    assert "download" in result.output

    result = runner.invoke(
        app, ["plugin", "enable", "file-transfer", "--config", str(tmp_config_path)]
    )
    assert result.exit_code == 0
    assert _saved_enabled(tmp_config_path) == ["system", "docker", "file-transfer"]
