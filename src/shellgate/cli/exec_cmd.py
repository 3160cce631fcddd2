"""CLI commands that execute through the gateway: exec, run, tools."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape

from shellgate.builder import Gateway, build_gateway
from shellgate.config.loader import ConfigError, load_config
from shellgate.errors import BlockedCommandError, ExecutionError, GatewayError
from shellgate.execution.proxy import OutputMode, ProxyOptions

console = Console()
err_console = Console(stderr=True)


def _config_path(config_path: str | None) -> Path | None:
    return Path(config_path).expanduser() if config_path else None


async def open_gateway(
    config_path: str | None = None, output_mode: OutputMode = OutputMode.RAW
) -> Gateway:
    """Load configuration, build the gateway and load the builtin plugins."""
    path = _config_path(config_path)
    config = load_config(path)
    gateway = build_gateway(
        config,
        config_path=path,
        output_mode=output_mode,
        stdout=console,
        stderr=err_console,
    )
    await gateway.start()
    return gateway


def fail(message: str) -> typer.Exit:
    """Print an error and return the exit to raise."""
    err_console.print(f"[red]Error: {escape(message)}[/red]")
    return typer.Exit(1)


def resolve_output_mode(json_output: bool, quiet: bool, raw: bool) -> OutputMode | None:
    """Pick the output mode from mutually exclusive flags (None = config default)."""
    chosen = [
        mode
        for mode, flag in (
            (OutputMode.JSON, json_output),
            (OutputMode.QUIET, quiet),
            (OutputMode.RAW, raw),
        )
        if flag
    ]
    if len(chosen) > 1:
        raise typer.BadParameter("Use only one of --json, --quiet and --raw")
    return chosen[0] if chosen else None


def parse_fields(fields: str | None) -> list[str] | None:
    """Split a comma-separated field list; blank entries are dropped."""
    if not fields:
        return None
    names = [name.strip() for name in fields.split(",") if name.strip()]
    return names or None


async def _exec(
    command: str,
    local: bool,
    mode: OutputMode | None,
    fields: list[str] | None,
    config_path: str | None,
) -> int:
    gateway = await open_gateway(config_path)
    proxy = gateway.proxy
    if mode is None:
        mode = OutputMode(gateway.config.execution.output_mode)
    if local:
        proxy.set_local_mode(True)
    if fields:
        proxy.set_json_fields(fields)

    options = ProxyOptions(output_mode=mode)

    if mode == OutputMode.JSON:
        try:
            result = await proxy.execute_command(command, options)
        except ExecutionError as e:
            console.out(
                proxy.format_json_response(proxy.failed_result(command, e), e), highlight=False
            )
            return 1
        console.out(proxy.format_json_response(result), highlight=False)
        return 0

    result = await proxy.execute_command(command, options)
    if result.output.strip():
        console.out(result.output.rstrip("\n"), highlight=False)
    return 0


def exec_command(
    command: list[str],
    local: bool = False,
    json_output: bool = False,
    quiet: bool = False,
    raw: bool = False,
    fields: str | None = None,
    config_path: str | None = None,
) -> None:
    """Run one command line through the guard and the active executor."""
    mode = resolve_output_mode(json_output, quiet, raw)

    try:
        code = asyncio.run(_exec(" ".join(command), local, mode, parse_fields(fields), config_path))
    except BlockedCommandError:
        # The proxy has already printed the blocked notice
        raise typer.Exit(1) from None
    except (ConfigError, GatewayError) as e:
        raise fail(str(e)) from None

    if code:
        raise typer.Exit(code)


async def _run(
    name: str, args: list[str], local: bool, mode: OutputMode, config_path: str | None
) -> None:
    gateway = await open_gateway(config_path, output_mode=mode)
    if local:
        gateway.proxy.set_local_mode(True)
    await gateway.registry.execute_command(name, args)


def run_command(
    name: str,
    args: list[str] | None = None,
    local: bool = False,
    json_output: bool = False,
    config_path: str | None = None,
) -> None:
    """Resolve a plugin command (or alias) and run it."""
    mode = OutputMode.JSON if json_output else OutputMode.RAW
    try:
        asyncio.run(_run(name, list(args or []), local, mode, config_path))
    except BlockedCommandError:
        raise typer.Exit(1) from None
    except (ConfigError, GatewayError, ValueError) as e:
        raise fail(str(e)) from None


async def _tools(config_path: str | None) -> list[dict]:
    gateway = await open_gateway(config_path)
    return gateway.registry.get_mcp_tools()


def list_tools(config_path: str | None = None) -> None:
    """Print tool definitions of every enabled command as JSON."""
    try:
        tools = asyncio.run(_tools(config_path))
    except (ConfigError, GatewayError) as e:
        raise fail(str(e)) from None
    console.out(json.dumps(tools, indent=2), highlight=False)
