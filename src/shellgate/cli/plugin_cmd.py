"""CLI commands for plugin management."""

from __future__ import annotations

import asyncio

from rich.console import Console
from rich.table import Table

from shellgate.cli.exec_cmd import fail, open_gateway
from shellgate.config.loader import ConfigError
from shellgate.errors import GatewayError

console = Console()


def list_plugins(config_path: str | None = None) -> None:
    """List all builtin plugins and their state."""
    try:
        gateway = asyncio.run(open_gateway(config_path))
    except (ConfigError, GatewayError) as e:
        raise fail(str(e)) from None

    registry = gateway.registry
    table = Table(title="Plugins")
    table.add_column("Name", style="cyan")
    table.add_column("Version")
    table.add_column("Depends on")
    table.add_column("Commands", style="green")
    table.add_column("Status")

    for plugin in registry.get_all_plugins():
        status = "[green]enabled[/green]" if registry.is_enabled(plugin.name) else "[red]disabled[/red]"
        table.add_row(
            plugin.name,
            plugin.version,
            ", ".join(plugin.dependencies) or "-",
            ", ".join(c.name for c in plugin.commands) or "-",
            status,
        )

    console.print(table)


def info_plugin(name: str, config_path: str | None = None) -> None:
    """Show detailed info about a plugin."""
    try:
        gateway = asyncio.run(open_gateway(config_path))
    except (ConfigError, GatewayError) as e:
        raise fail(str(e)) from None

    plugin = gateway.registry.get_plugin(name)
    if not plugin:
        raise fail(f"Plugin '{name}' not found.")

    console.print(f"\n[bold cyan]{plugin.name}[/bold cyan] v{plugin.version}")
    if plugin.description:
        console.print(f"  {plugin.description}")
    if plugin.author:
        console.print(f"  Author: {plugin.author}")
    console.print(f"  Enabled: {gateway.registry.is_enabled(name)}")
    if plugin.dependencies:
        console.print(f"  Depends on: {', '.join(plugin.dependencies)}")

    if plugin.commands:
        table = Table(title="Commands")
        table.add_column("Name", style="cyan")
        table.add_column("Aliases")
        table.add_column("Description")
        for command in plugin.commands:
            table.add_row(command.name, ", ".join(command.aliases) or "-", command.description)
        console.print(table)

    if plugin.guard_rules:
        console.print("  Guard rules:")
        for rule in plugin.guard_rules:
            console.print(f"    {rule.rule_id} ({rule.severity}): {rule.message}", markup=False)

    for dep in plugin.runtime_dependencies:
        optional = " (optional)" if dep.optional else ""
        console.print(f"  Requires: {dep.display_name}{optional}")


async def _set_enabled(name: str, enabled: bool, config_path: str | None) -> None:
    gateway = await open_gateway(config_path)
    if enabled:
        disabled = gateway.config.plugins.disabled
        if name in disabled:
            disabled.remove(name)
        await gateway.registry.enable_plugin(name)
    else:
        await gateway.registry.disable_plugin(name)


def enable_plugin(name: str, config_path: str | None = None) -> None:
    """Enable a plugin (and its dependencies) and save the enabled set."""
    try:
        asyncio.run(_set_enabled(name, True, config_path))
    except (ConfigError, GatewayError) as e:
        raise fail(str(e)) from None
    console.print(f"[green]Plugin '{name}' enabled.[/green]")


def disable_plugin(name: str, config_path: str | None = None) -> None:
    """Disable a plugin and save the enabled set."""
    try:
        asyncio.run(_set_enabled(name, False, config_path))
    except (ConfigError, GatewayError) as e:
        raise fail(str(e)) from None
    console.print(f"[yellow]Plugin '{name}' disabled.[/yellow]")
