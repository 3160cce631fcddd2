"""Main CLI application using Typer."""

import sys

import typer
from rich.console import Console

from shellgate import __version__

# Create Typer app
app = typer.Typer(
    name="shellgate",
    help="Shellgate - Guarded command execution on local and remote hosts",
    no_args_is_help=True,
)

console = Console()

CONFIG_HELP = "Path to config file (default: ~/.shellgate/shellgate.yaml)"


@app.command()
def version():
    """Show shellgate version."""
    console.print(f"shellgate version {__version__}")


@app.command(
    "exec",
    context_settings={"allow_interspersed_args": False, "ignore_unknown_options": True},
)
def exec_(
    command: list[str] = typer.Argument(..., help="Command line to execute"),
    local: bool = typer.Option(False, "--local", "-l", help="Execute on this machine"),
    json_output: bool = typer.Option(False, "--json", help="Print a JSON response"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Progress on stderr only"),
    raw: bool = typer.Option(False, "--raw", help="Progress and output on stdout"),
    fields: str = typer.Option(
        None,
        "--fields",
        "-f",
        help="Comma-separated JSON keys to keep (e.g. output,metadata)",
    ),
    config_path: str = typer.Option(None, "--config", "-c", help=CONFIG_HELP),
):
    """Execute a command through the safety guard.

    Options go before the command; everything after it is passed through.
    """
    from shellgate.cli.exec_cmd import exec_command

    exec_command(
        command,
        local=local,
        json_output=json_output,
        quiet=quiet,
        raw=raw,
        fields=fields,
        config_path=config_path,
    )


@app.command(
    context_settings={"allow_interspersed_args": False, "ignore_unknown_options": True},
)
def run(
    name: str = typer.Argument(..., help="Plugin command name or alias"),
    args: list[str] = typer.Argument(None, help="Arguments passed to the command"),
    local: bool = typer.Option(False, "--local", "-l", help="Execute on this machine"),
    json_output: bool = typer.Option(False, "--json", help="Ask the command for JSON output"),
    config_path: str = typer.Option(None, "--config", "-c", help=CONFIG_HELP),
):
    """Run a plugin command by name or alias."""
    from shellgate.cli.exec_cmd import run_command

    run_command(name, args, local=local, json_output=json_output, config_path=config_path)


@app.command()
def tools(
    config_path: str = typer.Option(None, "--config", "-c", help=CONFIG_HELP),
):
    """Print tool definitions for enabled plugin commands as JSON."""
    from shellgate.cli.exec_cmd import list_tools

    list_tools(config_path=config_path)


# Plugin management commands
plugin_app = typer.Typer(help="Manage plugins")
app.add_typer(plugin_app, name="plugin")


@plugin_app.command("list")
def plugin_list(
    config_path: str = typer.Option(None, "--config", "-c", help=CONFIG_HELP),
):
    """List plugins and whether they are enabled."""
    from shellgate.cli.plugin_cmd import list_plugins

    list_plugins(config_path=config_path)


@plugin_app.command("info")
def plugin_info(
    name: str = typer.Argument(..., help="Plugin name"),
    config_path: str = typer.Option(None, "--config", "-c", help=CONFIG_HELP),
):
    """Show details about a plugin."""
    from shellgate.cli.plugin_cmd import info_plugin

    info_plugin(name, config_path=config_path)


@plugin_app.command("enable")
def plugin_enable(
    name: str = typer.Argument(..., help="Plugin name"),
    config_path: str = typer.Option(None, "--config", "-c", help=CONFIG_HELP),
):
    """Enable a plugin."""
    from shellgate.cli.plugin_cmd import enable_plugin

    enable_plugin(name, config_path=config_path)


@plugin_app.command("disable")
def plugin_disable(
    name: str = typer.Argument(..., help="Plugin name"),
    config_path: str = typer.Option(None, "--config", "-c", help=CONFIG_HELP),
):
    """Disable a plugin."""
    from shellgate.cli.plugin_cmd import disable_plugin

    disable_plugin(name, config_path=config_path)


def main():
    """Entry point for the CLI."""
    try:
        app()
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        sys.exit(130)
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
