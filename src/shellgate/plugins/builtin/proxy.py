"""Core plugin: run commands through the proxy and toggle local mode."""

from __future__ import annotations

from shellgate.execution.proxy import OutputMode, ProxyOptions
from shellgate.plugins.base import Plugin, PluginCommand, PluginContext


async def run_command(ctx: PluginContext, args: list[str]) -> None:
    """Execute the joined arguments as one command line."""
    if not args:
        raise ValueError("No command provided. Usage: shellgate run proxy <command>")

    command = " ".join(args)
    options = ProxyOptions(
        output_mode=ctx.output_mode,
        json_fields=ctx.config.execution.json_fields,
    )

    if ctx.output_mode == OutputMode.JSON:
        ctx.output.write(await ctx.proxy.execute_json(command, options))
        return

    result = await ctx.proxy.execute_command(command, options)
    if result.output.strip():
        ctx.output.write(result.output.rstrip("\n"))


async def local_mode(ctx: PluginContext, args: list[str]) -> None:
    """Show or change whether commands run locally."""
    action = args[0] if args else "status"

    if action == "status":
        enabled = ctx.proxy.is_local_mode()
        ctx.output.write(f"Local mode is currently: {'ENABLED' if enabled else 'DISABLED'}")
        where = "locally" if enabled else "on the remote server"
        ctx.output.write(f"Commands will execute {where} by default.")
        return

    if action in ("on", "enable"):
        enabled = True
    elif action in ("off", "disable"):
        enabled = False
    else:
        raise ValueError('Invalid action. Use "on", "off", or "status"')

    ctx.config.local_mode = enabled
    ctx.proxy.set_local_mode(enabled)
    if ctx.save_config is not None:
        ctx.save_config(ctx.config)

    ctx.output.write(f"Local mode {'ENABLED' if enabled else 'DISABLED'}")
    where = "locally" if enabled else "on the remote server"
    ctx.output.write(f"Commands will now execute {where} by default.")


plugin = Plugin(
    name="proxy",
    version="1.0.0",
    description="Core proxy functionality for command execution",
    author="shellgate",
    commands=[
        PluginCommand(
            name="proxy",
            aliases=["run", "exec"],
            description="Execute a command on the remote server (or locally in local mode)",
            usage="shellgate run proxy <command>",
            examples=["shellgate run proxy ls -la", "shellgate run exec 'docker ps'"],
            handler=run_command,
            mcp_name="run_command",
        ),
        PluginCommand(
            name="local-mode",
            aliases=["lm"],
            description="Manage local execution mode",
            usage="shellgate run local-mode [on|off|status]",
            examples=["shellgate run lm on", "shellgate run lm status"],
            handler=local_mode,
        ),
    ],
)
