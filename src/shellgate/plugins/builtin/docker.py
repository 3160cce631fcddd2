"""Docker plugin: container listing and logs, plus Docker-specific guard rules."""

from __future__ import annotations

import re
import shlex

from shellgate.execution.proxy import ProxyOptions
from shellgate.guard.rules import GuardRule, Severity
from shellgate.plugins.base import Plugin, PluginCommand, PluginContext, RuntimeDependency

_CONTAINER_NAME = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")
DEFAULT_TAIL = 100

GUARD_RULES = [
    GuardRule(
        category="docker",
        rule_id="docker.remove-all-containers",
        patterns=(r"docker\s+(?:container\s+)?rm\s+.*\$\(\s*docker\s+(?:container\s+)?ps\s+-a?q",),
        message="Removing every container at once is dangerous",
        suggestion="Remove containers by name instead",
    ),
    GuardRule(
        category="docker",
        rule_id="docker.remove-all-images",
        patterns=(
            r"docker\s+(?:rmi|image\s+rm)\s+.*\$\(\s*docker\s+images\s+-a?q",
            r"docker\s+image\s+prune\s+.*(?:-a|--all)",
        ),
        message="Removing every image at once is dangerous",
    ),
    GuardRule(
        category="docker",
        rule_id="docker.privileged",
        patterns=(r"docker\s+(?:run|exec)\s+.*--privileged",),
        message="Privileged containers get full access to the host",
        severity=Severity.WARN,
    ),
]


async def list_containers(ctx: PluginContext, args: list[str]) -> None:
    command = 'docker ps --format "table {{.Names}}\\t{{.Status}}\\t{{.Image}}"'
    if "-a" in args or "--all" in args:
        command += " -a"
    result = await ctx.proxy.execute_command(command, ProxyOptions(output_mode=ctx.output_mode))
    ctx.output.write(result.output.rstrip("\n") or "No containers found.")


def parse_log_args(args: list[str]) -> tuple[str, int]:
    """Parse ``<container> [--tail N]``.

    Raises:
        ValueError: Missing or invalid container name or tail count
    """
    tail = DEFAULT_TAIL
    names: list[str] = []
    it = iter(args)
    for arg in it:
        if arg in ("--tail", "-n"):
            value = next(it, None)
            if value is None or not value.isdigit():
                raise ValueError("--tail needs a positive number")
            tail = int(value)
        else:
            names.append(arg)

    if len(names) != 1:
        raise ValueError("Usage: shellgate run show-logs <container> [--tail N]")
    if not _CONTAINER_NAME.match(names[0]):
        raise ValueError(f"Invalid container name: {names[0]}")
    return names[0], tail


async def show_logs(ctx: PluginContext, args: list[str]) -> None:
    container, tail = parse_log_args(args)
    command = f"docker logs --tail {tail} {shlex.quote(container)}"
    result = await ctx.proxy.execute_command(command, ProxyOptions(output_mode=ctx.output_mode))
    ctx.output.write(result.output.rstrip("\n"))


plugin = Plugin(
    name="docker",
    version="1.0.0",
    description="Docker container inspection",
    author="shellgate",
    dependencies=["proxy"],
    guard_rules=GUARD_RULES,
    runtime_dependencies=[
        RuntimeDependency(
            command="docker",
            display_name="Docker",
            install_hint="Install Docker from https://docs.docker.com/engine/install/",
        ),
    ],
    commands=[
        PluginCommand(
            name="list-containers",
            aliases=["ldc"],
            description="List Docker containers",
            usage="shellgate run list-containers [-a]",
            handler=list_containers,
            mcp_name="list_docker_containers",
        ),
        PluginCommand(
            name="show-logs",
            aliases=["sdl"],
            description="Show the last lines of a container's logs",
            usage="shellgate run show-logs <container> [--tail N]",
            handler=show_logs,
            mcp_name="show_docker_logs",
        ),
    ],
)
