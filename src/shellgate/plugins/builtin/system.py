"""System status plugin.

Gathers several facts at once. Each probe succeeds or fails on its own; a
failed probe is reported next to the ones that worked.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any

from shellgate.execution.proxy import OutputMode, ProxyOptions
from shellgate.plugins.base import Plugin, PluginCommand, PluginContext

STATUS_PROBES: dict[str, str] = {
    "uptime": "uptime",
    "disk": "df -h /",
    "memory": "free -m",
}


async def gather_status(ctx: PluginContext) -> dict[str, dict[str, Any]]:
    """Run every probe concurrently and collect per-probe outcomes."""
    options = ProxyOptions(output_mode=OutputMode.QUIET)
    results = await asyncio.gather(
        *(ctx.proxy.execute_command(cmd, options) for cmd in STATUS_PROBES.values()),
        return_exceptions=True,
    )

    report: dict[str, dict[str, Any]] = {}
    for name, result in zip(STATUS_PROBES, results, strict=True):
        if isinstance(result, Exception):
            report[name] = {"ok": False, "error": str(result)}
        elif isinstance(result, BaseException):
            raise result
        else:
            report[name] = {"ok": True, "output": result.output.strip()}
    return report


async def system_status(ctx: PluginContext, args: list[str]) -> None:
    report = await gather_status(ctx)

    if ctx.output_mode == OutputMode.JSON:
        ctx.output.write(json.dumps(report, indent=2))
        return

    for name, entry in report.items():
        ctx.output.write(f"== {name} ==")
        ctx.output.write(entry["output"] if entry["ok"] else f"error: {entry['error']}")


plugin = Plugin(
    name="system",
    version="1.0.0",
    description="Uptime, disk and memory overview",
    author="shellgate",
    dependencies=["proxy"],
    commands=[
        PluginCommand(
            name="system-status",
            aliases=["st"],
            description="Show uptime, disk and memory usage",
            usage="shellgate run system-status",
            handler=system_status,
            mcp_name="get_system_status",
        ),
    ],
)
