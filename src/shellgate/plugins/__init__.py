"""Plugin system for shellgate.

Plugins contribute named commands, guard rules and lifecycle hooks. The
registry enforces dependency order and keeps the command/alias table.
"""

from shellgate.plugins.base import (
    BufferedOutput,
    ConsoleOutput,
    OutputSink,
    Plugin,
    PluginCommand,
    PluginContext,
    RuntimeDependency,
)
from shellgate.plugins.graph import CycleError, DependencyGraph
from shellgate.plugins.registry import PROTECTED_PLUGIN, PluginRegistry

__all__ = [
    "PROTECTED_PLUGIN",
    "BufferedOutput",
    "ConsoleOutput",
    "CycleError",
    "DependencyGraph",
    "OutputSink",
    "Plugin",
    "PluginCommand",
    "PluginContext",
    "PluginRegistry",
    "RuntimeDependency",
]
