"""Plugin registry: lifecycle, dependency checks and the command table.

Plugin states::

    unloaded -> loaded -> enabled <-> disabled -> unloaded

Only enabling and disabling have side effects (hooks, command table, guard
rules). Every lifecycle method validates first and raises
:class:`PluginLifecycleError` before touching any state. A hook that fails
leaves the plugin disabled: a plugin failing to activate during load is not
kept, and a plugin failing to deactivate during unload is still removed.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterable
from dataclasses import replace
from typing import TYPE_CHECKING, Any

from shellgate.errors import CommandNotFoundError, PluginLifecycleError
from shellgate.plugins.graph import CycleError, DependencyGraph

if TYPE_CHECKING:
    from shellgate.execution.dependencies import DependencyChecker
    from shellgate.execution.proxy import OutputMode
    from shellgate.guard.rules import GuardRule
    from shellgate.plugins.base import OutputSink, Plugin, PluginCommand, PluginContext

# The core plugin: always enabled, never disabled or unloaded
PROTECTED_PLUGIN = "proxy"

MCP_ARGS_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "args": {
            "type": "array",
            "items": {"type": "string"},
            "description": "Command arguments",
        },
    },
}


class PluginRegistry:
    """Owns loaded plugins, the enabled set and the command/alias table.

    Usage:
        registry = PluginRegistry(context, enabled=["docker"])
        await registry.load_plugin(proxy_plugin)
        await registry.load_plugin(docker_plugin)  # enabled on load
        command = registry.resolve_command("ldc")
    """

    def __init__(
        self,
        context: PluginContext,
        enabled: Iterable[str] = (),
        on_enabled_change: Callable[[list[str]], None] | None = None,
        dependency_checker: DependencyChecker | None = None,
        protected: str = PROTECTED_PLUGIN,
    ):
        """Initialize the registry.

        Args:
            context: Shared context handed to hooks and handlers
            enabled: Plugin names to enable as soon as they are loaded
            on_enabled_change: Called with the enabled names after each change
            dependency_checker: Checks runtime dependencies before commands run
            protected: Name of the core plugin that can never be disabled
        """
        self.context = context
        self.context.get_plugin = self.get_plugin
        self.logger = context.logger
        self.on_enabled_change = on_enabled_change
        self.dependency_checker = dependency_checker
        self.protected = protected

        self._plugins: dict[str, Plugin] = {}
        self._enabled: set[str] = set()
        self._wanted: set[str] = {*enabled, protected}
        self._commands: dict[str, tuple[Plugin, PluginCommand]] = {}
        self._lock = asyncio.Lock()

    # Lifecycle

    async def load_plugin(self, plugin: Plugin) -> None:
        """Register a plugin; activate it if it is in the enabled set.

        Raises:
            PluginLifecycleError: Duplicate name, circular or missing dependency,
                or an activation hook failure (the plugin is then not kept)
        """
        async with self._lock:
            name = plugin.name
            if name in self._plugins:
                raise PluginLifecycleError(f"Plugin {name} is already loaded", name)

            graph = self._graph()
            graph.add(name, plugin.dependencies)
            try:
                graph.order()
            except CycleError as e:
                raise PluginLifecycleError(
                    f"Circular dependency detected for plugin {name}", name
                ) from e

            missing = graph.missing(name)
            if missing:
                raise PluginLifecycleError(
                    f"Plugin {name} depends on {missing[0]}, which is not loaded", name
                )

            self._plugins[name] = plugin
            self.logger.debug("Plugin %s loaded", name)

            if name in self._wanted:
                try:
                    await self._enable(name)
                except PluginLifecycleError:
                    # A plugin that fails to activate on load is not kept
                    del self._plugins[name]
                    raise

    async def unload_plugin(self, name: str) -> None:
        """Disable (if needed) and forget a plugin.

        Raises:
            PluginLifecycleError: Not loaded, protected, or still depended on
        """
        async with self._lock:
            self._require_loaded(name)
            if name == self.protected:
                raise PluginLifecycleError(f"The {name} plugin cannot be unloaded", name)

            dependents = self._dependents(name)
            if dependents:
                raise PluginLifecycleError(
                    f"Cannot unload plugin {name}: {', '.join(dependents)} depend on it", name
                )

            try:
                if name in self._enabled:
                    await self._disable(name)
            finally:
                del self._plugins[name]
                self.logger.debug("Plugin %s unloaded", name)

    async def enable_plugin(self, name: str) -> None:
        """Enable a plugin and, first, every plugin it depends on.

        No-op if already enabled. Dependencies must be loaded; they are never
        loaded implicitly.

        Raises:
            PluginLifecycleError: Not loaded, missing dependency, or hook failure
        """
        async with self._lock:
            self._require_loaded(name)
            await self._enable(name)

    async def disable_plugin(self, name: str) -> None:
        """Disable a plugin. No-op if already disabled.

        Raises:
            PluginLifecycleError: Protected plugin, not loaded, or an enabled
                plugin depends on it
        """
        async with self._lock:
            if name == self.protected:
                raise PluginLifecycleError(f"The {name} plugin cannot be disabled", name)
            self._require_loaded(name)
            if name not in self._enabled:
                return

            dependents = [p for p in self._dependents(name) if p in self._enabled]
            if dependents:
                raise PluginLifecycleError(
                    f"Cannot disable plugin {name}: {', '.join(dependents)} depend on it", name
                )

            await self._disable(name)

    async def _enable(self, name: str) -> None:
        if name in self._enabled:
            return

        try:
            chain = self._graph().closure(name)
        except CycleError as e:
            raise PluginLifecycleError(f"Circular dependency detected for plugin {name}", name) from e

        missing = [n for n in chain if n not in self._plugins]
        if missing:
            raise PluginLifecycleError(
                f"Plugin {name} depends on {missing[0]}, which is not loaded", name
            )

        try:
            for plugin_name in chain:
                if plugin_name not in self._enabled:
                    await self._activate(self._plugins[plugin_name])
        finally:
            self._refresh_guard()
            self._persist()

    async def _disable(self, name: str) -> None:
        try:
            await self._deactivate(self._plugins[name])
        finally:
            self._refresh_guard()
            self._persist()

    async def _activate(self, plugin: Plugin) -> None:
        self._register_commands(plugin)

        if plugin.on_load is not None:
            try:
                await plugin.on_load(self.context)
            except Exception as e:
                self._unregister_commands(plugin)
                raise PluginLifecycleError(
                    f"Plugin {plugin.name} failed to activate: {e}", plugin.name
                ) from e

        self._enabled.add(plugin.name)
        self._wanted.add(plugin.name)
        self.logger.info("Plugin %s activated", plugin.name)

    async def _deactivate(self, plugin: Plugin) -> None:
        try:
            if plugin.on_unload is not None:
                await plugin.on_unload()
        except Exception as e:
            raise PluginLifecycleError(
                f"Plugin {plugin.name} failed to deactivate cleanly: {e}", plugin.name
            ) from e
        finally:
            self._unregister_commands(plugin)
            self._enabled.discard(plugin.name)
            self._wanted.discard(plugin.name)
            self.logger.info("Plugin %s deactivated", plugin.name)

    # Command table

    def _register_commands(self, plugin: Plugin) -> None:
        for command in plugin.commands:
            self._register_key(command.name, plugin, command)
            for alias in command.aliases:
                self._register_key(alias, plugin, command)

    def _register_key(self, key: str, plugin: Plugin, command: PluginCommand) -> None:
        existing = self._commands.get(key)
        if existing is not None:
            owner, other = existing
            self.logger.warning(
                "%s for command %s (plugin %s) conflicts with command %s (plugin %s)",
                key,
                command.name,
                plugin.name,
                other.name,
                owner.name,
            )
            return
        self._commands[key] = (plugin, command)

    def _unregister_commands(self, plugin: Plugin) -> None:
        self._commands = {
            key: entry for key, entry in self._commands.items() if entry[0] is not plugin
        }

    def resolve_command(self, name_or_alias: str) -> PluginCommand | None:
        entry = self._commands.get(name_or_alias)
        return entry[1] if entry else None

    def get_command_plugin(self, name_or_alias: str) -> Plugin | None:
        entry = self._commands.get(name_or_alias)
        return entry[0] if entry else None

    def get_all_commands(self) -> list[PluginCommand]:
        """Reachable commands, each listed once under its primary name."""
        return [command for key, (_, command) in self._commands.items() if key == command.name]

    async def execute_command(
        self,
        name_or_alias: str,
        args: Iterable[str] = (),
        output: OutputSink | None = None,
        output_mode: OutputMode | None = None,
    ) -> None:
        """Resolve a command and run its handler.

        Raises:
            CommandNotFoundError: If nothing is registered under the name
            MissingDependencyError: If a required runtime dependency is absent
        """
        entry = self._commands.get(name_or_alias)
        if entry is None:
            raise CommandNotFoundError(name_or_alias)
        plugin, command = entry

        if self.dependency_checker is not None and plugin.runtime_dependencies:
            results = await self.dependency_checker.check_plugin_dependencies(plugin)
            self.dependency_checker.assert_all_available(plugin.name, results)

        context = replace(
            self.context,
            output=output or self.context.output,
            output_mode=output_mode or self.context.output_mode,
        )
        await command.handler(context, list(args))

    # Queries

    def get_plugin(self, name: str) -> Plugin | None:
        return self._plugins.get(name)

    def get_all_plugins(self) -> list[Plugin]:
        return list(self._plugins.values())

    def get_enabled_plugins(self) -> list[Plugin]:
        return [p for p in self._plugins.values() if p.name in self._enabled]

    def is_enabled(self, name: str) -> bool:
        return name in self._enabled

    @property
    def enabled_names(self) -> list[str]:
        return [p.name for p in self.get_enabled_plugins()]

    def aggregated_guard_extensions(self) -> list[GuardRule]:
        """Guard rules of every enabled plugin, in load order."""
        return [rule for plugin in self.get_enabled_plugins() for rule in plugin.guard_rules]

    def get_mcp_tools(self) -> list[dict[str, Any]]:
        """Tool definitions for every enabled command with an external name."""
        tools: list[dict[str, Any]] = []
        for plugin in self.get_enabled_plugins():
            tools.extend(plugin.mcp_tools)
            for command in plugin.commands:
                if command.mcp_name:
                    tools.append(
                        {
                            "name": command.mcp_name,
                            "description": command.description,
                            "inputSchema": MCP_ARGS_SCHEMA,
                        }
                    )
        return tools

    # Internals

    def _require_loaded(self, name: str) -> None:
        if name not in self._plugins:
            raise PluginLifecycleError(f"Plugin {name} is not loaded", name)

    def _dependents(self, name: str) -> list[str]:
        return [p.name for p in self._plugins.values() if name in p.dependencies]

    def _graph(self) -> DependencyGraph:
        return DependencyGraph.from_mapping(
            {name: plugin.dependencies for name, plugin in self._plugins.items()}
        )

    def _refresh_guard(self) -> None:
        guard = self.context.guard
        guard.clear_extensions()
        guard.add_extensions(self.aggregated_guard_extensions())

    def _persist(self) -> None:
        if self.on_enabled_change is not None:
            self.on_enabled_change(self.enabled_names)
