"""Runtime dependency checks for plugin commands.

Plugins can declare external binaries they need (``docker``, ``jq``...).
Before one of their commands runs, the checker asks the execution target
whether each binary is present. Results are cached per binary and mode.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

from shellgate.errors import GatewayError, MissingDependencyError
from shellgate.execution.proxy import OutputMode, ProxyOptions

if TYPE_CHECKING:
    from shellgate.execution.proxy import ExecutionProxy
    from shellgate.plugins.base import Plugin, RuntimeDependency

logger = logging.getLogger(__name__)

CACHE_TTL_SECONDS = 5 * 60


@dataclass
class DependencyCheckResult:
    """Availability of one runtime dependency."""

    dependency: RuntimeDependency
    is_available: bool
    error: str | None = None


class DependencyChecker:
    """Checks plugin runtime dependencies on the current execution target."""

    def __init__(self, proxy: ExecutionProxy, cache_ttl: float = CACHE_TTL_SECONDS):
        self.proxy = proxy
        self.cache_ttl = cache_ttl
        self._cache: dict[str, tuple[DependencyCheckResult, float]] = {}

    async def check_plugin_dependencies(self, plugin: Plugin) -> list[DependencyCheckResult]:
        """Check every runtime dependency of a plugin concurrently."""
        if not plugin.runtime_dependencies:
            return []
        return list(
            await asyncio.gather(
                *(self.check_dependency(dep) for dep in plugin.runtime_dependencies)
            )
        )

    async def check_dependency(self, dependency: RuntimeDependency) -> DependencyCheckResult:
        mode = "local" if self.proxy.is_local_mode() else "remote"
        key = f"{dependency.command}-{mode}"

        cached = self._cache.get(key)
        if cached and time.monotonic() - cached[1] < self.cache_ttl:
            return cached[0]

        result = await self._perform_check(dependency)
        self._cache[key] = (result, time.monotonic())
        return result

    async def _perform_check(self, dependency: RuntimeDependency) -> DependencyCheckResult:
        options = ProxyOptions(skip_logging=True, output_mode=OutputMode.QUIET)
        try:
            result = await self.proxy.execute_command(dependency.probe_command, options)
        except GatewayError as e:
            logger.debug("Dependency probe for %s failed: %s", dependency.command, e)
            return DependencyCheckResult(dependency, False, self._error_message(dependency))

        available = bool(result.output.strip())
        return DependencyCheckResult(
            dependency,
            available,
            None if available else self._error_message(dependency),
        )

    def _error_message(self, dependency: RuntimeDependency) -> str:
        location = "locally" if self.proxy.is_local_mode() else "on the server"
        base = f"{dependency.display_name} is not installed {location}."
        if dependency.install_hint:
            return f"{base} {dependency.install_hint}"
        return f"{base} Please install {dependency.display_name} to use this functionality."

    def clear_cache(self) -> None:
        self._cache.clear()

    @staticmethod
    def assert_all_available(plugin: str, results: list[DependencyCheckResult]) -> None:
        """Raise if any non-optional dependency is missing.

        Raises:
            MissingDependencyError: Listing every missing dependency
        """
        missing = [
            r.error or r.dependency.display_name
            for r in results
            if not r.is_available and not r.dependency.optional
        ]
        if missing:
            raise MissingDependencyError(plugin, missing)
