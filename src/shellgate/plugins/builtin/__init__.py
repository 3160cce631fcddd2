"""Built-in plugins.

Plugins are registered here at import time, dependencies first. There is no
discovery of plugin files on disk.
"""

from shellgate.plugins.builtin import docker, file_transfer, proxy, system

BUILTIN_PLUGINS = [
    proxy.plugin,
    system.plugin,
    docker.plugin,
    file_transfer.plugin,
]

__all__ = ["BUILTIN_PLUGINS"]
