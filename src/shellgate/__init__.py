"""Shellgate - guarded command gateway for local and remote hosts.

Shellgate runs shell commands on this machine or an SSH host after a safety
guard has vetted them, records every execution in an audit log, and exposes
plugin-provided commands through a single registry.

Key modules:

- :mod:`shellgate.guard` - Rule-based safety classification of command lines
- :mod:`shellgate.plugins` - Plugin model, dependency graph and registry
- :mod:`shellgate.execution` - Execution proxy, executors, audit log, dependency checks
- :mod:`shellgate.config` - YAML configuration (pydantic schema)
- :mod:`shellgate.cli` - Typer command-line interface
"""

__version__ = "0.1.0"
