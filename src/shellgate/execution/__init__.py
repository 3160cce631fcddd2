"""Command execution: proxy, executors, audit log and dependency checks."""

from shellgate.execution.audit import AuditLog, SensitiveDataRedactor, utc_timestamp
from shellgate.execution.dependencies import DependencyChecker, DependencyCheckResult
from shellgate.execution.executors import (
    DEFAULT_MAX_OUTPUT_BYTES,
    LocalExecutor,
    RemoteExecutor,
    SSHExecutor,
)
from shellgate.execution.proxy import ExecutionProxy, ExecutionResult, OutputMode, ProxyOptions

__all__ = [
    "DEFAULT_MAX_OUTPUT_BYTES",
    "AuditLog",
    "DependencyCheckResult",
    "DependencyChecker",
    "ExecutionProxy",
    "ExecutionResult",
    "LocalExecutor",
    "OutputMode",
    "ProxyOptions",
    "RemoteExecutor",
    "SSHExecutor",
    "SensitiveDataRedactor",
    "utc_timestamp",
]
