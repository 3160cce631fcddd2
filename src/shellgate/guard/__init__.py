"""Command safety guard.

Pattern-based deterrent against destructive shell commands. It is not a
sandbox: anything that only becomes destructive after shell expansion gets
through.
"""

from shellgate.guard.guard import (
    WARNING_PREFIX,
    CommandGuard,
    GuardResult,
    format_blocked_message,
)
from shellgate.guard.rules import BUILTIN_RULES, SUSPICIOUS_RULES, GuardRule, Severity

__all__ = [
    "BUILTIN_RULES",
    "SUSPICIOUS_RULES",
    "WARNING_PREFIX",
    "CommandGuard",
    "GuardResult",
    "GuardRule",
    "Severity",
    "format_blocked_message",
]
