"""Append-only audit trail for executed and blocked commands.

Two plain-text files live in the logs directory:

- ``proxy_commands.log``: start, result and error records for every command
- ``blocked_commands.log``: one record per command refused by the guard

Each write opens the file in append mode and closes it again. No handle is
held between writes, so several processes can share the files; ordering
between their records is best effort.
"""

from __future__ import annotations

import re
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, ClassVar

if TYPE_CHECKING:
    from shellgate.guard.guard import GuardResult

SEPARATOR = "=" * 80

COMMAND_LOG = "proxy_commands.log"
BLOCKED_LOG = "blocked_commands.log"


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision, e.g. 2025-01-01T00:00:00.000Z."""
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class SensitiveDataRedactor:
    """Redact secrets that show up in command lines and their output."""

    PATTERNS: ClassVar[dict[str, re.Pattern]] = {
        "api_key": re.compile(
            r"((?:api[_-]?key|apikey|access[_-]?token|secret[_-]?key|bearer)\s*[:=]\s*['\"]?)([a-zA-Z0-9_\-]{20,})",
            re.IGNORECASE,
        ),
        "password": re.compile(
            r"((?:password|passwd|pwd)\s*[:=]\s*['\"]?)([^'\"\s]+)",
            re.IGNORECASE,
        ),
        "jwt": re.compile(r"eyJ[a-zA-Z0-9_-]+\.eyJ[a-zA-Z0-9_-]+\.[a-zA-Z0-9_-]+"),
        "private_key": re.compile(
            r"-----BEGIN (RSA |EC |OPENSSH )?PRIVATE KEY-----[\s\S]+?-----END (RSA |EC |OPENSSH )?PRIVATE KEY-----"
        ),
    }

    REDACTED_PLACEHOLDER = "[REDACTED]"

    @classmethod
    def redact(cls, text: str) -> str:
        """Redact sensitive values in text.

        For ``key=value`` and ``key: value`` style matches only the value is
        replaced; the key, separator and any opening quote are kept.
        """
        if not text:
            return text

        result = text
        for name, pattern in cls.PATTERNS.items():
            if name in ("api_key", "password"):
                result = pattern.sub(
                    lambda m: f"{m.group(1)}{cls.REDACTED_PLACEHOLDER}", result
                )
            else:
                result = pattern.sub(cls.REDACTED_PLACEHOLDER, result)
        return result


class AuditLog:
    """Writes audit records for the execution proxy.

    Usage:
        audit = AuditLog("~/.shellgate/data/logs")
        audit.log_start(ts, is_local=False, command="docker ps")
        audit.log_result(ts, duration=42, output="...")
    """

    def __init__(self, logs_dir: str | Path, redact_sensitive: bool = True):
        """Initialize audit log.

        Args:
            logs_dir: Directory holding the log files (created on first write)
            redact_sensitive: If True, redact secrets before writing
        """
        self.logs_dir = Path(logs_dir).expanduser()
        self.redact_sensitive = redact_sensitive

    @property
    def command_log_path(self) -> Path:
        return self.logs_dir / COMMAND_LOG

    @property
    def blocked_log_path(self) -> Path:
        return self.logs_dir / BLOCKED_LOG

    def log_start(self, timestamp: str, is_local: bool, command: str) -> None:
        mode = "LOCAL" if is_local else "REMOTE"
        self._append(self.command_log_path, f"[{timestamp}] {mode} COMMAND: {command}\n")

    def log_result(self, timestamp: str, duration: int, output: str) -> None:
        self._append(
            self.command_log_path,
            f"[{timestamp}] RESULT [{duration}ms]:\n{output}\n{SEPARATOR}\n",
        )

    def log_error(self, timestamp: str, duration: int, message: str) -> None:
        self._append(
            self.command_log_path,
            f"[{timestamp}] ERROR [{duration}ms]: {message}\n{SEPARATOR}\n",
        )

    def log_blocked(self, command: str, result: GuardResult) -> None:
        entry = (
            f"[{utc_timestamp()}] BLOCKED: {command}\n"
            f"Reason: {', '.join(result.reasons)}\n"
            f"Rule: {result.rule}\n"
            f"{SEPARATOR}\n"
        )
        self._append(self.blocked_log_path, entry)

    def _append(self, path: Path, entry: str) -> None:
        if self.redact_sensitive:
            entry = SensitiveDataRedactor.redact(entry)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "a", encoding="utf-8") as f:
            f.write(entry)
