"""Rule tables for the command safety guard.

Rules are plain data: the guard walks each table in order and the first
blocking match wins. Reordering a table changes precedence, so new built-in
rules go into the category they belong to rather than at the end.

The matching is textual. Commands assembled at runtime (variable expansion,
base64 payloads, aliases on the target host) are not detected.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import StrEnum


class Severity(StrEnum):
    """What a match does to the command."""

    BLOCK = "block"  # Refuse to run
    WARN = "warn"  # Report, then run anyway


@dataclass(frozen=True)
class GuardRule:
    """A named group of patterns sharing one message.

    Patterns may be given as strings; they are compiled once here.
    """

    category: str
    patterns: tuple[re.Pattern[str], ...]
    message: str
    suggestion: str | None = None
    severity: Severity = Severity.BLOCK
    rule_id: str = ""

    def __post_init__(self) -> None:
        patterns = tuple(
            p if isinstance(p, re.Pattern) else re.compile(p) for p in self.patterns
        )
        object.__setattr__(self, "patterns", patterns)
        object.__setattr__(self, "severity", Severity(self.severity))
        if not self.rule_id:
            object.__setattr__(self, "rule_id", self.category)

    def matches(self, command: str) -> bool:
        """Return True if any pattern is found anywhere in the command."""
        return any(p.search(command) for p in self.patterns)


_RM = r"(?:^|\s)(?:sudo\s+)?rm\s+"
_CRITICAL_SERVICES = r"(?:docker|ssh|sshd|vssh)"
_SYSTEM_FILES = r"/etc/(?:passwd|shadow|group|sudoers)"


# Priority order: filesystem, disk, containers, services, network,
# system files, permissions, shutdown, fork bombs.
BUILTIN_RULES: tuple[GuardRule, ...] = (
    # Filesystem destruction
    GuardRule(
        category="filesystem",
        rule_id="filesystem.root",
        patterns=(_RM + r"(?:.*\s+)?-rf\s+/(?:\s|$)",),
        message="Attempting to delete root filesystem",
    ),
    GuardRule(
        category="filesystem",
        rule_id="filesystem.root-glob",
        patterns=(_RM + r"(?:.*\s+)?-rf\s+/\*",),
        message="Attempting to delete all files in root",
    ),
    GuardRule(
        category="filesystem",
        rule_id="filesystem.home-glob",
        patterns=(_RM + r"(?:.*\s+)?-rf\s+~/\*",),
        message="Attempting to delete all files in home directory",
    ),
    GuardRule(
        category="filesystem",
        rule_id="filesystem.no-preserve-root",
        patterns=(_RM + r".*--no-preserve-root.*/(?:\s|$)",),
        message="Root deletion with no-preserve-root flag",
    ),
    GuardRule(
        category="filesystem",
        rule_id="filesystem.system-dir",
        patterns=(
            re.compile(
                _RM + r"(?:.*\s+)?-rf\s+/(?:etc|var|usr|bin|sbin|lib|boot|dev|sys|proc)(?:\s|/|$)",
                re.IGNORECASE,
            ),
        ),
        message="Attempting to delete critical system directory",
    ),
    GuardRule(
        category="filesystem",
        rule_id="filesystem.data-dir",
        patterns=(_RM + r"(?:.*\s+)?-rf\s+/data/",),
        message="Attempting to delete data directory",
    ),
    # Disk devices
    GuardRule(
        category="disk",
        rule_id="disk.raw-write",
        patterns=(
            r"dd\s+.*of=/dev/[sh]d[a-z](?:\d|$)",
            r">\s*/dev/[sh]d[a-z]",
        ),
        message="Direct disk write operations are dangerous",
    ),
    GuardRule(
        category="disk",
        rule_id="disk.format",
        patterns=(r"mkfs\.[a-z0-9]+\s+/dev/",),
        message="Filesystem formatting commands are dangerous",
    ),
    GuardRule(
        category="disk",
        rule_id="disk.partition",
        patterns=(r"fdisk\s+/dev/", r"parted\s+.*/dev/"),
        message="Disk partitioning commands are dangerous",
    ),
    # Containers and orchestration
    GuardRule(
        category="containers",
        rule_id="containers.system-prune",
        patterns=(
            r"docker\s+system\s+prune.*(?:-a|--all).*(?:--volumes|-v)",
            r"docker\s+system\s+prune.*(?:--volumes|-v).*(?:-a|--all)",
        ),
        message="Mass Docker cleanup with volumes is dangerous",
    ),
    GuardRule(
        category="containers",
        rule_id="containers.volume-prune",
        patterns=(r"docker\s+volume\s+prune.*(?:-f|--force)",),
        message="Forced Docker volume deletion is dangerous",
    ),
    GuardRule(
        category="containers",
        rule_id="containers.compose-down-volumes",
        patterns=(r"docker\s+compose\s+down.*--volumes", r"docker-compose\s+down.*--volumes"),
        message="Docker compose with volume deletion is dangerous",
    ),
    # Critical services
    GuardRule(
        category="services",
        rule_id="services.stop-critical",
        patterns=(
            r"(?:^|\s)(?:sudo\s+)?systemctl\s+(?:stop|disable|mask)\s+"
            + _CRITICAL_SERVICES
            + r"(?:\s|$)",
            r"(?:^|\s)(?:sudo\s+)?service\s+" + _CRITICAL_SERVICES + r"\s+(?:stop|disable)",
        ),
        message="Stopping critical services is dangerous",
    ),
    # Network and firewall
    GuardRule(
        category="network",
        rule_id="network.iptables-flush",
        patterns=(r"iptables\s+-F", r"iptables\s+--flush"),
        message="Flushing firewall rules is dangerous",
    ),
    GuardRule(
        category="network",
        rule_id="network.ufw-disable",
        patterns=(r"ufw\s+(?:disable|--force\s+reset)",),
        message="Disabling firewall is dangerous",
    ),
    # Critical system files
    GuardRule(
        category="system-files",
        rule_id="system-files.overwrite",
        patterns=(r">\s*" + _SYSTEM_FILES,),
        message="Overwriting critical system files",
    ),
    GuardRule(
        category="system-files",
        rule_id="system-files.delete",
        patterns=(_RM + r".*" + _SYSTEM_FILES,),
        message="Deleting critical system files",
    ),
    GuardRule(
        category="system-files",
        rule_id="system-files.truncate",
        patterns=(r"(?:^|\s)(?:sudo\s+)?truncate\s+.*" + _SYSTEM_FILES,),
        message="Truncating critical system files",
    ),
    # Shutdown and reboot
    GuardRule(
        category="shutdown",
        rule_id="shutdown.power",
        patterns=(
            r"(?:^|\s)(?:sudo\s+)?(?:shutdown|poweroff|halt|reboot|init\s+0|init\s+6)(?:\s|$)",
        ),
        message="System shutdown/reboot commands are dangerous",
    ),
    # Permissions
    GuardRule(
        category="permissions",
        rule_id="permissions.world-writable-root",
        patterns=(r"chmod\s+(?:-R\s+)?777\s+/",),
        message="Making entire filesystem world-writable",
    ),
    GuardRule(
        category="permissions",
        rule_id="permissions.chown-root",
        patterns=(r"chown\s+(?:-R\s+)?.*:.*\s+/(?:\s|$)",),
        message="Changing ownership of entire filesystem",
    ),
    # Fork bombs
    GuardRule(
        category="fork-bomb",
        rule_id="fork-bomb.classic",
        patterns=(r":\s*\(\)\s*\{\s*:\s*\|\s*:\s*&\s*\}\s*;?\s*:",),
        message="Fork bomb detected",
    ),
    GuardRule(
        category="fork-bomb",
        rule_id="fork-bomb.subshell",
        patterns=(r"\$\(.*\)\s*\{\s*\$\(.*\)\|.*&\s*\}",),
        message="Potential fork bomb pattern",
    ),
)


SUSPICIOUS_RULES: tuple[GuardRule, ...] = (
    GuardRule(
        category="remote-execution",
        rule_id="remote-execution.pipe-to-shell",
        patterns=(r"curl\s+.*\|\s*(?:bash|sh)", r"wget\s+.*\|\s*(?:bash|sh)"),
        message="Downloading and executing scripts directly",
        suggestion="Download the script, review it, then run it",
        severity=Severity.WARN,
    ),
    GuardRule(
        category="remote-execution",
        rule_id="remote-execution.eval-download",
        patterns=(r"eval\s+.*curl", r"eval\s+.*wget"),
        message="Evaluating downloaded content",
        severity=Severity.WARN,
    ),
)
