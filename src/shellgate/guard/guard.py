"""Command safety guard.

Classifies a command string against the built-in rule tables and the rules
contributed by enabled plugins. Built-in blocking rules always take
precedence: a plugin can add restrictions but never shadow a core one.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from shellgate.guard.rules import BUILTIN_RULES, SUSPICIOUS_RULES, GuardRule, Severity

WARNING_PREFIX = "WARNING: "


@dataclass(frozen=True)
class GuardResult:
    """Outcome of a guard check.

    ``reasons`` holds the blocking reason first (if any), followed by every
    warning, each prefixed with :data:`WARNING_PREFIX`.
    """

    is_blocked: bool
    reasons: list[str] = field(default_factory=list)
    rule: str | None = None
    suggestion: str | None = None

    @property
    def warnings(self) -> list[str]:
        return [r for r in self.reasons if r.startswith(WARNING_PREFIX)]

    @property
    def primary_reason(self) -> str | None:
        return self.reasons[0] if self.reasons else None


class CommandGuard:
    """Evaluates commands against ordered rule tables.

    Pure with respect to its rule set: checking a command has no side
    effects and never raises.

    Usage:
        guard = CommandGuard()
        result = guard.check_command("rm -rf /")
        assert result.is_blocked
    """

    def __init__(
        self,
        builtin_rules: Iterable[GuardRule] = BUILTIN_RULES,
        suspicious_rules: Iterable[GuardRule] = SUSPICIOUS_RULES,
    ):
        self._builtin = tuple(builtin_rules)
        self._suspicious = tuple(suspicious_rules)
        self._extensions: list[GuardRule] = []

    @property
    def extensions(self) -> tuple[GuardRule, ...]:
        """Plugin-contributed rules in registration order."""
        return tuple(self._extensions)

    def add_extensions(self, rules: Iterable[GuardRule]) -> None:
        """Append plugin rules. Existing rules are never replaced."""
        self._extensions.extend(rules)

    def clear_extensions(self) -> None:
        """Drop every plugin rule. Built-in rules are untouched."""
        self._extensions = []

    def check_command(self, command: str) -> GuardResult:
        """Classify a command.

        Args:
            command: Full command line as it would be handed to a shell

        Returns:
            GuardResult; ``is_blocked`` is set only by a blocking rule
        """
        if not command or not command.strip():
            return GuardResult(is_blocked=False)

        blocking = self._first_match(self._builtin, command)

        warning_rules = [r for r in self._suspicious if r.matches(command)]
        warning_rules += [
            r for r in self._extensions if r.severity == Severity.WARN and r.matches(command)
        ]
        warnings = [f"{WARNING_PREFIX}{r.message}" for r in warning_rules]

        if blocking is None:
            blocking = self._first_match(
                (r for r in self._extensions if r.severity == Severity.BLOCK), command
            )

        if blocking is not None:
            return GuardResult(
                is_blocked=True,
                reasons=[blocking.message, *warnings],
                rule=blocking.rule_id,
                suggestion=blocking.suggestion,
            )

        first_warning = warning_rules[0] if warning_rules else None
        return GuardResult(
            is_blocked=False,
            reasons=warnings,
            rule=first_warning.rule_id if first_warning else None,
            suggestion=first_warning.suggestion if first_warning else None,
        )

    @staticmethod
    def _first_match(rules: Iterable[GuardRule], command: str) -> GuardRule | None:
        for rule in rules:
            if rule.severity == Severity.BLOCK and rule.matches(command):
                return rule
        return None


def format_blocked_message(command: str, result: GuardResult) -> str:
    """Render the notice shown to the user when a command is refused."""
    lines = [
        "",
        "COMMAND BLOCKED FOR SAFETY REASONS",
        "",
        f"Command: {command}",
        f"Reason: {result.primary_reason}",
        f"Rule: {result.rule}",
    ]
    if result.suggestion:
        lines.append(f"Suggestion: {result.suggestion}")
    lines += [
        "",
        "This command has been blocked to prevent potential system damage.",
        "If you believe this is a false positive, please review the command carefully.",
    ]
    return "\n".join(lines)
