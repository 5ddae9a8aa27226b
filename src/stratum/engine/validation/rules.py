"""Custom validation rules that run after schema checks."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from ..models import Severity
from ..paths import ConfigPath, parse_path

_UNCHANGED = object()


@dataclass(frozen=True)
class RuleResult:
    ok: bool
    message: str | None = None
    value: Any = field(default=_UNCHANGED, repr=False)

    @classmethod
    def passed(cls, value: Any = _UNCHANGED) -> RuleResult:
        """Rule passed; a given ``value`` replaces the checked value in the output."""
        return cls(ok=True, value=value)

    @classmethod
    def failed(cls, message: str) -> RuleResult:
        return cls(ok=False, message=message)

    @property
    def transforms(self) -> bool:
        return self.ok and self.value is not _UNCHANGED


type RuleCheck = Callable[[Any, ConfigPath, Mapping[str, Any]], RuleResult | bool]


@dataclass(frozen=True)
class ValidationRule:
    """A named check over the value at ``path`` (the whole document when ``None``).

    Rules run in descending ``priority``. A check returns a ``RuleResult`` or a
    plain bool; a failure is reported with the rule's ``severity``.
    """

    name: str
    check: RuleCheck
    path: str | None = None
    priority: int = 0
    severity: Severity = Severity.ERROR
    description: str | None = None

    @property
    def target(self) -> ConfigPath:
        return parse_path(self.path) if self.path else ()

    def run(self, value: Any, document: Mapping[str, Any]) -> RuleResult:
        outcome = self.check(value, self.target, document)
        if isinstance(outcome, RuleResult):
            return outcome
        if outcome:
            return RuleResult.passed()
        return RuleResult.failed(self.description or f"Rule '{self.name}' failed")


def rule(
    name: str,
    *,
    path: str | None = None,
    priority: int = 0,
    severity: Severity = Severity.ERROR,
    description: str | None = None,
) -> Callable[[RuleCheck], ValidationRule]:
    """Decorator form of :class:`ValidationRule`."""

    def decorator(check: RuleCheck) -> ValidationRule:
        return ValidationRule(
            name=name,
            check=check,
            path=path,
            priority=priority,
            severity=severity,
            description=description or (check.__doc__ or "").strip() or None,
        )

    return decorator


__all__ = ["RuleCheck", "RuleResult", "ValidationRule", "rule"]
