"""Placeholder scanning helpers."""

from __future__ import annotations

import functools
import re
from collections.abc import Mapping
from typing import Any

from ..models import Diagnostic, ErrorCode, Severity
from ..options import InterpolationOptions
from ..paths import ConfigPath

_RESOLVER_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_-]*$")
_VARIABLE_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_.-]*$")


@functools.lru_cache(maxsize=32)
def placeholder_pattern(prefix: str, suffix: str) -> re.Pattern[str]:
    return re.compile(re.escape(prefix) + r"(.*?)" + re.escape(suffix), re.DOTALL)


def split_expression(expression: str) -> tuple[str | None, str]:
    """Split ``resolver:name`` into its parts; without a colon there is no resolver."""
    expression = expression.strip()
    resolver, separator, name = expression.partition(":")
    if not separator:
        return None, expression
    return resolver.strip(), name.strip()


def has_placeholders(text: str, options: InterpolationOptions | None = None) -> bool:
    options = options or InterpolationOptions()
    return placeholder_pattern(options.prefix, options.suffix).search(text) is not None


def extract_placeholders(text: str, options: InterpolationOptions | None = None) -> list[str]:
    options = options or InterpolationOptions()
    return [match.strip() for match in placeholder_pattern(options.prefix, options.suffix).findall(text)]


def check_placeholder_syntax(
    document: Mapping[str, Any],
    options: InterpolationOptions | None = None,
) -> list[Diagnostic]:
    """Report empty or malformed placeholders as ``INVALID_FORMAT`` warnings."""
    options = options or InterpolationOptions()
    diagnostics: list[Diagnostic] = []

    def visit(value: Any, path: ConfigPath) -> None:
        match value:
            case dict():
                for key, item in value.items():
                    visit(item, (*path, key))
            case list():
                for index, item in enumerate(value):
                    visit(item, (*path, index))
            case str():
                for expression in extract_placeholders(value, options):
                    problem = _expression_problem(expression)
                    if problem is not None:
                        diagnostics.append(
                            Diagnostic(
                                path=path,
                                code=ErrorCode.INVALID_FORMAT,
                                message=problem,
                                severity=Severity.WARNING,
                                received=expression,
                            )
                        )

    visit(document, ())
    return diagnostics


def _expression_problem(expression: str) -> str | None:
    if not expression:
        return "Empty variable reference"
    resolver, name = split_expression(expression)
    if resolver is None:
        if not _VARIABLE_NAME.match(name):
            return f"Invalid variable name format '{name}'"
        return None
    if not _RESOLVER_NAME.match(resolver):
        return f"Invalid resolver name '{resolver}'"
    if not name:
        return f"Empty variable reference for resolver '{resolver}'"
    return None


__all__ = [
    "check_placeholder_syntax",
    "extract_placeholders",
    "has_placeholders",
    "placeholder_pattern",
    "split_expression",
]
