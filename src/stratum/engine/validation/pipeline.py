"""Schema checks followed by custom rules, collecting every diagnostic."""

from __future__ import annotations

import copy
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import BaseModel, TypeAdapter

from stratum.common import create_logger

from ..models import Diagnostic, ErrorCode, Severity, ValidationResult
from ..options import ValidationOptions
from ..paths import ConfigPath, format_path, get_value, has_value, is_prefix, set_value
from ..protocol import Schema
from .rules import ValidationRule
from .schema import AdapterSchema, ModelSchema, PythonValidator

logger = create_logger("engine.validation")

type SchemaLike = type[BaseModel] | TypeAdapter[Any] | PythonValidator | Schema


def as_schema(schema: SchemaLike | None) -> Schema | None:
    if schema is None:
        return None
    if isinstance(schema, type) and issubclass(schema, BaseModel):
        return ModelSchema(schema)
    if isinstance(schema, TypeAdapter):
        return AdapterSchema(schema)
    if hasattr(schema, "check") and hasattr(schema, "unknown_paths"):
        return schema
    if hasattr(schema, "validate_python"):
        return AdapterSchema(schema)
    raise TypeError(f"Unsupported schema: {schema!r}")


class ValidationPipeline:
    """Runs the schema, then the unknown-key policy, then custom rules.

    Collection is exhaustive: every schema error, unknown key and rule failure
    is reported in one pass. Any error yields ``success=False`` and ``data=None``.
    """

    def __init__(
        self,
        schema: SchemaLike | None = None,
        options: ValidationOptions | None = None,
        rules: Iterable[ValidationRule] = (),
    ) -> None:
        self.schema = as_schema(schema)
        self.options = options or ValidationOptions()
        self.rules = sorted(rules, key=lambda item: item.priority, reverse=True)

    def add_rule(self, validation_rule: ValidationRule) -> None:
        self.rules = sorted([*self.rules, validation_rule], key=lambda item: item.priority, reverse=True)

    def remove_rule(self, name: str) -> bool:
        """Drop every rule called ``name``; returns whether any was removed."""
        kept = [item for item in self.rules if item.name != name]
        removed = len(kept) != len(self.rules)
        self.rules = kept
        return removed

    def validate(self, document: Mapping[str, Any]) -> ValidationResult:
        return self._run(document, partial=False)

    def validate_partial(self, document: Mapping[str, Any]) -> ValidationResult:
        """Validate with every top-level field optional and defaults left out."""
        return self._run(document, partial=True)

    def _run(self, document: Mapping[str, Any], *, partial: bool) -> ValidationResult:
        errors: list[Diagnostic] = []
        warnings: list[Diagnostic] = []
        data: dict[str, Any] = copy.deepcopy(dict(document))

        if self.schema is not None:
            checked = self._check_schema(self.schema, document, partial, errors, warnings)
            if checked is not None:
                data = checked

        blocked = [diagnostic.path for diagnostic in errors]
        for validation_rule in self.rules:
            data = self._apply_rule(validation_rule, data, blocked, errors, warnings)

        success = not errors
        logger.debug(
            "Validation finished",
            success=success,
            errors=len(errors),
            warnings=len(warnings),
            partial=partial,
        )
        return ValidationResult(
            success=success,
            data=data if success else None,
            errors=errors,
            warnings=warnings,
        )

    def _check_schema(
        self,
        schema: Schema,
        document: Mapping[str, Any],
        partial: bool,
        errors: list[Diagnostic],
        warnings: list[Diagnostic],
    ) -> dict[str, Any] | None:
        options = self.options

        checked, diagnostics = schema.check(document, coerce=options.coerce, partial=partial)
        for diagnostic in diagnostics:
            (errors if diagnostic.is_error else warnings).append(diagnostic)

        unknown = schema.unknown_paths(document)
        for path in unknown:
            if not options.strict and options.strip_unknown:
                continue
            diagnostic = Diagnostic(
                path=path,
                code=ErrorCode.UNKNOWN_PROPERTY,
                message=f"Unknown property '{format_path(path)}'",
                severity=Severity.ERROR if options.strict else Severity.WARNING,
                received=get_value(document, path),
            )
            (errors if options.strict else warnings).append(diagnostic)

        if checked is not None and not options.strict and not options.strip_unknown:
            for path in unknown:
                checked = set_value(checked, path, get_value(document, path))
        return checked

    def _apply_rule(
        self,
        validation_rule: ValidationRule,
        data: dict[str, Any],
        blocked: list[ConfigPath],
        errors: list[Diagnostic],
        warnings: list[Diagnostic],
    ) -> dict[str, Any]:
        target = validation_rule.target
        if any(is_prefix(path, target) for path in blocked):
            logger.debug("Rule skipped after schema error", rule=validation_rule.name, path=format_path(target))
            return data
        if target and not has_value(data, target):
            logger.debug("Rule skipped, path absent", rule=validation_rule.name, path=format_path(target))
            return data

        value = get_value(data, target) if target else data
        try:
            outcome = validation_rule.run(copy.deepcopy(value), data)
        except Exception as exc:  # noqa: BLE001 - a broken rule is reported, not raised
            errors.append(
                Diagnostic(
                    path=target,
                    code=ErrorCode.RULE_ERROR,
                    message=f"Rule '{validation_rule.name}' raised {type(exc).__name__}: {exc}",
                    received=value,
                )
            )
            return data

        if outcome.ok:
            if not outcome.transforms:
                return data
            if target:
                return set_value(data, target, outcome.value)
            return copy.deepcopy(dict(outcome.value))

        diagnostic = Diagnostic(
            path=target,
            code=ErrorCode.RULE_FAILED,
            message=outcome.message or f"Rule '{validation_rule.name}' failed",
            severity=validation_rule.severity,
            expected=validation_rule.description,
            received=value,
        )
        (errors if diagnostic.is_error else warnings).append(diagnostic)
        return data


def validate(
    document: Mapping[str, Any],
    schema: SchemaLike | None = None,
    options: ValidationOptions | None = None,
    rules: Iterable[ValidationRule] = (),
) -> ValidationResult:
    return ValidationPipeline(schema, options, rules).validate(document)


__all__ = ["SchemaLike", "ValidationPipeline", "as_schema", "validate"]
