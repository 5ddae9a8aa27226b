"""Adapters that let pydantic models and type adapters act as document schemas."""

from __future__ import annotations

import json
import types
from collections.abc import Mapping, Sequence
from typing import Annotated, Any, Protocol, TypeAliasType, Union, get_args, get_origin

from pydantic import BaseModel, Field, TypeAdapter, ValidationError, create_model
from pydantic_core import ErrorDetails

from ..models import Diagnostic, ErrorCode
from ..paths import ConfigPath, delete_value

_ERROR_CODES: dict[str, ErrorCode] = {
    "missing": ErrorCode.REQUIRED_FIELD,
    "greater_than": ErrorCode.VALUE_TOO_SMALL,
    "greater_than_equal": ErrorCode.VALUE_TOO_SMALL,
    "less_than": ErrorCode.VALUE_TOO_LARGE,
    "less_than_equal": ErrorCode.VALUE_TOO_LARGE,
    "string_too_short": ErrorCode.STRING_TOO_SHORT,
    "string_too_long": ErrorCode.STRING_TOO_LONG,
    "too_short": ErrorCode.ARRAY_TOO_SHORT,
    "too_long": ErrorCode.ARRAY_TOO_LONG,
    "string_pattern_mismatch": ErrorCode.INVALID_FORMAT,
    "literal_error": ErrorCode.INVALID_VALUE,
    "enum": ErrorCode.INVALID_VALUE,
    "extra_forbidden": ErrorCode.UNKNOWN_PROPERTY,
}

_TYPE_NAMES = {
    "model": "object",
    "dict": "object",
    "list": "array",
    "tuple": "array",
    "string": "str",
    "bool": "bool",
}


def error_code_for(error_type: str) -> ErrorCode:
    if error_type in _ERROR_CODES:
        return _ERROR_CODES[error_type]
    if error_type.endswith(("_type", "_parsing")):
        return ErrorCode.INVALID_TYPE
    if error_type.startswith("url_"):
        return ErrorCode.INVALID_FORMAT
    return ErrorCode.VALIDATION_ERROR


def _expected(error: ErrorDetails) -> str | None:
    error_type = error["type"]
    if error_type == "missing":
        return None
    for suffix in ("_type", "_parsing"):
        if error_type.endswith(suffix):
            base = error_type.removesuffix(suffix).split("_")[0]
            return _TYPE_NAMES.get(base, base)
    context = error.get("ctx")
    if context:
        return ", ".join(f"{key}={value}" for key, value in context.items() if key != "error")
    return None


def _to_diagnostic(error: ErrorDetails) -> Diagnostic:
    return Diagnostic(
        path=tuple(part for part in error["loc"] if isinstance(part, str | int)),
        code=error_code_for(error["type"]),
        message=error["msg"],
        expected=_expected(error),
        received=None if error["type"] == "missing" else error.get("input"),
    )


class ModelSchema:
    """Validates documents with a pydantic model.

    ``coerce`` switches between pydantic lax and strict mode. ``partial`` makes every
    top-level field optional and leaves unset fields out of the output.
    Undeclared keys are not reported here; see :meth:`unknown_paths`.
    """

    def __init__(self, model: type[BaseModel]) -> None:
        self.model = model
        self._partial_model: type[BaseModel] | None = None

    def __repr__(self) -> str:
        return f"ModelSchema({self.model.__name__})"

    def check(
        self,
        document: Mapping[str, Any],
        *,
        coerce: bool,
        partial: bool,
    ) -> tuple[dict[str, Any] | None, list[Diagnostic]]:
        model = self.partial_model() if partial else self.model

        pruned: dict[str, Any] = dict(document)
        for path in sorted(self.unknown_paths(document), key=len, reverse=True):
            pruned = delete_value(pruned, path)

        try:
            if coerce:
                instance = model.model_validate(pruned)
            else:
                # JSON-mode strictness still accepts enum values and ISO dates given as strings
                instance = model.model_validate_json(json.dumps(pruned, default=str), strict=True)
        except ValidationError as exc:
            return None, [_to_diagnostic(error) for error in exc.errors() if error["type"] != "extra_forbidden"]

        data = instance.model_dump(mode="json", by_alias=True, exclude_unset=partial)
        return data, []

    def partial_model(self) -> type[BaseModel]:
        if self._partial_model is None:
            fields: dict[str, Any] = {}
            for name, field in self.model.model_fields.items():
                annotation = field.annotation
                if field.metadata:
                    annotation = Annotated[annotation, *field.metadata]
                fields[name] = (annotation | None, Field(default=None, alias=field.alias))
            self._partial_model = create_model(
                f"Partial{self.model.__name__}",
                __base__=self.model,
                **fields,
            )
        return self._partial_model

    def unknown_paths(self, document: Mapping[str, Any]) -> list[ConfigPath]:
        return _unknown_in_model(self.model, document, ())


class PythonValidator(Protocol):
    def validate_python(self, value: Any, /, *, strict: bool | None = None) -> Any: ...


class AdapterSchema:
    """Validates documents with a pydantic ``TypeAdapter`` or anything exposing
    ``validate_python``.

    The wrapped validator owns its extra-key policy, so undeclared keys surface
    only as its own ``extra_forbidden`` errors. In partial mode top-level
    ``missing`` errors are dropped and the input is returned when nothing else
    failed.
    """

    def __init__(self, validator: PythonValidator) -> None:
        self.validator = validator

    def __repr__(self) -> str:
        return f"AdapterSchema({self.validator!r})"

    def check(
        self,
        document: Mapping[str, Any],
        *,
        coerce: bool,
        partial: bool,
    ) -> tuple[dict[str, Any] | None, list[Diagnostic]]:
        try:
            if isinstance(self.validator, TypeAdapter) and not coerce:
                value = self.validator.validate_json(json.dumps(dict(document), default=str), strict=True)
            else:
                value = self.validator.validate_python(dict(document), strict=not coerce)
        except ValidationError as exc:
            errors = exc.errors()
            if partial:
                errors = [error for error in errors if not (error["type"] == "missing" and len(error["loc"]) == 1)]
                if not errors:
                    return dict(document), []
            return None, [_to_diagnostic(error) for error in errors]

        if isinstance(value, BaseModel):
            return value.model_dump(mode="json", by_alias=True, exclude_unset=partial), []
        if isinstance(value, Mapping):
            return dict(value), []
        return None, [
            Diagnostic(
                code=ErrorCode.INVALID_TYPE,
                message=f"Validator returned {type(value).__name__}, expected a mapping",
                expected="object",
                received=value,
            )
        ]

    def unknown_paths(self, document: Mapping[str, Any]) -> list[ConfigPath]:
        return []


def _declared_keys(model: type[BaseModel]) -> dict[str, Any]:
    keys: dict[str, Any] = {}
    for name, field in model.model_fields.items():
        keys[name] = field.annotation
        if isinstance(field.alias, str):
            keys[field.alias] = field.annotation
        if isinstance(field.validation_alias, str):
            keys[field.validation_alias] = field.annotation
    return keys


def _unknown_in_model(model: type[BaseModel], data: Mapping[str, Any], path: ConfigPath) -> list[ConfigPath]:
    if model.model_config.get("extra") == "allow":
        return []

    declared = _declared_keys(model)
    unknown: list[ConfigPath] = []
    for key, value in data.items():
        key_path = (*path, key)
        if key not in declared:
            unknown.append(key_path)
            continue
        unknown.extend(_unknown_in_annotation(declared[key], value, key_path))
    return unknown


def _unknown_in_annotation(annotation: Any, value: Any, path: ConfigPath) -> list[ConfigPath]:
    while True:
        if isinstance(annotation, TypeAliasType):
            annotation = annotation.__value__
        elif get_origin(annotation) is Annotated:
            annotation = get_args(annotation)[0]
        else:
            break

    origin = get_origin(annotation)
    args = get_args(annotation)

    if isinstance(annotation, type) and issubclass(annotation, BaseModel):
        return _unknown_in_model(annotation, value, path) if isinstance(value, Mapping) else []

    if origin is Union or origin is types.UnionType:
        candidates = [_unknown_in_annotation(arg, value, path) for arg in args if arg is not type(None)]
        return min(candidates, key=len) if candidates else []

    if isinstance(origin, type) and issubclass(origin, Mapping) and isinstance(value, Mapping) and len(args) == 2:
        found: list[ConfigPath] = []
        for key, item in value.items():
            found.extend(_unknown_in_annotation(args[1], item, (*path, key)))
        return found

    if (
        isinstance(origin, type)
        and issubclass(origin, Sequence)
        and not issubclass(origin, str)
        and isinstance(value, list)
        and args
    ):
        found = []
        for index, item in enumerate(value):
            # tuple[X, ...] and list[X] share the first argument as item type
            item_type = args[index] if origin is tuple and args[-1] is not Ellipsis and index < len(args) else args[0]
            found.extend(_unknown_in_annotation(item_type, item, (*path, index)))
        return found

    return []


__all__ = ["AdapterSchema", "ModelSchema", "PythonValidator", "error_code_for"]
