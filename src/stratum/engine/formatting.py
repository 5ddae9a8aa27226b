"""Render resolved documents for display."""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any, Literal

import yaml

from .paths import ConfigPath, flatten, format_path

type OutputFormat = Literal["json", "yaml", "table"]

SECRET_MARKERS = (
    "secret",
    "password",
    "apikey",
    "token",
    "key",
    "private",
    "auth",
    "credential",
    "pass",
    "pwd",
)
MASK = "***"
TRUNCATED = "[Object]"


def format_document(
    document: Mapping[str, Any],
    format: OutputFormat = "json",
    *,
    hide_secrets: bool = True,
    max_depth: int | None = None,
    indent: int = 2,
) -> str:
    """Render ``document`` as JSON, YAML or a two-column table.

    String values whose key or dotted path mentions a secret marker are masked
    unless ``hide_secrets`` is false. Containers nested deeper than ``max_depth``
    are replaced with ``"[Object]"``.
    """
    payload: Any = dict(document)
    if hide_secrets:
        payload = mask_secrets(payload)
    if max_depth is not None:
        payload = _limit_depth(payload, max_depth)

    match format:
        case "yaml":
            return yaml.safe_dump(payload, sort_keys=True, indent=indent, default_flow_style=False)
        case "table":
            return _format_table(payload)
        case _:
            return json.dumps(payload, indent=indent, sort_keys=True, default=str)


def is_secret_path(path: ConfigPath) -> bool:
    dotted = format_path(path).lower()
    return any(marker in dotted for marker in SECRET_MARKERS)


def mask_secrets(value: Any, *, path: ConfigPath = ()) -> Any:
    match value:
        case dict():
            return {key: mask_secrets(item, path=(*path, key)) for key, item in value.items()}
        case list():
            return [mask_secrets(item, path=(*path, index)) for index, item in enumerate(value)]
        case str() if path and is_secret_path(path):
            return MASK
        case _:
            return value


def _limit_depth(value: Any, max_depth: int, depth: int = 0) -> Any:
    match value:
        case dict() | list() if depth >= max_depth:
            return TRUNCATED
        case dict():
            return {key: _limit_depth(item, max_depth, depth + 1) for key, item in value.items()}
        case list():
            return [_limit_depth(item, max_depth, depth + 1) for item in value]
        case _:
            return value


def _format_table(payload: Any) -> str:
    if not isinstance(payload, Mapping):
        return str(payload)

    flat = flatten(payload)
    if not flat:
        return "No configuration found"

    width = max(len(key) for key in flat)
    lines = []
    for key, value in flat.items():
        rendered = value if isinstance(value, str) else json.dumps(value, default=str)
        lines.append(f"{key.ljust(width)} | {rendered}")
    return "\n".join(lines)


__all__ = ["MASK", "OutputFormat", "format_document", "is_secret_path", "mask_secrets"]
