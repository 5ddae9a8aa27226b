"""Key path helpers shared by merge overrides, interpolation, validation and accessors.

A path is a tuple of segments; string segments address mapping keys and integer
segments address list items. The dotted form ``servers.0.host`` is used wherever a
path crosses a user-facing boundary.
"""

from __future__ import annotations

import copy
from collections.abc import Iterable, Mapping
from typing import Any

from stratum.utils.dicts import KeyPath

type ConfigPath = KeyPath

_MISSING = object()


def parse_path(dotted: str | ConfigPath) -> ConfigPath:
    if isinstance(dotted, tuple):
        return dotted
    if not dotted:
        return ()
    return tuple(int(part) if part.isdigit() else part for part in dotted.split("."))


def format_path(path: Iterable[str | int]) -> str:
    return ".".join(str(segment) for segment in path)


def is_prefix(prefix: ConfigPath, path: ConfigPath) -> bool:
    """True when ``prefix`` is ``path`` itself or one of its ancestors."""
    return len(prefix) <= len(path) and tuple(str(s) for s in path[: len(prefix)]) == tuple(str(s) for s in prefix)


def _child(node: Any, segment: str | int) -> Any:
    match node:
        case Mapping():
            if segment in node:
                return node[segment]
            return node.get(str(segment), _MISSING)
        case list():
            try:
                index = int(segment)
            except ValueError:
                return _MISSING
            if 0 <= index < len(node):
                return node[index]
            return _MISSING
        case _:
            return _MISSING


def get_value(document: Mapping[str, Any], path: str | ConfigPath, default: Any = None) -> Any:
    node: Any = document
    for segment in parse_path(path):
        node = _child(node, segment)
        if node is _MISSING:
            return default
    return node


def has_value(document: Mapping[str, Any], path: str | ConfigPath) -> bool:
    return get_value(document, path, _MISSING) is not _MISSING


def set_value(document: Mapping[str, Any], path: str | ConfigPath, value: Any) -> dict[str, Any]:
    """Return a copy of ``document`` with ``value`` stored at ``path``.

    Missing intermediate mappings are created. Integer segments index existing
    lists; writing one past the end appends.
    """
    segments = parse_path(path)
    if not segments:
        raise ValueError("Cannot set a value at the document root")

    result = copy.deepcopy(dict(document))
    node: Any = result
    for position, segment in enumerate(segments):
        last = position == len(segments) - 1
        match node:
            case dict():
                key = str(segment)
                if last:
                    node[key] = copy.deepcopy(value)
                elif not isinstance(node.get(key), dict | list):
                    node[key] = {}
                if not last:
                    node = node[key]
            case list():
                index = int(segment)
                if index == len(node):
                    node.append({} if not last else None)
                if not 0 <= index < len(node):
                    raise IndexError(f"List index {index} out of range at '{format_path(segments[:position])}'")
                if last:
                    node[index] = copy.deepcopy(value)
                else:
                    if not isinstance(node[index], dict | list):
                        node[index] = {}
                    node = node[index]
    return result


def delete_value(document: Mapping[str, Any], path: str | ConfigPath) -> dict[str, Any]:
    """Return a copy of ``document`` without the value at ``path``; a missing path is a no-op."""
    segments = parse_path(path)
    result = copy.deepcopy(dict(document))
    if not segments or not has_value(result, segments):
        return result

    parent = get_value(result, segments[:-1]) if len(segments) > 1 else result
    match parent:
        case dict():
            key = segments[-1] if segments[-1] in parent else str(segments[-1])
            del parent[key]
        case list():
            del parent[int(segments[-1])]
    return result


def flatten(document: Mapping[str, Any], *, path: ConfigPath = ()) -> dict[str, Any]:
    """Flatten nested mappings to dotted keys.

    Lists and empty mappings are leaves.
    """
    flat: dict[str, Any] = {}
    for key, value in document.items():
        key_path = (*path, key)
        if isinstance(value, Mapping) and value:
            flat.update(flatten(value, path=key_path))
        else:
            flat[format_path(key_path)] = value
    return flat


def unflatten(flat: Mapping[str, Any]) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for dotted, value in flat.items():
        node = result
        parts = dotted.split(".")
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = {}
                node[part] = child
            node = child
        node[parts[-1]] = copy.deepcopy(value)
    return result


__all__ = [
    "ConfigPath",
    "delete_value",
    "flatten",
    "format_path",
    "get_value",
    "has_value",
    "is_prefix",
    "parse_path",
    "set_value",
    "unflatten",
]
