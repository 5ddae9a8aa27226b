"""Resolver registry, interpolation context and the built-in resolvers.

A resolver turns the part of a placeholder after ``name:`` into text. Raising
any exception means "cannot resolve" and lets the interpolator fall back.
"""

from __future__ import annotations

import json
import os
import random
import uuid
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from ..paths import get_value
from .arithmetic import evaluate_to_string

_MISSING = object()


@dataclass(frozen=True)
class InterpolationContext:
    """Everything a resolver may look at.

    Attributes:
        document: The document being interpolated
        env: Environment variables, copied from ``os.environ`` when not given
        cwd: Base directory for relative file references
        values: Caller-supplied values for the ``context`` resolver
        reference: Hook installed by the interpolator for self-references
    """

    document: Mapping[str, Any] = field(default_factory=dict)
    env: Mapping[str, str] = field(default_factory=lambda: dict(os.environ))
    cwd: Path = field(default_factory=Path.cwd)
    values: Mapping[str, Any] = field(default_factory=dict)
    reference: Callable[[str], Any] | None = None

    def lookup(self, dotted: str) -> Any:
        """Value at ``dotted`` in the document, raising ``KeyError`` when absent."""
        if not dotted:
            raise KeyError("Empty configuration reference")
        if self.reference is not None:
            return self.reference(dotted)
        value = get_value(self.document, dotted, _MISSING)
        if value is _MISSING:
            raise KeyError(f"Configuration value '{dotted}' is not defined")
        return value


type Resolver = Callable[[str, InterpolationContext], str]


def stringify(value: Any) -> str:
    match value:
        case bool():
            return "true" if value else "false"
        case None:
            return "null"
        case str():
            return value
        case dict() | list():
            return json.dumps(value, separators=(",", ":"), default=str)
        case _:
            return str(value)


def env_resolver(name: str, context: InterpolationContext) -> str:
    try:
        return context.env[name]
    except KeyError:
        raise KeyError(f"Environment variable '{name}' is not defined") from None


def config_resolver(name: str, context: InterpolationContext) -> str:
    return stringify(context.lookup(name))


def default_resolver(name: str, context: InterpolationContext) -> str:
    if name in context.env:
        return context.env[name]
    try:
        return config_resolver(name, context)
    except KeyError:
        raise KeyError(f"Variable '{name}' is not defined") from None


def context_resolver(name: str, context: InterpolationContext) -> str:
    value = get_value(context.values, name, _MISSING)
    if value is _MISSING:
        raise KeyError(f"Context value '{name}' is not defined")
    return stringify(value)


def file_resolver(name: str, context: InterpolationContext) -> str:
    path = (context.cwd / Path(name).expanduser()).resolve(strict=False)
    return path.read_text(encoding="utf-8").strip()


def date_resolver(name: str, context: InterpolationContext) -> str:
    now = datetime.now(UTC)
    match name.lower():
        case "now" | "timestamp":
            return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")
        case "date":
            return now.date().isoformat()
        case "time":
            return now.strftime("%H:%M:%S")
        case "unix":
            return str(int(now.timestamp()))
        case "millis":
            return str(int(now.timestamp() * 1000))
        case _:
            raise ValueError(f"Unknown date format '{name}'")


def math_resolver(name: str, context: InterpolationContext) -> str:
    return evaluate_to_string(name)


def random_resolver(name: str, context: InterpolationContext) -> str:
    # Not for secrets
    match name.lower():
        case "uuid":
            return str(uuid.uuid4())
        case "hex" | "string":
            return f"{random.getrandbits(128):032x}"
        case "int":
            return str(random.randrange(1_000_000))
        case "number":
            return repr(random.random())
        case _:
            raise ValueError(f"Unknown random type '{name}'")


BUILTIN_RESOLVERS: Mapping[str, Resolver] = {
    "env": env_resolver,
    "config": config_resolver,
    "default": default_resolver,
    "context": context_resolver,
    "file": file_resolver,
    "fs": file_resolver,
    "date": date_resolver,
    "math": math_resolver,
    "random": random_resolver,
}

# Tried in order for placeholders without a registered resolver prefix
BUILTIN_CHAIN = ("env", "config", "default")


class ResolverRegistry(Mapping[str, Resolver]):
    """Named resolvers available to an interpolator.

    Seeded with the built-ins. Built-ins can be replaced with ``register`` but
    never removed.
    """

    def __init__(self, resolvers: Mapping[str, Resolver] | None = None) -> None:
        self._resolvers: dict[str, Resolver] = dict(BUILTIN_RESOLVERS)
        for name, resolver in (resolvers or {}).items():
            self.register(name, resolver)

    def __getitem__(self, name: str) -> Resolver:
        return self._resolvers[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._resolvers)

    def __len__(self) -> int:
        return len(self._resolvers)

    def register(self, name: str, resolver: Resolver) -> None:
        if not name or ":" in name:
            raise ValueError(f"Invalid resolver name '{name}'")
        self._resolvers[name] = resolver

    def unregister(self, name: str) -> None:
        if name in BUILTIN_RESOLVERS:
            raise ValueError(f"Built-in resolver '{name}' cannot be removed")
        self._resolvers.pop(name, None)

    def copy(self) -> ResolverRegistry:
        clone = ResolverRegistry()
        clone._resolvers = dict(self._resolvers)
        return clone


def default_registry() -> ResolverRegistry:
    return ResolverRegistry()


__all__ = [
    "BUILTIN_CHAIN",
    "BUILTIN_RESOLVERS",
    "InterpolationContext",
    "Resolver",
    "ResolverRegistry",
    "default_registry",
    "stringify",
]
