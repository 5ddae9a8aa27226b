"""Expansion of ``${...}`` placeholders inside document strings."""

from __future__ import annotations

import copy
import dataclasses
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict

from stratum.common import create_logger
from stratum.utils.functools.models import Err, Ok, Result

from ..models import ErrorCode, InterpolationError
from ..options import InterpolationOptions
from ..paths import ConfigPath, format_path, get_value, parse_path
from .resolvers import BUILTIN_CHAIN, InterpolationContext, ResolverRegistry, stringify
from .syntax import placeholder_pattern, split_expression

logger = create_logger("engine.interpolation")

_MISSING = object()


class PlaceholderTrace(BaseModel):
    """One placeholder evaluation recorded by ``preview_interpolation``."""

    model_config = ConfigDict(extra="forbid")

    path: ConfigPath
    expression: str
    value: str | None = None
    error: str | None = None


class InterpolationPreview(BaseModel):
    model_config = ConfigDict(extra="forbid")

    document: dict[str, Any]
    placeholders: list[PlaceholderTrace]
    error: InterpolationError | None = None


class _InterpolationAbort(Exception):
    def __init__(self, error: InterpolationError) -> None:
        super().__init__(error.message)
        self.error = error


class Interpolator:
    """Rewrites placeholders through a resolver registry.

    Expressions are ``resolver:name`` or a bare ``name``. A registered resolver
    prefix is tried first; then the built-in chain (``env``, ``config``,
    ``default``) with the name; then ``options.defaults``. Anything still
    unresolved fails the run unless ``allow_undefined`` is set, in which case the
    placeholder text is kept.
    """

    def __init__(
        self,
        registry: ResolverRegistry | None = None,
        options: InterpolationOptions | None = None,
    ) -> None:
        self.registry = registry if registry is not None else ResolverRegistry()
        self.options = options or InterpolationOptions()

    def interpolate(
        self,
        document: Mapping[str, Any],
        context: InterpolationContext | None = None,
    ) -> Result[dict[str, Any], InterpolationError]:
        if not self.options.enabled:
            return Ok(copy.deepcopy(dict(document)))

        run = _InterpolationRun(self, document, context or InterpolationContext())
        try:
            resolved = run.execute()
        except _InterpolationAbort as abort:
            logger.debug(
                "Interpolation failed",
                code=abort.error.code.value,
                path=format_path(abort.error.path),
                expression=abort.error.expression,
            )
            return Err(abort.error)

        logger.debug("Interpolation finished", placeholders=len(run.trace))
        return Ok(resolved)

    def preview(
        self,
        document: Mapping[str, Any],
        context: InterpolationContext | None = None,
    ) -> InterpolationPreview:
        run = _InterpolationRun(self, document, context or InterpolationContext())
        try:
            resolved = run.execute()
        except _InterpolationAbort as abort:
            return InterpolationPreview(
                document=copy.deepcopy(dict(document)),
                placeholders=run.trace,
                error=abort.error,
            )
        return InterpolationPreview(document=resolved, placeholders=run.trace)


class _InterpolationRun:
    """State for one pass over a private copy of the document.

    ``stack`` holds the dotted paths on the current branch: containers being
    descended into, the string being expanded, and any reference target being
    resolved on demand. A reference to a path on the stack is a cycle; every
    path on that cycle is remembered in ``cycles`` so references to it keep
    failing, and each placeholder on the chain keeps its own text when
    ``allow_undefined`` is set.
    """

    def __init__(
        self,
        interpolator: Interpolator,
        document: Mapping[str, Any],
        context: InterpolationContext,
    ) -> None:
        self.registry = interpolator.registry
        self.options = interpolator.options
        self.document: dict[str, Any] = copy.deepcopy(dict(document))
        self.context = dataclasses.replace(context, document=self.document, reference=self._reference)
        self.pattern = placeholder_pattern(self.options.prefix, self.options.suffix)
        self.stack: list[str] = []
        self.resolved: set[str] = set()
        self.cycles: dict[str, list[str]] = {}
        self.trace: list[PlaceholderTrace] = []

    def execute(self) -> dict[str, Any]:
        return self._visit(self.document, ())

    def _visit(self, node: Any, path: ConfigPath) -> Any:
        dotted = format_path(path)
        if path and dotted in self.resolved:
            return node

        self.stack.append(dotted)
        try:
            match node:
                case dict():
                    for key in list(node):
                        node[key] = self._visit(node[key], (*path, key))
                case list():
                    for index, item in enumerate(node):
                        node[index] = self._visit(item, (*path, index))
                case str():
                    node = self._expand(node, path)
        finally:
            self.stack.pop()

        self.resolved.add(dotted)
        return node

    def _expand(self, text: str, path: ConfigPath) -> str:
        parts: list[str] = []
        last = 0
        for match in self.pattern.finditer(text):
            parts.append(text[last : match.start()])
            last = match.end()

            expression = match.group(1).strip()
            try:
                value = self._resolve_expression(expression, path)
            except _InterpolationAbort as abort:
                self.trace.append(PlaceholderTrace(path=path, expression=expression, error=abort.error.message))
                if not self.options.allow_undefined:
                    raise
                logger.warning(
                    "Placeholder left unresolved",
                    path=format_path(path),
                    expression=expression,
                    reason=abort.error.message,
                )
                parts.append(match.group(0))
                continue

            self.trace.append(PlaceholderTrace(path=path, expression=expression, value=value))
            parts.append(value)

        if last == 0:
            return text
        parts.append(text[last:])
        return "".join(parts)

    def _resolve_expression(self, expression: str, path: ConfigPath) -> str:
        resolver_name, name = split_expression(expression)
        failures: list[str] = []

        if resolver_name is not None and resolver_name in self.registry:
            resolved = self._try(resolver_name, name, failures)
            if resolved is not _MISSING:
                return resolved
        else:
            # Unregistered prefixes are part of the variable name
            name = expression

        for chained in BUILTIN_CHAIN:
            if chained not in self.registry or chained == resolver_name:
                continue
            resolved = self._try(chained, name, failures)
            if resolved is not _MISSING:
                return resolved

        for key in (name, expression):
            if key in self.options.defaults:
                return self.options.defaults[key]

        detail = f": {failures[0]}" if failures else ""
        raise _InterpolationAbort(
            InterpolationError(
                code=ErrorCode.INTERPOLATION_UNRESOLVED,
                path=path,
                expression=expression,
                message=f"Unresolved variable '{expression}' at '{format_path(path)}'{detail}",
            )
        )

    def _try(self, resolver_name: str, name: str, failures: list[str]) -> Any:
        try:
            return stringify(self.registry[resolver_name](name, self.context))
        except _InterpolationAbort:
            raise
        except Exception as exc:  # noqa: BLE001 - any resolver failure means "try the next one"
            failures.append(f"{resolver_name}: {exc}")
            return _MISSING

    def _reference(self, dotted: str) -> Any:
        path = parse_path(dotted)
        target = format_path(path)

        if target in self.stack:
            members = [entry for entry in self.stack[self.stack.index(target) :] if entry]
            # The root is never a meaningful link in a reported chain
            chain = [*members, target] if target else members
            for member in members:
                self.cycles.setdefault(member, chain)
            raise self._cycle(dotted, chain)
        if target in self.cycles:
            raise self._cycle(dotted, self.cycles[target])

        value = get_value(self.document, path, _MISSING)
        if value is _MISSING:
            raise KeyError(f"Configuration value '{dotted}' is not defined")
        if target in self.resolved or not isinstance(value, str | dict | list):
            return value

        resolved = self._visit(value, path)
        if target in self.cycles:
            # Only reached with allow_undefined; the target kept unresolved text
            raise self._cycle(dotted, self.cycles[target])
        self._store(path, resolved)
        return resolved

    def _cycle(self, dotted: str, chain: list[str]) -> _InterpolationAbort:
        current = parse_path(self.stack[-1]) if self.stack else ()
        return _InterpolationAbort(
            InterpolationError(
                code=ErrorCode.INTERPOLATION_CYCLE,
                path=current,
                expression=f"config:{dotted}",
                chain=chain,
                message=f"Circular reference detected: {' -> '.join(chain)}",
            )
        )

    def _store(self, path: ConfigPath, value: Any) -> None:
        parent = get_value(self.document, path[:-1]) if len(path) > 1 else self.document
        segment = path[-1]
        match parent:
            case dict():
                parent[segment if segment in parent else str(segment)] = value
            case list():
                parent[int(segment)] = value


def interpolate(
    document: Mapping[str, Any],
    options: InterpolationOptions | None = None,
    context: InterpolationContext | None = None,
    registry: ResolverRegistry | None = None,
) -> Result[dict[str, Any], InterpolationError]:
    return Interpolator(registry, options).interpolate(document, context)


def preview_interpolation(
    document: Mapping[str, Any],
    options: InterpolationOptions | None = None,
    context: InterpolationContext | None = None,
    registry: ResolverRegistry | None = None,
) -> InterpolationPreview:
    """Dry run that records every placeholder and what it resolved to.

    The returned document is the input unchanged when the run failed.
    """
    return Interpolator(registry, options).preview(document, context)


__all__ = [
    "InterpolationPreview",
    "Interpolator",
    "PlaceholderTrace",
    "interpolate",
    "preview_interpolation",
]
