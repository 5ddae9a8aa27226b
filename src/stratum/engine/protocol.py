"""Collaborator protocols consumed by the resolution engine."""

from __future__ import annotations

from collections.abc import Awaitable, Mapping
from typing import Any, Protocol, runtime_checkable

from stratum.utils.functools.models import Result

from .models import Diagnostic, SourceLoadError
from .paths import ConfigPath

type LoadedData = Mapping[str, Any] | Result[Mapping[str, Any], SourceLoadError]


@runtime_checkable
class SourceLoader(Protocol):
    """A ranked source of raw configuration data.

    ``load`` may be synchronous or a coroutine. It returns a mapping, or a
    ``Result`` wrapping one; raising also counts as a load failure.
    """

    source: str
    priority: int
    required: bool
    timeout: float | None

    def load(self) -> LoadedData | Awaitable[LoadedData]: ...


class Schema(Protocol):
    """Anything that can check a document and report what keys it declares."""

    def check(
        self,
        document: Mapping[str, Any],
        *,
        coerce: bool,
        partial: bool,
    ) -> tuple[dict[str, Any] | None, list[Diagnostic]]:
        """Validate ``document``.

        Returns:
            The validated output (``None`` when any error was found) and the
            diagnostics, excluding unknown-key findings.
        """
        ...

    def unknown_paths(self, document: Mapping[str, Any]) -> list[ConfigPath]:
        """Paths present in ``document`` that the schema does not declare."""
        ...


__all__ = ["LoadedData", "Schema", "SourceLoader"]
