"""Reusable Pydantic field annotations."""

from __future__ import annotations

from typing import Annotated

from pydantic import Field, StrictStr

type JsonValue = dict[str, object] | list[object] | str | int | float | bool | None
type JsonDict = dict[str, object]

NonEmptyString = Annotated[StrictStr, Field(min_length=1, frozen=True)]

# Dotted key path such as "server.port" or "servers.0.host"
DottedPath = Annotated[
    StrictStr,
    Field(
        min_length=1,
        pattern=r"^[^.\s]+(\.[^.\s]+)*$",
        description="Dot-separated key path",
    ),
]

# Non-negative duration in seconds
Seconds = Annotated[float, Field(ge=0)]

__all__ = [
    "DottedPath",
    "JsonDict",
    "JsonValue",
    "NonEmptyString",
    "Seconds",
]
