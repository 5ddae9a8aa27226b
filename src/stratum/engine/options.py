"""Option models for merge, interpolation, validation, caching and resolution."""

from __future__ import annotations

import json
from collections.abc import Callable
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from stratum.utils.types import DottedPath, NonEmptyString, Seconds

from .paths import ConfigPath, format_path, is_prefix, parse_path


class ArrayMergeStrategy(str, Enum):
    """How two lists at the same path are combined."""

    REPLACE = "replace"
    CONCAT = "concat"
    MERGE = "merge"


type MergeFunction = Callable[[Any, Any, ConfigPath], Any]


class MergePolicy(BaseModel):
    """How fragments are combined.

    ``custom`` maps a dotted path to a function ``(base, override, path)`` that
    produces the merged value there, taking precedence over ``arrays`` and
    ``overrides``. It runs only when both sides define the path.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    arrays: ArrayMergeStrategy = ArrayMergeStrategy.REPLACE
    overrides: dict[DottedPath, ArrayMergeStrategy] = Field(default_factory=dict)
    ignore: frozenset[DottedPath] = Field(default_factory=frozenset)
    skip_none: bool = False
    custom: dict[DottedPath, MergeFunction] = Field(default_factory=dict)

    @field_serializer("ignore")
    def _serialize_ignore(self, value: frozenset[str]) -> list[str]:
        return sorted(value)

    @field_serializer("custom")
    def _serialize_custom(self, value: dict[str, MergeFunction]) -> dict[str, str]:
        return {
            path: f"{getattr(function, '__module__', '')}.{getattr(function, '__qualname__', repr(function))}"
            for path, function in value.items()
        }

    @field_validator("custom")
    @classmethod
    def _normalize_custom(cls, value: dict[str, MergeFunction]) -> dict[str, MergeFunction]:
        return {format_path(parse_path(path)): function for path, function in value.items()}

    def custom_for(self, path: ConfigPath) -> MergeFunction | None:
        return self.custom.get(format_path(path))

    def strategy_for(self, path: ConfigPath) -> ArrayMergeStrategy:
        return self.overrides.get(format_path(path), self.arrays)

    def is_ignored(self, path: ConfigPath) -> bool:
        return any(is_prefix(parse_path(ignored), path) for ignored in self.ignore)


class InterpolationOptions(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    enabled: bool = True
    prefix: NonEmptyString = "${"
    suffix: NonEmptyString = "}"
    allow_undefined: bool = False
    defaults: dict[str, str] = Field(default_factory=dict)


class ValidationOptions(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    strict: bool = False
    coerce: bool = False
    strip_unknown: bool = False


class CacheOptions(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    enabled: bool = True
    ttl: Seconds = 300.0
    max_size: int = Field(default=100, ge=1)


class ResolutionOptions(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    merge: MergePolicy = Field(default_factory=MergePolicy)
    interpolation: InterpolationOptions = Field(default_factory=InterpolationOptions)
    validation: ValidationOptions = Field(default_factory=ValidationOptions)
    cache: CacheOptions = Field(default_factory=CacheOptions)
    loader_timeout: Seconds | None = 30.0

    @field_validator("loader_timeout")
    @classmethod
    def _positive_timeout(cls, value: float | None) -> float | None:
        if value is not None and value <= 0:
            raise ValueError("loader_timeout must be positive")
        return value

    def fingerprint(self) -> str:
        """Stable text form of every option that changes the resolved document."""
        payload = self.model_dump(mode="json", exclude={"cache", "loader_timeout"})
        return json.dumps(payload, sort_keys=True, default=str)


__all__ = [
    "ArrayMergeStrategy",
    "CacheOptions",
    "InterpolationOptions",
    "MergeFunction",
    "MergePolicy",
    "ResolutionOptions",
    "ValidationOptions",
]
