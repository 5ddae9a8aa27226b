"""Pydantic models for fragments, diagnostics, snapshots and resolution errors."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from .paths import ConfigPath, format_path


def _utcnow() -> datetime:
    return datetime.now(UTC)


class ErrorCode(str, Enum):
    """Diagnostic and failure codes."""

    SOURCE_LOAD_ERROR = "SOURCE_LOAD_ERROR"
    NETWORK_TIMEOUT = "NETWORK_TIMEOUT"
    INTERPOLATION_UNRESOLVED = "INTERPOLATION_UNRESOLVED"
    INTERPOLATION_CYCLE = "INTERPOLATION_CYCLE"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_TYPE = "INVALID_TYPE"
    REQUIRED_FIELD = "REQUIRED_FIELD"
    UNKNOWN_PROPERTY = "UNKNOWN_PROPERTY"
    INVALID_FORMAT = "INVALID_FORMAT"
    INVALID_VALUE = "INVALID_VALUE"
    VALUE_TOO_SMALL = "VALUE_TOO_SMALL"
    VALUE_TOO_LARGE = "VALUE_TOO_LARGE"
    STRING_TOO_SHORT = "STRING_TOO_SHORT"
    STRING_TOO_LONG = "STRING_TOO_LONG"
    ARRAY_TOO_SHORT = "ARRAY_TOO_SHORT"
    ARRAY_TOO_LONG = "ARRAY_TOO_LONG"
    RULE_FAILED = "RULE_FAILED"
    RULE_ERROR = "RULE_ERROR"
    CACHE_CHECKSUM_ERROR = "CACHE_CHECKSUM_ERROR"
    TRANSFORM_ERROR = "TRANSFORM_ERROR"
    NOT_RESOLVED = "NOT_RESOLVED"


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


class Diagnostic(BaseModel):
    """A single problem found while resolving, located by path."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    path: ConfigPath = ()
    code: ErrorCode
    message: str
    severity: Severity = Severity.ERROR
    expected: str | None = None
    received: Any = None

    @property
    def dotted_path(self) -> str:
        return format_path(self.path)

    @property
    def is_error(self) -> bool:
        return self.severity is Severity.ERROR


class Fragment(BaseModel):
    """Raw data produced by one source, with the priority it was declared at."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    source: str
    priority: int = 0
    data: dict[str, Any] = Field(default_factory=dict)
    loaded_at: datetime = Field(default_factory=_utcnow)


class SourceStatus(str, Enum):
    LOADED = "loaded"
    ERROR = "error"
    SKIPPED = "skipped"


class SourceInfo(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    source: str
    priority: int
    required: bool = False
    status: SourceStatus = SourceStatus.LOADED
    loaded_at: datetime | None = None
    error: str | None = None


class Snapshot(BaseModel):
    """Point-in-time copy of a resolved document."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    id: str = Field(default_factory=lambda: uuid4().hex)
    document: dict[str, Any]
    sources: list[SourceInfo] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=_utcnow)
    metadata: dict[str, Any] = Field(default_factory=dict)


class InterpolationError(BaseModel):
    """Placeholder that could not be expanded."""

    model_config = ConfigDict(extra="forbid")

    code: ErrorCode
    path: ConfigPath
    expression: str
    message: str
    chain: list[str] = Field(default_factory=list)

    def to_diagnostic(self) -> Diagnostic:
        return Diagnostic(
            path=self.path,
            code=self.code,
            message=self.message,
            received=self.expression,
        )


class SourceLoadError(BaseModel):
    """A source loader raised, returned an error or timed out."""

    model_config = ConfigDict(extra="forbid")

    code: ErrorCode = ErrorCode.SOURCE_LOAD_ERROR
    source: str
    message: str
    line: int | None = None
    column: int | None = None

    def to_diagnostic(self) -> Diagnostic:
        return Diagnostic(code=self.code, message=f"{self.source}: {self.message}", received=self.source)


class ResolutionFailure(BaseModel):
    """Structured failure returned by ``ResolutionManager.resolve``."""

    model_config = ConfigDict(extra="forbid")

    code: ErrorCode
    message: str
    diagnostics: list[Diagnostic] = Field(default_factory=list)

    @property
    def errors(self) -> list[Diagnostic]:
        return [diagnostic for diagnostic in self.diagnostics if diagnostic.is_error]

    @property
    def warnings(self) -> list[Diagnostic]:
        return [diagnostic for diagnostic in self.diagnostics if not diagnostic.is_error]


class ValidationResult(BaseModel):
    model_config = ConfigDict(extra="forbid")

    success: bool
    data: dict[str, Any] | None = None
    errors: list[Diagnostic] = Field(default_factory=list)
    warnings: list[Diagnostic] = Field(default_factory=list)


class ChangeType(str, Enum):
    ADDED = "added"
    REMOVED = "removed"
    CHANGED = "changed"


class ConfigChange(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    path: str
    type: ChangeType
    old_value: Any = None
    new_value: Any = None


class ConfigDiff(BaseModel):
    """Dotted-path differences between two documents."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    added: list[str] = Field(default_factory=list)
    removed: list[str] = Field(default_factory=list)
    changed: list[str] = Field(default_factory=list)
    changes: list[ConfigChange] = Field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return bool(self.changes)


class ConfigChangeEvent(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    diff: ConfigDiff
    old: dict[str, Any] | None
    new: dict[str, Any]
    timestamp: datetime = Field(default_factory=_utcnow)


__all__ = [
    "ChangeType",
    "ConfigChange",
    "ConfigChangeEvent",
    "ConfigDiff",
    "Diagnostic",
    "ErrorCode",
    "Fragment",
    "InterpolationError",
    "ResolutionFailure",
    "Severity",
    "Snapshot",
    "SourceInfo",
    "SourceLoadError",
    "SourceStatus",
    "ValidationResult",
]
