"""Configuration resolution engine: merge, interpolate, validate."""

from stratum.utils.functools.models import Result

from .cache import ResolutionCache, fragments_checksum
from .changes import diff
from .formatting import OutputFormat, format_document, mask_secrets
from .interpolation import (
    InterpolationContext,
    Interpolator,
    ResolverRegistry,
    check_placeholder_syntax,
    default_registry,
    extract_placeholders,
    has_placeholders,
    interpolate,
    preview_interpolation,
)
from .manager import ChangeCallback, ConfigTransform, ResolutionManager, Subscription
from .merger import merge
from .models import (
    ChangeType,
    ConfigChange,
    ConfigChangeEvent,
    ConfigDiff,
    Diagnostic,
    ErrorCode,
    Fragment,
    InterpolationError,
    ResolutionFailure,
    Severity,
    Snapshot,
    SourceInfo,
    SourceLoadError,
    SourceStatus,
    ValidationResult,
)
from .options import (
    ArrayMergeStrategy,
    CacheOptions,
    InterpolationOptions,
    MergeFunction,
    MergePolicy,
    ResolutionOptions,
    ValidationOptions,
)
from .paths import ConfigPath, delete_value, flatten, format_path, get_value, has_value, parse_path, set_value, unflatten
from .protocol import Schema, SourceLoader
from .validation import AdapterSchema, ModelSchema, RuleResult, ValidationPipeline, ValidationRule, rule, validate

type ResolveResult = Result[dict[str, object], ResolutionFailure]

__all__ = [
    "AdapterSchema",
    "ArrayMergeStrategy",
    "CacheOptions",
    "ChangeCallback",
    "ChangeType",
    "ConfigChange",
    "ConfigChangeEvent",
    "ConfigDiff",
    "ConfigPath",
    "ConfigTransform",
    "Diagnostic",
    "ErrorCode",
    "Fragment",
    "InterpolationContext",
    "InterpolationError",
    "InterpolationOptions",
    "Interpolator",
    "MergeFunction",
    "MergePolicy",
    "ModelSchema",
    "OutputFormat",
    "ResolutionCache",
    "ResolutionFailure",
    "ResolutionManager",
    "ResolutionOptions",
    "ResolveResult",
    "ResolverRegistry",
    "RuleResult",
    "Schema",
    "Severity",
    "Snapshot",
    "SourceInfo",
    "SourceLoadError",
    "SourceLoader",
    "SourceStatus",
    "Subscription",
    "ValidationOptions",
    "ValidationPipeline",
    "ValidationResult",
    "ValidationRule",
    "check_placeholder_syntax",
    "default_registry",
    "delete_value",
    "diff",
    "extract_placeholders",
    "flatten",
    "format_document",
    "format_path",
    "fragments_checksum",
    "get_value",
    "has_placeholders",
    "interpolate",
    "mask_secrets",
    "merge",
    "parse_path",
    "preview_interpolation",
    "rule",
    "set_value",
    "unflatten",
    "validate",
]
