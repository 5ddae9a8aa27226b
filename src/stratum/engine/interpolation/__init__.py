"""Placeholder interpolation."""

from .arithmetic import ExpressionError
from .interpolator import (
    InterpolationPreview,
    Interpolator,
    PlaceholderTrace,
    interpolate,
    preview_interpolation,
)
from .resolvers import (
    BUILTIN_CHAIN,
    BUILTIN_RESOLVERS,
    InterpolationContext,
    Resolver,
    ResolverRegistry,
    default_registry,
    stringify,
)
from .syntax import check_placeholder_syntax, extract_placeholders, has_placeholders

__all__ = [
    "BUILTIN_CHAIN",
    "BUILTIN_RESOLVERS",
    "ExpressionError",
    "InterpolationContext",
    "InterpolationPreview",
    "Interpolator",
    "PlaceholderTrace",
    "Resolver",
    "ResolverRegistry",
    "check_placeholder_syntax",
    "default_registry",
    "extract_placeholders",
    "has_placeholders",
    "interpolate",
    "preview_interpolation",
    "stringify",
]
