"""Utilities for reusable typed field annotations."""

from .fields import DottedPath, JsonDict, JsonValue, NonEmptyString, Seconds

__all__ = [
    "DottedPath",
    "JsonDict",
    "JsonValue",
    "NonEmptyString",
    "Seconds",
]
