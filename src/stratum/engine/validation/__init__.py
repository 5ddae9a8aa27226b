"""Schema and rule validation."""

from .pipeline import SchemaLike, ValidationPipeline, as_schema, validate
from .rules import RuleCheck, RuleResult, ValidationRule, rule
from .schema import AdapterSchema, ModelSchema, error_code_for

__all__ = [
    "AdapterSchema",
    "ModelSchema",
    "RuleCheck",
    "RuleResult",
    "SchemaLike",
    "ValidationPipeline",
    "ValidationRule",
    "as_schema",
    "error_code_for",
    "rule",
    "validate",
]
