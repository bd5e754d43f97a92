"""docforge: tag-driven validation and transformation for document records."""

from docforge.config import EngineConfig
from docforge.validation import (
    ConfigurationError,
    DocForgeError,
    ExecutionContext,
    FieldError,
    Method,
    RecordValidationError,
    RuleEngine,
    RuleRegistry,
    flatten,
    tag,
    transformation_rule,
    validate,
    validation_rule,
)

register_validation = RuleRegistry.register_validation
register_transformation = RuleRegistry.register_transformation

__all__ = [
    "ConfigurationError",
    "DocForgeError",
    "EngineConfig",
    "ExecutionContext",
    "FieldError",
    "Method",
    "RecordValidationError",
    "RuleEngine",
    "RuleRegistry",
    "flatten",
    "register_transformation",
    "register_validation",
    "tag",
    "transformation_rule",
    "validate",
    "validation_rule",
]
