"""docforge validation engine.

This package turns tagged records into store-ready documents:
- Tags: per-field directives (store name, omission, rules)
- Registry: named validation and transformation rules
- Descriptors: cached static view of each record class
- Walker: depth-first traversal of record values
- Engine: runs directives per field and aggregates field errors

Usage:
    from docforge.validation import RuleEngine, ExecutionContext, RuleRegistry

    RuleRegistry.register_transformation("to_lower", lambda ctx, path, v: v.lower())

    document = await RuleEngine().validate(user, ExecutionContext.for_create())
"""

from docforge.validation.descriptors import (
    FieldDescriptor,
    RecordDescriptor,
    build_descriptor,
    clear_cache,
    describe,
    is_record,
    is_record_type,
    tag,
)
from docforge.validation.engine import RuleEngine, default_engine, flatten, validate
from docforge.validation.errors import (
    ConfigurationError,
    DocForgeError,
    ErrorAggregator,
    FieldError,
    RecordValidationError,
    RuleExecutionError,
    RuleParameterError,
    TagSyntaxError,
    UnknownRuleError,
    UnsupportedRecordError,
)
from docforge.validation.registry import (
    RuleDefinition,
    RuleKind,
    RuleRegistry,
    TransformationFn,
    ValidationFn,
    transformation_rule,
    validation_rule,
)
from docforge.validation.rules import register_builtin_rules
from docforge.validation.tags import ParsedTag, parse_tag
from docforge.validation.types import (
    CancellationSignal,
    Directive,
    DirectiveKind,
    ExecutionContext,
    Method,
    ValidationResult,
)

register_builtin_rules()

__all__ = [
    # Types
    "CancellationSignal",
    "Directive",
    "DirectiveKind",
    "ExecutionContext",
    "Method",
    "ValidationResult",
    # Tags & descriptors
    "FieldDescriptor",
    "ParsedTag",
    "RecordDescriptor",
    "build_descriptor",
    "clear_cache",
    "describe",
    "is_record",
    "is_record_type",
    "parse_tag",
    "tag",
    # Registry
    "RuleDefinition",
    "RuleKind",
    "RuleRegistry",
    "TransformationFn",
    "ValidationFn",
    "register_builtin_rules",
    "transformation_rule",
    "validation_rule",
    # Engine
    "RuleEngine",
    "default_engine",
    "flatten",
    "validate",
    # Errors
    "ConfigurationError",
    "DocForgeError",
    "ErrorAggregator",
    "FieldError",
    "RecordValidationError",
    "RuleExecutionError",
    "RuleParameterError",
    "TagSyntaxError",
    "UnknownRuleError",
    "UnsupportedRecordError",
]
