"""Rule registry for docforge.

Provides registration and lookup for:
- Built-in validation rules (required, min, max, email)
- Custom validation and transformation rules registered by the application

The registry is process-wide. Register rules at application startup, before
any record using them is validated; registering while validations are running
is the caller's responsibility.
"""

import logging
import threading
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from docforge.validation.errors import UnknownRuleError
from docforge.validation.types import ExecutionContext

logger = logging.getLogger(__name__)

# Validation signature: (ctx, path, value, param) -> bool
ValidationFn = Callable[[ExecutionContext, str, Any, str | None], bool | Awaitable[bool]]
# Transformation signature: (ctx, path, value) -> new value
TransformationFn = Callable[[ExecutionContext, str, Any], Any]


class RuleKind(Enum):
    VALIDATION = "validation"
    TRANSFORMATION = "transformation"


@dataclass(frozen=True)
class RuleDefinition:
    """A registered rule.

    Attributes:
        name: Name referenced from tags
        kind: Validation or transformation
        fn: The rule implementation (sync or async)
        message: Error message template for validations; may use {field},
            {path}, {param} and {value}
    """

    name: str
    kind: RuleKind
    fn: Callable[..., Any]
    message: str | None = None


class RuleRegistry:
    """Registry for validation and transformation rules.

    Validation and transformation rules live in separate namespaces, so a
    tag's `transform=lower` and a validation named `lower` never collide.

    Re-registering a name replaces the previous rule (last write wins).

    Example:
        RuleRegistry.register_transformation("to_lower", lambda ctx, path, v: v.lower())

        fn = RuleRegistry.resolve_transformation("to_lower")
    """

    _validations: dict[str, RuleDefinition] = {}
    _transformations: dict[str, RuleDefinition] = {}
    _lock = threading.Lock()

    @classmethod
    def register_validation(
        cls,
        name: str,
        fn: ValidationFn,
        message: str | None = None,
    ) -> None:
        """Register a validation rule by name.

        Args:
            name: Name used in tags (e.g. "min" for "min=6")
            fn: Function returning True when the value is valid
            message: Optional message template for field errors
        """
        definition = RuleDefinition(name, RuleKind.VALIDATION, fn, message)
        with cls._lock:
            if name in cls._validations:
                logger.info("Replacing validation rule '%s'", name)
            cls._validations = {**cls._validations, name: definition}

    @classmethod
    def register_transformation(cls, name: str, fn: TransformationFn) -> None:
        """Register a transformation rule by name.

        Args:
            name: Name used in tags (e.g. "to_lower" for "transform=to_lower")
            fn: Function returning the replacement value
        """
        definition = RuleDefinition(name, RuleKind.TRANSFORMATION, fn)
        with cls._lock:
            if name in cls._transformations:
                logger.info("Replacing transformation rule '%s'", name)
            cls._transformations = {**cls._transformations, name: definition}

    @classmethod
    def resolve_validation(cls, name: str) -> RuleDefinition:
        """Get a registered validation rule.

        Raises:
            UnknownRuleError: If no validation rule has this name
        """
        definition = cls._validations.get(name)
        if definition is None:
            raise UnknownRuleError(name, RuleKind.VALIDATION.value)
        return definition

    @classmethod
    def resolve_transformation(cls, name: str) -> RuleDefinition:
        """Get a registered transformation rule.

        Raises:
            UnknownRuleError: If no transformation rule has this name
        """
        definition = cls._transformations.get(name)
        if definition is None:
            raise UnknownRuleError(name, RuleKind.TRANSFORMATION.value)
        return definition

    @classmethod
    def is_registered(cls, name: str, kind: RuleKind | None = None) -> bool:
        """Check if a rule is registered (in either namespace if kind is None)."""
        if kind is RuleKind.VALIDATION:
            return name in cls._validations
        if kind is RuleKind.TRANSFORMATION:
            return name in cls._transformations
        return name in cls._validations or name in cls._transformations

    @classmethod
    def list_registered(cls) -> list[RuleDefinition]:
        """List all registered rules, validations first, sorted by name."""
        validations = sorted(cls._validations.values(), key=lambda d: d.name)
        transformations = sorted(cls._transformations.values(), key=lambda d: d.name)
        return validations + transformations

    @classmethod
    def clear(cls) -> None:
        """Remove every rule, including built-ins. Primarily for testing."""
        with cls._lock:
            cls._validations = {}
            cls._transformations = {}

    @classmethod
    def reset(cls) -> None:
        """Restore the registry to only the built-in rules."""
        from docforge.validation.rules import register_builtin_rules

        cls.clear()
        register_builtin_rules()


def validation_rule(
    name: str, message: str | None = None
) -> Callable[[ValidationFn], ValidationFn]:
    """Decorator to register a validation rule.

    Usage:
        @validation_rule("slug", message="{field} must be a URL slug")
        def slug(ctx, path, value, param):
            ...
    """

    def decorator(fn: ValidationFn) -> ValidationFn:
        RuleRegistry.register_validation(name, fn, message)
        return fn

    return decorator


def transformation_rule(name: str) -> Callable[[TransformationFn], TransformationFn]:
    """Decorator to register a transformation rule.

    Usage:
        @transformation_rule("to_lower")
        def to_lower(ctx, path, value):
            return value.lower()
    """

    def decorator(fn: TransformationFn) -> TransformationFn:
        RuleRegistry.register_transformation(name, fn)
        return fn

    return decorator
