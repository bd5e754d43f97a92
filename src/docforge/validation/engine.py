"""Rule engine for docforge.

Turns a record into a normalized, store-ready document by walking its
fields and, for each one:
1. Omission: zero values are dropped when an applicable omitempty directive
   is present and the path is not exempt
2. Directives run in declared order; a failing validation records one field
   error and stops that field, a transformation replaces the in-flight value
3. The final value is written under the field's store name, recursing into
   nested records and collections of records

Field errors are collected and raised together as RecordValidationError.
Configuration errors (unknown rules, bad parameters, rules that raise) abort
the call immediately.

The input record is never mutated, and the returned document shares no
mutable containers with it.
"""

import copy
import dataclasses
import inspect
import logging
import threading
from collections.abc import Mapping
from typing import Any

from docforge.config import EngineConfig
from docforge.validation.descriptors import RecordDescriptor, describe, is_record
from docforge.validation.errors import (
    ConfigurationError,
    ErrorAggregator,
    FieldError,
    RecordValidationError,
    RuleExecutionError,
    UnsupportedRecordError,
)
from docforge.validation.registry import RuleDefinition, RuleRegistry
from docforge.validation.types import (
    Directive,
    DirectiveKind,
    ExecutionContext,
    ValidationResult,
)
from docforge.validation.walker import (
    SEQUENCE_TYPES,
    ChildKind,
    FieldVisit,
    classify,
    is_zero,
    iter_elements,
    iter_fields,
    join_path,
)

logger = logging.getLogger(__name__)


class RuleEngine:
    """Validates and transforms records against their field tags.

    A single engine may be shared by concurrent calls; each call gets its own
    ExecutionContext and error aggregator.

    Example:
        engine = RuleEngine()
        document = await engine.validate(user, ExecutionContext.for_create())
    """

    def __init__(
        self,
        config: EngineConfig | None = None,
        registry: type[RuleRegistry] = RuleRegistry,
    ):
        self.config = config or EngineConfig.from_env()
        self.registry = registry
        self._verified: set[type] = set()
        self._verified_lock = threading.Lock()

    async def validate(
        self,
        record: Any,
        ctx: ExecutionContext | None = None,
    ) -> dict[str, Any]:
        """Validate and transform a record into a document.

        Args:
            record: A dataclass or pydantic model instance
            ctx: Execution options (defaults to a VALIDATE context)

        Returns:
            The normalized document keyed by store names

        Raises:
            RecordValidationError: If any field failed validation
            ConfigurationError: On unknown rules, bad parameters, or rule errors
        """
        ctx = ctx or ExecutionContext()
        if ctx.tag_key != self.config.tag_key:
            ctx = dataclasses.replace(ctx, tag_key=self.config.tag_key)
        if not is_record(record):
            raise UnsupportedRecordError(record)

        errors = ErrorAggregator()
        document = await self._walk_record(record, ctx, errors, "", "")

        failure = errors.error()
        if failure is not None:
            raise failure
        return document

    async def check(
        self,
        record: Any,
        ctx: ExecutionContext | None = None,
    ) -> ValidationResult:
        """Validate a record without returning its document.

        Configuration errors still raise.
        """
        try:
            await self.validate(record, ctx)
        except RecordValidationError as e:
            return ValidationResult(valid=False, errors=list(e.errors))
        return ValidationResult(valid=True)

    def descriptor_for(self, record_type: type) -> RecordDescriptor:
        """Get the descriptor for a record class, verifying rules in strict mode."""
        descriptor = describe(record_type, self.config.tag_key)
        if self.config.strict_rules and record_type not in self._verified:
            seen: set[type] = set()
            self._verify(descriptor, seen)
            with self._verified_lock:
                self._verified.update(seen)
        return descriptor

    def verify(self, descriptor: RecordDescriptor) -> None:
        """Resolve every rule referenced by a descriptor and its nested types.

        Declared nested record types are checked even when no instance of
        them is present, so an unset optional reference cannot hide an
        unknown rule.

        Raises:
            UnknownRuleError: For the first rule name that is not registered
        """
        self._verify(descriptor, set())

    def _verify(self, descriptor: RecordDescriptor, seen: set[type]) -> None:
        if descriptor.record_type in seen:
            return
        seen.add(descriptor.record_type)
        for directive in descriptor.directives:
            self._resolve(directive)
        for field in descriptor.visible_fields:
            nested = field.nested
            if nested is not None:
                self._verify(nested, seen)

    # -------------------------------------------------------------------------
    # Traversal
    # -------------------------------------------------------------------------

    async def _walk_record(
        self,
        record: Any,
        ctx: ExecutionContext,
        errors: ErrorAggregator,
        path: str,
        error_path: str,
    ) -> dict[str, Any]:
        descriptor = self.descriptor_for(type(record))
        document: dict[str, Any] = {}
        for visit in iter_fields(record, descriptor, path, error_path):
            await self._process_field(visit, ctx, errors, document)
        return document

    async def _process_field(
        self,
        visit: FieldVisit,
        ctx: ExecutionContext,
        errors: ErrorAggregator,
        document: dict[str, Any],
    ) -> None:
        field = visit.field
        value = visit.value
        exempt = ctx.is_exempt(visit.path)

        if (
            not exempt
            and field.omits_empty(ctx.method)
            and is_zero(value, self.config.tag_key)
        ):
            logger.debug("Omitting empty field '%s'", visit.error_path)
            return

        if not ctx.skip_validation:
            for directive in field.rules:
                if directive.kind is DirectiveKind.VALIDATION:
                    definition = self._resolve(directive)
                    passed = await self._invoke(
                        definition, visit, ctx, visit.error_path, value, directive.param
                    )
                    if not passed:
                        errors.add(self._field_error(definition, directive, visit, value))
                        return
                else:
                    definition = self._resolve(directive)
                    value = await self._invoke(
                        definition, visit, ctx, visit.error_path, value
                    )

        if value is None and not exempt:
            return
        document[field.store_name] = await self._normalize(value, visit, ctx, errors)

    async def _normalize(
        self,
        value: Any,
        visit: FieldVisit,
        ctx: ExecutionContext,
        errors: ErrorAggregator,
    ) -> Any:
        """Convert a field value to its stored form, recursing into records."""
        kind = classify(value)
        if kind is ChildKind.LEAF:
            if isinstance(value, (Mapping, bytearray, *SEQUENCE_TYPES)):
                return copy.deepcopy(value)
            return value
        if kind is ChildKind.RECORD:
            return await self._walk_record(
                value, ctx, errors, visit.path, visit.error_path
            )

        converted: dict[Any, Any] = {}
        for key, element in iter_elements(value, kind):
            if element is None:
                converted[key] = None
                continue
            converted[key] = await self._walk_record(
                element, ctx, errors, visit.path, join_path(visit.error_path, str(key))
            )
        if kind is ChildKind.SEQUENCE:
            return list(converted.values())
        return converted

    # -------------------------------------------------------------------------
    # Rules
    # -------------------------------------------------------------------------

    def _resolve(self, directive: Directive) -> RuleDefinition:
        if directive.kind is DirectiveKind.VALIDATION:
            return self.registry.resolve_validation(directive.name)
        return self.registry.resolve_transformation(directive.name)

    async def _invoke(
        self,
        definition: RuleDefinition,
        visit: FieldVisit,
        *args: Any,
    ) -> Any:
        """Call a rule function, awaiting it if it is async."""
        logger.debug("Running %s rule '%s' on '%s'",
                     definition.kind.value, definition.name, visit.error_path)
        try:
            result = definition.fn(*args)
            if inspect.isawaitable(result):
                result = await result
        except ConfigurationError:
            raise
        except Exception as e:
            logger.warning(
                "Rule '%s' raised on '%s': %s", definition.name, visit.error_path, e
            )
            raise RuleExecutionError(definition.name, visit.error_path, e) from e
        return result

    def _field_error(
        self,
        definition: RuleDefinition,
        directive: Directive,
        visit: FieldVisit,
        value: Any,
    ) -> FieldError:
        field = visit.field
        template = definition.message or "{field} failed '{token}' validation"
        try:
            message = template.format(
                field=field.store_name,
                path=visit.error_path,
                param=directive.param,
                token=directive.token,
                value=value,
            )
        except (KeyError, IndexError):
            # Template uses placeholders we don't supply
            message = template
        return FieldError(
            field=field.store_name,
            source_field=field.source_name,
            path=visit.error_path,
            directive=directive.token,
            message=message,
        )


def flatten(document: dict[str, Any], prefix: str = "") -> dict[str, Any]:
    """Flatten a normalized document into dotted paths.

    Nested documents are expanded; lists and empty documents are kept as
    values.

        flatten({"profile": {"name": "a"}, "tags": ["x"]})
        # {"profile.name": "a", "tags": ["x"]}
    """
    flat: dict[str, Any] = {}
    for key, value in document.items():
        path = join_path(prefix, str(key))
        if isinstance(value, dict) and value:
            flat.update(flatten(value, path))
        else:
            flat[path] = value
    return flat


_default_engine: RuleEngine | None = None
_default_lock = threading.Lock()


def default_engine() -> RuleEngine:
    """The shared engine used by the module-level helpers."""
    global _default_engine
    if _default_engine is None:
        with _default_lock:
            if _default_engine is None:
                _default_engine = RuleEngine()
    return _default_engine


async def validate(
    record: Any,
    ctx: ExecutionContext | None = None,
    *,
    engine: RuleEngine | None = None,
) -> dict[str, Any]:
    """Validate a record with the default (or given) engine."""
    return await (engine or default_engine()).validate(record, ctx)
