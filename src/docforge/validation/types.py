"""Core types for the docforge validation engine.

This module defines the types shared by every part of the engine:
- Method: the calling operation (create, update, validate)
- Directive: one parsed unit of a field tag
- CancellationSignal: advisory deadline/cancel flag handed to rules
- ExecutionContext: per-call options threaded through every rule
"""

import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from docforge.config import DEFAULT_TAG_KEY


class Method(Enum):
    """The operation a record is being prepared for."""

    CREATE = "create"
    UPDATE = "update"
    VALIDATE = "validate"

    def matches_scope(self, scope: "Method | None") -> bool:
        """Check whether a method-scoped directive applies.

        A scope of None means the directive applies to every method
        (e.g. ``omitempty`` or ``required``).
        """
        return scope is None or scope is self


class DirectiveKind(Enum):
    """Kinds of directive a tag can contain."""

    NAME = "name"
    IGNORE = "ignore"
    OMIT_EMPTY = "omitempty"
    VALIDATION = "validation"
    TRANSFORMATION = "transformation"


@dataclass(frozen=True)
class Directive:
    """A single parsed tag directive.

    Attributes:
        kind: What the directive does
        token: The exact token from the tag (e.g. "min=6"), used in errors
        name: Rule name, store name override, or None
        param: Raw parameter string for validation rules
        scope: Method an omission directive is restricted to (None = always)
    """

    kind: DirectiveKind
    token: str
    name: str | None = None
    param: str | None = None
    scope: Method | None = None

    def __str__(self) -> str:
        return self.token


@dataclass
class CancellationSignal:
    """Advisory cancellation and deadline signal.

    The engine never blocks on I/O itself; custom rules that do should
    check ``cancelled`` (or ``remaining()``) before and during blocking work.
    """

    deadline: float | None = None  # time.monotonic() value
    _event: threading.Event = field(default_factory=threading.Event, repr=False)

    @classmethod
    def with_timeout(cls, seconds: float) -> "CancellationSignal":
        return cls(deadline=time.monotonic() + seconds)

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        return self.deadline is not None and time.monotonic() >= self.deadline

    def remaining(self) -> float | None:
        """Seconds until the deadline, or None when there is no deadline."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())


@dataclass(frozen=True)
class ExecutionContext:
    """Options for a single engine call.

    Attributes:
        method: The calling operation
        allow_empty_fields: Paths that bypass omission directives
        merge_fields: Paths written by a partial update; also bypass omission
        skip_validation: Honor only ignore/name/omission; run no rules
        signal: Cancellation signal passed to every rule invocation
        tag_key: Metadata key records are described with; the engine sets it
            from its configuration before any rule runs
    """

    method: Method = Method.VALIDATE
    allow_empty_fields: frozenset[str] = frozenset()
    merge_fields: frozenset[str] = frozenset()
    skip_validation: bool = False
    signal: CancellationSignal = field(default_factory=CancellationSignal)
    tag_key: str = DEFAULT_TAG_KEY

    @classmethod
    def for_create(cls, **options: Any) -> "ExecutionContext":
        return cls._build(Method.CREATE, options)

    @classmethod
    def for_update(cls, **options: Any) -> "ExecutionContext":
        return cls._build(Method.UPDATE, options)

    @classmethod
    def for_validate(cls, **options: Any) -> "ExecutionContext":
        return cls._build(Method.VALIDATE, options)

    @classmethod
    def _build(cls, method: Method, options: dict[str, Any]) -> "ExecutionContext":
        for key in ("allow_empty_fields", "merge_fields"):
            if key in options:
                options[key] = frozenset(options[key])
        return cls(method=method, **options)

    @property
    def exempt_paths(self) -> frozenset[str]:
        return self.allow_empty_fields | self.merge_fields

    def is_exempt(self, path: str) -> bool:
        """Check whether a stored field path bypasses omission."""
        return path in self.exempt_paths


@dataclass
class ValidationResult:
    """Result of a validation-only engine call.

    Attributes:
        valid: True if no field errors were recorded
        errors: Field errors in traversal order
    """

    valid: bool
    errors: list[Any] = field(default_factory=list)  # list[FieldError]

    def to_dict(self) -> dict[str, Any]:
        return {
            "valid": self.valid,
            "errors": [e.to_dict() for e in self.errors],
        }
