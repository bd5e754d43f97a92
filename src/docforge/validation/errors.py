"""Error types and aggregation for the docforge validation engine.

Two families of errors exist:
- Field errors describe bad data. They are collected per field and raised
  together as one RecordValidationError at the end of a call.
- Configuration errors describe a model or registration defect (unknown rule,
  bad tag, bad rule parameter, a rule that raised). They abort the call
  immediately.
"""

from dataclasses import dataclass
from typing import Any, Iterator


class DocForgeError(Exception):
    """Base class for all docforge errors."""


class ConfigurationError(DocForgeError):
    """A record model or the rule registry is misconfigured."""


class TagSyntaxError(ConfigurationError):
    """A field tag could not be parsed."""

    def __init__(self, tag: str, source_field: str, reason: str):
        self.tag = tag
        self.source_field = source_field
        self.reason = reason
        super().__init__(f"Invalid tag {tag!r} on field '{source_field}': {reason}")


class UnknownRuleError(ConfigurationError):
    """A tag references a rule that is not registered."""

    def __init__(self, name: str, kind: str):
        self.name = name
        self.kind = kind
        super().__init__(
            f"{kind.capitalize()} rule '{name}' is not registered. "
            "Rules must be registered before records using them are validated."
        )


class RuleParameterError(ConfigurationError):
    """A rule was given a missing or malformed parameter."""

    def __init__(self, rule: str, param: str | None, reason: str):
        self.rule = rule
        self.param = param
        super().__init__(f"Rule '{rule}' parameter {param!r}: {reason}")


class RuleExecutionError(ConfigurationError):
    """A validation or transformation function raised an exception."""

    def __init__(self, rule: str, path: str, cause: BaseException):
        self.rule = rule
        self.path = path
        super().__init__(f"Rule '{rule}' failed on '{path}': {cause}")


class UnsupportedRecordError(ConfigurationError):
    """A value that is not a dataclass or pydantic model was given as a record."""

    def __init__(self, value: Any):
        self.value_type = value if isinstance(value, type) else type(value)
        super().__init__(
            f"{self.value_type.__name__} is not a record type "
            "(expected a dataclass or pydantic model instance)"
        )


@dataclass(frozen=True)
class FieldError:
    """A validation failure attributed to one field.

    Attributes:
        field: Store name of the field
        source_field: Attribute name on the record class
        path: Dot path from the record root (with element index/key segments)
        directive: The exact tag token that failed (e.g. "min=6")
        message: Human-readable description
    """

    field: str
    source_field: str
    path: str
    directive: str
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "field": self.field,
            "sourceField": self.source_field,
            "path": self.path,
            "directive": self.directive,
            "message": self.message,
        }

    def __str__(self) -> str:
        return f"{self.path}: {self.message} ({self.directive})"


class RecordValidationError(DocForgeError):
    """One or more fields of a record failed validation."""

    def __init__(self, errors: list[FieldError]):
        self.errors: tuple[FieldError, ...] = tuple(errors)
        summary = "; ".join(str(e) for e in self.errors)
        super().__init__(f"{len(self.errors)} field error(s): {summary}")

    @property
    def count(self) -> int:
        return len(self.errors)

    def __len__(self) -> int:
        return len(self.errors)

    def __iter__(self) -> Iterator[FieldError]:
        return iter(self.errors)

    def get(self, name: str) -> FieldError | None:
        """Find the first error by store field name or source field name."""
        for error in self.errors:
            if error.field == name or error.source_field == name:
                return error
        return None

    def for_path(self, path: str) -> FieldError | None:
        for error in self.errors:
            if error.path == path:
                return error
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "count": self.count,
            "errors": [e.to_dict() for e in self.errors],
        }


class ErrorAggregator:
    """Collects field errors in discovery order."""

    def __init__(self) -> None:
        self._errors: list[FieldError] = []

    def add(self, error: FieldError) -> None:
        self._errors.append(error)

    @property
    def errors(self) -> list[FieldError]:
        return list(self._errors)

    def __len__(self) -> int:
        return len(self._errors)

    def error(self) -> RecordValidationError | None:
        """Return the composite error, or None if nothing was recorded."""
        if not self._errors:
            return None
        return RecordValidationError(self._errors)
