"""Structure walking over record instances.

The walker enumerates the fields of a record in declaration order and
classifies values for recursion. It never decides whether a field is omitted
or valid; that is the engine's job. Traversal is depth-first and parents are
visited before their children, which fixes the order of field errors.
"""

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any

from docforge.validation.descriptors import (
    FieldDescriptor,
    RecordDescriptor,
    describe,
    is_record,
)

SEQUENCE_TYPES = (list, tuple, set, frozenset)


def join_path(base: str, segment: str) -> str:
    return f"{base}.{segment}" if base else segment


@dataclass(frozen=True)
class FieldVisit:
    """One visited field.

    Attributes:
        field: The field's descriptor
        value: Current attribute value on the record
        path: Stored path, used for exemption matching and output
        error_path: Path including element index/key segments, for errors
    """

    field: FieldDescriptor
    value: Any
    path: str
    error_path: str


class ChildKind(Enum):
    """How a value is recursed into."""

    LEAF = "leaf"
    RECORD = "record"
    SEQUENCE = "sequence"
    MAPPING = "mapping"


def iter_fields(
    record: Any,
    descriptor: RecordDescriptor,
    base_path: str = "",
    error_base: str = "",
) -> Iterator[FieldVisit]:
    """Yield a FieldVisit for every non-ignored field of a record."""
    for field in descriptor.fields:
        if field.ignore:
            continue
        yield FieldVisit(
            field=field,
            value=getattr(record, field.source_name, None),
            path=join_path(base_path, field.store_name),
            error_path=join_path(error_base, field.store_name),
        )


def classify(value: Any) -> ChildKind:
    """Decide how a (possibly transformed) field value is recursed into.

    Collections are recursed into only when every non-None element is a
    record; mixed or scalar collections are leaves.
    """
    if value is None:
        return ChildKind.LEAF
    if is_record(value):
        return ChildKind.RECORD
    if isinstance(value, SEQUENCE_TYPES):
        items = [v for v in value if v is not None]
        if items and all(is_record(v) for v in items):
            return ChildKind.SEQUENCE
        return ChildKind.LEAF
    if isinstance(value, Mapping):
        items = [v for v in value.values() if v is not None]
        if items and all(is_record(v) for v in items):
            return ChildKind.MAPPING
    return ChildKind.LEAF


def iter_elements(value: Any, kind: ChildKind) -> Iterator[tuple[Any, Any]]:
    """Yield (key, element) pairs of a collection of records.

    The key is the element's index (sequences) or mapping key. It only
    appears in error paths, never in stored paths.
    """
    if kind is ChildKind.SEQUENCE:
        yield from enumerate(value)
    elif kind is ChildKind.MAPPING:
        yield from value.items()


def is_zero(value: Any, tag_key: str | None = None) -> bool:
    """Check if a value equals the zero value of its type.

    None, False, numeric zero, empty strings/bytes and empty collections are
    zero. A record is zero when every non-ignored field is zero.
    """
    if value is None:
        return True
    if isinstance(value, bool):
        return value is False
    if isinstance(value, (int, float, complex, Decimal)):
        return value == 0
    if isinstance(value, (str, bytes, bytearray)):
        return len(value) == 0
    if isinstance(value, (Mapping, *SEQUENCE_TYPES)):
        return len(value) == 0
    if is_record(value):
        descriptor = (
            describe(type(value), tag_key) if tag_key else describe(type(value))
        )
        return all(
            is_zero(visit.value, descriptor.tag_key)
            for visit in iter_fields(value, descriptor)
        )
    return False


def length_of(value: Any) -> int | None:
    """Length used by min/max rules, or None if the value has no length."""
    if isinstance(value, (str, bytes, bytearray, Mapping, *SEQUENCE_TYPES)):
        return len(value)
    return None
