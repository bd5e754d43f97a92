"""Record type descriptors.

A descriptor is the static view of a record class that the walker and engine
work from: one FieldDescriptor per field with its store name, parsed
directives and declared nested record type. Descriptors are built once per
(class, tag key) by introspecting dataclass fields or pydantic model fields,
then cached for the lifetime of the process.

This module is the only place that inspects record classes.
"""

import dataclasses
import logging
import threading
import types
import typing
from collections.abc import Mapping, Sequence, Set
from dataclasses import dataclass
from typing import Any, Union

from pydantic import BaseModel

from docforge.config import DEFAULT_TAG_KEY
from docforge.validation.errors import UnsupportedRecordError
from docforge.validation.tags import parse_tag
from docforge.validation.types import Directive, Method

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FieldDescriptor:
    """Static description of one record field.

    Attributes:
        source_name: Attribute name on the record class
        store_name: Name used in the store and in paths
        tag: The raw tag string ("" if untagged)
        ignore: Field is never visited
        omit_scopes: Methods under which a zero value is omitted (None = always)
        rules: Validation/transformation directives in declared order
        nested_type: Record class declared for the field or its elements
        tag_key: Metadata key the descriptor was built with
    """

    source_name: str
    store_name: str
    tag: str = ""
    ignore: bool = False
    omit_scopes: tuple[Method | None, ...] = ()
    rules: tuple[Directive, ...] = ()
    nested_type: type | None = None
    tag_key: str = DEFAULT_TAG_KEY

    def omits_empty(self, method: Method) -> bool:
        """True if an omission directive applies for this method."""
        return any(method.matches_scope(scope) for scope in self.omit_scopes)

    @property
    def nested(self) -> "RecordDescriptor | None":
        """Descriptor of the declared nested record type, built on demand."""
        if self.nested_type is None:
            return None
        return describe(self.nested_type, self.tag_key)


@dataclass(frozen=True)
class RecordDescriptor:
    """Static description of a record class."""

    record_type: type
    fields: tuple[FieldDescriptor, ...]
    tag_key: str = DEFAULT_TAG_KEY

    @property
    def name(self) -> str:
        return self.record_type.__name__

    @property
    def visible_fields(self) -> tuple[FieldDescriptor, ...]:
        return tuple(f for f in self.fields if not f.ignore)

    def field(self, name: str) -> FieldDescriptor | None:
        """Look up a field by source name or store name."""
        for f in self.fields:
            if f.source_name == name or f.store_name == name:
                return f
        return None

    @property
    def directives(self) -> list[Directive]:
        return [d for f in self.fields for d in f.rules]


# =============================================================================
# Record detection
# =============================================================================


def is_record_type(cls: Any) -> bool:
    """Check if a class is a supported record type."""
    if not isinstance(cls, type):
        return False
    return dataclasses.is_dataclass(cls) or issubclass(cls, BaseModel)


def is_record(value: Any) -> bool:
    """Check if a value is a record instance."""
    return is_record_type(type(value))


def tag(spec: str, *, key: str = DEFAULT_TAG_KEY, **kwargs: Any) -> Any:
    """Declare a tagged dataclass field.

    Usage:
        @dataclass
        class User:
            email: str = tag("email,required,email,transform=to_lower")

    Extra keyword arguments are passed to ``dataclasses.field``.
    """
    metadata = dict(kwargs.pop("metadata", None) or {})
    metadata[key] = spec
    return dataclasses.field(metadata=metadata, **kwargs)


# =============================================================================
# Introspection
# =============================================================================


def _nested_record_type(annotation: Any) -> type | None:
    """Find the record class in an annotation.

    Handles Optional/Union, sequences and sets (element type) and mappings
    (value type). Returns None for leaf annotations.
    """
    if annotation is None or isinstance(annotation, str):
        return None
    if is_record_type(annotation):
        return annotation

    origin = typing.get_origin(annotation)
    args = typing.get_args(annotation)
    if origin is None or not args:
        return None

    if origin is Union or origin is types.UnionType:
        candidates = [a for a in args if a is not type(None)]
    elif origin is typing.Annotated:
        candidates = [args[0]]
    elif isinstance(origin, type) and issubclass(origin, Mapping):
        candidates = [args[-1]]
    elif isinstance(origin, type) and issubclass(origin, (Sequence, Set)):
        candidates = [a for a in args if a is not Ellipsis]
    else:
        return None

    for candidate in candidates:
        found = _nested_record_type(candidate)
        if found is not None:
            return found
    return None


def _dataclass_fields(cls: type, tag_key: str) -> list[tuple[str, str, Any]]:
    try:
        hints = typing.get_type_hints(cls)
    except (NameError, TypeError):
        # Unresolvable forward references; nested types fall back to values
        hints = {}
    return [
        (f.name, f.metadata.get(tag_key, ""), hints.get(f.name, f.type))
        for f in dataclasses.fields(cls)
    ]


def _model_fields(cls: type[BaseModel], tag_key: str) -> list[tuple[str, str, Any]]:
    result = []
    for name, info in cls.model_fields.items():
        extra = info.json_schema_extra
        raw_tag = extra.get(tag_key, "") if isinstance(extra, dict) else ""
        result.append((name, raw_tag, info.annotation))
    return result


def build_descriptor(cls: type, tag_key: str = DEFAULT_TAG_KEY) -> RecordDescriptor:
    """Introspect a record class into a new descriptor (uncached).

    Raises:
        UnsupportedRecordError: If cls is not a dataclass or pydantic model
        TagSyntaxError: If any field tag is malformed
    """
    if not is_record_type(cls):
        raise UnsupportedRecordError(cls)

    if isinstance(cls, type) and issubclass(cls, BaseModel):
        raw_fields = _model_fields(cls, tag_key)
    else:
        raw_fields = _dataclass_fields(cls, tag_key)

    fields = []
    for source_name, raw_tag, annotation in raw_fields:
        parsed = parse_tag(raw_tag, source_name)
        fields.append(FieldDescriptor(
            source_name=source_name,
            store_name=parsed.store_name,
            tag=raw_tag or "",
            ignore=parsed.ignore,
            omit_scopes=parsed.omit_scopes,
            rules=parsed.rules,
            nested_type=_nested_record_type(annotation),
            tag_key=tag_key,
        ))

    logger.debug("Built descriptor for %s (%d fields)", cls.__name__, len(fields))
    return RecordDescriptor(record_type=cls, fields=tuple(fields), tag_key=tag_key)


# =============================================================================
# Cache
# =============================================================================

_cache: dict[tuple[type, str], RecordDescriptor] = {}
_cache_lock = threading.Lock()


def describe(cls: type, tag_key: str = DEFAULT_TAG_KEY) -> RecordDescriptor:
    """Get the cached descriptor for a record class, building it on first use.

    Concurrent first use of a class builds exactly one descriptor.
    """
    key = (cls, tag_key)
    descriptor = _cache.get(key)
    if descriptor is not None:
        return descriptor

    with _cache_lock:
        descriptor = _cache.get(key)
        if descriptor is None:
            descriptor = build_descriptor(cls, tag_key)
            _cache[key] = descriptor
    return descriptor


def clear_cache() -> None:
    """Drop every cached descriptor. Primarily for testing."""
    with _cache_lock:
        _cache.clear()
