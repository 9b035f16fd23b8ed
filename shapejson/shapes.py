"""Shape classification of runtime values and declared type hints."""

from __future__ import annotations

import collections.abc
import enum
import types
import typing
import uuid
from datetime import date, datetime, time
from decimal import Decimal


class Shape(enum.Enum):
    """Coarse category driving how a value is (de)serialized."""

    NULL = "null"
    TYPE_LITERAL = "type"
    BYTES = "bytes"
    PRIMITIVE = "primitive"
    ENUM = "enum"
    DATETIME = "datetime"
    DICTIONARY = "dictionary"
    SEQUENCE = "sequence"
    OBJECT = "object"


PRIMITIVE_TYPES: tuple[type, ...] = (bool, int, float, Decimal, str, uuid.UUID)
BYTES_TYPES: tuple[type, ...] = (bytes, bytearray, memoryview)
DATETIME_TYPES: tuple[type, ...] = (datetime, date, time)

# Container origins as reported by typing.get_origin()
_MAPPING_ORIGINS: set[object] = {
    dict,
    collections.OrderedDict,
    collections.defaultdict,
    collections.abc.Mapping,
    collections.abc.MutableMapping,
}
_SEQUENCE_ORIGINS: set[object] = {
    list,
    tuple,
    set,
    frozenset,
    collections.deque,
    collections.abc.Iterable,
    collections.abc.Collection,
    collections.abc.Sequence,
    collections.abc.MutableSequence,
    collections.abc.Set,
    collections.abc.MutableSet,
}


def classify(value: object) -> Shape:
    """Classify a runtime value; the first matching rule wins."""
    if value is None:
        return Shape.NULL
    if isinstance(value, type):
        return Shape.TYPE_LITERAL
    # Bytes are text, never a list of small ints
    if isinstance(value, BYTES_TYPES):
        return Shape.BYTES
    if isinstance(value, enum.Enum):
        return Shape.ENUM
    if isinstance(value, PRIMITIVE_TYPES):
        return Shape.PRIMITIVE
    if isinstance(value, DATETIME_TYPES):
        return Shape.DATETIME
    if isinstance(value, collections.abc.Mapping):
        return Shape.DICTIONARY
    if isinstance(value, collections.abc.Iterable):
        return Shape.SEQUENCE
    return Shape.OBJECT


def unwrap_annotated(hint: object) -> object:
    """Strip ``Annotated[T, ...]`` down to ``T``."""
    while typing.get_origin(hint) is typing.Annotated:
        hint = typing.get_args(hint)[0]
    return hint


def is_union(hint: object) -> bool:
    origin = typing.get_origin(hint)
    return origin is typing.Union or origin is types.UnionType


def classify_type(hint: object) -> Shape | None:
    """Classify a declared type hint. Returns None when it places no constraint."""
    hint = unwrap_annotated(hint)
    if hint is None or hint is type(None):
        return Shape.NULL
    if hint is typing.Any or hint is object:
        return None
    if is_union(hint):
        return None
    origin = typing.get_origin(hint)
    if origin is type or hint is type:
        return Shape.TYPE_LITERAL
    if origin is not None:
        if origin in _MAPPING_ORIGINS:
            return Shape.DICTIONARY
        if origin in _SEQUENCE_ORIGINS:
            return Shape.SEQUENCE
        if isinstance(origin, type):
            return classify_type(origin)
        return None
    if not isinstance(hint, type):
        return None
    if issubclass(hint, BYTES_TYPES):
        return Shape.BYTES
    if issubclass(hint, enum.Enum):
        return Shape.ENUM
    if issubclass(hint, PRIMITIVE_TYPES):
        return Shape.PRIMITIVE
    if issubclass(hint, DATETIME_TYPES):
        return Shape.DATETIME
    if issubclass(hint, collections.abc.Mapping):
        return Shape.DICTIONARY
    if issubclass(hint, collections.abc.Iterable):
        return Shape.SEQUENCE
    return Shape.OBJECT


def qualified_name(cls: type) -> str:
    """Fully qualified class name, e.g. ``builtins.str``."""
    return cls.__module__ + "." + cls.__qualname__
