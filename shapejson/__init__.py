"""Reflection-driven JSON serializer and deserializer: public API."""

from __future__ import annotations

from collections.abc import Iterable

from .context import NameCase, SerializationContext
from .descriptors import (
    JsonProperty,
    PropertyDescriptor,
    TypeDescriptor,
    get_descriptor,
    json_field,
)
from .deserialize import Deserializer
from .parse import ParseError as ParseError, parse
from .serialize import Serializer, primitive_text
from .shapes import Shape, classify
from .tokens import JsonError as JsonError, TokenizeError as TokenizeError

__all__ = [
    "JsonError",
    "JsonProperty",
    "NameCase",
    "ParseError",
    "PropertyDescriptor",
    "SerializationContext",
    "Shape",
    "TokenizeError",
    "TypeDescriptor",
    "classify",
    "deserialize",
    "get_descriptor",
    "json_field",
    "serialize",
    "serialize_excluding",
    "serialize_only",
    "to_json",
]

__version__ = "0.1.0"


def serialize(
    value: object,
    pretty: bool = False,
    type_specifier: str | None = None,
    include_non_public: bool = False,
    include_names: Iterable[str] | None = None,
    exclude_names: Iterable[str] | None = None,
    ancestors: Iterable[object] | None = None,
    name_case: NameCase | str | None = NameCase.NONE,
) -> str:
    """Serialize a value to JSON text.

    A bare top-level scalar comes back as its literal text: ``"abc"`` gives
    ``abc`` with no quotes, ``True`` gives ``true``, ``None`` gives ``null``.
    """
    context = SerializationContext(
        pretty=pretty,
        include_non_public=include_non_public,
        include_names=include_names,
        exclude_names=exclude_names,
        name_case=name_case,
        type_specifier=type_specifier,
        ancestors=ancestors,
    )
    if value is None or classify(value) in (Shape.PRIMITIVE, Shape.ENUM):
        return primitive_text(value)
    return Serializer(context).serialize(value)


def serialize_only(value: object, pretty: bool, include_names: Iterable[str] | None) -> str:
    """Serialize emitting only the named object members."""
    context = SerializationContext(pretty=pretty, include_names=include_names)
    return Serializer(context).serialize(value)


def serialize_excluding(value: object, pretty: bool, exclude_names: Iterable[str] | None) -> str:
    """Serialize emitting every object member except the named ones."""
    context = SerializationContext(pretty=pretty, exclude_names=exclude_names)
    return Serializer(context).serialize(value)


def deserialize(
    text: str | bytes | None,
    target_type: object = None,
    include_non_public: bool = False,
) -> object:
    """Deserialize JSON text, into ``target_type`` when given.

    Empty text gives ``None``. Without a target type the result is the
    generic tree: ``dict``, ``list`` or a scalar.
    """
    if text is None:
        return None
    if isinstance(text, (bytes, bytearray)):
        text = bytes(text).decode("utf-8")
    if text.strip() == "":
        return None
    tree = parse(text)
    if target_type is None:
        return tree
    return Deserializer(include_non_public=include_non_public).materialize(tree, target_type)


def to_json(value: object, pretty: bool = True) -> str:
    """Convenience wrapper: pretty by default, ``""`` for ``None``."""
    if value is None:
        return ""
    return serialize(value, pretty=pretty)
