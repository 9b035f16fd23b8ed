"""Materialization of parsed JSON trees into typed Python values.

Conversion failures are local: a member or element whose JSON value does not
fit its declared type takes that type's default and the enclosing object or
container carries on.
"""

from __future__ import annotations

import collections
import collections.abc
import dataclasses
import enum
import inspect
import logging
import pydoc
import typing
import uuid
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation

from .descriptors import PropertyDescriptor, TypeDescriptor, get_descriptor
from .parse import JsonFloat
from .serialize import format_number
from .shapes import Shape, classify_type, is_union, unwrap_annotated

logger = logging.getLogger(__name__)


class ConversionError(Exception):
    """A JSON value does not fit the target type."""


_ABSTRACT_SETS: set[object] = {collections.abc.Set, collections.abc.MutableSet}


def default_for(hint: object) -> object:
    """Default value of a declared type: what ``T()`` yields for value-like types."""
    hint = unwrap_annotated(hint)
    if is_union(hint):
        if type(None) in typing.get_args(hint):
            return None
        return default_for(typing.get_args(hint)[0])
    shape = classify_type(hint)
    if shape is Shape.ENUM:
        return next(iter(hint), None)
    if shape in (Shape.PRIMITIVE, Shape.BYTES):
        factory = hint
    elif shape in (Shape.DICTIONARY, Shape.SEQUENCE):
        factory = _container_class(hint, shape)
    else:
        return None
    if factory is uuid.UUID:
        return None
    try:
        return factory()
    except TypeError:
        return None


def _container_class(hint: object, shape: Shape) -> type:
    origin = typing.get_origin(hint) or hint
    if isinstance(origin, type) and not inspect.isabstract(origin):
        return origin
    if shape is Shape.DICTIONARY:
        return dict
    if origin in _ABSTRACT_SETS:
        return set
    return list


def _expect(node: object, kind: type | tuple[type, ...], hint: object) -> None:
    if not isinstance(node, kind):
        raise ConversionError(
            "cannot convert " + type(node).__name__ + " to " + _hint_name(hint)
        )


def _hint_name(hint: object) -> str:
    if isinstance(hint, type):
        return hint.__qualname__
    return str(hint)


class Deserializer:
    """Converts a generic JSON tree into instances of declared types."""

    def __init__(self, include_non_public: bool = False) -> None:
        self.include_non_public: bool = include_non_public

    def materialize(self, node: object, hint: object) -> object:
        """Convert a whole document; a top-level mismatch yields the type default."""
        try:
            return self.convert(node, hint)
        except ConversionError as e:
            logger.debug("document does not fit %s: %s", _hint_name(hint), e)
            return default_for(hint)

    def convert(self, node: object, hint: object) -> object:
        hint = unwrap_annotated(hint)
        if is_union(hint):
            return self._convert_union(node, hint)
        shape = classify_type(hint)
        if shape is None:
            return node
        if node is None:
            if shape is Shape.ENUM or (
                shape is Shape.PRIMITIVE and hint not in (str, uuid.UUID)
            ):
                raise ConversionError("null is not a valid " + _hint_name(hint))
            return None
        if shape is Shape.NULL:
            raise ConversionError("expected null")
        if shape is Shape.TYPE_LITERAL:
            return self._convert_type_literal(node)
        if shape is Shape.BYTES:
            _expect(node, str, hint)
            try:
                data = node.encode("utf-8")
            except UnicodeEncodeError as e:
                raise ConversionError(str(e)) from e
            return bytearray(data) if hint is bytearray else data
        if shape is Shape.ENUM:
            return self._convert_enum(node, hint)
        if shape is Shape.PRIMITIVE:
            return self._convert_primitive(node, hint)
        if shape is Shape.DATETIME:
            return self._convert_datetime(node, hint)
        if shape is Shape.DICTIONARY:
            return self._convert_dictionary(node, hint)
        if shape is Shape.SEQUENCE:
            return self._convert_sequence(node, hint)
        return self._convert_object(node, hint)

    # ── Scalars ──────────────────────────────────────────────

    def _convert_union(self, node: object, hint: object) -> object:
        arms = typing.get_args(hint)
        if node is None:
            if type(None) in arms:
                return None
            raise ConversionError("null is not a valid " + _hint_name(hint))
        candidates = [arm for arm in arms if arm is not type(None)]
        # Prefer the arm whose Python type the node already has
        kind = float if isinstance(node, JsonFloat) else type(node)
        for arm in candidates:
            if isinstance(arm, type) and kind is arm:
                return self.convert(node, arm)
        for arm in candidates:
            try:
                return self.convert(node, arm)
            except ConversionError:
                continue
        raise ConversionError("no member of " + _hint_name(hint) + " accepts the value")

    def _convert_type_literal(self, node: object) -> type:
        _expect(node, str, type)
        located = pydoc.locate(node)
        if not isinstance(located, type):
            raise ConversionError("unknown type " + repr(node))
        return located

    def _convert_enum(self, node: object, cls: type[enum.Enum]) -> enum.Enum:
        if isinstance(node, str):
            if node in cls.__members__:
                return cls.__members__[node]
            folded = node.lower()
            for name, member in cls.__members__.items():
                if name.lower() == folded:
                    return member
        if isinstance(node, (str, int, float)) and not isinstance(node, bool):
            try:
                return cls(node)
            except ValueError:
                pass
        raise ConversionError(repr(node) + " is not a member of " + cls.__qualname__)

    def _convert_primitive(self, node: object, cls: type) -> object:
        if isinstance(node, (dict, list)):
            raise ConversionError("cannot convert a JSON container to " + cls.__qualname__)
        try:
            if issubclass(cls, bool):
                if isinstance(node, bool):
                    return node
                if isinstance(node, str) and node.lower() in ("true", "false"):
                    return node.lower() == "true"
                raise ConversionError(repr(node) + " is not a boolean")
            if issubclass(cls, str):
                if isinstance(node, str):
                    return cls(node)
                if isinstance(node, bool):
                    return cls("true" if node else "false")
                return cls(format_number(node))
            if isinstance(node, bool):
                raise ConversionError("a boolean is not a " + cls.__qualname__)
            if issubclass(cls, int):
                if isinstance(node, float):
                    if not node.is_integer():
                        raise ConversionError(repr(node) + " is not a whole number")
                    return cls(int(node))
                return cls(node)
            if issubclass(cls, Decimal):
                if isinstance(node, JsonFloat):
                    return cls(node.text)
                if isinstance(node, float):
                    return cls(repr(node))
                return cls(node)
            if issubclass(cls, uuid.UUID):
                _expect(node, str, cls)
                return cls(node)
            return cls(node)
        except (ValueError, TypeError, InvalidOperation) as e:
            raise ConversionError(str(e)) from e

    def _convert_datetime(self, node: object, cls: type) -> object:
        _expect(node, str, cls)
        try:
            if cls is date:
                return datetime.fromisoformat(node).date() if "T" in node else date.fromisoformat(node)
            if cls is time:
                return time.fromisoformat(node)
            return cls.fromisoformat(node)
        except ValueError as e:
            raise ConversionError(str(e)) from e

    # ── Containers ───────────────────────────────────────────

    def _convert_dictionary(self, node: object, hint: object) -> object:
        _expect(node, dict, hint)
        args = typing.get_args(hint)
        key_type: object = args[0] if len(args) == 2 else str
        value_type: object = args[1] if len(args) == 2 else typing.Any
        items: dict[object, object] = {}
        for name, child in node.items():
            try:
                key = self.convert(name, key_type)
            except ConversionError as e:
                logger.debug("dropping key %r: %s", name, e)
                continue
            items[key] = self._convert_or_default(child, value_type, name)
        cls = _container_class(hint, Shape.DICTIONARY)
        try:
            if issubclass(cls, collections.defaultdict):
                return cls(None, items)
            return cls(items)
        except TypeError as e:
            raise ConversionError(str(e)) from e

    def _convert_sequence(self, node: object, hint: object) -> object:
        _expect(node, list, hint)
        cls = _container_class(hint, Shape.SEQUENCE)
        args = typing.get_args(hint)
        if issubclass(cls, tuple) and args and not (len(args) == 2 and args[1] is Ellipsis):
            if len(args) != len(node):
                raise ConversionError(
                    "expected " + str(len(args)) + " elements, got " + str(len(node))
                )
            return tuple(
                self._convert_or_default(child, args[i], "[" + str(i) + "]")
                for i, child in enumerate(node)
            )
        element_type: object = args[0] if args else typing.Any
        elements = [
            self._convert_or_default(child, element_type, "[" + str(i) + "]")
            for i, child in enumerate(node)
        ]
        try:
            return cls(elements)
        except TypeError as e:
            raise ConversionError(str(e)) from e

    def _convert_or_default(self, node: object, hint: object, where: str) -> object:
        try:
            return self.convert(node, hint)
        except ConversionError as e:
            logger.debug("%s: %s; using default", where, e)
            return default_for(hint)

    # ── Objects ──────────────────────────────────────────────

    def _convert_object(self, node: object, hint: object) -> object:
        cls = typing.get_origin(hint) or hint
        _expect(node, dict, cls)
        descriptor = get_descriptor(cls)
        if not descriptor.has_accessible_constructor:
            logger.debug("%s has no accessible constructor", descriptor.type_name)
            return None
        if descriptor.dynamic:
            return self._populate_dynamic(cls, node)
        assigned: dict[str, tuple[PropertyDescriptor, object]] = {}
        for name, child in node.items():
            member = descriptor.find(name)
            if member is None or not self._is_target(member):
                continue
            try:
                value = self.convert(child, member.value_type)
            except ConversionError as e:
                logger.debug(
                    "%s.%s: %s; using default", descriptor.type_name, member.declared_name, e
                )
                value = default_for(member.value_type)
            assigned[member.declared_name] = (member, value)
        return self._construct(cls, descriptor, assigned)

    def _is_target(self, member: PropertyDescriptor) -> bool:
        if member.ignore or not member.can_write:
            return False
        return member.is_public or self.include_non_public

    def _construct(
        self,
        cls: type,
        descriptor: TypeDescriptor,
        assigned: dict[str, tuple[PropertyDescriptor, object]],
    ) -> object:
        kwargs: dict[str, object] = {}
        if dataclasses.is_dataclass(cls):
            for name, (member, value) in assigned.items():
                if member.init_arg:
                    kwargs[name] = value
        try:
            instance = cls(**kwargs)
        except Exception as e:
            logger.debug("cannot construct %s: %s", descriptor.type_name, e)
            return None
        for name, (member, value) in assigned.items():
            if name in kwargs:
                continue
            try:
                setattr(instance, name, value)
            except AttributeError as e:
                logger.debug("cannot set %s.%s: %s", descriptor.type_name, name, e)
        return instance

    def _populate_dynamic(self, cls: type, node: dict[str, object]) -> object:
        """Fill a class without declared members through its existing attributes."""
        try:
            instance = cls()
        except Exception as e:
            logger.debug("cannot construct %s: %s", cls.__qualname__, e)
            return None
        attrs: dict[str, object] = getattr(instance, "__dict__", {})
        for name, child in node.items():
            if name not in attrs:
                continue
            if name.startswith("_") and not self.include_non_public:
                continue
            current = attrs[name]
            hint: object = typing.Any if current is None else type(current)
            value = self._convert_or_default(child, hint, cls.__qualname__ + "." + name)
            setattr(instance, name, value)
        return instance
