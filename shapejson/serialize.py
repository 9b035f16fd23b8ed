"""Serialization of object graphs to JSON text."""

from __future__ import annotations

import enum
import logging
import math
from collections.abc import Iterable, Mapping
from datetime import date, datetime, time
from decimal import Decimal

from .context import SerializationContext, apply_case
from .descriptors import get_descriptor
from .shapes import Shape, classify, qualified_name

logger = logging.getLogger(__name__)

INDENT = "    "
NULL_LITERAL = "null"
TRUE_LITERAL = "true"
FALSE_LITERAL = "false"
EMPTY_OBJECT_LITERAL = "{ }"
EMPTY_ARRAY_LITERAL = "[ ]"
CIRCULAR_REFERENCE_KEY = "$circref"

_ESCAPES: dict[str, str] = {
    '"': '\\"',
    "\\": "\\\\",
    "\b": "\\b",
    "\f": "\\f",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}

# Floats beyond this magnitude keep exponent notation instead of digit runs
_WHOLE_FLOAT_LIMIT = 1e16


def escape(text: str, escape_unicode: bool = False) -> str:
    """Escape a string for use between JSON quotes."""
    result: list[str] = []
    for c in text:
        if c in _ESCAPES:
            result.append(_ESCAPES[c])
        elif c < " " or (escape_unicode and ord(c) > 0x7E):
            code = ord(c)
            if code > 0xFFFF:
                code -= 0x10000
                result.append("\\u" + format(0xD800 + (code >> 10), "04x"))
                result.append("\\u" + format(0xDC00 + (code & 0x3FF), "04x"))
            else:
                result.append("\\u" + format(code, "04x"))
        else:
            result.append(c)
    return "".join(result)


def quote(text: str, escape_unicode: bool = False) -> str:
    return '"' + escape(text, escape_unicode) + '"'


def format_number(value: int | float | Decimal) -> str:
    """Render a number: whole values without a fractional part (1.0 → 1)."""
    if isinstance(value, bool):
        return TRUE_LITERAL if value else FALSE_LITERAL
    if isinstance(value, int):
        return str(int(value))
    if isinstance(value, Decimal):
        if not value.is_finite():
            return NULL_LITERAL
        if value == value.to_integral_value():
            return str(int(value))
        return format(value.normalize(), "f")
    if not math.isfinite(value):
        return NULL_LITERAL
    if value.is_integer() and abs(value) < _WHOLE_FLOAT_LIMIT:
        return str(int(value))
    return repr(float(value))


def format_datetime(value: datetime | date | time) -> str:
    """Sortable ISO-8601 text, parsed back by ``fromisoformat``."""
    return value.isoformat()


def primitive_text(value: object) -> str:
    """Bare literal text of a scalar, without quotes."""
    if value is None:
        return NULL_LITERAL
    if isinstance(value, enum.Enum):
        return value.name
    if isinstance(value, (bool, int, float, Decimal)):
        return format_number(value)
    return str(value)


def key_text(key: object) -> str:
    """Text of a mapping key."""
    if isinstance(key, str):
        return key
    if isinstance(key, enum.Enum):
        return key.name
    if isinstance(key, (datetime, date, time)):
        return format_datetime(key)
    if isinstance(key, type):
        return qualified_name(key)
    return primitive_text(key)


class Serializer:
    """Recursive JSON writer driven by shape classification."""

    def __init__(self, context: SerializationContext) -> None:
        self.context: SerializationContext = context

    def serialize(self, value: object) -> str:
        return self._write(value, 0)

    # ── Dispatch ─────────────────────────────────────────────

    def _write(self, value: object, depth: int) -> str:
        shape = classify(value)
        if shape is Shape.NULL:
            return NULL_LITERAL
        if shape is Shape.TYPE_LITERAL:
            return self._quote(qualified_name(value))
        if shape is Shape.BYTES:
            return self._quote(bytes(value).decode("utf-8", errors="replace"))
        if shape is Shape.ENUM:
            return self._quote(value.name)
        if shape is Shape.PRIMITIVE:
            if isinstance(value, str):
                return self._quote(value)
            if isinstance(value, (bool, int, float, Decimal)):
                return format_number(value)
            return self._quote(str(value))
        if shape is Shape.DATETIME:
            return self._quote(format_datetime(value))
        index = self.context.ancestor_index(value)
        if index >= 0:
            logger.debug("circular reference to ancestor %d (%s)", index, type(value).__qualname__)
            return "{ " + quote(CIRCULAR_REFERENCE_KEY) + ": " + str(index) + " }"
        self.context.push(value)
        try:
            if shape is Shape.DICTIONARY:
                return self._write_dictionary(value, depth)
            if shape is Shape.SEQUENCE:
                return self._write_sequence(value, depth)
            return self._write_object(value, depth)
        finally:
            self.context.pop()

    # ── Containers ───────────────────────────────────────────

    def _write_dictionary(self, value: Mapping[object, object], depth: int) -> str:
        parts: list[str] = []
        for key, item in value.items():
            if key is None:
                continue
            parts.append(self._pair(key_text(key), item, depth))
        return self._block("{", "}", parts, depth, EMPTY_OBJECT_LITERAL)

    def _write_sequence(self, value: Iterable[object], depth: int) -> str:
        parts: list[str] = []
        for item in value:
            parts.append(self._write(item, depth + 1))
        return self._block("[", "]", parts, depth, EMPTY_ARRAY_LITERAL)

    def _write_object(self, value: object, depth: int) -> str:
        ctx = self.context
        cls = type(value)
        descriptor = get_descriptor(cls)
        parts: list[str] = []
        if ctx.type_specifier is not None:
            parts.append(self._quote(ctx.type_specifier) + ": " + self._quote(qualified_name(cls)))
        if descriptor.dynamic:
            attrs: dict[str, object] = getattr(value, "__dict__", {})
            for name, item in attrs.items():
                if name.startswith("_") and not ctx.include_non_public:
                    continue
                emitted = apply_case(name, ctx.name_case)
                if not ctx.is_member_selected(name, emitted):
                    continue
                parts.append(self._pair(emitted, item, depth))
            return self._block("{", "}", parts, depth, EMPTY_OBJECT_LITERAL)
        for member in descriptor.members:
            if member.ignore or not member.can_read:
                continue
            if not member.is_public and not ctx.include_non_public:
                continue
            emitted = member.emitted_name(ctx.name_case)
            if not ctx.is_member_selected(member.declared_name, emitted):
                continue
            try:
                item = getattr(value, member.declared_name)
            except AttributeError:
                logger.debug("%s.%s is unset, skipped", cls.__qualname__, member.declared_name)
                continue
            parts.append(self._pair(emitted, item, depth))
        return self._block("{", "}", parts, depth, EMPTY_OBJECT_LITERAL)

    # ── Layout ───────────────────────────────────────────────

    def _quote(self, text: str) -> str:
        return quote(text, self.context.escape_unicode)

    def _pair(self, name: str, item: object, depth: int) -> str:
        return self._quote(name) + ": " + self._write(item, depth + 1)

    def _block(self, open_: str, close: str, parts: list[str], depth: int, empty: str) -> str:
        if len(parts) == 0:
            return empty
        if not self.context.pretty:
            return open_ + ",".join(parts) + close
        pad = INDENT * (depth + 1)
        pad_close = INDENT * depth
        return open_ + "\n" + pad + (",\n" + pad).join(parts) + "\n" + pad_close + close
