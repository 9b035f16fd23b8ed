"""Per-call serialization context and member-name case conventions."""

from __future__ import annotations

import enum
import re
import weakref
from collections.abc import Iterable


class NameCase(enum.Enum):
    """Convention applied to emitted member names."""

    NONE = "none"
    CAMEL = "camel"
    PASCAL = "pascal"
    SNAKE = "snake"


_WORD_BOUNDARY_RE = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def _words(name: str) -> list[str]:
    """Split snake_case, kebab-case, camelCase and PascalCase into words."""
    spaced = _WORD_BOUNDARY_RE.sub("_", name).replace("-", "_")
    return [w for w in spaced.split("_") if w != ""]


def apply_case(name: str, case: NameCase) -> str:
    """Convert a declared member name to the given convention: StringData → stringData."""
    if case is NameCase.NONE or name == "":
        return name
    if case is NameCase.CAMEL:
        return _camel(name)
    if case is NameCase.PASCAL:
        return _camel(name, upper=True)
    return "_".join(w.lower() for w in _words(name))


def _camel(name: str, upper: bool = False) -> str:
    words = _words(name)
    if not words:
        return name
    head = words[0].capitalize() if upper else words[0].lower()
    return head + "".join(w.capitalize() for w in words[1:])


def fold_name(name: str) -> str:
    """Case-insensitive lookup key: Negative_Int, negativeInt → negativeint."""
    return name.replace("_", "").replace("-", "").lower()


def resolve_case(case: NameCase | str | None) -> NameCase:
    if case is None:
        return NameCase.NONE
    if isinstance(case, NameCase):
        return case
    try:
        return NameCase(case.lower())
    except ValueError:
        raise ValueError("unknown name case: " + repr(case)) from None


class SerializationContext:
    """Mutable state threaded through one top-level call.

    ``ancestors`` holds ``id()`` tokens of the containers currently being
    written along the active path; it never keeps an object alive.
    """

    def __init__(
        self,
        pretty: bool = False,
        include_non_public: bool = False,
        include_names: Iterable[str] | None = None,
        exclude_names: Iterable[str] | None = None,
        name_case: NameCase | str | None = NameCase.NONE,
        type_specifier: str | None = None,
        escape_unicode: bool = False,
        ancestors: Iterable[object] | None = None,
    ) -> None:
        if include_names is not None and exclude_names is not None:
            raise ValueError("include_names and exclude_names are mutually exclusive")
        self.pretty: bool = pretty
        self.include_non_public: bool = include_non_public
        self.include_names: frozenset[str] | None = (
            frozenset(include_names) if include_names is not None else None
        )
        self.exclude_names: frozenset[str] | None = (
            frozenset(exclude_names) if exclude_names is not None else None
        )
        self.name_case: NameCase = resolve_case(name_case)
        self.type_specifier: str | None = type_specifier or None
        self.escape_unicode: bool = escape_unicode
        self.ancestors: list[int] = []
        if ancestors is not None:
            for entry in ancestors:
                token = _identity(entry)
                if token is not None:
                    self.ancestors.append(token)

    def is_member_selected(self, declared_name: str, serialized_name: str) -> bool:
        """Apply the include/exclude filters to one member."""
        if self.include_names is not None:
            return declared_name in self.include_names or serialized_name in self.include_names
        if self.exclude_names is not None:
            return not (
                declared_name in self.exclude_names or serialized_name in self.exclude_names
            )
        return True

    def ancestor_index(self, value: object) -> int:
        """Position of value on the ancestor stack, or -1."""
        token = id(value)
        i = 0
        while i < len(self.ancestors):
            if self.ancestors[i] == token:
                return i
            i += 1
        return -1

    def push(self, value: object) -> None:
        self.ancestors.append(id(value))

    def pop(self) -> None:
        self.ancestors.pop()


def _identity(entry: object) -> int | None:
    """Identity token for a caller-supplied ancestor; dead weak references are dropped."""
    if isinstance(entry, weakref.ReferenceType):
        target = entry()
        if target is None:
            return None
        return id(target)
    return id(entry)
