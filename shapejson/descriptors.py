"""Type descriptor cache: per-class serializable member metadata.

A descriptor is built once per class from its dataclass fields, annotations,
``__slots__`` and ``property`` objects, then published to a process-wide
cache and never mutated again.
"""

from __future__ import annotations

import dataclasses
import inspect
import logging
import threading
import types
import typing
import weakref
from dataclasses import dataclass, field

from .context import NameCase, apply_case, fold_name
from .shapes import Shape, classify_type, unwrap_annotated

logger = logging.getLogger(__name__)

METADATA_KEY = "shapejson"


@dataclass(frozen=True)
class JsonProperty:
    """Per-member directive: a serialized-name override and an ignore flag.

    Attach it with ``Annotated[int, JsonProperty("id")]`` or through
    ``json_field(name="id")`` on a dataclass.
    """

    name: str | None = None
    ignored: bool = False


def json_field(*, name: str | None = None, ignored: bool = False, **kwargs: typing.Any) -> typing.Any:
    """A ``dataclasses.field`` carrying a ``JsonProperty`` directive."""
    metadata = dict(kwargs.pop("metadata", None) or {})
    metadata[METADATA_KEY] = JsonProperty(name=name, ignored=ignored)
    return dataclasses.field(metadata=metadata, **kwargs)


@dataclass(frozen=True)
class PropertyDescriptor:
    """One serializable member of a class."""

    declared_name: str
    serialized_name: str
    can_read: bool
    can_write: bool
    ignore: bool = False
    is_public: bool = True
    has_name_override: bool = False
    init_arg: bool = False
    value_type: object = typing.Any

    def emitted_name(self, case: NameCase) -> str:
        if self.has_name_override:
            return self.serialized_name
        return apply_case(self.declared_name, case)


@dataclass(frozen=True)
class TypeDescriptor:
    """Immutable member list and shape of one class."""

    type_name: str
    members: tuple[PropertyDescriptor, ...]
    shape: Shape
    has_accessible_constructor: bool
    dynamic: bool = False
    _by_name: typing.Mapping[str, PropertyDescriptor] = field(
        init=False, compare=False, repr=False
    )
    _by_folded: typing.Mapping[str, PropertyDescriptor] = field(
        init=False, compare=False, repr=False
    )

    def __post_init__(self) -> None:
        by_name: dict[str, PropertyDescriptor] = {}
        by_folded: dict[str, PropertyDescriptor] = {}
        for member in self.members:
            by_name.setdefault(member.serialized_name, member)
            by_name.setdefault(member.declared_name, member)
        for member in self.members:
            by_folded.setdefault(fold_name(member.serialized_name), member)
            by_folded.setdefault(fold_name(member.declared_name), member)
        object.__setattr__(self, "_by_name", types.MappingProxyType(by_name))
        object.__setattr__(self, "_by_folded", types.MappingProxyType(by_folded))

    def find(self, name: str) -> PropertyDescriptor | None:
        """Look up a member by JSON name: exact first, then case-insensitively."""
        if name == "":
            return None
        member = self._by_name.get(name)
        if member is not None:
            return member
        return self._by_folded.get(fold_name(name))


# ── Discovery ────────────────────────────────────────────────


def _directive(hint: object, metadata: typing.Mapping[str, object] | None) -> JsonProperty | None:
    if metadata is not None:
        found = metadata.get(METADATA_KEY)
        if isinstance(found, JsonProperty):
            return found
    if typing.get_origin(hint) is typing.Annotated:
        for extra in typing.get_args(hint)[1:]:
            if isinstance(extra, JsonProperty):
                return extra
    return None


def _is_classvar(hint: object) -> bool:
    hint = unwrap_annotated(hint)
    if hint is typing.ClassVar or typing.get_origin(hint) is typing.ClassVar:
        return True
    return isinstance(hint, str) and hint.startswith(("ClassVar", "typing.ClassVar"))


def _resolved_hints(cls: type) -> dict[str, object]:
    """Type hints with forward references resolved where possible."""
    try:
        return typing.get_type_hints(cls, include_extras=True)
    except Exception as e:
        logger.debug("cannot resolve type hints of %s: %s", cls.__qualname__, e)
    hints: dict[str, object] = {}
    for klass in reversed(cls.__mro__):
        for name, hint in inspect.get_annotations(klass).items():
            hints[name] = typing.Any if isinstance(hint, str) else hint
    return hints


def _make_member(
    name: str,
    hint: object,
    directive: JsonProperty | None,
    can_read: bool,
    can_write: bool,
    init_arg: bool = False,
) -> PropertyDescriptor:
    serialized = name
    override = False
    ignore = False
    if directive is not None:
        if directive.name:
            serialized = directive.name
            override = True
        ignore = directive.ignored
    return PropertyDescriptor(
        declared_name=name,
        serialized_name=serialized,
        can_read=can_read,
        can_write=can_write,
        ignore=ignore,
        is_public=not name.startswith("_"),
        has_name_override=override,
        init_arg=init_arg,
        value_type=unwrap_annotated(hint),
    )


def _collect_members(cls: type) -> list[PropertyDescriptor]:
    hints = _resolved_hints(cls)
    members: list[PropertyDescriptor] = []
    seen: set[str] = set()
    if dataclasses.is_dataclass(cls):
        for f in dataclasses.fields(cls):
            hint = hints.get(f.name, typing.Any)
            members.append(
                _make_member(
                    f.name, hint, _directive(hint, f.metadata), True, True, init_arg=f.init
                )
            )
            seen.add(f.name)
    else:
        # Declaration order: base classes first, then each subclass's additions
        for klass in reversed(cls.__mro__):
            if klass is object:
                continue
            for name, raw in inspect.get_annotations(klass).items():
                if name in seen:
                    continue
                hint = hints.get(name, typing.Any)
                if _is_classvar(raw) or _is_classvar(hint):
                    continue
                members.append(_make_member(name, hint, _directive(hint, None), True, True))
                seen.add(name)
    for klass in reversed(cls.__mro__):
        slots = klass.__dict__.get("__slots__", ())
        if isinstance(slots, str):
            slots = (slots,)
        for name in slots:
            if name in seen or name in ("__dict__", "__weakref__"):
                continue
            members.append(_make_member(name, typing.Any, None, True, True))
            seen.add(name)
    for klass in reversed(cls.__mro__):
        for name, attr in vars(klass).items():
            if name in seen or not isinstance(attr, property):
                continue
            returns: object = typing.Any
            if attr.fget is not None:
                try:
                    returns = typing.get_type_hints(attr.fget, include_extras=True).get(
                        "return", typing.Any
                    )
                except Exception:
                    returns = typing.Any
            members.append(
                _make_member(
                    name,
                    returns,
                    _directive(returns, None),
                    attr.fget is not None,
                    attr.fset is not None,
                )
            )
            seen.add(name)
    return members


def _has_accessible_constructor(cls: type) -> bool:
    """True when ``cls()`` can be called without arguments."""
    if inspect.isabstract(cls):
        return False
    try:
        sig = inspect.signature(cls)
    except (TypeError, ValueError):
        # Builtins without an introspectable signature construct with no args
        return True
    for param in sig.parameters.values():
        if param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
            continue
        if param.default is param.empty:
            return False
    return True


def build_descriptor(cls: type) -> TypeDescriptor:
    """Compute the descriptor of a class without touching the cache."""
    shape = classify_type(cls) or Shape.OBJECT
    members: list[PropertyDescriptor] = []
    if shape is Shape.OBJECT:
        members = _collect_members(cls)
    descriptor = TypeDescriptor(
        type_name=cls.__qualname__,
        members=tuple(members),
        shape=shape,
        has_accessible_constructor=_has_accessible_constructor(cls),
        dynamic=shape is Shape.OBJECT and len(members) == 0,
    )
    logger.debug(
        "built descriptor for %s: %d members, shape=%s",
        cls.__qualname__,
        len(descriptor.members),
        shape.value,
    )
    return descriptor


# ── Cache ────────────────────────────────────────────────────

_cache: weakref.WeakKeyDictionary[type, TypeDescriptor] = weakref.WeakKeyDictionary()
_cache_lock = threading.Lock()


def get_descriptor(cls: type) -> TypeDescriptor:
    """Cached descriptor for a class, built on first use.

    Concurrent first builds may both run; the first one published wins and
    the others are discarded.
    """
    with _cache_lock:
        descriptor = _cache.get(cls)
    if descriptor is not None:
        return descriptor
    built = build_descriptor(cls)
    with _cache_lock:
        return _cache.setdefault(cls, built)
