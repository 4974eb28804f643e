"""Record introspection: field descriptors and annotation shapes.

Records are dataclass instances. Fields are read with ``dataclasses.fields``
and annotations are resolved with ``typing.get_type_hints``. No metaclass
magic, no descriptors.

Resolved hints and field descriptors are derived once per record type and
cached. Everything else is recomputed per call.
"""

import collections.abc
import dataclasses
import datetime
import enum
import functools
import inspect
import logging
import sys
import types
import typing
from collections.abc import Mapping
from typing import Any, TypeVar, Union, get_args, get_origin

logger = logging.getLogger("tagmap.introspect")

T = TypeVar("T")

# Zero instant: 0001-01-01T00:00:00Z
ZERO_TIME = datetime.datetime(1, 1, 1, tzinfo=datetime.UTC)

_SEQUENCE_ORIGINS: frozenset[Any] = frozenset({
    list,
    tuple,
    collections.abc.Sequence,
    collections.abc.MutableSequence,
})

_MAPPING_ORIGINS: frozenset[Any] = frozenset({
    dict,
    collections.abc.Mapping,
    collections.abc.MutableMapping,
})

_ZEROS: dict[type, Any] = {
    bool: False,
    int: 0,
    float: 0.0,
    str: "",
    bytes: b"",
}


def tag_head(declaration: str) -> str:
    """Return the name head of a declaration: ``"id,omitempty"`` -> ``"id"``."""
    return declaration.split(",", 1)[0]


@dataclasses.dataclass(frozen=True, slots=True)
class FieldInfo:
    """A visible record field: its name, resolved type, and declarations.

    ``tags`` maps scheme name to the raw declaration string taken from the
    field's ``metadata``.
    """

    name: str
    type: Any
    tags: Mapping[str, str]
    init: bool = True

    def declaration(self, scheme: str) -> str | None:
        return self.tags.get(scheme)

    def key(self, scheme: str) -> str | None:
        """Map key for this field under *scheme*, or None if undeclared."""
        if scheme == "":
            return self.name
        declaration = self.tags.get(scheme)
        if declaration is None:
            return None
        return tag_head(declaration)

    @property
    def inner(self) -> Any:
        return unwrap_optional(self.type)[1]

    @property
    def is_record(self) -> bool:
        return is_record_type(self.inner)


@functools.cache
def field_hints(cls: type) -> dict[str, Any]:
    """Resolved annotations of a dataclass type, keyed by field name.

    When the class as a whole cannot be resolved, each field is resolved on
    its own against the namespace of the class that declares it. Only the
    fields that still fail keep their raw annotation.
    """
    try:
        return typing.get_type_hints(cls)
    except (NameError, TypeError):
        pass

    hints: dict[str, Any] = {}
    for f in dataclasses.fields(cls):
        owner = next(
            (base for base in cls.__mro__ if f.name in inspect.get_annotations(base)),
            cls,
        )
        module = sys.modules.get(owner.__module__)
        holder = types.SimpleNamespace(__annotations__={f.name: f.type})
        try:
            hints.update(
                typing.get_type_hints(
                    holder,
                    globalns=vars(module) if module is not None else {},
                    localns=dict(vars(owner)),
                )
            )
        except (NameError, TypeError) as exc:
            logger.warning(
                "%s.%s: cannot resolve annotation %r (%s); values for it will not coerce",
                cls.__qualname__,
                f.name,
                f.type,
                exc,
            )
    return hints


@functools.cache
def record_fields(cls: type) -> tuple[FieldInfo, ...]:
    """Visible fields of a dataclass type, in declaration order."""
    hints = field_hints(cls)
    result: list[FieldInfo] = []
    for f in dataclasses.fields(cls):
        if f.name.startswith("_"):
            continue
        tags = {k: v for k, v in f.metadata.items() if isinstance(k, str) and isinstance(v, str)}
        result.append(
            FieldInfo(name=f.name, type=hints.get(f.name, f.type), tags=tags, init=f.init)
        )
    return tuple(result)


def scheme_lookup(cls: type, scheme: str) -> dict[str, FieldInfo]:
    """Build a map key -> field table for one fill call."""
    table: dict[str, FieldInfo] = {}
    for info in record_fields(cls):
        key = info.key(scheme)
        if key is not None:
            table[key] = info
    return table


# =============================================================================
# Shapes
# =============================================================================


def is_record(obj: Any) -> bool:
    """True for dataclass *instances* (not dataclass types)."""
    return dataclasses.is_dataclass(obj) and not isinstance(obj, type)


def is_record_type(annotation: Any) -> bool:
    return isinstance(annotation, type) and dataclasses.is_dataclass(annotation)


def is_frozen(cls: type) -> bool:
    params = getattr(cls, "__dataclass_params__", None)
    return bool(params is not None and params.frozen)


def is_time_type(annotation: Any) -> bool:
    return isinstance(annotation, type) and issubclass(annotation, datetime.datetime)


def is_optional(annotation: Any) -> bool:
    """Check if an annotation is X | None."""
    origin = get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        return type(None) in get_args(annotation)
    return False


def unwrap_optional(annotation: Any) -> tuple[bool, Any]:
    """Split ``X | None`` into ``(True, X)``; other annotations pass through."""
    if not is_optional(annotation):
        return False, annotation
    non_none = tuple(a for a in get_args(annotation) if a is not type(None))
    if len(non_none) == 1:
        return True, non_none[0]
    return True, Union[non_none]  # noqa: UP007


def sequence_shape(annotation: Any) -> tuple[type, Any] | None:
    """Return ``(container, element_type)`` for homogeneous sequences.

    ``list[T]``, ``tuple[T, ...]`` and ``Sequence[T]`` are sequence-shaped;
    fixed-length tuples and strings are not.
    """
    if annotation is list:
        return list, Any
    if annotation is tuple:
        return tuple, Any
    origin = get_origin(annotation)
    if origin not in _SEQUENCE_ORIGINS:
        return None
    args = get_args(annotation)
    if origin is tuple:
        if len(args) == 2 and args[1] is Ellipsis:
            return tuple, args[0]
        return None
    return list, (args[0] if args else Any)


def is_mapping_type(annotation: Any) -> bool:
    if annotation is dict:
        return True
    return get_origin(annotation) in _MAPPING_ORIGINS


def is_dynamic_type(annotation: Any) -> bool:
    return annotation is Any or annotation is object


def zero_value(annotation: Any) -> Any:
    """The zero value for *annotation*, used to seed freshly built fields.

    Records are built from their field defaults, with zero values for the
    fields that have none. Optional, dynamic and opaque types are ``None``.
    """
    if is_optional(annotation) or is_dynamic_type(annotation):
        return None
    if is_record_type(annotation):
        return zero_record(annotation)
    if isinstance(annotation, type):
        if issubclass(annotation, enum.Enum):
            return next(iter(annotation), None)
        if is_time_type(annotation):
            return ZERO_TIME
        for base, zero in _ZEROS.items():
            if annotation is base:
                return zero
    shape = sequence_shape(annotation)
    if shape is not None:
        return shape[0]()
    if is_mapping_type(annotation):
        return {}
    return None


def zero_record(cls: type[T]) -> T:
    """Instantiate *cls* with defaults, zero-filling required init fields."""
    hints = field_hints(cls)
    kwargs: dict[str, Any] = {}
    for f in dataclasses.fields(cls):  # type: ignore[arg-type]
        if not f.init:
            continue
        if f.default is dataclasses.MISSING and f.default_factory is dataclasses.MISSING:
            kwargs[f.name] = zero_value(hints.get(f.name, f.type))
    return cls(**kwargs)
