"""Dynamic value to typed field value coercion.

``coerce(value, annotation)`` decides what to write into a field declared as
*annotation* when the map supplies *value*. Every filler and the row adapter
go through this one function, so a value is reconciled the same way no
matter who asks.

Resolution order (first match wins):

1. identical type (``T | None`` fields also accept a ``T`` as identical)
2. standard conversion (numeric widening/truncation, bytes <-> str, enums,
   plain dict/list targets)
3. ``map_decode`` hook on the field type
4. RFC 3339 text or a datetime into a ``datetime`` field
5. a mapping into a record field: build and fill a fresh record
6. a list/tuple into a sequence field: rebuild element by element
7. a convertible value into an optional field (boxing)
8. a ``Ref`` whose value fits the field (unboxing)
9. anything else raises ``TypeMismatchError``
"""

import datetime
import enum
import re
from collections.abc import Mapping
from typing import Any

from tagmap._internal.introspect import (
    is_dynamic_type,
    is_mapping_type,
    is_record,
    is_record_type,
    is_time_type,
    sequence_shape,
    unwrap_optional,
    zero_value,
)
from tagmap.errors import (
    DecodeError,
    FieldError,
    NestedError,
    TimeParseError,
    TypeMismatchError,
)
from tagmap.hooks import MapDecoder, implements
from tagmap.ref import Ref

# No conversion path exists.
_NO_PATH: Any = object()

_RFC3339 = re.compile(
    r"^(\d{4}-\d{2}-\d{2})[Tt ](\d{2}:\d{2}:\d{2})(?:\.(\d+))?([Zz]|[+-]\d{2}:\d{2})$"
)


def parse_timestamp(text: str) -> datetime.datetime:
    """Parse an RFC 3339 timestamp into an aware ``datetime``.

    The UTC offset is mandatory. Fractional seconds beyond microseconds
    are truncated. Raises ``ValueError`` on malformed input.
    """
    match = _RFC3339.match(text)
    if match is None:
        msg = f"parsing time {text!r} as RFC 3339: invalid format"
        raise ValueError(msg)
    date, clock, fraction, offset = match.groups()
    micros = ((fraction or "") + "000000")[:6]
    if offset in ("Z", "z"):
        offset = "+00:00"
    return datetime.datetime.fromisoformat(f"{date}T{clock}.{micros}{offset}")


def convert(value: Any, target: Any) -> Any:
    """Apply the standard conversion table, or return the no-path sentinel."""
    if is_dynamic_type(target):
        return value
    if isinstance(target, type):
        if isinstance(value, bool) and target in (int, float):
            return _NO_PATH
        if isinstance(value, target):
            return value
        if issubclass(target, enum.Enum):
            try:
                return target(value)
            except (ValueError, TypeError):
                return _NO_PATH
        if isinstance(value, enum.Enum) and isinstance(value.value, target):
            return value.value
        if target is int and isinstance(value, float):
            try:
                return int(value)
            except (ValueError, OverflowError):
                return _NO_PATH
        if target is float and isinstance(value, int):
            return float(value)
        if target is str and isinstance(value, (bytes, bytearray)):
            try:
                return bytes(value).decode()
            except UnicodeDecodeError:
                return _NO_PATH
        if target is bytes and isinstance(value, str):
            return value.encode()
        if target is bytes and isinstance(value, bytearray):
            return bytes(value)
        return _NO_PATH
    if is_mapping_type(target) and isinstance(value, Mapping):
        return dict(value)
    shape = sequence_shape(target)
    if shape is not None and is_dynamic_type(shape[1]) and isinstance(value, (list, tuple)):
        return shape[0](value)
    return _NO_PATH


def is_convertible(value: Any, target: Any) -> bool:
    return convert(value, target) is not _NO_PATH


def coerce(value: Any, annotation: Any, *, scheme: str = "", key: str = "") -> Any:
    """Return *value* reconciled with *annotation*, or raise a ``FieldError``.

    *scheme* is used for nested records and sequence elements; *scheme*
    and *key* also label any error raised.
    """
    optional, inner = unwrap_optional(annotation)

    # 1. identical
    if isinstance(annotation, type) and type(value) is annotation:
        return value
    if optional and isinstance(inner, type) and type(value) is inner:
        return value

    # 2. convertible
    converted = convert(value, annotation)
    if converted is not _NO_PATH:
        return converted

    # 3. decode hook
    if implements(inner, MapDecoder):
        try:
            return inner.map_decode(value)
        except Exception as exc:
            raise DecodeError(
                str(exc), scheme=scheme, key=key, expected=annotation, value=value
            ) from exc

    # 4. time
    if is_time_type(inner):
        if isinstance(value, str):
            try:
                return parse_timestamp(value)
            except ValueError as exc:
                raise TimeParseError(
                    f"time conversion: {exc}",
                    scheme=scheme,
                    key=key,
                    expected=annotation,
                    value=value,
                ) from exc
        if isinstance(value, Ref) and isinstance(value.value, datetime.datetime):
            return value.value

    # 5. mapping -> record
    if isinstance(value, Mapping) and is_record_type(inner):
        return _fill_nested(inner, value, annotation, scheme=scheme, key=key)

    # 6. sequence -> sequence
    shape = sequence_shape(inner)
    if shape is not None and isinstance(value, (list, tuple)):
        return _rebuild_sequence(value, shape, annotation, scheme=scheme, key=key)

    # 7. box into an optional field
    if optional:
        converted = convert(value, inner)
        if converted is not _NO_PATH:
            return converted

    # 8. unbox a Ref
    if isinstance(value, Ref) and value.value is not None:
        pointee = value.value
        for target in (annotation, inner):
            if isinstance(target, type) and type(pointee) is target:
                return pointee
            converted = convert(pointee, target)
            if converted is not _NO_PATH:
                return converted

    raise TypeMismatchError(scheme=scheme, key=key, expected=annotation, value=value)


def _fill_nested(
    cls: type, value: Mapping[str, Any], annotation: Any, *, scheme: str, key: str
) -> Any:
    from tagmap.inject import build_record

    record, errors = build_record(cls, value, scheme)
    if errors:
        raise NestedError(
            "nested error",
            tuple(errors),
            scheme=scheme,
            key=key,
            expected=annotation,
            value=value,
        )
    return record


def _rebuild_sequence(
    value: list[Any] | tuple[Any, ...],
    shape: tuple[type, Any],
    annotation: Any,
    *,
    scheme: str,
    key: str,
) -> Any:
    from tagmap.extract import map_tags

    container, element_type = shape
    element_inner = unwrap_optional(element_type)[1]
    items: list[Any] = []
    errors: list[FieldError] = []
    for index, item in enumerate(value):
        if item is None:
            items.append(zero_value(element_type))
            continue
        if is_record_type(element_inner) and is_record(item) and type(item) is not element_inner:
            # A different record type: re-read it under the active scheme.
            item = map_tags(item, scheme)
        try:
            items.append(coerce(item, element_type, scheme=scheme, key=f"{key}[{index}]"))
        except FieldError as exc:
            errors.append(exc)
    if errors:
        raise NestedError(
            "cannot set sequence element",
            tuple(errors),
            scheme=scheme,
            key=key,
            expected=annotation,
            value=value,
        )
    return container(items)
