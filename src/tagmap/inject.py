"""Map-to-record filling.

Populates dataclass records from plain dicts, acting like ``json.loads``
straight into typed fields::

    @dataclass
    class Address:
        city: str = tagged(db="addr_city", default="")

    @dataclass
    class User:
        name: str = tagged(db="name", default="")
        addr: Address = field(default_factory=Address)

    user = User()
    fill_by_tags(user, {"name": "ann", "addr": {"addr_city": "Oslo"}}, "db")
    fill_deflate(user, {"name": "ann", "addr_city": "Oslo"}, "db")

Failures never short-circuit a fill: every field that can be written is
written, then a single ``FillError`` reports all the ones that could not.
``None`` values in the map are skipped; they never overwrite a field.
"""

import dataclasses
import logging
from collections.abc import Mapping
from typing import Any, TypeVar

from tagmap._internal.introspect import (
    FieldInfo,
    is_frozen,
    is_record,
    is_record_type,
    record_fields,
    scheme_lookup,
    zero_record,
)
from tagmap.coercion import coerce
from tagmap.errors import FieldError, FillError

logger = logging.getLogger("tagmap.inject")

T = TypeVar("T")


def _resolve(
    cls: type,
    mapped: Mapping[str, Any],
    scheme: str,
    lookup: dict[str, FieldInfo] | None = None,
) -> tuple[dict[str, Any], list[FieldError]]:
    """Coerce every resolvable entry of *mapped* against the fields of *cls*.

    Returns ``({field_name: value}, errors)``. Unknown keys are ignored.
    """
    if lookup is None:
        lookup = scheme_lookup(cls, scheme)
    updates: dict[str, Any] = {}
    errors: list[FieldError] = []
    for key, value in mapped.items():
        if value is None:
            continue
        info = lookup.get(key)
        if info is None:
            continue
        try:
            updates[info.name] = coerce(value, info.type, scheme=scheme, key=key)
        except FieldError as exc:
            errors.append(exc)
    return updates, errors


def _assemble(cls: type[T], updates: dict[str, Any], errors: list[FieldError]) -> T:
    """Build a fresh *cls* from zero values plus *updates*.

    Frozen records are assembled with ``dataclasses.replace``; their
    ``init=False`` fields cannot be set and are reported as errors.
    """
    record = zero_record(cls)
    if not is_frozen(cls):
        for name, value in updates.items():
            setattr(record, name, value)
        return record
    settable = {info.name for info in record_fields(cls) if info.init}
    for name in updates.keys() - settable:
        errors.append(
            FieldError(f"cannot set non-init field {name!r} of frozen {cls.__name__}", key=name)
        )
    return dataclasses.replace(record, **{k: v for k, v in updates.items() if k in settable})  # type: ignore[type-var]


def build_record(cls: type[T], mapped: Mapping[str, Any], scheme: str) -> tuple[T, list[FieldError]]:
    """Build a *cls* record filled from *mapped*, returning it with any errors."""
    updates, errors = _resolve(cls, mapped, scheme)
    return _assemble(cls, updates, errors), errors


def _check_target(record: Any) -> None:
    if not is_record(record):
        msg = f"{type(record).__name__} is not a dataclass instance; tagmap fills dataclass records"
        raise TypeError(msg)
    if is_frozen(type(record)):
        msg = f"{type(record).__name__} is frozen; use load() to build frozen records"
        raise TypeError(msg)


def _raise_for(record_type: type, errors: list[FieldError]) -> None:
    if not errors:
        return
    logger.debug("fill %s: %d field error(s)", record_type.__name__, len(errors))
    raise FillError(tuple(errors))


def _fill(record: Any, mapped: Mapping[str, Any], scheme: str) -> None:
    _check_target(record)
    updates, errors = _resolve(type(record), mapped, scheme)
    for name, value in updates.items():
        setattr(record, name, value)
    _raise_for(type(record), errors)


def fill(record: Any, mapped: Mapping[str, Any]) -> None:
    """Fill *record* in place, matching map keys to field names.

    Raises ``FillError`` after writing every field that could be written.
    """
    _fill(record, mapped, "")


def fill_by_tags(record: Any, mapped: Mapping[str, Any], scheme: str) -> None:
    """Fill *record* in place, matching map keys to *scheme* name heads."""
    _fill(record, mapped, scheme)


def _deflate(
    cls: type, mapped: Mapping[str, Any], scheme: str, active: frozenset[type]
) -> tuple[dict[str, Any], list[FieldError]]:
    updates, errors = _resolve(cls, mapped, scheme)
    active = active | {cls}
    for info in record_fields(cls):
        if not info.is_record or info.inner in active:
            continue
        nested_updates, nested_errors = _deflate(info.inner, mapped, scheme, active)
        nested = _assemble(info.inner, nested_updates, nested_errors)
        if nested_errors:
            errors.extend(nested_errors)
            continue
        updates[info.name] = nested
    return updates, errors


def fill_deflate(record: Any, mapped: Mapping[str, Any], scheme: str) -> None:
    """Fill *record* and all of its nested records from one flat map.

    The current level is filled by *scheme* name heads, then every record
    (or optional record) field is rebuilt from the same full map, even if
    it was already set. A nested record that fails is left untouched;
    its siblings are still written. A record type already being filled
    further up the chain is not descended into again.
    """
    _check_target(record)
    updates, errors = _deflate(type(record), mapped, scheme, frozenset())
    for name, value in updates.items():
        setattr(record, name, value)
    _raise_for(type(record), errors)


def set_field(record: Any, scheme: str, key: str, value: Any) -> bool:
    """Set the single field that *key* names under *scheme*.

    Returns ``False`` when no field matches or *value* is ``None``.
    Raises the field's ``FieldError`` when the value cannot be written.
    """
    _check_target(record)
    if value is None:
        return False
    info = scheme_lookup(type(record), scheme).get(key)
    if info is None:
        return False
    setattr(record, info.name, coerce(value, info.type, scheme=scheme, key=key))
    return True


def load(cls: type[T], mapped: Mapping[str, Any], scheme: str = "") -> T:
    """Build a new *cls* instance from *mapped*.

    Fields missing from the map keep their defaults (or zero values when
    they have none). Works for frozen dataclasses.

    Raises ``TypeError`` if *cls* is not a dataclass, and ``FillError``
    if any field could not be written.
    """
    if not is_record_type(cls):
        msg = f"{getattr(cls, '__name__', cls)!r} is not a dataclass; tagmap loads dataclass records"
        raise TypeError(msg)
    record, errors = build_record(cls, mapped, scheme)
    _raise_for(cls, errors)
    return record
