"""Record-to-map extraction.

Flattens a dataclass record into a plain ``dict``, choosing keys from field
names or from per-field scheme declarations::

    @dataclass
    class User:
        id: int = tagged(json="id")
        name: str = tagged(json="name,omitempty")
        password: str = ""

    map_fields(User(1, "ann", "pw"))
    # {"id": 1, "name": "ann", "password": "pw"}
    map_tags(User(1, "ann", "pw"), "json")
    # {"id": 1, "name": "ann"}

Nested records become nested dicts, sequences become lists, and types
implementing ``map_encode()`` supply their own representation.
"""

import datetime
import logging
from typing import Any

from tagmap._internal.introspect import is_record, record_fields
from tagmap._internal.types import Mapped
from tagmap.hooks import MapEncoder
from tagmap.ref import Ref

logger = logging.getLogger("tagmap.extract")

# Pointees returned as-is when extracted through a Ref.
_PRIMITIVES = (bool, int, float, complex, str, bytes)


def _record_of(x: Any) -> Any:
    """Resolve *x* to a record, following Refs. Non-records resolve to None."""
    while isinstance(x, Ref):
        x = x.value
    return x if is_record(x) else None


def extract_value(value: Any, scheme: str = "") -> Any:
    """Produce the dynamic representation of a single field value."""
    if value is None or (isinstance(value, Ref) and value.value is None):
        return None

    if isinstance(value, datetime.datetime):
        return value
    if isinstance(value, Ref) and isinstance(value.value, datetime.datetime):
        return value.value

    if isinstance(value, MapEncoder):
        try:
            return value.map_encode()
        except Exception:
            # Encode failures degrade to a missing value, never to an error.
            logger.debug("map_encode failed for %s", type(value).__name__, exc_info=True)
            return None

    if is_record(value):
        return map_tags(value, scheme)
    if isinstance(value, Ref):
        pointee = value.value
        if isinstance(pointee, _PRIMITIVES):
            return pointee
        # Hooks on the pointee win over record mapping.
        return extract_value(pointee, scheme)
    if isinstance(value, (list, tuple)):
        return [extract_value(item, scheme) for item in value]
    return value


def map_fields(x: Any) -> Mapped | None:
    """Map every visible field of a record under its own field name.

    Equivalent to ``map_tags(x, "")``.
    """
    return map_tags(x, "")


def map_tags(x: Any, scheme: str) -> Mapped | None:
    """Map the fields declaring a name under *scheme*, keyed by name head.

    With ``scheme=""`` every visible field is mapped under its own name.
    Returns ``None`` for ``None`` input; any other non-record maps to ``{}``.
    """
    if x is None:
        return None
    record = _record_of(x)
    result: Mapped = {}
    if record is None:
        return result
    for info in record_fields(type(record)):
        key = info.key(scheme)
        if key is None:
            continue
        result[key] = extract_value(getattr(record, info.name), scheme)
    return result


def map_tags_with_default(x: Any, scheme: str, *fallbacks: str) -> Mapped | None:
    """Map by *scheme*, falling back to the first fallback scheme that matches.

    Nested records are mapped with whichever scheme matched their field, so
    a field found via a fallback keeps that fallback's names all the way down.
    """
    if x is None:
        return None
    record = _record_of(x)
    result: Mapped = {}
    if record is None:
        return result
    for info in record_fields(type(record)):
        for candidate in (scheme, *fallbacks):
            declaration = info.declaration(candidate)
            if declaration is None:
                continue
            key = info.key(candidate)
            result[key] = extract_value(getattr(record, info.name), candidate)  # type: ignore[index]
            break
    return result


def map_tags_flatten(x: Any, scheme: str) -> Mapped | None:
    """Flatten nested records into a single level keyed by *scheme* names.

    Declared non-record fields are emitted with their raw value. Record
    fields are never emitted themselves: their own fields are flattened and
    merged in. On a key collision the field processed last (declaration
    order, depth-first) wins.
    """
    if x is None:
        return None
    record = _record_of(x)
    result: Mapped = {}
    if record is None:
        return result
    for info in record_fields(type(record)):
        value = getattr(record, info.name)
        nested = _record_of(value)
        if nested is None and not info.is_record:
            key = info.key(scheme)
            if key is not None:
                result[key] = value
            continue
        if nested is not None:
            result.update(map_tags_flatten(nested, scheme) or {})
    return result
