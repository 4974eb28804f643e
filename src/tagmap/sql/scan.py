"""Scan a fetched row into a record.

Bridges a scan-based row API to the extract/fill machinery:

1. pick the keys (explicit, or every declared field for none / ``"*"``)
2. pick one destination slot per key from the record's current value
3. let the row source fill the slots
4. read the slots back into a map
5. fill the record from that map with the usual coercion rules

Usage::

    cursor = conn.execute("SELECT id, name FROM users WHERE id = ?", (7,))
    user = User()
    scan_row(CursorRow(cursor), user, "db", "id", "name")

A row source error propagates unchanged and aborts before any field is
written.
"""

import datetime
import logging
from typing import Any

from tagmap._internal.introspect import FieldInfo, is_record, record_fields, scheme_lookup
from tagmap._internal.types import Mapped
from tagmap.extract import map_tags
from tagmap.hooks import implements
from tagmap.inject import fill, fill_by_tags
from tagmap.ref import Ref
from tagmap.sql.protocol import AsyncRowScanner, RowScanner, ValueReader, ValueWriter

logger = logging.getLogger("tagmap.sql")

# Destination kinds, most specific first (bool is an int subclass).
_KINDS: tuple[type, ...] = (bool, int, float, str, bytes, datetime.datetime)


def _keys(record: Any, scheme: str, keys: tuple[str, ...]) -> list[str]:
    if keys and keys != ("*",):
        return list(keys)
    names = []
    for info in record_fields(type(record)):
        key = info.key(scheme)
        if key is not None:
            names.append(key)
    return names


def _destination(info: FieldInfo | None, current: Any) -> Any:
    for kind in _KINDS:
        if isinstance(current, kind):
            return Ref(kind)
    if info is not None and implements(info.inner, ValueWriter):
        return info.inner()
    return Ref()


def _prepare(
    record: Any, scheme: str, keys: tuple[str, ...]
) -> tuple[list[str], dict[str, FieldInfo], list[Any]]:
    if not is_record(record):
        msg = f"{type(record).__name__} is not a dataclass instance; tagmap scans into dataclass records"
        raise TypeError(msg)
    current = map_tags(record, scheme) or {}
    names = _keys(record, scheme, keys)
    lookup = scheme_lookup(type(record), scheme)
    destinations = [_destination(lookup.get(k), current.get(k)) for k in names]
    return names, lookup, destinations


def _read_back(dest: Any, info: FieldInfo | None) -> tuple[bool, Any]:
    """Return ``(True, value)`` for a recognized destination, else ``(False, None)``."""
    if isinstance(dest, Ref) and dest.type in _KINDS:
        return True, dest.value
    if info is None:
        return False, None
    declared = info.inner
    custom = implements(declared, ValueReader) or implements(declared, ValueWriter)
    if custom and isinstance(dest, declared):
        return True, dest
    if isinstance(dest, Ref) and implements(declared, ValueReader) and isinstance(dest.value, declared):
        return True, dest.value
    return False, None


def _finish(
    record: Any,
    scheme: str,
    names: list[str],
    lookup: dict[str, FieldInfo],
    destinations: list[Any],
) -> None:
    scanned: Mapped = {}
    for key, dest in zip(names, destinations, strict=True):
        ok, value = _read_back(dest, lookup.get(key))
        if not ok:
            logger.debug("scan %s: dropping %r destination for key %r", type(record).__name__, dest, key)
            continue
        scanned[key] = value
    if scheme == "":
        fill(record, scanned)
    else:
        fill_by_tags(record, scanned, scheme)


def scan_row(row: RowScanner, record: Any, scheme: str = "", *keys: str) -> None:
    """Scan one row from *row* into *record*.

    *keys* name the selected columns in order, as field names (``scheme=""``)
    or *scheme* name heads. With no keys, or ``"*"``, every declared field
    is scanned in declaration order.

    Each destination is typed from the field's *current* value. A field that
    currently holds ``None`` (an ``int | None`` left at its default, say)
    gets an untyped slot whose value is dropped, so seed such fields with a
    value of the right type before scanning. Field types implementing
    ``ValueWriter`` are the exception: they always receive a fresh instance.

    Raises whatever ``row.scan`` raises, unchanged, and ``FillError`` if
    scanned values cannot be written into their fields.
    """
    names, lookup, destinations = _prepare(record, scheme, keys)
    row.scan(*destinations)
    _finish(record, scheme, names, lookup, destinations)


async def scan_row_async(row: AsyncRowScanner, record: Any, scheme: str = "", *keys: str) -> None:
    """Async variant of ``scan_row`` for row sources with ``async def scan``."""
    names, lookup, destinations = _prepare(record, scheme, keys)
    await row.scan(*destinations)
    _finish(record, scheme, names, lookup, destinations)
