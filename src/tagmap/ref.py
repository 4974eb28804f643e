"""Typed value cells.

A ``Ref`` is tagmap's explicit pointer: a slot with a declared type and a
current value. The row adapter hands ``Ref`` destinations to a row source,
and the coercer unboxes a ``Ref`` found in an input map.

Driver coercion in ``Ref.set`` handles the mismatch between database
drivers (SQLite returns strings for some column types) and the declared
slot type. ``int`` slots coerce ``"45"`` to ``45`` and empty strings to ``0``.
"""

import datetime
from typing import Any, Generic, TypeVar

from tagmap._internal.introspect import is_dynamic_type, zero_value
from tagmap.errors import ScanError

T = TypeVar("T")

# Scalar types we know how to coerce from database driver values.
_COERCIBLE: dict[type, Any] = {
    int: lambda v: int(v) if v != "" else 0,
    float: lambda v: float(v) if v != "" else 0.0,
    bool: lambda v: bool(int(v)) if isinstance(v, str) else bool(v),
    str: lambda v: v.decode() if isinstance(v, bytes) else str(v),
    bytes: lambda v: v.encode() if isinstance(v, str) else bytes(v),
    datetime.datetime: lambda v: datetime.datetime.fromisoformat(v),
}


class Ref(Generic[T]):
    """A mutable cell holding a value of a declared type.

    ``Ref(int)`` starts at the zero value ``0``; ``Ref(int, 7)`` starts
    at ``7``. ``Ref()`` is an untyped cell that accepts any value.
    """

    __slots__ = ("type", "value")

    def __init__(self, type_: Any = Any, value: Any = None) -> None:
        self.type = type_
        self.value: T | None = value if value is not None else zero_value(type_)

    def get(self) -> T | None:
        return self.value

    def set(self, src: Any) -> None:
        """Store a driver value, converting it to the declared type.

        ``None`` (SQL NULL) is stored as ``None``. Raises ``ScanError``
        if the value cannot be converted.
        """
        target = self.type
        if src is None or is_dynamic_type(target) or not isinstance(target, type):
            self.value = src
            return
        if isinstance(src, target) and not (target is int and isinstance(src, bool)):
            self.value = src
            return
        convert = _COERCIBLE.get(target)
        if convert is None:
            msg = f"cannot scan {type(src).__name__} value {src!r} into {target.__name__}"
            raise ScanError(msg)
        try:
            self.value = convert(src)
        except (TypeError, ValueError) as exc:
            msg = f"cannot scan {type(src).__name__} value {src!r} into {target.__name__}: {exc}"
            raise ScanError(msg) from exc

    def __repr__(self) -> str:
        name = getattr(self.type, "__name__", repr(self.type))
        return f"Ref({name}, {self.value!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Ref):
            return NotImplemented
        return self.type == other.type and self.value == other.value

    __hash__ = None  # type: ignore[assignment]
