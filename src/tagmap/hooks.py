"""Custom encode/decode hooks.

A record field's type can take over its own mapping by implementing one of
these structural protocols. Nothing is registered: a type is a
``MapEncoder`` or ``MapDecoder`` simply by defining the method.

Usage::

    @dataclass
    class Money:
        cents: int

        def map_encode(self) -> str:
            return f"{self.cents / 100:.2f}"

        @classmethod
        def map_decode(cls, value: object) -> "Money":
            return cls(cents=round(float(value) * 100))
"""

from typing import Any, Protocol, Self, runtime_checkable


@runtime_checkable
class MapEncoder(Protocol):
    """Produces the dynamic value used in place of default extraction."""

    def map_encode(self) -> Any: ...


@runtime_checkable
class MapDecoder(Protocol):
    """Builds an instance from a raw dynamic value, or raises."""

    @classmethod
    def map_decode(cls, value: Any) -> Self: ...


def implements(annotation: Any, protocol: type) -> bool:
    """True when *annotation* is a class that satisfies *protocol*."""
    return isinstance(annotation, type) and issubclass(annotation, protocol)
