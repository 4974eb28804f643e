"""Row adapter protocols.

Structural protocols for the scan-based row API. A row source only needs a
``scan(*dest)`` method; a field type opts into custom driver handling by
defining ``write`` (absorb a driver value) and/or ``read`` (produce one).
"""

from typing import Any, Protocol, runtime_checkable


class RowScanner(Protocol):
    """A row source that populates destination slots, one per column."""

    def scan(self, *dest: Any) -> None: ...


class AsyncRowScanner(Protocol):
    """Async variant of ``RowScanner``."""

    async def scan(self, *dest: Any) -> None: ...


@runtime_checkable
class ValueWriter(Protocol):
    """A field type that absorbs a raw driver value into itself.

    Must be constructible with no arguments; the row adapter allocates a
    fresh instance as the scan destination for such fields.
    """

    def write(self, src: Any) -> None: ...


@runtime_checkable
class ValueReader(Protocol):
    """A field type that can report its driver value."""

    def read(self) -> Any: ...
