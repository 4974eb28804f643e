"""DB-API cursor row sources.

Adapts any PEP 249 cursor (``sqlite3``, ``psycopg``, ...) to the ``scan``
row API. Each ``scan`` call fetches the next row and assigns its columns,
in order, into the destinations it was given.

``AsyncCursorRow`` runs the blocking ``fetchone`` in a worker thread via
``anyio.to_thread``, so it can be awaited from any anyio-compatible loop.
"""

from collections.abc import Callable, Sequence
from typing import Any

import anyio

from tagmap.errors import NoRowsError, ScanError
from tagmap.ref import Ref
from tagmap.sql.protocol import ValueWriter


def _run_sync(func: Callable[..., Any], *args: Any) -> Any:
    """Run blocking call in anyio worker thread. Wrapper for ty compatibility."""
    return anyio.to_thread.run_sync(func, *args)  # type: ignore[union-attr]


def assign(dest: Any, src: Any) -> None:
    """Store one driver value into one scan destination."""
    if isinstance(dest, Ref):
        dest.set(src)
    elif isinstance(dest, ValueWriter):
        dest.write(src)
    else:
        msg = f"unsupported scan destination type {type(dest).__name__}"
        raise ScanError(msg)


def assign_row(row: Sequence[Any] | None, dest: tuple[Any, ...]) -> None:
    """Assign every column of *row* into the matching destination."""
    if row is None:
        msg = "no rows in result set"
        raise NoRowsError(msg)
    if len(row) != len(dest):
        msg = f"expected {len(row)} destination arguments in scan, not {len(dest)}"
        raise ScanError(msg)
    for target, src in zip(dest, row, strict=True):
        assign(target, src)


class CursorRow:
    """Row source reading one row per ``scan`` from a DB-API cursor."""

    __slots__ = ("_cursor",)

    def __init__(self, cursor: Any) -> None:
        self._cursor = cursor

    def scan(self, *dest: Any) -> None:
        assign_row(self._cursor.fetchone(), dest)


class AsyncCursorRow:
    """Async row source; ``fetchone`` runs in an anyio worker thread."""

    __slots__ = ("_cursor",)

    def __init__(self, cursor: Any) -> None:
        self._cursor = cursor

    async def scan(self, *dest: Any) -> None:
        row = await _run_sync(self._cursor.fetchone)
        assign_row(row, dest)
