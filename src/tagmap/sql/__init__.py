"""Scan database rows into dataclass records.

Basic usage::

    import sqlite3
    from tagmap.sql import CursorRow, scan_row

    @dataclass
    class User:
        id: int = tagged(db="id", default=0)
        name: str = tagged(db="name", default="")

    cursor = conn.execute("SELECT id, name FROM users WHERE id = ?", (7,))
    user = User()
    scan_row(CursorRow(cursor), user, "db", "id", "name")

Any object with a ``scan(*dest)`` method works as a row source; the
cursor wrappers here adapt PEP 249 cursors.
"""

from tagmap.sql.cursor import AsyncCursorRow, CursorRow
from tagmap.sql.protocol import AsyncRowScanner, RowScanner, ValueReader, ValueWriter
from tagmap.sql.scan import scan_row, scan_row_async

__all__ = [
    "AsyncCursorRow",
    "AsyncRowScanner",
    "CursorRow",
    "RowScanner",
    "ValueReader",
    "ValueWriter",
    "scan_row",
    "scan_row_async",
]
