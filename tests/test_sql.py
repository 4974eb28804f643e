"""Tests for tagmap.sql: scanning rows into records."""

import sqlite3
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

import pytest

from tagmap import Ref, tagged
from tagmap.errors import FillError, NoRowsError, ScanError
from tagmap.sql import (
    AsyncCursorRow,
    CursorRow,
    ValueReader,
    ValueWriter,
    scan_row,
    scan_row_async,
)
from tagmap.sql.cursor import assign, assign_row

# -- Test models --


@dataclass
class User:
    id: int = tagged(db="id", default=0)
    name: str = tagged(db="name", default="")


class Flag:
    """Driver-aware field type: stored as 0/1."""

    def __init__(self, on: bool = False) -> None:
        self.on = on

    def write(self, src: Any) -> None:
        self.on = src in (1, "1", "t", "true")

    def read(self) -> int:
        return 1 if self.on else 0


@dataclass
class Feature:
    name: str = tagged(db="name", default="")
    flag: Flag | None = tagged(db="flag", default=None)
    extra: dict[str, Any] = tagged(db="extra", default_factory=dict)


@dataclass
class Member:
    id: int = tagged(db="id", default=0)
    name: str = tagged(db="name", default="")
    joined: datetime = tagged(db="joined", default=datetime(2000, 1, 1, tzinfo=UTC))
    score: int = tagged(db="score", default=0)
    active: bool = tagged(db="active", default=False)


class FakeRow:
    """Row source recording the destinations it was handed."""

    def __init__(self, *values: Any) -> None:
        self.values = values
        self.dest: tuple[Any, ...] = ()

    def scan(self, *dest: Any) -> None:
        self.dest = dest
        assign_row(self.values, dest)


class AsyncFakeRow(FakeRow):
    async def scan(self, *dest: Any) -> None:  # type: ignore[override]
        FakeRow.scan(self, *dest)


class FailingRow:
    def scan(self, *dest: Any) -> None:
        raise RuntimeError("connection lost")


@pytest.fixture
def conn() -> Iterator[sqlite3.Connection]:
    db = sqlite3.connect(":memory:", check_same_thread=False)
    db.execute(
        "CREATE TABLE members (id INTEGER, name TEXT, joined TEXT, score TEXT, active INTEGER)"
    )
    db.execute(
        "INSERT INTO members VALUES (7, 'ann', '2024-05-01T10:00:00+00:00', '45', 1)"
    )
    yield db
    db.close()


# =============================================================================
# scan_row
# =============================================================================


class TestScanRow:
    def test_primitive_destinations(self) -> None:
        row = FakeRow(7, "ann")
        user = User()
        scan_row(row, user, "db", "id", "name")
        assert [d.type for d in row.dest] == [int, str]
        assert user == User(7, "ann")

    def test_field_names_without_scheme(self) -> None:
        user = User()
        scan_row(FakeRow("bo", 3), user, "", "name", "id")
        assert user == User(3, "bo")

    @pytest.mark.parametrize("keys", [(), ("*",)])
    def test_all_declared_fields(self, keys: tuple[str, ...]) -> None:
        user = User()
        scan_row(FakeRow(1, "x"), user, "db", *keys)
        assert user == User(1, "x")

    def test_unknown_key_is_dropped(self) -> None:
        user = User()
        scan_row(FakeRow(1, "ignored"), user, "db", "id", "bogus")
        assert user == User(1, "")

    def test_driver_values_are_coerced(self) -> None:
        user = User()
        scan_row(FakeRow("45", b"ann"), user, "db")
        assert user == User(45, "ann")

    def test_null_leaves_field_unchanged(self) -> None:
        user = User(5, "old")
        scan_row(FakeRow(None, "new"), user, "db")
        assert user == User(5, "new")

    def test_custom_field_type(self) -> None:
        feature = Feature()
        row = FakeRow("beta", 1)
        scan_row(row, feature, "db", "name", "flag")
        assert isinstance(row.dest[1], Flag)
        assert isinstance(feature.flag, Flag)
        assert feature.flag.on is True
        assert isinstance(feature.flag, ValueReader)
        assert isinstance(feature.flag, ValueWriter)

    def test_optional_field_holding_none_is_not_scanned(self) -> None:
        @dataclass
        class Scored:
            id: int = tagged(db="id", default=0)
            score: int | None = tagged(db="score", default=None)

        unseeded = Scored()
        scan_row(FakeRow(1, 45), unseeded, "db")
        assert unseeded == Scored(id=1, score=None)

        seeded = Scored(score=0)
        scan_row(FakeRow(1, 45), seeded, "db")
        assert seeded == Scored(id=1, score=45)

    def test_unrecognized_destination_is_dropped(self) -> None:
        feature = Feature()
        scan_row(FakeRow({"a": 1}), feature, "db", "extra")
        assert feature.extra == {}

    def test_row_error_propagates(self) -> None:
        user = User(1, "keep")
        with pytest.raises(RuntimeError, match="connection lost"):
            scan_row(FailingRow(), user, "db")
        assert user == User(1, "keep")

    def test_non_record(self) -> None:
        with pytest.raises(TypeError, match="not a dataclass instance"):
            scan_row(FakeRow(1), {"id": 0}, "db", "id")

    def test_fill_error_after_scan(self) -> None:
        # Destinations follow the current value, not the annotation.
        user = User(id="abc")  # type: ignore[arg-type]
        with pytest.raises(FillError):
            scan_row(FakeRow("x", "ann"), user, "db")
        assert user.name == "ann"

    def test_driver_conversion_error(self) -> None:
        with pytest.raises(ScanError, match="cannot scan str value 'x' into int"):
            scan_row(FakeRow("x", "ann"), User(), "db")


# =============================================================================
# DB-API cursors
# =============================================================================


class TestCursorRow:
    def test_sqlite_row(self, conn: sqlite3.Connection) -> None:
        member = Member()
        cursor = conn.execute("SELECT id, name, joined, score, active FROM members")
        scan_row(CursorRow(cursor), member, "db")
        assert member == Member(
            id=7,
            name="ann",
            joined=datetime(2024, 5, 1, 10, tzinfo=UTC),
            score=45,
            active=True,
        )

    def test_no_rows(self, conn: sqlite3.Connection) -> None:
        member = Member()
        cursor = conn.execute("SELECT id FROM members WHERE id = 99")
        with pytest.raises(NoRowsError, match="no rows in result set"):
            scan_row(CursorRow(cursor), member, "db", "id")
        assert member == Member()

    def test_column_count_mismatch(self, conn: sqlite3.Connection) -> None:
        cursor = conn.execute("SELECT id FROM members")
        with pytest.raises(ScanError, match="expected 1 destination arguments in scan, not 2"):
            scan_row(CursorRow(cursor), Member(), "db", "id", "name")

    def test_one_row_per_scan(self, conn: sqlite3.Connection) -> None:
        conn.execute("INSERT INTO members (id, name) VALUES (8, 'bo')")
        cursor = conn.execute("SELECT id, name FROM members ORDER BY id")
        row = CursorRow(cursor)
        first, second = User(), User()
        scan_row(row, first, "db")
        scan_row(row, second, "db")
        assert (first, second) == (User(7, "ann"), User(8, "bo"))


class TestAssign:
    def test_ref_destination(self) -> None:
        ref = Ref(int)
        assign(ref, "12")
        assert ref.value == 12

    def test_writer_destination(self) -> None:
        flag = Flag()
        assign(flag, "t")
        assert flag.on is True

    def test_unsupported_destination(self) -> None:
        with pytest.raises(ScanError, match="unsupported scan destination"):
            assign(object(), 1)


# =============================================================================
# Async
# =============================================================================


class TestAsyncScan:
    @pytest.mark.anyio
    async def test_async_row_source(self) -> None:
        row = AsyncFakeRow(9, "cy")
        user = User()
        await scan_row_async(row, user, "db")
        assert user == User(9, "cy")

    @pytest.mark.anyio
    async def test_async_cursor_row(self, conn: sqlite3.Connection) -> None:
        user = User()
        cursor = conn.execute("SELECT id, name FROM members")
        await scan_row_async(AsyncCursorRow(cursor), user, "db", "id", "name")
        assert user == User(7, "ann")

    @pytest.mark.anyio
    async def test_async_no_rows(self, conn: sqlite3.Connection) -> None:
        cursor = conn.execute("SELECT id, name FROM members WHERE id = 0")
        with pytest.raises(NoRowsError):
            await scan_row_async(AsyncCursorRow(cursor), User(), "db")
