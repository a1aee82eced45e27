"""rsvp_sheet.store

Tabular store backends for the RSVP sheet.

Every backend exposes the same row-level surface (TabularStore): row 1 is
the header, data starts at row 2, rows and columns are 1-indexed. Backend
failures of any kind are re-raised as PersistenceError so callers have a
single error type to handle.

Backends:
  MemoryStore   — list of lists; dry runs and tests
  CsvStore      — one CSV file per sheet, whole-file atomic rewrites
  PostgresStore — rows as jsonb arrays in sheet_row (migrations/0001)
"""

from __future__ import annotations

import csv
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Protocol, Sequence

import psycopg
from psycopg.types.json import Jsonb


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class PersistenceError(Exception):
    """Raised when the store cannot be read or a write is rejected."""


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------

class TabularStore(Protocol):
    sheet_name: str

    def exists(self) -> bool: ...

    def create(self) -> None: ...

    def get_values(self) -> list[list[str]]: ...

    def append_row(self, values: Sequence[str]) -> int: ...

    def update_row(self, row_number: int, values: Sequence[str]) -> None: ...

    def read_cell(self, row_number: int, column_number: int) -> str: ...

    def close(self) -> None: ...


def _cell(rows: list[list[str]], row_number: int, column_number: int) -> str:
    if row_number < 1 or row_number > len(rows):
        raise PersistenceError(f"row {row_number} is out of range (1..{len(rows)})")
    row = rows[row_number - 1]
    if column_number < 1:
        raise PersistenceError(f"column {column_number} is out of range")
    return row[column_number - 1] if column_number <= len(row) else ""


def _check_row_number(row_number: int, row_count: int) -> None:
    if row_number < 1 or row_number > row_count:
        raise PersistenceError(f"row {row_number} is out of range (1..{row_count})")


# ---------------------------------------------------------------------------
# MemoryStore
# ---------------------------------------------------------------------------

class MemoryStore:
    """In-process sheet. `rows` is None until the sheet is created."""

    def __init__(self, sheet_name: str = "RSVP Responses", rows: list[list[str]] | None = None) -> None:
        self.sheet_name = sheet_name
        self.rows = [list(r) for r in rows] if rows is not None else None

    def _require(self) -> list[list[str]]:
        if self.rows is None:
            raise PersistenceError(f"sheet {self.sheet_name!r} does not exist")
        return self.rows

    def exists(self) -> bool:
        return self.rows is not None

    def create(self) -> None:
        if self.rows is None:
            self.rows = []

    def get_values(self) -> list[list[str]]:
        return [list(r) for r in self._require()]

    def append_row(self, values: Sequence[str]) -> int:
        rows = self._require()
        rows.append([str(v) for v in values])
        return len(rows)

    def update_row(self, row_number: int, values: Sequence[str]) -> None:
        rows = self._require()
        _check_row_number(row_number, len(rows))
        rows[row_number - 1] = [str(v) for v in values]

    def read_cell(self, row_number: int, column_number: int) -> str:
        return _cell(self._require(), row_number, column_number)

    def close(self) -> None:
        pass


# ---------------------------------------------------------------------------
# CsvStore
# ---------------------------------------------------------------------------

@contextmanager
def _io_errors(action: str) -> Iterator[None]:
    try:
        yield
    except (OSError, UnicodeError, csv.Error) as exc:
        raise PersistenceError(f"{action} failed: {exc}") from exc


class CsvStore:
    """Sheet persisted as a UTF-8 CSV file.

    Updates rewrite the file through a temp file in the same directory and
    os.replace, so a reader never observes a half-written row. A leading
    UTF-8 BOM (spreadsheet exports) is accepted on read and not written back.
    """

    def __init__(self, path: Path, sheet_name: str = "RSVP Responses") -> None:
        self.path = Path(path)
        self.sheet_name = sheet_name

    def exists(self) -> bool:
        return self.path.exists()

    def create(self) -> None:
        with _io_errors(f"creating {self.path}"):
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.touch(exist_ok=True)

    def _read(self) -> list[list[str]]:
        if not self.path.exists():
            raise PersistenceError(f"sheet file {self.path} does not exist")
        with _io_errors(f"reading {self.path}"):
            with self.path.open(newline="", encoding="utf-8-sig") as fh:
                return [row for row in csv.reader(fh)]

    def _write(self, rows: list[list[str]]) -> None:
        with _io_errors(f"writing {self.path}"):
            fd, tmp = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
            )
            try:
                with os.fdopen(fd, "w", newline="", encoding="utf-8") as fh:
                    csv.writer(fh).writerows(rows)
                os.replace(tmp, self.path)
            except BaseException:
                Path(tmp).unlink(missing_ok=True)
                raise

    def get_values(self) -> list[list[str]]:
        return self._read()

    def append_row(self, values: Sequence[str]) -> int:
        rows = self._read()
        rows.append([str(v) for v in values])
        self._write(rows)
        return len(rows)

    def update_row(self, row_number: int, values: Sequence[str]) -> None:
        rows = self._read()
        _check_row_number(row_number, len(rows))
        rows[row_number - 1] = [str(v) for v in values]
        self._write(rows)

    def read_cell(self, row_number: int, column_number: int) -> str:
        return _cell(self._read(), row_number, column_number)

    def close(self) -> None:
        pass


# ---------------------------------------------------------------------------
# PostgresStore
# ---------------------------------------------------------------------------

@contextmanager
def _db_errors(action: str) -> Iterator[None]:
    try:
        yield
    except psycopg.Error as exc:
        raise PersistenceError(f"{action} failed: {exc}") from exc


class PostgresStore:
    """Sheet persisted in PostgreSQL (tables sheet, sheet_row).

    Each call runs in its own transaction block, so pass a connection that
    is not already inside one (autocommit connections are simplest; see
    PostgresStore.connect).
    """

    def __init__(self, conn: psycopg.Connection, sheet_name: str = "RSVP Responses") -> None:
        self._conn = conn
        self.sheet_name = sheet_name

    @classmethod
    def connect(cls, dsn: str, sheet_name: str = "RSVP Responses") -> PostgresStore:
        with _db_errors("connecting to store"):
            conn = psycopg.connect(dsn, autocommit=True)
        return cls(conn, sheet_name)

    def close(self) -> None:
        self._conn.close()

    def exists(self) -> bool:
        with _db_errors(f"looking up sheet {self.sheet_name!r}"):
            with self._conn.transaction():
                row = self._conn.execute(
                    "SELECT 1 FROM sheet WHERE name = %s", (self.sheet_name,)
                ).fetchone()
        return row is not None

    def create(self) -> None:
        with _db_errors(f"creating sheet {self.sheet_name!r}"):
            with self._conn.transaction():
                self._conn.execute(
                    "INSERT INTO sheet (name) VALUES (%s) ON CONFLICT (name) DO NOTHING",
                    (self.sheet_name,),
                )

    def get_values(self) -> list[list[str]]:
        with _db_errors(f"reading sheet {self.sheet_name!r}"):
            with self._conn.transaction():
                rows = self._conn.execute(
                    "SELECT cells FROM sheet_row WHERE sheet_name = %s ORDER BY row_num",
                    (self.sheet_name,),
                ).fetchall()
        return [[str(c) for c in r[0]] for r in rows]

    def append_row(self, values: Sequence[str]) -> int:
        cells = Jsonb([str(v) for v in values])
        with _db_errors(f"appending to sheet {self.sheet_name!r}"):
            with self._conn.transaction():
                # Row-level lock on the sheet serializes row_num allocation.
                locked = self._conn.execute(
                    "SELECT 1 FROM sheet WHERE name = %s FOR UPDATE", (self.sheet_name,)
                ).fetchone()
                if locked is None:
                    raise PersistenceError(f"sheet {self.sheet_name!r} does not exist")
                row = self._conn.execute(
                    """
                    INSERT INTO sheet_row (sheet_name, row_num, cells)
                    SELECT %s, COALESCE(MAX(row_num), 0) + 1, %s
                    FROM sheet_row
                    WHERE sheet_name = %s
                    RETURNING row_num
                    """,
                    (self.sheet_name, cells, self.sheet_name),
                ).fetchone()
        return int(row[0])

    def update_row(self, row_number: int, values: Sequence[str]) -> None:
        cells = Jsonb([str(v) for v in values])
        with _db_errors(f"updating row {row_number} of sheet {self.sheet_name!r}"):
            with self._conn.transaction():
                cur = self._conn.execute(
                    """
                    UPDATE sheet_row
                    SET cells = %s, updated_at = now()
                    WHERE sheet_name = %s AND row_num = %s
                    """,
                    (cells, self.sheet_name, row_number),
                )
                if cur.rowcount != 1:
                    raise PersistenceError(
                        f"row {row_number} does not exist in sheet {self.sheet_name!r}"
                    )

    def read_cell(self, row_number: int, column_number: int) -> str:
        if column_number < 1:
            raise PersistenceError(f"column {column_number} is out of range")
        with _db_errors(f"reading row {row_number} of sheet {self.sheet_name!r}"):
            with self._conn.transaction():
                row = self._conn.execute(
                    """
                    SELECT cells ->> (%s::int)
                    FROM sheet_row
                    WHERE sheet_name = %s AND row_num = %s
                    """,
                    (column_number - 1, self.sheet_name, row_number),
                ).fetchone()
        if row is None:
            raise PersistenceError(
                f"row {row_number} does not exist in sheet {self.sheet_name!r}"
            )
        return row[0] if row[0] is not None else ""
