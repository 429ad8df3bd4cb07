# --- Sheet store: row-oriented tables on top of SQLite ---
import json
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Optional

import aiosqlite

from .errors import ConflictError, NotFoundError, PersistenceError, StaleWriteError
from .logging_config import get_logger

log = get_logger(__name__)

HEADER_ROW = 1
BODY_START_ROW = 2


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _encode(row: list) -> str:
    return json.dumps(list(row))


def _decode(sheet: str, row_no: int, cells: str) -> list:
    try:
        value = json.loads(cells)
    except ValueError as e:
        log.error("Malformed row %s in sheet %s: %s", row_no, sheet, e)
        raise PersistenceError("Sheet store returned unusable data") from e
    if not isinstance(value, list):
        log.error("Malformed row %s in sheet %s: not a list of cells", row_no, sheet)
        raise PersistenceError("Sheet store returned unusable data")
    return value


class SheetStore:
    """
    A spreadsheet-like store: named sheets holding numbered rows of cells.

    Row 1 of a sheet is its header; data starts at row 2. Every sheet carries a
    version token bumped on each write, so callers can do compare-and-swap
    updates with ``get_table_versioned`` + ``replace_body``.

    One store is built per process from configuration and handed to whoever
    needs it; each call opens its own short-lived connection.
    """

    def __init__(self, db_path: str = "group_rank.sqlite"):
        self.db_path = db_path
        self._uri = db_path.startswith("file:")
        # Shared in-memory databases vanish once the last connection closes
        self._keeper: Optional[aiosqlite.Connection] = None

    @asynccontextmanager
    async def _connect(self) -> AsyncIterator[aiosqlite.Connection]:
        try:
            async with aiosqlite.connect(self.db_path, uri=self._uri) as db:
                yield db
        except aiosqlite.Error as e:
            log.exception("Sheet store failure db=%s", self.db_path)
            raise PersistenceError("Sheet store unavailable") from e

    async def init(self) -> None:
        """Create the backing tables if missing."""
        if self._uri and "memory" in self.db_path and self._keeper is None:
            try:
                self._keeper = await aiosqlite.connect(self.db_path, uri=True)
            except aiosqlite.Error as e:
                log.exception("Could not open in-memory sheet store")
                raise PersistenceError("Sheet store unavailable") from e
        async with self._connect() as db:
            await db.execute(
                """
                CREATE TABLE IF NOT EXISTS sheets (
                    title TEXT PRIMARY KEY,
                    version INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT NOT NULL
                )
                """
            )
            await db.execute(
                """
                CREATE TABLE IF NOT EXISTS sheet_rows (
                    sheet TEXT NOT NULL,
                    row_no INTEGER NOT NULL,
                    cells TEXT NOT NULL,
                    PRIMARY KEY (sheet, row_no)
                )
                """
            )
            await db.commit()
        log.debug("Sheet store ready db=%s", self.db_path)

    async def close(self) -> None:
        if self._keeper is not None:
            await self._keeper.close()
            self._keeper = None

    # --- Sheet metadata ---

    async def sheet_exists(self, title: str) -> bool:
        async with self._connect() as db:
            async with db.execute("SELECT 1 FROM sheets WHERE title = ?", (title,)) as cursor:
                row = await cursor.fetchone()
        exists = row is not None
        log.debug("sheet_exists title=%s -> %s", title, exists)
        return exists

    async def list_sheets(self) -> list[str]:
        async with self._connect() as db:
            async with db.execute("SELECT title FROM sheets ORDER BY created_at, title") as cursor:
                rows = await cursor.fetchall()
        return [r[0] for r in rows]

    async def _version(self, db: aiosqlite.Connection, title: str) -> int:
        async with db.execute("SELECT version FROM sheets WHERE title = ?", (title,)) as cursor:
            row = await cursor.fetchone()
        if row is None:
            raise NotFoundError(f"Sheet {title} not found")
        return int(row[0])

    async def _bump(self, db: aiosqlite.Connection, title: str) -> None:
        cursor = await db.execute("UPDATE sheets SET version = version + 1 WHERE title = ?", (title,))
        if cursor.rowcount == 0:
            raise NotFoundError(f"Sheet {title} not found")

    # --- Reads ---

    async def get_table_versioned(self, title: str) -> tuple[list[list], int]:
        """All rows of a sheet (header included) and its current version."""
        async with self._connect() as db:
            version = await self._version(db, title)
            async with db.execute(
                "SELECT row_no, cells FROM sheet_rows WHERE sheet = ? ORDER BY row_no",
                (title,),
            ) as cursor:
                rows = await cursor.fetchall()
        out = [_decode(title, r[0], r[1]) for r in rows]
        log.debug("get_table title=%s rows=%s version=%s", title, len(out), version)
        return out, version

    async def get_table(self, title: str) -> list[list]:
        rows, _ = await self.get_table_versioned(title)
        return rows

    # --- Writes ---

    async def create_table(self, title: str, header_row: list, rows: Optional[list[list]] = None) -> None:
        """
        Add a new sheet with its header row and, optionally, its first data rows.

        The sheet, header and rows are written in one transaction: if any part
        fails, no sheet is left behind.

        Raises:
            ConflictError: the title is taken
        """
        rows = rows or []
        async with self._connect() as db:
            try:
                await db.execute(
                    "INSERT INTO sheets (title, version, created_at) VALUES (?, 0, ?)",
                    (title, _now()),
                )
            except aiosqlite.IntegrityError as e:
                raise ConflictError(f"Sheet {title} already exists") from e
            await db.executemany(
                "INSERT INTO sheet_rows (sheet, row_no, cells) VALUES (?, ?, ?)",
                [(title, HEADER_ROW, _encode(header_row))]
                + [(title, BODY_START_ROW + i, _encode(row)) for i, row in enumerate(rows)],
            )
            await db.commit()
        log.debug("Created sheet title=%s header=%s rows=%s", title, header_row, len(rows))

    async def write_range(self, title: str, rows: list[list], start_row: int = BODY_START_ROW) -> None:
        """Overwrite consecutive rows starting at start_row; rows past the range are kept."""
        async with self._connect() as db:
            await self._bump(db, title)
            await db.executemany(
                "INSERT OR REPLACE INTO sheet_rows (sheet, row_no, cells) VALUES (?, ?, ?)",
                [(title, start_row + i, _encode(row)) for i, row in enumerate(rows)],
            )
            await db.commit()
        log.debug("write_range title=%s start=%s rows=%s", title, start_row, len(rows))

    async def clear_range(self, title: str, start_row: int = BODY_START_ROW) -> None:
        """Delete every row from start_row down."""
        async with self._connect() as db:
            await self._bump(db, title)
            await db.execute(
                "DELETE FROM sheet_rows WHERE sheet = ? AND row_no >= ?",
                (title, start_row),
            )
            await db.commit()
        log.debug("clear_range title=%s start=%s", title, start_row)

    async def append_row(self, title: str, row: list, header_row: Optional[list] = None) -> int:
        """
        Append a row after the last one and return its row number.
        The sheet is created on first use, with header_row when given.
        """
        async with self._connect() as db:
            cursor = await db.execute(
                "INSERT OR IGNORE INTO sheets (title, version, created_at) VALUES (?, 0, ?)",
                (title, _now()),
            )
            if cursor.rowcount and header_row is not None:
                await db.execute(
                    "INSERT INTO sheet_rows (sheet, row_no, cells) VALUES (?, ?, ?)",
                    (title, HEADER_ROW, _encode(header_row)),
                )
            await self._bump(db, title)
            async with db.execute(
                "SELECT COALESCE(MAX(row_no), 0) FROM sheet_rows WHERE sheet = ?", (title,)
            ) as c:
                (last,) = await c.fetchone()
            row_no = max(int(last) + 1, BODY_START_ROW)
            await db.execute(
                "INSERT INTO sheet_rows (sheet, row_no, cells) VALUES (?, ?, ?)",
                (title, row_no, _encode(row)),
            )
            await db.commit()
        log.debug("append_row title=%s row_no=%s", title, row_no)
        return row_no

    async def replace_body(self, title: str, rows: list[list], expected_version: int) -> int:
        """
        Atomically swap every data row of a sheet, but only if nobody wrote to it
        since expected_version was read. Returns the new version.

        Raises:
            StaleWriteError: the sheet changed in between
            NotFoundError: the sheet does not exist
        """
        async with self._connect() as db:
            cursor = await db.execute(
                "UPDATE sheets SET version = version + 1 WHERE title = ? AND version = ?",
                (title, expected_version),
            )
            if cursor.rowcount == 0:
                current = await self._version(db, title)
                await db.rollback()
                log.debug("Stale write title=%s expected=%s current=%s", title, expected_version, current)
                raise StaleWriteError(f"Sheet {title} changed during update")
            await db.execute(
                "DELETE FROM sheet_rows WHERE sheet = ? AND row_no >= ?",
                (title, BODY_START_ROW),
            )
            await db.executemany(
                "INSERT INTO sheet_rows (sheet, row_no, cells) VALUES (?, ?, ?)",
                [(title, BODY_START_ROW + i, _encode(row)) for i, row in enumerate(rows)],
            )
            await db.commit()
        log.debug("replace_body title=%s rows=%s version=%s", title, len(rows), expected_version + 1)
        return expected_version + 1

    async def rows_matching(self, title: str, column: int, value: Any, limit: Optional[int] = None) -> list[list]:
        """
        Data rows whose cell at `column` equals value, newest first, at most
        `limit` of them. Filtering happens in SQLite, so only matching rows are
        read. Missing sheet -> [].
        """
        if limit is not None and limit <= 0:
            return []
        async with self._connect() as db:
            async with db.execute(
                """
                SELECT row_no, cells FROM sheet_rows
                WHERE sheet = ? AND row_no >= ?
                  AND CASE WHEN json_valid(cells) THEN json_extract(cells, ?) END = ?
                ORDER BY row_no DESC
                LIMIT ?
                """,
                (title, BODY_START_ROW, f"$[{int(column)}]", value, -1 if limit is None else int(limit)),
            ) as cursor:
                rows = await cursor.fetchall()
        out = [_decode(title, r[0], r[1]) for r in rows]
        log.debug("rows_matching title=%s column=%s limit=%s -> %s", title, column, limit, len(out))
        return out
