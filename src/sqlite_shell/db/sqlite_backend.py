"""SQLite implementation of the Database protocol.

Thin wrapper around aiosqlite.Connection. The wrapped connection runs with
``isolation_level=None`` so transactions are only ever opened explicitly.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any

from sqlite_shell.errors import InvalidIdentifierError

if TYPE_CHECKING:
    import aiosqlite

    from sqlite_shell.db.backend import Cursor, Row

logger = logging.getLogger(__name__)

# Progress handler granularity, in SQLite virtual machine instructions
_PROGRESS_STEPS = 1000


def quote_identifier(name: str) -> str:
    """Quote a table or column name for use in SQL text.

    Wraps the name in double quotes and doubles any embedded quote.
    """
    if not isinstance(name, str) or not name.strip():
        raise InvalidIdentifierError(f"Invalid identifier: {name!r}")
    if "\x00" in name:
        raise InvalidIdentifierError(f"Identifier contains NUL: {name!r}")
    return '"' + name.replace('"', '""') + '"'


class SQLiteCursor:
    """Wraps aiosqlite.Cursor to satisfy the Cursor protocol."""

    def __init__(self, cursor: aiosqlite.Cursor) -> None:
        """Initialize with an aiosqlite cursor."""
        self._cursor = cursor

    @property
    def rowcount(self) -> int:
        """Number of rows affected by the last operation."""
        rc = self._cursor.rowcount
        return rc if rc is not None else -1

    @property
    def description(self) -> list[str] | None:
        """Result column names, or None for statements that return no rows."""
        desc = self._cursor.description
        if desc is None:
            return None
        return [d[0] for d in desc]

    async def fetchone(self) -> Row | None:
        """Fetch the next row, or None if exhausted."""
        return await self._cursor.fetchone()

    async def fetchall(self) -> list[Row]:
        """Fetch all remaining rows."""
        return list(await self._cursor.fetchall())


class SQLiteBackend:
    """SQLite implementation of the Database protocol.

    Passes all calls through to the underlying aiosqlite.Connection and adds
    the schema lookups the bulk copy and tool layers need.
    """

    def __init__(self, conn: aiosqlite.Connection, data_source: str) -> None:
        """Initialize with an aiosqlite connection and its data source."""
        self._conn = conn
        self.data_source = data_source

    def __repr__(self) -> str:
        return f"SQLiteBackend({self.data_source!r})"

    @property
    def in_transaction(self) -> bool:
        """True while a transaction is open."""
        return self._conn.in_transaction

    async def execute(
        self, sql: str, params: tuple[Any, ...] | list[Any] | dict[str, Any] = ()
    ) -> Cursor:
        """Execute a single SQL statement and return a cursor."""
        logger.debug("execute: %s", sql)
        cursor = await self._conn.execute(sql, params)
        return SQLiteCursor(cursor)

    async def executemany(self, sql: str, params_seq: list[Any]) -> None:
        """Execute a SQL statement for each set of parameters."""
        await self._conn.executemany(sql, params_seq)

    async def executescript(self, sql: str) -> None:
        """Execute multiple SQL statements without parameters."""
        await self._conn.executescript(sql)

    async def begin(self) -> None:
        """Open a deferred transaction."""
        await self._conn.execute("BEGIN")

    async def commit(self) -> None:
        """Commit the current transaction."""
        await self._conn.commit()

    async def rollback(self) -> None:
        """Roll back the current transaction."""
        await self._conn.rollback()

    async def set_deadline(self, seconds: float) -> None:
        """Abort any statement still running ``seconds`` from now.

        A running statement is interrupted with ``sqlite3.OperationalError``.
        """
        deadline = time.monotonic() + seconds

        def _expired() -> int:
            return 1 if time.monotonic() >= deadline else 0

        await self._conn.set_progress_handler(_expired, _PROGRESS_STEPS)

    async def clear_deadline(self) -> None:
        """Remove a deadline installed by set_deadline()."""
        await self._conn.set_progress_handler(None, _PROGRESS_STEPS)

    async def close(self) -> None:
        """Close the database connection."""
        await self._conn.close()
        logger.debug("Closed SQLite connection to %s", self.data_source)

    # -- Schema --

    async def list_tables(self) -> list[str]:
        """Return user table names in alphabetical order."""
        cursor = await self._conn.execute(
            "SELECT name FROM sqlite_master"
            " WHERE type = 'table' AND name NOT LIKE 'sqlite_%'"
            " ORDER BY name"
        )
        rows = await cursor.fetchall()
        return [row[0] for row in rows]

    async def table_exists(self, table: str) -> bool:
        """Return True if the table (or view) exists, ignoring case."""
        cursor = await self._conn.execute(
            "SELECT 1 FROM sqlite_master"
            " WHERE type IN ('table', 'view') AND name = ? COLLATE NOCASE",
            (table,),
        )
        return await cursor.fetchone() is not None

    async def table_columns(self, table: str) -> list[tuple[str, str]]:
        """Return ``(name, declared_type)`` pairs in column order."""
        cursor = await self._conn.execute(f"PRAGMA table_info({quote_identifier(table)})")
        rows = await cursor.fetchall()
        # PRAGMA table_info: (cid, name, type, notnull, dflt_value, pk)
        return [(row[1], row[2]) for row in rows]
