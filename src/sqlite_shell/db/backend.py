"""Database backend protocol — thin abstraction over async DB connections.

Library code programs against these protocols. The only concrete backend
is SQLite; the protocols keep the query and bulk copy layers testable
against fakes and free of aiosqlite specifics.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Row(Protocol):
    """A database row supporting both named and positional access."""

    def __getitem__(self, key: str | int) -> Any:
        """Get a column value by name or position."""
        ...

    def keys(self) -> Any:
        """Return column names."""
        ...


@runtime_checkable
class Cursor(Protocol):
    """Async cursor returned by Database.execute()."""

    @property
    def rowcount(self) -> int:
        """Number of rows affected by the last operation."""
        ...

    @property
    def description(self) -> list[str] | None:
        """Result column names, or None for statements that return no rows."""
        ...

    async def fetchone(self) -> Row | None:
        """Fetch the next row, or None if exhausted."""
        ...

    async def fetchall(self) -> list[Row]:
        """Fetch all remaining rows."""
        ...


@runtime_checkable
class Database(Protocol):
    """Async database connection.

    SQL uses SQLite syntax with ``?`` or ``:name`` / ``@name`` / ``$name``
    placeholders. The connection runs in autocommit mode: statements outside
    an explicit ``begin()`` commit on their own.
    """

    data_source: str

    @property
    def in_transaction(self) -> bool:
        """True while an explicit or implicit transaction is open."""
        ...

    async def execute(
        self, sql: str, params: tuple[Any, ...] | list[Any] | dict[str, Any] = ()
    ) -> Cursor:
        """Execute a single SQL statement and return a cursor."""
        ...

    async def executemany(self, sql: str, params_seq: list[Any]) -> None:
        """Execute a SQL statement for each set of parameters."""
        ...

    async def executescript(self, sql: str) -> None:
        """Execute multiple SQL statements without parameters."""
        ...

    async def begin(self) -> None:
        """Open a transaction."""
        ...

    async def commit(self) -> None:
        """Commit the current transaction."""
        ...

    async def rollback(self) -> None:
        """Roll back the current transaction."""
        ...

    async def set_deadline(self, seconds: float) -> None:
        """Abort any statement still running ``seconds`` from now."""
        ...

    async def clear_deadline(self) -> None:
        """Remove a deadline installed by set_deadline()."""
        ...

    async def close(self) -> None:
        """Close the database connection."""
        ...
