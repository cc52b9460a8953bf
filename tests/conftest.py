"""Shared test fixtures."""

import pytest
import pytest_asyncio

from sqlite_shell.db.connection import open_connection


@pytest_asyncio.fixture
async def db():
    """In-memory database connection."""
    conn = await open_connection(":memory:")
    yield conn
    await conn.close()


@pytest_asyncio.fixture
async def people(db):
    """In-memory database with a small ``people`` table."""
    await db.execute(
        "CREATE TABLE people (id INTEGER PRIMARY KEY, name TEXT NOT NULL, age INTEGER)"
    )
    await db.executemany(
        "INSERT INTO people (id, name, age) VALUES (?, ?, ?)",
        [(1, "Ada", 36), (2, "Linus", None)],
    )
    return db


@pytest.fixture
def count_rows():
    """Async helper returning the number of rows in a table."""

    async def _count(db, table: str) -> int:
        cursor = await db.execute(f'SELECT COUNT(*) FROM "{table}"')
        row = await cursor.fetchone()
        return row[0]

    return _count
