"""Transactional bulk load of tabular data into an existing table."""

import logging
import re
import sqlite3
from collections.abc import Callable, Iterable, Sequence
from enum import StrEnum
from typing import Any

from sqlite_shell.config import get_notify_after
from sqlite_shell.convert import to_data_table
from sqlite_shell.db.sqlite_backend import SQLiteBackend, quote_identifier
from sqlite_shell.errors import BulkCopyError, SchemaMismatchError, SqliteShellError
from sqlite_shell.models.table import DataTable
from sqlite_shell.typemap import declared_type, to_sqlite

logger = logging.getLogger(__name__)

_NON_WORD_RE = re.compile(r"\W")


class ConflictClause(StrEnum):
    """SQLite ON CONFLICT algorithm applied to each insert."""

    ROLLBACK = "rollback"
    ABORT = "abort"
    FAIL = "fail"
    IGNORE = "ignore"
    REPLACE = "replace"


def parameter_names(columns: Sequence[str]) -> list[str]:
    """Derive one unique bind-parameter name per column.

    Non-word characters become ``_``, names that would start with a digit
    (or are empty) get a ``p`` prefix, and case-insensitive duplicates get
    ``_2``, ``_3``... suffixes.
    """
    names: list[str] = []
    seen: set[str] = set()
    for col in columns:
        base = _NON_WORD_RE.sub("_", col)
        if not base or base[0].isdigit():
            base = f"p{base}"
        candidate = base
        suffix = 2
        while candidate.lower() in seen:
            candidate = f"{base}_{suffix}"
            suffix += 1
        seen.add(candidate.lower())
        names.append(candidate)
    return names


def build_insert(
    table: str,
    columns: Sequence[str],
    conflict: ConflictClause | str | None = None,
) -> tuple[str, list[str]]:
    """Build the INSERT statement and its parameter names."""
    if not columns:
        raise ValueError("Cannot build an INSERT without columns")
    params = parameter_names(columns)
    verb = "INSERT"
    if conflict is not None:
        verb = f"INSERT OR {ConflictClause(conflict).value.upper()}"
    col_list = ", ".join(quote_identifier(c) for c in columns)
    placeholders = ", ".join(f"@{p}" for p in params)
    sql = f"{verb} INTO {quote_identifier(table)} ({col_list}) VALUES ({placeholders})"
    return sql, params


def build_create_table(table: str, data: DataTable) -> str:
    """Build a CREATE TABLE statement from a DataTable's columns."""
    defs: list[str] = []
    for col in data.columns:
        parts = [quote_identifier(col.name)]
        decl = declared_type(col.data_type)
        if decl:
            parts.append(decl)
        if not col.allow_null:
            parts.append("NOT NULL")
        defs.append(" ".join(parts))
    return f"CREATE TABLE {quote_identifier(table)} ({', '.join(defs)})"


async def _prepare_table(
    db: SQLiteBackend, table: str, data: DataTable, *, create: bool, check_columns: bool
) -> None:
    if not await db.table_exists(table):
        if not create:
            raise SchemaMismatchError(f"Table '{table}' does not exist in {db.data_source}")
        await db.execute(build_create_table(table, data))
        logger.info("Created table %s with %d columns", table, len(data.columns))
        return
    if not check_columns:
        return

    existing = {name.lower() for name, _ in await db.table_columns(table)}
    missing = [c for c in data.column_names if c.lower() not in existing]
    if missing:
        raise SchemaMismatchError(f"Columns not in table '{table}': {', '.join(missing)}")


async def bulk_copy(
    db: SQLiteBackend,
    table: str,
    data: DataTable | Iterable[Any],
    *,
    conflict: ConflictClause | str | None = None,
    notify_after: int | None = None,
    force: bool = False,
    create: bool = False,
    on_progress: Callable[[int], None] | None = None,
) -> int:
    """Insert every row of ``data`` into ``table`` inside one transaction.

    The first failing row rolls back the whole load and raises
    BulkCopyError. ``force`` skips the column check against the target
    table; ``create`` creates a missing table from the data's columns.
    Returns the number of rows processed (rows skipped by
    ``conflict="ignore"`` included).
    """
    if not isinstance(data, DataTable):
        data = to_data_table(data, name=table)
    if not data.rows:
        logger.info("Nothing to copy into %s", table)
        return 0
    if db.in_transaction:
        raise SqliteShellError("Bulk copy needs its own transaction; commit or roll back first")

    if notify_after is None:
        notify_after = get_notify_after()

    sql, params = build_insert(table, data.column_names, conflict)
    logger.debug("bulk copy statement: %s", sql)

    await db.begin()
    count = 0
    try:
        await _prepare_table(db, table, data, create=create, check_columns=not force)
        for count, row in enumerate(data.rows, start=1):
            values = {p: to_sqlite(v) for p, v in zip(params, row, strict=True)}
            try:
                await db.execute(sql, values)
            except sqlite3.Error as e:
                raise BulkCopyError(
                    f"Row {count - 1} failed to insert into '{table}': {e}",
                    row_index=count - 1,
                    table=table,
                ) from e
            if notify_after > 0 and count % notify_after == 0:
                logger.info("Copied %d rows into %s", count, table)
                if on_progress is not None:
                    on_progress(count)
        await db.commit()
    except BaseException:
        if db.in_transaction:
            logger.warning("Rolling back bulk copy into %s after %d rows", table, count)
            await db.rollback()
        raise

    logger.info("Bulk copy into %s complete: %d rows", table, count)
    return count
