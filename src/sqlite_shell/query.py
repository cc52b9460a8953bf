"""Parameterized query execution and result shaping."""

import logging
import re
import sqlite3
import time
from collections.abc import Mapping, Sequence
from enum import StrEnum
from pathlib import Path
from typing import Any

from sqlite_shell.config import get_query_timeout
from sqlite_shell.convert import rows_to_table, to_records
from sqlite_shell.db.backend import Database, Row
from sqlite_shell.errors import QueryTimeoutError
from sqlite_shell.models.table import DataTable
from sqlite_shell.typemap import to_sqlite

logger = logging.getLogger(__name__)

DATA_SOURCE_COLUMN = "DataSource"

_PARAM_MARKERS = ("@", ":", "$")
_PARAM_NAME_RE = re.compile(r"\w+")


class ResultFormat(StrEnum):
    """Shape of the value returned by invoke_query()."""

    DATASET = "dataset"
    DATATABLE = "datatable"
    DATAROW = "datarow"
    OBJECT = "object"
    SINGLE_VALUE = "single_value"


Parameters = Mapping[str, Any] | Sequence[Any] | None
StatementResult = tuple[list[str], list[Row]]


def sanitize_parameter_name(name: str) -> str:
    """Strip the placeholder marker from a parameter name.

    ``@id``, ``:id``, ``$id`` and ``id`` all bind ``:id`` / ``@id`` / ``$id``
    placeholders, since the driver ignores the marker when binding by name.
    """
    stripped = name[1:] if name[:1] in _PARAM_MARKERS else name
    if not _PARAM_NAME_RE.fullmatch(stripped):
        raise ValueError(f"Invalid parameter name: {name!r}")
    return stripped


def normalize_parameters(params: Any) -> dict[str, Any] | tuple[Any, ...]:
    """Convert caller parameters to something the driver binds."""
    if params is None:
        return ()
    if isinstance(params, Mapping):
        named: dict[str, Any] = {}
        for key, value in params.items():
            clean = sanitize_parameter_name(str(key))
            if clean in named:
                raise ValueError(f"Duplicate parameter after sanitizing: {key!r}")
            named[clean] = to_sqlite(value)
        return named
    if isinstance(params, Sequence) and not isinstance(params, (str, bytes, bytearray)):
        return tuple(to_sqlite(v) for v in params)
    return (to_sqlite(params),)


def _is_blank(sql: str) -> bool:
    """True for text holding only whitespace, semicolons and ``--`` comments."""
    for line in sql.splitlines():
        line = line.strip().strip(";").strip()
        if line and not line.startswith("--"):
            return False
    return True


def split_statements(sql: str) -> list[str]:
    """Split a script into complete statements.

    Statement boundaries come from ``sqlite3.complete_statement`` so string
    literals, comments and trigger bodies containing ``;`` stay intact.
    """
    statements: list[str] = []
    start = 0
    for pos, char in enumerate(sql):
        if char != ";":
            continue
        candidate = sql[start : pos + 1]
        if sqlite3.complete_statement(candidate):
            if not _is_blank(candidate):
                statements.append(candidate.strip())
            start = pos + 1
    rest = sql[start:]
    if not _is_blank(rest):
        statements.append(rest.strip())
    return statements


def read_query(query: str | None, input_file: str | Path | None) -> str:
    """Return query text from exactly one of ``query`` or ``input_file``."""
    if (query is None) == (input_file is None):
        raise ValueError("Provide exactly one of query or input_file")
    if query is not None:
        return query
    path = Path(input_file).expanduser()
    if not path.is_file():
        raise FileNotFoundError(f"Query file not found: {path}")
    return path.read_text(encoding="utf-8-sig")


async def _rollback_if_opened(db: Database, started_in_transaction: bool) -> None:
    if not started_in_transaction and db.in_transaction:
        logger.warning("Rolling back transaction left open by failed query on %s", db.data_source)
        await db.rollback()


async def run_statements(
    db: Database,
    statements: Sequence[str],
    params: dict[str, Any] | tuple[Any, ...],
    timeout: float,
) -> list[StatementResult]:
    """Execute statements in order, collecting the ones that return rows."""
    started_in_transaction = db.in_transaction
    deadline = time.monotonic() + timeout if timeout > 0 else None
    results: list[StatementResult] = []
    try:
        if deadline is not None:
            await db.set_deadline(timeout)
        try:
            for sql in statements:
                cursor = await db.execute(sql, params)
                columns = cursor.description
                if columns is None:
                    logger.debug("%d row(s) affected", cursor.rowcount)
                    continue
                results.append((columns, await cursor.fetchall()))
        finally:
            if deadline is not None:
                await db.clear_deadline()
    except sqlite3.OperationalError as e:
        await _rollback_if_opened(db, started_in_transaction)
        if deadline is not None and time.monotonic() >= deadline:
            raise QueryTimeoutError(
                f"Query exceeded {timeout:g}s timeout on {db.data_source}"
            ) from e
        raise
    except BaseException:
        await _rollback_if_opened(db, started_in_transaction)
        raise
    return results


def _append_source_column(table: DataTable, source: str | None) -> None:
    """Add a column holding ``source``; a taken name gets a numeric suffix."""
    name = DATA_SOURCE_COLUMN
    suffix = 1
    while table.has_column(name):
        name = f"{DATA_SOURCE_COLUMN}{suffix}"
        suffix += 1
    table.add_column(name, str)
    for row in table.rows:
        row[-1] = source


def shape_results(
    results: list[StatementResult],
    result_format: ResultFormat,
    *,
    source: str | None = None,
    append_data_source: bool = False,
) -> Any:
    """Turn raw statement results into the requested result format."""
    if result_format is ResultFormat.DATAROW:
        return results[0][1] if results else []
    if result_format is ResultFormat.SINGLE_VALUE:
        if not results or not results[0][1]:
            return None
        return results[0][1][0][0]

    tables = [rows_to_table(rows, columns, source=source) for columns, rows in results]
    if append_data_source:
        for table in tables:
            _append_source_column(table, source)

    if result_format is ResultFormat.DATASET:
        return tables
    if result_format is ResultFormat.DATATABLE:
        return tables[0] if tables else DataTable(source=source)
    return to_records(tables[0]) if tables else []


async def invoke_query(
    db: Database,
    query: str | None = None,
    *,
    input_file: str | Path | None = None,
    parameters: Parameters = None,
    timeout: float | None = None,
    result_format: ResultFormat | str = ResultFormat.OBJECT,
    append_data_source: bool = False,
) -> Any:
    """Run a (possibly multi-statement) query and shape its results.

    Every statement gets the same parameters. Positional parameters are
    only accepted for single-statement queries, since each statement would
    need its own binding count. ``timeout`` is in seconds; ``0`` disables it
    and None uses SQLITE_SHELL_QUERY_TIMEOUT.
    """
    fmt = ResultFormat(result_format)
    statements = split_statements(read_query(query, input_file))
    if not statements:
        raise ValueError("Query is empty")

    params = normalize_parameters(parameters)
    if isinstance(params, tuple) and params and len(statements) > 1:
        raise ValueError("Positional parameters need a single statement; use named parameters")

    if timeout is None:
        timeout = get_query_timeout()

    results = await run_statements(db, statements, params, timeout)
    return shape_results(
        results, fmt, source=db.data_source, append_data_source=append_data_source
    )


async def invoke_query_many(
    dbs: Sequence[Database],
    query: str | None = None,
    *,
    input_file: str | Path | None = None,
    result_format: ResultFormat | str = ResultFormat.OBJECT,
    **kwargs: Any,
) -> Any:
    """Run the same query against several connections, one after another.

    ``object`` and ``dataset`` results are concatenated; other formats give
    one result per connection.
    """
    fmt = ResultFormat(result_format)
    text = read_query(query, input_file)
    per_db = [await invoke_query(db, text, result_format=fmt, **kwargs) for db in dbs]
    if fmt in (ResultFormat.OBJECT, ResultFormat.DATASET):
        return [item for result in per_db for item in result]
    return per_db
