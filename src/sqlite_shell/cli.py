"""Command-line interface: query, import, tables, serve.

Usage:
    sqlite-shell query -d data.db "SELECT * FROM t WHERE id = :id" -p id=5
    sqlite-shell query -d a.db -d b.db -f report.sql --append-data-source
    sqlite-shell import -d data.db people.csv --create
    sqlite-shell tables -d data.db [TABLE]
    sqlite-shell serve

Exit codes: 0 success, 1 bad arguments or input, 2 database or query
error, 3 bulk copy failure (nothing was written).
"""

import argparse
import asyncio
import csv
import json
import sqlite3
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Any, NoReturn, TextIO

from sqlite_shell.bulk_copy import ConflictClause
from sqlite_shell.config import get_data_source
from sqlite_shell.convert import to_data_table, to_records
from sqlite_shell.db.connection import open_connection, open_connections
from sqlite_shell.errors import BulkCopyError, SchemaMismatchError, SqliteShellError
from sqlite_shell.importer import FORMATS, import_file
from sqlite_shell.models.table import DataTable
from sqlite_shell.query import ResultFormat, invoke_query_many
from sqlite_shell.server import configure_logging
from sqlite_shell.tools.formatters import format_tables, format_value
from sqlite_shell.tools.sqlite_tables import describe

EXIT_OK = 0
EXIT_USAGE = 1
EXIT_DATABASE = 2
EXIT_BULK_COPY = 3


class _Parser(argparse.ArgumentParser):
    """ArgumentParser that reports usage errors with exit code 1."""

    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        self.exit(EXIT_USAGE, f"{self.prog}: error: {message}\n")


def parse_parameter(text: str) -> tuple[str, Any]:
    """Parse ``name=value``; the value is read as JSON when it parses."""
    name, sep, raw = text.partition("=")
    if not sep or not name:
        raise argparse.ArgumentTypeError(f"expected NAME=VALUE, got {text!r}")
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        value = raw
    return name, value


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with all subcommands."""
    parser = _Parser(prog="sqlite-shell", description="SQLite convenience shell")
    sub = parser.add_subparsers(dest="command")

    q = sub.add_parser("query", help="Run a parameterized query")
    q.add_argument(
        "-d",
        "--data-source",
        action="append",
        dest="data_sources",
        help="Database file (repeatable; default: SQLITE_SHELL_DATA_SOURCE)",
    )
    q.add_argument("sql", nargs="?", help="SQL text")
    q.add_argument("-f", "--input-file", help="Read SQL from this file")
    q.add_argument(
        "-p",
        "--param",
        action="append",
        type=parse_parameter,
        default=[],
        metavar="NAME=VALUE",
        help="Named parameter (repeatable)",
    )
    q.add_argument(
        "--as",
        dest="result_format",
        choices=[f.value for f in ResultFormat],
        default=ResultFormat.OBJECT.value,
        help="Result shape (default: object)",
    )
    q.add_argument(
        "--format",
        "-o",
        "--output",
        dest="output",
        choices=["text", "json", "csv"],
        default="text",
        help="Output format (default: text)",
    )
    q.add_argument("--timeout", type=float, default=None, help="Query timeout in seconds")
    q.add_argument(
        "--append-data-source", action="store_true", help="Add a DataSource column"
    )
    q.add_argument(
        "--read-only", action="store_true", default=None, help="Open databases read-only"
    )

    i = sub.add_parser("import", help="Bulk copy a CSV/JSON/JSONL file into a table")
    i.add_argument("-d", "--data-source", default=None, help="Database file")
    i.add_argument("file", help="Data file to load")
    i.add_argument("-t", "--table", default=None, help="Target table (default: file stem)")
    i.add_argument("--format", dest="fmt", choices=FORMATS, default=None)
    i.add_argument("--conflict", choices=[c.value for c in ConflictClause], default=None)
    i.add_argument("--create", action="store_true", help="Create the table if missing")
    i.add_argument("--force", action="store_true", help="Skip the column check")
    i.add_argument("--notify-after", type=int, default=None, help="Report progress every N rows")

    t = sub.add_parser("tables", help="List tables or describe one")
    t.add_argument("-d", "--data-source", default=None, help="Database file")
    t.add_argument("table", nargs="?", help="Table to describe")

    sub.add_parser("serve", help="Run the MCP server over stdio")

    return parser


def _as_tables(result: Any, fmt: ResultFormat) -> list[DataTable]:
    """Normalize any query result shape to a list of tables."""
    if fmt is ResultFormat.DATASET:
        return list(result)
    if fmt is ResultFormat.DATATABLE:
        return list(result) if isinstance(result, list) else [result]
    if fmt is ResultFormat.DATAROW:
        groups = result if result and isinstance(result[0], list) else [result]
        return [to_data_table(dict(row) for group in groups for row in group)]
    return [to_data_table(result)]


def write_result(result: Any, fmt: ResultFormat, output: str, out: TextIO) -> None:
    """Write a query result to ``out`` in the requested output format."""
    if fmt is ResultFormat.SINGLE_VALUE:
        values = result if isinstance(result, list) else [result]
        for value in values:
            if output == "json":
                out.write(json.dumps(value, default=str) + "\n")
            else:
                out.write(format_value(value) + "\n")
        return

    tables = _as_tables(result, fmt)
    if output == "json":
        payload: Any = [to_records(t) for t in tables]
        if len(payload) == 1:
            payload = payload[0]
        out.write(json.dumps(payload, default=str, indent=2) + "\n")
    elif output == "csv":
        for n, table in enumerate(tables):
            if n:
                out.write("\n")
            writer = csv.writer(out, lineterminator="\n")
            writer.writerow(table.column_names)
            writer.writerows(table.rows)
    else:
        out.write(format_tables(tables, max_rows=None) + "\n")


async def _cmd_query(args: argparse.Namespace) -> int:
    if args.sql is None and args.input_file is None:
        print("Error: provide SQL text or --input-file", file=sys.stderr)
        return EXIT_USAGE
    if args.sql is not None and args.input_file is not None:
        print("Error: provide SQL text or --input-file, not both", file=sys.stderr)
        return EXIT_USAGE

    fmt = ResultFormat(args.result_format)
    sources = args.data_sources or [get_data_source()]
    dbs = await open_connections(sources, read_only=args.read_only)
    try:
        result = await invoke_query_many(
            dbs,
            args.sql,
            input_file=args.input_file,
            parameters=dict(args.param) or None,
            timeout=args.timeout,
            result_format=fmt,
            append_data_source=args.append_data_source,
        )
    finally:
        for db in dbs:
            await db.close()

    if len(dbs) == 1 and fmt not in (ResultFormat.OBJECT, ResultFormat.DATASET):
        result = result[0]
    write_result(result, fmt, args.output, sys.stdout)
    return EXIT_OK


async def _cmd_import(args: argparse.Namespace) -> int:
    def _progress(count: int) -> None:
        print(f"{count} rows copied", file=sys.stderr)

    db = await open_connection(args.data_source)
    try:
        count = await import_file(
            db,
            args.file,
            args.table,
            fmt=args.fmt,
            conflict=args.conflict,
            create=args.create,
            force=args.force,
            notify_after=args.notify_after,
            on_progress=_progress,
        )
    finally:
        await db.close()
    table = args.table or Path(args.file).stem
    print(f"Imported {count} rows into table '{table}' in database '{db.data_source}'.")
    return EXIT_OK


async def _cmd_tables(args: argparse.Namespace) -> int:
    db = await open_connection(args.data_source)
    try:
        text = await describe(db, args.table)
    finally:
        await db.close()
    if text.startswith("Error:"):
        print(text, file=sys.stderr)
        return EXIT_DATABASE
    print(text)
    return EXIT_OK


_COMMANDS = {
    "query": _cmd_query,
    "import": _cmd_import,
    "tables": _cmd_tables,
}


def main(argv: Sequence[str] | None = None) -> int:
    """Run the CLI and return its exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help(sys.stderr)
        return EXIT_USAGE

    configure_logging()

    if args.command == "serve":
        from sqlite_shell.server import create_server

        create_server().run(transport="stdio")
        return EXIT_OK

    try:
        return asyncio.run(_COMMANDS[args.command](args))
    except (BulkCopyError, SchemaMismatchError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_BULK_COPY
    except (SqliteShellError, sqlite3.Error) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_DATABASE
    except (ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_USAGE
