"""Database connection and backend protocols."""

from sqlite_shell.db.backend import Cursor, Database, Row
from sqlite_shell.db.connection import build_connection_string, open_connection, open_connections
from sqlite_shell.db.sqlite_backend import SQLiteBackend, quote_identifier

__all__ = [
    "Cursor",
    "Database",
    "Row",
    "SQLiteBackend",
    "build_connection_string",
    "open_connection",
    "open_connections",
    "quote_identifier",
]
