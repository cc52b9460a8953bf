"""Exception types raised by the library layer.

The CLI maps these to exit codes; MCP tools turn them into ``Error:`` strings.
"""


class SqliteShellError(Exception):
    """Base class for sqlite-shell failures."""


class ConnectionOpenError(SqliteShellError):
    """Raised when a data source cannot be opened."""


class InvalidIdentifierError(SqliteShellError, ValueError):
    """Raised for table or column names that cannot be quoted."""


class QueryTimeoutError(SqliteShellError):
    """Raised when a statement runs past its timeout and is interrupted."""


class SchemaMismatchError(SqliteShellError):
    """Raised when bulk copy data does not fit the target table."""


class NullConstraintError(SqliteShellError, ValueError):
    """Raised when None lands in a column declared non-nullable."""


class BulkCopyError(SqliteShellError):
    """Raised when a row fails to insert; the load has been rolled back."""

    def __init__(self, message: str, *, row_index: int, table: str) -> None:
        """Initialize with the failing row index and target table."""
        super().__init__(message)
        self.row_index = row_index
        self.table = table
