"""Tabular data models: the in-memory table exchanged with the database."""

from collections.abc import Iterator, Mapping, Sequence
from typing import Any

from pydantic import BaseModel, Field

from sqlite_shell.errors import NullConstraintError


class DataColumn(BaseModel):
    """A named, typed column. ``object`` means untyped."""

    name: str
    data_type: type = object
    allow_null: bool = True


class DataTable(BaseModel):
    """Ordered columns plus rows of values in column order."""

    name: str | None = None
    source: str | None = None
    columns: list[DataColumn] = Field(default_factory=list)
    rows: list[list[Any]] = Field(default_factory=list)

    @property
    def column_names(self) -> list[str]:
        """Column names in order."""
        return [c.name for c in self.columns]

    def index_of(self, name: str) -> int:
        """Return a column's position, falling back to a case-insensitive match."""
        for i, col in enumerate(self.columns):
            if col.name == name:
                return i
        lowered = name.lower()
        for i, col in enumerate(self.columns):
            if col.name.lower() == lowered:
                return i
        raise KeyError(name)

    def has_column(self, name: str) -> bool:
        """Return True if a column matches ``name`` (case-insensitive)."""
        try:
            self.index_of(name)
        except KeyError:
            return False
        return True

    def column(self, name: str) -> DataColumn:
        """Return the column named ``name``."""
        return self.columns[self.index_of(name)]

    def add_column(
        self, name: str, data_type: type = object, *, allow_null: bool = True
    ) -> DataColumn:
        """Append a column; existing rows get None for it."""
        if self.has_column(name):
            raise ValueError(f"Duplicate column name: {name!r}")
        if not allow_null and self.rows:
            raise NullConstraintError(f"Column {name!r} cannot be non-nullable: rows already exist")
        col = DataColumn(name=name, data_type=data_type, allow_null=allow_null)
        self.columns.append(col)
        for row in self.rows:
            row.append(None)
        return col

    def add_row(self, values: Sequence[Any] | Mapping[str, Any]) -> None:
        """Append a row given in column order or keyed by column name."""
        if isinstance(values, Mapping):
            row: list[Any] = [None] * len(self.columns)
            for key, value in values.items():
                row[self.index_of(key)] = value
        else:
            row = list(values)
            if len(row) != len(self.columns):
                raise ValueError(
                    f"Row has {len(row)} values, table has {len(self.columns)} columns"
                )
        for col, value in zip(self.columns, row, strict=True):
            if value is None and not col.allow_null:
                raise NullConstraintError(f"Column {col.name!r} does not allow null values")
        self.rows.append(row)

    def __len__(self) -> int:
        return len(self.rows)

    def records(self) -> Iterator[dict[str, Any]]:
        """Yield each row as a dict keyed by column name."""
        names = self.column_names
        for row in self.rows:
            yield dict(zip(names, row, strict=True))
