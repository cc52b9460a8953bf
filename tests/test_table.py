"""Tests for the DataTable model."""

import pytest

from sqlite_shell.errors import NullConstraintError
from sqlite_shell.models.table import DataTable


def _table() -> DataTable:
    table = DataTable(name="t")
    table.add_column("id", int, allow_null=False)
    table.add_column("name", str)
    return table


def test_add_rows_by_position_and_name():
    table = _table()
    table.add_row([1, "a"])
    table.add_row({"NAME": "b", "id": 2})
    assert table.rows == [[1, "a"], [2, "b"]]
    assert len(table) == 2


def test_add_column_backfills():
    table = _table()
    table.add_row([1, "a"])
    table.add_column("extra")
    assert table.column_names == ["id", "name", "extra"]
    assert table.rows == [[1, "a", None]]
    assert table.column("extra").data_type is object


def test_duplicate_column_rejected():
    table = _table()
    with pytest.raises(ValueError, match="Duplicate"):
        table.add_column("ID")


def test_row_length_checked():
    with pytest.raises(ValueError, match="2 columns"):
        _table().add_row([1])


def test_unknown_key_rejected():
    with pytest.raises(KeyError):
        _table().add_row({"id": 1, "nope": 2})


def test_non_nullable_column():
    with pytest.raises(NullConstraintError):
        _table().add_row({"name": "no id"})


def test_index_of_prefers_exact_match():
    table = DataTable()
    table.add_column("a")
    assert table.index_of("a") == 0
    assert table.index_of("A") == 0
    with pytest.raises(KeyError):
        table.index_of("b")


def test_records():
    table = _table()
    table.add_row([1, None])
    assert list(table.records()) == [{"id": 1, "name": None}]
