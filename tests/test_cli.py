"""Tests for the command-line interface."""

import argparse
import json

import pytest

from sqlite_shell.cli import (
    EXIT_BULK_COPY,
    EXIT_DATABASE,
    EXIT_OK,
    EXIT_USAGE,
    main,
    parse_parameter,
)


@pytest.fixture
def loaded_db(tmp_path):
    """A database file with a ``people`` table created and loaded through the CLI."""
    data = tmp_path / "people.json"
    data.write_text(
        json.dumps([{"id": 1, "name": "Ada", "age": 36}, {"id": 2, "name": "Linus"}]),
        encoding="utf-8",
    )
    db_path = tmp_path / "data.db"
    schema = "CREATE TABLE people (id INTEGER PRIMARY KEY, name TEXT NOT NULL, age INTEGER)"
    assert main(["query", "-d", str(db_path), schema]) == EXIT_OK
    assert main(["import", "-d", str(db_path), str(data)]) == EXIT_OK
    return db_path


def _json_out(capsys):
    return json.loads(capsys.readouterr().out)


def test_parse_parameter():
    assert parse_parameter("id=5") == ("id", 5)
    assert parse_parameter("name=bob") == ("name", "bob")
    assert parse_parameter('s="5"') == ("s", "5")
    assert parse_parameter("eq=a=b") == ("eq", "a=b")
    with pytest.raises(argparse.ArgumentTypeError):
        parse_parameter("novalue")


def test_no_command_prints_help(capsys):
    assert main([]) == EXIT_USAGE
    assert "usage" in capsys.readouterr().err.lower()


def test_bad_choice_exits_with_usage_code():
    with pytest.raises(SystemExit) as exc_info:
        main(["query", "--as", "nonsense", "SELECT 1"])
    assert exc_info.value.code == EXIT_USAGE


def test_import_reports_count(tmp_path, capsys):
    data = tmp_path / "zip.csv"
    data.write_text("zip,city\n02139,Cambridge\n", encoding="utf-8")
    db_path = tmp_path / "data.db"
    assert main(["import", "-d", str(db_path), str(data), "--create"]) == EXIT_OK
    assert "Imported 1 rows into table 'zip'" in capsys.readouterr().out


def test_query_json_output(loaded_db, capsys):
    capsys.readouterr()
    sql = "SELECT id, name FROM people ORDER BY id"
    code = main(["query", "-d", str(loaded_db), sql, "--format", "json"])
    assert code == EXIT_OK
    assert _json_out(capsys) == [{"id": 1, "name": "Ada"}, {"id": 2, "name": "Linus"}]


def test_query_with_parameter(loaded_db, capsys):
    capsys.readouterr()
    code = main(
        [
            "query",
            "-d",
            str(loaded_db),
            "SELECT name FROM people WHERE id = @id",
            "-p",
            "id=2",
            "--as",
            "single_value",
        ]
    )
    assert code == EXIT_OK
    assert capsys.readouterr().out == "Linus\n"


def test_query_text_output(loaded_db, capsys):
    capsys.readouterr()
    assert main(["query", "-d", str(loaded_db), "SELECT name, age FROM people ORDER BY id"]) == 0
    out = capsys.readouterr().out
    assert out.splitlines()[0] == "name   age"
    assert "Linus  NULL" in out


def test_query_csv_output(loaded_db, capsys):
    capsys.readouterr()
    sql = "SELECT id, age FROM people ORDER BY id"
    code = main(["query", "-d", str(loaded_db), sql, "--format", "csv"])
    assert code == EXIT_OK
    assert capsys.readouterr().out == "id,age\n1,36\n2,\n"


def test_query_from_file(loaded_db, tmp_path, capsys):
    script = tmp_path / "count.sql"
    script.write_text("SELECT COUNT(*) FROM people;", encoding="utf-8")
    capsys.readouterr()
    code = main(["query", "-d", str(loaded_db), "-f", str(script), "--as", "single_value"])
    assert code == EXIT_OK
    assert capsys.readouterr().out == "2\n"


def test_query_requires_sql(loaded_db, capsys):
    assert main(["query", "-d", str(loaded_db)]) == EXIT_USAGE
    assert "provide SQL" in capsys.readouterr().err


def test_query_several_sources(loaded_db, tmp_path, capsys):
    other = tmp_path / "other.db"
    assert main(["query", "-d", str(other), "CREATE TABLE people (id, name, age)"]) == EXIT_OK
    capsys.readouterr()
    code = main(
        [
            "query",
            "-d",
            str(loaded_db),
            "-d",
            str(other),
            "SELECT COUNT(*) AS n FROM people",
            "--append-data-source",
            "--format",
            "json",
        ]
    )
    assert code == EXIT_OK
    rows = _json_out(capsys)
    assert [r["n"] for r in rows] == [2, 0]
    assert rows[1]["DataSource"].endswith("other.db")


def test_sql_error_exit_code(loaded_db, capsys):
    assert main(["query", "-d", str(loaded_db), "SELECT * FROM nowhere"]) == EXIT_DATABASE
    assert "no such table" in capsys.readouterr().err


def test_failed_import_exit_code(loaded_db, tmp_path, capsys):
    data = tmp_path / "dups.json"
    rows = [{"id": 3, "name": "x"}, {"id": 1, "name": "dup"}]
    data.write_text(json.dumps(rows), encoding="utf-8")
    code = main(["import", "-d", str(loaded_db), str(data), "--table", "people"])
    assert code == EXIT_BULK_COPY
    assert "Row 1 failed" in capsys.readouterr().err


def test_tables_command(loaded_db, capsys):
    capsys.readouterr()
    assert main(["tables", "-d", str(loaded_db)]) == EXIT_OK
    assert capsys.readouterr().out == "people\n"
    assert main(["tables", "-d", str(loaded_db), "people"]) == EXIT_OK
    assert capsys.readouterr().out == "id INTEGER\nname TEXT\nage INTEGER\n"
    assert main(["tables", "-d", str(loaded_db), "nope"]) == EXIT_DATABASE


def test_output_short_option(loaded_db, capsys):
    capsys.readouterr()
    assert main(["query", "-d", str(loaded_db), "SELECT 1 AS x", "-o", "json"]) == EXIT_OK
    assert _json_out(capsys) == [{"x": 1}]


def test_import_rejects_duplicate_csv_headers(tmp_path, capsys):
    data = tmp_path / "dups.csv"
    data.write_text("a,a,b\n1,2,3\n", encoding="utf-8")
    code = main(["import", "-d", str(tmp_path / "data.db"), str(data), "--create"])
    assert code == EXIT_USAGE
    assert "duplicate column" in capsys.readouterr().err
