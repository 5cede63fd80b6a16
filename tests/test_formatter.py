from datetime import date

from sqlbasics.exceptions import StatementFailed, UnknownTable
from sqlbasics.formatter import format_command, format_error, format_result, format_rows, format_value
from sqlbasics.results import CommandResult, QueryResult


def test_format_value():
    assert format_value(None) == "NULL"
    assert format_value(450.0) == "450"
    assert format_value(437.5) == "437.5"
    assert format_value(date(2021, 1, 11)) == "2021-01-11"
    assert format_value("Maria") == "Maria"


def test_grid_alignment():
    text = format_rows(QueryResult(columns=["id", "name"], rows=[[1, "Ann"], [10, None]]))
    assert text.splitlines() == [
        "id | name",
        "---+-----",
        " 1 | Ann",
        "10 | NULL",
        "(2 rows)",
    ]


def test_empty_result():
    text = format_rows(QueryResult(columns=["id"], rows=[]))
    assert text.splitlines() == ["id", "--", "(0 rows)"]


def test_single_row_footer():
    assert format_rows(QueryResult(columns=["n"], rows=[[5]])).endswith("(1 row)")


def test_commands():
    assert format_command(CommandResult("INSERT", affected=2, target="customers")) == \
        "INSERT customers: 2 rows affected"
    assert format_command(CommandResult("DELETE", affected=1, target="customers")) == \
        "DELETE customers: 1 row affected"
    assert format_command(CommandResult("CREATE TABLE", target="persons")) == "CREATE TABLE persons: OK"


def test_errors():
    assert format_error(UnknownTable("Table 'x' not found")) == "Error: UnknownTable: Table 'x' not found"
    failed = StatementFailed(3, "SELECT * FROM x", UnknownTable("Table 'x' not found"))
    assert format_error(failed) == "Error in statement 3: UnknownTable: Table 'x' not found"


def test_format_result_dispatch(exe):
    assert format_result(None) == ""
    text = format_result(exe.execute("SELECT first_name FROM customers WHERE id = 1"))
    assert "Maria" in text
