from datetime import date
from typing import Any, List, Union

from .exceptions import SQLBasicsError, StatementFailed
from .results import CommandResult, QueryResult


def format_value(v: Any) -> str:
    if v is None:
        return "NULL"
    if isinstance(v, float):
        return format(v, "g")
    if isinstance(v, date):
        return v.isoformat()
    return str(v)


def format_rows(result: QueryResult) -> str:
    """Render a query result as an aligned text grid.

    Numbers are right-aligned, everything else left-aligned. A trailing
    line reports the row count.
    """
    cells: List[List[str]] = [[format_value(v) for v in row] for row in result.rows]
    widths = [len(c) for c in result.columns]
    for row in cells:
        for i, cell in enumerate(row):
            widths[i] = max(widths[i], len(cell))
    numeric = [
        bool(result.rows) and all(
            isinstance(r[i], (int, float)) or r[i] is None for r in result.rows
        )
        for i in range(len(result.columns))
    ]

    def line(values: List[str]) -> str:
        parts = []
        for i, v in enumerate(values):
            parts.append(v.rjust(widths[i]) if numeric[i] else v.ljust(widths[i]))
        return " | ".join(parts).rstrip()

    out = [line(list(result.columns)), "-+-".join("-" * w for w in widths)]
    out.extend(line(row) for row in cells)
    n = len(result.rows)
    out.append(f"({n} row{'s' if n != 1 else ''})")
    return "\n".join(out)


def format_command(result: CommandResult) -> str:
    if result.statement in ("INSERT", "UPDATE", "DELETE", "TRUNCATE TABLE"):
        n = result.affected
        return f"{result.statement} {result.target}: {n} row{'s' if n != 1 else ''} affected"
    return f"{result.statement} {result.target}: {result.message}"


def format_error(error: SQLBasicsError) -> str:
    if isinstance(error, StatementFailed):
        return str(error)
    return f"Error: {error.kind}: {error}"


def format_result(result: Union[QueryResult, CommandResult, None]) -> str:
    if result is None:
        return ""
    if isinstance(result, QueryResult):
        return format_rows(result)
    return format_command(result)
