from typing import Callable, Optional

from .exceptions import SQLBasicsError
from .executor import Executor
from .formatter import format_error, format_result
from .seed import seed_catalog


def describe_table(exe: Executor, name: str) -> str:
    table = exe.catalog.get_table(name)
    lines = [f"Table {table.name}"]
    for col in table.columns:
        flags = []
        if col.primary_key:
            flags.append("PRIMARY KEY")
        if not col.nullable:
            flags.append("NOT NULL")
        if col.default is not None:
            flags.append(f"DEFAULT {col.default!r}")
        lines.append(f"  {col.name} {col.declared} {' '.join(flags)}".rstrip())
    lines.append(f"  ({len(table)} rows)")
    return "\n".join(lines)


def repl_loop(
    exe: Optional[Executor] = None,
    seed: bool = True,
    input_fn: Callable[[str], str] = input,
    out: Callable[[str], None] = print,
):
    exe = exe or Executor(seed_catalog() if seed else None)
    out("sqlbasics REPL. Enter SQL statements terminated with ';'. Type .exit to quit.")
    out("Commands: .exit, .tables, .schema <table>, .reset")
    buffer = []
    while True:
        try:
            line = input_fn("> " if not buffer else ". ")
        except EOFError:
            break
        if not line:
            continue
        stripped = line.strip()
        if not buffer and stripped.startswith("."):
            if stripped == ".exit":
                break
            if stripped == ".tables":
                out("Tables: " + ", ".join(exe.catalog.table_names()))
            elif stripped.startswith(".schema"):
                parts = stripped.split(None, 1)
                if len(parts) == 2:
                    try:
                        out(describe_table(exe, parts[1].strip()))
                    except SQLBasicsError as e:
                        out(format_error(e))
                else:
                    out("Usage: .schema <table>")
            elif stripped == ".reset":
                exe = Executor(seed_catalog() if seed else None)
                out("Catalog reset")
            else:
                out(f"Unknown command: {stripped}")
            continue
        buffer.append(line)
        if stripped.endswith(";"):
            sql = "\n".join(buffer)
            buffer = []
            try:
                for _, res in exe.execute_script(sql):
                    out(format_result(res))
            except SQLBasicsError as e:
                out(format_error(e))
