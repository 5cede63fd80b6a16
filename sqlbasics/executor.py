import logging
from typing import List, Optional, Tuple, Union

from .catalog import AddColumn, Catalog, DropColumn
from .exceptions import SQLBasicsError, StatementFailed
from .parser import (
    AlterAddColumn,
    AlterDropColumn,
    CreateTable,
    Delete,
    DropTable,
    Insert,
    ParsedStatement,
    Parser,
    RenameTable,
    Select,
    Statement,
    Truncate,
    Update,
)
from .results import CommandResult, QueryResult
from .runner import StatementRunner

logger = logging.getLogger(__name__)

Result = Union[QueryResult, CommandResult]


class Executor:
    """Execute SQL text by parsing it and dispatching to the statement runner.

    Scripts run with fail-fast semantics: the first failing statement stops
    the batch and is reported with its ordinal and source text.
    """

    def __init__(self, catalog: Optional[Catalog] = None):
        self.catalog = catalog if catalog is not None else Catalog()
        self.parser = Parser()
        self.runner = StatementRunner(self.catalog)

    def execute(self, sql: str) -> Optional[Result]:
        """Run a single statement; returns None for empty input."""
        stmt = self.parser.parse(sql)
        if stmt is None:
            return None
        return self.dispatch(stmt)

    def execute_script(self, sql: str) -> List[Tuple[ParsedStatement, Result]]:
        statements = self.parser.parse_script(sql)
        logger.debug("parsed %d statements", len(statements))
        results = []
        for parsed in statements:
            results.append((parsed, self.execute_statement(parsed)))
        return results

    def execute_statement(self, parsed: ParsedStatement) -> Result:
        logger.debug("statement %d: %s", parsed.ordinal, parsed.sql)
        try:
            return self.dispatch(parsed.node)
        except SQLBasicsError as e:
            logger.warning("statement %d failed: %s: %s", parsed.ordinal, e.kind, e)
            raise StatementFailed(parsed.ordinal, parsed.sql, e) from e

    def dispatch(self, stmt: Statement) -> Result:
        if isinstance(stmt, Select):
            return self.runner.query(stmt)
        if isinstance(stmt, Insert):
            return self.runner.insert(stmt.table, columns=stmt.columns, values=stmt.values, query=stmt.query)
        if isinstance(stmt, Update):
            return self.runner.update(stmt.table, stmt.assignments, stmt.where)
        if isinstance(stmt, Delete):
            return self.runner.delete(stmt.table, stmt.where)
        if isinstance(stmt, Truncate):
            return self.runner.truncate(stmt.table)
        if isinstance(stmt, CreateTable):
            columns = [c.to_column() for c in stmt.columns]
            return self.runner.create_table(stmt.name, columns, stmt.primary_key)
        if isinstance(stmt, AlterAddColumn):
            return self.runner.alter_table(stmt.table, AddColumn(stmt.column.to_column()))
        if isinstance(stmt, AlterDropColumn):
            return self.runner.alter_table(stmt.table, DropColumn(stmt.column))
        if isinstance(stmt, DropTable):
            return self.runner.drop_table(stmt.name)
        if isinstance(stmt, RenameTable):
            return self.runner.rename_table(stmt.old_name, stmt.new_name)
        raise ValueError(f"Unsupported statement type: {type(stmt).__name__}")
