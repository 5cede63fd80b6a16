import re
from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple, Union

from .exceptions import ParseError
from .expressions import (
    AGGREGATE_FUNCTIONS,
    Aggregate,
    And,
    BinaryOp,
    ColumnRef,
    Compare,
    Expr,
    IsNull,
    Literal,
    Negate,
    Not,
    Or,
    Star,
)
from .schema import Column
from .types import validate_type_name


@dataclass
class ColumnDef:
    name: str
    type: str
    length: Optional[int] = None
    nullable: bool = True
    primary_key: bool = False
    default: Any = None

    def to_column(self) -> Column:
        return Column(
            name=self.name,
            type=self.type,
            length=self.length,
            nullable=self.nullable,
            primary_key=self.primary_key,
            default=self.default,
        )


@dataclass
class SelectItem:
    expr: Expr
    alias: Optional[str] = None


@dataclass
class OrderItem:
    expr: Expr
    descending: bool = False


@dataclass
class CreateTable:
    name: str
    columns: List[ColumnDef]
    primary_key: List[str] = field(default_factory=list)


@dataclass
class Insert:
    table: str
    columns: Optional[List[str]] = None
    # either literal rows or a SELECT feeding the insert
    values: Optional[List[List[Expr]]] = None
    query: Optional["Select"] = None


@dataclass
class Select:
    items: List[SelectItem]
    table: Optional[str] = None
    table_alias: Optional[str] = None
    where: Optional[Expr] = None
    group_by: List[Expr] = field(default_factory=list)
    having: Optional[Expr] = None
    order_by: List[OrderItem] = field(default_factory=list)
    distinct: bool = False
    limit: Optional[int] = None


@dataclass
class Update:
    table: str
    assignments: List[Tuple[str, Expr]]
    where: Optional[Expr] = None


@dataclass
class Delete:
    table: str
    where: Optional[Expr] = None


@dataclass
class Truncate:
    table: str


@dataclass
class DropTable:
    name: str


@dataclass
class AlterAddColumn:
    table: str
    column: ColumnDef


@dataclass
class AlterDropColumn:
    table: str
    column: str


@dataclass
class RenameTable:
    old_name: str
    new_name: str


Statement = Union[
    CreateTable, Insert, Select, Update, Delete, Truncate,
    DropTable, AlterAddColumn, AlterDropColumn, RenameTable,
]


@dataclass
class ParsedStatement:
    """A statement together with its position in the script and its source text."""

    ordinal: int
    sql: str
    node: Statement


@dataclass
class Token:
    kind: str
    value: Any
    pos: int
    end: int

    def is_kw(self, *words: str) -> bool:
        return self.kind == "ident" and self.value.upper() in words

    def is_op(self, *ops: str) -> bool:
        return self.kind == "op" and self.value in ops


STATEMENT_KEYWORDS = {"SELECT", "INSERT", "UPDATE", "DELETE", "CREATE", "ALTER", "DROP", "TRUNCATE", "RENAME"}

RESERVED = STATEMENT_KEYWORDS | {
    "FROM", "WHERE", "GROUP", "BY", "HAVING", "ORDER", "LIMIT", "TOP", "AS", "DISTINCT",
    "AND", "OR", "NOT", "IS", "NULL", "INTO", "VALUES", "SET", "TABLE", "ADD", "COLUMN",
    "PRIMARY", "KEY", "CONSTRAINT", "DEFAULT", "ASC", "DESC", "TO", "ON", "JOIN", "UNION",
}

_TOKEN_RE = re.compile(
    r"""
    (?P<ws>\s+)
    |(?P<line_comment>--[^\n]*)
    |(?P<block_comment>/\*.*?\*/)
    |(?P<number>\d+(?:\.\d+)?)
    |(?P<string>'(?:[^']|'')*')
    |(?P<qident>\[[^\]]+\]|"[^"]+")
    |(?P<ident>[A-Za-z_][A-Za-z0-9_]*)
    |(?P<op><>|!=|<=|>=|[=<>+\-*,().;])
    """,
    re.S | re.X,
)


class Parser:
    """Recursive-descent parser for the SQL used in the basics tutorial.

    Supported examples:
    - SELECT DISTINCT TOP 3 country, SUM(score) AS total FROM customers
      WHERE score != 0 GROUP BY country HAVING SUM(score) > 430 ORDER BY total DESC
    - INSERT INTO customers (id, first_name) VALUES (10, 'Sahra'), (11, 'Tom')
    - INSERT INTO persons (id, person_name) SELECT id, first_name FROM customers
    - UPDATE customers SET score = 0 WHERE score IS NULL
    - DELETE FROM customers WHERE id > 5 / TRUNCATE TABLE persons
    - CREATE TABLE persons (id INT NOT NULL, CONSTRAINT pk PRIMARY KEY (id))
    - ALTER TABLE persons ADD email VARCHAR(50) / DROP COLUMN phone / RENAME TO people
    - DROP TABLE persons

    Statements may be separated by ';' or simply follow one another.
    """

    def __init__(self):
        self._sql = ""
        self._tokens: List[Token] = []
        self._i = 0

    # public API

    def parse(self, sql: str) -> Optional[Statement]:
        """Parse exactly one statement; returns None for empty input."""
        statements = self.parse_script(sql)
        if not statements:
            return None
        if len(statements) > 1:
            raise ParseError(f"Expected a single statement, found {len(statements)}")
        return statements[0].node

    def parse_script(self, sql: str) -> List[ParsedStatement]:
        self._sql = sql
        self._tokens = self._tokenize(sql)
        self._i = 0
        out: List[ParsedStatement] = []
        while True:
            while self._peek().is_op(";"):
                self._advance()
            if self._peek().kind == "eof":
                break
            start = self._peek().pos
            node = self._statement()
            end = self._tokens[self._i - 1].end
            tok = self._peek()
            if not (tok.kind == "eof" or tok.is_op(";") or tok.is_kw(*STATEMENT_KEYWORDS)):
                self._error(f"Unexpected {self._describe(tok)}", tok)
            out.append(ParsedStatement(ordinal=len(out) + 1, sql=sql[start:end].strip(), node=node))
        return out

    # tokenizer

    def _tokenize(self, sql: str) -> List[Token]:
        tokens = []
        pos = 0
        while pos < len(sql):
            m = _TOKEN_RE.match(sql, pos)
            if not m:
                if sql.startswith("/*", pos):
                    raise self._error_at("Unterminated comment", pos)
                if sql[pos] == "'":
                    raise self._error_at("Unterminated string literal", pos)
                raise self._error_at(f"Unexpected character {sql[pos]!r}", pos)
            kind = m.lastgroup
            text = m.group()
            if kind == "number":
                tokens.append(Token("number", float(text) if "." in text else int(text), pos, m.end()))
            elif kind == "string":
                tokens.append(Token("string", text[1:-1].replace("''", "'"), pos, m.end()))
            elif kind == "qident":
                tokens.append(Token("qident", text[1:-1], pos, m.end()))
            elif kind in ("ident", "op"):
                tokens.append(Token(kind, text, pos, m.end()))
            pos = m.end()
        tokens.append(Token("eof", None, len(sql), len(sql)))
        return tokens

    # helpers

    def _peek(self, offset: int = 0) -> Token:
        idx = min(self._i + offset, len(self._tokens) - 1)
        return self._tokens[idx]

    def _advance(self) -> Token:
        tok = self._tokens[self._i]
        if tok.kind != "eof":
            self._i += 1
        return tok

    def _accept_kw(self, *words: str) -> bool:
        if self._peek().is_kw(*words):
            self._advance()
            return True
        return False

    def _expect_kw(self, word: str) -> Token:
        tok = self._peek()
        if not tok.is_kw(word):
            self._error(f"Expected {word}, found {self._describe(tok)}", tok)
        return self._advance()

    def _accept_op(self, op: str) -> bool:
        if self._peek().is_op(op):
            self._advance()
            return True
        return False

    def _expect_op(self, op: str) -> Token:
        tok = self._peek()
        if not tok.is_op(op):
            self._error(f"Expected '{op}', found {self._describe(tok)}", tok)
        return self._advance()

    def _name(self, what: str = "identifier") -> str:
        tok = self._peek()
        if tok.kind == "qident" or (tok.kind == "ident" and tok.value.upper() not in RESERVED):
            self._advance()
            return tok.value
        self._error(f"Expected {what}, found {self._describe(tok)}", tok)

    def _integer(self, what: str) -> int:
        tok = self._peek()
        if tok.kind != "number" or not isinstance(tok.value, int):
            self._error(f"Expected {what}, found {self._describe(tok)}", tok)
        self._advance()
        return tok.value

    def _describe(self, tok: Token) -> str:
        if tok.kind == "eof":
            return "end of input"
        return repr(self._sql[tok.pos:tok.end])

    def _error_at(self, message: str, pos: int) -> ParseError:
        line = self._sql.count("\n", 0, pos) + 1
        col = pos - (self._sql.rfind("\n", 0, pos) + 1) + 1
        return ParseError(message, line, col)

    def _error(self, message: str, tok: Token):
        raise self._error_at(message, tok.pos)

    # statements

    def _statement(self) -> Statement:
        tok = self._peek()
        head = tok.value.upper() if tok.kind == "ident" else None
        if head == "SELECT":
            return self._select()
        if head == "INSERT":
            return self._insert()
        if head == "UPDATE":
            return self._update()
        if head == "DELETE":
            return self._delete()
        if head == "TRUNCATE":
            return self._truncate()
        if head == "CREATE":
            return self._create()
        if head == "ALTER":
            return self._alter()
        if head == "DROP":
            return self._drop()
        if head == "RENAME":
            return self._rename()
        self._error(f"Unsupported statement starting with {self._describe(tok)}", tok)

    def _select(self) -> Select:
        self._expect_kw("SELECT")
        stmt = Select(items=[])
        # T-SQL allows DISTINCT TOP n; accept either order
        for _ in range(2):
            if self._accept_kw("DISTINCT"):
                stmt.distinct = True
            elif self._accept_kw("TOP"):
                stmt.limit = self._integer("row count after TOP")
        stmt.items = self._select_items()
        if self._accept_kw("FROM"):
            stmt.table = self._name("table name")
            if self._accept_kw("AS"):
                stmt.table_alias = self._name("table alias")
            elif self._peek().kind == "ident" and self._peek().value.upper() not in RESERVED:
                stmt.table_alias = self._name("table alias")
        if self._accept_kw("WHERE"):
            stmt.where = self._expr()
        if self._accept_kw("GROUP"):
            self._expect_kw("BY")
            stmt.group_by = [self._expr()]
            while self._accept_op(","):
                stmt.group_by.append(self._expr())
        if self._accept_kw("HAVING"):
            stmt.having = self._expr()
        if self._accept_kw("ORDER"):
            self._expect_kw("BY")
            stmt.order_by = [self._order_item()]
            while self._accept_op(","):
                stmt.order_by.append(self._order_item())
        if self._accept_kw("LIMIT"):
            if stmt.limit is not None:
                self._error("Cannot combine TOP and LIMIT", self._tokens[self._i - 1])
            stmt.limit = self._integer("row count after LIMIT")
        return stmt

    def _select_items(self) -> List[SelectItem]:
        items = [self._select_item()]
        while self._accept_op(","):
            items.append(self._select_item())
        return items

    def _select_item(self) -> SelectItem:
        if self._accept_op("*"):
            return SelectItem(Star())
        expr = self._expr()
        alias = None
        if self._accept_kw("AS"):
            tok = self._peek()
            if tok.kind == "string":
                self._advance()
                alias = tok.value
            else:
                alias = self._name("alias")
        elif self._peek().kind == "qident" or (
            self._peek().kind == "ident" and self._peek().value.upper() not in RESERVED
        ):
            alias = self._name("alias")
        return SelectItem(expr, alias)

    def _order_item(self) -> OrderItem:
        expr = self._expr()
        descending = False
        if self._accept_kw("DESC"):
            descending = True
        else:
            self._accept_kw("ASC")
        return OrderItem(expr, descending)

    def _insert(self) -> Insert:
        self._expect_kw("INSERT")
        self._expect_kw("INTO")
        stmt = Insert(table=self._name("table name"))
        if self._accept_op("("):
            stmt.columns = self._name_list()
        if self._peek().is_kw("SELECT"):
            stmt.query = self._select()
            return stmt
        self._expect_kw("VALUES")
        stmt.values = [self._value_tuple()]
        while self._accept_op(","):
            stmt.values.append(self._value_tuple())
        return stmt

    def _name_list(self) -> List[str]:
        """Comma-separated names up to and including the closing ')'."""
        names = [self._name("column name")]
        while self._accept_op(","):
            names.append(self._name("column name"))
        self._expect_op(")")
        return names

    def _value_tuple(self) -> List[Expr]:
        self._expect_op("(")
        values = [self._expr()]
        while self._accept_op(","):
            values.append(self._expr())
        self._expect_op(")")
        return values

    def _update(self) -> Update:
        self._expect_kw("UPDATE")
        table = self._name("table name")
        self._expect_kw("SET")
        assignments = [self._assignment()]
        while self._accept_op(","):
            assignments.append(self._assignment())
        where = self._expr() if self._accept_kw("WHERE") else None
        return Update(table=table, assignments=assignments, where=where)

    def _assignment(self) -> Tuple[str, Expr]:
        name = self._name("column name")
        self._expect_op("=")
        return name, self._expr()

    def _delete(self) -> Delete:
        self._expect_kw("DELETE")
        self._accept_kw("FROM")
        table = self._name("table name")
        where = self._expr() if self._accept_kw("WHERE") else None
        return Delete(table=table, where=where)

    def _truncate(self) -> Truncate:
        self._expect_kw("TRUNCATE")
        self._expect_kw("TABLE")
        return Truncate(table=self._name("table name"))

    def _drop(self) -> DropTable:
        self._expect_kw("DROP")
        self._expect_kw("TABLE")
        return DropTable(name=self._name("table name"))

    def _rename(self) -> RenameTable:
        # RENAME TABLE old TO new
        self._expect_kw("RENAME")
        self._expect_kw("TABLE")
        old = self._name("table name")
        self._expect_kw("TO")
        return RenameTable(old_name=old, new_name=self._name("table name"))

    def _alter(self) -> Statement:
        self._expect_kw("ALTER")
        self._expect_kw("TABLE")
        table = self._name("table name")
        if self._accept_kw("ADD"):
            self._accept_kw("COLUMN")
            return AlterAddColumn(table=table, column=self._column_def())
        if self._accept_kw("DROP"):
            self._expect_kw("COLUMN")
            return AlterDropColumn(table=table, column=self._name("column name"))
        if self._accept_kw("RENAME"):
            self._expect_kw("TO")
            return RenameTable(old_name=table, new_name=self._name("table name"))
        tok = self._peek()
        self._error(f"Expected ADD, DROP COLUMN or RENAME TO, found {self._describe(tok)}", tok)

    def _create(self) -> CreateTable:
        self._expect_kw("CREATE")
        self._expect_kw("TABLE")
        stmt = CreateTable(name=self._name("table name"), columns=[])
        self._expect_op("(")
        while True:
            if self._peek().is_kw("CONSTRAINT", "PRIMARY"):
                if self._accept_kw("CONSTRAINT"):
                    self._name("constraint name")
                self._expect_kw("PRIMARY")
                self._expect_kw("KEY")
                self._expect_op("(")
                if stmt.primary_key:
                    self._error("Multiple primary keys defined", self._peek())
                stmt.primary_key = self._name_list()
            else:
                stmt.columns.append(self._column_def())
            if self._accept_op(")"):
                break
            self._expect_op(",")
        return stmt

    def _column_def(self) -> ColumnDef:
        name = self._name("column name")
        tok = self._peek()
        if tok.kind != "ident" or not validate_type_name(tok.value):
            self._error(f"Unknown column type {self._describe(tok)}", tok)
        self._advance()
        col = ColumnDef(name=name, type=tok.value.upper())
        if self._accept_op("("):
            col.length = self._integer("type length")
            if self._accept_op(","):
                self._integer("type scale")
            self._expect_op(")")
        while True:
            if self._accept_kw("NOT"):
                self._expect_kw("NULL")
                col.nullable = False
            elif self._accept_kw("NULL"):
                col.nullable = True
            elif self._accept_kw("DEFAULT"):
                col.default = self._default_value()
            elif self._accept_kw("PRIMARY"):
                self._expect_kw("KEY")
                col.primary_key = True
            else:
                break
        return col

    def _default_value(self) -> Any:
        negative = self._accept_op("-")
        tok = self._peek()
        if tok.kind == "number":
            self._advance()
            return -tok.value if negative else tok.value
        if not negative and tok.kind == "string":
            self._advance()
            return tok.value
        if not negative and tok.is_kw("NULL"):
            self._advance()
            return None
        self._error(f"Expected a literal DEFAULT value, found {self._describe(tok)}", tok)

    # expressions

    def _expr(self) -> Expr:
        left = self._and()
        while self._accept_kw("OR"):
            left = Or(left, self._and())
        return left

    def _and(self) -> Expr:
        left = self._not()
        while self._accept_kw("AND"):
            left = And(left, self._not())
        return left

    def _not(self) -> Expr:
        if self._accept_kw("NOT"):
            return Not(self._not())
        return self._comparison()

    def _comparison(self) -> Expr:
        left = self._additive()
        tok = self._peek()
        if tok.is_op("=", "!=", "<>", "<", "<=", ">", ">="):
            self._advance()
            return Compare(tok.value, left, self._additive())
        if self._accept_kw("IS"):
            negated = self._accept_kw("NOT")
            self._expect_kw("NULL")
            return IsNull(left, negated)
        return left

    def _additive(self) -> Expr:
        left = self._multiplicative()
        while self._peek().is_op("+", "-"):
            op = self._advance().value
            left = BinaryOp(op, left, self._multiplicative())
        return left

    def _multiplicative(self) -> Expr:
        left = self._unary()
        while self._accept_op("*"):
            left = BinaryOp("*", left, self._unary())
        return left

    def _unary(self) -> Expr:
        if self._accept_op("-"):
            operand = self._unary()
            if isinstance(operand, Literal) and isinstance(operand.value, (int, float)):
                return Literal(-operand.value)
            return Negate(operand)
        return self._primary()

    def _primary(self) -> Expr:
        tok = self._peek()
        if tok.kind in ("number", "string"):
            self._advance()
            return Literal(tok.value)
        if tok.is_kw("NULL"):
            self._advance()
            return Literal(None)
        if self._accept_op("("):
            expr = self._expr()
            self._expect_op(")")
            return expr
        if tok.kind == "ident" and tok.value.upper() in AGGREGATE_FUNCTIONS and self._peek(1).is_op("("):
            self._advance()
            self._advance()
            func = tok.value.upper()
            if self._accept_op("*"):
                if func != "COUNT":
                    self._error(f"{func}(*) is not supported", tok)
                arg: Expr = Star()
            else:
                arg = self._expr()
            self._expect_op(")")
            return Aggregate(func, arg)
        if tok.kind == "ident" and self._peek(1).is_op("("):
            self._error(f"Unknown function {tok.value}", tok)
        name = self._name("expression")
        if self._accept_op("."):
            return ColumnRef(self._name("column name"), table=name)
        return ColumnRef(name)
