"""Expression trees and their evaluation under SQL three-valued logic.

Rows are evaluated as mappings keyed by lower-cased column name. Predicates
evaluate to True, False, or None (unknown); only True keeps a row.
Aggregate calls are never evaluated directly against a row: the runner
computes them per group and passes the results in ``aggregates``, keyed by
the call's SQL text.
"""
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Mapping, Optional

from .exceptions import InvalidProjection, TypeMismatch, UnknownColumn
from .types import and3, arithmetic, compare, not3, or3, value_type

AGGREGATE_FUNCTIONS = ("COUNT", "SUM", "AVG", "MIN", "MAX")


class Expr:
    def eval(self, row: Mapping[str, Any], aggregates: Optional[Dict[str, Any]] = None):
        raise NotImplementedError

    def sql(self) -> str:
        raise NotImplementedError

    def children(self) -> List["Expr"]:
        return []


@dataclass
class Literal(Expr):
    value: Any

    def eval(self, row, aggregates=None):
        return self.value

    def sql(self) -> str:
        if self.value is None:
            return "NULL"
        if isinstance(self.value, str):
            return "'" + self.value.replace("'", "''") + "'"
        return str(self.value)


@dataclass
class ColumnRef(Expr):
    name: str
    table: Optional[str] = None

    @property
    def key(self) -> str:
        return self.name.lower()

    def eval(self, row, aggregates=None):
        try:
            return row[self.key]
        except KeyError:
            raise UnknownColumn(f"Unknown column '{self.sql()}'")

    def sql(self) -> str:
        if self.table:
            return f"{self.table}.{self.name}"
        return self.name


@dataclass
class Star(Expr):
    """``*`` in a projection or in ``COUNT(*)``."""

    def eval(self, row, aggregates=None):
        raise InvalidProjection("'*' cannot be used as a value")

    def sql(self) -> str:
        return "*"


@dataclass
class Compare(Expr):
    op: str
    left: Expr
    right: Expr

    def eval(self, row, aggregates=None):
        return compare(self.op, self.left.eval(row, aggregates), self.right.eval(row, aggregates))

    def sql(self) -> str:
        return f"{self.left.sql()} {self.op} {self.right.sql()}"

    def children(self):
        return [self.left, self.right]


@dataclass
class And(Expr):
    left: Expr
    right: Expr

    def eval(self, row, aggregates=None):
        left = truth(self.left.eval(row, aggregates))
        if left is False:
            return False
        return and3(left, truth(self.right.eval(row, aggregates)))

    def sql(self) -> str:
        return f"{self.left.sql()} AND {self.right.sql()}"

    def children(self):
        return [self.left, self.right]


@dataclass
class Or(Expr):
    left: Expr
    right: Expr

    def eval(self, row, aggregates=None):
        left = truth(self.left.eval(row, aggregates))
        if left is True:
            return True
        return or3(left, truth(self.right.eval(row, aggregates)))

    def sql(self) -> str:
        return f"{self.left.sql()} OR {self.right.sql()}"

    def children(self):
        return [self.left, self.right]


@dataclass
class Not(Expr):
    operand: Expr

    def eval(self, row, aggregates=None):
        return not3(truth(self.operand.eval(row, aggregates)))

    def sql(self) -> str:
        return f"NOT {self.operand.sql()}"

    def children(self):
        return [self.operand]


@dataclass
class IsNull(Expr):
    operand: Expr
    negated: bool = False

    def eval(self, row, aggregates=None):
        is_null = self.operand.eval(row, aggregates) is None
        return not is_null if self.negated else is_null

    def sql(self) -> str:
        return f"{self.operand.sql()} IS {'NOT ' if self.negated else ''}NULL"

    def children(self):
        return [self.operand]


@dataclass
class BinaryOp(Expr):
    op: str
    left: Expr
    right: Expr

    def eval(self, row, aggregates=None):
        return arithmetic(self.op, self.left.eval(row, aggregates), self.right.eval(row, aggregates))

    def sql(self) -> str:
        return f"{self.left.sql()} {self.op} {self.right.sql()}"

    def children(self):
        return [self.left, self.right]


@dataclass
class Negate(Expr):
    operand: Expr

    def eval(self, row, aggregates=None):
        return arithmetic("-", 0, self.operand.eval(row, aggregates))

    def sql(self) -> str:
        return f"-{self.operand.sql()}"

    def children(self):
        return [self.operand]


@dataclass
class Aggregate(Expr):
    func: str
    arg: Expr

    def eval(self, row, aggregates=None):
        if aggregates is None or self.sql() not in aggregates:
            raise InvalidProjection(f"Aggregate {self.sql()} is not allowed here")
        return aggregates[self.sql()]

    def sql(self) -> str:
        return f"{self.func}({self.arg.sql()})"

    def children(self):
        return [self.arg]

    def compute(self, rows: List[Mapping[str, Any]]):
        """Reduce a partition of rows; NULL inputs are ignored."""
        if contains_aggregate(self.arg):
            raise InvalidProjection(f"Aggregate calls cannot be nested: {self.sql()}")
        if self.func == "COUNT" and isinstance(self.arg, Star):
            return len(rows)
        values = [v for v in (self.arg.eval(r) for r in rows) if v is not None]
        if self.func == "COUNT":
            return len(values)
        if not values:
            return None
        if self.func in ("SUM", "AVG"):
            for v in values:
                if isinstance(v, bool) or not isinstance(v, (int, float)):
                    raise TypeMismatch(f"{self.func} needs numeric values, got {value_type(v)}")
            total = sum(values)
            return total if self.func == "SUM" else total / len(values)
        if self.func == "MIN":
            return min(values)
        if self.func == "MAX":
            return max(values)
        raise InvalidProjection(f"Unknown aggregate function {self.func}")


def truth(value: Any) -> Optional[bool]:
    """Interpret an evaluated predicate value; anything but a boolean is unknown."""
    if value is None or isinstance(value, bool):
        return value
    raise TypeMismatch(f"Expected a condition, got {value!r}")


def walk(expr: Expr) -> Iterator[Expr]:
    yield expr
    for child in expr.children():
        yield from walk(child)


def aggregates_in(expr: Expr) -> List[Aggregate]:
    found = []
    for node in walk(expr):
        if isinstance(node, Aggregate):
            found.append(node)
    return found


def contains_aggregate(expr: Expr) -> bool:
    return bool(aggregates_in(expr))


def column_refs(expr: Expr) -> List[ColumnRef]:
    return [node for node in walk(expr) if isinstance(node, ColumnRef)]
