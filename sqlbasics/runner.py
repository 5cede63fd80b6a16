import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from .catalog import AddColumn, Catalog, TableChange
from .exceptions import ArityMismatch, DuplicateColumn, InvalidProjection, UnknownColumn
from .expressions import (
    Aggregate,
    ColumnRef,
    Expr,
    Literal,
    Star,
    aggregates_in,
    column_refs,
    contains_aggregate,
    truth,
)
from .parser import OrderItem, Select, SelectItem
from .results import CommandResult, QueryResult
from .schema import Column, TableSchema
from .storage import Table
from .types import sort_key

logger = logging.getLogger(__name__)

ColumnsArg = Union[str, Sequence[Union[str, Expr, SelectItem]]]
OrderArg = Sequence[Union[str, Expr, OrderItem, Tuple[Union[str, Expr], str]]]


def _as_expr(value: Union[str, Expr]) -> Expr:
    if isinstance(value, Expr):
        return value
    return ColumnRef(value)


def _env(row: Dict[str, Any]) -> Dict[str, Any]:
    return {k.lower(): v for k, v in row.items()}


def _matches(left: Expr, right: Expr) -> bool:
    return left.sql().lower() == right.sql().lower()


class StatementRunner:
    """Run one statement family at a time against an explicitly owned catalog.

    Every operation is synchronous and all-or-nothing: validation happens
    before any row is touched, so a failing statement leaves the catalog as
    it was.
    """

    def __init__(self, catalog: Optional[Catalog] = None):
        self.catalog = catalog if catalog is not None else Catalog()

    # DDL

    def create_table(self, name: str, columns: List[Column], primary_key: Optional[List[str]] = None) -> CommandResult:
        schema = TableSchema(name=name, columns=list(columns), primary_key=list(primary_key or []))
        self.catalog.create_table(schema)
        return CommandResult("CREATE TABLE", target=name)

    def drop_table(self, name: str) -> CommandResult:
        self.catalog.drop_table(name)
        return CommandResult("DROP TABLE", target=name)

    def alter_table(self, name: str, change: TableChange) -> CommandResult:
        self.catalog.alter_table(name, change)
        if isinstance(change, AddColumn):
            message = f"added column {change.column.name}"
        else:
            message = f"dropped column {change.name}"
        return CommandResult("ALTER TABLE", target=name, message=message)

    def rename_table(self, old_name: str, new_name: str) -> CommandResult:
        self.catalog.rename_table(old_name, new_name)
        return CommandResult("RENAME TABLE", target=old_name, message=f"renamed to {new_name}")

    # DML

    def insert(
        self,
        table: str,
        columns: Optional[Sequence[str]] = None,
        values: Optional[Sequence[Sequence[Any]]] = None,
        query: Optional[Select] = None,
    ) -> CommandResult:
        t = self.catalog.get_table(table)
        if columns is None:
            targets = list(t.schema.columns)
        else:
            targets = []
            seen = set()
            for name in columns:
                col = t.schema.column(name)
                if col.name in seen:
                    raise DuplicateColumn(f"Column '{col.name}' specified more than once in INSERT")
                seen.add(col.name)
                targets.append(col)
        if (values is None) == (query is None):
            raise ValueError("INSERT needs exactly one of values or query")
        if query is not None:
            source = self.query(query)
            if len(source.columns) != len(targets):
                raise ArityMismatch(
                    f"INSERT into '{t.name}' expects {len(targets)} values, SELECT returns {len(source.columns)}"
                )
            raw_rows = source.rows
        else:
            raw_rows = []
            for row in values:
                if len(row) != len(targets):
                    raise ArityMismatch(
                        f"INSERT into '{t.name}' expects {len(targets)} values, got {len(row)}"
                    )
                raw_rows.append([v.eval({}) if isinstance(v, Expr) else v for v in row])
        rows = [{col.name: val for col, val in zip(targets, row)} for row in raw_rows]
        inserted = t.insert_many(rows)
        logger.debug("insert into %s: %d rows", t.name, inserted)
        return CommandResult("INSERT", affected=inserted, target=t.name)

    def update(
        self,
        table: str,
        assignments: Union[Dict[str, Any], Sequence[Tuple[str, Any]]],
        predicate: Optional[Expr] = None,
    ) -> CommandResult:
        t = self.catalog.get_table(table)
        pairs = assignments.items() if isinstance(assignments, dict) else assignments
        resolved = []
        for name, value in pairs:
            col = t.schema.column(name)
            expr = value if isinstance(value, Expr) else Literal(value)
            self._check_columns(expr, t)
            if contains_aggregate(expr):
                raise InvalidProjection("Aggregates are not allowed in UPDATE ... SET")
            resolved.append((col.name, expr))
        changes: Dict[int, Dict[str, Any]] = {}
        for rowid, env in self._matching(t, predicate):
            changes[rowid] = {name: expr.eval(env) for name, expr in resolved}
        updated = t.update_many(changes)
        logger.debug("update %s: %d rows", t.name, updated)
        return CommandResult("UPDATE", affected=updated, target=t.name)

    def delete(self, table: str, predicate: Optional[Expr] = None) -> CommandResult:
        t = self.catalog.get_table(table)
        rowids = [rowid for rowid, _ in self._matching(t, predicate)]
        deleted = t.delete_many(rowids)
        logger.debug("delete from %s: %d rows", t.name, deleted)
        return CommandResult("DELETE", affected=deleted, target=t.name)

    def truncate(self, table: str) -> CommandResult:
        t = self.catalog.get_table(table)
        return CommandResult("TRUNCATE TABLE", affected=t.truncate(), target=t.name)

    def _matching(self, t: Table, predicate: Optional[Expr]) -> List[Tuple[int, Dict[str, Any]]]:
        if predicate is not None:
            self._check_columns(predicate, t)
            if contains_aggregate(predicate):
                raise InvalidProjection("Aggregates are not allowed in WHERE")
        out = []
        for rowid, row in t.items():
            env = _env(row)
            if predicate is None or truth(predicate.eval(env)) is True:
                out.append((rowid, env))
        return out

    # queries

    def query(self, stmt: Select) -> QueryResult:
        return self.select(
            stmt.items,
            table=stmt.table,
            predicate=stmt.where,
            group_by=stmt.group_by,
            having=stmt.having,
            order_by=stmt.order_by,
            distinct=stmt.distinct,
            limit=stmt.limit,
            table_alias=stmt.table_alias,
        )

    def select(
        self,
        columns: ColumnsArg = "*",
        table: Optional[str] = None,
        predicate: Optional[Expr] = None,
        group_by: Optional[Sequence[Union[str, Expr]]] = None,
        having: Optional[Expr] = None,
        order_by: Optional[OrderArg] = None,
        distinct: bool = False,
        limit: Optional[int] = None,
        table_alias: Optional[str] = None,
    ) -> QueryResult:
        t = self.catalog.get_table(table) if table is not None else None
        items = self._items(columns, t)
        groups = [_as_expr(g) for g in (group_by or [])]
        orders = [self._order_item(o) for o in (order_by or [])]
        if limit is not None and limit < 0:
            raise InvalidProjection("Row limit must not be negative")

        labels = [label for label, _ in items]
        for _, expr in items:
            self._check_columns(expr, t, table_alias)
        for expr in groups:
            self._check_columns(expr, t, table_alias)
            if contains_aggregate(expr):
                raise InvalidProjection("Aggregates are not allowed in GROUP BY")
        if having is not None:
            self._check_columns(having, t, table_alias)
        if predicate is not None:
            self._check_columns(predicate, t, table_alias)
            if contains_aggregate(predicate):
                raise InvalidProjection("Aggregates are not allowed in WHERE; use HAVING")

        # ORDER BY may name an output column (alias, position, or same expression)
        order_slots: List[Optional[int]] = []
        for item in orders:
            slot = self._output_slot(item.expr, items, t, table_alias)
            if slot is None:
                if distinct:
                    raise InvalidProjection(
                        f"ORDER BY item {item.expr.sql()} must appear in the select list with DISTINCT"
                    )
                self._check_columns(item.expr, t, table_alias)
            order_slots.append(slot)

        if t is not None:
            envs = [_env(r) for r in t.scan()]
        else:
            envs = [{}]
        if predicate is not None:
            envs = [e for e in envs if truth(predicate.eval(e)) is True]

        grouped = bool(groups) or having is not None or any(contains_aggregate(e) for _, e in items)
        grouped = grouped or any(
            slot is None and contains_aggregate(o.expr) for o, slot in zip(orders, order_slots)
        )
        # each record: (output row, env used for evaluation, aggregate values)
        records: List[Tuple[List[Any], Dict[str, Any], Optional[Dict[str, Any]]]] = []
        if grouped:
            extra = [o.expr for o, slot in zip(orders, order_slots) if slot is None]
            checked = [e for _, e in items] + ([having] if having is not None else []) + extra
            for expr in checked:
                self._check_grouped(expr, groups)
            aggregates: List[Aggregate] = []
            for expr in checked:
                aggregates.extend(aggregates_in(expr))
            for rep, partition in self._partition(envs, groups):
                values = {a.sql(): a.compute(partition) for a in aggregates}
                if having is not None and truth(having.eval(rep, values)) is not True:
                    continue
                records.append(([e.eval(rep, values) for _, e in items], rep, values))
        else:
            for env in envs:
                records.append(([e.eval(env) for _, e in items], env, None))

        if distinct:
            seen = set()
            unique = []
            for rec in records:
                key = tuple(rec[0])
                if key not in seen:
                    seen.add(key)
                    unique.append(rec)
            records = unique

        if orders:
            keyed = []
            for rec in records:
                keys = []
                for item, slot in zip(orders, order_slots):
                    keys.append(rec[0][slot] if slot is not None else item.expr.eval(rec[1], rec[2]))
                keyed.append((keys, rec))
            # stable sorts from the last key to the first give a multi-key sort
            for i in reversed(range(len(orders))):
                keyed.sort(key=lambda kr: sort_key(kr[0][i]), reverse=orders[i].descending)
            records = [rec for _, rec in keyed]

        rows = [rec[0] for rec in records]
        if limit is not None:
            rows = rows[:limit]
        logger.debug("select from %s: %d rows", table or "<none>", len(rows))
        return QueryResult(columns=labels, rows=rows)

    def _items(self, columns: ColumnsArg, t: Optional[Table]) -> List[Tuple[str, Expr]]:
        if isinstance(columns, str):
            columns = [SelectItem(Star())] if columns.strip() == "*" else [columns]
        items: List[Tuple[str, Expr]] = []
        for c in columns:
            item = c if isinstance(c, SelectItem) else SelectItem(_as_expr(c))
            if isinstance(item.expr, Star):
                if t is None:
                    raise InvalidProjection("SELECT * needs a FROM clause")
                items.extend((col.name, ColumnRef(col.name)) for col in t.columns)
            elif item.alias:
                items.append((item.alias, item.expr))
            elif isinstance(item.expr, ColumnRef):
                items.append((item.expr.name, item.expr))
            else:
                items.append((item.expr.sql(), item.expr))
        if not items:
            raise InvalidProjection("SELECT needs at least one column")
        return items

    def _order_item(self, value) -> OrderItem:
        if isinstance(value, OrderItem):
            return value
        if isinstance(value, tuple):
            expr, direction = value
            return OrderItem(_as_expr(expr), descending=direction.upper() == "DESC")
        return OrderItem(_as_expr(value))

    def _output_slot(
        self, expr: Expr, items: List[Tuple[str, Expr]], t: Optional[Table] = None, alias: Optional[str] = None
    ) -> Optional[int]:
        if isinstance(expr, Literal) and isinstance(expr.value, int):
            if not 1 <= expr.value <= len(items):
                raise InvalidProjection(f"ORDER BY position {expr.value} is out of range")
            return expr.value - 1
        if isinstance(expr, ColumnRef):
            if expr.table is None:
                for i, (label, _) in enumerate(items):
                    if label.lower() == expr.key:
                        return i
            elif t is not None and expr.table.lower() in (t.name.lower(), (alias or "").lower()):
                # a qualified column matches the same column in the select list
                for i, (_, item_expr) in enumerate(items):
                    if isinstance(item_expr, ColumnRef) and item_expr.key == expr.key:
                        return i
        for i, (_, item_expr) in enumerate(items):
            if _matches(expr, item_expr):
                return i
        return None

    def _check_columns(self, expr: Expr, t: Optional[Table], alias: Optional[str] = None):
        for ref in column_refs(expr):
            if t is None:
                raise UnknownColumn(f"Unknown column '{ref.sql()}' (no table in FROM)")
            if ref.table is not None and ref.table.lower() not in (t.name.lower(), (alias or "").lower()):
                raise UnknownColumn(f"Unknown column '{ref.sql()}'")
            if t.schema.find(ref.name) is None:
                raise UnknownColumn(f"Column '{ref.name}' does not exist in table '{t.name}'")

    def _check_grouped(self, expr: Expr, groups: List[Expr]):
        if any(_matches(expr, g) for g in groups):
            return
        if isinstance(expr, Aggregate):
            return
        if isinstance(expr, ColumnRef):
            if not any(isinstance(g, ColumnRef) and g.key == expr.key for g in groups):
                raise InvalidProjection(
                    f"Column '{expr.sql()}' is invalid in the select list because it is not "
                    "contained in either an aggregate function or the GROUP BY clause"
                )
            return
        for child in expr.children():
            self._check_grouped(child, groups)

    def _partition(self, envs: List[Dict[str, Any]], groups: List[Expr]) -> Iterable[Tuple[Dict[str, Any], List[Dict[str, Any]]]]:
        """Yield (representative row, rows) per group in first-seen order."""
        if not groups:
            # an ungrouped aggregate query always yields one row
            yield (envs[0] if envs else {}), envs
            return
        partitions: Dict[Tuple[Any, ...], List[Dict[str, Any]]] = {}
        for env in envs:
            key = tuple(g.eval(env) for g in groups)
            partitions.setdefault(key, []).append(env)
        for rows in partitions.values():
            yield rows[0], rows
