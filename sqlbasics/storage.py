import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .exceptions import ConstraintViolation, DuplicateColumn, SchemaError
from .index import Index
from .schema import Column, TableSchema

logger = logging.getLogger(__name__)


class Table:
    """A single in-memory table: schema, rows, and the primary-key index.

    Rows are kept in insertion order, keyed by an internal row id. Every
    mutating method validates the whole batch before touching any row, so a
    failed statement leaves the table unchanged.
    """

    def __init__(self, schema: TableSchema):
        self.schema = schema
        self._rows: Dict[int, Dict[str, Any]] = {}
        self._next_rowid = 1
        self.pk_index: Optional[Index] = Index(schema.primary_key) if schema.primary_key else None

    @property
    def name(self) -> str:
        return self.schema.name

    @property
    def columns(self) -> List[Column]:
        return self.schema.columns

    def __len__(self):
        return len(self._rows)

    def scan(self) -> List[Dict[str, Any]]:
        return list(self._rows.values())

    def items(self) -> List[Tuple[int, Dict[str, Any]]]:
        return list(self._rows.items())

    def get(self, key: Iterable[Any]) -> Optional[Dict[str, Any]]:
        if self.pk_index is None:
            return None
        rowid = self.pk_index.lookup(tuple(key))
        return None if rowid is None else self._rows[rowid]

    def _record(self, values: Dict[str, Any]) -> Dict[str, Any]:
        given = {}
        for name, val in values.items():
            given[self.schema.column(name).name] = val
        record: Dict[str, Any] = {}
        for col in self.columns:
            if col.name in given:
                val = given[col.name]
            else:
                val = col.default
                if val is None and not col.nullable:
                    raise ConstraintViolation(
                        f"Column '{col.name}' does not allow NULL and has no default"
                    )
            record[col.name] = col.check(val)
        return record

    def _check_keys(self, records: List[Tuple[int, Dict[str, Any]]], replacing: Iterable[int] = ()):
        if self.pk_index is None:
            return
        candidate = self.pk_index.without(replacing)
        for rowid, rec in records:
            candidate.add(rec, rowid)

    def insert(self, row: Dict[str, Any]) -> int:
        return self.insert_many([row])

    def insert_many(self, rows: List[Dict[str, Any]]) -> int:
        records = []
        next_rowid = self._next_rowid
        for row in rows:
            records.append((next_rowid, self._record(row)))
            next_rowid += 1
        self._check_keys(records)
        for rowid, rec in records:
            self._rows[rowid] = rec
            if self.pk_index is not None:
                self.pk_index.add(rec, rowid)
        self._next_rowid = next_rowid
        logger.debug("inserted %d rows into %s", len(records), self.name)
        return len(records)

    def update_many(self, changes: Dict[int, Dict[str, Any]]) -> int:
        """Apply per-row column changes keyed by row id."""
        updated = []
        for rowid, assignments in changes.items():
            old = self._rows[rowid]
            new = dict(old)
            for name, val in assignments.items():
                col = self.schema.column(name)
                new[col.name] = col.check(val)
            updated.append((rowid, new))
        self._check_keys(updated, replacing=changes.keys())
        for rowid, new in updated:
            if self.pk_index is not None:
                self.pk_index.remove(self._rows[rowid], rowid)
            self._rows[rowid] = new
        if self.pk_index is not None:
            for rowid, new in updated:
                self.pk_index.add(new, rowid)
        return len(updated)

    def delete_many(self, rowids: Iterable[int]) -> int:
        deleted = 0
        for rowid in list(rowids):
            row = self._rows.pop(rowid, None)
            if row is None:
                continue
            if self.pk_index is not None:
                self.pk_index.remove(row, rowid)
            deleted += 1
        return deleted

    def truncate(self) -> int:
        count = len(self._rows)
        self._rows.clear()
        if self.pk_index is not None:
            self.pk_index.clear()
        return count

    def add_column(self, column: Column):
        if self.schema.find(column.name) is not None:
            raise DuplicateColumn(f"Column '{column.name}' already exists in table '{self.name}'")
        if self._rows and column.default is None and not column.nullable:
            raise ConstraintViolation(
                f"Cannot add NOT NULL column '{column.name}' without a default to non-empty table '{self.name}'"
            )
        if column.primary_key:
            raise ConstraintViolation("Cannot add a PRIMARY KEY column with ALTER TABLE ADD")
        self.schema.columns.append(column)
        for row in self._rows.values():
            row[column.name] = column.default

    def drop_column(self, name: str):
        col = self.schema.column(name)
        if col.primary_key:
            raise ConstraintViolation(f"Cannot drop primary key column '{col.name}'")
        if len(self.schema.columns) == 1:
            raise SchemaError(f"Cannot drop the only column of table '{self.name}'")
        self.schema.columns.remove(col)
        for row in self._rows.values():
            row.pop(col.name, None)
