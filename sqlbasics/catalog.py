import logging
from dataclasses import dataclass
from typing import Dict, List, Union

from .exceptions import DuplicateTable, UnknownTable
from .schema import Column, TableSchema
from .storage import Table

logger = logging.getLogger(__name__)


@dataclass
class AddColumn:
    column: Column


@dataclass
class DropColumn:
    name: str


TableChange = Union[AddColumn, DropColumn]


class Catalog:
    """In-memory collection of tables, looked up by case-insensitive name.

    A catalog is owned by exactly one executor; nothing is shared between
    catalogs, so every run or test starts from a clean slate.
    """

    def __init__(self):
        self._tables: Dict[str, Table] = {}

    def create_table(self, schema: TableSchema) -> Table:
        key = schema.name.lower()
        if key in self._tables:
            raise DuplicateTable(f"Table '{schema.name}' already exists")
        table = Table(schema)
        self._tables[key] = table
        logger.debug("created table %s", schema.name)
        return table

    def get_table(self, name: str) -> Table:
        table = self._tables.get(name.lower())
        if table is None:
            raise UnknownTable(f"Table '{name}' not found")
        return table

    def has_table(self, name: str) -> bool:
        return name.lower() in self._tables

    def drop_table(self, name: str):
        if self._tables.pop(name.lower(), None) is None:
            raise UnknownTable(f"Table '{name}' not found")
        logger.debug("dropped table %s", name)

    def alter_table(self, name: str, change: TableChange):
        table = self.get_table(name)
        if isinstance(change, AddColumn):
            table.add_column(change.column)
        elif isinstance(change, DropColumn):
            table.drop_column(change.name)
        else:
            raise TypeError(f"Unsupported table change: {change!r}")
        logger.debug("altered table %s: %s", name, change)

    def rename_table(self, old_name: str, new_name: str):
        table = self.get_table(old_name)
        if new_name.lower() in self._tables and new_name.lower() != old_name.lower():
            raise DuplicateTable(f"Target table '{new_name}' already exists")
        del self._tables[old_name.lower()]
        table.schema.name = new_name
        self._tables[new_name.lower()] = table

    def table_names(self) -> List[str]:
        return [t.name for t in self._tables.values()]
