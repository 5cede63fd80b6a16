from dataclasses import dataclass, field
from typing import Any, List, Optional

from .exceptions import ConstraintViolation, SchemaError, UnknownColumn
from .types import check_value, normalize_type


@dataclass
class Column:
    name: str
    type: str
    length: Optional[int] = None
    nullable: bool = True
    primary_key: bool = False
    default: Any = None

    def __post_init__(self):
        self.type = normalize_type(self.type)
        if self.primary_key:
            self.nullable = False
        if self.default is not None:
            self.default = check_value(self.default, self.type, self.length, self.name)

    @property
    def declared(self) -> str:
        if self.length is not None:
            return f"{self.type}({self.length})"
        return self.type

    def check(self, value: Any):
        """Validate a value for this column and return its stored form."""
        value = check_value(value, self.type, self.length, self.name)
        if value is None and not self.nullable:
            raise ConstraintViolation(f"Column '{self.name}' does not allow NULL")
        return value


@dataclass
class TableSchema:
    """Schema of one table: ordered columns plus the primary key column names."""

    name: str
    columns: List[Column]
    primary_key: List[str] = field(default_factory=list)

    def __post_init__(self):
        if not self.columns:
            raise SchemaError(f"Table '{self.name}' must have at least one column")
        seen = set()
        for col in self.columns:
            key = col.name.lower()
            if key in seen:
                raise SchemaError(f"Column '{col.name}' specified more than once")
            seen.add(key)
        pk = list(self.primary_key) or [c.name for c in self.columns if c.primary_key]
        self.primary_key = []
        for name in pk:
            col = self.column(name)
            col.primary_key = True
            col.nullable = False
            self.primary_key.append(col.name)

    @property
    def column_names(self) -> List[str]:
        return [c.name for c in self.columns]

    def find(self, name: str) -> Optional[Column]:
        lower = name.lower()
        for col in self.columns:
            if col.name.lower() == lower:
                return col
        return None

    def column(self, name: str) -> Column:
        col = self.find(name)
        if col is None:
            raise UnknownColumn(f"Column '{name}' does not exist in table '{self.name}'")
        return col
