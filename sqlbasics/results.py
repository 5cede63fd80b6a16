from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass
class QueryResult:
    """Output of a SELECT: column labels plus rows aligned with them."""

    columns: List[str]
    rows: List[List[Any]] = field(default_factory=list)

    def __len__(self):
        return len(self.rows)

    def as_dicts(self) -> List[Dict[str, Any]]:
        return [dict(zip(self.columns, r)) for r in self.rows]

    def column(self, name: str) -> List[Any]:
        idx = self.columns.index(name)
        return [r[idx] for r in self.rows]

    def scalar(self):
        """Value of a single-row single-column result."""
        if len(self.columns) != 1 or len(self.rows) != 1:
            raise ValueError(f"Result is not a scalar: {len(self.rows)} rows x {len(self.columns)} columns")
        return self.rows[0][0]


@dataclass
class CommandResult:
    """Outcome of a statement that does not return rows (DDL and DML)."""

    statement: str
    affected: int = 0
    target: str = ""
    message: str = "OK"
