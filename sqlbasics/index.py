from typing import Any, Dict, Iterable, Optional, Tuple

from .exceptions import ConstraintViolation


class Index:
    """Unique hash index: key tuple -> row id.

    Backs the primary key of a table. Keys are tuples of the indexed
    columns' values in declaration order.
    """

    def __init__(self, columns: Iterable[str]):
        self.columns = list(columns)
        self._map: Dict[Tuple[Any, ...], int] = {}

    def key(self, row: Dict[str, Any]) -> Tuple[Any, ...]:
        return tuple(row.get(c) for c in self.columns)

    def add(self, row: Dict[str, Any], rowid: int):
        key = self.key(row)
        if key in self._map and self._map[key] != rowid:
            raise ConstraintViolation(
                f"PRIMARY KEY violation on ({', '.join(self.columns)}): {_show(key)} already exists"
            )
        self._map[key] = rowid

    def remove(self, row: Dict[str, Any], rowid: int):
        key = self.key(row)
        if self._map.get(key) == rowid:
            del self._map[key]

    def lookup(self, key: Tuple[Any, ...]) -> Optional[int]:
        return self._map.get(tuple(key))

    def without(self, rowids: Iterable[int]) -> "Index":
        """Copy of this index that leaves out the given row ids."""
        skip = set(rowids)
        candidate = Index(self.columns)
        candidate._map = {k: v for k, v in self._map.items() if v not in skip}
        return candidate

    def clear(self):
        self._map.clear()

    def __len__(self):
        return len(self._map)


def _show(key: Tuple[Any, ...]) -> str:
    if len(key) == 1:
        return repr(key[0])
    return repr(key)
