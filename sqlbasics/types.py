from typing import Any, Optional
from datetime import date, datetime

from .exceptions import ConstraintViolation, SchemaError, TypeMismatch

PRIMITIVE_TYPES = {"INT", "TEXT", "DATE"}

TYPE_ALIASES = {
    "INT": "INT",
    "INTEGER": "INT",
    "BIGINT": "INT",
    "SMALLINT": "INT",
    "TINYINT": "INT",
    "TEXT": "TEXT",
    "VARCHAR": "TEXT",
    "NVARCHAR": "TEXT",
    "CHAR": "TEXT",
    "NCHAR": "TEXT",
    "DATE": "DATE",
}

_NUMERIC = (int, float)


def normalize_type(name: str) -> str:
    """Map a declared SQL type name (INT, VARCHAR, ...) onto INT, TEXT or DATE."""
    typ = TYPE_ALIASES.get(name.upper())
    if typ is None:
        raise SchemaError(f"Unknown type: {name}")
    return typ


def validate_type_name(name: str) -> bool:
    return name.upper() in TYPE_ALIASES


def value_type(value: Any) -> Optional[str]:
    """Return the SQL type of a runtime value, or None for NULL."""
    if value is None:
        return None
    if isinstance(value, bool):
        return "BOOL"
    if isinstance(value, int):
        return "INT"
    if isinstance(value, float):
        return "FLOAT"
    if isinstance(value, str):
        return "TEXT"
    if isinstance(value, date) and not isinstance(value, datetime):
        return "DATE"
    return type(value).__name__


def check_value(value: Any, typ: str, length: Optional[int] = None, column: str = "?"):
    """Check a value against a column type and return the stored form.

    No coercion happens except for DATE, where an ISO string literal
    (YYYY-MM-DD) is accepted and stored as a ``datetime.date``. Raises
    TypeMismatch when the value does not belong to the declared type.
    """
    if typ not in PRIMITIVE_TYPES:
        raise SchemaError(f"Unknown type: {typ}")
    if value is None:
        return None
    if typ == "INT":
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    elif typ == "TEXT":
        if isinstance(value, str):
            if length is not None and len(value) > length:
                raise ConstraintViolation(
                    f"Value for column '{column}' exceeds maximum length {length}: {value!r}"
                )
            return value
    elif typ == "DATE":
        if isinstance(value, date) and not isinstance(value, datetime):
            return value
        if isinstance(value, str):
            try:
                return date.fromisoformat(value.strip())
            except ValueError:
                raise TypeMismatch(
                    f"Cannot store {value!r} in DATE column '{column}' (expected YYYY-MM-DD)"
                )
    raise TypeMismatch(
        f"Cannot store {value_type(value)} value {value!r} in {typ} column '{column}'"
    )


def _comparable(left: Any, right: Any):
    if isinstance(left, bool) or isinstance(right, bool):
        raise TypeMismatch(f"Cannot compare {left!r} with {right!r}")
    if isinstance(left, _NUMERIC) and isinstance(right, _NUMERIC):
        return left, right
    if isinstance(left, str) and isinstance(right, str):
        return left, right
    # date literals are written as strings
    if isinstance(left, date) and isinstance(right, str):
        return left, check_value(right, "DATE", column="<literal>")
    if isinstance(left, str) and isinstance(right, date):
        return check_value(left, "DATE", column="<literal>"), right
    if isinstance(left, date) and isinstance(right, date):
        return left, right
    raise TypeMismatch(
        f"Cannot compare {value_type(left)} value {left!r} with {value_type(right)} value {right!r}"
    )


def compare(op: str, left: Any, right: Any) -> Optional[bool]:
    """Three-valued comparison: returns True, False, or None for unknown."""
    if left is None or right is None:
        return None
    left, right = _comparable(left, right)
    if op == "=":
        return left == right
    if op in ("!=", "<>"):
        return left != right
    if op == "<":
        return left < right
    if op == "<=":
        return left <= right
    if op == ">":
        return left > right
    if op == ">=":
        return left >= right
    raise ValueError(f"Unknown comparison operator: {op}")


def and3(left: Optional[bool], right: Optional[bool]) -> Optional[bool]:
    if left is False or right is False:
        return False
    if left is None or right is None:
        return None
    return True


def or3(left: Optional[bool], right: Optional[bool]) -> Optional[bool]:
    if left is True or right is True:
        return True
    if left is None or right is None:
        return None
    return False


def not3(value: Optional[bool]) -> Optional[bool]:
    if value is None:
        return None
    return not value


def arithmetic(op: str, left: Any, right: Any):
    if left is None or right is None:
        return None
    for v in (left, right):
        if isinstance(v, bool) or not isinstance(v, _NUMERIC):
            raise TypeMismatch(f"Operator '{op}' needs numeric operands, got {v!r}")
    if op == "+":
        return left + right
    if op == "-":
        return left - right
    if op == "*":
        return left * right
    raise ValueError(f"Unknown arithmetic operator: {op}")


def sort_key(value: Any):
    """Key that puts NULL before every non-NULL value."""
    if value is None:
        return (0, 0)
    return (1, value)
