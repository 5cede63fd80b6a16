class SQLBasicsError(Exception):
    """Base class for every error raised while parsing or running SQL."""

    @property
    def kind(self) -> str:
        return type(self).__name__


class ParseError(SQLBasicsError):
    def __init__(self, message: str, line: int = 0, col: int = 0):
        self.line = line
        self.col = col
        if line:
            message = f"{message} (line {line}, column {col})"
        super().__init__(message)


class SchemaError(SQLBasicsError):
    pass


class DuplicateTable(SchemaError):
    pass


class UnknownTable(SchemaError):
    pass


class UnknownColumn(SchemaError):
    pass


class DuplicateColumn(SchemaError):
    pass


class ArityMismatch(SQLBasicsError):
    pass


class TypeMismatch(SQLBasicsError):
    pass


class InvalidProjection(SQLBasicsError):
    pass


class ConstraintViolation(SQLBasicsError):
    pass


class StatementFailed(SQLBasicsError):
    """A statement inside a script failed; remaining statements were skipped."""

    def __init__(self, ordinal: int, sql: str, error: SQLBasicsError):
        self.ordinal = ordinal
        self.sql = sql
        self.error = error
        super().__init__(f"Error in statement {ordinal}: {error.kind}: {error}")
