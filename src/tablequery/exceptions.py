"""
tablequery Exception Hierarchy

Contains all exception classes raised by the query builder and its
bundled collaborators (tables, catalog, expressions, verbs).
"""


class TableQueryError(Exception):
    """
    Base exception for all tablequery operations.

    ::: This is-in-layer Utility-Layer.
    ::: This is a exception.
    ::: This is stateless.
    """
    pass


class TableNotFoundError(TableQueryError, LookupError):
    """
    Raised when a catalog cannot resolve a table name.

    ::: This is-in-layer Utility-Layer.
    ::: This is a exception.
    ::: This is stateless.
    """

    def __init__(self, name):
        self.name = name
        if name is None:
            message = "No table name given and no input table supplied"
        else:
            message = f"Unknown table: {name!r}"
        super().__init__(message)


class TableLoadError(TableQueryError):
    """
    Raised when a table file cannot be read or written.

    ::: This is-in-layer Utility-Layer.
    ::: This is a exception.
    ::: This is stateless.
    """
    pass


class VerbDecodeError(TableQueryError, ValueError):
    """
    Raised when a serialized verb object does not match any known verb encoding.

    ::: This is-in-layer Utility-Layer.
    ::: This is a exception.
    ::: This is stateless.
    """

    def __init__(self, message: str, obj=None):
        self.obj = obj
        super().__init__(message)


class ExpressionError(TableQueryError):
    """
    Raised when a table expression cannot be compiled or evaluated.

    ::: This is-in-layer Utility-Layer.
    ::: This is a exception.
    ::: This is stateless.
    """
    pass


class ExpressionParseError(ExpressionError):
    """
    Raised when a table expression has a syntax error.

    Carries the 1-based line and column of the offending input.
    """

    def __init__(self, message: str, expression: str, line: int = 1, column: int = 1):
        self.expression = expression
        self.line = line
        self.column = column
        super().__init__(
            f"Parse error at line {line}, column {column}: {message}\n"
            f"  Expression: {expression}"
        )


class ColumnNotFoundError(ExpressionError, KeyError):
    """Raised when an expression or verb references a missing column."""

    def __init__(self, column: str, available=None):
        self.column = column
        self.available = list(available or [])
        super().__init__(
            f"Column not found: {column!r} (available: {', '.join(self.available) or 'none'})"
        )

    def __str__(self) -> str:
        return self.args[0]


class ParameterNotFoundError(ExpressionError, KeyError):
    """Raised when an expression references a parameter with no value."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Parameter not set: ${name}")

    def __str__(self) -> str:
        return self.args[0]


__all__ = [
    "TableQueryError",
    "TableNotFoundError",
    "TableLoadError",
    "VerbDecodeError",
    "ExpressionError",
    "ExpressionParseError",
    "ColumnNotFoundError",
    "ParameterNotFoundError",
]
