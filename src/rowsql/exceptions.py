"""rowsql exception hierarchy.

All rowsql-specific exceptions inherit from RowsqlError.

Validation errors are raised before any SQL is executed.  Execution errors
wrap whatever the database driver raised, keeping the original exception
as ``__cause__``.
"""

from __future__ import annotations


class RowsqlError(Exception):
    """Base exception for all rowsql errors."""


class ConfigError(RowsqlError):
    """Raised when required configuration is missing or malformed."""


# ---------------------------------------------------------------------------
# Dialect
# ---------------------------------------------------------------------------


class UnsupportedDialectError(RowsqlError):
    """Raised when a builder is asked for a dialect it does not know."""

    def __init__(self, dialect: object) -> None:
        self.dialect = dialect
        super().__init__(f"Unsupported dialect: {dialect!r}")


class DialectDetectionError(RowsqlError):
    """Raised when a connection string cannot be classified."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Unable to detect dialect: {reason}")


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class QueryValidationError(RowsqlError):
    """Base class for input rejected before any SQL runs.

    Named QueryValidationError (not ValidationError) to avoid
    collision with pydantic.ValidationError.
    """


class EmptyTableNameError(QueryValidationError):
    """Raised when a table name is empty."""

    def __init__(self) -> None:
        super().__init__("Table name cannot be empty")


class InvalidTableNameError(QueryValidationError):
    """Raised when a table name is not a plain identifier."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(
            f"Invalid table name '{name}': only letters, digits and _ are allowed"
        )


class InvalidColumnError(QueryValidationError):
    """Raised when a column name or column type is not a safe identifier."""

    def __init__(self, name: str, reason: str = "not a safe identifier") -> None:
        self.name = name
        self.reason = reason
        super().__init__(f"Invalid column '{name}': {reason}")


class InvalidPaginationError(QueryValidationError):
    """Raised for negative limits/offsets or page numbers below one."""

    def __init__(self, limit: int, offset: int) -> None:
        self.limit = limit
        self.offset = offset
        super().__init__(
            f"Invalid pagination (limit={limit}, offset={offset}): "
            "limit and offset must be >= 0"
        )


class LimitTooLargeError(QueryValidationError):
    """Raised when a requested page size exceeds the configured ceiling."""

    def __init__(self, limit: int, max_limit: int) -> None:
        self.limit = limit
        self.max_limit = max_limit
        super().__init__(f"Limit {limit} cannot be greater than {max_limit}")


class DuplicateColumnError(QueryValidationError):
    """Raised when the same column appears twice in one insert or update."""

    def __init__(self, column: str) -> None:
        self.column = column
        super().__init__(f"Duplicate column name: {column}")


class InvalidJSONError(QueryValidationError):
    """Raised when a value flagged as JSON does not parse."""

    def __init__(self, column: str, detail: str) -> None:
        self.column = column
        self.detail = detail
        super().__init__(f"Invalid JSON for column '{column}': {detail}")


class ColumnRowMismatchError(QueryValidationError):
    """Raised when a row vector does not line up with the column list."""

    def __init__(self, column_count: int, value_count: int) -> None:
        self.column_count = column_count
        self.value_count = value_count
        super().__init__(
            f"cols/rows length mismatch: {column_count} columns, {value_count} values"
        )


class AutoIncrementError(QueryValidationError):
    """Raised when auto-increment is requested on a non primary key column."""

    def __init__(self, column: str) -> None:
        self.column = column
        super().__init__(
            f"Auto-increment can only be set on primary key columns (column '{column}')"
        )


class NoValuesProvidedError(QueryValidationError):
    """Raised when an operation needs at least one value and got none."""

    def __init__(self, what: str = "values") -> None:
        super().__init__(f"No {what} provided")


class ConfirmationMismatchError(QueryValidationError):
    """Raised when a destructive operation is not confirmed verbatim."""

    def __init__(self, expected: str) -> None:
        self.expected = expected
        super().__init__(f"Failed to verify! Input should be exactly: `{expected}`")


# ---------------------------------------------------------------------------
# Authorization / lookup
# ---------------------------------------------------------------------------


class TableNotAllowedError(RowsqlError):
    """Raised when a table is not in the allow-list from the last listing."""

    def __init__(self, table: str) -> None:
        self.table = table
        super().__init__(f"Table not found: {table}")


class RowNotFoundError(RowsqlError):
    """Raised when a row token cannot be resolved by cache or re-scan."""

    def __init__(self, table: str, token: str) -> None:
        self.table = table
        self.token = token
        super().__init__(f"Row {token} not found in table '{table}'")


# ---------------------------------------------------------------------------
# Execution
# ---------------------------------------------------------------------------


class ExecutionError(RowsqlError):
    """Raised when the database rejects a statement.

    The driver exception is kept as ``cause`` and ``__cause__``; the
    message is not rewritten beyond the operation/resource prefix.
    """

    def __init__(self, operation: str, resource: str, cause: BaseException) -> None:
        self.operation = operation
        self.resource = resource
        self.cause = cause
        super().__init__(f"{operation} {resource}: {cause}")
