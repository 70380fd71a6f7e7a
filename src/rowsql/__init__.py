"""rowsql: browse and edit relational databases without writing SQL.

One data-access layer over PostgreSQL, MySQL and SQLite: a dialect-aware
query builder, content-hash row identity and a bounded row cache.
"""

from rowsql._version import __version__

# Core entry point
from rowsql.rowsql import Rowsql

# Configuration and logging
from rowsql.log import create_logger
from rowsql.models.config import RowsqlConfig

# Descriptors
from rowsql.models.schema import (
    ColumnInfo,
    ColumnInput,
    DataTypeInfo,
    DataTypeSpec,
    FormDataTypes,
    HistoryEntry,
    InputKind,
    RowItem,
    TableInfo,
)

# Building blocks
from rowsql.engine.cache import RowCache
from rowsql.engine.hashing import normalize_row, row_hash
from rowsql.storage.builder import Query, QueryBuilder
from rowsql.storage.dialects import Dialect
from rowsql.storage.engine import create_rowsql_engine, detect_dialect
from rowsql.storage.sql import SqlHistoryRepository, SqlTableRepository

# Exceptions
from rowsql.exceptions import (
    AutoIncrementError,
    ColumnRowMismatchError,
    ConfigError,
    ConfirmationMismatchError,
    DialectDetectionError,
    DuplicateColumnError,
    EmptyTableNameError,
    ExecutionError,
    InvalidColumnError,
    InvalidJSONError,
    InvalidPaginationError,
    InvalidTableNameError,
    LimitTooLargeError,
    NoValuesProvidedError,
    QueryValidationError,
    RowNotFoundError,
    RowsqlError,
    TableNotAllowedError,
    UnsupportedDialectError,
)

__all__ = [
    "__version__",
    "Rowsql",
    "RowsqlConfig",
    "create_logger",
    "ColumnInfo",
    "ColumnInput",
    "DataTypeInfo",
    "DataTypeSpec",
    "FormDataTypes",
    "HistoryEntry",
    "InputKind",
    "RowItem",
    "TableInfo",
    "RowCache",
    "normalize_row",
    "row_hash",
    "Query",
    "QueryBuilder",
    "Dialect",
    "create_rowsql_engine",
    "detect_dialect",
    "SqlHistoryRepository",
    "SqlTableRepository",
    "AutoIncrementError",
    "ColumnRowMismatchError",
    "ConfigError",
    "ConfirmationMismatchError",
    "DialectDetectionError",
    "DuplicateColumnError",
    "EmptyTableNameError",
    "ExecutionError",
    "InvalidColumnError",
    "InvalidJSONError",
    "InvalidPaginationError",
    "InvalidTableNameError",
    "LimitTooLargeError",
    "NoValuesProvidedError",
    "QueryValidationError",
    "RowNotFoundError",
    "RowsqlError",
    "TableNotAllowedError",
    "UnsupportedDialectError",
]
