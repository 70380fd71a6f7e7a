"""Dialect strategies.

Each supported engine gets one small class holding its SQL text and its
quoting/placeholder rules.  The query builder resolves a strategy once, at
construction, and never branches on the dialect again.

No SQLAlchemy imports here -- pure SQL text.
"""

from __future__ import annotations

import enum
from abc import ABC, abstractmethod

from rowsql.exceptions import UnsupportedDialectError
from rowsql.models.schema import FormDataTypes
from rowsql.storage.datatypes import MYSQL_TYPES, POSTGRES_TYPES, SQLITE_TYPES

HISTORY_TABLE = "rowsql_history"


class Dialect(str, enum.Enum):
    """The SQL engines rowsql can talk to."""

    POSTGRES = "postgres"
    MYSQL = "mysql"
    SQLITE = "sqlite"


_INFORMATION_SCHEMA_TABLES = """
SELECT
  table_schema,
  table_name
FROM information_schema.tables
WHERE table_type = 'BASE TABLE'
  AND table_schema NOT IN (
    'pg_catalog',
    'information_schema',
    'mysql',
    'performance_schema',
    'sys'
  )
ORDER BY table_schema, table_name
"""

_POSTGRES_COLUMNS = """
SELECT
    c.column_name,
    c.data_type,
    (c.column_default IS NOT NULL) AS has_default,
    COALESCE(
        bool_or(tc.constraint_type IN ('UNIQUE', 'PRIMARY KEY')),
        false
    ) AS is_unique,
    (
        c.is_identity = 'YES'
        OR c.column_default LIKE 'nextval(%'
    ) AS is_auto_increment
FROM information_schema.columns c
LEFT JOIN information_schema.key_column_usage kcu
    ON c.table_name = kcu.table_name
    AND c.column_name = kcu.column_name
    AND c.table_schema = kcu.table_schema
LEFT JOIN information_schema.table_constraints tc
    ON kcu.constraint_name = tc.constraint_name
    AND kcu.table_schema = tc.table_schema
WHERE c.table_name = $1
GROUP BY
    c.column_name,
    c.data_type,
    c.ordinal_position,
    c.is_identity,
    c.column_default
ORDER BY c.ordinal_position
"""

_MYSQL_COLUMNS = """
SELECT
    c.column_name,
    c.data_type,
    (c.column_default IS NOT NULL) AS has_default,
    COALESCE(
        MAX(CASE
            WHEN tc.constraint_type IN ('UNIQUE', 'PRIMARY KEY') THEN 1
            ELSE 0
        END) = 1,
        false
    ) AS is_unique,
    (c.extra LIKE '%auto_increment%') AS is_auto_increment
FROM information_schema.columns c
LEFT JOIN information_schema.key_column_usage kcu
    ON c.table_name = kcu.table_name
    AND c.column_name = kcu.column_name
    AND c.table_schema = kcu.table_schema
LEFT JOIN information_schema.table_constraints tc
    ON kcu.constraint_name = tc.constraint_name
    AND kcu.table_schema = tc.table_schema
WHERE c.table_name = ?
  AND c.table_schema = DATABASE()
GROUP BY
    c.column_name,
    c.data_type,
    c.ordinal_position,
    c.extra,
    c.column_default
ORDER BY c.ordinal_position
"""

_SQLITE_TABLES = """
SELECT
  '' AS table_schema,
  name AS table_name
FROM sqlite_master
WHERE type = 'table'
  AND name NOT LIKE 'sqlite_%'
ORDER BY name
"""

_SQLITE_COLUMNS = """
SELECT
    p.name AS column_name,
    p.type AS data_type,
    (p.dflt_value IS NOT NULL) AS has_default,
    CASE
        WHEN p.pk > 0 THEN 1
        WHEN EXISTS (
            SELECT 1
            FROM pragma_index_list($1) il
            JOIN pragma_index_info(il.name) ii
                ON ii.name = p.name
            WHERE il."unique" = 1
        ) THEN 1
        ELSE 0
    END AS is_unique,
    CASE
        WHEN p.pk = 1
             AND lower(p.type) = 'integer'
        THEN 1
        ELSE 0
    END AS is_auto_increment
FROM pragma_table_info($2) AS p
ORDER BY p.cid
"""


class DialectStrategy(ABC):
    """SQL text and lexical rules of one engine."""

    name: Dialect
    quote_char: str = '"'
    auto_increment_keyword: str
    form_types: FormDataTypes
    tables_query: str
    columns_query: str
    table_exists_query: str
    history_table_ddl: str
    history_insert: str

    @abstractmethod
    def placeholder(self, index: int) -> str:
        """Render the placeholder for the 1-based argument *index*."""
        ...

    @abstractmethod
    def columns_args(self, table: str) -> list[str]:
        """Arguments bound to ``columns_query``."""
        ...

    @abstractmethod
    def json_match(self, column: str, placeholder: str) -> str:
        """Predicate matching a JSON column against a JSON argument."""
        ...

    @abstractmethod
    def empty_insert(self, table: str) -> str:
        """INSERT statement that supplies no column values."""
        ...

    @abstractmethod
    def delete_one(self, table: str, where: str) -> str:
        """DELETE affecting at most one row matching *where*."""
        ...

    @abstractmethod
    def update_one(self, table: str, assignments: str, where: str) -> str:
        """UPDATE affecting at most one row matching *where*."""
        ...

    def quote_table(self, table: str) -> str:
        """Quote a table name only when it contains a space."""
        if " " in table:
            return f"{self.quote_char}{table}{self.quote_char}"
        return table

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class _RowIdDialect(DialectStrategy):
    """Engines with ``$n`` placeholders and a hidden physical row id."""

    row_id: str

    def placeholder(self, index: int) -> str:
        return f"${index}"

    def empty_insert(self, table: str) -> str:
        return f"INSERT INTO {table} DEFAULT VALUES"

    def _one_row(self, table: str, where: str) -> str:
        return f"{self.row_id} IN (SELECT {self.row_id} FROM {table} WHERE {where} LIMIT 1)"

    def delete_one(self, table: str, where: str) -> str:
        return f"DELETE FROM {table} WHERE {self._one_row(table, where)}"

    def update_one(self, table: str, assignments: str, where: str) -> str:
        return f"UPDATE {table} SET {assignments} WHERE {self._one_row(table, where)}"


class PostgresDialect(_RowIdDialect):
    name = Dialect.POSTGRES
    row_id = "ctid"
    auto_increment_keyword = "GENERATED BY DEFAULT AS IDENTITY"
    form_types = POSTGRES_TYPES
    tables_query = _INFORMATION_SCHEMA_TABLES
    columns_query = _POSTGRES_COLUMNS
    table_exists_query = (
        "SELECT 1 FROM information_schema.tables "
        "WHERE table_schema = current_schema() AND table_name = $1"
    )
    history_table_ddl = (
        f"CREATE TABLE IF NOT EXISTS {HISTORY_TABLE} ("
        "id SERIAL PRIMARY KEY, "
        "message TEXT, "
        "time TIMESTAMP WITH TIME ZONE DEFAULT NOW())"
    )
    history_insert = f"INSERT INTO {HISTORY_TABLE} (message, time) VALUES ($1, NOW())"

    def columns_args(self, table: str) -> list[str]:
        return [table]

    def json_match(self, column: str, placeholder: str) -> str:
        return f"{column}::jsonb @> {placeholder}::jsonb"


class SqliteDialect(_RowIdDialect):
    name = Dialect.SQLITE
    row_id = "rowid"
    auto_increment_keyword = "AUTOINCREMENT"
    form_types = SQLITE_TYPES
    tables_query = _SQLITE_TABLES
    columns_query = _SQLITE_COLUMNS
    table_exists_query = "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = $1"
    history_table_ddl = (
        f"CREATE TABLE IF NOT EXISTS {HISTORY_TABLE} ("
        "id INTEGER PRIMARY KEY AUTOINCREMENT, "
        "message TEXT, "
        "time DATETIME DEFAULT CURRENT_TIMESTAMP)"
    )
    history_insert = (
        f"INSERT INTO {HISTORY_TABLE} (message, time) VALUES ($1, datetime('now'))"
    )

    def columns_args(self, table: str) -> list[str]:
        return [table, table]

    def json_match(self, column: str, placeholder: str) -> str:
        return f"json({column}) = json({placeholder})"


class MySQLDialect(DialectStrategy):
    name = Dialect.MYSQL
    quote_char = "`"
    auto_increment_keyword = "AUTO_INCREMENT"
    form_types = MYSQL_TYPES
    tables_query = _INFORMATION_SCHEMA_TABLES
    columns_query = _MYSQL_COLUMNS
    table_exists_query = (
        "SELECT 1 FROM information_schema.tables "
        "WHERE table_schema = DATABASE() AND table_name = ?"
    )
    history_table_ddl = (
        f"CREATE TABLE IF NOT EXISTS {HISTORY_TABLE} ("
        "id INT AUTO_INCREMENT PRIMARY KEY, "
        "message TEXT, "
        "time TIMESTAMP DEFAULT CURRENT_TIMESTAMP)"
    )
    history_insert = f"INSERT INTO {HISTORY_TABLE} (message, time) VALUES (?, NOW())"

    def placeholder(self, index: int) -> str:
        return "?"

    def columns_args(self, table: str) -> list[str]:
        return [table]

    def json_match(self, column: str, placeholder: str) -> str:
        return f"JSON_CONTAINS({column}, {placeholder})"

    def empty_insert(self, table: str) -> str:
        return f"INSERT INTO {table} () VALUES ()"

    def delete_one(self, table: str, where: str) -> str:
        return f"DELETE FROM {table} WHERE {where} LIMIT 1"

    def update_one(self, table: str, assignments: str, where: str) -> str:
        return f"UPDATE {table} SET {assignments} WHERE {where} LIMIT 1"


_STRATEGIES: dict[Dialect, type[DialectStrategy]] = {
    Dialect.POSTGRES: PostgresDialect,
    Dialect.MYSQL: MySQLDialect,
    Dialect.SQLITE: SqliteDialect,
}


def get_dialect(dialect: Dialect | str) -> DialectStrategy:
    """Return the strategy for *dialect*.

    Raises:
        UnsupportedDialectError: For anything that is not a known dialect.
            There is no fallback dialect.
    """
    try:
        key = Dialect(dialect)
    except ValueError:
        raise UnsupportedDialectError(dialect) from None
    return _STRATEGIES[key]()
