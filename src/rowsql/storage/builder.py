"""Dialect-aware SQL construction.

QueryBuilder turns structured intent (list rows, insert, update, ...) into
SQL text plus an ordered argument list.  It never touches a connection:
every method either returns a :class:`Query` or raises a
QueryValidationError subclass.

Placeholders are emitted in rowsql's own notation (``$n`` for postgres and
sqlite, ``?`` for mysql).  ``storage.engine.to_driver_sql`` rewrites them
for the DB-API driver at execution time.
"""

from __future__ import annotations

import json
import re
from typing import Any, NamedTuple, Sequence

from rowsql.exceptions import (
    AutoIncrementError,
    ColumnRowMismatchError,
    DuplicateColumnError,
    EmptyTableNameError,
    InvalidColumnError,
    InvalidJSONError,
    InvalidPaginationError,
    InvalidTableNameError,
    LimitTooLargeError,
    NoValuesProvidedError,
)
from rowsql.models.schema import ColumnInfo, ColumnInput, FormDataTypes, RowItem
from rowsql.storage.dialects import HISTORY_TABLE, Dialect, DialectStrategy, get_dialect

IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_TYPE_NAME_RE = re.compile(r"^[A-Za-z0-9_ ]+$")

DEFAULT_MAX_LIMIT = 10


class Query(NamedTuple):
    """SQL text and its arguments, in placeholder order."""

    sql: str
    args: list[Any]


def _require_table(table: str) -> None:
    if not table:
        raise EmptyTableNameError()


def _require_identifier(name: str) -> None:
    if not IDENTIFIER_RE.match(name):
        raise InvalidColumnError(name)


def _json_arg(column: str, value: Any) -> str:
    """Parse a JSON value and re-encode it compactly.

    Strings are treated as JSON text; anything else (already decoded by the
    driver) is encoded as-is.
    """
    if isinstance(value, (bytes, bytearray)):
        value = bytes(value).decode("utf-8", errors="replace")
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except json.JSONDecodeError as exc:
            raise InvalidJSONError(column, str(exc)) from None
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


class QueryBuilder:
    """Builds SQL for one dialect.

    Args:
        dialect: A :class:`Dialect` or its string value.
        max_limit: Ceiling for ``list_rows`` page sizes.

    Raises:
        UnsupportedDialectError: If *dialect* is not supported.
    """

    def __init__(self, dialect: Dialect | str, max_limit: int = DEFAULT_MAX_LIMIT) -> None:
        self._strategy: DialectStrategy = get_dialect(dialect)
        self._max_limit = max_limit

    @property
    def dialect(self) -> Dialect:
        return self._strategy.name

    @property
    def max_limit(self) -> int:
        return self._max_limit

    def _table(self, table: str) -> str:
        _require_table(table)
        return self._strategy.quote_table(table)

    def _ph(self, index: int) -> str:
        return self._strategy.placeholder(index)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def list_tables(self) -> Query:
        return Query(self._strategy.tables_query, [])

    def list_columns(self, table: str) -> Query:
        _require_table(table)
        return Query(self._strategy.columns_query, self._strategy.columns_args(table))

    def table_exists(self, table: str) -> Query:
        _require_table(table)
        return Query(self._strategy.table_exists_query, [table])

    def count_rows(self, table: str) -> Query:
        return Query(f"SELECT COUNT(*) FROM {self._table(table)}", [])

    def form_data_types(self) -> FormDataTypes:
        return self._strategy.form_types

    # ------------------------------------------------------------------
    # Rows
    # ------------------------------------------------------------------

    def _pagination(self, limit: int, offset: int, start: int = 1) -> tuple[str, list[Any]]:
        if limit < 0 or offset < 0:
            raise InvalidPaginationError(limit, offset)
        parts: list[str] = []
        args: list[Any] = []
        index = start
        if limit > 0:
            parts.append(f"LIMIT {self._ph(index)}")
            args.append(limit)
            index += 1
        if offset > 0:
            parts.append(f"OFFSET {self._ph(index)}")
            args.append(offset)
        return " ".join(parts), args

    def list_rows(
        self,
        table: str,
        limit: int,
        offset: int,
        order_col: str = "",
        order_dir: str = "",
    ) -> Query:
        """SELECT one page of *table*.

        LIMIT and OFFSET are left out when zero.  Any *order_dir* other than
        ``desc`` (case-insensitive) sorts ascending.
        """
        quoted = self._table(table)
        if limit > self._max_limit:
            raise LimitTooLargeError(limit, self._max_limit)
        page, args = self._pagination(limit, offset)

        sql = f"SELECT * FROM {quoted}"
        if order_col:
            _require_identifier(order_col)
            direction = "DESC" if order_dir.lower() == "desc" else "ASC"
            sql += f" ORDER BY {order_col} {direction}"
        if page:
            sql += f" {page}"
        return Query(sql, args)

    def where_clause(
        self,
        columns: Sequence[ColumnInfo],
        row: Sequence[Any],
        start_index: int = 1,
    ) -> Query:
        """Build a predicate identifying *row*.

        The first unique column alone identifies the row when there is one.
        Otherwise every column is matched.  Placeholders are numbered from
        *start_index*; ``None`` values render ``IS NULL`` and take no
        argument.
        """
        if len(columns) != len(row):
            raise ColumnRowMismatchError(len(columns), len(row))

        for column, value in zip(columns, row):
            if column.is_unique:
                sql, args, _ = self._predicate(column, value, start_index)
                return Query(sql, args)

        parts: list[str] = []
        args: list[Any] = []
        index = start_index
        for column, value in zip(columns, row):
            sql, col_args, index = self._predicate(column, value, index)
            parts.append(sql)
            args.extend(col_args)
        return Query(" AND ".join(parts), args)

    def _predicate(
        self, column: ColumnInfo, value: Any, index: int
    ) -> tuple[str, list[Any], int]:
        if value is None:
            return f"{column.name} IS NULL", [], index
        ph = self._ph(index)
        if column.is_json:
            return (
                self._strategy.json_match(column.name, ph),
                [_json_arg(column.name, value)],
                index + 1,
            )
        return f"{column.name} = {ph}", [value], index + 1

    def _values(self, items: Sequence[RowItem]) -> tuple[list[str], list[Any]]:
        names: list[str] = []
        values: list[Any] = []
        seen: set[str] = set()
        for item in items:
            _require_identifier(item.column_name)
            if item.column_name in seen:
                raise DuplicateColumnError(item.column_name)
            seen.add(item.column_name)
            names.append(item.column_name)
            values.append(_json_arg(item.column_name, item.value) if item.is_json else item.value)
        return names, values

    def insert_row(self, table: str, items: Sequence[RowItem]) -> Query:
        quoted = self._table(table)
        names, values = self._values(items)
        if not names:
            return Query(self._strategy.empty_insert(quoted), [])
        placeholders = ", ".join(self._ph(i) for i in range(1, len(names) + 1))
        return Query(
            f"INSERT INTO {quoted} ({', '.join(names)}) VALUES ({placeholders})",
            values,
        )

    def update_row(
        self,
        table: str,
        items: Sequence[RowItem],
        columns: Sequence[ColumnInfo],
        row: Sequence[Any],
    ) -> Query:
        """UPDATE the single row identified by *row*.

        SET placeholders are numbered from 1; the identity predicate
        continues after them.
        """
        quoted = self._table(table)
        if not items:
            raise NoValuesProvidedError("values to update")
        names, values = self._values(items)
        assignments = ", ".join(
            f"{name} = {self._ph(i)}" for i, name in enumerate(names, start=1)
        )
        where = self.where_clause(columns, row, start_index=len(names) + 1)
        return Query(
            self._strategy.update_one(quoted, assignments, where.sql),
            values + where.args,
        )

    def delete_row(
        self, table: str, columns: Sequence[ColumnInfo], row: Sequence[Any]
    ) -> Query:
        quoted = self._table(table)
        where = self.where_clause(columns, row)
        return Query(self._strategy.delete_one(quoted, where.sql), where.args)

    # ------------------------------------------------------------------
    # DDL
    # ------------------------------------------------------------------

    def _column_definition(self, column: ColumnInput) -> str:
        if not IDENTIFIER_RE.match(column.name):
            raise InvalidColumnError(column.name)
        type_name = column.data_type.type.strip()
        if not _TYPE_NAME_RE.match(type_name):
            raise InvalidColumnError(column.name, f"invalid type '{column.data_type.type}'")
        if column.data_type.auto_increment and not column.primary_key:
            raise AutoIncrementError(column.name)

        definition = f"{column.name} {type_name}"
        if column.data_type.size:
            definition += f"({column.data_type.size})"
        if column.unique:
            definition += " UNIQUE"
        if not column.nullable:
            definition += " NOT NULL"
        if column.primary_key:
            definition += " PRIMARY KEY"
        if column.data_type.auto_increment:
            definition += f" {self._strategy.auto_increment_keyword}"
        return definition

    def create_table(self, table: str, columns: Sequence[ColumnInput]) -> Query:
        """CREATE TABLE from column definitions.

        Columns with an empty name are skipped.  The table name is checked
        before anything else because it cannot be bound as an argument.
        """
        _require_table(table)
        if not IDENTIFIER_RE.match(table):
            raise InvalidTableNameError(table)
        definitions = [self._column_definition(c) for c in columns if c.name]
        if not definitions:
            raise NoValuesProvidedError("columns")
        return Query(f"CREATE TABLE {table} ({', '.join(definitions)})", [])

    def drop_table(self, table: str) -> Query:
        return Query(f"DROP TABLE IF EXISTS {self._table(table)}", [])

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def create_history_table(self) -> Query:
        return Query(self._strategy.history_table_ddl, [])

    def insert_history(self, message: str) -> Query:
        return Query(self._strategy.history_insert, [message])

    def list_history(self, limit: int, offset: int) -> Query:
        page, args = self._pagination(limit, offset)
        sql = f"SELECT id, message, time FROM {HISTORY_TABLE} ORDER BY id DESC"
        if page:
            sql += f" {page}"
        return Query(sql, args)

    def delete_history(self, entry_id: int) -> Query:
        return Query(f"DELETE FROM {HISTORY_TABLE} WHERE id = {self._ph(1)}", [entry_id])
