"""SQLAlchemy implementations of the rowsql repositories.

Reads run on ``engine.connect()``, writes inside ``engine.begin()`` so each
statement commits on its own.  Driver failures surface as ExecutionError
with the SQLAlchemy exception chained.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Sequence

from sqlalchemy import Engine, Row
from sqlalchemy.exc import SQLAlchemyError

from rowsql.engine.cache import RowCache
from rowsql.engine.hashing import normalize_row, normalize_value, row_hash
from rowsql.exceptions import (
    ConfirmationMismatchError,
    EmptyTableNameError,
    ExecutionError,
    NoValuesProvidedError,
    RowNotFoundError,
    TableNotAllowedError,
)
from rowsql.models.schema import ColumnInfo, ColumnInput, HistoryEntry, RowItem, TableInfo
from rowsql.storage.builder import Query, QueryBuilder
from rowsql.storage.datatypes import infer_input_kind
from rowsql.storage.dialects import HISTORY_TABLE
from rowsql.storage.engine import execute, is_missing_table_error
from rowsql.storage.repositories import HistoryRepository, TableRepository

logger = logging.getLogger(__name__)


def _parse_time(value: Any, log: logging.Logger) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(normalize_value(value)))
    except ValueError:
        log.warning("Unparseable history timestamp: %r", value)
        return None


class SqlHistoryRepository(HistoryRepository):
    """History log stored in the ``rowsql_history`` table of the target database.

    The table is created lazily: the first insert that reports a missing
    table creates it and retries once.
    """

    def __init__(
        self,
        engine: Engine,
        builder: QueryBuilder,
        logger: logging.Logger | None = None,
    ) -> None:
        self._engine = engine
        self._builder = builder
        self._log = logger if logger is not None else logging.getLogger(__name__)

    def create_table(self) -> None:
        try:
            with self._engine.begin() as conn:
                execute(conn, self._builder.create_history_table(), self._log)
        except SQLAlchemyError as exc:
            self._log.error("Failed to create history table: %s", exc)
            raise ExecutionError("create", HISTORY_TABLE, exc) from exc

    def _insert(self, query: Query) -> None:
        with self._engine.begin() as conn:
            execute(conn, query, self._log)

    def insert(self, message: str) -> None:
        query = self._builder.insert_history(message)
        try:
            self._insert(query)
        except SQLAlchemyError as exc:
            if not is_missing_table_error(exc):
                self._log.error("Failed to record history %r: %s", message, exc)
                return
            try:
                self.create_table()
                self._insert(query)
            except (ExecutionError, SQLAlchemyError) as retry_exc:
                self._log.error("Failed to record history %r: %s", message, retry_exc)
                return
        self._log.debug("History: %s", message)

    def list(self, limit: int, offset: int) -> list[HistoryEntry]:
        query = self._builder.list_history(limit, offset)
        try:
            with self._engine.connect() as conn:
                rows = execute(conn, query, self._log).fetchall()
        except SQLAlchemyError as exc:
            if is_missing_table_error(exc):
                return []
            self._log.error("Failed to list history: %s", exc)
            raise ExecutionError("list", HISTORY_TABLE, exc) from exc
        return [
            HistoryEntry(
                id=int(r[0]),
                message=str(normalize_value(r[1]) or ""),
                time=_parse_time(r[2], self._log),
            )
            for r in rows
        ]

    def delete(self, entry_id: int) -> None:
        try:
            with self._engine.begin() as conn:
                execute(conn, self._builder.delete_history(entry_id), self._log)
        except SQLAlchemyError as exc:
            self._log.error("Failed to delete history entry %s: %s", entry_id, exc)
            raise ExecutionError("delete", f"{HISTORY_TABLE} entry {entry_id}", exc) from exc


class SqlTableRepository(TableRepository):
    """Browse and mutate user tables through a SQLAlchemy engine.

    Args:
        engine: Engine for the target database.
        builder: QueryBuilder for the engine's dialect.
        cache: Row cache shared by every caller of this repository.
        history: Where successful mutations are recorded.
        logger: Optional logger; defaults to this module's logger.
    """

    def __init__(
        self,
        engine: Engine,
        builder: QueryBuilder,
        cache: RowCache,
        history: HistoryRepository,
        logger: logging.Logger | None = None,
    ) -> None:
        self._engine = engine
        self._builder = builder
        self._cache = cache
        self._history = history
        self._log = logger if logger is not None else logging.getLogger(__name__)
        self._allowed: frozenset[str] = frozenset()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _check(self, table: str) -> None:
        if not table:
            raise EmptyTableNameError()
        if table not in self._allowed:
            raise TableNotAllowedError(table)

    def _fetch(self, operation: str, resource: str, query: Query) -> Sequence[Row[Any]]:
        try:
            with self._engine.connect() as conn:
                return execute(conn, query, self._log).fetchall()
        except SQLAlchemyError as exc:
            self._log.error("Failed to %s %s: %s", operation, resource, exc)
            raise ExecutionError(operation, resource, exc) from exc

    def _write(self, operation: str, resource: str, query: Query) -> int:
        try:
            with self._engine.begin() as conn:
                return execute(conn, query, self._log).rowcount
        except SQLAlchemyError as exc:
            self._log.error("Failed to %s %s: %s", operation, resource, exc)
            raise ExecutionError(operation, resource, exc) from exc

    @property
    def allowed_tables(self) -> frozenset[str]:
        return self._allowed

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list_tables(self) -> list[TableInfo]:
        rows = self._fetch("list", "tables", self._builder.list_tables())
        tables = [
            TableInfo(schema=str(normalize_value(r[0]) or ""), name=str(normalize_value(r[1])))
            for r in rows
        ]
        tables = [t for t in tables if t.name != HISTORY_TABLE]
        self._allowed = frozenset(t.name for t in tables)
        return tables

    def list_columns(self, table: str) -> list[ColumnInfo]:
        self._check(table)
        rows = self._fetch("list columns of", table, self._builder.list_columns(table))
        columns = []
        for r in rows:
            data_type = str(normalize_value(r[1]) or "")
            columns.append(
                ColumnInfo(
                    name=str(normalize_value(r[0])),
                    data_type=data_type,
                    has_default=bool(r[2]),
                    is_unique=bool(r[3]),
                    has_auto_increment=bool(r[4]),
                    input_kind=infer_input_kind(data_type, self._log),
                )
            )
        return columns

    def list_rows(
        self,
        table: str,
        limit: int,
        offset: int,
        order_col: str = "",
        order_dir: str = "",
    ) -> list[list[Any]]:
        self._check(table)
        query = self._builder.list_rows(table, limit, offset, order_col, order_dir)
        result = []
        for raw in self._fetch("list rows of", table, query):
            row = normalize_row(raw)
            token = row_hash(row)
            # cache holds driver values; the token comes from the normalised row
            self._cache.set((table, token), list(raw))
            result.append([token, *row])
        return result

    def get_row(
        self,
        table: str,
        token: str,
        offset: int,
        limit: int,
        order_col: str = "",
        order_dir: str = "",
    ) -> list[Any]:
        """Resolve *token* to the row it was computed from.

        A cache hit needs no I/O.  On a miss the page window the caller was
        looking at (``offset`` up to ``offset + limit - 1``) is re-read one
        row per query until a row hashes to *token*.

        Returns:
            The row as the driver returned it (bytes stay bytes).

        Raises:
            RowNotFoundError: The window was exhausted or the table ended.
        """
        self._check(table)
        cached = self._cache.get((table, token))
        if cached is not None:
            return list(cached)

        self._log.debug("Row %s not cached, re-scanning %s from offset %d", token, table, offset)
        for position in range(offset, offset + limit):
            query = self._builder.list_rows(table, 1, position, order_col, order_dir)
            rows = self._fetch("find row in", table, query)
            if not rows:
                break
            raw = list(rows[0])
            if row_hash(normalize_row(raw)) == token:
                self._cache.set((table, token), raw)
                return list(raw)
        raise RowNotFoundError(table, token)

    def count_rows(self, table: str) -> int:
        self._check(table)
        rows = self._fetch("count rows of", table, self._builder.count_rows(table))
        return int(rows[0][0]) if rows else 0

    def table_exists(self, table: str) -> bool:
        rows = self._fetch("check", table, self._builder.table_exists(table))
        return bool(rows)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def insert_row(self, table: str, items: Sequence[RowItem]) -> None:
        self._check(table)
        query = self._builder.insert_row(table, items)
        self._write("insert into", table, query)
        self._log.info("Inserted row into %s", table)
        self._history.insert(f"Inserted row into table '{table}'")

    def update_row(
        self,
        table: str,
        token: str,
        items: Sequence[RowItem],
        offset: int,
        limit: int,
        order_col: str = "",
        order_dir: str = "",
    ) -> None:
        self._check(table)
        if not items:
            raise NoValuesProvidedError("values to update")
        row = self.get_row(table, token, offset, limit, order_col, order_dir)
        columns = self.list_columns(table)
        query = self._builder.update_row(table, items, columns, row)
        affected = self._write("update row in", table, query)
        self._cache.delete((table, token))
        if affected == 0:
            self._log.warning("Update of row %s in %s matched no row", token, table)
            raise RowNotFoundError(table, token)
        self._log.info("Updated row %s in %s", token, table)
        self._history.insert(f"Updated row in table '{table}'")

    def delete_row(
        self,
        table: str,
        token: str,
        offset: int,
        limit: int,
        order_col: str = "",
        order_dir: str = "",
    ) -> None:
        self._check(table)
        row = self.get_row(table, token, offset, limit, order_col, order_dir)
        columns = self.list_columns(table)
        query = self._builder.delete_row(table, columns, row)
        affected = self._write("delete row from", table, query)
        self._cache.delete((table, token))
        if affected == 0:
            self._log.warning("Delete of row %s from %s matched no row", token, table)
            raise RowNotFoundError(table, token)
        self._log.info("Deleted row %s from %s", token, table)
        self._history.insert(f"Deleted row from table '{table}'")

    def create_table(self, table: str, columns: Sequence[ColumnInput]) -> None:
        query = self._builder.create_table(table, columns)
        self._write("create table", table, query)
        self.list_tables()
        self._log.info("Created table %s", table)
        self._history.insert(f"Created table '{table}'")

    def delete_table(self, table: str, confirmation: str) -> None:
        self._check(table)
        expected = f"DROP TABLE IF EXISTS {table}"
        if " ".join(confirmation.split()) != expected:
            raise ConfirmationMismatchError(expected)
        self._write("drop table", table, self._builder.drop_table(table))
        self.list_tables()
        self._log.info("Dropped table %s", table)
        self._history.insert(f"Dropped table '{table}'")
