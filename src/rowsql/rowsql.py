"""Rowsql facade -- the primary entry point.

Wires dialect detection, the SQLAlchemy engine, the query builder, the row
cache and both repositories together, and exposes page-based helpers on
top of the offset-based repository API.
"""

from __future__ import annotations

import logging
from typing import Any, Sequence

from sqlalchemy import Engine

from rowsql.engine.cache import RowCache
from rowsql.exceptions import InvalidPaginationError
from rowsql.log import create_logger
from rowsql.models.config import RowsqlConfig
from rowsql.models.schema import (
    ColumnInfo,
    ColumnInput,
    FormDataTypes,
    HistoryEntry,
    RowItem,
    TableInfo,
)
from rowsql.storage.builder import QueryBuilder
from rowsql.storage.dialects import Dialect
from rowsql.storage.engine import create_rowsql_engine, detect_dialect
from rowsql.storage.sql import SqlHistoryRepository, SqlTableRepository


class Rowsql:
    """A browsing session against one database.

    Created via :meth:`Rowsql.open` (or :meth:`from_components` in tests).
    Page numbers start at 1; page size is ``config.max_items_per_page``.

    Example::

        with Rowsql.open("app.db") as db:
            for row in db.rows("users"):
                token, *values = row
    """

    def __init__(
        self,
        *,
        engine: Engine,
        dialect: Dialect,
        config: RowsqlConfig,
        builder: QueryBuilder,
        cache: RowCache,
        history: SqlHistoryRepository,
        tables: SqlTableRepository,
        logger: logging.Logger,
    ) -> None:
        self._engine = engine
        self._dialect = dialect
        self._config = config
        self._builder = builder
        self._cache = cache
        self._history = history
        self._tables = tables
        self._log = logger
        self._closed = False

    @classmethod
    def open(
        cls,
        db_string: str | None = None,
        *,
        config: RowsqlConfig | None = None,
        logger: logging.Logger | None = None,
    ) -> Rowsql:
        """Connect to a database.

        Args:
            db_string: Connection string; overrides ``config.db_string``.
            config: Settings.  Read from the environment (and ``.env``)
                when neither this nor *db_string* is given.
            logger: Logger to use.  Built from *config* when omitted.

        Raises:
            ConfigError: No connection string could be found.
            DialectDetectionError: The connection string is not recognised.
            ExecutionError: The initial table listing failed.
        """
        if config is None:
            config = RowsqlConfig.from_env() if db_string is None else RowsqlConfig(db_string=db_string)
        elif db_string is not None:
            config = config.model_copy(update={"db_string": db_string})

        log = logger if logger is not None else create_logger(config)
        dialect, refined = detect_dialect(config.db_string)
        log.info("Database dialect detected: %s", dialect.value)

        engine = create_rowsql_engine(refined, dialect)
        try:
            return cls.from_components(engine=engine, dialect=dialect, config=config, logger=log)
        except Exception:
            engine.dispose()
            raise

    @classmethod
    def from_components(
        cls,
        *,
        engine: Engine,
        dialect: Dialect,
        config: RowsqlConfig,
        logger: logging.Logger | None = None,
    ) -> Rowsql:
        """Create a ``Rowsql`` around a pre-built engine.

        Skips detection and engine creation.  Useful for testing and DI.
        """
        log = logger if logger is not None else logging.getLogger(__name__)
        builder = QueryBuilder(dialect, max_limit=config.max_items_per_page)
        cache = RowCache(config.cache_size)
        history = SqlHistoryRepository(engine, builder, logger=log)
        tables = SqlTableRepository(engine, builder, cache, history, logger=log)
        tables.list_tables()
        return cls(
            engine=engine,
            dialect=dialect,
            config=config,
            builder=builder,
            cache=cache,
            history=history,
            tables=tables,
            logger=log,
        )

    # ------------------------------------------------------------------
    # Public properties
    # ------------------------------------------------------------------

    @property
    def dialect(self) -> Dialect:
        return self._dialect

    @property
    def config(self) -> RowsqlConfig:
        return self._config

    @property
    def cache(self) -> RowCache:
        return self._cache

    @property
    def page_size(self) -> int:
        return self._config.max_items_per_page

    # ------------------------------------------------------------------
    # Pagination
    # ------------------------------------------------------------------

    def _offset(self, page: int) -> int:
        if page < 1:
            raise InvalidPaginationError(self.page_size, (page - 1) * self.page_size)
        return (page - 1) * self.page_size

    def has_next_page(self, total: int, page: int) -> bool:
        """True if rows remain after *page* given *total* rows."""
        return total > page * self.page_size

    # ------------------------------------------------------------------
    # Tables and columns
    # ------------------------------------------------------------------

    def tables(self) -> list[TableInfo]:
        return self._tables.list_tables()

    def columns(self, table: str) -> list[ColumnInfo]:
        return self._tables.list_columns(table)

    def table_exists(self, table: str) -> bool:
        return self._tables.table_exists(table)

    def row_count(self, table: str) -> int:
        return self._tables.count_rows(table)

    def form_data_types(self) -> FormDataTypes:
        """Types offered when creating a table in this dialect."""
        return self._builder.form_data_types()

    def create_table(self, table: str, columns: Sequence[ColumnInput]) -> None:
        self._tables.create_table(table, columns)

    def drop_table(self, table: str, confirmation: str) -> None:
        """Drop *table*; *confirmation* must read ``DROP TABLE IF EXISTS <table>``."""
        self._tables.delete_table(table, confirmation)

    # ------------------------------------------------------------------
    # Rows
    # ------------------------------------------------------------------

    def rows(
        self, table: str, page: int = 1, order_col: str = "", order_dir: str = ""
    ) -> list[list[Any]]:
        """One page of *table*; each row starts with its identity token."""
        return self._tables.list_rows(
            table, self.page_size, self._offset(page), order_col, order_dir
        )

    def row(
        self,
        table: str,
        token: str,
        page: int = 1,
        order_col: str = "",
        order_dir: str = "",
    ) -> list[Any]:
        return self._tables.get_row(
            table, token, self._offset(page), self.page_size, order_col, order_dir
        )

    def insert(self, table: str, items: Sequence[RowItem]) -> None:
        self._tables.insert_row(table, items)

    def update(
        self,
        table: str,
        token: str,
        items: Sequence[RowItem],
        page: int = 1,
        order_col: str = "",
        order_dir: str = "",
    ) -> None:
        self._tables.update_row(
            table, token, items, self._offset(page), self.page_size, order_col, order_dir
        )

    def delete(
        self,
        table: str,
        token: str,
        page: int = 1,
        order_col: str = "",
        order_dir: str = "",
    ) -> None:
        self._tables.delete_row(
            table, token, self._offset(page), self.page_size, order_col, order_dir
        )

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def history(self, page: int = 1) -> list[HistoryEntry]:
        """Mutation history, newest first."""
        return self._history.list(self.page_size, self._offset(page))

    def delete_history(self, entry_id: int) -> None:
        self._history.delete(entry_id)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Dispose the engine."""
        if self._closed:
            return
        self._closed = True
        self._engine.dispose()
        self._log.debug("Disposed %s engine", self._dialect.value)

    def __enter__(self) -> Rowsql:
        return self

    def __exit__(self, exc_type: type | None, exc_val: BaseException | None, exc_tb: object) -> None:
        self.close()

    def __repr__(self) -> str:
        if self._closed:
            return f"Rowsql(dialect='{self._dialect.value}', closed=True)"
        return f"Rowsql(dialect='{self._dialect.value}', tables={len(self._tables.allowed_tables)})"
