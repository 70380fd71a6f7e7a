"""Abstract repository interfaces for rowsql storage.

Defines ABC interfaces for all database operations. No SQLAlchemy
imports here -- pure abstract contracts.

Concrete implementations are in sql.py.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Sequence

if TYPE_CHECKING:
    from rowsql.models.schema import ColumnInfo, ColumnInput, HistoryEntry, RowItem, TableInfo


class HistoryRepository(ABC):
    """Abstract interface for the mutation history log."""

    @abstractmethod
    def create_table(self) -> None:
        """Create the history table if it does not exist."""
        ...

    @abstractmethod
    def insert(self, message: str) -> None:
        """Record *message*. Never raises; failures are logged."""
        ...

    @abstractmethod
    def list(self, limit: int, offset: int) -> list[HistoryEntry]:
        """Return entries newest first. Empty when the table is missing."""
        ...

    @abstractmethod
    def delete(self, entry_id: int) -> None:
        """Delete one entry by id."""
        ...


class TableRepository(ABC):
    """Abstract interface for browsing and mutating user tables.

    Every table-addressed operation checks the table against the allow-list
    built by the last :meth:`list_tables` call.
    """

    @abstractmethod
    def list_tables(self) -> list[TableInfo]:
        """List user tables and refresh the allow-list."""
        ...

    @abstractmethod
    def list_columns(self, table: str) -> list[ColumnInfo]:
        """Describe the columns of *table* in declaration order."""
        ...

    @abstractmethod
    def list_rows(
        self,
        table: str,
        limit: int,
        offset: int,
        order_col: str = "",
        order_dir: str = "",
    ) -> list[list[Any]]:
        """Return one page of rows, each prefixed with its identity token."""
        ...

    @abstractmethod
    def get_row(
        self,
        table: str,
        token: str,
        offset: int,
        limit: int,
        order_col: str = "",
        order_dir: str = "",
    ) -> list[Any]:
        """Resolve *token* to its row values (cache, then page re-scan)."""
        ...

    @abstractmethod
    def insert_row(self, table: str, items: Sequence[RowItem]) -> None:
        ...

    @abstractmethod
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
        ...

    @abstractmethod
    def delete_row(
        self,
        table: str,
        token: str,
        offset: int,
        limit: int,
        order_col: str = "",
        order_dir: str = "",
    ) -> None:
        ...

    @abstractmethod
    def create_table(self, table: str, columns: Sequence[ColumnInput]) -> None:
        ...

    @abstractmethod
    def delete_table(self, table: str, confirmation: str) -> None:
        """Drop *table* once *confirmation* echoes the DROP statement."""
        ...

    @abstractmethod
    def count_rows(self, table: str) -> int:
        ...

    @abstractmethod
    def table_exists(self, table: str) -> bool:
        ...
