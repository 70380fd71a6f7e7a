"""Descriptor models for tables, columns, form values and history.

Plain frozen dataclasses for what the database reports back, pydantic
models for what callers send in (create-table definitions are typically
loaded from JSON).
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

JSON_TYPES: frozenset[str] = frozenset({"json", "jsonb"})


class InputKind(str, enum.Enum):
    """Form widget best suited to edit a column."""

    NUMBER = "number"
    CHECKBOX = "checkbox"
    TEXT = "text"
    TEXTAREA = "textarea"
    JSON = "json"
    SELECT = "select"


@dataclass(frozen=True)
class TableInfo:
    """One entry of the table allow-list."""

    schema: str
    name: str


@dataclass(frozen=True)
class ColumnInfo:
    """A column as reported by the database's introspection views."""

    name: str
    data_type: str
    has_default: bool = False
    is_unique: bool = False
    has_auto_increment: bool = False
    input_kind: InputKind = InputKind.TEXT

    @property
    def is_json(self) -> bool:
        return self.data_type.strip().lower() in JSON_TYPES


@dataclass(frozen=True)
class RowItem:
    """One submitted form field for insert or update.

    ``kind == "json"`` means the value is JSON text and must parse.
    """

    column_name: str
    value: Any
    kind: str = "text"

    @property
    def is_json(self) -> bool:
        return self.kind == InputKind.JSON.value


@dataclass(frozen=True)
class HistoryEntry:
    """A recorded mutation message."""

    id: int
    message: str
    time: Optional[datetime]


@dataclass(frozen=True)
class DataTypeInfo:
    """A type offered in the create-table form of a dialect."""

    type: str
    has_size: bool = False
    has_digit: bool = False
    has_values: bool = False
    has_auto_increment: bool = False


@dataclass(frozen=True)
class FormDataTypes:
    """Numeric and string type catalogs for one dialect."""

    numeric: tuple[DataTypeInfo, ...]
    string: tuple[DataTypeInfo, ...]


class DataTypeSpec(BaseModel):
    """Type part of a create-table column definition."""

    type: str
    size: Optional[int] = Field(default=None, gt=0)
    auto_increment: bool = False


class ColumnInput(BaseModel):
    """One column definition for create-table."""

    name: str
    data_type: DataTypeSpec
    nullable: bool = True
    primary_key: bool = False
    unique: bool = False
