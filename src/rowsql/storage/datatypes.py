"""Column type knowledge shared by all dialects.

Two tables live here:

* ``INPUT_KINDS`` maps a declared column type (as reported by the
  introspection queries, lower-cased, without size/precision suffix) to the
  form widget used to edit it.
* the per-dialect create-table catalogs, i.e. which types a create-table
  form offers and whether they take a size, digits or a value list.
"""

from __future__ import annotations

import logging

from rowsql.models.schema import DataTypeInfo, FormDataTypes, InputKind

logger = logging.getLogger(__name__)

_NUMBER = InputKind.NUMBER
_CHECKBOX = InputKind.CHECKBOX
_TEXT = InputKind.TEXT
_TEXTAREA = InputKind.TEXTAREA
_JSON = InputKind.JSON
_SELECT = InputKind.SELECT

INPUT_KINDS: dict[str, InputKind] = {
    # numeric
    "smallint": _NUMBER,
    "integer": _NUMBER,
    "int": _NUMBER,
    "int2": _NUMBER,
    "int4": _NUMBER,
    "int8": _NUMBER,
    "bigint": _NUMBER,
    "tinyint": _NUMBER,
    "mediumint": _NUMBER,
    "unsigned big int": _NUMBER,
    "decimal": _NUMBER,
    "dec": _NUMBER,
    "numeric": _NUMBER,
    "real": _NUMBER,
    "float": _NUMBER,
    "float4": _NUMBER,
    "float8": _NUMBER,
    "double": _NUMBER,
    "double precision": _NUMBER,
    "smallserial": _NUMBER,
    "serial": _NUMBER,
    "bigserial": _NUMBER,
    "money": _NUMBER,
    "year": _NUMBER,
    # boolean
    "boolean": _CHECKBOX,
    "bool": _CHECKBOX,
    # long text / binary
    "text": _TEXTAREA,
    "tinytext": _TEXTAREA,
    "mediumtext": _TEXTAREA,
    "longtext": _TEXTAREA,
    "clob": _TEXTAREA,
    "jsonb": _TEXTAREA,
    "xml": _TEXTAREA,
    "bytea": _TEXTAREA,
    "blob": _TEXTAREA,
    "tinyblob": _TEXTAREA,
    "mediumblob": _TEXTAREA,
    "longblob": _TEXTAREA,
    "binary": _TEXTAREA,
    "varbinary": _TEXTAREA,
    # json
    "json": _JSON,
    # value lists
    "enum": _SELECT,
    "set": _SELECT,
    # short text
    "character": _TEXT,
    "character varying": _TEXT,
    "char": _TEXT,
    "varchar": _TEXT,
    "nchar": _TEXT,
    "nvarchar": _TEXT,
    "native character": _TEXT,
    "varying character": _TEXT,
    "uuid": _TEXT,
    # dates and times
    "date": _TEXT,
    "datetime": _TEXT,
    "time": _TEXT,
    "time without time zone": _TEXT,
    "time with time zone": _TEXT,
    "timestamp": _TEXT,
    "timestamp without time zone": _TEXT,
    "timestamp with time zone": _TEXT,
    "interval": _TEXT,
    # postgres network / geometric / misc
    "inet": _TEXT,
    "cidr": _TEXT,
    "macaddr": _TEXT,
    "macaddr8": _TEXT,
    "bit": _TEXT,
    "bit varying": _TEXT,
    "point": _TEXT,
    "line": _TEXT,
    "lseg": _TEXT,
    "box": _TEXT,
    "path": _TEXT,
    "polygon": _TEXT,
    "circle": _TEXT,
    "tsvector": _TEXT,
    "tsquery": _TEXT,
    "pg_lsn": _TEXT,
    "pg_snapshot": _TEXT,
    "txid_snapshot": _TEXT,
}


def strip_type_suffix(declared_type: str) -> str:
    """Lower-case a declared type and drop ``(size)`` and `` unsigned``."""
    base = declared_type.strip().lower()
    paren = base.find("(")
    if paren != -1:
        base = base[:paren]
    base = base.strip()
    if base.endswith(" unsigned"):
        base = base[: -len(" unsigned")]
    return base.strip()


def infer_input_kind(declared_type: str, log: logging.Logger | None = None) -> InputKind:
    """Map a declared column type to a form input kind.

    Unknown types fall back to ``InputKind.TEXT`` and are logged.
    """
    kind = INPUT_KINDS.get(strip_type_suffix(declared_type))
    if kind is None:
        (log or logger).warning("Unknown data type: %s", declared_type)
        return _TEXT
    return kind


# ---------------------------------------------------------------------------
# Create-table catalogs
# ---------------------------------------------------------------------------

def _t(type_: str, **flags: bool) -> DataTypeInfo:
    return DataTypeInfo(type=type_, **flags)


POSTGRES_TYPES = FormDataTypes(
    numeric=(
        _t("SMALLINT", has_auto_increment=True),
        _t("INT2", has_auto_increment=True),
        _t("INTEGER", has_auto_increment=True),
        _t("INT", has_auto_increment=True),
        _t("INT4", has_auto_increment=True),
        _t("BIGINT", has_auto_increment=True),
        _t("INT8", has_auto_increment=True),
        _t("DECIMAL", has_digit=True),
        _t("NUMERIC", has_digit=True),
        _t("REAL"),
        _t("FLOAT4"),
        _t("DOUBLE PRECISION"),
        _t("FLOAT8"),
        _t("SMALLSERIAL", has_auto_increment=True),
        _t("SERIAL2", has_auto_increment=True),
        _t("SERIAL", has_auto_increment=True),
        _t("SERIAL4", has_auto_increment=True),
        _t("BIGSERIAL", has_auto_increment=True),
        _t("SERIAL8", has_auto_increment=True),
        _t("MONEY"),
    ),
    string=(
        _t("CHAR", has_size=True),
        _t("CHARACTER", has_size=True),
        _t("VARCHAR", has_size=True),
        _t("CHARACTER VARYING", has_size=True),
        _t("TEXT"),
        _t("BPCHAR", has_size=True),
        _t("BYTEA"),
        _t("UUID"),
        _t("JSON"),
        _t("JSONB"),
        _t("XML"),
        _t("CITEXT"),
    ),
)

MYSQL_TYPES = FormDataTypes(
    numeric=(
        _t("BIT", has_size=True),
        _t("TINYINT", has_size=True, has_auto_increment=True),
        _t("BOOL"),
        _t("BOOLEAN"),
        _t("SMALLINT", has_size=True, has_auto_increment=True),
        _t("MEDIUMINT", has_size=True, has_auto_increment=True),
        _t("INT", has_size=True, has_auto_increment=True),
        _t("INTEGER", has_size=True, has_auto_increment=True),
        _t("BIGINT", has_size=True, has_auto_increment=True),
        _t("FLOAT", has_size=True, has_digit=True),
        _t("DOUBLE", has_size=True, has_digit=True),
        _t("DOUBLE PRECISION", has_size=True, has_digit=True),
        _t("DECIMAL", has_size=True, has_digit=True),
        _t("DEC", has_size=True, has_digit=True),
    ),
    string=(
        _t("CHAR", has_size=True),
        _t("VARCHAR", has_size=True),
        _t("BINARY", has_size=True),
        _t("VARBINARY", has_size=True),
        _t("TINYBLOB"),
        _t("TINYTEXT"),
        _t("TEXT", has_size=True),
        _t("BLOB", has_size=True),
        _t("MEDIUMTEXT"),
        _t("MEDIUMBLOB"),
        _t("LONGTEXT"),
        _t("LONGBLOB"),
        _t("ENUM", has_values=True),
        _t("SET", has_values=True),
        _t("JSON"),
    ),
)

SQLITE_TYPES = FormDataTypes(
    numeric=(
        _t("INT"),
        _t("INTEGER", has_auto_increment=True),
        _t("TINYINT"),
        _t("SMALLINT"),
        _t("MEDIUMINT"),
        _t("BIGINT"),
        _t("UNSIGNED BIG INT"),
        _t("INT2"),
        _t("INT8"),
        _t("REAL"),
        _t("DOUBLE"),
        _t("DOUBLE PRECISION"),
        _t("FLOAT"),
        _t("NUMERIC", has_size=True, has_digit=True),
        _t("DECIMAL", has_size=True, has_digit=True),
        _t("BOOLEAN"),
        _t("DATE"),
        _t("DATETIME"),
    ),
    string=(
        _t("TEXT"),
        _t("CHARACTER", has_size=True),
        _t("VARCHAR", has_size=True),
        _t("VARYING CHARACTER", has_size=True),
        _t("NCHAR", has_size=True),
        _t("NATIVE CHARACTER", has_size=True),
        _t("CLOB"),
        _t("BLOB"),
        _t("JSON"),
    ),
)
