"""Connection boundary.

Classifies connection strings, builds SQLAlchemy engines for them and runs
builder output through ``Connection.exec_driver_sql``.

The builder speaks one placeholder notation per dialect (``$n`` or ``?``);
DB-API drivers each want their own paramstyle.  :func:`to_driver_sql`
bridges the two right before execution.
"""

from __future__ import annotations

import json
import logging
import os
import re
from typing import Any, Sequence

from sqlalchemy import Connection, CursorResult, Engine, create_engine, event
from sqlalchemy.engine import URL

from rowsql.exceptions import ConfigError, DialectDetectionError
from rowsql.storage.builder import Query
from rowsql.storage.dialects import Dialect

logger = logging.getLogger(__name__)

SQLITE_SUFFIXES = (".db", ".sqlite", ".sqlite3")

_MYSQL_DSN_RE = re.compile(
    r"^(?:(?P<user>[^:@/]*)(?::(?P<password>[^@]*))?@)?"
    r"(?:tcp\((?P<host>[^:)]*)(?::(?P<port>\d+))?\))?"
    r"/(?P<database>[^?]*)(?:\?.*)?$"
)


# ---------------------------------------------------------------------------
# Detection
# ---------------------------------------------------------------------------


def detect_dialect(db_string: str) -> tuple[Dialect, str]:
    """Classify a connection string.

    Returns:
        The dialect and the connection string to use for it.  SQLite
        strings lose their ``sqlite://`` prefix and get ``~`` expanded;
        others are returned unchanged.

    Raises:
        DialectDetectionError: If no rule matches.
    """
    raw = db_string.strip()
    if not raw:
        raise DialectDetectionError("empty connection string")
    lowered = raw.lower()

    if lowered.startswith(("postgres://", "postgresql://")) or (
        "host=" in lowered and "dbname=" in lowered
    ):
        return Dialect.POSTGRES, raw

    if lowered.startswith("mysql://") or "tcp(" in lowered or "parsetime=" in lowered:
        return Dialect.MYSQL, raw

    if lowered.startswith("sqlite://"):
        path = raw[len("sqlite://"):]
        return Dialect.SQLITE, os.path.expanduser(path) if path else ":memory:"
    if (
        lowered.startswith("file:")
        or lowered == ":memory:"
        or lowered.endswith(SQLITE_SUFFIXES)
    ):
        return Dialect.SQLITE, os.path.expanduser(raw)

    raise DialectDetectionError(f"unrecognised connection string {raw!r}")


# ---------------------------------------------------------------------------
# Engine creation
# ---------------------------------------------------------------------------


def _mysql_url(db_string: str) -> URL | str:
    if db_string.lower().startswith("mysql://"):
        return "mysql+pymysql://" + db_string[len("mysql://"):]
    match = _MYSQL_DSN_RE.match(db_string)
    if match is None:
        raise ConfigError(f"Cannot parse MySQL DSN: {db_string!r}")
    port = match.group("port")
    return URL.create(
        "mysql+pymysql",
        username=match.group("user") or None,
        password=match.group("password"),
        host=match.group("host") or "localhost",
        port=int(port) if port else None,
        database=match.group("database") or None,
    )


def _sqlite_url(path: str) -> str:
    if path == ":memory:":
        return "sqlite://"
    if path.startswith("file:"):
        sep = "&" if "?" in path else "?"
        return f"sqlite:///{path}{sep}uri=true"
    return f"sqlite:///{path}"


def create_rowsql_engine(db_string: str, dialect: Dialect | None = None) -> Engine:
    """Create a SQLAlchemy engine for *db_string*.

    Drivers: psycopg2 for postgres, PyMySQL for mysql and the standard
    library ``sqlite3`` module for sqlite.  Key/value postgres DSNs are
    handed to psycopg2 verbatim.

    SQLite connections get ``busy_timeout`` and ``foreign_keys`` pragmas.
    The journal mode of the target file is left alone.
    """
    if dialect is None:
        dialect, db_string = detect_dialect(db_string)

    if dialect is Dialect.POSTGRES:
        if "://" in db_string:
            _, rest = db_string.split("://", 1)
            engine = create_engine(f"postgresql+psycopg2://{rest}", echo=False)
        else:
            engine = create_engine(
                "postgresql+psycopg2://", connect_args={"dsn": db_string}, echo=False
            )
    elif dialect is Dialect.MYSQL:
        engine = create_engine(_mysql_url(db_string), echo=False)
    else:
        engine = create_engine(_sqlite_url(db_string), echo=False)

        @event.listens_for(engine, "connect")
        def set_sqlite_pragma(dbapi_conn, connection_record):  # type: ignore[no-untyped-def]
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA busy_timeout=5000")
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    logger.debug("Created %s engine (driver %s)", dialect.value, engine.dialect.driver)
    return engine


# ---------------------------------------------------------------------------
# Placeholder translation
# ---------------------------------------------------------------------------

_TOKEN_RE = re.compile(
    r"""'(?:[^']|'')*'"""  # single-quoted literal
    r'''|"(?:[^"]|"")*"'''  # double-quoted identifier
    r"|`[^`]*`"  # backtick identifier
    r"|\$(\d+)"  # $n placeholder
    r"|\?"  # ? placeholder
    r"|%"
)

_FORMAT_STYLES = frozenset({"format", "pyformat"})


def _driver_value(value: Any) -> Any:
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    return value


def to_driver_sql(
    sql: str, args: Sequence[Any], paramstyle: str
) -> tuple[str, tuple[Any, ...] | dict[str, Any]]:
    """Rewrite builder placeholders into the driver's paramstyle.

    ``$n`` refers to ``args[n - 1]``; each bare ``?`` takes the next
    argument.  Quoted literals and identifiers are copied untouched except
    that ``%`` is doubled for the format styles when arguments are bound.

    Returns:
        The rewritten SQL and the parameters in the shape the driver
        expects: a dict for ``named``, a tuple otherwise.
    """
    values = [_driver_value(a) for a in args]
    escape_percent = paramstyle in _FORMAT_STYLES and bool(values)
    ordered: list[Any] = []
    counter = 0

    def render(index: int) -> str:
        if paramstyle == "qmark":
            ordered.append(values[index - 1])
            return "?"
        if paramstyle in _FORMAT_STYLES:
            ordered.append(values[index - 1])
            return "%s"
        if paramstyle == "numeric":
            return f":{index}"
        if paramstyle == "numeric_dollar":
            return f"${index}"
        if paramstyle == "named":
            return f":p{index}"
        raise ValueError(f"Unsupported paramstyle: {paramstyle}")

    def replace(match: re.Match[str]) -> str:
        nonlocal counter
        token = match.group(0)
        if token[0] in "'\"`":
            return token.replace("%", "%%") if escape_percent else token
        if token == "%":
            return "%%" if escape_percent else token
        if token == "?":
            counter += 1
            return render(counter)
        return render(int(match.group(1)))

    rewritten = _TOKEN_RE.sub(replace, sql)
    if paramstyle == "named":
        return rewritten, {f"p{i}": v for i, v in enumerate(values, start=1)}
    if paramstyle in ("numeric", "numeric_dollar"):
        return rewritten, tuple(values)
    return rewritten, tuple(ordered)


# ---------------------------------------------------------------------------
# Execution
# ---------------------------------------------------------------------------


def execute(
    conn: Connection, query: Query, log: logging.Logger | None = None
) -> CursorResult[Any]:
    """Run a builder :class:`Query` on *conn*."""
    paramstyle = conn.dialect.paramstyle
    sql, params = to_driver_sql(query.sql, query.args, paramstyle)
    (log or logger).debug("SQL: %s | args: %r", " ".join(sql.split()), params)
    if not query.args:
        return conn.exec_driver_sql(sql)
    return conn.exec_driver_sql(sql, params)


def is_missing_table_error(exc: BaseException) -> bool:
    """True if *exc* reports a table that does not exist.

    Accepts a SQLAlchemy ``DBAPIError`` or the raw driver exception.
    """
    orig = getattr(exc, "orig", None) or exc
    code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if code == "42P01":
        return True
    args = getattr(orig, "args", ())
    if args and args[0] == 1146:
        return True
    return "no such table" in str(orig).lower()
