"""Shared test fixtures for rowsql.

Provides an in-memory SQLite engine, seeded tables, repository fixtures and
a statement counter.
"""

import pytest
from sqlalchemy import event

from rowsql.engine.cache import RowCache
from rowsql.storage.builder import QueryBuilder
from rowsql.storage.dialects import Dialect
from rowsql.storage.engine import create_rowsql_engine
from rowsql.storage.sql import SqlHistoryRepository, SqlTableRepository


def run_sql(engine, *statements: str) -> None:
    """Execute raw statements in one transaction."""
    with engine.begin() as conn:
        for statement in statements:
            conn.exec_driver_sql(statement)


def seed_tables(engine) -> None:
    """Create the tables most tests work with.

    - ``people``: no unique column, contains a value-duplicate row and a NULL
    - ``users``: integer primary key plus a unique email
    - ``docs``: no unique column, one JSON column
    """
    run_sql(
        engine,
        "CREATE TABLE people (name TEXT, age INTEGER)",
        "INSERT INTO people VALUES ('ada', 36)",
        "INSERT INTO people VALUES ('bob', 41)",
        "INSERT INTO people VALUES ('ada', 36)",
        "INSERT INTO people VALUES ('cy', NULL)",
        "CREATE TABLE users (id INTEGER PRIMARY KEY, email TEXT UNIQUE, nickname TEXT)",
        "INSERT INTO users VALUES (1, 'ada@example.com', 'ada')",
        "INSERT INTO users VALUES (2, 'bob@example.com', NULL)",
        "CREATE TABLE docs (title TEXT, body JSON)",
        """INSERT INTO docs VALUES ('first', '{"a": 1, "tags": ["x"]}')""",
        """INSERT INTO docs VALUES ('second', '{"a": 2}')""",
    )


@pytest.fixture
def engine():
    """In-memory SQLite engine."""
    eng = create_rowsql_engine(":memory:", Dialect.SQLITE)
    yield eng
    eng.dispose()


@pytest.fixture
def seeded_engine(engine):
    """In-memory engine with people/users/docs tables."""
    seed_tables(engine)
    return engine


@pytest.fixture
def builder() -> QueryBuilder:
    return QueryBuilder(Dialect.SQLITE, max_limit=10)


@pytest.fixture
def cache() -> RowCache:
    return RowCache(capacity=100)


@pytest.fixture
def history_repo(engine, builder) -> SqlHistoryRepository:
    return SqlHistoryRepository(engine, builder)


@pytest.fixture
def repo(seeded_engine, builder, cache, history_repo) -> SqlTableRepository:
    """Table repository with the allow-list primed."""
    r = SqlTableRepository(seeded_engine, builder, cache, history_repo)
    r.list_tables()
    return r


@pytest.fixture
def statements(engine):
    """Record every statement sent to the driver."""
    seen: list[str] = []

    def _record(conn, cursor, statement, parameters, context, executemany):  # noqa: ARG001
        seen.append(statement)

    event.listen(engine, "before_cursor_execute", _record)
    yield seen
    event.remove(engine, "before_cursor_execute", _record)
