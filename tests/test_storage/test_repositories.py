"""Tests for SqlTableRepository against in-memory SQLite.

Covers:
- allow-list enforcement and refresh
- column introspection
- row listing, identity tokens and caching
- token resolution (cache hit, bounded re-scan)
- insert / update / delete scoped to one physical row
- create / drop table with confirmation
- execution error wrapping
"""

from __future__ import annotations

import logging

import pytest
from sqlalchemy.exc import IntegrityError

from rowsql.engine.hashing import row_hash
from rowsql.exceptions import (
    ConfirmationMismatchError,
    EmptyTableNameError,
    ExecutionError,
    InvalidJSONError,
    InvalidTableNameError,
    NoValuesProvidedError,
    RowNotFoundError,
    TableNotAllowedError,
)
from rowsql.models.schema import ColumnInput, DataTypeSpec, InputKind, RowItem
from rowsql.storage.builder import Query

from tests.conftest import run_sql


def _scalar(engine, sql: str):
    with engine.connect() as conn:
        return conn.exec_driver_sql(sql).scalar()


def _token_for(repo, table: str, predicate) -> str:
    for token, *values in repo.list_rows(table, 10, 0):
        if predicate(values):
            return token
    raise AssertionError(f"no matching row in {table}")


def _history_messages(history_repo) -> list[str]:
    return [e.message for e in history_repo.list(50, 0)]


# ---------------------------------------------------------------------------
# Allow-list
# ---------------------------------------------------------------------------


class TestAllowList:
    def test_list_tables_excludes_history(self, repo, history_repo) -> None:
        history_repo.create_table()
        names = [t.name for t in repo.list_tables()]
        assert names == ["docs", "people", "users"]
        assert "rowsql_history" not in repo.allowed_tables

    def test_unknown_table_rejected_without_io(self, repo, statements) -> None:
        statements.clear()
        with pytest.raises(TableNotAllowedError) as exc_info:
            repo.list_rows("secrets", 10, 0)
        assert exc_info.value.table == "secrets"
        with pytest.raises(TableNotAllowedError):
            repo.insert_row("secrets", [RowItem("a", 1)])
        assert statements == []

    def test_empty_table_name(self, repo) -> None:
        with pytest.raises(EmptyTableNameError):
            repo.list_columns("")

    def test_external_table_needs_relisting(self, repo, seeded_engine) -> None:
        run_sql(seeded_engine, "CREATE TABLE late (x INTEGER)")
        with pytest.raises(TableNotAllowedError):
            repo.list_columns("late")
        repo.list_tables()
        assert [c.name for c in repo.list_columns("late")] == ["x"]


# ---------------------------------------------------------------------------
# Columns
# ---------------------------------------------------------------------------


class TestListColumns:
    def test_users(self, repo) -> None:
        columns = {c.name: c for c in repo.list_columns("users")}
        assert list(columns) == ["id", "email", "nickname"]
        assert columns["id"].is_unique
        assert columns["id"].has_auto_increment
        assert columns["id"].input_kind is InputKind.NUMBER
        assert columns["email"].is_unique
        assert not columns["email"].has_auto_increment
        assert not columns["nickname"].is_unique
        assert columns["nickname"].input_kind is InputKind.TEXTAREA

    def test_json_column(self, repo) -> None:
        body = repo.list_columns("docs")[1]
        assert body.is_json
        assert body.input_kind is InputKind.JSON


# ---------------------------------------------------------------------------
# Rows
# ---------------------------------------------------------------------------


class TestListRows:
    def test_rows_prefixed_with_token(self, repo) -> None:
        rows = repo.list_rows("people", 10, 0)
        assert [r[1:] for r in rows] == [["ada", 36], ["bob", 41], ["ada", 36], ["cy", None]]
        for token, *values in rows:
            assert token == row_hash(values)

    def test_rows_are_cached(self, repo, cache) -> None:
        rows = repo.list_rows("people", 10, 0)
        # the two value-identical rows share one token
        assert len(cache) == 3
        for token, *values in rows:
            assert cache.get(("people", token)) == values

    def test_pagination_and_order(self, repo) -> None:
        rows = repo.list_rows("people", 2, 1, "age", "desc")
        assert [r[1:] for r in rows] == [["ada", 36], ["ada", 36]]

    def test_bytes_normalised(self, repo, seeded_engine) -> None:
        run_sql(seeded_engine, "CREATE TABLE blobs (data BLOB)", "INSERT INTO blobs VALUES (X'616263')")
        repo.list_tables()
        [[token, value]] = repo.list_rows("blobs", 10, 0)
        assert value == "abc"
        assert token == row_hash(["abc"])

    def test_count_and_exists(self, repo) -> None:
        assert repo.count_rows("people") == 4
        assert repo.table_exists("people")
        assert not repo.table_exists("nope")


class TestGetRow:
    def test_cache_hit_needs_no_statement(self, repo, statements) -> None:
        token = _token_for(repo, "people", lambda v: v[0] == "bob")
        statements.clear()
        assert repo.get_row("people", token, 0, 10) == ["bob", 41]
        assert statements == []

    def test_miss_rescans_one_row_at_a_time(self, repo, cache, statements) -> None:
        token = _token_for(repo, "people", lambda v: v[0] == "bob")
        cache.clear()
        statements.clear()
        assert repo.get_row("people", token, 0, 10) == ["bob", 41]
        assert len(statements) == 2
        assert ("people", token) in cache

    def test_rescan_stops_at_end_of_table(self, repo, statements) -> None:
        statements.clear()
        with pytest.raises(RowNotFoundError) as exc_info:
            repo.get_row("people", "deadbeef", 0, 10)
        assert exc_info.value.token == "deadbeef"
        # four rows plus the empty read that ends the scan
        assert len(statements) == 5

    def test_rescan_bounded_by_window(self, repo, cache, statements) -> None:
        token = _token_for(repo, "people", lambda v: v[0] == "cy")
        cache.clear()
        statements.clear()
        with pytest.raises(RowNotFoundError):
            repo.get_row("people", token, 0, 2)
        assert len(statements) == 2
        assert repo.get_row("people", token, 2, 2) == ["cy", None]

    def test_token_scoped_to_table(self, repo, seeded_engine) -> None:
        token = _token_for(repo, "people", lambda v: v[0] == "bob")
        with pytest.raises(RowNotFoundError):
            repo.get_row("users", token, 0, 10)
        with pytest.raises(RowNotFoundError):
            repo.delete_row("users", token, 0, 10)
        assert _scalar(seeded_engine, "SELECT COUNT(*) FROM users") == 2


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------


class TestInsertRow:
    def test_insert(self, repo, cache, history_repo) -> None:
        cached_before = len(cache)
        repo.insert_row("people", [RowItem("name", "dan"), RowItem("age", 50)])
        assert repo.count_rows("people") == 5
        assert len(cache) == cached_before
        assert _history_messages(history_repo) == ["Inserted row into table 'people'"]

    def test_insert_json(self, repo, seeded_engine) -> None:
        repo.insert_row("docs", [RowItem("title", "third"), RowItem("body", '{"z": [1]}', kind="json")])
        assert _scalar(seeded_engine, "SELECT body FROM docs WHERE title = 'third'") == '{"z":[1]}'

    def test_invalid_json_runs_nothing(self, repo, statements) -> None:
        statements.clear()
        with pytest.raises(InvalidJSONError):
            repo.insert_row("docs", [RowItem("body", "{nope", kind="json")])
        assert statements == []

    def test_defaults_only(self, repo) -> None:
        repo.insert_row("people", [])
        assert repo.count_rows("people") == 5

    def test_constraint_violation_wrapped(self, repo, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.ERROR, logger="rowsql.storage.sql"):
            with pytest.raises(ExecutionError) as exc_info:
                repo.insert_row("users", [RowItem("email", "ada@example.com")])
        assert exc_info.value.operation == "insert into"
        assert exc_info.value.resource == "users"
        assert isinstance(exc_info.value.__cause__, IntegrityError)
        assert "Failed to insert into users" in caplog.text


class TestUpdateRow:
    def test_unique_column(self, repo, seeded_engine, cache, history_repo) -> None:
        token = _token_for(repo, "users", lambda v: v[0] == 2)
        repo.update_row("users", token, [RowItem("nickname", "bobby")], 0, 10)
        assert _scalar(seeded_engine, "SELECT nickname FROM users WHERE id = 2") == "bobby"
        assert ("users", token) not in cache
        assert _history_messages(history_repo) == ["Updated row in table 'users'"]

    def test_touches_one_duplicate(self, repo, seeded_engine) -> None:
        token = _token_for(repo, "people", lambda v: v == ["ada", 36])
        repo.update_row("people", token, [RowItem("age", 37)], 0, 10)
        assert _scalar(seeded_engine, "SELECT COUNT(*) FROM people WHERE name = 'ada' AND age = 37") == 1
        assert _scalar(seeded_engine, "SELECT COUNT(*) FROM people WHERE name = 'ada' AND age = 36") == 1

    def test_row_with_null(self, repo, seeded_engine) -> None:
        token = _token_for(repo, "people", lambda v: v[0] == "cy")
        repo.update_row("people", token, [RowItem("age", 5)], 0, 10)
        assert _scalar(seeded_engine, "SELECT age FROM people WHERE name = 'cy'") == 5

    def test_json_identity(self, repo, seeded_engine) -> None:
        token = _token_for(repo, "docs", lambda v: v[0] == "first")
        repo.update_row("docs", token, [RowItem("title", "renamed")], 0, 10)
        assert _scalar(seeded_engine, "SELECT COUNT(*) FROM docs WHERE title = 'renamed'") == 1

    def test_after_cache_eviction(self, repo, cache, seeded_engine) -> None:
        token = _token_for(repo, "people", lambda v: v[0] == "bob")
        cache.clear()
        repo.update_row("people", token, [RowItem("name", "rob")], 0, 10)
        assert _scalar(seeded_engine, "SELECT COUNT(*) FROM people WHERE name = 'rob'") == 1

    def test_no_items(self, repo, statements) -> None:
        token = _token_for(repo, "people", lambda v: v[0] == "bob")
        statements.clear()
        with pytest.raises(NoValuesProvidedError):
            repo.update_row("people", token, [], 0, 10)
        assert statements == []

    def test_unknown_token(self, repo) -> None:
        with pytest.raises(RowNotFoundError):
            repo.update_row("people", "00000000", [RowItem("age", 1)], 0, 10)


class TestDeleteRow:
    def test_deletes_one_duplicate(self, repo, cache, history_repo) -> None:
        token = _token_for(repo, "people", lambda v: v == ["ada", 36])
        repo.delete_row("people", token, 0, 10)
        remaining = [r[1:] for r in repo.list_rows("people", 10, 0)]
        assert remaining.count(["ada", 36]) == 1
        assert len(remaining) == 3
        assert _history_messages(history_repo) == ["Deleted row from table 'people'"]

    def test_invalidates_token(self, repo, cache) -> None:
        token = _token_for(repo, "people", lambda v: v[0] == "bob")
        repo.delete_row("people", token, 0, 10)
        assert ("people", token) not in cache
        with pytest.raises(RowNotFoundError):
            repo.delete_row("people", token, 0, 10)

    def test_row_with_null(self, repo) -> None:
        token = _token_for(repo, "people", lambda v: v[0] == "cy")
        repo.delete_row("people", token, 0, 10)
        assert repo.count_rows("people") == 3

    def test_row_gone_behind_cache(self, repo, seeded_engine, cache, history_repo) -> None:
        token = _token_for(repo, "people", lambda v: v[0] == "bob")
        run_sql(seeded_engine, "DELETE FROM people WHERE name = 'bob'")
        with pytest.raises(RowNotFoundError):
            repo.delete_row("people", token, 0, 10)
        assert ("people", token) not in cache
        assert _history_messages(history_repo) == []


class TestBinaryRows:
    @pytest.fixture
    def bin_repo(self, repo, seeded_engine):
        run_sql(
            seeded_engine,
            "CREATE TABLE bin (label TEXT, data BLOB)",
            "INSERT INTO bin VALUES ('x', X'00FF10')",
        )
        repo.list_tables()
        return repo

    def test_cache_keeps_driver_bytes(self, bin_repo, cache) -> None:
        [[token, label, data]] = bin_repo.list_rows("bin", 10, 0)
        assert label == "x"
        assert isinstance(data, str)
        assert cache.get(("bin", token)) == ["x", b"\x00\xff\x10"]

    def test_delete(self, bin_repo, seeded_engine, history_repo) -> None:
        token = _token_for(bin_repo, "bin", lambda v: v[0] == "x")
        bin_repo.delete_row("bin", token, 0, 10)
        assert _scalar(seeded_engine, "SELECT COUNT(*) FROM bin") == 0
        assert _history_messages(history_repo) == ["Deleted row from table 'bin'"]

    def test_update_after_rescan(self, bin_repo, seeded_engine, cache) -> None:
        token = _token_for(bin_repo, "bin", lambda v: v[0] == "x")
        cache.clear()
        bin_repo.update_row("bin", token, [RowItem("label", "y")], 0, 10)
        assert _scalar(seeded_engine, "SELECT label FROM bin") == "y"
        assert _scalar(seeded_engine, "SELECT hex(data) FROM bin") == "00FF10"


class TestHistoryBestEffort:
    def test_history_failure_does_not_fail_mutation(
        self, repo, builder, monkeypatch, caplog: pytest.LogCaptureFixture
    ) -> None:
        monkeypatch.setattr(
            builder,
            "insert_history",
            lambda message: Query("INSERT INTO rowsql_history (nope) VALUES ($1)", [message]),
        )
        with caplog.at_level(logging.ERROR, logger="rowsql.storage.sql"):
            repo.insert_row("people", [RowItem("name", "eve")])
        assert repo.count_rows("people") == 5
        assert "Failed to record history" in caplog.text


# ---------------------------------------------------------------------------
# DDL
# ---------------------------------------------------------------------------


def _pet_columns() -> list[ColumnInput]:
    return [
        ColumnInput(
            name="id",
            data_type=DataTypeSpec(type="INTEGER", auto_increment=True),
            primary_key=True,
        ),
        ColumnInput(name="name", data_type=DataTypeSpec(type="VARCHAR", size=40), nullable=False),
    ]


class TestCreateTable:
    def test_create(self, repo, history_repo) -> None:
        repo.create_table("pets", _pet_columns())
        assert "pets" in repo.allowed_tables
        assert repo.table_exists("pets")
        assert [c.name for c in repo.list_columns("pets")] == ["id", "name"]
        assert _history_messages(history_repo) == ["Created table 'pets'"]

    def test_invalid_name_runs_nothing(self, repo, statements) -> None:
        statements.clear()
        with pytest.raises(InvalidTableNameError):
            repo.create_table("pets; DROP TABLE users", _pet_columns())
        assert statements == []

    def test_existing_table_is_execution_error(self, repo) -> None:
        with pytest.raises(ExecutionError):
            repo.create_table("people", _pet_columns())


class TestDeleteTable:
    def test_confirmation_mismatch(self, repo) -> None:
        with pytest.raises(ConfirmationMismatchError) as exc_info:
            repo.delete_table("people", "DROP TABLE people")
        assert exc_info.value.expected == "DROP TABLE IF EXISTS people"
        assert repo.table_exists("people")

    def test_whitespace_normalised(self, repo, history_repo) -> None:
        repo.delete_table("people", "  DROP   TABLE IF\tEXISTS  people \n")
        assert not repo.table_exists("people")
        assert "people" not in repo.allowed_tables
        assert _history_messages(history_repo) == ["Dropped table 'people'"]

    def test_not_allowed(self, repo) -> None:
        with pytest.raises(TableNotAllowedError):
            repo.delete_table("ghost", "DROP TABLE IF EXISTS ghost")

    def test_allow_list_checked_before_confirmation(self, repo) -> None:
        with pytest.raises(TableNotAllowedError):
            repo.delete_table("ghost", "yes please")
