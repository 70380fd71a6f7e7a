"""Tests for RowsqlConfig and environment loading."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from rowsql.exceptions import ConfigError
from rowsql.models.config import RowsqlConfig

_ENV_NAMES = ("DBSTRING", "MAX_ITEMS_PER_PAGE", "CACHE_SIZE", "LOG_LEVEL", "LOG_FILE_PATH", "ENV")


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """No rowsql variables set and no .env reachable from the cwd."""
    for name in _ENV_NAMES:
        # setenv first so monkeypatch restores whatever load_dotenv writes
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)
    return monkeypatch


class TestDefaults:
    def test_defaults(self) -> None:
        config = RowsqlConfig(db_string="app.db")
        assert config.max_items_per_page == 10
        assert config.cache_size == 100
        assert config.log_level == "INFO"
        assert config.log_file is None
        assert config.env == "production"
        assert not config.is_development

    @pytest.mark.parametrize("field", ["max_items_per_page", "cache_size"])
    def test_positive_ints(self, field: str) -> None:
        with pytest.raises(ValidationError):
            RowsqlConfig(db_string="app.db", **{field: 0})

    def test_env_literal(self) -> None:
        with pytest.raises(ValidationError):
            RowsqlConfig(db_string="app.db", env="staging")


class TestFromEnv:
    def test_reads_environment(self, clean_env) -> None:
        clean_env.setenv("DBSTRING", "app.db")
        clean_env.setenv("MAX_ITEMS_PER_PAGE", "25")
        clean_env.setenv("CACHE_SIZE", "7")
        clean_env.setenv("ENV", "development")
        config = RowsqlConfig.from_env()
        assert config.db_string == "app.db"
        assert config.max_items_per_page == 25
        assert config.cache_size == 7
        assert config.is_development

    def test_missing_db_string(self, clean_env) -> None:
        with pytest.raises(ConfigError, match="DBSTRING"):
            RowsqlConfig.from_env()

    def test_dotenv_in_cwd(self, clean_env, tmp_path) -> None:
        (tmp_path / ".env").write_text("DBSTRING=from_dotenv.db\nCACHE_SIZE=3\n")
        config = RowsqlConfig.from_env()
        assert config.db_string == "from_dotenv.db"
        assert config.cache_size == 3

    def test_environment_beats_dotenv(self, clean_env, tmp_path) -> None:
        (tmp_path / ".env").write_text("DBSTRING=from_dotenv.db\n")
        clean_env.setenv("DBSTRING", "from_env.db")
        assert RowsqlConfig.from_env().db_string == "from_env.db"

    def test_explicit_env_file(self, clean_env, tmp_path) -> None:
        env_file = tmp_path / "custom.env"
        env_file.write_text("DBSTRING=custom.db\nLOG_LEVEL=DEBUG\n")
        config = RowsqlConfig.from_env(str(env_file))
        assert config.db_string == "custom.db"
        assert config.log_level == "DEBUG"

    def test_missing_env_file(self, clean_env, tmp_path) -> None:
        with pytest.raises(ConfigError, match="Env file not found"):
            RowsqlConfig.from_env(str(tmp_path / "absent.env"))

    def test_overrides_win(self, clean_env) -> None:
        clean_env.setenv("DBSTRING", "env.db")
        config = RowsqlConfig.from_env(db_string="cli.db", log_level=None)
        assert config.db_string == "cli.db"
        assert config.log_level == "INFO"

    def test_log_file_expanded(self, clean_env, tmp_path) -> None:
        clean_env.setenv("HOME", str(tmp_path))
        clean_env.setenv("DBSTRING", "app.db")
        clean_env.setenv("LOG_FILE_PATH", "~/logs/rowsql.log")
        config = RowsqlConfig.from_env()
        assert config.log_file == str(tmp_path / "logs" / "rowsql.log")

    def test_bad_number(self, clean_env) -> None:
        clean_env.setenv("DBSTRING", "app.db")
        clean_env.setenv("MAX_ITEMS_PER_PAGE", "many")
        with pytest.raises(ConfigError, match="Invalid configuration") as exc_info:
            RowsqlConfig.from_env()
        assert isinstance(exc_info.value.__cause__, ValidationError)

    def test_out_of_range_number(self, clean_env) -> None:
        clean_env.setenv("DBSTRING", "app.db")
        clean_env.setenv("CACHE_SIZE", "0")
        with pytest.raises(ConfigError):
            RowsqlConfig.from_env()
