"""Configuration models for rowsql.

RowsqlConfig holds the per-process settings: where the database lives, how
large a page may be, how many rows the identity cache keeps, and where logs
go.  It is built once and passed explicitly to whatever needs it.
"""

from __future__ import annotations

import os
from typing import Literal, Optional

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, Field, ValidationError

from rowsql.exceptions import ConfigError

Environment = Literal["development", "production"]

# Environment variable -> RowsqlConfig field.
_ENV_FIELDS: dict[str, str] = {
    "DBSTRING": "db_string",
    "MAX_ITEMS_PER_PAGE": "max_items_per_page",
    "CACHE_SIZE": "cache_size",
    "LOG_LEVEL": "log_level",
    "LOG_FILE_PATH": "log_file",
    "ENV": "env",
}


class RowsqlConfig(BaseModel):
    """Process-level configuration."""

    db_string: str
    max_items_per_page: int = Field(default=10, ge=1)
    cache_size: int = Field(default=100, ge=1)
    log_level: str = "INFO"
    log_file: Optional[str] = None
    env: Environment = "production"

    @property
    def is_development(self) -> bool:
        return self.env == "development"

    @classmethod
    def from_env(cls, env_path: str | None = None, **overrides: object) -> RowsqlConfig:
        """Build a config from the process environment.

        Args:
            env_path: Optional ``.env`` file loaded with python-dotenv before
                reading.  Variables already set in the environment win.
            **overrides: Field values that take precedence over the
                environment (e.g. a ``--db`` command-line option).

        Raises:
            ConfigError: If no database connection string is available, or a
                value does not validate.
        """
        if env_path is not None:
            if not os.path.exists(env_path):
                raise ConfigError(f"Env file not found: {env_path}")
            load_dotenv(env_path, override=False)
        else:
            load_dotenv(find_dotenv(usecwd=True), override=False)

        values: dict[str, object] = {}
        for env_name, field_name in _ENV_FIELDS.items():
            raw = os.environ.get(env_name)
            if raw:
                values[field_name] = raw
        if values.get("log_file"):
            values["log_file"] = os.path.expanduser(str(values["log_file"]))
        values.update({k: v for k, v in overrides.items() if v is not None})

        if not values.get("db_string"):
            raise ConfigError("DBSTRING not found in environment or .env file")
        try:
            return cls.model_validate(values)
        except ValidationError as exc:
            raise ConfigError(f"Invalid configuration: {exc}") from exc
