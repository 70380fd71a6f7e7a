"""Logger construction.

rowsql never configures the root logger or mutates handlers of loggers it
does not own.  :func:`create_logger` returns a fresh, unregistered
``logging.Logger`` that the caller passes down explicitly.
"""

from __future__ import annotations

import logging
import os

from rich.console import Console
from rich.logging import RichHandler

from rowsql.exceptions import ConfigError
from rowsql.models.config import RowsqlConfig

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def create_logger(config: RowsqlConfig, name: str = "rowsql") -> logging.Logger:
    """Build a logger from *config*.

    Writes to ``config.log_file`` when set, otherwise to stderr through a
    rich handler.  Development mode forces DEBUG.

    Raises:
        ConfigError: If the log level is not a known level name.
    """
    log = logging.Logger(name)
    level = "DEBUG" if config.is_development else config.log_level.upper()
    try:
        log.setLevel(level)
    except ValueError as exc:
        raise ConfigError(f"Invalid log level: {config.log_level!r}") from exc

    handler: logging.Handler
    if config.log_file:
        directory = os.path.dirname(config.log_file)
        if directory:
            os.makedirs(directory, exist_ok=True)
        handler = logging.FileHandler(config.log_file, encoding="utf-8")
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
    else:
        handler = RichHandler(console=Console(stderr=True), show_path=False)
    log.addHandler(handler)
    return log
