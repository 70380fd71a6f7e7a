"""rowsql CLI -- browse and edit a database from the terminal.

This module is NEVER imported from rowsql/__init__.py.
It is only loaded via the ``rowsql`` entry point defined in pyproject.toml.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import TYPE_CHECKING

import click

from rowsql._version import __version__
from rowsql.cli.formatting import format_error, get_console

if TYPE_CHECKING:
    from collections.abc import Iterator

    from rich.console import Console

    from rowsql.rowsql import Rowsql


@click.group()
@click.option(
    "--db",
    default=None,
    envvar="DBSTRING",
    help="Database connection string (postgres URL/DSN, MySQL DSN or SQLite path).",
)
@click.option(
    "--env-file",
    default=None,
    type=click.Path(dir_okay=False),
    help="Load settings from this .env file.",
)
@click.option(
    "--log-level",
    default="WARNING",
    envvar="LOG_LEVEL",
    show_default=True,
    help="Log level for rowsql's own logger.",
)
@click.version_option(__version__, prog_name="rowsql")
@click.pass_context
def cli(ctx: click.Context, db: str | None, env_file: str | None, log_level: str) -> None:
    """rowsql: browse and edit SQL tables without writing SQL."""
    ctx.ensure_object(dict)
    ctx.obj["db"] = db
    ctx.obj["env_file"] = env_file
    ctx.obj["log_level"] = log_level


def _get_rowsql(ctx: click.Context) -> Rowsql:
    """Open a Rowsql instance from Click context."""
    from rowsql.models.config import RowsqlConfig
    from rowsql.rowsql import Rowsql

    config = RowsqlConfig.from_env(
        ctx.obj["env_file"],
        db_string=ctx.obj["db"],
        log_level=ctx.obj["log_level"],
    )
    return Rowsql.open(config=config)


@contextmanager
def _rowsql_session(ctx: click.Context) -> Iterator[tuple[Rowsql, Console]]:
    """Context manager that opens a Rowsql, yields (db, console), and handles cleanup.

    Ensures the engine is disposed on exit and formats exceptions as CLI errors.
    """
    console = get_console()
    try:
        db = _get_rowsql(ctx)
        try:
            yield db, console
        finally:
            db.close()
    except SystemExit:
        raise
    except click.ClickException:
        raise
    except Exception as e:
        format_error(str(e), console)
        raise SystemExit(1) from None


# Register subcommands after cli group is defined
from rowsql.cli.commands.tables import columns, tables, types  # noqa: E402
from rowsql.cli.commands.rows import delete, insert, rows, update  # noqa: E402
from rowsql.cli.commands.schema import create_table, drop_table  # noqa: E402
from rowsql.cli.commands.history import history  # noqa: E402

cli.add_command(tables)
cli.add_command(columns)
cli.add_command(types)
cli.add_command(rows)
cli.add_command(insert)
cli.add_command(update)
cli.add_command(delete)
cli.add_command(create_table)
cli.add_command(drop_table)
cli.add_command(history)
