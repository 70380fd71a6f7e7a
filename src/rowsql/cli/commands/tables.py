"""rowsql tables / columns / types -- inspect the schema."""

from __future__ import annotations

import click

from rowsql.cli.formatting import format_columns, format_data_types, format_tables


@click.command()
@click.pass_context
def tables(ctx: click.Context) -> None:
    """List user tables."""
    from rowsql.cli import _rowsql_session

    with _rowsql_session(ctx) as (db, console):
        format_tables(db.tables(), console)


@click.command()
@click.argument("table")
@click.pass_context
def columns(ctx: click.Context, table: str) -> None:
    """Describe the columns of TABLE."""
    from rowsql.cli import _rowsql_session

    with _rowsql_session(ctx) as (db, console):
        format_columns(db.columns(table), console)


@click.command()
@click.pass_context
def types(ctx: click.Context) -> None:
    """Show the column types offered by create-table for this database."""
    from rowsql.cli import _rowsql_session

    with _rowsql_session(ctx) as (db, console):
        console.print(f"Dialect: [cyan]{db.dialect.value}[/cyan]")
        format_data_types(db.form_data_types(), console)
