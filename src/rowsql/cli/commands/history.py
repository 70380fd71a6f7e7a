"""rowsql history -- show recorded mutations."""

from __future__ import annotations

import click

from rowsql.cli.formatting import format_history, format_success


@click.command()
@click.option("--page", default=1, type=int, show_default=True, help="Page number.")
@click.option("--delete", "delete_id", default=None, type=int, metavar="ID", help="Delete entry ID instead.")
@click.pass_context
def history(ctx: click.Context, page: int, delete_id: int | None) -> None:
    """Show mutation history, newest first."""
    from rowsql.cli import _rowsql_session

    with _rowsql_session(ctx) as (db, console):
        if delete_id is not None:
            db.delete_history(delete_id)
            format_success(f"Deleted history entry {delete_id}", console)
            return
        format_history(db.history(page), console)
