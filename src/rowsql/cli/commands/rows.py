"""rowsql rows / insert / update / delete -- work with table rows.

Rows are addressed by the 8-character token shown in the first column of
``rowsql rows``.  Pass the same ``--page``/``--order-by``/``--desc`` used to
list the row so it can be found again.
"""

from __future__ import annotations

from typing import Sequence

import click

from rowsql.cli.formatting import format_rows, format_success
from rowsql.models.schema import InputKind, RowItem


def _split_assignment(raw: str) -> tuple[str, str]:
    name, sep, value = raw.partition("=")
    if not sep or not name.strip():
        raise click.BadParameter(f"expected COLUMN=VALUE, got {raw!r}")
    return name.strip(), value


def _row_items(values: Sequence[str], json_values: Sequence[str], nulls: Sequence[str]) -> list[RowItem]:
    items = [RowItem(*_split_assignment(v)) for v in values]
    items += [
        RowItem(name, value, kind=InputKind.JSON.value)
        for name, value in map(_split_assignment, json_values)
    ]
    items += [RowItem(name.strip(), None) for name in nulls]
    return items


def _page_options(fn):  # type: ignore[no-untyped-def]
    fn = click.option("--desc", is_flag=True, help="Sort descending.")(fn)
    fn = click.option("--order-by", default="", help="Column to sort by.")(fn)
    fn = click.option("--page", default=1, type=int, show_default=True, help="Page number.")(fn)
    return fn


def _value_options(fn):  # type: ignore[no-untyped-def]
    fn = click.option("--null", "nulls", multiple=True, metavar="COLUMN", help="Set COLUMN to NULL.")(fn)
    fn = click.option("--json", "json_values", multiple=True, metavar="COLUMN=JSON", help="JSON value.")(fn)
    fn = click.option("-v", "--value", "values", multiple=True, metavar="COLUMN=VALUE", help="Column value.")(fn)
    return fn


@click.command()
@click.argument("table")
@_page_options
@click.pass_context
def rows(ctx: click.Context, table: str, page: int, order_by: str, desc: bool) -> None:
    """Show one page of TABLE."""
    from rowsql.cli import _rowsql_session

    with _rowsql_session(ctx) as (db, console):
        order_dir = "desc" if desc else "asc"
        page_rows = db.rows(table, page=page, order_col=order_by, order_dir=order_dir)
        total = db.row_count(table)
        format_rows(
            db.columns(table),
            page_rows,
            console,
            page=page,
            has_next=db.has_next_page(total, page),
        )


@click.command()
@click.argument("table")
@_value_options
@click.pass_context
def insert(
    ctx: click.Context,
    table: str,
    values: tuple[str, ...],
    json_values: tuple[str, ...],
    nulls: tuple[str, ...],
) -> None:
    """Insert a row into TABLE.

    Columns that are not given take their default value.
    """
    from rowsql.cli import _rowsql_session

    items = _row_items(values, json_values, nulls)
    with _rowsql_session(ctx) as (db, console):
        db.insert(table, items)
        format_success(f"Inserted row into {table}", console)


@click.command()
@click.argument("table")
@click.argument("token")
@_value_options
@_page_options
@click.pass_context
def update(
    ctx: click.Context,
    table: str,
    token: str,
    values: tuple[str, ...],
    json_values: tuple[str, ...],
    nulls: tuple[str, ...],
    page: int,
    order_by: str,
    desc: bool,
) -> None:
    """Update the row TOKEN of TABLE."""
    from rowsql.cli import _rowsql_session

    items = _row_items(values, json_values, nulls)
    with _rowsql_session(ctx) as (db, console):
        db.update(
            table,
            token,
            items,
            page=page,
            order_col=order_by,
            order_dir="desc" if desc else "asc",
        )
        format_success(f"Updated row {token} in {table}", console)


@click.command()
@click.argument("table")
@click.argument("token")
@_page_options
@click.pass_context
def delete(
    ctx: click.Context,
    table: str,
    token: str,
    page: int,
    order_by: str,
    desc: bool,
) -> None:
    """Delete the row TOKEN of TABLE."""
    from rowsql.cli import _rowsql_session

    with _rowsql_session(ctx) as (db, console):
        db.delete(
            table,
            token,
            page=page,
            order_col=order_by,
            order_dir="desc" if desc else "asc",
        )
        format_success(f"Deleted row {token} from {table}", console)
