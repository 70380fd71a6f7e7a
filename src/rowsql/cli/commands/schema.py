"""rowsql create-table / drop-table -- schema changes."""

from __future__ import annotations

import re

import click

from rowsql.cli.formatting import format_success
from rowsql.models.schema import ColumnInput, DataTypeSpec

_TYPE_RE = re.compile(r"^\s*(?P<type>[^()]+?)\s*(?:\((?P<size>\d+)\))?\s*$")
_FLAGS = frozenset({"pk", "unique", "notnull", "autoinc"})


def parse_column(raw: str) -> ColumnInput:
    """Parse ``name:TYPE[(size)][:flag,flag...]`` into a ColumnInput.

    Flags: ``pk``, ``unique``, ``notnull``, ``autoinc``.
    """
    parts = raw.split(":", 2)
    if len(parts) < 2 or not parts[0].strip():
        raise click.BadParameter(f"expected NAME:TYPE[(SIZE)][:FLAGS], got {raw!r}")
    match = _TYPE_RE.match(parts[1])
    if match is None:
        raise click.BadParameter(f"invalid column type {parts[1]!r}")

    flags = {f.strip().lower() for f in parts[2].split(",") if f.strip()} if len(parts) == 3 else set()
    unknown = flags - _FLAGS
    if unknown:
        raise click.BadParameter(f"unknown flag(s): {', '.join(sorted(unknown))}")

    size = match.group("size")
    return ColumnInput(
        name=parts[0].strip(),
        data_type=DataTypeSpec(
            type=match.group("type"),
            size=int(size) if size else None,
            auto_increment="autoinc" in flags,
        ),
        nullable="notnull" not in flags,
        primary_key="pk" in flags,
        unique="unique" in flags,
    )


def _parse_columns(ctx: click.Context, param: click.Parameter, value: tuple[str, ...]) -> list[ColumnInput]:
    return [parse_column(v) for v in value]


@click.command("create-table")
@click.argument("name")
@click.option(
    "-c",
    "--column",
    "columns",
    multiple=True,
    required=True,
    callback=_parse_columns,
    metavar="NAME:TYPE[(SIZE)][:FLAGS]",
    help="Column definition; repeat for each column.",
)
@click.pass_context
def create_table(ctx: click.Context, name: str, columns: list[ColumnInput]) -> None:
    """Create table NAME.

    \b
    Example:
      rowsql create-table users -c id:INTEGER:pk,autoinc -c email:VARCHAR(255):unique,notnull
    """
    from rowsql.cli import _rowsql_session

    with _rowsql_session(ctx) as (db, console):
        db.create_table(name, columns)
        format_success(f"Created table {name}", console)


@click.command("drop-table")
@click.argument("name")
@click.option(
    "--confirm",
    required=True,
    help='Must be exactly "DROP TABLE IF EXISTS NAME".',
)
@click.pass_context
def drop_table(ctx: click.Context, name: str, confirm: str) -> None:
    """Drop table NAME. This cannot be undone."""
    from rowsql.cli import _rowsql_session

    with _rowsql_session(ctx) as (db, console):
        db.drop_table(name, confirm)
        format_success(f"Dropped table {name}", console)
