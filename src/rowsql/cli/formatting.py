"""Rich formatting helpers for the rowsql CLI.

Rich auto-detects TTY and degrades gracefully when piped (no ANSI codes).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Sequence

from rich.console import Console
from rich.markup import escape
from rich.table import Table

if TYPE_CHECKING:
    from rowsql.models.schema import ColumnInfo, FormDataTypes, HistoryEntry, TableInfo


def get_console() -> Console:
    """Create a Rich Console that auto-detects TTY for graceful pipe degradation."""
    return Console(stderr=False)


def _cell(value: Any) -> str:
    if value is None:
        return "[dim]NULL[/dim]"
    return escape(str(value))


def format_tables(tables: Sequence[TableInfo], console: Console) -> None:
    if not tables:
        console.print("[dim]No tables.[/dim]")
        return

    table = Table(show_header=True, header_style="bold", box=None, pad_edge=False)
    table.add_column("Schema", style="dim")
    table.add_column("Table", style="cyan")
    for info in tables:
        table.add_row(escape(info.schema), escape(info.name))
    console.print(table)


def format_columns(columns: Sequence[ColumnInfo], console: Console) -> None:
    if not columns:
        console.print("[dim]No columns.[/dim]")
        return

    table = Table(show_header=True, header_style="bold", box=None, pad_edge=False)
    table.add_column("Column", style="cyan")
    table.add_column("Type")
    table.add_column("Input", style="dim")
    table.add_column("Flags", style="yellow")
    for col in columns:
        flags = []
        if col.is_unique:
            flags.append("unique")
        if col.has_default:
            flags.append("default")
        if col.has_auto_increment:
            flags.append("autoinc")
        table.add_row(
            escape(col.name),
            escape(col.data_type),
            col.input_kind.value,
            ", ".join(flags),
        )
    console.print(table)


def format_rows(
    columns: Sequence[ColumnInfo],
    rows: Sequence[Sequence[Any]],
    console: Console,
    *,
    page: int,
    has_next: bool,
) -> None:
    """Display a page of rows; the first value of each row is its token."""
    if not rows:
        console.print("[dim]No rows.[/dim]")
        return

    table = Table(show_header=True, header_style="bold", box=None, pad_edge=False)
    table.add_column("Token", style="yellow", no_wrap=True, min_width=8)
    for col in columns:
        table.add_column(escape(col.name), overflow="fold")
    for token, *values in rows:
        table.add_row(token, *(_cell(v) for v in values))
    console.print(table)

    footer = f"Page {page}"
    if has_next:
        footer += f" (more: --page {page + 1})"
    console.print(f"[dim]{footer}[/dim]")


def format_history(entries: Sequence[HistoryEntry], console: Console) -> None:
    if not entries:
        console.print("[dim]No history.[/dim]")
        return

    table = Table(show_header=True, header_style="bold", box=None, pad_edge=False)
    table.add_column("ID", justify="right", style="yellow")
    table.add_column("Time", style="dim")
    table.add_column("Message")
    for entry in entries:
        time_str = entry.time.strftime("%Y-%m-%d %H:%M:%S") if entry.time else ""
        table.add_row(str(entry.id), time_str, escape(entry.message))
    console.print(table)


def format_data_types(types: FormDataTypes, console: Console) -> None:
    """Display the create-table type catalog."""
    table = Table(show_header=True, header_style="bold", box=None, pad_edge=False)
    table.add_column("Kind", style="dim")
    table.add_column("Type", style="cyan")
    table.add_column("Options", style="yellow")
    for kind, infos in (("numeric", types.numeric), ("string", types.string)):
        for info in infos:
            options = [
                name
                for name, enabled in (
                    ("size", info.has_size),
                    ("digits", info.has_digit),
                    ("values", info.has_values),
                    ("autoinc", info.has_auto_increment),
                )
                if enabled
            ]
            table.add_row(kind, info.type, ", ".join(options))
    console.print(table)


def format_success(message: str, console: Console) -> None:
    console.print(f"[green]{escape(message)}[/green]", highlight=False)


def format_error(message: str, console: Console) -> None:
    """Display an error message."""
    console.print(f"[red]Error:[/red] {escape(message)}", highlight=False)
