"""Fact store commands."""

from pathlib import Path
from typing import Optional

import typer

from archgraph.config import settings
from archgraph.facts.csv_io import load_csv_dir
from archgraph.facts.store import (
    clear_table,
    count_rows,
    get_connection,
    init_db,
    insert_snapshot,
)
from archgraph.facts.tables import FactTable
from cli.context import fail_on_value_error

facts_app = typer.Typer(help="Manage the fact store.", no_args_is_help=True)


@facts_app.command("init")
def facts_init() -> None:
    """Create the fact database (tables are created only if missing)."""
    conn = get_connection()
    init_db(conn)
    conn.close()
    typer.echo(f"[facts init] Fact store ready at {settings.db_path}")


@facts_app.command("import")
@fail_on_value_error
def facts_import(
    directory: Path = typer.Argument(..., help="Directory holding exported table CSVs."),
) -> None:
    """Append every known table CSV in DIRECTORY to the fact store."""
    if not directory.is_dir():
        raise ValueError(f"Facts directory not found: {directory}")
    snapshot = load_csv_dir(directory)

    conn = get_connection()
    init_db(conn)
    try:
        written = insert_snapshot(conn, snapshot)
    finally:
        conn.close()
    for table, count in written.items():
        typer.echo(f"  {table.value}: +{count}")
    typer.echo(f"[facts import] Imported {len(snapshot)} row(s).")


@facts_app.command("list")
def facts_list() -> None:
    """Show row counts per fact table."""
    conn = get_connection()
    init_db(conn)
    try:
        counts = count_rows(conn)
    finally:
        conn.close()
    for table, count in counts.items():
        typer.echo(f"  {table.value:<24} {count}")


@facts_app.command("clear")
@fail_on_value_error
def facts_clear(
    table: Optional[str] = typer.Option(None, "--table", help="Only clear this table."),
) -> None:
    """Delete stored facts (all tables unless --table is given)."""
    target = FactTable.lookup(table) if table else None
    conn = get_connection()
    init_db(conn)
    try:
        clear_table(conn, target)
    finally:
        conn.close()
    typer.echo(f"[facts clear] Cleared {target.value if target else 'all tables'}.")
