"""Shared state for archgraph CLI commands.

Resolves where facts come from (a CSV export directory or the SQLite fact
store) and configures logging once per invocation.
"""

from __future__ import annotations

import logging
from functools import wraps
from pathlib import Path
from typing import Callable, Optional

import typer

from archgraph.config import settings
from archgraph.facts.csv_io import load_csv_dir
from archgraph.facts.store import get_connection, init_db, load_snapshot
from archgraph.facts.tables import FactSnapshot


def configure_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else getattr(logging, settings.log_level.upper(), logging.WARNING)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def load_facts(facts_dir: Optional[Path] = None) -> FactSnapshot:
    """Load the fact snapshot from *facts_dir* CSVs, or from the fact store."""
    if facts_dir is not None:
        if not facts_dir.is_dir():
            raise ValueError(f"Facts directory not found: {facts_dir}")
        return load_csv_dir(facts_dir)

    conn = get_connection()
    try:
        init_db(conn)
        return load_snapshot(conn)
    finally:
        conn.close()


def fail_on_value_error(func: Callable) -> Callable:
    """Decorator turning loader ``ValueError``s into a clean CLI exit."""

    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except ValueError as exc:
            typer.echo(f"❌ {exc}")
            raise typer.Exit(code=1)

    return wrapper
