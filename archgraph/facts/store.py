"""SQLite fact store.

Discovery passes append rows here; the synthesis engine reads the whole
store back as one :class:`~archgraph.facts.tables.FactSnapshot`.

Usage::

    from archgraph.facts.store import get_connection, init_db, load_snapshot

    conn = get_connection()
    init_db(conn)
    snapshot = load_snapshot(conn)
"""

from __future__ import annotations

import sqlite3
from dataclasses import astuple, fields
from pathlib import Path
from typing import Any, Iterable, Optional

from archgraph.config import settings
from archgraph.facts.models import build_row
from archgraph.facts.tables import FactSnapshot, FactTable


# ---------------------------------------------------------------------------
# Connection / schema
# ---------------------------------------------------------------------------

def get_connection(db_path: Optional[Path] = None) -> sqlite3.Connection:
    """Open a SQLite connection with ``row_factory`` set to :class:`sqlite3.Row`.

    Args:
        db_path: Override the DB path.  Defaults to ``settings.db_path``.
    """
    path = db_path or settings.db_path

    # Create parent directory if needed (no-op for `:memory:`)
    if str(path) != ":memory:":
        Path(path).parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(str(path))
    conn.row_factory = sqlite3.Row
    return conn


def init_db(conn: sqlite3.Connection) -> None:
    """Create every fact table.  Idempotent: all DDL uses ``IF NOT EXISTS``."""
    conn.executescript(settings.schema_path.read_text(encoding="utf-8"))
    with conn:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS schema_version (
                version    INTEGER PRIMARY KEY,
                applied_at INTEGER DEFAULT (strftime('%s', 'now'))
            )
            """
        )


def current_version(conn: sqlite3.Connection) -> int:
    """Return the highest applied migration version (0 if none applied)."""
    row = conn.execute(
        "SELECT COALESCE(MAX(version), 0) FROM schema_version"
    ).fetchone()
    return row[0] if row else 0


# ---------------------------------------------------------------------------
# Rows
# ---------------------------------------------------------------------------

def _insert(conn: sqlite3.Connection, table: FactTable, rows: Iterable[Any]) -> int:
    columns = table.column_names()
    placeholders = ", ".join("?" for _ in columns)
    sql = f"INSERT INTO {table.value} ({', '.join(columns)}) VALUES ({placeholders})"

    values = []
    for row in rows:
        if not isinstance(row, table.row_type):
            raise ValueError(
                f"Expected {table.row_type.__name__} for {table.value}, got {type(row).__name__}"
            )
        values.append(astuple(row))

    try:
        conn.executemany(sql, values)
    except sqlite3.IntegrityError as exc:
        raise ValueError(f"Invalid row for {table.value}: {exc}") from exc
    return len(values)


def insert_rows(conn: sqlite3.Connection, table: FactTable, rows: Iterable[Any]) -> int:
    """Append *rows* to *table* and return how many were written.

    Raises:
        ValueError: If a row has the wrong type or violates a column
            constraint.  Nothing is written in that case.
    """
    with conn:
        return _insert(conn, table, rows)


def insert_snapshot(conn: sqlite3.Connection, snapshot: FactSnapshot) -> dict[FactTable, int]:
    """Append every table of *snapshot* in a single transaction.

    Returns the number of rows written per table.  Any invalid row rolls
    back the whole snapshot.
    """
    with conn:
        return {table: _insert(conn, table, snapshot.rows(table)) for table in snapshot.tables()}


def read_rows(conn: sqlite3.Connection, table: FactTable) -> list[Any]:
    """Return every row of *table* in insertion order."""
    names = [f.name for f in fields(table.row_type)]
    result = conn.execute(
        f"SELECT {', '.join(names)} FROM {table.value} ORDER BY rowid"
    ).fetchall()
    return [build_row(table.row_type, {n: r[n] for n in names}) for r in result]


def load_snapshot(conn: sqlite3.Connection) -> FactSnapshot:
    """Read all fact tables into a single snapshot."""
    return FactSnapshot({table: read_rows(conn, table) for table in FactTable})


def count_rows(conn: sqlite3.Connection) -> dict[FactTable, int]:
    return {
        table: conn.execute(f"SELECT COUNT(*) FROM {table.value}").fetchone()[0]
        for table in FactTable
    }


def clear_table(conn: sqlite3.Connection, table: Optional[FactTable] = None) -> None:
    """Delete all rows from *table*, or from every table when omitted."""
    targets = [table] if table else list(FactTable)
    with conn:
        for t in targets:
            conn.execute(f"DELETE FROM {t.value}")
