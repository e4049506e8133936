"""CSV import/export of fact tables and the markdown context index.

Exported files are named after the table (``service-endpoints.csv`` …) and
use the column display names as headers, so the same files can be read
back with :func:`load_csv_dir`.
"""

from __future__ import annotations

import csv
import io
import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Iterable, Sequence

from archgraph.calm.slug import slug
from archgraph.facts.models import build_row
from archgraph.facts.tables import FactSnapshot, FactTable

logger = logging.getLogger(__name__)

ARCHITECTURE_TABLES: tuple[FactTable, ...] = (
    FactTable.SERVICE_ENDPOINTS,
    FactTable.DATABASE_CONNECTIONS,
    FactTable.EXTERNAL_SERVICE_CALLS,
    FactTable.MESSAGING_CONNECTIONS,
    FactTable.SERVER_CONFIGURATION,
    FactTable.DATA_ASSETS,
    FactTable.PROJECT_METADATA,
    FactTable.SECURITY_CONFIGURATION,
    FactTable.DEPLOYMENT_ARTIFACTS,
)

ARCHITECTURE_CONTEXT = (
    "Architecture",
    "FINOS CALM architecture diagram",
    "FINOS CALM (Common Architecture Language Model) architecture diagram showing "
    "services, databases, external integrations, and messaging connections. Use this "
    "to understand the high-level system architecture and component relationships.",
)


@dataclass
class ColumnInfo:
    name: str
    display_name: str
    description: str


def table_filename(table: FactTable) -> str:
    """``FactTable.SERVICE_ENDPOINTS`` -> ``service-endpoints.csv``."""
    return slug(table.class_name) + ".csv"


def table_columns(table: FactTable) -> list[ColumnInfo]:
    return [
        ColumnInfo(f.name, f.metadata["display_name"], f.metadata["description"])
        for f in fields(table.row_type)
    ]


# ---------------------------------------------------------------------------
# CSV
# ---------------------------------------------------------------------------

def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def export_csv(table: FactTable, rows: Iterable[Any]) -> str:
    """Render *rows* as CSV text with a header of column display names."""
    columns = table_columns(table)
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow([c.display_name for c in columns])
    for row in rows:
        writer.writerow([_cell(getattr(row, c.name)) for c in columns])
    return buffer.getvalue()


def read_csv(table: FactTable, text: str) -> list[Any]:
    """Parse CSV text produced by :func:`export_csv` back into rows.

    Headers may be column display names or field names.

    Raises:
        ValueError: If a header does not match any column of *table*.
    """
    by_header: dict[str, str] = {}
    for c in table_columns(table):
        by_header[c.display_name] = c.name
        by_header[c.name] = c.name

    reader = csv.DictReader(io.StringIO(text))
    unknown = [h for h in reader.fieldnames or [] if h not in by_header]
    if unknown:
        raise ValueError(f"Unknown column(s) in {table_filename(table)}: {', '.join(unknown)}")

    rows = []
    for record in reader:
        values = {by_header[h]: v for h, v in record.items() if h is not None}
        rows.append(build_row(table.row_type, values))
    return rows


def load_csv_dir(directory: Path) -> FactSnapshot:
    """Build a snapshot from every known table CSV found in *directory*."""
    tables: dict[FactTable, list[Any]] = {}
    for table in FactTable:
        path = Path(directory) / table_filename(table)
        if not path.exists():
            continue
        tables[table] = read_csv(table, path.read_text(encoding="utf-8"))
        logger.debug("Loaded %d row(s) from %s", len(tables[table]), path)
    return FactSnapshot(tables)


# ---------------------------------------------------------------------------
# Markdown context
# ---------------------------------------------------------------------------

def render_context_markdown(
    display_name: str,
    short_description: str,
    long_description: str,
    tables: Sequence[FactTable],
) -> str:
    """Describe the exported tables: title, descriptions, and column schemas."""
    lines = [
        f"# {display_name}",
        "",
        f"## {short_description}",
        "",
        long_description,
        "",
        "## Data Tables",
        "",
    ]
    for table in tables:
        filename = table_filename(table)
        lines += [
            f"### {table.display_name}",
            "",
            f"**File:** [`{filename}`]({filename})",
            "",
            table.description,
            "",
            "| Column | Description |",
            "|--------|-------------|",
        ]
        lines += [f"| {c.display_name} | {c.description} |" for c in table_columns(table)]
        lines.append("")
    return "\n".join(lines) + "\n"


def _write_if_changed(path: Path, content: str) -> bool:
    if path.exists() and path.read_text(encoding="utf-8") == content:
        return False
    path.write_text(content, encoding="utf-8")
    return True


def export_context(
    snapshot: FactSnapshot,
    out_dir: Path,
    tables: Sequence[FactTable] = ARCHITECTURE_TABLES,
) -> list[Path]:
    """Write one CSV per table plus the markdown index into *out_dir*.

    Files whose content is already up to date are left alone.

    Returns:
        The paths that were (re)written.
    """
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    written: list[Path] = []
    for table in tables:
        path = out_dir / table_filename(table)
        if _write_if_changed(path, export_csv(table, snapshot.rows(table))):
            written.append(path)

    display_name, short, long = ARCHITECTURE_CONTEXT
    md_path = out_dir / f"{slug(display_name)}.md"
    if _write_if_changed(md_path, render_context_markdown(display_name, short, long, tables)):
        written.append(md_path)

    logger.info("Exported %d context file(s) to %s", len(written), out_dir)
    return written
