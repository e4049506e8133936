"""archgraph CLI: entry-point for all operations.

Usage:
    python cli/main.py --help

Sub-command groups:
    facts     → fact store (init, import, list, clear)
    calm      → architecture document (generate, show)
    export    → CSV + markdown context export
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from archgraph.xxx import ...`
# works when the CLI is invoked as `python cli/main.py` from any directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from typing import Optional

import typer

from archgraph.config import settings
from archgraph.facts.csv_io import export_context
from cli.commands.calm import calm_app
from cli.commands.facts import facts_app
from cli.context import configure_logging, fail_on_value_error, load_facts

app = typer.Typer(
    name="archgraph",
    help="Synthesize a CALM architecture graph from discovered codebase facts.",
    no_args_is_help=True,
)
app.add_typer(facts_app, name="facts")
app.add_typer(calm_app, name="calm")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    configure_logging(verbose)


@app.command("export")
@fail_on_value_error
def export(
    facts_dir: Optional[Path] = typer.Option(
        None, "--facts-dir", help="Read facts from exported CSVs instead of the fact store."
    ),
    out: Optional[Path] = typer.Option(None, "--out", help="Output directory."),
) -> None:
    """Export the architecture fact tables as CSV plus a markdown index."""
    out_dir = out or settings.context_dir
    written = export_context(load_facts(facts_dir), out_dir)
    for path in written:
        typer.echo(f"  wrote {path}")
    typer.echo(f"[export] {len(written)} file(s) updated in {out_dir}")


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
