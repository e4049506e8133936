"""Commands for generating and viewing the CALM architecture document."""

from pathlib import Path
from typing import Optional

import typer

from archgraph.calm.builder import synthesize
from archgraph.calm.regeneration import run_until_stable
from archgraph.config import settings
from cli.context import fail_on_value_error, load_facts
from cli.rendering import render_tree

calm_app = typer.Typer(help="Generate and inspect the architecture graph.", no_args_is_help=True)


@calm_app.command("generate")
@fail_on_value_error
def calm_generate(
    facts_dir: Optional[Path] = typer.Option(
        None, "--facts-dir", help="Read facts from exported CSVs instead of the fact store."
    ),
    output: Optional[Path] = typer.Option(None, "--output", help="Document path."),
    cycles: Optional[int] = typer.Option(
        None, "--cycles", min=1, help="Maximum regeneration cycles."
    ),
) -> None:
    """Create, update, or remove the CALM document until it is stable."""
    snapshot = load_facts(facts_dir)
    path = output or settings.calm_path

    decisions = run_until_stable(path, snapshot, cycles or settings.max_cycles)
    for i, decision in enumerate(decisions, start=1):
        typer.echo(f"[calm generate] cycle {i}: {decision.action.value}")

    if path.exists():
        typer.echo(f"[calm generate] Document at {path}")
    else:
        typer.echo("[calm generate] No architectural facts; no document written.")


@calm_app.command("show")
@fail_on_value_error
def calm_show(
    facts_dir: Optional[Path] = typer.Option(
        None, "--facts-dir", help="Read facts from exported CSVs instead of the fact store."
    ),
    format: str = typer.Option("tree", "--format", help="Output format: tree | list"),
) -> None:
    """Synthesize the graph and print it without writing anything."""
    document = synthesize(load_facts(facts_dir))
    if document is None:
        typer.echo("No architectural facts found.")
        return

    if format == "list":
        for n in document.nodes:
            typer.echo(f"  [{n.node_type}] {n.name} ({n.unique_id})")
        for r in document.relationships:
            typer.echo(f"  {r.source.node} --[{r.relationship_type}]--> {r.destination.node}")
        return

    typer.echo(render_tree(document))
