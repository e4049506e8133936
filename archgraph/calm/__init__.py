"""CALM architecture synthesis package."""

from archgraph.calm.builder import generate_calm_json, render_document, synthesize
from archgraph.calm.models import CALM_SCHEMA, CalmDocument
from archgraph.calm.regeneration import Action, decide, regenerate_file, run_until_stable
from archgraph.calm.slug import slug

__all__ = [
    "CALM_SCHEMA",
    "CalmDocument",
    "Action",
    "decide",
    "generate_calm_json",
    "regenerate_file",
    "render_document",
    "run_until_stable",
    "slug",
    "synthesize",
]
