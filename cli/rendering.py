"""Utilities for rendering architecture graphs in the CLI."""

from __future__ import annotations

from typing import Dict, List, Optional, Tuple

from archgraph.calm.models import CalmDocument


def render_tree(document: CalmDocument, root_id: Optional[str] = None) -> str:
    """Render an architecture document as an ASCII tree.

    Args:
        document: The synthesized CALM document.
        root_id: Node to start from.  Defaults to every node without an
            incoming relationship, in document order.

    Returns:
        String representation of the tree.
    """
    node_map = {n.unique_id: n for n in document.nodes}

    # Build adjacency list: source -> [(destination, relation)]
    adj: Dict[str, List[Tuple[str, str]]] = {}
    incoming: set[str] = set()
    for rel in document.relationships:
        adj.setdefault(rel.source.node, []).append((rel.destination.node, rel.relationship_type))
        incoming.add(rel.destination.node)

    if root_id is not None:
        roots = [root_id]
    else:
        roots = [n.unique_id for n in document.nodes if n.unique_id not in incoming]

    lines: List[str] = []
    visited: set[str] = set()

    def _label(node_id: str) -> str:
        node = node_map.get(node_id)
        if node is None:
            return f"{_get_icon('')} Unknown({node_id})"
        return f"{_get_icon(node.node_type)} {node.name} ({node.unique_id})"

    def _render_node(node_id: str, relation: str, prefix: str, is_last: bool, is_root: bool) -> None:
        if node_id in visited and not is_root:
            # Cycle or multi-parent: show a reference, do not descend again
            connector = "└── " if is_last else "├── "
            lines.append(f"{prefix}{connector}[{relation}] ↺ {node_id}")
            return
        visited.add(node_id)

        if is_root:
            lines.append(_label(node_id))
            child_prefix = ""
        else:
            connector = "└── " if is_last else "├── "
            lines.append(f"{prefix}{connector}[{relation}] {_label(node_id)}")
            child_prefix = prefix + ("    " if is_last else "│   ")

        children = adj.get(node_id, [])
        count = len(children)
        for i, (child_id, rel) in enumerate(children):
            _render_node(child_id, rel, child_prefix, i == count - 1, False)

    for root in roots:
        if root not in node_map:
            lines.append(f"Root node {root!r} not found.")
            continue
        _render_node(root, "", "", True, True)

    return "\n".join(lines)


def _get_icon(node_type: str) -> str:
    icons = {
        "system": "🏛",
        "service": "⚙",
        "database": "🗄",
        "data-asset": "📄",
        "webclient": "🌐",
        "network": "📨",
    }
    return icons.get(node_type, "📦")
