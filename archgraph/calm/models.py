"""CALM document model.

Plain dataclasses mirroring the FINOS CALM document shape.  ``to_dict``
produces the external form: hyphenated keys, and optional fields omitted
rather than emitted as ``null``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

CALM_SCHEMA = "https://calm.finos.org/draft/2025-03/meta/calm.json"

NODE_TYPES = ("system", "service", "database", "data-asset", "webclient", "network")
RELATIONSHIP_TYPES = ("composed-of", "connects", "interacts")


def _compact(data: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in data.items() if v is not None}


@dataclass(frozen=True)
class CalmInterface:
    unique_id: str
    protocol: Optional[str] = None
    port: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        return _compact({"unique-id": self.unique_id, "protocol": self.protocol, "port": self.port})


@dataclass(frozen=True)
class CalmEndpoint:
    """One end of a relationship: a node, optionally narrowed to an interface."""

    node: str
    interface: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return _compact({"node": self.node, "interface": self.interface})


@dataclass
class CalmNode:
    unique_id: str
    node_type: str
    name: str
    description: Optional[str] = None
    interfaces: Optional[list[CalmInterface]] = None

    def __post_init__(self) -> None:
        if self.node_type not in NODE_TYPES:
            raise ValueError(f"Unknown node type: {self.node_type!r}")

    def to_dict(self) -> dict[str, Any]:
        return _compact({
            "unique-id": self.unique_id,
            "node-type": self.node_type,
            "name": self.name,
            "description": self.description,
            "interfaces": [i.to_dict() for i in self.interfaces] if self.interfaces else None,
        })


@dataclass
class CalmRelationship:
    unique_id: str
    relationship_type: str
    source: CalmEndpoint
    destination: CalmEndpoint
    protocol: Optional[str] = None

    def __post_init__(self) -> None:
        if self.relationship_type not in RELATIONSHIP_TYPES:
            raise ValueError(f"Unknown relationship type: {self.relationship_type!r}")

    def to_dict(self) -> dict[str, Any]:
        # Only the block named by relationship-type is populated.
        return _compact({
            "unique-id": self.unique_id,
            "relationship-type": self.relationship_type,
            self.relationship_type: {
                "source": self.source.to_dict(),
                "destination": self.destination.to_dict(),
            },
            "protocol": self.protocol,
        })


@dataclass
class CalmDocument:
    nodes: list[CalmNode] = field(default_factory=list)
    relationships: list[CalmRelationship] = field(default_factory=list)
    schema: str = CALM_SCHEMA

    def to_dict(self) -> dict[str, Any]:
        return {
            "nodes": [n.to_dict() for n in self.nodes],
            "relationships": [r.to_dict() for r in self.relationships],
            "$schema": self.schema,
        }

    def node(self, unique_id: str) -> Optional[CalmNode]:
        return next((n for n in self.nodes if n.unique_id == unique_id), None)

    def relationship(self, unique_id: str) -> Optional[CalmRelationship]:
        return next((r for r in self.relationships if r.unique_id == unique_id), None)
