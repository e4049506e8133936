"""Fact table registry.

A :class:`FactSnapshot` is the complete set of rows handed to the
synthesis engine for one invocation.  It is keyed by the :class:`FactTable`
enumeration so callers never look tables up by class identity or name
strings; a table that was never populated simply reads as empty.
"""

from __future__ import annotations

from dataclasses import fields
from enum import Enum
from typing import Any, Iterable, Mapping

from archgraph.facts.models import (
    ClassDescription,
    DataAsset,
    DatabaseConnection,
    DeploymentArtifact,
    ExternalServiceCall,
    MessagingConnection,
    ProjectMetadata,
    SecurityConfiguration,
    ServerConfiguration,
    ServiceEndpoint,
)


class FactTable(Enum):
    """Every table a discovery pass can populate.

    The enum value is the table's stable key (also its SQLite table name).
    """

    SERVICE_ENDPOINTS = "service_endpoints"
    DATABASE_CONNECTIONS = "database_connections"
    EXTERNAL_SERVICE_CALLS = "external_service_calls"
    MESSAGING_CONNECTIONS = "messaging_connections"
    SERVER_CONFIGURATION = "server_configuration"
    DATA_ASSETS = "data_assets"
    PROJECT_METADATA = "project_metadata"
    SECURITY_CONFIGURATION = "security_configuration"
    CLASS_DESCRIPTIONS = "class_descriptions"
    DEPLOYMENT_ARTIFACTS = "deployment_artifacts"

    @property
    def row_type(self) -> type:
        return _ROW_TYPES[self]

    @property
    def display_name(self) -> str:
        return _DESCRIPTIONS[self][0]

    @property
    def description(self) -> str:
        return _DESCRIPTIONS[self][1]

    @property
    def class_name(self) -> str:
        """CamelCase table name, e.g. ``ServiceEndpoints``."""
        return "".join(part.capitalize() for part in self.value.split("_"))

    def column_names(self) -> list[str]:
        return [f.name for f in fields(self.row_type)]

    @classmethod
    def lookup(cls, name: str) -> FactTable:
        """Resolve a table from its key, enum name, or CamelCase name."""
        for table in cls:
            if name in (table.value, table.name, table.class_name):
                return table
        raise ValueError(f"Unknown fact table: {name!r}")


_ROW_TYPES: dict[FactTable, type] = {
    FactTable.SERVICE_ENDPOINTS: ServiceEndpoint,
    FactTable.DATABASE_CONNECTIONS: DatabaseConnection,
    FactTable.EXTERNAL_SERVICE_CALLS: ExternalServiceCall,
    FactTable.MESSAGING_CONNECTIONS: MessagingConnection,
    FactTable.SERVER_CONFIGURATION: ServerConfiguration,
    FactTable.DATA_ASSETS: DataAsset,
    FactTable.PROJECT_METADATA: ProjectMetadata,
    FactTable.SECURITY_CONFIGURATION: SecurityConfiguration,
    FactTable.CLASS_DESCRIPTIONS: ClassDescription,
    FactTable.DEPLOYMENT_ARTIFACTS: DeploymentArtifact,
}

_DESCRIPTIONS: dict[FactTable, tuple[str, str]] = {
    FactTable.SERVICE_ENDPOINTS: (
        "Service endpoints",
        "HTTP endpoints exposed by controllers and resources in the application.",
    ),
    FactTable.DATABASE_CONNECTIONS: (
        "Database connections",
        "Database connections and data access patterns in the application.",
    ),
    FactTable.EXTERNAL_SERVICE_CALLS: (
        "External service calls",
        "Outbound HTTP/REST calls to external services.",
    ),
    FactTable.MESSAGING_CONNECTIONS: (
        "Messaging connections",
        "Message queue producers and consumers in the application.",
    ),
    FactTable.SERVER_CONFIGURATION: (
        "Server configuration",
        "Server port, TLS and context path settings.",
    ),
    FactTable.DATA_ASSETS: (
        "Data assets",
        "Data entities, DTOs, and records that represent the application's data model.",
    ),
    FactTable.PROJECT_METADATA: (
        "Project metadata",
        "Project identification including artifact ID, group ID, and name.",
    ),
    FactTable.SECURITY_CONFIGURATION: (
        "Security configuration",
        "Authentication, authorization and CORS configuration.",
    ),
    FactTable.CLASS_DESCRIPTIONS: (
        "Class descriptions",
        "AI-generated descriptions of classes in the codebase.",
    ),
    FactTable.DEPLOYMENT_ARTIFACTS: (
        "Deployment artifacts",
        "Deployment configuration files (Dockerfile, Kubernetes manifests, docker-compose).",
    ),
}


class FactSnapshot:
    """Immutable, ordered view over every fact table for one invocation."""

    def __init__(self, tables: Mapping[FactTable, Iterable[Any]] | None = None) -> None:
        self._tables: dict[FactTable, tuple[Any, ...]] = {}
        for table, rows in (tables or {}).items():
            self._tables[table] = tuple(rows)

    def rows(self, table: FactTable) -> list[Any]:
        """Return the rows of *table* in arrival order (empty when absent)."""
        return list(self._tables.get(table, ()))

    def is_empty(self) -> bool:
        return not any(self._tables.values())

    def tables(self) -> list[FactTable]:
        """Tables that hold at least one row, in enum order."""
        return [t for t in FactTable if self._tables.get(t)]

    def with_rows(self, table: FactTable, rows: Iterable[Any]) -> FactSnapshot:
        """Return a new snapshot with *rows* appended to *table*."""
        merged = dict(self._tables)
        merged[table] = merged.get(table, ()) + tuple(rows)
        return FactSnapshot(merged)

    def __len__(self) -> int:
        return sum(len(rows) for rows in self._tables.values())

    def __repr__(self) -> str:
        counts = ", ".join(f"{t.value}={len(r)}" for t, r in self._tables.items() if r)
        return f"FactSnapshot({counts})"
