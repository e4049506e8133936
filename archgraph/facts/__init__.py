"""Fact layer package.

Public re-exports so callers can write::

    from archgraph.facts import FactSnapshot, FactTable
    from archgraph.facts import ServiceEndpoint
"""

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
from archgraph.facts.tables import FactSnapshot, FactTable

__all__ = [
    "FactSnapshot",
    "FactTable",
    "ClassDescription",
    "DataAsset",
    "DatabaseConnection",
    "DeploymentArtifact",
    "ExternalServiceCall",
    "MessagingConnection",
    "ProjectMetadata",
    "SecurityConfiguration",
    "ServerConfiguration",
    "ServiceEndpoint",
]
