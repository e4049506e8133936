"""Architecture graph synthesis.

:func:`synthesize` turns a :class:`~archgraph.facts.tables.FactSnapshot`
into a :class:`~archgraph.calm.models.CalmDocument`.  It is a pure function
of the snapshot: the same rows in the same order always produce the same
document, which keeps the regeneration change-detection stable.

Passes run in a fixed order because later ones resolve owners against the
service nodes registered by earlier ones:

1. system node            5. database nodes
2. service nodes          6. external service nodes
3. data-asset nodes       7. messaging nodes
4. web-client node        8. composed-of relationships
"""

from __future__ import annotations

import json
import logging
from typing import Optional

from archgraph.calm.models import (
    CalmDocument,
    CalmEndpoint,
    CalmInterface,
    CalmNode,
    CalmRelationship,
)
from archgraph.calm.ownership import OwnershipResolver
from archgraph.calm.slug import slug
from archgraph.facts.models import (
    DatabaseConnection,
    ExternalServiceCall,
    MessagingConnection,
    ServiceEndpoint,
)
from archgraph.facts.tables import FactSnapshot, FactTable

logger = logging.getLogger(__name__)

DEFAULT_PROTOCOL = "HTTP"
DEFAULT_PORT = 8080
MAX_LISTED_ENDPOINTS = 5
WEB_CLIENT_ID = "web-client"

# Tables that can carry a graph on their own.  Server, security and
# data-asset facts only decorate one.
ARCHITECTURAL_TABLES = (
    FactTable.SERVICE_ENDPOINTS,
    FactTable.DATABASE_CONNECTIONS,
    FactTable.EXTERNAL_SERVICE_CALLS,
    FactTable.MESSAGING_CONNECTIONS,
)


class GraphBuilder:
    """Accumulates nodes and relationships for a single synthesis run."""

    def __init__(self, snapshot: FactSnapshot) -> None:
        self.snapshot = snapshot
        self.nodes: list[CalmNode] = []
        self.relationships: list[CalmRelationship] = []
        self.owners = OwnershipResolver()
        self.service_ids: list[str] = []
        self.system_id: Optional[str] = None

        self._node_ids: set[str] = set()
        self._relationship_ids: set[str] = set()
        self._class_descriptions: dict[str, str] = {}
        for row in snapshot.rows(FactTable.CLASS_DESCRIPTIONS):
            if row.class_name and row.description:
                self._class_descriptions[row.class_name] = row.description

        servers = snapshot.rows(FactTable.SERVER_CONFIGURATION)
        if servers:
            self.server_protocol = servers[0].effective_protocol
            self.server_port = servers[0].port
        else:
            self.server_protocol = DEFAULT_PROTOCOL
            self.server_port = DEFAULT_PORT

    # ------------------------------------------------------------------
    # Collection helpers
    # ------------------------------------------------------------------

    def _add_node(self, node: CalmNode) -> bool:
        if node.unique_id in self._node_ids:
            logger.debug("Node %r already exists; keeping the first one", node.unique_id)
            return False
        self._node_ids.add(node.unique_id)
        self.nodes.append(node)
        return True

    def _relate(
        self,
        unique_id: str,
        relationship_type: str,
        source: CalmEndpoint,
        destination: CalmEndpoint,
        protocol: Optional[str] = None,
    ) -> None:
        if unique_id in self._relationship_ids:
            logger.debug("Relationship %r already exists; skipping", unique_id)
            return
        self._relationship_ids.add(unique_id)
        self.relationships.append(
            CalmRelationship(unique_id, relationship_type, source, destination, protocol)
        )

    # ------------------------------------------------------------------
    # Passes
    # ------------------------------------------------------------------

    def add_system_node(self) -> None:
        projects = self.snapshot.rows(FactTable.PROJECT_METADATA)
        if not projects:
            return
        project = projects[0]
        if project.artifact_id is None:
            logger.debug("Project metadata without artifact id; no system node")
            return

        self.system_id = slug(project.artifact_id)
        self._add_node(CalmNode(
            self.system_id,
            "system",
            project.name or project.artifact_id,
            project.description or f"System containing {project.artifact_id} services",
        ))

    def add_service_nodes(self) -> None:
        by_class: dict[str, list[ServiceEndpoint]] = {}
        for endpoint in self.snapshot.rows(FactTable.SERVICE_ENDPOINTS):
            if endpoint.service_class is None:
                logger.debug("Skipping endpoint without service class: %r", endpoint.entity_id)
                continue
            by_class.setdefault(endpoint.service_class, []).append(endpoint)

        for service_class, endpoints in by_class.items():
            first = endpoints[0]
            node_id = slug(first.service_name)
            node = CalmNode(
                node_id,
                "service",
                first.service_name,
                self._service_description(service_class, endpoints),
                [CalmInterface(f"{node_id}-api", self.server_protocol, self.server_port)],
            )
            # A class whose id is already taken still resolves to that node.
            self.owners.register(service_class, node_id)
            if self._add_node(node):
                self.service_ids.append(node_id)

    def _service_description(self, service_class: str, endpoints: list[ServiceEndpoint]) -> str:
        described = self._class_descriptions.get(service_class)
        if described:
            return described
        listed = ", ".join(
            f"{e.http_method} {e.path}" for e in endpoints[:MAX_LISTED_ENDPOINTS]
        )
        text = f"REST API with endpoints: {listed}"
        if len(endpoints) > MAX_LISTED_ENDPOINTS:
            text += f" and {len(endpoints) - MAX_LISTED_ENDPOINTS} more"
        return text

    def add_data_asset_nodes(self) -> None:
        for asset in self.snapshot.rows(FactTable.DATA_ASSETS):
            if asset.simple_name is None:
                logger.debug("Skipping data asset without simple name: %r", asset.class_name)
                continue
            self._add_node(CalmNode(
                f"{slug(asset.simple_name)}-data",
                "data-asset",
                asset.simple_name,
                asset.description or f"{asset.asset_type} {asset.simple_name}",
            ))

    def add_web_client_node(self) -> None:
        cors = [
            sc for sc in self.snapshot.rows(FactTable.SECURITY_CONFIGURATION)
            if sc.configuration_type == "CORS"
        ]
        if not cors or not self.service_ids:
            return

        origins = next(
            (sc.allowed_origins for sc in cors if sc.allowed_origins is not None),
            "configured origins",
        )
        self._add_node(CalmNode(
            WEB_CLIENT_ID,
            "webclient",
            "Web Client",
            f"Web application client accessing the API from {origins}",
        ))

        primary = self.service_ids[0]
        self._relate(
            f"{WEB_CLIENT_ID}-interacts-{primary}",
            "interacts",
            CalmEndpoint(WEB_CLIENT_ID),
            CalmEndpoint(primary, f"{primary}-api"),
            self.server_protocol,
        )

    def add_database_nodes(self) -> None:
        seen: set[str] = set()
        for db in self.snapshot.rows(FactTable.DATABASE_CONNECTIONS):
            if db.entity_name is None:
                logger.debug("Skipping database connection without entity: %r", db.source_path)
                continue
            node_id = f"{slug(db.entity_name)}-db"
            if node_id in seen:
                continue
            seen.add(node_id)

            self._add_node(CalmNode(
                node_id,
                "database",
                f"{db.entity_name} Store",
                f"{db.database_type or 'SQL'} database for {db.entity_name} data",
            ))

            owner = self._database_owner(db)
            if owner is None:
                logger.debug("No owning service for %s", node_id)
                continue
            self._relate(
                f"{owner}-to-{node_id}",
                "connects",
                CalmEndpoint(owner),
                CalmEndpoint(node_id, "jdbc"),
                "JDBC",
            )

    def _database_owner(self, db: DatabaseConnection) -> Optional[str]:
        return self.owners.resolve(db.repository_class) or self.owners.resolve(db.entity_class)

    def add_external_service_nodes(self) -> None:
        seen: set[str] = set()
        for call in self.snapshot.rows(FactTable.EXTERNAL_SERVICE_CALLS):
            if call.target_service is None:
                logger.debug("Skipping external call without target: %r", call.client_class)
                continue
            node_id = slug(call.target_service)
            if node_id in seen:
                continue
            seen.add(node_id)

            self._add_node(CalmNode(
                node_id,
                "service",
                call.target_service,
                f"External {call.client_type} service",
            ))

            caller = self._caller(call)
            if caller is None:
                logger.debug("No calling service for %s", node_id)
                continue
            self._relate(
                f"{caller}-to-{node_id}",
                "connects",
                CalmEndpoint(caller),
                CalmEndpoint(node_id, "api"),
                call.protocol or "HTTPS",
            )

    def _caller(self, call: ExternalServiceCall) -> Optional[str]:
        return self.owners.resolve(call.client_class)

    def add_messaging_nodes(self) -> None:
        destinations: dict[str, str] = {}
        for msg in self.snapshot.rows(FactTable.MESSAGING_CONNECTIONS):
            if msg.destination is None or msg.role is None or msg.messaging_type is None:
                logger.debug("Skipping incomplete messaging connection: %r", msg.entity_id)
                continue

            if msg.destination not in destinations:
                node_id = f"{slug(msg.destination)}-{slug(msg.messaging_type)}"
                destinations[msg.destination] = node_id
                kind = "topic/queue" if msg.role == "consumer" else "destination"
                self._add_node(CalmNode(
                    node_id, "network", msg.destination, f"{msg.messaging_type} {kind}"
                ))

            service = self.owners.resolve(msg.class_name)
            if service is None:
                continue
            self._connect_messaging(msg, service, destinations[msg.destination])

    def _connect_messaging(self, msg: MessagingConnection, service: str, channel: str) -> None:
        protocol = "TCP" if "Kafka" in msg.messaging_type else "AMQP"
        if msg.role == "producer":
            self._relate(
                f"{service}-publishes-to-{channel}",
                "connects",
                CalmEndpoint(service),
                CalmEndpoint(channel),
                protocol,
            )
        elif msg.role == "consumer":
            self._relate(
                f"{channel}-consumed-by-{service}",
                "connects",
                CalmEndpoint(channel),
                CalmEndpoint(service),
                protocol,
            )

    def add_composed_of_relationships(self) -> None:
        if self.system_id is None:
            return
        for service_id in self.service_ids:
            self._relate(
                f"{self.system_id}-contains-{service_id}",
                "composed-of",
                CalmEndpoint(self.system_id),
                CalmEndpoint(service_id),
            )

    # ------------------------------------------------------------------

    def build(self) -> CalmDocument:
        """Run every pass in order and return the assembled document."""
        self.add_system_node()
        self.add_service_nodes()
        self.add_data_asset_nodes()
        self.add_web_client_node()
        self.add_database_nodes()
        self.add_external_service_nodes()
        self.add_messaging_nodes()
        self.add_composed_of_relationships()
        return CalmDocument(list(self.nodes), list(self.relationships))


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def has_architecture(snapshot: FactSnapshot) -> bool:
    """True when at least one table that can anchor a graph has rows."""
    return any(snapshot.rows(table) for table in ARCHITECTURAL_TABLES)


def synthesize(snapshot: FactSnapshot) -> Optional[CalmDocument]:
    """Build the architecture document, or ``None`` when there is nothing to draw."""
    if not has_architecture(snapshot):
        return None
    document = GraphBuilder(snapshot).build()
    logger.debug(
        "Synthesized %d node(s) and %d relationship(s)",
        len(document.nodes),
        len(document.relationships),
    )
    return document


def render_document(document: CalmDocument) -> Optional[str]:
    """Serialise *document* as indented JSON; ``None`` if it cannot be encoded."""
    try:
        return json.dumps(document.to_dict(), indent=2, ensure_ascii=False)
    except (TypeError, ValueError) as exc:
        logger.warning("Could not serialise architecture document: %s", exc)
        return None


def generate_calm_json(snapshot: FactSnapshot) -> Optional[str]:
    """Synthesize and serialise in one step (``None`` means no document)."""
    document = synthesize(snapshot)
    if document is None:
        return None
    return render_document(document)
