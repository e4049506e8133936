"""Dataclass models representing fact rows.

Each row is one observation made by a discovery pass (an HTTP endpoint, a
repository, an outbound client call …).  Rows are immutable plain Python
objects; the store and CSV layers serialise to and from these types using
the column metadata attached to every field.
"""

from __future__ import annotations

from dataclasses import MISSING, dataclass, field, fields
from functools import lru_cache
from typing import Any, Mapping, get_args, get_type_hints


def column(display_name: str, description: str, default: Any = ...) -> Any:
    """Declare a fact column with its human-readable name and description."""
    metadata = {"display_name": display_name, "description": description}
    if default is ...:
        return field(metadata=metadata)
    return field(default=default, metadata=metadata)


@dataclass(frozen=True)
class ServiceEndpoint:
    entity_id: str = column(
        "Entity ID",
        "Unique identifier for this endpoint entity (format: endpoint:{className}#{methodSignature}).",
    )
    source_path: str = column("Source path", "The path to the source file containing the endpoint.")
    service_class: str | None = column(
        "Service class", "The fully qualified name of the controller or resource class."
    )
    method_name: str = column("Method name", "The name of the endpoint method.")
    http_method: str = column("HTTP method", "The HTTP method (GET, POST, PUT, DELETE, PATCH, etc.).")
    path: str = column("Path", "The URL path pattern for the endpoint.")
    produces: str | None = column(
        "Produces", "Content types the endpoint produces (e.g., application/json).", None
    )
    consumes: str | None = column(
        "Consumes", "Content types the endpoint consumes (e.g., application/json).", None
    )
    framework: str = column(
        "Framework", "The web framework used (Spring, JAX-RS, Micronaut, Quarkus).", ""
    )
    method_signature: str | None = column(
        "Method signature", "The full method signature for linking to method descriptions.", None
    )

    @property
    def service_name(self) -> str | None:
        """Simple (unqualified) name of the owning class."""
        if self.service_class is None:
            return None
        return self.service_class.rsplit(".", 1)[-1]


@dataclass(frozen=True)
class DatabaseConnection:
    source_path: str = column(
        "Source path", "The path to the source file containing the database access."
    )
    entity_name: str | None = column(
        "Entity/Table name", "The name of the entity or table being accessed."
    )
    entity_class: str | None = column(
        "Entity class", "The fully qualified name of the entity class (if applicable).", None
    )
    repository_class: str | None = column(
        "Repository class",
        "The fully qualified name of the repository or DAO class (if applicable).",
        None,
    )
    connection_type: str = column(
        "Connection type",
        "The type of database connection (JPA, JDBC, Spring Data, MyBatis).",
        "",
    )
    database_type: str | None = column(
        "Database type",
        "The type of database if detectable (PostgreSQL, MySQL, MongoDB, etc.).",
        None,
    )


@dataclass(frozen=True)
class ExternalServiceCall:
    source_path: str = column(
        "Source path", "The path to the source file containing the external service call."
    )
    client_class: str | None = column(
        "Client class", "The fully qualified name of the class making the external call."
    )
    target_service: str | None = column(
        "Target service", "The name or URL of the target external service."
    )
    client_type: str = column(
        "Client type", "The type of HTTP client used (RestTemplate, WebClient, Feign, etc.)."
    )
    protocol: str | None = column("Protocol", "The protocol used (HTTP, HTTPS).", None)
    base_url: str | None = column(
        "Base URL", "The base URL for the external service if configured.", None
    )


@dataclass(frozen=True)
class MessagingConnection:
    entity_id: str = column(
        "Entity ID",
        "Unique identifier for this messaging entity (format: messaging:{className}#{methodName}:{role}).",
    )
    source_path: str = column(
        "Source path", "The path to the source file containing the messaging component."
    )
    class_name: str | None = column(
        "Class name", "The fully qualified name of the class containing the listener/producer."
    )
    method_name: str | None = column(
        "Method name", "The name of the method that handles or sends messages."
    )
    destination: str | None = column("Destination", "The topic or queue name.")
    role: str | None = column("Role", "Whether this is a producer, consumer, or both.")
    messaging_type: str | None = column(
        "Messaging type", "The messaging system (Kafka, RabbitMQ, JMS, etc.)."
    )
    method_signature: str | None = column(
        "Method signature", "The full method signature for linking to method descriptions.", None
    )


@dataclass(frozen=True)
class ServerConfiguration:
    source_path: str = column("Source path", "The path to the configuration file.")
    port: int = column("Server port", "The server port (default: 8080).", 8080)
    ssl_enabled: bool = column("SSL enabled", "Whether SSL/TLS is enabled.", False)
    context_path: str | None = column("Context path", "The servlet context path.", None)
    protocol: str | None = column(
        "Protocol", "The protocol (HTTP or HTTPS) based on SSL configuration.", None
    )

    @property
    def effective_protocol(self) -> str:
        if self.protocol:
            return self.protocol
        return "HTTPS" if self.ssl_enabled else "HTTP"


@dataclass(frozen=True)
class DataAsset:
    source_path: str = column("Source path", "The path to the source file containing the data asset.")
    class_name: str = column("Class name", "The fully qualified name of the data asset class.")
    simple_name: str | None = column("Simple name", "The simple class name for display.")
    asset_type: str = column(
        "Asset type", "The type of data asset (Entity, Record, DTO, Document, etc.)."
    )
    description: str | None = column(
        "Description", "A description of the data asset based on its fields.", None
    )
    fields: str | None = column("Fields", "Comma-separated list of field names.", None)


@dataclass(frozen=True)
class ProjectMetadata:
    source_path: str = column("Source path", "The path to the build file (pom.xml or build.gradle).")
    artifact_id: str | None = column(
        "Artifact ID", "The project's artifact ID (Maven) or project name (Gradle)."
    )
    group_id: str | None = column("Group ID", "The project's group ID.", None)
    name: str | None = column("Name", "The project's display name.", None)
    description: str | None = column("Description", "The project's description.", None)
    version: str | None = column("Version", "The project's version.", None)


@dataclass(frozen=True)
class SecurityConfiguration:
    source_path: str = column(
        "Source path", "The path to the source file containing the security configuration."
    )
    configuration_type: str = column(
        "Configuration type", "The type of security configuration (WebSecurity, OAuth2, CORS, etc.)."
    )
    auth_method: str | None = column(
        "Auth method", "Authentication method if detected (Basic, OAuth2, JWT, etc.).", None
    )
    allowed_origins: str | None = column(
        "Allowed origins", "CORS allowed origins if configured.", None
    )
    description: str | None = column(
        "Description", "Description of the security configuration.", None
    )


@dataclass(frozen=True)
class ClassDescription:
    source_path: str = column("Source path", "The path to the source file containing the class.")
    class_name: str = column("Class name", "The fully qualified name of the class.")
    checksum: str = column(
        "Checksum", "SHA-256 checksum of the class source text for incremental updates."
    )
    description: str | None = column("Description", "AI-generated description of what the class does.")
    responsibility: str = column(
        "Responsibility", "The primary responsibility or purpose of the class (2-3 words).", ""
    )
    pattern1: str | None = column(
        "Pattern 1", "First architectural pattern used by this class.", None
    )
    pattern2: str | None = column(
        "Pattern 2", "Second architectural pattern used by this class.", None
    )
    pattern3: str | None = column(
        "Pattern 3", "Third architectural pattern used by this class.", None
    )
    inference_time_ms: int = column(
        "Inference time (ms)", "Time taken to generate the description in milliseconds.", 0
    )


@dataclass(frozen=True)
class DeploymentArtifact:
    source_path: str = column("Source path", "The path to the deployment artifact file.")
    artifact_type: str = column(
        "Artifact type", "The type of deployment artifact (Dockerfile, Kubernetes, docker-compose)."
    )
    container_image: str | None = column(
        "Container image", "The base container image if detected.", None
    )
    exposed_port: int | None = column("Exposed port", "Port exposed by the container.", None)
    description: str | None = column(
        "Description", "Description of the deployment artifact.", None
    )


# ---------------------------------------------------------------------------
# Row construction from loosely typed sources (SQLite rows, CSV cells)
# ---------------------------------------------------------------------------

_TRUE_STRINGS = {"true", "1", "yes", "y", "on"}


@lru_cache(maxsize=None)
def _column_kind(row_type: type, name: str) -> tuple[type, bool]:
    """Return ``(base_type, optional)`` for a column annotation."""
    hint = get_type_hints(row_type)[name]
    args = get_args(hint)
    optional = type(None) in args
    base = next((a for a in args if a is not type(None)), hint) if args else hint
    return base, optional


def coerce_value(row_type: type, name: str, value: Any) -> Any:
    base, optional = _column_kind(row_type, name)
    if value is None or (isinstance(value, str) and value == "" and (optional or base is not str)):
        return None if optional else _DEFAULTS.get(base, value)
    if base is bool:
        if isinstance(value, str):
            return value.strip().lower() in _TRUE_STRINGS
        return bool(value)
    if base is int:
        return int(value)
    return str(value)


_DEFAULTS: dict[type, Any] = {int: 0, bool: False}


def build_row(row_type: type, values: Mapping[str, Any]) -> Any:
    """Create a *row_type* instance from a name → value mapping.

    Unknown keys raise :class:`ValueError`; missing keys and blank cells fall
    back to the field default (or ``None`` when the field has none).
    """
    known = {f.name: f for f in fields(row_type)}
    unknown = set(values) - set(known)
    if unknown:
        raise ValueError(
            f"Unknown column(s) for {row_type.__name__}: {', '.join(sorted(unknown))}"
        )
    kwargs: dict[str, Any] = {}
    for name, f in known.items():
        value = values.get(name)
        if value in (None, "") and f.default is not MISSING:
            continue
        kwargs[name] = coerce_value(row_type, name, value) if name in values else None
    return row_type(**kwargs)
