"""Tests for architecture graph synthesis."""

from __future__ import annotations

import random
from typing import Any

import pytest

from archgraph.calm.builder import (
    GraphBuilder,
    generate_calm_json,
    has_architecture,
    synthesize,
)
from archgraph.facts.models import (
    ClassDescription,
    DataAsset,
    DatabaseConnection,
    ExternalServiceCall,
    MessagingConnection,
    ProjectMetadata,
    SecurityConfiguration,
    ServerConfiguration,
    ServiceEndpoint,
)
from archgraph.facts.tables import FactSnapshot, FactTable


# ---------------------------------------------------------------------------
# Row helpers
# ---------------------------------------------------------------------------

def endpoint(service_class: str | None, method: str = "GET", path: str = "/") -> ServiceEndpoint:
    return ServiceEndpoint(
        entity_id=f"endpoint:{service_class}#{method}{path}",
        source_path="src/main/java/Controller.java",
        service_class=service_class,
        method_name="handle",
        http_method=method,
        path=path,
        framework="Spring",
    )


def database(
    entity: str | None,
    repository: str | None = None,
    entity_class: str | None = None,
    db_type: str | None = None,
) -> DatabaseConnection:
    return DatabaseConnection(
        source_path="src/main/java/Repository.java",
        entity_name=entity,
        entity_class=entity_class,
        repository_class=repository,
        connection_type="Spring Data",
        database_type=db_type,
    )


def external(client_class: str, target: str | None, protocol: str | None = None) -> ExternalServiceCall:
    return ExternalServiceCall(
        source_path="src/main/java/Client.java",
        client_class=client_class,
        target_service=target,
        client_type="RestTemplate",
        protocol=protocol,
    )


def messaging(class_name: str, destination: str, role: str, kind: str = "Kafka") -> MessagingConnection:
    return MessagingConnection(
        entity_id=f"messaging:{class_name}#handle:{role}",
        source_path="src/main/java/Listener.java",
        class_name=class_name,
        method_name="handle",
        destination=destination,
        role=role,
        messaging_type=kind,
    )


def snapshot(**tables: list[Any]) -> FactSnapshot:
    return FactSnapshot({FactTable[name.upper()]: rows for name, rows in tables.items()})


ORDER_CONTROLLER = "com.example.order.controller.OrderController"


# ---------------------------------------------------------------------------
# Emptiness rule
# ---------------------------------------------------------------------------

class TestEmptiness:
    def test_empty_snapshot_yields_nothing(self) -> None:
        assert synthesize(FactSnapshot()) is None
        assert generate_calm_json(FactSnapshot()) is None

    def test_decorating_tables_alone_yield_nothing(self) -> None:
        facts = snapshot(
            data_assets=[DataAsset("a.java", "com.example.Order", "Order", "Entity")],
            security_configuration=[SecurityConfiguration("s.java", "CORS", allowed_origins="*")],
            server_configuration=[ServerConfiguration("application.yml", 9090)],
            project_metadata=[ProjectMetadata("pom.xml", "shop")],
            class_descriptions=[ClassDescription("c.java", "com.example.A", "abc", "Does A")],
        )
        assert not has_architecture(facts)
        assert synthesize(facts) is None

    @pytest.mark.parametrize(
        "table, rows",
        [
            ("service_endpoints", [endpoint("com.example.A")]),
            ("database_connections", [database("Order")]),
            ("external_service_calls", [external("com.example.A", "payments")]),
            ("messaging_connections", [messaging("com.example.A", "orders", "producer")]),
        ],
    )
    def test_any_architectural_table_yields_document(self, table: str, rows: list[Any]) -> None:
        assert synthesize(snapshot(**{table: rows})) is not None


# ---------------------------------------------------------------------------
# Scenarios
# ---------------------------------------------------------------------------

class TestSingleEndpoint:
    def test_service_node(self) -> None:
        doc = synthesize(snapshot(service_endpoints=[endpoint("com.example.GreetingController", "GET", "/greeting")]))
        assert doc is not None
        assert len(doc.nodes) == 1
        assert doc.relationships == []

        node = doc.nodes[0]
        assert node.unique_id == "greeting-controller"
        assert node.node_type == "service"
        assert node.name == "GreetingController"
        assert node.description == "REST API with endpoints: GET /greeting"
        assert len(node.interfaces) == 1
        iface = node.interfaces[0]
        assert iface.unique_id == "greeting-controller-api"
        assert iface.protocol == "HTTP"
        assert iface.port == 8080


class TestSystemNode:
    def test_display_name_and_default_description(self) -> None:
        doc = synthesize(snapshot(
            project_metadata=[ProjectMetadata("pom.xml", "order-service", name="Order Service")],
            service_endpoints=[endpoint(ORDER_CONTROLLER)],
        ))
        system = doc.node("order-service")
        assert system.node_type == "system"
        assert system.name == "Order Service"
        assert system.description == "System containing order-service services"

    def test_artifact_id_as_name(self) -> None:
        doc = synthesize(snapshot(
            project_metadata=[ProjectMetadata("pom.xml", "shopApp", description="The shop")],
            service_endpoints=[endpoint(ORDER_CONTROLLER)],
        ))
        system = doc.node("shop-app")
        assert system.name == "shopApp"
        assert system.description == "The shop"

    def test_system_node_comes_first_and_composes_services(self) -> None:
        doc = synthesize(snapshot(
            project_metadata=[ProjectMetadata("pom.xml", "shop")],
            service_endpoints=[
                endpoint("com.example.OrderController"),
                endpoint("com.example.BillingController"),
            ],
        ))
        assert doc.nodes[0].unique_id == "shop"
        composed = [r for r in doc.relationships if r.relationship_type == "composed-of"]
        assert [r.unique_id for r in composed] == [
            "shop-contains-order-controller",
            "shop-contains-billing-controller",
        ]
        assert composed[0].source.node == "shop"
        assert composed[0].destination.node == "order-controller"
        assert composed[0].protocol is None

    def test_no_metadata_no_system(self) -> None:
        builder = GraphBuilder(snapshot(service_endpoints=[endpoint(ORDER_CONTROLLER)]))
        doc = builder.build()
        assert builder.system_id is None
        assert all(n.node_type != "system" for n in doc.nodes)
        assert all(r.relationship_type != "composed-of" for r in doc.relationships)


class TestServiceNodes:
    def test_endpoints_grouped_by_class(self) -> None:
        doc = synthesize(snapshot(service_endpoints=[
            endpoint(ORDER_CONTROLLER, "GET", "/orders"),
            endpoint("com.example.billing.BillingController", "GET", "/invoices"),
            endpoint(ORDER_CONTROLLER, "POST", "/orders"),
        ]))
        assert [n.unique_id for n in doc.nodes] == ["order-controller", "billing-controller"]
        assert doc.nodes[0].description == "REST API with endpoints: GET /orders, POST /orders"

    def test_description_truncated_after_five(self) -> None:
        rows = [endpoint(ORDER_CONTROLLER, "GET", f"/r{i}") for i in range(7)]
        doc = synthesize(snapshot(service_endpoints=rows))
        assert doc.nodes[0].description == (
            "REST API with endpoints: GET /r0, GET /r1, GET /r2, GET /r3, GET /r4 and 2 more"
        )

    def test_exactly_five_not_truncated(self) -> None:
        rows = [endpoint(ORDER_CONTROLLER, "GET", f"/r{i}") for i in range(5)]
        doc = synthesize(snapshot(service_endpoints=rows))
        assert "more" not in doc.nodes[0].description

    def test_class_description_preferred(self) -> None:
        doc = synthesize(snapshot(
            service_endpoints=[endpoint(ORDER_CONTROLLER)],
            class_descriptions=[ClassDescription("c.java", ORDER_CONTROLLER, "abc", "Manages orders.")],
        ))
        assert doc.nodes[0].description == "Manages orders."

    def test_empty_class_description_ignored(self) -> None:
        doc = synthesize(snapshot(
            service_endpoints=[endpoint(ORDER_CONTROLLER, "GET", "/orders")],
            class_descriptions=[ClassDescription("c.java", ORDER_CONTROLLER, "abc", "")],
        ))
        assert doc.nodes[0].description == "REST API with endpoints: GET /orders"

    def test_server_configuration_drives_interface(self) -> None:
        doc = synthesize(snapshot(
            service_endpoints=[endpoint(ORDER_CONTROLLER)],
            server_configuration=[ServerConfiguration("application.yml", 8443, ssl_enabled=True)],
        ))
        iface = doc.nodes[0].interfaces[0]
        assert iface.protocol == "HTTPS"
        assert iface.port == 8443

    def test_endpoint_without_class_skipped(self) -> None:
        doc = synthesize(snapshot(service_endpoints=[endpoint(None), endpoint(ORDER_CONTROLLER)]))
        assert [n.unique_id for n in doc.nodes] == ["order-controller"]

    def test_same_simple_name_absorbed(self) -> None:
        doc = synthesize(snapshot(service_endpoints=[
            endpoint("com.example.a.OrderController", "GET", "/a"),
            endpoint("com.example.b.OrderController", "GET", "/b"),
        ]))
        assert [n.unique_id for n in doc.nodes] == ["order-controller"]
        assert doc.nodes[0].description == "REST API with endpoints: GET /a"


class TestDataAssets:
    def test_nodes_and_dedup(self) -> None:
        doc = synthesize(snapshot(
            service_endpoints=[endpoint(ORDER_CONTROLLER)],
            data_assets=[
                DataAsset("o.java", "com.example.Order", "Order", "Entity"),
                DataAsset("o2.java", "com.example.v2.Order", "Order", "Record", description="Other"),
                DataAsset("l.java", "com.example.LineItem", "LineItem", "DTO", description="A line"),
            ],
        ))
        order = doc.node("order-data")
        assert order.node_type == "data-asset"
        assert order.name == "Order"
        assert order.description == "Entity Order"
        assert doc.node("line-item-data").description == "A line"
        assert len([n for n in doc.nodes if n.node_type == "data-asset"]) == 2


class TestWebClient:
    def test_cors_web_client(self) -> None:
        doc = synthesize(snapshot(
            service_endpoints=[endpoint(ORDER_CONTROLLER)],
            security_configuration=[
                SecurityConfiguration("s.java", "CORS", allowed_origins="https://app.example.com"),
            ],
        ))
        client = doc.node("web-client")
        assert client.node_type == "webclient"
        assert client.name == "Web Client"
        assert client.description == "Web application client accessing the API from https://app.example.com"

        rel = doc.relationship("web-client-interacts-order-controller")
        assert rel.relationship_type == "interacts"
        assert rel.source.node == "web-client"
        assert rel.destination.node == "order-controller"
        assert rel.destination.interface == "order-controller-api"
        assert rel.protocol == "HTTP"

    def test_targets_first_service(self) -> None:
        doc = synthesize(snapshot(
            service_endpoints=[endpoint("com.example.B"), endpoint("com.example.A")],
            security_configuration=[SecurityConfiguration("s.java", "CORS")],
        ))
        interacts = [r for r in doc.relationships if r.relationship_type == "interacts"]
        assert len(interacts) == 1
        assert interacts[0].destination.node == "b"
        assert doc.node("web-client").description.endswith("from configured origins")

    def test_first_cors_origins_used(self) -> None:
        doc = synthesize(snapshot(
            service_endpoints=[endpoint(ORDER_CONTROLLER)],
            security_configuration=[
                SecurityConfiguration("s.java", "WebSecurity", allowed_origins="https://ignored"),
                SecurityConfiguration("s.java", "CORS"),
                SecurityConfiguration("t.java", "CORS", allowed_origins="https://second"),
            ],
        ))
        assert doc.node("web-client").description.endswith("from https://second")

    def test_requires_service(self) -> None:
        doc = synthesize(snapshot(
            database_connections=[database("Order")],
            security_configuration=[SecurityConfiguration("s.java", "CORS")],
        ))
        assert doc.node("web-client") is None

    def test_requires_cors(self) -> None:
        doc = synthesize(snapshot(
            service_endpoints=[endpoint(ORDER_CONTROLLER)],
            security_configuration=[SecurityConfiguration("s.java", "OAuth2")],
        ))
        assert doc.node("web-client") is None


class TestDatabases:
    def test_sibling_package_connects(self) -> None:
        doc = synthesize(snapshot(
            service_endpoints=[endpoint(ORDER_CONTROLLER, "POST", "/api/orders")],
            database_connections=[database(
                "Order",
                repository="com.example.order.repository.OrderRepository",
                entity_class="com.example.order.model.Order",
            )],
        ))
        db = doc.node("order-db")
        assert db.node_type == "database"
        assert db.name == "Order Store"
        assert db.description == "SQL database for Order data"

        rel = doc.relationship("order-controller-to-order-db")
        assert rel.relationship_type == "connects"
        assert rel.source.node == "order-controller"
        assert rel.destination.node == "order-db"
        assert rel.destination.interface == "jdbc"
        assert rel.protocol == "JDBC"

    def test_same_package_beats_earlier_sibling(self) -> None:
        doc = synthesize(snapshot(
            service_endpoints=[
                endpoint("com.example.billing.BillingController"),
                endpoint("com.example.order.OrderController"),
            ],
            database_connections=[database(
                "Order",
                repository="com.example.order.OrderRepository",
                entity_class="com.example.order.Order",
            )],
        ))
        assert [r.unique_id for r in doc.relationships] == ["order-controller-to-order-db"]

    def test_exact_repository_match(self) -> None:
        doc = synthesize(snapshot(
            service_endpoints=[endpoint("org.acme.OrderResource"), endpoint("com.example.Other")],
            database_connections=[database("Order", repository="com.example.Other", db_type="PostgreSQL")],
        ))
        assert doc.relationship("other-to-order-db") is not None
        assert doc.node("order-db").description == "PostgreSQL database for Order data"

    def test_entity_class_fallback(self) -> None:
        doc = synthesize(snapshot(
            service_endpoints=[endpoint("com.example.billing.BillingController")],
            database_connections=[database(
                "Invoice", repository="org.other.InvoiceDao", entity_class="com.example.billing.Invoice",
            )],
        ))
        assert doc.relationship("billing-controller-to-invoice-db") is not None

    def test_unresolved_owner_keeps_node(self) -> None:
        doc = synthesize(snapshot(database_connections=[database("Order", repository="org.acme.OrderDao")]))
        assert doc.node("order-db") is not None
        assert doc.relationships == []

    def test_duplicate_entity_absorbed(self) -> None:
        doc = synthesize(snapshot(database_connections=[
            database("Order", db_type="MySQL"),
            database("Order", db_type="MongoDB"),
        ]))
        dbs = [n for n in doc.nodes if n.node_type == "database"]
        assert len(dbs) == 1
        assert dbs[0].description == "MySQL database for Order data"

    def test_missing_entity_name_skipped(self) -> None:
        doc = synthesize(snapshot(database_connections=[database(None), database("Order")]))
        assert [n.unique_id for n in doc.nodes] == ["order-db"]


class TestExternalServices:
    def test_node_and_relationship(self) -> None:
        doc = synthesize(snapshot(
            service_endpoints=[endpoint(ORDER_CONTROLLER)],
            external_service_calls=[
                external("com.example.order.client.PaymentClient", "PaymentGateway"),
            ],
        ))
        ext = doc.node("payment-gateway")
        assert ext.node_type == "service"
        assert ext.description == "External RestTemplate service"
        assert ext.interfaces is None

        rel = doc.relationship("order-controller-to-payment-gateway")
        assert rel.destination.interface == "api"
        assert rel.protocol == "HTTPS"

    def test_protocol_from_fact(self) -> None:
        doc = synthesize(snapshot(
            service_endpoints=[endpoint(ORDER_CONTROLLER)],
            external_service_calls=[external(ORDER_CONTROLLER, "inventory", protocol="HTTP")],
        ))
        assert doc.relationship("order-controller-to-inventory").protocol == "HTTP"

    def test_unresolved_caller(self) -> None:
        doc = synthesize(snapshot(
            service_endpoints=[endpoint(ORDER_CONTROLLER)],
            external_service_calls=[external("org.acme.Client", "inventory")],
        ))
        assert doc.node("inventory") is not None
        assert doc.relationship("order-controller-to-inventory") is None


class TestMessaging:
    def test_producer_and_consumer(self) -> None:
        doc = synthesize(snapshot(
            service_endpoints=[endpoint(ORDER_CONTROLLER)],
            messaging_connections=[
                messaging("com.example.order.events.OrderPublisher", "order-events", "producer"),
                messaging("com.example.order.events.OrderListener", "order-events", "consumer"),
            ],
        ))
        channel = doc.node("order-events-kafka")
        assert channel.node_type == "network"
        assert channel.name == "order-events"
        assert channel.description == "Kafka destination"

        pub = doc.relationship("order-controller-publishes-to-order-events-kafka")
        assert pub.source.node == "order-controller"
        assert pub.destination.node == "order-events-kafka"
        assert pub.protocol == "TCP"

        sub = doc.relationship("order-events-kafka-consumed-by-order-controller")
        assert sub.source.node == "order-events-kafka"
        assert sub.destination.node == "order-controller"

    def test_consumer_description_and_amqp(self) -> None:
        doc = synthesize(snapshot(
            service_endpoints=[endpoint(ORDER_CONTROLLER)],
            messaging_connections=[messaging(ORDER_CONTROLLER, "shipments", "consumer", "RabbitMQ")],
        ))
        channel = doc.node("shipments-rabbit-mq")
        assert channel.description == "RabbitMQ topic/queue"
        assert doc.relationship("shipments-rabbit-mq-consumed-by-order-controller").protocol == "AMQP"

    def test_one_node_per_destination(self) -> None:
        doc = synthesize(snapshot(messaging_connections=[
            messaging("com.example.A", "orders", "producer"),
            messaging("com.example.B", "orders", "consumer"),
            messaging("com.example.C", "orders", "producer", "Kafka Streams"),
        ]))
        assert [n.unique_id for n in doc.nodes] == ["orders-kafka"]
        assert doc.relationships == []

    def test_duplicate_relationship_dropped(self) -> None:
        doc = synthesize(snapshot(
            service_endpoints=[endpoint(ORDER_CONTROLLER)],
            messaging_connections=[
                messaging(ORDER_CONTROLLER, "orders", "producer"),
                messaging(ORDER_CONTROLLER, "orders", "producer"),
            ],
        ))
        ids = [r.unique_id for r in doc.relationships]
        assert ids == ["order-controller-publishes-to-orders-kafka"]


# ---------------------------------------------------------------------------
# Whole-graph properties
# ---------------------------------------------------------------------------

def _full_snapshot() -> FactSnapshot:
    return snapshot(
        project_metadata=[ProjectMetadata("pom.xml", "shop", name="Shop")],
        server_configuration=[ServerConfiguration("application.yml", 9000)],
        service_endpoints=[
            endpoint(ORDER_CONTROLLER, "GET", "/orders"),
            endpoint("com.example.billing.BillingController", "GET", "/invoices"),
        ],
        data_assets=[DataAsset("o.java", "com.example.order.model.Order", "Order", "Entity")],
        security_configuration=[SecurityConfiguration("s.java", "CORS", allowed_origins="*")],
        database_connections=[
            database("Order", repository="com.example.order.repository.OrderRepository"),
            database("Invoice", repository="com.example.billing.InvoiceRepository"),
        ],
        external_service_calls=[external("com.example.billing.TaxClient", "TaxService")],
        messaging_connections=[
            messaging("com.example.order.events.Publisher", "orders", "producer"),
            messaging("com.example.billing.Listener", "orders", "consumer"),
        ],
    )


class TestGraphProperties:
    def test_idempotent(self) -> None:
        facts = _full_snapshot()
        assert generate_calm_json(facts) == generate_calm_json(facts)

    def test_unique_ids(self) -> None:
        doc = synthesize(_full_snapshot())
        node_ids = [n.unique_id for n in doc.nodes]
        rel_ids = [r.unique_id for r in doc.relationships]
        assert len(node_ids) == len(set(node_ids))
        assert len(rel_ids) == len(set(rel_ids))

    def test_relationships_reference_existing_nodes(self) -> None:
        doc = synthesize(_full_snapshot())
        node_ids = {n.unique_id for n in doc.nodes}
        for rel in doc.relationships:
            assert rel.source.node in node_ids
            assert rel.destination.node in node_ids

    def test_pass_order(self) -> None:
        doc = synthesize(_full_snapshot())
        assert [n.node_type for n in doc.nodes] == [
            "system", "service", "service", "data-asset", "webclient",
            "database", "database", "service", "network",
        ]
        assert doc.relationships[-1].relationship_type == "composed-of"

    def test_reordering_preserves_sets(self) -> None:
        # The web client targets whichever service registers first, so it is
        # left out of the order-independence check.
        full = _full_snapshot()
        original = FactSnapshot({
            t: full.rows(t) for t in FactTable if t is not FactTable.SECURITY_CONFIGURATION
        })
        rng = random.Random(7)
        shuffled_tables = {}
        for table in FactTable:
            rows = original.rows(table)
            rng.shuffle(rows)
            shuffled_tables[table] = rows
        shuffled = FactSnapshot(shuffled_tables)

        a = synthesize(original)
        b = synthesize(shuffled)
        assert {n.unique_id for n in a.nodes} == {n.unique_id for n in b.nodes}
        assert {r.unique_id for r in a.relationships} == {r.unique_id for r in b.relationships}
