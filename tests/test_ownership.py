"""Tests for service ownership resolution."""

from __future__ import annotations

import pytest

from archgraph.calm.ownership import (
    OwnershipResolver,
    package_of,
    packages_related,
    packages_siblings,
)


class TestPackageOf:
    def test_qualified(self) -> None:
        assert package_of("com.example.order.OrderController") == "com.example.order"

    def test_unqualified(self) -> None:
        assert package_of("OrderController") == ""


class TestPackagesRelated:
    @pytest.mark.parametrize(
        "a, b",
        [
            ("com.example.order", "com.example.order"),  # same package
            ("com.example", "com.example.order"),  # parent / child
            ("com.example.order.web", "com.example.order"),  # child / parent
            ("com.ex", "com.example"),  # raw string prefix over-match
            ("", "com.example"),  # empty package matches everything
            ("com.example", ""),
            ("", ""),
        ],
    )
    def test_related(self, a: str, b: str) -> None:
        assert packages_related(a, b)

    @pytest.mark.parametrize(
        "a, b",
        [
            ("com.example.order", "org.acme.billing"),
            ("com.example.order.controller", "com.example.billing.repository"),
            ("order", "billing"),
        ],
    )
    def test_unrelated(self, a: str, b: str) -> None:
        assert not packages_related(a, b)

    def test_siblings_are_not_nested(self) -> None:
        assert not packages_related("com.example.order.controller", "com.example.order.repository")


class TestPackagesSiblings:
    @pytest.mark.parametrize(
        "a, b",
        [
            ("com.example.order.controller", "com.example.order.repository"),
            ("com.acme", "com.other"),
        ],
    )
    def test_siblings(self, a: str, b: str) -> None:
        assert packages_siblings(a, b)

    @pytest.mark.parametrize(
        "a, b",
        [
            ("order", "billing"),  # no parent package
            ("com.example.order.controller", "com.example.billing.repository"),
            ("", ""),
        ],
    )
    def test_not_siblings(self, a: str, b: str) -> None:
        assert not packages_siblings(a, b)


class TestOwnershipResolver:
    @pytest.fixture()
    def resolver(self) -> OwnershipResolver:
        r = OwnershipResolver()
        r.register("com.example.order.controller.OrderController", "order-controller")
        r.register("com.example.billing.BillingController", "billing-controller")
        return r

    def test_exact_match(self, resolver: OwnershipResolver) -> None:
        assert resolver.resolve("com.example.billing.BillingController") == "billing-controller"

    def test_exact_match_wins_over_registration_order(self, resolver: OwnershipResolver) -> None:
        # Both services are package-related to an unqualified class, but the
        # exact registration is returned first.
        resolver.register("BillingJob", "billing-job")
        assert resolver.resolve("BillingJob") == "billing-job"

    def test_sibling_package(self, resolver: OwnershipResolver) -> None:
        assert resolver.resolve("com.example.order.repository.OrderRepository") == "order-controller"

    def test_same_package_beats_earlier_sibling(self) -> None:
        r = OwnershipResolver()
        r.register("com.example.billing.BillingController", "billing-controller")
        r.register("com.example.order.OrderController", "order-controller")
        assert r.resolve("com.example.order.OrderRepository") == "order-controller"

    def test_sibling_used_only_without_nested_match(self) -> None:
        r = OwnershipResolver()
        r.register("com.example.order.controller.OrderController", "order-controller")
        r.register("com.example.order.repository.Repositories", "repositories")
        assert r.resolve("com.example.order.repository.OrderRepository") == "repositories"

    def test_child_package(self, resolver: OwnershipResolver) -> None:
        assert resolver.resolve("com.example.billing.client.TaxClient") == "billing-controller"

    def test_first_registered_wins(self, resolver: OwnershipResolver) -> None:
        # "com.example" is a prefix of both service packages.
        assert resolver.resolve("com.example.Application") == "order-controller"

    def test_unqualified_class_matches_first_service(self, resolver: OwnershipResolver) -> None:
        assert resolver.resolve("Helper") == "order-controller"

    def test_no_match(self, resolver: OwnershipResolver) -> None:
        assert resolver.resolve("org.acme.Other") is None

    def test_none(self, resolver: OwnershipResolver) -> None:
        assert resolver.resolve(None) is None

    def test_empty_registry(self) -> None:
        assert OwnershipResolver().resolve("com.example.Foo") is None

    def test_register_keeps_first_mapping(self, resolver: OwnershipResolver) -> None:
        resolver.register("com.example.billing.BillingController", "other")
        assert resolver.exact("com.example.billing.BillingController") == "billing-controller"
