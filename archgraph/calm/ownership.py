"""Map source classes to the service node that owns them.

Call sites, repositories and outbound clients usually live next to the
controller that owns them rather than in it, so resolution falls back from
an exact class match to a package-proximity heuristic.
"""

from __future__ import annotations

from typing import Optional


def package_of(class_name: str) -> str:
    """Return the package prefix of a qualified class name ("" if unqualified)."""
    head, sep, _ = class_name.rpartition(".")
    return head if sep else ""


def packages_related(a: str, b: str) -> bool:
    """True when the packages are equal or one nests inside the other.

    Nesting is a raw string-prefix test in either direction, so ``com.ex``
    also matches ``com.example`` and an empty package matches everything.
    """
    return a == b or a.startswith(b) or b.startswith(a)


def packages_siblings(a: str, b: str) -> bool:
    """True when both packages share the same non-empty parent package.

    ``com.example.order.controller`` / ``com.example.order.repository``.
    """
    parent = package_of(a)
    return bool(parent) and parent == package_of(b)


class OwnershipResolver:
    """Registry of service primary classes, queried in registration order."""

    def __init__(self) -> None:
        self._class_to_id: dict[str, str] = {}

    def register(self, class_name: str, node_id: str) -> None:
        self._class_to_id.setdefault(class_name, node_id)

    def exact(self, class_name: Optional[str]) -> Optional[str]:
        if class_name is None:
            return None
        return self._class_to_id.get(class_name)

    def nearest(self, class_name: Optional[str]) -> Optional[str]:
        """Return the first registered service whose package is related.

        Equal or nested packages are tried across every service before any
        sibling package is considered.
        """
        if class_name is None:
            return None
        pkg = package_of(class_name)
        for match in (packages_related, packages_siblings):
            for service_class, node_id in self._class_to_id.items():
                if match(package_of(service_class), pkg):
                    return node_id
        return None

    def resolve(self, class_name: Optional[str]) -> Optional[str]:
        return self.exact(class_name) or self.nearest(class_name)

    def __len__(self) -> int:
        return len(self._class_to_id)
