"""Stable, human-readable identifiers derived from display names."""

from __future__ import annotations

import re
from typing import Optional

_CASE_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")
_SEPARATORS = re.compile(r"[ _]")
_HYPHEN_RUNS = re.compile(r"-{2,}")


def slug(name: Optional[str]) -> str:
    """Convert *name* to a lowercase, hyphen-separated identifier.

    ``"OrderRepository"`` -> ``"order-repository"``,
    ``"Test Coverage"`` -> ``"test-coverage"``.  ``None`` yields ``"unknown"``
    and the empty string stays empty.
    """
    if name is None:
        return "unknown"
    # Leading separators never produce a leading hyphen.
    text = _CASE_BOUNDARY.sub("-", name.lstrip(" _"))
    text = _SEPARATORS.sub("-", text)
    text = _HYPHEN_RUNS.sub("-", text)
    return text.lower()
