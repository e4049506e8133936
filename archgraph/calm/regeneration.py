"""Placeholder lifecycle for the generated architecture document.

The document goes through a small state machine across repeated runs::

    absent ──▶ placeholder ──▶ populated ──▶ populated (stable)
                    │
                    └──▶ deleted   (no architectural facts)

:func:`decide` is pure and only looks at the current file content and the
fact snapshot.  :func:`regenerate_file` applies one decision to disk and
:func:`run_until_stable` repeats that until nothing changes.
"""

from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from archgraph.calm.builder import generate_calm_json
from archgraph.facts.tables import FactSnapshot

logger = logging.getLogger(__name__)

PLACEHOLDER_CONTENT = "{}"


class Action(str, Enum):
    CREATE_PLACEHOLDER = "create-placeholder"
    WRITE = "write"
    UNCHANGED = "unchanged"
    DELETE = "delete"


@dataclass(frozen=True)
class Decision:
    action: Action
    content: Optional[str] = None

    @property
    def changes_file(self) -> bool:
        return self.action is not Action.UNCHANGED


def is_placeholder(content: str) -> bool:
    return content == PLACEHOLDER_CONTENT or not content.strip()


def decide(current: Optional[str], snapshot: FactSnapshot) -> Decision:
    """Work out what to do with the document given its *current* content.

    Args:
        current: Existing file text, or ``None`` when there is no file.
        snapshot: The complete fact snapshot for this run.
    """
    if current is None:
        return Decision(Action.CREATE_PLACEHOLDER, PLACEHOLDER_CONTENT)

    new_content = generate_calm_json(snapshot)
    if new_content is None:
        # Only documents this controller reserved are eligible for deletion.
        if is_placeholder(current):
            return Decision(Action.DELETE)
        return Decision(Action.UNCHANGED, current)

    if new_content != current:
        return Decision(Action.WRITE, new_content)
    return Decision(Action.UNCHANGED, current)


def _atomic_write(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(content)
        os.replace(tmp, path)
    except BaseException:
        Path(tmp).unlink(missing_ok=True)
        raise


def regenerate_file(path: Path, snapshot: FactSnapshot) -> Decision:
    """Apply one regeneration step to the document at *path*."""
    path = Path(path)
    current = path.read_text(encoding="utf-8") if path.exists() else None
    decision = decide(current, snapshot)

    if decision.action in (Action.CREATE_PLACEHOLDER, Action.WRITE):
        _atomic_write(path, decision.content or "")
    elif decision.action is Action.DELETE:
        path.unlink(missing_ok=True)

    logger.info("%s: %s", path, decision.action.value)
    return decision


def run_until_stable(path: Path, snapshot: FactSnapshot, max_cycles: int = 3) -> list[Decision]:
    """Regenerate repeatedly until the document stops changing.

    Stops after an ``unchanged`` or ``delete`` step, or after *max_cycles*
    steps, whichever comes first.
    """
    decisions: list[Decision] = []
    for _ in range(max_cycles):
        decision = regenerate_file(path, snapshot)
        decisions.append(decision)
        if decision.action in (Action.UNCHANGED, Action.DELETE):
            break
    return decisions
