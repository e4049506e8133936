"""Centralised settings for archgraph.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root (one level up from this package)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)

CALM_FILENAME = "calm-architecture.json"


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Workspace / fact storage
    # ------------------------------------------------------------------
    workspace_dir: Path = field(
        default_factory=lambda: Path(
            os.environ.get("ARCHGRAPH_WORKSPACE", Path.cwd() / ".archgraph")
        )
    )

    @property
    def db_path(self) -> Path:
        """Absolute path to the SQLite fact database."""
        return self.workspace_dir / "facts.db"

    @property
    def schema_path(self) -> Path:
        """Absolute path to the schema SQL file bundled with the package."""
        return Path(__file__).resolve().parent / "facts" / "schema.sql"

    # ------------------------------------------------------------------
    # Generated context
    # ------------------------------------------------------------------
    context_override: str | None = field(
        default_factory=lambda: os.environ.get("ARCHGRAPH_CONTEXT_DIR")
    )

    @property
    def context_dir(self) -> Path:
        """Directory that receives the CALM document and exported tables."""
        if self.context_override:
            return Path(self.context_override)
        return self.workspace_dir / "context"

    @property
    def calm_path(self) -> Path:
        return self.context_dir / CALM_FILENAME

    # ------------------------------------------------------------------
    # Regeneration / logging
    # ------------------------------------------------------------------
    max_cycles: int = field(
        default_factory=lambda: int(os.environ.get("ARCHGRAPH_MAX_CYCLES", "3"))
    )
    log_level: str = field(
        default_factory=lambda: os.environ.get("ARCHGRAPH_LOG_LEVEL", "WARNING")
    )

    def ensure_workspace(self) -> None:
        """Create the workspace directory if it does not exist."""
        self.workspace_dir.mkdir(parents=True, exist_ok=True)


# Module-level singleton; import this everywhere:
#   from archgraph.config import settings
settings = Settings()
