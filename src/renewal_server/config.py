"""Server configuration — reads settings from environment variables.

All settings have sensible defaults for local development.  In production
the values are typically overridden via env vars or a ``.env`` file.
"""

import os
from dataclasses import dataclass, field

from renewal_workflow.config import WorkflowSettings, load_workflow_settings

# --- Pagination defaults ---
# Module-level constants read at import time so FastAPI Query() defaults
# can reference them (Query defaults must be static at decoration time).
DEFAULT_PAGE_LIMIT = int(os.getenv("DEFAULT_PAGE_LIMIT", "20"))
MAX_PAGE_LIMIT = int(os.getenv("MAX_PAGE_LIMIT", "100"))


@dataclass(frozen=True)
class ServerSettings:
    """Immutable server configuration read from environment at startup."""

    # Network
    host: str = "0.0.0.0"
    port: int = 8080

    # CORS: comma-separated origins, or "*" for wide-open dev mode
    cors_origins: list[str] = field(default_factory=lambda: ["*"])

    # Logging
    log_level: str = "INFO"

    # Shared secret for the cron endpoint (None = endpoint disabled)
    cron_secret: str | None = None

    # Collaborator factories as "package.module:attribute".  None selects
    # the inert defaults from renewal_workflow.collaborators.
    oracle_path: str | None = None
    validator_path: str | None = None
    messenger_path: str | None = None
    hr_sync_path: str | None = None
    directory_path: str | None = None

    # Directory of <STATE>.yaml requirement files (None = no lookups)
    requirements_dir: str | None = None

    workflow: WorkflowSettings = field(default_factory=WorkflowSettings)


def load_settings() -> ServerSettings:
    """Build settings from ``SERVER_*``, ``RENEWAL_*`` and ``CRON_SECRET``."""
    raw_origins = os.getenv("SERVER_CORS_ORIGINS", "*")
    origins = [o.strip() for o in raw_origins.split(",") if o.strip()]

    return ServerSettings(
        host=os.getenv("SERVER_HOST", "0.0.0.0"),
        port=int(os.getenv("SERVER_PORT", "8080")),
        cors_origins=origins,
        log_level=os.getenv("SERVER_LOG_LEVEL", "INFO").upper(),
        cron_secret=os.getenv("CRON_SECRET") or None,
        oracle_path=os.getenv("RENEWAL_ORACLE") or None,
        validator_path=os.getenv("RENEWAL_VALIDATOR") or None,
        messenger_path=os.getenv("RENEWAL_MESSENGER") or None,
        hr_sync_path=os.getenv("RENEWAL_HR_SYNC") or None,
        directory_path=os.getenv("RENEWAL_DIRECTORY") or None,
        requirements_dir=os.getenv("RENEWAL_REQUIREMENTS_DIR") or None,
        workflow=load_workflow_settings(),
    )
