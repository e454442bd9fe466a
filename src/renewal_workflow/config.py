"""Workflow configuration — reads tuning knobs from environment variables.

Every value has a default suitable for local development, so tests can
build ``WorkflowSettings()`` directly without touching the environment.
"""

import os
from dataclasses import dataclass, field

from renewal_db.models.enums import SessionStatus

from renewal_workflow.constants import WAITING_STATUSES


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class WorkflowSettings:
    """Immutable workflow configuration."""

    # Number of most recent conversation turns handed to the decision oracle.
    # The full history is always persisted.
    history_window: int = 10

    # Timeouts (seconds) for collaborator calls
    oracle_timeout_seconds: float = 30.0
    messaging_timeout_seconds: float = 5.0
    validation_timeout_seconds: float = 30.0
    sync_timeout_seconds: float = 10.0

    # Reminder sweep: sessions idle this long in a waiting status are nudged,
    # and escalated once idle for more than escalate_after_days.
    stale_after_hours: float = 72.0
    escalate_after_days: int = 7
    waiting_statuses: tuple[SessionStatus, ...] = field(
        default_factory=lambda: WAITING_STATUSES
    )

    # Reject oracle decisions that leave STRICT_TRANSITIONS
    strict_transitions: bool = False

    # Portal link used when no jurisdiction requirements are available
    default_portal_url: str = "https://example-state-portal.gov/renewals"


def load_workflow_settings() -> WorkflowSettings:
    """Build settings from ``RENEWAL_*`` environment variables."""
    raw_statuses = os.getenv("RENEWAL_WAITING_STATUSES")
    if raw_statuses:
        waiting = tuple(
            SessionStatus(s.strip()) for s in raw_statuses.split(",") if s.strip()
        )
    else:
        waiting = WAITING_STATUSES

    return WorkflowSettings(
        history_window=int(os.getenv("RENEWAL_HISTORY_WINDOW", "10")),
        oracle_timeout_seconds=float(os.getenv("RENEWAL_ORACLE_TIMEOUT", "30")),
        messaging_timeout_seconds=float(os.getenv("RENEWAL_MESSAGING_TIMEOUT", "5")),
        validation_timeout_seconds=float(os.getenv("RENEWAL_VALIDATION_TIMEOUT", "30")),
        sync_timeout_seconds=float(os.getenv("RENEWAL_SYNC_TIMEOUT", "10")),
        stale_after_hours=float(os.getenv("RENEWAL_STALE_AFTER_HOURS", "72")),
        escalate_after_days=int(os.getenv("RENEWAL_ESCALATE_AFTER_DAYS", "7")),
        waiting_statuses=waiting,
        strict_transitions=_env_bool("RENEWAL_STRICT_TRANSITIONS"),
        default_portal_url=os.getenv(
            "RENEWAL_DEFAULT_PORTAL_URL",
            "https://example-state-portal.gov/renewals",
        ),
    )
