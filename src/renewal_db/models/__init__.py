"""ORM models for renewal_db."""

from renewal_db.models.base import Base
from renewal_db.models.enums import (
    CLOSED_STATUSES,
    INBOUND_EVENT_TYPES,
    TERMINAL_STATUSES,
    EventType,
    SessionStatus,
)
from renewal_db.models.event import RenewalEvent
from renewal_db.models.session import RenewalSession

__all__ = [
    "Base",
    "CLOSED_STATUSES",
    "INBOUND_EVENT_TYPES",
    "TERMINAL_STATUSES",
    "EventType",
    "SessionStatus",
    "RenewalEvent",
    "RenewalSession",
]
