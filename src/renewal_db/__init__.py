"""renewal_db — PostgreSQL persistence layer for renewal workflows.

This package provides the ORM models, async engine factory, and the
session/event repositories used by the workflow engine and the server.
"""

from renewal_db.engine import (
    get_engine,
    get_event_session_factory,
    get_session_factory,
)
from renewal_db.models.enums import EventType, SessionStatus
from renewal_db.models.event import RenewalEvent
from renewal_db.models.session import RenewalSession
from renewal_db.repository import EventRepository, SessionRepository

__all__ = [
    "RenewalSession",
    "RenewalEvent",
    "SessionStatus",
    "EventType",
    "get_engine",
    "get_session_factory",
    "get_event_session_factory",
    "SessionRepository",
    "EventRepository",
]
