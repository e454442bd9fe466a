"""Database-level enumerations for renewal sessions and their event log."""

import enum


class SessionStatus(str, enum.Enum):
    """Lifecycle states for a renewal session.

    The decision oracle picks the next status on every step; there is no
    built-in transition table.  ``completed``, ``failed`` and ``cancelled``
    close the session for good.  ``escalated`` stops all automation (the
    reminder sweep never touches it) but a supervisor can still act on it.
    """

    ACTIVE = "active"
    AWAITING_PHOTO = "awaiting_photo"
    PHOTO_UPLOADED = "photo_uploaded"
    PHOTO_VALIDATED = "photo_validated"
    AWAITING_TRAINING = "awaiting_training"
    TRAINING_UPLOADED = "training_uploaded"
    TRAINING_VALIDATED = "training_validated"
    READY_FOR_PORTAL_SUBMISSION = "ready_for_portal_submission"
    AWAITING_PORTAL_SUBMISSION = "awaiting_portal_submission"
    PORTAL_SUBMITTED = "portal_submitted"
    COMPLETED = "completed"
    ESCALATED = "escalated"
    FAILED = "failed"
    CANCELLED = "cancelled"


# Sessions in these states accept no further events and do not count
# towards the one-active-session-per-employee rule.
CLOSED_STATUSES: frozenset[SessionStatus] = frozenset({
    SessionStatus.COMPLETED,
    SessionStatus.FAILED,
    SessionStatus.CANCELLED,
})

TERMINAL_STATUSES: frozenset[SessionStatus] = CLOSED_STATUSES | {SessionStatus.ESCALATED}


class EventType(str, enum.Enum):
    """Kinds of entries in the ``renewal_events`` audit log.

    The first six are inbound signals that can drive a workflow step.  The
    ``workflow_*`` entries are written by the orchestrator itself to record
    lifecycle transitions that do not come from outside.
    """

    PHOTO_UPLOADED = "photo_uploaded"
    CERTIFICATE_UPLOADED = "certificate_uploaded"
    EMPLOYEE_MESSAGE = "employee_message"
    PORTAL_SUBMITTED = "portal_submitted"
    TIMEOUT_REMINDER = "timeout_reminder"
    SUPERVISOR_INTERVENTION = "supervisor_intervention"

    WORKFLOW_STARTED = "workflow_started"
    WORKFLOW_COMPLETED = "workflow_completed"
    WORKFLOW_CANCELLED = "workflow_cancelled"
    WORKFLOW_ESCALATED = "workflow_escalated"


INBOUND_EVENT_TYPES: frozenset[EventType] = frozenset({
    EventType.PHOTO_UPLOADED,
    EventType.CERTIFICATE_UPLOADED,
    EventType.EMPLOYEE_MESSAGE,
    EventType.PORTAL_SUBMITTED,
    EventType.TIMEOUT_REMINDER,
    EventType.SUPERVISOR_INTERVENTION,
})
