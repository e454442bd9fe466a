"""Renewal workflow constants shared across the SDK.

These values are referenced by the engine, dispatcher, prompt template and
scheduler.  Deployment-tunable numbers (timeouts, thresholds) live in
:mod:`renewal_workflow.config` instead.
"""

from renewal_db.models.enums import EventType, SessionStatus

# First user turn recorded when a start request carries no message.
DEFAULT_INITIAL_MESSAGE = "I want to renew my license"

# Used by generate_submission_package when neither the decision nor the
# jurisdiction requirements supply instructions.
DEFAULT_PORTAL_INSTRUCTIONS: list[str] = [
    "Log into the state portal with your credentials",
    'Navigate to "License Renewals"',
    "Upload your validated license photo",
    "Upload your training certificate",
    "Fill out the renewal form",
    "Submit and save your confirmation number",
]
DEFAULT_ESTIMATED_TIME = "10-15 minutes"

# Statuses swept by the reminder scheduler.
WAITING_STATUSES: tuple[SessionStatus, ...] = (
    SessionStatus.AWAITING_PHOTO,
    SessionStatus.AWAITING_TRAINING,
    SessionStatus.AWAITING_PORTAL_SUBMISSION,
)

# Canonical action types understood by the dispatcher.
ACTION_TYPES: tuple[str, ...] = (
    "request_document",
    "validate_document",
    "send_email",
    "send_sms",
    "generate_submission_package",
    "complete_workflow",
)

# Upload events and the document type they deliver.
UPLOAD_DOCUMENT_TYPES: dict[EventType, str] = {
    EventType.PHOTO_UPLOADED: "license_photo",
    EventType.CERTIFICATE_UPLOADED: "training_certificate",
}

# Outstanding asks that an arriving event satisfies.
FULFILLED_BY_EVENT: dict[EventType, str] = {
    EventType.PHOTO_UPLOADED: "upload_license_photo",
    EventType.CERTIFICATE_UPLOADED: "upload_training_certificate",
    EventType.PORTAL_SUBMITTED: "submit_to_portal",
}

# Allowed next statuses per current status, enforced only when
# RENEWAL_STRICT_TRANSITIONS is on.  Staying in the same status is always
# allowed, and so is escalating.
_S = SessionStatus
STRICT_TRANSITIONS: dict[SessionStatus, frozenset[SessionStatus]] = {
    _S.ACTIVE: frozenset({_S.AWAITING_PHOTO, _S.AWAITING_TRAINING, _S.CANCELLED}),
    _S.AWAITING_PHOTO: frozenset({_S.PHOTO_UPLOADED, _S.PHOTO_VALIDATED, _S.CANCELLED}),
    _S.PHOTO_UPLOADED: frozenset({_S.PHOTO_VALIDATED, _S.AWAITING_PHOTO}),
    _S.PHOTO_VALIDATED: frozenset({_S.AWAITING_TRAINING, _S.AWAITING_PHOTO}),
    _S.AWAITING_TRAINING: frozenset({
        _S.TRAINING_UPLOADED, _S.TRAINING_VALIDATED, _S.CANCELLED,
    }),
    _S.TRAINING_UPLOADED: frozenset({_S.TRAINING_VALIDATED, _S.AWAITING_TRAINING}),
    _S.TRAINING_VALIDATED: frozenset({
        _S.READY_FOR_PORTAL_SUBMISSION, _S.AWAITING_PORTAL_SUBMISSION,
    }),
    _S.READY_FOR_PORTAL_SUBMISSION: frozenset({_S.AWAITING_PORTAL_SUBMISSION}),
    _S.AWAITING_PORTAL_SUBMISSION: frozenset({
        _S.PORTAL_SUBMITTED, _S.COMPLETED, _S.CANCELLED,
    }),
    _S.PORTAL_SUBMITTED: frozenset({_S.COMPLETED, _S.AWAITING_PORTAL_SUBMISSION}),
    # A supervisor may hand an escalated session back to any waiting state
    _S.ESCALATED: frozenset({
        _S.AWAITING_PHOTO, _S.AWAITING_TRAINING, _S.AWAITING_PORTAL_SUBMISSION,
        _S.COMPLETED, _S.FAILED, _S.CANCELLED,
    }),
}
del _S

# Number of characters of event_data rendered into a conversation turn for
# event types without a canned phrasing.
EVENT_DATA_PREVIEW_CHARS = 500
