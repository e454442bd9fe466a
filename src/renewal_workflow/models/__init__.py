"""Pydantic models for the renewal workflow SDK."""

from renewal_workflow.models.context import (
    EmployeeProfile,
    EventPayload,
    JurisdictionRequirements,
    LicenseRecord,
    LicenseTypeRequirement,
    SessionContext,
    SessionSnapshot,
)
from renewal_workflow.models.decision import ActionResult, ActionSpec, Decision
from renewal_workflow.models.outcome import (
    InboundEvent,
    StaleSession,
    StartOutcome,
    StepOutcome,
    SweepSummary,
)
from renewal_workflow.models.results import (
    DeliveryResult,
    SyncResult,
    ValidationResult,
)
from renewal_workflow.models.session import (
    ConversationTurn,
    EventInfo,
    PackageDocument,
    SessionInfo,
    SubmissionPackage,
    ToolCall,
)

__all__ = [
    # Context
    "EmployeeProfile",
    "EventPayload",
    "JurisdictionRequirements",
    "LicenseRecord",
    "LicenseTypeRequirement",
    "SessionContext",
    "SessionSnapshot",
    # Decision
    "ActionResult",
    "ActionSpec",
    "Decision",
    # Outcomes
    "InboundEvent",
    "StaleSession",
    "StartOutcome",
    "StepOutcome",
    "SweepSummary",
    # Collaborator results
    "DeliveryResult",
    "SyncResult",
    "ValidationResult",
    # Session views
    "ConversationTurn",
    "EventInfo",
    "PackageDocument",
    "SessionInfo",
    "SubmissionPackage",
    "ToolCall",
]
