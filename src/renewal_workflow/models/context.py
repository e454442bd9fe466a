"""Context models — everything the decision oracle sees for one step.

``SessionContext`` is assembled by the engine from the session row, the
employee directory, the requirements store and the triggering event.  It
is the sole input of :meth:`DecisionOracle.decide`.
"""

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, Field

from renewal_workflow.models.session import ConversationTurn


class EmployeeProfile(BaseModel):
    """Display data for the employee, looked up from the HR directory."""

    employee_id: str
    name: str = "Unknown"
    email: str | None = None
    phone: str | None = None


class LicenseRecord(BaseModel):
    """The credential being renewed."""

    license_id: str
    license_type: str | None = None
    # Two-letter jurisdiction code, e.g. "CA"; keys the requirements store
    state: str | None = None
    expiration_date: date | None = None
    status: str | None = None


class LicenseTypeRequirement(BaseModel):
    """Per-license-type renewal rules for one jurisdiction."""

    name: str
    display_name: str | None = None
    renewal_training_hours: float | None = None


class JurisdictionRequirements(BaseModel):
    """Renewal reference data for one state, loaded from YAML."""

    state: str
    portal_url: str | None = None
    license_types: list[LicenseTypeRequirement] = Field(default_factory=list)
    required_documents: list[str] = Field(default_factory=list)
    instructions: list[str] = Field(default_factory=list)
    estimated_time: str | None = None
    notes: str | None = None


class EventPayload(BaseModel):
    """The event that triggered this step, as the oracle sees it."""

    event_id: str | None = None
    type: str
    data: dict[str, Any] = Field(default_factory=dict)
    triggered_by: str = "system"
    timestamp: datetime


class SessionSnapshot(BaseModel):
    """Workflow state at the start of the step."""

    session_id: str
    employee_id: str
    license_id: str | None = None
    status: str
    current_step: str | None = None
    completed_steps: list[str] = Field(default_factory=list)
    pending_actions: list[str] = Field(default_factory=list)
    has_submission_package: bool = False
    metadata: dict[str, Any] = Field(default_factory=dict)


class SessionContext(BaseModel):
    """Full input for one oracle call.

    ``history`` holds only the most recent turns (see
    ``WorkflowSettings.history_window``); ``history_total`` is the length of
    the full persisted history.
    """

    session: SessionSnapshot
    employee: EmployeeProfile
    license: LicenseRecord | None = None
    requirements: JurisdictionRequirements | None = None
    history: list[ConversationTurn] = Field(default_factory=list)
    history_total: int = 0
    event: EventPayload | None = None
    valid_statuses: list[str] = Field(default_factory=list)
    action_types: list[str] = Field(default_factory=list)
