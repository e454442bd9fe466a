"""Inputs and outputs of the engine's public operations."""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

from renewal_db.models.enums import INBOUND_EVENT_TYPES, EventType

from renewal_workflow.models.decision import ActionResult, ActionSpec


class InboundEvent(BaseModel):
    """An external signal to feed into :meth:`RenewalWorkflow.run_step`.

    ``idempotency_key`` is optional; a repeat delivery carrying the same key
    for the same session is recognised and not processed twice.
    """

    event_type: EventType
    event_data: dict[str, Any] = Field(default_factory=dict)
    triggered_by: str = "system"
    idempotency_key: str | None = None

    @field_validator("event_type")
    @classmethod
    def _inbound_only(cls, value: EventType) -> EventType:
        if value not in INBOUND_EVENT_TYPES:
            raise ValueError(f"{value.value} is not an inbound event type")
        return value


class StepOutcome(BaseModel):
    """Result of one workflow step.

    ``duplicate`` is True when the event had already been processed; the
    reply is then the one recorded the first time and nothing was re-run.
    """

    session_id: str
    event_id: str | None = None
    event_type: str | None = None
    response: str
    next_status: str
    next_step: str | None = None
    actions: list[ActionSpec] = Field(default_factory=list)
    action_results: list[ActionResult] = Field(default_factory=list)
    duplicate: bool = False


class StartOutcome(BaseModel):
    """Result of a start request: either a fresh session or the active one."""

    session_id: str
    status: Literal["started", "resumed"]
    message: str
    current_status: str
    current_step: str | None = None
    step: StepOutcome | None = None


class StaleSession(BaseModel):
    """A session the reminder sweep should look at."""

    session_id: str
    status: str
    updated_at: datetime
    last_activity_at: datetime
    # Whole days since the employee last did anything
    days_inactive: int


class SweepSummary(BaseModel):
    """Totals for one reminder/escalation sweep."""

    checked: int = 0
    reminded: int = 0
    escalated: int = 0
    skipped: int = 0
    errors: list[str] = Field(default_factory=list)
    swept_at: datetime | None = None
