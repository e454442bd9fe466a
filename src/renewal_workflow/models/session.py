"""Session-facing models — the contract between the engine and API callers.

These are intentionally decoupled from the ORM models in ``renewal_db`` so
that API consumers never see database internals (version counters,
``last_activity_at`` bookkeeping, ...).
"""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field


class ToolCall(BaseModel):
    """One dispatched action as recorded on an assistant turn."""

    name: str
    args: dict[str, Any] = Field(default_factory=dict)
    result: dict[str, Any] | None = None


class ConversationTurn(BaseModel):
    """A single entry of ``conversation_history``.

    ``event_id`` links a turn to the event log entry it came from (user
    turns) or answered (assistant turns).
    """

    role: Literal["user", "assistant"]
    content: str
    timestamp: datetime
    tool_calls: list[ToolCall] | None = None
    event_id: str | None = None


class PackageDocument(BaseModel):
    """A validated document listed in the submission package."""

    document_type: str
    reference: str | None = None
    valid: bool | None = None


class SubmissionPackage(BaseModel):
    """Pre-filled portal submission handed to the employee.

    Generated once per session; ``package_id`` lets the employee (and
    support staff) tell whether two messages refer to the same package.
    """

    package_id: str
    portal_url: str
    instructions: list[str]
    documents: list[PackageDocument] = Field(default_factory=list)
    form_data: dict[str, Any] = Field(default_factory=dict)
    estimated_time: str | None = None
    generated_at: datetime


class SessionInfo(BaseModel):
    """Public view of a renewal session."""

    session_id: str
    employee_id: str
    license_id: str | None = None
    status: str
    current_step: str | None = None
    completed_steps: list[str] = Field(default_factory=list)
    pending_actions: list[str] = Field(default_factory=list)
    conversation_history: list[ConversationTurn] = Field(default_factory=list)
    submission_package: SubmissionPackage | None = None
    confirmation_number: str | None = None
    submitted_at: datetime | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime
    updated_at: datetime
    completed_at: datetime | None = None


class EventInfo(BaseModel):
    """Public view of an event log entry."""

    event_id: str
    session_id: str
    event_type: str
    event_data: dict[str, Any] = Field(default_factory=dict)
    triggered_by: str
    idempotency_key: str | None = None
    created_at: datetime
