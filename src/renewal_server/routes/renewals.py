"""Renewal endpoints — start, feed events, cancel, and read sessions.

Mutating endpoints commit before answering: the reply describes a step
that is already durable, never one that might still roll back.
"""

from typing import Any, Literal

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from renewal_workflow.models.decision import ActionResult, ActionSpec
from renewal_workflow.models.outcome import InboundEvent
from renewal_workflow.models.session import EventInfo, SessionInfo
from renewal_workflow.workflow import RenewalWorkflow

from renewal_server.config import DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT
from renewal_server.dependencies import get_db, get_workflow

router = APIRouter(prefix="/renewals", tags=["renewals"])


# ------------------------------------------------------------------
# Request / response models
# ------------------------------------------------------------------

class StartRenewalRequest(BaseModel):
    """Body for POST /renewals/start."""
    employee_id: str = Field(min_length=1)
    license_id: str | None = None
    initial_message: str | None = None
    metadata: dict[str, Any] | None = None
    triggered_by: str = "system"


class StartRenewalResponse(BaseModel):
    session_id: str
    status: Literal["started", "resumed"]
    message: str
    current_status: str
    current_step: str | None = None
    # Only for a freshly started session
    next_status: str | None = None
    next_step: str | None = None
    actions: list[ActionSpec] = Field(default_factory=list)


class RenewalEventRequest(BaseModel):
    """Body for POST /renewals/event."""
    session_id: str = Field(min_length=1)
    event_type: Literal[
        "photo_uploaded",
        "certificate_uploaded",
        "employee_message",
        "portal_submitted",
        "timeout_reminder",
        "supervisor_intervention",
    ]
    event_data: dict[str, Any] = Field(default_factory=dict)
    triggered_by: str = "system"
    idempotency_key: str | None = Field(default=None, max_length=200)


class RenewalEventResponse(BaseModel):
    session_id: str
    event_type: str
    status: Literal["processed", "duplicate"]
    response: str
    next_status: str
    next_step: str | None = None
    actions: list[ActionSpec] = Field(default_factory=list)
    action_results: list[ActionResult] = Field(default_factory=list)


class CancelRenewalRequest(BaseModel):
    """Body for POST /renewals/{session_id}/cancel."""
    reason: str | None = None
    triggered_by: str = "user"


# ------------------------------------------------------------------
# Endpoints
# ------------------------------------------------------------------

@router.post("/start")
async def start_renewal(
    body: StartRenewalRequest,
    db: AsyncSession = Depends(get_db),
    workflow: RenewalWorkflow = Depends(get_workflow),
) -> StartRenewalResponse:
    """Start a renewal workflow, or resume the employee's active one."""
    outcome = await workflow.start_session(
        db,
        employee_id=body.employee_id,
        license_id=body.license_id,
        initial_message=body.initial_message,
        metadata=body.metadata,
        triggered_by=body.triggered_by,
    )
    await db.commit()

    step = outcome.step
    return StartRenewalResponse(
        session_id=outcome.session_id,
        status=outcome.status,
        message=outcome.message,
        current_status=outcome.current_status,
        current_step=outcome.current_step,
        next_status=step.next_status if step else None,
        next_step=step.next_step if step else None,
        actions=step.actions if step else [],
    )


@router.post("/event")
async def handle_event(
    body: RenewalEventRequest,
    db: AsyncSession = Depends(get_db),
    workflow: RenewalWorkflow = Depends(get_workflow),
) -> RenewalEventResponse:
    """Feed an inbound event into the session's workflow.

    404 if the session does not exist, 400 if it is already closed.
    """
    outcome = await workflow.run_step(
        db,
        body.session_id,
        InboundEvent(
            event_type=body.event_type,
            event_data=body.event_data,
            triggered_by=body.triggered_by,
            idempotency_key=body.idempotency_key,
        ),
    )
    await db.commit()

    return RenewalEventResponse(
        session_id=outcome.session_id,
        event_type=body.event_type,
        status="duplicate" if outcome.duplicate else "processed",
        response=outcome.response,
        next_status=outcome.next_status,
        next_step=outcome.next_step,
        actions=outcome.actions,
        action_results=outcome.action_results,
    )


@router.post("/{session_id}/cancel")
async def cancel_renewal(
    session_id: str,
    body: CancelRenewalRequest | None = None,
    db: AsyncSession = Depends(get_db),
    workflow: RenewalWorkflow = Depends(get_workflow),
) -> SessionInfo:
    """Close a session as cancelled.  400 if it is already closed."""
    body = body or CancelRenewalRequest()
    info = await workflow.cancel_session(
        db, session_id, reason=body.reason, triggered_by=body.triggered_by,
    )
    await db.commit()
    return info


@router.get("/{session_id}")
async def get_renewal(
    session_id: str,
    db: AsyncSession = Depends(get_db),
    workflow: RenewalWorkflow = Depends(get_workflow),
) -> SessionInfo:
    """Full session state, including conversation history."""
    return await workflow.get_session(db, session_id)


@router.get("/{session_id}/events")
async def list_renewal_events(
    session_id: str,
    db: AsyncSession = Depends(get_db),
    workflow: RenewalWorkflow = Depends(get_workflow),
) -> list[EventInfo]:
    """The session's audit log in arrival order."""
    return await workflow.list_events(db, session_id)


@router.get("")
async def list_renewals(
    employee_id: str = Query(..., min_length=1),
    db: AsyncSession = Depends(get_db),
    workflow: RenewalWorkflow = Depends(get_workflow),
    limit: int = Query(DEFAULT_PAGE_LIMIT, ge=1, le=MAX_PAGE_LIMIT),
    offset: int = Query(0, ge=0),
) -> list[SessionInfo]:
    """List an employee's sessions, most recent first."""
    return await workflow.list_sessions(
        db, employee_id=employee_id, limit=limit, offset=offset,
    )
