"""RenewalWorkflow — the per-session control loop.

Stateless engine pattern: each call loads the session from the database,
asks the decision oracle for the next move, dispatches the decision's
actions, persists the new state, and returns the result.  No workflow
state is kept in memory between calls.

The engine accepts an ``AsyncSession`` from the caller so that the caller
(typically a FastAPI endpoint or the reminder scheduler) controls the
transaction boundary.  The one write that escapes that transaction is the
arrival record of an inbound event, which the event repository commits on
its own connection before the oracle is consulted.

Step overview (``run_step``):
    1. lock the session row, reject closed sessions
    2. durably log the inbound event (or recognise a repeat delivery)
    3. look up employee, license and jurisdiction requirements
    4. ask the oracle, validate its next status
    5. dispatch actions, collecting one result per action
    6. persist status, step, asks, history and bookkeeping in one update
"""

from __future__ import annotations

import asyncio
import json
import logging
import math
from datetime import datetime, timezone
from typing import Any

from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from renewal_db.models.enums import (
    CLOSED_STATUSES,
    TERMINAL_STATUSES,
    EventType,
    SessionStatus,
)
from renewal_db.models.event import RenewalEvent
from renewal_db.models.session import RenewalSession
from renewal_db.repository import EventRepository, SessionRepository

from renewal_workflow.collaborators import (
    AcceptingValidator,
    EmptyDirectory,
    UnconfiguredHRSync,
    UnconfiguredMessenger,
)
from renewal_workflow.config import WorkflowSettings
from renewal_workflow.constants import (
    DEFAULT_INITIAL_MESSAGE,
    EVENT_DATA_PREVIEW_CHARS,
    FULFILLED_BY_EVENT,
    STRICT_TRANSITIONS,
    UPLOAD_DOCUMENT_TYPES,
)
from renewal_workflow.dispatcher import ActionContext, ActionDispatcher
from renewal_workflow.errors import (
    IllegalTransitionError,
    InvalidSessionStateError,
    OracleFailureError,
    SessionClosedError,
    SessionNotFoundError,
)
from renewal_workflow.interfaces import (
    DecisionOracle,
    DocumentValidator,
    EmployeeDirectory,
    HRSync,
    Messenger,
)
from renewal_workflow.locks import KeyedLock
from renewal_workflow.models.context import (
    EmployeeProfile,
    EventPayload,
    SessionContext,
    SessionSnapshot,
)
from renewal_workflow.models.decision import ActionResult, ActionSpec, Decision
from renewal_workflow.models.outcome import (
    InboundEvent,
    StaleSession,
    StartOutcome,
    StepOutcome,
)
from renewal_workflow.models.session import (
    ConversationTurn,
    EventInfo,
    SessionInfo,
    ToolCall,
)
from renewal_workflow.requirements import RequirementsStore

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _pick(data: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        value = data.get(key)
        if value not in (None, ""):
            return value
    return None


def format_event_message(event_type: EventType | str, data: dict[str, Any] | None) -> str:
    """Render an inbound event as the employee-side conversation turn."""
    event_type = EventType(event_type)
    data = data or {}

    if event_type == EventType.PHOTO_UPLOADED:
        return "I uploaded my license photo"
    if event_type == EventType.CERTIFICATE_UPLOADED:
        return "I uploaded my training certificate"
    if event_type == EventType.TIMEOUT_REMINDER:
        days = _pick(data, "daysSinceUpdate", "days_since_update")
        if days is None:
            return "[System: reminder, no recent activity]"
        return f"[System: {days} days since last activity]"
    if event_type == EventType.PORTAL_SUBMITTED:
        number = _pick(data, "confirmationNumber", "confirmation_number")
        return f"I submitted the renewal. Confirmation number: {number}"
    if event_type == EventType.EMPLOYEE_MESSAGE:
        text = _pick(data, "message", "text", "body")
        if text is not None:
            return str(text)
    if event_type == EventType.SUPERVISOR_INTERVENTION:
        note = _pick(data, "message", "note", "reason")
        if note is not None:
            return f"[Supervisor: {note}]"

    raw = json.dumps({"type": event_type.value, "data": data}, default=str)
    return raw[:EVENT_DATA_PREVIEW_CHARS]


class RenewalWorkflow:
    """Drives renewal sessions through their lifecycle.

    Args:
        oracle: decides the next status, reply and actions for each step
        validator: document validator used by ``validate_document``
        messenger: SMS/email sender used by the messaging actions
        hr_sync: HR system updated when a workflow completes
        directory: employee and license lookups
        requirements: per-jurisdiction reference data
        settings: timeouts, history window and sweep thresholds
        event_repository: event log access; defaults to one bound to the
            process-wide session factory
    """

    def __init__(
        self,
        oracle: DecisionOracle,
        *,
        validator: DocumentValidator | None = None,
        messenger: Messenger | None = None,
        hr_sync: HRSync | None = None,
        directory: EmployeeDirectory | None = None,
        requirements: RequirementsStore | None = None,
        settings: WorkflowSettings | None = None,
        event_repository: EventRepository | None = None,
    ) -> None:
        self._oracle = oracle
        self._settings = settings or WorkflowSettings()
        self._directory = directory or EmptyDirectory()
        self._requirements = requirements or RequirementsStore()
        self._dispatcher = ActionDispatcher(
            validator or AcceptingValidator(),
            messenger or UnconfiguredMessenger(),
            hr_sync or UnconfiguredHRSync(),
            self._settings,
        )
        self._repo = SessionRepository()
        self._events = event_repository or EventRepository()
        self._locks = KeyedLock()

    @property
    def settings(self) -> WorkflowSettings:
        return self._settings

    # ==================================================================
    # Session lifecycle
    # ==================================================================

    async def start_session(
        self,
        db: AsyncSession,
        *,
        employee_id: str,
        license_id: str | None = None,
        initial_message: str | None = None,
        metadata: dict[str, Any] | None = None,
        triggered_by: str = "system",
    ) -> StartOutcome:
        """Start a renewal for an employee, or return the one already open.

        A new session records ``initial_message`` as its first user turn and
        immediately runs a first step so the caller gets the opening reply.
        If the oracle fails, the exception propagates and the caller's
        rollback discards the new session.  The caller must
        ``await db.commit()`` to persist.
        """
        async with self._locks.acquire(f"employee:{employee_id}"):
            await self._repo.lock_employee(db, employee_id)
            existing = await self._repo.get_active_for_employee(db, employee_id)
            if existing is not None:
                return self._resumed(existing)

            first_turn = ConversationTurn(
                role="user",
                content=initial_message or DEFAULT_INITIAL_MESSAGE,
                timestamp=_utcnow(),
            )
            row = await self._repo.create_session(
                db,
                employee_id=employee_id,
                license_id=license_id,
                metadata=metadata,
                conversation_history=[_dump_turn(first_turn)],
            )
            if row is None:
                # Another process created one between our check and insert
                existing = await self._repo.get_active_for_employee(db, employee_id)
                if existing is None:
                    raise ValueError(
                        f"Active session already exists for employee {employee_id}"
                    )
                return self._resumed(existing)

            await self._events.append(
                db,
                session_id=row.session_id,
                event_type=EventType.WORKFLOW_STARTED,
                event_data={
                    "employee_id": employee_id,
                    "license_id": license_id,
                    "initial_message": first_turn.content,
                },
                triggered_by=triggered_by,
            )
            logger.info(
                "Started renewal session %s for employee %s",
                row.session_id, employee_id,
            )

            step = await self._advance(db, row)

        return StartOutcome(
            session_id=row.session_id,
            status="started",
            message=step.response,
            current_status=step.next_status,
            current_step=step.next_step,
            step=step,
        )

    async def cancel_session(
        self,
        db: AsyncSession,
        session_id: str,
        *,
        reason: str | None = None,
        triggered_by: str = "user",
    ) -> SessionInfo:
        """Close a session as ``cancelled``.  The caller must commit."""
        async with self._locks.acquire(session_id):
            row = await self._load_for_update(db, session_id)
            previous = SessionStatus(row.status)
            if previous in CLOSED_STATUSES:
                raise SessionClosedError(session_id, previous.value)

            metadata = dict(row.session_metadata or {})
            metadata["cancellation"] = {
                "reason": reason,
                "previous_status": previous.value,
                "cancelled_at": _utcnow().isoformat(),
            }
            await self._repo.update_session(
                db, row,
                status=SessionStatus.CANCELLED.value,
                pending_actions=[],
                session_metadata=metadata,
            )
            await self._events.append(
                db,
                session_id=session_id,
                event_type=EventType.WORKFLOW_CANCELLED,
                event_data={"reason": reason, "previous_status": previous.value},
                triggered_by=triggered_by,
            )
            logger.info("Cancelled session %s (was %s)", session_id, previous.value)
            return self._to_session_info(row)

    async def escalate_session(
        self,
        db: AsyncSession,
        session_id: str,
        *,
        reason: str,
        days_inactive: int | None = None,
        triggered_by: str = "cron",
        expected_status: SessionStatus | str | None = None,
        unchanged_since: datetime | None = None,
    ) -> SessionInfo | None:
        """Move a session to ``escalated`` without consulting the oracle.

        With ``expected_status`` or ``unchanged_since``, a session that has
        moved on since it was selected is left alone and ``None`` is
        returned.  The caller must commit.
        """
        async with self._locks.acquire(session_id):
            row = await self._load_for_update(db, session_id)
            current = SessionStatus(row.status)
            if self._moved_on(row, expected_status, unchanged_since):
                logger.info(
                    "Not escalating session %s: changed since selection (now %s)",
                    session_id, current.value,
                )
                return None
            if current in TERMINAL_STATUSES:
                raise InvalidSessionStateError(
                    f"Session {session_id} is already {current.value}"
                )

            metadata = dict(row.session_metadata or {})
            metadata["escalation"] = {
                "reason": reason,
                "days_inactive": days_inactive,
                "previous_status": current.value,
                "escalated_at": _utcnow().isoformat(),
            }
            await self._repo.update_session(
                db, row,
                status=SessionStatus.ESCALATED.value,
                session_metadata=metadata,
            )
            await self._events.append(
                db,
                session_id=session_id,
                event_type=EventType.WORKFLOW_ESCALATED,
                event_data={
                    "reason": reason,
                    "days_inactive": days_inactive,
                    "previous_status": current.value,
                },
                triggered_by=triggered_by,
            )
            logger.warning(
                "Escalated session %s from %s: %s",
                session_id, current.value, reason,
            )
            return self._to_session_info(row)

    # ==================================================================
    # Step API
    # ==================================================================

    async def run_step(
        self,
        db: AsyncSession,
        session_id: str,
        event: InboundEvent | None = None,
        *,
        expected_status: SessionStatus | str | None = None,
        unchanged_since: datetime | None = None,
    ) -> StepOutcome | None:
        """Process one event (or a bare re-evaluation) for a session.

        Raises ``SessionNotFoundError``, ``SessionClosedError`` (no event is
        logged in either case) or ``OracleFailureError`` (the event stays
        logged, the session is untouched).  The caller must
        ``await db.commit()`` to persist the step.

        ``expected_status`` and ``unchanged_since`` make the step
        conditional: if the locked session no longer matches, nothing is
        logged and ``None`` is returned.
        """
        async with self._locks.acquire(session_id):
            row = await self._load_for_update(db, session_id)
            status = SessionStatus(row.status)
            if self._moved_on(row, expected_status, unchanged_since):
                logger.info(
                    "Skipping step for session %s: changed since selection (now %s)",
                    session_id, status.value,
                )
                return None
            if status in CLOSED_STATUSES:
                raise SessionClosedError(session_id, status.value)

            logged: RenewalEvent | None = None
            if event is not None:
                logged, created = await self._events.append_durable(
                    session_id=session_id,
                    event_type=event.event_type,
                    event_data=event.event_data,
                    triggered_by=event.triggered_by,
                    idempotency_key=event.idempotency_key,
                )
                if not created:
                    replay = self._replay(row, logged)
                    if replay is not None:
                        logger.info(
                            "Duplicate delivery of event %s for session %s",
                            logged.event_id, session_id,
                        )
                        return replay
                    # Logged before but never answered: process it now
                    logger.info(
                        "Retrying unanswered event %s for session %s",
                        logged.event_id, session_id,
                    )

            return await self._advance(db, row, logged)

    # ==================================================================
    # Reads
    # ==================================================================

    async def get_session(self, db: AsyncSession, session_id: str) -> SessionInfo:
        row = await self._repo.get_by_id(db, session_id)
        if row is None:
            raise SessionNotFoundError(session_id)
        return self._to_session_info(row)

    async def list_sessions(
        self,
        db: AsyncSession,
        *,
        employee_id: str,
        limit: int = 20,
        offset: int = 0,
    ) -> list[SessionInfo]:
        """List an employee's sessions, most recent first."""
        rows = await self._repo.list_by_employee(
            db, employee_id, limit=limit, offset=offset,
        )
        return [self._to_session_info(r) for r in rows]

    async def list_events(self, db: AsyncSession, session_id: str) -> list[EventInfo]:
        """The session's audit log in arrival order."""
        if await self._repo.get_by_id(db, session_id) is None:
            raise SessionNotFoundError(session_id)
        rows = await self._events.list_by_session(db, session_id)
        return [
            EventInfo(
                event_id=r.event_id,
                session_id=r.session_id,
                event_type=r.event_type,
                event_data=r.event_data or {},
                triggered_by=r.triggered_by,
                idempotency_key=r.idempotency_key,
                created_at=r.created_at,
            )
            for r in rows
        ]

    async def find_stale_sessions(
        self,
        db: AsyncSession,
        *,
        status: SessionStatus | str,
        older_than_hours: float | None = None,
    ) -> list[StaleSession]:
        """Sessions idle in ``status`` past the threshold, oldest first.

        ``days_inactive`` counts from the last employee activity, which
        reminder steps do not refresh.
        """
        if older_than_hours is None:
            older_than_hours = self._settings.stale_after_hours
        rows = await self._repo.find_stale(
            db, status=SessionStatus(status), older_than_hours=older_than_hours,
        )
        now = _utcnow()
        stale = []
        for row in rows:
            last_activity = row.last_activity_at or row.updated_at
            idle_hours = (now - last_activity).total_seconds() / 3600
            stale.append(StaleSession(
                session_id=row.session_id,
                status=SessionStatus(row.status).value,
                updated_at=row.updated_at,
                last_activity_at=last_activity,
                days_inactive=math.floor(idle_hours / 24),
            ))
        return stale

    # ==================================================================
    # Internal: the step itself
    # ==================================================================

    async def _advance(
        self,
        db: AsyncSession,
        row: RenewalSession,
        logged: RenewalEvent | None = None,
    ) -> StepOutcome:
        """Run oracle + dispatcher for a locked session and persist the result."""
        now = _utcnow()
        current = SessionStatus(row.status)
        history = list(row.conversation_history or [])
        metadata = dict(row.session_metadata or {})

        event_type: EventType | None = None
        event_data: dict[str, Any] = {}
        user_turn: ConversationTurn | None = None
        confirmation_number = row.confirmation_number
        submitted_at = row.submitted_at
        submitted_by = row.submitted_by

        if logged is not None:
            event_type = EventType(logged.event_type)
            event_data = dict(logged.event_data or {})
            user_turn = ConversationTurn(
                role="user",
                content=format_event_message(event_type, event_data),
                timestamp=now,
                event_id=logged.event_id,
            )
            self._remember_upload(metadata, event_type, event_data, logged, now)
            if event_type == EventType.PORTAL_SUBMITTED:
                confirmation_number = (
                    _pick(event_data, "confirmationNumber", "confirmation_number")
                    or confirmation_number
                )
                submitted_at = now
                submitted_by = logged.triggered_by

        # --- Ancillary context ---
        employee = await self._directory.get_employee(row.employee_id)
        if employee is None:
            employee = EmployeeProfile(employee_id=row.employee_id)
        license_record = None
        if row.license_id:
            license_record = await self._directory.get_license(row.license_id)
        requirements = self._requirements.get(
            license_record.state if license_record else None
        )

        window = self._settings.history_window
        recent = history[-window:] if window > 0 else []
        context = SessionContext(
            session=SessionSnapshot(
                session_id=row.session_id,
                employee_id=row.employee_id,
                license_id=row.license_id,
                status=current.value,
                current_step=row.current_step,
                completed_steps=list(row.completed_steps or []),
                pending_actions=list(row.pending_actions or []),
                has_submission_package=row.submission_package is not None,
                metadata=metadata,
            ),
            employee=employee,
            license=license_record,
            requirements=requirements,
            history=[ConversationTurn.model_validate(t) for t in recent],
            history_total=len(history),
            event=(
                EventPayload(
                    event_id=logged.event_id,
                    type=event_type.value,
                    data=event_data,
                    triggered_by=logged.triggered_by,
                    timestamp=logged.created_at,
                )
                if logged is not None else None
            ),
            valid_statuses=[s.value for s in SessionStatus],
            action_types=self._dispatcher.action_types,
        )

        # --- Decide ---
        decision, next_status = await self._decide(row.session_id, current, context)

        # --- Act ---
        ctx = ActionContext(
            session_id=row.session_id,
            employee_id=row.employee_id,
            license_id=row.license_id,
            employee=employee,
            license=license_record,
            requirements=requirements,
            metadata=metadata,
            submission_package=(
                dict(row.submission_package) if row.submission_package else None
            ),
            confirmation_number=confirmation_number,
            submitted_at=submitted_at,
        )
        results = await self._dispatcher.dispatch(decision.actions, ctx)

        # --- Persist ---
        final_status = SessionStatus.COMPLETED if ctx.completed else next_status
        pending = self._next_pending(row, decision, event_type, ctx.requested)
        if final_status in CLOSED_STATUSES:
            pending = []

        completed_steps = list(row.completed_steps or [])
        if (
            row.current_step
            and decision.next_step != row.current_step
            and row.current_step not in completed_steps
        ):
            completed_steps.append(row.current_step)

        assistant_turn = ConversationTurn(
            role="assistant",
            content=decision.response,
            timestamp=_utcnow(),
            tool_calls=[
                ToolCall(
                    name=action.type,
                    args=action.data,
                    result=result.model_dump(mode="json", exclude={"type"}),
                )
                for action, result in zip(decision.actions, results)
            ] or None,
            event_id=logged.event_id if logged is not None else None,
        )
        if user_turn is not None:
            history.append(_dump_turn(user_turn))
        history.append(_dump_turn(assistant_turn))

        changes: dict[str, Any] = {
            "status": final_status.value,
            "current_step": decision.next_step,
            "completed_steps": completed_steps,
            "pending_actions": pending,
            "conversation_history": history,
            "session_metadata": ctx.metadata,
            "confirmation_number": confirmation_number,
            "submitted_at": submitted_at,
            "submitted_by": submitted_by,
        }
        if ctx.submission_package != row.submission_package:
            changes["submission_package"] = ctx.submission_package
        if event_type is not None and event_type != EventType.TIMEOUT_REMINDER:
            changes["last_activity_at"] = now

        await self._repo.update_session(db, row, **changes)
        await self._log_lifecycle(db, row.session_id, current, final_status, logged)

        return StepOutcome(
            session_id=row.session_id,
            event_id=logged.event_id if logged is not None else None,
            event_type=event_type.value if event_type is not None else None,
            response=decision.response,
            next_status=final_status.value,
            next_step=decision.next_step,
            actions=decision.actions,
            action_results=results,
        )

    async def _decide(
        self,
        session_id: str,
        current: SessionStatus,
        context: SessionContext,
    ) -> tuple[Decision, SessionStatus]:
        """Call the oracle with a timeout and validate what it returns."""
        try:
            decision = await asyncio.wait_for(
                self._oracle.decide(context),
                timeout=self._settings.oracle_timeout_seconds,
            )
        except OracleFailureError as exc:
            logger.error("Decision oracle failed for session %s: %s", session_id, exc)
            raise
        except asyncio.TimeoutError as exc:
            logger.error("Decision oracle timed out for session %s", session_id)
            raise OracleFailureError("Decision oracle timed out") from exc
        except Exception as exc:
            logger.exception("Decision oracle raised for session %s", session_id)
            raise OracleFailureError(f"Decision oracle failed: {exc}") from exc

        if isinstance(decision, dict):
            try:
                decision = Decision.model_validate(decision)
            except ValidationError as exc:
                logger.error("Malformed decision for session %s: %s", session_id, exc)
                raise OracleFailureError(f"Malformed decision: {exc}") from exc

        try:
            next_status = SessionStatus(decision.next_status)
        except ValueError as exc:
            logger.error(
                "Rejected decision for session %s: invalid next status %r",
                session_id, decision.next_status,
            )
            raise OracleFailureError(
                f"Invalid next status: {decision.next_status!r}"
            ) from exc

        if (
            self._settings.strict_transitions
            and next_status not in (current, SessionStatus.ESCALATED)
            and next_status not in STRICT_TRANSITIONS.get(current, frozenset())
        ):
            logger.error(
                "Rejected decision for session %s: %s -> %s not allowed",
                session_id, current.value, next_status.value,
            )
            raise IllegalTransitionError(current.value, next_status.value)

        return decision, next_status

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _load_for_update(self, db: AsyncSession, session_id: str) -> RenewalSession:
        row = await self._repo.get_for_update(db, session_id)
        if row is None:
            raise SessionNotFoundError(session_id)
        return row

    @staticmethod
    def _moved_on(
        row: RenewalSession,
        expected_status: SessionStatus | str | None,
        unchanged_since: datetime | None,
    ) -> bool:
        if expected_status is not None and row.status != SessionStatus(expected_status).value:
            return True
        return unchanged_since is not None and row.updated_at > unchanged_since

    @staticmethod
    def _next_pending(
        row: RenewalSession,
        decision: Decision,
        event_type: EventType | None,
        requested: list[str],
    ) -> list[str]:
        """Outstanding asks after the step.

        The oracle's list replaces the current set when given.  Otherwise
        the current set is kept minus what the event fulfilled.  Asks added
        by ``request_document`` are always included.
        """
        if decision.pending_actions is not None:
            base = list(decision.pending_actions)
        else:
            fulfilled = FULFILLED_BY_EVENT.get(event_type) if event_type else None
            base = [p for p in (row.pending_actions or []) if p != fulfilled]

        pending: list[str] = []
        for ask in [*base, *requested]:
            if ask not in pending:
                pending.append(ask)
        return pending

    @staticmethod
    def _remember_upload(
        metadata: dict[str, Any],
        event_type: EventType,
        event_data: dict[str, Any],
        logged: RenewalEvent,
        now: datetime,
    ) -> None:
        """Keep the reference of an uploaded document in ``metadata.documents``."""
        doc_type = UPLOAD_DOCUMENT_TYPES.get(event_type)
        if doc_type is None:
            return
        reference = _pick(event_data, "reference", "url", "fileUrl", "file_url")
        if reference is None:
            return
        documents = dict(metadata.get("documents") or {})
        documents[doc_type] = {
            "reference": reference,
            "event_id": logged.event_id,
            "uploaded_at": now.isoformat(),
        }
        metadata["documents"] = documents

    async def _log_lifecycle(
        self,
        db: AsyncSession,
        session_id: str,
        previous: SessionStatus,
        final: SessionStatus,
        logged: RenewalEvent | None,
    ) -> None:
        """Audit entries for closing transitions chosen during a step."""
        if final == previous:
            return
        event_data = {
            "previous_status": previous.value,
            "event_id": logged.event_id if logged is not None else None,
        }
        if final == SessionStatus.COMPLETED:
            event_type = EventType.WORKFLOW_COMPLETED
            logger.info("Session %s completed", session_id)
        elif final == SessionStatus.ESCALATED:
            event_type = EventType.WORKFLOW_ESCALATED
            event_data["reason"] = "Escalated by decision"
            logger.warning("Session %s escalated by decision", session_id)
        elif final == SessionStatus.CANCELLED:
            event_type = EventType.WORKFLOW_CANCELLED
            logger.info("Session %s cancelled by decision", session_id)
        else:
            return
        await self._events.append(
            db, session_id=session_id, event_type=event_type, event_data=event_data,
        )

    def _replay(self, row: RenewalSession, logged: RenewalEvent) -> StepOutcome | None:
        """The recorded answer to an already processed event, if any."""
        for turn in reversed(row.conversation_history or []):
            if turn.get("role") == "assistant" and turn.get("event_id") == logged.event_id:
                return StepOutcome(
                    session_id=row.session_id,
                    event_id=logged.event_id,
                    event_type=logged.event_type,
                    response=turn.get("content", ""),
                    next_status=SessionStatus(row.status).value,
                    next_step=row.current_step,
                    actions=[
                        ActionSpec(type=call["name"], data=call.get("args") or {})
                        for call in turn.get("tool_calls") or []
                    ],
                    action_results=[
                        ActionResult(type=call["name"], **call["result"])
                        for call in turn.get("tool_calls") or []
                        if call.get("result")
                    ],
                    duplicate=True,
                )
        return None

    def _resumed(self, row: RenewalSession) -> StartOutcome:
        logger.info(
            "Resuming session %s for employee %s", row.session_id, row.employee_id,
        )
        return StartOutcome(
            session_id=row.session_id,
            status="resumed",
            message="Resumed existing renewal session",
            current_status=SessionStatus(row.status).value,
            current_step=row.current_step,
        )

    @staticmethod
    def _to_session_info(row: RenewalSession) -> SessionInfo:
        return SessionInfo(
            session_id=row.session_id,
            employee_id=row.employee_id,
            license_id=row.license_id,
            status=SessionStatus(row.status).value,
            current_step=row.current_step,
            completed_steps=list(row.completed_steps or []),
            pending_actions=list(row.pending_actions or []),
            conversation_history=list(row.conversation_history or []),
            submission_package=row.submission_package,
            confirmation_number=row.confirmation_number,
            submitted_at=row.submitted_at,
            metadata=dict(row.session_metadata or {}),
            created_at=row.created_at,
            updated_at=row.updated_at,
            completed_at=row.completed_at,
        )


def _dump_turn(turn: ConversationTurn) -> dict[str, Any]:
    return turn.model_dump(mode="json", exclude_none=True)
