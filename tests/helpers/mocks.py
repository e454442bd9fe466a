"""In-memory stand-ins for the database layer and the collaborators.

Mock strategy:
  - MockSessionRow / MockEventRow have the same attributes as the ORM
    models but no SQLAlchemy dependency.  The workflow reads and writes
    attributes directly.
  - MockRepository and MockEventRepository implement every async method the
    workflow calls, with the same side effects as the real repositories
    (including the one-open-session-per-employee rule).
  - AsyncMock stands in for AsyncSession (db); flush()/commit() are no-ops.
  - ScriptedOracle replays queued decisions and records every context it
    was given.
"""

import asyncio
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Callable
from unittest.mock import AsyncMock

from renewal_db.models.enums import CLOSED_STATUSES, EventType, SessionStatus
from renewal_workflow.errors import OracleFailureError
from renewal_workflow.interfaces import (
    DecisionOracle,
    DocumentValidator,
    EmployeeDirectory,
    HRSync,
    Messenger,
)
from renewal_workflow.models.context import (
    EmployeeProfile,
    LicenseRecord,
    SessionContext,
)
from renewal_workflow.models.decision import Decision
from renewal_workflow.models.results import (
    DeliveryResult,
    SyncResult,
    ValidationResult,
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def days_ago(days: float) -> datetime:
    return utcnow() - timedelta(days=days)


# =====================================================================
# Database layer
# =====================================================================


@dataclass
class MockSessionRow:
    """In-memory stand-in for the RenewalSession ORM model."""

    employee_id: str = "E1"
    session_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    license_id: str | None = None
    status: str = SessionStatus.ACTIVE.value
    current_step: str | None = None
    completed_steps: list[str] = field(default_factory=list)
    pending_actions: list[str] = field(default_factory=list)
    conversation_history: list[dict] = field(default_factory=list)
    submission_package: dict | None = None
    confirmation_number: str | None = None
    submitted_at: datetime | None = None
    submitted_by: str | None = None
    session_metadata: dict = field(default_factory=dict)
    version: int = 0
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
    last_activity_at: datetime = field(default_factory=utcnow)
    completed_at: datetime | None = None


@dataclass
class MockEventRow:
    """In-memory stand-in for the RenewalEvent ORM model."""

    session_id: str
    event_type: str
    event_data: dict = field(default_factory=dict)
    triggered_by: str = "system"
    idempotency_key: str | None = None
    event_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=utcnow)


_UPDATABLE = {
    "license_id", "status", "current_step", "completed_steps",
    "pending_actions", "conversation_history", "submission_package",
    "session_metadata", "confirmation_number", "submitted_at",
    "submitted_by", "last_activity_at",
}


class MockRepository:
    """In-memory SessionRepository replacement keyed by session_id."""

    def __init__(self):
        self._sessions: dict[str, MockSessionRow] = {}
        self.update_count = 0

    def add(self, row: MockSessionRow) -> MockSessionRow:
        self._sessions[row.session_id] = row
        return row

    def _is_open(self, row: MockSessionRow) -> bool:
        return SessionStatus(row.status) not in CLOSED_STATUSES

    async def create_session(
        self, db, *, employee_id, license_id=None, metadata=None,
        conversation_history=None,
    ):
        # Mirrors the partial unique index ux_active_employee_session
        if any(
            r.employee_id == employee_id and self._is_open(r)
            for r in self._sessions.values()
        ):
            return None
        row = MockSessionRow(
            employee_id=employee_id,
            license_id=license_id,
            session_metadata=dict(metadata or {}),
            conversation_history=list(conversation_history or []),
        )
        return self.add(row)

    async def get_by_id(self, db, session_id):
        return self._sessions.get(session_id)

    async def get_for_update(self, db, session_id):
        return self._sessions.get(session_id)

    async def lock_employee(self, db, employee_id):
        return None

    async def get_active_for_employee(self, db, employee_id):
        rows = [
            r for r in self._sessions.values()
            if r.employee_id == employee_id and self._is_open(r)
        ]
        rows.sort(key=lambda r: r.updated_at, reverse=True)
        return rows[0] if rows else None

    async def list_by_employee(self, db, employee_id, *, limit=20, offset=0):
        rows = [r for r in self._sessions.values() if r.employee_id == employee_id]
        rows.sort(key=lambda r: r.created_at, reverse=True)
        return rows[offset:offset + limit]

    async def find_stale(self, db, *, status, older_than_hours):
        threshold = utcnow() - timedelta(hours=older_than_hours)
        rows = [
            r for r in self._sessions.values()
            if r.status == SessionStatus(status).value and r.updated_at < threshold
        ]
        rows.sort(key=lambda r: r.updated_at)
        return rows

    async def update_session(self, db, session, **changes):
        unknown = set(changes) - _UPDATABLE
        if unknown:
            raise ValueError(f"Cannot update session fields: {sorted(unknown)}")
        now = utcnow()
        for name, value in changes.items():
            if isinstance(value, list):
                value = list(value)
            elif isinstance(value, dict):
                value = dict(value)
            setattr(session, name, value)
        if "status" in changes and SessionStatus(changes["status"]) in CLOSED_STATUSES:
            session.completed_at = now
        session.updated_at = now
        session.version += 1
        self.update_count += 1
        return session


class MockEventRepository:
    """In-memory EventRepository replacement.

    ``fail_durable`` makes append_durable raise, to simulate the event log
    being unavailable.
    """

    def __init__(self):
        self.events: list[MockEventRow] = []
        self.fail_durable = False

    def _make(self, session_id, event_type, event_data, triggered_by, idempotency_key):
        row = MockEventRow(
            session_id=session_id,
            event_type=EventType(event_type).value,
            event_data=dict(event_data or {}),
            triggered_by=triggered_by,
            idempotency_key=idempotency_key,
        )
        self.events.append(row)
        return row

    async def append(
        self, db, *, session_id, event_type, event_data=None,
        triggered_by="system", idempotency_key=None,
    ):
        return self._make(session_id, event_type, event_data, triggered_by, idempotency_key)

    async def append_durable(
        self, *, session_id, event_type, event_data=None,
        triggered_by="system", idempotency_key=None,
    ):
        if self.fail_durable:
            raise RuntimeError("event log unavailable")
        if idempotency_key is not None:
            existing = await self.get_by_idempotency_key(None, session_id, idempotency_key)
            if existing is not None:
                return existing, False
        row = self._make(session_id, event_type, event_data, triggered_by, idempotency_key)
        return row, True

    async def get_by_idempotency_key(self, db, session_id, idempotency_key):
        for row in self.events:
            if row.session_id == session_id and row.idempotency_key == idempotency_key:
                return row
        return None

    async def list_by_session(self, db, session_id):
        return [r for r in self.events if r.session_id == session_id]

    def types_for(self, session_id) -> list[str]:
        return [r.event_type for r in self.events if r.session_id == session_id]


def mock_session_factory(calls: list | None = None) -> Callable:
    """A stand-in for async_sessionmaker: each call yields a fresh AsyncMock."""

    @asynccontextmanager
    async def factory():
        db = AsyncMock()
        if calls is not None:
            calls.append(db)
        yield db

    return factory


# =====================================================================
# Collaborators
# =====================================================================


class ScriptedOracle(DecisionOracle):
    """Returns queued decisions in order; repeats the last one when empty.

    Entries may be Decision objects, dicts (camelCase or snake_case), or
    exceptions to raise.
    """

    def __init__(self, *decisions: Any, delay: float = 0.0):
        self._queue = list(decisions)
        self._last: Any = None
        self._delay = delay
        self.contexts: list[SessionContext] = []

    def push(self, *decisions: Any) -> None:
        self._queue.extend(decisions)

    @property
    def calls(self) -> int:
        return len(self.contexts)

    async def decide(self, context: SessionContext) -> Decision:
        self.contexts.append(context)
        # Yield so concurrent callers genuinely interleave
        await asyncio.sleep(self._delay)
        item = self._queue.pop(0) if self._queue else self._last
        self._last = item
        if item is None:
            raise OracleFailureError("no scripted decision")
        if isinstance(item, BaseException):
            raise item
        if isinstance(item, dict):
            return Decision.model_validate(item)
        return item


class SlowOracle(DecisionOracle):
    async def decide(self, context: SessionContext) -> Decision:
        await asyncio.sleep(10)
        return Decision(next_status="active")


class RecordingValidator(DocumentValidator):
    def __init__(self, result: ValidationResult | None = None):
        self.result = result or ValidationResult(valid=True, extracted_fields={"name": "Jane Doe"})
        self.calls: list[tuple[str, str | None]] = []

    async def validate(self, document_type: str, reference: str | None) -> ValidationResult:
        self.calls.append((document_type, reference))
        return self.result


class RecordingMessenger(Messenger):
    def __init__(self, *, fail: bool = False, hang: bool = False):
        self.fail = fail
        self.hang = hang
        self.sms: list[tuple[str, str]] = []
        self.emails: list[dict] = []

    async def send_sms(self, to: str, body: str) -> DeliveryResult:
        if self.hang:
            await asyncio.sleep(10)
        self.sms.append((to, body))
        if self.fail:
            return DeliveryResult(success=False, error="carrier rejected")
        return DeliveryResult(success=True, message_id=f"SM{len(self.sms)}")

    async def send_email(self, to, subject, body, *, html=None, attachments=None) -> DeliveryResult:
        self.emails.append({"to": to, "subject": subject, "body": body, "html": html})
        if self.fail:
            return DeliveryResult(success=False, error="mailbox unavailable")
        return DeliveryResult(success=True, message_id=f"em-{len(self.emails)}")


class RecordingHRSync(HRSync):
    def __init__(self, *, error: Exception | None = None):
        self.error = error
        self.calls: list[tuple[str, dict]] = []

    async def update_record(self, subject_ref: str, fields: dict) -> SyncResult:
        self.calls.append((subject_ref, fields))
        if self.error is not None:
            raise self.error
        return SyncResult(success=True)


class StaticDirectory(EmployeeDirectory):
    def __init__(self, employees=None, licenses=None):
        self.employees: dict[str, EmployeeProfile] = dict(employees or {})
        self.licenses: dict[str, LicenseRecord] = dict(licenses or {})

    async def get_employee(self, employee_id: str) -> EmployeeProfile | None:
        return self.employees.get(employee_id)

    async def get_license(self, license_id: str) -> LicenseRecord | None:
        return self.licenses.get(license_id)


# =====================================================================
# Canned decisions
# =====================================================================

REQUEST_PHOTO = {
    "response": "Hi! Please send a photo of your current license.",
    "nextStatus": "awaiting_photo",
    "nextStep": "Request license photo",
    "actions": [{"type": "request_document", "data": {"documentType": "license_photo"}}],
}

VALIDATE_PHOTO = {
    "response": "Thanks, your photo looks good.",
    "nextStatus": "photo_validated",
    "nextStep": "Validate license photo",
    "actions": [{"type": "validate_document", "data": {"documentType": "license_photo"}}],
}

REQUEST_TRAINING = {
    "response": "Next, please upload your training certificate.",
    "nextStatus": "awaiting_training",
    "nextStep": "Request training certificate",
    "actions": [
        {"type": "request_document", "data": {"documentType": "training_certificate"}},
    ],
}

COMPLETE = {
    "response": "All done, your renewal is complete.",
    "nextStatus": "portal_submitted",
    "nextStep": "Complete",
    "actions": [{"type": "complete_workflow", "data": {}}],
}
