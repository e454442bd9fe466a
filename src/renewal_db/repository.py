"""Async repositories for renewal sessions and their event log.

Session methods accept an ``AsyncSession`` so the caller controls the
transaction boundary; they call ``flush()`` but never ``commit()``.  The one
exception is :meth:`EventRepository.append_durable`, which commits in its own
short transaction so that an inbound event survives a rolled-back step.

The repositories avoid business-logic validation (that belongs to the
workflow layer) but do take the row and advisory locks that serialise
writers.
"""

from datetime import datetime, timedelta, timezone
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from renewal_db.engine import get_event_session_factory
from renewal_db.models.enums import CLOSED_STATUSES, EventType, SessionStatus
from renewal_db.models.event import RenewalEvent
from renewal_db.models.session import RenewalSession

# Columns the workflow engine may change through update_session().
_UPDATABLE_FIELDS: frozenset[str] = frozenset({
    "license_id",
    "status",
    "current_step",
    "completed_steps",
    "pending_actions",
    "conversation_history",
    "submission_package",
    "session_metadata",
    "confirmation_number",
    "submitted_at",
    "submitted_by",
    "last_activity_at",
})

_CLOSED_VALUES = [s.value for s in CLOSED_STATUSES]


class SessionRepository:
    """Async read/write operations on the ``renewal_sessions`` table."""

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    async def create_session(
        self,
        db: AsyncSession,
        *,
        employee_id: str,
        license_id: str | None = None,
        metadata: dict[str, Any] | None = None,
        conversation_history: list[dict] | None = None,
    ) -> RenewalSession | None:
        """Insert a new ``active`` session and return it.

        Returns ``None`` when the partial unique index reports that the
        employee already has a session that is not closed.  The insert runs
        in a SAVEPOINT so the caller's transaction stays usable.
        """
        now = datetime.now(timezone.utc)
        session = RenewalSession(
            employee_id=employee_id,
            license_id=license_id,
            status=SessionStatus.ACTIVE.value,
            completed_steps=[],
            pending_actions=[],
            conversation_history=list(conversation_history or []),
            session_metadata=dict(metadata or {}),
            created_at=now,
            updated_at=now,
            last_activity_at=now,
        )
        try:
            async with db.begin_nested():
                db.add(session)
                await db.flush()
        except IntegrityError:
            return None
        return session

    # ------------------------------------------------------------------
    # Read: single row
    # ------------------------------------------------------------------

    async def get_by_id(
        self, db: AsyncSession, session_id: str
    ) -> RenewalSession | None:
        """Fetch a session by id without locking it."""
        return await db.get(RenewalSession, session_id)

    async def get_for_update(
        self, db: AsyncSession, session_id: str
    ) -> RenewalSession | None:
        """Fetch a session and hold its row lock until the transaction ends.

        ``FOR NO KEY UPDATE`` rather than ``FOR UPDATE``: it still excludes
        every other writer of the session, but lets the event log insert
        rows referencing this session from a separate connection.
        """
        stmt = (
            select(RenewalSession)
            .where(RenewalSession.session_id == session_id)
            .with_for_update(key_share=True)
            .execution_options(populate_existing=True)
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    async def lock_employee(self, db: AsyncSession, employee_id: str) -> None:
        """Take a transaction-scoped advisory lock on an employee id.

        Serialises "find active session, else create one" across processes.
        """
        await db.execute(
            select(func.pg_advisory_xact_lock(func.hashtext(employee_id)))
        )

    async def get_active_for_employee(
        self, db: AsyncSession, employee_id: str
    ) -> RenewalSession | None:
        """Return the employee's session that is not closed, if any."""
        stmt = (
            select(RenewalSession)
            .where(
                RenewalSession.employee_id == employee_id,
                RenewalSession.status.notin_(_CLOSED_VALUES),
            )
            .order_by(RenewalSession.updated_at.desc())
            .limit(1)
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    # ------------------------------------------------------------------
    # Read: multiple rows
    # ------------------------------------------------------------------

    async def list_by_employee(
        self,
        db: AsyncSession,
        employee_id: str,
        *,
        limit: int = 20,
        offset: int = 0,
    ) -> list[RenewalSession]:
        """List an employee's sessions, most recent first."""
        stmt = (
            select(RenewalSession)
            .where(RenewalSession.employee_id == employee_id)
            .order_by(RenewalSession.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())

    async def find_stale(
        self,
        db: AsyncSession,
        *,
        status: SessionStatus,
        older_than_hours: float,
    ) -> list[RenewalSession]:
        """Sessions in ``status`` not updated for ``older_than_hours``, oldest first."""
        threshold = datetime.now(timezone.utc) - timedelta(hours=older_than_hours)
        stmt = (
            select(RenewalSession)
            .where(
                RenewalSession.status == SessionStatus(status).value,
                RenewalSession.updated_at < threshold,
            )
            .order_by(RenewalSession.updated_at.asc())
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    async def update_session(
        self,
        db: AsyncSession,
        session: RenewalSession,
        **changes: Any,
    ) -> RenewalSession:
        """Apply a partial update to a session the caller holds locked.

        List and dict values are assigned as fresh copies so SQLAlchemy
        detects the mutation of JSONB/ARRAY columns.  Closing statuses also
        stamp ``completed_at``.
        """
        unknown = set(changes) - _UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update session fields: {sorted(unknown)}")

        now = datetime.now(timezone.utc)
        for name, value in changes.items():
            if isinstance(value, list):
                value = list(value)
            elif isinstance(value, dict):
                value = dict(value)
            setattr(session, name, value)

        if "status" in changes and SessionStatus(changes["status"]) in CLOSED_STATUSES:
            session.completed_at = now
        session.updated_at = now
        await db.flush()
        return session


class EventRepository:
    """Append-only access to the ``renewal_events`` table.

    Args:
        session_factory: factory used by :meth:`append_durable` to open its
            own transaction.  Defaults to the process-wide event-log factory.
    """

    def __init__(
        self, session_factory: async_sessionmaker[AsyncSession] | None = None
    ) -> None:
        self._session_factory = session_factory

    # ------------------------------------------------------------------
    # Append
    # ------------------------------------------------------------------

    async def append(
        self,
        db: AsyncSession,
        *,
        session_id: str,
        event_type: EventType | str,
        event_data: dict[str, Any] | None = None,
        triggered_by: str = "system",
        idempotency_key: str | None = None,
    ) -> RenewalEvent:
        """Insert an event inside the caller's transaction.

        Used for lifecycle entries that must commit or roll back together
        with the session change they describe.
        """
        event = RenewalEvent(
            session_id=session_id,
            event_type=EventType(event_type).value,
            event_data=dict(event_data or {}),
            triggered_by=triggered_by,
            idempotency_key=idempotency_key,
            created_at=datetime.now(timezone.utc),
        )
        db.add(event)
        await db.flush()
        return event

    async def append_durable(
        self,
        *,
        session_id: str,
        event_type: EventType | str,
        event_data: dict[str, Any] | None = None,
        triggered_by: str = "system",
        idempotency_key: str | None = None,
    ) -> tuple[RenewalEvent, bool]:
        """Insert and commit an event in a dedicated transaction.

        Returns ``(event, created)``.  When ``idempotency_key`` matches an
        event already logged for the session, that earlier event is returned
        with ``created=False`` and nothing is written.
        """
        factory = self._session_factory or get_event_session_factory()
        async with factory() as db:
            if idempotency_key is not None:
                existing = await self.get_by_idempotency_key(
                    db, session_id, idempotency_key,
                )
                if existing is not None:
                    return existing, False

            event = RenewalEvent(
                session_id=session_id,
                event_type=EventType(event_type).value,
                event_data=dict(event_data or {}),
                triggered_by=triggered_by,
                idempotency_key=idempotency_key,
                created_at=datetime.now(timezone.utc),
            )
            db.add(event)
            try:
                await db.commit()
            except IntegrityError:
                # Lost a race with a concurrent delivery of the same key
                await db.rollback()
                if idempotency_key is None:
                    raise
                existing = await self.get_by_idempotency_key(
                    db, session_id, idempotency_key,
                )
                if existing is None:
                    raise
                return existing, False
            return event, True

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    async def get_by_idempotency_key(
        self, db: AsyncSession, session_id: str, idempotency_key: str
    ) -> RenewalEvent | None:
        """Fetch the event logged for a session under a caller-supplied key."""
        stmt = select(RenewalEvent).where(
            RenewalEvent.session_id == session_id,
            RenewalEvent.idempotency_key == idempotency_key,
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    async def list_by_session(
        self, db: AsyncSession, session_id: str
    ) -> list[RenewalEvent]:
        """All events for a session in arrival order."""
        stmt = (
            select(RenewalEvent)
            .where(RenewalEvent.session_id == session_id)
            .order_by(RenewalEvent.created_at.asc())
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())
