"""RenewalSession ORM model — one row per employee renewal workflow.

The whole aggregate lives in a single row: conversation history, metadata
and the submission package are JSONB columns so the workflow engine can
load, decide and persist a step without touching other tables (the audit
log in ``renewal_events`` is the only exception).
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Index, Integer, String, Text, text
from sqlalchemy.dialects.postgresql import ARRAY, JSONB, TIMESTAMP
from sqlalchemy.orm import Mapped, mapped_column

from renewal_db.models.base import Base
from renewal_db.models.enums import SessionStatus


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RenewalSession(Base):
    """One row per renewal workflow.

    An employee may accumulate many sessions over the years but at most one
    that is not closed (see ``ux_active_employee_session``).
    """

    __tablename__ = "renewal_sessions"

    # --- Identity ---
    # Opaque identifier handed to callers; generated here, never reused.
    session_id: Mapped[str] = mapped_column(
        Text,
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )
    employee_id: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    # Unknown until the employee tells us which credential is being renewed
    license_id: Mapped[str | None] = mapped_column(Text, nullable=True)

    # --- Workflow state ---
    status: Mapped[SessionStatus] = mapped_column(
        String(40),
        nullable=False,
        default=SessionStatus.ACTIVE,
    )
    # Advisory label chosen by the decision oracle, e.g. "Request license photo"
    current_step: Mapped[str | None] = mapped_column(Text, nullable=True)
    completed_steps: Mapped[list[str]] = mapped_column(
        ARRAY(Text),
        nullable=False,
        server_default=text("'{}'::text[]"),
        default=list,
    )
    # Outstanding asks on the employee, e.g. "upload_license_photo"
    pending_actions: Mapped[list[str]] = mapped_column(
        ARRAY(Text),
        nullable=False,
        server_default=text("'{}'::text[]"),
        default=list,
    )

    # --- Conversation ---
    # [{"role": "user"|"assistant", "content": "...", "timestamp": "ISO8601",
    #   "tool_calls": [...], "event_id": "..."}]
    conversation_history: Mapped[list] = mapped_column(
        JSONB,
        nullable=False,
        server_default=text("'[]'::jsonb"),
        default=list,
    )

    # --- Submission ---
    # Written once by generate_submission_package; only replaced on an
    # explicit regenerate request.
    submission_package: Mapped[dict | None] = mapped_column(JSONB, nullable=True)
    confirmation_number: Mapped[str | None] = mapped_column(Text, nullable=True)
    submitted_at: Mapped[datetime | None] = mapped_column(
        TIMESTAMP(timezone=True), nullable=True
    )
    submitted_by: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Free-form caller context plus orchestrator bookkeeping
    # ("documents", "validations", "escalation_reason", ...).
    # ``metadata`` is reserved on declarative classes, hence the attribute name.
    session_metadata: Mapped[dict] = mapped_column(
        "metadata",
        JSONB,
        nullable=False,
        server_default=text("'{}'::jsonb"),
        default=dict,
    )

    # Bumped on every UPDATE; a concurrent writer holding a stale copy gets
    # StaleDataError instead of silently overwriting history.
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # --- Timestamps ---
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=_utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
    )
    # Last time the employee (or a supervisor) did something.  Reminder
    # steps touch updated_at but not this, so escalation still happens.
    last_activity_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=_utcnow,
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        TIMESTAMP(timezone=True), nullable=True
    )

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        # At most one session per employee that is not closed.
        Index(
            "ux_active_employee_session",
            "employee_id",
            unique=True,
            postgresql_where=text(
                "status NOT IN ('completed', 'failed', 'cancelled')"
            ),
        ),
        # Feed for the reminder sweep: WHERE status = ? AND updated_at < ?
        Index("ix_status_updated_at", "status", "updated_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<RenewalSession(session_id={self.session_id!r}, "
            f"employee={self.employee_id!r}, status={self.status!r})>"
        )
