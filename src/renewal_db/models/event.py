"""RenewalEvent ORM model — the append-only audit log.

Rows are inserted and never updated or deleted.  Inbound events are
written in their own transaction before the workflow step runs, so the log
records what arrived even when the step that followed was rolled back.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import ForeignKey, Index, String, Text, text
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP
from sqlalchemy.orm import Mapped, mapped_column

from renewal_db.models.base import Base


class RenewalEvent(Base):
    """One immutable fact about a renewal session."""

    __tablename__ = "renewal_events"

    event_id: Mapped[str] = mapped_column(
        Text,
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )
    session_id: Mapped[str] = mapped_column(
        Text,
        ForeignKey("renewal_sessions.session_id", ondelete="CASCADE"),
        nullable=False,
    )
    event_type: Mapped[str] = mapped_column(String(40), nullable=False)
    event_data: Mapped[dict] = mapped_column(
        JSONB,
        nullable=False,
        server_default=text("'{}'::jsonb"),
        default=dict,
    )
    # "system", "cron", "agent" or a user identifier
    triggered_by: Mapped[str] = mapped_column(Text, nullable=False, default="system")
    # Caller-supplied key for webhook retries; unique per session when set
    idempotency_key: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        Index("ix_events_session_created", "session_id", "created_at"),
        Index(
            "ux_events_idempotency_key",
            "session_id",
            "idempotency_key",
            unique=True,
            postgresql_where=text("idempotency_key IS NOT NULL"),
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<RenewalEvent(event_id={self.event_id!r}, "
            f"session={self.session_id!r}, type={self.event_type!r})>"
        )
