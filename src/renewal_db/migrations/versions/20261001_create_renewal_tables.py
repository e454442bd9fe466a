"""Create renewal_sessions and renewal_events.

``renewal_sessions`` holds the whole workflow aggregate in one row.  The
partial unique index ``ux_active_employee_session`` enforces "at most one
session per employee that is not completed, failed or cancelled".

``renewal_events`` is the append-only audit log.  Inbound events carry an
optional idempotency key that is unique per session.

Revision ID: 20261001_initial
Revises:
Create Date: 2026-10-01
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import ARRAY, JSONB, TIMESTAMP

# revision identifiers, used by Alembic.
revision = "20261001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "renewal_sessions",
        sa.Column("session_id", sa.Text(), primary_key=True),
        sa.Column("employee_id", sa.Text(), nullable=False),
        sa.Column("license_id", sa.Text(), nullable=True),
        sa.Column("status", sa.String(40), nullable=False),
        sa.Column("current_step", sa.Text(), nullable=True),
        sa.Column(
            "completed_steps", ARRAY(sa.Text()), nullable=False,
            server_default=sa.text("'{}'::text[]"),
        ),
        sa.Column(
            "pending_actions", ARRAY(sa.Text()), nullable=False,
            server_default=sa.text("'{}'::text[]"),
        ),
        sa.Column(
            "conversation_history", JSONB(), nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
        sa.Column("submission_package", JSONB(), nullable=True),
        sa.Column("confirmation_number", sa.Text(), nullable=True),
        sa.Column("submitted_at", TIMESTAMP(timezone=True), nullable=True),
        sa.Column("submitted_by", sa.Text(), nullable=True),
        sa.Column(
            "metadata", JSONB(), nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column("version", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", TIMESTAMP(timezone=True), nullable=False),
        sa.Column("updated_at", TIMESTAMP(timezone=True), nullable=False),
        sa.Column("last_activity_at", TIMESTAMP(timezone=True), nullable=False),
        sa.Column("completed_at", TIMESTAMP(timezone=True), nullable=True),
    )
    op.create_index(
        "ix_renewal_sessions_employee_id", "renewal_sessions", ["employee_id"],
    )
    op.create_index(
        "ix_status_updated_at", "renewal_sessions", ["status", "updated_at"],
    )
    op.create_index(
        "ux_active_employee_session",
        "renewal_sessions",
        ["employee_id"],
        unique=True,
        postgresql_where=sa.text(
            "status NOT IN ('completed', 'failed', 'cancelled')"
        ),
    )

    op.create_table(
        "renewal_events",
        sa.Column("event_id", sa.Text(), primary_key=True),
        sa.Column(
            "session_id",
            sa.Text(),
            sa.ForeignKey("renewal_sessions.session_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("event_type", sa.String(40), nullable=False),
        sa.Column(
            "event_data", JSONB(), nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column("triggered_by", sa.Text(), nullable=False),
        sa.Column("idempotency_key", sa.Text(), nullable=True),
        sa.Column("created_at", TIMESTAMP(timezone=True), nullable=False),
    )
    op.create_index(
        "ix_events_session_created", "renewal_events", ["session_id", "created_at"],
    )
    op.create_index(
        "ux_events_idempotency_key",
        "renewal_events",
        ["session_id", "idempotency_key"],
        unique=True,
        postgresql_where=sa.text("idempotency_key IS NOT NULL"),
    )


def downgrade() -> None:
    op.drop_index("ux_events_idempotency_key", table_name="renewal_events")
    op.drop_index("ix_events_session_created", table_name="renewal_events")
    op.drop_table("renewal_events")

    op.drop_index("ux_active_employee_session", table_name="renewal_sessions")
    op.drop_index("ix_status_updated_at", table_name="renewal_sessions")
    op.drop_index("ix_renewal_sessions_employee_id", table_name="renewal_sessions")
    op.drop_table("renewal_sessions")
