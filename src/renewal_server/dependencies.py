"""FastAPI dependency injection — provides DB sessions, the workflow, and cron auth.

Each request that touches the database gets a fresh ``AsyncSession`` via
``get_db()``.  The session is committed on success and rolled back on error,
matching the SDK convention where workflow/repository call ``flush()`` but
never ``commit()``.
"""

import hmac
from typing import AsyncGenerator

from fastapi import Header, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from renewal_db.engine import get_session_factory
from renewal_workflow.scheduler import ReminderScheduler
from renewal_workflow.workflow import RenewalWorkflow


# ------------------------------------------------------------------
# Database session: transaction boundary lives here
# ------------------------------------------------------------------

async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield an async DB session; commit on success, rollback on error.

    The SDK's repository methods call ``flush()`` but never ``commit()``,
    so this dependency is where transactions are finalised.  Mutating
    routes also commit explicitly before building their response, so a
    failed commit is reported instead of a step that never happened.
    """
    factory = get_session_factory()
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


# ------------------------------------------------------------------
# Workflow & scheduler: stashed on app.state during lifespan
# ------------------------------------------------------------------

def get_workflow(request: Request) -> RenewalWorkflow:
    """Return the workflow singleton from ``app.state``."""
    return request.app.state.workflow


def get_scheduler(request: Request) -> ReminderScheduler:
    """Return the reminder scheduler singleton from ``app.state``."""
    return request.app.state.scheduler


# ------------------------------------------------------------------
# Cron auth: shared secret in the Authorization header
# ------------------------------------------------------------------

async def require_cron_secret(
    request: Request,
    authorization: str | None = Header(None),
) -> None:
    """Validate ``Authorization: Bearer <CRON_SECRET>``.

    Returns 403 if ``CRON_SECRET`` is not configured (endpoint disabled),
    401 if the header is missing or wrong.
    """
    expected: str | None = request.app.state.settings.cron_secret
    if not expected:
        raise HTTPException(
            status_code=403,
            detail="Cron endpoints are disabled (CRON_SECRET not configured)",
        )
    if not authorization:
        raise HTTPException(status_code=401, detail="Authorization header is required")
    # Constant-time comparison to prevent timing side-channels.
    if not hmac.compare_digest(authorization, f"Bearer {expected}"):
        raise HTTPException(status_code=401, detail="Unauthorized")
