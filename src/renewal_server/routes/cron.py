"""Cron endpoints — the reminder/escalation sweep.

Protected by ``CRON_SECRET``: the scheduler calling this endpoint must send
``Authorization: Bearer <CRON_SECRET>``.
"""

from fastapi import APIRouter, Depends

from renewal_workflow.models.outcome import SweepSummary
from renewal_workflow.scheduler import ReminderScheduler

from renewal_server.dependencies import get_scheduler, require_cron_secret

router = APIRouter(prefix="/cron", tags=["cron"])


@router.get("/renewal-reminders", dependencies=[Depends(require_cron_secret)])
async def renewal_reminders(
    scheduler: ReminderScheduler = Depends(get_scheduler),
) -> SweepSummary:
    """Remind idle employees and escalate sessions idle for too long.

    Each session is processed in its own transaction; per-session failures
    are listed in ``errors`` and do not fail the request.
    """
    return await scheduler.sweep()
