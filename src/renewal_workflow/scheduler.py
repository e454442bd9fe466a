"""ReminderScheduler — periodic sweep over idle sessions.

For every waiting status, sessions idle past ``stale_after_hours`` are
either escalated (idle more than ``escalate_after_days``, without asking
the oracle) or nudged through a normal workflow step carrying a
``timeout_reminder`` event.

Each session is handled in its own transaction, so one failure is logged,
recorded in the summary and does not stop the sweep.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from renewal_db.models.enums import EventType, SessionStatus

from renewal_workflow.config import WorkflowSettings
from renewal_workflow.models.outcome import InboundEvent, StaleSession, SweepSummary
from renewal_workflow.workflow import RenewalWorkflow

logger = logging.getLogger(__name__)


class ReminderScheduler:
    """Runs reminder/escalation sweeps against a :class:`RenewalWorkflow`.

    Args:
        workflow: the engine used for reminder steps and escalations
        session_factory: opens one database session per unit of work
        settings: thresholds and waiting statuses; defaults to the
            workflow's own settings
    """

    def __init__(
        self,
        workflow: RenewalWorkflow,
        session_factory: async_sessionmaker[AsyncSession],
        settings: WorkflowSettings | None = None,
    ) -> None:
        self._workflow = workflow
        self._session_factory = session_factory
        self._settings = settings or workflow.settings

    async def sweep(self) -> SweepSummary:
        """Process every stale session once and return the totals."""
        summary = SweepSummary()
        for status in self._settings.waiting_statuses:
            status = SessionStatus(status)
            async with self._session_factory() as db:
                stale = await self._workflow.find_stale_sessions(
                    db,
                    status=status,
                    older_than_hours=self._settings.stale_after_hours,
                )
            summary.checked += len(stale)

            for candidate in stale:
                try:
                    await self._process(candidate, status, summary)
                except Exception as exc:
                    logger.exception("Error processing session %s", candidate.session_id)
                    summary.errors.append(f"{candidate.session_id}: {exc}")

        summary.swept_at = datetime.now(timezone.utc)
        logger.info(
            "Reminder sweep done: checked=%d reminded=%d escalated=%d skipped=%d errors=%d",
            summary.checked, summary.reminded, summary.escalated, summary.skipped,
            len(summary.errors),
        )
        return summary

    async def _process(
        self,
        candidate: StaleSession,
        status: SessionStatus,
        summary: SweepSummary,
    ) -> None:
        days = candidate.days_inactive
        async with self._session_factory() as db:
            if days > self._settings.escalate_after_days:
                info = await self._workflow.escalate_session(
                    db,
                    candidate.session_id,
                    reason=f"No activity for more than {self._settings.escalate_after_days} days",
                    days_inactive=days,
                    triggered_by="cron",
                    expected_status=status,
                    unchanged_since=candidate.updated_at,
                )
                await db.commit()
                if info is None:
                    summary.skipped += 1
                else:
                    summary.escalated += 1
                return

            outcome = await self._workflow.run_step(
                db,
                candidate.session_id,
                InboundEvent(
                    event_type=EventType.TIMEOUT_REMINDER,
                    event_data={"daysSinceUpdate": days},
                    triggered_by="cron",
                ),
                expected_status=status,
                unchanged_since=candidate.updated_at,
            )
            await db.commit()
            if outcome is None:
                summary.skipped += 1
            else:
                summary.reminded += 1
