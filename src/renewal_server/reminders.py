"""Reminder sweep CLI — ``renewal-reminders``.

Runs one reminder/escalation sweep directly against the database, for
deployments that schedule it with cron instead of calling the HTTP
endpoint.

Examples::

    # Sweep with thresholds from RENEWAL_* env vars (72h stale, 7 days escalate)
    uv run renewal-reminders

    # Escalate after 5 idle days instead of 7
    uv run renewal-reminders --escalate-after-days 5

    # Only look at sessions waiting for a photo
    uv run renewal-reminders --status awaiting_photo
"""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import logging
import sys

from renewal_db.models.enums import SessionStatus
from renewal_workflow.models.outcome import SweepSummary

logger = logging.getLogger(__name__)


async def run_sweep(
    *,
    stale_after_hours: float | None = None,
    escalate_after_days: int | None = None,
    statuses: list[str] | None = None,
) -> SweepSummary:
    """Build the workflow from the environment and run one sweep.

    Opens its own database sessions and disposes the engine afterwards.
    Safe to call from a CLI entry point or a scheduled task.
    """
    # Lazy imports to avoid loading DB machinery at module import time
    from renewal_db.engine import (
        dispose_engine,
        get_event_session_factory,
        get_session_factory,
    )
    from renewal_workflow.scheduler import ReminderScheduler

    from renewal_server.components import build_workflow
    from renewal_server.config import load_settings

    settings = load_settings()
    overrides: dict = {}
    if stale_after_hours is not None:
        overrides["stale_after_hours"] = stale_after_hours
    if escalate_after_days is not None:
        overrides["escalate_after_days"] = escalate_after_days
    if statuses:
        overrides["waiting_statuses"] = tuple(SessionStatus(s) for s in statuses)
    workflow_settings = dataclasses.replace(settings.workflow, **overrides)
    settings = dataclasses.replace(settings, workflow=workflow_settings)

    factory = get_session_factory()
    try:
        workflow = build_workflow(settings, get_event_session_factory())
        scheduler = ReminderScheduler(workflow, factory, workflow_settings)
        return await scheduler.sweep()
    finally:
        await dispose_engine()


def cli() -> None:
    """Console-script entry point: ``renewal-reminders``.

    Exits with status 1 when any session failed to process.
    """
    parser = argparse.ArgumentParser(
        prog="renewal-reminders",
        description="Remind idle renewal sessions and escalate stalled ones.",
    )
    parser.add_argument(
        "--stale-after-hours",
        type=float,
        default=None,
        help="Idle hours before a session is considered stale (default: $RENEWAL_STALE_AFTER_HOURS or 72)",
    )
    parser.add_argument(
        "--escalate-after-days",
        type=int,
        default=None,
        help="Escalate sessions idle for more than this many days (default: $RENEWAL_ESCALATE_AFTER_DAYS or 7)",
    )
    parser.add_argument(
        "--status",
        action="append",
        default=None,
        choices=[s.value for s in SessionStatus],
        help="Only sweep sessions in this status (repeatable)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (default: INFO)",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    summary = asyncio.run(
        run_sweep(
            stale_after_hours=args.stale_after_hours,
            escalate_after_days=args.escalate_after_days,
            statuses=args.status,
        )
    )

    print(
        f"Checked: {summary.checked}, reminded: {summary.reminded}, "
        f"escalated: {summary.escalated}, skipped: {summary.skipped}, "
        f"errors: {len(summary.errors)}"
    )
    for error in summary.errors:
        print(f"  {error}", file=sys.stderr)
    sys.exit(1 if summary.errors else 0)
