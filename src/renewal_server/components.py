"""Build the workflow and its collaborators from server settings.

Collaborators are named by import path, ``package.module:attribute``.  The
attribute may be a class or any zero-argument factory; it is called once
at startup.  Unset paths fall back to the inert SDK defaults.
"""

from __future__ import annotations

import importlib
import logging
from typing import Any, Callable

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from renewal_db.repository import EventRepository
from renewal_workflow.collaborators import (
    AcceptingValidator,
    EmptyDirectory,
    UnconfiguredHRSync,
    UnconfiguredMessenger,
    UnconfiguredOracle,
)
from renewal_workflow.interfaces import (
    DecisionOracle,
    DocumentValidator,
    EmployeeDirectory,
    HRSync,
    Messenger,
)
from renewal_workflow.requirements import RequirementsStore
from renewal_workflow.workflow import RenewalWorkflow

from renewal_server.config import ServerSettings

logger = logging.getLogger(__name__)


def import_object(path: str) -> Any:
    """Resolve ``"package.module:attribute"`` to the attribute."""
    module_name, sep, attr = path.partition(":")
    if not sep or not module_name or not attr:
        raise ValueError(f"Expected 'module:attribute', got {path!r}")
    module = importlib.import_module(module_name)
    obj = module
    for part in attr.split("."):
        obj = getattr(obj, part)
    return obj


def _build(path: str | None, expected: type, default: Callable[[], Any]) -> Any:
    if path is None:
        instance = default()
    else:
        instance = import_object(path)()
        logger.info("Loaded %s from %s", expected.__name__, path)
    if not isinstance(instance, expected):
        raise TypeError(f"{path} did not produce a {expected.__name__}")
    return instance


def build_workflow(
    settings: ServerSettings,
    event_session_factory: async_sessionmaker[AsyncSession] | None = None,
) -> RenewalWorkflow:
    """Assemble a :class:`RenewalWorkflow` from settings.

    ``event_session_factory`` backs the durable event log and should come
    from its own pool (see :func:`renewal_db.engine.get_event_session_factory`).
    """
    oracle = _build(settings.oracle_path, DecisionOracle, UnconfiguredOracle)
    if settings.oracle_path is None:
        logger.warning("RENEWAL_ORACLE not set: every workflow step will fail")

    return RenewalWorkflow(
        oracle,
        validator=_build(settings.validator_path, DocumentValidator, AcceptingValidator),
        messenger=_build(settings.messenger_path, Messenger, UnconfiguredMessenger),
        hr_sync=_build(settings.hr_sync_path, HRSync, UnconfiguredHRSync),
        directory=_build(settings.directory_path, EmployeeDirectory, EmptyDirectory),
        requirements=RequirementsStore(settings.requirements_dir),
        settings=settings.workflow,
        event_repository=EventRepository(event_session_factory),
    )
