"""renewal_workflow — Durable license-renewal workflow SDK.

Public API:
    RenewalWorkflow   — per-session control loop (start, run_step, cancel, escalate)
    ReminderScheduler — sweep that reminds or escalates idle sessions
    ActionDispatcher  — executes a decision's actions against collaborators
    RequirementsStore — per-jurisdiction renewal data loaded from YAML
    PromptManager     — renders a SessionContext into an LLM prompt
    parse_decision    — turns raw model output into a Decision

Collaborator interfaces:
    DecisionOracle, DocumentValidator, Messenger, HRSync, EmployeeDirectory

Errors:
    SessionNotFoundError, InvalidSessionStateError, SessionClosedError,
    OracleFailureError, IllegalTransitionError
"""

from renewal_workflow.config import WorkflowSettings, load_workflow_settings
from renewal_workflow.dispatcher import ActionContext, ActionDispatcher
from renewal_workflow.errors import (
    IllegalTransitionError,
    InvalidSessionStateError,
    OracleFailureError,
    SessionClosedError,
    SessionNotFoundError,
)
from renewal_workflow.interfaces import (
    DecisionOracle,
    DocumentValidator,
    EmployeeDirectory,
    HRSync,
    Messenger,
)
from renewal_workflow.models import (
    ActionResult,
    ActionSpec,
    Decision,
    InboundEvent,
    SessionContext,
    SessionInfo,
    StartOutcome,
    StepOutcome,
    SweepSummary,
)
from renewal_workflow.prompt import PromptManager, parse_decision
from renewal_workflow.requirements import RequirementsStore
from renewal_workflow.scheduler import ReminderScheduler
from renewal_workflow.workflow import RenewalWorkflow

__all__ = [
    # Engine
    "RenewalWorkflow",
    "ReminderScheduler",
    "ActionDispatcher",
    "ActionContext",
    "RequirementsStore",
    "PromptManager",
    "parse_decision",
    # Config
    "WorkflowSettings",
    "load_workflow_settings",
    # Interfaces
    "DecisionOracle",
    "DocumentValidator",
    "EmployeeDirectory",
    "HRSync",
    "Messenger",
    # Models
    "ActionResult",
    "ActionSpec",
    "Decision",
    "InboundEvent",
    "SessionContext",
    "SessionInfo",
    "StartOutcome",
    "StepOutcome",
    "SweepSummary",
    # Errors
    "IllegalTransitionError",
    "InvalidSessionStateError",
    "OracleFailureError",
    "SessionClosedError",
    "SessionNotFoundError",
]
