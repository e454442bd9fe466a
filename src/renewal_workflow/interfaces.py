"""Abstract interfaces for the workflow's external collaborators.

These ABCs define the contract that external implementations must fulfil.
The SDK ships only inert defaults (see :mod:`renewal_workflow.collaborators`);
real implementations (an LLM-backed oracle, a vision validator, an SMS
gateway) live in deployment packages and are wired in by import path.

Typical integration flow::

    workflow = RenewalWorkflow(
        oracle=MyLLMOracle(...),
        validator=MyVisionValidator(...),
        messenger=MyTwilioMessenger(...),
        hr_sync=MyHRSync(...),
        directory=MyEmployeeDirectory(...),
        requirements=RequirementsStore("knowledge/states"),
    )
    outcome = await workflow.start_session(db, employee_id="E1")
    await db.commit()
"""

from abc import ABC, abstractmethod
from typing import Any

from renewal_workflow.models.context import (
    EmployeeProfile,
    LicenseRecord,
    SessionContext,
)
from renewal_workflow.models.decision import Decision
from renewal_workflow.models.results import (
    DeliveryResult,
    SyncResult,
    ValidationResult,
)


class DecisionOracle(ABC):
    """Chooses the next status, step, reply and actions for a session.

    The engine treats the oracle as opaque.  Whatever it returns is checked
    against the closed status enumeration before anything is persisted.
    """

    @abstractmethod
    async def decide(self, context: SessionContext) -> Decision:
        """Return the next move for the session described by ``context``.

        Implementations should raise
        :class:`~renewal_workflow.errors.OracleFailureError` when they cannot
        produce a decision; any other exception is wrapped into one.
        """
        ...


class DocumentValidator(ABC):
    """Extracts and checks fields from an uploaded document."""

    @abstractmethod
    async def validate(
        self, document_type: str, reference: str | None
    ) -> ValidationResult:
        """Validate the document stored at ``reference``.

        Called even when no file reference is known (``reference`` is
        ``None``); implementations report that as ``valid=False``.

        Parameters
        ----------
        document_type:
            e.g. ``"license_photo"`` or ``"training_certificate"``.
        reference:
            Opaque handle to the uploaded file (URL or storage key), or
            ``None`` when the upload event carried no reference.
        """
        ...


class Messenger(ABC):
    """Outbound SMS and email.  Sends are fire-and-report."""

    @abstractmethod
    async def send_sms(self, to: str, body: str) -> DeliveryResult:
        ...

    @abstractmethod
    async def send_email(
        self,
        to: str,
        subject: str,
        body: str,
        *,
        html: str | None = None,
        attachments: list[dict[str, Any]] | None = None,
    ) -> DeliveryResult:
        ...


class HRSync(ABC):
    """Pushes renewal outcomes back to the HR system of record."""

    @abstractmethod
    async def update_record(
        self, subject_ref: str, fields: dict[str, Any]
    ) -> SyncResult:
        """Update the record identified by ``subject_ref`` with ``fields``."""
        ...


class EmployeeDirectory(ABC):
    """Read-only lookups of employee and license data."""

    @abstractmethod
    async def get_employee(self, employee_id: str) -> EmployeeProfile | None:
        ...

    @abstractmethod
    async def get_license(self, license_id: str) -> LicenseRecord | None:
        ...
