"""Inert default collaborators used when a deployment configures none.

They let the server boot and the audit trail work end to end without any
third-party credentials:

- ``UnconfiguredOracle`` fails every step with ``OracleFailureError``
- ``AcceptingValidator`` accepts every document
- ``UnconfiguredMessenger`` / ``UnconfiguredHRSync`` report ``success=False``
- ``EmptyDirectory`` knows no employees or licenses
"""

import logging
from typing import Any

from renewal_workflow.errors import OracleFailureError
from renewal_workflow.interfaces import (
    DecisionOracle,
    DocumentValidator,
    EmployeeDirectory,
    HRSync,
    Messenger,
)
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

logger = logging.getLogger(__name__)


class UnconfiguredOracle(DecisionOracle):
    async def decide(self, context: SessionContext) -> Decision:
        raise OracleFailureError("No decision oracle configured (set RENEWAL_ORACLE)")


class AcceptingValidator(DocumentValidator):
    """Accepts every attached document without looking at it."""

    async def validate(
        self, document_type: str, reference: str | None
    ) -> ValidationResult:
        if reference is None:
            return ValidationResult(
                valid=False, issues=[f"No {document_type} file attached"],
            )
        logger.debug("Accepting %s at %s without validation", document_type, reference)
        return ValidationResult(valid=True)


class UnconfiguredMessenger(Messenger):
    async def send_sms(self, to: str, body: str) -> DeliveryResult:
        logger.warning("SMS not sent to %s: messaging not configured", to)
        return DeliveryResult(success=False, error="SMS service not configured")

    async def send_email(
        self,
        to: str,
        subject: str,
        body: str,
        *,
        html: str | None = None,
        attachments: list[dict[str, Any]] | None = None,
    ) -> DeliveryResult:
        logger.warning("Email not sent to %s: messaging not configured", to)
        return DeliveryResult(success=False, error="Email service not configured")


class UnconfiguredHRSync(HRSync):
    async def update_record(self, subject_ref: str, fields: dict[str, Any]) -> SyncResult:
        logger.warning("HR record %s not updated: HR sync not configured", subject_ref)
        return SyncResult(success=False, error="HR sync not configured")


class EmptyDirectory(EmployeeDirectory):
    async def get_employee(self, employee_id: str) -> EmployeeProfile | None:
        return None

    async def get_license(self, license_id: str) -> LicenseRecord | None:
        return None
