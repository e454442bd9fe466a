"""ActionDispatcher — runs the actions of one decision, in order.

Handlers never touch the database.  They read and mutate an
:class:`ActionContext`, and the engine persists the resulting state in its
single update at the end of the step.  Every handler call is wrapped so
that a raised exception or a timeout becomes a failed
:class:`ActionResult` instead of aborting the step.

Action data keys are accepted in camelCase (as most oracles emit them) or
snake_case, e.g. ``documentType`` / ``document_type``.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable

from renewal_workflow.config import WorkflowSettings
from renewal_workflow.constants import (
    DEFAULT_ESTIMATED_TIME,
    DEFAULT_PORTAL_INSTRUCTIONS,
)
from renewal_workflow.interfaces import DocumentValidator, HRSync, Messenger
from renewal_workflow.models.context import (
    EmployeeProfile,
    JurisdictionRequirements,
    LicenseRecord,
)
from renewal_workflow.models.decision import ActionResult, ActionSpec
from renewal_workflow.models.session import PackageDocument, SubmissionPackage

logger = logging.getLogger(__name__)


def _pick(data: dict[str, Any], *keys: str, default: Any = None) -> Any:
    """First non-empty value among ``keys``."""
    for key in keys:
        value = data.get(key)
        if value not in (None, ""):
            return value
    return default


@dataclass
class ActionContext:
    """Mutable per-step state shared by the handlers of one decision.

    ``metadata`` and ``submission_package`` start as copies of the session's
    values; ``requested`` collects asks added by ``request_document``;
    ``completed`` is set by ``complete_workflow``.
    """

    session_id: str
    employee_id: str
    license_id: str | None
    employee: EmployeeProfile
    license: LicenseRecord | None = None
    requirements: JurisdictionRequirements | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    submission_package: dict[str, Any] | None = None
    confirmation_number: str | None = None
    submitted_at: datetime | None = None
    requested: list[str] = field(default_factory=list)
    completed: bool = False


Handler = Callable[[ActionContext, dict[str, Any]], Awaitable[dict[str, Any]]]


class ActionFailed(Exception):
    """Raised by a handler to report a failure with a clean message."""


class ActionDispatcher:
    """Maps action types to handlers and runs them with timeouts.

    Args:
        validator: document validation collaborator
        messenger: SMS/email collaborator
        hr_sync: HR system collaborator, called on completion
        settings: timeouts and the default portal URL
    """

    def __init__(
        self,
        validator: DocumentValidator,
        messenger: Messenger,
        hr_sync: HRSync,
        settings: WorkflowSettings | None = None,
    ) -> None:
        self._validator = validator
        self._messenger = messenger
        self._hr_sync = hr_sync
        self._settings = settings or WorkflowSettings()
        self._handlers: dict[str, Handler] = {
            "request_document": self._request_document,
            "validate_document": self._validate_document,
            "send_email": self._send_email,
            "send_sms": self._send_sms,
            "generate_submission_package": self._generate_submission_package,
            "complete_workflow": self._complete_workflow,
        }

    @property
    def action_types(self) -> list[str]:
        return list(self._handlers)

    # ==================================================================
    # Dispatch
    # ==================================================================

    async def dispatch(
        self, actions: list[ActionSpec], ctx: ActionContext
    ) -> list[ActionResult]:
        """Run ``actions`` in order and return one result per action."""
        results: list[ActionResult] = []
        for action in actions:
            results.append(await self._run_one(action, ctx))
        return results

    async def _run_one(self, action: ActionSpec, ctx: ActionContext) -> ActionResult:
        handler = self._handlers.get(action.type)
        if handler is None:
            logger.warning(
                "Skipping unknown action type %r for session %s",
                action.type, ctx.session_id,
            )
            return ActionResult(
                type=action.type,
                success=False,
                skipped=True,
                error=f"Unknown action type: {action.type}",
            )

        try:
            data = await handler(ctx, action.data)
        except ActionFailed as exc:
            logger.warning(
                "Action %s failed for session %s: %s",
                action.type, ctx.session_id, exc,
            )
            return ActionResult(type=action.type, success=False, error=str(exc))
        except asyncio.TimeoutError:
            logger.warning(
                "Action %s timed out for session %s", action.type, ctx.session_id,
            )
            return ActionResult(type=action.type, success=False, error="Timed out")
        except Exception as exc:
            logger.exception(
                "Action %s raised for session %s", action.type, ctx.session_id,
            )
            return ActionResult(type=action.type, success=False, error=str(exc) or type(exc).__name__)

        # Handlers report delivery-style failures through a "success" key
        success = bool(data.pop("success", True))
        error = data.pop("error", None)
        return ActionResult(type=action.type, success=success, data=data, error=error)

    # ==================================================================
    # Handlers
    # ==================================================================

    async def _request_document(
        self, ctx: ActionContext, data: dict[str, Any]
    ) -> dict[str, Any]:
        """Record ``upload_<documentType>`` as outstanding; optionally SMS the ask."""
        doc_type = _pick(data, "documentType", "document_type")
        if not doc_type:
            raise ActionFailed("request_document needs a documentType")

        ask = f"upload_{doc_type}"
        if ask not in ctx.requested:
            ctx.requested.append(ask)

        result: dict[str, Any] = {
            "requested": doc_type,
            "pending_action": ask,
            "urgency": _pick(data, "urgency", default="normal"),
        }
        if _pick(data, "notify", default=False):
            instructions = _pick(
                data, "instructions",
                default=f"Please upload your {doc_type.replace('_', ' ')}.",
            )
            delivery = await self._deliver_sms(ctx, None, instructions)
            result["notification"] = delivery
        return result

    async def _validate_document(
        self, ctx: ActionContext, data: dict[str, Any]
    ) -> dict[str, Any]:
        """Run the validator and remember its verdict in ``metadata.validations``."""
        doc_type = _pick(data, "documentType", "document_type")
        if not doc_type:
            raise ActionFailed("validate_document needs a documentType")

        reference = _pick(data, "reference", "url", "fileUrl", "file_url")
        if reference is None:
            uploaded = ctx.metadata.get("documents", {}).get(doc_type) or {}
            reference = uploaded.get("reference")

        outcome = await asyncio.wait_for(
            self._validator.validate(doc_type, reference),
            timeout=self._settings.validation_timeout_seconds,
        )

        validations = dict(ctx.metadata.get("validations") or {})
        validations[doc_type] = {
            "reference": reference,
            "valid": outcome.valid,
            "issues": list(outcome.issues),
            "extracted_fields": dict(outcome.extracted_fields),
            "validated_at": datetime.now(timezone.utc).isoformat(),
        }
        ctx.metadata["validations"] = validations

        return {
            "document_type": doc_type,
            "reference": reference,
            **outcome.model_dump(mode="json"),
        }

    async def _send_email(
        self, ctx: ActionContext, data: dict[str, Any]
    ) -> dict[str, Any]:
        to = _pick(data, "to", default=ctx.employee.email)
        if not to:
            raise ActionFailed("No email address for the employee")
        subject = _pick(data, "subject", default="Your license renewal")
        body = _pick(data, "body", "text", default="")
        delivery = await asyncio.wait_for(
            self._messenger.send_email(
                to, subject, body,
                html=_pick(data, "html"),
                attachments=_pick(data, "attachments"),
            ),
            timeout=self._settings.messaging_timeout_seconds,
        )
        if not delivery.success:
            logger.warning("Email to %s failed: %s", to, delivery.error)
        return {"to": to, **delivery.model_dump(mode="json")}

    async def _send_sms(
        self, ctx: ActionContext, data: dict[str, Any]
    ) -> dict[str, Any]:
        body = _pick(data, "body", "message", default="")
        delivery = await self._deliver_sms(ctx, _pick(data, "to"), body)
        return dict(delivery)

    async def _generate_submission_package(
        self, ctx: ActionContext, data: dict[str, Any]
    ) -> dict[str, Any]:
        """Build the portal package once; later calls return the same one.

        ``regenerate: true`` in the action data forces a new package.
        """
        if ctx.submission_package is not None and not _pick(data, "regenerate", default=False):
            return {"reused": True, "package": ctx.submission_package}

        reqs = ctx.requirements
        portal_url = _pick(
            data, "portalUrl", "portal_url",
            default=(reqs.portal_url if reqs and reqs.portal_url else None),
        ) or self._settings.default_portal_url
        instructions = _pick(
            data, "instructions",
            default=(list(reqs.instructions) if reqs and reqs.instructions else None),
        ) or list(DEFAULT_PORTAL_INSTRUCTIONS)
        estimated_time = _pick(
            data, "estimatedTime", "estimated_time",
            default=(reqs.estimated_time if reqs and reqs.estimated_time else None),
        ) or DEFAULT_ESTIMATED_TIME

        documents = [
            PackageDocument(
                document_type=doc_type,
                reference=entry.get("reference"),
                valid=entry.get("valid"),
            )
            for doc_type, entry in (ctx.metadata.get("validations") or {}).items()
        ]

        form_data: dict[str, Any] = {
            "employee_name": ctx.employee.name,
            "employee_id": ctx.employee_id,
        }
        if ctx.license is not None:
            form_data["license_id"] = ctx.license.license_id
            form_data["license_type"] = ctx.license.license_type
            form_data["state"] = ctx.license.state
        form_data.update(_pick(data, "formData", "form_data", default={}))

        package = SubmissionPackage(
            package_id=uuid.uuid4().hex,
            portal_url=portal_url,
            instructions=instructions,
            documents=documents,
            form_data=form_data,
            estimated_time=estimated_time,
            generated_at=datetime.now(timezone.utc),
        )
        ctx.submission_package = package.model_dump(mode="json")
        logger.info(
            "Generated submission package %s for session %s",
            package.package_id, ctx.session_id,
        )
        return {"reused": False, "package": ctx.submission_package}

    async def _complete_workflow(
        self, ctx: ActionContext, data: dict[str, Any]
    ) -> dict[str, Any]:
        """Mark the session completed and push the outcome to HR (best-effort)."""
        ctx.completed = True

        subject_ref = ctx.license_id or ctx.employee_id
        fields = {
            "renewal_status": "completed",
            "session_id": ctx.session_id,
            "employee_id": ctx.employee_id,
            "confirmation_number": ctx.confirmation_number,
            "submitted_at": ctx.submitted_at.isoformat() if ctx.submitted_at else None,
        }
        try:
            sync = await asyncio.wait_for(
                self._hr_sync.update_record(subject_ref, fields),
                timeout=self._settings.sync_timeout_seconds,
            )
            sync_data = sync.model_dump(mode="json")
        except asyncio.TimeoutError:
            sync_data = {"success": False, "error": "HR sync timed out"}
        except Exception as exc:
            logger.exception("HR sync failed for session %s", ctx.session_id)
            sync_data = {"success": False, "error": str(exc) or type(exc).__name__}

        if not sync_data["success"]:
            logger.warning(
                "Session %s completed but HR record %s was not updated: %s",
                ctx.session_id, subject_ref, sync_data.get("error"),
            )
        return {
            "completed": True,
            "hr_sync": sync_data,
            "success": sync_data["success"],
            "error": sync_data.get("error"),
        }

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _deliver_sms(
        self, ctx: ActionContext, to: str | None, body: str
    ) -> dict[str, Any]:
        """Send an SMS to ``to`` (or the employee) and return the delivery dict."""
        recipient = to or ctx.employee.phone
        if not recipient:
            return {"success": False, "error": "No phone number for the employee"}
        try:
            delivery = await asyncio.wait_for(
                self._messenger.send_sms(recipient, body),
                timeout=self._settings.messaging_timeout_seconds,
            )
        except asyncio.TimeoutError:
            return {"success": False, "error": "SMS send timed out"}
        if not delivery.success:
            logger.warning("SMS to %s failed: %s", recipient, delivery.error)
        return {"to": recipient, **delivery.model_dump(mode="json")}
