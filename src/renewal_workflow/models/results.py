"""Result models returned by the external collaborators."""

from typing import Any

from pydantic import BaseModel, Field


class ValidationResult(BaseModel):
    """Outcome of validating one uploaded document."""

    valid: bool
    extracted_fields: dict[str, Any] = Field(default_factory=dict)
    issues: list[str] = Field(default_factory=list)


class DeliveryResult(BaseModel):
    """Outcome of an SMS or email send.

    ``message_id`` is the provider's id (message SID for SMS).
    """

    success: bool
    message_id: str | None = None
    error: str | None = None


class SyncResult(BaseModel):
    """Outcome of pushing a record update to the HR system."""

    success: bool
    error: str | None = None
