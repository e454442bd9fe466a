"""Decision models — what the oracle returns and what the dispatcher reports.

Oracle implementations often produce camelCase JSON (``nextStatus``,
``pendingActions``), so both spellings are accepted on input.  Everything is
serialised back out in snake_case.
"""

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class ActionSpec(BaseModel):
    """One action requested by the oracle: ``{"type": ..., "data": {...}}``."""

    type: str
    data: dict[str, Any] = Field(default_factory=dict)


class Decision(BaseModel):
    """Structured output of the decision oracle.

    ``next_status`` is kept as a plain string here; the engine validates it
    against :class:`~renewal_db.models.enums.SessionStatus` so that an
    unknown value becomes an oracle failure rather than a parse error deep
    inside the oracle implementation.

    ``pending_actions`` is the replacement set of outstanding asks.  ``None``
    means the oracle did not say, in which case the engine keeps the current
    set minus whatever the event just fulfilled.
    """

    model_config = ConfigDict(populate_by_name=True)

    response: str = ""
    next_status: str = Field(
        validation_alias=AliasChoices("next_status", "nextStatus"),
    )
    next_step: str | None = Field(
        default=None,
        validation_alias=AliasChoices("next_step", "nextStep"),
    )
    actions: list[ActionSpec] = Field(default_factory=list)
    pending_actions: list[str] | None = Field(
        default=None,
        validation_alias=AliasChoices("pending_actions", "pendingActions"),
    )


class ActionResult(BaseModel):
    """Outcome of one dispatched action.

    ``success`` is False for failed, timed-out or skipped actions; ``error``
    then carries a short description.  A failed action never fails the step.
    """

    type: str
    success: bool
    data: dict[str, Any] | None = None
    error: str | None = None
    skipped: bool = False
