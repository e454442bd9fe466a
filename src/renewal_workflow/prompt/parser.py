"""Turn raw model output into a :class:`Decision`.

Models do not reliably return bare JSON, so three shapes are tried in
order: the whole text as JSON, the first fenced code block, then the
outermost ``{...}`` span.
"""

import json
import re
from typing import Any

from pydantic import ValidationError

from renewal_workflow.errors import OracleFailureError
from renewal_workflow.models.decision import Decision

_FENCED = re.compile(r"```(?:json)?\s*([\s\S]*?)```")
_OBJECT = re.compile(r"\{[\s\S]*\}")


def _extract_json(text: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass

    match = _FENCED.search(text)
    if match:
        try:
            return json.loads(match.group(1).strip())
        except json.JSONDecodeError:
            pass

    match = _OBJECT.search(text)
    if match:
        try:
            return json.loads(match.group(0))
        except json.JSONDecodeError:
            pass

    raise OracleFailureError("Failed to parse decision: no JSON object found")


def parse_decision(text: str) -> Decision:
    """Parse a model reply into a Decision.

    Raises ``OracleFailureError`` when no JSON object can be extracted or
    the object lacks a next status.
    """
    payload = _extract_json(text.strip())
    if not isinstance(payload, dict):
        raise OracleFailureError("Failed to parse decision: expected a JSON object")
    try:
        return Decision.model_validate(payload)
    except ValidationError as exc:
        raise OracleFailureError(f"Malformed decision: {exc}") from exc
