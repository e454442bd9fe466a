"""Global exception handlers — map SDK exceptions to HTTP status codes.

The SDK raises ``ValueError`` subclasses for caller mistakes (unknown
session, event sent to a closed session) and ``OracleFailureError`` when
no decision could be made.  Rather than catching these in every route, we
install global handlers that pick the right HTTP status code.  This keeps
route handlers clean and focused on the happy path.
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from renewal_workflow.errors import (
    InvalidSessionStateError,
    OracleFailureError,
    SessionNotFoundError,
)

logger = logging.getLogger(__name__)

# --- SDK exception classes and their HTTP status codes ---
# Checked in order; first match wins.
_VALUE_ERROR_CLASSES: list[tuple[type[ValueError], int]] = [
    (SessionNotFoundError, 404),
    (InvalidSessionStateError, 400),
]

# --- Keyword patterns for plain ValueErrors ---
_VALUE_ERROR_PATTERNS: list[tuple[str, int]] = [
    ("already exists", 409),
    ("not found", 404),
]

# --- Client-safe messages keyed by HTTP status code ---
# Internal details (employee ids, statuses) stay in the server log; the
# client receives only a generic description.
_SAFE_MESSAGES: dict[int, str] = {
    404: "Session not found",
    409: "Resource already exists",
    400: "Session cannot accept this request",
}

RETRY_MESSAGE = "Unable to process the request right now, please try again"


def _status_for(exc: ValueError) -> int:
    for cls, code in _VALUE_ERROR_CLASSES:
        if isinstance(exc, cls):
            return code
    msg = str(exc).lower()
    for pattern, code in _VALUE_ERROR_PATTERNS:
        if pattern in msg:
            return code
    return 400


async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    """Map SDK ``ValueError`` to 404 / 400 / 409.

    The raw exception message is logged server-side but **never** sent to
    the client.
    """
    status = _status_for(exc)
    logger.warning("ValueError [%d] at %s: %s", status, request.url, exc)
    safe_detail = _SAFE_MESSAGES.get(status, "Invalid request")
    return JSONResponse(status_code=status, content={"detail": safe_detail})


async def oracle_failure_handler(
    request: Request, exc: OracleFailureError
) -> JSONResponse:
    """The step was aborted; the client is told to retry."""
    logger.error("Oracle failure at %s: %s", request.url, exc)
    return JSONResponse(status_code=502, content={"detail": RETRY_MESSAGE})


async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unhandled exceptions — log full traceback, return 500."""
    logger.exception("Unhandled exception at %s", request.url)
    return JSONResponse(
        status_code=500,
        content={"detail": RETRY_MESSAGE},
    )
