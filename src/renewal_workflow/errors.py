"""Exceptions raised by the workflow engine.

Caller mistakes (unknown session, event sent to a closed session) subclass
``ValueError`` so the server's ValueError handler maps them to 4xx.  Oracle
failures are not the caller's fault and are kept outside that family.
"""


class SessionNotFoundError(ValueError):
    """No renewal session exists with the given id."""

    def __init__(self, session_id: str) -> None:
        super().__init__(f"Session not found: session_id={session_id}")
        self.session_id = session_id


class InvalidSessionStateError(ValueError):
    """The session's status does not allow the requested operation."""


class SessionClosedError(InvalidSessionStateError):
    """The session is completed, failed or cancelled and accepts no events."""

    def __init__(self, session_id: str, status: str) -> None:
        super().__init__(
            f"Session {session_id} is in {status} state and cannot process events"
        )
        self.session_id = session_id
        self.status = status


class OracleFailureError(Exception):
    """The decision oracle failed, timed out, or returned an unusable decision.

    The step is aborted and the session left as it was.  The triggering event
    stays in the event log, so the same step can be retried.
    """


class IllegalTransitionError(OracleFailureError):
    """The oracle picked a next status outside the strict transition table."""

    def __init__(self, current: str, requested: str) -> None:
        super().__init__(f"Transition {current} -> {requested} is not allowed")
        self.current = current
        self.requested = requested
