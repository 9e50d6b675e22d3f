"""
Domain error taxonomy.

Services raise these; a single FastAPI exception handler (main.py) turns
them into JSON responses. Anything that is NOT a DirectoryError (driver
errors, connection loss, …) is an infrastructure failure and is left to
propagate as a 500 — it must never be reported as one of the kinds below.

    NotFound        404  absent, or present but masked by visibility
    Forbidden       403  authenticated but not permitted
    StateConflict   409  transition invalid from the current state
    ValidationError 400  malformed input; `reason` is machine-readable
    Conflict        409  uniqueness violation (handle taken, …)
"""

from __future__ import annotations


class DirectoryError(Exception):
    """Base class for errors whose message is safe to return to the client."""

    status_code: int = 500
    code: str = "error"

    def __init__(self, message: str, reason: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.reason = reason

    def to_dict(self) -> dict[str, str]:
        body = {"error": self.message, "code": self.code}
        if self.reason is not None:
            body["reason"] = self.reason
        return body


class NotFound(DirectoryError):
    status_code = 404
    code = "not_found"

    def __init__(self, message: str = "Resource not found") -> None:
        super().__init__(message)


class Forbidden(DirectoryError):
    status_code = 403
    code = "forbidden"

    def __init__(self, message: str = "Access denied", reason: str | None = None) -> None:
        super().__init__(message, reason)


class StateConflict(DirectoryError):
    """The requested transition is not available from the current state."""

    status_code = 409
    code = "state_conflict"

    def __init__(self, message: str, current_state: str | None = None) -> None:
        super().__init__(message, reason=current_state)
        self.current_state = current_state


class ValidationError(DirectoryError):
    status_code = 400
    code = "validation_error"

    def __init__(self, message: str, reason: str) -> None:
        super().__init__(message, reason)


class Conflict(DirectoryError):
    status_code = 409
    code = "conflict"
