"""Error taxonomy for operator actions.

Every error raised out of an action carries a short machine-readable code and
the HTTP status it maps to. Attestation failures are deliberately absent:
the attestation service converts them to a null result.
"""

from typing import Any, Optional

from fastapi import status


class OpsError(Exception):
    """Base class for errors surfaced to the caller."""

    code = "error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, details: Optional[list[Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_body(self) -> dict:
        body = {"error": self.code, "detail": self.message}
        if self.details:
            body["details"] = self.details
        return body


class AuthenticationError(OpsError):
    """Missing, malformed or unverifiable credential."""

    code = "unauthorized"
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class ActionValidationError(OpsError):
    """Malformed or out-of-range action input."""

    code = "validation_error"
    status_code = status.HTTP_400_BAD_REQUEST


class UnsupportedActionError(OpsError):
    """Action name outside the dispatch table."""

    code = "unsupported_action"
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(OpsError):
    """Referenced entity does not exist."""

    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class StateConflictError(OpsError):
    """Action is illegal given the entity's current status."""

    code = "state_conflict"
    status_code = status.HTTP_409_CONFLICT


class PersistenceError(OpsError):
    """The store rejected a write or read."""

    code = "action_failed"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
