"""Error taxonomy shared by the store adapter, services, and API layer.

Every error carries the HTTP status it maps to so the API layer can render
``{"message": ...}`` bodies without a lookup table.
"""

from __future__ import annotations


class GraphError(RuntimeError):
    """Base exception for all request-level failures."""

    status_code: int = 500
    default_message: str = "Server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(GraphError):
    """Raised when input has the wrong shape or format."""

    status_code = 400
    default_message = "Bad Request"


class Unauthorized(GraphError):
    """Raised when the caller identity is missing or invalid."""

    status_code = 401
    default_message = "Unauthorized"


class Forbidden(GraphError):
    """Raised when an authenticated caller is not permitted to act."""

    status_code = 403
    default_message = "Forbidden"


class NotFound(GraphError):
    """Raised when the addressed entity does not exist."""

    status_code = 404
    default_message = "Not found"


class Conflict(GraphError):
    """Raised when a write collides with existing state."""

    status_code = 409
    default_message = "Conflict"


class Unavailable(GraphError):
    """Raised when a collaborator times out or is down."""

    status_code = 503
    default_message = "Service unavailable"


class NotEnabled(GraphError):
    """Raised when an optional subsystem has no backing configured."""

    status_code = 501
    default_message = "Not enabled"


class StoreUnavailable(Unavailable):
    """Raised when the key-value store fails after the retry budget."""

    default_message = "Store unavailable"


class ConditionFailed(Conflict):
    """Raised when a conditional store write is rejected."""

    default_message = "Condition failed"


class AlreadyTaken(Conflict):
    """Raised when a handle is already owned by another user."""

    default_message = "Handle already taken"


__all__ = [
    "AlreadyTaken",
    "ConditionFailed",
    "Conflict",
    "Forbidden",
    "GraphError",
    "NotEnabled",
    "NotFound",
    "StoreUnavailable",
    "Unauthorized",
    "Unavailable",
    "ValidationError",
]
