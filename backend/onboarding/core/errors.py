"""Error taxonomy shared by the engine services and the HTTP layer.

Each error carries a ``detail`` mapping with enough structure for a client to
render an actionable message (missing fields, current status, offending
actor). ``status_code`` is the HTTP status the API answers with.
"""

from typing import Any


class OnboardingError(Exception):
    status_code = 400

    def __init__(self, message: str, **detail: Any) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail

    def to_dict(self) -> dict[str, Any]:
        return {"message": self.message, **self.detail}


class ValidationError(OnboardingError):
    """Missing or malformed input; the caller can fix it and retry."""

    status_code = 422


class AuthorizationError(OnboardingError):
    """The actor lacks the capability. Never retried automatically."""

    status_code = 403


class NotFoundError(OnboardingError):
    status_code = 404


class ConflictError(OnboardingError):
    """Unique-constraint violation, lost transition race or duplicate draft."""

    status_code = 409


class StorageError(OnboardingError):
    """The external blob store failed to transfer document bytes."""

    status_code = 502
