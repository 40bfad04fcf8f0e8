"""Error taxonomy shared by the auth, request and extraction layers."""

from __future__ import annotations

from enum import Enum


class Classification(str, Enum):
    RETRYABLE = "retryable"
    NON_RETRYABLE = "non_retryable"


NON_RETRYABLE_STATUSES = frozenset({400, 401, 403, 404, 422})
RETRYABLE_STATUSES = frozenset({429, 500, 502, 503})


class ScribeError(Exception):
    """Base error. Carries the HTTP status (0 for transport failures) and detail."""

    classification: Classification = Classification.NON_RETRYABLE

    def __init__(self, message: str, status: int | None = None, detail: str | None = None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.detail = detail
        self.retries_exhausted = False
        self.attempts: list = []

    @property
    def retryable(self) -> bool:
        return self.classification is Classification.RETRYABLE


class ValidationError(ScribeError):
    pass


class AuthenticationError(ScribeError):
    pass


class AuthorizationError(ScribeError):
    pass


class NotFoundError(ScribeError):
    pass


class ConflictError(ScribeError):
    pass


class RateLimited(ScribeError):
    classification = Classification.RETRYABLE


class ServerError(ScribeError):
    classification = Classification.RETRYABLE


class GatewayError(ScribeError):
    classification = Classification.RETRYABLE


class ServiceUnavailable(ScribeError):
    classification = Classification.RETRYABLE


class NetworkError(ScribeError):
    classification = Classification.RETRYABLE

    def __init__(self, message: str, detail: str | None = None):
        super().__init__(message, status=0, detail=detail)


class SessionExpired(ScribeError):
    """Credentials could not be refreshed; the user must log in again."""


class MalformedCredential(ScribeError):
    """A token could not be decoded or lacks an expiry claim."""


class EmptyResult(ScribeError):
    """A well-formed response that carries no usable transcript content."""


# status -> (error class, message prefix, fallback detail)
_STATUS_TABLE: dict[int, tuple[type[ScribeError], str, str]] = {
    400: (ValidationError, "Bad request", "Invalid request parameters."),
    401: (AuthenticationError, "Authentication failed", "Invalid API key."),
    403: (
        AuthorizationError,
        "Access denied",
        "You do not have permission to access this resource.",
    ),
    404: (NotFoundError, "Not found", "Could not find transcript for this video."),
    422: (ValidationError, "Validation error", "Invalid YouTube URL or parameters."),
    429: (RateLimited, "Rate limited", "Too many requests. Please wait a moment."),
    500: (ServerError, "Server error", "Internal server error. Please try again later."),
    502: (GatewayError, "Gateway error", "Server is temporarily unavailable."),
    503: (
        ServiceUnavailable,
        "Service unavailable",
        "Server is under maintenance. Please try again later.",
    ),
}


def classify_status(status: int) -> Classification:
    """Classify a non-2xx status. Unknown statuses are retried."""
    if status in NON_RETRYABLE_STATUSES:
        return Classification.NON_RETRYABLE
    return Classification.RETRYABLE


def error_for_status(status: int, detail: str = "") -> ScribeError:
    """Build the taxonomy error for an extraction-service status code."""
    if status in _STATUS_TABLE:
        cls, prefix, fallback = _STATUS_TABLE[status]
        return cls(f"{prefix}: {detail or fallback}", status=status, detail=detail)
    return ServerError(
        f"Error {status}: {detail or 'An unexpected error occurred.'}",
        status=status,
        detail=detail,
    )


def error_kind(error: ScribeError) -> str:
    """Bucket an error for display: not_found, validation or server."""
    message = error.message.lower()
    if (
        error.status == 404
        or isinstance(error, (NotFoundError, EmptyResult))
        or "no transcript available" in message
        or "transcripts are disabled" in message
        or "no transcript found" in message
    ):
        return "not_found"
    if (
        error.status in (400, 422)
        or isinstance(error, ValidationError)
        or "invalid" in message
        or "validation error" in message
    ):
        return "validation"
    return "server"
