"""Error taxonomy for API calls.

Every failure raised by the transport is an :class:`ApiError` subclass tagged
with an :class:`ErrorKind`, so callers can dispatch on ``exc.kind`` instead of
inspecting message text. Only :class:`TransportError` is retryable.
"""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Tag of each error variant."""
    AUTHENTICATION_FAILED = "authentication_failed"
    REQUEST_FAILED = "request_failed"
    JOB_NOT_FOUND = "job_not_found"
    TRANSPORT_ERROR = "transport_error"
    MALFORMED_RESPONSE = "malformed_response"


class ApiError(Exception):
    """Base class for all API failures.

    ``message`` holds the bare detail; ``str(exc)`` is the full sentence.
    """

    kind: ErrorKind
    retryable = False

    def __init__(self, message: str, summary: Optional[str] = None):
        super().__init__(summary or message)
        self.message = message


class AuthenticationFailed(ApiError):
    """The service rejected the credential."""

    kind = ErrorKind.AUTHENTICATION_FAILED

    def __init__(self, message: str = "Invalid API key", status_code: int = 401):
        super().__init__(message, f"Authentication failed: {message}")
        self.status_code = status_code


class RequestFailed(ApiError):
    """Non-success response other than authentication or not-found."""

    kind = ErrorKind.REQUEST_FAILED

    def __init__(self, status_code: int, message: str, operation: str = "request"):
        super().__init__(message, f"Failed to {operation} ({status_code}): {message}")
        self.status_code = status_code
        self.operation = operation


class JobNotFound(ApiError):
    """The status endpoint does not know the job."""

    kind = ErrorKind.JOB_NOT_FOUND

    def __init__(self, job_id: str):
        super().__init__(f"Job {job_id} not found")
        self.job_id = job_id


class TransportError(ApiError):
    """Connection-level failure: DNS, refused, reset or timed out."""

    kind = ErrorKind.TRANSPORT_ERROR
    retryable = True

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message, f"Network error: {message}")
        self.url = url


class MalformedResponse(ApiError):
    """A success response lacks a required field or cannot be decoded."""

    kind = ErrorKind.MALFORMED_RESPONSE

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field
