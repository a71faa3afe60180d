"""
Error taxonomy shared by the retry policy, orchestrator and asset loader.

Every error carries a machine-checkable ErrorKind and a retryable flag so
that the retry policy can classify it without string matching, and the UI
can tell "still working", "the AI could not produce a result" and "showing
a placeholder" apart.
"""

import asyncio
from typing import Any

import httpx

from tryon_assets.models.enums import ErrorKind


class AssetLayerError(Exception):
    """
    Base exception for all asset layer errors.

    All errors raised by this package inherit from this to allow catching
    any of them with a single except clause.
    """

    kind: ErrorKind = ErrorKind.UNKNOWN
    retryable: bool = False

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class TransportError(AssetLayerError):
    """
    Raised when the remote service cannot be reached or answers 5xx.

    Includes connection resets, refused connections, DNS failures,
    timeouts, 408/429 and 5xx statuses. The only retryable error kind.
    """

    kind = ErrorKind.TRANSPORT
    retryable = True


class TransportTimeoutError(TransportError):
    """Raised when a single attempt exceeds its timeout."""
    pass


class AuthorizationError(AssetLayerError):
    """
    Raised on 401/403. Never retried.

    The message is meant to be shown to the user as-is.
    """

    kind = ErrorKind.AUTHORIZATION

    def __init__(
        self,
        message: str = "Access denied by the generation service, please sign in again",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, details)


class CapabilityError(AssetLayerError):
    """
    Raised when the device or renderer cannot support an asset or format.

    Triggers immediate fallback in the loader, and a non-retryable
    submission failure when detected before submitting.
    """

    kind = ErrorKind.CAPABILITY


class RemoteJobError(AssetLayerError):
    """Raised (or recorded on a task) when the remote job reports failure."""

    kind = ErrorKind.REMOTE_JOB


class AssetValidationError(AssetLayerError):
    """Raised when a downloaded payload is empty or not parseable as its format."""

    kind = ErrorKind.INVALID_ASSET


class AssetNotFoundError(AssetLayerError):
    """Raised on 404 or a missing local asset file."""

    kind = ErrorKind.NOT_FOUND


class ServiceRequestError(AssetLayerError):
    """Raised on other 4xx statuses or a response the client cannot parse."""

    kind = ErrorKind.REQUEST


class SubmissionError(AssetLayerError):
    """
    Raised when a generation request could not be submitted.

    No task object exists when this is raised. `kind` mirrors the underlying
    error so callers can tell an authorization problem from an outage.

    Attributes:
        cause: The last error raised by the submission call
        kind: ErrorKind of the cause
    """

    def __init__(self, message: str, cause: BaseException | None = None, details: dict[str, Any] | None = None):
        super().__init__(message, details)
        self.cause = cause
        self.kind = error_kind_of(cause) if cause is not None else ErrorKind.UNKNOWN


_RETRYABLE_STATUSES = {408, 425, 429}


def error_from_status(
    status_code: int, message: str, details: dict[str, Any] | None = None
) -> AssetLayerError:
    """
    Map an HTTP status code onto the error taxonomy.

    Args:
        status_code: HTTP status returned by the service
        message: Human-readable description
        details: Structured error data for logging/telemetry

    Returns:
        An AssetLayerError subclass instance (not raised)
    """
    details = {"status": status_code, **(details or {})}

    if status_code >= 500 or status_code in _RETRYABLE_STATUSES:
        return TransportError(message, details)
    if status_code in (401, 403):
        return AuthorizationError(details=details)
    if status_code == 404:
        return AssetNotFoundError(message, details)
    if status_code == 415:
        return CapabilityError(message, details)
    return ServiceRequestError(message, details)


def error_kind_of(error: BaseException | None) -> ErrorKind:
    """
    Return the ErrorKind of any exception.

    Package errors carry their own kind; raw transport exceptions from httpx,
    asyncio and the OS are reported as TRANSPORT.
    """
    if error is None:
        return ErrorKind.UNKNOWN
    if isinstance(error, AssetLayerError):
        return error.kind
    if isinstance(error, httpx.HTTPStatusError):
        return error_from_status(error.response.status_code, str(error)).kind
    if isinstance(error, (httpx.TransportError, asyncio.TimeoutError, ConnectionError, TimeoutError)):
        return ErrorKind.TRANSPORT
    return ErrorKind.UNKNOWN
