"""
Exception types and error classification for amo_signer.

Provides:
- ErrorCategory enum describing how a caller should treat a failure
- Typed exception hierarchy for the signing lifecycle
- HTTP status classification
"""

from enum import Enum
from typing import Any, Optional


class ErrorCategory(Enum):
    """
    Classification of error types.

    Categories:
        TRANSIENT: Temporary failures (network drops, timeouts, 5xx)
        AUTH: Credential problems (401, token could not be minted)
        PERMANENT: Failures that won't change on a second attempt
                   (validation, 4xx, no signed files)
        UNKNOWN: Unclassified errors
    """

    TRANSIENT = "transient"
    AUTH = "auth"
    PERMANENT = "permanent"
    UNKNOWN = "unknown"


class SigningError(Exception):
    """
    Base exception for all signing client errors.

    Attributes:
        message: Human-readable error description
        category: Error classification
        cause: Original exception if wrapping
        context: Additional context dict for debugging
    """

    category: ErrorCategory = ErrorCategory.UNKNOWN

    def __init__(
        self,
        message: str,
        cause: Optional[BaseException] = None,
        context: Optional[dict] = None,
    ):
        self.message = message
        self.cause = cause
        self.context = context or {}
        super().__init__(message)

    def __str__(self) -> str:
        parts = [self.message]
        if self.cause:
            parts.append(f"Caused by: {self.cause}")
        return " | ".join(parts)


class ValidationError(SigningError):
    """Input missing or invalid; detected before any network call."""

    category = ErrorCategory.PERMANENT


class AuthenticationError(SigningError):
    """An auth token could not be produced."""

    category = ErrorCategory.AUTH


class BadResponseError(SigningError):
    """
    Server answered with a status outside 200-299.

    Attributes:
        status_code: HTTP status of the response
        url: Requested URL
        body: Parsed (or raw) response body
    """

    def __init__(
        self,
        message: str,
        status_code: int,
        url: Optional[str] = None,
        body: Any = None,
    ):
        super().__init__(
            message, context={"status_code": status_code, "url": url}
        )
        self.status_code = status_code
        self.url = url
        self.body = body
        self.category = classify_http_status(status_code)


class SigningTimeoutError(SigningError):
    """The signing job did not reach a terminal state in time."""

    category = ErrorCategory.TRANSIENT


class TransportError(SigningError):
    """Network or stream failure underneath the HTTP layer."""

    category = ErrorCategory.TRANSIENT


class NoSignedFilesError(SigningError):
    """Terminal status listed files but none of them were signed."""

    category = ErrorCategory.PERMANENT


def classify_http_status(status_code: int) -> ErrorCategory:
    """
    Classify HTTP status code into error category.

    Args:
        status_code: HTTP response status

    Returns:
        Appropriate ErrorCategory
    """
    if 200 <= status_code < 300:
        return ErrorCategory.UNKNOWN  # Not an error

    if status_code == 401:
        return ErrorCategory.AUTH

    if status_code == 429:
        return ErrorCategory.TRANSIENT

    if 400 <= status_code < 500:
        return ErrorCategory.PERMANENT

    if status_code >= 500:
        return ErrorCategory.TRANSIENT

    return ErrorCategory.UNKNOWN
