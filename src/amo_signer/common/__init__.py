"""Common utilities shared across amo_signer."""

from amo_signer.common.exceptions import (
    AuthenticationError,
    BadResponseError,
    ErrorCategory,
    NoSignedFilesError,
    SigningError,
    SigningTimeoutError,
    TransportError,
    ValidationError,
    classify_http_status,
)

__all__ = [
    "ErrorCategory",
    "SigningError",
    "ValidationError",
    "AuthenticationError",
    "BadResponseError",
    "SigningTimeoutError",
    "TransportError",
    "NoSignedFilesError",
    "classify_http_status",
]
