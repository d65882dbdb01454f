"""
Security helpers for debug output and logs.

Provides:
- redact_debug_value(): copy a request/response structure with credential
  headers masked
- sanitize_url(): strip token-like query parameters from URLs
"""

from typing import Any, Mapping
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

REDACTED = "<REDACTED>"

# Header names whose values must never reach a log sink (compared lowercased)
SENSITIVE_HEADERS = {"authorization", "cookie", "set-cookie"}

# Query parameters that may contain sensitive tokens
SENSITIVE_PARAMS = {
    "token",
    "access_token",
    "jwt",
    "api_key",
    "apikey",
    "key",
    "secret",
    "signature",
    "sig",
    "password",
}


def redact_debug_value(value: Any) -> Any:
    """
    Return a copy of ``value`` with credential headers masked.

    Walks mappings, lists and tuples. Any mapping key matching
    SENSITIVE_HEADERS (case-insensitive) has its value replaced by
    REDACTED. The input is never modified; containers are rebuilt.

    Args:
        value: Arbitrary debug payload (may be None)

    Returns:
        Redacted copy of the payload
    """
    if isinstance(value, Mapping):
        redacted = {}
        for key, item in value.items():
            if isinstance(key, str) and key.lower() in SENSITIVE_HEADERS:
                redacted[key] = REDACTED
            else:
                redacted[key] = redact_debug_value(item)
        return redacted
    if isinstance(value, list):
        return [redact_debug_value(item) for item in value]
    if isinstance(value, tuple):
        return tuple(redact_debug_value(item) for item in value)
    return value


def sanitize_url(url: str) -> str:
    """
    Remove sensitive query parameters from a URL for logging.

    Args:
        url: URL that may carry tokens in its query string

    Returns:
        URL with sensitive parameter values replaced by REDACTED
    """
    if not url:
        return url

    try:
        parsed = urlparse(url)
    except ValueError:
        return url

    if not parsed.query:
        return url

    params = [
        (name, REDACTED if name.lower() in SENSITIVE_PARAMS else val)
        for name, val in parse_qsl(parsed.query, keep_blank_values=True)
    ]
    return urlunparse(parsed._replace(query=urlencode(params, safe="<>")))
