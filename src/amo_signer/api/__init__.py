"""
Signing API access layer.

Components:
    - Authenticator: per-request JWT minting
    - AiohttpTransport: aiohttp-backed HTTP transport
    - RequestExecutor: authenticated verbs, status normalization, JSON parsing
"""

from amo_signer.api.auth import Authenticator
from amo_signer.api.client import (
    DEFAULT_API_URL_PREFIX,
    LoggingDebugSink,
    RequestConfig,
    RequestExecutor,
    format_response,
)
from amo_signer.api.transport import AiohttpTransport, HttpResponse

__all__ = [
    "Authenticator",
    "AiohttpTransport",
    "HttpResponse",
    "RequestConfig",
    "RequestExecutor",
    "LoggingDebugSink",
    "DEFAULT_API_URL_PREFIX",
    "format_response",
]
