"""
Signing API request executor.

Resolves URLs against the API prefix, attaches a fresh JWT to every request,
normalizes non-2xx responses into BadResponseError and best-effort parses
JSON bodies. Debug tracing of request/response pairs goes through a
pluggable sink and is always redacted first.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple, Union
from urllib.parse import urlparse

from amo_signer import metrics
from amo_signer.api.auth import Authenticator
from amo_signer.api.transport import AiohttpTransport, HttpResponse
from amo_signer.common.exceptions import BadResponseError, TransportError, ValidationError
from amo_signer.common.security import redact_debug_value
from amo_signer.logging.setup import get_logger
from amo_signer.logging.utilities import LoggedClass, log_with_context

DEFAULT_API_URL_PREFIX = "https://addons.mozilla.org/api/v3"

# Longest response preview included in error messages and debug output
MAX_RESPONSE_PREVIEW = 500


@dataclass
class RequestConfig:
    """Per-call request description. Never shared across calls."""

    url: Optional[str] = None
    headers: Dict[str, str] = field(default_factory=dict)
    form_data: Optional[Dict[str, Any]] = None

    @classmethod
    def coerce(cls, config: Union["RequestConfig", Mapping[str, Any]]) -> "RequestConfig":
        """Accept either a RequestConfig or a plain mapping."""
        if isinstance(config, RequestConfig):
            return config
        return cls(
            url=config.get("url"),
            headers=dict(config.get("headers") or {}),
            form_data=config.get("form_data"),
        )

    def as_dict(self) -> Dict[str, Any]:
        """Mapping view; form_data only appears when set."""
        result: Dict[str, Any] = {"url": self.url, "headers": dict(self.headers)}
        if self.form_data is not None:
            result["form_data"] = self.form_data
        return result


def format_response(value: Any, max_length: int = MAX_RESPONSE_PREVIEW) -> str:
    """
    Render a response body for humans.

    Mappings and lists are dumped as compact JSON, unserializable objects
    fall back to str(), and the result is truncated to max_length
    characters followed by '...'.
    """
    if isinstance(value, str):
        text = value
    else:
        try:
            text = json.dumps(value, separators=(",", ":"))
        except (TypeError, ValueError):
            text = str(value)

    if len(text) > max_length:
        text = text[:max_length] + "..."
    return text


def parse_body(response: HttpResponse) -> Any:
    """Parse a JSON body when the content type says so; otherwise return text."""
    if "json" not in response.content_type.lower():
        return response.body
    try:
        return json.loads(response.body)
    except ValueError:
        # Broken JSON degrades to the raw text
        return response.body


class LoggingDebugSink:
    """Default debug sink: forwards labelled payloads to a stdlib logger."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self._logger = logger or get_logger("amo_signer.api")

    def debug(self, label: str, value: Any = None) -> None:
        log_with_context(
            self._logger, logging.DEBUG, label, debug_label=label, debug_payload=value
        )


class RequestExecutor(LoggedClass):
    """
    Authenticated HTTP verbs against the signing API.

    Usage:
        executor = RequestExecutor(Authenticator(key, secret), api_url_prefix)
        response, body = await executor.get({"url": "/addons/foo/versions/1.0/"})

    Each executor owns its transport; executors never share mutable state.
    """

    log_component = "executor"

    def __init__(
        self,
        authenticator: Authenticator,
        api_url_prefix: str = DEFAULT_API_URL_PREFIX,
        transport: Optional[Any] = None,
        debug_logging: bool = False,
        logger: Optional[Any] = None,
    ):
        """
        Initialize RequestExecutor.

        Args:
            authenticator: Mints a token per request
            api_url_prefix: Prefix for relative URLs
            transport: Object with request()/stream()/close() (default: aiohttp)
            debug_logging: Emit redacted request/response traces
            logger: Debug sink with a debug(label, value) method
        """
        self.authenticator = authenticator
        self.api_url_prefix = api_url_prefix.rstrip("/")
        self.transport = transport if transport is not None else AiohttpTransport()
        self.debug_logging = debug_logging
        self.debug_sink = logger if logger is not None else LoggingDebugSink()
        super().__init__()

    def debug(self, label: str, value: Any = None) -> None:
        """Send a redacted payload to the debug sink when debugging is on."""
        if not self.debug_logging:
            return
        self.debug_sink.debug(label, redact_debug_value(value))

    def resolve_url(self, url: str) -> str:
        """Absolute URLs pass through; relative ones get the API prefix."""
        if urlparse(url).scheme:
            return url
        return f"{self.api_url_prefix}{url}"

    def configure_request(
        self, config: Union[RequestConfig, Mapping[str, Any]]
    ) -> RequestConfig:
        """
        Build the concrete request for a call.

        Returns a new RequestConfig; the caller's object and header mapping
        are left untouched.

        Raises:
            ValidationError: No URL was given
        """
        config = RequestConfig.coerce(config)
        if not config.url:
            raise ValidationError("URL was not specified")

        headers = {
            "Accept": "application/json",
            "Authorization": self.authenticator.authorization_header(),
        }
        headers.update(config.headers)

        return RequestConfig(
            url=self.resolve_url(config.url),
            headers=headers,
            form_data=config.form_data,
        )

    async def request(
        self,
        method: str,
        config: Union[RequestConfig, Mapping[str, Any]],
        *,
        throw_on_bad_response: bool = True,
    ) -> Tuple[HttpResponse, Any]:
        """
        Issue a request.

        Args:
            method: HTTP verb
            config: URL, headers and optional form data
            throw_on_bad_response: Raise on statuses outside 200-299

        Returns:
            (response, body) where body is parsed JSON or text

        Raises:
            ValidationError: No URL (raised before any network activity)
            BadResponseError: Status outside 200-299 and throw_on_bad_response
            TransportError: Propagated unchanged from the transport
        """
        request = self.configure_request(config)
        method = method.upper()

        self.debug(
            "[API] request",
            {
                "request": {
                    "method": method,
                    "url": request.url,
                    "headers": request.headers,
                    "form_data": sorted(request.form_data) if request.form_data else None,
                }
            },
        )

        try:
            response = await self.transport.request(
                method, request.url, request.headers, form_data=request.form_data
            )
        except TransportError as e:
            metrics.record_api_error(method)
            self._log_exception(
                e, "API transport error", level=logging.WARNING,
                http_method=method, url=request.url,
            )
            raise

        metrics.record_api_request(method, response.status)
        body = parse_body(response)

        self.debug(
            "[API] response",
            {
                "response": {
                    "status": response.status,
                    "headers": dict(response.headers),
                    "body": format_response(body),
                }
            },
        )

        if throw_on_bad_response and not 200 <= response.status <= 299:
            self._log(
                logging.WARNING,
                "API request failed",
                http_method=method,
                http_status=response.status,
                url=request.url,
            )
            raise BadResponseError(
                f"Received bad response from the server while requesting "
                f"{request.url}\n\nstatus: {response.status}\n"
                f"response: {format_response(body)}",
                status_code=response.status,
                url=request.url,
                body=body,
            )

        return response, body

    async def get(self, config, **kwargs) -> Tuple[HttpResponse, Any]:
        return await self.request("GET", config, **kwargs)

    async def put(self, config, **kwargs) -> Tuple[HttpResponse, Any]:
        return await self.request("PUT", config, **kwargs)

    async def post(self, config, **kwargs) -> Tuple[HttpResponse, Any]:
        return await self.request("POST", config, **kwargs)

    async def patch(self, config, **kwargs) -> Tuple[HttpResponse, Any]:
        return await self.request("PATCH", config, **kwargs)

    async def delete(self, config, **kwargs) -> Tuple[HttpResponse, Any]:
        return await self.request("DELETE", config, **kwargs)

    async def close(self) -> None:
        """Release the transport."""
        await self.transport.close()
