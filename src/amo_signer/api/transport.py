"""
HTTP transport for the signing API.

The only module that talks to aiohttp directly. Everything above it sees
HttpResponse objects and TransportError, so tests can swap in a fake
transport with the same three methods: request(), stream(), close().
"""

import asyncio
import os
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Dict, Mapping, Optional

import aiohttp

from amo_signer.common.exceptions import TransportError

# Upload/API request timeout (uploads of large XPIs can be slow)
DEFAULT_REQUEST_TIMEOUT = 120

# Chunk size for streaming signed file downloads
CHUNK_SIZE = 64 * 1024


@dataclass
class HttpResponse:
    """Completed HTTP response with a decoded text body."""

    status: int
    headers: Mapping[str, str] = field(default_factory=dict)
    body: str = ""

    def header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Case-insensitive header lookup."""
        wanted = name.lower()
        for key, value in self.headers.items():
            if key.lower() == wanted:
                return value
        return default

    @property
    def content_type(self) -> str:
        return self.header("content-type", "") or ""


class AiohttpStream:
    """Streaming response wrapper handed out by AiohttpTransport.stream()."""

    def __init__(self, response: aiohttp.ClientResponse, chunk_size: int = CHUNK_SIZE):
        self._response = response
        self._chunk_size = chunk_size

    @property
    def status(self) -> int:
        return self._response.status

    @property
    def headers(self) -> Mapping[str, str]:
        return dict(self._response.headers)

    async def iter_chunks(self) -> AsyncIterator[bytes]:
        """Yield body chunks; network failures surface as TransportError."""
        try:
            async for chunk in self._response.content.iter_chunked(self._chunk_size):
                yield chunk
        except asyncio.TimeoutError as e:
            raise TransportError("Download stream timed out", cause=e) from e
        except aiohttp.ClientError as e:
            raise TransportError(f"Download stream error: {e}", cause=e) from e


def build_form_data(fields: Mapping[str, Any]) -> aiohttp.FormData:
    """
    Build multipart form data.

    File-like values are attached as file parts and streamed by aiohttp
    rather than read into memory.
    """
    form = aiohttp.FormData()
    for name, value in fields.items():
        if hasattr(value, "read"):
            filename = os.path.basename(getattr(value, "name", name) or name)
            form.add_field(
                name,
                value,
                filename=filename,
                content_type="application/octet-stream",
            )
        else:
            form.add_field(name, str(value))
    return form


class AiohttpTransport:
    """
    aiohttp-backed transport.

    Usage:
        async with AiohttpTransport() as transport:
            response = await transport.request("GET", url, headers)

    Session management:
        Pass a shared session to reuse a connection pool; otherwise a
        session is created on first use and closed by close().
    """

    def __init__(
        self,
        session: Optional[aiohttp.ClientSession] = None,
        timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT,
        proxy: Optional[str] = None,
        chunk_size: int = CHUNK_SIZE,
    ):
        """
        Initialize AiohttpTransport.

        Args:
            session: Optional aiohttp session (None = create lazily)
            timeout_seconds: Total timeout for non-streaming requests
            proxy: Optional HTTP proxy URL
            chunk_size: Read size for streamed downloads
        """
        self._session = session
        self._owns_session = session is None
        self.timeout_seconds = timeout_seconds
        self.proxy = proxy
        self.chunk_size = chunk_size

    async def __aenter__(self) -> "AiohttpTransport":
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Close the HTTP session if this transport created it."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def request(
        self,
        method: str,
        url: str,
        headers: Dict[str, str],
        form_data: Optional[Mapping[str, Any]] = None,
    ) -> HttpResponse:
        """
        Issue a request and read the whole response body.

        Raises:
            TransportError: Connection failure or timeout
        """
        session = await self._ensure_session()
        data = build_form_data(form_data) if form_data else None

        try:
            async with session.request(
                method.upper(),
                url,
                headers=headers,
                data=data,
                proxy=self.proxy,
                timeout=aiohttp.ClientTimeout(total=self.timeout_seconds),
            ) as response:
                raw = await response.read()
                return HttpResponse(
                    status=response.status,
                    headers=dict(response.headers),
                    body=raw.decode(response.charset or "utf-8", errors="replace"),
                )
        except asyncio.TimeoutError as e:
            raise TransportError(
                f"Timeout after {self.timeout_seconds}s: {method.upper()} {url}",
                cause=e,
            ) from e
        except aiohttp.ClientError as e:
            raise TransportError(f"Connection error: {e}", cause=e) from e

    @asynccontextmanager
    async def stream(
        self, url: str, headers: Dict[str, str]
    ) -> AsyncIterator[AiohttpStream]:
        """
        Open a streaming GET.

        Only the connect phase is bounded by a timeout; bodies of large
        signed files may take longer than timeout_seconds to arrive.
        """
        session = await self._ensure_session()
        try:
            async with session.get(
                url,
                headers=headers,
                proxy=self.proxy,
                allow_redirects=True,
                timeout=aiohttp.ClientTimeout(
                    total=None, sock_connect=self.timeout_seconds
                ),
            ) as response:
                yield AiohttpStream(response, self.chunk_size)
        except asyncio.TimeoutError as e:
            raise TransportError(f"Timeout connecting to {url}", cause=e) from e
        except aiohttp.ClientError as e:
            raise TransportError(f"Connection error: {e}", cause=e) from e
