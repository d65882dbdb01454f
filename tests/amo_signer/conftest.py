"""
Shared fixtures for amo_signer tests.

Provides a fake HTTP transport with queued responses, spy timers that record
every schedule/cancel call, and a ready-made executor wired to both.
"""

import json
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

import pytest

from amo_signer.api.auth import Authenticator
from amo_signer.api.client import RequestExecutor
from amo_signer.api.transport import HttpResponse
from amo_signer.common.exceptions import TransportError
from amo_signer.signing.timers import LoopTimers

API_PREFIX = "https://amo.test/api/v3"


def make_response(status: int = 200, body: Any = "", headers: Optional[dict] = None) -> HttpResponse:
    """Build an HttpResponse; dict/list bodies are served as JSON."""
    headers = dict(headers or {})
    if isinstance(body, (dict, list)):
        headers.setdefault("Content-Type", "application/json")
        body = json.dumps(body)
    return HttpResponse(status=status, headers=headers, body=body)


class FakeStream:
    """Streaming response served by FakeTransport.stream()."""

    def __init__(self, status: int = 200, chunks: Optional[List[bytes]] = None, error: Optional[Exception] = None):
        self.status = status
        self.headers: Dict[str, str] = {}
        self.chunks = chunks if chunks is not None else [b"signed-content"]
        self.error = error

    async def iter_chunks(self):
        for chunk in self.chunks:
            yield chunk
        if self.error is not None:
            raise self.error


class FakeTransport:
    """
    In-memory transport.

    Responses are served from a queue. When the queue runs dry the last
    response is repeated. Queued exceptions are raised instead of returned.
    """

    def __init__(self):
        self.responses: List[Any] = []
        self.calls: List[Dict[str, Any]] = []
        self.streams: Dict[str, FakeStream] = {}
        self.stream_calls: List[Dict[str, Any]] = []
        self.closed = False
        self._last: Any = make_response(200, "")

    def queue(self, *responses: Any) -> "FakeTransport":
        self.responses.extend(responses)
        return self

    async def request(self, method, url, headers, form_data=None):
        self.calls.append(
            {"method": method, "url": url, "headers": dict(headers), "form_data": form_data}
        )
        if self.responses:
            self._last = self.responses.pop(0)
        if isinstance(self._last, Exception):
            raise self._last
        return self._last

    @asynccontextmanager
    async def stream(self, url, headers):
        self.stream_calls.append({"url": url, "headers": dict(headers)})
        stream = self.streams.get(url, FakeStream())
        if isinstance(stream, Exception):
            raise stream
        yield stream

    async def close(self):
        self.closed = True


class SpyTimers(LoopTimers):
    """LoopTimers that records every after()/cancel() call."""

    def __init__(self):
        super().__init__()
        self.scheduled: List[tuple] = []
        self.cancelled: List[Any] = []

    def after(self, delay, callback):
        handle = super().after(delay, callback)
        self.scheduled.append((delay, handle))
        return handle

    def cancel(self, handle):
        self.cancelled.append(handle)
        super().cancel(handle)


class RecordingSink:
    """Debug sink that keeps (label, value) pairs."""

    def __init__(self):
        self.messages: List[tuple] = []

    def debug(self, label, value=None):
        self.messages.append((label, value))


@pytest.fixture
def response_factory():
    """Build HttpResponse objects (dict bodies become JSON)."""
    return make_response


@pytest.fixture
def fake_transport():
    return FakeTransport()


@pytest.fixture
def stream_factory():
    return FakeStream


@pytest.fixture
def spy_timers():
    return SpyTimers()


@pytest.fixture
def debug_sink():
    return RecordingSink()


@pytest.fixture
def authenticator():
    return Authenticator("user:12345:67", "some-secret")


@pytest.fixture
def executor(authenticator, fake_transport, debug_sink):
    """Executor against the fake transport with debug tracing off."""
    return RequestExecutor(
        authenticator,
        api_url_prefix=API_PREFIX,
        transport=fake_transport,
        debug_logging=False,
        logger=debug_sink,
    )


@pytest.fixture
def transport_error():
    return TransportError("Connection error: connection reset")


@pytest.fixture
def xpi_file(tmp_path):
    """A small file standing in for an XPI package."""
    path = tmp_path / "simple-addon.xpi"
    path.write_bytes(b"PK\x03\x04fake-xpi")
    return path
