"""Tests for the aiohttp transport boundary."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest

from amo_signer.api.transport import AiohttpTransport, HttpResponse
from amo_signer.common.exceptions import TransportError


def _session_with(request_side_effect=None, response=None):
    """Mock aiohttp session whose request() is an async context manager."""
    session = MagicMock(spec=aiohttp.ClientSession)
    session.closed = False
    session.close = AsyncMock()
    ctx = MagicMock()
    if request_side_effect is not None:
        ctx.__aenter__ = AsyncMock(side_effect=request_side_effect)
    else:
        ctx.__aenter__ = AsyncMock(return_value=response)
    ctx.__aexit__ = AsyncMock(return_value=False)
    session.request.return_value = ctx
    return session


class TestHttpResponse:
    def test_header_lookup_case_insensitive(self):
        response = HttpResponse(200, {"Content-Type": "application/json"})

        assert response.header("content-type") == "application/json"
        assert response.content_type == "application/json"

    def test_missing_header(self):
        assert HttpResponse(200).content_type == ""


class TestAiohttpTransport:
    """Tests for AiohttpTransport.request()."""

    @pytest.mark.asyncio
    async def test_reads_body(self):
        mock_response = MagicMock()
        mock_response.status = 201
        mock_response.headers = {"Content-Type": "application/json"}
        mock_response.charset = "utf-8"
        mock_response.read = AsyncMock(return_value=b'{"url": "x"}')
        session = _session_with(response=mock_response)

        transport = AiohttpTransport(session=session, proxy="http://proxy:3128")
        response = await transport.request("put", "https://amo.test/x/", {"A": "b"})

        assert response.status == 201
        assert response.body == '{"url": "x"}'
        call = session.request.call_args
        assert call.args[:2] == ("PUT", "https://amo.test/x/")
        assert call.kwargs["proxy"] == "http://proxy:3128"

    @pytest.mark.asyncio
    async def test_client_error_wrapped(self):
        cause = aiohttp.ClientConnectionError("refused")
        session = _session_with(request_side_effect=cause)

        transport = AiohttpTransport(session=session)
        with pytest.raises(TransportError) as exc_info:
            await transport.request("GET", "https://amo.test/", {})

        assert exc_info.value.cause is cause

    @pytest.mark.asyncio
    async def test_timeout_wrapped(self):
        session = _session_with(request_side_effect=asyncio.TimeoutError())

        transport = AiohttpTransport(session=session, timeout_seconds=5)
        with pytest.raises(TransportError, match="Timeout after 5s"):
            await transport.request("GET", "https://amo.test/", {})

    @pytest.mark.asyncio
    async def test_shared_session_not_closed(self):
        session = _session_with(response=MagicMock())

        transport = AiohttpTransport(session=session)
        await transport.close()

        session.close.assert_not_called()

