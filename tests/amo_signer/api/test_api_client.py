"""
Tests for RequestExecutor and response helpers.

Test coverage:
- Request configuration (URL prefixing, default and custom headers)
- Status normalization (<200, >299, throw_on_bad_response=False)
- JSON parsing and broken JSON fallback
- Debug tracing with redaction
- Transport errors propagated unchanged
"""

import jwt
import pytest

from amo_signer.api.client import (
    RequestConfig,
    RequestExecutor,
    format_response,
    parse_body,
)
from amo_signer.api.transport import HttpResponse
from amo_signer.common.exceptions import BadResponseError, TransportError, ValidationError


class TestConfigureRequest:
    """Tests for RequestExecutor.configure_request()."""

    def test_relative_url_gets_prefix(self, executor):
        request = executor.configure_request({"url": "/addons/foo/versions/1.0/"})

        assert request.url == "https://amo.test/api/v3/addons/foo/versions/1.0/"

    def test_absolute_url_passes_through(self, executor):
        request = executor.configure_request({"url": "https://cdn.test/file.xpi"})

        assert request.url == "https://cdn.test/file.xpi"

    def test_default_headers(self, executor):
        request = executor.configure_request({"url": "/status/"})

        assert request.headers["Accept"] == "application/json"
        assert request.headers["Authorization"].startswith("JWT ")
        token = request.headers["Authorization"][4:]
        assert jwt.decode(token, "some-secret", algorithms=["HS256"])["iss"] == "user:12345:67"

    def test_custom_headers_kept(self, executor):
        request = executor.configure_request(
            {"url": "/status/", "headers": {"X-Custom": "value"}}
        )

        assert request.headers["X-Custom"] == "value"
        assert "Authorization" in request.headers

    def test_caller_overrides_defaults(self, executor):
        request = executor.configure_request(
            {"url": "/status/", "headers": {"Accept": "text/plain"}}
        )

        assert request.headers["Accept"] == "text/plain"

    def test_caller_config_not_mutated(self, executor):
        headers = {"X-Custom": "value"}
        config = RequestConfig(url="/status/", headers=headers)

        request = executor.configure_request(config)

        assert request is not config
        assert headers == {"X-Custom": "value"}
        assert config.url == "/status/"

    def test_result_keys(self, executor):
        assert set(executor.configure_request({"url": "/a/"}).as_dict()) == {"url", "headers"}
        with_form = executor.configure_request({"url": "/a/", "form_data": {"upload": "x"}})
        assert set(with_form.as_dict()) == {"url", "headers", "form_data"}

    @pytest.mark.parametrize("config", [{}, {"url": None}, {"url": ""}])
    def test_missing_url(self, executor, config):
        with pytest.raises(ValidationError, match="URL was not specified"):
            executor.configure_request(config)


class TestRequest:
    """Tests for RequestExecutor.request() and verb helpers."""

    @pytest.mark.asyncio
    async def test_get_returns_parsed_json(self, executor, fake_transport, response_factory):
        fake_transport.queue(response_factory(200, {"processed": True}))

        response, body = await executor.get({"url": "/status/"})

        assert response.status == 200
        assert body == {"processed": True}
        assert fake_transport.calls[0]["method"] == "GET"
        assert fake_transport.calls[0]["url"] == "https://amo.test/api/v3/status/"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("verb", ["get", "put", "post", "patch", "delete"])
    async def test_verb_helpers(self, executor, fake_transport, verb):
        await getattr(executor, verb)({"url": "/x/"})

        assert fake_transport.calls[0]["method"] == verb.upper()

    @pytest.mark.asyncio
    async def test_form_data_forwarded(self, executor, fake_transport):
        await executor.put({"url": "/x/", "form_data": {"upload": "stream"}})

        assert fake_transport.calls[0]["form_data"] == {"upload": "stream"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [199, 300, 404, 500])
    async def test_bad_status_rejects(self, executor, fake_transport, response_factory, status):
        fake_transport.queue(response_factory(status, {"error": "nope"}))

        with pytest.raises(BadResponseError) as exc_info:
            await executor.get({"url": "/status/"})

        assert exc_info.value.status_code == status
        assert str(exc_info.value).startswith(
            "Received bad response from the server while requesting "
            "https://amo.test/api/v3/status/"
        )
        assert exc_info.value.body == {"error": "nope"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [200, 201, 202, 299])
    async def test_2xx_accepted(self, executor, fake_transport, response_factory, status):
        fake_transport.queue(response_factory(status, ""))

        response, _ = await executor.get({"url": "/status/"})

        assert response.status == status

    @pytest.mark.asyncio
    async def test_bad_status_returned_when_not_throwing(
        self, executor, fake_transport, response_factory
    ):
        fake_transport.queue(response_factory(409, {"error": "exists"}))

        response, body = await executor.put({"url": "/x/"}, throw_on_bad_response=False)

        assert response.status == 409
        assert body == {"error": "exists"}

    @pytest.mark.asyncio
    async def test_broken_json_returns_text(self, executor, fake_transport):
        fake_transport.queue(
            HttpResponse(200, {"Content-Type": "application/json"}, "{not valid json")
        )

        _, body = await executor.get({"url": "/status/"})

        assert body == "{not valid json"

    @pytest.mark.asyncio
    async def test_transport_error_propagated_unchanged(
        self, executor, fake_transport, transport_error
    ):
        fake_transport.queue(transport_error)

        with pytest.raises(TransportError) as exc_info:
            await executor.get({"url": "/status/"})

        assert exc_info.value is transport_error

    @pytest.mark.asyncio
    async def test_missing_url_before_network(self, executor, fake_transport):
        with pytest.raises(ValidationError):
            await executor.get({})

        assert fake_transport.calls == []

    @pytest.mark.asyncio
    async def test_close_closes_transport(self, executor, fake_transport):
        await executor.close()

        assert fake_transport.closed is True


class TestDebugTracing:
    """Tests for debug() and request tracing."""

    def _executor(self, authenticator, fake_transport, debug_sink, debug_logging):
        return RequestExecutor(
            authenticator,
            api_url_prefix="https://amo.test/api/v3",
            transport=fake_transport,
            debug_logging=debug_logging,
            logger=debug_sink,
        )

    def test_debug_redacts_without_mutating(self, authenticator, fake_transport, debug_sink):
        executor = self._executor(authenticator, fake_transport, debug_sink, True)
        payload = {
            "request": {
                "headers": {
                    "Authorization": "JWT abc",
                    "cookie": "sessionid=1",
                    "Accept": "application/json",
                }
            },
            "response": {"headers": {"set-cookie": "sessionid=2"}},
        }

        executor.debug("[API] trace", payload)

        label, logged = debug_sink.messages[0]
        assert label == "[API] trace"
        assert logged["request"]["headers"]["Authorization"] == "<REDACTED>"
        assert logged["request"]["headers"]["cookie"] == "<REDACTED>"
        assert logged["request"]["headers"]["Accept"] == "application/json"
        assert logged["response"]["headers"]["set-cookie"] == "<REDACTED>"
        assert payload["request"]["headers"]["Authorization"] == "JWT abc"

    def test_debug_off_emits_nothing(self, authenticator, fake_transport, debug_sink):
        executor = self._executor(authenticator, fake_transport, debug_sink, False)

        executor.debug("[API] trace", {"a": 1})

        assert debug_sink.messages == []

    @pytest.mark.asyncio
    async def test_request_traced_with_redacted_auth(
        self, authenticator, fake_transport, debug_sink, response_factory
    ):
        executor = self._executor(authenticator, fake_transport, debug_sink, True)
        fake_transport.queue(response_factory(200, {"ok": True}))

        await executor.get({"url": "/status/"})

        labels = [label for label, _ in debug_sink.messages]
        assert labels == ["[API] request", "[API] response"]
        request_trace = debug_sink.messages[0][1]["request"]
        assert request_trace["headers"]["Authorization"] == "<REDACTED>"
        assert debug_sink.messages[1][1]["response"]["status"] == 200


class TestFormatResponse:
    """Tests for format_response()."""

    def test_dict_as_compact_json(self):
        assert format_response({"error": "bad", "code": 1}) == '{"error":"bad","code":1}'

    def test_truncates_long_text(self):
        assert format_response("x" * 20, max_length=5) == "xxxxx..."

    def test_short_text_unchanged(self):
        assert format_response("short") == "short"

    def test_unserializable_falls_back_to_str(self):
        class Thing:
            def __str__(self):
                return "thing"

        assert format_response(Thing()) == "thing"


class TestParseBody:
    """Tests for parse_body()."""

    def test_text_content_type_not_parsed(self):
        response = HttpResponse(200, {"Content-Type": "text/html"}, '{"a": 1}')

        assert parse_body(response) == '{"a": 1}'

    def test_json_content_type_case_insensitive_header(self):
        response = HttpResponse(200, {"content-type": "application/json; charset=utf-8"}, '{"a": 1}')

        assert parse_body(response) == {"a": 1}
