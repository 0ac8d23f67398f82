"""Unit tests for the aiohttp transport, against a local test server."""

import socket

import pytest
from aiohttp import test_utils, web

from bedrock_chef.models.models import TransportError
from bedrock_chef.transport.http import HttpTransport


def _app(status=200, body='{"ok": true}', seen=None):
    async def handle(request: web.Request) -> web.Response:
        if seen is not None:
            seen["path"] = request.raw_path
            seen["method"] = request.method
            seen["headers"] = dict(request.headers)
            seen["body"] = await request.read()
        return web.Response(status=status, text=body, content_type="application/json")

    app = web.Application()
    app.router.add_route("*", "/{tail:.*}", handle)
    return app


def _closed_port() -> int:
    with socket.socket() as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


class TestHttpTransport:
    """Test request forwarding and response buffering."""

    @pytest.mark.asyncio
    async def test_post_sends_body_headers_and_path(self):
        """The exact path, headers and body reach the server."""
        seen = {}
        async with test_utils.TestServer(_app(seen=seen)) as server:
            host = f"{server.host}:{server.port}"
            response = await HttpTransport(scheme="http").post(
                host,
                "/model/m.v1:0/invoke",
                {"Content-Type": "application/json", "X-Amz-Date": "20240620T123456Z", "Authorization": "AWS4 x"},
                '{"prompt": "hi"}',
            )

        assert response.status_code == 200
        assert response.body == '{"ok": true}'
        assert seen["method"] == "POST"
        assert seen["path"] == "/model/m.v1:0/invoke"
        assert seen["body"] == b'{"prompt": "hi"}'
        assert seen["headers"]["X-Amz-Date"] == "20240620T123456Z"
        assert seen["headers"]["Authorization"] == "AWS4 x"

    @pytest.mark.asyncio
    async def test_error_status_is_returned_not_raised(self):
        """HTTP errors come back as responses."""
        async with test_utils.TestServer(_app(status=403, body='{"message": "denied"}')) as server:
            response = await HttpTransport(scheme="http").post(f"{server.host}:{server.port}", "/x", {}, "{}")

        assert response.status_code == 403
        assert not response.ok
        assert response.body == '{"message": "denied"}'

    @pytest.mark.asyncio
    async def test_bytes_body_sent_unchanged(self):
        """bytes bodies are sent as-is."""
        seen = {}
        async with test_utils.TestServer(_app(seen=seen)) as server:
            await HttpTransport(scheme="http").post(f"{server.host}:{server.port}", "/x", {}, b"\x00\x01")

        assert seen["body"] == b"\x00\x01"

    @pytest.mark.asyncio
    async def test_large_body_fully_buffered(self):
        """Large responses are read completely."""
        payload = "a" * 300_000
        async with test_utils.TestServer(_app(body=payload)) as server:
            response = await HttpTransport(scheme="http").post(f"{server.host}:{server.port}", "/x", {}, "{}")

        assert len(response.body) == 300_000

    @pytest.mark.asyncio
    async def test_connection_refused_raises_transport_error(self):
        """Network failures raise TransportError, distinct from HTTP errors."""
        with pytest.raises(TransportError) as exc:
            await HttpTransport(scheme="http").post(f"127.0.0.1:{_closed_port()}", "/x", {}, "{}")

        assert "/x" in str(exc.value)
        assert exc.value.__cause__ is not None

    def test_default_scheme_is_https(self):
        """Bedrock is reached over HTTPS unless overridden."""
        assert HttpTransport().scheme == "https"
