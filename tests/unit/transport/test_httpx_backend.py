"""Tests for the httpx transport backend."""

import httpx
import pytest

from twitch_api_core.errors.exceptions import TransportFailure
from twitch_api_core.transport import BACKENDS, AiohttpTransport, HttpxTransport, create_transport
from twitch_api_core.transport.base import RawRequest


class TestHttpxTransport:
    """Test HttpxTransport over httpx.MockTransport."""

    @pytest.mark.unit
    async def test_sends_exactly_one_exchange(self):
        """The request is passed through untouched and the response returned raw."""
        seen: list[httpx.Request] = []

        async def mock_handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                503,
                headers={"Ratelimit-Remaining": "799"},
                json={"error": "Service Unavailable"},
            )

        async with httpx.AsyncClient(transport=httpx.MockTransport(mock_handler)) as client:
            transport = HttpxTransport(client)
            response = await transport.send(
                RawRequest(
                    "POST",
                    "https://api.twitch.tv/helix/moderation/enforcements/status?broadcaster_id=1",
                    headers={"Client-Id": "abc", "Content-Type": "application/json"},
                    body=b'{"data": []}',
                )
            )

        # No retry on 5xx; that is the caller's decision
        assert len(seen) == 1
        assert seen[0].method == "POST"
        assert seen[0].url.params["broadcaster_id"] == "1"
        assert seen[0].headers["client-id"] == "abc"
        assert seen[0].content == b'{"data": []}'
        assert response.status == 503
        assert response.header("Ratelimit-Remaining") == "799"
        assert response.json() == {"error": "Service Unavailable"}

    @pytest.mark.unit
    async def test_timeout_maps_to_transport_failure(self):
        async def mock_handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(mock_handler)) as client:
            with pytest.raises(TransportFailure) as exc_info:
                await HttpxTransport(client).send(RawRequest("GET", "https://api.twitch.tv/helix/users"))

        assert exc_info.value.failure == "timeout"

    @pytest.mark.unit
    async def test_connect_error_maps_to_transport_failure(self):
        async def mock_handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(mock_handler)) as client:
            with pytest.raises(TransportFailure) as exc_info:
                await HttpxTransport(client).send(RawRequest("GET", "https://api.twitch.tv/helix/users"))

        assert exc_info.value.failure == "connect"
        assert exc_info.value.status_code is None

    @pytest.mark.unit
    async def test_tls_error_is_distinguished(self):
        async def mock_handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("[SSL: CERTIFICATE_VERIFY_FAILED]", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(mock_handler)) as client:
            with pytest.raises(TransportFailure) as exc_info:
                await HttpxTransport(client).send(RawRequest("GET", "https://api.twitch.tv/helix/users"))

        assert exc_info.value.failure == "tls"

    @pytest.mark.unit
    async def test_other_transport_errors(self):
        async def mock_handler(request: httpx.Request) -> httpx.Response:
            raise httpx.RemoteProtocolError("peer closed connection", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(mock_handler)) as client:
            with pytest.raises(TransportFailure) as exc_info:
                await HttpxTransport(client).send(RawRequest("GET", "https://api.twitch.tv/helix/users"))

        assert exc_info.value.failure == "other"

    @pytest.mark.unit
    async def test_borrowed_client_is_not_closed(self):
        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(204)))

        async with HttpxTransport(client):
            pass

        assert not client.is_closed
        await client.aclose()

    @pytest.mark.unit
    async def test_owned_client_is_closed(self):
        transport = HttpxTransport()

        await transport.aclose()

        assert transport._client.is_closed


class TestCreateTransport:
    """Test backend selection by name."""

    @pytest.mark.unit
    async def test_known_backends(self):
        for name, transport_class in BACKENDS.items():
            transport = create_transport(name, timeout=5)
            assert isinstance(transport, transport_class)
            await transport.aclose()

    @pytest.mark.unit
    def test_both_backends_registered(self):
        assert BACKENDS == {"httpx": HttpxTransport, "aiohttp": AiohttpTransport}

    @pytest.mark.unit
    def test_unknown_backend(self):
        with pytest.raises(ValueError, match="Unknown HTTP backend 'requests'"):
            create_transport("requests")
