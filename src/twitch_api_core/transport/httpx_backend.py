"""Transport backend built on ``httpx.AsyncClient``."""

import httpx

from twitch_api_core.errors.exceptions import TransportFailure
from twitch_api_core.transport.base import RawRequest, RawResponse, Transport


class HttpxTransport(Transport):
    """Perform exchanges with httpx.

    Args:
        client: Existing client to use. When omitted, the transport creates
            one and closes it in :meth:`aclose`.
        timeout: Total timeout in seconds for clients created here.

    Example:
        ```python
        async with HttpxTransport(timeout=10) as transport:
            response = await transport.send(RawRequest("GET", "https://api.twitch.tv/helix/users"))
        ```
    """

    def __init__(self, client: httpx.AsyncClient | None = None, *, timeout: float = 30.0) -> None:
        self._owns_client = client is None
        self._client = client if client is not None else httpx.AsyncClient(timeout=timeout)

    async def send(self, request: RawRequest) -> RawResponse:
        try:
            response = await self._client.request(
                request.method,
                request.url,
                headers=dict(request.headers),
                content=request.body,
            )
        except httpx.TimeoutException as e:
            raise TransportFailure(f"Request {request.method} {request.url} timed out", failure="timeout") from e
        except httpx.ConnectError as e:
            failure = "tls" if "SSL" in str(e) or "certificate" in str(e) else "connect"
            raise TransportFailure(f"Could not connect to {request.url}: {e}", failure=failure) from e
        except httpx.DecodingError as e:
            raise TransportFailure(f"Could not decode response from {request.url}: {e}", failure="decode") from e
        except httpx.TransportError as e:
            raise TransportFailure(f"Request {request.method} {request.url} failed: {e}") from e

        return RawResponse(status=response.status_code, headers=dict(response.headers), body=response.content)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
