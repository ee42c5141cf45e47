"""Transport backend built on ``aiohttp.ClientSession``."""

import asyncio

import aiohttp

from twitch_api_core.errors.exceptions import TransportFailure
from twitch_api_core.transport.base import RawRequest, RawResponse, Transport


class AiohttpTransport(Transport):
    """Perform exchanges with aiohttp.

    The session is created lazily inside the running event loop when none is
    supplied, and closed by :meth:`aclose` only if this transport created it.
    """

    def __init__(self, session: aiohttp.ClientSession | None = None, *, timeout: float = 30.0) -> None:
        self._session = session
        self._owns_session = session is None
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
            self._owns_session = True
        return self._session

    async def send(self, request: RawRequest) -> RawResponse:
        session = self._get_session()
        try:
            async with session.request(
                request.method,
                request.url,
                headers=dict(request.headers),
                data=request.body,
            ) as response:
                body = await response.read()
                return RawResponse(status=response.status, headers=dict(response.headers), body=body)
        except asyncio.TimeoutError as e:
            raise TransportFailure(f"Request {request.method} {request.url} timed out", failure="timeout") from e
        except aiohttp.ClientSSLError as e:
            raise TransportFailure(f"TLS failure talking to {request.url}: {e}", failure="tls") from e
        except aiohttp.ClientConnectionError as e:
            raise TransportFailure(f"Could not connect to {request.url}: {e}", failure="connect") from e
        except aiohttp.ClientPayloadError as e:
            raise TransportFailure(f"Could not decode response from {request.url}: {e}", failure="decode") from e
        except aiohttp.ClientError as e:
            raise TransportFailure(f"Request {request.method} {request.url} failed: {e}") from e

    async def aclose(self) -> None:
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
