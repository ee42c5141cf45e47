"""Testing utilities for code built on twitch_api_core.

Scripted doubles for the two I/O seams, so tests never touch the network:

- :class:`ScriptedTransport` answers HTTP exchanges from a queue or a handler
  and records every request it was sent.
- :class:`FakeConnection` / :class:`FakeConnector` stand in for the PubSub
  socket, acknowledging LISTEN/UNLISTEN and answering PING automatically.

Example:
    ```python
    from twitch_api_core.testing import ScriptedTransport, json_response


    async def test_get_users():
        transport = ScriptedTransport([json_response(200, {"data": []})])
        engine = ExecutionEngine(transport, StaticCredentialProvider(make_credential()))
        response = await engine.execute(GetUsersRequest(login=["twitchdev"]))
        assert transport.requests[0].url.endswith("users?login=twitchdev")
    ```
"""

import asyncio
import json
import time
from collections import deque
from collections.abc import Callable, Iterable
from typing import Any

from websockets.exceptions import ConnectionClosedError

from twitch_api_core.auth.tokens import Credential
from twitch_api_core.transport.base import RawRequest, RawResponse, Transport

_CLOSED = object()


def json_response(status: int = 200, body: Any = None, headers: dict[str, str] | None = None) -> RawResponse:
    """Build a JSON ``RawResponse``; ``body=None`` gives an empty body."""
    content = b"" if body is None else json.dumps(body).encode()
    return RawResponse(status=status, headers={"Content-Type": "application/json", **(headers or {})}, body=content)


def rate_limit_headers(limit: int = 800, remaining: int = 799, reset: int | None = None) -> dict[str, str]:
    reset = int(time.time()) + 60 if reset is None else reset
    return {"Ratelimit-Limit": str(limit), "Ratelimit-Remaining": str(remaining), "Ratelimit-Reset": str(reset)}


def make_credential(
    scopes: Iterable[str] = (),
    access_token: str = "test-token",
    client_id: str = "test-client-id",
    **kwargs,
) -> Credential:
    return Credential(access_token=access_token, client_id=client_id, scopes=frozenset(scopes), **kwargs)


class ScriptedTransport(Transport):
    """Transport that replays canned responses.

    Args:
        responses: Responses returned in order, one per request.
        handler: Alternatively, a function computing the response for a request.
            Exceptions it raises propagate from :meth:`send`.
    """

    def __init__(
        self,
        responses: Iterable[RawResponse] = (),
        handler: Callable[[RawRequest], RawResponse] | None = None,
    ):
        self.responses = deque(responses)
        self.handler = handler
        self.requests: list[RawRequest] = []
        self.closed = False

    async def send(self, request: RawRequest) -> RawResponse:
        self.requests.append(request)
        if self.handler is not None:
            return self.handler(request)
        if not self.responses:
            raise AssertionError(f"Unexpected request: {request.method} {request.url}")
        return self.responses.popleft()

    async def aclose(self) -> None:
        self.closed = True


class FakeConnection:
    """In-memory PubSub socket.

    Frames the client sends are decoded into :attr:`sent`. Frames pushed with
    :meth:`push` are what the client receives. :meth:`drop` simulates the
    server closing the connection.

    Args:
        auto_ack: Answer LISTEN/UNLISTEN with a RESPONSE.
        ack_errors: Error string to answer with, by topic name.
        auto_pong: Answer PING with PONG.
    """

    def __init__(self, auto_ack: bool = True, ack_errors: dict[str, str] | None = None, auto_pong: bool = True):
        self.auto_ack = auto_ack
        self.ack_errors = ack_errors or {}
        self.auto_pong = auto_pong
        self.sent: list[dict[str, Any]] = []
        self.closed = False
        self._incoming: asyncio.Queue = asyncio.Queue()

    def push(self, frame: dict[str, Any] | str | bytes) -> None:
        self._incoming.put_nowait(frame if isinstance(frame, (str, bytes)) else json.dumps(frame))

    def push_message(self, topic: str, payload: dict[str, Any] | str) -> None:
        message = payload if isinstance(payload, str) else json.dumps(payload)
        self.push({"type": "MESSAGE", "data": {"topic": topic, "message": message}})

    def drop(self) -> None:
        self._incoming.put_nowait(_CLOSED)

    def sent_of_type(self, frame_type: str) -> list[dict[str, Any]]:
        return [frame for frame in self.sent if frame["type"] == frame_type]

    async def send(self, message: str) -> None:
        if self.closed:
            raise ConnectionClosedError(None, None)
        frame = json.loads(message)
        self.sent.append(frame)
        if frame["type"] in ("LISTEN", "UNLISTEN") and self.auto_ack:
            topic = frame["data"]["topics"][0]
            self.push({"type": "RESPONSE", "nonce": frame["nonce"], "error": self.ack_errors.get(topic, "")})
        elif frame["type"] == "PING" and self.auto_pong:
            self.push({"type": "PONG"})

    async def recv(self) -> str | bytes:
        frame = await self._incoming.get()
        if frame is _CLOSED:
            self.closed = True
            raise ConnectionClosedError(None, None)
        return frame

    async def close(self) -> None:
        if not self.closed:
            self.closed = True
            self._incoming.put_nowait(_CLOSED)


class FakeConnector:
    """Connector handing out a new :class:`FakeConnection` per connect."""

    def __init__(self, factory: Callable[[], FakeConnection] = FakeConnection):
        self.factory = factory
        self.connections: list[FakeConnection] = []
        self.urls: list[str] = []

    async def __call__(self, url: str) -> FakeConnection:
        connection = self.factory()
        self.urls.append(url)
        self.connections.append(connection)
        return connection

    @property
    def current(self) -> FakeConnection:
        return self.connections[-1]


async def wait_until(predicate: Callable[[], bool], timeout: float = 1.0, interval: float = 0.005) -> None:
    """Poll ``predicate`` until it holds.

    Raises:
        TimeoutError: If it does not hold within ``timeout`` seconds.
    """
    async with asyncio.timeout(timeout):
        while not predicate():
            await asyncio.sleep(interval)


__all__ = [
    "FakeConnection",
    "FakeConnector",
    "ScriptedTransport",
    "json_response",
    "make_credential",
    "rate_limit_headers",
    "wait_until",
]
