"""PubSub WebSocket client.

One background task owns the connection: it connects, replays active
subscriptions, runs the keepalive and reads frames until the socket drops or
the server asks for a reconnect. Callers interact through
:meth:`PubSubClient.subscribe`, :meth:`PubSubClient.unsubscribe` and
:meth:`PubSubClient.messages`.

```python
async with PubSubClient() as pubsub:
    await pubsub.subscribe(ChatModeratorActions(user_id, channel_id), token)
    async for message in pubsub.messages():
        print(message.topic, message.payload)
```
"""

import asyncio
import contextlib
import logging
import random
import uuid
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol

import websockets
from websockets.exceptions import ConnectionClosed, WebSocketException

from twitch_api_core.errors.exceptions import (
    ProtocolViolation,
    SubscriptionRejected,
    SubscriptionTimeout,
    TransportFailure,
)
from twitch_api_core.pubsub.messages import (
    PING_FRAME,
    MessageFrame,
    PongFrame,
    ReconnectFrame,
    ResponseFrame,
    listen_frame,
    parse_frame,
)
from twitch_api_core.pubsub.topics import Topic
from twitch_api_core.retry import ExponentialBackoff

logger = logging.getLogger(__name__)

PUBSUB_URL = "wss://pubsub-edge.twitch.tv"


class Connection(Protocol):
    async def send(self, message: str) -> None: ...

    async def recv(self) -> str | bytes: ...

    async def close(self) -> None: ...


Connector = Callable[[str], Awaitable[Connection]]


async def websocket_connector(url: str) -> Connection:
    """Open a socket with the library's own pings off; keepalive is PING/PONG frames."""
    return await websockets.connect(url, ping_interval=None)


def _text(raw: str | bytes) -> str:
    if isinstance(raw, str):
        return raw
    try:
        return raw.decode()
    except UnicodeDecodeError as e:
        raise ProtocolViolation(f"PubSub frame is not valid UTF-8: {raw[:32]!r}") from e


class ConnectionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    CLOSED = "closed"


class SubscriptionState(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    FAILED = "failed"


@dataclass(eq=False)
class Subscription:
    """Handle for one topic subscription."""

    topic: Topic
    token: str | None = field(default=None, repr=False)
    state: SubscriptionState = SubscriptionState.PENDING
    nonce: str | None = None


@dataclass(frozen=True)
class TopicMessage:
    """A message delivered on a subscribed topic.

    ``payload`` is the topic's decoded model, or ``None`` with ``error`` set
    when the payload did not match it. ``raw`` is the undecoded payload string.
    """

    topic: Topic
    payload: Any
    raw: str
    error: ProtocolViolation | None = None


@dataclass
class _PendingAck:
    command: str
    topic: str
    future: asyncio.Future


class PubSubClient:
    """Subscribe to Twitch PubSub topics over one reconnecting socket.

    Args:
        url: PubSub endpoint.
        connector: Coroutine function opening a connection for a URL.
        ping_interval: Seconds between PINGs; each wait is jittered down by up to 10%.
        pong_timeout: Seconds to wait for PONG before forcing a reconnect.
        ack_timeout: Seconds to wait for the RESPONSE to a LISTEN/UNLISTEN.
        reconnect: Reconnect after a dropped connection or a RECONNECT frame.
        backoff: Delay policy between reconnection attempts.
        max_queued: Undelivered messages kept for :meth:`messages`; when full
            the oldest is dropped.
    """

    def __init__(
        self,
        url: str = PUBSUB_URL,
        *,
        connector: Connector | None = None,
        ping_interval: float = 240.0,
        pong_timeout: float = 10.0,
        ack_timeout: float = 10.0,
        reconnect: bool = True,
        backoff: ExponentialBackoff | None = None,
        max_queued: int = 1000,
    ):
        self.url = url
        self.ping_interval = ping_interval
        self.pong_timeout = pong_timeout
        self.ack_timeout = ack_timeout
        self.reconnect = reconnect
        self.backoff = backoff or ExponentialBackoff(initial=1.0, maximum=120.0, jitter=0.5)
        self.state = ConnectionState.DISCONNECTED

        self._connector = connector or websocket_connector
        self._connection: Connection | None = None
        self._runner: asyncio.Task | None = None
        self._connected = asyncio.Event()
        self._pong = asyncio.Event()
        self._lock = asyncio.Lock()
        self._pending: dict[str, _PendingAck] = {}
        self._subscriptions: dict[str, Subscription] = {}
        self._messages: asyncio.Queue[TopicMessage] = asyncio.Queue(maxsize=max_queued)
        self._background: set[asyncio.Task] = set()
        self._closing = False

    @property
    def subscriptions(self) -> dict[str, Subscription]:
        """Subscriptions by topic name, including ones awaiting re-confirmation."""
        return dict(self._subscriptions)

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def connect(self) -> None:
        """Start the connection task and wait until the socket is open.

        Raises:
            TransportFailure: If the connection cannot be opened and
                reconnecting is disabled.
        """
        if self._runner is None or self._runner.done():
            self._closing = False
            self._runner = asyncio.create_task(self._run(), name="pubsub-connection")

        waiter = asyncio.ensure_future(self._connected.wait())
        done, _ = await asyncio.wait({waiter, self._runner}, return_when=asyncio.FIRST_COMPLETED)
        if waiter in done:
            return
        waiter.cancel()
        self._runner.result()
        raise TransportFailure("PubSub connection task ended before connecting")

    async def close(self) -> None:
        """Stop the connection task and close the socket."""
        self._closing = True
        if self._runner is not None and not self._runner.done():
            self._runner.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._runner
        self._runner = None
        background = list(self._background)
        for task in background:
            task.cancel()
        await asyncio.gather(*background, return_exceptions=True)
        self._set_state(ConnectionState.CLOSED)

    async def subscribe(self, topic: Topic | str, token: str | None = None) -> Subscription:
        """LISTEN on ``topic`` and wait for the server's acknowledgement.

        Raises:
            SubscriptionRejected: If the server answers with an error.
            SubscriptionTimeout: If no acknowledgement arrives in time.
            TransportFailure: If not connected, or the connection drops first.
        """
        if isinstance(topic, str):
            topic = Topic.parse(topic)
        subscription = Subscription(topic=topic, token=token)
        error = await self._request("LISTEN", subscription)
        if error:
            subscription.state = SubscriptionState.FAILED
            raise SubscriptionRejected(f"LISTEN {topic} rejected: {error}", topic=topic.name, error=error)
        subscription.state = SubscriptionState.ACTIVE
        self._subscriptions[topic.name] = subscription
        logger.info(f"Subscribed to {topic}")
        return subscription

    async def unsubscribe(self, topic: Topic | str) -> None:
        """UNLISTEN on ``topic``. The handle is dropped even if the server refuses."""
        name = str(topic)
        subscription = self._subscriptions.pop(name, None)
        if subscription is None:
            raise KeyError(f"Not subscribed to {name}")
        if self._connection is None:
            return
        error = await self._request("UNLISTEN", subscription)
        if error:
            raise SubscriptionRejected(f"UNLISTEN {name} rejected: {error}", topic=name, error=error)
        logger.info(f"Unsubscribed from {name}")

    async def messages(self) -> AsyncIterator[TopicMessage]:
        """Yield topic messages as they arrive, across reconnects."""
        while True:
            yield await self._messages.get()

    async def _request(self, command: str, subscription: Subscription) -> str:
        topic = subscription.topic.name
        async with self._lock:
            connection = self._connection
            if connection is None or self.state is not ConnectionState.CONNECTED:
                raise TransportFailure(f"Cannot {command} {topic}: PubSub is not connected", failure="connect")
            nonce = uuid.uuid4().hex
            future = asyncio.get_running_loop().create_future()
            self._pending[nonce] = _PendingAck(command, topic, future)
            subscription.nonce = nonce
            try:
                await connection.send(listen_frame(command, nonce, [topic], subscription.token))
            except (ConnectionClosed, OSError) as e:
                self._pending.pop(nonce, None)
                raise TransportFailure(f"Cannot {command} {topic}: {e}") from e

        try:
            return await asyncio.wait_for(future, self.ack_timeout)
        except TimeoutError:
            self._pending.pop(nonce, None)
            raise SubscriptionTimeout(
                f"No acknowledgement for {command} {topic} within {self.ack_timeout}s", topic=topic
            ) from None

    async def _run(self) -> None:
        attempt = 0
        while not self._closing:
            self._set_state(ConnectionState.CONNECTING)
            try:
                connection = await self._connector(self.url)
            except (OSError, TimeoutError, WebSocketException) as e:
                self._set_state(ConnectionState.DISCONNECTED)
                if not self.reconnect:
                    raise TransportFailure(f"Could not connect to {self.url}: {e}", failure="connect") from e
                attempt += 1
                delay = self.backoff.delay(attempt)
                logger.warning(f"PubSub connection failed ({e}), retrying in {delay:.1f}s")
                await asyncio.sleep(delay)
                continue

            attempt = 0
            await self._serve(connection)
            if self._closing or not self.reconnect:
                return
            delay = self.backoff.delay(1)
            logger.info(f"Reconnecting to PubSub in {delay:.1f}s")
            await asyncio.sleep(delay)

    async def _serve(self, connection: Connection) -> None:
        keepalive = None
        try:
            self._connection = connection
            self._set_state(ConnectionState.CONNECTED)
            self._connected.set()
            self._resubscribe()
            keepalive = asyncio.create_task(self._keepalive(connection), name="pubsub-keepalive")
            await self._read_loop(connection)
        except (ConnectionClosed, OSError) as e:
            logger.warning(f"PubSub connection lost: {e}")
        except Exception:
            logger.exception("PubSub connection failed unexpectedly, treating it as lost")
        finally:
            if keepalive is not None:
                keepalive.cancel()
            self._connection = None
            self._connected.clear()
            self._fail_pending(TransportFailure("PubSub connection lost before acknowledgement"))
            if self.state is ConnectionState.CONNECTED:
                self._set_state(ConnectionState.DISCONNECTED)
            with contextlib.suppress(ConnectionClosed, OSError):
                await connection.close()
            if keepalive is not None:
                await asyncio.gather(keepalive, return_exceptions=True)

    async def _read_loop(self, connection: Connection) -> None:
        while True:
            raw = await connection.recv()
            try:
                frame = parse_frame(_text(raw))
            except ProtocolViolation as e:
                logger.warning(str(e))
                continue

            if isinstance(frame, ResponseFrame):
                self._acknowledge(frame)
            elif isinstance(frame, MessageFrame):
                self._dispatch(frame)
            elif isinstance(frame, PongFrame):
                self._pong.set()
            elif isinstance(frame, ReconnectFrame):
                logger.info("PubSub server requested a reconnect")
                return

    async def _keepalive(self, connection: Connection) -> None:
        try:
            while True:
                await asyncio.sleep(self.ping_interval * random.uniform(0.9, 1.0))
                self._pong.clear()
                await connection.send(PING_FRAME)
                try:
                    await asyncio.wait_for(self._pong.wait(), self.pong_timeout)
                except TimeoutError:
                    logger.warning(f"No PONG within {self.pong_timeout}s, forcing reconnect")
                    await connection.close()
                    return
        except (ConnectionClosed, OSError):
            # the read loop sees the same failure and handles it
            return

    def _acknowledge(self, frame: ResponseFrame) -> None:
        pending = self._pending.pop(frame.nonce, None) if frame.nonce else None
        if pending is None:
            logger.warning(f"Ignoring RESPONSE with unknown nonce {frame.nonce!r}")
            return
        if not pending.future.done():
            pending.future.set_result(frame.error)

    def _dispatch(self, frame: MessageFrame) -> None:
        topic = Topic.parse(frame.data.topic)
        try:
            message = TopicMessage(topic, topic.decode(frame.data.message), frame.data.message)
        except ProtocolViolation as e:
            logger.warning(str(e))
            message = TopicMessage(topic, None, frame.data.message, error=e)
        if self._messages.full():
            dropped = self._messages.get_nowait()
            logger.warning(f"Message queue full ({self._messages.maxsize}), dropping oldest message for {dropped.topic}")
        self._messages.put_nowait(message)

    def _fail_pending(self, error: TransportFailure) -> None:
        pending, self._pending = self._pending, {}
        for ack in pending.values():
            if not ack.future.done():
                ack.future.set_exception(error)

    def _resubscribe(self) -> None:
        for subscription in list(self._subscriptions.values()):
            subscription.state = SubscriptionState.PENDING
            task = asyncio.create_task(self._confirm(subscription), name=f"pubsub-listen-{subscription.topic}")
            self._background.add(task)
            task.add_done_callback(self._background.discard)

    async def _confirm(self, subscription: Subscription) -> None:
        name = subscription.topic.name
        try:
            error = await self._request("LISTEN", subscription)
        except TransportFailure:
            # still PENDING; replayed on the next connection
            return
        except SubscriptionTimeout as e:
            error = str(e)
        if error:
            subscription.state = SubscriptionState.FAILED
            if self._subscriptions.get(name) is subscription:
                del self._subscriptions[name]
            logger.error(f"Resubscribing to {name} failed: {error}")
        else:
            subscription.state = SubscriptionState.ACTIVE
            logger.debug(f"Resubscribed to {name}")

    def _set_state(self, state: ConnectionState) -> None:
        if state is not self.state:
            logger.debug(f"PubSub {self.state.value} -> {state.value}")
            self.state = state
