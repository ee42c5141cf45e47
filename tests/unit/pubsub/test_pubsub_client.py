"""Tests for the PubSub client against an in-memory connection."""

import asyncio

import pytest

from twitch_api_core.errors import ProtocolViolation, SubscriptionRejected, SubscriptionTimeout, TransportFailure
from twitch_api_core.pubsub import (
    ChatModeratorActions,
    ConnectionState,
    ModeratorActionMessage,
    PubSubClient,
    RawTopic,
    SubscriptionState,
    Whispers,
)
from twitch_api_core.retry import ExponentialBackoff
from twitch_api_core.testing import FakeConnection, FakeConnector, wait_until

FAST_BACKOFF = ExponentialBackoff(initial=0.001, maximum=0.001)

MODERATION_ACTION = {
    "type": "moderation_action",
    "data": {
        "type": "chat_login_moderation",
        "moderation_action": "timeout",
        "args": ["spammer", "600", ""],
        "created_by": "twitchdev",
        "created_by_user_id": "141981764",
        "target_user_id": "12345",
    },
}


def make_client(connector, **kwargs):
    kwargs.setdefault("backoff", FAST_BACKOFF)
    kwargs.setdefault("ack_timeout", 1.0)
    return PubSubClient(connector=connector, **kwargs)


async def next_message(pubsub, timeout=1.0):
    messages = pubsub.messages()
    try:
        return await asyncio.wait_for(anext(messages), timeout)
    finally:
        await messages.aclose()


@pytest.fixture
def connector():
    return FakeConnector()


@pytest.fixture
async def pubsub(connector):
    client = make_client(connector)
    await client.connect()
    yield client
    await client.close()


class TestConnect:
    """Test connection lifecycle."""

    @pytest.mark.unit
    async def test_connect_opens_one_connection(self, pubsub, connector):
        assert pubsub.state is ConnectionState.CONNECTED
        assert connector.urls == ["wss://pubsub-edge.twitch.tv"]

    @pytest.mark.unit
    async def test_close_closes_socket(self, connector):
        client = make_client(connector)
        await client.connect()

        await client.close()

        assert client.state is ConnectionState.CLOSED
        assert connector.current.closed

    @pytest.mark.unit
    async def test_context_manager(self, connector):
        async with make_client(connector) as client:
            assert client.state is ConnectionState.CONNECTED

        assert client.state is ConnectionState.CLOSED

    @pytest.mark.unit
    async def test_connect_failure_without_reconnect(self):
        async def refuse(url):
            raise OSError("connection refused")

        client = make_client(refuse, reconnect=False)

        with pytest.raises(TransportFailure) as exc_info:
            await client.connect()

        assert exc_info.value.failure == "connect"
        await client.close()

    @pytest.mark.unit
    async def test_connect_retries_with_backoff(self):
        attempts = 0
        fake = FakeConnection()

        async def flaky(url):
            nonlocal attempts
            attempts += 1
            if attempts < 3:
                raise OSError("connection refused")
            return fake

        client = make_client(flaky)
        await client.connect()

        assert attempts == 3
        assert client.state is ConnectionState.CONNECTED
        await client.close()

    @pytest.mark.unit
    async def test_close_waits_for_background_tasks(self):
        connections = iter([FakeConnection(), FakeConnection(auto_ack=False)])
        connector = FakeConnector(lambda: next(connections))
        client = make_client(connector)
        await client.connect()
        await client.subscribe(Whispers("1"), "token")

        connector.current.drop()
        await wait_until(lambda: len(connector.connections) == 2 and client._background)
        tasks = set(client._background)
        await client.close()

        assert all(task.done() for task in tasks)

    @pytest.mark.unit
    async def test_subscribe_requires_connection(self, connector):
        client = make_client(connector)

        with pytest.raises(TransportFailure, match="not connected"):
            await client.subscribe(Whispers("1"), "token")


class TestSubscribe:
    """Test LISTEN/UNLISTEN and their acknowledgements."""

    @pytest.mark.unit
    async def test_subscribe_sends_listen_and_waits_for_ack(self, pubsub, connector):
        subscription = await pubsub.subscribe(Whispers("44322889"), "user-token")

        listen = connector.current.sent_of_type("LISTEN")
        assert len(listen) == 1
        assert listen[0]["data"] == {"topics": ["whispers.44322889"], "auth_token": "user-token"}
        assert listen[0]["nonce"] == subscription.nonce
        assert subscription.state is SubscriptionState.ACTIVE
        assert list(pubsub.subscriptions) == ["whispers.44322889"]

    @pytest.mark.unit
    async def test_nonces_are_unique(self, pubsub, connector):
        await asyncio.gather(*(pubsub.subscribe(Whispers(str(i)), "token") for i in range(5)))

        nonces = [frame["nonce"] for frame in connector.current.sent_of_type("LISTEN")]
        assert len(set(nonces)) == 5

    @pytest.mark.unit
    async def test_subscribe_by_name(self, pubsub):
        subscription = await pubsub.subscribe("chat_moderator_actions.1.2", "token")

        assert subscription.topic == ChatModeratorActions("1", "2")

    @pytest.mark.unit
    async def test_rejection_fails_only_that_subscription(self):
        connector = FakeConnector(lambda: FakeConnection(ack_errors={"whispers.1": "ERR_BADAUTH"}))
        async with make_client(connector) as client:
            with pytest.raises(SubscriptionRejected) as exc_info:
                await client.subscribe(Whispers("1"), "bad-token")
            sibling = await client.subscribe(Whispers("2"), "good-token")

            assert exc_info.value.error == "ERR_BADAUTH"
            assert exc_info.value.topic == "whispers.1"
            assert sibling.state is SubscriptionState.ACTIVE
            assert list(client.subscriptions) == ["whispers.2"]

    @pytest.mark.unit
    async def test_missing_ack_times_out(self):
        connector = FakeConnector(lambda: FakeConnection(auto_ack=False))
        async with make_client(connector, ack_timeout=0.05) as client:
            with pytest.raises(SubscriptionTimeout) as exc_info:
                await client.subscribe(Whispers("1"), "token")

            assert exc_info.value.topic == "whispers.1"
            assert client.subscriptions == {}
            assert client._pending == {}

    @pytest.mark.unit
    async def test_ack_with_unknown_nonce_is_ignored(self, pubsub, connector):
        connector.current.push({"type": "RESPONSE", "nonce": "not-ours", "error": ""})

        subscription = await pubsub.subscribe(Whispers("1"), "token")

        assert subscription.state is SubscriptionState.ACTIVE

    @pytest.mark.unit
    async def test_unsubscribe(self, pubsub, connector):
        await pubsub.subscribe(Whispers("1"), "token")

        await pubsub.unsubscribe(Whispers("1"))

        unlisten = connector.current.sent_of_type("UNLISTEN")
        assert unlisten[0]["data"]["topics"] == ["whispers.1"]
        assert pubsub.subscriptions == {}

    @pytest.mark.unit
    async def test_unsubscribe_unknown_topic(self, pubsub):
        with pytest.raises(KeyError):
            await pubsub.unsubscribe("whispers.1")


class TestMessages:
    """Test delivery of topic messages."""

    @pytest.mark.unit
    async def test_message_is_decoded_by_topic(self, pubsub, connector):
        await pubsub.subscribe(ChatModeratorActions("141981764", "44322889"), "token")

        connector.current.push_message("chat_moderator_actions.141981764.44322889", MODERATION_ACTION)
        message = await next_message(pubsub)

        assert message.topic == ChatModeratorActions("141981764", "44322889")
        assert isinstance(message.payload, ModeratorActionMessage)
        assert message.payload.data["moderation_action"] == "timeout"
        assert message.error is None

    @pytest.mark.unit
    async def test_undecodable_payload_is_delivered_with_error(self, pubsub, connector):
        connector.current.push_message("whispers.1", {"unexpected": True})

        message = await next_message(pubsub)

        assert message.payload is None
        assert isinstance(message.error, ProtocolViolation)
        assert message.raw == '{"unexpected": true}'

    @pytest.mark.unit
    async def test_unknown_topic_payload_stays_raw(self, pubsub, connector):
        connector.current.push_message("video-playback-by-id.1", {"type": "viewcount", "viewers": 3})

        message = await next_message(pubsub)

        assert isinstance(message.topic, RawTopic)
        assert message.payload.root == {"type": "viewcount", "viewers": 3}

    @pytest.mark.unit
    async def test_garbage_frames_are_skipped(self, pubsub, connector):
        connector.current.push("not json at all")
        connector.current.push_message("whispers.1", {"type": "whisper_received", "data": "{}"})

        message = await next_message(pubsub)

        assert message.topic == Whispers("1")
        assert pubsub.state is ConnectionState.CONNECTED


    @pytest.mark.unit
    async def test_non_utf8_frame_is_skipped(self, pubsub, connector):
        connector.current.push(b"\xff\xfe not utf8")
        connector.current.push_message("whispers.1", {"type": "whisper_received", "data": "{}"})

        message = await next_message(pubsub)

        assert message.topic == Whispers("1")
        assert pubsub.state is ConnectionState.CONNECTED
        assert len(connector.connections) == 1

    @pytest.mark.unit
    async def test_non_utf8_frame_before_first_ack(self):
        def garbled():
            connection = FakeConnection()
            connection.push(b"\xff\xfe")
            return connection

        connector = FakeConnector(garbled)
        async with make_client(connector) as client:
            subscription = await client.subscribe(Whispers("1"), "token")

            assert subscription.state is SubscriptionState.ACTIVE
            assert len(connector.connections) == 1

    @pytest.mark.unit
    async def test_full_queue_drops_oldest(self, connector, caplog):
        async with make_client(connector, max_queued=2) as client:
            for n in ("1", "2", "3"):
                connector.current.push_message("whispers.1", {"type": "whisper_received", "data": n})
            # acknowledged only after the three messages ahead of it were read
            await client.subscribe(Whispers("2"), "token")

            first = await next_message(client)
            second = await next_message(client)

        assert [first.payload.data, second.payload.data] == ["2", "3"]
        assert "dropping oldest message" in caplog.text


class TestReconnect:
    """Test recovery from dropped connections."""

    @pytest.mark.unit
    async def test_drop_resubscribes_each_topic_exactly_once(self, pubsub, connector):
        await pubsub.subscribe(Whispers("1"), "token-1")
        await pubsub.subscribe(ChatModeratorActions("1", "2"), "token-2")

        connector.current.drop()
        await wait_until(
            lambda: len(connector.connections) == 2
            and pubsub.state is ConnectionState.CONNECTED
            and all(s.state is SubscriptionState.ACTIVE for s in pubsub.subscriptions.values())
            and not pubsub._pending
        )

        relisten = connector.connections[1].sent_of_type("LISTEN")
        assert sorted(frame["data"]["topics"][0] for frame in relisten) == [
            "chat_moderator_actions.1.2",
            "whispers.1",
        ]
        assert {frame["data"]["auth_token"] for frame in relisten} == {"token-1", "token-2"}
        # Resubscription acknowledgements are not delivered as messages
        with pytest.raises(TimeoutError):
            await next_message(pubsub, timeout=0.05)

    @pytest.mark.unit
    async def test_pending_ack_fails_on_drop(self):
        connector = FakeConnector(lambda: FakeConnection(auto_ack=False))
        async with make_client(connector) as client:
            task = asyncio.create_task(client.subscribe(Whispers("1"), "token"))
            await wait_until(lambda: connector.current.sent_of_type("LISTEN"))

            connector.current.drop()

            with pytest.raises(TransportFailure):
                await task
            assert client._pending == {}
            assert client.subscriptions == {}

    @pytest.mark.unit
    async def test_server_reconnect_request(self, pubsub, connector):
        await pubsub.subscribe(Whispers("1"), "token")
        first = connector.current

        first.push({"type": "RECONNECT"})
        await wait_until(lambda: len(connector.connections) == 2 and pubsub.state is ConnectionState.CONNECTED)

        assert first.closed
        await wait_until(lambda: connector.connections[1].sent_of_type("LISTEN"))

    @pytest.mark.unit
    async def test_failed_resubscription_drops_topic(self):
        connections = iter([FakeConnection(), FakeConnection(ack_errors={"whispers.1": "ERR_BADAUTH"})])
        connector = FakeConnector(lambda: next(connections))
        async with make_client(connector) as client:
            subscription = await client.subscribe(Whispers("1"), "token")

            connector.current.drop()
            await wait_until(lambda: subscription.state is SubscriptionState.FAILED)

            assert client.subscriptions == {}

    @pytest.mark.unit
    async def test_unexpected_read_error_reconnects(self):
        class BrokenConnection(FakeConnection):
            async def recv(self):
                raise RuntimeError("decoder blew up")

        connections = iter([BrokenConnection(), FakeConnection()])
        connector = FakeConnector(lambda: next(connections))
        async with make_client(connector) as client:
            await wait_until(lambda: len(connector.connections) == 2 and client.state is ConnectionState.CONNECTED)

            assert connector.connections[0].closed
            subscription = await client.subscribe(Whispers("1"), "token")
            assert subscription.state is SubscriptionState.ACTIVE

    @pytest.mark.unit
    async def test_no_reconnect_when_disabled(self, connector):
        async with make_client(connector, reconnect=False) as client:
            connector.current.drop()
            await wait_until(lambda: client.state is ConnectionState.DISCONNECTED)
            await asyncio.sleep(0.02)

            assert len(connector.connections) == 1


class TestKeepalive:
    """Test PING/PONG keepalive."""

    @pytest.mark.unit
    async def test_pings_periodically(self, connector):
        async with make_client(connector, ping_interval=0.01) as client:
            await wait_until(lambda: len(connector.current.sent_of_type("PING")) >= 2)

            assert len(connector.connections) == 1
            assert client.state is ConnectionState.CONNECTED

    @pytest.mark.unit
    async def test_missing_pong_forces_reconnect(self):
        connector = FakeConnector(lambda: FakeConnection(auto_pong=False))
        async with make_client(connector, ping_interval=0.01, pong_timeout=0.02) as client:
            await wait_until(lambda: len(connector.connections) >= 2)

            assert connector.connections[0].closed
            await wait_until(lambda: client.state is ConnectionState.CONNECTED)
