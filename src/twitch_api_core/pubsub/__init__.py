"""Twitch PubSub client and topics."""

from twitch_api_core.pubsub.client import (
    PUBSUB_URL,
    Connection,
    ConnectionState,
    PubSubClient,
    Subscription,
    SubscriptionState,
    TopicMessage,
    websocket_connector,
)
from twitch_api_core.pubsub.topics import (
    BitsBadgeUnlock,
    BitsEventV2,
    ChannelBitsBadgeUnlocks,
    ChannelBitsEventsV2,
    ChannelPointsChannelV1,
    ChannelPointsMessage,
    ChannelSubscribeEventsV1,
    ChatModeratorActions,
    ModeratorActionMessage,
    RawTopic,
    SubscribeEvent,
    Topic,
    WhisperMessage,
    Whispers,
)

__all__ = [
    "PUBSUB_URL",
    "BitsBadgeUnlock",
    "BitsEventV2",
    "ChannelBitsBadgeUnlocks",
    "ChannelBitsEventsV2",
    "ChannelPointsChannelV1",
    "ChannelPointsMessage",
    "ChannelSubscribeEventsV1",
    "ChatModeratorActions",
    "Connection",
    "ConnectionState",
    "ModeratorActionMessage",
    "PubSubClient",
    "RawTopic",
    "SubscribeEvent",
    "Subscription",
    "SubscriptionState",
    "Topic",
    "TopicMessage",
    "WhisperMessage",
    "Whispers",
    "websocket_connector",
]
