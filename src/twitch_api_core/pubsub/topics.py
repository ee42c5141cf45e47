"""PubSub topics and the payload models their messages decode into.

A topic's wire name is its prefix followed by dot-separated ids, e.g.
``chat_moderator_actions.<user_id>.<channel_id>``. :meth:`Topic.parse` maps a
wire name back to its topic class; names with an unknown prefix become a
:class:`RawTopic` whose payload is left as plain JSON.
"""

from dataclasses import dataclass, fields
from datetime import datetime
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, RootModel, ValidationError

from twitch_api_core.auth.scopes import Scope
from twitch_api_core.errors.exceptions import ProtocolViolation


class PubSubPayload(BaseModel):
    """Base for topic payloads. PubSub payloads are loosely specified, so extra keys are kept."""

    model_config = ConfigDict(extra="allow", frozen=True)


class RawPayload(RootModel[Any]):
    pass


class BitsEventV2(PubSubPayload):
    data: dict[str, Any]
    version: str
    message_type: str
    message_id: str
    is_anonymous: bool | None = None


class BitsBadgeUnlock(PubSubPayload):
    user_id: str
    user_name: str
    channel_id: str
    channel_name: str
    badge_tier: int
    chat_message: str | None = None
    time: datetime


class ChannelPointsMessage(PubSubPayload):
    type: str
    data: dict[str, Any]


class SubscribeEvent(PubSubPayload):
    channel_id: str
    channel_name: str | None = None
    user_id: str | None = None
    user_name: str | None = None
    display_name: str | None = None
    sub_plan: str | None = None
    sub_plan_name: str | None = None
    context: str
    is_gift: bool | None = None
    time: datetime | None = None


class ModeratorActionMessage(PubSubPayload):
    type: str
    data: dict[str, Any]


class WhisperMessage(PubSubPayload):
    type: str
    data: str | dict[str, Any]
    data_object: dict[str, Any] | None = None


class Topic:
    """Base for topic classes; subclasses are frozen dataclasses of their ids."""

    prefix: ClassVar[str]
    scopes: ClassVar[frozenset[str]] = frozenset()
    payload: ClassVar[type[BaseModel]] = RawPayload

    _registry: ClassVar[dict[str, type["Topic"]]] = {}

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        if "prefix" in cls.__dict__:
            Topic._registry[cls.prefix] = cls

    @property
    def name(self) -> str:
        ids = [str(getattr(self, f.name)) for f in fields(self)]
        return ".".join([self.prefix, *ids])

    def __str__(self) -> str:
        return self.name

    @classmethod
    def parse(cls, name: str) -> "Topic":
        """Build the topic a wire name refers to."""
        prefix, *ids = name.split(".")
        topic_class = cls._registry.get(prefix)
        if topic_class is None or len(ids) != len(fields(topic_class)):
            return RawTopic(name)
        return topic_class(*ids)

    def decode(self, message: str) -> BaseModel:
        """Decode a MESSAGE frame's payload string.

        Raises:
            ProtocolViolation: If the payload does not match the topic's model.
        """
        try:
            return self.payload.model_validate_json(message)
        except ValidationError as e:
            raise ProtocolViolation(f"Unexpected payload on {self.name}: {e.error_count()} errors") from e


@dataclass(frozen=True)
class RawTopic(Topic):
    """Topic without a dedicated model."""

    raw_name: str

    @property
    def name(self) -> str:
        return self.raw_name


@dataclass(frozen=True)
class ChannelBitsEventsV2(Topic):
    prefix = "channel-bits-events-v2"
    scopes = frozenset({Scope.BITS_READ.value})
    payload = BitsEventV2

    channel_id: str


@dataclass(frozen=True)
class ChannelBitsBadgeUnlocks(Topic):
    prefix = "channel-bits-badge-unlocks"
    scopes = frozenset({Scope.BITS_READ.value})
    payload = BitsBadgeUnlock

    channel_id: str


@dataclass(frozen=True)
class ChannelPointsChannelV1(Topic):
    prefix = "channel-points-channel-v1"
    scopes = frozenset({Scope.CHANNEL_READ_REDEMPTIONS.value})
    payload = ChannelPointsMessage

    channel_id: str


@dataclass(frozen=True)
class ChannelSubscribeEventsV1(Topic):
    prefix = "channel-subscribe-events-v1"
    scopes = frozenset({Scope.CHANNEL_SUBSCRIPTIONS.value})
    payload = SubscribeEvent

    channel_id: str


@dataclass(frozen=True)
class ChatModeratorActions(Topic):
    prefix = "chat_moderator_actions"
    scopes = frozenset({Scope.CHANNEL_MODERATE.value})
    payload = ModeratorActionMessage

    user_id: str
    channel_id: str


@dataclass(frozen=True)
class Whispers(Topic):
    prefix = "whispers"
    scopes = frozenset({Scope.WHISPERS_READ.value})
    payload = WhisperMessage

    user_id: str
