"""Helix moderation endpoints.

All of these require the ``moderation:read`` scope, and ``broadcaster_id``
must match the user of the token.
"""

from datetime import datetime

from twitch_api_core.auth.scopes import Scope
from twitch_api_core.request import Endpoint, HelixResponse, Request, Timestamp, TwitchModel


class Moderator(TwitchModel):
    user_id: str
    user_name: str
    user_login: str | None = None


class GetModeratorsRequest(Request[HelixResponse[Moderator]]):
    """Moderators of a channel. Paginated."""

    endpoint = Endpoint(
        "GET",
        "moderation/moderators",
        HelixResponse[Moderator],
        scopes=[Scope.MODERATION_READ],
        paginated=True,
    )

    broadcaster_id: str
    user_id: list[str] = []
    first: int | None = None
    after: str | None = None


class ModerationEvent(TwitchModel):
    """Entry of the moderator and ban event logs.

    ``event_data`` holds broadcaster and user ids and names; its exact keys
    vary by ``event_type``.
    """

    id: str
    event_type: str
    event_timestamp: datetime
    version: str
    event_data: dict[str, str]


class GetModeratorEventsRequest(Request[HelixResponse[ModerationEvent]]):
    """Users added and removed as moderators. Paginated."""

    endpoint = Endpoint(
        "GET",
        "moderation/moderators/events",
        HelixResponse[ModerationEvent],
        scopes=[Scope.MODERATION_READ],
        paginated=True,
    )

    broadcaster_id: str
    user_id: list[str] = []
    after: str | None = None


class BannedUser(TwitchModel):
    user_id: str
    user_name: str
    user_login: str | None = None
    expires_at: Timestamp = None  # None for permanent bans


class GetBannedUsersRequest(Request[HelixResponse[BannedUser]]):
    """Users banned in a channel. Paginated."""

    endpoint = Endpoint(
        "GET",
        "moderation/banned",
        HelixResponse[BannedUser],
        scopes=[Scope.MODERATION_READ],
        paginated=True,
    )

    broadcaster_id: str
    user_id: list[str] = []
    after: str | None = None


class GetBannedEventsRequest(Request[HelixResponse[ModerationEvent]]):
    """Bans and unbans in a channel. Paginated."""

    endpoint = Endpoint(
        "GET",
        "moderation/banned/events",
        HelixResponse[ModerationEvent],
        scopes=[Scope.MODERATION_READ],
        paginated=True,
    )

    broadcaster_id: str
    user_id: list[str] = []
    after: str | None = None
    first: int | None = None


class CheckAutoModStatusBody(TwitchModel):
    msg_id: str
    msg_text: str
    user_id: str


class CheckAutoModStatus(TwitchModel):
    msg_id: str
    is_permitted: bool


class CheckAutoModStatusRequest(Request[HelixResponse[CheckAutoModStatus]]):
    """Ask whether messages would be held by AutoMod.

    The messages go in ``body``; they are sent as ``{"data": [...]}``.
    """

    endpoint = Endpoint(
        "POST",
        "moderation/enforcements/status",
        HelixResponse[CheckAutoModStatus],
        scopes=[Scope.MODERATION_READ],
        body_key="data",
    )
    body_field = "body"

    broadcaster_id: str
    body: list[CheckAutoModStatusBody]
