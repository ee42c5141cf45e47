"""Helix API endpoints (``https://api.twitch.tv/helix/``)."""

from twitch_api_core.helix.channels import (
    ChannelInformation,
    GetChannelInformationRequest,
    ModifyChannelInformationBody,
    ModifyChannelInformationRequest,
)
from twitch_api_core.helix.moderation import (
    BannedUser,
    CheckAutoModStatus,
    CheckAutoModStatusBody,
    CheckAutoModStatusRequest,
    GetBannedEventsRequest,
    GetBannedUsersRequest,
    GetModeratorEventsRequest,
    GetModeratorsRequest,
    ModerationEvent,
    Moderator,
)
from twitch_api_core.helix.streams import GetStreamsRequest, Stream
from twitch_api_core.helix.users import GetUsersRequest, User

__all__ = [
    "BannedUser",
    "ChannelInformation",
    "CheckAutoModStatus",
    "CheckAutoModStatusBody",
    "CheckAutoModStatusRequest",
    "GetBannedEventsRequest",
    "GetBannedUsersRequest",
    "GetChannelInformationRequest",
    "GetModeratorEventsRequest",
    "GetModeratorsRequest",
    "GetStreamsRequest",
    "GetUsersRequest",
    "ModerationEvent",
    "Moderator",
    "ModifyChannelInformationBody",
    "ModifyChannelInformationRequest",
    "Stream",
    "User",
]
