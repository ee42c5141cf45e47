"""Helix channel endpoints."""

from twitch_api_core.auth.scopes import Scope
from twitch_api_core.request import Endpoint, HelixResponse, Request, TwitchModel


class ChannelInformation(TwitchModel):
    broadcaster_id: str
    broadcaster_name: str
    broadcaster_login: str | None = None
    broadcaster_language: str
    game_id: str
    game_name: str
    title: str
    delay: int | None = None


class GetChannelInformationRequest(Request[HelixResponse[ChannelInformation]]):
    endpoint = Endpoint("GET", "channels", HelixResponse[ChannelInformation])

    broadcaster_id: str


class ModifyChannelInformationBody(TwitchModel):
    """Fields to change; unset fields are left as they are."""

    game_id: str | None = None
    broadcaster_language: str | None = None
    title: str | None = None


class ModifyChannelInformationRequest(Request[None]):
    """Update a channel's game, language or title. Answers 204 No Content."""

    endpoint = Endpoint(
        "PATCH",
        "channels",
        None,
        scopes=[Scope.USER_EDIT_BROADCAST],
    )
    body_field = "body"

    broadcaster_id: str
    body: ModifyChannelInformationBody
