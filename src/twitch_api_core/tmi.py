"""Legacy TMI chat-metadata endpoints (``https://tmi.twitch.tv/``).

These are unauthenticated and undocumented; their responses are not wrapped
in the Helix ``data`` envelope.
"""

from pydantic import Field

from twitch_api_core.request import API_TMI, Endpoint, Request, TwitchModel


class Chatters(TwitchModel):
    broadcaster: list[str] = []
    vips: list[str] = []
    moderators: list[str] = []
    staff: list[str] = []
    admins: list[str] = []
    global_mods: list[str] = []
    viewers: list[str] = []

    def all(self) -> list[str]:
        """Every login in chat, broadcaster first."""
        return [
            *self.broadcaster,
            *self.vips,
            *self.moderators,
            *self.staff,
            *self.admins,
            *self.global_mods,
            *self.viewers,
        ]


class ChattersResponse(TwitchModel):
    links: dict = Field(default_factory=dict, alias="_links")
    chatter_count: int
    chatters: Chatters


class GetChattersRequest(Request[ChattersResponse]):
    """Logins currently in a channel's chat, grouped by role."""

    endpoint = Endpoint(
        "GET",
        "group/user/{broadcaster}/chatters",
        ChattersResponse,
        api=API_TMI,
        authenticated=False,
    )

    broadcaster: str


class Host(TwitchModel):
    host_id: int
    target_id: int | None = None
    host_login: str | None = None
    target_login: str | None = None
    host_display_name: str | None = None
    target_display_name: str | None = None
    host_partner: bool | None = None


class HostsResponse(TwitchModel):
    hosts: list[Host]


class GetHostsRequest(Request[HostsResponse]):
    """Who a channel is hosting (``host``), or who hosts it (``target``)."""

    endpoint = Endpoint("GET", "hosts", HostsResponse, api=API_TMI, authenticated=False)

    include_logins: int | None = 1
    host: str | None = None
    target: str | None = None
