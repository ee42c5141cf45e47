"""Helix stream endpoints."""

from datetime import datetime

from twitch_api_core.request import Endpoint, HelixResponse, Request, TwitchModel


class Stream(TwitchModel):
    id: str
    user_id: str
    user_name: str
    user_login: str | None = None
    game_id: str
    game_name: str | None = None
    type: str  # "live", or "" on error
    title: str
    viewer_count: int
    started_at: datetime
    language: str
    thumbnail_url: str
    tag_ids: list[str] | None = None
    tags: list[str] | None = None
    is_mature: bool | None = None


class GetStreamsRequest(Request[HelixResponse[Stream]]):
    """Active streams, sorted by viewer count. Paginated."""

    endpoint = Endpoint("GET", "streams", HelixResponse[Stream], paginated=True)

    after: str | None = None
    before: str | None = None
    first: int | None = None
    game_id: list[str] = []
    language: list[str] = []
    user_id: list[str] = []
    user_login: list[str] = []
