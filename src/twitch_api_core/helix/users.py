"""Helix user endpoints."""

from datetime import datetime

from twitch_api_core.request import Endpoint, HelixResponse, Request, TwitchModel


class User(TwitchModel):
    id: str
    login: str
    display_name: str
    type: str
    broadcaster_type: str
    description: str
    profile_image_url: str
    offline_image_url: str
    view_count: int | None = None
    email: str | None = None  # Only with user:read:email
    created_at: datetime | None = None


class GetUsersRequest(Request[HelixResponse[User]]):
    """Look up users by id or login; with neither, the token's own user.

    Up to 100 ids and logins combined.
    """

    endpoint = Endpoint("GET", "users", HelixResponse[User])

    id: list[str] = []
    login: list[str] = []
