"""OAuth scopes understood by the Twitch APIs."""

from collections.abc import Iterable
from enum import Enum


class Scope(str, Enum):
    """Named permission grants.

    Members compare equal to their wire strings, so a set of ``Scope`` values
    can be checked against the plain strings returned by token validation.
    """

    ANALYTICS_READ_EXTENSIONS = "analytics:read:extensions"
    ANALYTICS_READ_GAMES = "analytics:read:games"
    BITS_READ = "bits:read"
    CHANNEL_EDIT_COMMERCIAL = "channel:edit:commercial"
    CHANNEL_MANAGE_BROADCAST = "channel:manage:broadcast"
    CHANNEL_MANAGE_EXTENSIONS = "channel:manage:extensions"
    CHANNEL_MANAGE_REDEMPTIONS = "channel:manage:redemptions"
    CHANNEL_MODERATE = "channel:moderate"
    CHANNEL_READ_HYPE_TRAIN = "channel:read:hype_train"
    CHANNEL_READ_REDEMPTIONS = "channel:read:redemptions"
    CHANNEL_READ_STREAM_KEY = "channel:read:stream_key"
    CHANNEL_READ_SUBSCRIPTIONS = "channel:read:subscriptions"
    CHANNEL_SUBSCRIPTIONS = "channel_subscriptions"
    CHAT_EDIT = "chat:edit"
    CHAT_READ = "chat:read"
    CLIPS_EDIT = "clips:edit"
    MODERATION_READ = "moderation:read"
    USER_EDIT = "user:edit"
    USER_EDIT_BROADCAST = "user:edit:broadcast"
    USER_EDIT_FOLLOWS = "user:edit:follows"
    USER_READ_BROADCAST = "user:read:broadcast"
    USER_READ_EMAIL = "user:read:email"
    WHISPERS_EDIT = "whispers:edit"
    WHISPERS_READ = "whispers:read"

    def __str__(self) -> str:
        return self.value


def normalize_scopes(scopes: Iterable[str]) -> frozenset[str]:
    """Return the scopes as plain strings, accepting ``Scope`` members or raw names."""
    return frozenset(str(scope) for scope in scopes)
