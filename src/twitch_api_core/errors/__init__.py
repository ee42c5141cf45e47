"""Error kinds and response classification for Twitch API clients."""

from twitch_api_core.errors.exceptions import (
    ApiError,
    AuthenticationRejected,
    ClientError,
    ErrorKind,
    InsufficientScope,
    MalformedResponse,
    ProtocolViolation,
    RateLimited,
    ServerError,
    SubscriptionRejected,
    SubscriptionTimeout,
    TransportFailure,
)
from twitch_api_core.errors.handler import classify_response, raise_for_status
from twitch_api_core.errors.models import HelixErrorBody

__all__ = [
    "ApiError",
    "AuthenticationRejected",
    "ClientError",
    "ErrorKind",
    "HelixErrorBody",
    "InsufficientScope",
    "MalformedResponse",
    "ProtocolViolation",
    "RateLimited",
    "ServerError",
    "SubscriptionRejected",
    "SubscriptionTimeout",
    "TransportFailure",
    "classify_response",
    "raise_for_status",
]
