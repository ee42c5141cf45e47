"""Twitch API Core - typed async client for the Twitch Helix, TMI and PubSub APIs.

This library provides:
- Declarative, pydantic-typed request and response models per endpoint
- An execution engine with scope checks and bounded credential refresh
- Lazy cursor pagination
- Interchangeable HTTP backends (httpx, aiohttp)
- A reconnecting PubSub client
- Testing doubles for the HTTP and WebSocket seams

Example:
    ```python
    from twitch_api_core import TwitchClient
    from twitch_api_core.helix import GetModeratorsRequest

    async with TwitchClient.from_env() as twitch:
        async for moderator in twitch.paginate(GetModeratorsRequest(broadcaster_id="1234")):
            print(moderator.user_name)
    ```
"""

__version__ = "0.1.0"

from twitch_api_core.client import TwitchClient  # noqa: E402
from twitch_api_core.config import ClientConfig  # noqa: E402
from twitch_api_core.engine import ExecutionEngine  # noqa: E402
from twitch_api_core.errors import (  # noqa: E402
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
from twitch_api_core.pagination import Paginator  # noqa: E402
from twitch_api_core.request import Endpoint, HelixResponse, Request  # noqa: E402

__all__ = [
    "ApiError",
    "AuthenticationRejected",
    "ClientConfig",
    "ClientError",
    "Endpoint",
    "ErrorKind",
    "ExecutionEngine",
    "HelixResponse",
    "InsufficientScope",
    "MalformedResponse",
    "Paginator",
    "ProtocolViolation",
    "RateLimited",
    "Request",
    "ServerError",
    "SubscriptionRejected",
    "SubscriptionTimeout",
    "TransportFailure",
    "TwitchClient",
    "__version__",
]
