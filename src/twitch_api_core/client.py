"""High-level client tying transport, credentials and engine together."""

import logging
from collections.abc import Iterable
from typing import TypeVar

from twitch_api_core.auth.credentials import ACCESS_TOKEN_ENV, CredentialResolver
from twitch_api_core.auth.providers import AppTokenProvider, CredentialProvider, UserTokenProvider
from twitch_api_core.auth.tokens import Credential
from twitch_api_core.config import ClientConfig
from twitch_api_core.engine import ExecutionEngine
from twitch_api_core.pagination import Paginator
from twitch_api_core.ratelimit import RateLimitState
from twitch_api_core.request import Request
from twitch_api_core.transport import Transport, create_transport

logger = logging.getLogger(__name__)

ResponseT = TypeVar("ResponseT")


class TwitchClient:
    """Entry point for calling Helix and TMI endpoints.

    The client owns its transport and closes it in :meth:`aclose`.

    Example:
        ```python
        async with TwitchClient.from_env() as twitch:
            users = await twitch.request(GetUsersRequest(login=["twitchdev"]))
            async for stream in twitch.paginate(GetStreamsRequest(first=100)):
                print(stream.user_name, stream.viewer_count)
        ```
    """

    def __init__(
        self,
        transport: Transport,
        credentials: CredentialProvider | None = None,
        config: ClientConfig | None = None,
    ) -> None:
        self.config = config or ClientConfig()
        self.transport = transport
        self.credentials = credentials
        self.engine = ExecutionEngine(transport, credentials, self.config)

    @classmethod
    def from_env(
        cls,
        scopes: Iterable[str] = (),
        resolver: CredentialResolver | None = None,
        **config_overrides,
    ) -> "TwitchClient":
        """Build a client from ``TWITCH_*`` settings.

        A user token provider is used when ``TWITCH_ACCESS_TOKEN`` is set,
        an app token provider from the client id and secret otherwise.

        Raises:
            CredentialNotFoundError: If neither kind of credential is configured.
            ValueError: If a setting is invalid.
        """
        resolver = resolver or CredentialResolver()
        config = ClientConfig.from_env(resolver, **config_overrides)
        transport = create_transport(config.http_backend, timeout=config.timeout)

        provider: CredentialProvider
        if resolver.resolve(env_var_name=ACCESS_TOKEN_ENV) is not None:
            provider = UserTokenProvider.from_env(transport, resolver)
        else:
            provider = AppTokenProvider.from_env(transport, scopes, resolver)
        logger.debug(f"Created {type(provider).__name__} client using the {config.http_backend} backend")
        return cls(transport, provider, config)

    async def request(self, request: Request[ResponseT]) -> ResponseT:
        """Execute one request. See :meth:`ExecutionEngine.execute` for errors."""
        return await self.engine.execute(request)

    def paginate(self, request: Request[ResponseT]) -> Paginator[ResponseT]:
        """Lazily walk every page of a paginated request."""
        return self.engine.paginate(request)

    def rate_limit(self, credential: Credential | None = None) -> RateLimitState | None:
        return self.engine.rate_limit(credential)

    async def aclose(self) -> None:
        await self.transport.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()
