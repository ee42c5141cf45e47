"""Credential providers: where the execution engine gets its tokens from.

The engine depends only on the two-method :class:`CredentialProvider`
contract. ``current`` returns the last known good credential, refreshing it
if the implementation can; ``invalidate`` tells the provider that the server
rejected the credential the engine just used.

Both methods may be called concurrently from many in-flight requests, so the
refreshing providers serialize refreshes behind an ``asyncio.Lock`` and ignore
invalidations for credentials they have already replaced.
"""

import asyncio
import logging
from collections.abc import Iterable
from typing import Protocol, runtime_checkable

from twitch_api_core.auth.credentials import CredentialResolver
from twitch_api_core.auth.exceptions import TokenRequestError
from twitch_api_core.auth.oauth import OAUTH_URL, refresh_user_token, request_app_token, validate_token
from twitch_api_core.auth.tokens import Credential
from twitch_api_core.transport.base import Transport

logger = logging.getLogger(__name__)

# Refresh this many seconds before the server-reported expiry.
DEFAULT_EXPIRY_LEEWAY = 60.0


@runtime_checkable
class CredentialProvider(Protocol):
    """Contract between the execution engine and token storage."""

    async def current(self) -> Credential:
        """Return the credential to use for the next call.

        Raises:
            CredentialError: If no credential can be produced.
        """
        ...

    async def invalidate(self, reason: str, credential: Credential | None = None) -> None:
        """Signal that the server rejected ``credential`` (or the current one)."""
        ...


class StaticCredentialProvider:
    """Serve one fixed credential; it cannot be refreshed."""

    def __init__(self, credential: Credential) -> None:
        self._credential = credential

    async def current(self) -> Credential:
        return self._credential

    async def invalidate(self, reason: str, credential: Credential | None = None) -> None:
        logger.warning(f"Static credential for client {self._credential.client_id} was rejected: {reason}")


class AppTokenProvider:
    """App access tokens from the OAuth2 client-credentials grant.

    The token is fetched on first use, cached, and fetched again when it is
    about to expire or after the engine invalidates it.

    Example:
        ```python
        async with HttpxTransport() as transport:
            provider = AppTokenProvider.from_env(transport)
            credential = await provider.current()
        ```
    """

    def __init__(
        self,
        transport: Transport,
        client_id: str,
        client_secret: str,
        scopes: Iterable[str] = (),
        *,
        leeway: float = DEFAULT_EXPIRY_LEEWAY,
        oauth_url: str = OAUTH_URL,
    ) -> None:
        self._transport = transport
        self.client_id = client_id
        self._client_secret = client_secret
        self.scopes = frozenset(str(s) for s in scopes)
        self.leeway = leeway
        self._oauth_url = oauth_url
        self._credential: Credential | None = None
        self._lock = asyncio.Lock()

    @classmethod
    def from_env(
        cls, transport: Transport, scopes: Iterable[str] = (), resolver: CredentialResolver | None = None, **kwargs
    ) -> "AppTokenProvider":
        """Build a provider from ``TWITCH_CLIENT_ID`` and ``TWITCH_CLIENT_SECRET``."""
        resolver = resolver or CredentialResolver()
        client_id, client_secret = resolver.resolve_client_credentials()
        return cls(transport, client_id, client_secret, scopes, **kwargs)

    async def current(self) -> Credential:
        async with self._lock:
            if self._credential is None or self._credential.is_expired(self.leeway):
                self._credential = await self._fetch()
            return self._credential

    async def invalidate(self, reason: str, credential: Credential | None = None) -> None:
        async with self._lock:
            if credential is not None and credential is not self._credential:
                return
            logger.info(f"App token for client {self.client_id} invalidated: {reason}")
            self._credential = None

    async def _fetch(self) -> Credential:
        logger.debug(f"Fetching app access token for client {self.client_id}")
        token = await request_app_token(
            self._transport, self.client_id, self._client_secret, self.scopes, base_url=self._oauth_url
        )
        return Credential.create(
            access_token=token.access_token,
            client_id=self.client_id,
            scopes=token.scopes or self.scopes,
            expires_in=token.expires_in,
        )


class UserTokenProvider:
    """User access tokens, optionally refreshable with a refresh token.

    On first use the access token is validated to learn its user, scopes and
    expiry. When it expires or is invalidated, the refresh-token grant is used
    if a refresh token and client secret are available; otherwise
    :class:`TokenRequestError` is raised for the call in progress.
    """

    def __init__(
        self,
        transport: Transport,
        access_token: str,
        client_id: str | None = None,
        *,
        client_secret: str | None = None,
        refresh_token: str | None = None,
        leeway: float = DEFAULT_EXPIRY_LEEWAY,
        oauth_url: str = OAUTH_URL,
    ) -> None:
        self._transport = transport
        self._access_token = access_token
        self.client_id = client_id
        self._client_secret = client_secret
        self._refresh_token = refresh_token
        self.leeway = leeway
        self._oauth_url = oauth_url
        self._credential: Credential | None = None
        self._stale = False
        self._lock = asyncio.Lock()

    @classmethod
    def from_env(cls, transport: Transport, resolver: CredentialResolver | None = None, **kwargs) -> "UserTokenProvider":
        """Build a provider from ``TWITCH_ACCESS_TOKEN`` and friends.

        ``TWITCH_REFRESH_TOKEN`` and the client secret are optional; without
        them the provider cannot refresh.
        """
        settings = (resolver or CredentialResolver()).resolve_user_token()
        return cls(
            transport,
            settings.access_token,
            settings.client_id,
            client_secret=settings.client_secret,
            refresh_token=settings.refresh_token,
            **kwargs,
        )

    @property
    def can_refresh(self) -> bool:
        return bool(self._refresh_token and self._client_secret and self.client_id)

    async def current(self) -> Credential:
        async with self._lock:
            if self._credential is None and not self._stale:
                try:
                    self._credential = await self._validate(self._access_token)
                except TokenRequestError as e:
                    if e.status_code != 401 or not self.can_refresh:
                        raise
                    self._credential = await self._refresh()
            elif self._stale or self._credential.is_expired(self.leeway):
                self._credential = await self._refresh()
            self._stale = False
            return self._credential

    async def invalidate(self, reason: str, credential: Credential | None = None) -> None:
        async with self._lock:
            if credential is not None and credential is not self._credential:
                return
            logger.info(f"User token for {self._describe()} invalidated: {reason}")
            self._stale = True

    def _describe(self) -> str:
        if self._credential is not None and self._credential.login:
            return self._credential.login
        return "unknown user"

    async def _validate(self, access_token: str) -> Credential:
        info = await validate_token(self._transport, access_token, base_url=self._oauth_url)
        if self.client_id is None:
            self.client_id = info.client_id
        logger.debug(f"Validated user token for {info.login} with {len(info.scopes)} scopes")
        return Credential.create(
            access_token=access_token,
            client_id=info.client_id,
            scopes=info.scopes,
            expires_in=info.expires_in,
            user_id=info.user_id,
            login=info.login,
        )

    async def _refresh(self) -> Credential:
        if not self.can_refresh:
            raise TokenRequestError(f"User token for {self._describe()} is no longer valid and cannot be refreshed")

        logger.info(f"Refreshing user token for {self._describe()}")
        token = await refresh_user_token(
            self._transport, self._refresh_token, self.client_id, self._client_secret, base_url=self._oauth_url
        )
        self._access_token = token.access_token
        if token.refresh_token:
            self._refresh_token = token.refresh_token

        previous = self._credential
        return Credential.create(
            access_token=token.access_token,
            client_id=self.client_id,
            scopes=token.scopes or (previous.scopes if previous else ()),
            expires_in=token.expires_in,
            user_id=previous.user_id if previous else None,
            login=previous.login if previous else None,
        )
