"""The execution engine: one typed request in, one decoded response or typed error out.

For every call the engine

1. obtains a credential from the :class:`CredentialProvider`,
2. rejects the call with ``InsufficientScope`` if the credential lacks a
   required scope (no network I/O happens),
3. renders the URL, query string and JSON body,
4. sends the exchange through the :class:`Transport`,
5. on 401/403 invalidates the credential and retries with a fresh one, at most
   ``config.auth_retries`` times,
6. records the rate-limit headers and classifies the response; while the
   credential's bucket is exhausted and not yet reset, later calls fail with
   ``RateLimited`` before sending,
7. decodes a 2xx body into the endpoint's Response model.

Only the authentication retry is handled internally; every other failure is
raised to the caller as a distinct :class:`~twitch_api_core.errors.ApiError`.
"""

import logging
from typing import TYPE_CHECKING, Any, TypeVar

from pydantic import ValidationError

from twitch_api_core.auth.exceptions import CredentialError
from twitch_api_core.auth.providers import CredentialProvider
from twitch_api_core.auth.tokens import Credential
from twitch_api_core.config import ClientConfig
from twitch_api_core.errors.exceptions import (
    AuthenticationRejected,
    InsufficientScope,
    MalformedResponse,
    RateLimited,
)
from twitch_api_core.errors.handler import AUTH_REJECTION_STATUSES, classify_response
from twitch_api_core.ratelimit import RateLimitState
from twitch_api_core.request import Endpoint, Request
from twitch_api_core.transport.base import RawRequest, RawResponse, Transport

if TYPE_CHECKING:
    from twitch_api_core.pagination import Paginator

logger = logging.getLogger(__name__)

ResponseT = TypeVar("ResponseT")

# Rate-limit bucket used for unauthenticated calls.
ANONYMOUS = "anonymous"


class ExecutionEngine:
    """Execute typed requests over a transport with a credential provider.

    Calls are independent and may run concurrently; the only state shared
    between them lives in the credential provider and the rate-limit table.

    Args:
        transport: HTTP backend to send exchanges through.
        credentials: Provider for authenticated endpoints. May be None if only
            unauthenticated endpoints (e.g. TMI) are used.
        config: Base URLs, retry count and headers.
    """

    def __init__(
        self,
        transport: Transport,
        credentials: CredentialProvider | None = None,
        config: ClientConfig | None = None,
    ) -> None:
        self.transport = transport
        self.credentials = credentials
        self.config = config or ClientConfig()
        self._rate_limits: dict[str, RateLimitState] = {}

    def rate_limit(self, credential: Credential | None = None) -> RateLimitState | None:
        """Last rate-limit state the server reported for ``credential``."""
        key = credential.rate_limit_key if credential is not None else ANONYMOUS
        return self._rate_limits.get(key)

    def paginate(self, request: Request) -> "Paginator":
        from twitch_api_core.pagination import Paginator

        return Paginator(self, request)

    async def execute(self, request: Request[ResponseT], endpoint: Endpoint | None = None) -> ResponseT:
        """Execute ``request`` and return its decoded response.

        Args:
            request: Typed request.
            endpoint: Descriptor to use instead of the request class's own.

        Raises:
            InsufficientScope: Credential lacks a required scope (no I/O done).
            AuthenticationRejected: Token rejected after the allowed retries,
                or no credential could be obtained.
            RateLimited: 429, a failed call with an exhausted bucket, or an
                exhausted bucket whose reset time lies ahead (no I/O done).
            ServerError: 5xx response.
            ClientError: Other 4xx response.
            MalformedResponse: 2xx body does not match the response model.
            TransportFailure: Exchange could not be completed.
        """
        endpoint = endpoint or request.endpoint
        url = request.render_url(self.config.base_url(endpoint.api))
        body = request.render_body()

        credential = await self._credential(endpoint) if endpoint.authenticated else None
        attempt = 0

        while True:
            self._check_rate_limit(credential, endpoint)
            raw = RawRequest(
                method=endpoint.method,
                url=url,
                headers=self._headers(credential, body is not None),
                body=body,
            )
            logger.debug(f"Sending {raw.method} {raw.url}")
            response = await self.transport.send(raw)
            logger.debug(f"Received {response.status} from {raw.method} {raw.url}")
            self._record_rate_limit(credential, response)

            rejected = credential is not None and response.status in AUTH_REJECTION_STATUSES
            if rejected and attempt < self.config.auth_retries:
                attempt += 1
                logger.info(
                    f"{raw.method} {endpoint.path} rejected with {response.status}, "
                    f"refreshing credential (attempt {attempt}/{self.config.auth_retries})"
                )
                await self.credentials.invalidate(f"HTTP {response.status} from {endpoint.path}", credential)
                credential = await self._credential(endpoint)
                continue

            error = classify_response(response)
            if error is not None:
                if isinstance(error, RateLimited):
                    logger.warning(f"Rate limited on {raw.method} {endpoint.path}, reset at {error.reset}")
                raise error

            return self._decode(endpoint, response)

    async def _credential(self, endpoint: Endpoint) -> Credential:
        if self.credentials is None:
            raise AuthenticationRejected(
                f"Endpoint {endpoint.path} requires authentication but no credentials are configured"
            )
        try:
            credential = await self.credentials.current()
        except CredentialError as e:
            raise AuthenticationRejected(f"No credential available for {endpoint.path}: {e}") from e

        missing = credential.missing_scopes(endpoint.scopes)
        if missing:
            raise InsufficientScope(
                f"Endpoint {endpoint.path} requires scopes {sorted(missing)} which the credential was not granted",
                required=endpoint.scopes,
                missing=missing,
            )
        return credential

    def _headers(self, credential: Credential | None, has_body: bool) -> dict[str, str]:
        headers = {"Accept": "application/json", "User-Agent": self.config.user_agent}
        if credential is not None:
            headers.update(credential.auth_headers())
        if has_body:
            headers["Content-Type"] = "application/json"
        return headers

    def _check_rate_limit(self, credential: Credential | None, endpoint: Endpoint) -> None:
        key = credential.rate_limit_key if credential is not None else ANONYMOUS
        state = self._rate_limits.get(key)
        if state is not None and state.is_blocking():
            logger.warning(f"Rate-limit bucket for {key} is empty until {state.reset}, not calling {endpoint.path}")
            raise RateLimited(
                f"Rate-limit bucket exhausted until {state.reset}; {endpoint.path} was not called",
                reset=state.reset,
                limit=state.limit,
                remaining=state.remaining,
            )

    def _record_rate_limit(self, credential: Credential | None, response: RawResponse) -> None:
        state = RateLimitState.from_headers(response.headers)
        if state is not None:
            key = credential.rate_limit_key if credential is not None else ANONYMOUS
            self._rate_limits[key] = state

    def _decode(self, endpoint: Endpoint, response: RawResponse) -> Any:
        if endpoint.response is None:
            return None
        try:
            return endpoint.response.model_validate_json(response.body)
        except ValidationError as e:
            raise MalformedResponse(
                f"Response from {endpoint.path} does not match {endpoint.response.__name__}: {e.error_count()} errors",
                errors=e.errors(include_url=False),
                status_code=response.status,
                response=response,
            ) from e
