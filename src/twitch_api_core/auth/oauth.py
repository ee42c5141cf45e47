"""OAuth2 calls against ``id.twitch.tv``.

These helpers run over any :class:`~twitch_api_core.transport.Transport` and
are what the refreshing credential providers use under the hood.

Example:
    ```python
    async with HttpxTransport() as transport:
        token = await request_app_token(transport, client_id, client_secret)
        info = await validate_token(transport, token.access_token)
    ```
"""

import logging
from collections.abc import Iterable
from typing import Any, TypeVar
from urllib.parse import urlencode

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from twitch_api_core.auth.exceptions import TokenRequestError
from twitch_api_core.errors.exceptions import TransportFailure
from twitch_api_core.errors.models import HelixErrorBody
from twitch_api_core.transport.base import RawRequest, RawResponse, Transport

logger = logging.getLogger(__name__)

OAUTH_URL = "https://id.twitch.tv/oauth2/"

ModelT = TypeVar("ModelT", bound=BaseModel)


class TokenResponse(BaseModel):
    """Body of a successful ``/oauth2/token`` call."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    access_token: str = Field(repr=False)
    expires_in: int | None = None
    refresh_token: str | None = Field(default=None, repr=False)
    scopes: tuple[str, ...] = Field(default=(), validation_alias="scope")
    token_type: str = "bearer"

    @field_validator("scopes", mode="before")
    @classmethod
    def split_scope(cls, value: Any) -> Any:
        # null for tokens without scopes; a space-separated string per RFC 6749
        if value is None:
            return ()
        if isinstance(value, str):
            return value.split()
        return value


class ValidatedToken(BaseModel):
    """Body of a successful ``/oauth2/validate`` call."""

    model_config = ConfigDict(frozen=True)

    client_id: str
    scopes: tuple[str, ...] = ()
    expires_in: int | None = None
    login: str | None = None
    user_id: str | None = None

    @field_validator("scopes", mode="before")
    @classmethod
    def null_scopes(cls, value: Any) -> Any:
        return () if value is None else value


def _describe(error: ValidationError) -> str:
    first = error.errors(include_url=False)[0]
    field = ".".join(str(part) for part in first["loc"]) or "body"
    if first["type"] == "json_invalid":
        return "response is not JSON"
    if first["type"] == "missing":
        return f"no {field} in response"
    return f"unexpected response ({field}: {first['msg']})"


def _decode(response: RawResponse, action: str, model: type[ModelT]) -> ModelT:
    if not response.is_success:
        error_body = HelixErrorBody.from_response(response)
        detail = error_body.to_exception_message() if error_body else response.text[:200]
        raise TokenRequestError(f"Could not {action}: HTTP {response.status} {detail}", status_code=response.status)
    try:
        return model.model_validate_json(response.body)
    except ValidationError as e:
        raise TokenRequestError(f"Could not {action}: {_describe(e)}", status_code=response.status) from e


async def _post_form(transport: Transport, path: str, form: dict[str, str], base_url: str) -> RawResponse:
    request = RawRequest(
        method="POST",
        url=base_url + path,
        headers={"Content-Type": "application/x-www-form-urlencoded", "Accept": "application/json"},
        body=urlencode(form).encode(),
    )
    return await transport.send(request)


async def request_app_token(
    transport: Transport,
    client_id: str,
    client_secret: str,
    scopes: Iterable[str] = (),
    *,
    base_url: str = OAUTH_URL,
) -> TokenResponse:
    """Request an app access token with the client-credentials grant.

    Raises:
        TokenRequestError: If the server refuses the grant.
        TransportFailure: If the server cannot be reached.
    """
    form = {"client_id": client_id, "client_secret": client_secret, "grant_type": "client_credentials"}
    scope = " ".join(str(s) for s in scopes)
    if scope:
        form["scope"] = scope

    logger.debug(f"Requesting app access token for client {client_id}")
    response = await _post_form(transport, "token", form, base_url)
    return _decode(response, "request app token", TokenResponse)


async def refresh_user_token(
    transport: Transport,
    refresh_token: str,
    client_id: str,
    client_secret: str,
    *,
    base_url: str = OAUTH_URL,
) -> TokenResponse:
    """Exchange a refresh token for a new user access token."""
    form = {
        "client_id": client_id,
        "client_secret": client_secret,
        "grant_type": "refresh_token",
        "refresh_token": refresh_token,
    }
    logger.debug(f"Refreshing user access token for client {client_id}")
    response = await _post_form(transport, "token", form, base_url)
    return _decode(response, "refresh user token", TokenResponse)


async def validate_token(transport: Transport, access_token: str, *, base_url: str = OAUTH_URL) -> ValidatedToken:
    """Ask the server which client, user and scopes a token belongs to.

    Raises:
        TokenRequestError: If the token is invalid (HTTP 401).
    """
    request = RawRequest(
        method="GET",
        url=base_url + "validate",
        headers={"Authorization": f"OAuth {access_token}", "Accept": "application/json"},
    )
    response = await transport.send(request)
    return _decode(response, "validate token", ValidatedToken)


async def revoke_token(
    transport: Transport, access_token: str, client_id: str, *, base_url: str = OAUTH_URL
) -> None:
    """Revoke an access token. Revoking an already-invalid token is not an error."""
    try:
        response = await _post_form(transport, "revoke", {"client_id": client_id, "token": access_token}, base_url)
    except TransportFailure:
        logger.warning(f"Could not reach the OAuth server to revoke a token for client {client_id}")
        raise
    if response.status == 400:
        logger.debug("Token was already invalid when revoked")
        return
    if not response.is_success:
        raise TokenRequestError(f"Could not revoke token: HTTP {response.status}", status_code=response.status)
