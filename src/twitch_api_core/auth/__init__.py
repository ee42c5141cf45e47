"""Authentication components: credentials, providers, scopes and OAuth2 calls.

Example:
    ```python
    from twitch_api_core.auth import AppTokenProvider, Scope

    provider = AppTokenProvider.from_env(transport, scopes=[Scope.MODERATION_READ])
    credential = await provider.current()
    ```
"""

from twitch_api_core.auth.credentials import CredentialResolver
from twitch_api_core.auth.exceptions import (
    CredentialError,
    CredentialFileError,
    CredentialNotFoundError,
    TokenRequestError,
)
from twitch_api_core.auth.oauth import (
    TokenResponse,
    ValidatedToken,
    refresh_user_token,
    request_app_token,
    revoke_token,
    validate_token,
)
from twitch_api_core.auth.providers import (
    AppTokenProvider,
    CredentialProvider,
    StaticCredentialProvider,
    UserTokenProvider,
)
from twitch_api_core.auth.scopes import Scope
from twitch_api_core.auth.tokens import Credential

__all__ = [
    "AppTokenProvider",
    "Credential",
    "CredentialError",
    "CredentialFileError",
    "CredentialNotFoundError",
    "CredentialProvider",
    "CredentialResolver",
    "Scope",
    "StaticCredentialProvider",
    "TokenRequestError",
    "TokenResponse",
    "UserTokenProvider",
    "ValidatedToken",
    "refresh_user_token",
    "request_app_token",
    "revoke_token",
    "validate_token",
]
