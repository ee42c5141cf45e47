"""Custom exceptions for credential resolution and token handling.

Example:
    ```python
    from twitch_api_core.auth.exceptions import CredentialNotFoundError

    if not client_id:
        raise CredentialNotFoundError("Client id not found", env_var_name="TWITCH_CLIENT_ID")
    ```
"""


class CredentialError(Exception):
    """Base exception for credential-related errors.

    Raised by credential providers when no usable credential can be produced.
    The execution engine turns it into ``AuthenticationRejected`` for the call
    in progress.
    """

    pass


class CredentialNotFoundError(CredentialError):
    """Raised when a required credential cannot be resolved.

    Attributes:
        env_var_name: The environment variable name that was checked (if any).
    """

    def __init__(self, message: str, env_var_name: str | None = None):
        super().__init__(message)
        self.env_var_name = env_var_name


class CredentialFileError(CredentialError):
    """Raised when a credential file cannot be read."""

    pass


class TokenRequestError(CredentialError):
    """Raised when the OAuth server refuses to issue, refresh or validate a token.

    Attributes:
        status_code: HTTP status of the OAuth response, if one was received.
    """

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code
