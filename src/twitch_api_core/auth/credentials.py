"""Multi-source resolution of Twitch application credentials and settings.

Values are looked up in priority order:

1. Explicitly provided value
2. Environment variable
3. ``.env`` file (python-dotenv loads it into the environment)
4. Default value

Example:
    ```python
    from twitch_api_core.auth import CredentialResolver

    resolver = CredentialResolver()
    client_id, client_secret = resolver.resolve_client_credentials()
    ```

Secrets are never logged; only the source they came from is.
"""

import logging
import os
from pathlib import Path
from threading import Lock
from typing import NamedTuple

from dotenv import load_dotenv

from twitch_api_core.auth.exceptions import CredentialFileError, CredentialNotFoundError

logger = logging.getLogger(__name__)

CLIENT_ID_ENV = "TWITCH_CLIENT_ID"
CLIENT_SECRET_ENV = "TWITCH_CLIENT_SECRET"
CLIENT_SECRET_FILE_ENV = "TWITCH_CLIENT_SECRET_FILE"
ACCESS_TOKEN_ENV = "TWITCH_ACCESS_TOKEN"
REFRESH_TOKEN_ENV = "TWITCH_REFRESH_TOKEN"


class UserTokenSettings(NamedTuple):
    access_token: str
    refresh_token: str | None
    client_id: str | None
    client_secret: str | None


class CredentialResolver:
    """Resolve credentials and settings from explicit values, the environment and ``.env``.

    Args:
        dotenv_path: Path to a ``.env`` file. If None, python-dotenv searches
            parent directories.
        load_dotenv: Set to False to skip ``.env`` loading (tests, containers).
    """

    def __init__(self, dotenv_path: str | None = None, load_dotenv: bool = True):
        self._dotenv_loaded = False
        self._dotenv_lock = Lock()
        self._dotenv_path = dotenv_path
        self._load_dotenv_enabled = load_dotenv

        if self._load_dotenv_enabled:
            self._ensure_dotenv_loaded()

    def _ensure_dotenv_loaded(self) -> None:
        if self._dotenv_loaded:
            return

        with self._dotenv_lock:
            if self._dotenv_loaded:
                return

            try:
                load_dotenv(dotenv_path=self._dotenv_path)
                logger.debug("Loaded .env file for credential resolution")
            except OSError as e:
                logger.warning(f"Failed to load .env file: {e}")
            self._dotenv_loaded = True

    def resolve(
        self,
        *,
        value: str | None = None,
        env_var_name: str | None = None,
        default: str | None = None,
        required: bool = False,
        secret: bool = True,
    ) -> str | None:
        """Resolve one value, first match wins.

        Args:
            value: Explicit value; when given, every other source is ignored.
            env_var_name: Environment variable to read.
            default: Fallback when nothing else is set.
            required: Raise instead of returning None when nothing is found.
            secret: Mask the value in debug logs. Disable for plain settings.

        Raises:
            CredentialNotFoundError: If ``required`` and no source had a value.
        """
        for result, source in self._candidates(value, env_var_name, default):
            if result is not None:
                logger.debug(f"Resolved value from {source}: {'***' if secret else result}")
                return result

        if required:
            checked = f" (checked env var: {env_var_name})" if env_var_name else ""
            raise CredentialNotFoundError(f"Required credential not found{checked}", env_var_name=env_var_name)
        return None

    @staticmethod
    def _candidates(value: str | None, env_var_name: str | None, default: str | None):
        yield value, "explicit parameter"
        if env_var_name:
            yield os.environ.get(env_var_name), f"environment variable '{env_var_name}'"
        yield default, "default value"

    def resolve_from_file(
        self,
        *,
        file_path: str | Path | None = None,
        env_var_name: str | None = None,
        required: bool = False,
    ) -> str | None:
        """Read a secret from a file, e.g. a mounted container secret.

        The path may be given directly or through ``env_var_name``; ``~`` and
        ``$VAR`` are expanded. Contents are stripped of surrounding whitespace.

        Raises:
            CredentialFileError: If ``required`` and the file cannot be read.
        """
        if file_path is None and env_var_name:
            file_path = self.resolve(env_var_name=env_var_name, secret=False)
        if file_path is None:
            if required:
                unset = f" ('{env_var_name}' is not set)" if env_var_name else ""
                raise CredentialFileError(f"No credential file configured{unset}")
            return None

        path = Path(os.path.expandvars(str(file_path))).expanduser()
        try:
            secret = path.read_text().strip()
        except FileNotFoundError:
            if required:
                raise CredentialFileError(f"Credential file not found: {path}") from None
            logger.debug(f"Credential file not found: {path}")
            return None
        except OSError as e:
            if required:
                raise CredentialFileError(f"Cannot read credential file {path}: {e}") from e
            logger.warning(f"Cannot read credential file {path}: {e}")
            return None

        logger.debug(f"Resolved credential from file {path}: ***")
        return secret

    def resolve_client_credentials(
        self, client_id: str | None = None, client_secret: str | None = None
    ) -> tuple[str, str]:
        """Resolve the application's client id and secret.

        The secret falls back to the file named by ``TWITCH_CLIENT_SECRET_FILE``.

        Raises:
            CredentialNotFoundError: If either value is missing.
        """
        resolved_id = self.resolve(value=client_id, env_var_name=CLIENT_ID_ENV, required=True, secret=False)
        resolved_secret = self._client_secret(client_secret)
        if resolved_secret is None:
            raise CredentialNotFoundError(
                f"Client secret not found (checked {CLIENT_SECRET_ENV} and {CLIENT_SECRET_FILE_ENV})",
                env_var_name=CLIENT_SECRET_ENV,
            )
        return resolved_id, resolved_secret

    def resolve_user_token(self) -> UserTokenSettings:
        """Resolve a user access token and whatever is needed to refresh it.

        Only ``TWITCH_ACCESS_TOKEN`` is required; the refresh token, client id
        and client secret are returned as None when unset.

        Raises:
            CredentialNotFoundError: If no access token is configured.
        """
        return UserTokenSettings(
            access_token=self.resolve(env_var_name=ACCESS_TOKEN_ENV, required=True),
            refresh_token=self.resolve(env_var_name=REFRESH_TOKEN_ENV),
            client_id=self.resolve(env_var_name=CLIENT_ID_ENV, secret=False),
            client_secret=self._client_secret(),
        )

    def _client_secret(self, explicit: str | None = None) -> str | None:
        secret = self.resolve(value=explicit, env_var_name=CLIENT_SECRET_ENV)
        if secret is None:
            secret = self.resolve_from_file(env_var_name=CLIENT_SECRET_FILE_ENV)
        return secret
