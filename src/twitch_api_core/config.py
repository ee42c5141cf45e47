"""Client configuration.

Settings come from constructor arguments or, through :meth:`ClientConfig.from_env`,
from ``TWITCH_*`` environment variables and ``.env`` files.

| Variable | Field | Default |
|----------|-------|---------|
| ``TWITCH_HELIX_URL`` | ``helix_url`` | ``https://api.twitch.tv/helix/`` |
| ``TWITCH_TMI_URL`` | ``tmi_url`` | ``https://tmi.twitch.tv/`` |
| ``TWITCH_AUTH_RETRIES`` | ``auth_retries`` | ``1`` |
| ``TWITCH_HTTP_TIMEOUT`` | ``timeout`` | ``30`` |
| ``TWITCH_HTTP_BACKEND`` | ``http_backend`` | ``httpx`` |
"""

from dataclasses import dataclass

from twitch_api_core import __version__
from twitch_api_core.auth.credentials import CredentialResolver

HELIX_URL = "https://api.twitch.tv/helix/"
TMI_URL = "https://tmi.twitch.tv/"


@dataclass(frozen=True)
class ClientConfig:
    """Settings shared by every call an engine makes.

    Attributes:
        helix_url: Base URL of the Helix API, with trailing slash.
        tmi_url: Base URL of the TMI API, with trailing slash.
        auth_retries: How many times a 401/403 triggers invalidate + retry.
        timeout: Total HTTP timeout in seconds for transports built from config.
        user_agent: ``User-Agent`` header value.
        http_backend: Transport backend name for :func:`create_transport`.
    """

    helix_url: str = HELIX_URL
    tmi_url: str = TMI_URL
    auth_retries: int = 1
    timeout: float = 30.0
    user_agent: str = f"twitch-api-core/{__version__}"
    http_backend: str = "httpx"

    def __post_init__(self):
        if self.auth_retries < 0:
            raise ValueError(f"auth_retries must be >= 0, got {self.auth_retries}")
        if self.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout}")
        for name in ("helix_url", "tmi_url"):
            url = getattr(self, name)
            if not url.endswith("/"):
                object.__setattr__(self, name, url + "/")

    def base_url(self, api: str) -> str:
        """Base URL for an endpoint's API (``"helix"`` or ``"tmi"``)."""
        if api == "helix":
            return self.helix_url
        if api == "tmi":
            return self.tmi_url
        raise ValueError(f"Unknown API {api!r}")

    @classmethod
    def from_env(cls, resolver: CredentialResolver | None = None, **overrides) -> "ClientConfig":
        """Build a config from ``TWITCH_*`` variables; keyword overrides win.

        Raises:
            ValueError: If a numeric variable cannot be parsed.
        """
        resolver = resolver or CredentialResolver()

        def setting(env_var_name: str, default: str) -> str:
            return resolver.resolve(env_var_name=env_var_name, default=default, secret=False)

        values = {
            "helix_url": setting("TWITCH_HELIX_URL", HELIX_URL),
            "tmi_url": setting("TWITCH_TMI_URL", TMI_URL),
            "http_backend": setting("TWITCH_HTTP_BACKEND", "httpx"),
        }
        try:
            values["auth_retries"] = int(setting("TWITCH_AUTH_RETRIES", "1"))
            values["timeout"] = float(setting("TWITCH_HTTP_TIMEOUT", "30"))
        except ValueError as e:
            raise ValueError(f"Invalid numeric setting in environment: {e}") from e

        values.update(overrides)
        return cls(**values)
