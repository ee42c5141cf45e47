"""The credential value the execution engine authenticates with."""

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from twitch_api_core.auth.scopes import normalize_scopes


@dataclass(frozen=True)
class Credential:
    """Bearer token plus the metadata needed to authenticate a call.

    Attributes:
        access_token: OAuth access token. Never included in ``repr``.
        client_id: Application client id sent in the ``Client-Id`` header.
        scopes: Scopes granted to the token.
        expires_at: When the token stops being valid, if known.
        user_id: Twitch user id for user tokens, None for app tokens.
        login: Twitch login for user tokens.
    """

    access_token: str = field(repr=False)
    client_id: str
    scopes: frozenset[str] = frozenset()
    expires_at: datetime | None = None
    user_id: str | None = None
    login: str | None = None

    def __post_init__(self):
        object.__setattr__(self, "scopes", normalize_scopes(self.scopes))

    @classmethod
    def create(
        cls,
        access_token: str,
        client_id: str,
        scopes: Iterable[str] = (),
        expires_in: float | None = None,
        **kwargs,
    ) -> "Credential":
        """Build a credential from an ``expires_in`` seconds value."""
        expires_at = datetime.now(UTC) + timedelta(seconds=expires_in) if expires_in is not None else None
        return cls(
            access_token=access_token,
            client_id=client_id,
            scopes=frozenset(scopes),
            expires_at=expires_at,
            **kwargs,
        )

    def is_expired(self, leeway: float = 0.0, now: datetime | None = None) -> bool:
        """Whether the token is expired, or will be within ``leeway`` seconds."""
        if self.expires_at is None:
            return False
        now = now or datetime.now(UTC)
        return self.expires_at - timedelta(seconds=leeway) <= now

    def missing_scopes(self, required: Iterable[str]) -> frozenset[str]:
        return normalize_scopes(required) - self.scopes

    @property
    def rate_limit_key(self) -> str:
        """Identity the server buckets rate limits under."""
        return f"{self.client_id}:{self.user_id or 'app'}"

    def auth_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.access_token}", "Client-Id": self.client_id}
