"""Rate-limit bookkeeping derived from Helix response headers.

Helix reports the caller's token bucket on every response::

    Ratelimit-Limit: 800
    Ratelimit-Remaining: 799
    Ratelimit-Reset: 1609459200

The engine records the state and exposes it. While a credential's bucket is
empty and its reset time lies ahead, further calls for that credential fail
with :class:`~twitch_api_core.errors.RateLimited` before any network I/O.
The engine never sleeps on the caller's behalf.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime

LIMIT_HEADER = "ratelimit-limit"
REMAINING_HEADER = "ratelimit-remaining"
RESET_HEADER = "ratelimit-reset"


def _parse_int(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


@dataclass(frozen=True)
class RateLimitState:
    """Bucket counters reported by the server for one credential."""

    limit: int | None = None
    remaining: int | None = None
    reset: str | None = None  # Header value, unmodified

    @classmethod
    def from_headers(cls, headers: Mapping[str, str]) -> "RateLimitState | None":
        """Read the rate-limit headers, or return None if none are present.

        Args:
            headers: Response headers with lower-cased names
        """
        if not any(name in headers for name in (LIMIT_HEADER, REMAINING_HEADER, RESET_HEADER)):
            return None
        return cls(
            limit=_parse_int(headers.get(LIMIT_HEADER)),
            remaining=_parse_int(headers.get(REMAINING_HEADER)),
            reset=headers.get(RESET_HEADER),
        )

    @property
    def exhausted(self) -> bool:
        return self.remaining is not None and self.remaining <= 0

    @property
    def reset_at(self) -> datetime | None:
        reset = _parse_int(self.reset)
        if reset is None:
            return None
        return datetime.fromtimestamp(reset, tz=UTC)

    def seconds_until_reset(self, now: datetime | None = None) -> float | None:
        """Seconds until the bucket refills, never negative."""
        reset_at = self.reset_at
        if reset_at is None:
            return None
        now = now or datetime.now(UTC)
        return max((reset_at - now).total_seconds(), 0.0)

    def is_blocking(self, now: datetime | None = None) -> bool:
        """True while the bucket is empty and its reset time has not passed.

        A bucket without a parseable reset time never blocks, since no later
        response could clear it.
        """
        if not self.exhausted:
            return False
        wait = self.seconds_until_reset(now)
        return wait is not None and wait > 0
