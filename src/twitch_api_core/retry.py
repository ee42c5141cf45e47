"""Caller-side retry helpers.

The execution engine never sleeps or retries on rate limits; it raises
:class:`~twitch_api_core.errors.RateLimited` with the server's reset hint.
Callers that want to wait opt in explicitly:

```python
from twitch_api_core.retry import retry_rate_limited

users = await retry_rate_limited(
    lambda: engine.execute(GetUsersRequest(login=["twitchdev"])),
    max_attempts=3,
    max_delay=60,
)
```

:class:`ExponentialBackoff` is also what the PubSub client uses between
reconnection attempts.

| Delay source | Used when |
|--------------|-----------|
| ``Ratelimit-Reset`` header | ``RateLimited.reset`` is a unix timestamp |
| Exponential backoff | no usable reset hint |
"""

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TypeVar

from twitch_api_core.errors.exceptions import RateLimited

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class ExponentialBackoff:
    """Exponential backoff with a cap and optional jitter.

    Uses formula: min(initial * factor ** (attempt - 1), maximum)
    Default sequence: 1, 2, 4, 8, 16, 32, 60, 60, ... seconds

    Attributes:
        initial: Delay before the first retry.
        factor: Growth per attempt.
        maximum: Upper bound for any delay.
        jitter: Fraction of the delay added at random (0 disables).
    """

    initial: float = 1.0
    factor: float = 2.0
    maximum: float = 60.0
    jitter: float = 0.0

    def delay(self, attempt: int) -> float:
        """Delay in seconds before retry number ``attempt`` (1-indexed)."""
        delay = min(self.initial * (self.factor ** max(attempt - 1, 0)), self.maximum)
        if self.jitter:
            delay += random.uniform(0, delay * self.jitter)
        return delay


def delay_for(error: RateLimited, backoff: ExponentialBackoff, attempt: int, max_delay: float) -> float:
    """Seconds to wait after ``error``: until the reset time if known, else backoff.

    Negative values (clock skew) fall back to backoff; the result never
    exceeds ``max_delay``.
    """
    reset_at = error.reset_at
    if reset_at is not None:
        delay = (reset_at - datetime.now(UTC)).total_seconds()
        if delay >= 0:
            return min(delay, max_delay)
    return min(backoff.delay(attempt), max_delay)


async def retry_rate_limited(
    call: Callable[[], Awaitable[T]],
    *,
    max_attempts: int = 3,
    max_delay: float = 60.0,
    backoff: ExponentialBackoff | None = None,
) -> T:
    """Invoke ``call`` and retry it after ``RateLimited``, waiting for the reset.

    Args:
        call: Zero-argument factory returning a fresh awaitable per attempt.
        max_attempts: Total attempts including the first.
        max_delay: Cap on any single wait, in seconds.
        backoff: Delay policy when the error carries no reset time.

    Raises:
        RateLimited: If the last attempt is still rate limited.
    """
    backoff = backoff or ExponentialBackoff()
    attempt = 1
    while True:
        try:
            return await call()
        except RateLimited as e:
            if attempt >= max_attempts:
                raise
            delay = delay_for(e, backoff, attempt, max_delay)
            logger.warning(f"Rate limited, retrying in {delay:.1f}s (attempt {attempt}/{max_attempts})")
            await asyncio.sleep(delay)
            attempt += 1
