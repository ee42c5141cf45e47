"""Backend-agnostic HTTP exchange types and the transport contract."""

import json
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class RawRequest:
    """A fully-formed HTTP request: method, absolute URL, headers, body."""

    method: str
    url: str
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes | None = None


@dataclass(frozen=True)
class RawResponse:
    """Status, headers and body bytes of one HTTP exchange.

    Header names are stored lower-cased so lookups are case-insensitive.
    """

    status: int
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes = b""

    def __post_init__(self):
        object.__setattr__(self, "headers", {k.lower(): v for k, v in self.headers.items()})

    def header(self, name: str, default: str | None = None) -> str | None:
        return self.headers.get(name.lower(), default)

    @property
    def is_success(self) -> bool:
        return 200 <= self.status < 300

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    def json(self) -> Any:
        return json.loads(self.body)


class Transport(ABC):
    """Contract every async HTTP backend implements.

    Implementations perform exactly one exchange per :meth:`send` call and
    raise only :class:`~twitch_api_core.errors.TransportFailure`. They must
    never retry on their own; retry policy belongs to the execution engine.
    """

    @abstractmethod
    async def send(self, request: RawRequest) -> RawResponse:
        """Perform the exchange and return the raw response."""

    async def aclose(self) -> None:
        """Release pooled connections owned by this transport."""

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()
