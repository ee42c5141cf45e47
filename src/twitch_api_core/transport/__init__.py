"""Transport layer: the async HTTP capability the execution engine runs on.

Any backend that subclasses :class:`Transport` can carry requests; two ship
with the library:

- ``httpx``: :class:`HttpxTransport` over ``httpx.AsyncClient``
- ``aiohttp``: :class:`AiohttpTransport` over ``aiohttp.ClientSession``

Example:
    ```python
    from twitch_api_core.transport import create_transport

    async with create_transport("aiohttp", timeout=10) as transport:
        ...
    ```
"""

from twitch_api_core.transport.aiohttp_backend import AiohttpTransport
from twitch_api_core.transport.base import RawRequest, RawResponse, Transport
from twitch_api_core.transport.httpx_backend import HttpxTransport

BACKENDS: dict[str, type[Transport]] = {
    "httpx": HttpxTransport,
    "aiohttp": AiohttpTransport,
}


def create_transport(backend: str = "httpx", *, timeout: float = 30.0) -> Transport:
    """Create a transport for the named backend.

    Args:
        backend: ``"httpx"`` or ``"aiohttp"``.
        timeout: Total request timeout in seconds.

    Raises:
        ValueError: If the backend name is unknown.
    """
    try:
        transport_class = BACKENDS[backend]
    except KeyError:
        raise ValueError(f"Unknown HTTP backend {backend!r}; expected one of {sorted(BACKENDS)}") from None
    return transport_class(timeout=timeout)


__all__ = [
    "BACKENDS",
    "AiohttpTransport",
    "HttpxTransport",
    "RawRequest",
    "RawResponse",
    "Transport",
    "create_transport",
]
