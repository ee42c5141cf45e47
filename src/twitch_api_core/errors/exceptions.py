"""Structured exceptions for Twitch API errors.

Every failure the pipeline can surface is one of the classes below, and each
class carries an :class:`ErrorKind` so callers can match on the kind without
caring about the class hierarchy.
"""

from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from twitch_api_core.errors.models import HelixErrorBody
    from twitch_api_core.transport.base import RawResponse


class ErrorKind(str, Enum):
    """Enumeration of every error kind the client can raise."""

    TRANSPORT_FAILURE = "transport_failure"
    AUTHENTICATION_REJECTED = "authentication_rejected"
    INSUFFICIENT_SCOPE = "insufficient_scope"
    RATE_LIMITED = "rate_limited"
    SERVER_ERROR = "server_error"
    CLIENT_ERROR = "client_error"
    MALFORMED_RESPONSE = "malformed_response"
    PROTOCOL_VIOLATION = "protocol_violation"


class ApiError(Exception):
    """Base exception for API errors."""

    kind: ErrorKind

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response: "RawResponse | None" = None,
        error_body: "HelixErrorBody | None" = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.response = response
        self.error_body = error_body


class TransportFailure(ApiError):
    """Connectivity, TLS, timeout or decode failure below the HTTP layer.

    Potentially transient; the caller may retry.
    """

    kind = ErrorKind.TRANSPORT_FAILURE

    def __init__(self, message: str, failure: str = "other", **kwargs):
        super().__init__(message, **kwargs)
        self.failure = failure


class AuthenticationRejected(ApiError):
    """Token rejected by the server even after the engine refreshed it."""

    kind = ErrorKind.AUTHENTICATION_REJECTED


class InsufficientScope(ApiError):
    """Credential lacks scopes the endpoint requires. Raised before any I/O."""

    kind = ErrorKind.INSUFFICIENT_SCOPE

    def __init__(self, message: str, required: frozenset[str], missing: frozenset[str], **kwargs):
        super().__init__(message, **kwargs)
        self.required = required
        self.missing = missing


class RateLimited(ApiError):
    """429 Too Many Requests, or rate-limit headers report nothing remaining.

    ``reset`` is the ``Ratelimit-Reset`` header exactly as the server sent it.
    """

    kind = ErrorKind.RATE_LIMITED

    def __init__(
        self,
        message: str,
        reset: str | None = None,
        limit: int | None = None,
        remaining: int | None = None,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        self.reset = reset
        self.limit = limit
        self.remaining = remaining

    @property
    def reset_at(self) -> datetime | None:
        """Reset hint as an aware datetime, if the header was a unix timestamp."""
        if self.reset is None:
            return None
        try:
            return datetime.fromtimestamp(int(self.reset), tz=UTC)
        except (ValueError, OverflowError):
            return None


class ServerError(ApiError):
    """5xx server errors. Never retried automatically."""

    kind = ErrorKind.SERVER_ERROR


class ClientError(ApiError):
    """4xx errors other than authentication and rate limiting."""

    kind = ErrorKind.CLIENT_ERROR


class MalformedResponse(ApiError):
    """Successful response whose body does not match the expected model.

    Signals API drift, not a connectivity problem.
    """

    kind = ErrorKind.MALFORMED_RESPONSE

    def __init__(self, message: str, errors: list[dict] | None = None, **kwargs):
        super().__init__(message, **kwargs)
        self.errors = errors if errors is not None else []


class ProtocolViolation(ApiError):
    """Unexpected message shape or nonce mismatch on the PubSub channel."""

    kind = ErrorKind.PROTOCOL_VIOLATION


class SubscriptionRejected(ProtocolViolation):
    """PubSub server answered a LISTEN/UNLISTEN with an error code."""

    def __init__(self, message: str, topic: str, error: str, **kwargs):
        super().__init__(message, **kwargs)
        self.topic = topic
        self.error = error


class SubscriptionTimeout(ProtocolViolation):
    """No acknowledgement arrived for a LISTEN/UNLISTEN in time."""

    def __init__(self, message: str, topic: str, **kwargs):
        super().__init__(message, **kwargs)
        self.topic = topic
