"""Error classification for raw HTTP responses."""

from twitch_api_core.errors.exceptions import (
    ApiError,
    AuthenticationRejected,
    ClientError,
    RateLimited,
    ServerError,
)
from twitch_api_core.errors.models import HelixErrorBody
from twitch_api_core.ratelimit import RateLimitState
from twitch_api_core.transport.base import RawResponse

AUTH_REJECTION_STATUSES = frozenset([401, 403])


def classify_response(response: RawResponse) -> ApiError | None:
    """Map a raw response to the exception that describes it.

    Args:
        response: Raw HTTP response

    Returns:
        None for 2xx responses, otherwise an ApiError subclass instance
        (not raised) chosen by status code and rate-limit headers.
    """
    if response.is_success:
        return None

    error_body = HelixErrorBody.from_response(response)
    status_code = response.status

    if error_body:
        message = f"HTTP {status_code}: {error_body.to_exception_message()}"
    else:
        response_text = response.text[:200]
        message = f"HTTP {status_code}: {response_text}" if response_text else f"HTTP {status_code}"

    common = {"status_code": status_code, "response": response, "error_body": error_body}

    rate_limit = RateLimitState.from_headers(response.headers)
    if status_code == 429 or (rate_limit is not None and rate_limit.exhausted):
        return RateLimited(
            message,
            reset=rate_limit.reset if rate_limit else None,
            limit=rate_limit.limit if rate_limit else None,
            remaining=rate_limit.remaining if rate_limit else None,
            **common,
        )

    if status_code in AUTH_REJECTION_STATUSES:
        return AuthenticationRejected(message, **common)
    if 500 <= status_code < 600:
        return ServerError(message, **common)
    if 400 <= status_code < 500:
        return ClientError(message, **common)
    return ApiError(message, **common)


def raise_for_status(response: RawResponse) -> None:
    """Raise the classified exception for a non-2xx response.

    Raises:
        ApiError subclass based on status code
    """
    error = classify_response(response)
    if error is not None:
        raise error
