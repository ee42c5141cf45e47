"""Twitch error body model."""

import json
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from twitch_api_core.transport.base import RawResponse


@dataclass
class HelixErrorBody:
    """Error object returned by Helix and the OAuth endpoints.

    Example body: ``{"error": "Unauthorized", "status": 401, "message": "Invalid OAuth token"}``
    """

    error: str | None = None  # Reason phrase
    status: int | None = None  # HTTP status code
    message: str | None = None  # Human-readable explanation

    # Any other fields the server sent
    extensions: dict[str, Any] | None = None

    @classmethod
    def from_response(cls, response: "RawResponse") -> "HelixErrorBody | None":
        """Parse the error body of a raw response.

        Args:
            response: Raw HTTP response

        Returns:
            HelixErrorBody, or None if the body is not a JSON error object
        """
        try:
            data = json.loads(response.body)
        except (ValueError, TypeError):
            return None

        if not isinstance(data, dict):
            return None

        standard_fields = {"error", "status", "message"}
        if not any(field in data for field in standard_fields):
            return None

        status = data.get("status")
        extensions = {k: v for k, v in data.items() if k not in standard_fields}

        return cls(
            error=data.get("error"),
            status=status if isinstance(status, int) else None,
            message=data.get("message"),
            extensions=extensions if extensions else None,
        )

    def to_exception_message(self) -> str:
        """Convert the error body to an exception message."""
        parts = []

        if self.error:
            parts.append(self.error)
        if self.message and self.message != self.error:
            parts.append(self.message)

        return ": ".join(parts) if parts else "Unknown API error"
