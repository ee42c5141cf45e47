"""Typed endpoint descriptions: the Endpoint descriptor, Request and Response models.

An endpoint is declared once as a Request class bound to an :class:`Endpoint`,
and the Endpoint names the Response type its body decodes into::

    class Moderator(TwitchModel):
        user_id: str
        user_name: str

    class GetModeratorsRequest(Request[HelixResponse[Moderator]]):
        endpoint = Endpoint(
            "GET",
            "moderation/moderators",
            HelixResponse[Moderator],
            scopes=[Scope.MODERATION_READ],
            paginated=True,
        )

        broadcaster_id: str
        after: str | None = None

Request fields that appear as ``{placeholders}`` in the path template are
substituted into the path; the body field (if declared) becomes the JSON body;
every other non-``None`` field is sent in the query string. List values are
sent as repeated parameters.
"""

import json
import string
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Annotated, Any, ClassVar, Generic, TypeVar
from urllib.parse import quote, urlencode

from pydantic import BaseModel, BeforeValidator, ConfigDict

from twitch_api_core.auth.scopes import normalize_scopes

ResponseT = TypeVar("ResponseT")
ItemT = TypeVar("ItemT")

API_HELIX = "helix"
API_TMI = "tmi"


@dataclass(frozen=True)
class Endpoint(Generic[ResponseT]):
    """Immutable wire contract of one API operation.

    Attributes:
        method: HTTP method.
        path: Path template relative to the API base URL, with ``{name}``
            placeholders filled from request fields.
        response: Model the 2xx body decodes into; None for endpoints that
            answer with no content.
        scopes: OAuth scopes the credential must hold.
        paginated: Whether responses carry a continuation cursor.
        api: ``"helix"`` or ``"tmi"``; selects the base URL.
        authenticated: Whether the call carries credentials.
        body_key: Wrap the JSON body in an object under this key.
    """

    method: str
    path: str
    response: type[ResponseT] | None
    scopes: frozenset[str] = field(default_factory=frozenset)
    paginated: bool = False
    api: str = API_HELIX
    authenticated: bool = True
    body_key: str | None = None

    def __post_init__(self):
        object.__setattr__(self, "method", self.method.upper())
        object.__setattr__(self, "scopes", normalize_scopes(self.scopes))
        if self.api not in (API_HELIX, API_TMI):
            raise ValueError(f"Unknown API {self.api!r} for endpoint {self.path}")

    @property
    def placeholders(self) -> frozenset[str]:
        return frozenset(name for _, name, _, _ in string.Formatter().parse(self.path) if name)

    def render_path(self, values: dict[str, Any]) -> str:
        """Fill the path template, percent-encoding each value."""
        missing = self.placeholders - {k for k, v in values.items() if v is not None}
        if missing:
            raise ValueError(f"Missing path parameters for {self.path}: {sorted(missing)}")
        return self.path.format(**{name: quote(_format(values[name]), safe="") for name in self.placeholders})


def _format(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime):
        return value.isoformat().replace("+00:00", "Z")
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


def _dump(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", exclude_none=True)
    if isinstance(value, (list, tuple)):
        return [_dump(item) for item in value]
    return value


def _empty_to_none(value: Any) -> Any:
    return None if value == "" else value


# Twitch sends "" instead of null for some absent timestamps.
Timestamp = Annotated[datetime | None, BeforeValidator(_empty_to_none)]


class TwitchModel(BaseModel):
    """Base for response items. Unknown fields are rejected so API drift surfaces."""

    model_config = ConfigDict(extra="forbid", frozen=True)


class Pagination(BaseModel):
    model_config = ConfigDict(frozen=True)

    cursor: str | None = None


class HelixResponse(BaseModel, Generic[ItemT]):
    """Standard Helix envelope: ``{"data": [...], "pagination": {"cursor": ...}}``."""

    model_config = ConfigDict(frozen=True)

    data: list[ItemT]
    pagination: Pagination | None = None
    total: int | None = None

    @property
    def items(self) -> list[ItemT]:
        return self.data

    @property
    def cursor(self) -> str | None:
        """Continuation cursor, or None when the server sent no cursor key."""
        return self.pagination.cursor if self.pagination is not None else None


class Request(BaseModel, Generic[ResponseT]):
    """Base class for typed requests.

    Subclasses set ``endpoint`` and declare their parameters as fields.
    ``body_field`` names the field serialized as the JSON body, and
    ``cursor_field`` the query parameter that carries the pagination cursor.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    endpoint: ClassVar[Endpoint]
    body_field: ClassVar[str | None] = None
    cursor_field: ClassVar[str] = "after"

    def _wire_values(self) -> Iterable[tuple[str, str, Any]]:
        for name, info in type(self).model_fields.items():
            yield name, info.alias or name, getattr(self, name)

    def path_params(self) -> dict[str, Any]:
        placeholders = self.endpoint.placeholders
        return {wire: value for _, wire, value in self._wire_values() if wire in placeholders}

    def query_params(self) -> list[tuple[str, str]]:
        placeholders = self.endpoint.placeholders
        params: list[tuple[str, str]] = []
        for name, wire, value in self._wire_values():
            if value is None or wire in placeholders or name == self.body_field:
                continue
            if isinstance(value, (list, tuple, set, frozenset)):
                params.extend((wire, _format(item)) for item in value)
            else:
                params.append((wire, _format(value)))
        return params

    def render_url(self, base_url: str) -> str:
        url = base_url + self.endpoint.render_path(self.path_params())
        query = self.query_params()
        return f"{url}?{urlencode(query)}" if query else url

    def render_body(self) -> bytes | None:
        if self.body_field is None:
            return None
        value = getattr(self, self.body_field)
        if value is None:
            return None
        payload = _dump(value)
        if self.endpoint.body_key:
            payload = {self.endpoint.body_key: payload}
        return json.dumps(payload).encode()

    def with_cursor(self, cursor: str | None):
        """Copy of this request continuing from ``cursor``."""
        if not self.endpoint.paginated:
            raise TypeError(f"{type(self).__name__} is not a paginated request")
        return self.model_copy(update={self.cursor_field: cursor})
