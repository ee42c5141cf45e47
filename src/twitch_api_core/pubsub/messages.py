"""PubSub wire frames.

Client → server::

    {"type": "LISTEN", "nonce": "44h1k13746815ab1r2", "data": {"topics": ["whispers.44322889"], "auth_token": "..."}}
    {"type": "PING"}

Server → client::

    {"type": "RESPONSE", "nonce": "44h1k13746815ab1r2", "error": ""}
    {"type": "MESSAGE", "data": {"topic": "whispers.44322889", "message": "<JSON string>"}}
    {"type": "PONG"}
    {"type": "RECONNECT"}
"""

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from twitch_api_core.errors.exceptions import ProtocolViolation

PING_FRAME = '{"type": "PING"}'


class _Frame(BaseModel):
    model_config = ConfigDict(frozen=True)


class ListenData(_Frame):
    topics: list[str]
    auth_token: str | None = None


class ListenFrame(_Frame):
    type: Literal["LISTEN", "UNLISTEN"]
    nonce: str
    data: ListenData

    def to_json(self) -> str:
        return self.model_dump_json(exclude_none=True)


class ResponseFrame(_Frame):
    type: Literal["RESPONSE"]
    nonce: str | None = None
    error: str = ""


class MessageData(_Frame):
    topic: str
    message: str


class MessageFrame(_Frame):
    type: Literal["MESSAGE"]
    data: MessageData


class PongFrame(_Frame):
    type: Literal["PONG"]


class ReconnectFrame(_Frame):
    type: Literal["RECONNECT"]


ServerFrame = Annotated[
    ResponseFrame | MessageFrame | PongFrame | ReconnectFrame,
    Field(discriminator="type"),
]

_server_frame = TypeAdapter(ServerFrame)


def listen_frame(command: str, nonce: str, topics: list[str], auth_token: str | None) -> str:
    return ListenFrame(type=command, nonce=nonce, data=ListenData(topics=topics, auth_token=auth_token)).to_json()


def parse_frame(raw: str | bytes) -> ResponseFrame | MessageFrame | PongFrame | ReconnectFrame:
    """Decode one server frame.

    Raises:
        ProtocolViolation: If the frame is not JSON or has an unknown shape.
    """
    try:
        return _server_frame.validate_json(raw)
    except ValidationError as e:
        raise ProtocolViolation(f"Unexpected PubSub frame: {str(raw)[:200]}") from e
