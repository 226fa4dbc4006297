"""
Pydantic models for websocket frames.

Inbound frames are a tagged union on `type`; `parse_inbound` turns a decoded
JSON object into one of them. Outbound models serialize with
`model_dump(by_alias=True)` so field names match what clients expect
(`isTyping`, not `is_typing`).
"""

from __future__ import annotations

import logging
from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from .errors import UnknownEventType

logger = logging.getLogger(__name__)


# Inbound

class JoinEvent(BaseModel):
    type: Literal["join"] = "join"
    # Left untyped so a non-string name reaches the registry and fails as InvalidFormat.
    name: Any = None


class ChatMessageEvent(BaseModel):
    type: Literal["chat-message"] = "chat-message"
    message: str


class TypingEvent(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: Literal["typing"] = "typing"
    is_typing: bool = Field(default=False, alias="isTyping")

    @field_validator("is_typing", mode="before")
    @classmethod
    def _coerce_truthiness(cls, value: Any) -> bool:
        return bool(value)


class DisconnectEvent(BaseModel):
    """Raised by the transport when a socket closes; never accepted from a client frame."""

    type: Literal["disconnect"] = "disconnect"


InboundEvent = Annotated[
    Union[JoinEvent, ChatMessageEvent, TypingEvent],
    Field(discriminator="type"),
]

_inbound_adapter: TypeAdapter = TypeAdapter(InboundEvent)

INBOUND_TYPES = ("join", "chat-message", "typing")


def parse_inbound(data: Any) -> Optional[Union[JoinEvent, ChatMessageEvent, TypingEvent]]:
    """
    Validate a decoded client frame.

    Returns None for a known type with a malformed payload (the frame is dropped).
    Raises UnknownEventType when `type` is missing or not one we handle.
    """
    if not isinstance(data, dict):
        raise UnknownEventType(None)
    event_type = data.get("type")
    if event_type not in INBOUND_TYPES:
        raise UnknownEventType(event_type)
    try:
        return _inbound_adapter.validate_python(data)
    except ValidationError as exc:
        logger.debug("Dropping malformed %s frame: %s", event_type, exc.errors())
        return None


# Outbound

class ConnectedEvent(BaseModel):
    type: Literal["connected"] = "connected"
    session_id: str


class UserJoinedEvent(BaseModel):
    type: Literal["user-joined"] = "user-joined"
    name: str


class UserLeftEvent(BaseModel):
    type: Literal["user-left"] = "user-left"
    name: str


class UserListEvent(BaseModel):
    type: Literal["user-list"] = "user-list"
    users: List[str]


class ChatMessageBroadcast(BaseModel):
    type: Literal["chat-message"] = "chat-message"
    name: str
    message: str
    timestamp: str


class TypingBroadcast(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: Literal["typing"] = "typing"
    name: str
    is_typing: bool = Field(alias="isTyping")


class ErrorEvent(BaseModel):
    type: Literal["error"] = "error"
    message: str
