"""Domain events exchanged on the ``chat_events`` exchange.

Every event type in the closed routing-key set has its own frozen model;
the routing key is resolved once, at decode time, into one of these
variants.  Keys outside the set decode to ``UnknownEvent`` so callers handle
them in exactly one place.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, ClassVar, Union

from pydantic import BaseModel, ConfigDict, ValidationError


class RoutingKey(str, Enum):
    """The closed set of event types this system publishes and consumes."""

    USER_REGISTERED = "user.registered"
    MESSAGE_CREATED = "message.created"
    USER_JOINED_ROOM = "user.joined_room"


class EventDecodeError(ValueError):
    """Raised when an event body is not a well-formed payload for its key."""

    def __init__(self, routing_key: str, reason: str) -> None:
        super().__init__(f"cannot decode {routing_key} payload: {reason}")
        self.routing_key = routing_key
        self.reason = reason


class DomainEvent(BaseModel):
    """Base for the known event variants.

    Payload fields are optional on the wire; each variant declares the
    fallback used when a field is absent.  Unknown payload keys are ignored.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    routing_key: ClassVar[RoutingKey]

    def to_payload(self) -> dict[str, Any]:
        """Return the JSON-ready wire mapping, tagged with ``event_type``."""
        return {"event_type": self.routing_key.value, **self.model_dump(mode="json")}


class UserRegistered(DomainEvent):
    """A user account was created."""

    routing_key: ClassVar[RoutingKey] = RoutingKey.USER_REGISTERED

    email: str = ""
    username: str = "User"
    user_id: int = 0
    timestamp: str = ""


class MessageCreated(DomainEvent):
    """A message was posted to a room."""

    routing_key: ClassVar[RoutingKey] = RoutingKey.MESSAGE_CREATED

    message_id: int = 0
    room_id: int = 0
    user_id: int = 0
    sender_username: str = "Unknown User"
    sender_email: str = ""
    room_name: str = "Unknown Room"
    content: str = ""
    message_type: str = "text"
    timestamp: str = "N/A"


class UserJoinedRoom(DomainEvent):
    """A user was added to a room."""

    routing_key: ClassVar[RoutingKey] = RoutingKey.USER_JOINED_ROOM

    room_id: int = 0
    user_id: int = 0
    room_name: str = "Unknown Room"
    username: str = "User"
    user_email: str = ""
    role: str = "member"


class UnknownEvent(BaseModel):
    """Traffic on a routing key outside the closed set. Never parsed."""

    model_config = ConfigDict(frozen=True)

    routing_key: str
    body: str = ""


KnownEvent = Union[UserRegistered, MessageCreated, UserJoinedRoom]

EVENT_TYPES: dict[RoutingKey, type[DomainEvent]] = {
    RoutingKey.USER_REGISTERED: UserRegistered,
    RoutingKey.MESSAGE_CREATED: MessageCreated,
    RoutingKey.USER_JOINED_ROOM: UserJoinedRoom,
}


def decode_event(routing_key: str, body: bytes | str) -> KnownEvent | UnknownEvent:
    """Decode a delivered body into its event variant.

    Raises
    ------
    EventDecodeError
        If the key is known but the body is not a JSON object with
        correctly typed fields.
    """
    try:
        key = RoutingKey(routing_key)
    except ValueError:
        text = body.decode("utf-8", errors="replace") if isinstance(body, bytes) else body
        return UnknownEvent(routing_key=routing_key, body=text)

    model = EVENT_TYPES[key]
    try:
        return model.model_validate_json(body)  # type: ignore[return-value]
    except ValueError as exc:  # ValidationError, or undecodable bytes
        raise EventDecodeError(routing_key, _describe(exc)) from exc


def _describe(exc: ValueError) -> str:
    if not isinstance(exc, ValidationError):
        return str(exc)
    return "; ".join(
        f"{'.'.join(str(p) for p in err['loc']) or '<body>'}: {err['msg']}"
        for err in exc.errors()
    )
