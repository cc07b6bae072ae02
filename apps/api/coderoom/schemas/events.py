"""Wire contracts for collaboration events."""
from __future__ import annotations

import enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ClientEvent(str, enum.Enum):
    JOIN = "join"
    LEAVE = "leave"
    CODE_CHANGE = "code-change"
    CURSOR_MOVE = "cursor-move"
    SELECTION_CHANGE = "selection-change"
    USER_CALL = "user:call"
    CALL_ACCEPTED = "call:accepted"
    PEER_NEGO_NEEDED = "peer:nego:needed"
    PEER_NEGO_DONE = "peer:nego:done"
    SCREEN_START = "screen:start"
    SCREEN_STOP = "screen:stop"


class ServerEvent(str, enum.Enum):
    CONNECTION_ACK = "connection:ack"
    ERROR = "error"
    JOINED = "joined"
    USER_JOINED = "user:joined"
    USER_DISCONNECTED = "user:disconnected"
    CODE_CHANGED = "code-changed"
    CURSOR_MOVED = "cursor-moved"
    SELECTION_CHANGED = "selection-changed"
    # The misspelling is part of the published client protocol.
    INCOMING_CALL = "incomming:call"
    CALL_ACCEPTED = "call:accepted"
    PEER_NEGO_NEEDED = "peer:nego:needed"
    PEER_NEGO_FINAL = "peer:nego:final"
    SCREEN_STARTED = "screen:started"
    SCREEN_STOPPED = "screen:stopped"


class WireModel(BaseModel):
    """Camel-cased on the wire, snake-cased in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


# Inbound payloads


class JoinRequest(WireModel):
    # Optional here so that a missing field surfaces as a join error, not a dropped frame.
    room_id: str | None = Field(default=None, description="Room to join")
    email: str | None = Field(default=None, description="Participant label")


class LeaveRequest(WireModel):
    room_id: str | None = None


class CodeChangeRequest(WireModel):
    room_id: str | None = None
    code: str
    cursor_position: Any = None


class CursorMoveRequest(WireModel):
    room_id: str | None = None
    cursor_position: Any = None


class SelectionChangeRequest(WireModel):
    room_id: str | None = None
    selection: Any = None


class OfferRequest(WireModel):
    to: str = Field(..., description="Target connection identity")
    offer: Any = Field(default=None, description="Opaque session description")


class AnswerRequest(WireModel):
    to: str = Field(..., description="Target connection identity")
    ans: Any = Field(default=None, description="Opaque session description")


class ScreenShareRequest(WireModel):
    to: str = Field(..., description="Target connection identity")


INBOUND_MODELS: dict[ClientEvent, type[WireModel]] = {
    ClientEvent.JOIN: JoinRequest,
    ClientEvent.LEAVE: LeaveRequest,
    ClientEvent.CODE_CHANGE: CodeChangeRequest,
    ClientEvent.CURSOR_MOVE: CursorMoveRequest,
    ClientEvent.SELECTION_CHANGE: SelectionChangeRequest,
    ClientEvent.USER_CALL: OfferRequest,
    ClientEvent.CALL_ACCEPTED: AnswerRequest,
    ClientEvent.PEER_NEGO_NEEDED: OfferRequest,
    ClientEvent.PEER_NEGO_DONE: AnswerRequest,
    ClientEvent.SCREEN_START: ScreenShareRequest,
    ClientEvent.SCREEN_STOP: ScreenShareRequest,
}


# Outbound payloads


class ConnectionAck(WireModel):
    id: str


class ErrorNotice(WireModel):
    message: str


class MemberView(WireModel):
    email: str
    socket_id: str


class JoinedNotice(WireModel):
    room_id: str
    email: str
    users: list[MemberView]
    code: str


class UserJoinedNotice(WireModel):
    email: str
    socket_id: str


class UserDisconnectedNotice(WireModel):
    socket_id: str
    email: str


class CodeChangedNotice(WireModel):
    code: str
    cursor_position: Any = None
    changed_by: str


class CursorMovedNotice(WireModel):
    cursor_position: Any = None
    moved_by: str


class SelectionChangedNotice(WireModel):
    selection: Any = None
    changed_by: str


class RelayedOffer(WireModel):
    from_: str = Field(..., alias="from")
    offer: Any = None


class RelayedAnswer(WireModel):
    from_: str = Field(..., alias="from")
    ans: Any = None


class ScreenShareNotice(WireModel):
    from_: str = Field(..., alias="from")
