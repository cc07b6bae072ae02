"""Room coordination: state transitions and fan-out for collaboration events.

Every inbound event is turned into a list of ``Delivery`` records. The
coordinator never talks to sockets itself; the hub sends what it returns.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import partial
from typing import Any, Callable, Dict

import pydantic

from ..core.config import settings
from ..schemas import events as schemas
from .document_store import SharedDocumentStore
from .room_membership import RoomMembership
from .session_directory import Participant, SessionDirectory

logger = logging.getLogger(__name__)

JOIN_REQUIRED_MESSAGE = "Room ID and email are required"


class ValidationError(ValueError):
    """Raised when a join request lacks a room or an email."""


def _default_documents() -> SharedDocumentStore:
    return SharedDocumentStore(placeholder=settings.default_code)


@dataclass(slots=True)
class RoomState:
    """The three tables behind a coordinator."""

    sessions: SessionDirectory = field(default_factory=SessionDirectory)
    rooms: RoomMembership = field(default_factory=RoomMembership)
    documents: SharedDocumentStore = field(default_factory=_default_documents)


@dataclass(slots=True)
class Delivery:
    """A single event addressed to one connection."""

    target: str
    event: schemas.ServerEvent
    payload: dict[str, Any]

    def as_frame(self) -> dict[str, Any]:
        return {"event": self.event.value, "data": self.payload}


Handler = Callable[[Participant, Any], list[Delivery]]


class RoomCoordinator:
    """Apply join/leave/edit/presence/signaling events to a ``RoomState``."""

    def __init__(self, state: RoomState | None = None) -> None:
        self.state = state or RoomState()
        self._handlers: Dict[schemas.ClientEvent, Handler] = {
            schemas.ClientEvent.LEAVE: self.leave,
            schemas.ClientEvent.CODE_CHANGE: self.code_change,
            schemas.ClientEvent.CURSOR_MOVE: self.cursor_move,
            schemas.ClientEvent.SELECTION_CHANGE: self.selection_change,
            schemas.ClientEvent.USER_CALL: partial(self._relay_offer, schemas.ServerEvent.INCOMING_CALL),
            schemas.ClientEvent.PEER_NEGO_NEEDED: partial(
                self._relay_offer, schemas.ServerEvent.PEER_NEGO_NEEDED
            ),
            schemas.ClientEvent.CALL_ACCEPTED: partial(self._relay_answer, schemas.ServerEvent.CALL_ACCEPTED),
            schemas.ClientEvent.PEER_NEGO_DONE: partial(self._relay_answer, schemas.ServerEvent.PEER_NEGO_FINAL),
            schemas.ClientEvent.SCREEN_START: partial(self._relay_screen, schemas.ServerEvent.SCREEN_STARTED),
            schemas.ClientEvent.SCREEN_STOP: partial(self._relay_screen, schemas.ServerEvent.SCREEN_STOPPED),
        }

    def dispatch(self, sender: str, event: str, data: object) -> list[Delivery]:
        """Validate a raw event and return the deliveries it produces.

        Malformed payloads and events from connections that have not joined
        are logged and dropped. A rejected join is answered with an ``error``
        event to the sender only.
        """

        try:
            kind = schemas.ClientEvent(event)
        except ValueError:
            logger.warning("Ignoring unknown event %r from %s", event, sender)
            return []

        try:
            payload = schemas.INBOUND_MODELS[kind].model_validate(data if data is not None else {})
        except pydantic.ValidationError as exc:
            logger.warning("Dropping malformed %s event from %s: %s", kind.value, sender, exc)
            return []

        if kind is schemas.ClientEvent.JOIN:
            try:
                return self.join(sender, payload)
            except ValidationError as exc:
                logger.info("Join rejected for %s: %s", sender, exc)
                notice = schemas.ErrorNotice(message=f"Failed to join room: {exc}")
                return [Delivery(sender, schemas.ServerEvent.ERROR, notice.to_wire())]

        participant = self.state.sessions.lookup(sender)
        if participant is None:
            logger.debug("Ignoring %s from unjoined connection %s", kind.value, sender)
            return []
        return self._handlers[kind](participant, payload)

    def join(self, sender: str, request: schemas.JoinRequest) -> list[Delivery]:
        room_id = (request.room_id or "").strip()
        email = (request.email or "").strip()
        if not room_id or not email:
            raise ValidationError(JOIN_REQUIRED_MESSAGE)

        state = self.state
        deliveries: list[Delivery] = []
        announce = True
        current = state.sessions.lookup(sender)
        if current is not None:
            if current.room_id == room_id:
                announce = False
            else:
                deliveries.extend(self._release(current))

        participant = state.sessions.register(sender, email, room_id)
        if state.rooms.ensure_room(room_id):
            state.documents.set(room_id, state.documents.placeholder)
            logger.info("Room %s created", room_id)
        state.rooms.add_member(room_id, participant)

        members = state.rooms.list_members(room_id)
        joined = schemas.JoinedNotice(
            room_id=room_id,
            email=email,
            users=[schemas.MemberView(email=m.label, socket_id=m.identity) for m in members],
            code=state.documents.get(room_id),
        )
        deliveries.append(Delivery(sender, schemas.ServerEvent.JOINED, joined.to_wire()))

        if announce:
            notice = schemas.UserJoinedNotice(email=email, socket_id=sender)
            deliveries.extend(self._broadcast(room_id, sender, schemas.ServerEvent.USER_JOINED, notice))

        logger.info("%s joined room %s (%d members)", email, room_id, len(members))
        return deliveries

    def leave(self, participant: Participant, request: schemas.LeaveRequest) -> list[Delivery]:
        if not self._targets_joined_room(participant, request.room_id):
            return []
        logger.info("%s left room %s", participant.label, participant.room_id)
        return self._release(participant)

    def disconnect(self, sender: str, reason: str | None = None) -> list[Delivery]:
        """Tear down whatever state a closing connection left behind."""

        participant = self.state.sessions.lookup(sender)
        logger.info("Socket disconnected: %s - Reason: %s", sender, reason)
        if participant is None:
            return []
        return self._release(participant)

    def code_change(self, participant: Participant, request: schemas.CodeChangeRequest) -> list[Delivery]:
        if not self._targets_joined_room(participant, request.room_id):
            return []
        self.state.documents.set(participant.room_id, request.code)
        notice = schemas.CodeChangedNotice(
            code=request.code,
            cursor_position=request.cursor_position,
            changed_by=participant.identity,
        )
        return self._broadcast(participant.room_id, participant.identity, schemas.ServerEvent.CODE_CHANGED, notice)

    def cursor_move(self, participant: Participant, request: schemas.CursorMoveRequest) -> list[Delivery]:
        if not self._targets_joined_room(participant, request.room_id):
            return []
        notice = schemas.CursorMovedNotice(cursor_position=request.cursor_position, moved_by=participant.identity)
        return self._broadcast(participant.room_id, participant.identity, schemas.ServerEvent.CURSOR_MOVED, notice)

    def selection_change(
        self, participant: Participant, request: schemas.SelectionChangeRequest
    ) -> list[Delivery]:
        if not self._targets_joined_room(participant, request.room_id):
            return []
        notice = schemas.SelectionChangedNotice(selection=request.selection, changed_by=participant.identity)
        return self._broadcast(
            participant.room_id, participant.identity, schemas.ServerEvent.SELECTION_CHANGED, notice
        )

    def _relay_offer(
        self, event: schemas.ServerEvent, participant: Participant, request: schemas.OfferRequest
    ) -> list[Delivery]:
        relayed = schemas.RelayedOffer(from_=participant.identity, offer=request.offer)
        return [Delivery(request.to, event, relayed.to_wire())]

    def _relay_answer(
        self, event: schemas.ServerEvent, participant: Participant, request: schemas.AnswerRequest
    ) -> list[Delivery]:
        relayed = schemas.RelayedAnswer(from_=participant.identity, ans=request.ans)
        return [Delivery(request.to, event, relayed.to_wire())]

    def _relay_screen(
        self, event: schemas.ServerEvent, participant: Participant, request: schemas.ScreenShareRequest
    ) -> list[Delivery]:
        notice = schemas.ScreenShareNotice(from_=participant.identity)
        return [Delivery(request.to, event, notice.to_wire())]

    def _release(self, participant: Participant) -> list[Delivery]:
        """Remove a participant everywhere and destroy its room once empty."""

        state = self.state
        room_id = participant.room_id
        state.sessions.remove(participant.identity)
        remaining = state.rooms.remove_member(room_id, participant.identity)

        notice = schemas.UserDisconnectedNotice(socket_id=participant.identity, email=participant.label)
        deliveries = self._broadcast(room_id, participant.identity, schemas.ServerEvent.USER_DISCONNECTED, notice)

        if remaining == 0:
            state.rooms.delete_room(room_id)
            state.documents.clear(room_id)
            logger.info("Room %s deleted - no users remaining", room_id)
        return deliveries

    def _broadcast(
        self, room_id: str, sender: str, event: schemas.ServerEvent, payload: schemas.WireModel
    ) -> list[Delivery]:
        """Address ``payload`` to every member of ``room_id`` except ``sender``."""

        body = payload.to_wire()
        return [
            Delivery(member.identity, event, body)
            for member in self.state.rooms.list_members(room_id)
            if member.identity != sender
        ]

    @staticmethod
    def _targets_joined_room(participant: Participant, room_id: str | None) -> bool:
        if room_id is None or room_id == participant.room_id:
            return True
        logger.warning(
            "Dropping event from %s for room %s; joined to %s", participant.identity, room_id, participant.room_id
        )
        return False
