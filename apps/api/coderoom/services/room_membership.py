"""Room membership tables."""
from __future__ import annotations

from typing import Dict

from .session_directory import Participant


class RoomMembership:
    """Track which participants are in which room.

    Members are kept in insertion order; that order is what joiners see in
    their member snapshot.
    """

    def __init__(self) -> None:
        self._rooms: Dict[str, Dict[str, Participant]] = {}

    def ensure_room(self, room_id: str) -> bool:
        """Create an empty room if needed and report whether it was created."""

        if room_id in self._rooms:
            return False
        self._rooms[room_id] = {}
        return True

    def add_member(self, room_id: str, participant: Participant) -> None:
        self._rooms.setdefault(room_id, {})[participant.identity] = participant

    def remove_member(self, room_id: str, identity: str) -> int:
        """Drop a member and return how many remain in the room."""

        members = self._rooms.get(room_id)
        if members is None:
            return 0
        members.pop(identity, None)
        return len(members)

    def list_members(self, room_id: str) -> list[Participant]:
        return list(self._rooms.get(room_id, {}).values())

    def room_exists(self, room_id: str) -> bool:
        return room_id in self._rooms

    def delete_room(self, room_id: str) -> None:
        self._rooms.pop(room_id, None)

    def room_ids(self) -> list[str]:
        return list(self._rooms)
