"""In-memory registry of joined connections."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional


@dataclass(slots=True)
class Participant:
    """One connected user bound to exactly one room."""

    identity: str
    label: str
    room_id: str


class SessionDirectory:
    """Map live connection identities to their participant record."""

    def __init__(self) -> None:
        self._sessions: Dict[str, Participant] = {}

    def register(self, identity: str, label: str, room_id: str) -> Participant:
        participant = Participant(identity=identity, label=label, room_id=room_id)
        self._sessions[identity] = participant
        return participant

    def lookup(self, identity: str) -> Optional[Participant]:
        return self._sessions.get(identity)

    def remove(self, identity: str) -> None:
        self._sessions.pop(identity, None)

    def __contains__(self, identity: object) -> bool:
        return identity in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
