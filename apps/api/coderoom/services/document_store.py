"""Latest shared code per room."""
from __future__ import annotations

from typing import Dict

from ..core.config import DEFAULT_CODE


class SharedDocumentStore:
    """Last-writer-wins storage of each room's text buffer."""

    def __init__(self, placeholder: str = DEFAULT_CODE) -> None:
        self.placeholder = placeholder
        self._documents: Dict[str, str] = {}

    def get(self, room_id: str) -> str:
        return self._documents.get(room_id, self.placeholder)

    def set(self, room_id: str, content: str) -> None:
        self._documents[room_id] = content

    def clear(self, room_id: str) -> None:
        self._documents.pop(room_id, None)

    def has(self, room_id: str) -> bool:
        return room_id in self._documents
