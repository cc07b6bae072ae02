"""Live connection registry and event delivery."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Iterable

import anyio

from ..schemas import events as schemas
from .coordinator import Delivery, RoomCoordinator

SendCallable = Callable[[dict], Awaitable[None]]

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ClientConnection:
    """Connection wrapper for collaboration clients."""

    connection_id: str
    send: SendCallable


class ConnectionHub:
    """Serialize events through the coordinator and send what it returns.

    One event, including every send it triggers, completes before the next
    one is looked at.
    """

    def __init__(self, coordinator: RoomCoordinator | None = None) -> None:
        self.coordinator = coordinator or RoomCoordinator()
        self._connections: Dict[str, ClientConnection] = {}
        self._lock = asyncio.Lock()

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    def room_ids(self) -> list[str]:
        return self.coordinator.state.rooms.room_ids()

    async def connect(self, connection: ClientConnection) -> None:
        """Register a connection and acknowledge its identity."""

        async with self._lock:
            self._connections[connection.connection_id] = connection
            logger.info("Socket connected: %s", connection.connection_id)
            ack = schemas.ConnectionAck(id=connection.connection_id)
            await self._deliver(
                [Delivery(connection.connection_id, schemas.ServerEvent.CONNECTION_ACK, ack.to_wire())]
            )

    async def dispatch(self, sender_id: str, frame: object) -> None:
        """Route one ``{"event": ..., "data": ...}`` frame from a client."""

        if not isinstance(frame, dict) or not isinstance(frame.get("event"), str):
            logger.warning("Dropping malformed frame from %s", sender_id)
            return

        async with self._lock:
            deliveries = self.coordinator.dispatch(sender_id, frame["event"], frame.get("data"))
            await self._deliver(deliveries)

    async def disconnect(self, connection_id: str, reason: str | None = None) -> None:
        """Forget a connection and notify whoever shared its room.

        Runs shielded: the closing connection's task is usually being
        cancelled, and cleanup must still finish.
        """

        with anyio.CancelScope(shield=True):
            async with self._lock:
                self._connections.pop(connection_id, None)
                deliveries = self.coordinator.disconnect(connection_id, reason)
                await self._deliver(deliveries)

    async def _deliver(self, deliveries: Iterable[Delivery]) -> None:
        sends = []
        for delivery in deliveries:
            connection = self._connections.get(delivery.target)
            if connection is None:
                logger.debug("No live connection %s for %s", delivery.target, delivery.event.value)
                continue
            sends.append(connection.send(delivery.as_frame()))

        if not sends:
            return

        results = await asyncio.gather(*sends, return_exceptions=True)
        for result in results:
            if isinstance(result, BaseException):
                logger.warning("Failed to deliver event: %r", result)


hub = ConnectionHub()
