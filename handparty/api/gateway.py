"""
Broadcast Gateway - Delivers wire messages to connections.

Delivery happens in two steps so payloads can be built while the
coordinator lock is held and sent after it is released:

    deliveries = gateway.plan(build)        # under the lock
    await gateway.deliver(deliveries)       # lock released

Ordering: `plan` appends each payload to its connection's outbox, so
frames queue up in the order the coordinator lock produced them.
`deliver` drains an outbox under that connection's send lock, oldest
frame first. Whichever call holds the send lock sends every frame queued
so far, so a slow socket delays later frames but never reorders them.

Different connections are drained concurrently. A failing send is
logged and skipped, and never blocks or fails the others. Closing a
dead connection is the transport's job; it surfaces as a Leave.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Callable, Collection
import asyncio
import logging

from ..session.connections import Connection, ConnectionRegistry
from .schemas import WireModel

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Delivery:
    """One serialized payload queued for one connection."""
    connection: Connection
    payload: dict[str, Any]


class BroadcastGateway:
    """Fan-out of wire messages over the connection registry."""

    def __init__(self, registry: ConnectionRegistry):
        self.registry = registry

    def plan(
        self,
        build: Callable[[Connection], WireModel | None],
        exclude: Collection[str] = (),
    ) -> list[Delivery]:
        """
        Queue one payload per registered connection.

        `build` receives the recipient so it can project a view for that
        viewer; returning None skips the recipient.
        """
        deliveries = []
        for connection in self.registry.connections():
            if connection.connection_id in exclude:
                continue
            message = build(connection)
            if message is not None:
                deliveries.append(self._enqueue(connection, message))
        return deliveries

    def plan_to(self, connection_id: str, message: WireModel) -> list[Delivery]:
        """Queue a payload for a single connection (nothing if it is gone)."""
        connection = self.registry.get(connection_id)
        if connection is None:
            return []
        return [self._enqueue(connection, message)]

    async def deliver(self, deliveries: list[Delivery]) -> int:
        """
        Flush the outboxes of every connection in `deliveries`.

        Returns the number of frames this call sent successfully; frames
        drained by a concurrent call holding the send lock count there.
        """
        connections = {d.connection.connection_id: d.connection for d in deliveries}
        if not connections:
            return 0
        results = await asyncio.gather(*(self._flush(c) for c in connections.values()))
        return sum(results)

    async def send_to(self, connection_id: str, message: WireModel) -> None:
        await self.deliver(self.plan_to(connection_id, message))

    def _enqueue(self, connection: Connection, message: WireModel) -> Delivery:
        delivery = Delivery(connection, message.to_wire())
        connection.outbox.append(delivery.payload)
        return delivery

    async def _flush(self, connection: Connection) -> int:
        sent = 0
        async with connection.send_lock:
            while connection.outbox:
                payload = connection.outbox.popleft()
                if await self._send(connection, payload):
                    sent += 1
        return sent

    async def _send(self, connection: Connection, payload: dict[str, Any]) -> bool:
        try:
            await connection.handle.send_json(payload)
            return True
        except Exception as e:
            logger.warning(
                "Send of %s to %s failed: %s",
                payload.get("type"), connection.connection_id, e,
            )
            return False
