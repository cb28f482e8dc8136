"""
Connection Registry - Transport handles and the players behind them.

The registry owns no game logic. It maps an opaque handle (a WebSocket
in production, a recording stub in tests) to a generated connection id,
remembers which player a connection joined as, and tracks liveness.
"""

from __future__ import annotations
from collections import deque
from dataclasses import dataclass, field
from typing import Any
import asyncio
import time
import uuid


@dataclass
class Connection:
    """
    A live client connection.

    `outbox` holds serialized frames in the order they were planned;
    only the holder of `send_lock` drains it.
    """
    connection_id: str
    handle: Any
    player_id: str | None = None
    connected_at: float = field(default_factory=time.time)
    last_seen: float = field(default_factory=time.time)
    outbox: deque[dict[str, Any]] = field(default_factory=deque, repr=False)
    send_lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)


class ConnectionRegistry:
    """In-memory registry of live connections, in connect order."""

    def __init__(self):
        self._connections: dict[str, Connection] = {}

    def __len__(self) -> int:
        return len(self._connections)

    def register(self, handle: Any) -> Connection:
        connection = Connection(connection_id=f"conn_{uuid.uuid4().hex[:12]}", handle=handle)
        self._connections[connection.connection_id] = connection
        return connection

    def unregister(self, connection_id: str) -> Connection | None:
        """Forget a connection. Returns it so callers can see who left."""
        return self._connections.pop(connection_id, None)

    def get(self, connection_id: str) -> Connection | None:
        return self._connections.get(connection_id)

    def bind(self, connection_id: str, player_id: str) -> None:
        self._connections[connection_id].player_id = player_id

    def touch(self, connection_id: str) -> None:
        """Record activity on a connection."""
        connection = self._connections.get(connection_id)
        if connection:
            connection.last_seen = time.time()

    def connections(self) -> list[Connection]:
        return list(self._connections.values())

    def idle_connections(self, max_idle_seconds: float) -> list[Connection]:
        """Connections with no activity for longer than max_idle_seconds."""
        now = time.time()
        return [c for c in self._connections.values() if now - c.last_seen > max_idle_seconds]
