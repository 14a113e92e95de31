"""
Broadcast hub for Server-Sent Events.

Tracks every open /api/events connection and fans events out to them.

Each connection owns:
  - an outbound FIFO queue (collections.deque) of Event objects
  - the response stream it writes SSE frames to
  - a heartbeat task that pings it every ``heartbeat_interval`` seconds

All hub methods run on the asyncio event loop and never await, so the
registry needs no lock: enqueue + flush for one connection can't interleave
with anything else.

Delivery is best-effort and at-most-once. A connection whose stream fails on
write is dropped; the others still get the event.
"""

import asyncio
import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Optional, Protocol

from models.event import CONNECTED, HEARTBEAT, Event, now_ms

logger = logging.getLogger(__name__)


class StreamClosedError(Exception):
    """Raised when writing to a stream whose client has gone away."""


class Stream(Protocol):
    def write(self, frame: str) -> None: ...

    def close(self) -> None: ...


class EventStream:
    """
    Outbound side of one SSE response.

    The hub writes frames into it; the HTTP handler iterates it to produce
    the response body. Iteration ends once the stream is closed.
    """

    def __init__(self):
        self._frames: asyncio.Queue[Optional[str]] = asyncio.Queue()
        self.closed = False

    def write(self, frame: str) -> None:
        if self.closed:
            raise StreamClosedError("stream is closed")
        self._frames.put_nowait(frame)

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self._frames.put_nowait(None)

    async def __aiter__(self) -> AsyncIterator[str]:
        while True:
            frame = await self._frames.get()
            if frame is None:
                return
            yield frame


@dataclass
class Connection:
    id: str
    stream: Stream
    queue: deque = field(default_factory=deque)
    heartbeat: Optional[asyncio.Task] = None


class BroadcastHub:
    def __init__(self, heartbeat_interval: float = 30.0):
        if heartbeat_interval <= 0:
            raise ValueError(f"heartbeat_interval must be positive, got {heartbeat_interval!r}")
        self.heartbeat_interval = heartbeat_interval
        self._connections: dict[str, Connection] = {}
        self._next_id = 1

    def __contains__(self, connection_id: str) -> bool:
        return connection_id in self._connections

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    # ---------- Lifecycle ----------

    def register(self, stream: Stream) -> str:
        """
        Add a connection and greet it with a ``connected`` event.
        Must be called from a running event loop (starts the heartbeat task).
        """
        connection_id = f"client-{self._next_id}"
        self._next_id += 1

        connection = Connection(id=connection_id, stream=stream)
        self._connections[connection_id] = connection
        connection.heartbeat = asyncio.get_running_loop().create_task(
            self._heartbeat(connection_id),
            name=f"heartbeat-{connection_id}",
        )

        logger.info("Client %s connected", connection_id)
        self._send(connection, Event(type=CONNECTED, data={"clientId": connection_id}))
        return connection_id

    def unregister(self, connection_id: str) -> None:
        """Stop heartbeats, forget the connection and end its stream. No-op if unknown."""
        connection = self._connections.pop(connection_id, None)
        if connection is None:
            return

        if connection.heartbeat is not None:
            connection.heartbeat.cancel()
        connection.queue.clear()
        connection.stream.close()
        logger.info("Client %s disconnected", connection_id)

    def shutdown(self) -> None:
        """End every open stream and empty the registry."""
        for connection_id in list(self._connections):
            self.unregister(connection_id)

    # ---------- Delivery ----------

    def broadcast(self, event_type: str, data: Any) -> int:
        """
        Send one event to every registered connection.
        Returns the number of connections it was delivered to.
        """
        event = Event(type=event_type, data=data)
        delivered = 0
        for connection in list(self._connections.values()):
            if self._send(connection, event):
                delivered += 1
        return delivered

    def _send(self, connection: Connection, event: Event) -> bool:
        connection.queue.append(event)
        try:
            self._flush(connection)
        except Exception as e:
            logger.warning("Error sending %s to client %s: %s", event.type, connection.id, e)
            self.unregister(connection.id)
            return False
        return True

    def _flush(self, connection: Connection) -> None:
        # Drain completely, oldest first.
        while connection.queue:
            event = connection.queue.popleft()
            connection.stream.write(event.to_sse())

    async def _heartbeat(self, connection_id: str) -> None:
        while True:
            await asyncio.sleep(self.heartbeat_interval)
            connection = self._connections.get(connection_id)
            if connection is None:
                return
            self._send(connection, Event(type=HEARTBEAT, data={"timestamp": now_ms()}))
