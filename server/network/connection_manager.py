"""
Connection manager for WebSocket clients.

Tracks open connections and the player registered on each, and owns the
per-connection event sink the session coordinator delivers to.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

from websockets.asyncio.server import ServerConnection

from shared.protocol import GameEvent, Message


logger = logging.getLogger(__name__)


class WebSocketSink:
    """
    Ordered event sink backed by one websocket.

    ``deliver`` only queues; a writer task sends queued events in order. If a
    send fails the sink is marked broken, the failure is logged, and further
    deliveries raise so the coordinator can log and skip this player.
    """

    def __init__(self, websocket: ServerConnection, label: str = "client"):
        self._websocket = websocket
        self.label = label
        self._queue: asyncio.Queue[Message | None] = asyncio.Queue()
        self._closed = False
        self._broken = False
        self._writer = asyncio.create_task(self._write_loop())

    @property
    def is_closed(self) -> bool:
        return self._closed

    def deliver(self, event: GameEvent) -> None:
        if self._broken:
            raise ConnectionError(f"Connection to {self.label} is broken")
        if self._closed:
            raise ConnectionError(f"Sink for {self.label} is closed")
        self._queue.put_nowait(event.to_message())

    def close(self) -> None:
        """Stop accepting events; queued events are still sent."""
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(None)

    async def wait_closed(self, timeout: float | None = None) -> None:
        """Wait until every queued event has been sent or the writer gave up."""
        try:
            await asyncio.wait_for(asyncio.shield(self._writer), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Timed out flushing events to {self.label}")
            self._writer.cancel()

    async def _write_loop(self) -> None:
        while True:
            message = await self._queue.get()
            if message is None:
                return
            try:
                await self._websocket.send(message.to_json())
            except Exception as e:
                logger.error(f"Failed to send {message.type.value} to {self.label}: {e}")
                self._broken = True
                self._closed = True
                return


@dataclass
class PlayerConnection:
    """Tracks one open websocket."""
    websocket: ServerConnection
    sink: WebSocketSink
    player_id: str | None = None

    @property
    def is_registered(self) -> bool:
        return self.player_id is not None


class ConnectionManager:
    """
    Manages WebSocket connections and their player names.

    Provides methods for:
    - Tracking open connections and their event sinks
    - Binding a connection to the player registered on it
    - Sending messages to one connection or to everyone
    """

    def __init__(self):
        # websocket -> PlayerConnection
        self._connections: dict[ServerConnection, PlayerConnection] = {}

        self._lock = asyncio.Lock()

    # =========================================================================
    # Connection Lifecycle
    # =========================================================================

    async def connect(self, websocket: ServerConnection) -> PlayerConnection:
        """Track a newly opened websocket and create its sink."""
        async with self._lock:
            connection = PlayerConnection(
                websocket=websocket,
                sink=WebSocketSink(websocket),
            )
            self._connections[websocket] = connection
            logger.debug("Connection opened")
            return connection

    async def bind_player(self, websocket: ServerConnection, player_id: str) -> bool:
        """
        Record the player registered on a connection.

        Returns:
            True if successful, False if the connection is unknown
        """
        async with self._lock:
            connection = self._connections.get(websocket)
            if not connection:
                return False
            connection.player_id = player_id
            connection.sink.label = player_id
            return True

    async def disconnect(self, websocket: ServerConnection) -> PlayerConnection | None:
        """
        Stop tracking a websocket.

        Returns:
            The PlayerConnection if found, None otherwise
        """
        async with self._lock:
            connection = self._connections.pop(websocket, None)
            if connection and connection.player_id:
                logger.debug(f"Connection for {connection.player_id} closed")
            return connection

    def get_connection(self, websocket: ServerConnection) -> PlayerConnection | None:
        """Get connection info for a websocket."""
        return self._connections.get(websocket)

    # =========================================================================
    # Messaging
    # =========================================================================

    async def send_to_connection(self, websocket: ServerConnection, message: Message) -> bool:
        """
        Send a message directly to a websocket, bypassing its event queue.

        Returns:
            True if sent successfully, False on error
        """
        try:
            await websocket.send(message.to_json())
            return True
        except Exception as e:
            logger.error(f"Failed to send message: {e}")
            return False

    async def broadcast_to_all(self, message: Message) -> int:
        """
        Send a message to every open connection.

        Returns:
            Number of connections the message was sent to
        """
        sent_count = 0
        for websocket in list(self._connections.keys()):
            if await self.send_to_connection(websocket, message):
                sent_count += 1
        return sent_count

    # =========================================================================
    # Statistics
    # =========================================================================

    def get_stats(self) -> dict[str, Any]:
        """Get connection statistics."""
        return {
            "total_connections": len(self._connections),
            "registered_players": sum(1 for c in self._connections.values() if c.is_registered),
        }
