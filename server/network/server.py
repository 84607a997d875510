"""
WebSocket server for Connect6.

Main entry point that ties together connection management, the session
coordinator, and message handling.
"""

import asyncio
import json
import logging
import signal
from typing import Any

import websockets
from websockets.asyncio.server import Server, ServerConnection, serve

from server.config import settings
from server.network.connection_manager import ConnectionManager
from server.network.message_handler import MessageHandler
from server.session import SessionCoordinator
from shared.enums import MessageType
from shared.protocol import ErrorMessage, Message, StatusEvent


logger = logging.getLogger(__name__)


class Connect6Server:
    """
    WebSocket server hosting one Connect6 session.

    Handles client connections, registers players with the coordinator,
    routes their messages, and reports dropped connections as disconnects.
    """

    def __init__(
        self,
        host: str = None,
        port: int = None,
        coordinator: SessionCoordinator | None = None
    ):
        self.host = host or settings.HOST
        self.port = settings.PORT if port is None else port

        self._coordinator = coordinator or SessionCoordinator()
        self._connections = ConnectionManager()
        self._handler = MessageHandler(self._coordinator)

        # Server state
        self._server: Server | None = None
        self._running = False
        self._shutdown_event = asyncio.Event()
        self._shutdown_task: asyncio.Task | None = None

    @property
    def coordinator(self) -> SessionCoordinator:
        return self._coordinator

    async def listen(self) -> None:
        """Bind the listening socket. With port 0 the chosen port is stored on ``self.port``."""
        self._running = True
        self._shutdown_event.clear()

        self._server = await serve(
            self._handle_client,
            self.host,
            self.port,
            ping_interval=settings.PING_INTERVAL,
            ping_timeout=settings.PING_TIMEOUT,
        )

        if self.port == 0:
            self.port = self._server.sockets[0].getsockname()[1]

        logger.info(f"Connect6 server started on ws://{self.host}:{self.port}")

    async def start(self) -> None:
        """Start the WebSocket server and run until stopped."""
        await self.listen()

        # Wait for shutdown signal
        await self._shutdown_event.wait()

    async def stop(self) -> None:
        """Stop the server gracefully."""
        logger.info("Shutting down server...")
        self._running = False

        await self._connections.broadcast_to_all(
            StatusEvent("Server shutting down").to_message()
        )

        if self._server:
            self._server.close()
            await self._server.wait_closed()

        self._shutdown_event.set()
        logger.info("Server stopped")

    def request_shutdown(self) -> None:
        """Request server shutdown (can be called from signal handler)."""
        if self._shutdown_task is None or self._shutdown_task.done():
            self._shutdown_task = asyncio.create_task(self.stop())

    async def _handle_client(self, websocket: ServerConnection) -> None:
        """
        Handle a client connection.

        The first message must be a REGISTER message with a player_id.
        After that, messages are routed through the message handler.
        """
        await self._connections.connect(websocket)
        player_id = None
        left = False

        try:
            player_id = await self._handle_register(websocket)

            if not player_id:
                return

            # Handle messages until disconnect
            async for raw_message in websocket:
                if not self._running:
                    break

                if await self._handle_message(websocket, player_id, raw_message):
                    left = True
                    break

        except websockets.ConnectionClosed:
            logger.debug(f"Connection closed for player {player_id}")
        except Exception as e:
            logger.exception(f"Error handling client {player_id}: {e}")
        finally:
            await self._handle_disconnect(websocket, None if left else player_id)

    async def _handle_register(self, websocket: ServerConnection) -> str | None:
        """
        Handle the registration handshake.

        Expects a REGISTER message with player_id.
        Returns player_id if the coordinator accepted it, None otherwise.
        """
        connection = self._connections.get_connection(websocket)

        try:
            raw = await asyncio.wait_for(websocket.recv(), timeout=settings.REGISTER_TIMEOUT)
            message = Message.from_json(raw)
        except asyncio.TimeoutError:
            await self._send_error(websocket, "Registration timeout", "TIMEOUT")
            return None
        except (json.JSONDecodeError, KeyError, ValueError) as e:
            await self._send_error(websocket, f"Invalid message format: {e}", "PARSE_ERROR")
            return None

        if message.type != MessageType.REGISTER:
            await self._send_error(
                websocket,
                "First message must be REGISTER",
                "REGISTER_REQUIRED"
            )
            return None

        player_id = message.data.get("player_id")
        if not isinstance(player_id, str) or not player_id.strip():
            await self._send_error(
                websocket,
                "player_id is required",
                "MISSING_PLAYER_ID"
            )
            return None

        outcome = await self._coordinator.register(player_id, connection.sink)

        if not outcome.success:
            logger.info(f"Registration of {player_id} refused: {outcome.message}")
            return None

        await self._connections.bind_player(websocket, player_id)
        return player_id

    async def _handle_message(
        self,
        websocket: ServerConnection,
        player_id: str,
        raw_message: str
    ) -> bool:
        """
        Handle an incoming message from a registered player.

        Returns:
            True if the connection should be closed
        """
        try:
            result = await self._handler.handle_message(player_id, raw_message)

            if result.response:
                await self._connections.send_to_connection(websocket, result.response)

            return result.close_connection

        except Exception as e:
            logger.exception(f"Error handling message from {player_id}: {e}")
            await self._send_error(websocket, f"Internal error: {e}", "INTERNAL_ERROR")
            return False

    async def _handle_disconnect(self, websocket: ServerConnection, player_id: str | None) -> None:
        """
        Release a connection.

        player_id is set only for a registered player that has not already
        sent DISCONNECT; dropping the socket counts as a disconnect.
        """
        connection = await self._connections.disconnect(websocket)

        if player_id and self._coordinator.is_registered(player_id):
            await self._coordinator.disconnect(player_id)

        if connection:
            connection.sink.close()
            await connection.sink.wait_closed(timeout=settings.FLUSH_TIMEOUT)

        await websocket.close()

    async def _send_error(
        self,
        websocket: ServerConnection,
        message: str,
        code: str
    ) -> None:
        """Send an error message to a websocket."""
        error = ErrorMessage.create(message, code)
        await self._connections.send_to_connection(websocket, error)

    def get_stats(self) -> dict[str, Any]:
        """Get server statistics."""
        return {
            "running": self._running,
            "connections": self._connections.get_stats(),
            "session": self._coordinator.get_stats(),
        }


async def run_server(host: str = None, port: int = None) -> None:
    """
    Run the Connect6 server.

    Sets up signal handlers for graceful shutdown.
    """
    server = Connect6Server(host, port)

    # Set up signal handlers
    loop = asyncio.get_running_loop()

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, server.request_shutdown)

    try:
        await server.start()
    finally:
        # Clean up signal handlers
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.remove_signal_handler(sig)


def main():
    """Entry point for running the server."""
    # Configure logging
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    print(f"Starting Connect6 server on ws://{settings.HOST}:{settings.PORT}")
    print("Press Ctrl+C to stop")

    try:
        asyncio.run(run_server())
    except KeyboardInterrupt:
        print("\nServer stopped")


if __name__ == "__main__":
    main()
