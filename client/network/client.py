"""
WebSocket client for connecting to the Connect6 server.

Handles registration, request/response matching and game events.
Game events are handed to an optional callback and kept on a queue.
"""

import asyncio
import json
import logging
import uuid
from enum import Enum, auto
from typing import Optional, Callable

import websockets
from websockets.asyncio.client import ClientConnection, connect

from client.config import settings
from shared.constants import MSG_CONNECTED_AS, OPPONENT_DISCONNECTED
from shared.enums import Cell, MessageType, PlayerColor
from shared.protocol import (
    BoardEvent,
    CurrentTurnEvent,
    DisconnectRequest,
    EVENT_MESSAGE_TYPES,
    GameEvent,
    MakeMoveRequest,
    Message,
    RegisterRequest,
    RematchRequest,
    RoleEvent,
    StatusEvent,
    WinnerEvent,
    event_from_message,
)


logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    """Connection state."""
    DISCONNECTED = auto()
    CONNECTING = auto()
    CONNECTED = auto()
    FAILED = auto()


class Connect6Client:
    """
    WebSocket client for Connect6 server communication.

    Callbacks:
    - on_event: a game event arrived (after local state was updated)
    - on_error: an error happened
    - on_state: connection state changed
    """

    def __init__(
        self,
        url: Optional[str] = None,
        on_event: Optional[Callable[[GameEvent], None]] = None,
        on_error: Optional[Callable[[str], None]] = None,
        on_state: Optional[Callable[[ConnectionState], None]] = None,
    ):
        self.url = url or settings.server_url
        self._on_event = on_event
        self._on_error = on_error
        self._on_state = on_state

        self._websocket: Optional[ClientConnection] = None
        self._state = ConnectionState.DISCONNECTED
        self._player_id: Optional[str] = None
        self._receive_task: Optional[asyncio.Task] = None

        # Pending requests waiting for responses
        self._pending_requests: dict[str, asyncio.Future] = {}

        # Every game event received, in order
        self.events: asyncio.Queue[GameEvent] = asyncio.Queue()

        # Game view built from events
        self.role: Optional[PlayerColor] = None
        self.current_turn: Optional[str] = None
        self.board: Optional[tuple[tuple[Cell, ...], ...]] = None
        self.winner: Optional[str] = None
        self.game_active = False
        self.last_status: Optional[str] = None

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def player_id(self) -> Optional[str]:
        return self._player_id

    @property
    def is_connected(self) -> bool:
        return self._state == ConnectionState.CONNECTED

    @property
    def is_my_turn(self) -> bool:
        return self.game_active and self.current_turn == self._player_id

    def _set_state(self, state: ConnectionState) -> None:
        """Update connection state and notify."""
        if self._state != state:
            self._state = state
            if self._on_state:
                self._on_state(state)

    def _error(self, message: str) -> None:
        logger.warning(message)
        if self._on_error:
            self._on_error(message)

    # =========================================================================
    # Connection
    # =========================================================================

    async def connect(self, player_id: str) -> bool:
        """
        Connect to the server and register under a player name.

        Returns:
            True if the server accepted the name
        """
        if self._state in (ConnectionState.CONNECTED, ConnectionState.CONNECTING):
            return self._state == ConnectionState.CONNECTED

        self._player_id = player_id
        self._set_state(ConnectionState.CONNECTING)

        try:
            self._websocket = await connect(
                self.url,
                ping_interval=30,
                ping_timeout=10,
            )

            await self._websocket.send(RegisterRequest.create(player_id).to_json())

            # The first reply is a status event telling whether the name was accepted
            raw = await asyncio.wait_for(self._websocket.recv(), timeout=settings.request_timeout)
            message = Message.from_json(raw)

            if message.type == MessageType.STATUS:
                event = event_from_message(message)
                self._dispatch_event(event)
                if event.text == MSG_CONNECTED_AS.format(player_id=player_id):
                    self._set_state(ConnectionState.CONNECTED)
                    self._receive_task = asyncio.create_task(self._receive_loop())
                    logger.info(f"Connected as {player_id}")
                    return True
                self._error(f"Registration refused: {event.text}")
            elif message.type == MessageType.ERROR:
                self._error(message.data.get("message", "Connection error"))
            else:
                self._error(f"Unexpected reply to REGISTER: {message.type.value}")

        except asyncio.TimeoutError:
            self._error("Connection timeout")
        except Exception as e:
            logger.exception(f"Connection failed: {e}")
            self._error(f"Connection failed: {e}")

        await self._close_socket()
        self._set_state(ConnectionState.FAILED)
        return False

    async def disconnect(self) -> bool:
        """
        Leave the session and close the connection.

        Returns:
            True if the server acknowledged the disconnect
        """
        acknowledged = False
        if self.is_connected:
            response = await self.send_and_wait(DisconnectRequest.create())
            acknowledged = bool(response and response.get("data", {}).get("success"))

        if self._receive_task:
            self._receive_task.cancel()
            try:
                await self._receive_task
            except asyncio.CancelledError:
                pass
            self._receive_task = None

        await self._close_socket()
        self.game_active = False
        self._set_state(ConnectionState.DISCONNECTED)
        logger.info("Disconnected from server")
        return acknowledged

    async def _close_socket(self) -> None:
        if self._websocket:
            await self._websocket.close()
            self._websocket = None

    # =========================================================================
    # Receiving
    # =========================================================================

    async def _receive_loop(self) -> None:
        """Receive messages from server."""
        try:
            async for raw_message in self._websocket:
                try:
                    self._handle_message(json.loads(raw_message))
                except (json.JSONDecodeError, KeyError, ValueError) as e:
                    logger.error(f"Failed to parse message: {e}")
                except Exception as e:
                    logger.exception(f"Error handling message: {e}")

        except websockets.ConnectionClosed:
            logger.info("Connection closed by server")
        finally:
            # Unblock requests still waiting for an answer
            for future in self._pending_requests.values():
                if not future.done():
                    future.set_result(None)
            self._pending_requests.clear()
            self.game_active = False
            self._set_state(ConnectionState.DISCONNECTED)

    def _handle_message(self, data: dict) -> None:
        """Handle an incoming message."""
        request_id = data.get("request_id")

        # Check if this is a response to a pending request
        if request_id and request_id in self._pending_requests:
            future = self._pending_requests.pop(request_id)
            if not future.done():
                future.set_result(data)
            return

        message = Message.from_dict(data)
        if message.type in EVENT_MESSAGE_TYPES:
            self._dispatch_event(event_from_message(message))
        elif message.type == MessageType.ERROR:
            self._error(message.data.get("message", "Unknown error"))
        else:
            logger.debug(f"Ignoring {message.type.value}")

    def _dispatch_event(self, event: GameEvent) -> None:
        """Update the local game view, then pass the event on."""
        if isinstance(event, StatusEvent):
            self.last_status = event.text
        elif isinstance(event, RoleEvent):
            self.role = event.color
            self.winner = None
        elif isinstance(event, CurrentTurnEvent):
            self.current_turn = event.player_id
            self.game_active = True
        elif isinstance(event, BoardEvent):
            self.board = event.rows
            self.game_active = True
        elif isinstance(event, WinnerEvent):
            self.winner = event.winner
            self.game_active = False
            self.current_turn = None

        self.events.put_nowait(event)
        if self._on_event:
            self._on_event(event)

    # =========================================================================
    # Requests
    # =========================================================================

    async def send(self, message: Message) -> bool:
        """Send a message to the server."""
        if not self._websocket or self._state != ConnectionState.CONNECTED:
            self._error("Not connected to server")
            return False

        try:
            await self._websocket.send(message.to_json())
            return True
        except Exception as e:
            logger.exception(f"Failed to send message: {e}")
            self._error(f"Failed to send: {e}")
            return False

    async def send_and_wait(
        self,
        message: Message,
        timeout: Optional[float] = None
    ) -> Optional[dict]:
        """
        Send a message and wait for the response.

        Returns:
            Response data or None on timeout/error
        """
        if not message.request_id:
            message.request_id = str(uuid.uuid4())
        request_id = message.request_id

        future = asyncio.get_running_loop().create_future()
        self._pending_requests[request_id] = future

        try:
            if not await self.send(message):
                return None
            return await asyncio.wait_for(future, timeout=timeout or settings.request_timeout)
        except asyncio.TimeoutError:
            self._error("Request timed out")
            return None
        finally:
            self._pending_requests.pop(request_id, None)

    async def make_move(self, x: int, y: int) -> Optional[dict]:
        """Place a stone at column x, row y."""
        return await self.send_and_wait(MakeMoveRequest.create(x, y))

    async def request_rematch(self) -> Optional[dict]:
        """Ask for another game."""
        return await self.send_and_wait(RematchRequest.create())

    def won_last_game(self) -> bool:
        """Whether the last finished game went to this player."""
        if self.winner == OPPONENT_DISCONNECTED:
            return True
        return self.role is not None and self.winner == self.role.value
