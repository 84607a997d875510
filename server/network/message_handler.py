"""
Message handler for routing client messages to session operations.

Parses incoming messages, validates their payloads, calls the session
coordinator, and formats the response for the requesting player. Game events
are not produced here: the coordinator delivers them through player sinks.
"""

import logging
from dataclasses import dataclass

from server.session import ActionOutcome, SessionCoordinator
from shared.enums import MessageType
from shared.protocol import (
    ActionResultMessage,
    ErrorMessage,
    Message,
    parse_message,
)


logger = logging.getLogger(__name__)


@dataclass
class HandleResult:
    """Result of handling a message."""
    # Response to send back to the requesting player (None if no response needed)
    response: Message | None = None
    # Whether the connection should be closed once the response is sent
    close_connection: bool = False


class MessageHandler:
    """
    Routes incoming messages from registered players to the coordinator.

    Each handler method returns a HandleResult carrying the reply to the
    requesting player. Registration is not routed here; it is the first
    message on a connection and is handled by the server.
    """

    def __init__(self, coordinator: SessionCoordinator):
        self._coordinator = coordinator

    async def handle_message(
        self,
        player_id: str,
        message: Message | str | bytes | dict
    ) -> HandleResult:
        """
        Handle an incoming message from a player.

        Args:
            player_id: ID of the player sending the message
            message: The message (Message object, JSON text or bytes, or dict)

        Returns:
            HandleResult with the response
        """
        # Binary frames must carry UTF-8 JSON
        if isinstance(message, bytes):
            try:
                message = message.decode("utf-8")
            except UnicodeDecodeError as e:
                logger.error(f"Failed to decode binary frame: {e}")
                return HandleResult(
                    response=ErrorMessage.create(f"Invalid message format: {e}", "PARSE_ERROR")
                )

        # Parse message if needed
        if isinstance(message, str):
            try:
                message = parse_message(message)
            except Exception as e:
                logger.error(f"Failed to parse message: {e}")
                return HandleResult(
                    response=ErrorMessage.create(f"Invalid message format: {e}", "PARSE_ERROR")
                )
        elif isinstance(message, dict):
            try:
                message = Message.from_dict(message)
            except Exception as e:
                logger.error(f"Failed to parse message dict: {e}")
                return HandleResult(
                    response=ErrorMessage.create(f"Invalid message format: {e}", "PARSE_ERROR")
                )

        handler = self._get_handler(message.type)
        if not handler:
            return HandleResult(
                response=ErrorMessage.create(
                    f"Unknown message type: {message.type.value}",
                    "UNKNOWN_MESSAGE_TYPE",
                    message.request_id
                )
            )

        try:
            result = await handler(player_id, message)

            # Preserve request_id in response
            if result.response and message.request_id:
                result.response.request_id = message.request_id

            return result

        except Exception as e:
            logger.exception(f"Error handling message {message.type}: {e}")
            return HandleResult(
                response=ErrorMessage.create(
                    f"Internal error: {e}",
                    "INTERNAL_ERROR",
                    message.request_id
                )
            )

    def _get_handler(self, message_type: MessageType):
        """Get the handler method for a message type."""
        handlers = {
            MessageType.REGISTER: self._handle_register,
            MessageType.MAKE_MOVE: self._handle_make_move,
            MessageType.REQUEST_REMATCH: self._handle_request_rematch,
            MessageType.DISCONNECT: self._handle_disconnect,
        }
        return handlers.get(message_type)

    @staticmethod
    def _outcome_response(outcome: ActionOutcome) -> ActionResultMessage:
        return ActionResultMessage.create(outcome.success, outcome.message, outcome.result)

    # =========================================================================
    # Handlers
    # =========================================================================

    async def _handle_register(self, player_id: str, message: Message) -> HandleResult:
        """REGISTER after registration is a protocol error."""
        return HandleResult(
            response=ErrorMessage.create(f"Already registered as {player_id}", "ALREADY_REGISTERED")
        )

    async def _handle_make_move(self, player_id: str, message: Message) -> HandleResult:
        """Handle MAKE_MOVE request."""
        x = message.data.get("x")
        y = message.data.get("y")

        # bool is an int subclass but never a coordinate
        if not all(isinstance(v, int) and not isinstance(v, bool) for v in (x, y)):
            return HandleResult(
                response=ErrorMessage.create("x and y must be integers", "INVALID_MOVE")
            )

        outcome = await self._coordinator.make_move(player_id, x, y)
        return HandleResult(response=self._outcome_response(outcome))

    async def _handle_request_rematch(self, player_id: str, message: Message) -> HandleResult:
        """Handle REQUEST_REMATCH request."""
        outcome = await self._coordinator.request_rematch(player_id)
        return HandleResult(response=self._outcome_response(outcome))

    async def _handle_disconnect(self, player_id: str, message: Message) -> HandleResult:
        """Handle DISCONNECT request."""
        outcome = await self._coordinator.disconnect(player_id)
        return HandleResult(
            response=self._outcome_response(outcome),
            close_connection=outcome.success,
        )
