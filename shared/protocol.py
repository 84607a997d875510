"""
Message protocol for client-server communication.

All messages are JSON objects with a "type" field and optional "data" field.
Game events (status, role, turn, board, winner) are modelled as a closed set
of immutable event classes, each of which maps onto exactly one message type.
"""

from dataclasses import dataclass, field
from typing import Any, Union
import json

from shared.constants import BOARD_SIZE
from shared.enums import ActionResult, Cell, MessageType, PlayerColor


@dataclass
class Message:
    """Base message structure for all client-server communication."""
    type: MessageType
    data: dict[str, Any] = field(default_factory=dict)
    request_id: str | None = None  # Optional, for matching requests to responses

    def to_json(self) -> str:
        """Serialize message to JSON string."""
        return json.dumps(self.to_dict())

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "type": self.type.value,
            "data": self.data,
            "request_id": self.request_id,
        }

    @classmethod
    def from_json(cls, json_str: str) -> "Message":
        """Deserialize message from JSON string."""
        raw = json.loads(json_str)
        if not isinstance(raw, dict):
            raise ValueError("Message must be a JSON object")
        return cls.from_dict(raw)

    @classmethod
    def from_dict(cls, raw: dict) -> "Message":
        """Create message from dictionary."""
        data = raw.get("data") or {}
        if not isinstance(data, dict):
            raise ValueError("Message data must be a JSON object")
        return cls(
            type=MessageType(raw["type"]),
            data=data,
            request_id=raw.get("request_id"),
        )


@dataclass
class ErrorMessage(Message):
    """Error response message."""
    type: MessageType = MessageType.ERROR

    @classmethod
    def create(cls, message: str, code: str = "ERROR", request_id: str | None = None) -> "ErrorMessage":
        """Create an error message."""
        return cls(
            data={"message": message, "code": code},
            request_id=request_id,
        )


# =============================================================================
# Requests (Client -> Server)
# =============================================================================

@dataclass
class RegisterRequest(Message):
    """First message on every connection; claims a player name."""
    type: MessageType = MessageType.REGISTER

    @classmethod
    def create(cls, player_id: str, request_id: str | None = None) -> "RegisterRequest":
        return cls(data={"player_id": player_id}, request_id=request_id)


@dataclass
class MakeMoveRequest(Message):
    """Place one stone at column x, row y."""
    type: MessageType = MessageType.MAKE_MOVE

    @classmethod
    def create(cls, x: int, y: int, request_id: str | None = None) -> "MakeMoveRequest":
        return cls(data={"x": x, "y": y}, request_id=request_id)


@dataclass
class RematchRequest(Message):
    """Ask to play again once the current game has finished."""
    type: MessageType = MessageType.REQUEST_REMATCH

    @classmethod
    def create(cls, request_id: str | None = None) -> "RematchRequest":
        return cls(request_id=request_id)


@dataclass
class DisconnectRequest(Message):
    """Leave the session."""
    type: MessageType = MessageType.DISCONNECT

    @classmethod
    def create(cls, request_id: str | None = None) -> "DisconnectRequest":
        return cls(request_id=request_id)


# =============================================================================
# Replies (Server -> Client)
# =============================================================================

@dataclass
class ActionResultMessage(Message):
    """Synchronous answer to a MAKE_MOVE, REQUEST_REMATCH or DISCONNECT."""
    type: MessageType = MessageType.ACTION_RESULT

    @classmethod
    def create(
        cls,
        success: bool,
        message: str,
        code: ActionResult,
        request_id: str | None = None
    ) -> "ActionResultMessage":
        return cls(
            data={"success": success, "message": message, "code": code.value},
            request_id=request_id,
        )


# =============================================================================
# Game Events (Server -> Client)
# =============================================================================

@dataclass(frozen=True)
class StatusEvent:
    """Human-readable informational message."""
    text: str

    def to_message(self) -> Message:
        return Message(type=MessageType.STATUS, data={"text": self.text})


@dataclass(frozen=True)
class RoleEvent:
    """Stone color assigned to the receiving player for the current game."""
    color: PlayerColor

    def to_message(self) -> Message:
        return Message(type=MessageType.ROLE, data={"color": self.color.value})


@dataclass(frozen=True)
class CurrentTurnEvent:
    """Announces whose turn it is."""
    player_id: str

    def to_message(self) -> Message:
        return Message(type=MessageType.CURRENT_TURN, data={"player_id": self.player_id})


@dataclass(frozen=True)
class BoardEvent:
    """Full board snapshot, one tuple of cells per row."""
    rows: tuple[tuple[Cell, ...], ...]

    def to_message(self) -> Message:
        return Message(
            type=MessageType.BOARD,
            data={"rows": [[cell.value for cell in row] for row in self.rows]},
        )


@dataclass(frozen=True)
class WinnerEvent:
    """Announces the end of a game: a color name or OPPONENT_DISCONNECTED."""
    winner: str

    def to_message(self) -> Message:
        return Message(type=MessageType.WINNER, data={"winner": self.winner})


GameEvent = Union[StatusEvent, RoleEvent, CurrentTurnEvent, BoardEvent, WinnerEvent]


EVENT_MESSAGE_TYPES = {
    MessageType.STATUS,
    MessageType.ROLE,
    MessageType.CURRENT_TURN,
    MessageType.BOARD,
    MessageType.WINNER,
}


def event_from_message(message: Message) -> GameEvent:
    """
    Rebuild a game event from its wire message.

    Raises:
        ValueError: If the message is not an event or its payload is malformed
    """
    data = message.data
    if message.type == MessageType.STATUS:
        return StatusEvent(text=str(data["text"]))
    if message.type == MessageType.ROLE:
        return RoleEvent(color=PlayerColor(data["color"]))
    if message.type == MessageType.CURRENT_TURN:
        return CurrentTurnEvent(player_id=str(data["player_id"]))
    if message.type == MessageType.BOARD:
        rows = tuple(tuple(Cell(cell) for cell in row) for row in data["rows"])
        if len(rows) != BOARD_SIZE or any(len(row) != BOARD_SIZE for row in rows):
            raise ValueError(f"Board must be {BOARD_SIZE}x{BOARD_SIZE}")
        return BoardEvent(rows=rows)
    if message.type == MessageType.WINNER:
        return WinnerEvent(winner=str(data["winner"]))
    raise ValueError(f"Not an event message: {message.type.value}")


def parse_message(json_str: str) -> Message:
    """
    Parse a JSON string into a Message.

    The message handler uses the type field to determine how to process it.
    """
    return Message.from_json(json_str)
