"""
Enumerations used throughout the game.
"""
from enum import Enum

from shared.constants import EMPTY_CELL, BLACK_STONE, WHITE_STONE


class Cell(str, Enum):
    """State of a single board intersection."""
    EMPTY = EMPTY_CELL
    BLACK = BLACK_STONE
    WHITE = WHITE_STONE


class PlayerColor(str, Enum):
    """Stone color assigned to a player for one game."""
    BLACK = "BLACK"
    WHITE = "WHITE"

    @property
    def stone(self) -> Cell:
        """The cell value this color places."""
        return Cell.BLACK if self is PlayerColor.BLACK else Cell.WHITE

    @property
    def opponent(self) -> "PlayerColor":
        return PlayerColor.WHITE if self is PlayerColor.BLACK else PlayerColor.BLACK


class ActionResult(str, Enum):
    """Outcome codes for the inbound session operations."""
    SUCCESS = "SUCCESS"
    NAME_IN_USE = "NAME_IN_USE"
    INVALID_NAME = "INVALID_NAME"
    NOT_YOUR_TURN_OR_NOT_STARTED = "NOT_YOUR_TURN_OR_NOT_STARTED"
    INVALID_POSITION = "INVALID_POSITION"
    CELL_OCCUPIED = "CELL_OCCUPIED"
    GAME_OVER = "GAME_OVER"
    NOT_CONNECTED = "NOT_CONNECTED"


class MessageType(str, Enum):
    """Types of messages between client and server."""
    # Client -> server
    REGISTER = "REGISTER"
    MAKE_MOVE = "MAKE_MOVE"
    REQUEST_REMATCH = "REQUEST_REMATCH"
    DISCONNECT = "DISCONNECT"

    # Server -> client: replies
    ACTION_RESULT = "ACTION_RESULT"

    # Server -> client: game events
    STATUS = "STATUS"
    ROLE = "ROLE"
    CURRENT_TURN = "CURRENT_TURN"
    BOARD = "BOARD"
    WINNER = "WINNER"

    # Errors
    ERROR = "ERROR"
