"""
Rule enforcement for Connect6: stone placement, turn quotas and win detection.
"""
import threading
from enum import Enum, auto

from shared.constants import (
    DIRECTIONS, FIRST_TURN_STONES, NORMAL_TURN_STONES,
    OPPONENT_DISCONNECTED, WIN_COUNT
)
from shared.enums import Cell, PlayerColor

from .board import Board


class PlaceResult(Enum):
    """Result of attempting to place a stone."""
    OK = auto()
    INVALID_POSITION = auto()
    CELL_OCCUPIED = auto()
    GAME_OVER = auto()


class RuleEngine:
    """
    Owns one board and the turn bookkeeping of a single game.

    Black always moves first. The first turn of a game is one stone, every
    later turn is two. The engine never switches turns on its own: callers
    check ``should_switch_player()`` after each placement and then call
    ``switch_player()``.

    Every public method takes the engine lock, so the engine can be read from
    other threads while a coordinator drives it.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._board = Board()
        self.reset()

    def reset(self) -> None:
        """Start over with an empty board and Black to move."""
        with self._lock:
            self._board.reset()
            self._current_player = PlayerColor.BLACK
            self._game_over = False
            self._winner: PlayerColor | str | None = None
            self._stones_placed_this_turn = 0
            self._is_first_turn = True

    # =========================================================================
    # Moves
    # =========================================================================

    def place_stone(self, x: int, y: int) -> PlaceResult:
        """
        Place the current player's stone at column x, row y.

        Returns:
            PlaceResult.OK on success, otherwise the reason nothing changed
        """
        with self._lock:
            if self._game_over:
                return PlaceResult.GAME_OVER
            if not self._board.in_bounds(x, y):
                return PlaceResult.INVALID_POSITION
            if not self._board.is_empty(x, y):
                return PlaceResult.CELL_OCCUPIED

            self._board.set(x, y, self._current_player.stone)
            self._stones_placed_this_turn += 1

            if self._check_win(x, y):
                self._game_over = True
                self._winner = self._current_player

            return PlaceResult.OK

    def should_switch_player(self) -> bool:
        """True once the current turn's stone quota has been placed."""
        with self._lock:
            return self._stones_placed_this_turn >= self._turn_quota()

    def switch_player(self) -> None:
        """Hand the turn to the other color. Does nothing once the game is over."""
        with self._lock:
            if self._game_over:
                return
            self._current_player = self._current_player.opponent
            self._stones_placed_this_turn = 0
            self._is_first_turn = False

    def record_forfeit(self) -> None:
        """End the game because a player left; the winner becomes the disconnect sentinel."""
        with self._lock:
            if self._game_over:
                return
            self._game_over = True
            self._winner = OPPONENT_DISCONNECTED

    def _turn_quota(self) -> int:
        return FIRST_TURN_STONES if self._is_first_turn else NORMAL_TURN_STONES

    # =========================================================================
    # Win detection
    # =========================================================================

    def _check_win(self, x: int, y: int) -> bool:
        """Check every axis through (x, y) for WIN_COUNT stones in a row."""
        stone = self._board.get(x, y)
        for dx, dy in DIRECTIONS:
            count = 1
            count += self._count_in_direction(x, y, dx, dy, stone)
            count += self._count_in_direction(x, y, -dx, -dy, stone)
            if count >= WIN_COUNT:
                return True
        return False

    def _count_in_direction(self, x: int, y: int, dx: int, dy: int, stone: Cell) -> int:
        """Count contiguous stones of one color walking away from (x, y)."""
        count = 0
        nx, ny = x + dx, y + dy
        while self._board.in_bounds(nx, ny) and self._board.get(nx, ny) == stone:
            count += 1
            nx += dx
            ny += dy
        return count

    # =========================================================================
    # Queries
    # =========================================================================

    def get_board(self) -> Board:
        """Return an independent copy of the board."""
        with self._lock:
            return self._board.copy()

    def is_game_over(self) -> bool:
        with self._lock:
            return self._game_over

    def get_winner(self) -> PlayerColor | str | None:
        """The winning color, OPPONENT_DISCONNECTED after a forfeit, or None."""
        with self._lock:
            return self._winner

    @property
    def current_player(self) -> PlayerColor:
        with self._lock:
            return self._current_player

    @property
    def stones_placed_this_turn(self) -> int:
        with self._lock:
            return self._stones_placed_this_turn

    @property
    def is_first_turn(self) -> bool:
        with self._lock:
            return self._is_first_turn

    def to_dict(self) -> dict:
        """Summary of the engine state, for logging and stats."""
        with self._lock:
            winner = self._winner.value if isinstance(self._winner, PlayerColor) else self._winner
            return {
                "current_player": self._current_player.value,
                "game_over": self._game_over,
                "winner": winner,
                "stones_placed_this_turn": self._stones_placed_this_turn,
                "is_first_turn": self._is_first_turn,
                "stones_on_board": self._board.size ** 2 - self._board.count(Cell.EMPTY),
            }
