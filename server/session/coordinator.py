"""
Session coordinator for the single Connect6 session a server hosts.

Tracks registered players and their event sinks, enforces turn order,
handles disconnects and rematches, and turns rule engine results into
events for the players.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any

from server.game_engine import Board, PlaceResult, RuleEngine
from server.session.sinks import EventSink
from shared.constants import (
    MIN_PLAYERS,
    MSG_CONNECTED_AS,
    MSG_DISCONNECTING,
    MSG_GAME_STARTED,
    MSG_INVALID_NAME,
    MSG_NAME_IN_USE,
    MSG_PLAYER_DISCONNECTED,
    MSG_TWO_PLAYERS_ONLY,
    MSG_WAITING_PLAYER,
)
from shared.enums import ActionResult, PlayerColor
from shared.protocol import (
    BoardEvent,
    CurrentTurnEvent,
    GameEvent,
    RoleEvent,
    StatusEvent,
    WinnerEvent,
)


logger = logging.getLogger(__name__)


@dataclass
class ActionOutcome:
    """Result of an inbound session operation, reported to the caller."""
    success: bool
    result: ActionResult
    message: str = ""
    game_over: bool = False

    @classmethod
    def ok(cls, message: str = "", game_over: bool = False) -> "ActionOutcome":
        return cls(success=True, result=ActionResult.SUCCESS, message=message, game_over=game_over)

    @classmethod
    def failure(cls, result: ActionResult, message: str = "") -> "ActionOutcome":
        return cls(success=False, result=result, message=message)


@dataclass
class Session:
    """All mutable session state. Only the coordinator touches it."""
    # player_id -> sink, in registration order
    players: dict[str, EventSink] = field(default_factory=dict)
    engine: RuleEngine | None = None
    current_player: str | None = None
    # (black, white), fixed for one game
    player_order: tuple[str, str] | None = None
    rematch_requests: set[str] = field(default_factory=set)

    @property
    def in_game(self) -> bool:
        return self.engine is not None


# Engine placement failures and the codes reported to players
_PLACE_FAILURES = {
    PlaceResult.INVALID_POSITION: ActionResult.INVALID_POSITION,
    PlaceResult.CELL_OCCUPIED: ActionResult.CELL_OCCUPIED,
    PlaceResult.GAME_OVER: ActionResult.GAME_OVER,
}


class SessionCoordinator:
    """
    Coordinates one two-player session.

    The session alternates between no game and a running game. Every entry
    point runs entirely under one coordinator-wide lock, including the events
    it emits, so no two operations interleave their reads and writes of the
    session. Sinks only queue events, which keeps the locked section free of
    network waits.
    """

    def __init__(self, session: Session | None = None):
        self._session = session or Session()
        self._lock = asyncio.Lock()

    # =========================================================================
    # Entry Points
    # =========================================================================

    async def register(self, player_id: str, sink: EventSink) -> ActionOutcome:
        """
        Register a player under a unique name.

        A refused registration is reported to the sink as a status event and
        the sink is closed. A player registering while a game is running
        stays registered and is told the server only seats two players.
        """
        async with self._lock:
            session = self._session

            if not player_id or not player_id.strip():
                self._send(sink, StatusEvent(MSG_INVALID_NAME))
                self._close(sink)
                return ActionOutcome.failure(ActionResult.INVALID_NAME, MSG_INVALID_NAME)

            if player_id in session.players:
                logger.info(f"Registration refused, name in use: {player_id}")
                self._send(sink, StatusEvent(MSG_NAME_IN_USE))
                self._close(sink)
                return ActionOutcome.failure(ActionResult.NAME_IN_USE, MSG_NAME_IN_USE)

            session.players[player_id] = sink
            logger.info(f"Player connected: {player_id}")
            self._send(sink, StatusEvent(MSG_CONNECTED_AS.format(player_id=player_id)))

            if len(session.players) < MIN_PLAYERS:
                self._send(sink, StatusEvent(MSG_WAITING_PLAYER))
                return ActionOutcome.ok(MSG_WAITING_PLAYER)

            if not session.in_game:
                self._start_game()
                return ActionOutcome.ok(MSG_GAME_STARTED)

            self._send(sink, StatusEvent(MSG_TWO_PLAYERS_ONLY))
            return ActionOutcome.ok(MSG_TWO_PLAYERS_ONLY)

    async def make_move(self, player_id: str, x: int, y: int) -> ActionOutcome:
        """Place a stone for the player whose turn it is."""
        async with self._lock:
            session = self._session
            engine = session.engine

            if engine is None or player_id != session.current_player:
                return ActionOutcome.failure(
                    ActionResult.NOT_YOUR_TURN_OR_NOT_STARTED,
                    "Not your turn or game not started"
                )

            result = engine.place_stone(x, y)
            if result is not PlaceResult.OK:
                return ActionOutcome.failure(_PLACE_FAILURES[result], f"Invalid move: {result.name}")

            self._broadcast(BoardEvent(engine.get_board().to_rows()))

            if engine.is_game_over():
                winner = engine.get_winner()
                self._broadcast(WinnerEvent(winner.value))
                logger.info(f"Game over, {winner.value} ({player_id}) wins")
                self._end_game()
                return ActionOutcome.ok("Move accepted; game over", game_over=True)

            if engine.should_switch_player():
                session.current_player = self._other_player(session.current_player)
                engine.switch_player()

            self._broadcast(CurrentTurnEvent(session.current_player))
            return ActionOutcome.ok("Move accepted")

    async def disconnect(self, player_id: str) -> ActionOutcome:
        """
        Remove a player from the session.

        If the player was seated in the running game, the opponent wins by
        forfeit and the game ends. Whenever no game is running afterwards and
        two players are still registered, a new game starts.
        """
        async with self._lock:
            session = self._session

            if player_id not in session.players:
                return ActionOutcome.failure(ActionResult.NOT_CONNECTED, "Not connected")

            sink = session.players.pop(player_id)
            session.rematch_requests.discard(player_id)
            self._send(sink, StatusEvent(MSG_DISCONNECTING))
            self._close(sink)
            logger.info(f"Player disconnected: {player_id}")

            if session.in_game and player_id in session.player_order:
                opponent = self._other_player(player_id)
                remaining = session.players.get(opponent)
                if remaining is not None:
                    self._send(remaining, StatusEvent(MSG_PLAYER_DISCONNECTED))
                    session.engine.record_forfeit()
                    self._send(remaining, WinnerEvent(session.engine.get_winner()))
                    logger.info(f"{opponent} wins, {player_id} left the game")
                self._end_game()

            if not session.in_game and len(session.players) >= MIN_PLAYERS:
                self._start_game()

            return ActionOutcome.ok("Disconnected")

    async def request_rematch(self, player_id: str) -> ActionOutcome:
        """
        Record that a player wants to play again.

        A new game starts once both players who would be seated have asked.
        Success only means the request was recorded.
        """
        async with self._lock:
            session = self._session

            if player_id not in session.players:
                return ActionOutcome.failure(ActionResult.NOT_CONNECTED, "You are not connected")

            session.rematch_requests.add(player_id)
            seated = list(session.players)[:MIN_PLAYERS]
            if len(seated) == MIN_PLAYERS and session.rematch_requests.issuperset(seated):
                logger.info("Starting rematch...")
                self._start_game()

            return ActionOutcome.ok("Rematch request received")

    # =========================================================================
    # Game Lifecycle (lock held)
    # =========================================================================

    def _start_game(self) -> None:
        session = self._session
        if len(session.players) < MIN_PLAYERS:
            return

        session.engine = RuleEngine()
        session.rematch_requests.clear()

        black, white = list(session.players)[:MIN_PLAYERS]
        session.player_order = (black, white)
        session.current_player = black

        self._send(session.players[black], RoleEvent(PlayerColor.BLACK))
        self._send(session.players[white], RoleEvent(PlayerColor.WHITE))

        self._broadcast(StatusEvent(MSG_GAME_STARTED))
        self._broadcast(CurrentTurnEvent(black))
        self._broadcast(BoardEvent(session.engine.get_board().to_rows()))

        logger.info(f"New game started between {black} and {white}")

    def _end_game(self) -> None:
        session = self._session
        session.engine = None
        session.current_player = None
        session.rematch_requests.clear()
        session.player_order = None

    def _other_player(self, player_id: str) -> str:
        black, white = self._session.player_order
        return white if player_id == black else black

    # =========================================================================
    # Delivery
    # =========================================================================

    def _broadcast(self, event: GameEvent) -> None:
        """Send an event to every registered player."""
        # Snapshot so a sink callback cannot disturb the iteration
        recipients = list(self._session.players.items())
        for player_id, sink in recipients:
            self._send(sink, event, player_id)

    def _send(self, sink: EventSink, event: GameEvent, player_id: str | None = None) -> None:
        try:
            sink.deliver(event)
        except Exception as e:
            logger.warning(f"Failed to notify {player_id or 'client'} of {type(event).__name__}: {e}")

    def _close(self, sink: EventSink) -> None:
        try:
            sink.close()
        except Exception as e:
            logger.warning(f"Failed to close sink: {e}")

    # =========================================================================
    # Queries
    # =========================================================================

    @property
    def is_in_game(self) -> bool:
        return self._session.in_game

    @property
    def current_player(self) -> str | None:
        return self._session.current_player

    @property
    def players(self) -> list[str]:
        """Registered player ids in registration order."""
        return list(self._session.players)

    @property
    def player_order(self) -> tuple[str, str] | None:
        return self._session.player_order

    @property
    def rematch_requests(self) -> set[str]:
        return set(self._session.rematch_requests)

    def is_registered(self, player_id: str) -> bool:
        return player_id in self._session.players

    def get_board(self) -> Board | None:
        """Copy of the running game's board, or None between games."""
        engine = self._session.engine
        return engine.get_board() if engine else None

    def get_stats(self) -> dict[str, Any]:
        """Session statistics."""
        engine = self._session.engine
        return {
            "players": self.players,
            "in_game": self.is_in_game,
            "current_player": self.current_player,
            "rematch_requests": sorted(self._session.rematch_requests),
            "game": engine.to_dict() if engine else None,
        }
