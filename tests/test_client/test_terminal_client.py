"""
Tests for the terminal client's board rendering and score keeping.

Run from project root: python -m pytest tests/test_client -v
"""

import sys
import unittest
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from client.main import TerminalClient, render_board
from server.game_engine import Board
from shared.constants import OPPONENT_DISCONNECTED
from shared.enums import Cell, PlayerColor
from shared.protocol import RoleEvent, WinnerEvent


class RenderBoardTestCase(unittest.TestCase):

    def test_header_and_rows(self):
        board = Board()
        board.set(2, 1, Cell.BLACK)
        lines = render_board(board.to_rows()).splitlines()

        self.assertEqual(len(lines), 20)
        self.assertTrue(lines[0].strip().startswith("0"))
        self.assertTrue(lines[0].strip().endswith("18"))
        self.assertEqual(lines[2].split()[0], "1")
        self.assertEqual(lines[2].split()[3], "B")


class ScoreTestCase(unittest.TestCase):
    """Events go through the client so its game view is updated first."""

    def setUp(self):
        self.terminal = TerminalClient("ws://localhost:8765", "Carol")

    def receive(self, event):
        self.terminal.client._dispatch_event(event)

    def test_unseated_player_keeps_no_score(self):
        self.receive(WinnerEvent("BLACK"))
        self.receive(WinnerEvent(OPPONENT_DISCONNECTED))

        self.assertEqual(self.terminal.wins, 0)
        self.assertEqual(self.terminal.losses, 0)

    def test_seated_player_win_and_loss(self):
        self.receive(RoleEvent(PlayerColor.WHITE))
        self.receive(WinnerEvent("WHITE"))
        self.receive(RoleEvent(PlayerColor.WHITE))
        self.receive(WinnerEvent("BLACK"))

        self.assertEqual(self.terminal.wins, 1)
        self.assertEqual(self.terminal.losses, 1)

    def test_forfeit_counts_as_win(self):
        self.receive(RoleEvent(PlayerColor.BLACK))
        self.receive(WinnerEvent(OPPONENT_DISCONNECTED))

        self.assertEqual(self.terminal.wins, 1)


if __name__ == "__main__":
    unittest.main()
