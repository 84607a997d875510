"""
Tests for the Connect6 game engine: board storage, placement rules,
turn quotas and six-in-a-row detection.

Run from project root: python -m pytest tests/test_game_engine -v
"""

import sys
import unittest
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from server.game_engine import Board, PlaceResult, RuleEngine
from shared.constants import BOARD_SIZE, OPPONENT_DISCONNECTED
from shared.enums import Cell, PlayerColor


# White stones far from anything Black builds, never two adjacent
WHITE_FILLER = [(x, 18) for x in range(0, BOARD_SIZE, 2)]


def interleave(black: list, white: list = WHITE_FILLER) -> list:
    """Order Black's and White's stones into legal turns: B, WW, BB, WW, ..."""
    moves = [black[0]]
    b, w = 1, 0
    while b < len(black):
        moves += white[w:w + 2]
        w += 2
        moves += black[b:b + 2]
        b += 2
    return moves


def play(engine: RuleEngine, moves: list) -> list:
    """Place each move, switching turns whenever the quota is reached."""
    results = []
    for x, y in moves:
        results.append(engine.place_stone(x, y))
        if engine.should_switch_player():
            engine.switch_player()
    return results


class BoardTestCase(unittest.TestCase):

    def test_new_board_is_empty(self):
        board = Board()
        self.assertEqual(board.size, BOARD_SIZE)
        self.assertEqual(len(board.grid), BOARD_SIZE)
        self.assertTrue(all(len(row) == BOARD_SIZE for row in board.grid))
        self.assertEqual(board.count(Cell.EMPTY), BOARD_SIZE * BOARD_SIZE)

    def test_cells_are_addressed_by_column_then_row(self):
        board = Board()
        board.set(3, 7, Cell.BLACK)
        self.assertEqual(board.grid[7][3], Cell.BLACK)
        self.assertEqual(board.get(3, 7), Cell.BLACK)
        self.assertTrue(board.is_empty(7, 3))

    def test_bounds(self):
        board = Board()
        self.assertTrue(board.in_bounds(0, 0))
        self.assertTrue(board.in_bounds(18, 18))
        self.assertFalse(board.in_bounds(-1, 0))
        self.assertFalse(board.in_bounds(0, 19))
        self.assertFalse(board.in_bounds(19, 5))

    def test_copy_is_independent(self):
        board = Board()
        board.set(0, 0, Cell.WHITE)
        copy = board.copy()
        copy.set(1, 1, Cell.BLACK)
        self.assertEqual(copy.get(0, 0), Cell.WHITE)
        self.assertTrue(board.is_empty(1, 1))

    def test_rows_snapshot_and_rebuild(self):
        board = Board()
        board.set(2, 0, Cell.BLACK)
        rows = board.to_rows()
        self.assertIsInstance(rows, tuple)
        self.assertEqual(rows[0][2], Cell.BLACK)

        rebuilt = Board.from_rows([[cell.value for cell in row] for row in rows])
        self.assertEqual(rebuilt.grid, board.grid)

    def test_wrong_dimensions_rejected(self):
        with self.assertRaises(ValueError):
            Board(grid=[[Cell.EMPTY] * 5 for _ in range(5)])


class PlacementTestCase(unittest.TestCase):

    def setUp(self):
        self.engine = RuleEngine()

    def test_initial_state(self):
        self.assertEqual(self.engine.current_player, PlayerColor.BLACK)
        self.assertTrue(self.engine.is_first_turn)
        self.assertEqual(self.engine.stones_placed_this_turn, 0)
        self.assertFalse(self.engine.is_game_over())
        self.assertIsNone(self.engine.get_winner())

    def test_place_writes_current_color(self):
        self.assertEqual(self.engine.place_stone(9, 9), PlaceResult.OK)
        self.assertEqual(self.engine.get_board().get(9, 9), Cell.BLACK)
        self.assertEqual(self.engine.stones_placed_this_turn, 1)

    def test_occupied_cell_rejected_without_change(self):
        self.engine.place_stone(4, 4)
        self.engine.switch_player()
        before = self.engine.get_board()

        self.assertEqual(self.engine.place_stone(4, 4), PlaceResult.CELL_OCCUPIED)
        self.assertEqual(self.engine.get_board().grid, before.grid)
        self.assertEqual(self.engine.stones_placed_this_turn, 0)

    def test_out_of_range_rejected_without_change(self):
        for x, y in [(-1, 0), (0, -1), (19, 0), (0, 19), (100, 100)]:
            self.assertEqual(self.engine.place_stone(x, y), PlaceResult.INVALID_POSITION)
        self.assertEqual(self.engine.stones_placed_this_turn, 0)
        self.assertEqual(self.engine.get_board().count(Cell.EMPTY), BOARD_SIZE * BOARD_SIZE)

    def test_get_board_returns_copy(self):
        board = self.engine.get_board()
        board.set(0, 0, Cell.WHITE)
        self.assertTrue(self.engine.get_board().is_empty(0, 0))
        self.assertEqual(self.engine.place_stone(0, 0), PlaceResult.OK)


class TurnQuotaTestCase(unittest.TestCase):

    def setUp(self):
        self.engine = RuleEngine()

    def test_first_turn_is_one_stone(self):
        self.assertFalse(self.engine.should_switch_player())
        self.engine.place_stone(9, 9)
        self.assertTrue(self.engine.should_switch_player())

    def test_later_turns_are_two_stones(self):
        self.engine.place_stone(9, 9)
        self.engine.switch_player()
        self.assertEqual(self.engine.current_player, PlayerColor.WHITE)
        self.assertFalse(self.engine.is_first_turn)

        self.engine.place_stone(10, 10)
        self.assertFalse(self.engine.should_switch_player())
        self.engine.place_stone(11, 11)
        self.assertTrue(self.engine.should_switch_player())

        self.engine.switch_player()
        self.assertEqual(self.engine.current_player, PlayerColor.BLACK)
        self.engine.place_stone(1, 1)
        self.assertFalse(self.engine.should_switch_player())
        self.engine.place_stone(2, 1)
        self.assertTrue(self.engine.should_switch_player())

    def test_failed_placement_does_not_count(self):
        self.engine.place_stone(9, 9)
        self.engine.switch_player()
        self.engine.place_stone(9, 9)
        self.engine.place_stone(-1, 3)
        self.assertEqual(self.engine.stones_placed_this_turn, 0)
        self.assertFalse(self.engine.should_switch_player())

    def test_switch_is_never_automatic(self):
        self.engine.place_stone(9, 9)
        self.engine.place_stone(3, 3)
        self.assertEqual(self.engine.current_player, PlayerColor.BLACK)
        self.assertEqual(self.engine.get_board().get(3, 3), Cell.BLACK)

    def test_reset(self):
        play(self.engine, [(9, 9), (1, 1), (2, 2)])
        self.engine.reset()
        self.assertEqual(self.engine.current_player, PlayerColor.BLACK)
        self.assertTrue(self.engine.is_first_turn)
        self.assertEqual(self.engine.get_board().count(Cell.EMPTY), BOARD_SIZE * BOARD_SIZE)


class WinDetectionTestCase(unittest.TestCase):

    def assert_black_wins(self, black: list):
        engine = RuleEngine()
        results = play(engine, interleave(black))
        self.assertTrue(all(r == PlaceResult.OK for r in results))
        self.assertTrue(engine.is_game_over())
        self.assertEqual(engine.get_winner(), PlayerColor.BLACK)
        return engine

    def test_horizontal(self):
        self.assert_black_wins([(x, 0) for x in range(6)])

    def test_vertical(self):
        self.assert_black_wins([(5, y) for y in range(6)])

    def test_diagonal_down_right(self):
        self.assert_black_wins([(i, i) for i in range(6)])

    def test_diagonal_up_right(self):
        self.assert_black_wins([(i, 10 - i) for i in range(6)])

    def test_line_completed_in_the_middle(self):
        self.assert_black_wins([(0, 5), (1, 5), (2, 5), (4, 5), (5, 5), (3, 5)])

    def test_overline_wins(self):
        self.assert_black_wins([(0, 3), (1, 3), (2, 3), (4, 3), (5, 3), (6, 3), (3, 3)])

    def test_win_along_board_edge(self):
        self.assert_black_wins([(18, y) for y in range(13, 19)])

    def test_five_is_not_enough(self):
        engine = RuleEngine()
        play(engine, interleave([(x, 0) for x in range(5)]))
        self.assertFalse(engine.is_game_over())
        self.assertIsNone(engine.get_winner())

    def test_opponent_stone_breaks_line(self):
        engine = RuleEngine()
        black = [(0, 0), (1, 0), (2, 0), (4, 0), (5, 0), (6, 0)]
        white = [(3, 0)] + WHITE_FILLER
        play(engine, interleave(black, white))
        self.assertFalse(engine.is_game_over())

    def test_white_can_win(self):
        engine = RuleEngine()
        # Black scatters on row 18, White builds row 2
        black = [(x, 18) for x in range(0, BOARD_SIZE, 2)]
        white = [(x, 2) for x in range(6)]
        moves = [black[0]]
        for i in range(3):
            moves += white[2 * i:2 * i + 2]
            moves += black[1 + 2 * i:3 + 2 * i]
        play(engine, moves)
        self.assertTrue(engine.is_game_over())
        self.assertEqual(engine.get_winner(), PlayerColor.WHITE)

    def test_no_moves_after_game_over(self):
        engine = self.assert_black_wins([(x, 0) for x in range(6)])
        self.assertEqual(engine.place_stone(10, 10), PlaceResult.GAME_OVER)
        self.assertTrue(engine.get_board().is_empty(10, 10))

    def test_switch_is_noop_after_game_over(self):
        engine = self.assert_black_wins([(x, 0) for x in range(6)])
        engine.switch_player()
        self.assertEqual(engine.current_player, PlayerColor.BLACK)


class ForfeitTestCase(unittest.TestCase):

    def test_forfeit_sets_sentinel(self):
        engine = RuleEngine()
        engine.place_stone(9, 9)
        engine.record_forfeit()
        self.assertTrue(engine.is_game_over())
        self.assertEqual(engine.get_winner(), OPPONENT_DISCONNECTED)
        self.assertEqual(engine.place_stone(1, 1), PlaceResult.GAME_OVER)

    def test_forfeit_does_not_override_winner(self):
        engine = RuleEngine()
        play(engine, interleave([(x, 0) for x in range(6)]))
        engine.record_forfeit()
        self.assertEqual(engine.get_winner(), PlayerColor.BLACK)

    def test_to_dict(self):
        engine = RuleEngine()
        engine.place_stone(9, 9)
        summary = engine.to_dict()
        self.assertEqual(summary["current_player"], "BLACK")
        self.assertEqual(summary["stones_on_board"], 1)
        self.assertIsNone(summary["winner"])


class ConcurrencyTestCase(unittest.TestCase):

    def test_same_cell_from_many_threads(self):
        engine = RuleEngine()
        with ThreadPoolExecutor(max_workers=16) as pool:
            results = list(pool.map(lambda _: engine.place_stone(7, 7), range(64)))

        self.assertEqual(results.count(PlaceResult.OK), 1)
        self.assertEqual(results.count(PlaceResult.CELL_OCCUPIED), 63)
        self.assertEqual(engine.stones_placed_this_turn, 1)


if __name__ == "__main__":
    unittest.main()
