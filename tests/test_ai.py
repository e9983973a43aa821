"""
Tests for board evaluation and the automated players.
"""

import random
import unittest
import numpy as np
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from game2048.board import Board, Direction
from game2048.engine import GameEngine
from game2048.ai import BoardEvaluator, GreedyPlayer, RandomPlayer, play_game

CHECKERBOARD = [[2, 4, 2, 4], [4, 2, 4, 2], [2, 4, 2, 4], [4, 2, 4, 2]]


class TestBoardEvaluator(unittest.TestCase):
    """Test the heuristic evaluation."""

    def setUp(self):
        self.evaluator = BoardEvaluator()

    def test_detailed_evaluation_keys(self):
        metrics = self.evaluator.get_detailed_evaluation(Board())
        for key in ('empty_cells', 'monotonicity', 'smoothness', 'max_tile', 'corner', 'overall_score'):
            self.assertIn(key, metrics)
        self.assertEqual(metrics['empty_cells'], 16.0)

    def test_monotonicity(self):
        sorted_row = np.array([[2, 4, 8, 16], [0, 0, 0, 0], [0, 0, 0, 0], [0, 0, 0, 0]])
        unsorted_row = np.array([[2, 8, 4, 16], [0, 0, 0, 0], [0, 0, 0, 0], [0, 0, 0, 0]])
        self.assertEqual(self.evaluator.get_detailed_evaluation(sorted_row)['monotonicity'], 0.0)
        self.assertEqual(self.evaluator.get_detailed_evaluation(unsorted_row)['monotonicity'], -1.0)

    def test_max_in_corner(self):
        corner = np.array([[64, 2, 0, 0], [0, 0, 0, 0], [0, 0, 0, 0], [0, 0, 0, 0]])
        middle = np.array([[2, 0, 0, 0], [0, 64, 0, 0], [0, 0, 0, 0], [0, 0, 0, 0]])
        self.assertTrue(BoardEvaluator.max_in_corner(corner))
        self.assertFalse(BoardEvaluator.max_in_corner(middle))
        self.assertFalse(BoardEvaluator.max_in_corner(np.zeros((4, 4), dtype=int)))

    def test_illegal_move_scores_minus_infinity(self):
        board = Board.from_values([[2, 4, 8, 16], [0, 0, 0, 0], [0, 0, 0, 0], [0, 0, 0, 0]])
        self.assertEqual(self.evaluator.evaluate_move(board, Direction.LEFT), float('-inf'))
        self.assertGreater(self.evaluator.evaluate_move(board, Direction.DOWN), float('-inf'))
        # the board itself is never touched
        self.assertEqual(board.values()[0].tolist(), [2, 4, 8, 16])


class TestPlayers(unittest.TestCase):

    def setUp(self):
        self.engine = GameEngine(rng=random.Random(11))

    def test_greedy_picks_a_legal_move(self):
        move = GreedyPlayer().choose_move(self.engine)
        self.assertIn(move, self.engine.available_moves())

    def test_greedy_prefers_the_merge(self):
        self.engine.board.load([[0, 0, 0, 0], [0, 0, 0, 0], [0, 0, 0, 0], [2, 2, 0, 0]])
        move = GreedyPlayer().choose_move(self.engine)
        self.assertIn(move, (Direction.LEFT, Direction.RIGHT))

    def test_no_moves_left(self):
        self.engine.board.load(CHECKERBOARD)
        self.assertIsNone(RandomPlayer(random.Random(0)).choose_move(self.engine))
        self.assertIsNone(GreedyPlayer().choose_move(self.engine))

    def test_play_game_respects_max_moves(self):
        stats = play_game(self.engine, RandomPlayer(random.Random(1)), max_moves=10)
        self.assertEqual(stats['moves'], 10)
        self.assertEqual(stats['score'], self.engine.score)
        self.assertEqual(stats['max_tile'], self.engine.board.max_value())

    def test_random_game_runs_to_the_end(self):
        stats = play_game(self.engine, RandomPlayer(random.Random(2)))
        self.assertTrue(self.engine.game_over)
        self.assertGreater(stats['moves'], 0)
        self.assertIn(stats['won'], (0, 1))


if __name__ == '__main__':
    unittest.main()
