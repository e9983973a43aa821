"""
Board evaluation functions for Game2048.
Provides heuristic-based evaluation for board states and moves.
"""

from typing import Dict, Union
import numpy as np
from dataclasses import dataclass

from ..board import Board, Direction


@dataclass
class HeuristicWeights:
    """Weights for the board evaluation heuristics."""
    empty_cells: float = 2.7
    monotonicity: float = 1.0
    smoothness: float = 0.1
    max_tile: float = 1.0
    corner: float = 1.0
    score: float = 0.01  # immediate score of the evaluated move


def _log_grid(values: np.ndarray) -> np.ndarray:
    """log2 of every tile, 0 for empty cells."""
    logs = np.zeros(values.shape, dtype=np.float64)
    filled = values > 0
    logs[filled] = np.log2(values[filled])
    return logs


class BoardEvaluator:
    """Heuristic evaluation of a 2048 board."""

    def __init__(self, weights: HeuristicWeights = None):
        self.weights = weights or HeuristicWeights()

    @staticmethod
    def _as_values(board: Union[Board, np.ndarray]) -> np.ndarray:
        if isinstance(board, Board):
            return board.values()
        return np.asarray(board)

    @staticmethod
    def monotonicity(logs: np.ndarray) -> float:
        """
        Penalty for rows/columns that are not sorted one way or the other.
        0 when every line is monotonic, negative otherwise.
        """
        total = 0.0
        for grid in (logs, logs.T):
            diffs = np.diff(grid, axis=1)
            increasing = np.clip(diffs, 0, None).sum(axis=1)
            decreasing = np.clip(-diffs, 0, None).sum(axis=1)
            total -= np.minimum(increasing, decreasing).sum()
        return float(total)

    @staticmethod
    def smoothness(logs: np.ndarray) -> float:
        """Negative sum of log differences between filled neighbours."""
        total = 0.0
        for grid in (logs, logs.T):
            left, right = grid[:, :-1], grid[:, 1:]
            both = (left > 0) & (right > 0)
            total -= np.abs(left - right)[both].sum()
        return float(total)

    @staticmethod
    def max_in_corner(values: np.ndarray) -> bool:
        corners = (values[0, 0], values[0, -1], values[-1, 0], values[-1, -1])
        return values.max() > 0 and max(corners) == values.max()

    def get_detailed_evaluation(self, board: Union[Board, np.ndarray]) -> Dict[str, float]:
        """Individual heuristic terms and the weighted total."""
        values = self._as_values(board)
        logs = _log_grid(values)
        metrics = {
            'empty_cells': float(np.count_nonzero(values == 0)),
            'monotonicity': self.monotonicity(logs),
            'smoothness': self.smoothness(logs),
            'max_tile': float(logs.max()),
            'corner': float(logs.max()) if self.max_in_corner(values) else 0.0,
        }
        metrics['overall_score'] = (
            self.weights.empty_cells * metrics['empty_cells']
            + self.weights.monotonicity * metrics['monotonicity']
            + self.weights.smoothness * metrics['smoothness']
            + self.weights.max_tile * metrics['max_tile']
            + self.weights.corner * metrics['corner']
        )
        return metrics

    def evaluate_board(self, board: Union[Board, np.ndarray]) -> float:
        """Evaluate a board or a grid of tile values."""
        return self.get_detailed_evaluation(board)['overall_score']

    def evaluate_move(self, board: Board, direction, win_value: int = 2048) -> float:
        """Evaluate the board a move would leave behind; -inf if it moves nothing."""
        trial = board.copy()
        slide = trial.slide(Direction.parse(direction), win_value)
        if not slide.moved:
            return float('-inf')
        return self.evaluate_board(trial) + self.weights.score * slide.score_delta
