"""
Automated players for Game2048.
Used by the demo and benchmark commands and as baselines for training.
"""

import logging
import random
from typing import Dict, Optional

from ..board import Direction
from ..engine import GameEngine
from .evaluation import BoardEvaluator

logger = logging.getLogger(__name__)


class RandomPlayer:
    """Picks uniformly among the moves that change the board."""

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def choose_move(self, engine: GameEngine) -> Optional[Direction]:
        moves = engine.available_moves()
        return self.rng.choice(moves) if moves else None


class GreedyPlayer:
    """One-ply search: best heuristic value of the board after the move."""

    def __init__(self, evaluator: BoardEvaluator = None):
        self.evaluator = evaluator or BoardEvaluator()

    def choose_move(self, engine: GameEngine) -> Optional[Direction]:
        best_move = None
        best_score = float('-inf')
        for direction in Direction:
            score = self.evaluator.evaluate_move(engine.board, direction, engine.config.win_value)
            if score > best_score:
                best_score = score
                best_move = direction
        return best_move


def play_game(engine: GameEngine, player, max_moves: Optional[int] = None,
              continue_after_win: bool = True) -> Dict[str, int]:
    """Let a player finish the engine's current game and return its stats."""
    moves = 0
    while engine.accepting_moves:
        if max_moves is not None and moves >= max_moves:
            break
        direction = player.choose_move(engine)
        if direction is None:
            break
        engine.move(direction)
        moves += 1
        if engine.has_won and not engine.keep_playing and continue_after_win:
            engine.keep_playing = True

    logger.debug("Player finished after %d moves, score %d", moves, engine.score)
    return {
        'score': engine.score,
        'max_tile': engine.board.max_value(),
        'moves': moves,
        'won': int(engine.has_won),
    }
