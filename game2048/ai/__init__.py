"""
AI module for Game2048.
Contains heuristic board evaluation and automated players.
"""

from .evaluation import BoardEvaluator, HeuristicWeights
from .players import GreedyPlayer, RandomPlayer, play_game

__all__ = ['BoardEvaluator', 'HeuristicWeights', 'GreedyPlayer', 'RandomPlayer', 'play_game']
