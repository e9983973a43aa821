# Game2048 - Sliding tile puzzle engine
# env.py - The 2048 game environment compatible with the Gymnasium API.

import random

import gymnasium as gym
from gymnasium import spaces
import numpy as np

from .board import Direction
from .engine import GameConfig, GameEngine
from .storage import KeyValueStore


class Game2048Env(gym.Env):
    """
    A 2048 environment that conforms to the Gymnasium API.

    Action Space:
    Discrete(4), the Direction values: 0 up, 1 down, 2 left, 3 right.

    Observation Space:
    Box of shape (size, size), uint8, holding log2 of every tile
    (0 for an empty cell, 1 for a 2, 11 for a 2048, ...).

    Reward:
    The score gained by the move, i.e. the sum of the merged values.
    A move that changes nothing earns `invalid_move_penalty` instead.

    Termination:
    When the board locks up. With continue_after_win=False the episode
    also ends as soon as the win tile appears.
    """

    metadata = {"render_modes": ["ansi", "human"]}

    MAX_EXPONENT = 31

    def __init__(self, config: GameConfig = None, store: KeyValueStore = None,
                 render_mode: str = None, continue_after_win: bool = True,
                 invalid_move_penalty: float = 0.0):
        super().__init__()
        self.config = config or GameConfig()
        self.render_mode = render_mode
        self.continue_after_win = continue_after_win
        self.invalid_move_penalty = invalid_move_penalty
        self.engine = GameEngine(self.config, store=store)

        size = self.config.size
        self.action_space = spaces.Discrete(len(Direction))
        self.observation_space = spaces.Box(low=0, high=self.MAX_EXPONENT, shape=(size, size), dtype=np.uint8)

    def _get_observation(self) -> np.ndarray:
        values = self.engine.board.values()
        obs = np.zeros(values.shape, dtype=np.uint8)
        filled = values > 0
        obs[filled] = np.log2(values[filled]).astype(np.uint8)
        return obs

    def action_mask(self) -> np.ndarray:
        mask = np.zeros(len(Direction), dtype=np.int8)
        for direction in self.engine.available_moves():
            mask[direction.value] = 1
        return mask

    def _get_info(self, moved: bool = False) -> dict:
        return {
            "score": self.engine.score,
            "best_score": self.engine.best_score,
            "max_tile": self.engine.board.max_value(),
            "moved": moved,
            "has_won": self.engine.has_won,
            "action_mask": self.action_mask(),
        }

    def reset(self, seed=None, options=None):
        super().reset(seed=seed)  # seeds self.np_random
        # The engine draws from a stdlib Random derived from the gym seed.
        self.engine.rng = random.Random(int(self.np_random.integers(0, 2**63 - 1)))
        self.engine.reset()
        if self.render_mode == "human":
            self.render()
        return self._get_observation(), self._get_info()

    def step(self, action):
        direction = Direction.parse(int(action))
        result = self.engine.move(direction)

        if result.moved:
            reward = float(result.score_delta)
        else:
            reward = float(self.invalid_move_penalty)

        if self.engine.has_won and not self.engine.keep_playing and self.continue_after_win:
            self.engine.keep_playing = True

        terminated = self.engine.game_over or not self.engine.accepting_moves
        truncated = False

        if self.render_mode == "human":
            self.render()
        return self._get_observation(), reward, terminated, truncated, self._get_info(result.moved)

    def render(self):
        text = str(self.engine)
        if self.render_mode == "ansi":
            return text
        print(text)
        return None

    def close(self):
        pass
