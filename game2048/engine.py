"""
Main 2048 engine for Game2048.
Owns the board and the session state, turns moves into state transitions
and reports what happened as events.
"""

import logging
import random
import threading
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

from .board import Board, Direction, Merge
from .events import Event, EventDispatcher, GameEvent
from .exceptions import StorageException
from .fixtures import Fixture
from .storage import KeyValueStore, MemoryStore

logger = logging.getLogger(__name__)


@dataclass
class GameConfig:
    """Configuration for the 2048 game."""
    size: int = 4
    win_value: int = 2048
    four_probability: float = 0.1  # chance a spawned tile is a 4
    initial_tiles: int = 2
    best_score_key: str = "BestScore"


@dataclass
class GameState:
    """Snapshot of the session state."""
    values: List[List[int]]
    score: int
    best_score: int
    game_over: bool
    has_won: bool
    keep_playing: bool
    highest_merged: int


@dataclass
class MoveResult:
    """What a single call to GameEngine.move did."""
    moved: bool = False
    score_delta: int = 0
    merged: bool = False
    max_merged_value: int = 0
    merges: List[Merge] = field(default_factory=list)
    spawned: Optional[Tuple[int, int, int]] = None  # (row, col, value)
    events: List[Event] = field(default_factory=list)

    @property
    def movements(self):
        """((row, col) source, (row, col) destination) of every consumed tile."""
        return [(m.source, m.destination) for m in self.merges]


class GameEngine:
    """Main 2048 game engine."""

    def __init__(self, config: Optional[GameConfig] = None,
                 store: Optional[KeyValueStore] = None,
                 rng: Optional[random.Random] = None):
        self.config = config or GameConfig()
        self.store = store if store is not None else MemoryStore()
        self.rng = rng or random.Random()
        self.board = Board(self.config.size)
        self.events = EventDispatcher()
        self._lock = threading.RLock()

        # Session state
        self.score = 0
        self.best_score = self._load_best_score()
        self.game_over = False
        self.has_won = False
        self._keep_playing = False
        self.highest_merged = 0  # highest tile value seen this game, for unlocks

        self.reset()

    # ----------------------------------------------------------------- state

    @property
    def keep_playing(self) -> bool:
        return self._keep_playing

    @keep_playing.setter
    def keep_playing(self, value: bool):
        with self._lock:
            self._keep_playing = bool(value)

    @property
    def accepting_moves(self) -> bool:
        """False once the game is over, or won and not continued."""
        if self.game_over:
            return False
        return not self.has_won or self._keep_playing

    def on(self, kind: GameEvent, callback: Callable[[Event], None]):
        """Subscribe a callback to one kind of event."""
        self.events.subscribe(kind, callback)

    def get_state(self) -> GameState:
        with self._lock:
            return GameState(
                values=self.board.values().tolist(),
                score=self.score,
                best_score=self.best_score,
                game_over=self.game_over,
                has_won=self.has_won,
                keep_playing=self._keep_playing,
                highest_merged=self.highest_merged,
            )

    # ----------------------------------------------------------- persistence

    def _load_best_score(self) -> int:
        try:
            return max(0, self.store.get_integer(self.config.best_score_key, 0))
        except (StorageException, OSError) as e:
            logger.warning("Best score unavailable, starting from 0: %s", e)
            return 0

    def _persist_best_score(self):
        try:
            self.store.set_integer(self.config.best_score_key, self.best_score)
        except (StorageException, OSError) as e:
            logger.warning("Could not persist best score %d: %s", self.best_score, e)

    def _add_score(self, delta: int, events: List[Event]):
        self.score += delta
        if self.score > self.best_score:
            self.best_score = self.score
            self._persist_best_score()
            events.append(Event(GameEvent.NEW_BEST, {"best_score": self.best_score}))

    # -------------------------------------------------------------- lifecycle

    def reset(self):
        """Start a new game. The best score is kept."""
        events: List[Event] = []
        with self._lock:
            self.board.reset()
            self.score = 0
            self.game_over = False
            self.has_won = False
            self._keep_playing = False
            self.highest_merged = 0

            events.append(Event(GameEvent.RESET, {"best_score": self.best_score}))
            for _ in range(self.config.initial_tiles):
                self._spawn_random_tile(events)
        logger.info("New game started (best score %d)", self.best_score)
        self._dispatch(events)

    def load_fixture(self, fixture: Fixture):
        """Replace the board with a fixed layout. The best score is not touched."""
        with self._lock:
            self.board.load(fixture.grid)
            self.score = fixture.score
            self.game_over = False
            self.has_won = False
            self._keep_playing = False
            self.highest_merged = self.board.max_value()
        logger.info("Loaded fixture %s", fixture.name)

    # ------------------------------------------------------------- spawning

    def _spawn_random_tile(self, events: List[Event]) -> Optional[Tuple[int, int, int]]:
        empty = self.board.empty_cells()
        if not empty:
            return None
        row, col = self.rng.choice(empty)
        value = 4 if self.rng.random() < self.config.four_probability else 2
        tile = self.board.place(row, col, value)
        # A spawned 4 counts as seen, so a later 2+2 does not unlock it.
        self.highest_merged = max(self.highest_merged, value)
        logger.debug("Spawned %d at (%d, %d)", value, row, col)
        events.append(Event(GameEvent.SPAWN, {"row": row, "col": col, "value": value, "tile_id": tile.id}))
        return row, col, value

    def spawn_random_tile(self) -> Optional[Tuple[int, int, int]]:
        """Place a 2 (90%) or a 4 (10%) on a random empty cell; no-op on a full board."""
        events: List[Event] = []
        with self._lock:
            spawned = self._spawn_random_tile(events)
        self._dispatch(events)
        return spawned

    # ---------------------------------------------------------------- moves

    def check_game_over(self) -> bool:
        """Set game_over when the board is full and no neighbours are equal."""
        with self._lock:
            if not self.board.can_move():
                self.game_over = True
            return self.game_over

    def available_moves(self) -> List[Direction]:
        """Directions that would change the board, ignoring win/game-over flags."""
        with self._lock:
            return [d for d in Direction
                    if self.board.copy().slide(d, self.config.win_value).moved]

    def move(self, direction) -> MoveResult:
        """
        Slide every line toward the given direction.
        A move that changes nothing, or any move once the game is over or won
        and not continued, is a no-op: no spawn, no events.
        """
        direction = Direction.parse(direction)
        with self._lock:
            if not self.accepting_moves:
                return MoveResult()

            slide = self.board.slide(direction, self.config.win_value)
            if not slide.moved:
                logger.debug("Move %s changed nothing", direction.name)
                return MoveResult()

            result = MoveResult(
                moved=True,
                score_delta=slide.score_delta,
                merged=slide.merged,
                max_merged_value=slide.max_merged_value,
                merges=slide.merges,
            )
            events = result.events
            events.append(Event(GameEvent.SLIDE, {"direction": direction, "movements": slide.movements}))

            if slide.merged:
                events.append(Event(GameEvent.MERGE, {
                    "merges": slide.merges,
                    "max_value": slide.max_merged_value,
                }))
                if slide.max_merged_value > self.highest_merged:
                    self.highest_merged = slide.max_merged_value
                    events.append(Event(GameEvent.UNLOCK, {"value": slide.max_merged_value}))

            if slide.score_delta:
                self._add_score(slide.score_delta, events)

            if slide.won and not self.has_won:
                self.has_won = True
                logger.info("Reached %d with score %d", self.config.win_value, self.score)
                events.append(Event(GameEvent.WIN, {"value": self.config.win_value, "score": self.score}))

            if not self.has_won or self._keep_playing:
                result.spawned = self._spawn_random_tile(events)
                if self.check_game_over():
                    logger.info("Game over with score %d", self.score)
                    events.append(Event(GameEvent.GAME_OVER, {"score": self.score}))

            logger.debug("Move %s: +%d, score %d", direction.name, slide.score_delta, self.score)

        self._dispatch(events)
        return result

    def _dispatch(self, events: List[Event]):
        for event in events:
            self.events.dispatch(event)

    def __str__(self):
        """String representation of the game state."""
        result = []
        result.append(f"Score: {self.score}")
        result.append(f"Best: {self.best_score}")
        if self.has_won:
            result.append("You win!" if not self._keep_playing else "Won - playing on")
        if self.game_over:
            result.append("Game over")
        result.append("")
        result.append(str(self.board))
        return "\n".join(result)
