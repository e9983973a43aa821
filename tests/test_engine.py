"""
Tests for the game engine and its events.
"""

import random
import threading
import unittest
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from game2048.board import Direction
from game2048.engine import GameConfig, GameEngine
from game2048.events import Event, EventDispatcher, GameEvent
from game2048.exceptions import InvalidDirectionException, StorageException
from game2048.fixtures import NEAR_GAME_OVER, NEAR_WIN, get_fixture
from game2048.storage import KeyValueStore, MemoryStore

EMPTY = [[0, 0, 0, 0], [0, 0, 0, 0], [0, 0, 0, 0], [0, 0, 0, 0]]
CHECKERBOARD = [[2, 4, 2, 4], [4, 2, 4, 2], [2, 4, 2, 4], [4, 2, 4, 2]]


def grid(*rows):
    """4x4 grid whose first rows are given, the rest empty."""
    rows = [list(r) for r in rows]
    return rows + [[0, 0, 0, 0] for _ in range(4 - len(rows))]


def load_grid(engine, rows):
    """Put a layout on the engine's board; its tiles count as already seen."""
    engine.board.load(rows)
    engine.highest_merged = engine.board.max_value()


class AlwaysFour(random.Random):
    def random(self):
        return 0.0


class BrokenStore(KeyValueStore):
    def get_integer(self, key, default=0):
        raise StorageException("disk on fire")

    def set_integer(self, key, value):
        raise StorageException("disk on fire")


class TestGameEngine(unittest.TestCase):
    """Test the main 2048 engine."""

    def setUp(self):
        self.store = MemoryStore()
        self.engine = GameEngine(store=self.store, rng=random.Random(7))
        self.events = []
        self.engine.events.subscribe_all(self.events.append)

    def test_engine_initialization(self):
        """A new game has two small tiles and clean flags."""
        values = self.engine.board.values()
        tiles = values[values > 0].tolist()
        self.assertEqual(len(tiles), 2)
        self.assertTrue(all(v in (2, 4) for v in tiles))
        self.assertEqual(self.engine.score, 0)
        self.assertEqual(self.engine.best_score, 0)
        self.assertFalse(self.engine.game_over)
        self.assertFalse(self.engine.has_won)
        self.assertFalse(self.engine.keep_playing)
        self.assertTrue(self.engine.accepting_moves)

    def test_reset_emits_reset_and_spawns(self):
        self.engine.reset()
        kinds = [e.kind for e in self.events]
        self.assertEqual(kinds, [GameEvent.RESET, GameEvent.SPAWN, GameEvent.SPAWN])

    def test_left_example(self):
        """[2, 2, 4, _] slides left into [4, 4, _, _] for 4 points."""
        self.engine.board.load(grid([2, 2, 4, 0]))
        result = self.engine.move(Direction.LEFT)
        self.assertTrue(result.moved)
        self.assertEqual(result.score_delta, 4)
        self.assertEqual(self.engine.score, 4)
        self.assertEqual(self.engine.board.values()[0, :2].tolist(), [4, 4])
        self.assertIsNotNone(result.spawned)
        self.assertEqual(self.engine.board.total(), 8 + result.spawned[2])

    def test_event_order(self):
        load_grid(self.engine, grid([4, 4, 2, 0]))
        result = self.engine.move("left")
        kinds = [e.kind for e in result.events]
        self.assertEqual(kinds, [GameEvent.SLIDE, GameEvent.MERGE, GameEvent.UNLOCK,
                                 GameEvent.NEW_BEST, GameEvent.SPAWN])
        # subscribers see the same events, after the move
        self.assertEqual([e.kind for e in self.events], kinds)

    def test_move_that_changes_nothing(self):
        """No spawn, no score and no events."""
        self.engine.board.load(grid([2, 4, 8, 16]))
        before = self.engine.board.values().copy()
        result = self.engine.move(Direction.LEFT)
        self.assertFalse(result.moved)
        self.assertIsNone(result.spawned)
        self.assertEqual(result.events, [])
        self.assertEqual(self.events, [])
        self.assertEqual(self.engine.board.values().tolist(), before.tolist())
        self.assertEqual(self.engine.score, 0)

    def test_invalid_direction(self):
        with self.assertRaises(InvalidDirectionException):
            self.engine.move("sideways")

    def test_mass_is_conserved_except_for_spawns(self):
        rng = random.Random(3)
        for _ in range(200):
            if not self.engine.accepting_moves:
                break
            before = self.engine.board.total()
            result = self.engine.move(rng.choice(list(Direction)))
            spawned = result.spawned[2] if result.spawned else 0
            self.assertEqual(self.engine.board.total(), before + spawned)

    def test_unlock_fires_once_per_value(self):
        load_grid(self.engine, grid([2, 2, 0, 0], [2, 2, 0, 0]))
        result = self.engine.move(Direction.LEFT)
        unlocks = [e for e in result.events if e.kind == GameEvent.UNLOCK]
        self.assertEqual(len(unlocks), 1)
        self.assertEqual(unlocks[0].data["value"], 4)
        self.assertEqual(self.engine.highest_merged, 4)

        self.engine.board.load(grid([2, 2, 0, 0]))  # 4 was already reached
        result = self.engine.move(Direction.LEFT)
        self.assertTrue(result.merged)
        self.assertNotIn(GameEvent.UNLOCK, [e.kind for e in result.events])

    def test_unlock_high_water_mark_resets_each_game(self):
        load_grid(self.engine, grid([8, 8, 0, 0]))
        self.engine.move(Direction.LEFT)
        self.assertGreaterEqual(self.engine.highest_merged, 16)
        self.engine.reset()
        self.assertEqual(self.engine.highest_merged, self.engine.board.max_value())
        self.assertLessEqual(self.engine.highest_merged, 4)

    def test_spawned_values_do_not_unlock_again(self):
        """A 4 that was spawned has been seen; merging 2+2 later is no unlock."""
        engine = GameEngine(rng=AlwaysFour(3))
        self.assertEqual(engine.board.max_value(), 4)
        self.assertEqual(engine.highest_merged, 4)

        engine.board.load(grid([0, 4, 0, 0], [0, 0, 0, 0], [0, 0, 0, 0], [2, 2, 0, 0]))
        result = engine.move(Direction.LEFT)
        kinds = [e.kind for e in result.events]
        self.assertIn(GameEvent.MERGE, kinds)
        self.assertNotIn(GameEvent.UNLOCK, kinds)

        engine.board.load(grid([4, 4, 0, 0]))
        result = engine.move(Direction.LEFT)
        self.assertIn(GameEvent.UNLOCK, [e.kind for e in result.events])

    def test_move_that_changes_nothing_in_any_direction(self):
        """A locked board is not flagged over by a rejected move."""
        self.engine.board.load(CHECKERBOARD)
        self.events.clear()
        before = self.engine.board.values().tolist()
        for direction in Direction:
            result = self.engine.move(direction)
            self.assertFalse(result.moved)
            self.assertEqual(result.events, [])
            self.assertIsNone(result.spawned)
        self.assertEqual(self.events, [])
        self.assertEqual(self.engine.board.values().tolist(), before)
        self.assertEqual(self.engine.score, 0)
        self.assertFalse(self.engine.has_won)
        self.assertFalse(self.engine.game_over)

    def test_checkerboard_is_game_over(self):
        self.engine.board.load(CHECKERBOARD)
        self.assertTrue(self.engine.check_game_over())
        self.assertFalse(self.engine.accepting_moves)
        self.assertEqual(self.engine.available_moves(), [])
        self.assertFalse(self.engine.move(Direction.UP).moved)

    def test_full_board_with_one_pair_is_not_over(self):
        self.engine.board.load([[2, 4, 8, 16], [32, 64, 128, 256],
                                [512, 1024, 2048, 4096], [8, 8, 16, 32]])
        self.assertFalse(self.engine.check_game_over())
        self.assertIn(Direction.LEFT, self.engine.available_moves())

    def test_near_game_over_fixture(self):
        """The only useful move fills the last cell and locks the board."""
        self.engine.load_fixture(NEAR_GAME_OVER)
        self.assertEqual(self.engine.available_moves(), [Direction.DOWN, Direction.RIGHT])

        result = self.engine.move(Direction.RIGHT)
        self.assertTrue(result.moved)
        self.assertEqual(result.spawned[:2], (3, 0))
        self.assertEqual(self.engine.board.values()[3, 1:].tolist(), [8, 16, 32])
        self.assertTrue(self.engine.game_over)
        self.assertEqual(result.events[-1].kind, GameEvent.GAME_OVER)
        self.assertEqual(result.events[-1].data["score"], NEAR_GAME_OVER.score)

        self.events.clear()
        self.assertFalse(self.engine.move(Direction.LEFT).moved)
        self.assertEqual(self.events, [])

    def test_win_blocks_until_keep_playing(self):
        self.engine.load_fixture(NEAR_WIN)
        result = self.engine.move(Direction.LEFT)
        self.assertTrue(self.engine.has_won)
        self.assertEqual(self.engine.board.values()[1].tolist(), [2048, 0, 0, 0])
        self.assertEqual(self.engine.score, NEAR_WIN.score + 2048)
        self.assertIn(GameEvent.WIN, [e.kind for e in result.events])
        self.assertIsNone(result.spawned)  # the winning move does not spawn
        self.assertFalse(self.engine.accepting_moves)
        self.assertFalse(self.engine.move(Direction.RIGHT).moved)

        self.engine.keep_playing = True
        self.assertTrue(self.engine.accepting_moves)
        self.engine.board.load([[0, 0, 0, 0], [2048, 0, 0, 0], [0, 0, 0, 0], [1024, 1024, 0, 0]])
        result = self.engine.move(Direction.LEFT)
        self.assertTrue(result.moved)
        self.assertIsNotNone(result.spawned)
        self.assertNotIn(GameEvent.WIN, [e.kind for e in result.events])
        self.assertTrue(self.engine.has_won)

    def test_custom_win_value(self):
        engine = GameEngine(GameConfig(win_value=16), rng=random.Random(1))
        engine.board.load(grid([8, 8, 0, 0]))
        engine.move(Direction.LEFT)
        self.assertTrue(engine.has_won)

    def test_best_score_is_monotonic_and_persisted(self):
        self.engine.board.load(grid([4, 4, 0, 0]))
        self.engine.move(Direction.LEFT)
        self.assertEqual(self.engine.best_score, 8)
        self.assertEqual(self.store.get_integer("BestScore"), 8)

        self.engine.reset()
        self.assertEqual(self.engine.score, 0)
        self.assertEqual(self.engine.best_score, 8)

        self.engine.board.load(grid([2, 2, 0, 0]))
        result = self.engine.move(Direction.LEFT)
        self.assertNotIn(GameEvent.NEW_BEST, [e.kind for e in result.events])
        self.assertEqual(self.engine.best_score, 8)
        self.assertEqual(self.store.get_integer("BestScore"), 8)

    def test_best_score_loaded_from_store(self):
        engine = GameEngine(store=MemoryStore({"BestScore": 1500}))
        self.assertEqual(engine.best_score, 1500)
        self.assertEqual(engine.get_state().best_score, 1500)

    def test_broken_store_does_not_break_the_game(self):
        with self.assertLogs("game2048.engine", level="WARNING"):
            engine = GameEngine(store=BrokenStore(), rng=random.Random(5))
        self.assertEqual(engine.best_score, 0)
        engine.board.load(grid([2, 2, 0, 0]))
        with self.assertLogs("game2048.engine", level="WARNING"):
            result = engine.move(Direction.LEFT)
        self.assertTrue(result.moved)
        self.assertEqual(engine.best_score, 4)

    def test_load_fixture_keeps_best_score(self):
        self.engine.load_fixture(get_fixture("near_win"))
        state = self.engine.get_state()
        self.assertEqual(state.values, [list(row) for row in NEAR_WIN.grid])
        self.assertEqual(state.score, 20000)
        self.assertEqual(state.best_score, 0)
        self.assertEqual(state.highest_merged, 1024)
        self.assertFalse(state.has_won)

    def test_unknown_fixture(self):
        with self.assertRaises(ValueError):
            get_fixture("nope")

    def test_spawn_on_full_board_is_noop(self):
        self.engine.board.load(CHECKERBOARD)
        self.assertIsNone(self.engine.spawn_random_tile())

    def test_four_probability(self):
        """Roughly one spawn in ten is a 4."""
        engine = GameEngine(rng=random.Random(1234))
        fours = 0
        trials = 10000
        for _ in range(trials):
            engine.board.reset()
            _, _, value = engine.spawn_random_tile()
            self.assertIn(value, (2, 4))
            fours += value == 4
        self.assertGreater(fours / trials, 0.08)
        self.assertLess(fours / trials, 0.12)

    def test_same_seed_same_game(self):
        a = GameEngine(rng=random.Random(99))
        b = GameEngine(rng=random.Random(99))
        for direction in [Direction.LEFT, Direction.UP, Direction.RIGHT, Direction.DOWN] * 10:
            a.move(direction)
            b.move(direction)
        self.assertEqual(a.board.values().tolist(), b.board.values().tolist())
        self.assertEqual(a.score, b.score)

    def test_failing_callback_does_not_break_move(self):
        def explode(event):
            raise RuntimeError("boom")

        self.engine.on(GameEvent.SLIDE, explode)
        self.engine.board.load(grid([2, 2, 0, 0]))
        with self.assertLogs("game2048.events", level="ERROR"):
            result = self.engine.move(Direction.LEFT)
        self.assertTrue(result.moved)
        self.assertIn(GameEvent.SPAWN, [e.kind for e in self.events])

    def test_concurrent_moves_stay_consistent(self):
        start_total = self.engine.board.total()
        spawned, deltas = [], []
        self.engine.on(GameEvent.SPAWN, lambda e: spawned.append(e.data["value"]))

        def worker(seed):
            rng = random.Random(seed)
            for _ in range(50):
                result = self.engine.move(rng.choice(list(Direction)))
                deltas.append(result.score_delta)

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(self.engine.board.total(), start_total + sum(spawned))
        self.assertEqual(self.engine.score, sum(deltas))
        self.assertEqual(len(self.engine.board.arena), int((self.engine.board.values() > 0).sum()))

    def test_string_representation(self):
        text = str(self.engine)
        self.assertIn("Score: 0", text)
        self.assertIn("Best: 0", text)


class TestEventDispatcher(unittest.TestCase):

    def test_subscribe_and_unsubscribe(self):
        dispatcher = EventDispatcher()
        seen, everything = [], []
        dispatcher.subscribe(GameEvent.WIN, seen.append)
        dispatcher.subscribe_all(everything.append)

        dispatcher.dispatch(Event(GameEvent.WIN, {"value": 2048}))
        dispatcher.dispatch(Event(GameEvent.SPAWN))
        self.assertEqual(len(seen), 1)
        self.assertEqual(len(everything), 2)

        dispatcher.unsubscribe(GameEvent.WIN, seen.append)
        dispatcher.unsubscribe(GameEvent.WIN, seen.append)  # already gone
        dispatcher.dispatch(Event(GameEvent.WIN))
        self.assertEqual(len(seen), 1)


if __name__ == '__main__':
    unittest.main()
