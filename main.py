#!/usr/bin/env python3
"""
Game2048: sliding tile puzzle
Main entry point and command-line interface.
"""

import argparse
import logging
import os
import random
import time

from game2048.engine import GameEngine, GameConfig
from game2048.events import GameEvent
from game2048.exceptions import InvalidDirectionException
from game2048.fixtures import FIXTURES, get_fixture
from game2048.storage import JsonFileStore
from game2048.ai import BoardEvaluator, GreedyPlayer, RandomPlayer, play_game

logger = logging.getLogger("game2048.cli")

DEFAULT_STORE = "~/.game2048.json"

HELP_TEXT = """Controls:
  w/a/s/d, h/j/k/l or up/down/left/right  move
  n  new game      c  continue after a win
  q  quit          ?  this help"""


def build_engine(args) -> GameEngine:
    config = GameConfig(win_value=args.win_value)
    rng = random.Random(args.seed)
    return GameEngine(config, store=JsonFileStore(args.store), rng=rng)


def make_player(name: str, seed=None):
    if name == 'random':
        return RandomPlayer(random.Random(seed))
    return GreedyPlayer(BoardEvaluator())


def configure_logging(args) -> int:
    """--quiet/--debug pick the level; GAME2048_LOG_LEVEL overrides both."""
    level = logging.INFO
    if args.quiet:
        level = logging.WARNING
    if args.debug:
        level = logging.DEBUG
    named = logging.getLevelName(os.environ.get("GAME2048_LOG_LEVEL", "").strip().upper())
    if isinstance(named, int):
        level = named
    logging.basicConfig(level=level, format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
                        datefmt="%H:%M:%S")
    return level


def play(args):
    """Play interactively in the terminal."""
    engine = build_engine(args)
    if args.fixture:
        engine.load_fixture(get_fixture(args.fixture))

    engine.on(GameEvent.UNLOCK, lambda e: print(f"New tile unlocked: {e.data['value']}!"))
    engine.on(GameEvent.WIN, lambda e: print(f"🎉 You reached {e.data['value']}! Press 'c' to keep playing or 'n' for a new game."))
    engine.on(GameEvent.GAME_OVER, lambda e: print(f"🎮 GAME OVER - final score {e.data['score']}"))

    print("🧩 2048")
    print(HELP_TEXT)
    print()
    print(engine)

    while True:
        try:
            command = input("> ").strip().lower()
        except EOFError:
            break

        if not command:
            continue
        if command in ('q', 'quit', 'exit'):
            break
        if command in ('?', 'help'):
            print(HELP_TEXT)
            continue
        if command in ('n', 'new'):
            engine.reset()
        elif command in ('c', 'continue'):
            if engine.has_won:
                engine.keep_playing = True
        else:
            try:
                result = engine.move(command)
            except InvalidDirectionException:
                print(f"Unknown command: {command!r} (press ? for help)")
                continue
            if not result.moved and engine.accepting_moves:
                print("Nothing moves that way.")
                continue
        print(engine)

    print(f"Best score: {engine.best_score}")


def demo(args):
    """Let an AI player play one game."""
    engine = build_engine(args)
    player = make_player(args.player, args.seed)
    print(f"🧠 2048 demo ({args.player} player)")
    print("=" * 40)

    moves = 0
    while engine.accepting_moves:
        direction = player.choose_move(engine)
        if direction is None:
            break
        engine.move(direction)
        moves += 1
        if engine.has_won and not engine.keep_playing:
            engine.keep_playing = True
        if moves % max(1, args.every) == 0:
            print(f"\nMove: {moves}  Direction: {direction.name}")
            print(engine)
        if args.delay:
            time.sleep(args.delay)

    print("\n" + "=" * 40)
    print(engine)
    print(f"Moves: {moves}")
    print(f"Max tile: {engine.board.max_value()}")


def benchmark(args):
    """Run a batch of AI games and report throughput and score statistics."""
    engine = build_engine(args)
    player = make_player(args.player, args.seed)
    print(f"🧠 2048 benchmark: {args.games} games, {args.player} player")

    scores, max_tiles, total_moves = [], [], 0
    start_time = time.time()
    for game in range(args.games):
        engine.reset()
        stats = play_game(engine, player)
        scores.append(stats['score'])
        max_tiles.append(stats['max_tile'])
        total_moves += stats['moves']
        logger.info("Game %d/%d: score=%d max_tile=%d", game + 1, args.games, stats['score'], stats['max_tile'])
    duration = max(time.time() - start_time, 1e-9)

    wins = sum(1 for tile in max_tiles if tile >= engine.config.win_value)
    print(f"\nAverage Score: {sum(scores) / len(scores):.1f}")
    print(f"Best Score: {max(scores)}")
    print(f"Best Tile: {max(max_tiles)}")
    print(f"Win Rate: {100.0 * wins / len(max_tiles):.1f}%")
    print(f"Moves/s: {total_moves / duration:.0f}")

    if args.plot:
        plot_scores(scores, args.plot)
        print(f"Score plot saved to {args.plot}")


def plot_scores(scores, path):
    """Save the per-game scores and their running mean as an image."""
    import matplotlib
    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    running = [sum(scores[:i + 1]) / (i + 1) for i in range(len(scores))]
    plt.figure()
    plt.plot(scores, label='Score')
    plt.plot(running, label='Running mean')
    plt.xlabel('Game')
    plt.ylabel('Score')
    plt.title('Benchmark Scores')
    plt.legend()
    plt.savefig(path)
    plt.close()


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="2048 sliding tile puzzle")
    parser.add_argument('--store', default=DEFAULT_STORE, help='JSON file holding the best score')
    parser.add_argument('--seed', type=int, default=None, help='Random seed')
    parser.add_argument('--win-value', type=int, default=2048, help='Tile value that wins the game')
    parser.add_argument('--quiet', action='store_true', help='Only log warnings and errors')
    parser.add_argument('--debug', action='store_true', help='Enable debug logging')
    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    play_parser = subparsers.add_parser('play', help='Play in the terminal')
    play_parser.add_argument('--fixture', choices=sorted(FIXTURES), help='Start from a fixed layout')

    demo_parser = subparsers.add_parser('demo', help='Watch an AI play one game')
    demo_parser.add_argument('--player', choices=['greedy', 'random'], default='greedy')
    demo_parser.add_argument('--every', type=int, default=50, help='Print the board every N moves')
    demo_parser.add_argument('--delay', type=float, default=0.0, help='Seconds to sleep between moves')

    benchmark_parser = subparsers.add_parser('benchmark', help='Run many AI games')
    benchmark_parser.add_argument('--player', choices=['greedy', 'random'], default='greedy')
    benchmark_parser.add_argument('--games', type=int, default=20, help='Number of games')
    benchmark_parser.add_argument('--plot', metavar='PATH', help='Save a score plot to this image file')

    args = parser.parse_args()
    configure_logging(args)

    if args.command == 'play':
        play(args)
    elif args.command == 'demo':
        demo(args)
    elif args.command == 'benchmark':
        benchmark(args)
    else:
        parser.print_help()
        print("\nTo start a game, run: python main.py play")


if __name__ == "__main__":
    main()
