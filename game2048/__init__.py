"""
Core module for Game2048.
Contains the sliding tile engine, board and line processing, events and persistence.
"""

from .tiles import Tile, TileArena
from .board import Board, Direction, LineResult, Merge, SlideResult, line_indices, process_line
from .engine import GameConfig, GameEngine, GameState, MoveResult
from .events import Event, EventDispatcher, GameEvent
from .storage import JsonFileStore, KeyValueStore, MemoryStore
from .fixtures import NEAR_GAME_OVER, NEAR_WIN, Fixture, get_fixture
from .exceptions import InvalidDirectionException, InvalidTileValueException, StorageException

__all__ = [
    'Tile', 'TileArena',
    'Board', 'Direction', 'LineResult', 'Merge', 'SlideResult', 'line_indices', 'process_line',
    'GameConfig', 'GameEngine', 'GameState', 'MoveResult',
    'Event', 'EventDispatcher', 'GameEvent',
    'JsonFileStore', 'KeyValueStore', 'MemoryStore',
    'NEAR_GAME_OVER', 'NEAR_WIN', 'Fixture', 'get_fixture',
    'InvalidDirectionException', 'InvalidTileValueException', 'StorageException',
]
