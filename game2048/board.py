"""
Board state management for Game2048.
Handles the tile grid, per-direction line extraction, sliding and merging.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from functools import lru_cache
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np

from .tiles import Tile, TileArena
from .exceptions import InvalidDirectionException


Coord = Tuple[int, int]


class Direction(Enum):
    """Move directions. The values double as gym action ids."""
    UP = 0
    DOWN = 1
    LEFT = 2
    RIGHT = 3

    @classmethod
    def parse(cls, value) -> "Direction":
        """Accept a Direction, an action id, a name, a WASD key or a vi key."""
        if isinstance(value, Direction):
            return value
        if isinstance(value, (int, np.integer)) and not isinstance(value, bool):
            try:
                return cls(int(value))
            except ValueError:
                raise InvalidDirectionException(f"Unknown direction id: {value}") from None
        if isinstance(value, str):
            direction = _DIRECTION_ALIASES.get(value.strip().lower())
            if direction is not None:
                return direction
        raise InvalidDirectionException(f"Unknown direction: {value!r}")


_DIRECTION_ALIASES = {
    'up': Direction.UP, 'w': Direction.UP, 'k': Direction.UP,
    'down': Direction.DOWN, 's': Direction.DOWN, 'j': Direction.DOWN,
    'left': Direction.LEFT, 'a': Direction.LEFT, 'h': Direction.LEFT,
    'right': Direction.RIGHT, 'd': Direction.RIGHT, 'l': Direction.RIGHT,
}


@lru_cache(maxsize=None)
def _line_index_map(direction: Direction, size: int) -> np.ndarray:
    grid = np.arange(size * size).reshape(size, size)
    if direction is Direction.LEFT:
        lines = grid
    elif direction is Direction.RIGHT:
        lines = grid[:, ::-1]
    elif direction is Direction.UP:
        lines = grid.T
    else:
        lines = grid[::-1, :].T
    lines = np.ascontiguousarray(lines)
    lines.setflags(write=False)
    return lines


def line_indices(direction, size: int = 4) -> np.ndarray:
    """
    Flat row-major cell indices for every line of a move.
    Row i is line i, ordered so position 0 is the end tiles slide toward.
    """
    return _line_index_map(Direction.parse(direction), size)


@dataclass(frozen=True)
class Merge:
    """One merge: the consumed tile disappears into the survivor at destination."""
    consumed_id: int
    survivor_id: int
    value: int
    source: Union[int, Coord]
    destination: Union[int, Coord]


def line_values(line: Sequence[Optional[Tile]]) -> List[int]:
    return [tile.value if tile is not None else 0 for tile in line]


@dataclass
class LineResult:
    """Outcome of sliding one line toward index 0."""
    line: List[Optional[Tile]]
    score_delta: int = 0
    merged: bool = False
    max_merged_value: int = 0
    won: bool = False
    merges: List[Merge] = field(default_factory=list)

    @property
    def movements(self) -> List[Tuple[int, int]]:
        """(source_index, dest_index) of every consumed tile."""
        return [(m.source, m.destination) for m in self.merges]

    def changed(self, old_line: Sequence[Optional[Tile]]) -> bool:
        return line_values(old_line) != line_values(self.line)


def process_line(line: Sequence[Optional[Tile]], win_value: int = 2048) -> LineResult:
    """
    Slide and merge a single line toward index 0.
    Input tiles are never mutated; the result holds fresh Tile records,
    the survivor of each merge keeping its id.
    """
    size = len(line)
    compacted = [(index, tile) for index, tile in enumerate(line) if tile is not None]
    result = LineResult(line=[])

    i = 0
    while i < len(compacted):
        _, tile = compacted[i]
        destination = len(result.line)
        if i + 1 < len(compacted) and compacted[i + 1][1].value == tile.value:
            consumed_index, consumed = compacted[i + 1]
            value = tile.value * 2
            result.line.append(replace(tile, value=value, just_merged=True))
            result.score_delta += value
            result.merged = True
            result.max_merged_value = max(result.max_merged_value, value)
            if value == win_value:
                result.won = True
            result.merges.append(Merge(consumed.id, tile.id, value, consumed_index, destination))
            i += 2  # a tile merges at most once per move
        else:
            result.line.append(replace(tile, just_merged=False))
            i += 1

    result.line.extend([None] * (size - len(result.line)))
    return result


@dataclass
class SlideResult:
    """Outcome of sliding the whole board, merges in (row, col) coordinates."""
    moved: bool = False
    score_delta: int = 0
    merged: bool = False
    max_merged_value: int = 0
    won: bool = False
    merges: List[Merge] = field(default_factory=list)

    @property
    def movements(self) -> List[Tuple[Coord, Coord]]:
        return [(m.source, m.destination) for m in self.merges]


class Board:
    """
    Square grid of optional tiles.
    Cells are a flat row-major numpy array of tile ids (0 = empty); the
    tiles themselves live in a TileArena keyed by those ids.
    """

    DEFAULT_SIZE = 4

    def __init__(self, size: int = DEFAULT_SIZE):
        if size < 2:
            raise ValueError(f"Board size must be at least 2, got {size}")
        self.size = size
        self.cells = np.zeros(size * size, dtype=np.int64)
        self.arena = TileArena()

    @classmethod
    def from_values(cls, grid: Sequence[Sequence[int]]) -> "Board":
        board = cls(len(grid))
        board.load(grid)
        return board

    def reset(self):
        """Empty every cell and drop all tiles."""
        self.cells = np.zeros(self.size * self.size, dtype=np.int64)
        self.arena.clear()

    def _index(self, row: int, col: int) -> int:
        if not (0 <= row < self.size and 0 <= col < self.size):
            raise IndexError(f"Cell ({row}, {col}) is outside a {self.size}x{self.size} board")
        return row * self.size + col

    def _coords(self, index) -> Coord:
        row, col = divmod(int(index), self.size)
        return row, col

    def _tile_for_id(self, tile_id: int) -> Optional[Tile]:
        return self.arena.get(tile_id) if tile_id else None

    def tile_at(self, row: int, col: int) -> Optional[Tile]:
        return self._tile_for_id(int(self.cells[self._index(row, col)]))

    def place(self, row: int, col: int, value: int) -> Tile:
        """Put a new tile on a cell, replacing whatever was there."""
        index = self._index(row, col)
        tile = self.arena.create(value)
        if self.cells[index]:
            self.arena.discard(int(self.cells[index]))
        self.cells[index] = tile.id
        return tile

    def remove(self, row: int, col: int) -> Optional[Tile]:
        index = self._index(row, col)
        tile = self._tile_for_id(int(self.cells[index]))
        if tile is not None:
            self.arena.discard(tile.id)
            self.cells[index] = 0
        return tile

    def load(self, grid: Sequence[Sequence[int]]):
        """Populate from a nested list of values, 0 meaning empty."""
        if len(grid) != self.size or any(len(row) != self.size for row in grid):
            raise ValueError(f"Expected a {self.size}x{self.size} grid")
        self.reset()
        for row, values in enumerate(grid):
            for col, value in enumerate(values):
                if value:
                    self.place(row, col, int(value))

    def empty_cells(self) -> List[Coord]:
        """Empty cells in row-major order."""
        return [self._coords(i) for i in np.flatnonzero(self.cells == 0)]

    def is_full(self) -> bool:
        return bool(np.all(self.cells != 0))

    def values(self) -> np.ndarray:
        """Tile values as a size x size array, 0 for empty cells."""
        flat = np.zeros(self.size * self.size, dtype=np.int64)
        for index in np.flatnonzero(self.cells):
            flat[index] = self.arena.get(int(self.cells[index])).value
        return flat.reshape(self.size, self.size)

    def tiles(self) -> List[Tile]:
        """Live tiles in row-major order."""
        return [self.arena.get(int(self.cells[i])) for i in np.flatnonzero(self.cells)]

    def max_value(self) -> int:
        return int(self.values().max())

    def total(self) -> int:
        return int(self.values().sum())

    def has_available_merge(self) -> bool:
        """True if any tile equals its right or bottom neighbour."""
        grid = self.values()
        horizontal = (grid[:, :-1] == grid[:, 1:]) & (grid[:, :-1] != 0)
        vertical = (grid[:-1, :] == grid[1:, :]) & (grid[:-1, :] != 0)
        return bool(horizontal.any() or vertical.any())

    def can_move(self) -> bool:
        return not self.is_full() or self.has_available_merge()

    def line(self, direction, i: int) -> List[Optional[Tile]]:
        indices = line_indices(direction, self.size)[i]
        return [self._tile_for_id(int(self.cells[j])) for j in indices]

    def slide(self, direction, win_value: int = 2048) -> SlideResult:
        """
        Apply a move in place. Only lines whose values change are written
        back; if nothing changes the board is left untouched.
        """
        index_map = line_indices(direction, self.size)
        result = SlideResult()
        untouched = []

        for indices in index_map:
            old_line = [self._tile_for_id(int(self.cells[j])) for j in indices]
            line_result = process_line(old_line, win_value)
            if not line_result.changed(old_line):
                untouched.append(old_line)
                continue

            self._write_line(indices, line_result)
            result.moved = True
            result.score_delta += line_result.score_delta
            result.merged = result.merged or line_result.merged
            result.max_merged_value = max(result.max_merged_value, line_result.max_merged_value)
            result.won = result.won or line_result.won
            for merge in line_result.merges:
                result.merges.append(replace(
                    merge,
                    source=self._coords(indices[merge.source]),
                    destination=self._coords(indices[merge.destination]),
                ))

        if result.moved:
            # Merge flags only describe the latest move.
            for line in untouched:
                for tile in line:
                    if tile is not None and tile.just_merged:
                        self.arena.put(replace(tile, just_merged=False))

        return result

    def _write_line(self, indices: np.ndarray, line_result: LineResult):
        for merge in line_result.merges:
            self.arena.discard(merge.consumed_id)
        for index, tile in zip(indices, line_result.line):
            if tile is None:
                self.cells[index] = 0
            else:
                self.arena.put(tile)
                self.cells[index] = tile.id

    def copy(self) -> "Board":
        clone = Board(self.size)
        clone.cells = self.cells.copy()
        clone.arena = self.arena.copy()
        return clone

    def __str__(self):
        """String representation of the board."""
        grid = self.values()
        width = max(4, len(str(int(grid.max()))))
        border = "+" + "+".join("-" * (width + 2) for _ in range(self.size)) + "+"
        result = [border]
        for row in grid:
            cells = [str(int(v)).rjust(width) if v else "·".rjust(width) for v in row]
            result.append("| " + " | ".join(cells) + " |")
            result.append(border)
        return "\n".join(result)

    def __repr__(self):
        return f"Board(size={self.size}, values={self.values().tolist()})"
