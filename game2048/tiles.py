# Game2048 - Sliding tile puzzle engine
# tiles.py - Tiles and the arena that hands out their stable ids.

from dataclasses import dataclass
from typing import Dict, Iterator

from .exceptions import InvalidTileValueException


def is_valid_tile_value(value: int) -> bool:
    """True for positive powers of two >= 2."""
    return isinstance(value, int) and value >= 2 and (value & (value - 1)) == 0


@dataclass
class Tile:
    """A single numbered tile. The id survives slides and merges."""
    id: int
    value: int
    just_merged: bool = False


class TileArena:
    """
    Owns every live tile, keyed by id.
    Ids start at 1 and are never reused, so 0 can stand for an empty cell
    in the board's id grid.
    """

    def __init__(self):
        self._tiles: Dict[int, Tile] = {}
        self._next_id = 1

    def create(self, value: int) -> Tile:
        if not is_valid_tile_value(value):
            raise InvalidTileValueException(f"Invalid tile value: {value!r}")
        tile = Tile(self._next_id, value)
        self._tiles[tile.id] = tile
        self._next_id += 1
        return tile

    def get(self, tile_id: int) -> Tile:
        return self._tiles[tile_id]

    def put(self, tile: Tile):
        """Replace the stored record for an existing tile."""
        if tile.id not in self._tiles:
            raise KeyError(tile.id)
        self._tiles[tile.id] = tile

    def discard(self, tile_id: int):
        self._tiles.pop(tile_id, None)

    def clear(self):
        # Ids keep counting across clears so stale references never alias.
        self._tiles.clear()

    def __len__(self) -> int:
        return len(self._tiles)

    def __contains__(self, tile_id) -> bool:
        return tile_id in self._tiles

    def __iter__(self) -> Iterator[Tile]:
        return iter(list(self._tiles.values()))

    def copy(self) -> "TileArena":
        clone = TileArena()
        clone._tiles = {tile_id: Tile(t.id, t.value, t.just_merged) for tile_id, t in self._tiles.items()}
        clone._next_id = self._next_id
        return clone
