# Game2048 - Sliding tile puzzle engine
# fixtures.py - Fixed board layouts for demos and manual testing.

from dataclasses import dataclass
from typing import Dict, Tuple


@dataclass(frozen=True)
class Fixture:
    """
    A deterministic board layout.
    The score is a display value only and does not match the tile sum.
    """
    name: str
    grid: Tuple[Tuple[int, ...], ...]
    score: int


# One empty cell and no equal neighbours: the next move decides the game.
NEAR_GAME_OVER = Fixture(
    name="near_game_over",
    grid=(
        (2, 4, 8, 16),
        (32, 64, 128, 256),
        (512, 1024, 2, 4),
        (8, 16, 32, 0),
    ),
    score=9999,
)

# Two 1024 tiles side by side: a horizontal move wins.
NEAR_WIN = Fixture(
    name="near_win",
    grid=(
        (0, 0, 0, 0),
        (0, 1024, 1024, 0),
        (0, 0, 0, 0),
        (0, 0, 0, 0),
    ),
    score=20000,
)

FIXTURES: Dict[str, Fixture] = {f.name: f for f in (NEAR_GAME_OVER, NEAR_WIN)}


def get_fixture(name: str) -> Fixture:
    try:
        return FIXTURES[name]
    except KeyError:
        raise ValueError(f"Unknown fixture {name!r}, expected one of {sorted(FIXTURES)}") from None
