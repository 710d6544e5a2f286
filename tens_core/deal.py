from __future__ import annotations

import random
from typing import List, Optional

from .tile import COLORS, MAX_VALUE, MIN_VALUE, Side, Tile

BAG_SIZE = 100


def random_tile(rng: random.Random) -> Tile:
    """Creates a tile whose sides are independently random in value and color."""
    sides = tuple(
        Side(value=rng.randint(MIN_VALUE, MAX_VALUE), color=rng.choice(COLORS))
        for _ in range(3)
    )
    return Tile(sides=sides)  # type: ignore[arg-type]


def create_tile_bag(seed: Optional[int] = None, size: int = BAG_SIZE, rng: Optional[random.Random] = None) -> List[Tile]:
    """Creates and shuffles a bag of random tiles."""
    rng = rng or random.Random(seed)
    bag = [random_tile(rng) for _ in range(size)]
    rng.shuffle(bag)
    return bag


def deal(bag: List[Tile], hand: List[Tile], count: int) -> int:
    """Moves up to `count` tiles from the end of the bag into the hand."""
    dealt = 0
    while dealt < count and bag:
        hand.append(bag.pop())
        dealt += 1
    return dealt


def draw_one(bag: List[Tile], hand: List[Tile]) -> bool:
    """Draws a single tile. False means the bag was empty and nothing was drawn."""
    return deal(bag, hand, 1) == 1
