from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Tuple


class Color(str, Enum):
    ORANGE = "orange"
    BLUE = "blue"
    RED = "red"
    GREEN = "green"
    PURPLE = "purple"
    YELLOW = "yellow"


COLORS: Tuple[Color, ...] = tuple(Color)

MIN_VALUE = 0
MAX_VALUE = 10


@dataclass(frozen=True)
class Side:
    """One edge of a tile: a color and a value in 0..10."""
    value: int
    color: Color

    def __post_init__(self) -> None:
        if not (MIN_VALUE <= self.value <= MAX_VALUE):
            raise ValueError(f"Side value out of range: {self.value}")
        # Accept plain strings coming off the wire
        object.__setattr__(self, "color", Color(self.color))


@dataclass
class Tile:
    """A triangular tile with three sides and a rotation.

    Side indices: 0 = base, 1 = left, 2 = right. The rotation (0, 1 or 2,
    each a 120 degree turn) shifts which underlying side is reported at each
    logical index.
    """
    sides: Tuple[Side, Side, Side]
    rotation: int = 0

    def __post_init__(self) -> None:
        self.sides = tuple(self.sides)  # type: ignore[assignment]
        if len(self.sides) != 3:
            raise ValueError(f"A tile has exactly 3 sides, got {len(self.sides)}")
        if self.rotation not in (0, 1, 2):
            raise ValueError(f"Rotation must be 0, 1 or 2, got {self.rotation}")

    def rotate(self) -> None:
        """Rotates the tile 120 degrees clockwise."""
        self.rotation = (self.rotation + 1) % 3

    def get_side(self, position: int) -> Side:
        """Gets the side reported at a logical position after rotation."""
        return self.sides[(position + self.rotation) % 3]

    def clone(self) -> "Tile":
        return Tile(sides=self.sides, rotation=self.rotation)

    def label(self) -> str:
        """Short text form, e.g. 'red4/blue6/green0', in logical side order."""
        return "/".join(f"{s.color.value}{s.value}" for s in (self.get_side(i) for i in range(3)))
