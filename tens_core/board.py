from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterator, List, NamedTuple, Optional, Set

from .tile import Tile


class Cell(NamedTuple):
    row: int
    col: int


class Adjacency(NamedTuple):
    cell: Cell
    my_side: int
    their_side: int


ANCHOR = Cell(0, 0)


def points_up(cell: Cell) -> bool:
    """A cell points up iff row + col is even."""
    return (cell[0] + cell[1]) % 2 == 0


def adjacent_cells(cell: Cell) -> List[Adjacency]:
    """Gets the three neighbors of a cell and which sides touch.

    Side 0 always faces the cell directly below (pointing up) or above
    (pointing down); sides 1 and 2 face left and right.
    """
    r, c = cell
    if points_up(cell):
        return [
            Adjacency(Cell(r + 1, c), 0, 0),
            Adjacency(Cell(r, c - 1), 1, 2),
            Adjacency(Cell(r, c + 1), 2, 1),
        ]
    return [
        Adjacency(Cell(r - 1, c), 0, 0),
        Adjacency(Cell(r, c - 1), 1, 2),
        Adjacency(Cell(r, c + 1), 2, 1),
    ]


@dataclass(frozen=True)
class PlacedTile:
    tile: Tile
    points_up: bool


class Board:
    """Placed tiles keyed by cell. Iteration order carries no meaning."""

    def __init__(self) -> None:
        self._tiles: Dict[Cell, PlacedTile] = {}

    def __len__(self) -> int:
        return len(self._tiles)

    def __contains__(self, cell: object) -> bool:
        return cell in self._tiles

    def is_empty(self) -> bool:
        return not self._tiles

    def has(self, cell: Cell) -> bool:
        return Cell(*cell) in self._tiles

    def get(self, cell: Cell) -> Optional[PlacedTile]:
        return self._tiles.get(Cell(*cell))

    def cells(self) -> Iterator[Cell]:
        return iter(list(self._tiles))

    def items(self) -> Iterator[tuple]:
        return iter(list(self._tiles.items()))

    def place(self, cell: Cell, tile: Tile) -> PlacedTile:
        """Stores a snapshot of the tile. Legality is checked by the caller."""
        cell = Cell(*cell)
        if cell in self._tiles:
            raise ValueError(f"Cell {cell} already occupied")
        placed = PlacedTile(tile=tile.clone(), points_up=points_up(cell))
        self._tiles[cell] = placed
        return placed

    def clear(self) -> None:
        self._tiles.clear()

    def frontier(self) -> List[Cell]:
        """Empty cells touching at least one placed tile, each listed once.

        On an empty board the only candidate is the anchor cell (0, 0).
        """
        if not self._tiles:
            return [ANCHOR]
        seen: Set[Cell] = set()
        out: List[Cell] = []
        for cell in self._tiles:
            for adj in adjacent_cells(cell):
                if adj.cell in seen:
                    continue
                seen.add(adj.cell)
                if adj.cell not in self._tiles:
                    out.append(adj.cell)
        return out

    def pretty(self) -> str:
        """Generates a human-readable listing of the placed tiles."""
        if not self._tiles:
            return "(empty board)"
        lines: List[str] = []
        for cell in sorted(self._tiles):
            placed = self._tiles[cell]
            arrow = "^" if placed.points_up else "v"
            lines.append(f"{cell.row:>3},{cell.col:<3} {arrow} {placed.tile.label()}")
        return "\n".join(lines)
