from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from .board import Board, Cell, adjacent_cells
from .errors import PlacementError, PlacementReason
from .tile import Tile

TARGET_SUM = 10
POINTS_PER_SIDE = 10


@dataclass(frozen=True)
class PlacementResult:
    valid: bool
    reason: Optional[PlacementReason] = None
    params: Dict[str, Any] = field(default_factory=dict)

    def error(self) -> PlacementError:
        if self.valid or self.reason is None:
            raise ValueError("valid placement has no error")
        return PlacementError(self.reason, **self.params)


VALID = PlacementResult(True)


def can_place(board: Board, cell: Cell, tile: Tile) -> PlacementResult:
    """Checks whether a tile (at its current rotation) may go on a cell.

    Rules, in order: the cell must be free; anything goes on an empty board;
    every occupied neighbor must share the touching side's color and the two
    values must sum to ten (first failure wins, in adjacency order); at least
    one neighbor must be occupied.
    """
    cell = Cell(*cell)
    if board.has(cell):
        return PlacementResult(False, PlacementReason.CELL_OCCUPIED)
    if board.is_empty():
        return VALID

    has_neighbor = False
    for adj in adjacent_cells(cell):
        neighbor = board.get(adj.cell)
        if neighbor is None:
            continue
        has_neighbor = True
        mine = tile.get_side(adj.my_side)
        theirs = neighbor.tile.get_side(adj.their_side)
        if mine.color != theirs.color:
            return PlacementResult(
                False,
                PlacementReason.COLOR_MISMATCH,
                {"color1": mine.color.value, "color2": theirs.color.value},
            )
        total = mine.value + theirs.value
        if total != TARGET_SUM:
            return PlacementResult(False, PlacementReason.SUM_MISMATCH, {"sum": total})

    if not has_neighbor:
        return PlacementResult(False, PlacementReason.NOT_ADJACENT)
    return VALID


def count_matching_sides(board: Board, cell: Cell) -> int:
    """Counts occupied neighbors (0..3). Used for scoring only."""
    return sum(1 for adj in adjacent_cells(Cell(*cell)) if board.has(adj.cell))


def placement_points(board: Board, cell: Cell) -> int:
    return POINTS_PER_SIDE * count_matching_sides(board, cell)


def valid_placements(board: Board, tile: Tile) -> List[Tuple[Cell, int]]:
    """All legal (cell, rotation) pairs for a tile. The tile's rotation is restored."""
    out: List[Tuple[Cell, int]] = []
    original = tile.rotation
    try:
        for cell in board.frontier():
            for rotation in range(3):
                tile.rotation = rotation
                if can_place(board, cell, tile).valid:
                    out.append((cell, rotation))
    finally:
        tile.rotation = original
    return out
