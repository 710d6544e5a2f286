from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from .board import Board, Cell
from .placement import can_place, count_matching_sides
from .state import Session
from .tile import Tile


@dataclass(frozen=True)
class Move:
    tile_index: int
    cell: Cell
    rotation: int
    score: int  # occupied neighbors, not yet multiplied by points per side


def find_best_move(board: Board, hand: List[Tile]) -> Optional[Move]:
    """Greedy one-ply search over every (tile, rotation, frontier cell).

    Iterates hand order, then rotation 0..2, then the frontier. Only a strictly
    higher score replaces the current best, so the first move seen wins ties.
    Tile rotations are left as they were found.
    """
    best: Optional[Move] = None
    best_score = -1
    candidates = board.frontier()

    for tile_index, tile in enumerate(hand):
        original = tile.rotation
        try:
            for rotation in range(3):
                tile.rotation = rotation
                for cell in candidates:
                    if not can_place(board, cell, tile).valid:
                        continue
                    score = count_matching_sides(board, cell)
                    if score > best_score:
                        best_score = score
                        best = Move(tile_index=tile_index, cell=cell, rotation=rotation, score=score)
        finally:
            tile.rotation = original
    return best


def choose_action(session: Session) -> Optional[Move]:
    """Picks the move for the active player; None means pass."""
    return find_best_move(session.board, session.current_hand())
