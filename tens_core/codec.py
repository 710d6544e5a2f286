from __future__ import annotations

from typing import Any, Dict, List

from .board import Board, Cell
from .state import Session
from .tile import Side, Tile


def tile_to_json(tile: Tile) -> Dict[str, Any]:
    return {
        "sides": [{"value": int(s.value), "color": s.color.value} for s in tile.sides],
        "rotation": int(tile.rotation),
    }


def json_to_tile(obj: Dict[str, Any]) -> Tile:
    sides = tuple(Side(value=int(s["value"]), color=s["color"]) for s in obj["sides"])
    return Tile(sides=sides, rotation=int(obj.get("rotation", 0)))  # type: ignore[arg-type]


def cell_key(cell: Cell) -> str:
    return f"{cell[0]},{cell[1]}"


def parse_cell_key(key: str) -> Cell:
    r_s, c_s = key.split(",")
    return Cell(int(r_s), int(c_s))


def board_to_json(board: Board) -> Dict[str, Any]:
    return {
        cell_key(cell): {"tile": tile_to_json(placed.tile), "orientationUp": bool(placed.points_up)}
        for cell, placed in board.items()
    }


def json_to_board(obj: Dict[str, Any]) -> Board:
    board = Board()
    for key, placed in (obj or {}).items():
        # Orientation is derived from the cell; the wire flag is informational.
        board.place(parse_cell_key(key), json_to_tile(placed["tile"]))
    return board


def session_to_json(session: Session) -> Dict[str, Any]:
    """Serializes the entire session (a snapshot, never a delta)."""
    return {
        "currentPlayerSlot": int(session.current_player),
        "scores": [int(s) for s in session.scores],
        "playerNames": list(session.player_names),
        "playerCount": int(session.player_count),
        "tileBag": [tile_to_json(t) for t in session.tile_bag],
        "board": board_to_json(session.board),
        "hands": [[tile_to_json(t) for t in hand] for hand in session.hands],
        "started": bool(session.started),
    }


def json_to_session(obj: Dict[str, Any], automated: List[bool] | None = None) -> Session:
    """Decodes a snapshot. Raises ValueError when slots and hands disagree."""
    player_count = int(obj["playerCount"])
    if player_count < 1:
        raise ValueError(f"playerCount must be at least 1, got {player_count}")
    current = int(obj.get("currentPlayerSlot", 0))
    if not (0 <= current < player_count):
        raise ValueError(f"currentPlayerSlot {current} out of range for {player_count} players")
    hands = [[json_to_tile(t) for t in hand] for hand in (obj.get("hands") or [])]
    if len(hands) > player_count:
        raise ValueError(f"{len(hands)} hands for {player_count} players")
    # Stores may drop empty lists; keep one hand per slot.
    while len(hands) < player_count:
        hands.append([])
    scores = [int(s) for s in (obj.get("scores") or [])]
    while len(scores) < player_count:
        scores.append(0)
    return Session(
        player_count=player_count,
        current_player=current,
        tile_bag=[json_to_tile(t) for t in (obj.get("tileBag") or [])],
        board=json_to_board(obj.get("board") or {}),
        hands=hands,
        scores=scores,
        player_names=[str(n) for n in (obj.get("playerNames") or [])],
        automated=list(automated) if automated is not None else [False] * player_count,
        started=bool(obj.get("started", False)),
    )
