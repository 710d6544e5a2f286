from __future__ import annotations

# Facade module that re-exports Tens core functionality.
# The Flask app and the tests import from here; single-responsibility
# modules live under tens_core/*.

from tens_core.tile import Color, COLORS, Side, Tile
from tens_core.board import ANCHOR, Adjacency, Board, Cell, PlacedTile, adjacent_cells, points_up
from tens_core.placement import (
    POINTS_PER_SIDE,
    PlacementResult,
    can_place,
    count_matching_sides,
    placement_points,
    valid_placements,
)
from tens_core.deal import BAG_SIZE, create_tile_bag, deal, draw_one, random_tile
from tens_core.state import Phase, Session
from tens_core.ai import Move, choose_action, find_best_move
from tens_core.codec import (
    board_to_json,
    json_to_board,
    json_to_session,
    json_to_tile,
    session_to_json,
    tile_to_json,
)
from tens_core.config import COLOR_HEX, DEFAULT_CONFIG, PLAYER_COLORS, GameConfig
from tens_core.errors import (
    GameAlreadyStarted,
    GameOver,
    InvalidCode,
    NetworkError,
    NoTileSelected,
    NotAutomatedTurn,
    NotYourTurn,
    PlacementError,
    PlacementReason,
    RoomFull,
    RoomNotFound,
    StoreUnavailable,
    TensError,
)
from tens_core.messages import MESSAGES_EN, format_message
from tens_core.scheduler import AsyncioScheduler, Scheduler
from tens_core.store import InMemoryStore, RealtimeStore, StoreEvent
from tens_core.sync import LocalAdapter, NetworkAdapter, RoomClient, generate_room_code
from tens_core.turns import ActionOutcome, GameEvent, GameResult, TurnStateMachine


def main() -> None:
    # CLI driver delegated to tens_core.cli
    from tens_core.cli import main as _main
    _main()


if __name__ == '__main__':
    main()
