from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List

from .board import Board
from .tile import Tile


class Phase(str, Enum):
    SETUP = "setup"
    IN_PROGRESS = "in_progress"
    ENDED = "ended"


@dataclass
class Session:
    """Represents the dynamic state of a game: board, bag, hands, scores and whose turn it is."""
    player_count: int = 2
    current_player: int = 0
    tile_bag: List[Tile] = field(default_factory=list)
    board: Board = field(default_factory=Board)
    hands: List[List[Tile]] = field(default_factory=list)
    scores: List[int] = field(default_factory=list)
    player_names: List[str] = field(default_factory=list)
    automated: List[bool] = field(default_factory=list)
    started: bool = False

    def current_hand(self) -> List[Tile]:
        return self.hands[self.current_player]

    def player_name(self, slot: int) -> str:
        if 0 <= slot < len(self.player_names) and self.player_names[slot]:
            return self.player_names[slot]
        return f"Player {slot + 1}"

    def is_automated(self, slot: int) -> bool:
        return 0 <= slot < len(self.automated) and bool(self.automated[slot])

    def is_game_over(self) -> bool:
        """The game ends as soon as any player's hand is empty."""
        return any(len(hand) == 0 for hand in self.hands)

    def winners(self) -> List[int]:
        if not self.scores:
            return []
        best = max(self.scores)
        return [slot for slot, score in enumerate(self.scores) if score == best]

    def tile_count(self) -> int:
        return len(self.tile_bag) + len(self.board) + sum(len(h) for h in self.hands)
