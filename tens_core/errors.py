from __future__ import annotations

from enum import Enum
from typing import Any

from .messages import format_message


class PlacementReason(str, Enum):
    CELL_OCCUPIED = "cellOccupied"
    COLOR_MISMATCH = "colorsDontMatch"
    SUM_MISMATCH = "sumNotTen"
    NOT_ADJACENT = "mustBeAdjacent"


class TensError(Exception):
    """Base error. `key` names the message-catalog entry used to render it."""
    key = "error"

    def __init__(self, key: str | None = None, **params: Any) -> None:
        if key is not None:
            self.key = key
        self.params = params
        super().__init__(self.describe())

    def describe(self) -> str:
        return format_message(self.key, **self.params)


class PlacementError(TensError):
    """A placement was rejected. Never mutates state."""

    def __init__(self, reason: PlacementReason, **params: Any) -> None:
        self.reason = reason
        super().__init__(reason.value, **params)


class NoTileSelected(TensError):
    key = "noTileSelected"


class GameOver(TensError):
    key = "gameIsOver"


class NotAutomatedTurn(TensError):
    key = "notAutomatedTurn"


class NetworkError(TensError):
    key = "failedToJoin"


class StoreUnavailable(NetworkError):
    key = "storeUnavailable"


class RoomNotFound(NetworkError):
    key = "roomNotFound"


class RoomFull(NetworkError):
    key = "roomFull"


class GameAlreadyStarted(NetworkError):
    key = "gameAlreadyStarted"


class InvalidCode(NetworkError):
    key = "enterValidCode"


class NotYourTurn(NetworkError):
    key = "notYourTurn"
