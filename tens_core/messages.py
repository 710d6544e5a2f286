from __future__ import annotations

from types import MappingProxyType
from typing import Any, Mapping

# English catalog. Renderers may pass another mapping with the same keys.
MESSAGES_EN: Mapping[str, str] = MappingProxyType({
    "error": "Something went wrong",
    # Placement
    "cellOccupied": "Cell occupied",
    "colorsDontMatch": "Colors don't match ({color1} vs {color2})",
    "sumNotTen": "Sum is {sum}, not 10",
    "mustBeAdjacent": "Must be adjacent to existing tile",
    # Turns
    "noTileSelected": "Select a tile first",
    "gameIsOver": "The game is over",
    "notAutomatedTurn": "The current player is not a CPU",
    "pointsScored": "+{n} points!",
    "passedAndDrew": "{name} passed and drew a tile",
    "passedNoDraw": "{name} passed (no tiles left to draw)",
    "playerTurn": "{name}'s Turn",
    "itsATie": "It's a tie!",
    "playerWins": "{name} wins!",
    "nPoints": "{n} points",
    "defaultPlayer": "Player {n}",
    "defaultCPU": "CPU {n}",
    # Online
    "storeUnavailable": "Online mode not available. Check your connection.",
    "failedToHost": "Failed to create room. Please try again.",
    "failedToJoin": "Failed to join room. Please try again.",
    "roomNotFound": "Room not found. Check the code and try again.",
    "gameAlreadyStarted": "This game has already started.",
    "roomFull": "This room is full.",
    "enterValidCode": "Please enter a valid room code.",
    "notYourTurn": "It's not your turn!",
    "playerJoined": "{name} joined the game",
    "playerLeft": "{name} left the game",
})


def format_message(key: str, catalog: Mapping[str, str] = MESSAGES_EN, **params: Any) -> str:
    """Renders a catalog entry; unknown keys fall back to the key itself."""
    template = catalog.get(key, key)
    try:
        return template.format(**params)
    except (KeyError, IndexError):
        return template
