from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

from .ai import choose_action
from .board import ANCHOR, Cell
from .config import DEFAULT_CONFIG, GameConfig
from .deal import create_tile_bag, deal, draw_one, random_tile
from .errors import GameOver, NoTileSelected, NotAutomatedTurn, NotYourTurn, PlacementError
from .placement import can_place, placement_points
from .scheduler import Scheduler
from .state import Phase, Session
from .sync import LocalAdapter, NetworkAdapter

log = logging.getLogger(__name__)

ANNOUNCE_TASK = "announce"
CPU_TASK = "cpu-move"


@dataclass(frozen=True)
class GameEvent:
    kind: str
    message_key: str
    params: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ActionOutcome:
    kind: str  # "place" or "pass"
    slot: int
    points: int = 0
    cell: Optional[Cell] = None
    drew: bool = False
    game_over: bool = False


@dataclass(frozen=True)
class GameResult:
    winners: List[int]
    scores: List[int]

    @property
    def tie(self) -> bool:
        return len(self.winners) > 1


Listener = Callable[[GameEvent], None]


class TurnStateMachine:
    """Owns the session and drives it from setup, through turns, to the end.

    Every action is either a placement or a pass. Both end with the same
    game-over check (any empty hand ends the game), then either end the game
    or hand the turn to the next slot. CPU slots act through the same entry
    points as humans after a short cancellable delay.
    """

    def __init__(
        self,
        config: GameConfig = DEFAULT_CONFIG,
        adapter: Optional[NetworkAdapter] = None,
        scheduler: Optional[Scheduler] = None,
    ) -> None:
        self.config = config
        self.adapter = adapter or LocalAdapter()
        self.scheduler = scheduler or Scheduler()
        self.session = Session()
        self.phase = Phase.SETUP
        self.selected: Optional[int] = None
        self.thinking = False
        self._listeners: List[Listener] = []
        self.adapter.attach(self)

    # ---------- Listeners ----------

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def _emit(self, kind: str, message_key: str = "", **params: Any) -> None:
        event = GameEvent(kind=kind, message_key=message_key or kind, params=params)
        for listener in list(self._listeners):
            listener(event)

    # ---------- Session lifecycle ----------

    def new_game(
        self,
        names: Sequence[str],
        automated: Optional[Sequence[bool]] = None,
        seed: Optional[int] = None,
        rng: Optional[random.Random] = None,
    ) -> Session:
        """Starts a fresh session, invalidating every pending timer of the previous one."""
        count = len(names)
        if not (self.config.min_players <= count <= self.config.max_players):
            raise ValueError(
                f"Player count must be between {self.config.min_players} and {self.config.max_players}, got {count}"
            )
        flags = list(automated) if automated is not None else [False] * count
        if len(flags) != count:
            raise ValueError("automated flags must match the number of players")

        self.scheduler.reset()
        rng = rng or random.Random(seed)
        session = Session(
            player_count=count,
            current_player=0,
            tile_bag=create_tile_bag(size=self.config.bag_size, rng=rng),
            hands=[[] for _ in range(count)],
            scores=[0] * count,
            player_names=[name or f"Player {i + 1}" for i, name in enumerate(names)],
            automated=[bool(f) for f in flags],
            started=True,
        )
        for hand in session.hands:
            deal(session.tile_bag, hand, self.config.hand_size)
        if self.config.starting_tile:
            session.board.place(ANCHOR, random_tile(rng))

        self.session = session
        self.phase = Phase.IN_PROGRESS
        self.selected = None
        self.thinking = False
        log.info("new game: %d players, %d tiles in bag", count, len(session.tile_bag))
        self._emit("new_game", "newGame", players=list(session.player_names))
        self.adapter.publish(self.session)
        self._announce_turn()
        return session

    def load_session(self, session: Session) -> None:
        """Adopts an existing session (e.g. one decoded from a request) as the local state."""
        self.scheduler.reset()
        self.session = session
        self.selected = None
        self.thinking = False
        self.phase = self._phase_for(session)

    def apply_snapshot(self, session: Session) -> None:
        """Overwrites the local session with a remote snapshot."""
        self.scheduler.reset()
        self.session = session
        self.selected = None
        self.thinking = False
        self.phase = self._phase_for(session)
        self._emit("remote_update", "remoteUpdate", current=session.current_player)
        if self.phase is Phase.ENDED:
            self._emit_game_over()
        elif self.phase is Phase.IN_PROGRESS and self.adapter.is_my_turn(session):
            self._emit("player_turn", "playerTurn", name=session.player_name(session.current_player))

    @staticmethod
    def _phase_for(session: Session) -> Phase:
        if session.hands and session.is_game_over():
            return Phase.ENDED
        return Phase.IN_PROGRESS if session.started else Phase.SETUP

    # ---------- Queries ----------

    def is_game_over(self) -> bool:
        return self.session.is_game_over()

    def result(self) -> GameResult:
        return GameResult(winners=self.session.winners(), scores=list(self.session.scores))

    def current_hand(self):
        return self.session.current_hand()

    # ---------- Selection (cosmetic) ----------

    def select_tile(self, index: int) -> bool:
        """Selects a hand tile; selecting the selected tile again deselects it."""
        if self.phase is not Phase.IN_PROGRESS or not self._may_act():
            return False
        hand = self.session.current_hand()
        if not (0 <= index < len(hand)):
            raise ValueError(f"No tile at hand index {index}")
        self.selected = None if self.selected == index else index
        return True

    def rotate_selected(self) -> bool:
        if self.selected is None or self.phase is not Phase.IN_PROGRESS or not self._may_act():
            return False
        self.session.current_hand()[self.selected].rotate()
        return True

    # ---------- Actions ----------

    def place(self, cell: Cell) -> ActionOutcome:
        """Places the selected tile on a cell."""
        self._check_can_act()
        if self.selected is None:
            raise NoTileSelected()
        return self._place(self.selected, Cell(*cell))

    def place_tile(self, index: int, cell: Cell, rotation: Optional[int] = None) -> ActionOutcome:
        """Places a hand tile directly, optionally setting its rotation first."""
        self._check_can_act()
        hand = self.session.current_hand()
        if not (0 <= index < len(hand)):
            raise ValueError(f"No tile at hand index {index}")
        if rotation is None:
            return self._place(index, Cell(*cell))
        tile = hand[index]
        previous = tile.rotation
        tile.rotation = rotation % 3
        try:
            return self._place(index, Cell(*cell))
        except PlacementError:
            tile.rotation = previous
            raise

    def pass_turn(self) -> ActionOutcome:
        """Draws one tile if the bag has any, then ends the turn."""
        self._check_can_act()
        session = self.session
        slot = session.current_player
        name = session.player_name(slot)
        drew = draw_one(session.tile_bag, session.hands[slot])
        self.selected = None
        if drew:
            self._emit("passed", "passedAndDrew", name=name, slot=slot)
        else:
            self._emit("passed", "passedNoDraw", name=name, slot=slot)
        return self._finish(ActionOutcome(kind="pass", slot=slot, drew=drew))

    def _place(self, index: int, cell: Cell) -> ActionOutcome:
        session = self.session
        slot = session.current_player
        hand = session.hands[slot]
        tile = hand[index]
        result = can_place(session.board, cell, tile)
        if not result.valid:
            raise result.error()

        points = placement_points(session.board, cell)
        session.scores[slot] += points
        session.board.place(cell, tile)
        hand.pop(index)
        self.selected = None
        self._emit("placed", "pointsScored", n=points, slot=slot, cell=tuple(cell))
        return self._finish(ActionOutcome(kind="place", slot=slot, points=points, cell=cell))

    def _finish(self, outcome: ActionOutcome) -> ActionOutcome:
        if self.session.is_game_over():
            self._end_game()
            outcome = ActionOutcome(
                kind=outcome.kind,
                slot=outcome.slot,
                points=outcome.points,
                cell=outcome.cell,
                drew=outcome.drew,
                game_over=True,
            )
        else:
            self._next_turn()
        self.adapter.publish(self.session)
        return outcome

    def _check_can_act(self) -> None:
        if self.phase is not Phase.IN_PROGRESS:
            raise GameOver()
        self.adapter.check_turn(self.session)
        if not self._may_act():
            raise NotYourTurn()

    def _may_act(self) -> bool:
        # While a CPU slot is active only its own scheduled move may act.
        return not self.session.is_automated(self.session.current_player) or self.thinking

    def _next_turn(self) -> None:
        session = self.session
        session.current_player = (session.current_player + 1) % session.player_count
        self.selected = None
        self.thinking = False
        self.scheduler.cancel(CPU_TASK)
        self._announce_turn()

    def _end_game(self) -> None:
        self.phase = Phase.ENDED
        self.session.started = False
        self.selected = None
        self.thinking = False
        self.scheduler.cancel(CPU_TASK)
        self.scheduler.cancel(ANNOUNCE_TASK)
        log.info("game over: scores %s", self.session.scores)
        self._emit_game_over()

    def _emit_game_over(self) -> None:
        result = self.result()
        if result.tie:
            self._emit("game_over", "itsATie", winners=result.winners, scores=result.scores)
        else:
            winner = result.winners[0] if result.winners else 0
            self._emit(
                "game_over",
                "playerWins",
                name=self.session.player_name(winner),
                winners=result.winners,
                scores=result.scores,
            )

    # ---------- Turn announcements and CPU turns ----------

    def _announce_turn(self) -> None:
        session = self.session
        slot = session.current_player
        automated = session.is_automated(slot)
        self._emit("player_turn", "playerTurn", name=session.player_name(slot), slot=slot)
        duration = self.config.announce_cpu_seconds if automated else self.config.announce_seconds
        self.scheduler.schedule(ANNOUNCE_TASK, duration, self._after_announcement)

    def dismiss_announcement(self) -> None:
        """Dismisses the turn announcement early.

        Cancels the auto-dismiss timer and continues the turn straight away.
        Once the announcement has expired this does nothing; a CPU move that
        is already queued keeps its slot.
        """
        if not self.scheduler.cancel(ANNOUNCE_TASK):
            return
        if self.scheduler.cancel(CPU_TASK):
            self.thinking = False
        self._after_announcement()

    def _after_announcement(self) -> None:
        if self.phase is not Phase.IN_PROGRESS or self.adapter.is_online:
            return
        if self.session.is_automated(self.session.current_player):
            self.schedule_cpu_turn()

    def schedule_cpu_turn(self) -> bool:
        """Queues the CPU move after the configured delay. Only one may be pending."""
        if self.thinking:
            return False
        self.thinking = True
        self.scheduler.schedule(CPU_TASK, self.config.cpu_delay, self._run_cpu_turn)
        return True

    def _run_cpu_turn(self) -> None:
        if self.phase is not Phase.IN_PROGRESS or self.session.is_game_over():
            self.thinking = False
            return
        self.play_automated_turn()

    def play_automated_turn(self) -> ActionOutcome:
        """Runs the move search for the active CPU slot and applies the result."""
        if self.phase is not Phase.IN_PROGRESS:
            raise GameOver()
        if not self.session.is_automated(self.session.current_player):
            raise NotAutomatedTurn()
        self.thinking = True
        move = choose_action(self.session)
        if move is None:
            return self.pass_turn()
        return self.place_tile(move.tile_index, move.cell, move.rotation)
