from __future__ import annotations

import asyncio
import logging
import random
import string
import time
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Set

from .codec import json_to_session, session_to_json
from .errors import GameAlreadyStarted, InvalidCode, NotYourTurn, RoomFull, RoomNotFound, StoreUnavailable
from .state import Session
from .store import RealtimeStore, StoreEvent, Subscription

if TYPE_CHECKING:
    from .turns import TurnStateMachine

log = logging.getLogger(__name__)

# Avoids look-alike characters (0/O, 1/I/L)
ROOM_CODE_ALPHABET = "ABCDEFGHJKMNPQRSTUVWXYZ23456789"
ROOM_CODE_LENGTH = 6
MIN_CODE_LENGTH = 4
ROOMS_ROOT = "games"

STATUS_WAITING = "waiting"
STATUS_PLAYING = "playing"

ORIGIN_FIELD = "lastUpdatedBy"
TIMESTAMP_FIELD = "timestamp"


def generate_room_code(rng: Optional[random.Random] = None) -> str:
    rng = rng or random.Random()
    return "".join(rng.choice(ROOM_CODE_ALPHABET) for _ in range(ROOM_CODE_LENGTH))


def generate_player_id(rng: Optional[random.Random] = None) -> str:
    rng = rng or random.Random()
    suffix = "".join(rng.choice(string.ascii_lowercase + string.digits) for _ in range(9))
    return f"p_{suffix}{int(time.time() * 1000):x}"


def normalize_room_code(code: str) -> str:
    return (code or "").strip().upper()


class NetworkAdapter:
    """How a TurnStateMachine talks to the outside world.

    Chosen once when the machine is built. The local adapter never gates
    turns and never publishes; the room client gates on its own slot and
    broadcasts a full snapshot after every mutation.
    """

    is_online = False

    def __init__(self) -> None:
        self.machine: Optional["TurnStateMachine"] = None

    def attach(self, machine: "TurnStateMachine") -> None:
        self.machine = machine

    def is_my_turn(self, session: Session) -> bool:
        return True

    def check_turn(self, session: Session) -> None:
        if not self.is_my_turn(session):
            raise NotYourTurn()

    def publish(self, session: Session) -> None:
        pass


class LocalAdapter(NetworkAdapter):
    """Hot-seat play on one device."""


class RoomClient(NetworkAdapter):
    """One client's view of an online room in a real-time store.

    Room layout under games/<code>:
      settings: {playerCount, hostId, status}
      players:  {<player id>: {name, slot, connected}}
      state:    serialized session + lastUpdatedBy + timestamp
    """

    def __init__(
        self,
        store: RealtimeStore,
        player_id: Optional[str] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        super().__init__()
        self.store = store
        self.rng = rng or random.Random()
        self.player_id = player_id or generate_player_id(self.rng)
        self.room_code: Optional[str] = None
        self.slot: Optional[int] = None
        self.is_host = False
        self.player_name = ""
        self.expected_players = 0
        self.players: Dict[str, Dict[str, Any]] = {}
        self.watermark = 0
        self._subs: List[Subscription] = []
        self._pending: Set[asyncio.Task] = set()
        self.on_player_joined: List[Callable[[Dict[str, Any]], None]] = []
        self.on_player_updated: List[Callable[[Dict[str, Any]], None]] = []
        self.on_player_left: List[Callable[[Dict[str, Any]], None]] = []
        self.on_game_started: List[Callable[[], None]] = []

    @property
    def is_online(self) -> bool:  # type: ignore[override]
        return self.room_code is not None

    def _path(self, *parts: str) -> str:
        return "/".join((ROOMS_ROOT, self.room_code or "") + parts)

    # ---------- Room lifecycle ----------

    async def host_room(self, name: str, player_count: int) -> str:
        """Creates a room with this client in slot 0 and returns its code."""
        code = generate_room_code(self.rng)
        room = {
            "settings": {"playerCount": int(player_count), "hostId": self.player_id, "status": STATUS_WAITING},
            "players": {self.player_id: {"name": name, "slot": 0, "connected": True}},
        }
        # Retry on the unlikely event of a code collision
        for _ in range(10):
            if await self.store.create(f"{ROOMS_ROOT}/{code}", room):
                break
            code = generate_room_code(self.rng)
        else:
            raise StoreUnavailable()

        self.room_code = code
        self.is_host = True
        self.slot = 0
        self.player_name = name
        self.expected_players = int(player_count)
        self.players = {self.player_id: dict(room["players"][self.player_id])}
        self.watermark = 0
        self._listen()
        log.info("hosted room %s for %d players", code, player_count)
        return code

    async def join_room(self, code: str, name: str) -> Dict[str, Any]:
        """Joins a waiting room in the lowest free slot."""
        code = normalize_room_code(code)
        if len(code) < MIN_CODE_LENGTH or not code.isalnum():
            raise InvalidCode()
        room = await self.store.get(f"{ROOMS_ROOT}/{code}")
        if not room:
            raise RoomNotFound()
        settings = room.get("settings") or {}
        if settings.get("status") != STATUS_WAITING:
            raise GameAlreadyStarted()

        players = room.get("players") or {}
        taken = {int(p.get("slot", -1)) for p in players.values()}
        slot = 0
        while slot in taken:
            slot += 1
        expected = int(settings.get("playerCount", 0))
        if slot >= expected:
            raise RoomFull()

        self.room_code = code
        record = {"name": name, "slot": slot, "connected": True}
        try:
            await self.store.set(self._path("players", self.player_id), record)
        except StoreUnavailable:
            self.room_code = None
            raise

        self.is_host = False
        self.slot = slot
        self.player_name = name
        self.expected_players = expected
        self.players = {pid: dict(p) for pid, p in players.items()}
        self.players[self.player_id] = dict(record)
        self.watermark = 0
        self._listen()
        log.info("joined room %s as slot %d", code, slot)
        return room

    def _listen(self) -> None:
        self.store.on_disconnect(self.player_id, self._path("players", self.player_id, "connected"), False)
        self._subs.append(self.store.subscribe(self._path("players"), self._on_players_event))
        self._subs.append(self.store.subscribe(self._path("settings", "status"), self._on_status_event))
        self._subs.append(self.store.subscribe(self._path("state"), self._on_state_event))

    async def start_game(self) -> Session:
        """Host only: flips the room to playing and broadcasts the first snapshot."""
        if not self.is_host or self.machine is None:
            raise RuntimeError("only the host can start the game")
        names = []
        for slot in range(self.expected_players):
            player = next((p for p in self.players.values() if p.get("slot") == slot), None)
            names.append(player["name"] if player and player.get("name") else f"Player {slot + 1}")
        await self.store.set(self._path("settings", "status"), STATUS_PLAYING)
        # Online games have no CPU slots
        session = self.machine.new_game(names, [False] * len(names), rng=self.rng)
        await self.flush()
        return session

    async def leave_room(self) -> None:
        """Removes this player from the room (best effort) and stops listening."""
        if self.room_code is not None:
            try:
                await self.store.remove(self._path("players", self.player_id))
            except StoreUnavailable as e:
                log.warning("failed to remove player from room %s: %s", self.room_code, e)
        self._cleanup()

    async def delete_room(self) -> None:
        if self.is_host and self.room_code is not None:
            try:
                await self.store.remove(self._path())
            except StoreUnavailable as e:
                log.warning("failed to delete room %s: %s", self.room_code, e)
        self._cleanup()

    def _cleanup(self) -> None:
        for sub in self._subs:
            sub.cancel()
        self._subs = []
        self.room_code = None
        self.is_host = False
        self.slot = None
        self.players = {}
        self.watermark = 0

    # ---------- Lobby ----------

    def connected_players(self) -> List[Dict[str, Any]]:
        return sorted((p for p in self.players.values() if p.get("connected")), key=lambda p: p.get("slot", 0))

    def connected_count(self) -> int:
        return len(self.connected_players())

    async def is_room_ready(self) -> bool:
        if self.room_code is None:
            return False
        settings = await self.store.get(self._path("settings"))
        if not settings:
            return False
        return self.connected_count() >= int(settings.get("playerCount", 0))

    def _on_players_event(self, event: StoreEvent) -> None:
        if event.kind == "added":
            if event.key not in self.players:
                self.players[event.key] = dict(event.value)
                for cb in self.on_player_joined:
                    cb(event.value)
        elif event.kind == "changed":
            self.players[event.key] = dict(event.value)
            for cb in self.on_player_updated:
                cb(event.value)
        elif event.kind == "removed":
            data = self.players.pop(event.key, None)
            if data is not None:
                for cb in self.on_player_left:
                    cb(data)

    def _on_status_event(self, event: StoreEvent) -> None:
        if event.kind == "value" and event.value == STATUS_PLAYING and not self.is_host:
            for cb in self.on_game_started:
                cb()

    # ---------- Replication ----------

    def is_my_turn(self, session: Session) -> bool:
        if not self.is_online:
            return True
        return session.current_player == self.slot

    def publish(self, session: Session) -> None:
        """Serializes the session now and sends it in the background."""
        if not self.is_online:
            return
        snapshot = session_to_json(session)
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            log.error("no event loop; state for room %s not broadcast", self.room_code)
            return
        task = loop.create_task(self.broadcast(snapshot))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def broadcast(self, snapshot: Dict[str, Any]) -> Optional[int]:
        """Writes a full snapshot to the room. Failures are logged, not raised."""
        if not self.is_online:
            return None
        payload = dict(snapshot)
        payload[ORIGIN_FIELD] = self.player_id
        try:
            return await self.store.set_with_timestamp(self._path("state"), payload, TIMESTAMP_FIELD)
        except StoreUnavailable as e:
            log.error("failed to broadcast state to room %s: %s", self.room_code, e)
            return None

    async def flush(self) -> None:
        """Waits for every broadcast started so far."""
        while self._pending:
            await asyncio.gather(*list(self._pending))

    def _on_state_event(self, event: StoreEvent) -> None:
        if event.kind == "value" and event.value:
            self.receive_snapshot(event.value)

    def receive_snapshot(self, data: Dict[str, Any]) -> bool:
        """Applies a remote snapshot unless it is our own echo or not newer than the watermark."""
        if not self.is_online:
            return False
        if data.get(ORIGIN_FIELD) == self.player_id:
            log.debug("ignoring echo of own write")
            return False
        stamp = int(data.get(TIMESTAMP_FIELD) or 0)
        if stamp <= self.watermark:
            log.debug("ignoring stale state %s <= %s", stamp, self.watermark)
            return False
        try:
            session = json_to_session(data)
        except (KeyError, TypeError, ValueError) as e:
            log.error("dropping malformed state in room %s: %s", self.room_code, e)
            return False
        self.watermark = stamp
        if self.machine is not None:
            self.machine.apply_snapshot(session)
        return True
