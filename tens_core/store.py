from __future__ import annotations

import asyncio
import copy
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, NamedTuple, Optional, Tuple

from .errors import StoreUnavailable

log = logging.getLogger(__name__)


class StoreEvent(NamedTuple):
    kind: str  # "added", "changed", "removed" (children) or "value" (the node itself)
    key: str
    value: Any


StoreCallback = Callable[[StoreEvent], None]


@dataclass
class Subscription:
    path: str
    callback: StoreCallback
    active: bool = True

    def cancel(self) -> None:
        self.active = False


def split_path(path: str) -> List[str]:
    return [p for p in path.strip("/").split("/") if p]


class RealtimeStore(ABC):
    """What the game needs from a real-time key-value service.

    Records live at '/'-separated paths. Subscribers hear about child
    records being added, changed or removed under a path, and about the
    value of the path itself, on the caller's event loop. Writes through
    `set_with_timestamp` carry a store-assigned, strictly increasing
    timestamp. Clients may register values to be written automatically when
    their connection drops.
    """

    @abstractmethod
    async def create(self, path: str, value: Any) -> bool:
        """Writes a record only if absent. Returns False if it already existed."""

    @abstractmethod
    async def get(self, path: str) -> Any:
        """Reads a record once; None if absent."""

    @abstractmethod
    async def set(self, path: str, value: Any) -> None:
        ...

    @abstractmethod
    async def set_with_timestamp(self, path: str, value: Dict[str, Any], field: str = "timestamp") -> int:
        """Writes a record with a store-assigned timestamp in `field`; returns it."""

    @abstractmethod
    async def remove(self, path: str) -> None:
        ...

    @abstractmethod
    def subscribe(self, path: str, callback: StoreCallback) -> Subscription:
        ...

    @abstractmethod
    def on_disconnect(self, client_id: str, path: str, value: Any) -> None:
        """Registers a write to perform when `client_id` disconnects."""

    @abstractmethod
    async def disconnect(self, client_id: str) -> None:
        ...


class InMemoryStore(RealtimeStore):
    """In-process store. Values are deep-copied in and out."""

    def __init__(self, available: bool = True) -> None:
        self.available = available
        self.fail_writes = False
        self._root: Dict[str, Any] = {}
        self._clock = 0
        self._subs: List[Subscription] = []
        self._disconnect_hooks: Dict[str, List[Tuple[str, Any]]] = {}

    # ---------- Tree helpers ----------

    def _read(self, path: str) -> Any:
        node: Any = self._root
        for part in split_path(path):
            if not isinstance(node, dict) or part not in node:
                return None
            node = node[part]
        return node

    def _write(self, path: str, value: Any) -> None:
        parts = split_path(path)
        if not parts:
            raise ValueError("cannot write the store root")
        if value is None:
            self._delete(parts)
            return
        node = self._root
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = {}
                node[part] = child
            node = child
        node[parts[-1]] = copy.deepcopy(value)

    def _delete(self, parts: List[str]) -> None:
        trail = []
        node: Any = self._root
        for part in parts[:-1]:
            if not isinstance(node, dict) or part not in node:
                return
            trail.append((node, part))
            node = node[part]
        if isinstance(node, dict):
            node.pop(parts[-1], None)
        # Prune empty parents, as a real-time tree does
        for parent, part in reversed(trail):
            if parent[part] == {}:
                del parent[part]
            else:
                break

    def _check(self, write: bool = False) -> None:
        if not self.available or (write and self.fail_writes):
            raise StoreUnavailable()

    # ---------- Notification ----------

    def _affected(self, path: str) -> List[Subscription]:
        target = "/".join(split_path(path))
        out = []
        for sub in self._subs:
            if not sub.active:
                continue
            sp = "/".join(split_path(sub.path))
            if sp == target or target.startswith(sp + "/") or sp.startswith(target + "/"):
                out.append(sub)
        return out

    def _mutate(self, path: str, value: Any) -> None:
        subs = self._affected(path)
        before = {id(s): copy.deepcopy(self._read(s.path)) for s in subs}
        self._write(path, value)
        for sub in subs:
            self._notify(sub, before[id(sub)], self._read(sub.path))

    def _notify(self, sub: Subscription, before: Any, after: Any) -> None:
        if before == after:
            return
        key = (split_path(sub.path) or [""])[-1]
        old = before if isinstance(before, dict) else {}
        new = after if isinstance(after, dict) else {}
        for child in new:
            if child not in old:
                self._deliver(sub, StoreEvent("added", child, new[child]))
            elif old[child] != new[child]:
                self._deliver(sub, StoreEvent("changed", child, new[child]))
        for child in old:
            if child not in new:
                self._deliver(sub, StoreEvent("removed", child, old[child]))
        self._deliver(sub, StoreEvent("value", key, after))

    def _deliver(self, sub: Subscription, event: StoreEvent) -> None:
        event = StoreEvent(event.kind, event.key, copy.deepcopy(event.value))

        def run() -> None:
            if sub.active:
                sub.callback(event)

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            run()
            return
        loop.call_soon(run)

    # ---------- Contract ----------

    async def create(self, path: str, value: Any) -> bool:
        self._check(write=True)
        if self._read(path) is not None:
            return False
        self._mutate(path, value)
        return True

    async def get(self, path: str) -> Any:
        self._check()
        return copy.deepcopy(self._read(path))

    async def set(self, path: str, value: Any) -> None:
        self._check(write=True)
        self._mutate(path, value)

    async def set_with_timestamp(self, path: str, value: Dict[str, Any], field: str = "timestamp") -> int:
        self._check(write=True)
        self._clock += 1
        stamped = dict(value)
        stamped[field] = self._clock
        self._mutate(path, stamped)
        return self._clock

    async def remove(self, path: str) -> None:
        self._check(write=True)
        self._mutate(path, None)

    def subscribe(self, path: str, callback: StoreCallback) -> Subscription:
        self._check()
        sub = Subscription(path=path, callback=callback)
        self._subs = [s for s in self._subs if s.active]
        self._subs.append(sub)
        # Existing data is reported like a fresh write
        current = self._read(path)
        if current is not None:
            self._notify(sub, None, current)
        return sub

    def on_disconnect(self, client_id: str, path: str, value: Any) -> None:
        self._disconnect_hooks.setdefault(client_id, []).append((path, copy.deepcopy(value)))

    async def disconnect(self, client_id: str) -> None:
        hooks = self._disconnect_hooks.pop(client_id, [])
        for path, value in hooks:
            # Only touch records that still exist
            parent = "/".join(split_path(path)[:-1])
            if parent and self._read(parent) is None:
                continue
            log.info("disconnect hook for %s: %s", client_id, path)
            self._mutate(path, value)

    def timestamp(self) -> int:
        return self._clock

    def dump(self) -> Optional[Dict[str, Any]]:
        return copy.deepcopy(self._root)
