from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

log = logging.getLogger(__name__)


@dataclass
class _Task:
    name: str
    due: float
    generation: int
    callback: Callable[[], Any]
    handle: Any = None


class Scheduler:
    """Named, cancellable one-shot tasks on a virtual clock.

    Each task remembers the generation it was scheduled in. `reset()` bumps
    the generation and drops every pending task, so a callback that belongs
    to a replaced session can never run. Scheduling a name that is already
    pending replaces the earlier task.
    """

    def __init__(self) -> None:
        self.generation = 0
        self.now = 0.0
        self._tasks: Dict[str, _Task] = {}

    def schedule(self, name: str, delay: float, callback: Callable[[], Any]) -> None:
        self.cancel(name)
        task = _Task(name=name, due=self.now + max(0.0, delay), generation=self.generation, callback=callback)
        self._tasks[name] = task
        self._arm(task, delay)

    def cancel(self, name: str) -> bool:
        task = self._tasks.pop(name, None)
        if task is None:
            return False
        self._disarm(task)
        return True

    def pending(self, name: str) -> bool:
        return name in self._tasks

    def pending_names(self) -> list:
        return sorted(self._tasks)

    def reset(self) -> int:
        """Invalidates every outstanding task and returns the new generation."""
        for task in list(self._tasks.values()):
            self._disarm(task)
        self._tasks.clear()
        self.generation += 1
        return self.generation

    def _fire(self, name: str, generation: int) -> None:
        task = self._tasks.get(name)
        if task is None or task.generation != generation or generation != self.generation:
            log.debug("dropping stale task %s (generation %s)", name, generation)
            if task is not None and task.generation != self.generation:
                del self._tasks[name]
            return
        del self._tasks[name]
        task.callback()

    # Virtual clock

    def _arm(self, task: _Task, delay: float) -> None:
        pass

    def _disarm(self, task: _Task) -> None:
        pass

    def advance(self, seconds: float) -> int:
        """Moves the clock forward and runs every task that became due, in due order."""
        target = self.now + seconds
        ran = 0
        while True:
            due = [t for t in self._tasks.values() if t.due <= target]
            if not due:
                break
            task = min(due, key=lambda t: t.due)
            self.now = max(self.now, task.due)
            self._fire(task.name, task.generation)
            ran += 1
        self.now = target
        return ran

    def run_all(self, limit: int = 10000) -> int:
        """Runs tasks until none are pending (tasks may schedule more)."""
        ran = 0
        while self._tasks and ran < limit:
            task = min(self._tasks.values(), key=lambda t: t.due)
            self.now = max(self.now, task.due)
            self._fire(task.name, task.generation)
            ran += 1
        return ran


class AsyncioScheduler(Scheduler):
    """Same semantics, driven by an asyncio event loop."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        super().__init__()
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def _arm(self, task: _Task, delay: float) -> None:
        task.handle = self.loop.call_later(max(0.0, delay), self._fire, task.name, task.generation)

    def _disarm(self, task: _Task) -> None:
        if task.handle is not None:
            task.handle.cancel()
            task.handle = None
