"""Cancellable scheduling used for debounced decodes and focus expiry."""

from __future__ import annotations

import heapq
import itertools
import logging
from collections.abc import Callable
from typing import Protocol

log = logging.getLogger(__name__)


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


class _ManualHandle:
    def __init__(self, due: float) -> None:
        self.due = due
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Deterministic scheduler driven by :meth:`advance`.

    Callbacks fire in due-time order; callbacks due at the same instant fire
    in the order they were scheduled.
    """

    def __init__(self, start: float = 0.0) -> None:
        self.now = start
        self._queue: list[tuple[float, int, _ManualHandle, Callable[[], None]]] = []
        self._seq = itertools.count()

    def call_later(self, delay: float, callback: Callable[[], None]) -> _ManualHandle:
        handle = _ManualHandle(self.now + max(0.0, float(delay)))
        heapq.heappush(self._queue, (handle.due, next(self._seq), handle, callback))
        return handle

    def pending(self) -> int:
        return sum(1 for (_d, _s, h, _c) in self._queue if not h.cancelled)

    def advance(self, seconds: float) -> int:
        """Move the clock forward, firing due callbacks. Returns how many fired."""
        target = self.now + max(0.0, float(seconds))
        fired = 0
        while self._queue and self._queue[0][0] <= target:
            due, _seq, handle, callback = heapq.heappop(self._queue)
            if handle.cancelled:
                continue
            self.now = due
            handle.fired = True
            callback()
            fired += 1
        self.now = target
        return fired


class Debouncer:
    """Keeps at most one pending call; a new request replaces the old one."""

    def __init__(self, scheduler: Scheduler, delay: float) -> None:
        self._scheduler = scheduler
        self.delay = delay
        self._handle: TimerHandle | None = None
        self._callback: Callable[[], None] | None = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def schedule(self, callback: Callable[[], None]) -> None:
        if self._handle is not None:
            log.debug("debounce: superseding pending call")
        self.cancel()
        self._callback = callback
        self._handle = self._scheduler.call_later(self.delay, self._fire)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
        self._handle = None
        self._callback = None

    def flush(self) -> None:
        """Run the pending call now, if any."""
        if self._handle is not None:
            self._fire()

    def _fire(self) -> None:
        callback = self._callback
        if self._handle is not None:
            self._handle.cancel()
        self._handle = None
        self._callback = None
        if callback is not None:
            callback()
