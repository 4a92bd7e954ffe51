from __future__ import annotations

from collections.abc import Callable
from contextlib import suppress

from textual.message_pump import MessagePump
from textual.timer import Timer

# Textual timers misbehave with a zero interval
MIN_DELAY = 0.01


class _TextualHandle:
    def __init__(self, timer: Timer) -> None:
        self._timer = timer

    def cancel(self) -> None:
        with suppress(Exception):
            self._timer.stop()


class TextualScheduler:
    """Runs callbacks on a widget's (or the app's) own timers."""

    def __init__(self, host: MessagePump) -> None:
        self._host = host

    def call_later(self, delay: float, callback: Callable[[], None]) -> _TextualHandle:
        timer = self._host.set_timer(max(MIN_DELAY, float(delay)), callback)
        return _TextualHandle(timer)
