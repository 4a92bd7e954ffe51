from __future__ import annotations

from hexsync.core.timers import Debouncer, ManualScheduler


def test_manual_scheduler_fires_in_due_order() -> None:
    sched = ManualScheduler()
    fired: list[str] = []
    sched.call_later(2.0, lambda: fired.append("b"))
    sched.call_later(1.0, lambda: fired.append("a"))
    sched.call_later(2.0, lambda: fired.append("c"))
    assert sched.advance(1.5) == 1
    assert fired == ["a"]
    assert sched.advance(1.0) == 2
    assert fired == ["a", "b", "c"]
    assert sched.now == 2.5


def test_cancelled_calls_never_fire() -> None:
    sched = ManualScheduler()
    fired: list[int] = []
    handle = sched.call_later(1.0, lambda: fired.append(1))
    handle.cancel()
    assert sched.pending() == 0
    assert sched.advance(5) == 0
    assert fired == []


def test_debouncer_keeps_only_latest() -> None:
    sched = ManualScheduler()
    deb = Debouncer(sched, 0.2)
    fired: list[str] = []
    deb.schedule(lambda: fired.append("first"))
    sched.advance(0.1)
    deb.schedule(lambda: fired.append("second"))
    sched.advance(0.15)
    assert fired == []
    sched.advance(0.1)
    assert fired == ["second"]
    assert not deb.pending


def test_debouncer_flush_and_cancel() -> None:
    sched = ManualScheduler()
    deb = Debouncer(sched, 0.2)
    fired: list[str] = []
    deb.schedule(lambda: fired.append("x"))
    deb.flush()
    assert fired == ["x"]
    sched.advance(1)
    assert fired == ["x"]
    deb.schedule(lambda: fired.append("y"))
    deb.cancel()
    sched.advance(1)
    assert fired == ["x"]
