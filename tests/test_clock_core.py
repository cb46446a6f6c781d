from __future__ import annotations

from dataclasses import dataclass

import pytest

from wpm_trainer.clock import PollingScheduler


@dataclass
class FakeClock:
    t: float = 0.0

    def now(self) -> float:
        return self.t

    def advance(self, dt: float) -> None:
        self.t += dt


def test_every_fires_once_per_elapsed_interval() -> None:
    clock = FakeClock()
    sched = PollingScheduler(clock)
    ticks: list[float] = []
    sched.every(1.0, lambda: ticks.append(clock.now()))

    clock.advance(0.5)
    assert sched.pump() == 0
    clock.advance(0.5)
    assert sched.pump() == 1
    clock.advance(3.2)
    assert sched.pump() == 3
    assert len(ticks) == 4


def test_cancel_stops_future_callbacks() -> None:
    clock = FakeClock()
    sched = PollingScheduler(clock)
    calls: list[int] = []
    handle = sched.every(1.0, lambda: calls.append(1))
    clock.advance(1.0)
    sched.pump()
    handle.cancel()
    handle.cancel()
    clock.advance(5.0)
    sched.pump()
    assert calls == [1]
    assert sched.pending() == 0


def test_callback_may_cancel_itself_during_catch_up() -> None:
    clock = FakeClock()
    sched = PollingScheduler(clock)
    calls: list[int] = []
    handle = None

    def tick() -> None:
        calls.append(1)
        if len(calls) == 2:
            assert handle is not None
            handle.cancel()

    handle = sched.every(1.0, tick)
    clock.advance(10.0)
    assert sched.pump() == 2


def test_rejects_non_positive_interval() -> None:
    with pytest.raises(ValueError):
        PollingScheduler(FakeClock()).every(0.0, lambda: None)
