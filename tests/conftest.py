"""Shared fixtures for the registry test suite."""

import itertools
from typing import Any, Callable, List

import pytest

from guard_registry import BlockerRegistry, reset_default_registry


class FakeTimerHandle:
    def __init__(self, fire_at: float, seq: int, callback: Callable[[], Any]):
        self.fire_at = fire_at
        self.seq = seq
        self.callback = callback
        self.cancelled = False
        self.fired = False


class FakeTimers:
    """
    Manual-clock TimerScheduler.

    Nothing fires until advance() moves the clock past a deadline, so
    tests can check the exact millisecond a timeout happens.
    """

    def __init__(self, start_ms: int = 1_000_000):
        self.now = start_ms
        self._handles: List[FakeTimerHandle] = []
        self._seq = itertools.count()

    def schedule(self, delay_ms: float, callback: Callable[[], Any]) -> FakeTimerHandle:
        handle = FakeTimerHandle(self.now + delay_ms, next(self._seq), callback)
        self._handles.append(handle)
        return handle

    def cancel(self, handle: Any) -> None:
        if handle is not None:
            handle.cancelled = True

    def clock(self) -> int:
        return self.now

    @property
    def active(self) -> List[FakeTimerHandle]:
        return [h for h in self._handles if not h.cancelled and not h.fired]

    def advance(self, ms: float) -> None:
        target = self.now + ms
        while True:
            due = [h for h in self.active if h.fire_at <= target]
            if not due:
                break
            handle = min(due, key=lambda h: (h.fire_at, h.seq))
            self.now = handle.fire_at
            handle.fired = True
            handle.callback()
        self.now = target


@pytest.fixture
def fake_timers():
    return FakeTimers()


@pytest.fixture
def registry(fake_timers):
    reg = BlockerRegistry(name="test", timers=fake_timers)
    yield reg
    reg.close()


@pytest.fixture(autouse=True)
def _reset_default_registry():
    yield
    reset_default_registry()
