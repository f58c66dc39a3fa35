#!/usr/bin/env python3
"""
Timer Subsystem - single-shot callbacks for blocker timeouts.

The registry only talks to the TimerScheduler protocol so a different
clock can be injected (tests drive a manual clock). LoopTimers is the
default and runs callbacks on the asyncio event loop.
"""

import asyncio
from typing import Any, Callable, Optional, Protocol

from guard_common.constants import MAX_TIMEOUT_MS
from guard_common.logging import get_bound_logger

logger = get_bound_logger("timers")


class TimerScheduler(Protocol):
    """Anything that can run a callback once after a delay."""
    
    def schedule(self, delay_ms: float, callback: Callable[[], Any]) -> Any:
        """Run callback once after delay_ms; return an opaque handle (None if not scheduled)."""
        ...
    
    def cancel(self, handle: Any) -> None:
        """Cancel a scheduled callback. Must be a no-op for fired/cancelled handles."""
        ...


class LoopTimers:
    """
    TimerScheduler backed by ``loop.call_later``.
    
    Callbacks run on the loop given here or, when none is given, on the
    loop running at scheduling time. Without either there is nothing to
    run the callback: the timer is not scheduled and a warning is logged,
    so plain synchronous callers get blockers that never expire.
    """
    
    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop
    
    def schedule(self, delay_ms: float, callback: Callable[[], Any]) -> Optional[asyncio.TimerHandle]:
        loop = self._loop
        if loop is None:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                logger.warning("No event loop to run timer, not scheduling", delay_ms=delay_ms)
                return None
        return loop.call_later(delay_ms / 1000.0, callback)
    
    def cancel(self, handle: Any) -> None:
        if handle is not None:
            # TimerHandle.cancel() is idempotent and harmless after firing
            handle.cancel()


def is_safe_timeout(delay_ms: float, max_ms: int = MAX_TIMEOUT_MS) -> bool:
    """True when delay_ms is positive and within the single-shot ceiling."""
    return 0 < delay_ms <= max_ms


__all__ = [
    'TimerScheduler',
    'LoopTimers',
    'is_safe_timeout',
]
