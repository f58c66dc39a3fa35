#!/usr/bin/env python3
"""
Conditional blocking - hold a blocker while a polled condition is true.

    offline = ConditionalBlocker(
        "offline",
        condition=lambda state: not state["online"],
        scope="global",
        state={"online": True},
        config=BlockerConfig(reason="No network connection", priority=95),
    )
    offline.start()
    offline.state = {"online": False}   # blocks at the next check

The condition is evaluated on start() and then every check_interval ms.
The blocker is only added or removed when the result changes.
"""

from typing import Any, Callable, Optional

from guard_common.config import config as settings
from guard_common.constants import DEFAULT_CHECK_INTERVAL_MS
from guard_common.logging import get_bound_logger

from .instance import resolve_registry
from .registry import BlockerRegistry
from .scope import Scope
from .timers import LoopTimers, TimerScheduler, is_safe_timeout
from .types import BlockerConfig

Condition = Callable[[Any], bool]

logger = get_bound_logger("conditional")


class ConditionalBlocker:
    """
    Adds blocker_id to the registry while condition(state) is true.

    Exceptions raised by the condition propagate to the caller of start()
    or check(); a periodic check that raises still re-arms the next one.
    """

    def __init__(self, blocker_id: str, condition: Condition, scope: Scope,
                 check_interval: int = DEFAULT_CHECK_INTERVAL_MS,
                 state: Any = None,
                 config: Optional[BlockerConfig] = None,
                 registry: Optional[BlockerRegistry] = None,
                 timers: Optional[TimerScheduler] = None):
        """
        Args:
            blocker_id: Id of the blocker to add and remove
            condition: Called with state; truthy means "block"
            scope: Scope(s) to block; required for conditional blockers
            check_interval: Milliseconds between checks
            state: Passed to condition; may be reassigned at any time
            config: Reason, priority and timeout of the blocker
            registry: Target registry (default: resolve_registry())
            timers: Timer implementation (default: asyncio event loop)
        """
        self.blocker_id = blocker_id
        self.condition = condition
        self.scope = scope
        self.check_interval = check_interval
        self.state = state
        self.config = config
        self.registry = registry if registry is not None else resolve_registry()
        self._timers = timers if timers is not None else LoopTimers()
        self._handle = None
        self._blocked = False
        self._running = False

    @property
    def blocked(self) -> bool:
        """True while this instance holds its blocker."""
        return self._blocked

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> None:
        """Check the condition now and poll it until stop()."""
        self._cancel_timer()
        self._running = True
        self.check()
        self._arm()

    def stop(self) -> None:
        """Stop polling and release the blocker if it is held."""
        self._running = False
        self._cancel_timer()
        if self._blocked:
            self.registry.remove(self.blocker_id)
            self._blocked = False

    def check(self) -> bool:
        """Evaluate the condition once, adding or removing the blocker on change."""
        should_block = bool(self.condition(self.state))
        if should_block == self._blocked:
            return should_block

        if should_block:
            self.registry.add(self.blocker_id, self.config, scope=self.scope)
        else:
            self.registry.remove(self.blocker_id)
        self._blocked = should_block
        logger.debug("Condition changed", blocker_id=self.blocker_id, blocked=should_block)
        return should_block

    def _arm(self) -> None:
        if not is_safe_timeout(self.check_interval, settings.max_timeout_ms):
            logger.warning("Check interval out of range, condition will not be polled",
                           blocker_id=self.blocker_id, check_interval=self.check_interval)
            return
        self._handle = self._timers.schedule(self.check_interval, self._tick)

    def _tick(self) -> None:
        self._handle = None
        if not self._running:
            return
        self._arm()
        self.check()

    def _cancel_timer(self) -> None:
        if self._handle is not None:
            self._timers.cancel(self._handle)
            self._handle = None


__all__ = [
    'ConditionalBlocker',
]
