#!/usr/bin/env python3
"""
Blocker Registry - the shared map of reasons the UI should be considered busy.

Blockers are keyed by id, cover one or more scopes, are ranked by priority
and can expire on their own after a timeout. Queries answer "is this scope
blocked?" and "which blockers affect this scope, most important first?".

State changes are applied synchronously; middleware observes them
afterwards and can never delay or undo a change.
"""

import asyncio
from typing import Dict, Optional, List, Set, Any

from guard_common.async_utils import run_sync
from guard_common.config import GuardBaseConfig, config as default_config
from guard_common.constants import ALL_BLOCKERS_ID, GLOBAL_SCOPE
from guard_common.logging import get_bound_logger, operation_context
from guard_common.timestamps import now_ms

from .middleware import Middleware, MiddlewarePipeline
from .scope import Scope, freeze_scope, normalize_scope
from .timers import LoopTimers, TimerScheduler, is_safe_timeout
from .types import (
    BlockerConfig,
    BlockerInfo,
    BlockingAction,
    MiddlewareEvent,
    StoredBlocker,
)


def clamp_priority(priority: Any) -> int:
    """Priorities are non-negative integers."""
    return max(0, int(priority))


def _resolve_config(config: Optional[BlockerConfig], fields: Dict[str, Any]) -> BlockerConfig:
    """Overlay non-None keyword fields onto config."""
    base = config or BlockerConfig()
    overrides = {key: value for key, value in fields.items() if value is not None}
    if not overrides:
        return base
    return BlockerConfig(**{
        name: overrides.get(name, getattr(base, name))
        for name in BlockerConfig.field_names()
    })


class BlockerRegistry:
    """
    One isolated set of blockers plus the middleware observing it.

    Instances never share state. The process-wide default instance and
    context-bound instances are managed in guard_registry.instance.
    """

    def __init__(self, name: str = "default",
                 timers: Optional[TimerScheduler] = None,
                 settings: Optional[GuardBaseConfig] = None):
        """
        Args:
            name: Instance name used in logs
            timers: Timer implementation (default: asyncio event loop)
            settings: Configuration for defaults and limits (default: global config)
        """
        self.name = name
        self._settings = settings or default_config
        self._timers: TimerScheduler = timers if timers is not None else LoopTimers()
        self._blockers: Dict[str, StoredBlocker] = {}
        self._pipeline = MiddlewarePipeline(owner=name)
        self._pending: Set[asyncio.Task] = set()
        self._version = 0
        self._logger = get_bound_logger("registry", registry=name)

    # Read-only views for bindings

    @property
    def version(self) -> int:
        """Increases by one on every state change."""
        return self._version

    @property
    def blockers(self) -> Dict[str, BlockerInfo]:
        """Snapshot of every stored blocker keyed by id."""
        return {blocker_id: record.snapshot(blocker_id)
                for blocker_id, record in self._blockers.items()}

    @property
    def pipeline(self) -> MiddlewarePipeline:
        return self._pipeline

    def get(self, blocker_id: str) -> Optional[BlockerInfo]:
        record = self._blockers.get(blocker_id)
        return record.snapshot(blocker_id) if record is not None else None

    def __contains__(self, blocker_id: object) -> bool:
        return blocker_id in self._blockers

    def __len__(self) -> int:
        return len(self._blockers)

    def __repr__(self) -> str:
        return f"BlockerRegistry(name={self.name!r}, blockers={len(self._blockers)})"

    # Mutations

    def add(self, blocker_id: str, config: Optional[BlockerConfig] = None, *,
            scope: Optional[Scope] = None,
            reason: Optional[str] = None,
            priority: Optional[int] = None,
            timestamp: Optional[int] = None,
            timeout: Optional[int] = None,
            on_timeout=None) -> None:
        """
        Add a blocker, replacing any existing blocker with the same id.

        Keyword fields override the matching fields of config. Missing
        values fall back to the configured defaults; negative priorities
        are stored as 0; a positive timeout starts the expiry timer.
        """
        cfg = _resolve_config(config, dict(
            scope=scope, reason=reason, priority=priority,
            timestamp=timestamp, timeout=timeout, on_timeout=on_timeout,
        ))

        existing = self._blockers.get(blocker_id)
        if existing is not None:
            self._cancel_timer(existing)

        record = StoredBlocker(
            scope=freeze_scope(cfg.scope) if cfg.scope is not None else self._settings.default_scope,
            reason=cfg.reason if cfg.reason is not None else self._settings.default_reason,
            priority=clamp_priority(
                cfg.priority if cfg.priority is not None else self._settings.default_priority
            ),
            timestamp=cfg.timestamp if cfg.timestamp is not None else now_ms(),
            timeout=cfg.timeout if cfg.timeout and cfg.timeout > 0 else None,
            on_timeout=cfg.on_timeout,
        )
        self._blockers[blocker_id] = record
        self._start_timer(blocker_id, record)
        self._touch()

        self._logger.debug("Blocker added", blocker_id=blocker_id,
                           replaced=existing is not None, priority=record.priority)
        self._emit(MiddlewareEvent(
            action=BlockingAction.ADD,
            blocker_id=blocker_id,
            timestamp=now_ms(),
            config=record.snapshot(blocker_id),
        ))

    def update(self, blocker_id: str, config: Optional[BlockerConfig] = None, *,
               scope: Optional[Scope] = None,
               reason: Optional[str] = None,
               priority: Optional[int] = None,
               timestamp: Optional[int] = None,
               timeout: Optional[int] = None,
               on_timeout=None) -> None:
        """
        Merge the given fields into an existing blocker (or add it).

        Fields left as None keep their stored value. Timer handling:

        - timeout not given: a running timer keeps its original deadline
        - timeout > 0 and different, or no timer running: the timer restarts from now
        - timeout <= 0: the timer is cancelled and the blocker stays
        """
        cfg = _resolve_config(config, dict(
            scope=scope, reason=reason, priority=priority,
            timestamp=timestamp, timeout=timeout, on_timeout=on_timeout,
        ))

        record = self._blockers.get(blocker_id)
        if record is None:
            self.add(blocker_id, cfg)
            return

        prev_state = record.snapshot(blocker_id)

        if cfg.scope is not None:
            record.scope = freeze_scope(cfg.scope)
        if cfg.reason is not None:
            record.reason = cfg.reason
        if cfg.priority is not None:
            record.priority = clamp_priority(cfg.priority)
        if cfg.timestamp is not None:
            record.timestamp = cfg.timestamp
        if cfg.on_timeout is not None:
            record.on_timeout = cfg.on_timeout

        if cfg.timeout is not None:
            if cfg.timeout <= 0:
                self._cancel_timer(record)
                record.timeout = None
            elif cfg.timeout != record.timeout or record.timer_handle is None:
                self._cancel_timer(record)
                record.timeout = cfg.timeout
                self._start_timer(blocker_id, record)

        self._touch()
        self._logger.debug("Blocker updated", blocker_id=blocker_id)
        self._emit(MiddlewareEvent(
            action=BlockingAction.UPDATE,
            blocker_id=blocker_id,
            timestamp=now_ms(),
            config=record.snapshot(blocker_id),
            prev_state=prev_state,
        ))

    def remove(self, blocker_id: str) -> None:
        """Remove a blocker. Unknown ids are ignored and produce no event."""
        record = self._blockers.get(blocker_id)
        if record is None:
            return

        self._cancel_timer(record)
        del self._blockers[blocker_id]
        self._touch()

        snapshot = record.snapshot(blocker_id)
        self._logger.debug("Blocker removed", blocker_id=blocker_id)
        self._emit(MiddlewareEvent(
            action=BlockingAction.REMOVE,
            blocker_id=blocker_id,
            timestamp=now_ms(),
            config=snapshot,
            prev_state=snapshot,
        ))

    def clear_all(self) -> None:
        """Remove every blocker, global ones included."""
        count = len(self._blockers)
        for record in self._blockers.values():
            self._cancel_timer(record)
        self._blockers.clear()

        if count == 0:
            return

        self._touch()
        self._logger.debug("Cleared all blockers", count=count)
        self._emit(MiddlewareEvent(
            action=BlockingAction.CLEAR,
            blocker_id=ALL_BLOCKERS_ID,
            timestamp=now_ms(),
            count=count,
        ))

    def clear_scope(self, scope: str) -> None:
        """
        Remove every blocker whose scope list contains scope.

        A blocker stored with the "global" scope is not removed by
        clear_scope("form") even though it blocks "form".
        """
        matching = [blocker_id for blocker_id, record in self._blockers.items()
                    if scope in record.scopes]
        for blocker_id in matching:
            self._cancel_timer(self._blockers.pop(blocker_id))

        if not matching:
            return

        self._touch()
        self._logger.debug("Cleared scope", scope=scope, count=len(matching))
        self._emit(MiddlewareEvent(
            action=BlockingAction.CLEAR_SCOPE,
            blocker_id=ALL_BLOCKERS_ID,
            timestamp=now_ms(),
            scope=scope,
            count=len(matching),
        ))

    # Queries

    def is_blocked(self, scope: Optional[Scope] = None) -> bool:
        """
        True if any blocker is global or shares a scope with the query.

        Args:
            scope: Scope name or names to check (default: "global")
        """
        queried = set(normalize_scope(scope if scope is not None else GLOBAL_SCOPE))
        for record in self._blockers.values():
            if record.scope == GLOBAL_SCOPE:
                return True
            if queried.intersection(record.scopes):
                return True
        return False

    def get_blocking_info(self, scope: str) -> List[BlockerInfo]:
        """Blockers affecting scope (global ones included), highest priority first."""
        matching = [
            record.snapshot(blocker_id)
            for blocker_id, record in self._blockers.items()
            if record.scope == GLOBAL_SCOPE or scope in record.scopes
        ]
        return sorted(matching, key=lambda info: info.priority, reverse=True)

    # Middleware

    def register_middleware(self, name: str, middleware: Middleware) -> None:
        self._pipeline.register(name, middleware)

    def unregister_middleware(self, name: str) -> None:
        self._pipeline.unregister(name)

    async def run_middlewares(self, event: MiddlewareEvent) -> None:
        """Dispatch an event and wait until every middleware has seen it."""
        await self._pipeline.dispatch(event)

    # Lifecycle

    async def flush(self) -> None:
        """Wait for every in-flight middleware dispatch to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def close(self) -> None:
        """Cancel all timers and drop all blockers and middleware without events."""
        for record in self._blockers.values():
            self._cancel_timer(record)
        if self._blockers:
            self._blockers.clear()
            self._touch()
        self._pipeline.clear()
        self._logger.debug("Registry closed")

    # Internals

    def _touch(self) -> None:
        self._version += 1

    def _cancel_timer(self, record: StoredBlocker) -> None:
        """The one place a blocker's timer is cancelled."""
        if record.timer_handle is not None:
            self._timers.cancel(record.timer_handle)
            record.timer_handle = None

    def _start_timer(self, blocker_id: str, record: StoredBlocker) -> None:
        if not record.timeout:
            return
        if not is_safe_timeout(record.timeout, self._settings.max_timeout_ms):
            self._logger.warning(
                "Blocker timeout exceeds maximum timer delay, not scheduling",
                blocker_id=blocker_id,
                timeout=record.timeout,
                max_timeout_ms=self._settings.max_timeout_ms,
            )
            return

        handle = None

        def fire():
            self._handle_timeout(blocker_id, handle)

        handle = self._timers.schedule(record.timeout, fire)
        record.timer_handle = handle

    def _handle_timeout(self, blocker_id: str, handle: Any) -> None:
        record = self._blockers.get(blocker_id)
        if record is None or record.timer_handle is not handle:
            # Removed or rescheduled since this timer was started
            return
        record.timer_handle = None

        with operation_context(registry=self.name, blocker_id=blocker_id):
            if record.on_timeout is not None:
                try:
                    record.on_timeout(blocker_id)
                except Exception as e:
                    self._logger.error("on_timeout callback failed", blocker_id=blocker_id,
                                       error=str(e), exc_info=True)

        if self._blockers.get(blocker_id) is not record or record.timer_handle is not None:
            # The callback removed, replaced or re-armed the blocker
            self._logger.debug("Blocker refreshed during timeout", blocker_id=blocker_id)
            return

        self._logger.debug("Blocker timed out", blocker_id=blocker_id, timeout=record.timeout)
        self._emit(MiddlewareEvent(
            action=BlockingAction.TIMEOUT,
            blocker_id=blocker_id,
            timestamp=now_ms(),
            config=record.snapshot(blocker_id),
        ))
        self.remove(blocker_id)

    def _emit(self, event: MiddlewareEvent) -> None:
        """Hand an event to the pipeline without making the caller wait."""
        if not len(self._pipeline):
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # Plain sync caller: finish the dispatch before returning
            run_sync(self._pipeline.dispatch(event))
            return
        task = loop.create_task(self._pipeline.dispatch(event))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)


__all__ = [
    'BlockerRegistry',
    'clamp_priority',
]
