#!/usr/bin/env python3
"""
Blocking helpers - hold a blocker while a piece of work runs.

    with blocking("save", scope="form", reason="Saving..."):
        save()

    refresh = AsyncAction("refresh", scope="dashboard")
    data = await refresh(fetch_dashboard)
"""

import functools
import itertools
from typing import Any, Awaitable, Callable, Optional, TypeVar

from guard_common.config import config as settings
from guard_common.logging import async_operation_context

from .instance import resolve_registry
from .registry import BlockerRegistry
from .scope import Scope
from .types import BlockerConfig, TimeoutCallback

T = TypeVar('T')


class blocking:
    """
    Sync and async context manager that adds a blocker on enter and
    removes it on exit, whether or not the block raised.
    """

    def __init__(self, blocker_id: str, config: Optional[BlockerConfig] = None,
                 registry: Optional[BlockerRegistry] = None, **fields):
        self.blocker_id = blocker_id
        self._config = config
        self._fields = fields
        self._registry = registry

    @property
    def registry(self) -> BlockerRegistry:
        if self._registry is None:
            self._registry = resolve_registry()
        return self._registry

    def __enter__(self) -> BlockerRegistry:
        self.registry.add(self.blocker_id, self._config, **self._fields)
        return self.registry

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.registry.remove(self.blocker_id)
        return False

    async def __aenter__(self) -> BlockerRegistry:
        return self.__enter__()

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        return self.__exit__(exc_type, exc, tb)


class AsyncAction:
    """
    Runs coroutines under a fresh blocker each time it is called.

    Blocker ids are "<action_id>-<n>" with a per-instance counter so
    overlapping calls never collide.
    """

    def __init__(self, action_id: str, scope: Optional[Scope] = None,
                 timeout: Optional[int] = None,
                 on_timeout: Optional[TimeoutCallback] = None,
                 registry: Optional[BlockerRegistry] = None):
        self.action_id = action_id
        self.scope = scope
        self.timeout = timeout
        self.on_timeout = on_timeout
        self._registry = registry
        self._counter = itertools.count(1)

    async def __call__(self, fn: Callable[..., Awaitable[T]], *args, **kwargs) -> T:
        registry = self._registry if self._registry is not None else resolve_registry()
        blocker_id = f"{self.action_id}-{next(self._counter)}"
        try:
            registry.add(
                blocker_id,
                scope=self.scope,
                reason=f"Executing {self.action_id}",
                priority=settings.async_action_priority,
                timeout=self.timeout,
                on_timeout=self.on_timeout,
            )
            async with async_operation_context(action_id=self.action_id, blocker_id=blocker_id):
                return await fn(*args, **kwargs)
        finally:
            registry.remove(blocker_id)


def async_action(action_id: str, scope: Optional[Scope] = None, **options: Any):
    """Decorator form of AsyncAction for coroutine functions."""
    def decorator(fn: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        action = AsyncAction(action_id, scope=scope, **options)

        @functools.wraps(fn)
        async def wrapper(*args, **kwargs):
            return await action(fn, *args, **kwargs)

        return wrapper

    return decorator


__all__ = [
    'blocking',
    'AsyncAction',
    'async_action',
]
