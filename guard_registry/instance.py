#!/usr/bin/env python3
"""
Registry instance lifecycle.

There is one process-wide default registry, created on first access, and
any number of isolated registries. An isolated registry can be bound to
the current context (task, thread or test) with registry_context(), which
is how bindings find "their" registry without passing it around.
"""

import itertools
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Optional, Sequence

from guard_common.config import config
from guard_common.constants import DEVTOOLS_NAME
from guard_common.exceptions import RegistryContextError

from .middleware import Middleware
from .middlewares.inspector import create_inspector_middleware
from .registry import BlockerRegistry
from .timers import TimerScheduler

_default_registry: Optional[BlockerRegistry] = None

_current_registry: ContextVar[Optional[BlockerRegistry]] = ContextVar(
    "guard_current_registry", default=None
)

_instance_ids = itertools.count(1)


def create_registry(name: Optional[str] = None,
                    middlewares: Optional[Sequence[Middleware]] = None,
                    timers: Optional[TimerScheduler] = None,
                    debug: Optional[bool] = None) -> BlockerRegistry:
    """
    Create an isolated registry.

    Args:
        name: Instance name for logs (default: "isolated-<n>")
        middlewares: Middleware to register up front, named
                     "provider-middleware-<index>"
        timers: Timer implementation (default: asyncio event loop)
        debug: Register the debug inspector middleware (default: config.debug)
    """
    registry = BlockerRegistry(
        name=name or f"isolated-{next(_instance_ids)}",
        timers=timers,
    )

    if debug is None:
        debug = config.debug
    if debug:
        registry.register_middleware(DEVTOOLS_NAME, create_inspector_middleware(registry))

    for index, middleware in enumerate(middlewares or ()):
        registry.register_middleware(f"provider-middleware-{index}", middleware)

    return registry


def get_registry() -> BlockerRegistry:
    """Return the process-wide default registry, creating it on first use."""
    global _default_registry
    if _default_registry is None:
        _default_registry = create_registry(name="default")
    return _default_registry


def reset_default_registry() -> None:
    """Close and forget the default registry (intended for tests)."""
    global _default_registry
    if _default_registry is not None:
        _default_registry.close()
        _default_registry = None


@contextmanager
def registry_context(registry: Optional[BlockerRegistry] = None,
                     **create_kwargs) -> Iterator[BlockerRegistry]:
    """
    Bind a registry to the current context for the duration of the block.

    When no registry is given a new isolated one is created with
    create_kwargs and closed on exit. The previous binding is restored
    on exit in both cases.
    """
    owned = registry is None
    if owned:
        registry = create_registry(**create_kwargs)

    token = _current_registry.set(registry)
    try:
        yield registry
    finally:
        _current_registry.reset(token)
        if owned:
            registry.close()


def get_context_registry() -> BlockerRegistry:
    """
    Return the registry bound to the current context.

    Raises:
        RegistryContextError: if called outside registry_context()
    """
    registry = _current_registry.get()
    if registry is None:
        raise RegistryContextError(
            "get_context_registry() must be used within registry_context(). "
            "Either bind an isolated registry with registry_context() or use "
            "the default registry via get_registry()."
        )
    return registry


def is_inside_registry_context() -> bool:
    return _current_registry.get() is not None


def resolve_registry() -> BlockerRegistry:
    """The context-bound registry if there is one, else the default."""
    registry = _current_registry.get()
    return registry if registry is not None else get_registry()


def configure_middleware(middlewares: Sequence[Middleware],
                         registry: Optional[BlockerRegistry] = None) -> None:
    """
    Register several middleware at once, named "middleware-<index>".

    Args:
        middlewares: Middleware callables in invocation order
        registry: Target registry (default: resolve_registry())
    """
    target = registry if registry is not None else resolve_registry()
    for index, middleware in enumerate(middlewares):
        target.register_middleware(f"middleware-{index}", middleware)


__all__ = [
    'create_registry',
    'get_registry',
    'reset_default_registry',
    'registry_context',
    'get_context_registry',
    'is_inside_registry_context',
    'resolve_registry',
    'configure_middleware',
]
