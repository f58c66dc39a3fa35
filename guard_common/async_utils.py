#!/usr/bin/env python3
"""
Async Utilities - Centralized async/sync coordination helpers

Registry operations are synchronous while middleware and timers live on
the event loop; these helpers bridge the two.
"""

import asyncio
import inspect
from typing import Any, Coroutine, TypeVar

T = TypeVar('T')


def run_sync(coro: Coroutine[Any, Any, T]) -> T:
    """
    Run an async coroutine from sync context.
    
    Args:
        coro: The coroutine to run
        
    Returns:
        The result of the coroutine
        
    Raises:
        RuntimeError: if called while an event loop is running in this thread
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        # No event loop running - safe to use asyncio.run()
        return asyncio.run(coro)
    coro.close()
    raise RuntimeError(
        "run_sync() called from within async context. "
        "Consider making the calling function async instead."
    )


async def maybe_await(value: Any) -> Any:
    """Await the value if it is awaitable, otherwise return it unchanged."""
    if inspect.isawaitable(value):
        return await value
    return value
