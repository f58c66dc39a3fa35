#!/usr/bin/env python3
"""
Middleware Pipeline - ordered, named observers of registry mutations.

Every mutating registry operation builds a MiddlewareEvent and hands it to
dispatch() after the state change is already applied. Observers run one
after another in registration order; a failing observer is logged and
skipped so the remaining observers still see the event.

Re-registering an existing name replaces the callback in place and keeps
its position. Unregister and register again to move it to the end.
"""

from typing import Awaitable, Callable, Dict, List, Optional, Union

from guard_common.async_utils import maybe_await
from guard_common.logging import get_bound_logger

from .types import MiddlewareEvent

Middleware = Callable[[MiddlewareEvent], Union[None, Awaitable[None]]]

logger = get_bound_logger("middleware")


class MiddlewarePipeline:
    """Named middleware callbacks invoked sequentially for each event."""

    def __init__(self, owner: str = "default"):
        """
        Args:
            owner: Name of the registry instance, used as log context
        """
        self.owner = owner
        self._middlewares: Dict[str, Middleware] = {}
        self.stats = {
            "events_dispatched": 0,
            "middleware_failures": 0,
        }

    def register(self, name: str, middleware: Middleware) -> None:
        """Insert or replace the middleware under name."""
        replaced = name in self._middlewares
        self._middlewares[name] = middleware
        logger.info("Registered middleware", registry=self.owner, middleware=name,
                    replaced=replaced)

    def unregister(self, name: str) -> None:
        """Remove the middleware; unknown names are ignored."""
        if self._middlewares.pop(name, None) is not None:
            logger.info("Unregistered middleware", registry=self.owner, middleware=name)

    def get(self, name: str) -> Optional[Middleware]:
        return self._middlewares.get(name)

    def names(self) -> List[str]:
        """Registered names in invocation order."""
        return list(self._middlewares)

    def clear(self) -> None:
        self._middlewares.clear()

    def __contains__(self, name: object) -> bool:
        return name in self._middlewares

    def __len__(self) -> int:
        return len(self._middlewares)

    async def dispatch(self, event: MiddlewareEvent) -> None:
        """
        Invoke every middleware with event, awaiting each before the next.

        The callback list is snapshotted first, so registrations made while
        a dispatch is in flight only affect later events.
        """
        self.stats["events_dispatched"] += 1
        for name, middleware in list(self._middlewares.items()):
            try:
                await maybe_await(middleware(event))
            except Exception as e:
                self.stats["middleware_failures"] += 1
                logger.error(
                    "Middleware failed",
                    registry=self.owner,
                    middleware=name,
                    action=event.action.value,
                    blocker_id=event.blocker_id,
                    error=str(e),
                    exc_info=True,
                )


__all__ = [
    'Middleware',
    'MiddlewarePipeline',
]
