"""Debug inspector - dumps every event and the resulting blocker table.

Only registered when development instrumentation is enabled (GUARD_DEBUG).
"""

from typing import TYPE_CHECKING

from guard_common.logging import get_bound_logger

from ..middleware import Middleware
from ..types import MiddlewareEvent

if TYPE_CHECKING:
    from ..registry import BlockerRegistry

logger = get_bound_logger("middleware.inspector")


def create_inspector_middleware(registry: "BlockerRegistry") -> Middleware:
    def inspector_middleware(event: MiddlewareEvent) -> None:
        details = event.to_dict()
        # structlog owns the "timestamp" key
        details["event_timestamp"] = details.pop("timestamp")
        logger.debug(
            "inspector.event",
            registry=registry.name,
            version=registry.version,
            blockers=[info.to_dict() for info in registry.blockers.values()],
            **details,
        )

    return inspector_middleware
