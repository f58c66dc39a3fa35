"""Guard Registry - shared registry of UI blockers.

Blockers mark scopes (a form, a page region, or "global") as busy, are
ranked by priority and may expire after a timeout. Middleware observes
every change.

    from guard_registry import get_registry

    registry = get_registry()
    registry.add("save", scope="form", reason="Saving...", priority=50)
    registry.is_blocked("form")          # True
    registry.get_blocking_info("form")   # [BlockerInfo(id='save', ...)]
    registry.remove("save")
"""

__version__ = "0.1.0"

from .scope import Scope, normalize_scope
from .types import (
    BlockerConfig,
    BlockerInfo,
    BlockingAction,
    MiddlewareEvent,
)
from .timers import TimerScheduler, LoopTimers, is_safe_timeout
from .middleware import Middleware, MiddlewarePipeline
from .registry import BlockerRegistry
from .instance import (
    create_registry,
    get_registry,
    reset_default_registry,
    registry_context,
    get_context_registry,
    is_inside_registry_context,
    resolve_registry,
    configure_middleware,
)
from .actions import blocking, AsyncAction, async_action
from .schedule import BlockingSchedule, ScheduledBlocker
from .conditional import ConditionalBlocker

__all__ = [
    "__version__",

    # Types
    "Scope",
    "normalize_scope",
    "BlockerConfig",
    "BlockerInfo",
    "BlockingAction",
    "MiddlewareEvent",

    # Timers
    "TimerScheduler",
    "LoopTimers",
    "is_safe_timeout",

    # Middleware
    "Middleware",
    "MiddlewarePipeline",

    # Registry and instances
    "BlockerRegistry",
    "create_registry",
    "get_registry",
    "reset_default_registry",
    "registry_context",
    "get_context_registry",
    "is_inside_registry_context",
    "resolve_registry",
    "configure_middleware",

    # Helpers
    "blocking",
    "AsyncAction",
    "async_action",
    "BlockingSchedule",
    "ScheduledBlocker",
    "ConditionalBlocker",
]
