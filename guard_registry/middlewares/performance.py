"""Performance middleware - detects blockers that stay active too long."""

from typing import Callable, Dict, Optional

from guard_common.config import config
from guard_common.logging import get_bound_logger

from ..middleware import Middleware
from ..types import BlockingAction, MiddlewareEvent

SlowBlockCallback = Callable[[str, int], None]

logger = get_bound_logger("middleware.performance")


def create_performance_middleware(slow_block_threshold_ms: Optional[int] = None,
                                  on_slow_block: Optional[SlowBlockCallback] = None) -> Middleware:
    """
    Create middleware measuring each blocker from add to remove.

    Durations at or above the threshold are logged as warnings and passed
    to on_slow_block(blocker_id, duration_ms). Timeouts and clears are not
    measured; a timeout is followed by its own remove event.

    Args:
        slow_block_threshold_ms: Duration considered slow
                                 (default: config.slow_block_threshold_ms, 3000)
        on_slow_block: Optional callback for slow blockers
    """
    threshold = (config.slow_block_threshold_ms
                 if slow_block_threshold_ms is None else slow_block_threshold_ms)
    block_start_times: Dict[str, int] = {}

    def performance_middleware(event: MiddlewareEvent) -> None:
        if event.action is BlockingAction.ADD:
            block_start_times[event.blocker_id] = event.timestamp
        elif event.action is BlockingAction.REMOVE:
            start_time = block_start_times.pop(event.blocker_id, None)
            if start_time is None:
                return

            duration = event.timestamp - start_time
            if duration >= threshold:
                logger.warning(
                    "Slow block detected",
                    blocker_id=event.blocker_id,
                    duration_ms=duration,
                    threshold_ms=threshold,
                )
                if on_slow_block is not None:
                    on_slow_block(event.blocker_id, duration)

    return performance_middleware
