"""Analytics middleware - forwards registry events to a tracking function."""

from typing import Callable, Dict, List, Union

from guard_common.logging import get_bound_logger

from ..middleware import Middleware
from ..types import MiddlewareEvent

AnalyticsEventData = Dict[str, Union[str, int, List[str]]]
TrackFunction = Callable[[str, AnalyticsEventData], None]

logger = get_bound_logger("middleware.analytics")


def build_event_data(event: MiddlewareEvent) -> AnalyticsEventData:
    """Flatten an event to blocker_id/scope/reason/priority; scope lists are comma-joined."""
    data: AnalyticsEventData = {"blocker_id": event.blocker_id}
    info = event.config
    if info is None:
        if event.scope is not None:
            data["scope"] = event.scope
        return data

    data["scope"] = ",".join(info.scope) if isinstance(info.scope, tuple) else info.scope
    data["reason"] = info.reason
    data["priority"] = info.priority
    return data


def create_analytics_middleware(track: TrackFunction) -> Middleware:
    """
    Create middleware that calls track("ui_blocking_<action>", data) per event.

    A failing tracker never affects the registry or the other middleware.
    """
    def analytics_middleware(event: MiddlewareEvent) -> None:
        data = build_event_data(event)
        try:
            track(f"ui_blocking_{event.action.value}", data)
        except Exception as e:
            logger.debug("Analytics tracker failed", blocker_id=event.blocker_id, error=str(e))

    return analytics_middleware
