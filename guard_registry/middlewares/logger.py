"""Logger middleware - one structured log line per registry mutation."""

from typing import Any, Dict, Optional

from guard_common.logging import get_bound_logger

from ..types import BlockerInfo, MiddlewareEvent

logger = get_bound_logger("middleware.logger")

ACTION_LABELS = {
    "add": "added",
    "update": "updated",
    "remove": "removed",
    "timeout": "timed out",
    "clear": "cleared",
    "clear_scope": "cleared scope",
}


def get_action_label(action: str) -> str:
    return ACTION_LABELS.get(action, "unknown")


def _config_details(info: Optional[BlockerInfo]) -> Dict[str, Any]:
    if info is None:
        return {}
    return {
        "scope": list(info.scope) if isinstance(info.scope, tuple) else info.scope,
        "reason": info.reason,
        "priority": info.priority,
    }


def format_log_data(event: MiddlewareEvent) -> Dict[str, Any]:
    """
    Build the log payload for an event.

    Events that only carry a config are flattened to the config details;
    everything else is nested under scope/count/config/prev_state.
    """
    config_details = _config_details(event.config)
    log_data: Dict[str, Any] = {}

    if event.scope is not None:
        log_data["scope"] = event.scope
    if event.count is not None:
        log_data["count"] = event.count
    if config_details:
        log_data["config"] = config_details
    if event.prev_state is not None:
        log_data["prev_state"] = _config_details(event.prev_state)

    if not log_data or list(log_data) == ["config"]:
        return config_details
    return log_data


def logger_middleware(event: MiddlewareEvent) -> None:
    action = event.action.value
    logger.info(
        f"ui_blocking.{action}",
        label=get_action_label(action),
        blocker_id=event.blocker_id,
        **format_log_data(event),
    )
