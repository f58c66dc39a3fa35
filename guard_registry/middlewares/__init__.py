"""Built-in middleware for the blocker registry."""

from .analytics import build_event_data, create_analytics_middleware
from .inspector import create_inspector_middleware
from .logger import format_log_data, get_action_label, logger_middleware
from .performance import create_performance_middleware

__all__ = [
    "logger_middleware",
    "format_log_data",
    "get_action_label",
    "create_analytics_middleware",
    "build_event_data",
    "create_performance_middleware",
    "create_inspector_middleware",
]
