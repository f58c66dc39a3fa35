"""Guard Common - Shared utilities for the UI blocking registry.

This package contains configuration, constants, exceptions, logging and
async helpers used by guard_registry. It has no dependencies on any other
package of this project to avoid circular imports.
"""

__version__ = "0.1.0"

from .timestamps import (
    now_ms,
    parse_timestamp_ms,
)
from .config import GuardBaseConfig, config
from .constants import (
    GLOBAL_SCOPE,
    DEFAULT_REASON,
    DEFAULT_PRIORITY,
    ASYNC_ACTION_PRIORITY,
    MAX_TIMEOUT_MS,
    DEFAULT_SLOW_BLOCK_THRESHOLD_MS,
    DEFAULT_CHECK_INTERVAL_MS,
    DEVTOOLS_NAME,
    ALL_BLOCKERS_ID,
)
from .exceptions import (
    GuardError,
    RegistryContextError,
    ScheduleError,
)
from .logging import (
    configure_structlog,
    get_bound_logger,
    operation_context,
    async_operation_context,
    set_log_level,
)
from .async_utils import (
    run_sync,
    maybe_await,
)

__all__ = [
    "__version__",
    
    # Config
    "GuardBaseConfig",
    "config",
    
    # Timestamp functions
    "now_ms",
    "parse_timestamp_ms",
    
    # Constants
    "GLOBAL_SCOPE",
    "DEFAULT_REASON",
    "DEFAULT_PRIORITY",
    "ASYNC_ACTION_PRIORITY",
    "MAX_TIMEOUT_MS",
    "DEFAULT_SLOW_BLOCK_THRESHOLD_MS",
    "DEFAULT_CHECK_INTERVAL_MS",
    "DEVTOOLS_NAME",
    "ALL_BLOCKERS_ID",
    
    # Exceptions
    "GuardError",
    "RegistryContextError",
    "ScheduleError",
    
    # Logging utilities
    "configure_structlog",
    "get_bound_logger",
    "operation_context",
    "async_operation_context",
    "set_log_level",
    
    # Async utilities
    "run_sync",
    "maybe_await",
]
