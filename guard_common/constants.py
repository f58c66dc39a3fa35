"""Shared constants and defaults for the UI blocking registry."""

# Scope that blocks every other scope
GLOBAL_SCOPE = "global"

# Blocker defaults
DEFAULT_REASON = "Unknown"
DEFAULT_PRIORITY = 0
ASYNC_ACTION_PRIORITY = 20  # Priority used for blockers created around async actions

# Timer limits
MAX_TIMEOUT_MS = 2147483647  # Largest single-shot delay (~24.8 days)

# Middleware defaults
DEFAULT_SLOW_BLOCK_THRESHOLD_MS = 3000
DEFAULT_CHECK_INTERVAL_MS = 1000  # Conditional blocker polling interval
DEVTOOLS_NAME = "UIBlocking"

# Blocker id carried by clear/clear_scope events
ALL_BLOCKERS_ID = "*"

# Logging
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_LOG_FORMAT = "console"
ROOT_LOGGER_NAME = "guard"
