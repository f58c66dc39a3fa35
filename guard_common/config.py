"""Shared configuration management using pydantic-settings.

Provides centralized configuration with environment variable support
for the registry and its built-in middleware.

Environment Variables:
    GUARD_LOG_LEVEL - Logging level (default: INFO)
    GUARD_LOG_FORMAT - Log format: json or console (default: console)
    GUARD_LOG_FILE - Optional log file path (default: stdout)
    GUARD_DEBUG - Enable development instrumentation such as the
                  debug inspector middleware (default: false)
    GUARD_DEFAULT_SCOPE - Scope used when a blocker names none (default: global)
    GUARD_DEFAULT_REASON - Reason used when a blocker names none (default: Unknown)
    GUARD_DEFAULT_PRIORITY - Priority used when a blocker names none (default: 0)
    GUARD_ASYNC_ACTION_PRIORITY - Priority of async action blockers (default: 20)
    GUARD_MAX_TIMEOUT_MS - Largest delay a timer may be scheduled for (default: 2147483647)
    GUARD_SLOW_BLOCK_THRESHOLD_MS - Performance middleware threshold (default: 3000)

Example:
    export GUARD_LOG_LEVEL=DEBUG
    export GUARD_DEBUG=true
"""

import logging
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from .constants import (
    ASYNC_ACTION_PRIORITY,
    DEFAULT_LOG_FORMAT,
    DEFAULT_LOG_LEVEL,
    DEFAULT_PRIORITY,
    DEFAULT_REASON,
    DEFAULT_SLOW_BLOCK_THRESHOLD_MS,
    GLOBAL_SCOPE,
    MAX_TIMEOUT_MS,
)


class GuardBaseConfig(BaseSettings):
    """Configuration shared by the registry, its middleware and helpers."""
    
    # Logging configuration
    log_level: str = DEFAULT_LOG_LEVEL
    log_format: Literal["json", "console"] = DEFAULT_LOG_FORMAT
    log_file: Optional[Path] = None
    
    # Development instrumentation (debug inspector)
    debug: bool = False
    
    # Blocker defaults
    default_scope: str = GLOBAL_SCOPE
    default_reason: str = DEFAULT_REASON
    default_priority: int = Field(default=DEFAULT_PRIORITY, ge=0)
    async_action_priority: int = Field(default=ASYNC_ACTION_PRIORITY, ge=0)
    
    # Timers
    max_timeout_ms: int = Field(default=MAX_TIMEOUT_MS, gt=0)
    
    # Performance middleware
    slow_block_threshold_ms: int = Field(default=DEFAULT_SLOW_BLOCK_THRESHOLD_MS, ge=0)
    
    @field_validator('log_level', mode='after')
    @classmethod
    def parse_log_level(cls, v: str) -> str:
        """Normalize and validate the log level name."""
        level = v.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Invalid log level: {v}")
        return level
    
    model_config = {
        "env_prefix": "GUARD_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore"  # Ignore unknown environment variables
    }


# Global configuration instance
config = GuardBaseConfig()
