#!/usr/bin/env python3
"""
Unified Logging Configuration and Context Management

Provides structured logging with automatic context propagation using structlog.
The registry, its middleware and the scheduling helpers all log through this
module so output stays consistent and carries the bound context.

All output goes through the stdlib "guard" logger. Configuration only ever
touches that logger, so the root handlers of a host application are left
alone.
"""

import logging
import sys
from contextlib import asynccontextmanager, contextmanager
from pathlib import Path
from typing import Optional, Union

import structlog

from .config import config
from .constants import ROOT_LOGGER_NAME

# Global flag to track if structlog has been configured
_STRUCTLOG_CONFIGURED = False

# Handler installed on the "guard" logger by the last configure_structlog() call
_guard_handler: Optional[logging.Handler] = None

# Shared processors for both structlog and stdlib logs
_SHARED_PROCESSORS = [
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.contextvars.merge_contextvars,
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
]

_LOGGER_PROCESSORS = [
    structlog.stdlib.filter_by_level,
    *_SHARED_PROCESSORS,
    structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
]


def configure_structlog(
    log_level: Optional[str] = None,
    log_format: Optional[str] = None,
    log_file: Optional[Union[str, Path]] = None,
    force_disable_console: bool = False
) -> None:
    """
    Configure output of the "guard" logger with stdlib integration.
    
    Every call reconfigures: the handler installed by the previous call is
    replaced, and loggers already handed out by get_bound_logger() pick up
    the new level, format and destination.
    
    Args:
        log_level: Logging level (default: config.log_level / GUARD_LOG_LEVEL)
        log_format: "json" or "console" (default: config.log_format / GUARD_LOG_FORMAT)
        log_file: Optional log file path (default: config.log_file / GUARD_LOG_FILE)
        force_disable_console: Send output nowhere (e.g. embedded in a host app)
    """
    global _STRUCTLOG_CONFIGURED, _guard_handler
    
    log_level = log_level or config.log_level
    log_format = log_format or config.log_format
    log_file = log_file if log_file is not None else config.log_file
    log_level_numeric = getattr(logging, log_level.upper(), logging.INFO)
    
    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(str(log_file), mode='a')
    elif force_disable_console:
        handler = logging.NullHandler()
    else:
        handler = logging.StreamHandler(sys.stdout)
    
    handler.setLevel(log_level_numeric)
    handler.setFormatter(structlog.stdlib.ProcessorFormatter(
        processor=structlog.processors.JSONRenderer() if log_format == "json" else structlog.dev.ConsoleRenderer(colors=False),
        foreign_pre_chain=_SHARED_PROCESSORS,
    ))
    
    guard_logger = logging.getLogger(ROOT_LOGGER_NAME)
    if _guard_handler is not None:
        guard_logger.removeHandler(_guard_handler)
        _guard_handler.close()
    guard_logger.addHandler(handler)
    guard_logger.setLevel(log_level_numeric)
    guard_logger.propagate = False
    
    _guard_handler = handler
    _STRUCTLOG_CONFIGURED = True


def get_bound_logger(component: str, **default_context):
    """
    Get a bound logger with component identity and optional default context.
    
    Usage:
        logger = get_bound_logger("registry", instance="default")
        logger.info("Registered middleware", middleware="logger")
    
    Args:
        component: Component name (e.g., "registry", "middleware")
        **default_context: Default context to bind to this logger instance
        
    Returns:
        Bound logger with component context
    """
    if not _STRUCTLOG_CONFIGURED:
        # Auto-configure from GUARD_* settings; an embedding application
        # may call configure_structlog() at any time to take over
        configure_structlog()
    
    base_logger = structlog.wrap_logger(
        logging.getLogger(ROOT_LOGGER_NAME),
        processors=_LOGGER_PROCESSORS,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
    )
    return base_logger.bind(component=component, **default_context)


@contextmanager
def operation_context(**context):
    """Context manager for temporary operation-specific context."""
    structlog.contextvars.bind_contextvars(**context)
    try:
        yield
    finally:
        if context:
            structlog.contextvars.unbind_contextvars(*context.keys())


@asynccontextmanager
async def async_operation_context(**context):
    """Async context manager for temporary operation-specific context."""
    structlog.contextvars.bind_contextvars(**context)
    try:
        yield
    finally:
        if context:
            structlog.contextvars.unbind_contextvars(*context.keys())


def set_log_level(level: str) -> None:
    """
    Dynamically change the "guard" log level at runtime.
    
    Args:
        level: New log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    level_numeric = getattr(logging, level.upper(), logging.INFO)
    logging.getLogger(ROOT_LOGGER_NAME).setLevel(level_numeric)
    if _guard_handler is not None:
        _guard_handler.setLevel(level_numeric)
