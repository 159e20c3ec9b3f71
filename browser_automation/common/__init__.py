"""
================================================================================
Browser Automation Common Utilities
================================================================================

This module provides shared configuration management and logging setup for
all browser automation components.

Exports:
    - ConfigLoader: Singleton YAML/env configuration loader
    - Settings: Typed configuration snapshot
    - get_config: Convenience function to get configuration values
    - init_logger: Function to initialize loguru logger with standard settings

Usage:
    from browser_automation.common import get_config, init_logger

    init_logger()
    port = get_config("server.port", 3002)

================================================================================
"""

import os
import sys
from datetime import datetime, timezone
from typing import Any

from loguru import logger

from .config_loader import ConfigLoader, ConfigurationError, Settings, resolve_environment
from .errors import (
    ActionFailedError,
    AutomationError,
    ElementMapNotFoundError,
    InvalidFormatError,
    NotFoundError,
    QueryNotFoundError,
    RateLimitedError,
    SecurityDeniedError,
    SessionNotFoundError,
    StoreMapNotFoundError,
    StoreUnavailableError,
    UninitializedError,
    WaitTimeoutError,
)


# ============================================================
# Configuration Management
# ============================================================

def get_config(key: str, default: Any = None) -> Any:
    """
    Convenience function to get a configuration value.

    Args:
        key: Configuration key using dot notation
        default: Default value if not found

    Returns:
        Configuration value or default

    Example:
        port = get_config("server.port", 3002)
    """
    return ConfigLoader().get(key, default)


# ============================================================
# Logging Setup
# ============================================================

_logger_initialized = False


def init_logger(
    level: str = None,
    format_string: str = None,
    log_file: str = None
) -> None:
    """
    Initializes the loguru logger with standard settings.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR). Defaults to config value.
        format_string: Log format string. Uses default if not provided.
        log_file: Optional file path to write logs to.

    Example:
        init_logger()  # Use defaults
        init_logger(level="DEBUG", log_file="logs/automation.log")
    """
    global _logger_initialized

    if _logger_initialized:
        return

    logger.remove()

    level = (level or get_config("logging.level", "INFO")).upper()
    format_string = format_string or get_config(
        "logging.format",
        "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
        "<level>{message}</level>"
    )

    logger.add(
        sys.stderr,
        format=format_string,
        level=level,
        colorize=True,
        backtrace=True,
        diagnose=False,
    )

    log_file = log_file or get_config("logging.file")
    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)

        logger.add(
            log_file,
            format=format_string,
            level=level,
            rotation=get_config("logging.rotation", "10 MB"),
            retention=get_config("logging.retention", "7 days"),
            compression="zip",
        )

    _logger_initialized = True
    logger.debug(f"Logger initialized with level: {level}")


# ============================================================
# Common Utilities
# ============================================================

def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


__all__ = [
    "ConfigLoader",
    "ConfigurationError",
    "Settings",
    "resolve_environment",
    "get_config",
    "init_logger",
    "utc_now_iso",
    "AutomationError",
    "NotFoundError",
    "ElementMapNotFoundError",
    "StoreMapNotFoundError",
    "SessionNotFoundError",
    "QueryNotFoundError",
    "ActionFailedError",
    "WaitTimeoutError",
    "SecurityDeniedError",
    "UninitializedError",
    "StoreUnavailableError",
    "InvalidFormatError",
    "RateLimitedError",
]
