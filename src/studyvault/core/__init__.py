"""Core StudyVault utilities.

This module exports core utilities for use throughout the application.
"""

from studyvault.core.config import Settings, get_settings
from studyvault.core.exceptions import (
    OperationTimeoutError,
    ReadError,
    StoreConnectionError,
    StoreError,
    WriteError,
)
from studyvault.core.logging import (
    LoggingContext,
    bind_correlation_id,
    clear_context,
    configure_logging,
    get_logger,
)
from studyvault.core.timeouts import wait_with_timeout

__all__ = [
    "Settings",
    "get_settings",
    "configure_logging",
    "get_logger",
    "LoggingContext",
    "bind_correlation_id",
    "clear_context",
    "StoreError",
    "StoreConnectionError",
    "ReadError",
    "WriteError",
    "OperationTimeoutError",
    "wait_with_timeout",
]
