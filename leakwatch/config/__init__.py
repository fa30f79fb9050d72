"""LeakWatch configuration module."""

from leakwatch.config.logging import (
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
)
from leakwatch.config.settings import Settings, get_settings

__all__ = [
    # Settings
    "Settings",
    "get_settings",
    # Logging
    "configure_logging",
    "get_logger",
    "bind_context",
    "clear_context",
]
