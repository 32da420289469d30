"""
Obscura Share Core Module

Application settings and logging.
"""

from .config import (
    Settings,
    LogSettings,
    ProbeSettings,
    get_settings,
)
from .logging import setup_logging, get_logger

__all__ = [
    # Settings
    "Settings",
    "LogSettings",
    "ProbeSettings",
    "get_settings",
    # Logging
    "setup_logging",
    "get_logger",
]
