"""
Configuration module: Settings and logging.
"""

from relay_shared.config.settings import Settings, get_settings, settings
from relay_shared.config.logging import get_logger, setup_logging, audit_ws_connection

__all__ = [
    # settings
    "Settings",
    "get_settings",
    "settings",
    # logging
    "get_logger",
    "setup_logging",
    "audit_ws_connection",
]
