"""Settings and structured logging."""

from src.config.logging import (
    bind_request_context,
    clear_request_context,
    configure_logging,
    get_logger,
)
from src.config.settings import (
    APISettings,
    InventorySettings,
    Settings,
    StorageSettings,
    get_settings,
    reset_settings,
)

__all__ = [
    "APISettings",
    "InventorySettings",
    "Settings",
    "StorageSettings",
    "get_settings",
    "reset_settings",
    "configure_logging",
    "get_logger",
    "bind_request_context",
    "clear_request_context",
]
