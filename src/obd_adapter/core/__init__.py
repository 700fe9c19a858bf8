"""Core application functionality."""

from obd_adapter.core.cache import ResponseCache
from obd_adapter.core.config import Settings, setup_logging

__all__ = [
    "ResponseCache",
    "Settings",
    "setup_logging",
]
