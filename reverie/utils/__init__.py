"""
Utils package for Reverie - exceptions and shared helpers
"""

from .exceptions import (
    ConfigurationError,
    ConversationNotFoundError,
    ExceptionHandler,
    ReverieError,
    SchemaValidationError,
    StoreUnavailableError,
    UpstreamError,
)
from .time_context import TimeContext, get_time_context, parse_iso, to_iso, utc_now

__all__ = [
    # Exceptions
    "ReverieError",
    "ConfigurationError",
    "StoreUnavailableError",
    "ConversationNotFoundError",
    "UpstreamError",
    "SchemaValidationError",
    "ExceptionHandler",
    # Time helpers
    "TimeContext",
    "get_time_context",
    "parse_iso",
    "to_iso",
    "utc_now",
]
