"""Core module exports."""

from convexnav.core.errors import (
    ConfigError,
    ConvexNavError,
    ErrorCode,
    ResolverError,
)
from convexnav.core.logging import (
    configure_logging,
    set_request_id,
)
from convexnav.core.progress import pluralize, spinner, status

__all__ = [
    # Errors
    "ConvexNavError",
    "ConfigError",
    "ErrorCode",
    "ResolverError",
    # Logging
    "configure_logging",
    "set_request_id",
    # Progress
    "pluralize",
    "spinner",
    "status",
]
