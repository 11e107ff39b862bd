"""Config module exports."""

from convexnav.config.loader import load_config
from convexnav.config.models import (
    CacheConfig,
    ConvexNavConfig,
    LoggingConfig,
    NavigatorConfig,
    SearchConfig,
)

__all__ = [
    "load_config",
    "CacheConfig",
    "ConvexNavConfig",
    "LoggingConfig",
    "NavigatorConfig",
    "SearchConfig",
]
