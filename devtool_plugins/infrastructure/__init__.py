"""
Infrastructure Layer - Cross-cutting technical services

Structured exceptions and observability used by every registry component.
"""

from .exceptions import (
    PluginSystemException,
    ConfigurationError,
    ManifestError,
    PluginOperationError,
)
from .observability import (
    StructuredLogger, LogLevel, LogFormatter, LogHandler,
    get_logger, configure_default_logging, configure_from_settings,
)

__all__ = [
    "PluginSystemException",
    "ConfigurationError",
    "ManifestError",
    "PluginOperationError",
    "StructuredLogger",
    "LogLevel",
    "LogFormatter",
    "LogHandler",
    "get_logger",
    "configure_default_logging",
    "configure_from_settings",
]
