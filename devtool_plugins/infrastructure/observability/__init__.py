"""
Observability - Structured logging for the plugin registry

Provides structured JSON logging with correlation IDs and plugin context
tracking across registry components.
"""

from .logging import (
    StructuredLogger,
    LogLevel,
    LogFormatter,
    LogHandler,
    JSONLogFormatter,
    HumanReadableFormatter,
    ConsoleLogHandler,
    FileLogHandler,
    get_logger,
    configure_default_logging,
    configure_from_settings,
    reset_logging,
)

__all__ = [
    "StructuredLogger",
    "LogLevel",
    "LogFormatter",
    "LogHandler",
    "JSONLogFormatter",
    "HumanReadableFormatter",
    "ConsoleLogHandler",
    "FileLogHandler",
    "get_logger",
    "configure_default_logging",
    "configure_from_settings",
    "reset_logging",
]
