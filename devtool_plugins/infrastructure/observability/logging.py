"""
Structured Logging System for the plugin registry

Provides structured JSON logging with correlation IDs, plugin/operation context
management, and configurable formatters and handlers for different output
destinations.
"""

import json
import sys
import uuid
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, TextIO, Union, TYPE_CHECKING
from contextvars import ContextVar

if TYPE_CHECKING:
    from ...framework.configuration.models import LoggingConfiguration

ROOT_LOGGER_NAME = "devtool_plugins"

# Context variables for correlation tracking
correlation_id_var: ContextVar[Optional[str]] = ContextVar('correlation_id', default=None)
plugin_name_var: ContextVar[Optional[str]] = ContextVar('plugin_name', default=None)
operation_var: ContextVar[Optional[str]] = ContextVar('operation', default=None)


class LogLevel(Enum):
    """Log levels for the structured logging system"""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


_LEVEL_ORDER = {
    LogLevel.DEBUG: 0,
    LogLevel.INFO: 1,
    LogLevel.WARNING: 2,
    LogLevel.ERROR: 3,
    LogLevel.CRITICAL: 4
}


class LogFormatter(ABC):
    """Abstract base class for log formatters"""

    @abstractmethod
    def format(self, record: Dict[str, Any]) -> str:
        """Format a log record into a string"""
        pass


class JSONLogFormatter(LogFormatter):
    """JSON formatter for structured logging"""

    def format(self, record: Dict[str, Any]) -> str:
        return json.dumps(record, default=str, ensure_ascii=False)


class HumanReadableFormatter(LogFormatter):
    """Human-readable formatter for development/debugging"""

    def format(self, record: Dict[str, Any]) -> str:
        timestamp = record.get('timestamp', '')
        level = record.get('level', '')
        message = record.get('message', '')

        base_msg = f"[{timestamp}] {level} {record.get('logger', '')}: {message}"

        context = [
            f"{key}={record[key]}"
            for key in ('plugin', 'operation', 'correlation_id')
            if record.get(key)
        ]
        if context:
            base_msg += f" [{', '.join(context)}]"

        if record.get('extra'):
            extra_str = ', '.join(f"{k}={v}" for k, v in record['extra'].items())
            base_msg += f" [{extra_str}]"

        return base_msg


class LogHandler(ABC):
    """Abstract base class for log handlers"""

    def __init__(self, formatter: LogFormatter):
        self.formatter = formatter

    @abstractmethod
    def emit(self, record: Dict[str, Any]) -> None:
        """Emit a log record"""
        pass


class ConsoleLogHandler(LogHandler):
    """Console log handler that writes to stdout/stderr"""

    def __init__(self, formatter: LogFormatter, stream: TextIO = sys.stdout):
        super().__init__(formatter)
        self.stream = stream

    def emit(self, record: Dict[str, Any]) -> None:
        self.stream.write(self.formatter.format(record) + '\n')
        self.stream.flush()


class FileLogHandler(LogHandler):
    """File log handler that appends to a file"""

    def __init__(self, formatter: LogFormatter, file_path: Union[str, Path]):
        super().__init__(formatter)
        self.file_path = Path(file_path)
        self.file_path.parent.mkdir(parents=True, exist_ok=True)

    def emit(self, record: Dict[str, Any]) -> None:
        with open(self.file_path, 'a', encoding='utf-8') as f:
            f.write(self.formatter.format(record) + '\n')


class StructuredLogger:
    """
    Structured logger with correlation ID support and plugin context management.

    Records are emitted to this logger's handlers and then handed to the
    nearest registered ancestor (by dotted name), so configuring the
    ``devtool_plugins`` root logger captures every module logger.
    """

    def __init__(self, name: str, level: Optional[LogLevel] = None, propagate: bool = True):
        self.name = name
        self.level = level
        self.propagate = propagate
        self.handlers: list[LogHandler] = []

    def add_handler(self, handler: LogHandler) -> None:
        self.handlers.append(handler)

    def remove_handler(self, handler: LogHandler) -> None:
        if handler in self.handlers:
            self.handlers.remove(handler)

    def set_level(self, level: Optional[LogLevel]) -> None:
        """Set the logging level; None defers to the parent logger"""
        self.level = level

    def effective_level(self) -> LogLevel:
        logger: Optional[StructuredLogger] = self
        while logger is not None:
            if logger.level is not None:
                return logger.level
            logger = logger.parent()
        return LogLevel.INFO

    def parent(self) -> Optional['StructuredLogger']:
        """Nearest registered ancestor by dotted name"""
        name = self.name
        while '.' in name:
            name = name.rsplit('.', 1)[0]
            if name in _loggers:
                return _loggers[name]
        return None

    def _should_log(self, level: LogLevel) -> bool:
        return _LEVEL_ORDER[level] >= _LEVEL_ORDER[self.effective_level()]

    def _create_log_record(self, level: LogLevel, message: str, extra: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        record = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'level': level.value,
            'logger': self.name,
            'message': message,
            'correlation_id': correlation_id_var.get(),
            'plugin': plugin_name_var.get(),
            'operation': operation_var.get(),
        }

        if extra:
            record['extra'] = extra

        # Remove None values to keep logs clean
        return {k: v for k, v in record.items() if v is not None}

    def _handle(self, record: Dict[str, Any]) -> None:
        logger: Optional[StructuredLogger] = self
        while logger is not None:
            for handler in logger.handlers:
                try:
                    handler.emit(record)
                except Exception as e:
                    # Fallback to stderr if handler fails
                    sys.stderr.write(f"Logging handler failed: {e}\n")
            if not logger.propagate:
                break
            logger = logger.parent()

    def _log(self, level: LogLevel, message: str, extra: Optional[Dict[str, Any]] = None) -> None:
        if not self._should_log(level):
            return
        self._handle(self._create_log_record(level, message, extra))

    def debug(self, message: str, extra: Optional[Dict[str, Any]] = None) -> None:
        self._log(LogLevel.DEBUG, message, extra)

    def info(self, message: str, extra: Optional[Dict[str, Any]] = None) -> None:
        self._log(LogLevel.INFO, message, extra)

    def warning(self, message: str, extra: Optional[Dict[str, Any]] = None) -> None:
        self._log(LogLevel.WARNING, message, extra)

    def error(self, message: str, extra: Optional[Dict[str, Any]] = None, exc_info: Optional[BaseException] = None) -> None:
        """Log error message with optional exception info"""
        if exc_info:
            extra = dict(extra or {})
            extra['exception'] = {
                'type': type(exc_info).__name__,
                'message': str(exc_info),
                'module': type(exc_info).__module__
            }
        self._log(LogLevel.ERROR, message, extra)

    def critical(self, message: str, extra: Optional[Dict[str, Any]] = None) -> None:
        self._log(LogLevel.CRITICAL, message, extra)

    @contextmanager
    def correlation_context(self, correlation_id: Optional[str] = None):
        """Context manager for correlation ID tracking"""
        if correlation_id is None:
            correlation_id = str(uuid.uuid4())

        token = correlation_id_var.set(correlation_id)
        try:
            yield correlation_id
        finally:
            correlation_id_var.reset(token)

    @contextmanager
    def plugin_context(self, plugin_name: Optional[str], operation: Optional[str] = None):
        """Context manager tagging records with the plugin and operation in progress"""
        plugin_token = plugin_name_var.set(plugin_name)
        operation_token = operation_var.set(operation) if operation else None
        try:
            yield plugin_name
        finally:
            plugin_name_var.reset(plugin_token)
            if operation_token:
                operation_var.reset(operation_token)


# Global logger registry
_loggers: Dict[str, StructuredLogger] = {}


def get_logger(name: str, level: Optional[LogLevel] = None) -> StructuredLogger:
    """Get or create a logger instance"""
    if name not in _loggers:
        _loggers[name] = StructuredLogger(name, level)
    return _loggers[name]


def configure_default_logging(
    level: LogLevel = LogLevel.INFO,
    use_json: bool = True,
    log_file: Optional[Union[str, Path]] = None,
    console: bool = True
) -> StructuredLogger:
    """Configure the root plugin system logger, replacing existing handlers"""
    formatter = JSONLogFormatter() if use_json else HumanReadableFormatter()

    root_logger = get_logger(ROOT_LOGGER_NAME)
    root_logger.set_level(level)
    root_logger.handlers.clear()

    if console:
        root_logger.add_handler(ConsoleLogHandler(formatter))

    if log_file:
        root_logger.add_handler(FileLogHandler(formatter, log_file))

    return root_logger


def configure_from_settings(settings: "LoggingConfiguration") -> StructuredLogger:
    """Configure the root logger from a validated LoggingConfiguration"""
    return configure_default_logging(
        level=LogLevel(settings.level),
        use_json=settings.format == "json",
        log_file=settings.file_path if settings.output in ("file", "both") else None,
        console=settings.output in ("console", "both"),
    )


def reset_logging() -> None:
    """Drop every registered logger (used by tests)"""
    _loggers.clear()


def get_correlation_id() -> Optional[str]:
    return correlation_id_var.get()


def get_plugin_name() -> Optional[str]:
    return plugin_name_var.get()
