"""
Structured Exception Hierarchy

Exceptions raised outside the registry's result boundary: configuration
loading, manifest discovery and explicit unwrapping of failed results.
"""

from typing import Dict, List, Any, Optional, TYPE_CHECKING
import uuid
from datetime import datetime, timezone

if TYPE_CHECKING:
    from ..domain.models import PluginError


class PluginSystemException(Exception):
    """
    Base exception class for all plugin system exceptions.

    Provides structured error information including error codes,
    context data, and correlation IDs for tracing.
    """

    def __init__(
        self,
        message: str,
        error_code: str,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        correlation_id: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.context = context or {}
        self.cause = cause
        self.correlation_id = correlation_id or str(uuid.uuid4())
        self.timestamp = datetime.now(timezone.utc)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code,
            "context": self.context,
            "correlation_id": self.correlation_id,
            "timestamp": self.timestamp.isoformat(),
            "cause": str(self.cause) if self.cause else None
        }


class ConfigurationError(PluginSystemException):
    """Raised when configuration-related errors occur."""

    def __init__(
        self,
        message: str,
        config_path: Optional[str] = None,
        validation_errors: Optional[List[Any]] = None,
        **kwargs
    ):
        context = kwargs.pop('context', {})
        if config_path:
            context['config_path'] = config_path
        if validation_errors:
            context['validation_errors'] = validation_errors

        super().__init__(
            message=message,
            error_code=kwargs.pop('error_code', "CONFIG_ERROR"),
            context=context,
            **kwargs
        )


class ManifestError(PluginSystemException):
    """Raised when a plugin manifest or capability entry point is invalid."""

    def __init__(
        self,
        message: str,
        manifest_path: Optional[str] = None,
        plugin_name: Optional[str] = None,
        validation_errors: Optional[List[str]] = None,
        **kwargs
    ):
        context = kwargs.pop('context', {})
        if manifest_path:
            context['manifest_path'] = manifest_path
        if plugin_name:
            context['plugin_name'] = plugin_name
        if validation_errors:
            context['validation_errors'] = validation_errors

        super().__init__(
            message=message,
            error_code="MANIFEST_ERROR",
            context=context,
            **kwargs
        )
        self.validation_errors = validation_errors or []


class PluginOperationError(PluginSystemException):
    """Raised by PluginResult.unwrap() when the result is a failure."""

    def __init__(self, error: "PluginError", **kwargs):
        super().__init__(
            message=error.message,
            error_code=error.code.value,
            context=dict(error.details),
            **kwargs
        )
        self.error = error
