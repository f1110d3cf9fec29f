"""
Configuration Management System

Type-safe configuration management with hierarchical configuration support,
YAML and environment variable sources, and validation.
"""

from .models import (
    LoggingConfiguration,
    RegistryConfiguration
)

from .sources import (
    ConfigurationSource,
    YAMLConfigurationSource,
    EnvironmentConfigurationSource
)

from .validation import (
    ConfigurationValidator,
    ConfigurationValidationError
)

from .core import PluginSystemConfiguration

from .builder import ConfigurationBuilder

from .utils import (
    load_configuration_from_file,
    load_default_configuration
)

__all__ = [
    # Models
    'LoggingConfiguration',
    'RegistryConfiguration',

    # Sources
    'ConfigurationSource',
    'YAMLConfigurationSource',
    'EnvironmentConfigurationSource',

    # Validation
    'ConfigurationValidator',
    'ConfigurationValidationError',

    # Core
    'PluginSystemConfiguration',

    # Builder
    'ConfigurationBuilder',

    # Utilities
    'load_configuration_from_file',
    'load_default_configuration'
]
