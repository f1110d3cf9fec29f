"""
Configuration builder for creating PluginSystemConfiguration instances.
"""

from typing import List, Union
from pathlib import Path

from .core import PluginSystemConfiguration
from .sources import (
    DEFAULT_ENV_PREFIX,
    ConfigurationSource,
    EnvironmentConfigurationSource,
    YAMLConfigurationSource,
)


class ConfigurationBuilder:
    """
    Builder for PluginSystemConfiguration instances with multiple sources.
    """

    def __init__(self):
        self._sources: List[ConfigurationSource] = []

    def add_yaml_source(self, path: Union[str, Path], priority: int = 100) -> 'ConfigurationBuilder':
        """
        Add a YAML configuration source.

        Args:
            path: Path to the YAML configuration file
            priority: Priority of this source (higher = more important)
        """
        self._sources.append(YAMLConfigurationSource(path, priority))
        return self

    def add_environment_source(self, prefix: str = DEFAULT_ENV_PREFIX, priority: int = 200) -> 'ConfigurationBuilder':
        """
        Add environment variable configuration source.

        Args:
            prefix: Environment variable prefix (default: DEVTOOL_PLUGINS_)
            priority: Priority of this source (higher = more important)
        """
        self._sources.append(EnvironmentConfigurationSource(prefix, priority))
        return self

    def add_source(self, source: ConfigurationSource) -> 'ConfigurationBuilder':
        """Add a custom configuration source."""
        self._sources.append(source)
        return self

    def add_defaults(self) -> 'ConfigurationBuilder':
        """Add default configuration sources (environment variables)."""
        return self.add_environment_source(DEFAULT_ENV_PREFIX, 200)

    def build(self) -> PluginSystemConfiguration:
        """
        Build the configuration instance with all added sources.

        Returns:
            PluginSystemConfiguration with all sources loaded and merged
        """
        if not self._sources:
            self.add_defaults()

        return PluginSystemConfiguration(self._sources.copy())
