"""
Configuration sources for loading configuration data.
"""

import os
import yaml
from abc import ABC, abstractmethod
from typing import Dict, Any, Union
from pathlib import Path

from ...infrastructure.exceptions import ConfigurationError

DEFAULT_ENV_PREFIX = "DEVTOOL_PLUGINS_"


class ConfigurationSource(ABC):
    """Abstract base class for configuration sources."""

    @abstractmethod
    def load(self) -> Dict[str, Any]:
        """Load configuration data from the source."""
        pass

    @abstractmethod
    def get_priority(self) -> int:
        """Get the priority of this source (higher number = higher priority)."""
        pass


class YAMLConfigurationSource(ConfigurationSource):
    """YAML file configuration source."""

    def __init__(self, file_path: Union[str, Path], priority: int = 100):
        self.file_path = Path(file_path)
        self.priority = priority

    def load(self) -> Dict[str, Any]:
        """Load configuration from YAML file."""
        if not self.file_path.exists():
            raise ConfigurationError(
                f"Configuration file not found: {self.file_path}",
                config_path=str(self.file_path),
                error_code="CONFIG_FILE_NOT_FOUND"
            )

        try:
            with open(self.file_path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Invalid YAML in configuration file: {self.file_path}",
                config_path=str(self.file_path),
                error_code="INVALID_YAML",
                context={"yaml_error": str(e)},
                cause=e
            ) from e
        except OSError as e:
            raise ConfigurationError(
                f"Error reading configuration file: {self.file_path}",
                config_path=str(self.file_path),
                error_code="CONFIG_READ_ERROR",
                cause=e
            ) from e

        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Configuration file must contain a mapping: {self.file_path}",
                config_path=str(self.file_path),
                error_code="INVALID_CONFIG_STRUCTURE"
            )
        return data

    def get_priority(self) -> int:
        return self.priority


class EnvironmentConfigurationSource(ConfigurationSource):
    """Environment variable configuration source."""

    # Keys whose values are always lists, even without a comma
    LIST_FIELDS = {'registry_manifest_paths'}

    def __init__(self, prefix: str = DEFAULT_ENV_PREFIX, priority: int = 200):
        self.prefix = prefix.upper()
        self.priority = priority

    def load(self) -> Dict[str, Any]:
        """Load configuration from environment variables."""
        config: Dict[str, Any] = {}

        for key, value in os.environ.items():
            if key.startswith(self.prefix):
                config_key = key[len(self.prefix):].lower()
                self._set_nested_value(config, config_key, self._parse_value(value, config_key))

        return config

    def _set_nested_value(self, config: Dict[str, Any], key: str, value: Any) -> None:
        """Set a nested configuration value using underscore notation."""
        parts = key.split('_')

        # REGISTRY_LOGGING_CONFIG_LEVEL -> registry.logging_config.level
        if len(parts) >= 4 and parts[0] == 'registry' and parts[1] == 'logging' and parts[2] == 'config':
            section = config.setdefault('registry', {}).setdefault('logging_config', {})
            section['_'.join(parts[3:])] = value
            return

        # REGISTRY_MAX_NAVIGATION_HISTORY -> registry.max_navigation_history
        if len(parts) >= 2 and parts[0] == 'registry':
            config.setdefault('registry', {})['_'.join(parts[1:])] = value
            return

        current = config
        for part in parts[:-1]:
            if not isinstance(current.get(part), dict):
                current[part] = {}
            current = current[part]
        current[parts[-1]] = value

    def _parse_value(self, value: str, key: str = "") -> Any:
        """Parse environment variable value to appropriate type."""
        if key in self.LIST_FIELDS:
            return [item.strip() for item in value.split(',') if item.strip()]

        if value.lower() in ('true', 'false'):
            return value.lower() == 'true'

        try:
            return int(value)
        except ValueError:
            pass

        try:
            return float(value)
        except ValueError:
            pass

        if ',' in value:
            return [item.strip() for item in value.split(',')]

        return value

    def get_priority(self) -> int:
        return self.priority
