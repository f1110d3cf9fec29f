"""
Core configuration management class.
"""

import threading
from typing import Dict, Any, Optional, List, Callable

from ...infrastructure.observability import get_logger
from .models import RegistryConfiguration
from .sources import ConfigurationSource
from .validation import ConfigurationValidator

logger = get_logger(__name__)


class PluginSystemConfiguration:
    """
    Configuration for the plugin system with hierarchical source merging.

    Sources are merged in priority order (lowest first, so higher priorities
    override) and the result is validated before it replaces the active
    configuration.
    """

    def __init__(self, sources: Optional[List[ConfigurationSource]] = None):
        self._sources = list(sources or [])
        self._config_data: Dict[str, Any] = {}
        self._registry_config: Optional[RegistryConfiguration] = None
        self._warnings: List[str] = []
        self._reload_callbacks: List[Callable[[], None]] = []
        self._config_lock = threading.RLock()

        if self._sources:
            self._load_configuration()

    def add_source(self, source: ConfigurationSource) -> None:
        """Add a configuration source."""
        with self._config_lock:
            self._sources.append(source)
            self._sources.sort(key=lambda s: s.get_priority())

    def _load_configuration(self) -> None:
        """Load and merge configuration from all sources."""
        merged_config: Dict[str, Any] = {}

        for source in sorted(self._sources, key=lambda s: s.get_priority()):
            try:
                merged_config = self._deep_merge(merged_config, source.load())
            except Exception as e:
                logger.error(
                    f"Failed to load configuration from source: {type(source).__name__}",
                    exc_info=e
                )
                raise

        try:
            warnings = ConfigurationValidator.validate_configuration(merged_config)
        except Exception as e:
            logger.error("Configuration validation failed", exc_info=e)
            raise

        for warning in warnings:
            logger.warning(warning)

        with self._config_lock:
            self._config_data = merged_config
            self._warnings = warnings
            self._registry_config = RegistryConfiguration(**merged_config.get('registry', {}))

    def _deep_merge(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge two dictionaries, with override taking precedence."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result

    def get_registry_config(self) -> RegistryConfiguration:
        """Get registry configuration, falling back to defaults."""
        with self._config_lock:
            if self._registry_config is None:
                return RegistryConfiguration()
            return self._registry_config

    def get_warnings(self) -> List[str]:
        with self._config_lock:
            return list(self._warnings)

    def get_raw_config(self) -> Dict[str, Any]:
        """Get the raw configuration data."""
        with self._config_lock:
            return self._config_data.copy()

    def reload_configuration(self) -> None:
        """Reload configuration from all sources and notify callbacks."""
        self._load_configuration()

        for callback in self._reload_callbacks:
            try:
                callback()
            except Exception as e:
                logger.error("Error in reload callback", exc_info=e)

    def add_reload_callback(self, callback: Callable[[], None]) -> None:
        self._reload_callbacks.append(callback)

    def remove_reload_callback(self, callback: Callable[[], None]) -> None:
        if callback in self._reload_callbacks:
            self._reload_callbacks.remove(callback)
