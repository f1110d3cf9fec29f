"""
Framework Layer - Plugin system services

This layer provides the main entry point and orchestration for the plugin
system, including configuration management and plugin management.
"""

from .plugin_system import PluginSystem
from .configuration import PluginSystemConfiguration, ConfigurationBuilder
from .plugin_management import PluginRegistry, PluginDiscovery

__all__ = [
    "PluginSystem",
    "PluginSystemConfiguration",
    "ConfigurationBuilder",
    "PluginRegistry",
    "PluginDiscovery",
]
