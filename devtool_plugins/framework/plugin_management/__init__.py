"""
Plugin Management System

This package provides plugin registration, dependency validation, lifecycle
management, capability loading, navigation history and manifest discovery
for developer tool plugins.
"""

from .catalog import PluginCatalog, InFlightOperation
from .dependency_validator import DependencyValidator
from .loader import PluginLoader
from .navigation import NavigationHistory
from .lifecycle import LifecycleManager
from .bulk_operations import BulkOperationsController
from .plugin_registry import PluginRegistry
from .plugin_validator import PluginValidator
from .plugin_discovery import PluginDiscovery, EntryPointLoader

__all__ = [
    'PluginCatalog',
    'InFlightOperation',
    'DependencyValidator',
    'PluginLoader',
    'NavigationHistory',
    'LifecycleManager',
    'BulkOperationsController',
    'PluginRegistry',
    'PluginValidator',
    'PluginDiscovery',
    'EntryPointLoader',
]
