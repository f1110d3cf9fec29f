"""
Domain Layer - Plugin registry value objects and boundary interfaces
"""

from .models import (
    CapabilityFactory,
    CapabilityKind,
    DependencyGraph,
    NavigationState,
    PluginCapabilities,
    PluginDescriptor,
    PluginError,
    PluginErrorCode,
    PluginKind,
    PluginLoadingState,
    PluginResult,
    PluginStatus,
    RegisteredPlugin,
    RegistryState,
)
from .interfaces import DescriptorSource, StateListener

__all__ = [
    "CapabilityFactory",
    "CapabilityKind",
    "DependencyGraph",
    "NavigationState",
    "PluginCapabilities",
    "PluginDescriptor",
    "PluginError",
    "PluginErrorCode",
    "PluginKind",
    "PluginLoadingState",
    "PluginResult",
    "PluginStatus",
    "RegisteredPlugin",
    "RegistryState",
    "DescriptorSource",
    "StateListener",
]
