"""
devtool_plugins - Plugin lifecycle registry for developer tooling

Registers pluggable units of functionality, validates their declared
dependencies, drives them through an activation lifecycle, loads their
optional asynchronous capabilities and keeps a navigable history of the
selected plugin and page.
"""

__version__ = "1.0.0"
__author__ = "devtool_plugins Development Team"

from .domain import (
    CapabilityKind,
    PluginCapabilities,
    PluginDescriptor,
    PluginErrorCode,
    PluginKind,
    PluginResult,
    PluginStatus,
)
from .framework import PluginSystem, PluginRegistry

__all__ = [
    "CapabilityKind",
    "PluginCapabilities",
    "PluginDescriptor",
    "PluginErrorCode",
    "PluginKind",
    "PluginResult",
    "PluginStatus",
    "PluginSystem",
    "PluginRegistry",
]
