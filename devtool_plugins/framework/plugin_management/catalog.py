"""
Plugin Catalog Module

Registration store holding every registered plugin together with the
active, loading and failed bookkeeping. All access goes through a single
re-entrant lock so that readers always observe a consistent snapshot.
"""

import asyncio
import threading
from dataclasses import dataclass, replace
from datetime import datetime
from types import MappingProxyType
from typing import Dict, List, Optional, Tuple

from ...domain.models import (
    DependencyGraph,
    NavigationState,
    PluginDescriptor,
    PluginError,
    PluginLoadingState,
    PluginStatus,
    RegisteredPlugin,
    RegistryState,
)
from ...infrastructure.observability import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class InFlightOperation:
    """A load or activation currently awaiting a capability factory."""
    operation: str
    future: asyncio.Future


class PluginCatalog:
    """
    Owns the plugin map and the sets derived from lifecycle transitions.

    The active set is the single source of truth for activity; the status
    field of each wrapper is updated in the same locked step so the two
    never disagree.
    """

    def __init__(self):
        self.lock = threading.RLock()
        self._plugins: Dict[str, RegisteredPlugin] = {}
        self._active: Dict[str, None] = {}  # insertion-ordered set
        self._loading: Dict[str, InFlightOperation] = {}
        self._failed: Dict[str, PluginError] = {}
        self._dependency_graph = DependencyGraph()

    def __contains__(self, name: object) -> bool:
        with self.lock:
            return name in self._plugins

    def __len__(self) -> int:
        with self.lock:
            return len(self._plugins)

    # Membership

    def add(self, descriptor: PluginDescriptor) -> RegisteredPlugin:
        with self.lock:
            if descriptor.name in self._plugins:
                raise KeyError(f"Plugin '{descriptor.name}' is already in the catalog")
            plugin = RegisteredPlugin(descriptor=descriptor)
            self._plugins[descriptor.name] = plugin
            return plugin

    def remove(self, name: str) -> Optional[RegisteredPlugin]:
        with self.lock:
            self._active.pop(name, None)
            self._loading.pop(name, None)
            self._failed.pop(name, None)
            return self._plugins.pop(name, None)

    def get(self, name: str) -> Optional[RegisteredPlugin]:
        with self.lock:
            return self._plugins.get(name)

    def names(self) -> Tuple[str, ...]:
        with self.lock:
            return tuple(self._plugins)

    def holds(self, name: str, descriptor: PluginDescriptor) -> bool:
        """True while ``name`` is still registered with this exact descriptor."""
        with self.lock:
            plugin = self._plugins.get(name)
            return plugin is not None and plugin.descriptor is descriptor

    def all(self) -> List[RegisteredPlugin]:
        with self.lock:
            return list(self._plugins.values())

    def update(self, name: str, **changes) -> Optional[RegisteredPlugin]:
        """Replace a wrapper with an updated copy; no-op for unknown names."""
        with self.lock:
            plugin = self._plugins.get(name)
            if plugin is None:
                return None
            plugin = replace(plugin, **changes)
            self._plugins[name] = plugin
            return plugin

    # Active set

    def mark_active(self, name: str, loaded_at: datetime) -> RegisteredPlugin:
        with self.lock:
            plugin = self.update(name, status=PluginStatus.ACTIVE, loaded_at=loaded_at)
            if plugin is None:
                raise KeyError(name)
            self._active[name] = None
            self._loading.pop(name, None)
            self._failed.pop(name, None)
            return plugin

    def mark_inactive(self, name: str) -> None:
        with self.lock:
            self._active.pop(name, None)
            self.update(name, status=PluginStatus.IDLE)

    def is_active(self, name: str) -> bool:
        with self.lock:
            return name in self._active

    def active_names(self) -> Tuple[str, ...]:
        with self.lock:
            return tuple(self._active)

    # In-flight loads

    def begin_loading(self, name: str, operation: str, future: asyncio.Future) -> None:
        with self.lock:
            if name in self._loading:
                raise RuntimeError(f"Plugin '{name}' already has an operation in flight")
            self._loading[name] = InFlightOperation(operation, future)

    def end_loading(self, name: str, future: Optional[asyncio.Future] = None) -> None:
        """Drop the in-flight entry, only if it still belongs to ``future`` when given."""
        with self.lock:
            current = self._loading.get(name)
            if current is not None and (future is None or current.future is future):
                del self._loading[name]

    def in_flight(self, name: str) -> Optional[InFlightOperation]:
        with self.lock:
            return self._loading.get(name)

    def loading_names(self) -> Tuple[str, ...]:
        with self.lock:
            return tuple(self._loading)

    # Failures

    def record_failure(self, name: str, error: PluginError) -> None:
        with self.lock:
            if name in self._plugins:
                self._failed[name] = error

    def clear_failure(self, name: str) -> None:
        with self.lock:
            self._failed.pop(name, None)

    def get_failure(self, name: str) -> Optional[PluginError]:
        with self.lock:
            return self._failed.get(name)

    # Dependency graph snapshot

    @property
    def dependency_graph(self) -> DependencyGraph:
        with self.lock:
            return self._dependency_graph

    def set_dependency_graph(self, graph: DependencyGraph) -> None:
        with self.lock:
            self._dependency_graph = graph

    # Read queries

    def get_active_plugins(self) -> List[RegisteredPlugin]:
        """Active plugins in activation order."""
        with self.lock:
            return [self._plugins[name] for name in self._active if name in self._plugins]

    def is_plugin_loaded(self, name: str) -> bool:
        """True while loading or active, or once the server capability is cached."""
        with self.lock:
            plugin = self._plugins.get(name)
            if plugin is None:
                return False
            return plugin.status in (PluginStatus.LOADING, PluginStatus.ACTIVE) or plugin.capability_loaded

    def has_errors(self, name: Optional[str] = None) -> bool:
        with self.lock:
            if name is not None:
                return name in self._failed
            return len(self._failed) > 0

    def get_loading_state(self, name: str) -> PluginLoadingState:
        with self.lock:
            if name in self._loading:
                return PluginLoadingState(status="loading")

            error = self._failed.get(name)
            if error is not None:
                return PluginLoadingState(status="error", error=error)

            plugin = self._plugins.get(name)
            if plugin is not None:
                return PluginLoadingState(status="success", data=plugin)

            return PluginLoadingState(status="idle")

    def snapshot(self, navigation: NavigationState) -> RegistryState:
        with self.lock:
            return RegistryState(
                plugins=MappingProxyType(dict(self._plugins)),
                active_plugins=tuple(self._active),
                loading_plugins=frozenset(self._loading),
                failed_plugins=MappingProxyType(dict(self._failed)),
                dependency_graph=self._dependency_graph,
                navigation=navigation,
            )

    def clear(self) -> None:
        with self.lock:
            self._plugins.clear()
            self._active.clear()
            self._loading.clear()
            self._failed.clear()
            self._dependency_graph = DependencyGraph()
            logger.debug("Plugin catalog cleared")
