"""
Dependency Validator Module

Checks declared dependencies against catalog membership and answers
dependents queries. Dependency cycles are not detected.
"""

from datetime import datetime, timezone
from typing import List, Tuple

from ...domain.models import DependencyGraph, PluginErrorCode, PluginResult
from ...infrastructure.observability import get_logger
from .catalog import PluginCatalog

logger = get_logger(__name__)


class DependencyValidator:
    """Read-only dependency queries over the plugin catalog."""

    def __init__(self, catalog: PluginCatalog):
        self._catalog = catalog

    def missing_dependencies(self, name: str) -> List[str]:
        """Declared dependencies that are not registered, in declaration order."""
        with self._catalog.lock:
            plugin = self._catalog.get(name)
            if plugin is None:
                return []
            missing: List[str] = []
            for dependency in plugin.descriptor.dependencies:
                if dependency not in self._catalog and dependency not in missing:
                    missing.append(dependency)
            return missing

    def validate_dependencies(self, name: str) -> PluginResult[None]:
        """
        Verify that every declared dependency of ``name`` is registered.

        Dependencies only need to be registered, not active.
        """
        with self._catalog.lock:
            if name not in self._catalog:
                return PluginResult.fail(
                    PluginErrorCode.PLUGIN_NOT_FOUND,
                    f"Plugin '{name}' is not registered",
                    {"plugin": name}
                )

            missing = self.missing_dependencies(name)

        if missing:
            logger.warning(
                f"Plugin '{name}' has missing dependencies: {', '.join(missing)}",
                extra={"missing_dependencies": missing}
            )
            return PluginResult.fail(
                PluginErrorCode.MISSING_DEPENDENCIES,
                f"Plugin '{name}' has missing dependencies: {', '.join(missing)}",
                {"plugin": name, "missing_dependencies": missing}
            )

        return PluginResult.ok()

    def build_dependency_graph(self) -> PluginResult[DependencyGraph]:
        """Snapshot every registered plugin's dependencies into the catalog."""
        try:
            with self._catalog.lock:
                graph = DependencyGraph(
                    edges={
                        plugin.name: frozenset(plugin.descriptor.dependencies)
                        for plugin in self._catalog.all()
                    },
                    built_at=datetime.now(timezone.utc),
                )
                self._catalog.set_dependency_graph(graph)
            logger.debug("Dependency graph rebuilt", extra={"plugins": len(graph)})
            return PluginResult.ok(graph)
        except Exception as e:
            logger.error("Failed to build dependency graph", exc_info=e)
            return PluginResult.fail(PluginErrorCode.GRAPH_BUILD_FAILED, str(e) or type(e).__name__, exc=e)

    def get_plugin_dependents(self, name: str) -> Tuple[str, ...]:
        """Registered plugins declaring ``name`` as a dependency, regardless of activity."""
        with self._catalog.lock:
            return tuple(
                plugin.name
                for plugin in self._catalog.all()
                if name in plugin.descriptor.dependencies
            )

    def get_active_dependents(self, name: str) -> Tuple[str, ...]:
        """Other plugins that depend on ``name`` and are currently active."""
        with self._catalog.lock:
            return tuple(
                dependent
                for dependent in self.get_plugin_dependents(name)
                if dependent != name and self._catalog.is_active(dependent)
            )
