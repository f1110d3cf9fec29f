"""
Plugin Registry

Single explicit object owning every piece of registry state: the catalog,
dependency validation, lifecycle, loading, navigation and bulk operations.
Mutating operations return PluginResult values and publish a fresh state
snapshot to subscribers.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, Union

from ...domain.interfaces import StateListener, select_all
from ...domain.models import (
    CapabilityKind,
    DependencyGraph,
    PluginDescriptor,
    PluginErrorCode,
    PluginLoadingState,
    PluginResult,
    RegisteredPlugin,
    RegistryState,
)
from ...infrastructure.observability import get_logger
from ..configuration.models import RegistryConfiguration
from .bulk_operations import BulkOperationsController
from .catalog import PluginCatalog
from .dependency_validator import DependencyValidator
from .lifecycle import LifecycleManager
from .loader import PluginLoader
from .navigation import NavigationHistory

logger = get_logger(__name__)

Selector = Callable[[RegistryState], Any]
Listener = Union[StateListener, Callable[[Any, Any], None]]


@dataclass(eq=False)
class _Subscription:
    listener: Listener
    selector: Selector
    last_value: Any

    def deliver(self, new_value: Any, old_value: Any) -> None:
        if isinstance(self.listener, StateListener):
            self.listener.on_state_change(new_value, old_value)
        else:
            self.listener(new_value, old_value)


class PluginRegistry:
    """
    Plugin lifecycle registry.

    Features:
    - Unique registration with dependency-aware unregistration
    - Async activation with shared in-flight loads
    - Navigation history over selected plugins and pages
    - Fail-fast bulk operations
    - Selector-based state subscriptions
    """

    def __init__(self, settings: Optional[RegistryConfiguration] = None):
        self.settings = settings or RegistryConfiguration()

        self._catalog = PluginCatalog()
        self._validator = DependencyValidator(self._catalog)
        self._loader = PluginLoader(self._catalog)
        self._navigation = NavigationHistory(self._catalog, self.settings.max_navigation_history)
        self._lifecycle = LifecycleManager(
            self._catalog,
            self._validator,
            self._loader,
            self._navigation,
            notify=self._publish
        )
        self._bulk = BulkOperationsController(self._lifecycle, self._catalog)
        self._subscriptions: List[_Subscription] = []

    # Registration

    def register(self, descriptor: PluginDescriptor) -> PluginResult[RegisteredPlugin]:
        """Add a plugin in the idle state; names must be unique."""
        name = getattr(descriptor, "name", None)
        with logger.plugin_context(name, "register"):
            try:
                with self._catalog.lock:
                    if descriptor.name in self._catalog:
                        return PluginResult.fail(
                            PluginErrorCode.PLUGIN_ALREADY_EXISTS,
                            f"Plugin '{descriptor.name}' is already registered",
                            {"plugin": descriptor.name}
                        )
                    plugin = self._catalog.add(descriptor)
                    if self.settings.rebuild_graph_on_change:
                        self._validator.build_dependency_graph()

                logger.info(
                    f"Registered plugin '{descriptor.name}'",
                    extra={"kind": descriptor.kind.value, "version": descriptor.version}
                )
                self._publish()
                return PluginResult.ok(plugin)
            except Exception as e:
                logger.error(f"Failed to register plugin '{name}'", exc_info=e)
                return PluginResult.fail(
                    PluginErrorCode.REGISTRATION_FAILED,
                    str(e) or type(e).__name__,
                    {"plugin": name},
                    exc=e
                )

    def unregister(self, name: str) -> PluginResult[None]:
        """
        Remove a plugin.

        Refused while any other registered plugin declares ``name`` as a
        dependency, whether or not that plugin is active. An active plugin is
        deactivated first.
        """
        with logger.plugin_context(name, "unregister"):
            try:
                with self._catalog.lock:
                    if name not in self._catalog:
                        return PluginResult.fail(
                            PluginErrorCode.PLUGIN_NOT_FOUND,
                            f"Plugin '{name}' is not registered",
                            {"plugin": name}
                        )

                    dependents = [d for d in self._validator.get_plugin_dependents(name) if d != name]
                    if dependents:
                        return PluginResult.fail(
                            PluginErrorCode.HAS_DEPENDENTS,
                            f"Cannot unregister plugin '{name}': other plugins depend on it",
                            {"plugin": name, "dependents": dependents}
                        )

                    if self._catalog.is_active(name):
                        result = self._lifecycle.deactivate(name)
                        if not result.success:
                            return result

                    self._catalog.remove(name)
                    self._navigation.clear_selection_for(name)
                    if self.settings.rebuild_graph_on_change:
                        self._validator.build_dependency_graph()

                logger.info(f"Unregistered plugin '{name}'")
                self._publish()
                return PluginResult.ok()
            except Exception as e:
                logger.error(f"Failed to unregister plugin '{name}'", exc_info=e)
                return PluginResult.fail(
                    PluginErrorCode.UNREGISTRATION_FAILED,
                    str(e) or type(e).__name__,
                    {"plugin": name},
                    exc=e
                )

    # Lifecycle

    async def activate(self, name: str) -> PluginResult[None]:
        return await self._lifecycle.activate(name)

    def deactivate(self, name: str) -> PluginResult[None]:
        return self._lifecycle.deactivate(name)

    async def load_plugin(
        self,
        name: str,
        capability: Optional[Union[CapabilityKind, str]] = None
    ) -> PluginResult[Any]:
        result = await self._loader.load_plugin(name, capability)
        self._publish()
        return result

    def unload_plugin(self, name: str) -> PluginResult[None]:
        result = self._loader.unload_plugin(name, self._lifecycle.deactivate)
        self._publish()
        return result

    # Navigation

    def select_plugin(self, name: str, page: Optional[str] = None) -> None:
        if self._navigation.select_plugin(name, page):
            self._publish()

    def select_page(self, name: str, page: Optional[str]) -> None:
        self._navigation.select_page(name, page)
        self._publish()

    def navigate_back(self) -> bool:
        moved = self._navigation.navigate_back()
        if moved:
            self._publish()
        return moved

    def navigate_forward(self) -> bool:
        moved = self._navigation.navigate_forward()
        if moved:
            self._publish()
        return moved

    def clear_navigation(self) -> None:
        self._navigation.clear_navigation()
        self._publish()

    # Dependencies

    def validate_dependencies(self, name: str) -> PluginResult[None]:
        return self._validator.validate_dependencies(name)

    def build_dependency_graph(self) -> PluginResult[DependencyGraph]:
        result = self._validator.build_dependency_graph()
        self._publish()
        return result

    def get_plugin_dependents(self, name: str) -> Tuple[str, ...]:
        return self._validator.get_plugin_dependents(name)

    # Bulk operations

    async def activate_multiple(self, names: Iterable[str]) -> PluginResult[None]:
        return await self._bulk.activate_multiple(names)

    def deactivate_multiple(self, names: Iterable[str]) -> PluginResult[None]:
        return self._bulk.deactivate_multiple(names)

    async def reload_all(self) -> PluginResult[None]:
        return await self._bulk.reload_all()

    # Queries

    def get_plugin(self, name: str) -> Optional[RegisteredPlugin]:
        return self._catalog.get(name)

    def list_plugins(self) -> List[RegisteredPlugin]:
        return self._catalog.all()

    def get_active_plugins(self) -> List[RegisteredPlugin]:
        return self._catalog.get_active_plugins()

    def is_plugin_active(self, name: str) -> bool:
        return self._catalog.is_active(name)

    def is_plugin_loaded(self, name: str) -> bool:
        return self._catalog.is_plugin_loaded(name)

    def has_errors(self, name: Optional[str] = None) -> bool:
        return self._catalog.has_errors(name)

    def get_loading_state(self, name: str) -> PluginLoadingState:
        return self._catalog.get_loading_state(name)

    def get_plugin_view(self, name: str) -> Dict[str, Any]:
        """Everything the rendering layer needs to show one plugin."""
        with self._catalog.lock:
            return {
                "plugin": self._catalog.get(name),
                "is_active": self._catalog.is_active(name),
                "is_loaded": self._catalog.is_plugin_loaded(name),
                "loading_state": self._catalog.get_loading_state(name),
                "has_error": self._catalog.has_errors(name),
            }

    def get_state(self) -> RegistryState:
        with self._catalog.lock:
            return self._catalog.snapshot(self._navigation.snapshot())

    def reset_state(self) -> None:
        """Forget every plugin and all navigation."""
        with self._catalog.lock:
            self._catalog.clear()
            self._navigation.reset()
        logger.info("Registry state reset")
        self._publish()

    # Subscriptions

    def subscribe(self, listener: Listener, selector: Optional[Selector] = None) -> Callable[[], None]:
        """
        Register a listener for state changes.

        The listener receives ``(new_value, old_value)`` of the selected
        slice only when that slice changed.

        Returns:
            Callable removing the subscription
        """
        selector = selector or select_all
        subscription = _Subscription(listener, selector, selector(self.get_state()))
        self._subscriptions.append(subscription)

        def unsubscribe() -> None:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

        return unsubscribe

    def _publish(self) -> None:
        if not self._subscriptions:
            return

        state = self.get_state()
        for subscription in list(self._subscriptions):
            try:
                new_value = subscription.selector(state)
                old_value = subscription.last_value
                if new_value == old_value:
                    continue
                subscription.last_value = new_value
                subscription.deliver(new_value, old_value)
            except Exception as e:
                logger.error("State listener failed", exc_info=e)
