"""
Plugin System - Main orchestration class

Entry point that wires configuration, logging, manifest discovery and the
plugin registry together and manages their start/stop sequence.
"""

from typing import Any, Dict, List, Optional

from ..domain.interfaces import DescriptorSource
from ..infrastructure.exceptions import PluginSystemException
from ..infrastructure.observability import configure_from_settings, get_logger
from .configuration import PluginSystemConfiguration
from .plugin_management import PluginDiscovery, PluginRegistry

logger = get_logger(__name__)


class PluginSystem:
    """
    Facade over the plugin registry and its collaborators.

    Starting the system configures logging from the registry settings,
    discovers plugin manifests and registers every descriptor found.
    Stopping deactivates active plugins in reverse activation order so
    dependents go before their dependencies.
    """

    def __init__(
        self,
        configuration: Optional[PluginSystemConfiguration] = None,
        registry: Optional[PluginRegistry] = None,
        discovery: Optional[DescriptorSource] = None,
        configure_logging: bool = True
    ):
        self.configuration = configuration or PluginSystemConfiguration()
        settings = self.configuration.get_registry_config()

        self.registry = registry or PluginRegistry(settings)
        self.discovery = discovery or PluginDiscovery(settings.manifest_paths)
        self._configure_logging = configure_logging
        self._running = False
        self._registered: List[str] = []
        self._skipped: Dict[str, str] = {}

    async def start(self) -> None:
        """
        Start the plugin system.

        Raises:
            PluginSystemException: If discovery or registration fails unexpectedly
        """
        if self._running:
            logger.warning("Plugin system is already running")
            return

        try:
            if self._configure_logging:
                configure_from_settings(self.configuration.get_registry_config().logging_config)

            with logger.correlation_context():
                logger.info("Starting plugin system...")
                self._register_discovered()
                self._running = True
                logger.info(
                    "Plugin system started",
                    extra={"registered": len(self._registered), "skipped": len(self._skipped)}
                )

        except Exception as e:
            logger.error("Failed to start plugin system", exc_info=e)
            raise PluginSystemException(
                "Failed to start plugin system",
                error_code="SYSTEM_START_ERROR",
                cause=e
            )

    def _register_discovered(self) -> None:
        # Plugins registered by an earlier start stay registered across restarts
        previous = set(self._registered)
        self._registered.clear()
        self._skipped.clear()

        for descriptor in self.discovery.load_descriptors():
            if (
                descriptor.name in previous
                and descriptor.name not in self._registered
                and self.registry.get_plugin(descriptor.name) is not None
            ):
                logger.debug(f"Plugin '{descriptor.name}' is already registered")
                self._registered.append(descriptor.name)
                continue

            result = self.registry.register(descriptor)
            if result.success:
                self._registered.append(descriptor.name)
            else:
                self._skipped[descriptor.name] = result.error.code.value
                logger.warning(
                    f"Skipping plugin '{descriptor.name}': {result.error.message}",
                    extra={"code": result.error.code.value}
                )

    async def stop(self) -> None:
        """Deactivate every active plugin, dependents first."""
        if not self._running:
            logger.warning("Plugin system is not running")
            return

        logger.info("Stopping plugin system...")

        active = [plugin.name for plugin in self.registry.get_active_plugins()]
        failures = {}
        for name in reversed(active):
            result = self.registry.deactivate(name)
            if not result.success:
                failures[name] = result.error.code.value

        if failures:
            logger.warning("Some plugins could not be deactivated", extra={"failures": failures})

        self._running = False
        logger.info("Plugin system stopped")

    async def restart(self) -> None:
        """Restart the plugin system."""
        await self.stop()
        await self.start()

    def is_running(self) -> bool:
        """Check if the plugin system is currently running."""
        return self._running

    def get_status(self) -> Dict[str, Any]:
        """Get the current status of the plugin system."""
        state = self.registry.get_state()
        return {
            "running": self._running,
            "registered_plugins": len(state.plugins),
            "active_plugins": list(state.active_plugins),
            "loading_plugins": sorted(state.loading_plugins),
            "failed_plugins": sorted(state.failed_plugins),
            "skipped_plugins": dict(self._skipped),
            "selected_plugin": state.selected_plugin,
        }
