"""
Plugin Loader Module

Performs the one-time load of a plugin's server capability. Concurrent
loads of the same plugin share one in-flight future so the capability
factory runs at most once.
"""

import asyncio
import inspect
from typing import Any, Callable, Optional, Union

from ...domain.models import (
    CapabilityKind,
    PluginDescriptor,
    PluginError,
    PluginErrorCode,
    PluginResult,
    PluginStatus,
)
from ...infrastructure.observability import get_logger
from .catalog import PluginCatalog

logger = get_logger(__name__)

LOAD_OPERATION = "load"


class PluginLoader:
    """Invokes and caches capability factories."""

    def __init__(self, catalog: PluginCatalog):
        self._catalog = catalog

    async def load_plugin(
        self,
        name: str,
        capability: Optional[Union[CapabilityKind, str]] = None
    ) -> PluginResult[Any]:
        """
        Load a plugin capability.

        Only the server capability is ever invoked; components and hooks are
        checked for presence and left for the rendering layer to call.

        Args:
            name: Registered plugin name
            capability: Capability to load, defaults to the server capability

        Returns:
            PluginResult carrying the cached server value on success
        """
        with logger.plugin_context(name, "load"):
            try:
                if name not in self._catalog:
                    return _not_found(name)

                kind = CapabilityKind(capability) if capability is not None else CapabilityKind.SERVER
                if kind is not CapabilityKind.SERVER:
                    plugin = self._catalog.get(name)
                    present = plugin is not None and plugin.descriptor.capabilities.has(kind)
                    logger.debug(
                        f"Capability '{kind.value}' of plugin '{name}' is loaded on demand",
                        extra={"present": present}
                    )
                    return PluginResult.ok()

                return await self._load_tracked(name)
            except Exception as e:
                logger.error(f"Unexpected error loading plugin '{name}'", exc_info=e)
                return PluginResult.fail(PluginErrorCode.LOAD_ERROR, str(e) or type(e).__name__, {"plugin": name}, exc=e)

    async def _load_tracked(self, name: str) -> PluginResult[Any]:
        # Wait out any load or activation already in flight, then load if still needed
        while True:
            with self._catalog.lock:
                in_flight = self._catalog.in_flight(name)
                if in_flight is None:
                    plugin = self._catalog.get(name)
                    if plugin is None:
                        return _not_found(name)
                    if plugin.descriptor.capabilities.server is None or plugin.capability_loaded:
                        return PluginResult.ok(plugin.loaded_capability)
                    descriptor = plugin.descriptor
                    future = asyncio.get_running_loop().create_future()
                    self._catalog.begin_loading(name, LOAD_OPERATION, future)
                    break
            await asyncio.shield(in_flight.future)

        result: PluginResult[Any] = PluginResult.fail(
            PluginErrorCode.LOAD_ERROR, f"Loading plugin '{name}' was interrupted", {"plugin": name}
        )
        try:
            result = await self.load_server(name, descriptor)
        finally:
            self._catalog.end_loading(name, future)
            if not future.done():
                future.set_result(result)
        return result

    async def load_server(self, name: str, descriptor: Optional[PluginDescriptor] = None) -> PluginResult[Any]:
        """
        Invoke the server factory unless already cached.

        Callers own the in-flight bookkeeping for ``name``. When ``descriptor``
        is given, the result is only stored if ``name`` is still registered
        with that descriptor once the factory returns.
        """
        plugin = self._catalog.get(name)
        if plugin is None or (descriptor is not None and plugin.descriptor is not descriptor):
            return _not_found(name)
        descriptor = plugin.descriptor

        factory = plugin.descriptor.capabilities.server
        if factory is None or plugin.capability_loaded:
            return PluginResult.ok(plugin.loaded_capability)

        try:
            value = await self._invoke(factory)
        except Exception as e:
            error = PluginError.from_exception(PluginErrorCode.LOAD_FAILED, e, {"plugin": name})
            with self._catalog.lock:
                if not self._catalog.holds(name, descriptor):
                    return _not_found(name, "was unregistered while loading")
                self._catalog.record_failure(name, error)
            logger.error(f"Failed to load server capability of plugin '{name}'", exc_info=e)
            return PluginResult.from_error(error)

        with self._catalog.lock:
            if not self._catalog.holds(name, descriptor):
                return _not_found(name, "was unregistered while loading")
            self._catalog.update(name, loaded_capability=value, capability_loaded=True)
            failure = self._catalog.get_failure(name)
            if failure is not None and failure.code is PluginErrorCode.LOAD_FAILED:
                self._catalog.clear_failure(name)

        logger.info(f"Loaded server capability of plugin '{name}'")
        return PluginResult.ok(value)

    @staticmethod
    async def _invoke(factory: Callable[[], Any]) -> Any:
        value = factory()
        if inspect.isawaitable(value):
            value = await value
        return value

    def unload_plugin(self, name: str, deactivate: Callable[[str], PluginResult[None]]) -> PluginResult[None]:
        """
        Deactivate (if active) and drop the cached capability and any failure.

        Args:
            name: Registered plugin name
            deactivate: Lifecycle deactivation used when the plugin is active
        """
        with logger.plugin_context(name, "unload"):
            try:
                with self._catalog.lock:
                    if name not in self._catalog:
                        return _not_found(name)

                    in_flight = self._catalog.in_flight(name)
                    if in_flight is not None:
                        return PluginResult.fail(
                            PluginErrorCode.UNLOAD_FAILED,
                            f"Cannot unload plugin '{name}' while its {in_flight.operation} is in progress",
                            {"plugin": name, "operation": in_flight.operation}
                        )

                    if self._catalog.is_active(name):
                        result = deactivate(name)
                        if not result.success:
                            return result

                    self._catalog.update(
                        name,
                        status=PluginStatus.IDLE,
                        loaded_capability=None,
                        capability_loaded=False,
                    )
                    self._catalog.clear_failure(name)

                logger.info(f"Unloaded plugin '{name}'")
                return PluginResult.ok()
            except Exception as e:
                logger.error(f"Unexpected error unloading plugin '{name}'", exc_info=e)
                return PluginResult.fail(PluginErrorCode.UNLOAD_FAILED, str(e) or type(e).__name__, {"plugin": name}, exc=e)


def _not_found(name: str, reason: str = "is not registered") -> PluginResult[Any]:
    return PluginResult.fail(
        PluginErrorCode.PLUGIN_NOT_FOUND,
        f"Plugin '{name}' {reason}",
        {"plugin": name}
    )
