"""
Plugin Lifecycle Management

Drives plugins through idle -> loading -> active, active -> idle and
loading -> failed. Activation validates dependencies first and delegates
loading of the server capability to the PluginLoader.
"""

import asyncio
from datetime import datetime, timezone
from typing import Callable, Optional, Tuple

from ...domain.models import (
    PluginDescriptor,
    PluginError,
    PluginErrorCode,
    PluginResult,
    PluginStatus,
)
from ...infrastructure.observability import get_logger
from .catalog import PluginCatalog
from .dependency_validator import DependencyValidator
from .loader import PluginLoader
from .navigation import NavigationHistory

logger = get_logger(__name__)

ACTIVATE_OPERATION = "activate"


class LifecycleManager:
    """
    Lifecycle Manager for activation and deactivation.

    Features:
    - Concurrent activations of one plugin share a single in-flight future
    - Failed loads leave the plugin in the failed state until retried
    - Deactivation is refused while active dependents exist
    """

    def __init__(
        self,
        catalog: PluginCatalog,
        validator: DependencyValidator,
        loader: PluginLoader,
        navigation: NavigationHistory,
        notify: Optional[Callable[[], None]] = None
    ):
        self._catalog = catalog
        self._validator = validator
        self._loader = loader
        self._navigation = navigation
        self._notify = notify or (lambda: None)

    async def activate(self, name: str) -> PluginResult[None]:
        """
        Activate a plugin.

        Returns immediately when the plugin is already active and joins an
        activation that is already in progress instead of starting another.
        """
        with logger.plugin_context(name, "activate"):
            try:
                outcome, claim = await self._begin_activation(name)
                if claim is None:
                    return outcome
                return await self._run_activation(name, *claim)
            except Exception as e:
                logger.error(f"Unexpected error activating plugin '{name}'", exc_info=e)
                return PluginResult.fail(
                    PluginErrorCode.ACTIVATION_ERROR,
                    str(e) or type(e).__name__,
                    {"plugin": name},
                    exc=e
                )

    async def _begin_activation(
        self, name: str
    ) -> Tuple[Optional[PluginResult[None]], Optional[Tuple[asyncio.Future, PluginDescriptor]]]:
        """Either settle the call early or claim the in-flight slot for ``name``."""
        while True:
            with self._catalog.lock:
                if name not in self._catalog:
                    return PluginResult.fail(
                        PluginErrorCode.PLUGIN_NOT_FOUND,
                        f"Plugin '{name}' is not registered",
                        {"plugin": name}
                    ), None

                if self._catalog.is_active(name):
                    logger.debug(f"Plugin '{name}' is already active")
                    return PluginResult.ok(), None

                in_flight = self._catalog.in_flight(name)
                if in_flight is None:
                    validation = self._validator.validate_dependencies(name)
                    if not validation.success:
                        return validation, None

                    future = asyncio.get_running_loop().create_future()
                    self._catalog.begin_loading(name, ACTIVATE_OPERATION, future)
                    plugin = self._catalog.update(name, status=PluginStatus.LOADING)
                    return None, (future, plugin.descriptor)

            if in_flight.operation == ACTIVATE_OPERATION:
                logger.debug(f"Joining in-flight activation of plugin '{name}'")
                return await asyncio.shield(in_flight.future), None

            # A plain load is running; wait for it and re-evaluate
            await asyncio.shield(in_flight.future)

    async def _run_activation(
        self, name: str, future: asyncio.Future, descriptor: PluginDescriptor
    ) -> PluginResult[None]:
        result: PluginResult[None] = PluginResult.fail(
            PluginErrorCode.ACTIVATION_ERROR,
            f"Activation of plugin '{name}' was interrupted",
            {"plugin": name}
        )
        try:
            self._notify()
            load = await self._loader.load_server(name, descriptor)
            if not load.success:
                result = self._fail_activation(name, descriptor, load.error)
                return result

            with self._catalog.lock:
                if not self._catalog.holds(name, descriptor):
                    result = _unregistered_while_activating(name)
                    return result
                self._catalog.mark_active(name, datetime.now(timezone.utc))

            logger.info(f"Activated plugin '{name}'")
            result = PluginResult.ok()
            return result
        finally:
            with self._catalog.lock:
                self._catalog.end_loading(name, future)
                plugin = self._catalog.get(name)
                if (
                    self._catalog.holds(name, descriptor)
                    and plugin.status is PluginStatus.LOADING
                ):
                    self._catalog.update(name, status=PluginStatus.IDLE)
            if not future.done():
                future.set_result(result)
            self._notify()

    def _fail_activation(
        self, name: str, descriptor: PluginDescriptor, load_error: PluginError
    ) -> PluginResult[None]:
        if load_error.code is PluginErrorCode.PLUGIN_NOT_FOUND:
            return PluginResult.from_error(load_error)

        error = PluginError(
            code=PluginErrorCode.ACTIVATION_FAILED,
            message=f"Failed to activate plugin '{name}': {load_error.message}",
            details={"plugin": name, "cause": load_error.to_dict()},
            stack=load_error.stack,
        )
        with self._catalog.lock:
            if not self._catalog.holds(name, descriptor):
                return _unregistered_while_activating(name)
            self._catalog.record_failure(name, error)
            self._catalog.update(name, status=PluginStatus.FAILED)
        logger.warning(f"Activation of plugin '{name}' failed", extra={"cause": load_error.code.value})
        return PluginResult.from_error(error)

    def deactivate(self, name: str) -> PluginResult[None]:
        """
        Deactivate a plugin.

        Deactivating a plugin that is not active (or not registered) succeeds
        without changing anything.
        """
        with logger.plugin_context(name, "deactivate"):
            try:
                with self._catalog.lock:
                    if not self._catalog.is_active(name):
                        return PluginResult.ok()

                    active_dependents = self._validator.get_active_dependents(name)
                    if active_dependents:
                        return PluginResult.fail(
                            PluginErrorCode.HAS_ACTIVE_DEPENDENTS,
                            f"Cannot deactivate plugin '{name}': active plugins depend on it",
                            {"plugin": name, "active_dependents": list(active_dependents)}
                        )

                    self._catalog.mark_inactive(name)
                    self._navigation.clear_selection_for(name)

                logger.info(f"Deactivated plugin '{name}'")
                self._notify()
                return PluginResult.ok()
            except Exception as e:
                logger.error(f"Unexpected error deactivating plugin '{name}'", exc_info=e)
                return PluginResult.fail(
                    PluginErrorCode.DEACTIVATION_FAILED,
                    str(e) or type(e).__name__,
                    {"plugin": name},
                    exc=e
                )


def _unregistered_while_activating(name: str) -> PluginResult[None]:
    return PluginResult.fail(
        PluginErrorCode.PLUGIN_NOT_FOUND,
        f"Plugin '{name}' was unregistered while activating",
        {"plugin": name}
    )
