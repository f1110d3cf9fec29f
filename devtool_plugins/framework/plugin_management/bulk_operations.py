"""
Bulk Operations Controller

Sequences lifecycle operations over several plugins. Processing stops at
the first failure and nothing already done is rolled back.
"""

from typing import Iterable, List

from ...domain.models import PluginErrorCode, PluginResult
from ...infrastructure.observability import get_logger
from .catalog import PluginCatalog
from .lifecycle import LifecycleManager

logger = get_logger(__name__)


class BulkOperationsController:
    """Fail-fast, non-atomic multi-plugin operations."""

    def __init__(self, lifecycle: LifecycleManager, catalog: PluginCatalog):
        self._lifecycle = lifecycle
        self._catalog = catalog

    async def activate_multiple(self, names: Iterable[str]) -> PluginResult[None]:
        """
        Activate plugins in the given order.

        The first per-plugin failure is returned as is; plugins activated
        before it stay active.
        """
        processed: List[str] = []
        current = None
        try:
            for name in names:
                current = name
                result = await self._lifecycle.activate(name)
                if not result.success:
                    logger.warning(
                        f"Bulk activation stopped at plugin '{name}'",
                        extra={"processed": list(processed), "code": result.error.code.value}
                    )
                    return result
                processed.append(name)
            return PluginResult.ok()
        except Exception as e:
            logger.error("Unexpected error during bulk activation", exc_info=e)
            return PluginResult.fail(
                PluginErrorCode.BULK_ACTIVATION_FAILED,
                str(e) or type(e).__name__,
                {"plugin": current, "processed": processed},
                exc=e
            )

    def deactivate_multiple(self, names: Iterable[str]) -> PluginResult[None]:
        """Deactivate plugins in the given order, stopping at the first failure."""
        processed: List[str] = []
        current = None
        try:
            for name in names:
                current = name
                result = self._lifecycle.deactivate(name)
                if not result.success:
                    logger.warning(
                        f"Bulk deactivation stopped at plugin '{name}'",
                        extra={"processed": list(processed), "code": result.error.code.value}
                    )
                    return result
                processed.append(name)
            return PluginResult.ok()
        except Exception as e:
            logger.error("Unexpected error during bulk deactivation", exc_info=e)
            return PluginResult.fail(
                PluginErrorCode.BULK_DEACTIVATION_FAILED,
                str(e) or type(e).__name__,
                {"plugin": current, "processed": processed},
                exc=e
            )

    async def reload_all(self) -> PluginResult[None]:
        """Deactivate then re-activate every currently active plugin."""
        try:
            active = self._catalog.active_names()
            logger.info("Reloading active plugins", extra={"plugins": list(active)})

            result = self.deactivate_multiple(active)
            if not result.success:
                return result

            return await self.activate_multiple(active)
        except Exception as e:
            logger.error("Unexpected error reloading plugins", exc_info=e)
            return PluginResult.fail(PluginErrorCode.RELOAD_ALL_FAILED, str(e) or type(e).__name__, exc=e)
