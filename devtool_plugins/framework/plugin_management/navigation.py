"""
Navigation History Module

Tracks the selected plugin and page together with a browser-style
back/forward history of visited plugins.
"""

from typing import List, Optional

from ...domain.models import NavigationState
from ...infrastructure.observability import get_logger
from .catalog import PluginCatalog

logger = get_logger(__name__)


class NavigationHistory:
    """
    Back/forward stack over the selected plugin.

    The cursor always satisfies ``-1 <= cursor < len(history)``; ``-1``
    means the history is empty. Selecting a plugin appends to the history
    without truncating any forward entries, so duplicates are allowed.
    """

    def __init__(self, catalog: PluginCatalog, max_history: Optional[int] = None):
        self._catalog = catalog
        self._max_history = max_history
        self._selected_plugin: Optional[str] = None
        self._selected_page: Optional[str] = None
        self._history: List[str] = []
        self._cursor = -1

    @property
    def lock(self):
        return self._catalog.lock

    def select_plugin(self, name: str, page: Optional[str] = None) -> bool:
        """
        Select a registered plugin and record it in the history.

        Returns:
            False (and changes nothing) when ``name`` is not registered
        """
        with self.lock:
            if name not in self._catalog:
                logger.debug(f"Ignoring selection of unregistered plugin '{name}'")
                return False

            self._selected_plugin = name
            self._selected_page = page
            self._history.append(name)
            if self._max_history is not None and len(self._history) > self._max_history:
                del self._history[:len(self._history) - self._max_history]
            self._cursor = len(self._history) - 1
            return True

    def select_page(self, name: str, page: Optional[str]) -> None:
        """Set the selection without touching the history."""
        with self.lock:
            self._selected_plugin = name
            self._selected_page = page

    def navigate_back(self) -> bool:
        return self._move(-1)

    def navigate_forward(self) -> bool:
        return self._move(1)

    def _move(self, step: int) -> bool:
        with self.lock:
            target = self._cursor + step
            if target < 0 or target >= len(self._history):
                return False
            self._cursor = target
            self._selected_plugin = self._history[target]
            return True

    def clear_navigation(self) -> None:
        with self.lock:
            self._selected_plugin = None
            self._selected_page = None
            self._history.clear()
            self._cursor = -1

    def clear_selection_for(self, name: str) -> bool:
        """Drop the current selection if it points at ``name``."""
        with self.lock:
            if self._selected_plugin != name:
                return False
            self._selected_plugin = None
            self._selected_page = None
            return True

    def snapshot(self) -> NavigationState:
        with self.lock:
            return NavigationState(
                selected_plugin=self._selected_plugin,
                selected_page=self._selected_page,
                history=tuple(self._history),
                cursor=self._cursor,
            )

    reset = clear_navigation
