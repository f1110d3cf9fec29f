"""
Test Navigation History

Tests for plugin/page selection and back/forward traversal.
"""

import pytest

from devtool_plugins.framework.configuration import RegistryConfiguration
from devtool_plugins.framework.plugin_management import PluginRegistry

from tests.fixtures.plugin_fixtures import make_descriptor


@pytest.fixture
def nav_registry(registry):
    for name in ["x", "y", "z"]:
        registry.register(make_descriptor(name))
    return registry


def assert_cursor_invariant(registry):
    state = registry.get_state()
    assert -1 <= state.current_history_index < len(state.navigation_history)


class TestSelection:
    """Test plugin and page selection."""

    def test_initial_state(self, registry):
        """Test the empty navigation state."""
        state = registry.get_state()

        assert state.selected_plugin is None
        assert state.selected_page is None
        assert state.navigation_history == ()
        assert state.current_history_index == -1

    def test_select_unregistered_plugin_is_noop(self, nav_registry):
        """Test that selecting an unknown plugin changes nothing."""
        nav_registry.select_plugin("x")
        before = nav_registry.get_state().navigation

        nav_registry.select_plugin("unknown", "page")

        assert nav_registry.get_state().navigation == before

    def test_select_plugin_with_page(self, nav_registry):
        """Test selecting a plugin together with a page."""
        nav_registry.select_plugin("x", "routes")

        state = nav_registry.get_state()
        assert state.selected_plugin == "x"
        assert state.selected_page == "routes"
        assert state.navigation_history == ("x",)
        assert state.current_history_index == 0

    def test_reselecting_appends_duplicates(self, nav_registry):
        """Test that re-selecting the same plugin appends to the history."""
        nav_registry.select_plugin("x")
        nav_registry.select_plugin("x")

        assert nav_registry.get_state().navigation_history == ("x", "x")
        assert nav_registry.get_state().current_history_index == 1

    def test_select_page_leaves_history_untouched(self, nav_registry):
        """Test that selecting a page only changes the selection."""
        nav_registry.select_plugin("x")

        nav_registry.select_page("y", "details")

        state = nav_registry.get_state()
        assert state.selected_plugin == "y"
        assert state.selected_page == "details"
        assert state.navigation_history == ("x",)
        assert state.current_history_index == 0


class TestTraversal:
    """Test back/forward traversal."""

    def test_back_and_forward_scenario(self, nav_registry):
        """Test the x, y, z selection and back-navigation scenario."""
        for name in ["x", "y", "z"]:
            nav_registry.select_plugin(name)

        state = nav_registry.get_state()
        assert state.navigation_history == ("x", "y", "z")
        assert state.current_history_index == 2

        assert nav_registry.navigate_back() is True
        assert nav_registry.get_state().selected_plugin == "y"
        assert nav_registry.get_state().current_history_index == 1

        assert nav_registry.navigate_back() is True
        before = nav_registry.get_state().navigation
        assert nav_registry.navigate_back() is False
        assert nav_registry.get_state().navigation == before
        assert before.selected_plugin == "x"
        assert before.cursor == 0
        assert_cursor_invariant(nav_registry)

    def test_forward_at_boundary(self, nav_registry):
        """Test that moving forward from the newest entry is a no-op."""
        nav_registry.select_plugin("x")
        nav_registry.select_plugin("y")

        assert nav_registry.navigate_forward() is False
        assert nav_registry.navigate_back() is True
        assert nav_registry.navigate_forward() is True
        assert nav_registry.get_state().selected_plugin == "y"

    def test_traversal_on_empty_history(self, registry):
        """Test that traversal of an empty history returns False."""
        assert registry.navigate_back() is False
        assert registry.navigate_forward() is False
        assert_cursor_invariant(registry)

    def test_traversal_keeps_page(self, nav_registry):
        """Test that moving through history leaves the selected page untouched."""
        nav_registry.select_plugin("x", "routes")
        nav_registry.select_plugin("y", "hooks")

        nav_registry.navigate_back()

        assert nav_registry.get_state().selected_plugin == "x"
        assert nav_registry.get_state().selected_page == "hooks"

        nav_registry.navigate_forward()

        assert nav_registry.get_state().selected_plugin == "y"
        assert nav_registry.get_state().selected_page == "hooks"

    def test_selecting_after_back_appends(self, nav_registry):
        """Test that selecting after navigating back keeps forward entries."""
        nav_registry.select_plugin("x")
        nav_registry.select_plugin("y")
        nav_registry.navigate_back()

        nav_registry.select_plugin("z")

        state = nav_registry.get_state()
        assert state.navigation_history == ("x", "y", "z")
        assert state.current_history_index == 2

    def test_clear_navigation(self, nav_registry):
        """Test that clearing resets all navigation fields."""
        nav_registry.select_plugin("x", "routes")
        nav_registry.select_plugin("y")

        nav_registry.clear_navigation()

        state = nav_registry.get_state()
        assert state.selected_plugin is None
        assert state.selected_page is None
        assert state.navigation_history == ()
        assert state.current_history_index == -1


class TestHistoryLimit:
    """Test the optional history size limit."""

    def test_oldest_entries_dropped(self):
        """Test that the history keeps only the newest entries."""
        registry = PluginRegistry(RegistryConfiguration(max_navigation_history=2))
        for name in ["x", "y", "z"]:
            registry.register(make_descriptor(name))
            registry.select_plugin(name)

        state = registry.get_state()
        assert state.navigation_history == ("y", "z")
        assert state.current_history_index == 1
        assert_cursor_invariant(registry)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
