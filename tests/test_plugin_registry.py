"""
Test Plugin Registry

Tests for registration, unregistration, read queries, state snapshots and
state subscriptions of the PluginRegistry.
"""

import pytest
from unittest.mock import Mock

from devtool_plugins.domain.interfaces import StateListener
from devtool_plugins.domain.models import (
    PluginErrorCode,
    PluginKind,
    PluginStatus,
    RegistryState,
)
from devtool_plugins.framework.configuration import RegistryConfiguration
from devtool_plugins.framework.plugin_management import PluginRegistry
from devtool_plugins.infrastructure.exceptions import PluginOperationError

from tests.fixtures.plugin_fixtures import CountingFactory, make_descriptor


class TestRegistration:
    """Test plugin registration."""

    def test_register_creates_idle_plugin(self, registry):
        """Test that a registered plugin starts idle and inactive."""
        result = registry.register(make_descriptor("inspector"))

        assert result.success
        assert result.data.name == "inspector"
        assert result.data.status == PluginStatus.IDLE
        assert result.data.loaded_at is None
        assert registry.get_plugin("inspector") is result.data
        assert not registry.is_plugin_active("inspector")

    def test_duplicate_register_fails_without_mutation(self, registry):
        """Test that registering the same name twice fails and keeps one entry."""
        first = make_descriptor("inspector")
        second = make_descriptor("inspector", kind=PluginKind.CORE)

        assert registry.register(first).success
        result = registry.register(second)

        assert not result.success
        assert result.error.code == PluginErrorCode.PLUGIN_ALREADY_EXISTS
        assert len(registry.list_plugins()) == 1
        assert registry.get_plugin("inspector").descriptor is first

    def test_register_invalid_descriptor_returns_registration_failed(self, registry):
        """Test that unexpected errors become REGISTRATION_FAILED results."""
        result = registry.register(object())

        assert not result.success
        assert result.error.code == PluginErrorCode.REGISTRATION_FAILED
        assert result.error.stack is not None

    def test_list_plugins_in_registration_order(self, registry):
        """Test that plugins are listed in registration order."""
        for name in ["c", "a", "b"]:
            registry.register(make_descriptor(name))

        assert [p.name for p in registry.list_plugins()] == ["c", "a", "b"]

    def test_register_rebuilds_graph_when_configured(self):
        """Test that the dependency graph tracks registrations when enabled."""
        registry = PluginRegistry(RegistryConfiguration(rebuild_graph_on_change=True))
        registry.register(make_descriptor("core"))
        registry.register(make_descriptor("ui", dependencies=["core"]))

        graph = registry.get_state().dependency_graph
        assert graph.dependencies_of("ui") == frozenset({"core"})

        registry.unregister("ui")
        assert "ui" not in registry.get_state().dependency_graph

    def test_graph_not_rebuilt_by_default(self, registry):
        """Test that the graph snapshot is only refreshed on request."""
        registry.register(make_descriptor("core"))

        assert len(registry.get_state().dependency_graph) == 0


class TestUnregistration:
    """Test plugin unregistration."""

    def test_unregister_unknown_plugin(self, registry):
        """Test unregistering an unknown plugin."""
        result = registry.unregister("missing")

        assert not result.success
        assert result.error.code == PluginErrorCode.PLUGIN_NOT_FOUND

    def test_unregister_blocked_by_inactive_dependents(self, registry):
        """Test that registered dependents block unregistration even when inactive."""
        registry.register(make_descriptor("a"))
        registry.register(make_descriptor("b", dependencies=["a"]))

        result = registry.unregister("a")

        assert not result.success
        assert result.error.code == PluginErrorCode.HAS_DEPENDENTS
        assert list(result.error.details["dependents"]) == ["b"]
        assert registry.get_plugin("a") is not None

    @pytest.mark.asyncio
    async def test_unregister_active_plugin_deactivates_first(self, registry):
        """Test that an active plugin is deactivated before removal."""
        registry.register(make_descriptor("a"))
        await registry.activate("a")
        registry.select_plugin("a", "overview")

        result = registry.unregister("a")

        assert result.success
        assert registry.get_plugin("a") is None
        assert not registry.is_plugin_active("a")
        assert registry.get_state().selected_plugin is None
        assert registry.get_state().selected_page is None

    @pytest.mark.asyncio
    async def test_unregister_clears_failure_record(self, registry):
        """Test that the failure record is dropped together with the plugin."""
        registry.register(make_descriptor("a", server=CountingFactory(error=RuntimeError("boom"))))
        await registry.activate("a")
        assert registry.has_errors("a")

        assert registry.unregister("a").success
        assert not registry.has_errors()

    def test_unregister_self_dependency_is_allowed(self, registry):
        """Test that a plugin listing itself does not block its own removal."""
        registry.register(make_descriptor("loop", dependencies=["loop"]))

        assert registry.unregister("loop").success


class TestQueries:
    """Test read-only registry queries."""

    def test_queries_on_unknown_plugin(self, registry):
        """Test that queries for unknown plugins are falsy."""
        assert registry.get_plugin("missing") is None
        assert not registry.is_plugin_active("missing")
        assert not registry.is_plugin_loaded("missing")
        assert not registry.has_errors("missing")
        assert registry.get_loading_state("missing").status == "idle"

    def test_loading_state_for_registered_plugin(self, registry):
        """Test that a registered plugin reports success with its wrapper."""
        registry.register(make_descriptor("a"))

        state = registry.get_loading_state("a")
        assert state.status == "success"
        assert state.data.name == "a"
        assert not state.is_loading

    @pytest.mark.asyncio
    async def test_active_plugins_in_activation_order(self, registry):
        """Test that active plugins are reported in activation order."""
        for name in ["a", "b", "c"]:
            registry.register(make_descriptor(name))

        await registry.activate("c")
        await registry.activate("a")

        assert [p.name for p in registry.get_active_plugins()] == ["c", "a"]
        assert registry.get_state().active_plugins == ("c", "a")

    @pytest.mark.asyncio
    async def test_plugin_view(self, registry):
        """Test the combined per-plugin view."""
        registry.register(make_descriptor("a", server=CountingFactory()))
        await registry.activate("a")

        view = registry.get_plugin_view("a")

        assert view["plugin"].name == "a"
        assert view["is_active"] is True
        assert view["is_loaded"] is True
        assert view["loading_state"].status == "success"
        assert view["has_error"] is False

    @pytest.mark.asyncio
    async def test_to_dict(self, registry):
        """Test serialization of a registered plugin."""
        registry.register(make_descriptor("a", dependencies=["b"], server=CountingFactory()))

        data = registry.get_plugin("a").to_dict()

        assert data["name"] == "a"
        assert data["kind"] == "module"
        assert data["status"] == "idle"
        assert data["dependencies"] == ["b"]
        assert data["capabilities"] == ["server"]
        assert data["loaded_at"] is None

    def test_state_snapshot_is_immutable(self, registry):
        """Test that snapshots do not change with later mutations."""
        registry.register(make_descriptor("a"))
        snapshot = registry.get_state()

        registry.register(make_descriptor("b"))

        assert list(snapshot.plugins) == ["a"]
        with pytest.raises(TypeError):
            snapshot.plugins["c"] = None

    @pytest.mark.asyncio
    async def test_reset_state(self, registry):
        """Test that reset_state forgets plugins and navigation."""
        registry.register(make_descriptor("a"))
        await registry.activate("a")
        registry.select_plugin("a")

        registry.reset_state()

        state = registry.get_state()
        assert len(state.plugins) == 0
        assert state.active_plugins == ()
        assert state.navigation_history == ()
        assert state.current_history_index == -1


class TestResultUnwrap:
    """Test unwrapping of typed results."""

    def test_unwrap_success(self, registry):
        """Test that unwrap returns the data of a successful result."""
        plugin = registry.register(make_descriptor("a")).unwrap()
        assert plugin.name == "a"

    def test_unwrap_failure_raises(self, registry):
        """Test that unwrap raises PluginOperationError carrying the error."""
        with pytest.raises(PluginOperationError) as exc_info:
            registry.unregister("missing").unwrap()

        assert exc_info.value.error_code == "PLUGIN_NOT_FOUND"
        assert exc_info.value.error.details["plugin"] == "missing"


class TestSubscriptions:
    """Test selector-based state subscriptions."""

    def test_listener_receives_whole_state(self, registry):
        """Test that the default selector delivers full snapshots."""
        listener = Mock()
        registry.subscribe(listener)

        registry.register(make_descriptor("a"))

        listener.assert_called_once()
        new_state, old_state = listener.call_args[0]
        assert isinstance(new_state, RegistryState)
        assert "a" in new_state.plugins
        assert "a" not in old_state.plugins

    @pytest.mark.asyncio
    async def test_selector_only_fires_on_change(self, registry):
        """Test that listeners only see changes of their selected slice."""
        listener = Mock()
        registry.subscribe(listener, selector=lambda state: state.active_plugins)

        registry.register(make_descriptor("a"))
        registry.select_plugin("a")
        listener.assert_not_called()

        await registry.activate("a")
        listener.assert_called_once_with(("a",), ())

    def test_state_listener_interface(self, registry):
        """Test that StateListener implementations are supported."""
        class SelectionListener(StateListener):
            def __init__(self):
                self.changes = []

            def on_state_change(self, new_value, old_value):
                self.changes.append((old_value, new_value))

        listener = SelectionListener()
        registry.register(make_descriptor("a"))
        registry.subscribe(listener, selector=lambda state: state.selected_plugin)

        registry.select_plugin("a")

        assert listener.changes == [(None, "a")]

    def test_unsubscribe(self, registry):
        """Test that unsubscribed listeners stop receiving changes."""
        listener = Mock()
        unsubscribe = registry.subscribe(listener)
        unsubscribe()

        registry.register(make_descriptor("a"))

        listener.assert_not_called()

    def test_failing_listener_does_not_affect_operation(self, registry, log_capture):
        """Test that listener errors are logged and swallowed."""
        registry.subscribe(Mock(side_effect=RuntimeError("listener broke")))

        result = registry.register(make_descriptor("a"))

        assert result.success
        assert log_capture.has_record_with_message("State listener failed")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
