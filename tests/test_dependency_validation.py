"""
Test Dependency Validation

Tests for dependency checks, dependents queries and graph snapshots.
"""

import pytest
from unittest.mock import patch

from devtool_plugins.domain.models import PluginErrorCode

from tests.fixtures.plugin_fixtures import make_descriptor


class TestValidateDependencies:
    """Test validate_dependencies."""

    def test_unknown_plugin(self, registry):
        """Test validating an unregistered plugin."""
        result = registry.validate_dependencies("missing")
        assert result.error.code == PluginErrorCode.PLUGIN_NOT_FOUND

    def test_missing_dependencies_in_declaration_order(self, registry):
        """Test that missing dependencies are reported in declaration order."""
        registry.register(make_descriptor("core"))
        registry.register(make_descriptor("ui", dependencies=["zeta", "core", "alpha"]))

        result = registry.validate_dependencies("ui")

        assert result.error.code == PluginErrorCode.MISSING_DEPENDENCIES
        assert list(result.error.details["missing_dependencies"]) == ["zeta", "alpha"]

    def test_registered_dependencies_are_enough(self, registry):
        """Test that inactive registered dependencies validate."""
        registry.register(make_descriptor("core"))
        registry.register(make_descriptor("ui", dependencies=["core"]))

        assert registry.validate_dependencies("ui").success
        assert not registry.is_plugin_active("core")


class TestDependents:
    """Test dependents queries."""

    @pytest.mark.asyncio
    async def test_dependents_regardless_of_activity(self, registry):
        """Test that dependents include inactive plugins in registration order."""
        registry.register(make_descriptor("core"))
        registry.register(make_descriptor("b", dependencies=["core"]))
        registry.register(make_descriptor("other"))
        registry.register(make_descriptor("a", dependencies=["core"]))
        await registry.activate("a")

        assert registry.get_plugin_dependents("core") == ("b", "a")
        assert registry.get_plugin_dependents("other") == ()


class TestDependencyGraph:
    """Test dependency graph snapshots."""

    def test_build_graph(self, registry):
        """Test that the graph is stored in state and returned."""
        registry.register(make_descriptor("core"))
        registry.register(make_descriptor("ui", dependencies=["core", "ghost"]))

        result = registry.build_dependency_graph()

        assert result.success
        graph = result.data
        assert graph.built_at is not None
        assert graph.dependencies_of("ui") == frozenset({"core", "ghost"})
        assert graph.dependents_of("core") == ("ui",)
        assert registry.get_state().dependency_graph is graph

    def test_graph_is_a_snapshot(self, registry):
        """Test that later registrations do not change a built graph."""
        registry.register(make_descriptor("core"))
        graph = registry.build_dependency_graph().data

        registry.register(make_descriptor("ui", dependencies=["core"]))

        assert graph.names() == ("core",)

    def test_build_graph_failure(self, registry):
        """Test that unexpected errors become GRAPH_BUILD_FAILED."""
        with patch.object(registry._catalog, "all", side_effect=RuntimeError("boom")):
            result = registry.build_dependency_graph()

        assert result.error.code == PluginErrorCode.GRAPH_BUILD_FAILED


class TestCycles:
    """Dependency cycles are not detected."""

    @pytest.mark.asyncio
    async def test_mutual_dependencies_are_accepted(self, registry):
        """Test that a two-plugin cycle registers, validates and activates."""
        registry.register(make_descriptor("a", dependencies=["b"]))
        registry.register(make_descriptor("b", dependencies=["a"]))

        assert registry.validate_dependencies("a").success
        assert registry.build_dependency_graph().success
        assert (await registry.activate_multiple(["a", "b"])).success

    @pytest.mark.asyncio
    async def test_mutual_dependencies_cannot_be_deactivated(self, registry):
        """Known limitation: an active cycle blocks deactivation of every member."""
        registry.register(make_descriptor("a", dependencies=["b"]))
        registry.register(make_descriptor("b", dependencies=["a"]))
        await registry.activate_multiple(["a", "b"])

        assert registry.deactivate("a").error.code == PluginErrorCode.HAS_ACTIVE_DEPENDENTS
        assert registry.deactivate("b").error.code == PluginErrorCode.HAS_ACTIVE_DEPENDENTS
        assert registry.unregister("a").error.code == PluginErrorCode.HAS_DEPENDENTS


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
