"""
Plugin fixtures: descriptor builders and instrumented capability factories.
"""

import asyncio
from typing import Any, Optional, Sequence

import pytest

from devtool_plugins.domain.models import PluginCapabilities, PluginDescriptor, PluginKind
from devtool_plugins.framework.plugin_management import PluginRegistry


def make_descriptor(
    name: str,
    dependencies: Sequence[str] = (),
    server: Any = None,
    kind: PluginKind = PluginKind.MODULE,
    components: Optional[dict] = None,
    hooks: Optional[dict] = None,
) -> PluginDescriptor:
    """Build a descriptor with optional capabilities."""
    return PluginDescriptor(
        name=name,
        kind=kind,
        version="1.0.0",
        dependencies=tuple(dependencies),
        capabilities=PluginCapabilities(
            server=server,
            components=components or {},
            hooks=hooks or {},
        ),
    )


class CountingFactory:
    """Synchronous capability factory that records how often it ran."""

    def __init__(self, value: Any = "server", error: Optional[Exception] = None):
        self.value = value
        self.error = error
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.value


class GatedAsyncFactory:
    """Async capability factory that blocks until ``release()`` is called."""

    def __init__(self, value: Any = "server", error: Optional[Exception] = None):
        self.value = value
        self.error = error
        self.calls = 0
        self.started = asyncio.Event()
        self._gate = asyncio.Event()

    def release(self) -> None:
        self._gate.set()

    async def __call__(self):
        self.calls += 1
        self.started.set()
        await self._gate.wait()
        if self.error is not None:
            raise self.error
        return self.value


@pytest.fixture
def registry():
    """Fresh registry per test."""
    return PluginRegistry()


@pytest.fixture
def counting_factory():
    return CountingFactory()
