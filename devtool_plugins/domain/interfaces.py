"""
Core Domain Interfaces

Defines the boundary contracts of the registry's external collaborators.
"""

from abc import ABC, abstractmethod
from typing import Any, List

from .models import PluginDescriptor, RegistryState


class DescriptorSource(ABC):
    """
    Supplier of plugin descriptors.

    The registry has no knowledge of how descriptors are authored; anything
    that can produce them (a YAML manifest scanner, a hard-coded catalog, a
    test fixture) implements this interface.
    """

    @abstractmethod
    def load_descriptors(self) -> List[PluginDescriptor]:
        """
        Produce zero or more descriptors to be registered.

        Returns:
            List[PluginDescriptor]: descriptors in registration order
        """
        pass


class StateListener(ABC):
    """Receives selected registry state whenever it changes."""

    @abstractmethod
    def on_state_change(self, new_value: Any, old_value: Any) -> None:
        pass


def select_all(state: RegistryState) -> RegistryState:
    """Default selector: the whole snapshot."""
    return state
