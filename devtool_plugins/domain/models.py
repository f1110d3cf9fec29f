"""
Core Domain Models

Defines the data structures and value objects shared by the plugin registry:
descriptors, registered plugin wrappers, typed results and state snapshots.
"""

import traceback
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Dict, FrozenSet, Generic, Mapping, Optional, Tuple, TypeVar

T = TypeVar('T')

# Zero-argument deferred provider. May return a value or an awaitable.
CapabilityFactory = Callable[[], Any]


class PluginKind(str, Enum):
    """Closed set of plugin categories."""
    CORE = "core"
    MODULE = "module"


class PluginStatus(str, Enum):
    """Plugin lifecycle states."""
    IDLE = "idle"
    LOADING = "loading"
    ACTIVE = "active"
    FAILED = "failed"


class CapabilityKind(str, Enum):
    """Optional providers a plugin may expose."""
    SERVER = "server"
    COMPONENTS = "components"
    HOOKS = "hooks"


class PluginErrorCode(str, Enum):
    """Error kinds returned by registry operations."""
    PLUGIN_ALREADY_EXISTS = "PLUGIN_ALREADY_EXISTS"
    PLUGIN_NOT_FOUND = "PLUGIN_NOT_FOUND"
    HAS_DEPENDENTS = "HAS_DEPENDENTS"
    HAS_ACTIVE_DEPENDENTS = "HAS_ACTIVE_DEPENDENTS"
    MISSING_DEPENDENCIES = "MISSING_DEPENDENCIES"
    REGISTRATION_FAILED = "REGISTRATION_FAILED"
    UNREGISTRATION_FAILED = "UNREGISTRATION_FAILED"
    ACTIVATION_FAILED = "ACTIVATION_FAILED"
    ACTIVATION_ERROR = "ACTIVATION_ERROR"
    LOAD_FAILED = "LOAD_FAILED"
    LOAD_ERROR = "LOAD_ERROR"
    DEACTIVATION_FAILED = "DEACTIVATION_FAILED"
    UNLOAD_FAILED = "UNLOAD_FAILED"
    GRAPH_BUILD_FAILED = "GRAPH_BUILD_FAILED"
    BULK_ACTIVATION_FAILED = "BULK_ACTIVATION_FAILED"
    BULK_DEACTIVATION_FAILED = "BULK_DEACTIVATION_FAILED"
    RELOAD_ALL_FAILED = "RELOAD_ALL_FAILED"


def _freeze(mapping: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
    return MappingProxyType(dict(mapping or {}))


@dataclass(frozen=True)
class PluginCapabilities:
    """
    Capability set of a plugin.

    ``server`` is a single deferred factory whose result the loader caches.
    ``components`` and ``hooks`` map names to deferred factories that are only
    ever invoked by the consuming rendering layer.
    """
    server: Optional[CapabilityFactory] = None
    components: Mapping[str, CapabilityFactory] = field(default_factory=dict)
    hooks: Mapping[str, CapabilityFactory] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, 'components', _freeze(self.components))
        object.__setattr__(self, 'hooks', _freeze(self.hooks))

    def has(self, kind: CapabilityKind) -> bool:
        """Check whether the capability is present."""
        kind = CapabilityKind(kind)
        if kind is CapabilityKind.SERVER:
            return self.server is not None
        if kind is CapabilityKind.COMPONENTS:
            return len(self.components) > 0
        return len(self.hooks) > 0

    def available(self) -> Tuple[CapabilityKind, ...]:
        return tuple(kind for kind in CapabilityKind if self.has(kind))


@dataclass(frozen=True)
class PluginDescriptor:
    """Immutable description of a plugin, supplied at registration time."""
    name: str
    kind: PluginKind = PluginKind.MODULE
    version: str = "0.0.0"
    dependencies: Tuple[str, ...] = ()
    capabilities: PluginCapabilities = field(default_factory=PluginCapabilities)
    description: str = ""
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not isinstance(self.name, str) or not self.name:
            raise ValueError("Plugin name must be a non-empty string")
        object.__setattr__(self, 'kind', PluginKind(self.kind))
        object.__setattr__(self, 'dependencies', tuple(self.dependencies))
        object.__setattr__(self, 'metadata', _freeze(self.metadata))


@dataclass(frozen=True)
class RegisteredPlugin:
    """Catalog-owned wrapper around a descriptor and its lifecycle status."""
    descriptor: PluginDescriptor
    status: PluginStatus = PluginStatus.IDLE
    loaded_at: Optional[datetime] = None
    loaded_capability: Any = field(default=None, repr=False)
    capability_loaded: bool = False

    @property
    def name(self) -> str:
        return self.descriptor.name

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for the rendering layer."""
        return {
            "name": self.descriptor.name,
            "kind": self.descriptor.kind.value,
            "version": self.descriptor.version,
            "description": self.descriptor.description,
            "dependencies": list(self.descriptor.dependencies),
            "capabilities": [kind.value for kind in self.descriptor.capabilities.available()],
            "status": self.status.value,
            "loaded_at": self.loaded_at.isoformat() if self.loaded_at else None,
            "capability_loaded": self.capability_loaded,
        }


@dataclass(frozen=True)
class PluginError:
    """Typed failure carried by a PluginResult."""
    code: PluginErrorCode
    message: str
    details: Mapping[str, Any] = field(default_factory=dict)
    stack: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, 'code', PluginErrorCode(self.code))
        object.__setattr__(self, 'details', _freeze(self.details))

    @classmethod
    def from_exception(
        cls,
        code: PluginErrorCode,
        exc: BaseException,
        details: Optional[Mapping[str, Any]] = None
    ) -> 'PluginError':
        """Build an error from an exception, keeping its formatted trace."""
        stack = None
        if exc.__traceback__ is not None:
            stack = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        return cls(code=code, message=str(exc) or type(exc).__name__, details=details or {}, stack=stack)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "code": self.code.value,
            "message": self.message,
            "details": dict(self.details),
        }
        if self.stack:
            data["stack"] = self.stack
        return data


@dataclass(frozen=True)
class PluginResult(Generic[T]):
    """Success-with-data or failure-with-typed-error."""
    success: bool
    data: Optional[T] = None
    error: Optional[PluginError] = None

    @classmethod
    def ok(cls, data: Optional[T] = None) -> 'PluginResult[T]':
        return cls(success=True, data=data)

    @classmethod
    def fail(
        cls,
        code: PluginErrorCode,
        message: str,
        details: Optional[Mapping[str, Any]] = None,
        exc: Optional[BaseException] = None
    ) -> 'PluginResult[T]':
        stack = PluginError.from_exception(code, exc).stack if exc is not None else None
        return cls(success=False, error=PluginError(code=code, message=message, details=details or {}, stack=stack))

    @classmethod
    def from_error(cls, error: PluginError) -> 'PluginResult[T]':
        return cls(success=False, error=error)

    def unwrap(self) -> Optional[T]:
        """Return the data or raise PluginOperationError for a failure."""
        if self.success:
            return self.data
        from ..infrastructure.exceptions import PluginOperationError
        raise PluginOperationError(self.error)


@dataclass(frozen=True)
class DependencyGraph:
    """Snapshot of every registered plugin's declared dependencies."""
    edges: Mapping[str, FrozenSet[str]] = field(default_factory=dict)
    built_at: Optional[datetime] = None

    def __post_init__(self):
        object.__setattr__(
            self, 'edges', MappingProxyType({name: frozenset(deps) for name, deps in self.edges.items()})
        )

    def __contains__(self, name: object) -> bool:
        return name in self.edges

    def __len__(self) -> int:
        return len(self.edges)

    def names(self) -> Tuple[str, ...]:
        return tuple(self.edges)

    def dependencies_of(self, name: str) -> FrozenSet[str]:
        return self.edges.get(name, frozenset())

    def dependents_of(self, name: str) -> Tuple[str, ...]:
        return tuple(other for other, deps in self.edges.items() if name in deps)


@dataclass(frozen=True)
class NavigationState:
    """Selected plugin/page and the visited-plugin history."""
    selected_plugin: Optional[str] = None
    selected_page: Optional[str] = None
    history: Tuple[str, ...] = ()
    cursor: int = -1


@dataclass(frozen=True)
class PluginLoadingState:
    """Per-plugin loading view: idle, loading, error or success."""
    status: str
    data: Optional[RegisteredPlugin] = None
    error: Optional[PluginError] = None

    @property
    def is_loading(self) -> bool:
        return self.status == "loading"


@dataclass(frozen=True)
class RegistryState:
    """Consistent snapshot of catalog and navigation state for rendering."""
    plugins: Mapping[str, RegisteredPlugin]
    active_plugins: Tuple[str, ...]
    loading_plugins: FrozenSet[str]
    failed_plugins: Mapping[str, PluginError]
    dependency_graph: DependencyGraph
    navigation: NavigationState

    @property
    def selected_plugin(self) -> Optional[str]:
        return self.navigation.selected_plugin

    @property
    def selected_page(self) -> Optional[str]:
        return self.navigation.selected_page

    @property
    def navigation_history(self) -> Tuple[str, ...]:
        return self.navigation.history

    @property
    def current_history_index(self) -> int:
        return self.navigation.cursor
