"""
Plugin Discovery Module

Discovers plugin manifests (plugin.yaml) in configured directories and turns
them into descriptors whose capabilities import their entry points lazily.
"""

import importlib.util
import sys
import threading
from pathlib import Path
from types import ModuleType
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, Union

import yaml

from ...domain.interfaces import DescriptorSource
from ...domain.models import PluginCapabilities, PluginDescriptor, PluginKind
from ...infrastructure.exceptions import ManifestError
from ...infrastructure.observability import get_logger
from .plugin_validator import PluginValidator

logger = get_logger(__name__)

MANIFEST_NAMES = ['plugin.yaml', 'plugin.yml']


class EntryPointLoader:
    """Imports ``module:attribute`` entry points from a plugin directory."""

    def __init__(self):
        self._modules: Dict[Tuple[Path, str], ModuleType] = {}
        self._lock = threading.Lock()

    def resolve(self, plugin_dir: Path, entry_point: str, plugin_name: str) -> Any:
        module_name, attribute = entry_point.split(':')
        module = self._import(plugin_dir, module_name, plugin_name)
        try:
            return getattr(module, attribute)
        except AttributeError:
            raise ManifestError(
                f"Entry point '{entry_point}' has no attribute '{attribute}'",
                manifest_path=str(plugin_dir),
                plugin_name=plugin_name
            )

    def _import(self, plugin_dir: Path, module_name: str, plugin_name: str) -> ModuleType:
        key = (plugin_dir, module_name)
        with self._lock:
            if key in self._modules:
                return self._modules[key]

            module_path = self._module_path(plugin_dir, module_name)
            if module_path is None:
                raise ManifestError(
                    f"Entry point module not found: {module_name}",
                    manifest_path=str(plugin_dir),
                    plugin_name=plugin_name
                )

            spec = importlib.util.spec_from_file_location(
                f"devtool_plugin_{plugin_name.replace('-', '_')}_{module_name.replace('.', '_')}",
                module_path
            )
            if not spec or not spec.loader:
                raise ManifestError(
                    f"Cannot create module spec for {module_path}",
                    manifest_path=str(plugin_dir),
                    plugin_name=plugin_name
                )

            # Sibling imports inside the plugin resolve against its directory
            path_entry = str(plugin_dir)
            added = path_entry not in sys.path
            if added:
                sys.path.insert(0, path_entry)
            try:
                module = importlib.util.module_from_spec(spec)
                spec.loader.exec_module(module)
            finally:
                if added and path_entry in sys.path:
                    sys.path.remove(path_entry)

            self._modules[key] = module
            logger.debug(f"Imported plugin module {module_path}", extra={"plugin": plugin_name})
            return module

    @staticmethod
    def _module_path(plugin_dir: Path, module_name: str) -> Optional[Path]:
        base = plugin_dir.joinpath(*module_name.split('.'))
        for candidate in (base.with_suffix('.py'), base / '__init__.py'):
            if candidate.is_file():
                return candidate
        return None


class PluginDiscovery(DescriptorSource):
    """
    Descriptor source backed by YAML manifests on disk.

    Each search path is scanned one level deep: every sub-directory holding a
    plugin.yaml (or plugin.yml) is one plugin. Capability entry points are
    only imported when the registry invokes the corresponding factory.
    """

    def __init__(self, search_paths: Optional[Iterable[Union[str, Path]]] = None):
        self.search_paths = [Path(p) for p in (search_paths or [])]
        self._validator = PluginValidator()
        self._entry_points = EntryPointLoader()

    def load_descriptors(self) -> List[PluginDescriptor]:
        return self.discover_all()

    def discover_all(self) -> List[PluginDescriptor]:
        """Discover every valid plugin; invalid manifests are logged and skipped."""
        discovered: List[PluginDescriptor] = []

        for search_path in self.search_paths:
            if not search_path.is_dir():
                logger.warning(f"Plugin search path does not exist: {search_path}")
                continue

            logger.info(f"Discovering plugins in: {search_path}")

            for item in sorted(search_path.iterdir()):
                if not item.is_dir() or self._find_manifest(item) is None:
                    continue
                try:
                    discovered.append(self.discover_single(item))
                except ManifestError as e:
                    logger.warning(
                        f"Skipping invalid plugin manifest in {item}: {e.message}",
                        extra={"validation_errors": e.validation_errors}
                    )

        logger.info(f"Discovered {len(discovered)} plugins")
        return discovered

    def discover_single(self, plugin_dir: Union[str, Path]) -> PluginDescriptor:
        """
        Build a descriptor from one plugin directory.

        Raises:
            ManifestError: If the manifest is missing, unreadable or invalid
        """
        plugin_dir = Path(plugin_dir)
        manifest_file = self._find_manifest(plugin_dir)
        if manifest_file is None:
            raise ManifestError(f"No plugin manifest found in {plugin_dir}", manifest_path=str(plugin_dir))

        try:
            with open(manifest_file, 'r', encoding='utf-8') as f:
                manifest = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ManifestError(f"Invalid YAML in plugin manifest: {e}", manifest_path=str(manifest_file), cause=e)
        except OSError as e:
            raise ManifestError(f"Cannot read plugin manifest: {e}", manifest_path=str(manifest_file), cause=e)

        if not isinstance(manifest, dict):
            raise ManifestError("Plugin manifest must be a mapping", manifest_path=str(manifest_file))

        validation_errors = self._validator.validate_manifest(manifest)
        if validation_errors:
            raise ManifestError(
                f"Invalid plugin manifest: {manifest_file}",
                manifest_path=str(manifest_file),
                plugin_name=manifest.get('name') if isinstance(manifest.get('name'), str) else None,
                validation_errors=validation_errors
            )

        return self._build_descriptor(plugin_dir.resolve(), manifest)

    def _build_descriptor(self, plugin_dir: Path, manifest: Dict[str, Any]) -> PluginDescriptor:
        name = manifest['name']
        capabilities = manifest.get('capabilities') or {}

        server = capabilities.get('server')
        return PluginDescriptor(
            name=name,
            kind=PluginKind(manifest.get('kind', PluginKind.MODULE.value)),
            version=str(manifest.get('version', '0.0.0')),
            dependencies=tuple(manifest.get('dependencies') or ()),
            capabilities=PluginCapabilities(
                server=self._factory(plugin_dir, server, name) if server else None,
                components={
                    key: self._factory(plugin_dir, value, name)
                    for key, value in (capabilities.get('components') or {}).items()
                },
                hooks={
                    key: self._factory(plugin_dir, value, name)
                    for key, value in (capabilities.get('hooks') or {}).items()
                },
            ),
            description=manifest.get('description', ''),
            metadata={
                **(manifest.get('metadata') or {}),
                'path': str(plugin_dir),
            },
        )

    def _factory(self, plugin_dir: Path, entry_point: str, plugin_name: str) -> Callable[[], Any]:
        """Deferred provider: imports the entry point and calls it on invocation."""
        def factory():
            target = self._entry_points.resolve(plugin_dir, entry_point, plugin_name)
            return target() if callable(target) else target

        factory.entry_point = entry_point
        return factory

    @staticmethod
    def _find_manifest(plugin_dir: Path) -> Optional[Path]:
        for name in MANIFEST_NAMES:
            candidate = plugin_dir / name
            if candidate.is_file():
                return candidate
        return None
