"""
Plugin Validator Module

Validation and security checks for plugin manifests before they are turned
into descriptors.
"""

from typing import Any, Dict, List

from ...domain.models import CapabilityKind, PluginKind

MAX_NAME_LENGTH = 100
UNSAFE_NAME_CHARACTERS = ['<', '>', '&', '"', "'"]
DANGEROUS_FIELDS = ['__import__', 'exec', 'eval', 'compile']


class PluginValidator:
    """Validates plugin manifest data with security checks."""

    @staticmethod
    def validate_manifest(manifest: Dict[str, Any]) -> List[str]:
        """
        Validate a parsed plugin manifest.

        Args:
            manifest: Mapping loaded from plugin.yaml

        Returns:
            List of validation errors, empty when the manifest is valid
        """
        errors = []

        if 'name' not in manifest:
            errors.append("Missing required manifest field: name")
        else:
            name = manifest['name']
            if not isinstance(name, str) or not name or len(name) > MAX_NAME_LENGTH:
                errors.append(f"Plugin name must be a non-empty string with max {MAX_NAME_LENGTH} characters")
            elif any(char in name for char in UNSAFE_NAME_CHARACTERS):
                errors.append("Plugin name contains potentially dangerous characters")

        # Simple semantic versioning check
        if 'version' in manifest:
            version = manifest['version']
            if not isinstance(version, str) or not version.replace('.', '').replace('-', '').isalnum():
                errors.append(f"Invalid version format: {version}")

        if 'kind' in manifest:
            allowed = [kind.value for kind in PluginKind]
            if manifest['kind'] not in allowed:
                errors.append(f"Invalid plugin kind '{manifest['kind']}', expected one of: {', '.join(allowed)}")

        if 'dependencies' in manifest:
            dependencies = manifest['dependencies']
            if not isinstance(dependencies, list) or not all(isinstance(d, str) and d for d in dependencies):
                errors.append("dependencies must be a list of plugin names")

        if 'capabilities' in manifest:
            errors.extend(PluginValidator.validate_capabilities(manifest['capabilities']))

        for field in DANGEROUS_FIELDS:
            if field in manifest:
                errors.append(f"Security violation: Dangerous manifest field '{field}' not allowed")

        return errors

    @staticmethod
    def validate_capabilities(capabilities: Any) -> List[str]:
        """Validate the capabilities section of a manifest."""
        if not isinstance(capabilities, dict):
            return ["capabilities must be a mapping"]

        errors = []
        known = {kind.value for kind in CapabilityKind}
        for key, value in capabilities.items():
            if key not in known:
                errors.append(f"Unknown capability '{key}'")
                continue

            if key == CapabilityKind.SERVER.value:
                errors.extend(PluginValidator.validate_entry_point(value, key))
            elif not isinstance(value, dict):
                errors.append(f"Capability '{key}' must map names to entry points")
            else:
                for entry_name, entry_point in value.items():
                    errors.extend(PluginValidator.validate_entry_point(entry_point, f"{key}.{entry_name}"))

        return errors

    @staticmethod
    def validate_entry_point(entry_point: Any, location: str) -> List[str]:
        """Entry points have the form ``package.module:attribute`` relative to the plugin directory."""
        if not isinstance(entry_point, str) or entry_point.count(':') != 1:
            return [f"Entry point for '{location}' must have the form 'module:attribute'"]

        module_name, attribute = entry_point.split(':')
        errors = []
        if not module_name or not all(part.isidentifier() for part in module_name.split('.')):
            errors.append(f"Entry point module for '{location}' is not a valid module path: {module_name}")
        if not attribute.isidentifier():
            errors.append(f"Entry point attribute for '{location}' must be a valid Python identifier")
        return errors
