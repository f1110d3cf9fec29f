"""
Shared pytest configuration for the plugin system tests.
"""

from tests.fixtures.logging_fixtures import log_capture, restore_root_logger  # noqa: F401
from tests.fixtures.plugin_fixtures import registry, counting_factory  # noqa: F401
