"""Extension layer — converter plugins via pluggy.

Discovery: entry_points (pip-installed) via pluggy setuptools entrypoints.
INVARIANT: Plugin failures are warnings, never errors.
"""

from settingconv.plugins.hookspecs import hookimpl
from settingconv.plugins.manager import PluginManager

__all__ = ["PluginManager", "hookimpl"]
