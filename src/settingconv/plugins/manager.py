"""Plugin discovery and application.

Discovery: entry_points (pip-installed) in the ``settingconv.plugins``
group, plus plugins registered directly.  ``apply`` installs every
contributed converter and editor into a :class:`ConverterRegistry`.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING, Any

import pluggy

from settingconv.converters.base import Converter
from settingconv.plugins.hookspecs import SettingconvHookSpec

if TYPE_CHECKING:
    from settingconv.registry import ConverterRegistry

PROJECT_NAME = "settingconv"
ENTRY_POINT_GROUP = "settingconv.plugins"

logger = logging.getLogger(__name__)


class PluginManager:
    """Manages plugin discovery, registration, and registry population."""

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(SettingconvHookSpec)
        self._loaded: bool = False

    def discover_and_load(self) -> list[str]:
        """Load plugins from the ``settingconv.plugins`` entry point group.

        Returns a list of loaded plugin names.
        """
        try:
            self._pm.load_setuptools_entrypoints(ENTRY_POINT_GROUP)
        except Exception:
            logger.warning("Failed to load entry-point plugins", exc_info=True)
        self._normalize_plugin_instances()
        self._loaded = True
        return self.list_plugin_names()

    def register_plugin(self, plugin: object, name: str | None = None) -> None:
        """Register a plugin instance directly."""
        resolved_name = name or plugin.__class__.__name__
        self._pm.register(plugin, name=resolved_name)
        logger.debug("Registered plugin: %s", resolved_name)

    def unregister(self, plugin: object) -> None:
        """Unregister a plugin instance."""
        self._pm.unregister(plugin)

    @property
    def is_loaded(self) -> bool:
        """Whether discover_and_load() has been called."""
        return self._loaded

    @property
    def hook(self) -> pluggy.HookRelay:
        return self._pm.hook

    def list_plugin_names(self) -> list[str]:
        """Return names of all registered plugins."""
        return [self._pm.get_name(p) or p.__class__.__name__ for p in self._pm.get_plugins()]

    # ------------------------------------------------------------------
    # Registry population
    # ------------------------------------------------------------------

    def apply(self, registry: ConverterRegistry) -> int:
        """Install plugin-contributed converters and editors into *registry*.

        Malformed contributions are logged and skipped.  Returns the
        number of registrations made.
        """
        count = 0
        for mapping in self._collect("register_converters"):
            for requested, converter in mapping.items():
                if not isinstance(converter, Converter):
                    logger.warning("Skipping non-converter registration for %r", requested)
                    continue
                registry.put(requested, converter)
                count += 1
        for mapping in self._collect("register_editors"):
            for cls, factory in mapping.items():
                if not isinstance(cls, type) or not callable(factory):
                    logger.warning("Skipping editor registration for %r", cls)
                    continue
                registry.editors.register(cls, factory)
                count += 1
        logger.debug("Applied %d plugin registrations", count)
        return count

    def _collect(self, hook_name: str) -> Iterable[dict[Any, Any]]:
        hook: Callable[[], list[Any]] = getattr(self._pm.hook, hook_name)
        try:
            results = hook()
        except Exception:
            logger.warning("Plugin hook %s failed", hook_name, exc_info=True)
            return []
        collected: list[dict[Any, Any]] = []
        for result in results:
            if not isinstance(result, dict):
                logger.warning("Plugin hook %s returned %s, expected dict", hook_name, type(result).__name__)
                continue
            collected.append(result)
        return collected

    def _normalize_plugin_instances(self) -> None:
        """Replace registered plugin classes with instantiated objects.

        Entry-point loading may register a plugin class directly. Hook dispatch
        against class objects leaves ``self`` unbound and fails at runtime.
        """
        for plugin in list(self._pm.get_plugins()):
            if not inspect.isclass(plugin):
                continue

            plugin_name = self._pm.get_name(plugin) or plugin.__name__
            self._pm.unregister(plugin)

            try:
                instance = plugin()
            except Exception:
                logger.warning(
                    "Failed to instantiate entry-point plugin %s",
                    plugin_name,
                    exc_info=True,
                )
                continue

            self._pm.register(instance, name=plugin_name)
            logger.debug("Instantiated entry-point plugin: %s", plugin_name)
