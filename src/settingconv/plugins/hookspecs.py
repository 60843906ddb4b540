"""Pluggy hook specifications for settingconv converter plugins.

Two setup-time hooks let installed packages extend a registry:
scalar converters keyed by the type they produce, and editor factories
for stateful legacy parsers.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pluggy

if TYPE_CHECKING:
    from settingconv.converters.base import Converter
    from settingconv.converters.editors import EditorFactory

hookspec = pluggy.HookspecMarker("settingconv")
hookimpl = pluggy.HookimplMarker("settingconv")


class SettingconvHookSpec:
    """Hook specifications for the settingconv plugin system."""

    @hookspec
    def register_converters(self) -> dict[Any, Converter[Any]] | None:
        """Return requested type -> Converter mappings to add to a registry."""

    @hookspec
    def register_editors(self) -> dict[type, EditorFactory] | None:
        """Return class -> editor factory mappings to add to a registry."""
