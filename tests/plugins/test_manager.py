"""Tests for PluginManager — registration, hook relay and registry population."""

from __future__ import annotations

from datetime import timedelta

import pytest

from settingconv.converters.base import Converter, FunctionConverter
from settingconv.converters.editors import EditorRegistry
from settingconv.domain.value import Value
from settingconv.plugins import hookimpl
from settingconv.plugins.manager import PluginManager
from settingconv.registry import ConverterRegistry, builtin_scalars, default_registry


class Hostname(str):
    pass


class Ratio(float):
    pass


def _hostname(value: Value | None) -> Hostname | None:
    if value is None or value.raw is None:
        return None
    return Hostname(value.raw.lower())


class RatioEditor:
    def __init__(self) -> None:
        self._text: str | None = None

    def set_as_text(self, text: str | None) -> None:
        self._text = text

    def get_value(self) -> Ratio:
        assert self._text is not None
        num, _, den = self._text.partition("/")
        return Ratio(float(num) / float(den))


class _HostnamePlugin:
    @hookimpl
    def register_converters(self) -> dict[type, Converter[Hostname]]:
        return {Hostname: FunctionConverter(_hostname)}


class _HostListPlugin:
    @hookimpl
    def register_converters(self) -> dict[object, Converter[list[Hostname]]]:
        return {list[Hostname]: FunctionConverter(_host_list)}


def _host_list(value: Value | None) -> list[Hostname] | None:
    if value is None or value.raw is None:
        return None
    return [Hostname(part.strip().lower()) for part in value.raw.split(";") if part.strip()]


class _RatioPlugin:
    @hookimpl
    def register_editors(self) -> dict[type, type[RatioEditor]]:
        return {Ratio: RatioEditor}


class _BadPlugin:
    @hookimpl
    def register_converters(self) -> object:
        return {Hostname: "not a converter", Ratio: FunctionConverter(_hostname)}

    @hookimpl
    def register_editors(self) -> object:
        return ["not", "a", "dict"]


class _FailingPlugin:
    @hookimpl
    def register_converters(self) -> dict[type, Converter[object]]:
        raise RuntimeError("boom")


def _registry() -> ConverterRegistry:
    return ConverterRegistry(builtin_scalars(), editors=EditorRegistry())


class TestPluginManager:
    def test_hook_relay_accessible(self) -> None:
        pm = PluginManager()
        assert hasattr(pm.hook, "register_converters")
        assert hasattr(pm.hook, "register_editors")

    def test_register_plugin(self) -> None:
        pm = PluginManager()
        pm.register_plugin(_HostnamePlugin(), name="hostnames")
        assert "hostnames" in pm.list_plugin_names()

    def test_register_uses_class_name_by_default(self) -> None:
        pm = PluginManager()
        pm.register_plugin(_HostnamePlugin())
        assert "_HostnamePlugin" in pm.list_plugin_names()

    def test_unregister(self) -> None:
        pm = PluginManager()
        plugin = _HostnamePlugin()
        pm.register_plugin(plugin, name="hostnames")
        pm.unregister(plugin)
        assert "hostnames" not in pm.list_plugin_names()

    def test_discover_marks_loaded(self) -> None:
        pm = PluginManager()
        assert pm.is_loaded is False
        pm.discover_and_load()
        assert pm.is_loaded is True

    def test_discover_failure_is_warning(self, monkeypatch: pytest.MonkeyPatch) -> None:
        pm = PluginManager()

        def explode(group: str) -> int:
            raise RuntimeError("broken entry point")

        monkeypatch.setattr(pm._pm, "load_setuptools_entrypoints", explode)
        assert pm.discover_and_load() == []
        assert pm.is_loaded is True

    def test_entry_point_classes_are_instantiated(self) -> None:
        pm = PluginManager()
        pm._pm.register(_HostnamePlugin, name="hostnames")
        pm._normalize_plugin_instances()
        registry = _registry()
        assert pm.apply(registry) == 1
        assert registry.convert(Value("DB.local"), Hostname) == "db.local"


class TestApply:
    def test_converters_installed(self) -> None:
        pm = PluginManager()
        pm.register_plugin(_HostnamePlugin())
        registry = _registry()
        assert pm.apply(registry) == 1
        assert Hostname in registry
        assert registry.convert(Value("A,B"), list[Hostname]) == ["a", "b"]

    def test_structural_converter_from_plugin_is_resolved(self) -> None:
        pm = PluginManager()
        pm.register_plugin(_HostListPlugin())
        registry = _registry()
        assert pm.apply(registry) == 1
        assert list[Hostname] in registry
        assert registry.resolve(list[Hostname]).convert(Value("A; B")) == ["a", "b"]

    def test_editors_installed(self) -> None:
        pm = PluginManager()
        pm.register_plugin(_RatioPlugin())
        registry = _registry()
        assert pm.apply(registry) == 1
        assert registry.convert(Value("1/4"), Ratio) == 0.25

    def test_invalid_contributions_skipped(self) -> None:
        pm = PluginManager()
        pm.register_plugin(_BadPlugin())
        registry = _registry()
        assert pm.apply(registry) == 1
        assert Hostname not in registry
        assert Ratio in registry

    def test_failing_hook_is_warning(self) -> None:
        pm = PluginManager()
        pm.register_plugin(_FailingPlugin())
        assert pm.apply(_registry()) == 0

    def test_default_registry_applies_given_manager(self) -> None:
        pm = PluginManager()
        pm.register_plugin(_HostnamePlugin())
        registry = default_registry(plugins=pm)
        assert registry.convert(Value("X"), Hostname) == "x"
        assert registry.convert(Value("90s"), timedelta) == timedelta(seconds=90)
