"""Tests for editor-backed converters."""

from __future__ import annotations

import pickle
import threading
from datetime import timedelta

import pytest

from settingconv.converters.editors import (
    EDITORS,
    DurationEditor,
    Editor,
    EditorConverter,
    EditorRegistry,
)
from settingconv.domain.errors import MalformedValue
from settingconv.domain.value import Value


class Celsius(float):
    pass


class CelsiusEditor:
    """Editor that records how many threads are inside it at once."""

    def __init__(self) -> None:
        self._text: str | None = None
        self.active = 0
        self.max_active = 0
        self._gate = threading.Lock()

    def set_as_text(self, text: str | None) -> None:
        with self._gate:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        self._text = text

    def get_value(self) -> Celsius:
        try:
            assert self._text is not None
            return Celsius(self._text.rstrip("C"))
        finally:
            with self._gate:
                self.active -= 1


class WrongTypeEditor:
    def set_as_text(self, text: str | None) -> None:
        pass

    def get_value(self) -> str:
        return "nope"


class TestEditorRegistry:
    def test_find_registered(self) -> None:
        registry = EditorRegistry()
        registry.register(Celsius, CelsiusEditor)
        assert isinstance(registry.find_editor(Celsius), CelsiusEditor)
        assert Celsius in registry

    def test_fresh_editor_per_lookup(self) -> None:
        registry = EditorRegistry()
        registry.register(Celsius, CelsiusEditor)
        assert registry.find_editor(Celsius) is not registry.find_editor(Celsius)

    def test_base_class_serves_subclass(self) -> None:
        registry = EditorRegistry()
        registry.register(float, CelsiusEditor)
        assert Celsius in registry
        assert registry.find_editor(Celsius) is not None

    def test_missing(self) -> None:
        registry = EditorRegistry()
        assert registry.find_editor(Celsius) is None
        assert Celsius not in registry
        assert "Celsius" not in registry

    def test_unregister(self) -> None:
        registry = EditorRegistry()
        registry.register(Celsius, CelsiusEditor)
        registry.unregister(Celsius)
        assert Celsius not in registry

    def test_editors_satisfy_protocol(self) -> None:
        assert isinstance(CelsiusEditor(), Editor)
        assert isinstance(DurationEditor(), Editor)

    def test_default_registry_has_durations(self) -> None:
        assert timedelta in EDITORS


class TestEditorConverter:
    def test_converts(self) -> None:
        converter = EditorConverter(Celsius, CelsiusEditor())
        assert converter.convert(Value("21.5C")) == Celsius(21.5)

    def test_absent(self) -> None:
        converter = EditorConverter(Celsius, CelsiusEditor())
        assert converter.convert(Value(None)) is None
        assert converter.convert(None) is None

    def test_no_editor_is_malformed(self) -> None:
        converter = EditorConverter(Celsius)
        assert converter.has_editor is False
        with pytest.raises(MalformedValue, match="No editor available"):
            converter.convert(Value("1"))

    def test_editor_failure_is_malformed_and_lock_released(self) -> None:
        converter = EditorConverter(Celsius, CelsiusEditor())
        with pytest.raises(MalformedValue) as exc_info:
            converter.convert(Value("warm"))
        assert isinstance(exc_info.value.__cause__, ValueError)
        assert not converter._lock.locked()
        assert converter.convert(Value("3C")) == Celsius(3)

    def test_wrong_result_type_is_malformed(self) -> None:
        converter = EditorConverter(Celsius, WrongTypeEditor())
        with pytest.raises(MalformedValue, match="editor produced str"):
            converter.convert(Value("1"))

    def test_concurrent_calls_are_serialized(self) -> None:
        editor = CelsiusEditor()
        converter = EditorConverter(Celsius, editor)
        results: list[Celsius | None] = []
        barrier = threading.Barrier(8)

        def worker(i: int) -> None:
            barrier.wait()
            for _ in range(50):
                results.append(converter.convert(Value(f"{i}C")))

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert editor.max_active == 1
        assert len(results) == 400
        assert sorted(set(results)) == [Celsius(i) for i in range(8)]  # type: ignore[type-var]


@pytest.mark.usefixtures("_restore_editors")
class TestEditorConverterPickling:
    def test_reacquires_editor_by_target(self) -> None:
        EDITORS.register(Celsius, CelsiusEditor)
        original_editor = CelsiusEditor()
        converter = EditorConverter(Celsius, original_editor)

        restored = pickle.loads(pickle.dumps(converter))

        assert restored.target is Celsius
        assert restored._editor is not original_editor
        assert isinstance(restored._editor, CelsiusEditor)
        assert restored.convert(Value("5C")) == Celsius(5)

    def test_unpickled_without_registration_reports_missing_editor(self) -> None:
        converter = EditorConverter(Celsius, CelsiusEditor())
        restored = pickle.loads(pickle.dumps(converter))
        assert restored.has_editor is False
        with pytest.raises(MalformedValue):
            restored.convert(Value("5C"))


class TestDurationEditor:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("90", timedelta(seconds=90)),
            ("1.5", timedelta(seconds=1.5)),
            ("90s", timedelta(seconds=90)),
            ("250ms", timedelta(milliseconds=250)),
            ("1h30m", timedelta(hours=1, minutes=30)),
            ("2d 4h", timedelta(days=2, hours=4)),
            ("1M", timedelta(minutes=1)),
        ],
    )
    def test_durations(self, text: str, expected: timedelta) -> None:
        editor = DurationEditor()
        editor.set_as_text(text)
        assert editor.get_value() == expected

    @pytest.mark.parametrize("text", ["", "soon", "1h banana", "h1"])
    def test_invalid(self, text: str) -> None:
        editor = DurationEditor()
        editor.set_as_text(text)
        with pytest.raises(ValueError):
            editor.get_value()

    def test_through_converter(self) -> None:
        converter = EditorConverter(timedelta)
        assert converter.convert(Value("15m")) == timedelta(minutes=15)
        with pytest.raises(MalformedValue):
            converter.convert(Value("later"))
