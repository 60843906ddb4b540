"""Editor-backed converters for stateful, non-reentrant parsers.

An *editor* is an object that parses text in two steps: ``set_as_text``
stores the input and ``get_value`` returns the parsed result.  Because the
input lives on the editor between those two calls, an editor must never
be shared by two conversions at the same time.

:class:`EditorConverter` owns one editor and a lock scoped to it, so
concurrent conversions through the same converter are serialized while
every other converter stays fully parallel.

Editors do not survive pickling: an unpickled ``EditorConverter``
re-acquires a fresh editor from :data:`EDITORS` by its target type.
"""

from __future__ import annotations

import logging
import re
import threading
from collections.abc import Callable
from datetime import timedelta
from typing import Any, Protocol, runtime_checkable

from settingconv.converters.base import Converter, raw_of
from settingconv.converters.scalars import PARSE_ERRORS
from settingconv.domain.errors import MalformedValue
from settingconv.domain.value import Value

logger = logging.getLogger(__name__)


@runtime_checkable
class Editor(Protocol):
    """Two-step text parser holding its input between calls."""

    def set_as_text(self, text: str | None) -> None: ...

    def get_value(self) -> Any: ...


EditorFactory = Callable[[], Editor]


class EditorRegistry:
    """Thread-safe map of target class -> editor factory.

    Lookup walks the target's MRO so an editor registered for a base
    class also serves its subclasses.
    """

    def __init__(self) -> None:
        self._factories: dict[type, EditorFactory] = {}
        self._lock = threading.Lock()

    def register(self, cls: type, factory: EditorFactory) -> None:
        """Register *factory* as the editor source for *cls*."""
        with self._lock:
            self._factories[cls] = factory
        logger.debug("Registered editor for %s", cls.__qualname__)

    def unregister(self, cls: type) -> None:
        with self._lock:
            self._factories.pop(cls, None)

    def find_editor(self, cls: type) -> Editor | None:
        """Return a fresh editor for *cls*, or None if none is registered."""
        with self._lock:
            for base in cls.__mro__:
                factory = self._factories.get(base)
                if factory is not None:
                    break
            else:
                return None
        return factory()

    def __contains__(self, cls: object) -> bool:
        if not isinstance(cls, type):
            return False
        with self._lock:
            return any(base in self._factories for base in cls.__mro__)


class EditorConverter(Converter[Any]):
    """Convert through a single, lock-guarded :class:`Editor`.

    Args:
        target: The class this converter produces; used to re-acquire an
            editor after unpickling.
        editor: The editor to use.  When omitted, one is looked up in
            :data:`EDITORS`.
    """

    def __init__(self, target: type, editor: Editor | None = None) -> None:
        self.target = target
        self._editor = editor if editor is not None else EDITORS.find_editor(target)
        self._lock = threading.Lock()

    @property
    def has_editor(self) -> bool:
        return self._editor is not None

    def convert(self, value: Value | None) -> Any:
        raw = raw_of(value)
        if raw is None:
            return None
        if self._editor is None:
            raise MalformedValue(
                raw,
                f"No editor available for {self.target.__qualname__}",
                value=value,
                target=self.target,
            )
        with self._lock:
            try:
                self._editor.set_as_text(raw)
                result = self._editor.get_value()
            except PARSE_ERRORS as exc:
                raise MalformedValue(raw, str(exc), value=value, target=self.target) from exc
        if result is not None and not isinstance(result, self.target):
            raise MalformedValue(
                raw,
                f"editor produced {type(result).__qualname__}",
                value=value,
                target=self.target,
            )
        return result

    def __getstate__(self) -> dict[str, Any]:
        return {"target": self.target}

    def __setstate__(self, state: dict[str, Any]) -> None:
        self.target = state["target"]
        self._editor = EDITORS.find_editor(self.target)
        self._lock = threading.Lock()

    def __repr__(self) -> str:
        return f"EditorConverter({self.target.__qualname__})"


# ---------------------------------------------------------------------------
# Built-in editors
# ---------------------------------------------------------------------------

_DURATION_PART = re.compile(r"(?P<amount>\d+(?:\.\d+)?)\s*(?P<unit>ms|d|h|m|s)")

_DURATION_UNITS = {
    "d": "days",
    "h": "hours",
    "m": "minutes",
    "s": "seconds",
    "ms": "milliseconds",
}


class DurationEditor:
    """Parse ``1h30m``, ``90s``, ``250ms`` or a bare number of seconds."""

    def __init__(self) -> None:
        self._text: str | None = None

    def set_as_text(self, text: str | None) -> None:
        self._text = text

    def get_value(self) -> timedelta | None:
        text = self._text
        if text is None:
            return None
        compact = text.strip().lower()
        if not compact:
            raise ValueError("empty duration")
        try:
            return timedelta(seconds=float(compact))
        except ValueError:
            pass
        position = 0
        parts: dict[str, float] = {}
        for match in _DURATION_PART.finditer(compact):
            if compact[position : match.start()].strip():
                break
            unit = _DURATION_UNITS[match["unit"]]
            parts[unit] = parts.get(unit, 0.0) + float(match["amount"])
            position = match.end()
        if not parts or compact[position:].strip():
            raise ValueError(f"invalid duration {text!r}")
        return timedelta(**parts)


EDITORS = EditorRegistry()
EDITORS.register(timedelta, DurationEditor)
