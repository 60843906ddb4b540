"""Converter — the capability every scalar and structural converter implements."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Generic, TypeVar

from settingconv.domain.value import Value

T = TypeVar("T")


class Converter(ABC, Generic[T]):
    """Turn a :class:`Value` into a ``T``, or raise a ``ConversionError``.

    Converters are immutable after construction.  ``convert`` only reads
    shared state and allocates fresh output, so one instance may be used
    from many threads at once.

    A ``None`` Value and a Value whose ``raw`` is None are both "absent";
    converters answer absence with None (or the type's empty state), never
    with an error.
    """

    @abstractmethod
    def convert(self, value: Value | None) -> T | None:
        """Convert *value* into the target type."""

    def __call__(self, value: Value | None) -> T | None:
        return self.convert(value)

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class FunctionConverter(Converter[T]):
    """Adapt a plain ``Value -> T`` callable to the Converter interface."""

    def __init__(self, func: Callable[[Value | None], T | None], name: str | None = None) -> None:
        self._func = func
        self._name = name or getattr(func, "__name__", repr(func))

    def convert(self, value: Value | None) -> T | None:
        return self._func(value)

    def __repr__(self) -> str:
        return f"FunctionConverter({self._name})"


def raw_of(value: Value | None) -> str | None:
    """The raw string of *value*, or None when absent."""
    if value is None:
        return None
    return value.raw
