"""Structural converters — composed from already-resolved inner converters.

Flat-string grammar:

- collections: ``a,b,c``; ``\\,`` is a literal comma inside an element.
- entries: ``key=value``; only the first unescaped ``=`` splits, and
  ``\\=`` is unescaped in both halves.
- maps: a collection of entries, ``a=b,c=d``.

An absent Value produces None (``OptionalConverter``: the empty state);
a present empty string produces an empty container.

INVARIANT: structural converters never mutate the converters they wrap.
"""

from __future__ import annotations

import functools
import re
from collections.abc import Callable, Iterable, Iterator, Mapping, MutableSequence, MutableSet
from typing import Any, Generic, NamedTuple, TypeVar

from settingconv.converters.base import Converter, raw_of
from settingconv.domain.errors import MisconfiguredConverter
from settingconv.domain.types import synthesize
from settingconv.domain.value import Value

K = TypeVar("K")
V = TypeVar("V")
E = TypeVar("E")

# ---------------------------------------------------------------------------
# Escape-aware splitting
# ---------------------------------------------------------------------------


@functools.cache
def _splitter(delimiter: str) -> re.Pattern[str]:
    return re.compile(rf"(?<!\\){re.escape(delimiter)}")


def unescape(text: str, delimiter: str) -> str:
    """Replace every ``\\<delimiter>`` in *text* with *delimiter*."""
    return text.replace("\\" + delimiter, delimiter)


def split_escaped(text: str, delimiter: str, *, maxsplit: int = 0) -> list[str]:
    """Split on *delimiter* where it is not preceded by a backslash.

    With no *maxsplit*, trailing empty fragments are dropped (``"a,b,"``
    splits into two fragments).  A bounded split keeps them, so ``"k="``
    yields an empty value half.  Every fragment is unescaped.

    Examples:
        >>> split_escaped(r"a\\,b,c", ",")
        ['a,b', 'c']
        >>> split_escaped("a=b=c", "=", maxsplit=1)
        ['a', 'b=c']
    """
    parts = _splitter(delimiter).split(text, maxsplit=maxsplit)
    if maxsplit == 0:
        while parts and not parts[-1]:
            parts.pop()
    return [unescape(part, delimiter) for part in parts]


# ---------------------------------------------------------------------------
# Map entries and entry-backed maps
# ---------------------------------------------------------------------------


class MapEntry(NamedTuple, Generic[K, V]):
    """An immutable key/value pair."""

    key: K
    value: V


class EntryMap(Mapping[K, V]):
    """Read-only mapping backed by an ordered tuple of entries.

    Iteration follows entry order, and lookups scan the entries, so the
    first entry for a key wins.  No separate hash table is built.
    """

    __slots__ = ("_entries",)

    def __init__(self, entries: Iterable[MapEntry[K, V]] = ()) -> None:
        self._entries: tuple[MapEntry[K, V], ...] = tuple(entries)

    @property
    def entries(self) -> tuple[MapEntry[K, V], ...]:
        """The canonical entry tuple backing this map."""
        return self._entries

    def __getitem__(self, key: K) -> V:
        for entry in self._entries:
            if entry.key == key:
                return entry.value
        raise KeyError(key)

    def __iter__(self) -> Iterator[K]:
        return (entry.key for entry in self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        body = ", ".join(f"{e.key!r}: {e.value!r}" for e in self._entries)
        return f"EntryMap({{{body}}})"


def canonical_entries(entries: Iterable[Any]) -> tuple[MapEntry[Any, Any], ...]:
    """Order-preserving, equality-based de-duplication of entries.

    Equality rather than hashing is used so entries with unhashable
    values (lists, maps) still collapse.
    """
    unique: list[MapEntry[Any, Any]] = []
    for entry in entries:
        entry = MapEntry(*entry)
        if entry not in unique:
            unique.append(entry)
    return tuple(unique)


# ---------------------------------------------------------------------------
# Converters
# ---------------------------------------------------------------------------


class CollectionConverter(Converter[Any]):
    """Split a comma-separated string and convert each element.

    Args:
        factory: Allocates an empty mutable sequence or set, given the
            number of elements it will receive.
        inner: Converter applied to every element.
        freeze: Optional function producing the final (usually
            immutable) container from the populated one.
    """

    def __init__(
        self,
        factory: Callable[[int], Any],
        inner: Converter[Any],
        freeze: Callable[[Any], Any] | None = None,
    ) -> None:
        if factory is None or inner is None:
            raise MisconfiguredConverter("CollectionConverter requires a factory and an inner converter")
        self._factory = factory
        self._inner = inner
        self._freeze = freeze

    def convert(self, value: Value | None) -> Any:
        raw = raw_of(value)
        if raw is None:
            return None
        assert value is not None
        parts = split_escaped(raw, ",") if raw else []
        container = self._factory(len(parts))
        if isinstance(container, MutableSet):
            add = container.add
        elif isinstance(container, MutableSequence):
            add = container.append
        else:
            raise MisconfiguredConverter(
                f"Collection factory returned {type(container).__name__}, "
                "expected a mutable sequence or set"
            )
        for part in parts:
            add(self._inner.convert(value.child(part)))
        if self._freeze is not None:
            return self._freeze(container)
        return container

    def __repr__(self) -> str:
        return f"CollectionConverter({self._inner!r})"


class EntryConverter(Converter[MapEntry[Any, Any]]):
    """Convert ``key=value`` into a :class:`MapEntry`.

    A string with no unescaped ``=`` has an absent value half.
    """

    def __init__(self, key: Converter[Any], value: Converter[Any]) -> None:
        self._key = key
        self._value = value

    def convert(self, value: Value | None) -> MapEntry[Any, Any] | None:
        raw = raw_of(value)
        if raw is None:
            return None
        assert value is not None
        # Unescaping the value half too means a value can't carry a
        # literal "\=" through to a nested entry converter.
        parts = split_escaped(raw, "=", maxsplit=1)
        key_raw = parts[0]
        value_raw = parts[1] if len(parts) > 1 else None
        return MapEntry(
            self._key.convert(value.child(key_raw)),
            self._value.convert(value.child(value_raw)),
        )

    def __repr__(self) -> str:
        return f"EntryConverter({self._key!r}, {self._value!r})"


class MapConverter(Converter[EntryMap[Any, Any]]):
    """Build an :class:`EntryMap` from a converter producing entries."""

    def __init__(self, entries: Converter[Any]) -> None:
        if entries is None:
            raise MisconfiguredConverter("MapConverter requires an entry converter")
        self._entries = entries

    def convert(self, value: Value | None) -> EntryMap[Any, Any] | None:
        entries = self._entries.convert(value)
        if entries is None:
            return None
        return EntryMap(canonical_entries(entries))

    def __repr__(self) -> str:
        return f"MapConverter({self._entries!r})"


class OptionalConverter(Converter[Any]):
    """Absent -> None (the empty state); present -> the base result."""

    def __init__(self, base: Converter[Any]) -> None:
        if base is None:
            raise MisconfiguredConverter("OptionalConverter requires a base converter")
        self._base = base

    def convert(self, value: Value | None) -> Any:
        if value is None or value.raw is None:
            return None
        return self._base.convert(value)

    def __repr__(self) -> str:
        return f"OptionalConverter({self._base!r})"


class ArrayConverter(Converter[tuple[Any, ...]], Generic[E]):
    """Copy a converted sequence into a fixed-length tuple.

    The element type is passed in explicitly; elements are copied as the
    sequence converter produced them.

    Raises:
        MisconfiguredConverter: At construction, when *element_type* is
            missing or is not a single type.
    """

    def __init__(self, element_type: Any, sequence: Converter[Any]) -> None:
        if element_type is None or element_type is Ellipsis or isinstance(element_type, (tuple, list)):
            raise MisconfiguredConverter(f"ArrayConverter needs exactly one element type, got {element_type!r}")
        if sequence is None:
            raise MisconfiguredConverter("ArrayConverter requires a sequence converter")
        self.element_type = synthesize(element_type)
        self._sequence = sequence

    def convert(self, value: Value | None) -> tuple[E, ...] | None:
        sequence = self._sequence.convert(value)
        if sequence is None:
            return None
        return tuple(sequence)

    def __repr__(self) -> str:
        return f"ArrayConverter({self.element_type}, {self._sequence!r})"
