"""ConverterRegistry — resolve a converter for any requested type.

Resolution order for a synthesized descriptor:

1. Explicit registrations, keyed by exact descriptor equality.  A
   converter registered for ``list[int]`` is returned as is.
2. Structural shapes (sequence, set, map, map entry, optional, array,
   class reference) are built by recursively resolving their type
   arguments and wrapping the results.
3. A parameterized descriptor with no shape of its own falls back to
   the registration for its raw origin class.
4. The editor registry (stateful legacy parsers).
5. The class's own string factory (constructor, ``parse``...).

If nothing matches, ``NoConverterAvailable`` is raised.

Built converters are memoized per descriptor.  Construction happens
outside the lock: two threads racing on first use build equivalent
converters and the first one stored wins.
"""

from __future__ import annotations

import collections.abc as cabc
import logging
import threading
from collections.abc import Callable, Mapping, Sequence
from datetime import date, datetime, time
from types import EllipsisType
from typing import TYPE_CHECKING, Any

from settingconv.converters.base import Converter
from settingconv.converters.editors import EDITORS, EditorConverter, EditorRegistry
from settingconv.converters.scalars import (
    URI,
    BooleanConverter,
    ClassConverter,
    DateConverter,
    DateTimeConverter,
    LogLevel,
    LogLevelConverter,
    StringConverter,
    TimeConverter,
    TypeResolver,
    URIConverter,
    factory_converter_for,
    resolve_type_by_name,
)
from settingconv.converters.structural import (
    ArrayConverter,
    CollectionConverter,
    EntryConverter,
    MapConverter,
    MapEntry,
    OptionalConverter,
    canonical_entries,
)
from settingconv.domain.errors import NoConverterAvailable
from settingconv.domain.types import (
    OPTIONAL,
    TOP_TYPE,
    ConcreteType,
    ParameterizedType,
    TypeDescriptor,
    raw_class,
    synthesize,
)
from settingconv.domain.value import Value

if TYPE_CHECKING:
    from settingconv.config.settings import ConvSettings
    from settingconv.plugins.manager import PluginManager

logger = logging.getLogger(__name__)

Fallback = Callable[[type], Converter[Any] | None]

# origin -> (factory, freeze)
SEQUENCE_SHAPES: dict[Any, tuple[Callable[[int], Any], Callable[[Any], Any] | None]] = {
    list: (lambda _size: [], None),
    cabc.MutableSequence: (lambda _size: [], None),
    cabc.Sequence: (lambda _size: [], tuple),
    cabc.Collection: (lambda _size: [], tuple),
    cabc.Iterable: (lambda _size: [], tuple),
    set: (lambda _size: set(), None),
    cabc.MutableSet: (lambda _size: set(), None),
    frozenset: (lambda _size: set(), frozenset),
    cabc.Set: (lambda _size: set(), frozenset),
}

MAP_SHAPES = frozenset({dict, cabc.Mapping, cabc.MutableMapping})


def builtin_scalars(
    *,
    type_resolver: TypeResolver = resolve_type_by_name,
    allowed_prefixes: Sequence[str] = (),
) -> dict[Any, Converter[Any]]:
    """The scalar converters every default registry starts with."""
    strings = StringConverter()
    return {
        str: strings,
        object: strings,
        bool: BooleanConverter(),
        type: ClassConverter(type_resolver, allowed_prefixes=allowed_prefixes),
        LogLevel: LogLevelConverter(),
        datetime: DateTimeConverter(),
        date: DateConverter(),
        time: TimeConverter(),
        URI: URIConverter(),
    }


class ConverterRegistry:
    """Map requested types to converters, composing structural ones on demand.

    Args:
        scalars: Initial scalar registrations, keyed by requested type.
        editors: Editor registry consulted before the factory fallback.
        fallback: Builds an ad hoc converter for an arbitrary class, or
            returns None.
        memoize: Cache built converters per descriptor.
        type_resolver: Name lookup used for ``type[X]`` converters.
        allowed_prefixes: Class-name prefixes ``type[X]`` converters accept.
    """

    def __init__(
        self,
        scalars: Mapping[Any, Converter[Any]] | None = None,
        *,
        editors: EditorRegistry | None = None,
        fallback: Fallback | None = factory_converter_for,
        memoize: bool = True,
        type_resolver: TypeResolver = resolve_type_by_name,
        allowed_prefixes: Sequence[str] = (),
    ) -> None:
        self._scalars: dict[TypeDescriptor, Converter[Any]] = {}
        self._cache: dict[TypeDescriptor, Converter[Any]] = {}
        self._lock = threading.Lock()
        self.editors = editors if editors is not None else EDITORS
        self._fallback = fallback
        self._memoize = memoize
        self._type_resolver = type_resolver
        self._allowed_prefixes = tuple(allowed_prefixes)
        for requested, converter in (scalars or {}).items():
            self._scalars[synthesize(requested)] = converter

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def put(self, requested: Any, converter: Converter[Any]) -> Converter[Any] | None:
        """Register *converter* for *requested*; return the one it replaces."""
        descriptor = synthesize(requested)
        with self._lock:
            previous = self._scalars.get(descriptor)
            self._scalars[descriptor] = converter
            self._cache.clear()
        logger.debug("Registered converter for %s", descriptor)
        return previous

    def remove(self, requested: Any) -> Converter[Any] | None:
        """Drop the scalar registration for *requested*, if any."""
        descriptor = synthesize(requested)
        with self._lock:
            previous = self._scalars.pop(descriptor, None)
            self._cache.clear()
        return previous

    def __contains__(self, requested: Any) -> bool:
        descriptor = synthesize(requested)
        with self._lock:
            return descriptor in self._scalars

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def resolve(self, requested: Any) -> Converter[Any]:
        """Return a converter for *requested*.

        Raises:
            NoConverterAvailable: If no converter can be found or built.
        """
        descriptor = synthesize(requested)
        if self._memoize:
            with self._lock:
                cached = self._cache.get(descriptor)
            if cached is not None:
                return cached
        converter = self._build(descriptor)
        if self._memoize:
            with self._lock:
                converter = self._cache.setdefault(descriptor, converter)
        return converter

    def convert(self, value: Value | None, requested: Any) -> Any:
        """Resolve a converter for *requested* and apply it to *value*."""
        return self.resolve(requested).convert(value)

    def _build(self, descriptor: TypeDescriptor) -> Converter[Any]:
        if isinstance(descriptor, ParameterizedType):
            origin, args = descriptor.origin, descriptor.args
        else:
            origin, args = descriptor.cls, ()

        with self._lock:
            converter = self._scalars.get(descriptor)
        if converter is not None:
            return converter

        structural = self._build_structural(origin, args)
        if structural is not None:
            logger.debug("Built %r for %s", structural, descriptor)
            return structural

        if isinstance(descriptor, ParameterizedType):
            with self._lock:
                converter = self._scalars.get(ConcreteType(raw_class(descriptor)))
            if converter is not None:
                return converter

        cls = raw_class(descriptor)
        if cls in self.editors:
            logger.debug("Using editor for %s", descriptor)
            return EditorConverter(cls, self.editors.find_editor(cls))
        if self._fallback is not None:
            converter = self._fallback(cls)
            if converter is not None:
                logger.debug("Using fallback %r for %s", converter, descriptor)
                return converter
        raise NoConverterAvailable(descriptor)

    def _build_structural(
        self,
        origin: Any,
        args: tuple[TypeDescriptor | EllipsisType, ...],
    ) -> Converter[Any] | None:
        if origin is OPTIONAL:
            return OptionalConverter(self.resolve(args[0]))

        if origin is tuple:
            if not args:
                args = (TOP_TYPE, Ellipsis)
            if len(args) != 2 or args[1] is not Ellipsis:
                # Fixed-arity tuples have no flat-string grammar.
                raise NoConverterAvailable(ParameterizedType(origin, args))
            element = args[0]
            sequence = CollectionConverter(lambda _size: [], self.resolve(element))
            return ArrayConverter(element, sequence)

        if origin is MapEntry:
            key, value = _pad(args, 2)
            return EntryConverter(self.resolve(key), self.resolve(value))

        if origin in MAP_SHAPES:
            key, value = _pad(args, 2)
            entries = CollectionConverter(
                lambda _size: [],
                EntryConverter(self.resolve(key), self.resolve(value)),
                canonical_entries,
            )
            return MapConverter(entries)

        if origin in SEQUENCE_SHAPES:
            factory, freeze = SEQUENCE_SHAPES[origin]
            (element,) = _pad(args, 1)
            return CollectionConverter(factory, self.resolve(element), freeze)

        if origin is type and args:
            bound = raw_class(args[0]) if args[0] is not Ellipsis else object
            return ClassConverter(
                self._type_resolver,
                bound=bound,
                allowed_prefixes=self._allowed_prefixes,
            )

        return None


def _pad(args: tuple[Any, ...], arity: int) -> tuple[Any, ...]:
    """Fill missing type arguments with the top type."""
    args = tuple(TOP_TYPE if a is Ellipsis else a for a in args[:arity])
    return args + (TOP_TYPE,) * (arity - len(args))


def default_registry(
    settings: ConvSettings | None = None,
    *,
    plugins: PluginManager | None = None,
) -> ConverterRegistry:
    """Build a registry with the built-in scalars, configured by *settings*.

    When *settings* enables plugins and no *plugins* manager is given,
    entry-point plugins are discovered and applied.
    """
    memoize = True
    allowed_prefixes: Sequence[str] = ()
    load_plugins = False
    if settings is not None:
        memoize = settings.registry.memoize
        allowed_prefixes = settings.classes.allowed_prefixes
        load_plugins = settings.plugins.enabled

    registry = ConverterRegistry(
        builtin_scalars(allowed_prefixes=allowed_prefixes),
        memoize=memoize,
        allowed_prefixes=allowed_prefixes,
    )

    if plugins is None and load_plugins:
        from settingconv.plugins.manager import PluginManager

        plugins = PluginManager()
        plugins.discover_and_load()
    if plugins is not None:
        plugins.apply(registry)
    return registry
