"""Scalar converters — leaf converters for primitive-like targets.

Every converter here answers an absent Value with None, except
:class:`BooleanConverter`, which treats absence as False.  Parse failures
raise :class:`MalformedValue` chained to the underlying parser error.
"""

from __future__ import annotations

import builtins
import inspect
import logging
import re
import types
from collections.abc import Callable, Sequence
from datetime import date, datetime, time
from enum import Enum, IntEnum
from typing import Annotated, Any, TypeAlias
from urllib.parse import SplitResult, urlsplit
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import ImportString, StringConstraints, TypeAdapter, ValidationError

from settingconv.converters.base import Converter, T, raw_of
from settingconv.domain.errors import MalformedValue
from settingconv.domain.value import Value

logger = logging.getLogger(__name__)

# Exceptions that mean "this string does not parse", as opposed to bugs.
PARSE_ERRORS: tuple[type[Exception], ...] = (ValueError, TypeError, ArithmeticError, LookupError)


class ParsingConverter(Converter[T]):
    """Base for converters that parse a present raw string.

    Subclasses implement :meth:`parse`; absence handling and error
    wrapping live here.
    """

    target: Any = None
    errors: tuple[type[Exception], ...] = PARSE_ERRORS

    def parse(self, raw: str) -> T:
        raise NotImplementedError

    def convert(self, value: Value | None) -> T | None:
        raw = raw_of(value)
        if raw is None:
            return None
        try:
            return self.parse(raw)
        except MalformedValue:
            raise
        except self.errors as exc:
            raise MalformedValue(raw, str(exc), value=value, target=self.target) from exc


class StringConverter(Converter[str]):
    """Identity conversion; also serves the top type."""

    def convert(self, value: Value | None) -> str | None:
        return raw_of(value)


class BooleanConverter(Converter[bool]):
    """``true``, ``y``, ``yes``, ``on`` (any case) and ``1`` are True.

    Anything else, including an empty or absent string, is False.  This
    converter never fails.
    """

    TRUE_WORDS = frozenset({"true", "y", "yes", "on"})

    def convert(self, value: Value | None) -> bool | None:
        if value is None:
            return None
        raw = value.raw
        return raw is not None and (raw.lower() in self.TRUE_WORDS or raw == "1")


# ---------------------------------------------------------------------------
# Class references
# ---------------------------------------------------------------------------

TypeResolver: TypeAlias = Callable[[str], type]

_IMPORT_STRING = TypeAdapter(ImportString)


def resolve_type_by_name(name: str) -> type:
    """Resolve ``module.QualName`` (or a builtin name) to a class.

    Raises:
        LookupError: If *name* cannot be imported or is not a class.
    """
    if "." not in name and ":" not in name:
        found = getattr(builtins, name, None)
        if isinstance(found, type):
            return found
        raise LookupError(f"No builtin class named {name!r}")
    try:
        found = _IMPORT_STRING.validate_python(name)
    except ValidationError as exc:
        raise LookupError(f"Cannot import {name!r}") from exc
    if not isinstance(found, type):
        raise LookupError(f"{name!r} is not a class")
    return found


class ClassConverter(ParsingConverter[type]):
    """Resolve a class name through a pluggable :data:`TypeResolver`.

    Args:
        resolver: Name-to-class lookup; raises ``LookupError`` when the
            name is unknown.
        bound: Resolved classes must be subclasses of *bound*.
        allowed_prefixes: When non-empty, only names starting with one
            of these prefixes are resolved.
    """

    target = type

    def __init__(
        self,
        resolver: TypeResolver = resolve_type_by_name,
        *,
        bound: type = object,
        allowed_prefixes: Sequence[str] = (),
    ) -> None:
        self._resolver = resolver
        self._bound = bound
        self._allowed_prefixes = tuple(allowed_prefixes)

    def parse(self, raw: str) -> type:
        name = raw.strip()
        if self._allowed_prefixes and not name.startswith(self._allowed_prefixes):
            raise LookupError(f"{name!r} is outside the allowed class prefixes")
        cls = self._resolver(name)
        if not issubclass(cls, self._bound):
            raise TypeError(f"{cls.__qualname__} is not a subclass of {self._bound.__qualname__}")
        return cls

    def __repr__(self) -> str:
        return f"ClassConverter(bound={self._bound.__qualname__})"


# ---------------------------------------------------------------------------
# Log levels
# ---------------------------------------------------------------------------


class LogLevel(IntEnum):
    """Standard library logging levels."""

    NOTSET = logging.NOTSET
    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR
    CRITICAL = logging.CRITICAL


_LEVEL_ALIASES = {"WARN": LogLevel.WARNING, "FATAL": LogLevel.CRITICAL}


class LogLevelConverter(ParsingConverter[LogLevel]):
    """Level names (any case, ``WARN``/``FATAL`` aliases) or numeric levels."""

    target = LogLevel

    def parse(self, raw: str) -> LogLevel:
        name = raw.strip().upper()
        if name in LogLevel.__members__:
            return LogLevel[name]
        if name in _LEVEL_ALIASES:
            return _LEVEL_ALIASES[name]
        return LogLevel(int(name))


# ---------------------------------------------------------------------------
# Dates and times
# ---------------------------------------------------------------------------

_ZONED = re.compile(r"^(?P<stamp>[^\[]+)\[(?P<zone>[^\]]+)\]$")


class DateTimeConverter(ParsingConverter[datetime]):
    """ISO-8601 date-times in local, offset or zoned form.

    Zoned stamps carry a region suffix, e.g.
    ``2007-12-03T10:15:30+01:00[Europe/Paris]``.  A naive stamp with a
    region is interpreted in that region; an offset stamp is shifted to it.
    """

    target = datetime

    def parse(self, raw: str) -> datetime:
        match = _ZONED.match(raw.strip())
        if match is None:
            return datetime.fromisoformat(raw.strip())
        stamp = datetime.fromisoformat(match["stamp"])
        try:
            zone = ZoneInfo(match["zone"])
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise LookupError(f"Unknown time zone {match['zone']!r}") from exc
        if stamp.tzinfo is None:
            return stamp.replace(tzinfo=zone)
        return stamp.astimezone(zone)


class DateConverter(ParsingConverter[date]):
    target = date

    def parse(self, raw: str) -> date:
        return date.fromisoformat(raw.strip())


class TimeConverter(ParsingConverter[time]):
    """Local or offset times, e.g. ``10:15`` or ``10:15:30+01:00``."""

    target = time

    def parse(self, raw: str) -> time:
        return time.fromisoformat(raw.strip())


# RFC 3986 reference characters: unreserved, reserved, and %XX escapes.
_URI_PATTERN = r"^(?:[A-Za-z0-9\-._~:/?#\[\]@!$&'()*+,;=]|%[0-9A-Fa-f]{2})*$"


class URI(str):
    """A URI reference, absolute or relative, kept exactly as written."""

    __slots__ = ()

    @property
    def parts(self) -> SplitResult:
        return urlsplit(self)

    @property
    def scheme(self) -> str:
        return self.parts.scheme

    @property
    def is_absolute(self) -> bool:
        return bool(self.scheme)


class URIConverter(ParsingConverter[URI]):
    """URI references per RFC 3986, including relative ones.

    The character set is validated by pydantic; the text is returned
    unnormalized.
    """

    target = URI

    _adapter = TypeAdapter(Annotated[str, StringConstraints(pattern=_URI_PATTERN)])

    def parse(self, raw: str) -> URI:
        text = self._adapter.validate_python(raw)
        parts = urlsplit(text)
        # A relative path's first segment may not look like a scheme.
        if not parts.scheme and not text.startswith("/") and ":" in parts.path.split("/", 1)[0]:
            raise ValueError(f"ambiguous scheme in relative reference {text!r}")
        # Raises ValueError for a non-numeric or out-of-range port.
        _ = parts.port
        return URI(text)


# ---------------------------------------------------------------------------
# Factory fallback
# ---------------------------------------------------------------------------

# Named single-string factories, checked in order before the constructor.
FACTORY_METHODS = ("from_string", "fromisoformat", "parse")


class FactoryConverter(ParsingConverter[T]):
    """Wrap a single-string factory such as a constructor or ``cls.parse``."""

    def __init__(self, factory: Callable[[str], T], target: Any = None) -> None:
        self._factory = factory
        self.target = target

    def parse(self, raw: str) -> T:
        return self._factory(raw)

    def __repr__(self) -> str:
        name = getattr(self._factory, "__qualname__", repr(self._factory))
        return f"FactoryConverter({name})"


def _enum_factory(cls: type[Enum]) -> Callable[[str], Enum]:
    def lookup(raw: str) -> Enum:
        try:
            return cls(raw)
        except ValueError:
            pass
        if raw in cls.__members__:
            return cls[raw]
        for name, member in cls.__members__.items():
            if name.lower() == raw.lower():
                return member
        raise LookupError(f"{raw!r} is not a member of {cls.__qualname__}")

    lookup.__qualname__ = f"{cls.__qualname__}.<lookup>"
    return lookup


def factory_converter_for(cls: type) -> Converter[Any] | None:
    """Build a converter from *cls*'s own string factory, if it has one.

    Enums resolve by value, then by name.  Other classes are checked for
    :data:`FACTORY_METHODS`, then for a constructor accepting one string.
    Returns None when *cls* offers no usable factory.
    """
    if issubclass(cls, Enum):
        return FactoryConverter(_enum_factory(cls), target=cls)
    for attr in FACTORY_METHODS:
        factory = inspect.getattr_static(cls, attr, None)
        if isinstance(factory, (classmethod, staticmethod, types.ClassMethodDescriptorType)):
            logger.debug("Using %s.%s as string factory", cls.__qualname__, attr)
            return FactoryConverter(getattr(cls, attr), target=cls)
    if inspect.isabstract(cls) or getattr(cls, "_is_protocol", False):
        return None
    try:
        signature = inspect.signature(cls)
    except (TypeError, ValueError):
        # Builtins without introspectable signatures; int, float, complex...
        return FactoryConverter(cls, target=cls)
    try:
        signature.bind("")
    except TypeError:
        return None
    return FactoryConverter(cls, target=cls)
