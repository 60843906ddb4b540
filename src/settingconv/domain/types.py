"""Type descriptors and the type synthesizer.

A requested type may be anything the ``typing`` module can express:
plain classes, parameterized generics, ``X | None``, ``Annotated``
wrappers, bounded or unbounded ``TypeVar``s, ``Any``.  ``synthesize``
reduces each of them to a hashable descriptor that the converter
registry can use as a lookup key.

Two descriptor variants exist:

- ``ConcreteType(cls)`` — a plain class.  ``TOP_TYPE`` is ``object``.
- ``ParameterizedType(origin, args)`` — a generic shape whose arguments
  are themselves descriptors.  ``X | None`` is represented with
  ``typing.Optional`` as its origin; ``tuple[X, ...]`` keeps the
  literal ``...`` as its second argument.

Reduction rules, in priority order:

1. Descriptors are returned unchanged (synthesis is idempotent).
2. A plain class synthesizes to ``ConcreteType``.
3. A parameterized generic synthesizes to ``ParameterizedType`` with
   each argument synthesized recursively.  A bare alias such as
   ``typing.List`` synthesizes to its origin class.
4. A ``TypeVar`` with a bound synthesizes to its bound.
5. Everything else (unbounded or constrained ``TypeVar``, ``Any``,
   unions without ``None``, forward references) becomes ``TOP_TYPE``.
   ``None`` joined with several members becomes ``Optional[TOP_TYPE]``.

INVARIANT: synthesize() never raises.
"""

from __future__ import annotations

import types
import typing
from dataclasses import dataclass
from typing import Annotated, Any, TypeAlias, TypeVar, Union, get_args, get_origin

# The origin used for ``X | None`` descriptors.
OPTIONAL = typing.Optional

_NONE_TYPE = type(None)


def _type_name(obj: Any) -> str:
    if obj is OPTIONAL:
        return "Optional"
    if obj is Ellipsis:
        return "..."
    if isinstance(obj, type):
        if obj.__module__ in ("builtins", "collections.abc"):
            return obj.__qualname__
        return f"{obj.__module__}.{obj.__qualname__}"
    return str(obj)


@dataclass(frozen=True)
class ConcreteType:
    """A plain, non-generic class."""

    cls: type

    def __str__(self) -> str:
        return _type_name(self.cls)


@dataclass(frozen=True)
class ParameterizedType:
    """A generic shape with synthesized type arguments.

    Attributes:
        origin: The runtime class of the generic (``list``,
            ``collections.abc.Mapping``...) or :data:`OPTIONAL`.
        args: Synthesized arguments.  ``...`` is allowed as the second
            argument of a variadic ``tuple``.
    """

    origin: Any
    args: tuple[TypeDescriptor | types.EllipsisType, ...]

    @property
    def origin_name(self) -> str:
        return _type_name(self.origin)

    def __str__(self) -> str:
        if self.origin is OPTIONAL:
            return f"{self.args[0]} | None"
        inner = ", ".join(_type_name(a) if a is Ellipsis else str(a) for a in self.args)
        return f"{self.origin_name}[{inner}]"


TypeDescriptor: TypeAlias = ConcreteType | ParameterizedType

TOP_TYPE = ConcreteType(object)


def synthesize(requested: Any) -> TypeDescriptor:
    """Reduce *requested* to a canonical, hashable :data:`TypeDescriptor`.

    Examples:
        >>> str(synthesize(list[str]))
        'list[str]'
        >>> synthesize(TypeVar("T", bound=str)) == synthesize(str)
        True
        >>> synthesize(TypeVar("T")) is TOP_TYPE
        True
    """
    if isinstance(requested, (ConcreteType, ParameterizedType)):
        return requested

    if isinstance(requested, TypeVar):
        bound = requested.__bound__
        if bound is not None:
            return synthesize(bound)
        return TOP_TYPE

    if requested is Any:
        return TOP_TYPE

    if requested is None:
        return ConcreteType(_NONE_TYPE)

    origin = get_origin(requested)
    if origin is None:
        if isinstance(requested, type):
            return ConcreteType(requested)
        return TOP_TYPE

    if origin is Annotated:
        return synthesize(get_args(requested)[0])

    if origin is Union or origin is types.UnionType:
        return _synthesize_union(get_args(requested))

    args = get_args(requested)
    if not isinstance(origin, type):
        return TOP_TYPE
    if not args:
        # Bare aliases such as ``typing.List`` behave like their origin.
        return ConcreteType(origin)
    return ParameterizedType(origin, tuple(_synthesize_arg(a) for a in args))


def _synthesize_arg(arg: Any) -> TypeDescriptor | types.EllipsisType:
    if arg is Ellipsis:
        return Ellipsis
    return synthesize(arg)


def _synthesize_union(members: tuple[Any, ...]) -> TypeDescriptor:
    present = [m for m in members if m is not _NONE_TYPE]
    if len(present) == len(members):
        return TOP_TYPE
    if len(present) == 1:
        return ParameterizedType(OPTIONAL, (synthesize(present[0]),))
    return ParameterizedType(OPTIONAL, (TOP_TYPE,))


def raw_class(descriptor: TypeDescriptor) -> type:
    """Return the class an instance of *descriptor* is expected to be.

    ``X | None`` and other non-class origins degrade to ``object``.
    """
    if isinstance(descriptor, ConcreteType):
        return descriptor.cls
    if isinstance(descriptor.origin, type):
        return descriptor.origin
    return object
