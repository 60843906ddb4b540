"""Parse textual type expressions such as ``dict[str, list[int]]``.

Grammar::

    union := term ("|" term)*
    term  := NAME ("[" union ("," union)* "]")? | "..."

Names resolve from :data:`KNOWN_NAMES` first, then as builtins or
dotted import paths.
"""

from __future__ import annotations

import collections.abc as cabc
import re
import typing
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from pathlib import Path
from typing import Any, Union
from uuid import UUID

from settingconv.converters.scalars import URI, LogLevel, resolve_type_by_name
from settingconv.converters.structural import MapEntry

KNOWN_NAMES: dict[str, Any] = {
    "None": type(None),
    "Any": typing.Any,
    "Optional": typing.Optional,
    "Sequence": cabc.Sequence,
    "MutableSequence": cabc.MutableSequence,
    "Collection": cabc.Collection,
    "Iterable": cabc.Iterable,
    "Set": cabc.Set,
    "AbstractSet": cabc.Set,
    "MutableSet": cabc.MutableSet,
    "Mapping": cabc.Mapping,
    "MutableMapping": cabc.MutableMapping,
    "MapEntry": MapEntry,
    "LogLevel": LogLevel,
    "URI": URI,
    "datetime": datetime,
    "date": date,
    "time": time,
    "timedelta": timedelta,
    "Decimal": Decimal,
    "Path": Path,
    "UUID": UUID,
}

_TOKEN = re.compile(r"\s*(?:(?P<ellipsis>\.\.\.)|(?P<name>[A-Za-z_][\w.]*)|(?P<punct>[\[\],|]))")


class TypeExpressionError(ValueError):
    """The text is not a well-formed type expression."""


def _tokenize(text: str) -> list[str]:
    tokens: list[str] = []
    position = 0
    text = text.rstrip()
    while position < len(text):
        match = _TOKEN.match(text, position)
        if match is None or match.end() == position:
            raise TypeExpressionError(f"Unexpected character at {position}: {text[position:]!r}")
        tokens.append(match.group(match.lastgroup or 0))
        position = match.end()
    return tokens


class _Parser:
    def __init__(self, tokens: list[str]) -> None:
        self._tokens = tokens
        self._pos = 0

    def peek(self) -> str | None:
        return self._tokens[self._pos] if self._pos < len(self._tokens) else None

    def take(self, expected: str | None = None) -> str:
        token = self.peek()
        if token is None:
            raise TypeExpressionError("Unexpected end of type expression")
        if expected is not None and token != expected:
            raise TypeExpressionError(f"Expected {expected!r}, found {token!r}")
        self._pos += 1
        return token

    def union(self) -> Any:
        members = [self.term()]
        while self.peek() == "|":
            self.take("|")
            members.append(self.term())
        if len(members) == 1:
            return members[0]
        return Union[tuple(members)]

    def term(self) -> Any:
        token = self.take()
        if token == "...":
            return Ellipsis
        if token in "[],|":
            raise TypeExpressionError(f"Unexpected {token!r}")
        base = _lookup(token)
        if self.peek() != "[":
            return base
        self.take("[")
        args = [self.union()]
        while self.peek() == ",":
            self.take(",")
            args.append(self.union())
        self.take("]")
        try:
            return base[tuple(args)] if len(args) > 1 else base[args[0]]
        except TypeError as exc:
            raise TypeExpressionError(f"{token} cannot be parameterized that way: {exc}") from exc


def _lookup(name: str) -> Any:
    if name in KNOWN_NAMES:
        return KNOWN_NAMES[name]
    try:
        return resolve_type_by_name(name)
    except LookupError as exc:
        raise TypeExpressionError(f"Unknown type {name!r}") from exc


def parse_type_expression(text: str) -> Any:
    """Parse *text* into a ``typing`` type expression.

    Examples:
        >>> parse_type_expression("list[int]")
        list[int]
        >>> parse_type_expression("int | None")
        typing.Optional[int]
    """
    tokens = _tokenize(text)
    if not tokens:
        raise TypeExpressionError("Empty type expression")
    parser = _Parser(tokens)
    result = parser.union()
    if parser.peek() is not None:
        raise TypeExpressionError(f"Trailing input at {parser.peek()!r}")
    return result
