"""Tests for the textual type-expression parser."""

from __future__ import annotations

import collections.abc as cabc
from datetime import timedelta
from decimal import Decimal
from typing import Any

import pytest

from settingconv.commands.typeexpr import TypeExpressionError, parse_type_expression
from settingconv.converters.scalars import URI, LogLevel
from settingconv.converters.structural import MapEntry
from settingconv.domain.types import synthesize


class TestParseTypeExpression:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("int", int),
            ("str", str),
            ("list[int]", list[int]),
            ("dict[str, list[int]]", dict[str, list[int]]),
            ("tuple[str, ...]", tuple[str, ...]),
            ("Sequence[int]", cabc.Sequence[int]),
            ("MapEntry[str, int]", MapEntry[str, int]),
            ("type[Exception]", type[Exception]),
            ("LogLevel", LogLevel),
            ("URI", URI),
            ("timedelta", timedelta),
            ("decimal.Decimal", Decimal),
            ("Any", Any),
        ],
    )
    def test_expressions(self, text: str, expected: object) -> None:
        assert synthesize(parse_type_expression(text)) == synthesize(expected)

    def test_optional_union(self) -> None:
        assert synthesize(parse_type_expression("int | None")) == synthesize(int | None)
        assert synthesize(parse_type_expression("Optional[int]")) == synthesize(int | None)

    def test_whitespace_tolerated(self) -> None:
        assert parse_type_expression("  dict[ str ,int ] ") == dict[str, int]

    @pytest.mark.parametrize(
        "text",
        ["", "   ", "list[", "list[int", "list[int]]", "nosuchtype", "int | ", "list[,]", "int$"],
    )
    def test_malformed(self, text: str) -> None:
        with pytest.raises(TypeExpressionError):
            parse_type_expression(text)

    def test_error_is_value_error(self) -> None:
        assert issubclass(TypeExpressionError, ValueError)
