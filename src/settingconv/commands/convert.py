"""Commands: convert a raw string, or describe how a type resolves."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import click

from settingconv.commands._base import ConvCommand
from settingconv.commands.typeexpr import TypeExpressionError, parse_type_expression

if TYPE_CHECKING:
    from settingconv.commands._context import AppContext


def _parse_type(_ctx: click.Context, _param: click.Parameter, text: str) -> Any:
    try:
        return parse_type_expression(text)
    except TypeExpressionError as exc:
        raise click.BadParameter(str(exc)) from exc


@click.command(
    cls=ConvCommand,
    examples="""\
  settingconv convert 'list[int]' '1,2,3'
  settingconv convert 'dict[str, int]' 'a=1,b=2'
  settingconv convert 'tuple[str, ...]' 'a\\,b,c'
  settingconv convert 'int | None' --absent
  settingconv --json convert LogLevel warn""",
)
@click.argument("type_expr", metavar="TYPE", callback=_parse_type)
@click.argument("raw", required=False)
@click.option("--name", default="", help="Setting name reported in errors.")
@click.option("--absent", is_flag=True, help="Convert an absent value instead of RAW.")
@click.pass_obj
def convert(app: AppContext, type_expr: Any, raw: str | None, name: str, absent: bool) -> None:
    """Convert RAW to TYPE and print the result."""
    from settingconv.domain.value import Value
    from settingconv.result import try_convert

    if raw is None and not absent:
        raise click.UsageError("RAW is required unless --absent is given.")
    value = Value(None if absent else raw, name=name)
    app.emit(try_convert(app.registry, value, type_expr))


@click.command(
    cls=ConvCommand,
    examples="""\
  settingconv describe 'Sequence[int]'
  settingconv describe 'type[collections.abc.Mapping]'""",
)
@click.argument("type_expr", metavar="TYPE", callback=_parse_type)
@click.pass_obj
def describe(app: AppContext, type_expr: Any) -> None:
    """Show the synthesized descriptor and resolved converter for TYPE."""
    from settingconv.domain.errors import NoConverterAvailable
    from settingconv.domain.types import synthesize
    from settingconv.result import ConversionFailure, ConversionResult

    descriptor = synthesize(type_expr)
    try:
        converter = app.registry.resolve(descriptor)
    except NoConverterAvailable as exc:
        app.emit(
            ConversionResult(
                ok=False,
                op="describe",
                data={"type": str(descriptor)},
                error=ConversionFailure.from_error(exc),
            )
        )
        return
    app.emit(
        ConversionResult(
            ok=True,
            op="describe",
            data={"type": str(descriptor), "converter": repr(converter)},
        )
    )
