"""Rich/JSON output helpers.

The CLI renders ConversionResult for humans (Rich, colored) or machines
(--json).
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from rich.text import Text

from settingconv.output.console import create_console, get_output

if TYPE_CHECKING:
    from rich.console import Console

    from settingconv.result import ConversionResult


def _field(console: Console, key: str, value: Any) -> None:
    """Print a single indented key-value field."""
    k = Text(f"  {key}: ", style="conv.key")
    if isinstance(value, (dict, list)):
        v = Text(json.dumps(value, separators=(",", ":")), style="conv.value")
    elif key == "type":
        v = Text(str(value), style="conv.type")
    else:
        v = Text(str(value), style="conv.value")
    console.print(k, v, sep="")


def format_result(result: ConversionResult, *, json_output: bool = False, verbose: bool = False) -> str:
    """Format a ConversionResult for display.

    Args:
        result: The conversion result to format.
        json_output: If True, return JSON; otherwise return human-readable text.
        verbose: Include error detail in human-readable output.
    """
    if json_output:
        return result.model_dump_json(indent=2)

    console = create_console()
    if result.ok:
        console.print(Text("OK", style="conv.ok"), Text(f"  {result.op}", style="conv.op"), sep="")
        for key, value in result.data.items():
            _field(console, key, value)
    else:
        err = result.error
        msg = err.message if err else "Unknown error"
        console.print(
            Text("ERROR", style="conv.error"),
            Text(f"  {result.op}", style="conv.op"),
            Text(f": {msg}"),
            sep="",
        )
        if verbose and err and err.detail:
            console.print(Text("  detail:", style="dim"))
            for k, v in err.detail.items():
                console.print(Text(f"    {k}: {v}"))
    return get_output(console).rstrip("\n")
