"""Rich Console factory and theme for settingconv output.

Creates Console instances that render to a StringIO buffer, preserving
the ``format_result() -> str`` contract.  In non-TTY environments
(tests, pipes) Rich automatically disables color codes.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

CONV_THEME = Theme(
    {
        "conv.ok": "bold green",
        "conv.error": "bold red",
        "conv.op": "bold cyan",
        "conv.key": "dim",
        "conv.type": "bold blue",
        "conv.value": "bold",
        "logging.level.debug": "dim",
        "logging.level.info": "cyan",
        "logging.level.warning": "bold yellow",
        "logging.level.error": "bold red",
    }
)


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer."""
    return Console(
        file=StringIO(),
        theme=CONV_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


def create_log_console() -> Console:
    """Create a stderr Console for log records, sharing the result theme."""
    return Console(stderr=True, theme=CONV_THEME, highlight=False)
