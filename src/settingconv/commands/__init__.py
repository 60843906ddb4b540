"""Subcommand modules for settingconv.

Provides register_commands() which uses deferred imports to keep
``settingconv --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all standalone commands on the root CLI group."""
    from settingconv.commands.convert import convert, describe

    cli.add_command(convert)
    cli.add_command(describe)
