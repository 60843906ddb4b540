"""AppContext — shared Click context for all commands.

Created once by the root CLI group and flows to all subcommands via
``@click.pass_obj``.  Provides lazy registry construction and centralized
result emission (stdout/stderr routing + exit codes).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from settingconv.output.formatters import format_result

if TYPE_CHECKING:
    from settingconv.config.settings import ConvSettings
    from settingconv.registry import ConverterRegistry
    from settingconv.result import ConversionResult


class AppContext:
    """Shared context flowing through Click's command hierarchy.

    The registry is built on first use so ``--help`` and ``--version``
    never trigger plugin discovery.
    """

    def __init__(self, settings: ConvSettings) -> None:
        self.settings = settings
        self._registry: ConverterRegistry | None = None

        from settingconv.config.logging import configure_logging

        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

    @property
    def registry(self) -> ConverterRegistry:
        """The converter registry (created lazily on first access)."""
        if self._registry is None:
            from settingconv.registry import default_registry

            self._registry = default_registry(self.settings)
        return self._registry

    def emit(self, result: ConversionResult) -> None:
        """Format and output a ConversionResult with correct exit semantics.

        * Success (``result.ok``): writes to stdout, returns normally.
        * Failure: writes to stderr, exits with code 1.
        """
        output = format_result(
            result,
            json_output=self.settings.json_output,
            verbose=self.settings.verbose,
        )
        if result.ok:
            click.echo(output)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)
