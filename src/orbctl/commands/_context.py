"""AppContext: shared Click context for all commands.

Created once by the root CLI group and flows to all subcommands via
``@click.pass_obj``.  Provides lazy Catalog initialization and
centralized result emission (stdout/stderr routing + exit codes).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from orbctl.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    from orbctl.config.settings import OrbctlSettings
    from orbctl.infrastructure.catalog import Catalog
    from orbctl.services.result import ServiceResult


class AppContext:
    """Shared context flowing through Click's command hierarchy.

    Subcommands access it via ``@click.pass_obj``.  The catalog is lazily
    initialized on first use so ``--help`` and ``check-orb`` never read
    the version history.
    """

    def __init__(self, settings: OrbctlSettings) -> None:
        self.settings = settings
        self._catalog: Catalog | None = None

        from orbctl.config.logging import configure_logging

        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

    @property
    def catalog(self) -> Catalog:
        """The catalog instance (created lazily on first access)."""
        if self._catalog is None:
            from orbctl.infrastructure.catalog import Catalog

            self._catalog = Catalog(self.settings)
        return self._catalog

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success (``result.ok``): writes to stdout, returns normally.
          Warnings are emitted to stderr so they don't pollute piped output.
        * Failure: writes to stderr, exits with code 1.
        """
        settings = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        output = format_result(result, settings=settings)
        if result.ok:
            click.echo(output)
            # In JSON mode, warnings are already in the serialized payload.
            if not settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)
