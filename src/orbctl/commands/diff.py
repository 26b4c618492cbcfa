"""Command: structural diff between two stored versions."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from orbctl.commands._base import OrbctlCommand

if TYPE_CHECKING:
    from orbctl.commands._context import AppContext


@click.command(
    cls=OrbctlCommand,
    examples="""\
  orbctl diff 1.4.0 2.0.0
  orbctl --json diff 1.0.0 3.0.0""",
)
@click.argument("from_version")
@click.argument("to_version")
@click.pass_obj
def diff(app: AppContext, from_version: str, to_version: str) -> None:
    """Show what changed between FROM_VERSION and TO_VERSION."""
    from orbctl.services.versions import VersionService

    app.emit(VersionService(app.catalog).diff(from_version, to_version))
