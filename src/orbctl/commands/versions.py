"""Command: list stored orb versions."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from orbctl.commands._base import OrbctlCommand

if TYPE_CHECKING:
    from orbctl.commands._context import AppContext


@click.command(
    cls=OrbctlCommand,
    examples="""\
  orbctl versions
  orbctl versions --stats
  orbctl --json versions""",
)
@click.option("--stats", is_flag=True, help="Show base/delta storage statistics instead.")
@click.pass_obj
def versions(app: AppContext, stats: bool) -> None:
    """List every stored version, oldest first."""
    from orbctl.services.versions import VersionService

    svc = VersionService(app.catalog)
    app.emit(svc.stats() if stats else svc.list_versions())
