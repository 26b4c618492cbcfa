"""Command: show a reconstructed orb version."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from orbctl.commands._base import OrbctlCommand

if TYPE_CHECKING:
    from orbctl.commands._context import AppContext


@click.command(
    cls=OrbctlCommand,
    examples="""\
  orbctl show 2.0.0
  orbctl show v1.4.0 --collection jobs
  orbctl --json show 2.0.0""",
)
@click.argument("version")
@click.option(
    "--collection",
    type=click.Choice(["commands", "jobs", "executors"]),
    default=None,
    help="Only show one collection.",
)
@click.pass_obj
def show(app: AppContext, version: str, collection: str | None) -> None:
    """Reconstruct VERSION from the store and print it."""
    from orbctl.services.versions import VersionService

    app.emit(VersionService(app.catalog).get_version(version, collection=collection))
