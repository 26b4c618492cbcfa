"""Command: parse an orb and report what it declares."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import click

from orbctl.commands._base import OrbctlCommand

if TYPE_CHECKING:
    from orbctl.commands._context import AppContext


@click.command(
    "check-orb",
    cls=OrbctlCommand,
    examples="""\
  orbctl check-orb src/
  orbctl check-orb src/@orb.yml
  orbctl check-orb orb.yml""",
)
@click.argument("path", type=click.Path(exists=True, path_type=Path))
@click.pass_obj
def check_orb(app: AppContext, path: Path) -> None:
    """Parse the orb at PATH (packed file or unpacked directory)."""
    from orbctl.services.versions import VersionService

    app.emit(VersionService(app.catalog).check_orb(path))
