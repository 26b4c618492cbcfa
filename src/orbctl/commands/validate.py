"""Command: validate a CircleCI config against one orb version."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import click

from orbctl.commands._base import OrbctlCommand

if TYPE_CHECKING:
    from orbctl.commands._context import AppContext


@click.command(
    cls=OrbctlCommand,
    examples="""\
  orbctl validate .circleci/config.yml --version 2.0.0
  orbctl --json validate .circleci/config.yml --version 2.0.0""",
)
@click.argument("config", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--version", "version", required=True, help="Orb version to validate against.")
@click.pass_obj
def validate(app: AppContext, config: Path, version: str) -> None:
    """Check every orb reference in CONFIG. Exits 1 when errors are found."""
    from orbctl.services.validate import ValidateService

    result = ValidateService(app.catalog).validate_file(config, version)
    app.emit(result)
    if not result.data.get("valid", True):
        raise SystemExit(1)
