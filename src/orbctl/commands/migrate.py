"""Command: migrate a CircleCI config across orb versions."""

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
  # Preview the edits (nothing is written)
  orbctl migrate .circleci/config.yml --from 1.4.0 --to 2.0.0

  # Rewrite the file in place once the result validates
  orbctl migrate .circleci/config.yml --from 1.4.0 --to 3.0.0 --write

  # Print the migrated config only
  orbctl -q migrate .circleci/config.yml --from 1.4.0 --to 2.0.0""",
)
@click.argument("config", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--from", "from_version", required=True, help="Version the config targets now.")
@click.option("--to", "to_version", required=True, help="Version to migrate to.")
@click.option("--write", is_flag=True, help="Write the migrated config back to CONFIG.")
@click.option("--force", is_flag=True, help="With --write, write even if validation fails.")
@click.pass_obj
def migrate(
    app: AppContext,
    config: Path,
    from_version: str,
    to_version: str,
    write: bool,
    force: bool,
) -> None:
    """Rewrite CONFIG from one orb version to another."""
    from orbctl.services.migrate import MigrationService

    svc = MigrationService(app.catalog)
    app.emit(svc.migrate_file(config, from_version, to_version, write=write, force=force))
