"""Command group: migration rule sets."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from orbctl.commands._base import OrbctlGroup
from orbctl.services.rules import RulesService

if TYPE_CHECKING:
    from orbctl.commands._context import AppContext

_RULES_EXAMPLES = """\
  orbctl rules list
  orbctl rules check"""


@click.group(cls=OrbctlGroup, examples=_RULES_EXAMPLES)
@click.pass_obj
def rules(app: AppContext) -> None:
    """Inspect migration rule sets."""


@rules.command(
    "list",
    examples="""\
  orbctl rules list
  orbctl --json rules list""",
)
@click.pass_obj
def list_cmd(app: AppContext) -> None:
    """List rule sets by gap, with gaps that have none."""
    app.emit(RulesService(app.catalog).list_rules())


@rules.command(
    examples="""\
  orbctl rules check""",
)
@click.pass_obj
def check(app: AppContext) -> None:
    """Load every rule set and fail on conflicts or unknown gaps."""
    app.emit(RulesService(app.catalog).check_rules())
