"""Subcommand modules for orbctl.

Provides register_commands() which uses deferred imports to keep
``orbctl --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all command groups and standalone commands on the root CLI group."""
    # --- Groups ---
    from orbctl.commands.rules import rules

    cli.add_command(rules)

    # --- Standalone commands ---
    from orbctl.commands.check_orb import check_orb
    from orbctl.commands.diff import diff
    from orbctl.commands.migrate import migrate
    from orbctl.commands.serve import serve
    from orbctl.commands.show import show
    from orbctl.commands.validate import validate
    from orbctl.commands.versions import versions

    cli.add_command(versions)
    cli.add_command(show)
    cli.add_command(diff)
    cli.add_command(migrate)
    cli.add_command(validate)
    cli.add_command(check_orb)
    cli.add_command(serve)
