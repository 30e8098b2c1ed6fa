"""Subcommand modules for recurctl.

Provides register_commands() which uses deferred imports to keep
``recurctl --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all commands on the root CLI group."""
    from recurctl.commands.archive import archive
    from recurctl.commands.check import check
    from recurctl.commands.process import process
    from recurctl.commands.rules import rules
    from recurctl.commands.watch import watch

    cli.add_command(process)
    cli.add_command(archive)
    cli.add_command(check)
    cli.add_command(rules)
    cli.add_command(watch)
