"""Command: archive a task without creating a next instance."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from recurctl.commands._base import RecurCommand

if TYPE_CHECKING:
    from recurctl.commands._context import AppContext


@click.command(
    cls=RecurCommand,
    examples="""\
  recurctl archive "Tasks/Water plants.md"
  recurctl --json archive Tasks/Report.md""",
)
@click.argument("path")
@click.pass_obj
def archive(app: AppContext, path: str) -> None:
    """Archive a task file (sets the archived flag and moves it)."""
    app.emit(app.service.archive(app.vault_path(path)))
