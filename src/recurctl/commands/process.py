"""Command: process a completed task (create next instance, then archive)."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from recurctl.commands._base import RecurCommand

if TYPE_CHECKING:
    from recurctl.commands._context import AppContext


@click.command(
    cls=RecurCommand,
    examples="""\
  recurctl process "Tasks/Water plants 2024-03-01.md"
  recurctl process Tasks/Standup.md --no-subtasks
  recurctl --json process Tasks/Report.md --archive-only""",
)
@click.argument("path")
@click.option(
    "--archive-only",
    is_flag=True,
    help="Archive without creating the next instance.",
)
@click.option(
    "--subtasks/--no-subtasks",
    "copy_subtasks",
    default=None,
    help="Copy checklist items (unchecked) into the next instance. Defaults to config.",
)
@click.pass_obj
def process(app: AppContext, path: str, archive_only: bool, copy_subtasks: bool | None) -> None:
    """Roll a completed recurring task forward and archive it."""
    result = app.service.process(
        app.vault_path(path),
        should_recur=not archive_only,
        copy_subtasks=copy_subtasks,
    )
    app.emit(result)
