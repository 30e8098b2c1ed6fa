"""Command: report what process would do, without writing anything."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from recurctl.commands._base import RecurCommand

if TYPE_CHECKING:
    from recurctl.commands._context import AppContext


@click.command(
    cls=RecurCommand,
    examples="""\
  recurctl check "Tasks/Water plants.md"
  recurctl --json check Tasks/Report.md""",
)
@click.argument("path")
@click.pass_obj
def check(app: AppContext, path: str) -> None:
    """Show eligibility, the resolved rule, and the next due date."""
    app.emit(app.service.check(app.vault_path(path)))
