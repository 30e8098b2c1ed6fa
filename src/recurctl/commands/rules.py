"""Command: list configured recurrence rules."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from recurctl.commands._base import RecurCommand
from recurctl.services.result import ServiceResult

if TYPE_CHECKING:
    from recurctl.commands._context import AppContext


@click.command(
    cls=RecurCommand,
    examples="""\
  recurctl rules
  recurctl rules --enabled
  recurctl --json rules""",
)
@click.option("--enabled", "enabled_only", is_flag=True, help="Only list enabled rules.")
@click.pass_obj
def rules(app: AppContext, enabled_only: bool) -> None:
    """List recurrence rules in configuration order."""
    items = [
        rule.model_dump(mode="json")
        for rule in app.settings.rules
        if rule.enabled or not enabled_only
    ]
    app.emit(ServiceResult(ok=True, op="rules", data={"count": len(items), "items": items}))
