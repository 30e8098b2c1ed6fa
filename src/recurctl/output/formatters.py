"""Rich/JSON output helpers.

The CLI renders ServiceResult for humans (Rich text) or machines
(``--json``). Notifications collected during the operation are shown
above the result in human mode and embedded in the payload in JSON mode.
"""

from __future__ import annotations

import json as _json
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from rich.markup import escape

from recurctl.output.console import create_console, get_output, style_for_severity

if TYPE_CHECKING:
    from recurctl.services.notifications import Notification
    from recurctl.services.result import ServiceResult


@dataclass(frozen=True)
class OutputSettings:
    json_output: bool = False
    quiet: bool = False
    verbose: bool = False


def _format_value(value: Any) -> str:
    if isinstance(value, (dict, list)):
        return _json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=str)
    return str(value)


def format_result(
    result: ServiceResult,
    *,
    settings: OutputSettings | None = None,
    notifications: Sequence[Notification] = (),
) -> str:
    """Format a ServiceResult for display."""
    settings = settings or OutputSettings()

    if settings.json_output:
        payload = result.model_dump(mode="json")
        payload["notifications"] = [n.model_dump(mode="json") for n in notifications]
        return _json.dumps(payload, indent=2, ensure_ascii=False)

    console = create_console()
    if not settings.quiet:
        for note in notifications:
            style = style_for_severity(str(note.severity))
            label = str(note.severity).upper()
            console.print(f"[{style}]{label}[/{style}] {escape(note.message)}")

    if result.ok:
        console.print(f"[recur.ok]OK[/recur.ok]: [recur.op]{result.op}[/recur.op]")
        if not settings.quiet:
            for key, value in result.data.items():
                if value is None and not settings.verbose:
                    continue
                console.print(f"  [recur.key]{key}:[/recur.key] {escape(_format_value(value))}")
        if settings.verbose and result.meta:
            console.print(f"  [recur.key]meta:[/recur.key] {escape(_format_value(result.meta))}")
    else:
        message = result.error.message if result.error else "Unknown error"
        code = result.error.code if result.error else "ERROR"
        console.print(
            f"[recur.error]ERROR[/recur.error]: [recur.op]{result.op}[/recur.op] "
            f"({code}) {escape(message)}"
        )
    return get_output(console).rstrip("\n")
