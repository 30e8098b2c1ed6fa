"""Rich Console factory and theme for recurctl output.

Creates Console instances that render to a StringIO buffer, preserving
the ``format_result() -> str`` contract. In non-TTY environments (tests,
pipes) Rich automatically disables color codes.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

RECUR_THEME = Theme(
    {
        "recur.ok": "bold green",
        "recur.error": "bold red",
        "recur.warning": "bold yellow",
        "recur.info": "cyan",
        "recur.op": "bold cyan",
        "recur.key": "dim",
    }
)

_SEVERITY_STYLES: dict[str, str] = {
    "info": "recur.info",
    "warn": "recur.warning",
    "error": "recur.error",
}


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer."""
    return Console(
        file=StringIO(),
        theme=RECUR_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


def style_for_severity(severity: str) -> str:
    return _SEVERITY_STYLES.get(severity, "")
