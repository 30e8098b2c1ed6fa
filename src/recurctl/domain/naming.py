"""File naming and body rewriting for the next task instance."""

from __future__ import annotations

import re

# Searched in order; the first layout found in a name wins.
EMBEDDED_DATE_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\d{4}-\d{2}-\d{2}"),  # YYYY-MM-DD
    re.compile(r"\d{4}/\d{2}/\d{2}"),  # YYYY/MM/DD
    re.compile(r"\d{2}-\d{2}-\d{4}"),  # DD-MM-YYYY
    re.compile(r"\d{2}/\d{2}/\d{4}"),  # DD/MM/YYYY
)

_ILLEGAL_CHARS_RE = re.compile(r'[<>:"/\\|?*\x00-\x1f]')
_WHITESPACE_RE = re.compile(r"\s+")
_CHECKLIST_RE = re.compile(r"^(\s*)([-*+]|\d+[.)])\s+\[[^\]\n]\](?=\s|$)")


def uncheck_subtasks(body: str) -> str:
    """Reset every checklist item in *body* to unchecked, whatever its state marker.

    Non-checklist lines are returned untouched, line endings included.

    Examples:
        >>> uncheck_subtasks("- [x] one\\n  - [X] two\\ntext")
        '- [ ] one\\n  - [ ] two\\ntext'
    """
    lines = body.split("\n")
    return "\n".join(_CHECKLIST_RE.sub(r"\1\2 [ ]", line, count=1) for line in lines)


def next_instance_name(original: str, new_due: str) -> str:
    """Name for the next instance of a task file (without extension).

    Replaces the first embedded date with *new_due*, or appends it after a
    space when the name carries no date.
    """
    for pattern in EMBEDDED_DATE_PATTERNS:
        if pattern.search(original):
            return pattern.sub(lambda _match: new_due, original, count=1)
    return f"{original} {new_due}"


def sanitize_file_name(name: str) -> str:
    """Replace filesystem-illegal characters with ``-`` and collapse whitespace."""
    cleaned = _ILLEGAL_CHARS_RE.sub("-", name)
    return _WHITESPACE_RE.sub(" ", cleaned).strip()
