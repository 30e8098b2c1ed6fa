"""Frontmatter codec: split markdown into ``(frontmatter, body)`` and back.

Round-trip YAML keeps the author's key order, comments and quote styles,
so a task file only changes in the fields the lifecycle engine touches.
"""

from __future__ import annotations

import re
from io import StringIO
from typing import Any

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

DELIMITER = "---"

# Opening delimiter on the first line, YAML, closing delimiter on its own line.
_BLOCK_RE = re.compile(r"\A---[ \t]*\n(.*?)^---[ \t]*(?:\n|\Z)", re.DOTALL | re.MULTILINE)


def _yaml() -> YAML:
    # A YAML instance keeps emitter state between calls; never share one.
    yaml = YAML()
    yaml.preserve_quotes = True
    yaml.default_flow_style = False
    yaml.width = 4096
    return yaml


def parse_frontmatter(content: str) -> tuple[dict[str, Any], str]:
    """Decode a task file.

    ``\\r\\n`` line endings are normalized first. A file without a closed
    ``---`` block, with YAML that does not parse, or with YAML that is not
    a mapping has no frontmatter: ``({}, content)`` comes back unchanged.
    """
    normalized = content.replace("\r\n", "\n")
    match = _BLOCK_RE.match(normalized)
    if match is None:
        return {}, content

    try:
        data = _yaml().load(match.group(1))
    except YAMLError:
        return {}, content
    if data is None:
        data = {}
    elif not isinstance(data, dict):
        return {}, content
    return data, normalized[match.end() :]


def render_frontmatter(frontmatter: dict[str, Any], body: str) -> str:
    """Encode *frontmatter* and *body* back into a task file."""
    buf = StringIO()
    if frontmatter:
        _yaml().dump(frontmatter, buf)
    return f"{DELIMITER}\n{buf.getvalue()}{DELIMITER}\n{body}"
