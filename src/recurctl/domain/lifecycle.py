"""Task lifecycle states and the pure parts of a recurrence transition.

Per-file state machine, driven by change notifications::

    idle -> evaluating -> recurring | archiving -> idle

Any state can drop back to ``idle`` early: an ineligible file or a file
already locked by another operation is simply skipped.
"""

from __future__ import annotations

import copy
from enum import StrEnum
from typing import Any


class TaskPhase(StrEnum):
    """Where a file is in its lifecycle while an operation holds its lock."""

    IDLE = "idle"
    EVALUATING = "evaluating"
    RECURRING = "recurring"
    ARCHIVING = "archiving"


class Outcome(StrEnum):
    """What a lifecycle operation did with a file."""

    PROCESSED = "processed"
    ARCHIVED = "archived"
    BUSY = "busy"
    INELIGIBLE = "ineligible"
    FAILED = "failed"


PHASE_TRANSITIONS: dict[str, list[str]] = {
    "idle": ["evaluating"],
    "evaluating": ["recurring", "archiving", "idle"],
    "recurring": ["archiving", "idle"],
    "archiving": ["idle"],
}


def is_valid_transition(current: str, target: str) -> bool:
    """Check if moving from *current* to *target* phase is allowed."""
    return target in PHASE_TRANSITIONS.get(current, [])


class InvalidTransitionError(RuntimeError):
    """A lifecycle operation tried to skip or reverse a phase."""


def advance(current: TaskPhase, target: TaskPhase) -> TaskPhase:
    """Return *target* if the move from *current* is allowed.

    Raises:
        InvalidTransitionError: If ``PHASE_TRANSITIONS`` forbids the move.
    """
    if not is_valid_transition(current, target):
        msg = f"Cannot move from {current} to {target}"
        raise InvalidTransitionError(msg)
    return target


def is_eligible(
    frontmatter: dict[str, Any],
    *,
    completed_field: str = "completed",
    archived_field: str = "archived",
    recurrence_field: str = "recurrence",
) -> bool:
    """Whether a task qualifies for recurrence processing.

    Strict boolean checks: a string ``"true"`` or a numeric ``1`` in the
    completed field does not count, and only a literal ``True`` marks the
    task archived. The recurrence value only has to be truthy.
    """
    completed = frontmatter.get(completed_field) is True
    archived = frontmatter.get(archived_field) is True
    return completed and not archived and bool(frontmatter.get(recurrence_field))


def build_next_frontmatter(
    frontmatter: dict[str, Any],
    *,
    due: str,
    created: str,
    completed_field: str = "completed",
    archived_field: str = "archived",
    due_field: str = "due",
    created_field: str = "created",
) -> dict[str, Any]:
    """Deep copy *frontmatter* and reset it for the next instance.

    The original mapping is left untouched; nested containers are not
    shared with the copy.
    """
    fm = copy.deepcopy(frontmatter)
    fm[completed_field] = False
    fm[archived_field] = False
    fm[due_field] = due
    fm[created_field] = created
    return fm
