"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, recurctl.toml only contains
overrides. A fresh vault needs no config file at all.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from recurctl.domain.dates import DEFAULT_DATE_FORMAT


class FrontmatterConfig(BaseModel):
    """[frontmatter] section: frontmatter keys the lifecycle engine reads and writes."""

    model_config = {"frozen": True}

    completed: str = "completed"
    archived: str = "archived"
    due: str = "due"
    recurrence: str = "recurrence"
    created: str = "created"


class ArchiveConfig(BaseModel):
    """[archive] section."""

    model_config = {"frozen": True}

    folder: str = "Archive/Tasks"
    dated: bool = True
    dated_format: str = "%Y/%m"


class RecurConfig(BaseModel):
    """[recur] section."""

    model_config = {"frozen": True}

    copy_subtasks: bool = True
    date_format: str = DEFAULT_DATE_FORMAT
    debounce_seconds: float = Field(default=1.0, ge=0)
    sweep_interval_seconds: float = Field(default=60.0, gt=0)
