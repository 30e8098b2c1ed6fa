"""RecurSettings: one frozen object built from every configuration layer.

Layers, strongest first:

1. keyword arguments (the CLI flags Click parsed)
2. ``RECURCTL_*`` environment variables, ``__`` between nested keys
   (``RECURCTL_ARCHIVE__FOLDER=Done``)
3. ``recurctl.toml``, found by walking up from the vault or CWD
4. defaults on the section models

Long-running components never mutate settings; they receive a new
instance through ``update_settings``.
"""

from __future__ import annotations

import logging
import tomllib
from contextvars import ContextVar
from pathlib import Path
from typing import Any

import click
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, TomlConfigSettingsSource

from recurctl.config.discovery import find_config
from recurctl.config.models import ArchiveConfig, FrontmatterConfig, RecurConfig
from recurctl.domain.rules import DEFAULT_RULES, NONE_RULE_KEY, RecurrenceRule

logger = logging.getLogger(__name__)

# TOML file for the settings object currently being built by ``from_cli``.
_toml_file: ContextVar[Path | None] = ContextVar("recurctl_toml_file", default=None)


class RecurSettings(BaseSettings):
    """Settings for the recurctl CLI and lifecycle engine.

    Attributes:
        vault_root: Directory task paths are relative to. Defaults to the
            directory holding ``recurctl.toml``, else CWD.
        config_path: The TOML file that was read, if any.
        frontmatter: Names of the frontmatter keys the engine uses.
        archive: Where completed tasks are moved.
        recur: Next-instance and watcher behaviour.
        rules: Recurrence rules in match order. Empty means the defaults.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "RECURCTL_",
        "env_nested_delimiter": "__",
    }

    vault_root: Path = Field(default_factory=Path.cwd)
    config_path: Path | None = None

    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False

    frontmatter: FrontmatterConfig = Field(default_factory=FrontmatterConfig)
    archive: ArchiveConfig = Field(default_factory=ArchiveConfig)
    recur: RecurConfig = Field(default_factory=RecurConfig)
    rules: list[RecurrenceRule] = Field(default_factory=lambda: list(DEFAULT_RULES))

    @field_validator("rules", mode="after")
    @classmethod
    def _default_when_empty(cls, rules: list[RecurrenceRule]) -> list[RecurrenceRule]:
        return rules or list(DEFAULT_RULES)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            TomlConfigSettingsSource(settings_cls, toml_file=_toml_file.get()),
        )

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        vault_root: Path | None = None,
        **cli_flags: Any,
    ) -> RecurSettings:
        """Build settings for one CLI invocation.

        An explicit *config_path* that does not exist is ignored, the same
        as having no config file.

        Raises:
            click.ClickException: The TOML file does not parse.
        """
        if config_path:
            candidate = Path(config_path)
            toml_path = candidate if candidate.is_file() else None
        else:
            toml_path = find_config(vault_root)

        if vault_root is None:
            vault_root = toml_path.parent if toml_path else Path.cwd()

        token = _toml_file.set(toml_path)
        try:
            return cls(vault_root=vault_root, config_path=toml_path, **cli_flags)
        except tomllib.TOMLDecodeError as exc:
            msg = f"Invalid TOML in {toml_path}: {exc}"
            raise click.ClickException(msg) from exc
        finally:
            _toml_file.reset(token)


def validate_settings(settings: RecurSettings) -> list[str]:
    """Collect non-fatal configuration problems.

    The engine still runs with these; they are logged so a misconfigured
    vault is noticed before tasks silently stop recurring.
    """
    problems: list[str] = []

    if not settings.archive.folder.strip():
        problems.append("Archive folder path is empty")

    for name, value in settings.frontmatter.model_dump().items():
        if not value.strip():
            problems.append(f"Frontmatter field name for {name!r} is empty")

    keys = [rule.key for rule in settings.rules]
    duplicates = sorted({key for key in keys if keys.count(key) > 1})
    if duplicates:
        problems.append(f"Duplicate recurrence rule keys: {', '.join(duplicates)}")

    if NONE_RULE_KEY not in keys:
        problems.append(f"No {NONE_RULE_KEY!r} recurrence rule is configured")

    if not any(rule.enabled for rule in settings.rules):
        problems.append("All recurrence rules are disabled")

    for problem in problems:
        logger.warning("Configuration problem: %s", problem)
    return problems
