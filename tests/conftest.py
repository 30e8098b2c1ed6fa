"""Shared pytest fixtures and test helpers for recurctl tests."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from recurctl.config.settings import RecurSettings
from recurctl.domain.frontmatter import parse_frontmatter, render_frontmatter
from recurctl.infrastructure.locks import LockRegistry
from recurctl.infrastructure.storage import VaultStorage
from recurctl.services.lifecycle import LifecycleService
from recurctl.services.notifications import CollectingSink

FROZEN_NOW = datetime(2024, 6, 15, 9, 30)


class FakeClock:
    """Monotonic clock the tests advance by hand."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def vault_root(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Temporary vault directory with a Tasks folder.

    Clears config env vars so a developer's own setup never leaks in.
    """
    monkeypatch.delenv("RECURCTL_CONFIG", raising=False)
    (tmp_path / "Tasks").mkdir()
    return tmp_path


@pytest.fixture
def settings(vault_root: Path) -> RecurSettings:
    return RecurSettings.from_cli(vault_root=vault_root)


@pytest.fixture
def storage(vault_root: Path) -> VaultStorage:
    return VaultStorage(vault_root)


@pytest.fixture
def sink() -> CollectingSink:
    return CollectingSink()


@pytest.fixture
def locks() -> LockRegistry:
    return LockRegistry()


@pytest.fixture
def service(
    storage: VaultStorage,
    settings: RecurSettings,
    sink: CollectingSink,
    locks: LockRegistry,
) -> LifecycleService:
    """Lifecycle service on the temp vault with a frozen clock."""
    return LifecycleService(storage, settings, sink=sink, locks=locks, clock=lambda: FROZEN_NOW)


@pytest.fixture
def _isolated_vault(vault_root: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Change CWD to the temp vault so the CLI picks it up as vault root.

    Use via ``@pytest.mark.usefixtures("_isolated_vault")`` on command test
    classes.
    """
    monkeypatch.chdir(vault_root)


# ---------------------------------------------------------------------------
# Shared test helpers
# ---------------------------------------------------------------------------


def write_task(root: Path, rel_path: str, body: str = "", **frontmatter: Any) -> Path:
    """Write a task file under *root* and return its absolute path."""
    path = root / rel_path
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_frontmatter(frontmatter, body), encoding="utf-8")
    return path


def read_task(path: Path) -> tuple[dict[str, Any], str]:
    """Parse a task file back into ``(frontmatter, body)``."""
    return parse_frontmatter(path.read_text(encoding="utf-8"))


def completed_task(**overrides: Any) -> dict[str, Any]:
    """Frontmatter of an eligible task, with *overrides* applied."""
    fm: dict[str, Any] = {
        "title": "Water plants",
        "completed": True,
        "archived": False,
        "due": "2024-03-01",
        "recurrence": "daily",
    }
    fm.update(overrides)
    return fm
