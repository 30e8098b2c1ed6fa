"""Tests for the watch CLI command."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from recurctl.cli import cli


class FakeObserver:
    """Observer stand-in that stops as soon as it is started."""

    instances: list[FakeObserver] = []

    def __init__(self) -> None:
        self.scheduled: list[tuple[Any, str, bool]] = []
        self.started = False
        self.stopped = False
        FakeObserver.instances.append(self)

    def schedule(self, handler: Any, path: str, *, recursive: bool = False) -> None:
        self.scheduled.append((handler, path, recursive))

    def start(self) -> None:
        self.started = True

    def is_alive(self) -> bool:
        return False

    def join(self, timeout: float | None = None) -> None:
        return None

    def stop(self) -> None:
        self.stopped = True


@pytest.mark.usefixtures("_isolated_vault")
class TestWatchCommand:
    def test_starts_and_cleans_up(
        self, cli_runner: CliRunner, vault_root: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        FakeObserver.instances.clear()
        monkeypatch.setattr("watchdog.observers.Observer", FakeObserver)

        result = cli_runner.invoke(cli, ["watch", "--debounce", "0.1"])

        assert result.exit_code == 0
        observer = FakeObserver.instances[0]
        assert observer.started and observer.stopped
        _handler, path, recursive = observer.scheduled[0]
        assert Path(path).resolve() == vault_root.resolve()
        assert recursive is True
