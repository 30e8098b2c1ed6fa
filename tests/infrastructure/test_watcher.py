"""Tests for debouncing and vault event filtering."""

from __future__ import annotations

import threading
import time
from pathlib import Path

import pytest
from watchdog.events import DirModifiedEvent, FileCreatedEvent, FileModifiedEvent

from recurctl.infrastructure.watcher import Debouncer, VaultEventHandler


class Recorder:
    def __init__(self) -> None:
        self.calls: list[str] = []
        self.fired = threading.Event()

    def __call__(self, key: str) -> None:
        self.calls.append(key)
        self.fired.set()


class TestDebouncer:
    def test_burst_fires_once(self) -> None:
        recorder = Recorder()
        debouncer = Debouncer(0.05)
        for _ in range(5):
            debouncer.trigger("a.md", recorder)
        assert recorder.fired.wait(2)
        time.sleep(0.1)
        assert recorder.calls == ["a.md"]
        assert debouncer.pending() == 0

    def test_keys_are_independent(self) -> None:
        recorder = Recorder()
        debouncer = Debouncer(0.01)
        debouncer.trigger("a.md", recorder)
        debouncer.trigger("b.md", recorder)
        deadline = time.monotonic() + 2
        while len(recorder.calls) < 2 and time.monotonic() < deadline:
            time.sleep(0.01)
        assert sorted(recorder.calls) == ["a.md", "b.md"]

    def test_cancel_all(self) -> None:
        recorder = Recorder()
        debouncer = Debouncer(0.2)
        debouncer.trigger("a.md", recorder)
        debouncer.cancel_all()
        assert not recorder.fired.wait(0.4)
        assert debouncer.pending() == 0

    def test_callback_errors_are_contained(self) -> None:
        done = threading.Event()

        def explode(_key: str) -> None:
            done.set()
            raise RuntimeError("boom")

        debouncer = Debouncer(0.01)
        debouncer.trigger("a.md", explode)
        assert done.wait(2)


class TestVaultEventHandler:
    @pytest.fixture
    def recorder(self) -> Recorder:
        return Recorder()

    @pytest.fixture
    def handler(self, tmp_path: Path, recorder: Recorder) -> VaultEventHandler:
        return VaultEventHandler(tmp_path, Debouncer(0.01), recorder, archive_folder="Archive/Tasks")

    @pytest.mark.parametrize(
        ("rel", "expected"),
        [
            ("Tasks/a.md", "Tasks/a.md"),
            ("a.md", "a.md"),
            ("Tasks/a.txt", None),
            (".obsidian/workspace.md", None),
            ("Tasks/.hidden.md", None),
            ("Archive/Tasks/2024/06/a.md", None),
            ("Archive/other.md", "Archive/other.md"),
        ],
    )
    def test_to_vault_path(
        self, handler: VaultEventHandler, tmp_path: Path, rel: str, expected: str | None
    ) -> None:
        assert handler.to_vault_path(str(tmp_path / rel)) == expected

    def test_outside_root_is_ignored(self, handler: VaultEventHandler, tmp_path: Path) -> None:
        assert handler.to_vault_path(str(tmp_path.parent / "x.md")) is None

    @pytest.mark.parametrize("folder", ["./Archive/Tasks", "Archive\\Tasks", "/Archive//Tasks/"])
    def test_archive_folder_spellings(
        self, tmp_path: Path, recorder: Recorder, folder: str
    ) -> None:
        handler = VaultEventHandler(tmp_path, Debouncer(0.01), recorder, archive_folder=folder)
        assert handler.to_vault_path(str(tmp_path / "Archive/Tasks/2024/06/a.md")) is None
        assert handler.to_vault_path(str(tmp_path / "Tasks/a.md")) == "Tasks/a.md"

    def test_bytes_path(self, handler: VaultEventHandler, tmp_path: Path) -> None:
        assert handler.to_vault_path(str(tmp_path / "a.md").encode()) == "a.md"

    def test_events_reach_callback(
        self, handler: VaultEventHandler, recorder: Recorder, tmp_path: Path
    ) -> None:
        handler.dispatch(FileModifiedEvent(str(tmp_path / "Tasks/a.md")))
        assert recorder.fired.wait(2)
        assert recorder.calls == ["Tasks/a.md"]

    def test_created_event(
        self, handler: VaultEventHandler, recorder: Recorder, tmp_path: Path
    ) -> None:
        handler.dispatch(FileCreatedEvent(str(tmp_path / "b.md")))
        assert recorder.fired.wait(2)
        assert recorder.calls == ["b.md"]

    def test_directory_events_are_ignored(
        self, handler: VaultEventHandler, recorder: Recorder, tmp_path: Path
    ) -> None:
        handler.dispatch(DirModifiedEvent(str(tmp_path / "Tasks")))
        assert not recorder.fired.wait(0.1)
