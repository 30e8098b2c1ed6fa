"""Filesystem watching with per-path debounce.

Editors save a file several times in quick succession. The debouncer
collapses a burst of change events on one path into a single callback,
fired ``delay`` seconds after the last event of the burst.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from pathlib import Path

from watchdog.events import FileSystemEvent, FileSystemEventHandler

from recurctl.infrastructure.storage import normalize_path

logger = logging.getLogger(__name__)


class Debouncer:
    """Per-key trailing-edge debounce on top of :class:`threading.Timer`."""

    def __init__(self, delay: float) -> None:
        self._delay = delay
        self._timers: dict[str, threading.Timer] = {}
        self._mutex = threading.Lock()

    @property
    def delay(self) -> float:
        return self._delay

    def trigger(self, key: str, callback: Callable[[str], object]) -> None:
        """(Re)schedule *callback(key)*; a pending call for *key* is dropped."""
        with self._mutex:
            pending = self._timers.pop(key, None)
            if pending is not None:
                pending.cancel()
            timer = threading.Timer(self._delay, self._fire, args=(key, callback))
            timer.daemon = True
            self._timers[key] = timer
            timer.start()

    def pending(self) -> int:
        with self._mutex:
            return len(self._timers)

    def cancel_all(self) -> None:
        with self._mutex:
            for timer in self._timers.values():
                timer.cancel()
            self._timers.clear()

    def _fire(self, key: str, callback: Callable[[str], object]) -> None:
        with self._mutex:
            current = self._timers.get(key)
            if current is not None and current is threading.current_thread():
                del self._timers[key]
        try:
            callback(key)
        except Exception:
            logger.exception("Debounced callback failed for %s", key)


class VaultEventHandler(FileSystemEventHandler):
    """Forward markdown changes inside the vault to a debouncer.

    Files already under the archive folder are ignored: archiving moves
    files there and must not trigger another round of processing.
    """

    def __init__(
        self,
        root: Path,
        debouncer: Debouncer,
        callback: Callable[[str], object],
        *,
        archive_folder: str = "",
    ) -> None:
        super().__init__()
        self._root = root.resolve()
        self._debouncer = debouncer
        self._callback = callback
        folder = normalize_path(archive_folder)
        self._archive_prefix = f"{folder}/" if folder else ""

    def to_vault_path(self, src_path: str | bytes) -> str | None:
        """Vault-relative path for a watched markdown file, or None to ignore it."""
        if isinstance(src_path, bytes):
            src_path = src_path.decode()
        path = Path(src_path)
        if path.suffix != ".md":
            return None
        try:
            relative = path.resolve().relative_to(self._root).as_posix()
        except ValueError:
            return None
        if any(part.startswith(".") for part in Path(relative).parts):
            return None
        if self._archive_prefix and relative.startswith(self._archive_prefix):
            return None
        return relative

    def on_modified(self, event: FileSystemEvent) -> None:
        self._dispatch_path(event)

    def on_created(self, event: FileSystemEvent) -> None:
        self._dispatch_path(event)

    def _dispatch_path(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        relative = self.to_vault_path(event.src_path)
        if relative is None:
            return
        logger.debug("Change detected: %s", relative)
        self._debouncer.trigger(relative, self._callback)
