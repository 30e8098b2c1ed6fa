"""Per-file processing locks.

At most one lifecycle operation may touch a given vault path at a time.
The registry is a plain in-memory map from path to acquisition time; it
is process-local and resets on restart. It only keeps overlapping
operations inside one running process apart, it is not a durable or
cross-process lock.

A lock older than the timeout is stale: readers treat it as absent and
:class:`LockSweeper` removes it on a fixed interval, so an operation that
died without releasing never blocks a file for good.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass

logger = logging.getLogger(__name__)

LOCK_TIMEOUT_SECONDS = 30.0
SWEEP_INTERVAL_SECONDS = 60.0


@dataclass(frozen=True)
class ProcessingLock:
    """One held lock."""

    path: str
    timestamp: float


class LockRegistry:
    """Map of vault path to :class:`ProcessingLock`.

    Check-and-set happens under one mutex, so two callers can never both
    see a path as free and both proceed.

    Parameters:
        timeout: Seconds after which a lock is stale.
        clock: Monotonic time source (injectable for tests).
    """

    def __init__(
        self,
        *,
        timeout: float = LOCK_TIMEOUT_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._timeout = timeout
        self._clock = clock
        self._locks: dict[str, ProcessingLock] = {}
        self._mutex = threading.Lock()

    @property
    def timeout(self) -> float:
        return self._timeout

    def _is_stale(self, lock: ProcessingLock, now: float) -> bool:
        return now - lock.timestamp > self._timeout

    def try_acquire(self, path: str) -> bool:
        """Take the lock for *path*. Stale locks are replaced."""
        with self._mutex:
            now = self._clock()
            existing = self._locks.get(path)
            if existing is not None and not self._is_stale(existing, now):
                return False
            if existing is not None:
                logger.debug("Reclaiming stale lock on %s", path)
            self._locks[path] = ProcessingLock(path=path, timestamp=now)
            return True

    def release(self, path: str) -> None:
        """Drop the lock for *path*. Releasing a free path is a no-op."""
        with self._mutex:
            self._locks.pop(path, None)

    def is_locked(self, path: str) -> bool:
        """Whether *path* holds a live lock. Stale entries are dropped."""
        with self._mutex:
            existing = self._locks.get(path)
            if existing is None:
                return False
            if self._is_stale(existing, self._clock()):
                del self._locks[path]
                return False
            return True

    def sweep_expired(self) -> int:
        """Remove every stale lock. Returns the number removed."""
        with self._mutex:
            now = self._clock()
            expired = [path for path, lock in self._locks.items() if self._is_stale(lock, now)]
            for path in expired:
                del self._locks[path]
        if expired:
            logger.debug("Swept %d expired lock(s)", len(expired))
        return len(expired)

    def clear(self) -> None:
        with self._mutex:
            self._locks.clear()

    def __len__(self) -> int:
        with self._mutex:
            return len(self._locks)

    @contextmanager
    def hold(self, path: str) -> Iterator[bool]:
        """Try to lock *path* for the duration of the block.

        Yields whether the lock was granted. A granted lock is released on
        every exit path, exceptions included.

        Usage::

            with registry.hold(path) as granted:
                if not granted:
                    return busy()
                ...
        """
        granted = self.try_acquire(path)
        try:
            yield granted
        finally:
            if granted:
                self.release(path)


class LockSweeper:
    """Background thread that calls :meth:`LockRegistry.sweep_expired`."""

    def __init__(self, registry: LockRegistry, *, interval: float = SWEEP_INTERVAL_SECONDS):
        self._registry = registry
        self._interval = interval
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="recurctl-lock-sweeper", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join()
            self._thread = None

    def _run(self) -> None:
        while not self._stop.wait(self._interval):
            self._registry.sweep_expired()
