"""Vault storage: the file primitives the lifecycle engine runs on.

Paths are vault-relative POSIX strings (``"Tasks/Water plants.md"``), the
same form the lock registry keys on. :class:`VaultStorage` maps them onto
a directory on the local filesystem and refuses paths that escape it.

INVARIANT: Files are truth. Nothing here caches content between calls.
"""

from __future__ import annotations

import errno
import os
import posixpath
from pathlib import Path, PurePosixPath
from typing import Protocol

MAX_COLLISION_ATTEMPTS = 1000


class PathCollisionError(RuntimeError):
    """No free ``name (n).ext`` variant exists within the attempt limit."""


class Storage(Protocol):
    """File primitives consumed by the lifecycle service."""

    def read(self, path: str) -> str: ...

    def write(self, path: str, text: str) -> None: ...

    def create(self, path: str, text: str) -> None:
        """Create a new file; raise :class:`FileExistsError` if it exists."""
        ...

    def move(self, path: str, new_path: str) -> None: ...

    def exists(self, path: str) -> bool: ...

    def ensure_folder(self, path: str) -> None:
        """Create *path* and its parents; succeed if it already exists."""
        ...


def normalize_path(path: str) -> str:
    """Normalize a vault-relative path.

    Converts backslashes, collapses duplicate separators and ``.``
    segments, and strips leading/trailing slashes.

    Examples:
        >>> normalize_path("/Archive//Tasks/")
        'Archive/Tasks'
        >>> normalize_path("Tasks\\\\./a.md")
        'Tasks/a.md'
    """
    cleaned = path.replace("\\", "/").strip().strip("/")
    if not cleaned:
        return ""
    normalized = posixpath.normpath(cleaned)
    return "" if normalized == "." else normalized


def join_path(*parts: str) -> str:
    """Join vault-relative path segments, skipping empty ones."""
    return normalize_path("/".join(part for part in parts if part))


def unique_path(
    storage: Storage,
    path: str,
    *,
    max_attempts: int = MAX_COLLISION_ATTEMPTS,
) -> str:
    """Return *path*, or its lowest free ``stem (n)suffix`` variant.

    Raises:
        PathCollisionError: If *path* and all ``max_attempts`` numbered
            variants are taken.
    """
    if not storage.exists(path):
        return path

    pure = PurePosixPath(path)
    for n in range(1, max_attempts + 1):
        candidate = str(pure.with_name(f"{pure.stem} ({n}){pure.suffix}"))
        if not storage.exists(candidate):
            return candidate

    msg = f"Cannot find a free name for {path!r} after {max_attempts} attempts"
    raise PathCollisionError(msg)


class VaultStorage:
    """:class:`Storage` backed by a directory on the local filesystem."""

    def __init__(self, root: Path) -> None:
        self.root = root
        self._resolved_root = root.resolve()

    def resolve(self, path: str) -> Path:
        """Absolute filesystem path for a vault-relative *path*."""
        result = self.root / normalize_path(path)
        # Guard against path traversal via crafted file names
        if not result.resolve().is_relative_to(self._resolved_root):
            msg = f"Path escapes vault root: {path}"
            raise ValueError(msg)
        return result

    def relative(self, path: Path) -> str:
        """Vault-relative POSIX form of an absolute *path* inside the vault."""
        return path.resolve().relative_to(self._resolved_root).as_posix()

    def read(self, path: str) -> str:
        return self.resolve(path).read_text(encoding="utf-8")

    def write(self, path: str, text: str) -> None:
        self.resolve(path).write_text(text, encoding="utf-8")

    def create(self, path: str, text: str) -> None:
        target = self.resolve(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        with target.open("x", encoding="utf-8") as fh:
            fh.write(text)

    def move(self, path: str, new_path: str) -> None:
        source = self.resolve(path)
        target = self.resolve(new_path)
        if target.exists():
            raise FileExistsError(errno.EEXIST, os.strerror(errno.EEXIST), str(target))
        target.parent.mkdir(parents=True, exist_ok=True)
        source.rename(target)

    def exists(self, path: str) -> bool:
        return self.resolve(path).exists()

    def ensure_folder(self, path: str) -> None:
        target = self.resolve(path)
        if target.exists() and not target.is_dir():
            msg = f"Path {path!r} is not a folder"
            raise NotADirectoryError(msg)
        target.mkdir(parents=True, exist_ok=True)
