"""
Account filesystem adapter — file operations inside a tenant namespace.

Every path handed to this adapter is an *account path* (absolute, as
the tenant sees it, e.g. ``/var/www/example.com``). The adapter maps it
onto the host through the account's filesystem root before touching
disk, and can map host paths back.
"""

from __future__ import annotations

import logging
import os
import posixpath
import shutil
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DirEntry:
    """One directory entry, as enumerated."""

    name: str
    is_file: bool
    is_dir: bool


class AccountFilesystem:
    """Filesystem access rooted at an account namespace.

    Args:
        fs_root: Host directory that holds the account's filesystem.
            ``/`` means account paths are host paths.
    """

    def __init__(self, fs_root: str | Path = "/"):
        self._root = Path(fs_root)

    @property
    def root(self) -> Path:
        return self._root

    # ── Namespace translation ───────────────────────────────────

    def fs_path(self, path: str = "/") -> Path:
        """Translate an account path into a host path.

        Raises:
            ValueError: ``path`` is not absolute.
        """
        if not path.startswith("/"):
            raise ValueError(f"Account paths must be absolute: {path!r}")
        normalized = posixpath.normpath(path).lstrip("/")
        return self._root / normalized if normalized else self._root

    def account_path(self, host_path: str | Path) -> str | None:
        """Translate a host path back into an account path.

        Returns None when ``host_path`` lies outside the account root.
        """
        try:
            root = self._root.resolve()
            rel = Path(os.path.normpath(host_path)).relative_to(root)
        except (ValueError, OSError):
            return None
        text = rel.as_posix()
        return "/" if text == "." else f"/{text}"

    # ── Queries ─────────────────────────────────────────────────

    def exists(self, path: str) -> bool:
        return self.fs_path(path).exists()

    def is_dir(self, path: str) -> bool:
        return self.fs_path(path).is_dir()

    def is_file(self, path: str) -> bool:
        return self.fs_path(path).is_file()

    def realpath(self, path: str) -> str | None:
        """Canonicalize an account path (symlinks, ``..``).

        Returns None when the path does not exist, is a broken or
        looping symlink, or resolves outside the account root.
        """
        try:
            resolved = self.fs_path(path).resolve(strict=True)
        except (OSError, RuntimeError):
            return None
        return self.account_path(resolved)

    def read_text(self, path: str) -> str:
        """Read a text file. Raises OSError when unreadable."""
        return self.fs_path(path).read_text(encoding="utf-8")

    def list_dir(self, path: str) -> list[DirEntry]:
        """Enumerate a directory in filesystem order (not sorted)."""
        entries: list[DirEntry] = []
        with os.scandir(self.fs_path(path)) as it:
            for entry in it:
                entries.append(
                    DirEntry(
                        name=entry.name,
                        is_file=entry.is_file(),
                        is_dir=entry.is_dir(),
                    )
                )
        return entries

    # ── Mutations ───────────────────────────────────────────────

    def write_text(self, path: str, content: str) -> None:
        """Write a text file, creating parent directories."""
        target = self.fs_path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")

    def touch(self, path: str) -> None:
        """Create an empty file if it does not exist."""
        target = self.fs_path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.touch(exist_ok=True)

    def delete(self, path: str, recursive: bool = False) -> bool:
        """Delete a file or directory.

        Returns:
            True if something was removed, False if it did not exist or
            could not be removed.
        """
        target = self.fs_path(path)
        if target == self._root:
            logger.error("Refusing to delete the account root")
            return False
        try:
            if target.is_dir() and not target.is_symlink():
                if recursive:
                    shutil.rmtree(target)
                else:
                    target.rmdir()
            elif target.exists() or target.is_symlink():
                target.unlink()
            else:
                logger.debug("Nothing to delete at %s", path)
                return False
        except OSError as e:
            logger.error("Failed to delete %s: %s", path, e)
            return False
        logger.info("Removed %s", path)
        return True
