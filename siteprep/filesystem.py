"""Filesystem capability used by the scaffolder.

The scaffolder only ever talks to a :class:`FileSystem`; production code
uses :class:`LocalFileSystem`, tests inject an in-memory double. Every
primitive either completes or raises :class:`FilesystemOperationError`
naming the operation and path.
"""

from __future__ import annotations

import os
import shutil
from pathlib import Path
from typing import Protocol, runtime_checkable

from .errors import FilesystemOperationError


@runtime_checkable
class FileSystem(Protocol):
    """The primitives the scaffolder needs."""

    def exists(self, path: Path) -> bool: ...

    def create_directory(self, path: Path, mode: int) -> None: ...

    def copy_file(self, source: Path, target: Path) -> None: ...

    def set_permissions(self, path: Path, mode: int) -> None: ...

    def touch(self, path: Path) -> None: ...

    def remove_directory(self, path: Path) -> None: ...


class LocalFileSystem:
    """:class:`FileSystem` backed by the real disk.

    ``create_directory`` applies *mode* with an explicit ``chmod`` after
    ``mkdir`` so the result does not depend on the process umask.
    """

    def exists(self, path: Path) -> bool:
        # Unreadable paths count as missing rather than raising.
        return os.path.exists(path)

    def create_directory(self, path: Path, mode: int) -> None:
        dir_path = Path(path)
        if os.path.isdir(dir_path):
            return
        try:
            dir_path.mkdir(parents=True, exist_ok=True)
            os.chmod(dir_path, mode)
        except OSError as exc:
            raise FilesystemOperationError("mkdir", dir_path, exc.strerror or str(exc), mode) from exc

    def copy_file(self, source: Path, target: Path) -> None:
        try:
            Path(target).parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(source, target)
        except OSError as exc:
            raise FilesystemOperationError(
                "copy", target, f"from {source}: {exc.strerror or exc}"
            ) from exc

    def set_permissions(self, path: Path, mode: int) -> None:
        try:
            os.chmod(path, mode)
        except OSError as exc:
            raise FilesystemOperationError("chmod", path, exc.strerror or str(exc), mode) from exc

    def touch(self, path: Path) -> None:
        try:
            Path(path).touch(exist_ok=True)
        except OSError as exc:
            raise FilesystemOperationError("touch", path, exc.strerror or str(exc)) from exc

    def remove_directory(self, path: Path) -> None:
        # Only empty directories; contents are never deleted.
        try:
            os.rmdir(path)
        except OSError as exc:
            raise FilesystemOperationError("rmdir", path, exc.strerror or str(exc)) from exc


def file_mode(path: str | Path) -> int:
    """Return the permission bits of *path* (without the file type bits)."""
    return os.stat(path).st_mode & 0o7777
