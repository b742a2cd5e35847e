"""Shared pytest fixtures for the siteprep test suite.

Provides reusable fixtures for:
- An in-memory filesystem with per-operation failure injection
- Buffered hook IO
- Temporary deployment roots, with and without shipped templates
- Configs whose modes keep the tree traversable for non-root test runs
"""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from siteprep.config import Config, PermissionConfig, RequiredFolder
from siteprep.errors import FilesystemOperationError
from siteprep.output import BufferedIO


# ---------------------------------------------------------------------------
# In-memory filesystem
# ---------------------------------------------------------------------------


class MemoryFileSystem:
    """A ``FileSystem`` double that keeps directories and files in dicts.

    ``fail(operation, path)`` makes the next and every later call of that
    operation on that path raise ``FilesystemOperationError``. ``recover``
    lifts it again.
    """

    def __init__(self) -> None:
        self.dirs: dict[Path, int] = {}
        self.files: dict[Path, tuple[str, int]] = {}
        self.calls: list[tuple[str, Path]] = []
        self._failures: set[tuple[str, Path]] = set()

    # -- Setup helpers -----------------------------------------------------

    def add_dir(self, path: str | Path, mode: int = 0o755) -> None:
        path = Path(path)
        for parent in reversed(path.parents):
            self.dirs.setdefault(parent, 0o755)
        self.dirs[path] = mode

    def add_file(self, path: str | Path, content: str = "", mode: int = 0o644) -> None:
        path = Path(path)
        self.add_dir(path.parent, self.dirs.get(path.parent, 0o755))
        self.files[path] = (content, mode)

    def fail(self, operation: str, path: str | Path) -> None:
        self._failures.add((operation, Path(path)))

    def recover(self, operation: str, path: str | Path) -> None:
        self._failures.discard((operation, Path(path)))

    def mode(self, path: str | Path) -> int:
        path = Path(path)
        if path in self.dirs:
            return self.dirs[path]
        return self.files[path][1]

    def content(self, path: str | Path) -> str:
        return self.files[Path(path)][0]

    def children(self, path: str | Path) -> list[str]:
        path = Path(path)
        entries = [p.name for p in self.dirs if p.parent == path and p != path]
        entries += [p.name for p in self.files if p.parent == path]
        return sorted(entries)

    def snapshot(self) -> tuple[dict[Path, int], dict[Path, tuple[str, int]]]:
        return dict(self.dirs), dict(self.files)

    def _check(self, operation: str, path: Path, mode: int | None = None) -> None:
        self.calls.append((operation, path))
        if (operation, path) in self._failures:
            raise FilesystemOperationError(operation, path, "Permission denied", mode)

    # -- FileSystem protocol -------------------------------------------------

    def exists(self, path: Path) -> bool:
        path = Path(path)
        return path in self.dirs or path in self.files

    def create_directory(self, path: Path, mode: int) -> None:
        path = Path(path)
        self._check("mkdir", path, mode)
        if path not in self.dirs:
            self.add_dir(path, mode)
        self.dirs[path] = mode

    def copy_file(self, source: Path, target: Path) -> None:
        source, target = Path(source), Path(target)
        self._check("copy", target)
        if source not in self.files:
            raise FilesystemOperationError("copy", target, f"from {source}: No such file")
        self.files[target] = (self.files[source][0], 0o644)

    def set_permissions(self, path: Path, mode: int) -> None:
        path = Path(path)
        self._check("chmod", path, mode)
        if path in self.dirs:
            self.dirs[path] = mode
        elif path in self.files:
            self.files[path] = (self.files[path][0], mode)
        else:
            raise FilesystemOperationError("chmod", path, "No such file or directory", mode)

    def touch(self, path: Path) -> None:
        path = Path(path)
        self._check("touch", path)
        if path.parent not in self.dirs:
            raise FilesystemOperationError("touch", path, "No such file or directory")
        self.files.setdefault(path, ("", 0o644))

    def remove_directory(self, path: Path) -> None:
        path = Path(path)
        self._check("rmdir", path)
        if path not in self.dirs:
            raise FilesystemOperationError("rmdir", path, "No such file or directory")
        if self.children(path):
            raise FilesystemOperationError("rmdir", path, "Directory not empty")
        del self.dirs[path]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def memory_fs() -> MemoryFileSystem:
    return MemoryFileSystem()


@pytest.fixture
def buffered_io() -> BufferedIO:
    return BufferedIO()


@pytest.fixture
def memory_root() -> Path:
    """Deployment root used with the in-memory filesystem."""
    return Path("/srv/site")


@pytest.fixture
def memory_config(memory_root: Path) -> Config:
    return Config().with_root(memory_root)


@pytest.fixture
def memory_fs_with_templates(memory_fs: MemoryFileSystem, memory_root: Path) -> MemoryFileSystem:
    """In-memory tree where Drupal core scaffolding already shipped the templates."""
    site = memory_root / "web" / "sites" / "default"
    memory_fs.add_dir(site, 0o755)
    memory_fs.add_file(site / "default.settings.php", "<?php // template settings\n")
    memory_fs.add_file(site / "default.services.yml", "parameters: {}\n")
    return memory_fs


def _make_removable(root: Path) -> None:
    """Give every directory under *root* owner rwx so tmp cleanup works."""
    if not root.exists():
        return
    os.chmod(root, 0o755)
    for dirpath, dirnames, _ in os.walk(root):
        for name in dirnames:
            os.chmod(os.path.join(dirpath, name), 0o755)


@pytest.fixture
def deployment_root(tmp_path: Path) -> Path:
    """Empty deployment root on disk; permissions are restored afterwards."""
    root = tmp_path / "site"
    root.mkdir()
    yield root
    _make_removable(root)


@pytest.fixture
def deployment_root_with_templates(deployment_root: Path) -> Path:
    """Deployment root with ``default.settings.php`` and ``default.services.yml``."""
    site = deployment_root / "web" / "sites" / "default"
    site.mkdir(parents=True)
    (site / "default.settings.php").write_text("<?php // template settings\n", encoding="utf-8")
    (site / "default.services.yml").write_text("parameters: {}\n", encoding="utf-8")
    return deployment_root


@pytest.fixture
def traversable_config(deployment_root: Path) -> Config:
    """Config whose modes keep owner execute bits, so tests can look inside."""
    return Config(
        permissions=PermissionConfig(
            site_folder_create_mode=0o755,
            template_mode=0o640,
            site_folder_locked_mode=0o550,
        ),
        required_folders=[
            RequiredFolder(path="files/config/sync", mode=0o750),
            RequiredFolder(path="log", mode=0o750),
            RequiredFolder(path="web/files", mode=0o755),
            RequiredFolder(path="files/private", mode=0o750),
            RequiredFolder(path="web/libraries", mode=0o755),
            RequiredFolder(path="web/modules", mode=0o755),
            RequiredFolder(path="web/profiles", mode=0o755),
            RequiredFolder(path="web/themes", mode=0o755),
        ],
    ).with_root(deployment_root)
