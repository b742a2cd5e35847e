"""Idempotent scaffolding of the deployment tree.

Brings a deployment root to the shape the web application expects without
destroying anything a previous run or a human already created:

1. the default site folder exists,
2. ``settings.php`` / ``services.yml`` are materialised from their shipped
   ``default.*`` templates when missing,
3. the default site folder is locked read-only,
4. the required top-level folders exist, each with a sentinel marker file.

Each step is attempted even if an earlier one failed. Failures are written
to the error channel and collected in the returned :class:`ScaffoldResult`.
"""

from __future__ import annotations

from collections.abc import Sequence
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, computed_field

from .config import (
    Config,
    PathConfig,
    PermissionConfig,
    RequiredFolder,
    ScaffoldFilePair,
)
from .errors import FilesystemOperationError
from .filesystem import FileSystem, LocalFileSystem
from .output import HookIO
from .utils import format_mode

# Owner bits held on a required folder while its marker file is written;
# the configured mode is applied afterwards.
_POPULATE_MODE = 0o700


# ---------------------------------------------------------------------------
# Result models
# ---------------------------------------------------------------------------


class Step(str, Enum):
    SITE_FOLDER = "site_folder"
    TEMPLATE = "template"
    LOCK_SITE_FOLDER = "lock_site_folder"
    REQUIRED_FOLDER = "required_folder"


class StepStatus(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    SKIPPED = "skipped"
    FAILED = "failed"


class StepOutcome(BaseModel):
    """What happened to one path during a scaffold run."""

    step: Step
    operation: str = Field(..., description="mkdir, copy, chmod or touch")
    path: str
    status: StepStatus
    mode: Optional[int] = Field(default=None, description="Mode applied or requested")
    detail: str = Field(default="", description="Skip reason or error message")


class ScaffoldResult(BaseModel):
    """Ordered outcomes of a scaffold run."""

    outcomes: list[StepOutcome] = Field(default_factory=list)

    @computed_field  # type: ignore[misc]
    @property
    def ok(self) -> bool:
        """True when no step failed."""
        return not self.failed

    @property
    def created(self) -> list[StepOutcome]:
        return [o for o in self.outcomes if o.status is StepStatus.CREATED]

    @property
    def skipped(self) -> list[StepOutcome]:
        return [o for o in self.outcomes if o.status is StepStatus.SKIPPED]

    @property
    def failed(self) -> list[StepOutcome]:
        return [o for o in self.outcomes if o.status is StepStatus.FAILED]

    def for_step(self, step: Step) -> list[StepOutcome]:
        return [o for o in self.outcomes if o.step is step]

    def summary(self) -> dict[str, str]:
        """Counts per status, for the CLI summary table."""
        return {status.value: str(sum(1 for o in self.outcomes if o.status is status)) for status in StepStatus}


# ---------------------------------------------------------------------------
# Scaffolder
# ---------------------------------------------------------------------------


class Scaffolder:
    """Applies the scaffold steps through an injected filesystem.

    Attributes:
        filesystem: The primitives used for every change.
        io: Sink for informational lines and per-step errors.
        permissions: Modes for the site folder and materialised files.
        sentinel_name: Marker file placed in freshly created folders.
    """

    def __init__(
        self,
        io: HookIO,
        filesystem: FileSystem | None = None,
        permissions: PermissionConfig | None = None,
        sentinel_name: str = ".gitkeep",
    ) -> None:
        self.io = io
        self.filesystem = filesystem or LocalFileSystem()
        self.permissions = permissions or PermissionConfig()
        self.sentinel_name = sentinel_name

    @classmethod
    def from_config(cls, config: Config, io: HookIO, filesystem: FileSystem | None = None) -> "Scaffolder":
        return cls(
            io=io,
            filesystem=filesystem,
            permissions=config.permissions,
            sentinel_name=config.sentinel_name,
        )

    # -- Public API --------------------------------------------------------

    def ensure_scaffold(
        self,
        paths: PathConfig,
        file_pairs: Sequence[ScaffoldFilePair],
        folders: Sequence[RequiredFolder],
    ) -> ScaffoldResult:
        """Run every scaffold step against the tree described by *paths*."""
        result = ScaffoldResult()
        site_folder = paths.site_folder_path

        # 1. Ensure that the default site folder is present.
        self._ensure_site_folder(site_folder, result)

        # 2. Prepare the default site's settings and services files.
        for pair in file_pairs:
            self._materialize(site_folder, pair, result)

        # 3. Ensure that the default site folder is read only.
        self._lock_site_folder(site_folder, result)

        # 4. Ensure that required folders are present.
        for folder in folders:
            self._ensure_required_folder(paths.resolve(folder.path), folder.mode, result)

        return result

    # -- Steps -------------------------------------------------------------

    def _ensure_site_folder(self, site_folder: Path, result: ScaffoldResult) -> None:
        mode = self.permissions.site_folder_create_mode
        if self.filesystem.exists(site_folder):
            self._record(result, Step.SITE_FOLDER, "mkdir", site_folder, StepStatus.SKIPPED, mode, "already exists")
            return
        try:
            self.filesystem.create_directory(site_folder, mode)
        except FilesystemOperationError as exc:
            self._fail(result, Step.SITE_FOLDER, site_folder, mode, exc)
            return
        self._record(result, Step.SITE_FOLDER, "mkdir", site_folder, StepStatus.CREATED, mode)

    def _materialize(self, site_folder: Path, pair: ScaffoldFilePair, result: ScaffoldResult) -> None:
        origin = site_folder / pair.origin
        target = site_folder / pair.target
        mode = self.permissions.template_mode

        # Never overwrite live configuration.
        if self.filesystem.exists(target):
            self._record(result, Step.TEMPLATE, "copy", target, StepStatus.SKIPPED, None, "already exists")
            return
        if not self.filesystem.exists(origin):
            self._record(result, Step.TEMPLATE, "copy", target, StepStatus.SKIPPED, None, f"template {pair.origin} missing")
            return

        try:
            self.filesystem.copy_file(origin, target)
            self.filesystem.set_permissions(target, mode)
        except FilesystemOperationError as exc:
            self._fail(result, Step.TEMPLATE, target, mode, exc)
            return

        self.io.write(f"Created a {target} file with chmod {format_mode(mode)}")
        self._record(result, Step.TEMPLATE, "copy", target, StepStatus.CREATED, mode, f"from {pair.origin}")

    def _lock_site_folder(self, site_folder: Path, result: ScaffoldResult) -> None:
        mode = self.permissions.site_folder_locked_mode
        try:
            self.filesystem.set_permissions(site_folder, mode)
        except FilesystemOperationError as exc:
            self._fail(result, Step.LOCK_SITE_FOLDER, site_folder, mode, exc)
            return
        self._record(result, Step.LOCK_SITE_FOLDER, "chmod", site_folder, StepStatus.UPDATED, mode)

    def _ensure_required_folder(self, folder: Path, mode: int, result: ScaffoldResult) -> None:
        if self.filesystem.exists(folder):
            self._record(result, Step.REQUIRED_FOLDER, "mkdir", folder, StepStatus.SKIPPED, mode, "already exists")
            return
        try:
            self.filesystem.create_directory(folder, mode | _POPULATE_MODE)
        except FilesystemOperationError as exc:
            self._fail(result, Step.REQUIRED_FOLDER, folder, mode, exc)
            return

        try:
            self.filesystem.touch(folder / self.sentinel_name)
        except FilesystemOperationError as exc:
            self._fail(result, Step.REQUIRED_FOLDER, folder, mode, exc)
            self._discard_required_folder(folder, mode, result)
            return

        try:
            self.filesystem.set_permissions(folder, mode)
        except FilesystemOperationError as exc:
            self._fail(result, Step.REQUIRED_FOLDER, folder, mode, exc)
            return
        self._record(result, Step.REQUIRED_FOLDER, "mkdir", folder, StepStatus.CREATED, mode)

    def _discard_required_folder(self, folder: Path, mode: int, result: ScaffoldResult) -> None:
        """Undo a half-populated folder so the next run creates it afresh.

        If the empty folder cannot be removed either, it still gets its
        configured mode.
        """
        try:
            self.filesystem.remove_directory(folder)
            return
        except FilesystemOperationError as exc:
            self._fail(result, Step.REQUIRED_FOLDER, folder, mode, exc)
        try:
            self.filesystem.set_permissions(folder, mode)
        except FilesystemOperationError as exc:
            self._fail(result, Step.REQUIRED_FOLDER, folder, mode, exc)

    # -- Bookkeeping -------------------------------------------------------

    @staticmethod
    def _record(
        result: ScaffoldResult,
        step: Step,
        operation: str,
        path: Path,
        status: StepStatus,
        mode: int | None,
        detail: str = "",
    ) -> None:
        result.outcomes.append(
            StepOutcome(step=step, operation=operation, path=str(path), status=status, mode=mode, detail=detail)
        )

    def _fail(
        self,
        result: ScaffoldResult,
        step: Step,
        path: Path,
        mode: int,
        exc: FilesystemOperationError,
    ) -> None:
        self.io.write_error(
            f"Could not {exc.operation} {exc.path} (mode {format_mode(mode)}): {exc.reason}"
        )
        self._record(result, step, exc.operation, path, StepStatus.FAILED, mode, str(exc))


def ensure_scaffold(
    config: Config,
    io: HookIO,
    filesystem: FileSystem | None = None,
) -> ScaffoldResult:
    """Scaffold the tree described by *config*."""
    scaffolder = Scaffolder.from_config(config, io, filesystem)
    return scaffolder.ensure_scaffold(
        config.paths,
        config.file_pairs,
        config.required_folder_set(),
    )
