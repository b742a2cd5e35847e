"""siteprep configuration.

Centralised, typed configuration for both hooks. All settings use frozen
Pydantic v2 models so they are validated at construction time, can be
serialised to/from JSON, and cannot drift while a hook is running.

Paths are stored relative to the deployment root and resolved on demand, so
the same configuration works no matter which directory the host runs from.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import ConfigError
from .semver import is_valid_version

# ---------------------------------------------------------------------------
# Permission defaults
# ---------------------------------------------------------------------------

# Read-write for everybody but no execute bit, so the folder is not
# traversable on POSIX. Kept as the historical value; override it in config.
SITE_FOLDER_CREATE_MODE = 0o666
TEMPLATE_MODE = 0o640
SITE_FOLDER_LOCKED_MODE = 0o440

PLACEHOLDER_VERSIONS: tuple[str, ...] = (
    "@package_version@",
    "@package_branch_alias_version@",
)


def _coerce_mode(value: Any) -> Any:
    """Accept ``0o640``, ``"0640"`` or ``"0o640"`` for a permission mode."""
    if isinstance(value, str):
        text = value.strip().lower()
        if text.startswith("0o"):
            text = text[2:]
        try:
            return int(text, 8)
        except ValueError as exc:
            raise ValueError(f"Invalid octal mode: {value!r}") from exc
    return value


def _relative(path: str) -> str:
    """Strip leading slashes so ``/web`` and ``web`` both mean root-relative."""
    return path.strip().lstrip("/\\")


# ---------------------------------------------------------------------------
# Path layout
# ---------------------------------------------------------------------------


class PathConfig(BaseModel):
    """Logical roles of the deployment tree, relative to ``root``."""

    model_config = ConfigDict(frozen=True)

    root: Path = Field(default=Path("."), description="Deployment root directory")
    web_root: str = Field(default="web", description="Folder containing index.php and core/")
    default_site_folder: str = Field(default="web/sites/default")
    config_sync_folder: str = Field(default="files/config/sync")
    public_files_folder: str = Field(default="web/files")
    private_files_folder: str = Field(default="files/private")
    log_files_folder: str = Field(default="log")

    @field_validator(
        "web_root",
        "default_site_folder",
        "config_sync_folder",
        "public_files_folder",
        "private_files_folder",
        "log_files_folder",
    )
    @classmethod
    def root_relative(cls, value: str) -> str:
        rel = _relative(value)
        if not rel:
            raise ValueError("path must not be empty or the root itself")
        return rel

    def resolve(self, relative: str) -> Path:
        """Resolve a root-relative path against ``root``."""
        return self.root / _relative(relative)

    @property
    def web_root_path(self) -> Path:
        return self.resolve(self.web_root)

    @property
    def site_folder_path(self) -> Path:
        """The folder holding ``settings.php`` for the default site."""
        return self.resolve(self.default_site_folder)

    @property
    def config_sync_path(self) -> Path:
        return self.resolve(self.config_sync_folder)

    @property
    def public_files_path(self) -> Path:
        return self.resolve(self.public_files_folder)

    @property
    def private_files_path(self) -> Path:
        return self.resolve(self.private_files_folder)

    @property
    def log_files_path(self) -> Path:
        return self.resolve(self.log_files_folder)


class RequiredFolder(BaseModel):
    """A folder that must exist, with the mode it is created with."""

    model_config = ConfigDict(frozen=True)

    path: str = Field(..., description="Path relative to the deployment root")
    mode: int = Field(..., ge=0, le=0o7777, description="Octal permission bits")

    @field_validator("mode", mode="before")
    @classmethod
    def coerce_octal_mode(cls, value: Any) -> Any:
        return _coerce_mode(value)

    @field_validator("path")
    @classmethod
    def root_relative(cls, value: str) -> str:
        rel = _relative(value)
        if not rel:
            raise ValueError("required folder path must not be empty")
        return rel


def default_required_folders(paths: PathConfig) -> list[RequiredFolder]:
    """Return the ordered set of folders every deployment needs."""
    return [
        RequiredFolder(path=paths.config_sync_folder, mode=0o660),
        RequiredFolder(path=paths.log_files_folder, mode=0o660),
        RequiredFolder(path=paths.public_files_folder, mode=0o664),
        RequiredFolder(path=paths.private_files_folder, mode=0o660),
        RequiredFolder(path=f"{paths.web_root}/libraries", mode=0o664),
        RequiredFolder(path=f"{paths.web_root}/modules", mode=0o664),
        RequiredFolder(path=f"{paths.web_root}/profiles", mode=0o664),
        RequiredFolder(path=f"{paths.web_root}/themes", mode=0o664),
    ]


class ScaffoldFilePair(BaseModel):
    """A shipped template and the live file materialised from it.

    Both names are relative to the default site folder. The target is only
    ever produced by copying the origin.
    """

    model_config = ConfigDict(frozen=True)

    origin: str = Field(..., description="Template filename, e.g. default.settings.php")
    target: str = Field(..., description="Live filename, e.g. settings.php")

    @classmethod
    def for_filename(cls, filename: str) -> "ScaffoldFilePair":
        """Build the ``default.<name>`` -> ``<name>`` pair."""
        return cls(origin=f"default.{filename}", target=filename)


def default_file_pairs() -> list[ScaffoldFilePair]:
    return [
        ScaffoldFilePair.for_filename("settings.php"),
        ScaffoldFilePair.for_filename("services.yml"),
    ]


class PermissionConfig(BaseModel):
    """Modes applied to the default site folder and its materialised files."""

    model_config = ConfigDict(frozen=True)

    site_folder_create_mode: int = Field(default=SITE_FOLDER_CREATE_MODE, ge=0, le=0o7777)
    template_mode: int = Field(default=TEMPLATE_MODE, ge=0, le=0o7777)
    site_folder_locked_mode: int = Field(default=SITE_FOLDER_LOCKED_MODE, ge=0, le=0o7777)

    @field_validator(
        "site_folder_create_mode",
        "template_mode",
        "site_folder_locked_mode",
        mode="before",
    )
    @classmethod
    def coerce_octal_mode(cls, value: Any) -> Any:
        return _coerce_mode(value)


class VersionRequirement(BaseModel):
    """Minimum host tool version and the wording of its diagnostics."""

    model_config = ConfigDict(frozen=True)

    minimum: str = Field(default="1.0.0", description="Lowest accepted version (inclusive)")
    placeholders: tuple[str, ...] = Field(default=PLACEHOLDER_VERSIONS)
    tool_name: str = Field(default="Composer")
    project_label: str = Field(default="Let's Organize")

    @field_validator("minimum")
    @classmethod
    def check_minimum(cls, value: str) -> str:
        if not is_valid_version(value):
            raise ValueError(f"minimum {value!r} is not a valid version")
        return value


# ---------------------------------------------------------------------------
# Top-level configuration
# ---------------------------------------------------------------------------


class Config(BaseModel):
    """Global siteprep configuration.

    Instances are created once by the CLI or the hook host and passed through
    to both the version gate and the scaffolder.
    """

    model_config = ConfigDict(frozen=True)

    paths: PathConfig = Field(default_factory=PathConfig)
    permissions: PermissionConfig = Field(default_factory=PermissionConfig)
    version: VersionRequirement = Field(default_factory=VersionRequirement)
    file_pairs: list[ScaffoldFilePair] = Field(default_factory=default_file_pairs)
    required_folders: list[RequiredFolder] | None = Field(
        default=None,
        description="Explicit folder set; derived from ``paths`` when omitted",
    )
    sentinel_name: str = Field(default=".gitkeep", min_length=1)
    fail_on_scaffold_errors: bool = Field(
        default=False,
        description="Turn scaffold failures into a non-zero exit status",
    )

    def required_folder_set(self) -> list[RequiredFolder]:
        """Return the configured folder set, or the defaults for ``paths``."""
        if self.required_folders is not None:
            return list(self.required_folders)
        return default_required_folders(self.paths)

    def with_root(self, root: str | Path) -> "Config":
        """Return a copy of this config anchored at another deployment root."""
        paths = self.paths.model_copy(update={"root": Path(root)})
        return self.model_copy(update={"paths": paths})

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path) -> Path:
        """Persist the configuration to a JSON file.

        Returns:
            The path where the file was written.
        """
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        return target

    @classmethod
    def load(cls, path: Path) -> "Config":
        """Load a configuration from JSON.

        Raises:
            ConfigError: If the file is missing or fails validation.
        """
        try:
            raw = Path(path).read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigError(f"Cannot read config file {path}: {exc}") from exc
        try:
            return cls.model_validate_json(raw)
        except ValidationError as exc:
            raise ConfigError(f"Invalid config file {path}: {exc}") from exc

    @classmethod
    def from_env(cls) -> "Config":
        """Build a ``Config`` from environment variables.

        Recognised variables (all optional):
            SITEPREP_ROOT, SITEPREP_MIN_VERSION, SITEPREP_SENTINEL,
            SITEPREP_STRICT.
        """
        paths_kwargs: dict[str, Any] = {}
        if os.environ.get("SITEPREP_ROOT"):
            paths_kwargs["root"] = Path(os.environ["SITEPREP_ROOT"])

        version_kwargs: dict[str, Any] = {}
        if os.environ.get("SITEPREP_MIN_VERSION"):
            version_kwargs["minimum"] = os.environ["SITEPREP_MIN_VERSION"]

        kwargs: dict[str, Any] = {}
        if os.environ.get("SITEPREP_SENTINEL"):
            kwargs["sentinel_name"] = os.environ["SITEPREP_SENTINEL"]
        strict = os.environ.get("SITEPREP_STRICT", "").strip().lower()
        if strict:
            kwargs["fail_on_scaffold_errors"] = strict in ("1", "true", "yes", "on")

        try:
            return cls(
                paths=PathConfig(**paths_kwargs),
                version=VersionRequirement(**version_kwargs),
                **kwargs,
            )
        except ValidationError as exc:
            raise ConfigError(f"Invalid siteprep environment: {exc}") from exc
