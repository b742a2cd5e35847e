"""siteprep -- Composer preflight gate and deployment tree scaffolding.

Two hooks run by the package manager around dependency installation:

* the version gate refuses to continue with a Composer older than the
  required minimum;
* the scaffolder creates the site folder, default settings files, required
  folders and permissions the web application needs, without overwriting
  anything that already exists.

Quick usage::

    from siteprep import BufferedIO, Config, check_tool_version, ensure_scaffold

    io = BufferedIO()
    gate = check_tool_version("2.7.1", None, io)
    result = ensure_scaffold(Config().with_root("/var/www/site"), io)
"""

from siteprep.config import (
    Config,
    PathConfig,
    PermissionConfig,
    RequiredFolder,
    ScaffoldFilePair,
    VersionRequirement,
    default_file_pairs,
    default_required_folders,
)
from siteprep.errors import (
    ConfigError,
    FilesystemOperationError,
    InvalidVersionError,
    SiteprepError,
    ToolVersionError,
    UnknownHookError,
    VersionIncompatibleError,
)
from siteprep.filesystem import FileSystem, LocalFileSystem
from siteprep.hooks import HookEvent, check_composer_version, create_required_files, dispatch
from siteprep.output import BufferedIO, ConsoleIO, HookIO
from siteprep.scaffolder import Scaffolder, ScaffoldResult, StepOutcome, StepStatus, ensure_scaffold
from siteprep.version_gate import GateResult, GateStatus, ToolInfo, check_tool_version

__version__ = "0.1.0"

__all__ = [
    # Config
    "Config",
    "PathConfig",
    "PermissionConfig",
    "RequiredFolder",
    "ScaffoldFilePair",
    "VersionRequirement",
    "default_file_pairs",
    "default_required_folders",
    # Errors
    "SiteprepError",
    "ConfigError",
    "FilesystemOperationError",
    "InvalidVersionError",
    "ToolVersionError",
    "UnknownHookError",
    "VersionIncompatibleError",
    # Capabilities
    "FileSystem",
    "LocalFileSystem",
    "HookIO",
    "ConsoleIO",
    "BufferedIO",
    # Version gate
    "check_tool_version",
    "GateResult",
    "GateStatus",
    "ToolInfo",
    # Scaffolder
    "Scaffolder",
    "ScaffoldResult",
    "StepOutcome",
    "StepStatus",
    "ensure_scaffold",
    # Hooks
    "HookEvent",
    "check_composer_version",
    "create_required_files",
    "dispatch",
]
