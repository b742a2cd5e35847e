"""Exception hierarchy for siteprep.

Every error raised by the package derives from :class:`SiteprepError` so the
CLI and hook dispatcher can catch them in one place.
"""

from __future__ import annotations

from pathlib import Path


class SiteprepError(Exception):
    """Base class for all siteprep errors."""


class ConfigError(SiteprepError):
    """Raised when a configuration file or environment value is invalid."""


class InvalidVersionError(SiteprepError):
    """Raised when a version string cannot be normalised."""

    def __init__(self, version: str) -> None:
        self.version = version
        super().__init__(f"Invalid version string: {version!r}")


class VersionIncompatibleError(SiteprepError):
    """Raised when the host tool is older than the required minimum."""

    def __init__(self, version: str, minimum: str, message: str = "") -> None:
        self.version = version
        self.minimum = minimum
        super().__init__(message or f"Version {version!r} is below the required {minimum!r}")


class ToolVersionError(SiteprepError):
    """Raised when the host tool's version cannot be detected."""

    def __init__(self, message: str, command: str = "", output: str = "") -> None:
        self.command = command
        self.output = output
        super().__init__(message)


class FilesystemOperationError(SiteprepError):
    """Raised when a filesystem primitive fails.

    Carries the operation name (``mkdir``, ``copy``, ``chmod``, ``touch``),
    the path involved and, where relevant, the requested mode.
    """

    def __init__(
        self,
        operation: str,
        path: str | Path,
        reason: str = "",
        mode: int | None = None,
    ) -> None:
        self.operation = operation
        self.path = Path(path)
        self.reason = reason
        self.mode = mode
        detail = f"{operation} failed for {self.path}"
        if mode is not None:
            detail += f" (mode {mode:04o})"
        if reason:
            detail += f": {reason}"
        super().__init__(detail)


class UnknownHookError(SiteprepError):
    """Raised when a hook event name has no registered handler."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"No hook registered for event {name!r}")
