"""Preflight check of the host package manager's version.

Composer 1.0.0 and higher treat a ``composer install`` without a lock file
as ``composer update``. The project ships without a lock file, so an older
Composer would skip the post-install scaffolding entirely. Checking before
dependencies are downloaded gives the user immediate feedback instead of a
half-installed tree after a long install.

See https://github.com/composer/composer/pull/5035
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, computed_field

from .config import VersionRequirement
from .errors import InvalidVersionError, ToolVersionError, VersionIncompatibleError
from .output import HookIO
from .semver import less_than
from .utils import run_command

GIT_REVISION_RE = re.compile(r"^[0-9a-f]{40}$", re.IGNORECASE)

# ``Composer version 2.7.1 2024-02-09 15:26:28``
_TOOL_VERSION_RE = re.compile(r"version\s+(?P<version>\S+)", re.IGNORECASE)

DEFAULT_TOOL_COMMAND: tuple[str, ...] = ("composer", "--version", "--no-ansi")


class GateStatus(str, Enum):
    PASS = "pass"
    PASS_WITH_WARNING = "pass_with_warning"
    FAIL = "fail"


class ToolInfo(BaseModel):
    """What the host reports about itself."""

    version: str = Field(..., description="Self-reported version string")
    branch_alias: Optional[str] = Field(
        default=None,
        description="Branch alias used when the version is a git revision",
    )


class GateResult(BaseModel):
    """Outcome of :func:`check_tool_version`."""

    status: GateStatus
    reported_version: str
    effective_version: Optional[str] = Field(
        default=None, description="Version actually compared, after hash substitution"
    )
    minimum: str
    message: str = Field(default="", description="Diagnostic written to the IO sink, if any")

    @computed_field  # type: ignore[misc]
    @property
    def passed(self) -> bool:
        return self.status is not GateStatus.FAIL

    @computed_field  # type: ignore[misc]
    @property
    def exit_code(self) -> int:
        """Process exit status the host should use for this result."""
        return 0 if self.passed else 1

    def raise_for_status(self) -> None:
        """Raise :class:`VersionIncompatibleError` if the gate failed."""
        if not self.passed:
            raise VersionIncompatibleError(
                self.effective_version or self.reported_version,
                self.minimum,
                self.message,
            )


def resolve_version(reported_version: str, branch_alias: str | None) -> str | None:
    """Return the version to compare.

    The dev channel reports the git revision as its version; that carries no
    ordering, so the branch alias is used instead.
    """
    if GIT_REVISION_RE.match(reported_version or ""):
        return branch_alias
    return reported_version


def check_tool_version(
    reported_version: str,
    branch_alias: str | None,
    io: HookIO,
    requirement: VersionRequirement | None = None,
) -> GateResult:
    """Decide whether installation may proceed with this tool version.

    Args:
        reported_version: The tool's self-reported version.
        branch_alias: Branch alias reported alongside it, if any.
        io: Sink receiving the warning or error diagnostic.
        requirement: Minimum version and diagnostic wording.

    Returns:
        A :class:`GateResult`. Unparseable versions fail closed.
    """
    requirement = requirement or VersionRequirement()
    tool = requirement.tool_name
    version = resolve_version(reported_version, branch_alias)

    def result(status: GateStatus, message: str = "") -> GateResult:
        return GateResult(
            status=status,
            reported_version=reported_version,
            effective_version=version,
            minimum=requirement.minimum,
            message=message,
        )

    # Installed from git: no way to tell whether it is new enough.
    if version in requirement.placeholders:
        message = (
            f"You are running a development version of {tool}. "
            f"If you experience problems, please update {tool} "
            f"to the latest stable version."
        )
        io.write_warning(message)
        return result(GateStatus.PASS_WITH_WARNING, message)

    try:
        too_old = less_than(version or "", requirement.minimum)
    except InvalidVersionError:
        message = (
            f"Could not determine the {tool} version from {reported_version!r}. "
            f"{requirement.project_label} requires {tool} version "
            f"{requirement.minimum} or higher."
        )
        io.write_error(message)
        return result(GateStatus.FAIL, message)

    if too_old:
        message = (
            f"{requirement.project_label} requires {tool} version "
            f"{requirement.minimum} or higher. "
            f"Please update your {tool} before continuing."
        )
        io.write_error(message)
        return result(GateStatus.FAIL, message)

    return result(GateStatus.PASS)


def parse_tool_version(output: str) -> ToolInfo:
    """Extract the version from ``composer --version`` output.

    Raises:
        ToolVersionError: If no version token is present.
    """
    match = _TOOL_VERSION_RE.search(output)
    if not match:
        raise ToolVersionError(f"could not parse a version from output: {output.strip()!r}", output=output)
    return ToolInfo(version=match.group("version"))


def detect_tool_version(command: Sequence[str] = DEFAULT_TOOL_COMMAND) -> ToolInfo:
    """Ask the installed tool for its version.

    Raises:
        ToolVersionError: If the command cannot be run or its output parsed.
    """
    cmd_text = " ".join(command)
    returncode, stdout, stderr = run_command(command)
    if returncode != 0:
        raise ToolVersionError(
            f"{cmd_text} failed with exit code {returncode}: {stderr or stdout}",
            command=cmd_text,
            output=stderr or stdout,
        )
    try:
        return parse_tool_version(stdout)
    except ToolVersionError as exc:
        raise ToolVersionError(str(exc), command=cmd_text, output=stdout) from exc
