"""Lifecycle entry points invoked by the package manager.

Composer runs the version gate before dependencies are resolved and the
scaffolder after they are installed::

    "scripts": {
        "pre-install-cmd":  ["siteprep hook pre-install-cmd"],
        "pre-update-cmd":   ["siteprep hook pre-update-cmd"],
        "post-install-cmd": ["siteprep hook post-install-cmd"],
        "post-update-cmd":  ["siteprep hook post-update-cmd"]
    }

Handlers return typed results; only :func:`dispatch` turns them into a
process exit status.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from .config import Config
from .errors import UnknownHookError
from .filesystem import FileSystem, LocalFileSystem
from .output import HookIO
from .scaffolder import ScaffoldResult, ensure_scaffold
from .version_gate import GateResult, ToolInfo, check_tool_version

PRE_INSTALL_EVENTS: tuple[str, ...] = ("pre-install-cmd", "pre-update-cmd")
POST_INSTALL_EVENTS: tuple[str, ...] = ("post-install-cmd", "post-update-cmd")


@dataclass
class HookEvent:
    """What the host hands to an entry point."""

    name: str
    tool: ToolInfo
    io: HookIO
    filesystem: FileSystem = field(default_factory=LocalFileSystem)


def check_composer_version(event: HookEvent, config: Config) -> GateResult:
    """Check whether the installed version of Composer is compatible."""
    return check_tool_version(
        event.tool.version,
        event.tool.branch_alias,
        event.io,
        config.version,
    )


def create_required_files(event: HookEvent, config: Config) -> ScaffoldResult:
    """Create the required files and folders."""
    result = ensure_scaffold(config, event.io, event.filesystem)
    if not result.ok:
        event.io.write_error(
            f"Scaffolding finished with {len(result.failed)} failed step(s); "
            f"see the messages above."
        )
    return result


def exit_status(result: GateResult | ScaffoldResult, config: Config) -> int:
    """Map a hook result onto the process exit status."""
    if isinstance(result, GateResult):
        return result.exit_code
    if not result.ok and config.fail_on_scaffold_errors:
        return 1
    return 0


HANDLERS: dict[str, Callable[[HookEvent, Config], Any]] = {
    **{name: check_composer_version for name in PRE_INSTALL_EVENTS},
    **{name: create_required_files for name in POST_INSTALL_EVENTS},
}


def run_hook(event: HookEvent, config: Config) -> GateResult | ScaffoldResult:
    """Run the handler registered for ``event.name``.

    Raises:
        UnknownHookError: If no handler is registered for the event.
    """
    handler = HANDLERS.get(event.name)
    if handler is None:
        raise UnknownHookError(event.name)
    return handler(event, config)


def dispatch(event: HookEvent, config: Config) -> int:
    """Run the hook for *event* and return the exit status for the host."""
    return exit_status(run_hook(event, config), config)
