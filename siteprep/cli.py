"""Command-line entry point for siteprep.

Usage::

    siteprep check-version --tool-version 2.7.1
    siteprep scaffold --root /var/www/site
    siteprep hook post-install-cmd --root .
    siteprep show-config --output siteprep.json
"""

from __future__ import annotations

import argparse
import json
import shlex
import sys
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from .config import Config, VersionRequirement
from .errors import ConfigError, SiteprepError
from .filesystem import LocalFileSystem
from .hooks import POST_INSTALL_EVENTS, PRE_INSTALL_EVENTS, HookEvent, exit_status, run_hook
from .output import BufferedIO, ConsoleIO, HookIO
from .scaffolder import ScaffoldResult
from .utils import (
    console,
    print_error,
    print_header,
    print_steps_table,
    print_success,
    print_summary_table,
)
from .version_gate import (
    DEFAULT_TOOL_COMMAND,
    GateResult,
    GateStatus,
    ToolInfo,
    detect_tool_version,
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="siteprep",
        description="Composer preflight check and deployment tree scaffolding",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  siteprep check-version --tool-version 2.7.1\n"
            "  siteprep scaffold --root /var/www/site --strict\n"
            "  siteprep hook post-install-cmd\n"
        ),
    )
    parser.add_argument("--config", "-c", default=None, help="JSON configuration file")
    parser.add_argument("--json", action="store_true", help="Print a machine-readable result")

    sub = parser.add_subparsers(dest="command", required=True)

    version_parser = sub.add_parser("check-version", help="Check the Composer version")
    _add_version_arguments(version_parser)

    scaffold_parser = sub.add_parser("scaffold", help="Create required files and folders")
    _add_scaffold_arguments(scaffold_parser)

    hook_parser = sub.add_parser("hook", help="Run the handler for a Composer script event")
    hook_parser.add_argument(
        "event",
        choices=[*PRE_INSTALL_EVENTS, *POST_INSTALL_EVENTS],
        help="Composer script event name",
    )
    _add_version_arguments(hook_parser)
    _add_scaffold_arguments(hook_parser)

    config_parser = sub.add_parser("show-config", help="Print or write the effective configuration")
    config_parser.add_argument("--root", default=None, help="Deployment root")
    config_parser.add_argument("--output", "-o", default=None, help="Write the configuration to this file")

    return parser


def _add_version_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--tool-version", default=None, help="Version reported by Composer (detected if omitted)")
    parser.add_argument("--branch-alias", default=None, help="Branch alias used when the version is a git hash")
    parser.add_argument("--minimum", default=None, help="Override the minimum required version")
    parser.add_argument(
        "--tool-command",
        default=" ".join(DEFAULT_TOOL_COMMAND),
        help="Command printing the tool version (default: %(default)s)",
    )


def _add_scaffold_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--root", default=None, help="Deployment root (default: current directory)")
    parser.add_argument("--strict", action="store_true", help="Exit non-zero if any scaffold step fails")


# ---------------------------------------------------------------------------
# Configuration assembly
# ---------------------------------------------------------------------------


def load_config(args: argparse.Namespace) -> Config:
    """Build the effective configuration from file/env plus CLI overrides."""
    config = Config.load(Path(args.config)) if args.config else Config.from_env()

    if getattr(args, "root", None):
        config = config.with_root(args.root)
    if getattr(args, "minimum", None):
        try:
            requirement = VersionRequirement.model_validate(
                {**config.version.model_dump(), "minimum": args.minimum}
            )
        except ValidationError as exc:
            raise ConfigError(f"Invalid --minimum {args.minimum!r}: {exc}") from exc
        config = config.model_copy(update={"version": requirement})
    if getattr(args, "strict", False):
        config = config.model_copy(update={"fail_on_scaffold_errors": True})
    return config


def resolve_tool(args: argparse.Namespace) -> ToolInfo:
    if args.tool_version is not None:
        return ToolInfo(version=args.tool_version, branch_alias=args.branch_alias)
    detected = detect_tool_version(shlex.split(args.tool_command))
    if args.branch_alias:
        detected = ToolInfo(version=detected.version, branch_alias=args.branch_alias)
    return detected


# ---------------------------------------------------------------------------
# Reporting
# ---------------------------------------------------------------------------


def print_scaffold_report(result: ScaffoldResult) -> None:
    print_steps_table(
        (o.step.value, o.path, o.mode, o.status.value, o.detail) for o in result.outcomes
    )
    print_summary_table(result.summary())


def _emit_json(result: Any, io: BufferedIO, code: int) -> None:
    payload = {
        "result": result.model_dump(mode="json") if result is not None else None,
        "messages": io.as_dicts(),
        "exit_code": code,
    }
    print(json.dumps(payload, indent=2))


def _report(result: GateResult | ScaffoldResult, code: int) -> None:
    if isinstance(result, ScaffoldResult):
        print_scaffold_report(result)
        if result.ok:
            print_success("Deployment tree is ready.")
    elif result.status is GateStatus.PASS:
        print_success(f"Version {result.effective_version} satisfies >= {result.minimum}.")
    if code:
        print_error("siteprep failed.")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def run(args: argparse.Namespace, io: HookIO) -> tuple[Any, int]:
    """Execute the parsed command; returns ``(result, exit_code)``."""
    config = load_config(args)

    if args.command == "show-config":
        if args.output:
            target = config.save(Path(args.output))
            io.write(f"Wrote configuration to {target}")
        return config, 0

    if args.command == "check-version":
        event_name = PRE_INSTALL_EVENTS[0]
    elif args.command == "scaffold":
        event_name = POST_INSTALL_EVENTS[0]
    else:
        event_name = args.event

    tool = resolve_tool(args) if event_name in PRE_INSTALL_EVENTS else ToolInfo(version="")
    event = HookEvent(name=event_name, tool=tool, io=io, filesystem=LocalFileSystem())
    result = run_hook(event, config)
    return result, exit_status(result, config)


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for ``siteprep`` and ``python -m siteprep``."""
    parser = build_parser()
    args = parser.parse_args(argv)

    io: HookIO = BufferedIO() if args.json else ConsoleIO()
    if not args.json and args.command != "show-config":
        print_header(f"siteprep {args.command}")

    try:
        result, code = run(args, io)
    except SiteprepError as exc:
        if args.json:
            io.write_error(str(exc))
            _emit_json(None, io, 1)
        else:
            print_error(f"Error: {exc}")
        sys.exit(1)

    if args.json:
        _emit_json(result, io, code)
    elif args.command == "show-config":
        if not args.output:
            console.print_json(result.model_dump_json())
    else:
        _report(result, code)

    if code:
        sys.exit(code)


if __name__ == "__main__":
    main()
